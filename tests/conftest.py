import pytest
from helpers import make_entry, make_har

from har_compare.analyzer import HarAnalyzer
from har_compare.config import AnalysisConfig


@pytest.fixture
def config():
    return AnalysisConfig()


@pytest.fixture
def analyzer(config):
    return HarAnalyzer(config)


@pytest.fixture
def document_only_har():
    """A capture holding a single 200ms HTML document."""
    return make_har(make_entry("https://shop.example.com/", mime="text/html", time=200))


@pytest.fixture
def document_and_script_har():
    """The same document plus a 2s script starting right after it."""
    return make_har(
        make_entry("https://shop.example.com/", mime="text/html", time=200),
        make_entry(
            "https://shop.example.com/static/app.js",
            mime="application/javascript",
            time=2000,
            start_ms=210,
        ),
    )


@pytest.fixture
def har_dir(tmp_path, document_only_har, document_and_script_har):
    """Two HAR files on disk, one per region."""
    tokyo = tmp_path / "tokyo.har"
    frankfurt = tmp_path / "frankfurt.har"
    tokyo.write_text(document_only_har, encoding="utf-8")
    frankfurt.write_text(document_and_script_har, encoding="utf-8")
    return tmp_path
