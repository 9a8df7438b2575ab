from datetime import UTC, datetime
from zoneinfo import ZoneInfo

import pytest
from helpers import make_entry, make_har

from har_compare import HarCapture, analyze_har_files
from har_compare.formatter import OutputFormatter


@pytest.fixture
def formatter():
    return OutputFormatter()


@pytest.fixture
def disparity_result():
    fast = make_har(make_entry("https://api.example.com/api/data", mime="application/json", time=200))
    slow = make_har(make_entry("https://api.example.com/api/data", mime="application/json", time=900))
    return analyze_har_files([HarCapture(fast, "A", "a.har"), HarCapture(slow, "B", "b.har")])


class TestMarkdownReport:
    def test_sections(self, formatter, disparity_result):
        report = formatter.generate_markdown_report(disparity_result)
        assert report.startswith("# Multi-Region HAR Analysis Report")
        assert "## Regions" in report
        assert "| A | `a.har` |" in report
        assert "## Cross-Region Differences" in report
        assert "| `/api/data` | B | A | +700 ms |" in report
        assert "### 1. [MEDIUM] Slow server response (TTFB): average 900ms, max 900ms" in report
        assert "**Suggested actions:**" in report

    def test_clean_report(self, formatter):
        content = make_har(make_entry("https://a.example/", time=100))
        result = analyze_har_files([HarCapture(content, "A", "a.har")])
        report = formatter.generate_markdown_report(result)
        assert "## Cross-Region Differences" not in report
        assert "No performance issues found." in report

    def test_timezone_label(self, disparity_result):
        formatter = OutputFormatter(timestamp_timezone=UTC, timestamp_timezone_label="UTC")
        assert "**Timestamp Timezone:** UTC" in formatter.generate_markdown_report(disparity_result)


class TestTimelineMarkdown:
    def test_sections(self, formatter, analyzer, document_and_script_har):
        region = analyzer.load_region(document_and_script_har, "Frankfurt", "frankfurt.har")
        content = formatter.generate_timeline_markdown(region, analyzer.timeline(region))
        assert content.startswith("# UX Timeline: Frankfurt")
        assert "| 200 ms | HTML loaded | Main document loaded in 200ms |" in content
        assert "| script | `/static/app.js` | 2.00 s | no | **HIGH** |" in content
        assert "JavaScript blocks rendering" in content


def test_format_timestamp_converts_timezone():
    formatter = OutputFormatter(timestamp_timezone=ZoneInfo("Asia/Tokyo"))
    ts = datetime(2026, 3, 1, 12, 0, 0, tzinfo=UTC)
    assert formatter._format_timestamp(ts) == "2026-03-01T21:00:00+09:00"
    assert OutputFormatter()._format_timestamp(ts) == "2026-03-01T12:00:00+00:00"
