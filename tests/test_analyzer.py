import pytest
from helpers import make_entry, make_har

from har_compare import HarCapture, HarParseError, analyze_har_files
from har_compare.models import (
    BlockingImpact,
    IssueCategory,
    RecommendationCategory,
    RequestType,
    Severity,
)


class TestLoadRegion:
    def test_single_region_pipeline(self, analyzer, document_and_script_har):
        region = analyzer.load_region(document_and_script_har, "Frankfurt", "frankfurt.har")
        assert region.name == "Frankfurt"
        assert region.request_count == 2
        assert region.slow_requests == 1
        assert region.total_time == 2210
        assert region.total_size == 2000

        script = region.requests[1]
        assert script.request_type == RequestType.SCRIPT
        assert script.severity == Severity.CRITICAL
        assert [i.category for i in region.issues] == [IssueCategory.SLOW_TTFB]

    def test_download_issue_when_phase_is_receive(self, analyzer):
        content = make_har(
            make_entry(
                "https://a.example/app.js",
                mime="application/javascript",
                time=2000,
                timings={"send": 0, "wait": 100, "receive": 1900},
            )
        )
        region = analyzer.load_region(content, "A", "a.har")
        assert [i.category for i in region.issues] == [IssueCategory.SLOW_DOWNLOAD]

    def test_malformed_capture_is_rejected(self, analyzer):
        with pytest.raises(HarParseError):
            analyzer.load_region("not json", "A", "a.har")


class TestAnalyzeHarFiles:
    def test_document_vs_document_and_script(self, document_only_har, document_and_script_har):
        result = analyze_har_files(
            [
                HarCapture(document_only_har, "Tokyo", "tokyo.har"),
                HarCapture(document_and_script_har, "Frankfurt", "frankfurt.har"),
            ]
        )
        tokyo, frankfurt = result.regions
        assert tokyo.slow_requests == 0
        assert frankfurt.slow_requests == 1
        assert frankfurt.requests[1].severity == Severity.CRITICAL
        assert frankfurt.issues[0].message == "Slow server response TTFB (2000ms)"
        # the shared document loads equally fast in both regions
        assert result.comparisons == []
        [rec] = result.recommendations
        assert rec.category == RecommendationCategory.SERVER
        assert rec.affected_regions == ["Frankfurt"]

    def test_api_disparity_between_regions(self):
        region_a = make_har(
            make_entry("https://api.example.com/api/data", mime="application/json", time=200)
        )
        region_b = make_har(
            make_entry(
                "https://api.example.com/api/data?region=b",
                mime="application/json",
                time=900,
                timings={"dns": -1, "send": 10, "wait": 850, "receive": 40},
            )
        )
        result = analyze_har_files(
            [HarCapture(region_a, "A", "a.har"), HarCapture(region_b, "B", "b.har")]
        )

        [comparison] = result.comparisons
        assert comparison.url == "https://api.example.com/api/data"
        assert comparison.max_diff == 700
        assert comparison.slowest_region == "B"
        assert comparison.fastest_region == "A"

        [rec] = result.recommendations
        assert rec.category == RecommendationCategory.SERVER
        assert rec.evidence.details[0].ttfb == 850
        assert rec.affected_regions == ["B"]

    def test_clean_captures_have_no_recommendations(self):
        content = make_har(make_entry("https://a.example/", time=120))
        result = analyze_har_files(
            [HarCapture(content, "A", "a.har"), HarCapture(content, "B", "b.har")]
        )
        assert result.comparisons == []
        assert result.recommendations == []

    def test_one_bad_capture_aborts_batch(self, document_only_har):
        with pytest.raises(HarParseError, match="b.har"):
            analyze_har_files(
                [
                    HarCapture(document_only_har, "A", "a.har"),
                    HarCapture(make_har(), "B", "b.har"),
                ]
            )

    def test_timeline_entry_point(self, analyzer, document_and_script_har):
        region = analyzer.load_region(document_and_script_har, "Frankfurt", "frankfurt.har")
        timeline = analyzer.timeline(region)
        assert timeline.summary.time_to_interactive == 2210
        # the script starts 10ms after the document, inside the candidate window
        [blocking] = timeline.blocking_resources
        assert blocking.request.id == "Frankfurt-1"
        assert blocking.impact == BlockingImpact.HIGH
        assert timeline.summary.total_blocking_time == 2000
