import pytest
from helpers import make_region, make_request

from har_compare.config import AnalysisConfig, TimelineThresholds
from har_compare.models import BlockingImpact, MilestoneType, RequestType, Severity
from har_compare.timeline import UXTimelineAnalyzer

DOC = RequestType.DOCUMENT
JS = RequestType.SCRIPT
CSS = RequestType.STYLESHEET
XHR = RequestType.XHR
FETCH = RequestType.FETCH
IMG = RequestType.IMAGE


@pytest.fixture
def timeline_analyzer(config):
    return UXTimelineAnalyzer(config)


@pytest.fixture
def page_region():
    """A page: HTML, two blocking resources, a late script, an image and an API chain."""
    return make_region(
        "Tokyo",
        [
            make_request("t-0", DOC, 0, 300),
            make_request("t-1", CSS, 100, 250),
            make_request("t-2", JS, 330, 600),
            make_request("t-3", JS, 420, 80),
            make_request("t-4", IMG, 500, 2000),
            make_request("t-5", FETCH, 1000, 700, severity=Severity.WARNING),
            make_request("t-6", XHR, 1720, 150),
        ],
    )


class TestMilestones:
    def test_milestones_sorted_by_time(self, timeline_analyzer, page_region):
        milestones = timeline_analyzer.identify_milestones(page_region.requests)
        assert [(m.type, m.time) for m in milestones] == [
            (MilestoneType.HTML_LOADED, 300),
            (MilestoneType.RENDER_BLOCKING_DONE, 930),
            (MilestoneType.FIRST_API_RESPONSE, 1700),
            (MilestoneType.CRITICAL_RESOURCES_DONE, 1870),
        ]

    def test_render_blocking_grace_window(self, timeline_analyzer, page_region):
        milestones = timeline_analyzer.identify_milestones(page_region.requests)
        render = next(m for m in milestones if m.type == MilestoneType.RENDER_BLOCKING_DONE)
        # t-3 starts at 420, beyond html end 300 + 100ms grace
        assert [r.id for r in render.requests] == ["t-1", "t-2"]

    def test_without_document_later_milestones_still_reported(self, timeline_analyzer):
        requests = [
            make_request("a-0", JS, 0, 200),
            make_request("a-1", JS, 150, 100),
            make_request("a-2", FETCH, 400, 300),
        ]
        types = [m.type for m in timeline_analyzer.identify_milestones(requests)]
        assert types == [
            MilestoneType.RENDER_BLOCKING_DONE,
            MilestoneType.FIRST_API_RESPONSE,
            MilestoneType.CRITICAL_RESOURCES_DONE,
        ]

    def test_first_document_is_used(self, timeline_analyzer):
        requests = [make_request("a-0", DOC, 0, 100), make_request("a-1", DOC, 0, 50)]
        milestones = timeline_analyzer.identify_milestones(requests)
        html = next(m for m in milestones if m.type == MilestoneType.HTML_LOADED)
        assert html.requests[0].id == "a-0"

    def test_no_requests(self, timeline_analyzer):
        assert timeline_analyzer.identify_milestones([]) == []


class TestBlockingResources:
    def test_candidates_impact_and_order(self, timeline_analyzer, page_region):
        blocking = timeline_analyzer.identify_blocking_resources(page_region.requests)
        assert [(b.request.id, b.impact, b.is_in_head) for b in blocking] == [
            ("t-2", BlockingImpact.HIGH, False),
            ("t-1", BlockingImpact.MEDIUM, True),
        ]

    def test_low_impact_and_window_edge(self, timeline_analyzer):
        requests = [
            make_request("a-0", DOC, 0, 100),
            make_request("a-1", JS, 150, 199),
            make_request("a-2", CSS, 151, 500),
        ]
        [resource] = timeline_analyzer.identify_blocking_resources(requests)
        assert resource.request.id == "a-1"
        assert resource.impact == BlockingImpact.LOW
        assert resource.blocking_type == JS


class TestApiChains:
    def test_requests_40ms_apart_form_one_chain(self, timeline_analyzer):
        requests = [make_request("a-0", XHR, 0, 0), make_request("a-1", XHR, 40, 100)]
        [chain] = timeline_analyzer.analyze_api_chains(requests)
        assert [n.request.id for n in chain.nodes] == ["a-0", "a-1"]
        assert chain.nodes[1].depends_on == "a-0"
        assert chain.total_duration == 140
        assert chain.id == "chain-a-0"

    def test_requests_60ms_apart_do_not_chain(self, timeline_analyzer):
        requests = [make_request("a-0", XHR, 0, 0), make_request("a-1", XHR, 60, 100)]
        assert timeline_analyzer.analyze_api_chains(requests) == []

    def test_overlapping_requests_do_not_chain(self, timeline_analyzer):
        requests = [make_request("a-0", XHR, 0, 200), make_request("a-1", FETCH, 100, 100)]
        assert timeline_analyzer.analyze_api_chains(requests) == []

    def test_chain_bottleneck_and_sorting(self, timeline_analyzer):
        requests = [
            make_request("a-0", FETCH, 0, 100),
            make_request("a-1", FETCH, 120, 400),
            make_request("a-2", FETCH, 530, 50),
            make_request("b-0", XHR, 2000, 10),
            make_request("b-1", XHR, 2015, 10),
        ]
        chains = timeline_analyzer.analyze_api_chains(requests)
        assert [c.chain_length for c in chains] == [3, 2]
        assert chains[0].bottleneck.request.id == "a-1"
        assert chains[0].total_duration == 580
        assert chains[1].total_duration == 25

    def test_first_candidate_in_start_order_wins(self, timeline_analyzer):
        requests = [
            make_request("a-0", XHR, 0, 100),
            make_request("a-2", XHR, 130, 10),
            make_request("a-1", XHR, 110, 10),
        ]
        [chain] = timeline_analyzer.analyze_api_chains(requests)
        assert [n.request.id for n in chain.nodes] == ["a-0", "a-1", "a-2"]

    def test_gap_is_configurable(self):
        config = AnalysisConfig(timeline=TimelineThresholds(api_gap_ms=100))
        requests = [make_request("a-0", XHR, 0, 0), make_request("a-1", XHR, 60, 100)]
        assert len(UXTimelineAnalyzer(config).analyze_api_chains(requests)) == 1

    def test_non_api_requests_ignored(self, timeline_analyzer):
        requests = [make_request("a-0", JS, 0, 10), make_request("a-1", JS, 20, 10)]
        assert timeline_analyzer.analyze_api_chains(requests) == []


class TestWaitingPeriods:
    def test_sources_and_severity(self, timeline_analyzer, page_region):
        blocking = timeline_analyzer.identify_blocking_resources(page_region.requests)
        periods = timeline_analyzer.identify_waiting_periods(page_region.requests, blocking)
        assert [(p.related_requests[0].id, p.severity, p.reason) for p in periods] == [
            ("t-5", Severity.WARNING, "Slow API response"),
            ("t-2", Severity.CRITICAL, "JavaScript blocks rendering"),
            ("t-1", Severity.WARNING, "CSS blocks rendering"),
        ]

    def test_short_blocking_resources_are_skipped(self, timeline_analyzer):
        requests = [make_request("a-0", DOC, 0, 100), make_request("a-1", JS, 10, 99)]
        blocking = timeline_analyzer.identify_blocking_resources(requests)
        assert timeline_analyzer.identify_waiting_periods(requests, blocking) == []

    def test_api_at_exactly_500ms_is_not_waiting(self, timeline_analyzer):
        requests = [make_request("a-0", XHR, 0, 500)]
        assert timeline_analyzer.identify_waiting_periods(requests, []) == []


class TestAnalyze:
    def test_summary(self, timeline_analyzer, page_region):
        result = timeline_analyzer.analyze(page_region)
        summary = result.summary
        assert summary.time_to_first_paint == 930
        assert summary.time_to_interactive == 1870
        assert summary.total_blocking_time == 850
        assert summary.longest_api_chain == 870
        assert [r.id for r in summary.critical_path] == ["t-0", "t-1", "t-2", "t-3"]
        assert len(result.api_chains) == 1

    def test_images_only_region(self, timeline_analyzer):
        region = make_region("A", [make_request("a-0", IMG, 0, 400)])
        summary = timeline_analyzer.analyze(region).summary
        assert summary.time_to_first_paint == 0
        assert summary.time_to_interactive == 0
        assert summary.longest_api_chain == 0
        assert summary.critical_path == []

    def test_empty_region(self, timeline_analyzer):
        result = timeline_analyzer.analyze(make_region("A", []))
        assert result.milestones == []
        assert result.summary.total_blocking_time == 0
