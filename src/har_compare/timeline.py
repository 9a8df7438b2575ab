"""User-experience timeline reconstruction for a single region.

Derives paint/interactive milestones, render-blocking resources, API
dependency chains and the waiting periods a user perceives while the page
loads. All times are milliseconds relative to the region's base time.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from har_compare.config import DEFAULT_CONFIG, AnalysisConfig
from har_compare.models import (
    ApiChain,
    ApiChainNode,
    BlockingImpact,
    BlockingResource,
    ClassifiedRequest,
    Milestone,
    MilestoneType,
    RegionSummary,
    RequestType,
    Severity,
    TimelineSummary,
    UXTimelineResult,
    WaitingPeriod,
)
from har_compare.utils import round_ms

logger = logging.getLogger(__name__)

CRITICAL_TYPES = frozenset(
    {
        RequestType.DOCUMENT,
        RequestType.SCRIPT,
        RequestType.STYLESHEET,
        RequestType.XHR,
        RequestType.FETCH,
    }
)
CRITICAL_PATH_TYPES = frozenset({RequestType.DOCUMENT, RequestType.SCRIPT, RequestType.STYLESHEET})

IMPACT_SEVERITY = {
    BlockingImpact.HIGH: Severity.CRITICAL,
    BlockingImpact.MEDIUM: Severity.WARNING,
    BlockingImpact.LOW: Severity.NORMAL,
}


class UXTimelineAnalyzer:
    """Read-only timeline view over one region's classified requests."""

    def __init__(self, config: AnalysisConfig = DEFAULT_CONFIG) -> None:
        self.config = config

    def analyze(self, region: RegionSummary) -> UXTimelineResult:
        requests = region.requests
        milestones = self.identify_milestones(requests)
        blocking = self.identify_blocking_resources(requests)
        chains = self.analyze_api_chains(requests)
        waiting = self.identify_waiting_periods(requests, blocking)
        summary = self._summarize(milestones, blocking, chains, requests)

        logger.info(
            f"Timeline for {region.name!r}: {len(milestones)} milestones, "
            f"{len(blocking)} blocking resources, {len(chains)} API chains"
        )
        return UXTimelineResult(
            milestones=milestones,
            blocking_resources=blocking,
            api_chains=chains,
            waiting_periods=waiting,
            summary=summary,
        )

    # -------------------------------------------------------------------------
    # Milestones
    # -------------------------------------------------------------------------

    def _html_end_time(self, requests: Sequence[ClassifiedRequest]) -> float:
        """Completion of the first document request, 0 when there is none."""
        html = next((r for r in requests if r.request_type == RequestType.DOCUMENT), None)
        return html.end_time if html else 0.0

    def identify_milestones(self, requests: Sequence[ClassifiedRequest]) -> list[Milestone]:
        milestones: list[Milestone] = []

        html = next((r for r in requests if r.request_type == RequestType.DOCUMENT), None)
        if html:
            milestones.append(
                Milestone(
                    type=MilestoneType.HTML_LOADED,
                    label="HTML loaded",
                    time=html.end_time,
                    requests=[html],
                    description=f"Main document loaded in {round_ms(html.time)}ms",
                )
            )

        grace = self.config.timeline.render_blocking_grace_ms
        html_end = html.end_time if html else 0.0
        render_blocking = [
            r
            for r in requests
            if r.request_type.is_render_blocking and r.start_time <= html_end + grace
        ]
        if render_blocking:
            milestones.append(
                Milestone(
                    type=MilestoneType.RENDER_BLOCKING_DONE,
                    label="Render-blocking resources done",
                    time=max(r.end_time for r in render_blocking),
                    requests=render_blocking,
                    description=f"{len(render_blocking)} render-blocking resources loaded",
                )
            )

        api_requests = [r for r in requests if r.request_type.is_api]
        if api_requests:
            first_api = min(api_requests, key=lambda r: r.end_time)
            milestones.append(
                Milestone(
                    type=MilestoneType.FIRST_API_RESPONSE,
                    label="First API response",
                    time=first_api.end_time,
                    requests=[first_api],
                    description=f"First data request completed in {round_ms(first_api.time)}ms",
                )
            )

        critical = [r for r in requests if r.request_type in CRITICAL_TYPES]
        if critical:
            last_critical = max(critical, key=lambda r: r.end_time)
            milestones.append(
                Milestone(
                    type=MilestoneType.CRITICAL_RESOURCES_DONE,
                    label="Critical resources done",
                    time=last_critical.end_time,
                    requests=[last_critical],
                    description="All critical resources loaded",
                )
            )

        return sorted(milestones, key=lambda m: m.time)

    # -------------------------------------------------------------------------
    # Blocking resources
    # -------------------------------------------------------------------------

    def _impact(self, duration: float) -> BlockingImpact:
        limits = self.config.timeline
        if duration >= limits.blocking_critical_ms:
            return BlockingImpact.HIGH
        if duration >= limits.blocking_warning_ms:
            return BlockingImpact.MEDIUM
        return BlockingImpact.LOW

    def identify_blocking_resources(
        self, requests: Sequence[ClassifiedRequest]
    ) -> list[BlockingResource]:
        html_end = self._html_end_time(requests)
        window_end = html_end + self.config.timeline.blocking_candidate_grace_ms

        blocking = [
            BlockingResource(
                request=r,
                blocking_type=r.request_type,
                is_in_head=r.start_time <= html_end,
                blocking_duration=r.time,
                impact=self._impact(r.time),
            )
            for r in requests
            if r.request_type.is_render_blocking and r.start_time <= window_end
        ]
        return sorted(blocking, key=lambda b: b.blocking_duration, reverse=True)

    # -------------------------------------------------------------------------
    # API chains
    # -------------------------------------------------------------------------

    def analyze_api_chains(self, requests: Sequence[ClassifiedRequest]) -> list[ApiChain]:
        """Link API calls where each starts within the gap window after the previous ends."""
        api_requests = sorted(
            (r for r in requests if r.request_type.is_api), key=lambda r: r.start_time
        )
        visited: set[str] = set()
        chains: list[ApiChain] = []

        for request in api_requests:
            if request.id in visited:
                continue
            chain = self._build_chain(request, api_requests, visited)
            if chain.chain_length > 1:
                chains.append(chain)

        return sorted(chains, key=lambda c: c.total_duration, reverse=True)

    def _build_chain(
        self,
        start: ClassifiedRequest,
        api_requests: list[ClassifiedRequest],
        visited: set[str],
    ) -> ApiChain:
        gap = self.config.timeline.api_gap_ms
        nodes: list[ApiChainNode] = []
        current: ClassifiedRequest | None = start
        previous_id: str | None = None

        while current is not None and current.id not in visited:
            visited.add(current.id)
            nodes.append(
                ApiChainNode(
                    request=current,
                    start_time=current.start_time,
                    end_time=current.end_time,
                    depends_on=previous_id,
                )
            )
            previous_id = current.id
            chain_end = current.end_time
            # first match in start-time order wins
            current = next(
                (
                    r
                    for r in api_requests
                    if r.id not in visited and chain_end <= r.start_time <= chain_end + gap
                ),
                None,
            )

        bottleneck = nodes[0]
        for node in nodes[1:]:
            if node.request.time > bottleneck.request.time:
                bottleneck = node

        return ApiChain(
            id=f"chain-{start.id}",
            nodes=nodes,
            total_duration=nodes[-1].end_time - nodes[0].start_time,
            chain_length=len(nodes),
            bottleneck=bottleneck,
        )

    # -------------------------------------------------------------------------
    # Waiting periods and summary
    # -------------------------------------------------------------------------

    def identify_waiting_periods(
        self,
        requests: Sequence[ClassifiedRequest],
        blocking: Sequence[BlockingResource],
    ) -> list[WaitingPeriod]:
        limits = self.config.timeline
        periods: list[WaitingPeriod] = []

        for resource in blocking:
            if resource.blocking_duration < limits.waiting_period_min_ms:
                continue
            kind = "JavaScript" if resource.blocking_type == RequestType.SCRIPT else "CSS"
            periods.append(
                WaitingPeriod(
                    start_time=resource.request.start_time,
                    end_time=resource.request.end_time,
                    duration=resource.blocking_duration,
                    reason=f"{kind} blocks rendering",
                    related_requests=[resource.request],
                    severity=IMPACT_SEVERITY[resource.impact],
                )
            )

        for api in requests:
            if api.request_type.is_api and api.time > limits.slow_api_ms:
                periods.append(
                    WaitingPeriod(
                        start_time=api.start_time,
                        end_time=api.end_time,
                        duration=api.time,
                        reason="Slow API response",
                        related_requests=[api],
                        severity=api.severity,
                    )
                )

        return sorted(periods, key=lambda p: p.duration, reverse=True)

    def _summarize(
        self,
        milestones: Sequence[Milestone],
        blocking: Sequence[BlockingResource],
        chains: Sequence[ApiChain],
        requests: Sequence[ClassifiedRequest],
    ) -> TimelineSummary:
        baseline = min((r.start_time for r in requests), default=0.0)
        by_type = {m.type: m for m in milestones}
        first_paint = by_type.get(MilestoneType.RENDER_BLOCKING_DONE)
        interactive = by_type.get(MilestoneType.CRITICAL_RESOURCES_DONE)

        return TimelineSummary(
            time_to_first_paint=first_paint.time - baseline if first_paint else 0.0,
            time_to_interactive=interactive.time - baseline if interactive else 0.0,
            total_blocking_time=sum(b.blocking_duration for b in blocking),
            longest_api_chain=max((c.total_duration for c in chains), default=0.0),
            critical_path=sorted(
                (r for r in requests if r.request_type in CRITICAL_PATH_TYPES),
                key=lambda r: r.start_time,
            ),
        )
