"""Per-region summary statistics over classified requests."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime

from har_compare.config import DEFAULT_CONFIG, AnalysisConfig
from har_compare.models import (
    ClassifiedRequest,
    IssueCategory,
    RegionIssue,
    RegionSummary,
    Severity,
)

logger = logging.getLogger(__name__)

# First keyword match wins; anything unmatched falls back to LARGE_PAYLOAD.
ISSUE_KEYWORDS: tuple[tuple[str, IssueCategory], ...] = (
    ("DNS", IssueCategory.SLOW_DNS),
    ("TCP", IssueCategory.SLOW_CONNECT),
    ("SSL", IssueCategory.SLOW_SSL),
    ("TTFB", IssueCategory.SLOW_TTFB),
    ("download", IssueCategory.SLOW_DOWNLOAD),
    ("blocked", IssueCategory.BLOCKING),
)


def categorize_issue(message: str) -> IssueCategory:
    """Map an issue message to its category by distinguishing substring."""
    for keyword, category in ISSUE_KEYWORDS:
        if keyword in message:
            return category
    return IssueCategory.LARGE_PAYLOAD


def _issue_measure(
    request: ClassifiedRequest, category: IssueCategory, config: AnalysisConfig
) -> tuple[float, float]:
    """Phase duration and configured threshold behind an issue category."""
    t = request.timings
    limits = config.issues
    measures = {
        IssueCategory.SLOW_DNS: (t.dns, limits.dns),
        IssueCategory.SLOW_CONNECT: (t.connect, limits.connect),
        IssueCategory.SLOW_SSL: (t.ssl, limits.ssl),
        IssueCategory.SLOW_TTFB: (t.wait, limits.ttfb),
        IssueCategory.SLOW_DOWNLOAD: (t.receive, limits.download),
        IssueCategory.BLOCKING: (t.blocked, limits.blocked),
    }
    return measures.get(category, (request.time, 0.0))


def summarize_region(
    name: str,
    file_name: str,
    requests: Sequence[ClassifiedRequest],
    *,
    base_time: datetime | None = None,
    config: AnalysisConfig = DEFAULT_CONFIG,
) -> RegionSummary:
    """Reduce a region's classified requests to a RegionSummary."""
    total_time = max((r.end_time for r in requests), default=0.0)
    total_size = sum(r.size for r in requests if r.size > 0)
    slow_requests = sum(1 for r in requests if r.severity != Severity.NORMAL)

    issues: list[RegionIssue] = []
    for request in requests:
        for message in request.issues:
            category = categorize_issue(message)
            value, threshold = _issue_measure(request, category, config)
            issues.append(
                RegionIssue(
                    category=category,
                    severity=request.severity,
                    message=message,
                    url=request.url,
                    value=value,
                    threshold=threshold,
                )
            )

    logger.info(
        f"Region {name!r}: {len(requests)} requests, {slow_requests} slow, "
        f"{len(issues)} issues, total {total_time:.0f}ms"
    )

    return RegionSummary(
        name=name,
        file_name=file_name,
        base_time=base_time,
        requests=list(requests),
        total_time=total_time,
        total_size=total_size,
        request_count=len(requests),
        slow_requests=slow_requests,
        issues=issues,
    )
