"""Prioritized recommendations from phase timings and region comparisons."""

from __future__ import annotations

import logging
import statistics
from collections import Counter
from collections.abc import Callable, Sequence
from typing import NamedTuple

from har_compare.config import DEFAULT_CONFIG, AnalysisConfig
from har_compare.models import (
    ComparisonResult,
    ConnectionDetail,
    ConnectionEvidence,
    DnsDetail,
    DnsEvidence,
    DnsStats,
    DownloadDetail,
    DownloadEvidence,
    NormalizedTiming,
    PhaseStats,
    Priority,
    Recommendation,
    RecommendationCategory,
    RegionDisparityDetail,
    RegionDisparityStats,
    RegionEvidence,
    RegionSummary,
    TtfbDetail,
    TtfbEvidence,
)
from har_compare.utils import get_domain, round_ms

logger = logging.getLogger(__name__)

SUGGESTED_ACTIONS: dict[str, list[str]] = {
    "dns": [
        "Check whether several APIs can be served from the same domain",
        'Add <link rel="dns-prefetch" href="//domain.com"> for third-party hosts',
    ],
    "connection": [
        "Confirm HTTP/2 or HTTP/3 is enabled",
        'Add <link rel="preconnect" href="//domain.com"> for critical origins',
    ],
    "ttfb": [
        "Profile the backend of these endpoints; they may need caching",
        "Consider caching API responses at the CDN",
    ],
    "download": [
        "Confirm the server enables Gzip/Brotli compression",
        "Consider serving images as WebP",
    ],
    "region": [
        "Check the CDN edge configuration serving {region}",
        "Confirm DNS resolves {region} to the nearest edge node",
    ],
}


class PhaseSample(NamedTuple):
    """One request whose phase duration crossed a recommendation threshold."""

    url: str
    value: float
    region: str
    timings: NormalizedTiming


class RecommendationEngine:
    """Scan all regions for slow phases and regional disparities."""

    def __init__(self, config: AnalysisConfig = DEFAULT_CONFIG) -> None:
        self.config = config

    def generate(
        self,
        regions: Sequence[RegionSummary],
        comparisons: Sequence[ComparisonResult],
    ) -> list[Recommendation]:
        """Emit at most one recommendation per issue family."""
        limits = self.config.recommendations
        recommendations: list[Recommendation] = []

        dns = self._collect(regions, lambda t: t.dns, limits.dns)
        if dns:
            recommendations.append(self._dns_recommendation(dns))

        connect = self._collect(regions, lambda t: t.connect, limits.connect)
        if connect:
            recommendations.append(self._connection_recommendation(connect))

        ttfb = self._collect(regions, lambda t: t.wait, limits.ttfb)
        if ttfb:
            recommendations.append(self._ttfb_recommendation(ttfb))

        download = self._collect(regions, lambda t: t.receive, limits.download)
        if download:
            recommendations.append(self._download_recommendation(download))

        region = self._region_recommendation(comparisons)
        if region is not None:
            recommendations.append(region)

        logger.info(f"Generated {len(recommendations)} recommendations")
        return recommendations

    # -------------------------------------------------------------------------
    # Phase families
    # -------------------------------------------------------------------------

    def _collect(
        self,
        regions: Sequence[RegionSummary],
        metric: Callable[[NormalizedTiming], float],
        threshold: float,
    ) -> list[PhaseSample]:
        """Requests whose phase exceeds the threshold, slowest first."""
        samples = [
            PhaseSample(request.url, metric(request.timings), region.name, request.timings)
            for region in regions
            for request in region.requests
            if metric(request.timings) > threshold
        ]
        return sorted(samples, key=lambda s: s.value, reverse=True)

    def _stats(self, samples: list[PhaseSample]) -> PhaseStats:
        return PhaseStats(
            count=len(samples),
            avg_time=round_ms(statistics.mean(s.value for s in samples)),
            max_time=round_ms(samples[0].value),
        )

    def _priority(self, samples: list[PhaseSample], escalation: float) -> Priority:
        return Priority.HIGH if samples[0].value > escalation else Priority.MEDIUM

    def _top(self, samples: list[PhaseSample]) -> list[PhaseSample]:
        return samples[: self.config.recommendations.max_details]

    def _affected_urls(self, samples: list[PhaseSample]) -> list[str]:
        return list(dict.fromkeys(s.url for s in self._top(samples)))

    def _affected_regions(self, samples: list[PhaseSample]) -> list[str]:
        return list(dict.fromkeys(s.region for s in samples))

    def _dns_recommendation(self, samples: list[PhaseSample]) -> Recommendation:
        limits = self.config.recommendations
        stats = self._stats(samples)
        domains = list(dict.fromkeys(get_domain(s.url) for s in samples))
        return Recommendation(
            priority=self._priority(samples, limits.dns_high),
            category=RecommendationCategory.DNS,
            title=f"Slow DNS lookups: average {stats.avg_time}ms, max {stats.max_time}ms",
            evidence=DnsEvidence(
                stats=DnsStats(**stats.model_dump(), domains=domains[: limits.max_domains]),
                details=[
                    DnsDetail(url=s.url, dns=round_ms(s.value), region=s.region)
                    for s in self._top(samples)
                ],
            ),
            suggested_actions=SUGGESTED_ACTIONS["dns"],
            affected_urls=self._affected_urls(samples),
            affected_regions=self._affected_regions(samples),
        )

    def _connection_recommendation(self, samples: list[PhaseSample]) -> Recommendation:
        stats = self._stats(samples)
        return Recommendation(
            priority=self._priority(samples, self.config.recommendations.connect_high),
            category=RecommendationCategory.CONNECTION,
            title=f"Slow TCP connections: average {stats.avg_time}ms, max {stats.max_time}ms",
            evidence=ConnectionEvidence(
                stats=stats,
                details=[
                    ConnectionDetail(
                        url=s.url,
                        connect=round_ms(s.value),
                        ssl=round_ms(s.timings.ssl),
                        region=s.region,
                    )
                    for s in self._top(samples)
                ],
            ),
            suggested_actions=SUGGESTED_ACTIONS["connection"],
            affected_urls=self._affected_urls(samples),
            affected_regions=self._affected_regions(samples),
        )

    def _ttfb_recommendation(self, samples: list[PhaseSample]) -> Recommendation:
        stats = self._stats(samples)
        return Recommendation(
            priority=self._priority(samples, self.config.recommendations.ttfb_high),
            category=RecommendationCategory.SERVER,
            title=(
                f"Slow server response (TTFB): average {stats.avg_time}ms, "
                f"max {stats.max_time}ms"
            ),
            evidence=TtfbEvidence(
                stats=stats,
                details=[
                    TtfbDetail(url=s.url, ttfb=round_ms(s.value), region=s.region)
                    for s in self._top(samples)
                ],
            ),
            suggested_actions=SUGGESTED_ACTIONS["ttfb"],
            affected_urls=self._affected_urls(samples),
            affected_regions=self._affected_regions(samples),
        )

    def _download_recommendation(self, samples: list[PhaseSample]) -> Recommendation:
        stats = self._stats(samples)
        return Recommendation(
            priority=self._priority(samples, self.config.recommendations.download_high),
            category=RecommendationCategory.PAYLOAD,
            title=f"Long download times: average {stats.avg_time}ms, max {stats.max_time}ms",
            evidence=DownloadEvidence(
                stats=stats,
                details=[
                    DownloadDetail(url=s.url, download=round_ms(s.value), region=s.region)
                    for s in self._top(samples)
                ],
            ),
            suggested_actions=SUGGESTED_ACTIONS["download"],
            affected_urls=self._affected_urls(samples),
            affected_regions=self._affected_regions(samples),
        )

    # -------------------------------------------------------------------------
    # Region disparity
    # -------------------------------------------------------------------------

    def _region_recommendation(
        self, comparisons: Sequence[ComparisonResult]
    ) -> Recommendation | None:
        """Report the region that is most often the slowest party."""
        limits = self.config.recommendations
        slowest_counts = Counter(c.slowest_region for c in comparisons)
        if not slowest_counts:
            return None

        # most_common keeps first-seen order among equal counts
        region, count = slowest_counts.most_common(1)[0]
        if count < limits.slow_region_min_count:
            return None

        region_comparisons = [c for c in comparisons if c.slowest_region == region]
        avg_diff = round_ms(statistics.mean(c.max_diff for c in region_comparisons))
        top = region_comparisons[: limits.max_details]
        logger.debug(f"Region {region!r} is slowest in {count} comparisons")

        return Recommendation(
            priority=Priority.HIGH,
            category=RecommendationCategory.CDN,
            title=(
                f"{region} is noticeably slower on {count} requests "
                f"(average {avg_diff}ms slower)"
            ),
            evidence=RegionEvidence(
                stats=RegionDisparityStats(
                    region=region,
                    slow_count=count,
                    avg_diff=avg_diff,
                    total_comparisons=len(comparisons),
                ),
                details=[self._disparity_detail(c, region) for c in top],
            ),
            suggested_actions=[a.format(region=region) for a in SUGGESTED_ACTIONS["region"]],
            affected_urls=[c.url for c in top],
            affected_regions=[region],
        )

    def _disparity_detail(
        self, comparison: ComparisonResult, region: str
    ) -> RegionDisparityDetail:
        times = {r.name: r.time for r in comparison.regions}
        return RegionDisparityDetail(
            url=comparison.url,
            this_region=round_ms(times.get(region, 0.0)),
            fastest=round_ms(times.get(comparison.fastest_region, 0.0)),
            fastest_region=comparison.fastest_region,
            diff=round_ms(comparison.max_diff),
        )
