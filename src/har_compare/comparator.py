"""Cross-region latency comparison by canonical URL."""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Sequence

from har_compare.config import DEFAULT_CONFIG, AnalysisConfig
from har_compare.models import ComparisonResult, RegionSummary, RegionTiming
from har_compare.utils import canonical_url

logger = logging.getLogger(__name__)


class RegionComparator:
    """Join requests across regions and surface meaningful latency gaps."""

    def __init__(self, config: AnalysisConfig = DEFAULT_CONFIG) -> None:
        self.config = config

    def compare(self, regions: Sequence[RegionSummary]) -> list[ComparisonResult]:
        """Compare endpoints seen in two or more regions, largest gap first."""
        if len(regions) < 2:
            logger.info("Fewer than two regions supplied; skipping comparison")
            return []

        by_url = self._slowest_per_region(regions)

        comparisons: list[ComparisonResult] = []
        for url, per_region in by_url.items():
            if len(per_region) < 2:
                continue
            comparison = self._compare_endpoint(url, list(per_region.values()))
            if comparison is not None:
                comparisons.append(comparison)

        logger.info(
            f"Compared {len(by_url)} endpoints across {len(regions)} regions; "
            f"{len(comparisons)} show significant differences"
        )
        return sorted(comparisons, key=lambda c: c.max_diff, reverse=True)

    def _slowest_per_region(
        self, regions: Sequence[RegionSummary]
    ) -> dict[str, dict[str, RegionTiming]]:
        """Keep the slowest occurrence of each canonical URL per region."""
        by_url: dict[str, dict[str, RegionTiming]] = defaultdict(dict)
        for region in regions:
            for request in region.requests:
                per_region = by_url[canonical_url(request.url)]
                existing = per_region.get(region.name)
                if existing is None or request.time > existing.time:
                    per_region[region.name] = RegionTiming(
                        name=region.name, time=request.time, timings=request.timings
                    )
        return by_url

    def _compare_endpoint(
        self, url: str, region_timings: list[RegionTiming]
    ) -> ComparisonResult | None:
        limits = self.config.comparison
        times = [r.time for r in region_timings]
        max_time = max(times)
        min_time = min(times)
        max_diff = max_time - min_time

        significant = max_diff > limits.min_spread_ms
        if not significant and min_time > limits.min_baseline_ms:
            significant = max_diff / min_time > limits.min_relative_spread
        if not significant:
            return None

        slowest = next(r for r in region_timings if r.time == max_time)
        fastest = next(r for r in region_timings if r.time == min_time)
        logger.debug(f"{url}: {slowest.name} is {max_diff:.0f}ms slower than {fastest.name}")

        return ComparisonResult(
            url=url,
            regions=region_timings,
            max_diff=max_diff,
            slowest_region=slowest.name,
            fastest_region=fastest.name,
        )
