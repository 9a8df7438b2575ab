"""Analysis entry points tying the pipeline together."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import NamedTuple

from har_compare.aggregator import summarize_region
from har_compare.classifier import RequestClassifier
from har_compare.comparator import RegionComparator
from har_compare.config import DEFAULT_CONFIG, AnalysisConfig
from har_compare.models import AnalysisResult, RegionSummary, UXTimelineResult
from har_compare.normalizer import parse_har_content
from har_compare.recommendations import RecommendationEngine
from har_compare.timeline import UXTimelineAnalyzer

logger = logging.getLogger(__name__)


class HarCapture(NamedTuple):
    """Raw HAR text paired with its region label and source file name."""

    content: str
    region_name: str
    file_name: str


class HarAnalyzer:
    """Classify captures per region, compare regions and recommend fixes."""

    def __init__(self, config: AnalysisConfig = DEFAULT_CONFIG) -> None:
        self.config = config
        self.classifier = RequestClassifier(config)
        self.comparator = RegionComparator(config)
        self.recommender = RecommendationEngine(config)
        self.timeline_analyzer = UXTimelineAnalyzer(config)

    def load_region(self, content: str, region_name: str, file_name: str) -> RegionSummary:
        """Run the single-region pipeline: parse, classify, aggregate."""
        capture = parse_har_content(content, region_name, file_name)
        requests = self.classifier.classify(capture)
        return summarize_region(
            region_name,
            file_name,
            requests,
            base_time=capture.base_time,
            config=self.config,
        )

    def analyze(self, regions: Sequence[RegionSummary]) -> AnalysisResult:
        """Compare regions and synthesize recommendations."""
        logger.info(f"Analyzing {len(regions)} regions")
        comparisons = self.comparator.compare(regions)
        recommendations = self.recommender.generate(regions, comparisons)
        return AnalysisResult(
            regions=list(regions),
            comparisons=comparisons,
            recommendations=recommendations,
        )

    def timeline(self, region: RegionSummary) -> UXTimelineResult:
        return self.timeline_analyzer.analyze(region)


def analyze_har_files(
    captures: Iterable[HarCapture], config: AnalysisConfig = DEFAULT_CONFIG
) -> AnalysisResult:
    """Analyze raw HAR captures end to end; any malformed capture aborts the batch."""
    analyzer = HarAnalyzer(config)
    regions = [analyzer.load_region(*capture) for capture in captures]
    return analyzer.analyze(regions)
