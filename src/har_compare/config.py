"""Threshold configuration passed into every analysis component."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from har_compare.errors import ConfigError
from har_compare.models import RequestType

logger = logging.getLogger(__name__)


class _Thresholds(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class SeverityThreshold(_Thresholds):
    """Two-tier duration threshold (ms); both bounds are inclusive."""

    warning: float
    critical: float


class SeverityThresholds(_Thresholds):
    """Per request-type-group severity thresholds."""

    api: SeverityThreshold = SeverityThreshold(warning=500, critical=1000)
    script: SeverityThreshold = SeverityThreshold(warning=500, critical=1500)
    stylesheet: SeverityThreshold = SeverityThreshold(warning=500, critical=1500)
    font: SeverityThreshold = SeverityThreshold(warning=500, critical=1500)
    image: SeverityThreshold = SeverityThreshold(warning=1000, critical=3000)
    document: SeverityThreshold = SeverityThreshold(warning=1000, critical=3000)
    other: SeverityThreshold = SeverityThreshold(warning=1000, critical=3000)

    def for_type(self, request_type: RequestType) -> SeverityThreshold:
        """Return the threshold pair for a request type."""
        if request_type.is_api:
            return self.api
        return getattr(self, request_type.value, self.other)


class IssueThresholds(_Thresholds):
    """Per-phase issue thresholds (ms). Blocked is exclusive, the rest inclusive."""

    dns: float = 100
    connect: float = 200
    ssl: float = 200
    ttfb: float = 500
    download: float = 1000
    blocked: float = 100


class RecommendationThresholds(_Thresholds):
    """Trigger (exclusive) and escalation (exclusive) thresholds per issue family."""

    dns: float = 100
    connect: float = 200
    ttfb: float = 500
    download: float = 1000
    dns_high: float = 300
    connect_high: float = 500
    ttfb_high: float = 1500
    download_high: float = 3000
    max_details: int = Field(50, gt=0)
    max_domains: int = Field(5, gt=0)
    slow_region_min_count: int = Field(3, gt=0)


class ComparisonThresholds(_Thresholds):
    min_spread_ms: float = 100
    min_relative_spread: float = 0.5
    min_baseline_ms: float = 1e-9


class TimelineThresholds(_Thresholds):
    render_blocking_grace_ms: float = 100
    blocking_candidate_grace_ms: float = 50
    api_gap_ms: float = 50
    blocking_warning_ms: float = 200
    blocking_critical_ms: float = 500
    waiting_period_min_ms: float = 100
    slow_api_ms: float = 500


class AnalysisConfig(_Thresholds):
    """All thresholds used by the engine."""

    severity: SeverityThresholds = SeverityThresholds()
    issues: IssueThresholds = IssueThresholds()
    recommendations: RecommendationThresholds = RecommendationThresholds()
    comparison: ComparisonThresholds = ComparisonThresholds()
    timeline: TimelineThresholds = TimelineThresholds()


DEFAULT_CONFIG = AnalysisConfig()


def load_config(path: Path | None) -> AnalysisConfig:
    """Load thresholds from a JSON file, falling back to defaults for omitted keys."""
    if path is None:
        return DEFAULT_CONFIG

    logger.info(f"Loading thresholds from {path}")
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigError(f"Cannot read config file {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Config file {path} is not valid JSON: {exc}") from exc

    try:
        return AnalysisConfig.model_validate(raw)
    except ValidationError as exc:
        raise ConfigError(f"Invalid thresholds in {path}: {exc}") from exc
