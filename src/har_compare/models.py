"""Data models for HAR input and multi-region analysis results."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

# =============================================================================
# Enums
# =============================================================================


class RequestType(str, Enum):
    """Request type inferred from headers, MIME type and URL."""

    DOCUMENT = "document"
    XHR = "xhr"
    FETCH = "fetch"
    SCRIPT = "script"
    STYLESHEET = "stylesheet"
    IMAGE = "image"
    FONT = "font"
    MEDIA = "media"
    OTHER = "other"

    @property
    def is_api(self) -> bool:
        return self in (RequestType.XHR, RequestType.FETCH)

    @property
    def is_render_blocking(self) -> bool:
        return self in (RequestType.SCRIPT, RequestType.STYLESHEET)


class Severity(str, Enum):
    """Request severity tiers."""

    NORMAL = "normal"
    WARNING = "warning"
    CRITICAL = "critical"


class IssueCategory(str, Enum):
    """Categories of per-request timing issues."""

    SLOW_DNS = "slow_dns"
    SLOW_CONNECT = "slow_connect"
    SLOW_SSL = "slow_ssl"
    SLOW_TTFB = "slow_ttfb"
    SLOW_DOWNLOAD = "slow_download"
    LARGE_PAYLOAD = "large_payload"
    BLOCKING = "blocking"


class Priority(str, Enum):
    """Recommendation priority."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class RecommendationCategory(str, Enum):
    """Recommendation categories."""

    DNS = "dns"
    CONNECTION = "connection"
    SERVER = "server"
    PAYLOAD = "payload"
    CACHING = "caching"
    CDN = "cdn"


class MilestoneType(str, Enum):
    """User-visible page load milestones."""

    HTML_LOADED = "html_loaded"
    RENDER_BLOCKING_DONE = "render_blocking_done"
    FIRST_API_RESPONSE = "first_api_response"
    CRITICAL_RESOURCES_DONE = "critical_resources_done"


class BlockingImpact(str, Enum):
    """Impact tier of a render-blocking resource."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


# =============================================================================
# HAR Models (HTTP Archive 1.2)
# =============================================================================


class HarHeader(BaseModel):
    """HTTP header name-value pair."""

    name: str
    value: str = ""


class HarRequest(BaseModel):
    """HTTP request."""

    method: str
    url: str
    http_version: str = Field("", alias="httpVersion")
    headers: list[HarHeader] = Field(default_factory=list)
    body_size: int = Field(-1, alias="bodySize")


class HarContent(BaseModel):
    """Response body details."""

    size: int = 0
    mime_type: str | None = Field(None, alias="mimeType")


class HarResponse(BaseModel):
    """HTTP response."""

    status: int = 0
    status_text: str = Field("", alias="statusText")
    headers: list[HarHeader] = Field(default_factory=list)
    content: HarContent = Field(default_factory=HarContent)
    body_size: int = Field(-1, alias="bodySize")


class HarTimings(BaseModel):
    """Request/response timings (all in milliseconds, -1 when not applicable)."""

    blocked: float | None = -1.0
    dns: float | None = -1.0
    connect: float | None = -1.0
    ssl: float | None = -1.0
    send: float | None = -1.0
    wait: float | None = -1.0
    receive: float | None = -1.0


class HarEntry(BaseModel):
    """Single HTTP transaction."""

    started_date_time: datetime = Field(alias="startedDateTime")
    time: float = 0.0
    request: HarRequest
    response: HarResponse = Field(default_factory=HarResponse)
    timings: HarTimings = Field(default_factory=HarTimings)
    server_ip_address: str | None = Field(None, alias="serverIPAddress")
    connection: str | None = None


class HarLog(BaseModel):
    """HAR log container."""

    version: str = ""
    entries: list[HarEntry]


class Har(BaseModel):
    """Root HAR object."""

    log: HarLog


# =============================================================================
# Analysis Models
# =============================================================================


class FrozenModel(BaseModel):
    """Base for analysis values that are never mutated after creation."""

    model_config = ConfigDict(frozen=True)


class NormalizedTiming(FrozenModel):
    """Timing breakdown with every phase coerced to a non-negative number."""

    blocked: float = 0.0
    dns: float = 0.0
    connect: float = 0.0
    ssl: float = 0.0
    send: float = 0.0
    wait: float = 0.0
    receive: float = 0.0


class ParsedCapture(FrozenModel):
    """One validated HAR capture, anchored at its earliest request."""

    region_name: str
    file_name: str
    base_time: datetime
    entries: list[HarEntry]


class ClassifiedRequest(FrozenModel):
    """A single request tagged with type, severity and timing issues."""

    id: str
    url: str
    method: str
    status: int
    request_type: RequestType
    size: int
    time: float
    timings: NormalizedTiming
    start_time: float = Field(ge=0)
    severity: Severity
    issues: list[str] = Field(default_factory=list)

    @property
    def end_time(self) -> float:
        return self.start_time + self.time


class RegionIssue(FrozenModel):
    """A request-scoped issue message with its category."""

    category: IssueCategory
    severity: Severity
    message: str
    url: str
    value: float
    threshold: float


class RegionSummary(FrozenModel):
    """All classified requests of one capture plus aggregates."""

    name: str
    file_name: str
    base_time: datetime | None = None
    requests: list[ClassifiedRequest]
    total_time: float
    total_size: int
    request_count: int
    slow_requests: int
    issues: list[RegionIssue]


class RegionTiming(FrozenModel):
    """Representative timing of one endpoint in one region."""

    name: str
    time: float
    timings: NormalizedTiming


class ComparisonResult(FrozenModel):
    """A canonical URL observed in two or more regions."""

    url: str
    regions: list[RegionTiming] = Field(min_length=2)
    max_diff: float
    slowest_region: str
    fastest_region: str


# -----------------------------------------------------------------------------
# Recommendation evidence
# -----------------------------------------------------------------------------


class PhaseStats(FrozenModel):
    """Count, mean and max of the qualifying phase durations."""

    count: int
    avg_time: int
    max_time: int


class DnsStats(PhaseStats):
    domains: list[str] = Field(default_factory=list)


class DnsDetail(FrozenModel):
    url: str
    dns: int
    region: str


class ConnectionDetail(FrozenModel):
    url: str
    connect: int
    ssl: int
    region: str


class TtfbDetail(FrozenModel):
    url: str
    ttfb: int
    region: str


class DownloadDetail(FrozenModel):
    url: str
    download: int
    region: str


class RegionDisparityStats(FrozenModel):
    region: str
    slow_count: int
    avg_diff: int
    total_comparisons: int


class RegionDisparityDetail(FrozenModel):
    url: str
    this_region: int
    fastest: int
    fastest_region: str
    diff: int


class DnsEvidence(FrozenModel):
    type: Literal["dns"] = "dns"
    stats: DnsStats
    details: list[DnsDetail]


class ConnectionEvidence(FrozenModel):
    type: Literal["connection"] = "connection"
    stats: PhaseStats
    details: list[ConnectionDetail]


class TtfbEvidence(FrozenModel):
    type: Literal["ttfb"] = "ttfb"
    stats: PhaseStats
    details: list[TtfbDetail]


class DownloadEvidence(FrozenModel):
    type: Literal["download"] = "download"
    stats: PhaseStats
    details: list[DownloadDetail]


class RegionEvidence(FrozenModel):
    type: Literal["region"] = "region"
    stats: RegionDisparityStats
    details: list[RegionDisparityDetail]


Evidence = Annotated[
    DnsEvidence | ConnectionEvidence | TtfbEvidence | DownloadEvidence | RegionEvidence,
    Field(discriminator="type"),
]


class Recommendation(FrozenModel):
    """A prioritized, evidence-backed optimization suggestion."""

    priority: Priority
    category: RecommendationCategory
    title: str
    evidence: Evidence
    suggested_actions: list[str] = Field(default_factory=list)
    affected_urls: list[str] = Field(min_length=1)
    affected_regions: list[str]


class AnalysisResult(FrozenModel):
    """Complete multi-region analysis."""

    regions: list[RegionSummary]
    comparisons: list[ComparisonResult]
    recommendations: list[Recommendation]


# -----------------------------------------------------------------------------
# UX timeline
# -----------------------------------------------------------------------------


class Milestone(FrozenModel):
    """A named timeline event."""

    type: MilestoneType
    label: str
    time: float
    requests: list[ClassifiedRequest]
    description: str


class BlockingResource(FrozenModel):
    """A script or stylesheet that delays rendering."""

    request: ClassifiedRequest
    blocking_type: RequestType
    is_in_head: bool
    blocking_duration: float
    impact: BlockingImpact


class ApiChainNode(FrozenModel):
    request: ClassifiedRequest
    start_time: float
    end_time: float
    depends_on: str | None = None


class ApiChain(FrozenModel):
    """API calls linked by temporal adjacency."""

    id: str
    nodes: list[ApiChainNode]
    total_duration: float
    chain_length: int
    bottleneck: ApiChainNode


class WaitingPeriod(FrozenModel):
    """An interval the user perceives as nothing happening."""

    start_time: float
    end_time: float
    duration: float
    reason: str
    related_requests: list[ClassifiedRequest]
    severity: Severity


class TimelineSummary(FrozenModel):
    time_to_first_paint: float
    time_to_interactive: float
    total_blocking_time: float
    longest_api_chain: float
    critical_path: list[ClassifiedRequest]


class UXTimelineResult(FrozenModel):
    """UX timeline reconstruction for one region."""

    milestones: list[Milestone]
    blocking_resources: list[BlockingResource]
    api_chains: list[ApiChain]
    waiting_periods: list[WaitingPeriod]
    summary: TimelineSummary
