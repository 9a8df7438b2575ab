"""Request type, severity and per-phase issue classification."""

from __future__ import annotations

import logging
import re

from har_compare.config import DEFAULT_CONFIG, AnalysisConfig
from har_compare.models import (
    ClassifiedRequest,
    HarEntry,
    NormalizedTiming,
    ParsedCapture,
    RequestType,
    Severity,
)
from har_compare.normalizer import normalize_timings, start_offset_ms
from har_compare.utils import round_ms

logger = logging.getLogger(__name__)

IMAGE_URL_PATTERN = re.compile(r"\.(png|jpg|jpeg|gif|svg|webp|ico)")
FONT_URL_PATTERN = re.compile(r"\.(woff|woff2|ttf|otf|eot)")

# Issue messages; the aggregator categorizes them by these keywords.
DNS_MESSAGE = "Slow DNS lookup ({ms}ms)"
CONNECT_MESSAGE = "Slow TCP connect ({ms}ms)"
SSL_MESSAGE = "Slow SSL handshake ({ms}ms)"
TTFB_MESSAGE = "Slow server response TTFB ({ms}ms)"
DOWNLOAD_MESSAGE = "Long download time ({ms}ms)"
BLOCKED_MESSAGE = "Request blocked in queue ({ms}ms)"


class RequestClassifier:
    """Assign request type, severity tier and timing issues to HAR entries."""

    def __init__(self, config: AnalysisConfig = DEFAULT_CONFIG) -> None:
        self.config = config

    def classify(self, capture: ParsedCapture) -> list[ClassifiedRequest]:
        """Classify every entry of a capture, preserving input order."""
        requests = [
            self.classify_entry(entry, index, capture)
            for index, entry in enumerate(capture.entries)
        ]
        logger.info(f"Classified {len(requests)} requests for region {capture.region_name!r}")
        return requests

    def classify_entry(
        self, entry: HarEntry, index: int, capture: ParsedCapture
    ) -> ClassifiedRequest:
        request_type = self.request_type(entry)
        timings = normalize_timings(entry.timings)
        severity = self.severity(entry.time, request_type)
        response = entry.response
        size = response.body_size if response.body_size > 0 else response.content.size

        if severity != Severity.NORMAL:
            logger.debug(
                f"{severity.value} {request_type.value} request {entry.request.url} "
                f"({entry.time:.0f}ms)"
            )

        return ClassifiedRequest(
            id=f"{capture.region_name}-{index}",
            url=entry.request.url,
            method=entry.request.method,
            status=response.status,
            request_type=request_type,
            size=size,
            time=entry.time,
            timings=timings,
            start_time=start_offset_ms(entry, capture.base_time),
            severity=severity,
            issues=self.detect_issues(timings),
        )

    def request_type(self, entry: HarEntry) -> RequestType:
        """Infer the request type from headers, MIME type and URL suffix."""
        for header in entry.request.headers:
            if header.name.lower() == "x-requested-with":
                if header.value.lower() == "xmlhttprequest":
                    return RequestType.XHR
                break

        mime_type = (entry.response.content.mime_type or "").lower()
        url = entry.request.url.lower()

        if "json" in mime_type or "xml" in mime_type:
            return RequestType.FETCH
        if "html" in mime_type:
            return RequestType.DOCUMENT
        if "javascript" in mime_type or url.endswith(".js"):
            return RequestType.SCRIPT
        if "css" in mime_type or url.endswith(".css"):
            return RequestType.STYLESHEET
        if "image" in mime_type or IMAGE_URL_PATTERN.search(url):
            return RequestType.IMAGE
        if "font" in mime_type or FONT_URL_PATTERN.search(url):
            return RequestType.FONT
        if "video" in mime_type or "audio" in mime_type:
            return RequestType.MEDIA
        return RequestType.OTHER

    def severity(self, duration: float, request_type: RequestType) -> Severity:
        """Compare a duration against the type's warning/critical thresholds."""
        threshold = self.config.severity.for_type(request_type)
        if duration >= threshold.critical:
            return Severity.CRITICAL
        if duration >= threshold.warning:
            return Severity.WARNING
        return Severity.NORMAL

    def detect_issues(self, timings: NormalizedTiming) -> list[str]:
        """List the timing phases that crossed their issue thresholds."""
        limits = self.config.issues
        issues: list[str] = []
        if timings.dns and timings.dns >= limits.dns:
            issues.append(DNS_MESSAGE.format(ms=round_ms(timings.dns)))
        if timings.connect and timings.connect >= limits.connect:
            issues.append(CONNECT_MESSAGE.format(ms=round_ms(timings.connect)))
        if timings.ssl and timings.ssl >= limits.ssl:
            issues.append(SSL_MESSAGE.format(ms=round_ms(timings.ssl)))
        if timings.wait >= limits.ttfb:
            issues.append(TTFB_MESSAGE.format(ms=round_ms(timings.wait)))
        if timings.receive >= limits.download:
            issues.append(DOWNLOAD_MESSAGE.format(ms=round_ms(timings.receive)))
        if timings.blocked > limits.blocked:
            issues.append(BLOCKED_MESSAGE.format(ms=round_ms(timings.blocked)))
        return issues
