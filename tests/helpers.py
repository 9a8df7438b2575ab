"""Builders for HAR documents and classified requests used across tests."""

from __future__ import annotations

import json
from datetime import UTC, datetime, timedelta
from typing import Any

from har_compare.aggregator import summarize_region
from har_compare.models import (
    ClassifiedRequest,
    NormalizedTiming,
    RegionSummary,
    RequestType,
    Severity,
)

BASE_TIME = datetime(2026, 3, 1, 12, 0, 0, tzinfo=UTC)


def make_entry(
    url: str,
    *,
    mime: str = "text/html",
    time: float = 100.0,
    start_ms: float = 0.0,
    timings: dict[str, Any] | None = None,
    headers: list[dict[str, str]] | None = None,
    status: int = 200,
    body_size: int = 1000,
    content_size: int = 1000,
    method: str = "GET",
) -> dict[str, Any]:
    """A HAR 1.2 entry whose whole duration is server wait unless timings are given."""
    started = BASE_TIME + timedelta(milliseconds=start_ms)
    return {
        "startedDateTime": started.isoformat(),
        "time": time,
        "request": {
            "method": method,
            "url": url,
            "httpVersion": "HTTP/2.0",
            "headers": headers or [],
            "bodySize": 0,
        },
        "response": {
            "status": status,
            "statusText": "OK",
            "headers": [],
            "content": {"size": content_size, "mimeType": mime},
            "bodySize": body_size,
        },
        "timings": timings
        if timings is not None
        else {"blocked": -1, "dns": -1, "connect": -1, "ssl": -1, "send": 0, "wait": time, "receive": 0},
    }


def make_har(*entries: dict[str, Any]) -> str:
    return json.dumps({"log": {"version": "1.2", "entries": list(entries)}})


def make_request(
    request_id: str,
    request_type: RequestType,
    start: float,
    time: float,
    *,
    url: str | None = None,
    severity: Severity = Severity.NORMAL,
    timings: NormalizedTiming | None = None,
) -> ClassifiedRequest:
    return ClassifiedRequest(
        id=request_id,
        url=url or f"https://example.com/{request_id}",
        method="GET",
        status=200,
        request_type=request_type,
        size=100,
        time=time,
        timings=timings or NormalizedTiming(wait=time),
        start_time=start,
        severity=severity,
    )


def make_region(name: str, requests: list[ClassifiedRequest]) -> RegionSummary:
    return summarize_region(name, f"{name}.har", requests)
