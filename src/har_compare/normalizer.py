"""Parse raw HAR text into validated entries anchored at a base time."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime, timedelta

from pydantic import ValidationError

from har_compare.errors import HarParseError
from har_compare.models import Har, HarEntry, HarTimings, NormalizedTiming, ParsedCapture

logger = logging.getLogger(__name__)


def parse_har_content(content: str, region_name: str, file_name: str) -> ParsedCapture:
    """Parse HAR 1.2 text for one region.

    Raises HarParseError when the text is not JSON, does not match the HAR
    schema, or holds no entries. The base time is the earliest entry start so
    every request offset is non-negative.
    """
    try:
        raw_data = json.loads(content)
    except json.JSONDecodeError as exc:
        raise HarParseError(f"invalid JSON ({exc.msg} at line {exc.lineno})", file_name) from exc

    try:
        har = Har.model_validate(raw_data)
    except ValidationError as exc:
        raise HarParseError(f"not a valid HAR document: {exc}", file_name) from exc

    entries = har.log.entries
    if not entries:
        raise HarParseError("HAR document contains no entries", file_name)

    base_time = min(started_at(e) for e in entries)
    logger.info(f"Parsed {len(entries)} entries for region {region_name!r} from {file_name}")

    return ParsedCapture(
        region_name=region_name,
        file_name=file_name,
        base_time=base_time,
        entries=entries,
    )


def started_at(entry: HarEntry) -> datetime:
    """Entry start as an aware datetime (naive timestamps are taken as UTC)."""
    ts = entry.started_date_time
    if ts.tzinfo is None:
        return ts.replace(tzinfo=UTC)
    return ts


def start_offset_ms(entry: HarEntry, base_time: datetime) -> float:
    """Milliseconds between the capture base time and the entry start."""
    return (started_at(entry) - base_time) / timedelta(milliseconds=1)


def _positive(value: float | None) -> float:
    return value if value is not None and value > 0 else 0.0


def normalize_timings(timings: HarTimings) -> NormalizedTiming:
    """Zero out missing and sentinel-negative timing phases."""
    return NormalizedTiming(
        blocked=_positive(timings.blocked),
        dns=_positive(timings.dns),
        connect=_positive(timings.connect),
        ssl=_positive(timings.ssl),
        send=_positive(timings.send),
        wait=_positive(timings.wait),
        receive=_positive(timings.receive),
    )
