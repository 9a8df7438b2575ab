"""Small helpers shared by the engine and the formatter."""

from __future__ import annotations

import math
from urllib.parse import urlparse

ONE_KILOBYTE = 1024


def round_ms(value: float) -> int:
    """Round half-up to a whole millisecond."""
    return math.floor(value + 0.5)


def canonical_url(url: str) -> str:
    """Remove query parameters and fragments from URL.

    URLs without a scheme or host are returned unchanged.
    """
    parsed = urlparse(url)
    if not parsed.scheme or not parsed.netloc:
        return url
    return f"{parsed.scheme}://{parsed.netloc}{parsed.path}"


def get_domain(url: str) -> str:
    """Hostname of a URL, or the URL itself if it has none."""
    return urlparse(url).hostname or url


def short_url(url: str, max_length: int = 50) -> str:
    """Path and query of a URL, truncated for display."""
    parsed = urlparse(url)
    if not parsed.netloc:
        return url[:max_length]
    path = parsed.path
    if parsed.query:
        path += f"?{parsed.query}"
    if len(path) > max_length:
        return path[: max_length - 3] + "..."
    return path or "/"


def format_bytes(size: int) -> str:
    if size <= 0:
        return "0 B"
    units = ("B", "KB", "MB", "GB")
    value = float(size)
    exponent = 0
    while value >= ONE_KILOBYTE and exponent < len(units) - 1:
        value /= ONE_KILOBYTE
        exponent += 1
    return f"{value:.1f}".rstrip("0").rstrip(".") + f" {units[exponent]}"


def format_time(ms: float) -> str:
    if ms < 0:
        return "-"
    if ms < 1000:
        return f"{round_ms(ms)} ms"
    return f"{ms / 1000:.2f} s"
