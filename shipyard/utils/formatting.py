"""Formatting utilities for display"""

import re
from datetime import datetime
from typing import Optional


def slugify(name: str) -> str:
    """Lowercase, dash-separated form of a name

    Examples:
        >>> slugify("My Shop API")
        'my-shop-api'
        >>> slugify("--acme__site--")
        'acme-site'
    """
    slug = re.sub(r"[^a-z0-9]+", "-", name.lower())
    return slug.strip("-")


def format_duration(seconds: Optional[float]) -> str:
    """Format duration in seconds to human readable format

    Examples:
        >>> format_duration(1.5)
        '1.5s'
        >>> format_duration(65)
        '1m 5s'
    """
    if seconds is None:
        return "-"
    if seconds < 0:
        return "Invalid duration"

    if seconds < 1:
        return f"{seconds * 1000:.0f}ms"
    elif seconds < 60:
        return f"{seconds:.1f}s"
    elif seconds < 3600:
        minutes = int(seconds // 60)
        secs = int(seconds % 60)
        return f"{minutes}m {secs}s"
    else:
        hours = int(seconds // 3600)
        minutes = int((seconds % 3600) // 60)
        return f"{hours}h {minutes}m"


def format_timestamp(value: Optional[datetime]) -> str:
    if value is None:
        return "-"
    return value.strftime("%Y-%m-%d %H:%M:%S")


def truncate(text: Optional[str], max_length: int = 50) -> str:
    """Single-line text shortened with an ellipsis"""
    if not text:
        return ""
    line = text.strip().splitlines()[0] if text.strip() else ""
    if len(line) <= max_length:
        return line
    return line[:max_length - 3] + "..."


def pluralize(count: int, singular: str, plural: str = None) -> str:
    """Pluralize a word based on count"""
    if plural is None:
        plural = singular + 's'

    word = singular if count == 1 else plural
    return f"{count} {word}"
