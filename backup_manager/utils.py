"""Shared utility functions."""

from __future__ import annotations

from datetime import datetime

ILLEGAL_SEGMENT_CHARS = '<>:"/\\|?*'


def sanitize_segment(name: str) -> str:
    """Turn arbitrary text into a single safe path segment (may be empty)."""
    for ch in ILLEGAL_SEGMENT_CHARS:
        name = name.replace(ch, "_")
    name = name.replace("\n", " ").replace("\r", "").strip()
    while "__" in name:
        name = name.replace("__", "_")
    return name.strip(". ")


def pad(text: str, width: int) -> str:
    """Left-justify *text* in a column; never truncates."""
    return text + " " * max(width - len(text), 0)


def format_timestamp(value: datetime) -> str:
    return value.strftime("%d/%m/%Y (%H:%M)")
