"""Utility helpers for the PlayQueue service."""

from __future__ import annotations

TICKS_PER_MILLISECOND = 10_000


def ticks_to_milliseconds(ticks: int | None) -> int:
    """Convert catalog server ticks (100 ns units) to milliseconds.

    Missing and negative positions both mean playback starts at zero.
    """

    if not ticks or ticks < 0:
        return 0
    return int(ticks) // TICKS_PER_MILLISECOND


def is_blank(value: str | None) -> bool:
    """Return ``True`` for ``None``, empty or whitespace-only strings."""

    return value is None or not value.strip()


def normalize_base_url(value: str | None) -> str | None:
    """Strip whitespace and trailing slashes from a server URL."""

    if not value:
        return None
    normalized = value.strip().rstrip("/")
    return normalized or None
