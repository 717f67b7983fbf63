"""Playback queue service for Jellyfin libraries.

``app`` and ``create_app`` resolve on first access so importing the
services package does not build the FastAPI application.
"""

from __future__ import annotations

from importlib import import_module
from typing import Any

_LAZY_EXPORTS = {"app": "playqueue.main", "create_app": "playqueue.main"}

__all__ = sorted(_LAZY_EXPORTS)


def __getattr__(name: str) -> Any:
    module_name = _LAZY_EXPORTS.get(name)
    if module_name is None:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    return getattr(import_module(module_name), name)
