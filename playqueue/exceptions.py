"""Errors raised while resolving catalog entries into playback queues."""

from __future__ import annotations


class PlayQueueError(Exception):
    """Base class for playback queue failures."""


class ResolutionError(PlayQueueError):
    """A catalog collaborator call failed or returned unusable data."""


class MediaSourceIndexError(PlayQueueError, IndexError):
    """The requested media source does not exist on the selected entry."""

    def __init__(self, item_id: str, index: int, available: int) -> None:
        super().__init__(
            f"Media source index {index} out of range for item {item_id} "
            f"({available} available)"
        )
        self.item_id = item_id
        self.index = index
        self.available = available
