"""Conversion of catalog entries into playable queue items."""

from __future__ import annotations

import logging
from typing import Sequence

from ..exceptions import MediaSourceIndexError, ResolutionError
from ..models import (
    CatalogEntry,
    Episode,
    ExternalSubtitle,
    MediaProtocol,
    MediaSource,
    PlayableItem,
    RemoteItem,
)
from .repository import CatalogRepository
from .subtitles import DEFAULT_SUBTITLE_TITLE, extract_external_subtitles

logger = logging.getLogger(__name__)


def select_media_source(
    item_id: str, sources: Sequence[MediaSource], index: int
) -> MediaSource:
    """Return ``sources[index]`` or raise ``MediaSourceIndexError``."""

    if not 0 <= index < len(sources):
        raise MediaSourceIndexError(item_id, index, len(sources))
    return sources[index]


def describe_media_sources(entry: CatalogEntry) -> list[str]:
    """Return ``"<name> - <type>"`` labels used to pick a media source version."""

    return [
        f"{source.name or source.id} - {source.type or 'Default'}"
        for source in entry.media_sources
    ]


class PlayerItemBuilder:
    """Build ``PlayableItem`` objects from resolved or remote catalog items."""

    def __init__(
        self,
        repository: CatalogRepository,
        *,
        subtitle_label: str = DEFAULT_SUBTITLE_TITLE,
    ) -> None:
        self._repository = repository
        self._subtitle_label = subtitle_label

    async def build(
        self,
        entry: CatalogEntry | RemoteItem,
        media_source_index: int,
        playback_position: int,
    ) -> PlayableItem:
        """Return the playable unit for ``entry`` using the selected source."""

        if isinstance(entry, RemoteItem):
            return await self._build_remote(entry, media_source_index, playback_position)
        return await self._build_resolved(entry, media_source_index, playback_position)

    async def _build_resolved(
        self,
        entry: CatalogEntry,
        media_source_index: int,
        playback_position: int,
    ) -> PlayableItem:
        media_source = select_media_source(
            entry.id, entry.media_sources, media_source_index
        )
        if isinstance(entry, Episode):
            season_number, episode_number = entry.parent_index_number, entry.index_number
        else:
            season_number = episode_number = None
        return PlayableItem(
            name=entry.name or "",
            item_id=entry.id,
            media_source_id=media_source.id,
            media_source_uri=media_source.path,
            playback_position=playback_position,
            parent_index_number=season_number,
            index_number=episode_number,
            external_subtitles=await self._subtitles(media_source),
        )

    async def _build_remote(
        self,
        item: RemoteItem,
        media_source_index: int,
        playback_position: int,
    ) -> PlayableItem:
        sources = await self._repository.get_media_sources(item.id)
        logger.debug("Resolved %d media sources for %s", len(sources), item.id)
        media_source = select_media_source(item.id, sources, media_source_index)

        if media_source.protocol == MediaProtocol.HTTP:
            if not media_source.path:
                raise ResolutionError(
                    f"Network media source {media_source.id} of item {item.id} has no path"
                )
            uri: str | None = media_source.path
        else:
            # File-backed and other transports are resolved by id at playback time.
            uri = None

        is_episode = item.type == "Episode"
        return PlayableItem(
            name=item.name or "",
            item_id=item.id,
            media_source_id=media_source.id,
            media_source_uri=uri,
            playback_position=playback_position,
            parent_index_number=item.parent_index_number if is_episode else None,
            index_number=item.index_number if is_episode else None,
            external_subtitles=await self._subtitles(media_source),
        )

    async def _subtitles(self, media_source: MediaSource) -> list[ExternalSubtitle]:
        if not any(stream.is_external for stream in media_source.media_streams):
            return []
        base_url = await self._repository.get_base_url()
        return extract_external_subtitles(
            media_source, base_url, fallback_title=self._subtitle_label
        )
