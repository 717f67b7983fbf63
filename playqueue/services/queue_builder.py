"""High level orchestration turning a catalog entry into a playback queue."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Iterable, Sequence, TypeVar

from ..models import (
    CatalogEntry,
    Episode,
    Movie,
    PlayableItem,
    Season,
    Show,
)
from ..utils import ticks_to_milliseconds
from .player_items import PlayerItemBuilder
from .repository import MEDIA_SOURCES_FIELD, CatalogRepository

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class QueueReady:
    """Successfully built queue; an empty tuple means nothing is playable."""

    items: tuple[PlayableItem, ...]

    @property
    def is_empty(self) -> bool:
        return not self.items


@dataclass(frozen=True, slots=True)
class QueueFailed:
    """Queue construction aborted because of ``error``."""

    error: Exception


QueueResult = QueueReady | QueueFailed


async def gather_in_order(awaitables: Iterable[Awaitable[T]]) -> list[T]:
    """Await ``awaitables`` concurrently and return results in input order.

    When one of them fails the others are cancelled before the error propagates.
    """

    tasks = [asyncio.ensure_future(awaitable) for awaitable in awaitables]
    try:
        return list(await asyncio.gather(*tasks))
    except Exception:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


class PlaybackQueueBuilder:
    """Expand movies, shows, seasons and episodes into flat playback queues.

    Intros are prepended when playback starts from the beginning. Shows use the
    server's next-up suggestion when there is one and otherwise walk every
    season. Episodes chain into the following episodes when the user enabled
    auto-play. Collaborator calls that do not depend on each other run
    concurrently but results always keep the catalog order.
    """

    def __init__(
        self,
        repository: CatalogRepository,
        item_builder: PlayerItemBuilder,
        *,
        skip_virtual_episodes: bool = False,
    ) -> None:
        self._repository = repository
        self._item_builder = item_builder
        self._skip_virtual_episodes = skip_virtual_episodes

    async def build_queue(
        self,
        entry: CatalogEntry,
        playback_position_ticks: int,
        media_source_index: int = 0,
    ) -> QueueResult:
        """Return the queue for ``entry``; failures come back as ``QueueFailed``."""

        logger.debug("Loading player items for item %s", entry.id)
        try:
            items = await self._create_items(
                entry, playback_position_ticks, media_source_index
            )
        except Exception as exc:
            logger.exception("Failed to build playback queue for %s: %s", entry.id, exc)
            return QueueFailed(exc)
        logger.info("Built playback queue for %s with %d items", entry.id, len(items))
        return QueueReady(tuple(items))

    async def _create_items(
        self,
        entry: CatalogEntry,
        playback_position_ticks: int,
        media_source_index: int,
    ) -> list[PlayableItem]:
        playback_position = ticks_to_milliseconds(playback_position_ticks)
        intros: list[PlayableItem] = []
        if playback_position <= 0:
            intros = await self._prepare_intros(entry)
        entries = await self._expand(entry)
        if isinstance(entry, (Movie, Episode)):
            resumed_id: str | None = entry.id
        else:
            resumed_id = entries[0].id if entries else None
        main_items = await self._build_items(
            entries, media_source_index, playback_position, resumed_id
        )
        return intros + main_items

    async def _prepare_intros(self, entry: CatalogEntry) -> list[PlayableItem]:
        intros = await self._repository.get_intros(entry.id)
        playable = [intro for intro in intros if intro.has_media_sources()]
        return await gather_in_order(
            self._item_builder.build(intro, 0, 0) for intro in playable
        )

    async def _expand(self, entry: CatalogEntry) -> list[CatalogEntry]:
        if isinstance(entry, Movie):
            return [entry]
        if isinstance(entry, Show):
            return await self._expand_show(entry)
        if isinstance(entry, Season):
            return await self._expand_season(entry)
        if isinstance(entry, Episode):
            return await self._expand_episode(entry)
        return []

    async def _expand_show(self, show: Show) -> list[CatalogEntry]:
        next_up = await self._repository.get_next_up(show.id)
        if next_up:
            return await self._expand_episode(next_up[0])

        seasons = await self._repository.get_seasons(show.id)
        per_season = await gather_in_order(
            self._expand_season(season) for season in seasons
        )
        return [episode for episodes in per_season for episode in episodes]

    async def _expand_season(self, season: Season) -> list[CatalogEntry]:
        episodes = await self._repository.get_episodes(
            season.series_id,
            season.id,
            fields=[MEDIA_SOURCES_FIELD],
        )
        return self._playable(episodes)

    async def _expand_episode(self, episode: Episode) -> list[CatalogEntry]:
        user_configuration = await self._repository.get_user_configuration()
        limit = None if user_configuration.enable_next_episode_auto_play else 1
        episodes = await self._repository.get_episodes(
            episode.series_id,
            episode.season_id,
            fields=[MEDIA_SOURCES_FIELD],
            start_item_id=episode.id,
            limit=limit,
        )
        return self._playable(episodes)

    def _playable(self, episodes: Sequence[Episode]) -> list[CatalogEntry]:
        return [
            episode
            for episode in episodes
            if episode.has_media_sources()
            and not (self._skip_virtual_episodes and episode.is_virtual)
        ]

    async def _build_items(
        self,
        entries: Sequence[CatalogEntry],
        media_source_index: int,
        playback_position: int,
        resumed_id: str | None,
    ) -> list[PlayableItem]:
        # Only the entry being resumed keeps the offset.
        return await gather_in_order(
            self._item_builder.build(
                entry,
                media_source_index,
                playback_position if entry.id == resumed_id else 0,
            )
            for entry in entries
        )
