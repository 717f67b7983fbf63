"""Entry point used by clients to request playback queues."""

from __future__ import annotations

import asyncio
import inspect
import logging
from contextlib import suppress
from typing import Awaitable, Callable

from ..config import Settings
from ..models import CatalogEntry
from .channel import LatestResultChannel
from .player_items import PlayerItemBuilder
from .queue_builder import PlaybackQueueBuilder, QueueResult
from .repository import CatalogRepository

logger = logging.getLogger(__name__)

QueueListener = Callable[[QueueResult], Awaitable[None] | None]


class PlaybackQueueService:
    """Schedule queue builds and deliver their results to listeners."""

    def __init__(
        self,
        builder: PlaybackQueueBuilder,
        channel: LatestResultChannel[QueueResult] | None = None,
    ) -> None:
        self._builder = builder
        self._channel: LatestResultChannel[QueueResult] = (
            channel if channel is not None else LatestResultChannel()
        )
        self._build_tasks: set[asyncio.Task[None]] = set()
        self._listener_tasks: set[asyncio.Task[None]] = set()

    @property
    def channel(self) -> LatestResultChannel[QueueResult]:
        return self._channel

    def request_queue_build(
        self, entry: CatalogEntry, media_source_index: int = 0
    ) -> None:
        """Start building the queue for ``entry`` in the background.

        The result is published once on the channel. Cancelling the build
        (for example through ``stop``) publishes nothing.
        """

        task = asyncio.create_task(self._run_build(entry, media_source_index))
        self._build_tasks.add(task)
        task.add_done_callback(self._build_tasks.discard)

    async def _run_build(self, entry: CatalogEntry, media_source_index: int) -> None:
        result = await self._builder.build_queue(
            entry, entry.playback_position_ticks, media_source_index
        )
        delivered = self._channel.publish(result)
        logger.debug("Published queue for %s to %d subscribers", entry.id, delivered)

    def on_queue_result(self, listener: QueueListener) -> asyncio.Task[None]:
        """Feed every result published from now on to ``listener``."""

        subscription = self._channel.subscribe()

        async def _collect() -> None:
            try:
                async for result in subscription:
                    try:
                        outcome = listener(result)
                        if inspect.isawaitable(outcome):
                            await outcome
                    except Exception as exc:
                        logger.exception("Queue listener failed: %s", exc)
            finally:
                subscription.close()

        task = asyncio.create_task(_collect())
        self._listener_tasks.add(task)
        task.add_done_callback(self._listener_tasks.discard)
        return task

    async def wait_idle(self) -> None:
        """Wait until every build requested so far has finished."""

        while self._build_tasks:
            await asyncio.gather(*list(self._build_tasks), return_exceptions=True)

    async def stop(self) -> None:
        """Cancel pending builds and listeners."""

        tasks = [*self._build_tasks, *self._listener_tasks]
        for task in tasks:
            task.cancel()
        for task in tasks:
            with suppress(asyncio.CancelledError):
                await task
        self._build_tasks.clear()
        self._listener_tasks.clear()


def create_playback_service(
    settings: Settings, repository: CatalogRepository
) -> PlaybackQueueService:
    """Wire the queue builder stack for ``repository`` using ``settings``."""

    item_builder = PlayerItemBuilder(
        repository, subtitle_label=settings.external_subtitle_label
    )
    builder = PlaybackQueueBuilder(
        repository,
        item_builder,
        skip_virtual_episodes=settings.skip_virtual_episodes,
    )
    return PlaybackQueueService(builder)
