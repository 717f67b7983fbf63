"""Tests for the result channel and the playback queue service."""

from __future__ import annotations

import asyncio

import pytest

from factories import FakeCatalogRepository, make_episode, make_source
from playqueue.config import Settings
from playqueue.models import Movie
from playqueue.services.channel import ChannelClosed, LatestResultChannel
from playqueue.services.playback import PlaybackQueueService, create_playback_service
from playqueue.services.queue_builder import QueueFailed, QueueReady, QueueResult


@pytest.mark.anyio("asyncio")
async def test_channel_keeps_only_latest_unconsumed_value() -> None:
    channel: LatestResultChannel[int] = LatestResultChannel()
    subscription = channel.subscribe()

    channel.publish(1)
    channel.publish(2)
    channel.publish(3)

    assert await subscription.get() == 3
    channel.publish(4)
    assert await subscription.get() == 4


@pytest.mark.anyio("asyncio")
async def test_channel_does_not_replay_to_late_subscribers() -> None:
    channel: LatestResultChannel[str] = LatestResultChannel()

    assert channel.publish("early") == 0
    subscription = channel.subscribe()
    channel.publish("late")

    assert await subscription.get() == "late"


@pytest.mark.anyio("asyncio")
async def test_closed_subscription_stops_iteration() -> None:
    channel: LatestResultChannel[str] = LatestResultChannel()
    subscription = channel.subscribe()
    channel.publish("pending")

    subscription.close()

    assert channel.subscriber_count == 0
    assert [value async for value in subscription] == []
    with pytest.raises(ChannelClosed):
        await subscription.get()
    assert channel.publish("ignored") == 0


def build_service(catalog: FakeCatalogRepository) -> PlaybackQueueService:
    return create_playback_service(Settings(_env_file=None), catalog)


@pytest.mark.anyio("asyncio")
async def test_request_queue_build_publishes_ready_result(
    catalog: FakeCatalogRepository,
) -> None:
    service = build_service(catalog)
    movie = Movie(
        id="movie-1",
        name="Arrival",
        media_sources=[make_source("m0")],
        playback_position_ticks=50_000_000,
    )
    subscription = service.channel.subscribe()

    assert service.request_queue_build(movie) is None
    result = await asyncio.wait_for(subscription.get(), timeout=1)

    assert isinstance(result, QueueReady)
    assert [item.playback_position for item in result.items] == [5_000]
    await service.stop()


@pytest.mark.anyio("asyncio")
async def test_listener_receives_failures(catalog: FakeCatalogRepository) -> None:
    service = build_service(catalog)
    received: list[QueueResult] = []
    delivered = asyncio.Event()

    async def listener(result: QueueResult) -> None:
        received.append(result)
        delivered.set()

    service.on_queue_result(listener)
    service.request_queue_build(Movie(id="movie-1", name="Broken"), media_source_index=0)
    await asyncio.wait_for(delivered.wait(), timeout=1)

    assert len(received) == 1
    assert isinstance(received[0], QueueFailed)
    await service.stop()


@pytest.mark.anyio("asyncio")
async def test_listener_errors_do_not_stop_delivery(catalog: FakeCatalogRepository) -> None:
    service = build_service(catalog)
    calls: list[QueueResult] = []
    first = asyncio.Event()
    second = asyncio.Event()

    def listener(result: QueueResult) -> None:
        calls.append(result)
        if len(calls) == 1:
            first.set()
            raise RuntimeError("listener exploded")
        second.set()

    service.on_queue_result(listener)
    movie = Movie(id="movie-1", name="Arrival", media_sources=[make_source("m0")])
    service.request_queue_build(movie)
    await asyncio.wait_for(first.wait(), timeout=1)
    service.request_queue_build(movie)
    await asyncio.wait_for(second.wait(), timeout=1)

    assert len(calls) == 2
    await service.stop()


@pytest.mark.anyio("asyncio")
async def test_stop_cancels_inflight_builds_without_publishing(
    catalog: FakeCatalogRepository,
) -> None:
    catalog.season_delays["season-1"] = 10
    catalog.episodes[("show-1", "season-1")] = [make_episode("s1e1")]
    service = build_service(catalog)
    subscription = service.channel.subscribe()

    service.request_queue_build(make_episode("s1e1"))
    await asyncio.sleep(0.01)
    await service.stop()

    with pytest.raises(asyncio.TimeoutError):
        await asyncio.wait_for(subscription.get(), timeout=0.05)


@pytest.mark.anyio("asyncio")
async def test_concurrent_requests_publish_independent_results(
    catalog: FakeCatalogRepository,
) -> None:
    service = build_service(catalog)
    received: list[QueueResult] = []

    service.on_queue_result(received.append)
    first = Movie(id="movie-1", name="One", media_sources=[make_source("a")])
    second = Movie(id="movie-2", name="Two", media_sources=[make_source("b")])
    service.request_queue_build(first)
    service.request_queue_build(second)
    await service.wait_idle()
    for _ in range(5):
        await asyncio.sleep(0)

    # Results may coalesce for a slow listener, but every delivered one is complete.
    assert 1 <= len(received) <= 2
    assert all(isinstance(result, QueueReady) for result in received)
    assert received[-1].items[-1].item_id in {"movie-1", "movie-2"}  # type: ignore[union-attr]
    await service.stop()
