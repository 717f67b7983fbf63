"""Replace-latest delivery of build results to subscribers."""

from __future__ import annotations

import asyncio
from typing import Generic, TypeVar

T = TypeVar("T")

_CLOSED = object()


class ChannelClosed(Exception):
    """Raised when reading from a closed subscription."""


class Subscription(Generic[T]):
    """Single-slot mailbox holding only the newest unconsumed value."""

    def __init__(self, channel: LatestResultChannel[T]) -> None:
        self._channel = channel
        self._slot: asyncio.Queue[object] = asyncio.Queue(maxsize=1)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def offer(self, value: T) -> None:
        if self._closed:
            return
        if self._slot.full():
            self._slot.get_nowait()
        self._slot.put_nowait(value)

    async def get(self) -> T:
        """Wait for the next value published after subscribing."""

        value = await self._slot.get()
        if value is _CLOSED:
            # Keep the marker so other readers wake up as well.
            self._slot.put_nowait(_CLOSED)
            raise ChannelClosed("Subscription closed")
        return value  # type: ignore[return-value]

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._channel._unsubscribe(self)
        while not self._slot.empty():
            self._slot.get_nowait()
        self._slot.put_nowait(_CLOSED)

    def __aiter__(self) -> Subscription[T]:
        return self

    async def __anext__(self) -> T:
        try:
            return await self.get()
        except ChannelClosed:
            raise StopAsyncIteration from None


class LatestResultChannel(Generic[T]):
    """Broadcast values to current subscribers without replaying old ones.

    Each subscriber buffers at most one value; a newer publication replaces an
    unconsumed older one, so slow consumers only ever see the latest result.
    Values published while nobody is subscribed are dropped.
    """

    def __init__(self) -> None:
        self._subscriptions: list[Subscription[T]] = []

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def subscribe(self) -> Subscription[T]:
        subscription = Subscription(self)
        self._subscriptions.append(subscription)
        return subscription

    def publish(self, value: T) -> int:
        """Deliver ``value`` and return the number of subscribers reached."""

        subscriptions = list(self._subscriptions)
        for subscription in subscriptions:
            subscription.offer(value)
        return len(subscriptions)

    def _unsubscribe(self, subscription: Subscription[T]) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)
