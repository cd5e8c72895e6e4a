"""
Event Store - Append-Only History of Every Cart

What it does:
1. Stores every event a cart ever raised (append-only, immutable)
2. Returns a cart's events in order so the cart can be replayed
3. Publishes events to subscribers after they are stored
4. Handles concurrency (optimistic version check prevents lost updates)
5. Filters history by version or timestamp (time-travel)

Only in-memory implementations live here. Durable storage plugs in behind
`EventStorageBackend`.

Versions follow the aggregate: the first event of a stream has version 0,
and an empty stream is at version -1.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from datetime import datetime
from typing import Protocol
from uuid import UUID

import structlog

from shopping_cart.domain.events import DomainEvent, parse_event, serialize_event

logger = structlog.get_logger(__name__)

EventHandler = Callable[[DomainEvent], Awaitable[None]]

CART_TOPIC = "events.shopping_cart"


class ConcurrencyError(Exception):
    """
    Raised when optimistic concurrency check fails.

    Example race without the check:
    T0: Request A loads cart (version 3)
    T0: Request B loads cart (version 3)
    T1: A appends ItemAdded at version 4 ✓
    T2: B appends CheckedOut at version 4 ✗ CONFLICT (A's item never checked)
    """

    def __init__(self, aggregate_id: UUID, expected: int, current: int):
        self.aggregate_id = aggregate_id
        self.expected_version = expected
        self.current_version = current
        super().__init__(
            f"Concurrency conflict for {aggregate_id}: "
            f"expected version {expected}, current version {current}"
        )


class EventStream(Protocol):
    """Interface for event streaming (message broker, in-memory bus)."""

    async def publish(self, topic: str, event: DomainEvent) -> None:
        """Publish event to stream."""
        ...

    async def subscribe(self, topic: str, handler: EventHandler) -> None:
        """Subscribe to events on topic."""
        ...


class EventStorageBackend(Protocol):
    """Interface for event storage."""

    async def append_events(
        self, aggregate_id: UUID, events: Sequence[DomainEvent], expected_version: int
    ) -> None:
        """
        Append events to the aggregate's stream as one unit.

        `expected_version` is the version of the last stored event
        (-1 for a new stream). Nothing is written on mismatch.
        """
        ...

    async def get_events(
        self,
        aggregate_id: UUID,
        from_version: int = 0,
        to_version: int | None = None,
    ) -> list[DomainEvent]:
        """Get events for aggregate (for rebuilding state)."""
        ...

    async def get_all_events(
        self, from_timestamp: datetime | None = None, limit: int | None = 1000
    ) -> list[DomainEvent]:
        """Get all events across aggregates in append order (no cap if limit is None)."""
        ...


class EventStore:
    """
    Gateway to all event operations.

    Storage is the source of truth. The stream is best effort: a failed
    publish is logged, never raised.
    """

    def __init__(
        self,
        storage: EventStorageBackend,
        stream: EventStream | None = None,
        topic: str = CART_TOPIC,
    ):
        self.storage = storage
        self.stream = stream
        self.topic = topic

    async def append(
        self,
        aggregate_id: UUID,
        events: Sequence[DomainEvent],
        expected_version: int,
    ) -> list[DomainEvent]:
        """
        Append events to an aggregate's stream.

        Flow:
        1. Write to storage (optimistic version check)
        2. Publish each event to the stream
        """
        if not events:
            return []

        logger.info(
            "event_store.append",
            aggregate_id=str(aggregate_id),
            event_types=[type(e).__name__ for e in events],
            expected_version=expected_version,
        )

        try:
            await self.storage.append_events(aggregate_id, events, expected_version)
        except ConcurrencyError as e:
            logger.warning(
                "event_store.concurrency_conflict",
                aggregate_id=str(aggregate_id),
                expected_version=expected_version,
                actual_version=e.current_version,
            )
            raise

        if self.stream:
            for event in events:
                try:
                    await self.stream.publish(self.topic, event)
                except Exception as e:
                    logger.error(
                        "event_store.stream_publish_failed",
                        error=str(e),
                        topic=self.topic,
                        event_type=type(event).__name__,
                    )

        return list(events)

    async def get_aggregate_events(
        self,
        aggregate_id: UUID,
        from_version: int = 0,
        to_version: int | None = None,
    ) -> list[DomainEvent]:
        """Get the events of one aggregate, oldest first."""
        return await self.storage.get_events(aggregate_id, from_version, to_version)

    async def rebuild_aggregate_state(
        self,
        aggregate_id: UUID,
        up_to_version: int | None = None,
        up_to_timestamp: datetime | None = None,
    ) -> list[DomainEvent]:
        """
        TIME-TRAVEL: history of an aggregate as it stood at a point in time.

        Use cases:
        1. "What was in this cart before checkout?"
        2. "Replay this cart to reproduce the bug"

        Replaying the returned events gives the state at that point.
        """
        events = await self.get_aggregate_events(aggregate_id, to_version=up_to_version)

        if up_to_timestamp is not None:
            events = [e for e in events if e.occurred_on <= up_to_timestamp]

        logger.info(
            "event_store.time_travel",
            aggregate_id=str(aggregate_id),
            up_to_version=up_to_version,
            up_to_timestamp=up_to_timestamp,
            events_found=len(events),
        )

        return events

    async def get_events_by_type(
        self,
        event_type: str,
        from_timestamp: datetime | None = None,
        limit: int = 1000,
    ) -> list[DomainEvent]:
        """
        Get events of a specific type, at most `limit` of them.

        The type filter runs before the limit is applied.

        Example: "Show me every CheckedOut event today"
        """
        all_events = await self.storage.get_all_events(from_timestamp, limit=None)
        matching = [e for e in all_events if type(e).__name__ == event_type]
        return matching[:limit]


# ============================================================================
# IN-MEMORY IMPLEMENTATIONS (for testing and local development)
# ============================================================================


class InMemoryEventStorage:
    """
    In-memory event storage.

    Events are kept in their serialized JSON form and parsed on read, so
    every read goes through the same path a durable store would.
    """

    def __init__(self):
        self._streams: dict[UUID, list[str]] = {}
        self._global_events: list[str] = []

    async def append_events(
        self, aggregate_id: UUID, events: Sequence[DomainEvent], expected_version: int
    ) -> None:
        stream = self._streams.setdefault(aggregate_id, [])
        current_version = len(stream) - 1

        # Optimistic concurrency check
        if current_version != expected_version:
            raise ConcurrencyError(aggregate_id, expected_version, current_version)

        serialized = [serialize_event(event) for event in events]
        stream.extend(serialized)
        self._global_events.extend(serialized)

    async def get_events(
        self,
        aggregate_id: UUID,
        from_version: int = 0,
        to_version: int | None = None,
    ) -> list[DomainEvent]:
        stream = self._streams.get(aggregate_id, [])

        return [
            parse_event(data)
            for version, data in enumerate(stream)
            if version >= from_version and (to_version is None or version <= to_version)
        ]

    async def get_all_events(
        self, from_timestamp: datetime | None = None, limit: int | None = 1000
    ) -> list[DomainEvent]:
        events = [parse_event(data) for data in self._global_events]

        if from_timestamp:
            events = [e for e in events if e.occurred_on >= from_timestamp]

        return events if limit is None else events[:limit]

    async def get_version(self, aggregate_id: UUID) -> int:
        """Version of the last stored event, -1 for an unknown aggregate."""
        return len(self._streams.get(aggregate_id, [])) - 1


class InMemoryEventStream:
    """In-memory event stream for testing."""

    def __init__(self):
        self._subscribers: dict[str, list[EventHandler]] = {}
        self._published_events: list[tuple[str, DomainEvent]] = []

    async def publish(self, topic: str, event: DomainEvent) -> None:
        self._published_events.append((topic, event))

        for handler in self._subscribers.get(topic, []):
            await handler(event)

    async def subscribe(self, topic: str, handler: EventHandler) -> None:
        self._subscribers.setdefault(topic, []).append(handler)

    def get_published_events(self, topic: str | None = None) -> list[DomainEvent]:
        """Helper for testing: Get all published events."""
        if topic is None:
            return [e for _, e in self._published_events]
        return [e for t, e in self._published_events if t == topic]
