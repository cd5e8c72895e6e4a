"""Infrastructure layer: event storage, streaming and the cart repository."""

from shopping_cart.infrastructure.cart_repository import CartRepository
from shopping_cart.infrastructure.event_store import (
    CART_TOPIC,
    ConcurrencyError,
    EventStorageBackend,
    EventStore,
    EventStream,
    InMemoryEventStorage,
    InMemoryEventStream,
)

__all__ = [
    "CART_TOPIC",
    "CartRepository",
    "ConcurrencyError",
    "EventStorageBackend",
    "EventStore",
    "EventStream",
    "InMemoryEventStorage",
    "InMemoryEventStream",
]
