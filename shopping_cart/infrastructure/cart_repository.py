"""
Cart Repository - Load and save carts through the event store.

Saving appends the cart's pending events and only then drains them, so an
event is handed out exactly once and only after it is stored.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from shopping_cart.domain.aggregates import ShoppingCart

if TYPE_CHECKING:
    from shopping_cart.domain.events import DomainEvent
    from shopping_cart.domain.inventory import StockPolicy
    from shopping_cart.domain.value_objects import CartLimits
    from shopping_cart.infrastructure.event_store import EventStore

logger = structlog.get_logger(__name__)


class CartRepository:
    def __init__(
        self,
        event_store: EventStore,
        limits: CartLimits | None = None,
        stock_policy: StockPolicy | None = None,
    ):
        self.event_store = event_store
        self.limits = limits
        self.stock_policy = stock_policy

    async def save(self, cart: ShoppingCart) -> list[DomainEvent]:
        """
        Persist pending events and drain them.

        Returns the drained events. On ConcurrencyError the events stay
        pending on the cart.
        """
        pending = cart.get_domain_events()
        if not pending:
            return []

        expected_version = cart.version - len(pending)
        await self.event_store.append(cart.id, pending, expected_version)

        drained = cart.drain_domain_events()
        logger.debug(
            "cart_repository.saved",
            cart_id=str(cart.id),
            events=len(drained),
            version=cart.version,
        )
        return drained

    async def get(
        self,
        cart_id: UUID,
        limits: CartLimits | None = None,
        stock_policy: StockPolicy | None = None,
    ) -> ShoppingCart | None:
        """
        Replay a stored cart. None when the cart has no events.

        `limits` and `stock_policy` override the repository defaults.
        """
        events = await self.event_store.get_aggregate_events(cart_id)
        if not events:
            return None
        return ShoppingCart.from_events(
            events,
            limits=limits or self.limits,
            stock_policy=stock_policy or self.stock_policy,
        )

    async def get_as_of(
        self,
        cart_id: UUID,
        up_to_version: int | None = None,
        up_to_timestamp: datetime | None = None,
    ) -> ShoppingCart | None:
        """The cart as it stood at an earlier version or moment."""
        events = await self.event_store.rebuild_aggregate_state(
            cart_id, up_to_version=up_to_version, up_to_timestamp=up_to_timestamp
        )
        if not events:
            return None
        return ShoppingCart.from_events(
            events, limits=self.limits, stock_policy=self.stock_policy
        )
