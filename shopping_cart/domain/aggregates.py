"""
Aggregates - Consistency Boundaries

An aggregate is a cluster of domain objects that must be consistent.

Key concepts:
1. Aggregate Root: The entry point (ShoppingCart)
2. Invariants: Rules that must ALWAYS be true between commands
3. Events: Commands produce events, events mutate state
4. Consistency: One aggregate = one writer at a time

Example invariant:
"A checked-out cart can never change again"

Every command follows the same shape:
    decide (pure, first failing rule wins) → build event → apply → record

A failed decide returns the error and leaves the cart untouched, so a
caller can never observe a half-applied command.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID, uuid4, uuid5

import structlog
from kungfu import Error as Err
from kungfu import Ok

from shopping_cart.domain.entities import CartItem
from shopping_cart.domain.errors import (
    DomainException,
    Errors,
    EventStreamMismatchError,
    UnknownEventError,
)
from shopping_cart.domain.events import (
    CheckedOut,
    Cleared,
    DiscountApplied,
    DomainEvent,
    ItemAdded,
    ItemRemoved,
    QuantityChanged,
)
from shopping_cart.domain.inventory import ParityStockPolicy
from shopping_cart.domain.rules import decide, ensure
from shopping_cart.domain.value_objects import CartLimits, to_decimal

if TYPE_CHECKING:
    from kungfu import Result

    from shopping_cart.domain.errors import Error
    from shopping_cart.domain.inventory import StockPolicy

__all__ = ["EventSourcedAggregate", "ShoppingCart", "decide"]

logger = structlog.get_logger(__name__)


class EventSourcedAggregate(ABC):
    """
    Base class for aggregates whose state is derived from events.

    Version starts at -1 (nothing applied yet) and goes up by one for every
    applied event, whether raised live or replayed. An external store uses
    it for optimistic concurrency checks.
    """

    def __init__(self, aggregate_id: UUID) -> None:
        self._id = aggregate_id
        self._version = -1
        self._pending_events: list[DomainEvent] = []

    @property
    def id(self) -> UUID:
        return self._id

    @property
    def version(self) -> int:
        return self._version

    def get_domain_events(self) -> list[DomainEvent]:
        """Events raised since the last drain. Does not clear them."""
        return self._pending_events.copy()

    def drain_domain_events(self) -> list[DomainEvent]:
        """
        Return the pending events and clear them.

        Call after the events are persisted so each is published once.
        """
        events = self._pending_events.copy()
        self._pending_events.clear()
        return events

    def load(self, events: Iterable[DomainEvent]) -> None:
        """
        Rebuild state from event history.

        Events are applied in order from the initial state. Nothing is
        validated or re-raised, so the pending list stays empty.

        Raises:
            EventStreamMismatchError: The aggregate already has applied
                events, or an event belongs to another aggregate.
        """
        if self._version != -1:
            raise EventStreamMismatchError(
                f"Cannot load events into {type(self).__name__} {self._id} "
                f"at version {self._version}; replay must start from the initial state"
            )

        history = list(events)
        for event in history:
            if not self._belongs_to_stream(event):
                raise EventStreamMismatchError(
                    f"Event {event.event_id} does not belong to "
                    f"{type(self).__name__} {self._id}"
                )

        for event in history:
            self._apply(event)
            self._version += 1

    def _raise_event(self, event: DomainEvent) -> None:
        """Apply a freshly decided event and record it as pending."""
        self._apply(event)
        self._version += 1
        self._pending_events.append(event)

        logger.debug(
            "aggregate.event_raised",
            aggregate_type=type(self).__name__,
            aggregate_id=str(self._id),
            event_type=type(event).__name__,
            version=self._version,
        )

    @abstractmethod
    def _belongs_to_stream(self, event: DomainEvent) -> bool:
        """Whether `event` was raised by this aggregate."""

    @abstractmethod
    def _apply(self, event: DomainEvent) -> None:
        """
        Update state from an event.

        CRITICAL: Must be DETERMINISTIC and must never fail for a known event.
        Same events → same state (always).
        """


class ShoppingCart(EventSourcedAggregate):
    """
    Shopping Cart Aggregate Root.

    Invariants (true between any two commands):
    - at most `max_items_count` lines, unique by product_id
    - sum of quantities <= `max_total_quantity`
    - total_price <= `max_total_price` and equals the sum of line totals
    - once checked out, nothing changes again

    Not thread-safe. Callers serialize commands on one instance.
    """

    def __init__(
        self,
        cart_id: UUID,
        limits: CartLimits | None = None,
        stock_policy: StockPolicy | None = None,
    ) -> None:
        super().__init__(cart_id)
        self._limits = limits or CartLimits()
        self._stock_policy = stock_policy or ParityStockPolicy()
        self._items: list[CartItem] = []
        self._total_price = Decimal("0")
        self._is_checked_out = False

    @classmethod
    def create(
        cls,
        cart_id: UUID | None = None,
        limits: CartLimits | None = None,
        stock_policy: StockPolicy | None = None,
    ) -> ShoppingCart:
        """Factory method: start a new, empty cart."""
        return cls(cart_id or uuid4(), limits=limits, stock_policy=stock_policy)

    @classmethod
    def from_events(
        cls,
        events: Iterable[DomainEvent],
        limits: CartLimits | None = None,
        stock_policy: StockPolicy | None = None,
    ) -> ShoppingCart:
        """Rebuild a cart from its full event history."""
        history = list(events)
        if not history:
            raise ValueError("Cannot rebuild cart from empty event list")

        cart = cls(history[0].cart_id, limits=limits, stock_policy=stock_policy)
        cart.load(history)
        return cart

    # ========================================================================
    # PROJECTIONS
    # ========================================================================

    @property
    def items(self) -> tuple[CartItem, ...]:
        """Snapshot of the lines in insertion order."""
        return tuple(item.snapshot() for item in self._items)

    @property
    def total_price(self) -> Decimal:
        return self._total_price

    @property
    def total_quantity(self) -> int:
        return sum(item.quantity for item in self._items)

    @property
    def is_checked_out(self) -> bool:
        return self._is_checked_out

    @property
    def limits(self) -> CartLimits:
        return self._limits

    def get_item(self, product_id: int) -> CartItem | None:
        item = self._find_item(product_id)
        return item.snapshot() if item is not None else None

    # ========================================================================
    # COMMANDS
    # ========================================================================

    def add_item(
        self, product_id: int, quantity: int, unit_price: Decimal | int | str
    ) -> Result[None, Error]:
        """Add a new product line."""
        unit_price = to_decimal(unit_price)

        decision = decide(
            self._ensure_not_checked_out,
            lambda: ensure(
                self._find_item(product_id) is None, Errors.DUPLICATE_PRODUCT
            ),
            lambda: ensure(
                len(self._items) < self._limits.max_items_count,
                Errors.MAX_ITEMS_COUNT_EXCEEDED,
            ),
            lambda: CartItem.decide_create(product_id, quantity, unit_price),
            lambda: self._ensure_total_quantity(self.total_quantity + quantity),
            lambda: self._ensure_total_price(self._total_price + unit_price * quantity),
        )

        return self._execute(
            "add_item",
            decision,
            lambda: ItemAdded(
                cart_id=self.id,
                product_id=product_id,
                quantity=quantity,
                unit_price=unit_price,
            ),
        )

    def change_item_quantity(self, product_id: int, quantity: int) -> Result[None, Error]:
        """
        Replace the quantity of an existing line.

        Limits are checked against the totals the cart WOULD have after the
        change, not the current ones.
        """
        decision = decide(
            self._ensure_not_checked_out,
            lambda: self._ensure_item_exists(product_id),
            lambda: self._get_item(product_id).decide_change_quantity(quantity),
            lambda: self._ensure_total_quantity(
                self.total_quantity - self._get_item(product_id).quantity + quantity
            ),
            lambda: self._ensure_total_price(
                self._total_price
                - self._get_item(product_id).total_price
                + self._get_item(product_id).total_price_with_quantity(quantity)
            ),
        )

        return self._execute(
            "change_item_quantity",
            decision,
            lambda: QuantityChanged(cart_id=self.id, product_id=product_id, quantity=quantity),
        )

    def remove_item(self, product_id: int) -> Result[None, Error]:
        decision = decide(
            self._ensure_not_checked_out,
            lambda: self._ensure_item_exists(product_id),
        )

        return self._execute(
            "remove_item",
            decision,
            lambda: ItemRemoved(cart_id=self.id, product_id=product_id),
        )

    def apply_discount(
        self, product_id: int, discount_percentage: Decimal | int | str
    ) -> Result[None, Error]:
        """Raise the discount of a line. Discounts never go down."""
        discount_percentage = to_decimal(discount_percentage)

        decision = decide(
            self._ensure_not_checked_out,
            lambda: self._ensure_item_exists(product_id),
            lambda: self._get_item(product_id).decide_apply_discount(discount_percentage),
        )

        return self._execute(
            "apply_discount",
            decision,
            lambda: DiscountApplied(
                cart_id=self.id,
                product_id=product_id,
                discount_percentage=discount_percentage,
            ),
        )

    def checkout(self) -> Result[None, Error]:
        """
        Check out the cart (final state).

        Every line must pass the stock policy first.
        """
        decision = decide(
            self._ensure_not_checked_out,
            lambda: ensure(len(self._items) > 0, Errors.EMPTY_CART),
            self._ensure_items_in_stock,
        )

        return self._execute(
            "checkout",
            decision,
            lambda: CheckedOut(
                cart_id=self.id,
                total_price=self._total_price,
                item_count=len(self._items),
            ),
        )

    def clear(self) -> Result[None, Error]:
        return self._execute(
            "clear",
            self._ensure_not_checked_out(),
            lambda: Cleared(cart_id=self.id),
        )

    def _execute(
        self,
        command: str,
        decision: Result[None, Error],
        build_event: Callable[[], DomainEvent],
    ) -> Result[None, Error]:
        """Raise the event when the decision passed, otherwise report it."""
        if isinstance(decision, Err):
            logger.info(
                "cart.command_rejected",
                cart_id=str(self.id),
                command=command,
                code=decision.error.code,
            )
            return decision

        self._raise_event(build_event())
        return Ok(None)

    # ========================================================================
    # APPLY
    # ========================================================================

    def _belongs_to_stream(self, event: DomainEvent) -> bool:
        return event.cart_id == self.id

    def _apply(self, event: DomainEvent) -> None:
        match event:
            case ItemAdded():
                self._apply_item_added(event)
            case QuantityChanged():
                self._apply_quantity_changed(event)
            case ItemRemoved():
                self._apply_item_removed(event)
            case DiscountApplied():
                self._apply_discount_applied(event)
            case CheckedOut():
                self._is_checked_out = True
            case Cleared():
                self._items.clear()
                self._total_price = Decimal("0")
            case _:
                raise UnknownEventError(
                    f"ShoppingCart cannot apply event of type {type(event).__name__}"
                )

    def _apply_item_added(self, event: ItemAdded) -> None:
        # The id depends only on the event's position in the stream, so
        # replay rebuilds the same item ids.
        item_id = uuid5(self.id, f"{event.product_id}:{self.version + 1}")
        item = CartItem.apply_create(item_id, event.product_id, event.quantity, event.unit_price)
        self._items.append(item)
        self._total_price += item.total_price

    def _apply_quantity_changed(self, event: QuantityChanged) -> None:
        item = self._get_item(event.product_id)
        old_total = item.total_price
        item.apply_change_quantity(event.quantity)
        self._total_price = self._total_price - old_total + item.total_price

    def _apply_item_removed(self, event: ItemRemoved) -> None:
        item = self._get_item(event.product_id)
        self._items.remove(item)
        self._total_price -= item.total_price

    def _apply_discount_applied(self, event: DiscountApplied) -> None:
        item = self._get_item(event.product_id)
        old_total = item.total_price
        item.apply_discount_change(event.discount_percentage)
        self._total_price = self._total_price - old_total + item.total_price

    # ========================================================================
    # VALIDATION RULES
    # ========================================================================

    def _ensure_not_checked_out(self) -> Result[None, Error]:
        return ensure(not self._is_checked_out, Errors.CART_ALREADY_CHECKED_OUT)

    def _ensure_item_exists(self, product_id: int) -> Result[None, Error]:
        return ensure(self._find_item(product_id) is not None, Errors.ITEM_NOT_FOUND)

    def _ensure_total_quantity(self, new_total_quantity: int) -> Result[None, Error]:
        return ensure(
            new_total_quantity <= self._limits.max_total_quantity,
            Errors.MAX_TOTAL_QUANTITY_EXCEEDED,
        )

    def _ensure_total_price(self, new_total_price: Decimal) -> Result[None, Error]:
        return ensure(
            new_total_price <= self._limits.max_total_price,
            Errors.MAX_TOTAL_PRICE_EXCEEDED,
        )

    def _ensure_items_in_stock(self) -> Result[None, Error]:
        for item in self._items:
            if not self._stock_policy.has_sufficient_stock(item.product_id, item.quantity):
                return Err(Errors.INSUFFICIENT_STOCK)
        return Ok(None)

    def _find_item(self, product_id: int) -> CartItem | None:
        for item in self._items:
            if item.product_id == product_id:
                return item
        return None

    def _get_item(self, product_id: int) -> CartItem:
        item = self._find_item(product_id)
        if item is None:
            raise DomainException(f"Cart {self.id} has no item for product {product_id}")
        return item
