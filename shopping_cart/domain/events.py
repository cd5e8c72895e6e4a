"""
Domain Events - Immutable Facts About What Happened

CRITICAL CONCEPT: Events are the source of truth, not the cart's fields.

Every event carries exactly the data needed to replay its state change:
- ItemAdded        → a new line appears in the cart
- QuantityChanged  → a line's quantity is replaced
- ItemRemoved      → a line disappears
- DiscountApplied  → a line's discount is raised
- CheckedOut       → the cart is frozen forever
- Cleared          → every line disappears

The set is CLOSED. `CartEvent` is a discriminated union over `event_type`,
so a stored event always parses back into exactly one variant.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator


def utc_now() -> datetime:
    """Wall-clock UTC, read once per event."""
    return datetime.now(timezone.utc)


class DomainEvent(BaseModel):
    """
    Base class for all shopping cart events.

    Design principle: Events are IMMUTABLE and describe PAST FACTS.
    - Good: ItemAdded (past tense, immutable fact)
    - Bad: AddItem (command, not event)
    """

    event_id: uuid.UUID = Field(default_factory=uuid.uuid4)
    cart_id: uuid.UUID
    occurred_on: datetime = Field(default_factory=utc_now)

    model_config = ConfigDict(frozen=True)

    @field_validator("occurred_on")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        """
        CRITICAL: Always UTC.

        Naive datetimes are rejected (whose timezone?); aware ones are
        normalized to UTC.
        """
        if v.tzinfo is None:
            raise ValueError("occurred_on must be timezone-aware")
        return v.astimezone(timezone.utc)


class ItemAdded(DomainEvent):
    """A product line was added to the cart."""

    event_type: Literal["ItemAdded"] = "ItemAdded"
    product_id: int
    quantity: int
    unit_price: Decimal


class QuantityChanged(DomainEvent):
    """The quantity of an existing line was replaced."""

    event_type: Literal["QuantityChanged"] = "QuantityChanged"
    product_id: int
    quantity: int


class ItemRemoved(DomainEvent):
    """A product line was removed from the cart."""

    event_type: Literal["ItemRemoved"] = "ItemRemoved"
    product_id: int


class DiscountApplied(DomainEvent):
    """
    A line's discount percentage was raised.

    Discounts only ever go up; a lower value never makes it into an event.
    """

    event_type: Literal["DiscountApplied"] = "DiscountApplied"
    product_id: int
    discount_percentage: Decimal


class CheckedOut(DomainEvent):
    """
    The cart was checked out.

    This is terminal: no command can change the cart afterwards.
    """

    event_type: Literal["CheckedOut"] = "CheckedOut"
    total_price: Decimal
    item_count: int


class Cleared(DomainEvent):
    """Every line was removed from the cart."""

    event_type: Literal["Cleared"] = "Cleared"


CartEvent = Annotated[
    ItemAdded | QuantityChanged | ItemRemoved | DiscountApplied | CheckedOut | Cleared,
    Field(discriminator="event_type"),
]

_cart_event_adapter: TypeAdapter[Any] = TypeAdapter(CartEvent)


# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def serialize_event(event: DomainEvent) -> str:
    """Serialize an event to JSON for storage."""
    return event.model_dump_json()


def parse_event(data: str | bytes | dict[str, Any]) -> DomainEvent:
    """
    Reconstruct an event from its stored form.

    The `event_type` discriminator picks the variant; unknown types fail
    validation instead of parsing into a generic event.
    """
    if isinstance(data, dict):
        return _cart_event_adapter.validate_python(data)
    return _cart_event_adapter.validate_json(data)
