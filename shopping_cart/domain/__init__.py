"""
Domain Layer - Pure Business Logic

This layer contains:
- Domain errors (the closed catalogue of rule violations)
- Domain events (immutable facts about what happened)
- Entities (CartItem) and the aggregate root (ShoppingCart)
- Value objects and the stock policy collaborator

Key principle: ZERO dependencies on infrastructure or configuration.
Limits and the stock policy are passed in by the caller.
"""

from shopping_cart.domain.aggregates import EventSourcedAggregate, ShoppingCart, decide
from shopping_cart.domain.entities import CartItem
from shopping_cart.domain.errors import (
    DomainException,
    Error,
    Errors,
    EventStreamMismatchError,
    UnknownEventError,
)
from shopping_cart.domain.events import (
    CartEvent,
    CheckedOut,
    Cleared,
    DiscountApplied,
    DomainEvent,
    ItemAdded,
    ItemRemoved,
    QuantityChanged,
    parse_event,
    serialize_event,
)
from shopping_cart.domain.inventory import (
    ParityStockPolicy,
    StockPolicy,
    UnlimitedStockPolicy,
)
from shopping_cart.domain.value_objects import CartLimits

__all__ = [
    "CartEvent",
    "CartItem",
    "CartLimits",
    "CheckedOut",
    "Cleared",
    "DiscountApplied",
    "DomainEvent",
    "DomainException",
    "Error",
    "Errors",
    "EventSourcedAggregate",
    "EventStreamMismatchError",
    "ItemAdded",
    "ItemRemoved",
    "ParityStockPolicy",
    "QuantityChanged",
    "ShoppingCart",
    "StockPolicy",
    "UnknownEventError",
    "UnlimitedStockPolicy",
    "decide",
    "parse_event",
    "serialize_event",
]
