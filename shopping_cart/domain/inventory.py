"""
Stock Policy - The Inventory Collaborator

Checkout asks one question per item: "does this item have sufficient stock?"

The cart does not know where the answer comes from. A real deployment plugs
in an inventory lookup; tests and demos use the placeholder rule below.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


class StockPolicy(Protocol):
    """Interface for stock lookups used by checkout."""

    def has_sufficient_stock(self, product_id: int, quantity: int) -> bool:
        """Return True when `quantity` units of `product_id` are available."""
        ...


@dataclass(frozen=True, slots=True)
class ParityStockPolicy:
    """
    Placeholder inventory rule.

    Even product ids are always in stock. Odd product ids only have
    `odd_product_max_quantity` units on hand.
    """

    odd_product_max_quantity: int = 50

    def has_sufficient_stock(self, product_id: int, quantity: int) -> bool:
        if product_id % 2 == 1 and quantity > self.odd_product_max_quantity:
            return False
        return True


class UnlimitedStockPolicy:
    """Every product is always in stock."""

    def has_sufficient_stock(self, product_id: int, quantity: int) -> bool:  # noqa: ARG002
        return True
