"""
Entities - CartItem, one product line inside a shopping cart.

A CartItem is never created or changed directly by a caller. The cart drives
it through decide/apply pairs:

    decide_*  → pure validation, returns Result[None, Error], never mutates
    apply_*   → unconditional state change, never fails, never validates

The split lets the same apply code run for live commands and for replay.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from shopping_cart.domain.errors import Errors
from shopping_cart.domain.rules import decide, ensure
from shopping_cart.domain.value_objects import HUNDRED, has_at_most_two_decimals

if TYPE_CHECKING:
    from kungfu import Result

    from shopping_cart.domain.errors import Error

MIN_QUANTITY = 1
MAX_QUANTITY = 100
MIN_UNIT_PRICE = Decimal("0.01")
MAX_UNIT_PRICE = Decimal("999999.99")
MIN_DISCOUNT_PERCENTAGE = Decimal("0")
MAX_DISCOUNT_PERCENTAGE = HUNDRED


@dataclass
class CartItem:
    """
    CartItem entity.

    Identity is `id`, generated by the cart. `product_id` is the business
    key and is unique within one cart.

    Invariant: discount_percentage never decreases over the item's lifetime.
    """

    id: UUID
    product_id: int
    quantity: int
    unit_price: Decimal
    discount_percentage: Decimal = Decimal("0")

    # ========================================================================
    # DERIVED PRICES
    # ========================================================================

    @property
    def discounted_unit_price(self) -> Decimal:
        return self.unit_price * (1 - self.discount_percentage / HUNDRED)

    @property
    def total_price(self) -> Decimal:
        """Line total after discount."""
        return self.discounted_unit_price * self.quantity

    @property
    def original_total_price(self) -> Decimal:
        """Line total before discount."""
        return self.unit_price * self.quantity

    def total_price_with_quantity(self, quantity: int) -> Decimal:
        """Line total this item would have with another quantity."""
        return self.discounted_unit_price * quantity

    # ========================================================================
    # CREATE
    # ========================================================================

    @classmethod
    def decide_create(
        cls, product_id: int, quantity: int, unit_price: Decimal
    ) -> Result[None, Error]:
        """Decide whether a new line can be created from these values."""
        return decide(
            lambda: _validate_product_id(product_id),
            lambda: _validate_quantity(quantity),
            lambda: _validate_unit_price(unit_price),
        )

    @classmethod
    def apply_create(
        cls, item_id: UUID, product_id: int, quantity: int, unit_price: Decimal
    ) -> CartItem:
        """Create the line. Never fails; call decide_create() first."""
        return cls(
            id=item_id,
            product_id=product_id,
            quantity=quantity,
            unit_price=unit_price,
        )

    # ========================================================================
    # CHANGE QUANTITY
    # ========================================================================

    def decide_change_quantity(self, quantity: int) -> Result[None, Error]:
        return _validate_quantity(quantity)

    def apply_change_quantity(self, quantity: int) -> None:
        self.quantity = quantity

    # ========================================================================
    # DISCOUNT
    # ========================================================================

    def decide_apply_discount(self, discount_percentage: Decimal) -> Result[None, Error]:
        """
        Decide whether a discount can be applied.

        Order: range → precision → not lower than the current discount.
        """
        return decide(
            lambda: ensure(
                discount_percentage.is_finite()
                and MIN_DISCOUNT_PERCENTAGE <= discount_percentage <= MAX_DISCOUNT_PERCENTAGE,
                Errors.INVALID_DISCOUNT_PERCENTAGE,
            ),
            lambda: ensure(
                has_at_most_two_decimals(discount_percentage),
                Errors.INVALID_DISCOUNT_DECIMAL_PLACES,
            ),
            lambda: ensure(
                discount_percentage >= self.discount_percentage,
                Errors.DISCOUNT_CANNOT_BE_REDUCED,
            ),
        )

    def apply_discount_change(self, discount_percentage: Decimal) -> None:
        self.discount_percentage = discount_percentage

    # ========================================================================
    # UNIT PRICE
    # ========================================================================

    def decide_update_unit_price(self, unit_price: Decimal) -> Result[None, Error]:
        """Price updates follow the same rules as creation."""
        return _validate_unit_price(unit_price)

    def apply_update_unit_price(self, unit_price: Decimal) -> None:
        self.unit_price = unit_price

    def snapshot(self) -> CartItem:
        """Detached copy for read-only projections."""
        return dataclasses.replace(self)


# ============================================================================
# VALIDATION RULES
# ============================================================================

def _validate_product_id(product_id: int) -> Result[None, Error]:
    return ensure(product_id > 0, Errors.INVALID_PRODUCT_ID)


def _validate_quantity(quantity: int) -> Result[None, Error]:
    return decide(
        lambda: ensure(quantity >= MIN_QUANTITY, Errors.INVALID_QUANTITY),
        lambda: ensure(quantity <= MAX_QUANTITY, Errors.MAX_ITEM_QUANTITY_EXCEEDED),
    )


def _validate_unit_price(unit_price: Decimal) -> Result[None, Error]:
    return decide(
        lambda: ensure(
            unit_price.is_finite() and unit_price >= MIN_UNIT_PRICE,
            Errors.INVALID_UNIT_PRICE,
        ),
        lambda: ensure(unit_price <= MAX_UNIT_PRICE, Errors.MAX_UNIT_PRICE_EXCEEDED),
        lambda: ensure(
            has_at_most_two_decimals(unit_price),
            Errors.INVALID_UNIT_PRICE_DECIMAL_PLACES,
        ),
    )
