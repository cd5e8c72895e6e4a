"""
Domain Errors - The Closed Catalogue of Rule Violations

Business rule violations are VALUES, not exceptions.

Callers branch on success/failure and show `code` + `message` to the user.
Same arguments against the same state always give the same error.

Commands return `kungfu.Error(Error(...))` wrapping one of the constants below.

Exceptions are reserved for programmer errors:
    DomainException (base)
    ├── UnknownEventError         (apply received an event outside the closed set)
    └── EventStreamMismatchError  (replay onto the wrong or a non-fresh cart)
"""

from typing import ClassVar

from pydantic import BaseModel, ConfigDict


class Error(BaseModel):
    """
    A single rule violation.

    Equality is by code + message, so tests and callers can compare
    against the catalogue constants directly.
    """

    code: str
    message: str

    NONE: ClassVar["Error"]

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


# Reserved "no error" value for contexts that need a non-nullable error.
# Business code never returns it from a failing path.
Error.NONE = Error(code="", message="")


class Errors:
    """Catalogue of every error the cart and its items can report."""

    # ========================================================================
    # SHOPPING CART
    # ========================================================================

    DUPLICATE_PRODUCT = Error(
        code="ShoppingCart.DuplicateProduct",
        message="The product is already in the shopping cart",
    )

    ITEM_NOT_FOUND = Error(
        code="ShoppingCart.ItemNotFound",
        message="The product could not be found in the shopping cart",
    )

    CART_ALREADY_CHECKED_OUT = Error(
        code="ShoppingCart.CartAlreadyCheckedOut",
        message="The shopping cart has been checked out and can no longer be modified",
    )

    MAX_ITEMS_COUNT_EXCEEDED = Error(
        code="ShoppingCart.MaxItemsCountExceeded",
        message="The shopping cart has reached its item limit (at most 50 items)",
    )

    MAX_TOTAL_QUANTITY_EXCEEDED = Error(
        code="ShoppingCart.MaxTotalQuantityExceeded",
        message="The shopping cart has reached its total quantity limit (at most 999 units)",
    )

    MAX_TOTAL_PRICE_EXCEEDED = Error(
        code="ShoppingCart.MaxTotalPriceExceeded",
        message="The shopping cart has reached its total price limit (at most $1,000,000)",
    )

    EMPTY_CART = Error(
        code="ShoppingCart.EmptyCart",
        message="The shopping cart is empty and cannot be checked out",
    )

    # ========================================================================
    # CART ITEM
    # ========================================================================

    INVALID_PRODUCT_ID = Error(
        code="CartItem.InvalidProductId",
        message="The product id must be greater than 0",
    )

    INVALID_QUANTITY = Error(
        code="CartItem.InvalidQuantity",
        message="The quantity must be greater than 0",
    )

    MAX_ITEM_QUANTITY_EXCEEDED = Error(
        code="CartItem.MaxItemQuantityExceeded",
        message="The quantity of a single product has reached its limit (at most 100 units)",
    )

    INVALID_UNIT_PRICE = Error(
        code="CartItem.InvalidUnitPrice",
        message="The unit price must be at least $0.01",
    )

    MAX_UNIT_PRICE_EXCEEDED = Error(
        code="CartItem.MaxUnitPriceExceeded",
        message="The unit price has reached its limit (at most $999,999.99)",
    )

    INVALID_UNIT_PRICE_DECIMAL_PLACES = Error(
        code="CartItem.InvalidUnitPriceDecimalPlaces",
        message="The unit price can have at most 2 decimal places",
    )

    INVALID_DISCOUNT_PERCENTAGE = Error(
        code="CartItem.InvalidDiscountPercentage",
        message="The discount percentage must be between 0 and 100",
    )

    INVALID_DISCOUNT_DECIMAL_PLACES = Error(
        code="CartItem.InvalidDiscountDecimalPlaces",
        message="The discount percentage can have at most 2 decimal places",
    )

    DISCOUNT_CANNOT_BE_REDUCED = Error(
        code="CartItem.DiscountCannotBeReduced",
        message="An applied discount cannot be reduced",
    )

    INSUFFICIENT_STOCK = Error(
        code="CartItem.InsufficientStock",
        message="There is not enough stock for this product",
    )

    @classmethod
    def all(cls) -> list[Error]:
        """Every catalogue entry, in declaration order."""
        return [value for value in vars(cls).values() if isinstance(value, Error)]


class DomainException(Exception):
    """Base exception for programmer errors inside the domain layer."""


class UnknownEventError(DomainException):
    """
    Raised when apply receives an event outside the closed event set.

    This is an invariant violation, never a business outcome.
    """


class EventStreamMismatchError(DomainException):
    """
    Raised when an event stream cannot be replayed onto an aggregate.

    Either the aggregate already has applied events (replay must start from
    the initial state) or an event belongs to a different cart.
    """
