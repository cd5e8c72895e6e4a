"""Application layer: commands and the cart service."""

from shopping_cart.application.cart_service import CartNotFoundError, CartService
from shopping_cart.application.commands import (
    AddItem,
    ApplyDiscount,
    CartCommand,
    ChangeItemQuantity,
    Checkout,
    Clear,
    Command,
    RemoveItem,
)

__all__ = [
    "AddItem",
    "ApplyDiscount",
    "CartCommand",
    "CartNotFoundError",
    "CartService",
    "ChangeItemQuantity",
    "Checkout",
    "Clear",
    "Command",
    "RemoveItem",
]
