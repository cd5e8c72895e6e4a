"""
Commands - requests to change one cart.

Commands only carry data. They do not validate business rules: a zero
quantity is a legal command that the cart rejects with an Error value.
"""

from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class Command(BaseModel):
    """Base class for all cart commands"""

    cart_id: UUID

    model_config = ConfigDict(frozen=True)


class AddItem(Command):
    """Command: Add a product line to the cart"""
    product_id: int
    quantity: int
    unit_price: Decimal


class ChangeItemQuantity(Command):
    """Command: Replace the quantity of a product line"""
    product_id: int
    quantity: int


class RemoveItem(Command):
    """Command: Remove a product line from the cart"""
    product_id: int


class ApplyDiscount(Command):
    """Command: Raise the discount percentage of a product line"""
    product_id: int
    discount_percentage: Decimal


class Checkout(Command):
    """Command: Finalize the cart"""


class Clear(Command):
    """Command: Remove every product line"""


CartCommand = AddItem | ChangeItemQuantity | RemoveItem | ApplyDiscount | Checkout | Clear
