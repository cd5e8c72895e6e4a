"""
Cart Service - Application Layer Entry Point

Flow for every command:
1. Take the cart's lock (one writer per cart)
2. Load the cart (replay from the event store)
3. Run the command on the aggregate
4. Save the new events on success

A rejected command writes nothing: the cart raised no events.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, AsyncIterator
from uuid import UUID

import structlog
from kungfu import Error as Err
from kungfu import Ok

from shopping_cart.application.commands import (
    AddItem,
    ApplyDiscount,
    ChangeItemQuantity,
    Checkout,
    Clear,
    RemoveItem,
)
from shopping_cart.config import Settings, get_settings
from shopping_cart.domain.aggregates import ShoppingCart

if TYPE_CHECKING:
    from kungfu import Result

    from shopping_cart.application.commands import CartCommand
    from shopping_cart.domain.errors import Error
    from shopping_cart.infrastructure.cart_repository import CartRepository

logger = structlog.get_logger(__name__)


class CartNotFoundError(Exception):
    """Raised when a command targets a cart that was never created."""

    def __init__(self, cart_id: UUID):
        self.cart_id = cart_id
        super().__init__(f"Cart {cart_id} not found")


class CartService:
    """
    Runs cart commands against stored carts.

    Locks are per process. Other writers are caught by the store's
    optimistic version check (ConcurrencyError).

    A cart's lock lives only while commands for it are running or
    waiting. A created cart is remembered only until its first events
    are stored; after that the store knows it.
    """

    def __init__(self, repository: CartRepository, settings: Settings | None = None):
        self.repository = repository
        self.settings = settings or get_settings()
        self._limits = self.settings.cart_limits()
        self._stock_policy = self.settings.build_stock_policy()
        self._locks: dict[UUID, asyncio.Lock] = {}
        self._lock_users: dict[UUID, int] = {}
        self._created: set[UUID] = set()

    def create_cart(self, cart_id: UUID | None = None) -> ShoppingCart:
        """
        Start a new cart.

        Nothing is stored until the first successful command.
        """
        cart = ShoppingCart.create(
            cart_id, limits=self._limits, stock_policy=self._stock_policy
        )
        self._created.add(cart.id)
        logger.info("cart_service.cart_created", cart_id=str(cart.id))
        return cart

    async def get_cart(self, cart_id: UUID) -> ShoppingCart:
        """
        Current state of a cart.

        Raises:
            CartNotFoundError: The cart was never created.
        """
        cart = await self.repository.get(
            cart_id, limits=self._limits, stock_policy=self._stock_policy
        )
        if cart is not None:
            return cart
        if cart_id in self._created:
            return ShoppingCart.create(
                cart_id, limits=self._limits, stock_policy=self._stock_policy
            )
        raise CartNotFoundError(cart_id)

    async def handle(self, command: CartCommand) -> Result[ShoppingCart, Error]:
        """Run one command. Returns the updated cart or the rule that failed."""
        async with self._exclusive(command.cart_id):
            cart = await self.get_cart(command.cart_id)

            result = self._dispatch(cart, command)
            if isinstance(result, Err):
                return result

            await self.repository.save(cart)
            if cart.version >= 0:
                self._created.discard(cart.id)

            logger.info(
                "cart_service.command_handled",
                cart_id=str(cart.id),
                command=type(command).__name__,
                version=cart.version,
            )
            return Ok(cart)

    def _dispatch(self, cart: ShoppingCart, command: CartCommand) -> Result[None, Error]:
        match command:
            case AddItem(product_id=product_id, quantity=quantity, unit_price=unit_price):
                return cart.add_item(product_id, quantity, unit_price)
            case ChangeItemQuantity(product_id=product_id, quantity=quantity):
                return cart.change_item_quantity(product_id, quantity)
            case RemoveItem(product_id=product_id):
                return cart.remove_item(product_id)
            case ApplyDiscount(product_id=product_id, discount_percentage=discount):
                return cart.apply_discount(product_id, discount)
            case Checkout():
                return cart.checkout()
            case Clear():
                return cart.clear()
            case _:
                raise TypeError(f"Unsupported command: {type(command).__name__}")

    @asynccontextmanager
    async def _exclusive(self, cart_id: UUID) -> AsyncIterator[None]:
        lock = self._locks.setdefault(cart_id, asyncio.Lock())
        self._lock_users[cart_id] = self._lock_users.get(cart_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[cart_id] -= 1
            if self._lock_users[cart_id] == 0:
                del self._lock_users[cart_id]
                del self._locks[cart_id]
