"""
Test: Cart service - commands in, carts out.
"""

import asyncio
import uuid
from decimal import Decimal

import pytest
from kungfu import Error as Err
from kungfu import Ok
from pydantic import ValidationError

from shopping_cart.application.cart_service import CartNotFoundError, CartService
from shopping_cart.application.commands import (
    AddItem,
    ApplyDiscount,
    ChangeItemQuantity,
    Checkout,
    Clear,
    RemoveItem,
)
from shopping_cart.config import Settings
from shopping_cart.domain.errors import Errors


class TestCartService:
    @pytest.mark.asyncio
    async def test_full_shopping_session(self, service):
        cart_id = service.create_cart().id

        for command in (
            AddItem(cart_id=cart_id, product_id=101, quantity=2, unit_price=Decimal("100.00")),
            AddItem(cart_id=cart_id, product_id=102, quantity=1, unit_price=Decimal("5.00")),
            ChangeItemQuantity(cart_id=cart_id, product_id=102, quantity=4),
            ApplyDiscount(cart_id=cart_id, product_id=101, discount_percentage=Decimal("20")),
            RemoveItem(cart_id=cart_id, product_id=102),
            Checkout(cart_id=cart_id),
        ):
            result = await service.handle(command)
            assert isinstance(result, Ok), command

        cart = await service.get_cart(cart_id)
        assert cart.is_checked_out is True
        assert cart.total_price == Decimal("160.00")
        assert cart.version == 5

    @pytest.mark.asyncio
    async def test_handle_returns_updated_cart(self, service):
        cart_id = service.create_cart().id

        result = await service.handle(
            AddItem(cart_id=cart_id, product_id=101, quantity=2, unit_price=Decimal("99.99"))
        )

        assert result.value.total_price == Decimal("199.98")
        assert result.value.get_domain_events() == []

    @pytest.mark.asyncio
    async def test_rejected_command_stores_nothing(self, service, event_store):
        cart_id = service.create_cart().id

        result = await service.handle(Checkout(cart_id=cart_id))

        assert isinstance(result, Err)
        assert result.error == Errors.EMPTY_CART
        assert await event_store.get_aggregate_events(cart_id) == []

    @pytest.mark.asyncio
    async def test_commands_do_not_prevalidate(self, service):
        cart_id = service.create_cart().id

        result = await service.handle(
            AddItem(cart_id=cart_id, product_id=1, quantity=0, unit_price=Decimal("1.00"))
        )

        assert result.error == Errors.INVALID_QUANTITY

    @pytest.mark.asyncio
    async def test_unknown_cart(self, service):
        with pytest.raises(CartNotFoundError):
            await service.handle(Clear(cart_id=uuid.uuid4()))

    @pytest.mark.asyncio
    async def test_new_cart_is_empty_until_first_command(self, service):
        cart = service.create_cart()

        loaded = await service.get_cart(cart.id)

        assert loaded.id == cart.id
        assert loaded.version == -1

    @pytest.mark.asyncio
    async def test_concurrent_commands_on_one_cart(self, service):
        cart_id = service.create_cart().id

        results = await asyncio.gather(*[
            service.handle(AddItem(cart_id=cart_id, product_id=p, quantity=1, unit_price=Decimal("1.00")))
            for p in range(1, 11)
        ])

        assert all(isinstance(r, Ok) for r in results)
        cart = await service.get_cart(cart_id)
        assert len(cart.items) == 10
        assert cart.version == 9

    @pytest.mark.asyncio
    async def test_idle_carts_hold_no_locks(self, service):
        cart_id = service.create_cart().id

        await service.handle(AddItem(cart_id=cart_id, product_id=1, quantity=1, unit_price=Decimal("1.00")))
        await service.handle(RemoveItem(cart_id=cart_id, product_id=99))
        await asyncio.gather(*[
            service.handle(AddItem(cart_id=cart_id, product_id=p, quantity=1, unit_price=Decimal("1.00")))
            for p in range(2, 6)
        ])

        assert service._locks == {}
        assert service._lock_users == {}

    @pytest.mark.asyncio
    async def test_lock_released_when_command_fails(self, service):
        with pytest.raises(CartNotFoundError):
            await service.handle(Clear(cart_id=uuid.uuid4()))

        assert service._locks == {}

    @pytest.mark.asyncio
    async def test_stored_cart_is_forgotten_by_service(self, service):
        cart_id = service.create_cart().id
        assert cart_id in service._created

        await service.handle(AddItem(cart_id=cart_id, product_id=101, quantity=1, unit_price=Decimal("1.00")))

        assert cart_id not in service._created
        cart = await service.get_cart(cart_id)
        assert cart.version == 0

    @pytest.mark.asyncio
    async def test_rejected_first_command_keeps_cart_known(self, service):
        cart_id = service.create_cart().id

        result = await service.handle(RemoveItem(cart_id=cart_id, product_id=101))

        assert result.error == Errors.ITEM_NOT_FOUND
        assert (await service.get_cart(cart_id)).version == -1

    @pytest.mark.asyncio
    async def test_limits_come_from_settings(self, repository):
        service = CartService(repository, Settings(_env_file=None, max_items_count=1))
        cart_id = service.create_cart().id

        await service.handle(AddItem(cart_id=cart_id, product_id=2, quantity=1, unit_price=Decimal("1.00")))
        result = await service.handle(
            AddItem(cart_id=cart_id, product_id=4, quantity=1, unit_price=Decimal("1.00"))
        )

        assert result.error == Errors.MAX_ITEMS_COUNT_EXCEEDED

    @pytest.mark.asyncio
    async def test_stock_policy_comes_from_settings(self, repository):
        service = CartService(repository, Settings(_env_file=None, stock_policy="unlimited"))
        cart_id = service.create_cart().id

        await service.handle(AddItem(cart_id=cart_id, product_id=101, quantity=60, unit_price=Decimal("1.00")))
        result = await service.handle(Checkout(cart_id=cart_id))

        assert isinstance(result, Ok)

    @pytest.mark.asyncio
    async def test_parity_stock_policy_by_default(self, service):
        cart_id = service.create_cart().id

        await service.handle(AddItem(cart_id=cart_id, product_id=101, quantity=60, unit_price=Decimal("1.00")))
        result = await service.handle(Checkout(cart_id=cart_id))

        assert result.error == Errors.INSUFFICIENT_STOCK


class TestCommands:
    def test_commands_are_immutable(self):
        command = Clear(cart_id=uuid.uuid4())

        with pytest.raises(ValidationError):
            command.cart_id = uuid.uuid4()

    def test_prices_parsed_as_decimal(self):
        command = AddItem(cart_id=uuid.uuid4(), product_id=1, quantity=1, unit_price="12.34")

        assert command.unit_price == Decimal("12.34")
