"""
Test: CartItem entity rules and derived prices.
"""

import uuid
from decimal import Decimal

import pytest
from kungfu import Error as Err
from kungfu import Ok

from shopping_cart.domain.entities import CartItem
from shopping_cart.domain.errors import Errors
from shopping_cart.domain.rules import decide, ensure
from shopping_cart.domain.value_objects import to_decimal


@pytest.fixture
def item():
    return CartItem.apply_create(uuid.uuid4(), 101, 2, Decimal("100.00"))


class TestDerivedPrices:
    def test_without_discount(self, item):
        assert item.discounted_unit_price == Decimal("100.00")
        assert item.total_price == Decimal("200.00")
        assert item.original_total_price == Decimal("200.00")

    def test_with_discount(self, item):
        item.apply_discount_change(Decimal("20.00"))

        assert item.discounted_unit_price == Decimal("80.00")
        assert item.total_price == Decimal("160.00")
        assert item.original_total_price == Decimal("200.00")
        assert item.total_price_with_quantity(3) == Decimal("240.00")


class TestDecideCreate:
    def test_valid(self):
        assert isinstance(CartItem.decide_create(1, 100, Decimal("999999.99")), Ok)
        assert isinstance(CartItem.decide_create(1, 1, Decimal("0.01")), Ok)

    @pytest.mark.parametrize(
        "product_id,quantity,unit_price,error",
        [
            (0, 0, Decimal("0"), Errors.INVALID_PRODUCT_ID),
            (1, -1, Decimal("0"), Errors.INVALID_QUANTITY),
            (1, 1, Decimal("-1"), Errors.INVALID_UNIT_PRICE),
            (1, 1, Decimal("999999.991"), Errors.MAX_UNIT_PRICE_EXCEEDED),
            (1, 1, Decimal("1.001"), Errors.INVALID_UNIT_PRICE_DECIMAL_PLACES),
        ],
    )
    def test_first_failure_wins(self, product_id, quantity, unit_price, error):
        result = CartItem.decide_create(product_id, quantity, unit_price)

        assert isinstance(result, Err)
        assert result.error == error

    def test_trailing_zeros_are_not_extra_precision(self):
        assert isinstance(CartItem.decide_create(1, 1, Decimal("12.3400")), Ok)


class TestDecideOnExistingItem:
    def test_decide_never_mutates(self, item):
        before = item.snapshot()

        item.decide_change_quantity(50)
        item.decide_apply_discount(Decimal("30"))
        item.decide_update_unit_price(Decimal("5.00"))

        assert item == before

    def test_discount_cannot_be_reduced(self, item):
        item.apply_discount_change(Decimal("25"))

        result = item.decide_apply_discount(Decimal("24.99"))

        assert isinstance(result, Err)
        assert result.error == Errors.DISCOUNT_CANNOT_BE_REDUCED

    def test_range_checked_before_monotonicity(self, item):
        item.apply_discount_change(Decimal("25"))

        result = item.decide_apply_discount(Decimal("-1"))

        assert result.error == Errors.INVALID_DISCOUNT_PERCENTAGE

    def test_update_unit_price(self, item):
        assert item.decide_update_unit_price(Decimal("0.005")).error == Errors.INVALID_UNIT_PRICE
        assert item.decide_update_unit_price(Decimal("1.234")).error == Errors.INVALID_UNIT_PRICE_DECIMAL_PLACES
        assert isinstance(item.decide_update_unit_price(Decimal("12.34")), Ok)

        item.apply_update_unit_price(Decimal("12.34"))

        assert item.total_price == Decimal("24.68")

    def test_snapshot_is_detached(self, item):
        copy = item.snapshot()
        copy.apply_change_quantity(7)

        assert item.quantity == 2
        assert copy.id == item.id


class TestDecideComposition:
    def test_later_rules_do_not_run_after_failure(self):
        calls = []

        def rule(name, passes):
            def run():
                calls.append(name)
                return ensure(passes, Errors.INVALID_QUANTITY)
            return run

        result = decide(rule("first", True), rule("second", False), rule("third", True))

        assert result.error == Errors.INVALID_QUANTITY
        assert calls == ["first", "second"]

    def test_no_rules_passes(self):
        assert isinstance(decide(), Ok)


class TestNonFiniteValues:
    @pytest.mark.parametrize("unit_price", [Decimal("NaN"), Decimal("Infinity"), Decimal("-Infinity")])
    def test_unit_price_rules(self, item, unit_price):
        assert CartItem.decide_create(1, 1, unit_price).error == Errors.INVALID_UNIT_PRICE
        assert item.decide_update_unit_price(unit_price).error == Errors.INVALID_UNIT_PRICE

    @pytest.mark.parametrize("discount", [Decimal("NaN"), Decimal("Infinity")])
    def test_discount_rules(self, item, discount):
        assert item.decide_apply_discount(discount).error == Errors.INVALID_DISCOUNT_PERCENTAGE

    @pytest.mark.parametrize("raw", ["abc", "", None, "1.2.3"])
    def test_to_decimal_turns_garbage_into_nan(self, raw):
        assert to_decimal(raw).is_nan()

    def test_to_decimal_reads_floats_through_str(self):
        assert to_decimal(12.345) == Decimal("12.345")
