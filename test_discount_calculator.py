from decimal import Decimal
from types import SimpleNamespace

import pytest

from discount_api.services.discount_calculator import DiscountCalculator, BOTTLE_RETURN_TIERS


def make_discount(type, value=0, max_discount_amount=None, bottle_return_count=None):
    return SimpleNamespace(
        type=type,
        value=value,
        max_discount_amount=max_discount_amount,
        bottle_return_count=bottle_return_count,
    )


def test_percentage_discount():
    """10% of 1000 is 100"""
    discount = make_discount("percentage", value=10)
    assert DiscountCalculator.calculate(discount, 1000) == Decimal("100")


def test_percentage_discount_rounds_to_cents():
    discount = make_discount("percentage", value=15)
    assert DiscountCalculator.calculate(discount, Decimal("33.33")) == Decimal("5.00")


def test_fixed_amount_capped_to_order_amount():
    discount = make_discount("fixed_amount", value=5000)
    assert DiscountCalculator.calculate(discount, 3000) == Decimal("3000")


def test_fixed_amount_below_order_amount():
    discount = make_discount("fixed_amount", value=250)
    assert DiscountCalculator.calculate(discount, 3000) == Decimal("250")


def test_bottle_return_tier_capped_to_order_amount():
    """Two bottles are worth 2000 but the order is only 500"""
    discount = make_discount("bottle_return", bottle_return_count=2)
    assert DiscountCalculator.calculate(discount, 500) == Decimal("500")


@pytest.mark.parametrize("bottles", [1, 2, 3, 4])
def test_bottle_return_tiers(bottles):
    discount = make_discount("bottle_return", bottle_return_count=bottles)
    assert DiscountCalculator.calculate(discount, 10000) == BOTTLE_RETURN_TIERS[bottles]


@pytest.mark.parametrize("bottles", [None, 0, 5, 12])
def test_bottle_return_outside_tier_table_is_zero(bottles):
    discount = make_discount("bottle_return", bottle_return_count=bottles)
    assert DiscountCalculator.calculate(discount, 10000) == Decimal("0")


def test_max_discount_amount_caps_result():
    """Raw 20% of 1000 = 200, capped at 50"""
    discount = make_discount("percentage", value=20, max_discount_amount=50)
    assert DiscountCalculator.calculate(discount, 1000) == Decimal("50")


def test_max_discount_amount_above_raw_amount_has_no_effect():
    discount = make_discount("fixed_amount", value=30, max_discount_amount=50)
    assert DiscountCalculator.calculate(discount, 1000) == Decimal("30")


@pytest.mark.parametrize("discount", [
    make_discount("percentage", value=100),
    make_discount("percentage", value=250),
    make_discount("fixed_amount", value=999999),
    make_discount("bottle_return", bottle_return_count=4),
    make_discount("percentage", value=0),
    make_discount("fixed_amount", value=10, max_discount_amount=0),
])
@pytest.mark.parametrize("order_amount", [0, Decimal("0.01"), 99, 1000, Decimal("123456.78")])
def test_result_between_zero_and_order_amount(discount, order_amount):
    amount = DiscountCalculator.calculate(discount, order_amount)
    assert Decimal(0) <= amount <= Decimal(str(order_amount))


def test_unknown_type_is_rejected():
    with pytest.raises(ValueError):
        DiscountCalculator.calculate(make_discount("buy_one_get_one", value=1), 100)
