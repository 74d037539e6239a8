
from typing import Dict
from decimal import Decimal, ROUND_HALF_UP, getcontext

from discount_api.models.discount import DiscountKind

getcontext().prec = 28

# returned bottles -> fixed discount, in the order's currency units
BOTTLE_RETURN_TIERS: Dict[int, Decimal] = {
    1: Decimal(1000),
    2: Decimal(2000),
    3: Decimal(3000),
    4: Decimal(4000),
}


def D(x) -> Decimal:
    return Decimal(str(x))


def round2(x: Decimal) -> Decimal:
    return x.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)


class DiscountCalculator:
    """Computes the monetary discount for a validated discount and order total.

    Works on anything exposing ``type``, ``value``, ``max_discount_amount`` and
    ``bottle_return_count``: the ORM row or a response schema.
    """

    @staticmethod
    def calculate_percentage_discount(value, order_amount: Decimal) -> Decimal:
        return round2((order_amount * D(value)) / D(100))

    @staticmethod
    def calculate_fixed_amount_discount(value, order_amount: Decimal) -> Decimal:
        return min(round2(D(value)), order_amount)

    @staticmethod
    def calculate_bottle_return_discount(bottle_return_count, order_amount: Decimal) -> Decimal:
        tier_amount = BOTTLE_RETURN_TIERS.get(bottle_return_count)
        if tier_amount is None:
            return D(0)
        return min(tier_amount, order_amount)

    @staticmethod
    def calculate(discount, order_amount) -> Decimal:
        order_amount = D(order_amount)
        kind = DiscountKind(discount.type)

        if kind is DiscountKind.PERCENTAGE:
            amount = DiscountCalculator.calculate_percentage_discount(discount.value, order_amount)
        elif kind is DiscountKind.FIXED_AMOUNT:
            amount = DiscountCalculator.calculate_fixed_amount_discount(discount.value, order_amount)
        elif kind is DiscountKind.BOTTLE_RETURN:
            amount = DiscountCalculator.calculate_bottle_return_discount(
                discount.bottle_return_count, order_amount
            )
        else:
            raise ValueError(f"Unsupported discount type: {kind}")

        if discount.max_discount_amount is not None:
            amount = min(amount, D(discount.max_discount_amount))

        # never below zero, never above the order itself
        return max(D(0), min(amount, order_amount))
