
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import List, Optional

from discount_api.services.discount_calculator import D

PAYMENT_COMPLETE = "complete"


@dataclass
class EligibilityResult:
    reasons: List[str] = field(default_factory=list)

    @property
    def eligible(self) -> bool:
        return not self.reasons


def today_utc() -> date:
    return datetime.now(timezone.utc).date()


def is_partial_payment(payment_status: str) -> bool:
    """Anything short of a completed payment counts as partial."""
    return payment_status != PAYMENT_COMPLETE


def evaluate_eligibility(
    discount,
    order_amount: Decimal,
    payment_status: str = PAYMENT_COMPLETE,
    total_applications: int = 0,
    customer_usage_count: int = 0,
    today: Optional[date] = None,
) -> EligibilityResult:
    """Run every eligibility rule against ``discount`` and collect all failures.

    Usage figures are passed in so the check itself stays free of I/O; the
    caller reads them from the usage ledger.
    """
    today = today or today_utc()
    order_amount = D(order_amount)
    result = EligibilityResult()

    if not discount.is_active:
        result.reasons.append("Discount is not active")

    if is_partial_payment(payment_status) and not discount.allow_partial_payment:
        result.reasons.append("Discounts are not available for partial payments")

    if discount.start_date is not None and today < discount.start_date:
        result.reasons.append("Discount has not started yet")
    if discount.end_date is not None and today > discount.end_date:
        result.reasons.append("Discount has expired")

    if discount.min_purchase_amount is not None and order_amount < D(discount.min_purchase_amount):
        result.reasons.append(f"Minimum purchase amount of {D(discount.min_purchase_amount)} required")

    if discount.usage_limit is not None and total_applications >= discount.usage_limit:
        result.reasons.append("Discount usage limit reached")

    # per-customer cap; the global usage_limit is checked above
    if discount.usage_per_customer is not None and customer_usage_count >= discount.usage_per_customer:
        result.reasons.append("Customer usage limit reached")

    return result
