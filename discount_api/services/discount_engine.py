
import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from discount_api.exceptions import DuplicateBottleReturn, Ineligible, ValidationFailed
from discount_api.models.discount import DiscountKind
from discount_api.services.discount_calculator import DiscountCalculator, D, round2
from discount_api.services.discount_service import DiscountService
from discount_api.services.eligibility import (
    PAYMENT_COMPLETE, EligibilityResult, evaluate_eligibility,
)
from discount_api.services.usage_ledger import UsageLedger

logger = logging.getLogger(__name__)


@dataclass
class AppliedDiscount:
    application_id: str
    discount_amount: Decimal
    final_amount: Decimal


def ensure_order_amount(order_amount) -> Decimal:
    """Reject negative or non-numeric order amounts instead of coercing them."""
    if isinstance(order_amount, bool):
        raise ValidationFailed("order_amount must be a number")
    try:
        amount = D(order_amount)
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationFailed("order_amount must be a number")
    if not amount.is_finite():
        raise ValidationFailed("order_amount must be a number")
    if amount < 0:
        raise ValidationFailed("order_amount cannot be negative")
    return amount


class DiscountEngine:
    """Eligibility, calculation and recording of discount applications"""

    @staticmethod
    def evaluate(
        db: Session,
        discount_id: str,
        customer_id: str,
        order_amount,
        payment_status: str = PAYMENT_COMPLETE,
        today: Optional[date] = None,
    ) -> EligibilityResult:
        order_amount = ensure_order_amount(order_amount)
        discount = DiscountService.get_discount_or_404(db, discount_id)
        return DiscountEngine._evaluate_loaded(db, discount, customer_id, order_amount, payment_status, today)

    @staticmethod
    def calculate(discount, order_amount) -> Decimal:
        return DiscountCalculator.calculate(discount, ensure_order_amount(order_amount))

    @staticmethod
    def apply(
        db: Session,
        order_id: str,
        discount_id: str,
        customer_id: str,
        order_amount,
        payment_status: str = PAYMENT_COMPLETE,
        today: Optional[date] = None,
    ) -> AppliedDiscount:
        """Apply a discount to an order as a single unit of work.

        The application row and the usage increment commit together; any
        rejection rolls the session back and leaves nothing behind.
        """
        order_amount = ensure_order_amount(order_amount)
        try:
            discount = DiscountService.get_discount_or_404(db, discount_id, for_update=True)
            kind = DiscountKind(discount.type)

            if kind is DiscountKind.BOTTLE_RETURN and UsageLedger.has_bottle_return_application(db, order_id):
                raise DuplicateBottleReturn(order_id)

            result = DiscountEngine._evaluate_loaded(db, discount, customer_id, order_amount, payment_status, today)
            if not result.eligible:
                raise Ineligible(result.reasons)

            discount_amount = DiscountCalculator.calculate(discount, order_amount)
            final_amount = round2(order_amount - discount_amount)
            percentage = D(discount.value) if kind is DiscountKind.PERCENTAGE else None

            try:
                application_id = UsageLedger.record_application(
                    db, order_id, discount, discount_amount, percentage, order_amount, final_amount
                )
            except IntegrityError:
                if kind is DiscountKind.BOTTLE_RETURN:
                    # lost the race against another bottle return on this order
                    raise DuplicateBottleReturn(order_id)
                raise
            if application_id is None:
                raise Ineligible(["Discount usage limit reached"])

            if not UsageLedger.upsert_customer_usage(db, customer_id, discount.id, discount.usage_per_customer):
                raise Ineligible(["Customer usage limit reached"])

            db.commit()
        except (DuplicateBottleReturn, Ineligible) as exc:
            db.rollback()
            logger.warning("Discount %s rejected for order %s: %s", discount_id, order_id, exc.detail)
            raise
        except Exception:
            db.rollback()
            raise

        logger.info(
            "Applied discount %s to order %s for customer %s: %s off %s",
            discount_id, order_id, customer_id, discount_amount, order_amount,
        )
        return AppliedDiscount(
            application_id=application_id,
            discount_amount=discount_amount,
            final_amount=final_amount,
        )

    @staticmethod
    def _evaluate_loaded(db, discount, customer_id, order_amount, payment_status, today) -> EligibilityResult:
        return evaluate_eligibility(
            discount,
            order_amount,
            payment_status=payment_status,
            total_applications=UsageLedger.count_applications(db, discount.id),
            customer_usage_count=UsageLedger.customer_usage_count(db, customer_id, discount.id),
            today=today,
        )
