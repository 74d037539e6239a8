
import logging
import math
import uuid
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from sqlalchemy import case, func, or_
from sqlalchemy.orm import Session

from discount_api.config import Config
from discount_api.exceptions import NotFound, ValidationFailed
from discount_api.models.discount import (
    CustomerDiscountUsage, Discount, DiscountApplication, DiscountKind,
)
from discount_api.schemas.discount import DiscountCreate, DiscountUpdate
from discount_api.services.eligibility import evaluate_eligibility, is_partial_payment

logger = logging.getLogger(__name__)

APPLICABLE_TO_ALIASES = {
    "product_types": "product_types",
    "specific_products": "product_types",
    "categories": "categories",
    "specific_categories": "categories",
}

# non-nullable columns an update may not clear
REQUIRED_FIELDS = (
    "name", "type", "value", "applicable_to", "is_active", "auto_apply", "discount_type", "allow_partial_payment",
)

# (discount, total_applications, total_discount_given)
DiscountWithTotals = Tuple[Discount, int, Decimal]


class DiscountService:
    """Service class for the discount rule store"""

    @staticmethod
    def create_discount(db: Session, discount_data: DiscountCreate) -> Discount:
        data = discount_data.model_dump()
        data["applicable_to"] = DiscountService._validate_discount(data)
        data["type"] = DiscountKind(data["type"]).value
        for flag, default in (("is_active", True), ("auto_apply", False), ("allow_partial_payment", False)):
            if data[flag] is None:
                data[flag] = default
        if data["discount_type"] is None:
            data["discount_type"] = "regular_discount"

        db_discount = Discount(**data)
        db.add(db_discount)
        db.commit()
        db.refresh(db_discount)
        logger.info("Created discount %s (%s, %s)", db_discount.id, db_discount.name, db_discount.type)
        return db_discount

    @staticmethod
    def get_discount(db: Session, discount_id: str, for_update: bool = False) -> Optional[Discount]:
        q = db.query(Discount).filter(Discount.id == discount_id)
        if for_update:
            q = q.with_for_update()
        return q.first()

    @staticmethod
    def get_discount_or_404(db: Session, discount_id: str, for_update: bool = False) -> Discount:
        discount = DiscountService.get_discount(db, discount_id, for_update=for_update)
        if not discount:
            raise NotFound("Discount not found")
        return discount

    @staticmethod
    def _totals_subquery(db: Session):
        return db.query(
            DiscountApplication.discount_id.label("discount_id"),
            func.count(DiscountApplication.id).label("total_applications"),
            func.sum(DiscountApplication.amount_applied).label("total_discount_given"),
        ).group_by(DiscountApplication.discount_id).subquery()

    @staticmethod
    def _with_totals(db: Session):
        totals = DiscountService._totals_subquery(db)
        return db.query(
            Discount,
            func.coalesce(totals.c.total_applications, 0),
            func.coalesce(totals.c.total_discount_given, 0),
        ).outerjoin(totals, totals.c.discount_id == Discount.id)

    @staticmethod
    def get_discount_with_totals(db: Session, discount_id: str) -> DiscountWithTotals:
        row = DiscountService._with_totals(db).filter(Discount.id == discount_id).first()
        if not row:
            raise NotFound("Discount not found")
        return row

    @staticmethod
    def get_discounts(
        db: Session,
        type: Optional[str] = None,
        is_active: bool = True,
        search: str = "",
        min_purchase_amount: Decimal = Decimal(0),
        payment_status: str = "complete",
        page: int = 1,
        limit: int = Config.DEFAULT_PAGE_SIZE,
    ) -> Tuple[List[DiscountWithTotals], int]:
        page = max(page, 1)
        limit = min(max(limit, 1), Config.MAX_PAGE_SIZE)

        filters = [Discount.is_active == is_active]
        if type:
            filters.append(Discount.type == type)
        if search:
            pattern = f"%{search}%"
            filters.append(or_(Discount.name.ilike(pattern), Discount.description.ilike(pattern)))
        if min_purchase_amount and min_purchase_amount > 0:
            filters.append(or_(
                Discount.min_purchase_amount.is_(None),
                Discount.min_purchase_amount <= min_purchase_amount,
            ))
        if is_partial_payment(payment_status):
            filters.append(Discount.allow_partial_payment == True)  # noqa: E712

        total = db.query(func.count(Discount.id)).filter(*filters).scalar() or 0
        rows = DiscountService._with_totals(db).filter(*filters).order_by(
            Discount.created_at.desc(), Discount.name
        ).offset((page - 1) * limit).limit(limit).all()
        return rows, total

    @staticmethod
    def get_available_discounts(
        db: Session,
        customer_id: str,
        order_amount: Decimal = Decimal(0),
        customer_tier: Optional[str] = None,
    ) -> List[Tuple[Discount, int]]:
        """Active discounts this customer could use right now, with their usage count."""
        customer_tier = customer_tier or Config.DEFAULT_CUSTOMER_TIER
        totals = DiscountService._totals_subquery(db)
        rows = db.query(
            Discount,
            func.coalesce(totals.c.total_applications, 0),
            func.coalesce(CustomerDiscountUsage.usage_count, 0),
        ).outerjoin(
            totals, totals.c.discount_id == Discount.id
        ).outerjoin(
            CustomerDiscountUsage,
            (CustomerDiscountUsage.discount_id == Discount.id) & (CustomerDiscountUsage.customer_id == customer_id),
        ).filter(Discount.is_active == True).all()  # noqa: E712

        available = []
        for discount, total_applications, usage_count in rows:
            result = evaluate_eligibility(
                discount,
                order_amount,
                total_applications=total_applications,
                customer_usage_count=usage_count,
            )
            if not result.eligible:
                continue
            tiers = discount.customer_tiers
            if tiers and customer_tier not in tiers and "all" not in tiers:
                continue
            available.append((discount, usage_count))
        return available

    @staticmethod
    def update_discount(db: Session, discount_id: str, discount_data: DiscountUpdate) -> Discount:
        db_discount = DiscountService.get_discount_or_404(db, discount_id)

        # Compute final fields then validate
        changes = discount_data.model_dump(exclude_unset=True)
        for key in REQUIRED_FIELDS:
            if key in changes and changes[key] is None:
                raise ValidationFailed(f"{key} cannot be null")
        final = {column.name: getattr(db_discount, column.name) for column in Discount.__table__.columns}
        final.update(changes)
        changes["applicable_to"] = DiscountService._validate_discount(final)
        if "type" in changes and changes["type"] is not None:
            changes["type"] = DiscountKind(changes["type"]).value

        for key, value in changes.items():
            setattr(db_discount, key, value)

        db.commit()
        db.refresh(db_discount)
        logger.info("Updated discount %s", db_discount.id)
        return db_discount

    @staticmethod
    def delete_discount(db: Session, discount_id: str) -> None:
        db_discount = DiscountService.get_discount_or_404(db, discount_id)
        db.delete(db_discount)
        db.commit()
        logger.info("Deleted discount %s", discount_id)

    @staticmethod
    def get_stats(db: Session) -> Dict[str, object]:
        def count_where(condition):
            return func.coalesce(func.sum(case((condition, 1), else_=0)), 0)

        discount_stats = db.query(
            func.count(Discount.id),
            count_where(Discount.is_active == True),  # noqa: E712
            count_where(Discount.is_active == False),  # noqa: E712
            count_where(Discount.type == DiscountKind.PERCENTAGE.value),
            count_where(Discount.type == DiscountKind.FIXED_AMOUNT.value),
            count_where(Discount.type == DiscountKind.BOTTLE_RETURN.value),
        ).one()
        usage_stats = db.query(
            func.count(DiscountApplication.id),
            func.coalesce(func.sum(DiscountApplication.amount_applied), 0),
            func.coalesce(func.avg(DiscountApplication.amount_applied), 0),
        ).one()

        return {
            "total_discounts": discount_stats[0],
            "active_discounts": discount_stats[1],
            "inactive_discounts": discount_stats[2],
            "percentage_discounts": discount_stats[3],
            "fixed_amount_discounts": discount_stats[4],
            "bottle_return_discounts": discount_stats[5],
            "total_applications": usage_stats[0],
            "total_discount_given": float(usage_stats[1]),
            "avg_discount_amount": float(usage_stats[2]),
        }

    @staticmethod
    def total_pages(total: int, limit: int) -> int:
        return math.ceil(total / limit) if limit else 0

    @staticmethod
    def _validate_discount(data: dict) -> str:
        """Check the targeting and kind rules of a complete discount definition.

        Returns the normalised ``applicable_to`` value.
        """
        applicable_to = data.get("applicable_to")
        if not applicable_to:
            raise ValidationFailed("applicable_to is required. Must be either product_types or categories")
        if applicable_to == "all":
            raise ValidationFailed("Discounts must apply to either product_types or categories, not all products")
        if applicable_to not in APPLICABLE_TO_ALIASES:
            raise ValidationFailed(f"Unsupported applicable_to: {applicable_to}")
        applicable_to = APPLICABLE_TO_ALIASES[applicable_to]

        product_types = data.get("product_types") or []
        category_ids = data.get("category_ids") or []
        if applicable_to == "product_types":
            if not product_types:
                raise ValidationFailed("At least one product type must be selected when applicable_to is product_types")
            if category_ids:
                raise ValidationFailed("category_ids must be empty when applicable_to is product_types")
        else:
            if not category_ids:
                raise ValidationFailed("At least one category must be selected when applicable_to is categories")
            if product_types:
                raise ValidationFailed("product_types must be empty when applicable_to is categories")
            for category_id in category_ids:
                try:
                    uuid.UUID(str(category_id))
                except ValueError:
                    raise ValidationFailed(f"Invalid category_id format: {category_id}")

        kind = DiscountKind(data.get("type"))
        if kind is DiscountKind.PERCENTAGE and data.get("value") is not None and data["value"] > 100:
            raise ValidationFailed("Percentage discount value cannot exceed 100")
        if kind is DiscountKind.BOTTLE_RETURN and not data.get("bottle_return_count"):
            raise ValidationFailed("bottle_return_count is required for bottle_return discounts")

        start_date, end_date = data.get("start_date"), data.get("end_date")
        if start_date and end_date and start_date > end_date:
            raise ValidationFailed("start_date must be on or before end_date")

        return applicable_to
