"""
Usage ledger: discount applications and per-customer usage counters.

Nothing here commits; callers own the transaction so an application row and
its usage increment land (or roll back) together.
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import cast, func, insert, literal, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from discount_api.database import dialect_name
from discount_api.models.discount import (
    CustomerDiscountUsage, Discount, DiscountApplication, DiscountKind, generate_uuid,
)

logger = logging.getLogger(__name__)

_UPSERT_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


class UsageLedger:

    @staticmethod
    def count_applications(db: Session, discount_id: str) -> int:
        return db.query(func.count(DiscountApplication.id)).filter(
            DiscountApplication.discount_id == discount_id
        ).scalar() or 0

    @staticmethod
    def get_customer_usage(db: Session, customer_id: str, discount_id: str) -> Optional[CustomerDiscountUsage]:
        return db.query(CustomerDiscountUsage).filter(
            CustomerDiscountUsage.customer_id == customer_id,
            CustomerDiscountUsage.discount_id == discount_id,
        ).first()

    @staticmethod
    def customer_usage_count(db: Session, customer_id: str, discount_id: str) -> int:
        usage = UsageLedger.get_customer_usage(db, customer_id, discount_id)
        return usage.usage_count if usage else 0

    @staticmethod
    def has_bottle_return_application(db: Session, order_id: str) -> bool:
        return db.query(DiscountApplication.id).filter(
            DiscountApplication.order_id == order_id,
            DiscountApplication.discount_type == DiscountKind.BOTTLE_RETURN.value,
        ).first() is not None

    @staticmethod
    def record_application(
        db: Session,
        order_id: str,
        discount: Discount,
        amount_applied: Decimal,
        percentage_applied: Optional[Decimal],
        original_amount: Decimal,
        final_amount: Decimal,
    ) -> Optional[str]:
        """Insert one application row and return its id.

        With a global ``usage_limit`` on the discount, the row is written by an
        ``INSERT ... SELECT ... WHERE count < limit`` so the count and the write
        are one statement. Returns None when the limit was already reached.
        """
        table = DiscountApplication.__table__
        application_id = generate_uuid()
        values = {
            "id": application_id,
            "order_id": order_id,
            "discount_id": discount.id,
            "discount_type": DiscountKind(discount.type).value,
            "amount_applied": amount_applied,
            "discount_percentage": percentage_applied,
            "original_amount": original_amount,
            "final_amount": final_amount,
        }

        if discount.usage_limit is None:
            db.execute(insert(table).values(**values))
            return application_id

        used = select(func.count(table.c.id)).where(
            table.c.discount_id == discount.id
        ).scalar_subquery()
        source = select(
            *[cast(literal(value), table.c[key].type).label(key) for key, value in values.items()]
        ).where(used < discount.usage_limit)
        result = db.execute(insert(table).from_select(list(values), source))
        if result.rowcount == 0:
            logger.warning("Global usage limit of discount %s reached at insert", discount.id)
            return None
        return application_id

    @staticmethod
    def upsert_customer_usage(
        db: Session, customer_id: str, discount_id: str, usage_per_customer: Optional[int] = None
    ) -> bool:
        """Insert a usage row with count 1 or increment the existing one.

        With ``usage_per_customer`` set, the increment only happens while the
        stored count is below the cap. Returns False when the cap stopped it.
        """
        dialect_insert = _UPSERT_INSERTS.get(dialect_name(db))
        if dialect_insert is None:
            raise RuntimeError(f"Atomic usage upsert is not supported on {dialect_name(db)}")

        table = CustomerDiscountUsage.__table__
        now = datetime.now(timezone.utc)
        stmt = dialect_insert(table).values(
            customer_id=customer_id,
            discount_id=discount_id,
            usage_count=1,
            last_used_at=now,
            updated_at=now,
        )
        where = None
        if usage_per_customer is not None:
            where = table.c.usage_count < usage_per_customer
        stmt = stmt.on_conflict_do_update(
            index_elements=[table.c.customer_id, table.c.discount_id],
            set_={
                "usage_count": table.c.usage_count + 1,
                "last_used_at": now,
                "updated_at": now,
            },
            where=where,
        )
        result = db.execute(stmt)
        return result.rowcount > 0

    @staticmethod
    def get_order_applications(db: Session, order_id: str) -> List[DiscountApplication]:
        return db.query(DiscountApplication).filter(
            DiscountApplication.order_id == order_id
        ).order_by(DiscountApplication.applied_at.desc()).all()
