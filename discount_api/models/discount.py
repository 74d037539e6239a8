import uuid
from enum import Enum

from sqlalchemy import (
    Column, String, Integer, Numeric, Boolean, Date, DateTime, Enum as SAEnum, JSON, Text,
    ForeignKey, Index, UniqueConstraint, func, text,
)
from sqlalchemy.orm import relationship

from discount_api.database import Base


class DiscountKind(str, Enum):
    PERCENTAGE = "percentage"
    FIXED_AMOUNT = "fixed_amount"
    BOTTLE_RETURN = "bottle_return"


DiscountKinds = tuple(k.value for k in DiscountKind)
discount_kind_enum = SAEnum(*DiscountKinds, name="discount_kind")


def generate_uuid() -> str:
    return str(uuid.uuid4())


class Discount(Base):
    __tablename__ = "discounts"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    type = Column(discount_kind_enum, nullable=False, index=True)
    value = Column(Numeric(12, 2), nullable=False)
    min_purchase_amount = Column(Numeric(12, 2), nullable=True)
    max_discount_amount = Column(Numeric(12, 2), nullable=True)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    usage_limit = Column(Integer, nullable=True)
    usage_per_customer = Column(Integer, nullable=True)
    applicable_to = Column(String(20), nullable=False)
    product_types = Column(JSON, nullable=True)
    category_ids = Column(JSON, nullable=True)
    customer_tiers = Column(JSON, nullable=True)
    bottle_return_count = Column(Integer, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    auto_apply = Column(Boolean, default=False, nullable=False)
    discount_type = Column(String(30), default="regular_discount", nullable=False)
    allow_partial_payment = Column(Boolean, default=False, nullable=False)
    created_by = Column(String(64), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    applications = relationship(
        "DiscountApplication", back_populates="discount", cascade="all, delete-orphan"
    )
    usages = relationship(
        "CustomerDiscountUsage", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("ix_discounts_active_type", "is_active", "type"),
    )


class DiscountApplication(Base):
    __tablename__ = "discount_applications"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    order_id = Column(String(64), nullable=False, index=True)
    discount_id = Column(
        String(36), ForeignKey("discounts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    # kind at the time of application
    discount_type = Column(discount_kind_enum, nullable=False)
    amount_applied = Column(Numeric(12, 2), nullable=False)
    discount_percentage = Column(Numeric(5, 2), nullable=True)
    original_amount = Column(Numeric(12, 2), nullable=False)
    final_amount = Column(Numeric(12, 2), nullable=False)
    applied_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    discount = relationship("Discount", back_populates="applications")

    __table_args__ = (
        # one bottle return per order, whichever discount it comes from
        Index(
            "uq_discount_applications_order_bottle_return",
            "order_id",
            unique=True,
            postgresql_where=text("discount_type = 'bottle_return'"),
            sqlite_where=text("discount_type = 'bottle_return'"),
        ),
    )


class CustomerDiscountUsage(Base):
    __tablename__ = "customer_discount_usage"

    id = Column(Integer, primary_key=True, autoincrement=True)
    customer_id = Column(String(64), nullable=False, index=True)
    discount_id = Column(
        String(36), ForeignKey("discounts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    usage_count = Column(Integer, default=0, nullable=False)
    last_used_at = Column(DateTime(timezone=True), nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint("customer_id", "discount_id", name="uq_customer_discount_usage"),
    )
