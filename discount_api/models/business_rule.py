from sqlalchemy import Column, String, Boolean, Date, DateTime, JSON, Numeric, Text, func

from discount_api.database import Base
from discount_api.models.discount import generate_uuid


class BusinessRule(Base):
    __tablename__ = "discount_business_rules"

    rule_key = Column(String(100), primary_key=True)
    rule_value = Column(JSON, nullable=False)
    rule_type = Column(String(20), nullable=False, index=True)
    description = Column(Text, nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class DiscountCampaign(Base):
    __tablename__ = "discount_campaigns"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    type = Column(String(20), nullable=False)
    discount_ids = Column(JSON, nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    target_audience = Column(String(30), default="all", nullable=False)
    budget = Column(Numeric(12, 2), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_by = Column(String(64), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
