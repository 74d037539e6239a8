from pydantic import BaseModel, Field, ConfigDict
from typing import List, Optional, Literal
from datetime import date, datetime
from decimal import Decimal

from discount_api.models.discount import DiscountKind

ProductType = Literal["general", "perfume", "shoes", "clothes", "accessories"]
PromotionType = Literal[
    "regular_discount", "flash_sale", "seasonal", "annual", "monthly", "monthly_campaign"
]
PaymentStatus = Literal["complete", "partial", "pending"]


# Request schemas
class DiscountCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    type: DiscountKind = Field(..., description="'percentage', 'fixed_amount' or 'bottle_return'")
    value: Decimal = Field(..., ge=0, description="Percentage points or currency units")
    min_purchase_amount: Optional[Decimal] = Field(default=None, ge=0)
    max_discount_amount: Optional[Decimal] = Field(default=None, ge=0)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    usage_limit: Optional[int] = Field(default=None, ge=1, description="Global number of applications")
    usage_per_customer: Optional[int] = Field(default=None, ge=1)
    # left as a plain string so "all" or a missing value reach the service validator
    applicable_to: Optional[str] = Field(default=None, description="'product_types' or 'categories'")
    product_types: Optional[List[ProductType]] = None
    category_ids: Optional[List[str]] = None
    customer_tiers: Optional[List[str]] = None
    bottle_return_count: Optional[int] = Field(default=None, ge=1)
    is_active: Optional[bool] = Field(default=True)
    auto_apply: Optional[bool] = Field(default=False)
    discount_type: Optional[PromotionType] = Field(default="regular_discount")
    allow_partial_payment: Optional[bool] = Field(default=False)
    created_by: Optional[str] = None


class DiscountUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    type: Optional[DiscountKind] = None
    value: Optional[Decimal] = Field(None, ge=0)
    min_purchase_amount: Optional[Decimal] = Field(None, ge=0)
    max_discount_amount: Optional[Decimal] = Field(None, ge=0)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    usage_limit: Optional[int] = Field(None, ge=1)
    usage_per_customer: Optional[int] = Field(None, ge=1)
    applicable_to: Optional[str] = None
    product_types: Optional[List[ProductType]] = None
    category_ids: Optional[List[str]] = None
    customer_tiers: Optional[List[str]] = None
    bottle_return_count: Optional[int] = Field(None, ge=1)
    is_active: Optional[bool] = None
    auto_apply: Optional[bool] = None
    discount_type: Optional[PromotionType] = None
    allow_partial_payment: Optional[bool] = None


# Response schemas
class DiscountResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    type: DiscountKind
    value: float
    min_purchase_amount: Optional[float] = None
    max_discount_amount: Optional[float] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    usage_limit: Optional[int] = None
    usage_per_customer: Optional[int] = None
    applicable_to: str
    product_types: Optional[List[str]] = None
    category_ids: Optional[List[str]] = None
    customer_tiers: Optional[List[str]] = None
    bottle_return_count: Optional[int] = None
    is_active: bool
    auto_apply: bool
    discount_type: str
    allow_partial_payment: bool
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class DiscountDetailResponse(DiscountResponse):
    total_applications: int = 0
    total_discount_given: float = 0.0


class AvailableDiscountResponse(DiscountResponse):
    customer_usage_count: int = 0


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class DiscountListResponse(BaseModel):
    discounts: List[DiscountDetailResponse]
    pagination: Pagination


class AvailableDiscountsResponse(BaseModel):
    discounts: List[AvailableDiscountResponse]


# Engine request / response schemas
class ValidateDiscountRequest(BaseModel):
    discount_id: str
    customer_id: str
    order_amount: Decimal = Field(..., ge=0)
    payment_status: PaymentStatus = "complete"


class EligibilityResponse(BaseModel):
    eligible: bool
    reasons: List[str]


class CalculateDiscountRequest(BaseModel):
    discount_id: str
    order_amount: Decimal = Field(..., ge=0)


class CalculateDiscountResponse(BaseModel):
    original_amount: float
    discount_amount: float
    final_amount: float
    discount_percentage: Optional[float] = None


class ApplyDiscountRequest(BaseModel):
    order_id: str = Field(..., min_length=1)
    discount_id: str
    customer_id: str = Field(..., min_length=1)
    order_amount: Decimal = Field(..., ge=0)
    payment_status: PaymentStatus = "complete"


class ApplyDiscountResponse(BaseModel):
    application_id: str
    discount_amount: float
    final_amount: float


class DiscountApplicationResponse(BaseModel):
    id: str
    order_id: str
    discount_id: str
    discount_type: DiscountKind
    discount_name: Optional[str] = None
    discount_value: Optional[float] = None
    amount_applied: float
    discount_percentage: Optional[float] = None
    original_amount: float
    final_amount: float
    applied_at: Optional[datetime] = None


class OrderApplicationsResponse(BaseModel):
    applications: List[DiscountApplicationResponse]


class DiscountStatsResponse(BaseModel):
    total_discounts: int
    active_discounts: int
    inactive_discounts: int
    percentage_discounts: int
    fixed_amount_discounts: int
    bottle_return_discounts: int
    total_applications: int
    total_discount_given: float
    avg_discount_amount: float
