from pydantic import BaseModel, Field, ConfigDict
from typing import Any, List, Literal, Optional
from datetime import date, datetime
from decimal import Decimal

RuleType = Literal["percentage", "bottle_return", "stacking", "temporal", "customer_tier"]
CampaignType = Literal["holiday", "loyalty_tier", "seasonal", "special_event"]
TargetAudience = Literal["all", "specific_tier", "new_customers", "returning_customers"]


class BusinessRuleUpsert(BaseModel):
    rule_key: str = Field(..., min_length=1, max_length=100)
    rule_value: Any = Field(..., description="Any JSON value")
    rule_type: RuleType
    description: Optional[str] = ""


class BusinessRuleResponse(BaseModel):
    rule_key: str
    rule_value: Any
    rule_type: str
    description: Optional[str] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class BusinessRulesResponse(BaseModel):
    rules: List[BusinessRuleResponse]


class CampaignCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    type: CampaignType
    discount_ids: List[str]
    start_date: date
    end_date: date
    target_audience: TargetAudience = "all"
    budget: Optional[Decimal] = Field(default=None, ge=0)
    is_active: bool = True
    created_by: Optional[str] = None


class CampaignResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    type: str
    discount_ids: List[str]
    start_date: date
    end_date: date
    target_audience: str
    budget: Optional[float] = None
    is_active: bool
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    discount_count: int = 0

    model_config = ConfigDict(from_attributes=True)


class CampaignsResponse(BaseModel):
    campaigns: List[CampaignResponse]
