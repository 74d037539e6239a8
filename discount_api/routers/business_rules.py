
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import Optional
from discount_api.database import get_db
from discount_api.schemas.business_rule import (
    BusinessRuleUpsert, BusinessRuleResponse, BusinessRulesResponse, RuleType,
    CampaignCreate, CampaignResponse, CampaignsResponse,
)
from discount_api.services.business_rule_service import BusinessRuleService

# shares the /discounts prefix; must be included before the discounts router
# so "/discounts/campaigns" is not read as a discount id
router = APIRouter(prefix="/discounts", tags=["discount rules"])


@router.get("/rules/business", response_model=BusinessRulesResponse)
def list_business_rules(rule_type: Optional[RuleType] = None, db: Session = Depends(get_db)):
    return BusinessRulesResponse(rules=[
        BusinessRuleResponse.model_validate(r) for r in BusinessRuleService.get_rules(db, rule_type)
    ])


@router.post("/rules/business", response_model=BusinessRuleResponse)
def upsert_business_rule(payload: BusinessRuleUpsert, db: Session = Depends(get_db)):
    return BusinessRuleService.upsert_rule(db, payload)


@router.get("/campaigns", response_model=CampaignsResponse)
def list_campaigns(db: Session = Depends(get_db)):
    return CampaignsResponse(campaigns=[
        CampaignResponse.model_validate(c).model_copy(update={"discount_count": count})
        for c, count in BusinessRuleService.get_campaigns(db)
    ])


@router.post("/campaigns", response_model=CampaignResponse, status_code=201)
def create_campaign(payload: CampaignCreate, db: Session = Depends(get_db)):
    campaign = BusinessRuleService.create_campaign(db, payload)
    return CampaignResponse.model_validate(campaign).model_copy(
        update={"discount_count": len(campaign.discount_ids)}
    )
