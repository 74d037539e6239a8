
import logging
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from discount_api.exceptions import ValidationFailed
from discount_api.models.business_rule import BusinessRule, DiscountCampaign
from discount_api.models.discount import Discount
from discount_api.schemas.business_rule import BusinessRuleUpsert, CampaignCreate

logger = logging.getLogger(__name__)


class BusinessRuleService:
    """Discount business rules and campaign grouping"""

    @staticmethod
    def get_rules(db: Session, rule_type: Optional[str] = None) -> List[BusinessRule]:
        q = db.query(BusinessRule)
        if rule_type:
            q = q.filter(BusinessRule.rule_type == rule_type)
        return q.order_by(BusinessRule.rule_type, BusinessRule.rule_key).all()

    @staticmethod
    def upsert_rule(db: Session, rule_data: BusinessRuleUpsert) -> BusinessRule:
        rule = db.get(BusinessRule, rule_data.rule_key)
        if rule is None:
            rule = BusinessRule(rule_key=rule_data.rule_key)
            db.add(rule)
        rule.rule_value = rule_data.rule_value
        rule.rule_type = rule_data.rule_type
        rule.description = rule_data.description
        db.commit()
        db.refresh(rule)
        logger.info("Business rule %s (%s) saved", rule.rule_key, rule.rule_type)
        return rule

    @staticmethod
    def get_campaigns(db: Session) -> List[Tuple[DiscountCampaign, int]]:
        """Campaigns, newest first, with how many of their discounts still exist."""
        campaigns = db.query(DiscountCampaign).order_by(DiscountCampaign.created_at.desc()).all()
        referenced = {d_id for c in campaigns for d_id in (c.discount_ids or [])}
        existing = set()
        if referenced:
            existing = {row[0] for row in db.query(Discount.id).filter(Discount.id.in_(referenced)).all()}
        return [(c, sum(1 for d_id in (c.discount_ids or []) if d_id in existing)) for c in campaigns]

    @staticmethod
    def create_campaign(db: Session, campaign_data: CampaignCreate) -> DiscountCampaign:
        if campaign_data.start_date > campaign_data.end_date:
            raise ValidationFailed("start_date must be on or before end_date")
        if campaign_data.discount_ids:
            found = db.query(Discount.id).filter(Discount.id.in_(campaign_data.discount_ids)).count()
            if found != len(set(campaign_data.discount_ids)):
                raise ValidationFailed("discount_ids reference unknown discounts")

        campaign = DiscountCampaign(**campaign_data.model_dump())
        db.add(campaign)
        db.commit()
        db.refresh(campaign)
        logger.info("Created campaign %s with %d discounts", campaign.id, len(campaign.discount_ids))
        return campaign
