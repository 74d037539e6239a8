
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional
from decimal import Decimal
from discount_api.config import Config
from discount_api.database import get_db
from discount_api.models.discount import DiscountKind
from discount_api.schemas.discount import (
    DiscountCreate, DiscountUpdate, DiscountResponse, DiscountDetailResponse, DiscountListResponse,
    Pagination, AvailableDiscountResponse, AvailableDiscountsResponse, ValidateDiscountRequest,
    EligibilityResponse, CalculateDiscountRequest, CalculateDiscountResponse, ApplyDiscountRequest,
    ApplyDiscountResponse, DiscountApplicationResponse, OrderApplicationsResponse,
    DiscountStatsResponse, PaymentStatus,
)
from discount_api.services.discount_service import DiscountService
from discount_api.services.discount_engine import DiscountEngine
from discount_api.services.discount_calculator import round2
from discount_api.services.usage_ledger import UsageLedger

router = APIRouter(prefix="/discounts", tags=["discounts"])


def _detail(row) -> DiscountDetailResponse:
    discount, total_applications, total_discount_given = row
    return DiscountDetailResponse.model_validate(discount).model_copy(update={
        "total_applications": int(total_applications or 0),
        "total_discount_given": float(total_discount_given or 0),
    })


@router.post("", response_model=DiscountResponse, status_code=201)
def create_discount(discount: DiscountCreate, db: Session = Depends(get_db)):
    return DiscountService.create_discount(db, discount)


@router.get("", response_model=DiscountListResponse)
def list_discounts(
    type: Optional[DiscountKind] = None,
    is_active: bool = True,
    search: str = "",
    min_purchase_amount: Decimal = Query(Decimal(0), ge=0),
    payment_status: PaymentStatus = "complete",
    page: int = Query(1, ge=1),
    limit: int = Query(Config.DEFAULT_PAGE_SIZE, ge=1),
    db: Session = Depends(get_db),
):
    limit = min(limit, Config.MAX_PAGE_SIZE)
    rows, total = DiscountService.get_discounts(
        db,
        type=type.value if type else None,
        is_active=is_active,
        search=search,
        min_purchase_amount=min_purchase_amount,
        payment_status=payment_status,
        page=page,
        limit=limit,
    )
    return DiscountListResponse(
        discounts=[_detail(row) for row in rows],
        pagination=Pagination(
            page=page, limit=limit, total=total, total_pages=DiscountService.total_pages(total, limit)
        ),
    )


@router.get("/stats/overview", response_model=DiscountStatsResponse)
def discount_stats(db: Session = Depends(get_db)):
    return DiscountService.get_stats(db)


@router.get("/available/{customer_id}", response_model=AvailableDiscountsResponse)
def available_discounts(
    customer_id: str,
    order_amount: Decimal = Query(Decimal(0), ge=0),
    customer_tier: Optional[str] = None,
    db: Session = Depends(get_db),
):
    rows = DiscountService.get_available_discounts(db, customer_id, order_amount, customer_tier)
    return AvailableDiscountsResponse(discounts=[
        AvailableDiscountResponse.model_validate(d).model_copy(update={"customer_usage_count": int(usage)})
        for d, usage in rows
    ])


@router.get("/applications/{order_id}", response_model=OrderApplicationsResponse)
def order_applications(order_id: str, db: Session = Depends(get_db)):
    applications = []
    for a in UsageLedger.get_order_applications(db, order_id):
        applications.append(DiscountApplicationResponse(
            id=a.id,
            order_id=a.order_id,
            discount_id=a.discount_id,
            discount_type=a.discount_type,
            discount_name=a.discount.name if a.discount else None,
            discount_value=float(a.discount.value) if a.discount else None,
            amount_applied=float(a.amount_applied),
            discount_percentage=float(a.discount_percentage) if a.discount_percentage is not None else None,
            original_amount=float(a.original_amount),
            final_amount=float(a.final_amount),
            applied_at=a.applied_at,
        ))
    return OrderApplicationsResponse(applications=applications)


@router.post("/validate", response_model=EligibilityResponse)
def validate_discount(payload: ValidateDiscountRequest, db: Session = Depends(get_db)):
    result = DiscountEngine.evaluate(
        db, payload.discount_id, payload.customer_id, payload.order_amount, payload.payment_status
    )
    return EligibilityResponse(eligible=result.eligible, reasons=result.reasons)


@router.post("/calculate", response_model=CalculateDiscountResponse)
def calculate_discount(payload: CalculateDiscountRequest, db: Session = Depends(get_db)):
    discount = DiscountService.get_discount_or_404(db, payload.discount_id)
    discount_amount = DiscountEngine.calculate(discount, payload.order_amount)
    return CalculateDiscountResponse(
        original_amount=float(payload.order_amount),
        discount_amount=float(discount_amount),
        final_amount=float(round2(payload.order_amount - discount_amount)),
        discount_percentage=float(discount.value) if discount.type == DiscountKind.PERCENTAGE.value else None,
    )


@router.post("/apply", response_model=ApplyDiscountResponse)
def apply_discount(payload: ApplyDiscountRequest, db: Session = Depends(get_db)):
    applied = DiscountEngine.apply(
        db,
        payload.order_id,
        payload.discount_id,
        payload.customer_id,
        payload.order_amount,
        payload.payment_status,
    )
    return ApplyDiscountResponse(
        application_id=applied.application_id,
        discount_amount=float(applied.discount_amount),
        final_amount=float(applied.final_amount),
    )


@router.get("/{discount_id}", response_model=DiscountDetailResponse)
def get_discount(discount_id: str, db: Session = Depends(get_db)):
    return _detail(DiscountService.get_discount_with_totals(db, discount_id))


@router.put("/{discount_id}", response_model=DiscountResponse)
def update_discount(discount_id: str, payload: DiscountUpdate, db: Session = Depends(get_db)):
    return DiscountService.update_discount(db, discount_id, payload)


@router.delete("/{discount_id}", status_code=204)
def delete_discount(discount_id: str, db: Session = Depends(get_db)):
    DiscountService.delete_discount(db, discount_id)
    return
