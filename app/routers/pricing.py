from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.deps import get_tenant_id
from app.fsm.coupon_flow import apply_coupon
from app.schemas.pricing import (
    PricingQuoteRequest,
    PricingQuoteResponse,
    ValidateCouponPayload,
    ValidateCouponResponse,
)
from app.services.money import ZERO, to_money
from app.services.pricing import assess_service_fee, compose_total, compute_pricing
from app.services.pricing_errors import (
    CouponRejection,
    InvalidCouponTransition,
    PricingError,
)

router = APIRouter(prefix="/api/store", tags=["pricing"])


@router.post("/pricing/quote", response_model=PricingQuoteResponse)
def quote_stay(
    payload: PricingQuoteRequest,
    tenant_id: int = Depends(get_tenant_id),
    db: Session = Depends(get_db),
):
    try:
        result = compute_pricing(
            db,
            tenant_id=tenant_id,
            property_id=payload.property_id,
            check_in=payload.check_in,
            check_out=payload.check_out,
            guest_count=payload.guest_count,
            coupon_code=payload.coupon_code,
        )
    except PricingError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.as_detail()) from exc

    return PricingQuoteResponse(
        property_id=payload.property_id,
        nights=result.nights,
        nightly_rate=float(result.nightly_rate),
        currency=result.currency,
        subtotal=float(result.subtotal),
        service_fee=float(result.service_fee),
        discount_applied=float(result.discount_applied),
        final_total=float(result.final_total),
        loyalty_points_earned=result.loyalty_points_earned,
        jewels_earned=result.jewels_earned,
        coupon_code=result.coupon_code,
    )


@router.post("/validate-coupon", response_model=ValidateCouponResponse)
def validate_coupon(
    payload: ValidateCouponPayload,
    tenant_id: int = Depends(get_tenant_id),
    db: Session = Depends(get_db),
):
    subtotal = to_money(payload.subtotal)
    service_fee = assess_service_fee(subtotal)

    try:
        application, validation = apply_coupon(db, tenant_id=tenant_id, code=payload.code, subtotal=subtotal)
    except InvalidCouponTransition:
        return ValidateCouponResponse(
            valid=False,
            status="rejected",
            code=None,
            discount_amount=0.0,
            new_total=float(compose_total(subtotal, service_fee)),
            reason=CouponRejection.NOT_FOUND.value,
            message="Please enter a coupon code",
        )

    discount = validation.discount_amount if validation.valid else ZERO
    return ValidateCouponResponse(
        valid=validation.valid,
        status=application.state,
        code=application.code,
        discount_amount=float(discount),
        new_total=float(compose_total(subtotal, service_fee, discount)),
        reason=validation.reason.value if validation.reason else None,
        message=validation.message,
    )
