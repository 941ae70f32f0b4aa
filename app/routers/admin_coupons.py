from __future__ import annotations

import logging
from decimal import Decimal
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.deps import get_tenant_id, require_admin_token
from app.models.coupon import Coupon
from app.schemas.coupon import CouponCreate, CouponRead, CouponUpdate
from app.services.coupons import DISCOUNT_TYPE_PERCENTAGE, _as_utc, coupon_analytics, normalize_code

router = APIRouter(
    prefix="/api/admin/coupons",
    tags=["admin-coupons"],
    dependencies=[Depends(require_admin_token)],
)
logger = logging.getLogger(__name__)


def _coupon_to_dict(coupon: Coupon) -> dict:
    return {
        "id": coupon.id,
        "code": coupon.code,
        "title": coupon.title,
        "discount_type": coupon.discount_type,
        "discount_value": float(coupon.discount_value),
        "min_order_amount": float(coupon.min_order_amount) if coupon.min_order_amount is not None else None,
        "max_discount_amount": float(coupon.max_discount_amount) if coupon.max_discount_amount is not None else None,
        "max_uses": coupon.max_uses,
        "used_count": int(coupon.used_count or 0),
        "active": bool(coupon.active),
        "start_date": coupon.start_date,
        "end_date": coupon.end_date,
        "terms_and_conditions": coupon.terms_and_conditions,
    }


def _get_coupon_or_404(db: Session, tenant_id: int, coupon_id: int) -> Coupon:
    coupon = db.query(Coupon).filter(Coupon.id == coupon_id, Coupon.tenant_id == tenant_id).first()
    if not coupon:
        raise HTTPException(status_code=404, detail="Coupon not found")
    return coupon


@router.get("", response_model=List[CouponRead])
def list_coupons(
    active: bool | None = Query(default=None),
    tenant_id: int = Depends(get_tenant_id),
    db: Session = Depends(get_db),
):
    query = db.query(Coupon).filter(Coupon.tenant_id == tenant_id)
    if active is not None:
        query = query.filter(Coupon.active.is_(active))
    return [_coupon_to_dict(coupon) for coupon in query.order_by(Coupon.created_at.desc(), Coupon.id.desc()).all()]


@router.post("", response_model=CouponRead, status_code=201)
def create_coupon(
    payload: CouponCreate,
    tenant_id: int = Depends(get_tenant_id),
    db: Session = Depends(get_db),
):
    duplicate = (
        db.query(Coupon.id)
        .filter(Coupon.tenant_id == tenant_id, func.upper(Coupon.code) == payload.code)
        .first()
    )
    if duplicate:
        raise HTTPException(status_code=409, detail="Coupon code already exists")

    coupon = Coupon(tenant_id=tenant_id, used_count=0, **payload.model_dump())
    db.add(coupon)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(status_code=409, detail="Coupon code already exists") from exc
    db.refresh(coupon)
    logger.info("coupon created", extra={"coupon_code": coupon.code})
    return _coupon_to_dict(coupon)


@router.get("/analytics")
def read_coupon_analytics(
    tenant_id: int = Depends(get_tenant_id),
    db: Session = Depends(get_db),
):
    analytics = coupon_analytics(db, tenant_id)
    analytics["total_discount_given"] = float(analytics["total_discount_given"])
    for row in analytics["top_coupons"]:
        row["total_discount"] = float(row["total_discount"])
    for row in analytics["recent_redemptions"]:
        row["order_amount"] = float(row["order_amount"])
        row["discount_amount"] = float(row["discount_amount"])
    return analytics


@router.get("/{coupon_id}", response_model=CouponRead)
def read_coupon(
    coupon_id: int,
    tenant_id: int = Depends(get_tenant_id),
    db: Session = Depends(get_db),
):
    return _coupon_to_dict(_get_coupon_or_404(db, tenant_id, coupon_id))


@router.patch("/{coupon_id}", response_model=CouponRead)
def update_coupon(
    coupon_id: int,
    payload: CouponUpdate,
    tenant_id: int = Depends(get_tenant_id),
    db: Session = Depends(get_db),
):
    coupon = _get_coupon_or_404(db, tenant_id, coupon_id)
    changes = payload.model_dump(exclude_unset=True)

    discount_type = changes.get("discount_type", coupon.discount_type)
    discount_value = changes.get("discount_value", coupon.discount_value)
    if discount_type == DISCOUNT_TYPE_PERCENTAGE and Decimal(str(discount_value)) > 100:
        raise HTTPException(status_code=422, detail="percentage discount_value must be between 0 and 100")

    max_uses = changes.get("max_uses", coupon.max_uses)
    if max_uses and int(coupon.used_count or 0) > int(max_uses):
        raise HTTPException(status_code=422, detail="max_uses cannot be lower than the current used count")

    start_date = changes.get("start_date", coupon.start_date)
    end_date = changes.get("end_date", coupon.end_date)
    if start_date and end_date and _as_utc(end_date) < _as_utc(start_date):
        raise HTTPException(status_code=422, detail="end_date must not be before start_date")

    for field, value in changes.items():
        setattr(coupon, field, value)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(status_code=422, detail="Coupon update violates a constraint") from exc
    db.refresh(coupon)
    logger.info("coupon updated", extra={"coupon_code": normalize_code(coupon.code)})
    return _coupon_to_dict(coupon)


@router.delete("/{coupon_id}")
def deactivate_coupon(
    coupon_id: int,
    tenant_id: int = Depends(get_tenant_id),
    db: Session = Depends(get_db),
):
    coupon = _get_coupon_or_404(db, tenant_id, coupon_id)
    coupon.active = False
    db.commit()
    return {"ok": True, "id": coupon.id, "active": False}
