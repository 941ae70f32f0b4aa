from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from sqlalchemy import desc, func, or_, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.coupon import Coupon, CouponRedemption
from app.services.money import ZERO, format_inr, to_money
from app.services.pricing_errors import COUPON_REJECTION_MESSAGES, CouponRejection

logger = logging.getLogger(__name__)

DISCOUNT_TYPE_PERCENTAGE = "percentage"
DISCOUNT_TYPE_FIXED = "fixed"
DISCOUNT_TYPES = {DISCOUNT_TYPE_PERCENTAGE, DISCOUNT_TYPE_FIXED}
REDEMPTION_FAILED = "RedemptionFailed"


@dataclass(frozen=True)
class CouponValidation:
    valid: bool
    discount_amount: Decimal = ZERO
    reason: CouponRejection | None = None
    message: str = ""
    coupon_code: str | None = None

    @classmethod
    def rejected(cls, reason: CouponRejection, code: str | None, message: str | None = None) -> "CouponValidation":
        return cls(
            valid=False,
            reason=reason,
            message=message or COUPON_REJECTION_MESSAGES[reason],
            coupon_code=code,
        )


@dataclass(frozen=True)
class RedemptionResult:
    success: bool
    new_used_count: int | None = None
    reason: str | None = None
    message: str = ""
    redemption_id: int | None = None
    already_redeemed: bool = False

    @classmethod
    def failed(cls, reason: CouponRejection | str, message: str | None = None) -> "RedemptionResult":
        if isinstance(reason, CouponRejection):
            return cls(success=False, reason=reason.value, message=message or COUPON_REJECTION_MESSAGES[reason])
        return cls(success=False, reason=reason, message=message or "Coupon redemption could not be recorded.")


def normalize_code(code: str | None) -> str:
    return (code or "").strip().upper()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def find_coupon_by_code(db: Session, tenant_id: int, code: str | None) -> Coupon | None:
    normalized = normalize_code(code)
    if not normalized:
        return None
    return (
        db.query(Coupon)
        .filter(Coupon.tenant_id == tenant_id, func.upper(Coupon.code) == normalized)
        .first()
    )


def calculate_discount(coupon: Coupon, subtotal: Decimal) -> Decimal:
    """Discount for ``subtotal``; never more than the subtotal itself.

    Percentage coupons honour ``max_discount_amount`` when it is set and
    non-zero. Fixed coupons ignore that cap.
    """
    subtotal = to_money(subtotal)
    value = to_money(coupon.discount_value)
    discount_type = (coupon.discount_type or "").strip().lower()

    if discount_type == DISCOUNT_TYPE_PERCENTAGE:
        discount = to_money(subtotal * value / Decimal("100"))
        cap = to_money(coupon.max_discount_amount) if coupon.max_discount_amount is not None else ZERO
        if cap > 0 and discount > cap:
            discount = cap
    elif discount_type == DISCOUNT_TYPE_FIXED:
        discount = value
    else:
        raise ValueError(f"Unknown discount type: {coupon.discount_type}")

    if discount > subtotal:
        discount = subtotal
    if discount < 0:
        discount = ZERO
    return discount


def validate_coupon(coupon: Coupon | None, subtotal: Decimal, now: datetime | None = None) -> CouponValidation:
    """Check eligibility of ``coupon`` against a pre-fee subtotal.

    Checks run in a fixed order and stop at the first failure: existence,
    active flag, validity window, minimum order, usage cap.
    """
    if coupon is None:
        return CouponValidation.rejected(CouponRejection.NOT_FOUND, None)

    code = normalize_code(coupon.code)
    if not coupon.active:
        return CouponValidation.rejected(CouponRejection.INACTIVE, code)

    now = _as_utc(now or utcnow())
    if coupon.start_date is not None and now < _as_utc(coupon.start_date):
        return CouponValidation.rejected(CouponRejection.NOT_YET_VALID, code)
    if coupon.end_date is not None and now > _as_utc(coupon.end_date):
        return CouponValidation.rejected(CouponRejection.EXPIRED, code)

    subtotal = to_money(subtotal)
    if coupon.min_order_amount is not None:
        minimum = to_money(coupon.min_order_amount)
        if subtotal < minimum:
            shortfall = minimum - subtotal
            return CouponValidation.rejected(
                CouponRejection.BELOW_MINIMUM_ORDER,
                code,
                message=(
                    f"Add {format_inr(shortfall)} more to use this coupon. "
                    f"Minimum booking amount is {format_inr(minimum)}."
                ),
            )

    if coupon.max_uses and int(coupon.used_count or 0) >= int(coupon.max_uses):
        return CouponValidation.rejected(CouponRejection.USAGE_LIMIT_REACHED, code)

    discount = calculate_discount(coupon, subtotal)
    if (coupon.discount_type or "").strip().lower() == DISCOUNT_TYPE_PERCENTAGE:
        label = f"{to_money(coupon.discount_value).normalize():f}% off"
    else:
        label = f"{format_inr(coupon.discount_value)} off"
    return CouponValidation(
        valid=True,
        discount_amount=discount,
        message=f"Coupon applied! {label}",
        coupon_code=code,
    )


def check_coupon(
    db: Session,
    tenant_id: int,
    code: str | None,
    subtotal: Decimal,
    now: datetime | None = None,
) -> CouponValidation:
    coupon = find_coupon_by_code(db, tenant_id, code)
    validation = validate_coupon(coupon, subtotal, now=now)
    if not validation.valid:
        logger.info(
            "coupon rejected",
            extra={"coupon_code": normalize_code(code), "reason": validation.reason.value},
        )
    return validation


def find_redemption(db: Session, coupon_id: int, booking_id: int) -> CouponRedemption | None:
    return (
        db.query(CouponRedemption)
        .filter(CouponRedemption.coupon_id == coupon_id, CouponRedemption.booking_id == booking_id)
        .first()
    )


def _already_redeemed(db: Session, coupon_id: int, existing: CouponRedemption) -> RedemptionResult:
    used_count = db.query(Coupon.used_count).filter(Coupon.id == coupon_id).scalar()
    return RedemptionResult(
        success=True,
        new_used_count=int(used_count or 0),
        redemption_id=existing.id,
        already_redeemed=True,
        message="Coupon already redeemed for this booking.",
    )


def _has_remaining_uses():
    return or_(
        Coupon.max_uses.is_(None),
        Coupon.max_uses == 0,
        Coupon.used_count < Coupon.max_uses,
    )


def redeem_coupon(
    db: Session,
    *,
    tenant_id: int,
    code: str,
    booking_id: int,
    guest_email: str | None,
    order_amount: Decimal,
    discount_amount: Decimal,
    guest_name: str | None = None,
) -> RedemptionResult:
    """Consume one use of a coupon for a paid booking.

    The usage counter is incremented by a single conditional UPDATE so two
    bookings racing for the last use cannot both succeed. Business failures are
    returned, never raised.
    """
    coupon = find_coupon_by_code(db, tenant_id, code)
    if coupon is None:
        return RedemptionResult.failed(CouponRejection.NOT_FOUND)

    existing = find_redemption(db, coupon.id, booking_id)
    if existing is not None:
        return _already_redeemed(db, coupon.id, existing)

    if not coupon.active:
        return RedemptionResult.failed(CouponRejection.INACTIVE)

    coupon_id = coupon.id
    coupon_code = normalize_code(coupon.code)
    try:
        result = db.execute(
            update(Coupon)
            .where(Coupon.id == coupon_id, Coupon.tenant_id == tenant_id, _has_remaining_uses())
            .values(used_count=Coupon.used_count + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            db.rollback()
            return RedemptionResult.failed(CouponRejection.USAGE_LIMIT_REACHED)

        redemption = CouponRedemption(
            tenant_id=tenant_id,
            coupon_id=coupon_id,
            coupon_code=coupon_code,
            booking_id=booking_id,
            guest_email=(guest_email or "").strip().lower() or None,
            guest_name=guest_name,
            order_amount=to_money(order_amount),
            discount_amount=to_money(discount_amount),
        )
        db.add(redemption)
        db.commit()
    except IntegrityError:
        db.rollback()
        # A concurrent confirmation of the same booking won the insert.
        existing = find_redemption(db, coupon_id, booking_id)
        if existing is not None:
            logger.info(
                "coupon already redeemed concurrently",
                extra={"coupon_code": coupon_code, "booking_id": booking_id},
            )
            return _already_redeemed(db, coupon_id, existing)
        logger.warning("coupon redemption conflict", extra={"coupon_code": coupon_code, "booking_id": booking_id})
        return RedemptionResult.failed(REDEMPTION_FAILED)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("coupon redemption failed", extra={"coupon_code": coupon_code, "booking_id": booking_id})
        return RedemptionResult.failed(REDEMPTION_FAILED)

    new_used_count = db.query(Coupon.used_count).filter(Coupon.id == coupon_id).scalar()
    logger.info("coupon redeemed", extra={"coupon_code": coupon_code, "booking_id": booking_id})
    return RedemptionResult(
        success=True,
        new_used_count=int(new_used_count or 0),
        redemption_id=redemption.id,
        message="Coupon redeemed.",
    )


def _redemption_to_dict(redemption: CouponRedemption) -> dict[str, Any]:
    return {
        "id": redemption.id,
        "coupon_code": redemption.coupon_code,
        "booking_id": redemption.booking_id,
        "guest_email": redemption.guest_email,
        "guest_name": redemption.guest_name,
        "order_amount": to_money(redemption.order_amount),
        "discount_amount": to_money(redemption.discount_amount),
        "redeemed_at": redemption.redeemed_at,
    }


def coupon_analytics(db: Session, tenant_id: int, *, top_limit: int = 10, recent_limit: int = 20) -> dict[str, Any]:
    total_redemptions, total_discount = (
        db.query(
            func.count(CouponRedemption.id),
            func.coalesce(func.sum(CouponRedemption.discount_amount), 0),
        )
        .filter(CouponRedemption.tenant_id == tenant_id)
        .one()
    )

    redemptions_count = func.count(CouponRedemption.id).label("redemptions")
    top_rows = (
        db.query(
            CouponRedemption.coupon_code,
            Coupon.title,
            redemptions_count,
            func.coalesce(func.sum(CouponRedemption.discount_amount), 0).label("total_discount"),
        )
        .join(Coupon, Coupon.id == CouponRedemption.coupon_id)
        .filter(CouponRedemption.tenant_id == tenant_id)
        .group_by(CouponRedemption.coupon_code, Coupon.title)
        .order_by(desc("redemptions"), CouponRedemption.coupon_code.asc())
        .limit(top_limit)
        .all()
    )

    recent = (
        db.query(CouponRedemption)
        .filter(CouponRedemption.tenant_id == tenant_id)
        .order_by(CouponRedemption.redeemed_at.desc(), CouponRedemption.id.desc())
        .limit(recent_limit)
        .all()
    )

    return {
        "total_redemptions": int(total_redemptions or 0),
        "total_discount_given": to_money(total_discount),
        "top_coupons": [
            {
                "code": row.coupon_code,
                "title": row.title,
                "redemptions": int(row.redemptions or 0),
                "total_discount": to_money(row.total_discount),
            }
            for row in top_rows
        ],
        "recent_redemptions": [_redemption_to_dict(redemption) for redemption in recent],
    }
