from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal

from sqlalchemy.orm import Session

from app.fsm import states
from app.services.coupons import CouponValidation, check_coupon, normalize_code
from app.services.money import ZERO
from app.services.pricing_errors import CouponRejection, InvalidCouponTransition


@dataclass(frozen=True)
class CouponApplication:
    state: str = states.UNAPPLIED
    code: str | None = None
    discount_amount: Decimal = ZERO
    reason: CouponRejection | None = None
    message: str = ""


def _move(application: CouponApplication, target: str, **changes) -> CouponApplication:
    if target not in states.TRANSITIONS[application.state]:
        raise InvalidCouponTransition(f"Cannot move coupon from {application.state} to {target}")
    return replace(application, state=target, **changes)


def enter_code(application: CouponApplication, code: str) -> CouponApplication:
    normalized = normalize_code(code)
    if not normalized:
        raise InvalidCouponTransition("Coupon code is empty")
    return _move(application, states.VALIDATING, code=normalized, discount_amount=ZERO, reason=None, message="")


def resolve(application: CouponApplication, validation: CouponValidation) -> CouponApplication:
    if validation.valid:
        return _move(
            application,
            states.APPLIED,
            discount_amount=validation.discount_amount,
            message=validation.message,
        )
    return _move(application, states.REJECTED, reason=validation.reason, message=validation.message)


def remove(application: CouponApplication) -> CouponApplication:
    return _move(application, states.UNAPPLIED, code=None, discount_amount=ZERO, reason=None, message="")


def mark_redeemed(application: CouponApplication) -> CouponApplication:
    return _move(application, states.REDEEMED)


def apply_coupon(
    db: Session,
    *,
    tenant_id: int,
    code: str,
    subtotal: Decimal,
    application: CouponApplication | None = None,
    now: datetime | None = None,
) -> tuple[CouponApplication, CouponValidation]:
    application = enter_code(application or CouponApplication(), code)
    validation = check_coupon(db, tenant_id, application.code, subtotal, now=now)
    return resolve(application, validation), validation
