from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.logging_setup import RECONCILIATION_LOGGER
from app.fsm import states
from app.fsm.coupon_flow import CouponApplication, apply_coupon, mark_redeemed
from app.models.booking import Booking
from app.services.catalog import get_property
from app.services.coupons import RedemptionResult, redeem_coupon
from app.services.event_bus import BOOKING_CONFIRMED, event_bus
from app.services.money import to_money
from app.services.pricing import PricingResult, calculate_stay, price_stay, validate_guest_count
from app.services.pricing_errors import DuplicateBooking

logger = logging.getLogger(__name__)
reconciliation_logger = logging.getLogger(RECONCILIATION_LOGGER)

BOOKING_STATUS_CONFIRMED = "confirmed"
COUPON_STATUS_REDEMPTION_FAILED = "redemption_failed"


@dataclass(frozen=True)
class BookingRequest:
    property_id: int
    check_in: date
    check_out: date
    guest_count: int
    guest_name: str
    guest_email: str
    guest_phone: str | None = None
    coupon_code: str | None = None
    payment_provider: str | None = None
    payment_id: str | None = None
    amount_paid: Decimal | None = None
    special_requests: str | None = None


@dataclass(frozen=True)
class BookingConfirmation:
    booking: Booking
    pricing: PricingResult
    coupon: CouponApplication | None
    redemption: RedemptionResult | None


def _ensure_new_payment(db: Session, tenant_id: int, payment_id: str | None) -> None:
    if not payment_id:
        return
    existing = (
        db.query(Booking.id)
        .filter(Booking.tenant_id == tenant_id, Booking.payment_id == payment_id)
        .first()
    )
    if existing:
        raise DuplicateBooking()


def confirm_booking(
    db: Session,
    *,
    tenant_id: int,
    request: BookingRequest,
    now: datetime | None = None,
) -> BookingConfirmation:
    """Record a paid booking.

    Pricing is recomputed here rather than trusted from the client. Once the
    booking row is committed nothing below can undo it: coupon redemption and
    loyalty accrual report their failures instead of raising.
    """
    validate_guest_count(request.guest_count)
    _ensure_new_payment(db, tenant_id, request.payment_id)
    rate = get_property(db, tenant_id, request.property_id)
    validate_guest_count(request.guest_count, max_guests=rate.max_guests)
    stay = calculate_stay(request.check_in, request.check_out, rate.nightly_rate)

    application = None
    validation = None
    if request.coupon_code and request.coupon_code.strip():
        application, validation = apply_coupon(
            db,
            tenant_id=tenant_id,
            code=request.coupon_code,
            subtotal=stay.subtotal,
            now=now,
        )
        if not validation.valid:
            reconciliation_logger.warning(
                "coupon rejected at confirmation; booking priced without discount",
                extra={"coupon_code": application.code, "reason": validation.reason.value},
            )

    pricing = price_stay(rate, stay, validation)

    booking = Booking(
        tenant_id=tenant_id,
        property_id=rate.property_id,
        guest_name=request.guest_name.strip(),
        guest_email=request.guest_email.strip().lower(),
        guest_phone=request.guest_phone,
        guest_count=request.guest_count,
        check_in=request.check_in,
        check_out=request.check_out,
        status=BOOKING_STATUS_CONFIRMED,
        nights=pricing.nights,
        nightly_rate=pricing.nightly_rate,
        currency=pricing.currency,
        subtotal=pricing.subtotal,
        service_fee=pricing.service_fee,
        discount_amount=pricing.discount_applied,
        final_total=pricing.final_total,
        loyalty_points_earned=pricing.loyalty_points_earned,
        coupon_code=application.code if application else None,
        coupon_status=application.state if application else None,
        coupon_failure_reason=(
            application.reason.value if application and application.reason is not None else None
        ),
        payment_provider=request.payment_provider,
        payment_id=request.payment_id,
        amount_paid=to_money(request.amount_paid) if request.amount_paid is not None else None,
        special_requests=request.special_requests,
    )
    db.add(booking)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise DuplicateBooking() from exc
    db.refresh(booking)

    if booking.amount_paid is not None and to_money(booking.amount_paid) != pricing.final_total:
        reconciliation_logger.warning(
            "amount paid %s differs from computed total %s",
            to_money(booking.amount_paid),
            pricing.final_total,
            extra={"booking_id": booking.id},
        )

    redemption = None
    if application is not None and application.state == states.APPLIED:
        redemption = redeem_coupon(
            db,
            tenant_id=tenant_id,
            code=application.code,
            booking_id=booking.id,
            guest_email=booking.guest_email,
            guest_name=booking.guest_name,
            order_amount=pricing.subtotal,
            discount_amount=pricing.discount_applied,
        )
        if redemption.success:
            application = mark_redeemed(application)
            booking.coupon_status = application.state
        else:
            booking.coupon_status = COUPON_STATUS_REDEMPTION_FAILED
            booking.coupon_failure_reason = redemption.reason
            reconciliation_logger.error(
                "coupon redemption failed after payment: %s",
                redemption.message,
                extra={"booking_id": booking.id, "coupon_code": application.code, "reason": redemption.reason},
            )
        db.commit()
        db.refresh(booking)

    event_bus.emit(
        BOOKING_CONFIRMED,
        {
            "tenant_id": tenant_id,
            "booking_id": booking.id,
            "guest_email": booking.guest_email,
            "guest_name": booking.guest_name,
            "loyalty_points": pricing.loyalty_points_earned,
            "final_total": pricing.final_total,
        },
    )
    logger.info("booking confirmed", extra={"booking_id": booking.id, "property_id": rate.property_id})

    return BookingConfirmation(booking=booking, pricing=pricing, coupon=application, redemption=redemption)


def get_booking(db: Session, *, tenant_id: int, booking_id: int) -> Booking | None:
    return (
        db.query(Booking)
        .filter(Booking.id == booking_id, Booking.tenant_id == tenant_id)
        .first()
    )


def booking_to_dict(booking: Booking) -> dict[str, Any]:
    return {
        "id": booking.id,
        "tenant_id": booking.tenant_id,
        "property_id": booking.property_id,
        "status": booking.status,
        "guest_name": booking.guest_name,
        "guest_email": booking.guest_email,
        "guest_count": booking.guest_count,
        "check_in": booking.check_in,
        "check_out": booking.check_out,
        "nights": booking.nights,
        "currency": booking.currency,
        "subtotal": to_money(booking.subtotal),
        "service_fee": to_money(booking.service_fee),
        "discount_amount": to_money(booking.discount_amount),
        "final_total": to_money(booking.final_total),
        "loyalty_points_earned": booking.loyalty_points_earned,
        "coupon_code": booking.coupon_code,
        "coupon_status": booking.coupon_status,
        "coupon_failure_reason": booking.coupon_failure_reason,
        "payment_id": booking.payment_id,
        "amount_paid": to_money(booking.amount_paid) if booking.amount_paid is not None else None,
        "created_at": booking.created_at,
    }
