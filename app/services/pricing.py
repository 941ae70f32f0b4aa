"""Booking pricing pipeline.

Stay calculator -> fee assessor -> coupon validator -> total composer ->
loyalty accrual. Everything here except :func:`compute_pricing` is pure; the
coupon lookup is the only read against the store.
"""
from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from datetime import date, datetime, time, timezone
from decimal import Decimal
from typing import Any

from sqlalchemy.orm import Session

from app.core import config
from app.services.catalog import PropertyRate, get_property
from app.services.coupons import CouponValidation, check_coupon
from app.services.money import ZERO, to_money
from app.services.pricing_errors import CouponRejected, InvalidDateRange, InvalidGuestCount

SECONDS_PER_NIGHT = 24 * 60 * 60


@dataclass(frozen=True)
class StayQuote:
    nights: int
    nightly_rate: Decimal
    subtotal: Decimal


@dataclass(frozen=True)
class PricingResult:
    nights: int
    nightly_rate: Decimal
    currency: str
    subtotal: Decimal
    service_fee: Decimal
    discount_applied: Decimal
    final_total: Decimal
    loyalty_points_earned: int
    jewels_earned: int
    coupon_code: str | None = None

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


def _as_datetime(value: date) -> datetime:
    if isinstance(value, datetime):
        moment = value
    else:
        moment = datetime.combine(value, time.min)
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def count_nights(check_in: date, check_out: date) -> int:
    """Nights between two dates, rounding any partial day up to a full night."""
    seconds = (_as_datetime(check_out) - _as_datetime(check_in)).total_seconds()
    if seconds <= 0:
        raise InvalidDateRange()
    return math.ceil(seconds / SECONDS_PER_NIGHT)


def calculate_stay(check_in: date, check_out: date, nightly_rate: Decimal) -> StayQuote:
    rate = to_money(nightly_rate)
    if rate <= 0:
        raise ValueError("nightly_rate must be positive")
    nights = count_nights(check_in, check_out)
    return StayQuote(nights=nights, nightly_rate=rate, subtotal=rate * nights)


def assess_service_fee(subtotal: Decimal, fee_rate: Decimal | None = None) -> Decimal:
    rate = config.SERVICE_FEE_RATE if fee_rate is None else fee_rate
    return to_money(to_money(subtotal) * rate)


def compose_total(subtotal: Decimal, service_fee: Decimal, discount: Decimal = ZERO) -> Decimal:
    total = to_money(subtotal) + to_money(service_fee) - to_money(discount)
    if total < 0:
        return ZERO
    return total


def calculate_loyalty_points(amount: Decimal) -> int:
    amount = to_money(amount)
    if amount <= 0:
        return 0
    return int(amount // config.LOYALTY_AMOUNT_PER_POINT)


def calculate_jewels(points: int) -> int:
    return int(points) * config.JEWELS_PER_POINT


def validate_guest_count(guest_count: int, max_guests: int | None = None) -> int:
    if guest_count is None or int(guest_count) < 1:
        raise InvalidGuestCount()
    if max_guests and int(guest_count) > int(max_guests):
        raise InvalidGuestCount(f"This villa hosts at most {int(max_guests)} guests.")
    return int(guest_count)


def price_stay(
    rate: PropertyRate,
    stay: StayQuote,
    coupon: CouponValidation | None = None,
) -> PricingResult:
    service_fee = assess_service_fee(stay.subtotal)
    discount = coupon.discount_amount if coupon is not None and coupon.valid else ZERO
    # Loyalty is earned on the stay subtotal, before fee and discount.
    points = calculate_loyalty_points(stay.subtotal)
    return PricingResult(
        nights=stay.nights,
        nightly_rate=stay.nightly_rate,
        currency=rate.currency,
        subtotal=stay.subtotal,
        service_fee=service_fee,
        discount_applied=discount,
        final_total=compose_total(stay.subtotal, service_fee, discount),
        loyalty_points_earned=points,
        jewels_earned=calculate_jewels(points),
        coupon_code=coupon.coupon_code if coupon is not None and coupon.valid else None,
    )


def compute_pricing(
    db: Session,
    *,
    tenant_id: int,
    property_id: int,
    check_in: date,
    check_out: date,
    guest_count: int,
    coupon_code: str | None = None,
    now: datetime | None = None,
) -> PricingResult:
    """Price a stay, raising a :class:`PricingError` subclass when it cannot."""
    validate_guest_count(guest_count)
    rate = get_property(db, tenant_id, property_id)
    validate_guest_count(guest_count, max_guests=rate.max_guests)
    stay = calculate_stay(check_in, check_out, rate.nightly_rate)

    validation = None
    if coupon_code and coupon_code.strip():
        validation = check_coupon(db, tenant_id, coupon_code, stay.subtotal, now=now)
        if not validation.valid:
            raise CouponRejected(validation.reason, validation.message)

    return price_stay(rate, stay, validation)
