from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class BookingCreate(BaseModel):
    property_id: int
    check_in: date
    check_out: date
    guest_count: int = Field(..., ge=1)
    guest_name: str = Field(..., min_length=1, max_length=160)
    guest_email: str = Field(..., min_length=3, max_length=254)
    guest_phone: Optional[str] = Field(default=None, max_length=30)
    coupon_code: Optional[str] = None
    payment_provider: Optional[str] = "razorpay"
    payment_id: Optional[str] = Field(default=None, max_length=120)
    amount_paid: Optional[Decimal] = Field(default=None, ge=0)
    special_requests: Optional[str] = None

    @field_validator("guest_email")
    @classmethod
    def _validate_email(cls, value: str) -> str:
        value = value.strip().lower()
        local, _, domain = value.partition("@")
        if not local or "." not in domain:
            raise ValueError("guest_email must be a valid email address")
        return value


class CouponRedemptionRead(BaseModel):
    success: bool
    new_used_count: Optional[int] = None
    reason: Optional[str] = None
    message: str


class BookingRead(BaseModel):
    id: int
    tenant_id: int
    property_id: int
    status: str
    guest_name: str
    guest_email: str
    guest_count: int
    check_in: date
    check_out: date
    nights: int
    currency: str
    subtotal: float
    service_fee: float
    discount_amount: float
    final_total: float
    loyalty_points_earned: int
    coupon_code: Optional[str] = None
    coupon_status: Optional[str] = None
    coupon_failure_reason: Optional[str] = None
    payment_id: Optional[str] = None
    amount_paid: Optional[float] = None
    created_at: Optional[datetime] = None


class BookingConfirmationResponse(BaseModel):
    booking: BookingRead
    jewels_earned: int
    coupon_redemption: Optional[CouponRedemptionRead] = None
