from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class PricingQuoteRequest(BaseModel):
    property_id: int
    check_in: date
    check_out: date
    guest_count: int = Field(..., ge=1)
    coupon_code: Optional[str] = None

    @field_validator("coupon_code")
    @classmethod
    def _blank_code_is_none(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip()
        return value or None


class PricingQuoteResponse(BaseModel):
    property_id: int
    nights: int
    nightly_rate: float
    currency: str
    subtotal: float
    service_fee: float
    discount_applied: float
    final_total: float
    loyalty_points_earned: int
    jewels_earned: int
    coupon_code: Optional[str] = None


class ValidateCouponPayload(BaseModel):
    code: str
    subtotal: Decimal = Field(..., ge=0)


class ValidateCouponResponse(BaseModel):
    valid: bool
    status: str
    code: Optional[str]
    discount_amount: float
    new_total: float
    reason: Optional[str] = None
    message: str
