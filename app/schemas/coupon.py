from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class CouponBase(BaseModel):
    title: Optional[str] = Field(default=None, max_length=160)
    discount_type: Literal["percentage", "fixed"]
    discount_value: Decimal = Field(..., ge=0)
    min_order_amount: Optional[Decimal] = Field(default=None, ge=0)
    max_discount_amount: Optional[Decimal] = Field(default=None, ge=0)
    max_uses: Optional[int] = Field(default=None, ge=0)
    active: bool = True
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    terms_and_conditions: Optional[str] = None

    @model_validator(mode="after")
    def _check_rules(self):
        if self.discount_type == "percentage" and self.discount_value > 100:
            raise ValueError("percentage discount_value must be between 0 and 100")
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class CouponCreate(CouponBase):
    code: str = Field(..., min_length=1, max_length=64)

    @field_validator("code")
    @classmethod
    def _normalize_code(cls, value: str) -> str:
        value = value.strip().upper()
        if not value:
            raise ValueError("code must not be blank")
        return value


class CouponUpdate(BaseModel):
    title: Optional[str] = Field(default=None, max_length=160)
    discount_type: Optional[Literal["percentage", "fixed"]] = None
    discount_value: Optional[Decimal] = Field(default=None, ge=0)
    min_order_amount: Optional[Decimal] = Field(default=None, ge=0)
    max_discount_amount: Optional[Decimal] = Field(default=None, ge=0)
    max_uses: Optional[int] = Field(default=None, ge=0)
    active: Optional[bool] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    terms_and_conditions: Optional[str] = None

    @model_validator(mode="after")
    def _reject_null_required_fields(self):
        for field in ("discount_type", "discount_value", "active"):
            if field in self.model_fields_set and getattr(self, field) is None:
                raise ValueError(f"{field} cannot be null")
        if self.discount_type == "percentage" and self.discount_value is not None and self.discount_value > 100:
            raise ValueError("percentage discount_value must be between 0 and 100")
        return self


class CouponRead(BaseModel):
    id: int
    code: str
    title: Optional[str]
    discount_type: str
    discount_value: float
    min_order_amount: Optional[float]
    max_discount_amount: Optional[float]
    max_uses: Optional[int]
    used_count: int
    active: bool
    start_date: Optional[datetime]
    end_date: Optional[datetime]
    terms_and_conditions: Optional[str]
