from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field


class JewelRedemptionRequest(BaseModel):
    jewels: int = Field(..., gt=0)
    reason: Optional[str] = Field(default=None, max_length=255)


class JewelAdjustmentRequest(BaseModel):
    adjustment_type: Literal["add", "remove"]
    amount: int = Field(..., gt=0)
    reason: Optional[str] = Field(default=None, max_length=255)


class LoyaltyTransactionRead(BaseModel):
    id: int
    type: str
    points: int
    jewels: int
    description: Optional[str] = None
    created_at: Optional[datetime] = None


class JewelBalanceResponse(BaseModel):
    guest_email: str
    jewels_balance: int
    lifetime_jewels_redeemed: int
    transaction: LoyaltyTransactionRead
