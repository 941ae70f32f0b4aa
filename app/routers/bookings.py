from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.deps import get_tenant_id
from app.schemas.booking import BookingConfirmationResponse, BookingCreate, BookingRead
from app.services.bookings import BookingRequest, booking_to_dict, confirm_booking, get_booking
from app.services.pricing_errors import PricingError

router = APIRouter(prefix="/api/store/bookings", tags=["bookings"])
logger = logging.getLogger(__name__)


@router.post("", response_model=BookingConfirmationResponse, status_code=201)
def create_booking(
    payload: BookingCreate,
    tenant_id: int = Depends(get_tenant_id),
    db: Session = Depends(get_db),
):
    request = BookingRequest(**payload.model_dump())
    try:
        confirmation = confirm_booking(db, tenant_id=tenant_id, request=request)
    except PricingError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.as_detail()) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("booking confirmation failed")
        raise HTTPException(status_code=500, detail="Could not record booking") from exc

    redemption = confirmation.redemption
    return {
        "booking": booking_to_dict(confirmation.booking),
        "jewels_earned": confirmation.pricing.jewels_earned,
        "coupon_redemption": (
            {
                "success": redemption.success,
                "new_used_count": redemption.new_used_count,
                "reason": redemption.reason,
                "message": redemption.message,
            }
            if redemption is not None
            else None
        ),
    }


@router.get("/{booking_id}", response_model=BookingRead)
def read_booking(
    booking_id: int,
    tenant_id: int = Depends(get_tenant_id),
    db: Session = Depends(get_db),
):
    booking = get_booking(db, tenant_id=tenant_id, booking_id=booking_id)
    if booking is None:
        raise HTTPException(status_code=404, detail="Booking not found")
    return booking_to_dict(booking)
