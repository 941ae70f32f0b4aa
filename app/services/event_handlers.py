from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from app.core.database import SessionLocal
from app.services.event_bus import BOOKING_CONFIRMED, event_bus
from app.services.loyalty import accrue_points

logger = logging.getLogger(__name__)


def _with_session(handler):
    def wrapper(payload: dict) -> None:
        db: Session = SessionLocal()
        try:
            handler(db, payload)
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    wrapper.__name__ = handler.__name__
    return wrapper


@_with_session
def handle_booking_confirmed(db: Session, payload: dict) -> None:
    if not payload.get("guest_email"):
        return
    accrue_points(
        db,
        tenant_id=payload["tenant_id"],
        guest_email=payload["guest_email"],
        guest_name=payload.get("guest_name"),
        points=payload.get("loyalty_points", 0),
        booking_id=payload["booking_id"],
    )
    db.commit()
    logger.info(
        "loyalty points accrued",
        extra={"booking_id": payload["booking_id"]},
    )


event_bus.subscribe(BOOKING_CONFIRMED, handle_booking_confirmed)
