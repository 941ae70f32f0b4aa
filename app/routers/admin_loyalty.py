from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.deps import get_tenant_id, require_admin_token
from app.routers.loyalty import balance_response
from app.schemas.loyalty import JewelAdjustmentRequest, JewelBalanceResponse
from app.services.loyalty import LoyaltyError, adjust_jewels

router = APIRouter(
    prefix="/api/admin/loyalty",
    tags=["admin-loyalty"],
    dependencies=[Depends(require_admin_token)],
)
logger = logging.getLogger(__name__)


@router.post("/{guest_email}/adjustments", response_model=JewelBalanceResponse, status_code=201)
def create_jewel_adjustment(
    guest_email: str,
    payload: JewelAdjustmentRequest,
    tenant_id: int = Depends(get_tenant_id),
    db: Session = Depends(get_db),
):
    try:
        transaction = adjust_jewels(
            db,
            tenant_id=tenant_id,
            guest_email=guest_email,
            adjustment_type=payload.adjustment_type,
            amount=payload.amount,
            reason=payload.reason,
        )
        db.commit()
    except LoyaltyError as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.as_detail()) from exc
    except ValueError as exc:
        db.rollback()
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("jewel adjustment failed")
        raise HTTPException(status_code=500, detail="Could not adjust jewels") from exc

    db.refresh(transaction)
    return balance_response(db, transaction)
