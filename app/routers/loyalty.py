from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.deps import get_tenant_id
from app.models.loyalty import LoyaltyAccount, LoyaltyTransaction
from app.schemas.loyalty import JewelBalanceResponse, JewelRedemptionRequest
from app.services.loyalty import LoyaltyError, get_loyalty_summary, redeem_jewels

router = APIRouter(prefix="/api/store/loyalty", tags=["loyalty"])
logger = logging.getLogger(__name__)


def balance_response(db: Session, transaction: LoyaltyTransaction) -> dict:
    account = db.query(LoyaltyAccount).filter(LoyaltyAccount.id == transaction.account_id).one()
    return {
        "guest_email": account.guest_email,
        "jewels_balance": account.jewels_balance,
        "lifetime_jewels_redeemed": account.lifetime_jewels_redeemed,
        "transaction": {
            "id": transaction.id,
            "type": transaction.type,
            "points": transaction.points,
            "jewels": transaction.jewels,
            "description": transaction.description,
            "created_at": transaction.created_at,
        },
    }


@router.get("/{guest_email}")
def read_loyalty_account(
    guest_email: str,
    tenant_id: int = Depends(get_tenant_id),
    db: Session = Depends(get_db),
):
    summary = get_loyalty_summary(db, tenant_id=tenant_id, guest_email=guest_email)
    if summary is None:
        raise HTTPException(status_code=404, detail="Loyalty account not found")
    return summary


@router.post("/{guest_email}/redeem", response_model=JewelBalanceResponse)
def redeem_loyalty_jewels(
    guest_email: str,
    payload: JewelRedemptionRequest,
    tenant_id: int = Depends(get_tenant_id),
    db: Session = Depends(get_db),
):
    try:
        transaction = redeem_jewels(
            db,
            tenant_id=tenant_id,
            guest_email=guest_email,
            jewels=payload.jewels,
            reason=payload.reason,
        )
        db.commit()
    except LoyaltyError as exc:
        db.rollback()
        raise HTTPException(status_code=exc.status_code, detail=exc.as_detail()) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("jewel redemption failed")
        raise HTTPException(status_code=500, detail="Could not redeem jewels") from exc

    db.refresh(transaction)
    return balance_response(db, transaction)
