from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import update
from sqlalchemy.orm import Session

from app.core.config import LOYALTY_DEFAULT_TIER
from app.models.loyalty import LoyaltyAccount, LoyaltyTransaction
from app.services.pricing import calculate_jewels

TRANSACTION_EARN = "earn"
TRANSACTION_REDEEM = "redeem"
TRANSACTION_ADJUSTMENT = "adjustment"

ADJUST_ADD = "add"
ADJUST_REMOVE = "remove"

logger = logging.getLogger(__name__)


class LoyaltyError(Exception):
    code = "LoyaltyError"
    status_code = 400
    default_message = "Unable to update the loyalty account."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def as_detail(self) -> dict[str, str]:
        return {"code": self.code, "message": self.message}


class LoyaltyAccountNotFound(LoyaltyError):
    code = "LoyaltyAccountNotFound"
    status_code = 404
    default_message = "Loyalty account not found."


class InvalidJewelAmount(LoyaltyError):
    code = "InvalidJewelAmount"
    default_message = "Jewel amount must be a positive whole number."


class InsufficientJewels(LoyaltyError):
    code = "InsufficientJewels"
    default_message = "Insufficient jewels balance for redemption."


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def get_or_create_account(
    db: Session,
    *,
    tenant_id: int,
    guest_email: str,
    guest_name: str | None = None,
) -> LoyaltyAccount:
    email = normalize_email(guest_email)
    if not email:
        raise ValueError("guest_email is required for a loyalty account")

    account = (
        db.query(LoyaltyAccount)
        .filter(LoyaltyAccount.tenant_id == tenant_id, LoyaltyAccount.guest_email == email)
        .first()
    )
    if account is None:
        account = LoyaltyAccount(
            tenant_id=tenant_id,
            guest_email=email,
            guest_name=guest_name,
            tier=LOYALTY_DEFAULT_TIER,
            points_balance=0,
            jewels_balance=0,
            lifetime_points_earned=0,
            lifetime_jewels_redeemed=0,
        )
        db.add(account)
        db.flush()
    elif guest_name and not account.guest_name:
        account.guest_name = guest_name
    return account


def accrue_points(
    db: Session,
    *,
    tenant_id: int,
    guest_email: str,
    points: int,
    booking_id: int | None = None,
    guest_name: str | None = None,
) -> LoyaltyAccount:
    """Credit ``points`` to the guest's account. The caller commits.

    A booking is credited at most once.
    """
    points = int(points or 0)
    if points < 0:
        raise ValueError("points must not be negative")

    account = get_or_create_account(db, tenant_id=tenant_id, guest_email=guest_email, guest_name=guest_name)
    if points == 0:
        return account

    if booking_id is not None:
        already_credited = (
            db.query(LoyaltyTransaction.id)
            .filter(
                LoyaltyTransaction.account_id == account.id,
                LoyaltyTransaction.booking_id == booking_id,
                LoyaltyTransaction.type == TRANSACTION_EARN,
            )
            .first()
        )
        if already_credited:
            return account

    jewels = calculate_jewels(points)
    account.points_balance = int(account.points_balance or 0) + points
    account.jewels_balance = int(account.jewels_balance or 0) + jewels
    account.lifetime_points_earned = int(account.lifetime_points_earned or 0) + points
    db.add(
        LoyaltyTransaction(
            account_id=account.id,
            booking_id=booking_id,
            type=TRANSACTION_EARN,
            points=points,
            jewels=jewels,
            description=f"Booking #{booking_id}" if booking_id is not None else "Points earned",
        )
    )
    return account


def _find_account(db: Session, *, tenant_id: int, guest_email: str) -> LoyaltyAccount | None:
    return (
        db.query(LoyaltyAccount)
        .filter(
            LoyaltyAccount.tenant_id == tenant_id,
            LoyaltyAccount.guest_email == normalize_email(guest_email),
        )
        .first()
    )


def _positive_jewels(amount) -> int:
    try:
        jewels = int(amount)
    except (TypeError, ValueError):
        raise InvalidJewelAmount() from None
    if jewels <= 0 or jewels != amount:
        raise InvalidJewelAmount()
    return jewels


def _debit_jewels(db: Session, account: LoyaltyAccount, jewels: int) -> None:
    db.flush()
    result = db.execute(
        update(LoyaltyAccount)
        .where(LoyaltyAccount.id == account.id, LoyaltyAccount.jewels_balance >= jewels)
        .values(
            jewels_balance=LoyaltyAccount.jewels_balance - jewels,
            lifetime_jewels_redeemed=LoyaltyAccount.lifetime_jewels_redeemed + jewels,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise InsufficientJewels()
    db.refresh(account)


def redeem_jewels(
    db: Session,
    *,
    tenant_id: int,
    guest_email: str,
    jewels,
    reason: str | None = None,
) -> LoyaltyTransaction:
    """Spend jewels from the guest's balance. The caller commits.

    The balance check and the debit happen in one conditional UPDATE, so two
    concurrent redemptions can never take the balance below zero.
    """
    jewels = _positive_jewels(jewels)
    account = _find_account(db, tenant_id=tenant_id, guest_email=guest_email)
    if account is None:
        raise LoyaltyAccountNotFound()

    _debit_jewels(db, account, jewels)
    transaction = LoyaltyTransaction(
        account_id=account.id,
        type=TRANSACTION_REDEEM,
        points=0,
        jewels=-jewels,
        description=(reason or "").strip() or "Manual redemption",
    )
    db.add(transaction)
    db.flush()
    logger.info("jewels redeemed", extra={"tenant_id": tenant_id, "jewels": jewels})
    return transaction


def adjust_jewels(
    db: Session,
    *,
    tenant_id: int,
    guest_email: str,
    adjustment_type: str,
    amount,
    reason: str | None = None,
) -> LoyaltyTransaction:
    """Manually add or remove jewels. The caller commits.

    Adding opens a bronze account for unknown guests. Removing never takes the
    balance below zero.
    """
    amount = _positive_jewels(amount)
    if adjustment_type == ADJUST_ADD:
        account = get_or_create_account(db, tenant_id=tenant_id, guest_email=guest_email)
        db.flush()
        db.execute(
            update(LoyaltyAccount)
            .where(LoyaltyAccount.id == account.id)
            .values(jewels_balance=LoyaltyAccount.jewels_balance + amount)
            .execution_options(synchronize_session=False)
        )
        db.refresh(account)
        jewels = amount
    elif adjustment_type == ADJUST_REMOVE:
        account = _find_account(db, tenant_id=tenant_id, guest_email=guest_email)
        if account is None:
            raise LoyaltyAccountNotFound()
        _debit_jewels(db, account, amount)
        jewels = -amount
    else:
        raise LoyaltyError('adjustment_type must be either "add" or "remove".')

    transaction = LoyaltyTransaction(
        account_id=account.id,
        type=TRANSACTION_ADJUSTMENT,
        points=0,
        jewels=jewels,
        description=(reason or "").strip() or "Manual adjustment",
    )
    db.add(transaction)
    db.flush()
    logger.info(
        "jewels adjusted",
        extra={"tenant_id": tenant_id, "adjustment_type": adjustment_type, "jewels": amount},
    )
    return transaction


def get_loyalty_summary(db: Session, *, tenant_id: int, guest_email: str, limit: int = 20) -> dict[str, Any] | None:
    account = _find_account(db, tenant_id=tenant_id, guest_email=guest_email)
    if account is None:
        return None

    transactions = (
        db.query(LoyaltyTransaction)
        .filter(LoyaltyTransaction.account_id == account.id)
        .order_by(LoyaltyTransaction.created_at.desc(), LoyaltyTransaction.id.desc())
        .limit(limit)
        .all()
    )
    return {
        "guest_email": account.guest_email,
        "guest_name": account.guest_name,
        "tier": account.tier,
        "points_balance": account.points_balance,
        "jewels_balance": account.jewels_balance,
        "lifetime_points_earned": account.lifetime_points_earned,
        "lifetime_jewels_redeemed": account.lifetime_jewels_redeemed,
        "transactions": [
            {
                "type": tx.type,
                "points": tx.points,
                "jewels": tx.jewels,
                "booking_id": tx.booking_id,
                "description": tx.description,
                "created_at": tx.created_at,
            }
            for tx in transactions
        ],
    }
