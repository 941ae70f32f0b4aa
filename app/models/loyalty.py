from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, UniqueConstraint, func
from sqlalchemy.orm import relationship

from app.core.database import Base


class LoyaltyAccount(Base):
    __tablename__ = "loyalty_accounts"
    __table_args__ = (
        UniqueConstraint("tenant_id", "guest_email", name="uq_loyalty_accounts_tenant_email"),
    )

    id = Column(Integer, primary_key=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id"), nullable=False, index=True)
    guest_email = Column(String(254), nullable=False)
    guest_name = Column(String(160), nullable=True)
    tier = Column(String(20), nullable=False, default="bronze")
    points_balance = Column(Integer, nullable=False, default=0)
    jewels_balance = Column(Integer, nullable=False, default=0)
    lifetime_points_earned = Column(Integer, nullable=False, default=0)
    lifetime_jewels_redeemed = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    transactions = relationship("LoyaltyTransaction", back_populates="account", cascade="all, delete-orphan")


class LoyaltyTransaction(Base):
    __tablename__ = "loyalty_transactions"
    __table_args__ = (
        UniqueConstraint("account_id", "booking_id", "type", name="uq_loyalty_transactions_booking_type"),
    )

    id = Column(Integer, primary_key=True)
    account_id = Column(Integer, ForeignKey("loyalty_accounts.id"), nullable=False, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=True, index=True)
    type = Column(String(20), nullable=False)
    points = Column(Integer, nullable=False)
    jewels = Column(Integer, nullable=False, default=0)
    description = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    account = relationship("LoyaltyAccount", back_populates="transactions")
