from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, Numeric, String, func
from sqlalchemy.orm import relationship

from app.core.database import Base


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id"), nullable=False, index=True)
    property_id = Column(Integer, ForeignKey("properties.id"), nullable=False, index=True)

    guest_name = Column(String(160), nullable=False)
    guest_email = Column(String(254), nullable=False, index=True)
    guest_phone = Column(String(30), nullable=True)
    guest_count = Column(Integer, nullable=False)
    check_in = Column(Date, nullable=False)
    check_out = Column(Date, nullable=False)
    status = Column(String(20), nullable=False, default="confirmed")

    nights = Column(Integer, nullable=False)
    nightly_rate = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="INR")
    subtotal = Column(Numeric(12, 2), nullable=False)
    service_fee = Column(Numeric(12, 2), nullable=False)
    discount_amount = Column(Numeric(12, 2), nullable=False, default=0)
    final_total = Column(Numeric(12, 2), nullable=False)
    loyalty_points_earned = Column(Integer, nullable=False, default=0)

    coupon_code = Column(String(64), nullable=True)
    coupon_status = Column(String(20), nullable=True)
    coupon_failure_reason = Column(String(40), nullable=True)

    payment_provider = Column(String(30), nullable=True)
    payment_id = Column(String(120), nullable=True, unique=True)
    amount_paid = Column(Numeric(12, 2), nullable=True)
    special_requests = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    property = relationship("Property", back_populates="bookings")
    coupon_redemptions = relationship("CouponRedemption", back_populates="booking")
