"""Reusable data for backend test scenarios."""

from datetime import date, datetime, timezone
from decimal import Decimal

TENANT = {"id": 1, "slug": "luxe", "name": "Luxe Staycations"}
OTHER_TENANT = {"id": 2, "slug": "other", "name": "Other Villas"}

VILLA = {
    "id": 10,
    "tenant_id": 1,
    "name": "Villa Serenity",
    "location": "Lonavala",
    "nightly_rate": Decimal("10000.00"),
    "currency": "INR",
    "max_guests": 8,
    "active": True,
}

THREE_NIGHT_STAY = {
    "property_id": 10,
    "check_in": date(2025, 3, 1),
    "check_out": date(2025, 3, 4),
    "guest_count": 4,
}

FIXED_NOW = datetime(2025, 2, 15, 12, 0, tzinfo=timezone.utc)

SAVE10 = {
    "code": "SAVE10",
    "title": "Save 10%",
    "discount_type": "percentage",
    "discount_value": Decimal("10"),
    "min_order_amount": Decimal("2000"),
    "max_discount_amount": None,
    "max_uses": None,
    "used_count": 0,
    "active": True,
}

FLAT5000 = {
    "code": "FLAT5000",
    "title": "Flat 5000 off",
    "discount_type": "fixed",
    "discount_value": Decimal("5000"),
    "min_order_amount": Decimal("40000"),
    "max_discount_amount": None,
    "max_uses": None,
    "used_count": 0,
    "active": True,
}

EXPIRED1 = {
    "code": "EXPIRED1",
    "title": "Monsoon offer",
    "discount_type": "percentage",
    "discount_value": Decimal("15"),
    "min_order_amount": None,
    "max_discount_amount": None,
    "max_uses": None,
    "used_count": 0,
    "active": True,
    "start_date": datetime(2024, 6, 1, tzinfo=timezone.utc),
    "end_date": datetime(2024, 9, 30, tzinfo=timezone.utc),
}

LIMITED = {
    "code": "LIMITED",
    "title": "First guest only",
    "discount_type": "fixed",
    "discount_value": Decimal("1000"),
    "min_order_amount": None,
    "max_discount_amount": None,
    "max_uses": 1,
    "used_count": 1,
    "active": True,
}

BOOKING_PAYLOAD = {
    "property_id": 10,
    "check_in": "2025-03-01",
    "check_out": "2025-03-04",
    "guest_count": 4,
    "guest_name": "Asha Menon",
    "guest_email": "Asha@Example.com",
    "guest_phone": "+919800000000",
    "payment_provider": "razorpay",
    "payment_id": "pay_001",
}
