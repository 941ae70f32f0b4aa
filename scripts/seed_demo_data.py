#!/usr/bin/env python3
from __future__ import annotations

import argparse
import sys
from decimal import Decimal
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.append(str(ROOT))

from app.core.config import IS_PROD  # noqa: E402
from app.core.database import Base, SessionLocal, engine  # noqa: E402
import app.models  # noqa: E402,F401
from app.models.coupon import Coupon  # noqa: E402
from app.models.property import Property  # noqa: E402
from app.models.tenant import Tenant  # noqa: E402
from utils.slug import normalize_slug  # noqa: E402

DEMO_PROPERTIES = [
    {"name": "Villa Serenity", "location": "Lonavala", "nightly_rate": Decimal("10000"), "max_guests": 8},
    {"name": "Casa Azul", "location": "North Goa", "nightly_rate": Decimal("18500"), "max_guests": 10},
]

DEMO_COUPONS = [
    {
        "code": "SAVE10",
        "title": "Save 10%",
        "discount_type": "percentage",
        "discount_value": Decimal("10"),
        "min_order_amount": Decimal("2000"),
    },
    {
        "code": "FLAT5000",
        "title": "Flat ₹5,000 off",
        "discount_type": "fixed",
        "discount_value": Decimal("5000"),
        "min_order_amount": Decimal("40000"),
    },
    {
        "code": "MONSOON20",
        "title": "Monsoon getaway",
        "discount_type": "percentage",
        "discount_value": Decimal("20"),
        "max_discount_amount": Decimal("7500"),
        "max_uses": 50,
    },
]


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Seed a demo storefront with villas and coupons.")
    parser.add_argument("--slug", required=True, help="Storefront subdomain slug")
    parser.add_argument("--name", default="Luxe Staycations", help="Storefront display name")
    parser.add_argument(
        "--force",
        action="store_true",
        help="Allow running against a production database",
    )
    return parser.parse_args()


def main() -> int:
    args = parse_args()

    if IS_PROD and not args.force:
        print("Refusing to seed demo data in production. Use --force to override.")
        return 1

    slug = normalize_slug(args.slug)
    if not slug:
        print("Slug must contain letters or digits.")
        return 1

    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        tenant = db.query(Tenant).filter(Tenant.slug == slug).first()
        if tenant is None:
            tenant = Tenant(slug=slug, name=args.name)
            db.add(tenant)
            db.flush()

        existing_properties = {
            name for (name,) in db.query(Property.name).filter(Property.tenant_id == tenant.id).all()
        }
        for data in DEMO_PROPERTIES:
            if data["name"] not in existing_properties:
                db.add(Property(tenant_id=tenant.id, **data))

        existing_codes = {code for (code,) in db.query(Coupon.code).filter(Coupon.tenant_id == tenant.id).all()}
        for data in DEMO_COUPONS:
            if data["code"] not in existing_codes:
                db.add(Coupon(tenant_id=tenant.id, used_count=0, **data))

        db.commit()
        tenant_id = tenant.id
    finally:
        db.close()

    print(f"Demo storefront ready: tenant={tenant_id} slug={slug}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
