from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy.orm import Session

from app.core.config import DEFAULT_CURRENCY
from app.models.property import Property
from app.services.money import to_money
from app.services.pricing_errors import PropertyNotFound


@dataclass(frozen=True)
class PropertyRate:
    property_id: int
    name: str
    nightly_rate: Decimal
    currency: str
    max_guests: int | None = None


def get_property(db: Session, tenant_id: int, property_id: int) -> PropertyRate:
    prop = (
        db.query(Property)
        .filter(
            Property.id == property_id,
            Property.tenant_id == tenant_id,
            Property.active.is_(True),
        )
        .first()
    )
    if prop is None:
        raise PropertyNotFound()

    nightly_rate = to_money(prop.nightly_rate)
    if nightly_rate <= 0:
        # A listing without a usable rate cannot be priced.
        raise PropertyNotFound("Property is not available for booking.")

    return PropertyRate(
        property_id=prop.id,
        name=prop.name,
        nightly_rate=nightly_rate,
        currency=(prop.currency or DEFAULT_CURRENCY).upper(),
        max_guests=prop.max_guests,
    )
