from datetime import date
from decimal import Decimal

from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.database import Base, get_db
from app.models.booking import Booking
from app.models.coupon import Coupon
from app.models.tenant import Tenant
from app.routers.admin_coupons import router as admin_coupons_router
from app.services.coupons import redeem_coupon
from tests.fixtures_data import SAVE10, TENANT

ADMIN_TOKEN = "test-admin-token"
HEADERS = {"X-Tenant-ID": str(TENANT["id"]), "X-Admin-Token": ADMIN_TOKEN}


def _build_client(monkeypatch) -> tuple[TestClient, object]:
    monkeypatch.setattr("app.core.config.ADMIN_API_TOKEN", ADMIN_TOKEN)
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    db = testing_session_local()
    db.add(Tenant(**TENANT))
    db.add(Coupon(id=1, tenant_id=TENANT["id"], **SAVE10))
    db.commit()

    app = FastAPI()
    app.include_router(admin_coupons_router)
    app.dependency_overrides[get_db] = lambda: db
    return TestClient(app), db


def test_admin_routes_require_token(monkeypatch):
    client, _ = _build_client(monkeypatch)

    missing = client.get("/api/admin/coupons", headers={"X-Tenant-ID": "1"})
    wrong = client.get("/api/admin/coupons", headers={"X-Tenant-ID": "1", "X-Admin-Token": "nope"})

    assert missing.status_code == 401
    assert wrong.status_code == 401


def test_admin_routes_unavailable_without_configured_token(monkeypatch):
    client, _ = _build_client(monkeypatch)
    monkeypatch.setattr("app.core.config.ADMIN_API_TOKEN", "")

    response = client.get("/api/admin/coupons", headers=HEADERS)

    assert response.status_code == 503


def test_create_coupon_normalizes_code(monkeypatch):
    client, db = _build_client(monkeypatch)

    response = client.post(
        "/api/admin/coupons",
        json={
            "code": " welcome500 ",
            "title": "Welcome",
            "discount_type": "fixed",
            "discount_value": "500",
            "max_uses": 100,
        },
        headers=HEADERS,
    )

    assert response.status_code == 201
    body = response.json()
    assert body["code"] == "WELCOME500"
    assert body["used_count"] == 0
    assert db.query(Coupon).count() == 2


def test_create_duplicate_code_conflicts(monkeypatch):
    client, _ = _build_client(monkeypatch)

    response = client.post(
        "/api/admin/coupons",
        json={"code": "save10", "discount_type": "percentage", "discount_value": "5"},
        headers=HEADERS,
    )

    assert response.status_code == 409


def test_create_rejects_percentage_above_hundred(monkeypatch):
    client, _ = _build_client(monkeypatch)

    response = client.post(
        "/api/admin/coupons",
        json={"code": "HUGE", "discount_type": "percentage", "discount_value": "150"},
        headers=HEADERS,
    )

    assert response.status_code == 422


def test_list_and_filter_coupons(monkeypatch):
    client, _ = _build_client(monkeypatch)
    client.post(
        "/api/admin/coupons",
        json={"code": "OLD", "discount_type": "fixed", "discount_value": "100", "active": False},
        headers=HEADERS,
    )

    everything = client.get("/api/admin/coupons", headers=HEADERS)
    active_only = client.get("/api/admin/coupons?active=true", headers=HEADERS)

    assert {coupon["code"] for coupon in everything.json()} == {"SAVE10", "OLD"}
    assert [coupon["code"] for coupon in active_only.json()] == ["SAVE10"]


def test_update_cannot_drop_max_uses_below_used_count(monkeypatch):
    client, db = _build_client(monkeypatch)
    coupon = db.query(Coupon).filter(Coupon.id == 1).one()
    coupon.used_count = 3
    db.commit()

    rejected = client.patch("/api/admin/coupons/1", json={"max_uses": 2}, headers=HEADERS)
    accepted = client.patch("/api/admin/coupons/1", json={"max_uses": 5, "title": "Save more"}, headers=HEADERS)

    assert rejected.status_code == 422
    assert accepted.status_code == 200
    assert accepted.json()["max_uses"] == 5
    assert accepted.json()["title"] == "Save more"


def test_delete_deactivates_coupon(monkeypatch):
    client, db = _build_client(monkeypatch)

    response = client.delete("/api/admin/coupons/1", headers=HEADERS)

    assert response.status_code == 200
    assert db.query(Coupon).filter(Coupon.id == 1).one().active is False


def test_unknown_coupon_is_404(monkeypatch):
    client, _ = _build_client(monkeypatch)

    assert client.get("/api/admin/coupons/999", headers=HEADERS).status_code == 404


def test_analytics_reports_redemptions(monkeypatch):
    client, db = _build_client(monkeypatch)
    db.add(
        Booking(
            id=1,
            tenant_id=TENANT["id"],
            property_id=1,
            guest_name="Asha",
            guest_email="asha@example.com",
            guest_count=2,
            check_in=date(2025, 3, 1),
            check_out=date(2025, 3, 4),
            nights=3,
            nightly_rate=Decimal("10000"),
            subtotal=Decimal("30000"),
            service_fee=Decimal("3000"),
            discount_amount=Decimal("3000"),
            final_total=Decimal("30000"),
        )
    )
    db.commit()
    redeem_coupon(
        db,
        tenant_id=TENANT["id"],
        code="SAVE10",
        booking_id=1,
        guest_email="asha@example.com",
        order_amount=Decimal("30000"),
        discount_amount=Decimal("3000"),
    )

    response = client.get("/api/admin/coupons/analytics", headers=HEADERS)

    assert response.status_code == 200
    body = response.json()
    assert body["total_redemptions"] == 1
    assert body["total_discount_given"] == 3000.0
    assert body["top_coupons"][0]["code"] == "SAVE10"
    assert body["recent_redemptions"][0]["guest_email"] == "asha@example.com"


def test_update_rejects_null_for_required_fields(monkeypatch):
    client, db = _build_client(monkeypatch)

    for field in ("discount_type", "discount_value", "active"):
        response = client.patch("/api/admin/coupons/1", json={field: None}, headers=HEADERS)
        assert response.status_code == 422

    coupon = db.query(Coupon).filter(Coupon.id == 1).one()
    assert coupon.discount_type == "percentage"
    assert coupon.discount_value == Decimal("10")
    assert coupon.active is True


def test_update_rejects_end_date_before_start_date(monkeypatch):
    client, _ = _build_client(monkeypatch)

    response = client.patch(
        "/api/admin/coupons/1",
        json={"start_date": "2026-01-10T00:00:00Z", "end_date": "2026-01-01T00:00:00Z"},
        headers=HEADERS,
    )

    assert response.status_code == 422


def test_update_checks_new_end_date_against_stored_start_date(monkeypatch):
    client, _ = _build_client(monkeypatch)
    first = client.patch("/api/admin/coupons/1", json={"start_date": "2026-01-10T00:00:00Z"}, headers=HEADERS)

    rejected = client.patch("/api/admin/coupons/1", json={"end_date": "2026-01-01T00:00:00Z"}, headers=HEADERS)
    accepted = client.patch("/api/admin/coupons/1", json={"end_date": "2026-02-01T00:00:00Z"}, headers=HEADERS)

    assert first.status_code == 200
    assert rejected.status_code == 422
    assert accepted.status_code == 200
