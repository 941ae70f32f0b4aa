from fastapi.testclient import TestClient


REQUIRED_ROUTES = {
    "/api/store/pricing/quote",
    "/api/store/validate-coupon",
    "/api/store/bookings",
    "/api/store/bookings/{booking_id}",
    "/api/store/loyalty/{guest_email}",
    "/api/store/loyalty/{guest_email}/redeem",
    "/api/admin/loyalty/{guest_email}/adjustments",
    "/api/admin/coupons",
    "/api/admin/coupons/analytics",
    "/api/admin/coupons/{coupon_id}",
    "/internal/metrics",
    "/internal/metrics/tenants",
}


def test_api_startup_and_router_registration(monkeypatch):
    from app import main

    monkeypatch.setattr(main, "_startup_tasks", lambda: None)

    with TestClient(main.app) as client:
        response = client.get("/")
        health_response = client.get("/health")
        docs_response = client.get("/docs")
        openapi_response = client.get("/openapi.json")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
    assert health_response.json() == {"status": "healthy"}
    assert response.headers["X-Request-ID"]
    assert docs_response.status_code == 200
    assert openapi_response.status_code == 200

    paths = set(openapi_response.json()["paths"])
    assert REQUIRED_ROUTES.issubset(paths)


def test_request_id_is_echoed(monkeypatch):
    from app import main

    monkeypatch.setattr(main, "_startup_tasks", lambda: None)

    with TestClient(main.app) as client:
        response = client.get("/health", headers={"X-Request-ID": "req-123"})

    assert response.headers["X-Request-ID"] == "req-123"


def test_internal_metrics_track_tenant_requests(monkeypatch):
    from app import main
    from app.core.metrics import request_metrics

    monkeypatch.setattr(main, "_startup_tasks", lambda: None)
    monkeypatch.setattr("app.core.config.ADMIN_API_TOKEN", "metrics-token")
    request_metrics.reset()

    with TestClient(main.app) as client:
        client.get("/health", headers={"X-Tenant-ID": "3"})
        endpoints = client.get("/internal/metrics", headers={"X-Admin-Token": "metrics-token"})
        tenants = client.get("/internal/metrics/tenants", headers={"X-Admin-Token": "metrics-token"})

    assert endpoints.status_code == 200
    assert endpoints.json()["endpoints"]["GET /health"]["total_requests"] == 1
    assert tenants.json()["tenants"]["3"]["total_requests"] == 1
