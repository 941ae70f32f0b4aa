from types import SimpleNamespace

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from starlette.requests import Request
import pytest

from app.core.database import Base
from app.models.tenant import Tenant
from app.services.tenant_resolver import TenantResolutionError, TenantResolver
from utils.slug import normalize_slug


def _build_request(path: str, headers: dict[str, str] | None = None, path_params: dict | None = None) -> Request:
    scope = {
        "type": "http",
        "method": "GET",
        "path": path,
        "query_string": path.split("?", 1)[1].encode() if "?" in path else b"",
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
        "path_params": path_params or {},
    }
    request = Request(scope)
    request.state.tenant = None
    return request


def test_resolve_tenant_id_from_query_param():
    request = _build_request("/api/store/pricing/quote?tenant_id=21")

    assert TenantResolver.resolve_tenant_id_from_request(request) == 21


def test_resolve_tenant_id_from_header_when_missing_query():
    request = _build_request("/api/store/pricing/quote", headers={"x-tenant-id": "42"})

    assert TenantResolver.resolve_tenant_id_from_request(request) == 42


def test_resolve_tenant_id_prioritizes_explicit_parameter():
    request = _build_request("/api/store/pricing/quote?tenant_id=21", headers={"x-tenant-id": "42"})

    assert TenantResolver.resolve_tenant_id_from_request(request, tenant_id=7) == 7


def test_resolve_tenant_id_skips_non_numeric_candidates():
    request = _build_request("/api/store/pricing/quote?tenant_id=luxe", headers={"x-tenant-id": "5"})

    assert TenantResolver.resolve_tenant_id_from_request(request) == 5


def test_resolve_tenant_id_falls_back_to_state_tenant():
    request = _build_request("/api/store/pricing/quote")
    request.state.tenant = SimpleNamespace(id=9)

    assert TenantResolver.resolve_tenant_id_from_request(request) == 9


def test_resolve_tenant_id_without_any_source():
    request = _build_request("/api/store/pricing/quote")

    assert TenantResolver.resolve_tenant_id_from_request(request) is None


def test_extract_subdomain_accepts_base_domain_with_scheme(monkeypatch):
    monkeypatch.setattr("app.services.tenant_resolver.PUBLIC_BASE_DOMAIN", "https://luxestaycations.in")

    assert TenantResolver.extract_subdomain("goa.luxestaycations.in") == "goa"


def test_extract_subdomain_accepts_base_domain_with_wildcard_and_leading_dot(monkeypatch):
    monkeypatch.setattr("app.services.tenant_resolver.PUBLIC_BASE_DOMAIN", "*.luxestaycations.in")
    wildcard_subdomain = TenantResolver.extract_subdomain("goa.luxestaycations.in")

    monkeypatch.setattr("app.services.tenant_resolver.PUBLIC_BASE_DOMAIN", ".luxestaycations.in")
    dotted_subdomain = TenantResolver.extract_subdomain("goa.luxestaycations.in")

    assert wildcard_subdomain == "goa"
    assert dotted_subdomain == "goa"


def test_extract_subdomain_from_request_prioritizes_forwarded_host(monkeypatch):
    monkeypatch.setattr("app.services.tenant_resolver.PUBLIC_BASE_DOMAIN", "luxestaycations.in")
    request = _build_request(
        "/api/store/pricing/quote",
        headers={
            "host": "luxestaycations.in",
            "x-forwarded-host": "goa.luxestaycations.in:443",
        },
    )

    assert TenantResolver.extract_subdomain_from_request(request) == "goa"


def test_extract_subdomain_rejects_www(monkeypatch):
    monkeypatch.setattr("app.services.tenant_resolver.PUBLIC_BASE_DOMAIN", "luxestaycations.in")

    with pytest.raises(TenantResolutionError):
        TenantResolver.extract_subdomain("www.luxestaycations.in")


def test_extract_subdomain_raises_for_invalid_host(monkeypatch):
    monkeypatch.setattr("app.services.tenant_resolver.PUBLIC_BASE_DOMAIN", "luxestaycations.in")

    with pytest.raises(TenantResolutionError):
        TenantResolver.extract_subdomain("goa.otherdomain.com")


def _build_session():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    db = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    db.add(Tenant(id=1, slug="goa", name="Goa Villas", custom_domain="stays.goavillas.com"))
    db.add(Tenant(id=2, slug="closed", name="Closed Villas", is_active=False))
    db.commit()
    return db


def test_resolve_from_host_by_subdomain(monkeypatch):
    monkeypatch.setattr("app.services.tenant_resolver.PUBLIC_BASE_DOMAIN", "luxestaycations.in")
    db = _build_session()

    tenant = TenantResolver.resolve_from_host(db, "Goa.LuxeStaycations.in:443")

    assert tenant.id == 1


def test_resolve_from_host_by_custom_domain(monkeypatch):
    monkeypatch.setattr("app.services.tenant_resolver.PUBLIC_BASE_DOMAIN", "luxestaycations.in")
    db = _build_session()

    tenant = TenantResolver.resolve_from_host(db, "https://stays.goavillas.com")

    assert tenant.id == 1


def test_resolve_from_host_ignores_inactive_and_unknown(monkeypatch):
    monkeypatch.setattr("app.services.tenant_resolver.PUBLIC_BASE_DOMAIN", "luxestaycations.in")
    db = _build_session()

    assert TenantResolver.resolve_from_host(db, "closed.luxestaycations.in") is None
    assert TenantResolver.resolve_from_host(db, "nobody.luxestaycations.in") is None
    assert TenantResolver.resolve_from_host(db, "luxestaycations.in") is None
    assert TenantResolver.resolve_from_host(db, "unknown.example.com") is None


@pytest.mark.parametrize(
    "value,expected",
    [
        ("Villa Serenity", "villa-serenity"),
        ("  Goa -- Villas!  ", "goa-villas"),
        ("Café Élan", "cafe-elan"),
        ("luxe", "luxe"),
        ("!!!", ""),
        ("", ""),
    ],
)
def test_normalize_slug_keeps_words_hyphenated(value, expected):
    assert normalize_slug(value) == expected


def test_normalize_slug_fits_a_dns_label():
    slug = normalize_slug("a" * 62 + " b")

    assert len(slug) <= 63
    assert not slug.endswith("-")


def test_resolve_from_host_by_hyphenated_subdomain(monkeypatch):
    monkeypatch.setattr("app.services.tenant_resolver.PUBLIC_BASE_DOMAIN", "luxestaycations.in")
    db = _build_session()
    db.add(Tenant(id=3, slug="north-goa", name="North Goa Villas"))
    db.commit()

    tenant = TenantResolver.resolve_from_host(db, "North-Goa.luxestaycations.in")

    assert tenant.id == 3
