from __future__ import annotations

import logging
from urllib.parse import urlsplit

from fastapi import HTTPException, Request
from sqlalchemy.orm import Session

from app.core.config import PUBLIC_BASE_DOMAIN
from app.models.tenant import Tenant
from utils.slug import normalize_slug


logger = logging.getLogger(__name__)

RESERVED_SUBDOMAINS = {"www", "api", "admin"}


class TenantResolutionError(Exception):
    pass


class TenantResolver:
    """Work out which villa storefront a request is addressed to.

    Storefronts live either on ``<slug>.<PUBLIC_BASE_DOMAIN>`` or on their own
    custom domain. API clients may also name the tenant explicitly.
    """

    @staticmethod
    def normalize_host(host: str) -> str:
        # Proxies may send a comma separated chain; the first entry is the client-facing host.
        candidate = (host or "").split(",")[0].strip().lower()
        if not candidate:
            return ""
        if "://" in candidate:
            return (urlsplit(candidate).hostname or "").lower()
        return candidate.split("/")[0].split(":")[0].strip()

    @classmethod
    def normalize_base_domain(cls, base_domain: str) -> str:
        domain = cls.normalize_host(base_domain or "")
        if domain.startswith("*."):
            domain = domain[2:]
        return domain.lstrip(".")

    @staticmethod
    def request_host(request: Request) -> str:
        return request.headers.get("x-forwarded-host") or request.headers.get("host") or ""

    @classmethod
    def extract_subdomain(cls, host: str) -> str:
        hostname = cls.normalize_host(host)
        base_domain = cls.normalize_base_domain(PUBLIC_BASE_DOMAIN)
        if not hostname or not base_domain:
            raise TenantResolutionError("Invalid host")

        suffix = f".{base_domain}"
        if not hostname.endswith(suffix):
            raise TenantResolutionError("Invalid host")

        subdomain = normalize_slug(hostname[: -len(suffix)])
        if not subdomain or subdomain in RESERVED_SUBDOMAINS:
            raise TenantResolutionError("Subdomain is empty or reserved")
        return subdomain

    @classmethod
    def extract_subdomain_from_request(cls, request: Request) -> str | None:
        try:
            return cls.extract_subdomain(cls.request_host(request))
        except TenantResolutionError:
            return None

    @classmethod
    def is_platform_host(cls, host: str) -> bool:
        hostname = cls.normalize_host(host)
        base_domain = cls.normalize_base_domain(PUBLIC_BASE_DOMAIN)
        return bool(base_domain) and (hostname == base_domain or hostname.endswith(f".{base_domain}"))

    @staticmethod
    def resolve_from_subdomain(db: Session, subdomain: str) -> Tenant:
        slug = normalize_slug(subdomain)
        tenant = None
        if slug:
            tenant = (
                db.query(Tenant)
                .filter(Tenant.slug == slug, Tenant.is_active.is_(True))
                .first()
            )
        if tenant is None:
            raise HTTPException(status_code=404, detail="Tenant not found")
        return tenant

    @classmethod
    def resolve_from_host(cls, db: Session, host: str) -> Tenant | None:
        """Tenant for a storefront host, or ``None`` when the host names no storefront."""
        hostname = cls.normalize_host(host)
        if not hostname:
            return None

        if not cls.is_platform_host(hostname):
            return (
                db.query(Tenant)
                .filter(Tenant.custom_domain == hostname, Tenant.is_active.is_(True))
                .first()
            )

        try:
            subdomain = cls.extract_subdomain(hostname)
        except TenantResolutionError:
            return None
        try:
            return cls.resolve_from_subdomain(db, subdomain)
        except HTTPException:
            logger.info("unknown storefront subdomain %s", subdomain)
            return None

    @classmethod
    def resolve_tenant_id_from_request(cls, request: Request, tenant_id: int | None = None) -> int | None:
        if tenant_id is not None:
            return tenant_id

        for candidate in (
            request.path_params.get("tenant_id"),
            request.query_params.get("tenant_id"),
            request.headers.get("x-tenant-id"),
        ):
            if candidate is None:
                continue
            try:
                return int(candidate)
            except (TypeError, ValueError):
                logger.debug("Ignoring non-numeric tenant id candidate: %s", candidate)

        tenant = getattr(request.state, "tenant", None)
        return getattr(tenant, "id", None) if tenant is not None else None
