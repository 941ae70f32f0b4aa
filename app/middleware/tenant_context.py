from __future__ import annotations

from starlette.middleware.base import BaseHTTPMiddleware

from app.core.database import SessionLocal
from app.services.tenant_resolver import TenantResolver


class TenantContextMiddleware(BaseHTTPMiddleware):
    """Attach the storefront tenant for the request host to ``request.state``.

    Hosts that are neither a storefront subdomain nor a registered custom
    domain leave ``request.state.tenant`` as ``None``; routes then fall back to
    an explicit tenant id.
    """

    async def dispatch(self, request, call_next):
        request.state.tenant = None

        host = TenantResolver.request_host(request)
        if TenantResolver.extract_subdomain_from_request(request) or (
            host and not TenantResolver.is_platform_host(host) and "." in TenantResolver.normalize_host(host)
        ):
            db = SessionLocal()
            try:
                request.state.tenant = TenantResolver.resolve_from_host(db, host)
            finally:
                db.close()

        return await call_next(request)
