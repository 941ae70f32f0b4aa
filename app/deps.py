# app/deps.py
from __future__ import annotations

import hmac
import logging

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.orm import Session

from app.core import config
from app.core.database import get_db
from app.models.tenant import Tenant
from app.services.tenant_resolver import TenantResolver

logger = logging.getLogger(__name__)


def get_tenant_id(request: Request, db: Session = Depends(get_db)) -> int:
    """Tenant of the current storefront request.

    Explicit ids (path, query, ``X-Tenant-ID``) win over the subdomain tenant
    attached by :class:`TenantContextMiddleware`. Unknown or inactive tenants
    are reported as 404.
    """
    tenant_id = TenantResolver.resolve_tenant_id_from_request(request)
    if tenant_id is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Tenant not identified")

    tenant = db.query(Tenant).filter(Tenant.id == int(tenant_id)).first()
    if tenant is None or not tenant.is_active:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Tenant not found")
    return tenant.id


def require_admin_token(x_admin_token: str | None = Header(default=None)) -> None:
    configured = (config.ADMIN_API_TOKEN or "").strip()
    incoming = (x_admin_token or "").strip()
    if not configured:
        logger.warning("Admin API called but ADMIN_API_TOKEN is not configured")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Admin API requires ADMIN_API_TOKEN to be configured",
        )
    if not incoming or not hmac.compare_digest(incoming, configured):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid admin token")
