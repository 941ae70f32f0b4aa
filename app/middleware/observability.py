from __future__ import annotations

import logging
import time
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.metrics import request_metrics
from app.core.request_context import clear_request_context, set_request_context

logger = logging.getLogger(__name__)


class ObservabilityMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        set_request_context(request_id=request_id, tenant_id=_extract_tenant_id(request))

        status_code = 500
        endpoint = request.url.path
        method = request.method
        response = None

        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            tenant_id = _extract_tenant_id(request)
            duration_ms = round((time.perf_counter() - start) * 1000, 2)
            request_metrics.observe(
                endpoint=endpoint,
                method=method,
                status_code=status_code,
                duration_ms=duration_ms,
                tenant_id=tenant_id,
            )

            logger.info(
                "request completed",
                extra={
                    "request_id": request_id,
                    "tenant_id": tenant_id,
                    "endpoint": endpoint,
                    "method": method,
                    "status_code": status_code,
                    "duration_ms": duration_ms,
                },
            )

            if response is not None:
                response.headers["X-Request-ID"] = request_id

            clear_request_context()


def _extract_tenant_id(request: Request) -> str | None:
    tenant = getattr(request.state, "tenant", None)
    if tenant is not None and getattr(tenant, "id", None) is not None:
        return str(tenant.id)
    tenant_id = request.query_params.get("tenant_id") or request.headers.get("X-Tenant-ID")
    return tenant_id or None
