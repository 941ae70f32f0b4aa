from __future__ import annotations

from fastapi import APIRouter, Depends

from app.core.metrics import request_metrics
from app.deps import require_admin_token

router = APIRouter(prefix="/internal/metrics", tags=["internal-metrics"], dependencies=[Depends(require_admin_token)])


@router.get("")
def endpoint_metrics():
    return {"endpoints": request_metrics.snapshot()}


@router.get("/tenants")
def tenant_metrics():
    return {"tenants": request_metrics.snapshot_per_tenant()}
