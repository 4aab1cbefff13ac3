from __future__ import annotations

from fastapi import APIRouter, Depends

from app.core.metrics import request_metrics
from app.deps import require_permission
from app.services.authorization_service import Principal

router = APIRouter(prefix="/internal/metrics", tags=["internal-metrics"])


@router.get("")
def read_metrics(_principal: Principal = Depends(require_permission("metrics:read"))):
    return {
        "endpoints": request_metrics.snapshot(),
        "status_codes": request_metrics.status_counts(),
    }
