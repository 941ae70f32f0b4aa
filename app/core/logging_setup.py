from __future__ import annotations

import json
import logging
import os
import re
from datetime import datetime, timezone

from app.core.request_context import get_request_id, get_tenant_id

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
RECONCILIATION_LOGGER = "reconciliation"

_SENSITIVE_PATTERNS = [
    re.compile(r"(authorization\s*[:=]\s*bearer\s+)([^\s\"]+)", re.IGNORECASE),
    re.compile(r"(token\s*[:=]\s*)([^\s\",}]+)", re.IGNORECASE),
    re.compile(r"(secret\s*[:=]\s*)([^\s\",}]+)", re.IGNORECASE),
    re.compile(r"(razorpay_signature\s*[:=]\s*)([^\s\",}]+)", re.IGNORECASE),
]

# Extra attributes copied into the payload when a log call passes them.
_CONTEXT_FIELDS = (
    "endpoint",
    "method",
    "status_code",
    "booking_id",
    "coupon_code",
    "property_id",
    "reason",
    "jewels",
    "adjustment_type",
)


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "request_id": getattr(record, "request_id", None) or get_request_id(),
            "tenant_id": getattr(record, "tenant_id", None) or get_tenant_id(),
            "module": record.name,
            "message": self._mask(record.getMessage()),
            "duration_ms": getattr(record, "duration_ms", None),
        }
        for field in _CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                payload[field] = value
        if record.exc_info:
            payload["exception"] = self._mask(self.formatException(record.exc_info))
        return json.dumps(payload, ensure_ascii=False, default=str)

    def _mask(self, value: str) -> str:
        masked = value
        for pattern in _SENSITIVE_PATTERNS:
            masked = pattern.sub(r"\1***", masked)
        return masked


def configure_logging() -> None:
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(LOG_LEVEL)

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter("%(message)s"))
    root_logger.addHandler(handler)

    for logger_name in ("uvicorn", "uvicorn.error", "uvicorn.access", RECONCILIATION_LOGGER):
        logging.getLogger(logger_name).setLevel(LOG_LEVEL)
