import json
import logging

from app.core.logging_setup import JsonFormatter
from app.core.metrics import InMemoryRequestMetrics
from app.core.request_context import clear_request_context, set_request_context


def _record(message: str, *args, **extra) -> logging.LogRecord:
    record = logging.LogRecord("reconciliation", logging.ERROR, __file__, 1, message, args, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_includes_request_context_and_booking_fields():
    set_request_context(request_id="req-1", tenant_id="4")
    try:
        payload = json.loads(
            JsonFormatter().format(_record("redemption failed for %s", "SAVE10", booking_id=12, reason="UsageLimitReached"))
        )
    finally:
        clear_request_context()

    assert payload["message"] == "redemption failed for SAVE10"
    assert payload["request_id"] == "req-1"
    assert payload["tenant_id"] == "4"
    assert payload["module"] == "reconciliation"
    assert payload["booking_id"] == 12
    assert payload["reason"] == "UsageLimitReached"


def test_json_formatter_masks_secrets():
    payload = json.loads(JsonFormatter().format(_record("razorpay_signature=abc123 token=xyz")))

    assert "abc123" not in payload["message"]
    assert "xyz" not in payload["message"]


def test_metrics_count_errors_per_endpoint_and_tenant():
    metrics = InMemoryRequestMetrics()

    metrics.observe("/api/store/pricing/quote", "POST", 200, 10.0, tenant_id="1")
    metrics.observe("/api/store/pricing/quote", "POST", 400, 30.0, tenant_id="1")
    metrics.observe("/health", "GET", 200, 1.0)

    snapshot = metrics.snapshot()
    assert snapshot["POST /api/store/pricing/quote"] == {
        "total_requests": 2,
        "total_duration_ms": 40.0,
        "avg_duration_ms": 20.0,
        "error_count": 1,
    }
    assert set(metrics.snapshot_per_tenant()) == {"1"}

    metrics.reset()
    assert metrics.snapshot() == {}
