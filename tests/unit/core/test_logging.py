import pytest
from structlog.testing import capture_logs

from hookwarden.core.utils.logging import log_operation


@pytest.mark.asyncio
async def test_log_operation_records_completion():
    with capture_logs() as logs:
        async with log_operation("installation_token_exchange", installation_id=42):
            pass

    events = [entry["event"] for entry in logs]
    assert events == ["operation_started", "operation_completed"]
    assert logs[-1]["installation_id"] == 42
    assert "latency_ms" in logs[-1]


@pytest.mark.asyncio
async def test_log_operation_records_failure_and_reraises():
    with capture_logs() as logs, pytest.raises(RuntimeError):
        async with log_operation("create_check_run"):
            raise RuntimeError("boom")

    assert logs[-1]["event"] == "operation_failed"
    assert logs[-1]["error"] == "boom"
