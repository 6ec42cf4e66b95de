"""
Tests for structured queue logging.
"""
import json
import pytest
from loguru import logger

from mongo_queue.utils.observability import configure_logging, log_queue_event


@pytest.fixture
def captured():
    """Collect loguru records emitted during the test."""
    records = []
    handler_id = logger.add(lambda message: records.append(message.record), level="DEBUG")
    yield records
    logger.remove(handler_id)


class TestLogQueueEvent:

    def test_binds_structured_fields(self, captured):
        log_queue_event("failed", record_id="rec-1", level="WARNING", retry_count=2, delay_ms=50.0)

        record = captured[-1]
        assert record["level"].name == "WARNING"
        assert record["message"] == "Queue Event: failed | rec-1"
        assert record["extra"]["event_type"] == "failed"
        assert record["extra"]["record_id"] == "rec-1"
        assert record["extra"]["retry_count"] == 2
        assert record["extra"]["delay_ms"] == 50.0

    def test_defaults_to_info(self, captured):
        log_queue_event("processed", record_id="rec-2")

        assert captured[-1]["level"].name == "INFO"


class TestConfigureLogging:

    def test_structured_logging_emits_json(self, monkeypatch, capsys):
        monkeypatch.setenv("ENABLE_STRUCTURED_LOGGING", "true")
        monkeypatch.setenv("LOG_LEVEL", "INFO")

        configure_logging()
        try:
            log_queue_event("notified", record_id="rec-3")
            lines = [line for line in capsys.readouterr().err.splitlines() if line.strip()]
            payload = json.loads(lines[-1])

            assert payload["record"]["extra"]["event_type"] == "notified"
            assert payload["record"]["extra"]["record_id"] == "rec-3"
        finally:
            logger.remove()
            logger.add(lambda message: None)
