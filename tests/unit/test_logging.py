import json
import logging

from calsync.core.logging import ContextFilter, JsonFormatter, log_context, request_context


def _record(msg="hello", **extra):
    record = logging.makeLogRecord({"name": "calsync.test", "levelname": "INFO", "msg": msg})
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestLogContext:
    def test_context_is_scoped_to_block(self):
        with log_context(user_id=1, action="push_event"):
            with log_context(event_id=9):
                assert request_context.get() == {"user_id": 1, "action": "push_event", "event_id": 9}
            assert "event_id" not in request_context.get()
        assert request_context.get() == {}

    def test_filter_copies_context_without_overwriting(self):
        record = _record(user_id=2)

        with log_context(user_id=1, action="delete_event"):
            assert ContextFilter().filter(record) is True

        assert record.user_id == 2
        assert record.action == "delete_event"

    def test_json_formatter_includes_extras_and_context(self):
        record = _record("sync failed", error_code="rate_limited")

        with log_context(user_id=7):
            payload = json.loads(JsonFormatter().format(record))

        assert payload["message"] == "sync failed"
        assert payload["error_code"] == "rate_limited"
        assert payload["user_id"] == 7
        assert payload["level"] == "INFO"
