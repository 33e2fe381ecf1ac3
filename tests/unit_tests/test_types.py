"""
Value type unit tests: Severity ordering/parsing and LogEvent immutability.
"""

from __future__ import annotations

import dataclasses

import pytest

from tasklog.types import METHOD_SEVERITY, LogEvent, Severity


class TestSeverity:
    def test_ordering(self):
        assert Severity.DEBUG < Severity.INFO < Severity.WARN < Severity.ERROR

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("debug", Severity.DEBUG),
            ("INFO", Severity.INFO),
            ("warn", Severity.WARN),
            ("Warning", Severity.WARN),
            (" error ", Severity.ERROR),
            (Severity.ERROR, Severity.ERROR),
        ],
    )
    def test_parse(self, raw, expected):
        assert Severity.parse(raw) is expected

    def test_parse_rejects_unknown_level(self):
        with pytest.raises(ValueError, match="Unknown log level"):
            Severity.parse("verbose")

    def test_otlp_mapping(self):
        assert [s.severity_number for s in Severity] == [5, 9, 13, 17]
        assert [s.severity_text for s in Severity] == ["DEBUG", "INFO", "WARN", "ERROR"]
        assert Severity.WARN.label == "warn"

    def test_structlog_method_names(self):
        """Both warn spellings map to WARN."""
        assert METHOD_SEVERITY["warning"] is Severity.WARN
        assert METHOD_SEVERITY["warn"] is Severity.WARN


def test_log_event_is_frozen():
    event = LogEvent(
        timestamp="2024-01-01T00:00:00.000Z",
        time_unix_nano=1704067200000000000,
        severity=Severity.INFO,
        service="svc",
        message="hello",
    )
    assert event.metadata == {}
    assert event.trace_id is None
    with pytest.raises(dataclasses.FrozenInstanceError):
        event.message = "changed"  # type: ignore[misc]
