"""
Value types shared by the logging pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Mapping, Optional


class Severity(IntEnum):
    """Closed, ordered set of log severities.

    Values line up with the stdlib ``logging`` numbers so the structlog
    filtering bound logger can use them as thresholds directly.
    """

    DEBUG = 10
    INFO = 20
    WARN = 30
    ERROR = 40

    @property
    def label(self) -> str:
        return _LABELS[self]

    @property
    def severity_number(self) -> int:
        """OTLP severity number."""
        return _OTLP_NUMBERS[self]

    @property
    def severity_text(self) -> str:
        return self.label.upper()

    @classmethod
    def parse(cls, value: "str | Severity") -> "Severity":
        if isinstance(value, Severity):
            return value
        try:
            return _BY_NAME[str(value).strip().lower()]
        except KeyError:
            raise ValueError(
                f"Unknown log level {value!r}; expected one of debug, info, warn, error"
            ) from None


_LABELS = {
    Severity.DEBUG: "debug",
    Severity.INFO: "info",
    Severity.WARN: "warn",
    Severity.ERROR: "error",
}

_OTLP_NUMBERS = {
    Severity.DEBUG: 5,
    Severity.INFO: 9,
    Severity.WARN: 13,
    Severity.ERROR: 17,
}

_BY_NAME = {
    "debug": Severity.DEBUG,
    "info": Severity.INFO,
    "warn": Severity.WARN,
    "warning": Severity.WARN,
    "error": Severity.ERROR,
}

# structlog method names -> severity
METHOD_SEVERITY = {
    "debug": Severity.DEBUG,
    "info": Severity.INFO,
    "warning": Severity.WARN,
    "warn": Severity.WARN,
    "error": Severity.ERROR,
}


class LifecycleState(str, Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    ERROR = "error"
    SHUTDOWN = "shutdown"


@dataclass(frozen=True)
class LogEvent:
    """One log call, captured once and shared by both sinks."""

    timestamp: str
    time_unix_nano: int
    severity: Severity
    service: str
    message: str
    metadata: Mapping[str, Any] = field(default_factory=dict)
    trace_id: Optional[str] = None
    span_id: Optional[str] = None
