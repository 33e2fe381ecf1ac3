"""
Dual-sink logging for tasklog.

Provides structured logging to two sinks:
- console: fixed `[level:..,service:..,timestamp:..]:message` lines on stdout/stderr
- remote: OTLP/HTTP collector, guarded by a circuit breaker

Design Pattern: Strategy Pattern for sink abstraction, singleton lifecycle owner.
Library: structlog + orjson for the emit pipeline, httpx for the collector.
"""

from .breaker import BreakerSnapshot, CircuitBreaker, CircuitState
from .core import BaseLogger, ChildLogger, DualSinkLogger
from .facade import (
    DegradedLogger,
    GlobalLogger,
    get_logger,
    initialize_logger,
    logger,
    shutdown_logger,
)
from .formatters import ConsoleFormatter, OTLPFormatter, normalize_metadata
from .lifecycle import LoggerManager
from .sinks import BaseSink, ConsoleSink, OTLPHttpSink

__all__ = [
    "BaseLogger",
    "BaseSink",
    "BreakerSnapshot",
    "ChildLogger",
    "CircuitBreaker",
    "CircuitState",
    "ConsoleFormatter",
    "ConsoleSink",
    "DegradedLogger",
    "DualSinkLogger",
    "GlobalLogger",
    "LoggerManager",
    "OTLPFormatter",
    "OTLPHttpSink",
    "get_logger",
    "initialize_logger",
    "logger",
    "normalize_metadata",
    "shutdown_logger",
]
