"""
tasklog: structured logging with a local console sink and a remote OTLP/HTTP
collector sink isolated behind a circuit breaker.

Usage:
    from tasklog import initialize_logger, logger, shutdown_logger

    await initialize_logger(service_name="task-manager")
    logger.info("Task Manager starting up...")
    await shutdown_logger()
"""

from tasklog.config import LoggerConfiguration, resolve_logger_config
from tasklog.exceptions import (
    ConfigurationError,
    LifecycleMisuseError,
    LoggerError,
    LoggerInitializationError,
    RemoteSinkError,
    SerializationError,
)
from tasklog.logging import (
    CircuitState,
    DualSinkLogger,
    LoggerManager,
    get_logger,
    initialize_logger,
    logger,
    shutdown_logger,
)
from tasklog.types import LifecycleState, LogEvent, Severity

__version__ = "1.0.0"

__all__ = [
    "CircuitState",
    "ConfigurationError",
    "DualSinkLogger",
    "LifecycleMisuseError",
    "LifecycleState",
    "LogEvent",
    "LoggerConfiguration",
    "LoggerError",
    "LoggerInitializationError",
    "LoggerManager",
    "RemoteSinkError",
    "SerializationError",
    "Severity",
    "get_logger",
    "initialize_logger",
    "logger",
    "resolve_logger_config",
    "shutdown_logger",
]
