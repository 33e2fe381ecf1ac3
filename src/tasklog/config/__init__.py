"""
Logger Configuration Module.

Each concern is an independent settings class with the `TASKLOG_` prefix:

    TASKLOG_ENV                       development | production | test (selects .env.<env>)
    TASKLOG_SERVICE_NAME              service name on every record
    TASKLOG_LEVEL                     debug | info | warn | error
    TASKLOG_ENABLE_CONSOLE            console sink on/off
    TASKLOG_ENABLE_REMOTE             OTLP/HTTP sink on/off (always off in test)
    TASKLOG_REMOTE_ENDPOINT           collector base URL
    TASKLOG_BREAKER_*                 circuit breaker tuning

Usage:
    from tasklog.config import resolve_logger_config

    config = resolve_logger_config(service_name="svc", log_level="warn")
"""

from .environment import Environment, EnvironmentSettings
from .logging import LoggingSettings
from .models import CircuitBreakerConfig, LoggerConfiguration
from .resolver import resolve_logger_config

__all__ = [
    "CircuitBreakerConfig",
    "Environment",
    "EnvironmentSettings",
    "LoggerConfiguration",
    "LoggingSettings",
    "resolve_logger_config",
]
