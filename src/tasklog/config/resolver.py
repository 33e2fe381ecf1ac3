"""
Configuration resolver.

Builds a validated `LoggerConfiguration` from named options layered over
`TASKLOG_*` environment variables and built-in defaults. This is the only
place where invalid logger input is fatal.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from pydantic import ValidationError

from tasklog.config.environment import EnvironmentSettings
from tasklog.config.logging import LoggingSettings
from tasklog.config.models import CircuitBreakerConfig, LoggerConfiguration
from tasklog.exceptions import ConfigurationError
from tasklog.types import Severity

# option name -> LoggingSettings field
_SETTINGS_FIELDS = {
    "service_name": "service_name",
    "service_version": "service_version",
    "log_level": "level",
    "enable_console": "enable_console",
    "enable_remote": "enable_remote",
    "remote_endpoint": "remote_endpoint",
    "remote_timeout_ms": "remote_timeout_ms",
    "drain_timeout_ms": "drain_timeout_ms",
    "failure_threshold": "breaker_failure_threshold",
    "reset_timeout_ms": "breaker_reset_timeout_ms",
    "success_threshold": "breaker_success_threshold",
}

# Spellings used by existing call sites
_ALIASES = {
    "serviceName": "service_name",
    "serviceVersion": "service_version",
    "logLevel": "log_level",
    "level": "log_level",
    "enableConsole": "enable_console",
    "enableOTEL": "enable_remote",
    "enable_otel": "enable_remote",
    "otelEndpoint": "remote_endpoint",
    "otel_endpoint": "remote_endpoint",
    "failureThreshold": "failure_threshold",
    "resetTimeoutMs": "reset_timeout_ms",
    "resetTimeout": "reset_timeout_ms",
    "successThreshold": "success_threshold",
    "env": "environment",
}

_NESTED_BREAKER_KEYS = ("circuit_breaker", "circuitBreaker")


def _normalize_options(options: Mapping[str, Any]) -> Dict[str, Any]:
    normalized: Dict[str, Any] = {}
    for key, value in options.items():
        if key in _NESTED_BREAKER_KEYS:
            if value is None:
                continue
            if isinstance(value, CircuitBreakerConfig):
                value = value.model_dump()
            if not isinstance(value, Mapping):
                raise ConfigurationError(
                    f"Option {key!r} must be a mapping",
                    details={"option": key},
                )
            normalized.update(_normalize_options(value))
            continue

        name = _ALIASES.get(key, key)
        if name not in _SETTINGS_FIELDS and name != "environment":
            raise ConfigurationError(f"Unknown logger option {key!r}", details={"option": key})
        if isinstance(value, Severity):
            value = value.label
        if value is not None:
            normalized[name] = value
    return normalized


def _describe(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ())) or "config"
        parts.append(f"{location}: {error.get('msg', 'invalid value')}")
    return "; ".join(parts)


def resolve_logger_config(
    options: Optional[Mapping[str, Any]] = None,
    **overrides: Any,
) -> LoggerConfiguration:
    """
    Resolve the logger configuration.

    Sources, later wins: defaults, `.env` then `.env.<environment>` files,
    `TASKLOG_*` environment variables, then ``options`` / ``overrides``.

    Raises:
        ConfigurationError: the resulting configuration is invalid.
    """
    if isinstance(options, LoggerConfiguration):
        if overrides:
            raise ConfigurationError("Overrides cannot be combined with a LoggerConfiguration instance")
        return options

    merged = _normalize_options({**(options or {}), **overrides})
    environment = merged.pop("environment", None)

    try:
        env = EnvironmentSettings() if environment is None else EnvironmentSettings(env=environment)
        settings = LoggingSettings(
            _env_file=env.env_files,
            **{_SETTINGS_FIELDS[name]: value for name, value in merged.items()},
        )
        return LoggerConfiguration(
            service_name=settings.service_name,
            service_version=settings.service_version,
            log_level=settings.level,
            environment=env.env,
            enable_console=settings.enable_console,
            enable_remote=settings.enable_remote and not env.is_test,
            remote_endpoint=settings.remote_endpoint,
            remote_timeout_ms=settings.remote_timeout_ms,
            drain_timeout_ms=settings.drain_timeout_ms,
            circuit_breaker=CircuitBreakerConfig(
                failure_threshold=settings.breaker_failure_threshold,
                reset_timeout_ms=settings.breaker_reset_timeout_ms,
                success_threshold=settings.breaker_success_threshold,
            ),
        )
    except ValidationError as exc:
        raise ConfigurationError(
            f"Invalid logger configuration: {_describe(exc)}",
            details={"errors": exc.errors(include_url=False)},
        ) from exc
