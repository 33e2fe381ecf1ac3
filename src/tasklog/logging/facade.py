"""
Global logger handle.

    from tasklog import logger

    logger.info("Task Manager starting up...")

Every call re-resolves the `LoggerManager` singleton, so modules can import
`logger` before the application has initialized it. Until the singleton is
READY (and again after shutdown) calls go to a console-only degraded logger
that uses the same line layout.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from tasklog.config.models import LoggerConfiguration
from tasklog.exceptions import ConfigurationError, LifecycleMisuseError
from tasklog.logging.core import BaseLogger, DualSinkLogger, Metadata, report_internal_error
from tasklog.logging.formatters import normalize_metadata, utc_now
from tasklog.logging.lifecycle import LoggerManager, LoggerOptions
from tasklog.logging.sinks import BaseSink, ConsoleSink
from tasklog.types import LogEvent, Severity

FALLBACK_SERVICE_NAME = "task-manager"


class DegradedLogger(BaseLogger):
    """Console-only logger used before initialization. Emits every severity."""

    def __init__(self, service_name: str = FALLBACK_SERVICE_NAME, console: Optional[BaseSink] = None):
        self._service_name = service_name
        self._console = console or ConsoleSink()

    def is_enabled_for(self, severity: Severity) -> bool:
        return True

    def _log(self, severity: Severity, message: str, metadata: Metadata) -> None:
        try:
            timestamp, nanos = utc_now()
            self._console.emit(
                LogEvent(
                    timestamp=timestamp,
                    time_unix_nano=nanos,
                    severity=severity,
                    service=self._service_name,
                    message=str(message),
                    metadata=normalize_metadata(metadata),
                )
            )
        except Exception as exc:
            report_internal_error(self._service_name, exc)


class GlobalLogger(BaseLogger):
    """Forwards to the live logger, or to the degraded one before READY."""

    def __init__(self, fallback: Optional[BaseLogger] = None):
        self._fallback = fallback or DegradedLogger()

    def resolve(self) -> BaseLogger:
        manager = LoggerManager.get_instance()
        if manager.is_initialized:
            try:
                return manager.get_logger()
            except LifecycleMisuseError:
                return self._fallback
        return self._fallback

    def is_enabled_for(self, severity: Severity) -> bool:
        return self.resolve().is_enabled_for(severity)

    def _log(self, severity: Severity, message: str, metadata: Metadata) -> None:
        self.resolve()._log(severity, message, metadata)


logger = GlobalLogger()


async def initialize_logger(
    options: LoggerOptions = None,
    *,
    remote_transport: Any = None,
    **overrides: Any,
) -> DualSinkLogger:
    """
    Initialize the process logger and announce it.

    Call once during bootstrap, after any telemetry SDK set-up. Errors from
    `LoggerManager.initialize` propagate.
    """
    if overrides:
        if isinstance(options, LoggerConfiguration):
            raise ConfigurationError("Overrides cannot be combined with a LoggerConfiguration instance")
        options = {**(options or {}), **overrides}

    manager = LoggerManager.get_instance()
    already_ready = manager.is_initialized
    await manager.initialize(options, remote_transport=remote_transport)
    live = manager.get_logger()

    if not already_ready:
        live.info(
            "Logger initialized",
            {"service": live.config.service_name, "remote_enabled": live.config.enable_remote},
        )
    return live


async def shutdown_logger() -> None:
    await LoggerManager.get_instance().shutdown()


def get_logger(context: Optional[Mapping[str, Any]] = None) -> BaseLogger:
    """The global handle, or a child of it carrying ``context``."""
    if context:
        return logger.child(context)
    return logger
