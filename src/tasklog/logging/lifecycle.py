"""
Process-wide logger lifecycle.

    UNINITIALIZED ──initialize()──▶ INITIALIZING ──▶ READY ──shutdown()──▶ SHUTDOWN
                                         │
                                         └──(failure)──▶ ERROR

READY is the only state in which `get_logger()` succeeds. ERROR and SHUTDOWN
both accept a fresh `initialize()`.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, ClassVar, Mapping, Optional, Union

from tasklog.config.models import LoggerConfiguration
from tasklog.config.resolver import resolve_logger_config
from tasklog.exceptions import (
    ConfigurationError,
    LifecycleMisuseError,
    LoggerInitializationError,
)
from tasklog.logging.core import DualSinkLogger
from tasklog.types import LifecycleState

_log = logging.getLogger("tasklog.lifecycle")

LoggerOptions = Union[LoggerConfiguration, Mapping[str, Any], None]


class LoggerManager:
    """Single owner of the process's logger.

    Use `LoggerManager.get_instance()`; `reset_instance()` exists for test
    harnesses only.
    """

    _instance: ClassVar[Optional["LoggerManager"]] = None
    _instance_lock: ClassVar[threading.Lock] = threading.Lock()

    def __init__(self) -> None:
        self._state = LifecycleState.UNINITIALIZED
        self._logger: Optional[DualSinkLogger] = None
        self._config: Optional[LoggerConfiguration] = None

    @classmethod
    def get_instance(cls) -> "LoggerManager":
        if cls._instance is None:
            with cls._instance_lock:
                if cls._instance is None:
                    cls._instance = cls()
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Drop the singleton. Test harnesses only."""
        with cls._instance_lock:
            instance, cls._instance = cls._instance, None
        if instance is not None and instance._logger is not None:
            instance._logger.dispose()

    @property
    def state(self) -> LifecycleState:
        return self._state

    @property
    def is_initialized(self) -> bool:
        return self._state is LifecycleState.READY and self._logger is not None

    @property
    def config(self) -> Optional[LoggerConfiguration]:
        return self._config

    async def initialize(self, options: LoggerOptions = None, *, remote_transport: Any = None) -> None:
        """
        Build the logger from ``options``.

        Args:
            options: A `LoggerConfiguration`, a mapping of named options, or
                None to resolve everything from the environment.
            remote_transport: httpx transport for the remote sink (tests).

        Raises:
            LifecycleMisuseError: another initialize() is still in progress.
            ConfigurationError: the configuration is invalid.
            LoggerInitializationError: the sinks could not be constructed.
        """
        if self._state is LifecycleState.READY:
            return
        if self._state is LifecycleState.INITIALIZING:
            raise LifecycleMisuseError(
                "Logger initialization already in progress",
                state=self._state.value,
            )

        self._state = LifecycleState.INITIALIZING
        logger: Optional[DualSinkLogger] = None
        try:
            config = resolve_logger_config(options)
            logger = DualSinkLogger(config, transport=remote_transport)
            await logger.start()
        except ConfigurationError as exc:
            self._state = LifecycleState.ERROR
            _log.error("Logger initialization failed: %s", exc)
            raise
        except Exception as exc:
            self._state = LifecycleState.ERROR
            if logger is not None:
                logger.dispose()
            _log.error("Logger initialization failed: %s", exc)
            raise LoggerInitializationError("Failed to initialize logger", cause=exc) from exc

        if self._state is not LifecycleState.INITIALIZING:
            # shutdown() ran while the sinks were starting
            logger.dispose()
            raise LifecycleMisuseError(
                "Logger was shut down during initialization",
                state=self._state.value,
            )

        self._config = config
        self._logger = logger
        self._state = LifecycleState.READY

    def get_logger(self) -> DualSinkLogger:
        if self._state is not LifecycleState.READY or self._logger is None:
            raise LifecycleMisuseError(
                "Logger not initialized. Call initialize() first.",
                state=self._state.value,
            )
        return self._logger

    async def shutdown(self) -> None:
        """Drain and release the logger. Safe to call repeatedly."""
        if self._state is LifecycleState.SHUTDOWN:
            return

        logger = self._logger
        self._state = LifecycleState.SHUTDOWN
        self._logger = None
        self._config = None

        if logger is None:
            return
        try:
            await logger.close()
        except Exception as exc:
            _log.warning("Logger shutdown failed: %s", exc)
        logger.info("Logger shutdown completed")
