"""
Logger error taxonomy.

Only configuration and lifecycle-misuse errors are allowed to reach
application code. Remote-sink and serialization errors are raised and caught
inside the logging pipeline.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class LoggerError(Exception):
    """Root of all logger errors."""

    def __init__(
        self,
        message: str,
        *,
        code: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.details = details or {}


class ConfigurationError(LoggerError):
    """Invalid or missing logger setting. Fatal, raised from initialize()."""

    def __init__(self, message: str, *, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, code="CONFIGURATION_INVALID", details=details)


class LifecycleMisuseError(LoggerError):
    """The logger lifecycle was driven out of order by the caller."""

    def __init__(self, message: str, *, state: str) -> None:
        super().__init__(message, code="LIFECYCLE_MISUSE", details={"state": state})


class LoggerInitializationError(LoggerError):
    """Sink construction failed while initializing the logger."""

    def __init__(self, message: str, *, cause: BaseException) -> None:
        super().__init__(
            message,
            code="INITIALIZATION_FAILED",
            details={"cause": f"{type(cause).__name__}: {cause}"},
        )
        self.__cause__ = cause


class RemoteSinkError(LoggerError):
    """Transmission to the remote collector failed."""

    def __init__(
        self,
        message: str,
        *,
        endpoint: str,
        status_code: Optional[int] = None,
    ) -> None:
        details: Dict[str, Any] = {"endpoint": endpoint}
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(message, code="REMOTE_SINK_FAILED", details=details)
        self.status_code = status_code


class SerializationError(LoggerError):
    """Metadata could not be encoded as JSON."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="SERIALIZATION_FAILED")
