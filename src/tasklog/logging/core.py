"""
Dual-sink emitter.

Each call runs through a structlog filtering bound logger, so calls below
the configured threshold return before any processor runs. Surviving calls
are turned into one immutable `LogEvent`, written synchronously to the
console and handed to the remote sink on the background dispatcher when the
circuit breaker allows it.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import sys
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any, Callable, Dict, Optional

import structlog
from opentelemetry import trace
from structlog.typing import EventDict, WrappedLogger

from tasklog.config.models import LoggerConfiguration
from tasklog.logging.breaker import BreakerSnapshot, CircuitBreaker, CircuitState
from tasklog.logging.dispatch import BackgroundDispatcher
from tasklog.logging.formatters import ConsoleFormatter, normalize_metadata, utc_now
from tasklog.logging.sinks import AsyncSink, BaseSink, ConsoleSink, OTLPHttpSink
from tasklog.types import METHOD_SEVERITY, LogEvent, Severity

_log = logging.getLogger("tasklog.core")

Metadata = Optional[Mapping[str, Any]]


# =============================================================================
# Logger Surface
# =============================================================================


class BaseLogger(ABC):
    """Severity operations shared by every logger flavour."""

    @abstractmethod
    def _log(self, severity: Severity, message: str, metadata: Metadata) -> None: ...

    @abstractmethod
    def is_enabled_for(self, severity: Severity) -> bool: ...

    def debug(self, message: str, metadata: Metadata = None) -> None:
        self._log(Severity.DEBUG, message, metadata)

    def info(self, message: str, metadata: Metadata = None) -> None:
        self._log(Severity.INFO, message, metadata)

    def warn(self, message: str, metadata: Metadata = None) -> None:
        self._log(Severity.WARN, message, metadata)

    warning = warn

    def error(self, message: str, metadata: Metadata = None) -> None:
        self._log(Severity.ERROR, message, metadata)

    def success(self, message: str, metadata: Metadata = None) -> None:
        """Same as `info`; kept for call sites that label successes separately."""
        self._log(Severity.INFO, message, metadata)

    def child(self, context: Mapping[str, Any]) -> "ChildLogger":
        """Logger that adds ``context`` to the metadata of every call."""
        return ChildLogger(self, context)


class ChildLogger(BaseLogger):
    """Request- or component-scoped view over a parent logger."""

    def __init__(self, parent: BaseLogger, context: Mapping[str, Any]):
        self._parent = parent
        self._context = dict(context)

    @property
    def context(self) -> Dict[str, Any]:
        return dict(self._context)

    def is_enabled_for(self, severity: Severity) -> bool:
        return self._parent.is_enabled_for(severity)

    def _log(self, severity: Severity, message: str, metadata: Metadata) -> None:
        if not self.is_enabled_for(severity):
            return
        if metadata is None:
            merged: Dict[str, Any] = dict(self._context)
        elif isinstance(metadata, Mapping):
            merged = {**self._context, **metadata}
        else:
            merged = {**self._context, "metadata": metadata}
        self._parent._log(severity, message, merged)

    def child(self, context: Mapping[str, Any]) -> "ChildLogger":
        return ChildLogger(self._parent, {**self._context, **context})


def report_internal_error(service: str, exc: BaseException) -> None:
    """Best-effort secondary warning on stderr. Never raises."""
    with contextlib.suppress(Exception):
        timestamp, _ = utc_now()
        header = ConsoleFormatter.header(Severity.WARN, service, timestamp)
        sys.stderr.write(f"{header}:Logger internal error: {type(exc).__name__}: {exc}\n")
        sys.stderr.flush()


# =============================================================================
# Structlog Processors
# =============================================================================


def add_timestamp(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Add ISO 8601 timestamp and unix nanoseconds for the same instant."""
    event_dict["timestamp"], event_dict["time_unix_nano"] = utc_now()
    return event_dict


def add_severity(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    event_dict["severity"] = METHOD_SEVERITY[method_name]
    return event_dict


def add_correlation_ids(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Attach trace/span ids of the active OpenTelemetry span, if any."""
    span_context = trace.get_current_span().get_span_context()
    if span_context.is_valid:
        event_dict["trace_id"] = trace.format_trace_id(span_context.trace_id)
        event_dict["span_id"] = trace.format_span_id(span_context.span_id)
    return event_dict


def normalize_event_metadata(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    event_dict["metadata"] = normalize_metadata(event_dict.get("metadata"))
    return event_dict


class _NopFile:
    def write(self, s: str) -> None:
        pass

    def flush(self) -> None:
        pass


_NOP_FILE = _NopFile()


# =============================================================================
# Dual-Sink Logger
# =============================================================================


class DualSinkLogger(BaseLogger):
    """Console + OTLP/HTTP logger guarded by a circuit breaker.

    Args:
        config: Validated logger configuration.
        breaker: Circuit breaker for the remote sink (built from config if omitted).
        console: Console sink (built when the console is enabled and omitted).
        remote: Remote sink (built when the remote sink is enabled and omitted).
        dispatcher: Background loop that runs remote sends.
        transport: httpx transport for the default remote sink (tests).
    """

    def __init__(
        self,
        config: LoggerConfiguration,
        *,
        breaker: Optional[CircuitBreaker] = None,
        console: Optional[BaseSink] = None,
        remote: Optional[AsyncSink] = None,
        dispatcher: Optional[BackgroundDispatcher] = None,
        transport: Any = None,
    ):
        self._config = config
        self._breaker = breaker or CircuitBreaker(config.circuit_breaker)
        self._console: Optional[BaseSink] = None
        self._remote: Optional[AsyncSink] = None
        self._closed = False

        if config.enable_console:
            self._console = console or ConsoleSink()
        if config.enable_remote:
            self._remote = remote or OTLPHttpSink(
                config.remote_endpoint or "",
                service_version=config.service_version,
                timeout=config.remote_timeout,
                transport=transport,
            )
        self._dispatcher = dispatcher or BackgroundDispatcher()

        self._bound = structlog.wrap_logger(
            structlog.PrintLogger(file=_NOP_FILE),
            processors=[
                add_severity,
                add_timestamp,
                add_correlation_ids,
                normalize_event_metadata,
                self._render,
            ],
            wrapper_class=structlog.make_filtering_bound_logger(int(config.log_level)),
            context_class=dict,
            cache_logger_on_first_use=False,
        )
        self._methods: Dict[Severity, Callable[..., Any]] = {
            Severity.DEBUG: self._bound.debug,
            Severity.INFO: self._bound.info,
            Severity.WARN: self._bound.warning,
            Severity.ERROR: self._bound.error,
        }

    # -------------------------------------------------------------------------
    # Introspection
    # -------------------------------------------------------------------------

    @property
    def config(self) -> LoggerConfiguration:
        return self._config

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def remote(self) -> Optional[AsyncSink]:
        return self._remote

    @property
    def breaker(self) -> CircuitBreaker:
        return self._breaker

    @property
    def circuit_state(self) -> CircuitState:
        return self._breaker.state

    def breaker_snapshot(self) -> BreakerSnapshot:
        return self._breaker.snapshot()

    def is_enabled_for(self, severity: Severity) -> bool:
        return severity >= self._config.log_level

    # -------------------------------------------------------------------------
    # Emission
    # -------------------------------------------------------------------------

    def _log(self, severity: Severity, message: str, metadata: Metadata) -> None:
        try:
            self._methods[severity](message, metadata=metadata)
        except Exception as exc:
            report_internal_error(self._config.service_name, exc)

    def _render(self, logger: WrappedLogger, method_name: str, event_dict: EventDict) -> str:
        """Final processor: build the event and hand it to both sinks."""
        event = LogEvent(
            timestamp=event_dict["timestamp"],
            time_unix_nano=event_dict["time_unix_nano"],
            severity=event_dict["severity"],
            service=self._config.service_name,
            message=str(event_dict.get("event", "")),
            metadata=event_dict["metadata"],
            trace_id=event_dict.get("trace_id"),
            span_id=event_dict.get("span_id"),
        )

        if self._console is not None:
            try:
                self._console.emit(event)
            except Exception as exc:
                report_internal_error(self._config.service_name, exc)

        self._dispatch_remote(event)
        return ""

    def _dispatch_remote(self, event: LogEvent) -> None:
        if self._remote is None or self._closed:
            return
        if not self._breaker.allow_attempt():
            return
        try:
            self._dispatcher.submit(self._transmit(event))
        except RuntimeError as exc:
            _log.debug("Remote log transmission skipped: %s", exc)

    async def _transmit(self, event: LogEvent) -> None:
        """Send one event and report the outcome to the breaker exactly once."""
        assert self._remote is not None
        try:
            await self._remote.send(event)
        except Exception as exc:
            self._breaker.record_failure()
            _log.debug("Remote log transmission failed: %s", exc)
        else:
            self._breaker.record_success()

    # -------------------------------------------------------------------------
    # Resources
    # -------------------------------------------------------------------------

    async def start(self) -> None:
        """Start the remote dispatcher ahead of the first send."""
        if self._remote is not None and not self._closed:
            await asyncio.to_thread(self._dispatcher.start)

    def flush(self, timeout: Optional[float] = None) -> bool:
        """Block until in-flight remote sends settle. True when none remain."""
        if self._remote is None:
            return True
        return self._dispatcher.drain(self._config.drain_timeout if timeout is None else timeout)

    async def close(self, timeout: Optional[float] = None) -> None:
        """Stop remote emission, drain in-flight sends, then release sinks.

        Later calls still reach the console sink but never the remote one.
        """
        if self._closed:
            return
        self._closed = True
        drain_timeout = self._config.drain_timeout if timeout is None else timeout

        if self._remote is not None:
            drained = await asyncio.to_thread(self._dispatcher.drain, drain_timeout)
            if not drained:
                _log.warning(
                    "%d remote log transmission(s) still in flight after %.2fs; cancelling",
                    self._dispatcher.pending,
                    drain_timeout,
                )
            try:
                if self._dispatcher.running:
                    await asyncio.to_thread(self._dispatcher.run, self._remote.aclose(), 1.0)
                else:
                    await self._remote.aclose()
            except Exception as exc:
                _log.warning("Failed to close remote sink: %s", exc)

        await asyncio.to_thread(self._dispatcher.close)

    def dispose(self) -> None:
        """Synchronous teardown without draining. Releases the remote client."""
        self._closed = True
        if self._remote is not None and self._dispatcher.running:
            try:
                self._dispatcher.run(self._remote.aclose(), 1.0)
            except Exception as exc:
                _log.warning("Failed to close remote sink: %s", exc)
        self._dispatcher.close()
