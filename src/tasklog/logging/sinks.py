"""
Log sink abstractions and concrete implementations.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional, TextIO

import httpx
import orjson

from tasklog.exceptions import RemoteSinkError
from tasklog.logging.formatters import ConsoleFormatter, OTLPFormatter
from tasklog.types import LogEvent, Severity


# =============================================================================
# Sink Abstraction (Strategy Pattern)
# =============================================================================


class BaseSink(ABC):
    """Synchronous sink, written to on the caller's thread."""

    @abstractmethod
    def emit(self, event: LogEvent) -> None:
        """Emit a log event to the sink."""
        ...

    @abstractmethod
    def close(self) -> None:
        """Close the sink and release resources."""
        ...


class AsyncSink(ABC):
    """Asynchronous sink, awaited off the caller's path."""

    @abstractmethod
    async def send(self, event: LogEvent) -> None:
        """Transmit a log event. Raises on failure."""
        ...

    @abstractmethod
    async def aclose(self) -> None:
        """Release transport resources."""
        ...


class ConsoleSink(BaseSink):
    """stdout for debug/info/warn, stderr for error.

    Args:
        stdout: Override for the standard output stream (default: sys.stdout at call time)
        stderr: Override for the standard error stream (default: sys.stderr at call time)
    """

    def __init__(self, stdout: Optional[TextIO] = None, stderr: Optional[TextIO] = None):
        self._stdout = stdout
        self._stderr = stderr

    def _stream_for(self, severity: Severity) -> TextIO:
        if severity is Severity.ERROR and self._stderr is not None:
            return self._stderr
        if severity is not Severity.ERROR and self._stdout is not None:
            return self._stdout
        return ConsoleFormatter.stream_for(severity)

    def emit(self, event: LogEvent) -> None:
        stream = self._stream_for(event.severity)
        stream.write(ConsoleFormatter.format(event) + "\n")
        stream.flush()

    def close(self) -> None:
        pass


class OTLPHttpSink(AsyncSink):
    """OTLP/HTTP JSON sink: one POST to `<endpoint>/v1/logs` per event.

    Any non-2xx response, timeout or transport error is raised as
    `RemoteSinkError` so the caller can report it to the circuit breaker.
    """

    LOGS_PATH = "/v1/logs"

    def __init__(
        self,
        endpoint: str,
        *,
        service_version: str = "1.0.0",
        timeout: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._url = endpoint.strip().rstrip("/") + self.LOGS_PATH
        self._service_version = service_version
        self._client = httpx.AsyncClient(
            timeout=timeout,
            transport=transport,
            headers={"Content-Type": "application/json"},
        )

    @property
    def url(self) -> str:
        return self._url

    @property
    def closed(self) -> bool:
        return self._client.is_closed

    def encode(self, event: LogEvent) -> bytes:
        payload = OTLPFormatter.to_payload(event, service_version=self._service_version)
        return orjson.dumps(payload)

    async def send(self, event: LogEvent) -> None:
        body = self.encode(event)
        try:
            response = await self._client.post(self._url, content=body)
        except httpx.TimeoutException as exc:
            raise RemoteSinkError("OTEL collector request timeout", endpoint=self._url) from exc
        except httpx.HTTPError as exc:
            raise RemoteSinkError(f"OTEL collector connection error: {exc}", endpoint=self._url) from exc

        if not response.is_success:
            raise RemoteSinkError(
                f"OTEL collector HTTP {response.status_code}: {response.reason_phrase}",
                endpoint=self._url,
                status_code=response.status_code,
            )

    async def aclose(self) -> None:
        await self._client.aclose()
