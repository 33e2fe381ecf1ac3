import asyncio
import json
import os
import typing as t

import httpx
import pytest

from tasklog.config.models import CircuitBreakerConfig, LoggerConfiguration
from tasklog.logging.lifecycle import LoggerManager

TIMESTAMP_PATTERN = r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z"
COLLECTOR_ENDPOINT = "http://collector.test:4318"


class FakeCollector:
    """In-process OTLP/HTTP collector backed by httpx.MockTransport."""

    def __init__(self, status_code: int = 200, *, unreachable: bool = False, timeout: bool = False, delay: float = 0.0):
        self.status_code = status_code
        self.unreachable = unreachable
        self.timeout = timeout
        self.delay = delay
        self.requests: list[httpx.Request] = []
        self.transport = httpx.MockTransport(self._handle)

    async def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.unreachable:
            raise httpx.ConnectError("connection refused", request=request)
        if self.timeout:
            raise httpx.ReadTimeout("collector did not answer", request=request)
        return httpx.Response(self.status_code)

    @property
    def calls(self) -> int:
        return len(self.requests)

    def payloads(self) -> list[dict[str, t.Any]]:
        return [json.loads(request.content) for request in self.requests]


@pytest.fixture(autouse=True)
def isolated_logger(monkeypatch):
    """
    Fresh singleton and no TASKLOG_* variables for every test.
    """
    for key in list(os.environ):
        if key.startswith("TASKLOG_"):
            monkeypatch.delenv(key, raising=False)
    LoggerManager.reset_instance()
    yield
    LoggerManager.reset_instance()


@pytest.fixture
def collector() -> FakeCollector:
    return FakeCollector()


@pytest.fixture
def remote_config() -> LoggerConfiguration:
    return LoggerConfiguration(
        service_name="svc",
        log_level="debug",
        enable_console=True,
        enable_remote=True,
        remote_endpoint=COLLECTOR_ENDPOINT,
        circuit_breaker=CircuitBreakerConfig(failure_threshold=5, reset_timeout_ms=30000, success_threshold=2),
    )
