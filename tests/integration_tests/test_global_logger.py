"""
Global logger facade integration tests.
"""

from __future__ import annotations

import json
import re

import pytest

from conftest import TIMESTAMP_PATTERN
from tasklog import initialize_logger, logger, shutdown_logger
from tasklog.config.models import LoggerConfiguration
from tasklog.exceptions import ConfigurationError
from tasklog.logging.facade import DegradedLogger, get_logger
from tasklog.logging.lifecycle import LoggerManager
from tasklog.types import Severity


def lines(text: str) -> list[str]:
    return [line for line in text.splitlines() if line.startswith("[level:")]


def test_degraded_output_before_initialize(capsys):
    logger.debug("booting")
    logger.error("no config yet", {"attempt": 1})

    captured = capsys.readouterr()
    assert re.fullmatch(
        rf"\[level:debug,service:task-manager,timestamp:{TIMESTAMP_PATTERN}\]:booting\n",
        captured.out,
    )
    header, body = captured.err.split("\n", 1)
    assert re.fullmatch(rf"\[level:error,service:task-manager,timestamp:{TIMESTAMP_PATTERN}\]:no config yet", header)
    assert json.loads(body) == {"attempt": 1}


def test_degraded_logger_emits_every_severity():
    degraded = DegradedLogger()
    assert all(degraded.is_enabled_for(severity) for severity in Severity)
    assert isinstance(logger.resolve(), DegradedLogger)


@pytest.mark.asyncio
async def test_warn_threshold_with_camel_case_options(capsys):
    await initialize_logger(
        {"serviceName": "task-manager", "logLevel": "warn", "enableConsole": True, "enableOTEL": False}
    )
    capsys.readouterr()

    logger.debug("x")
    assert capsys.readouterr().out == ""

    logger.warn("low disk", {"available": "10MB"})
    out = capsys.readouterr().out
    header, body = out.split("\n", 1)
    assert re.fullmatch(rf"\[level:warn,service:task-manager,timestamp:{TIMESTAMP_PATTERN}\]:low disk", header)
    assert json.loads(body) == {"available": "10MB"}


@pytest.mark.asyncio
async def test_initialize_announces_itself(capsys):
    live = await initialize_logger(service_name="svc", enable_remote=False)

    out = capsys.readouterr().out
    assert lines(out)[0].endswith("]:Logger initialized")
    assert json.loads(out.split("\n", 1)[1]) == {"service": "svc", "remote_enabled": False}
    assert live is LoggerManager.get_instance().get_logger()

    again = await initialize_logger(service_name="svc", enable_remote=False)
    assert again is live
    assert "Logger initialized" not in capsys.readouterr().out


@pytest.mark.asyncio
async def test_forwards_after_initialize_and_falls_back_after_shutdown(capsys):
    await initialize_logger(service_name="orders", enable_remote=False, log_level="info")
    capsys.readouterr()

    logger.info("placed")
    assert "service:orders" in capsys.readouterr().out

    await shutdown_logger()
    capsys.readouterr()

    logger.debug("after shutdown")
    assert "[level:debug,service:task-manager," in capsys.readouterr().out


@pytest.mark.asyncio
async def test_child_of_global_logger(capsys):
    await initialize_logger(service_name="svc", enable_remote=False)
    capsys.readouterr()

    get_logger({"request_id": "r-9"}).info("handled", {"status": 200})

    out = capsys.readouterr().out
    assert json.loads(out.split("\n", 1)[1]) == {"request_id": "r-9", "status": 200}
    assert get_logger() is logger


@pytest.mark.asyncio
async def test_configuration_instance_with_overrides_rejected():
    with pytest.raises(ConfigurationError):
        await initialize_logger(LoggerConfiguration(), service_name="svc")
