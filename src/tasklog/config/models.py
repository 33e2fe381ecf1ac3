"""
Immutable logger configuration models.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from tasklog.config.environment import Environment
from tasklog.types import Severity


class CircuitBreakerConfig(BaseModel):
    """Breaker tuning for the remote sink."""

    model_config = ConfigDict(frozen=True)

    failure_threshold: int = Field(default=5, ge=1)
    reset_timeout_ms: int = Field(default=30000, ge=1000)
    success_threshold: int = Field(default=3, ge=1)

    @property
    def reset_timeout(self) -> float:
        """Cooldown in seconds."""
        return self.reset_timeout_ms / 1000


class LoggerConfiguration(BaseModel):
    """Validated logger configuration, fixed for the life of one logger."""

    model_config = ConfigDict(frozen=True)

    service_name: str = "task-manager"
    service_version: str = "1.0.0"
    log_level: Severity = Severity.INFO
    environment: Environment = "development"
    enable_console: bool = True
    enable_remote: bool = False
    remote_endpoint: Optional[str] = None
    remote_timeout_ms: int = Field(default=5000, gt=0)
    drain_timeout_ms: int = Field(default=2000, ge=0)
    circuit_breaker: CircuitBreakerConfig = Field(default_factory=CircuitBreakerConfig)

    @model_validator(mode="before")
    @classmethod
    def _test_environment_disables_remote(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("environment") == "test":
            data = {**data, "enable_remote": False}
        return data

    @field_validator("log_level", mode="before")
    @classmethod
    def _parse_level(cls, value: Any) -> Severity:
        return Severity.parse(value)

    @field_validator("service_name")
    @classmethod
    def _service_name_not_blank(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("Service name cannot be empty")
        return value.strip()

    @model_validator(mode="after")
    def _remote_endpoint_required(self) -> "LoggerConfiguration":
        if self.enable_remote and not (self.remote_endpoint or "").strip():
            raise ValueError("Remote endpoint cannot be empty when the remote sink is enabled")
        return self

    @property
    def remote_timeout(self) -> float:
        return self.remote_timeout_ms / 1000

    @property
    def drain_timeout(self) -> float:
        return self.drain_timeout_ms / 1000
