"""
Logging Configuration.

Raw, environment-backed settings. They are turned into an immutable
`LoggerConfiguration` by `tasklog.config.resolver`.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class LoggingSettings(BaseSettings):
    """Logger infrastructure configuration."""

    model_config = SettingsConfigDict(
        env_prefix="TASKLOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    service_name: str = Field(default="task-manager", description="Service name reported by both sinks")
    service_version: str = Field(default="1.0.0", description="Reported as the service.version resource attribute")
    level: str = Field(default="info", description="Minimum severity (debug, info, warn, error)")
    enable_console: bool = Field(default=True, description="Write records to stdout/stderr")
    enable_remote: bool = Field(default=True, description="Send records to the OTLP/HTTP collector")
    remote_endpoint: str = Field(default="http://localhost:4318", description="Collector base URL")
    remote_timeout_ms: int = Field(default=5000, description="Per-request collector timeout")
    drain_timeout_ms: int = Field(default=2000, description="Upper bound for draining sends on shutdown")
    breaker_failure_threshold: int = Field(default=5, description="Consecutive failures before the breaker opens")
    breaker_reset_timeout_ms: int = Field(default=30000, description="Cooldown before a half-open probe")
    breaker_success_threshold: int = Field(default=3, description="Half-open successes needed to close")
