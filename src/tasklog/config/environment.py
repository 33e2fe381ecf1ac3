"""
Environment Configuration.

The environment is determined by the `TASKLOG_ENV` environment variable. It
picks the `.env` files the logging settings are read from and decides
whether the remote sink may be enabled at all.
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


Environment = Literal["development", "production", "test"]


class EnvironmentSettings(BaseSettings):
    """
    Environment detection.

    File Resolution Order (later files override earlier ones):
    1. `.env`
    2. `.env.{environment}`
    """

    model_config = SettingsConfigDict(
        env_prefix="TASKLOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    env: Environment = Field(
        default="development",
        description="Current environment (development, production, test)",
    )

    @property
    def is_test(self) -> bool:
        """The remote sink is always off under test."""
        return self.env == "test"

    @property
    def env_files(self) -> tuple[str, ...]:
        return (".env", f".env.{self.env}")
