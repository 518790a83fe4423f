"""Configuration settings for the MCP Forwarded-For server."""

import os
import pathlib
import sys

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Settings(BaseSettings):
    """Application settings loaded from ``XFF_*`` environment variables."""

    # Address selection
    forwarded_header: str = Field(default="X-Forwarded-For", min_length=1)

    # Hostname resolution
    hostname_lookups: bool = Field(default=True)
    lookup_timeout: float = Field(default=2.0, gt=0, le=60)

    # Access log
    access_log_pattern: str = Field(default="common", min_length=1)

    # Logging
    log_level: str = Field(default="INFO")

    model_config = SettingsConfigDict(
        env_prefix="XFF_",
        env_file=None,
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    def __init__(self, _env_file: str | None = None, **data: object) -> None:
        if _env_file is None:
            running_tests = 'pytest' in sys.modules or os.environ.get('PYTEST_CURRENT_TEST') is not None
            if not running_tests:
                current_dir = pathlib.Path.cwd()
                for path in [current_dir] + list(current_dir.parents):
                    env_file = path / '.env'
                    if env_file.exists():
                        _env_file = str(env_file)
                        print(f"[MCP Forwarded-For] Loading environment from: {_env_file}", file=sys.stderr)
                        break

        super().__init__(_env_file=_env_file, **data)

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(_LOG_LEVELS)}")
        return level
