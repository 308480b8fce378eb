"""Shared settings loaded from environment / .env file."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_FALSE_VALUES = frozenset({"", "0", "false", "no", "off"})


class Settings(BaseSettings):
    """Configuration for the proofbench test runner.

    Values are read from environment variables and from a ``.env`` file
    in the working directory.  See ``.env.example`` for all options.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = "WARNING"

    # Any value except an explicit false-like one enables update mode.
    update_expect: bool = False

    # Directory layout
    fixture_dir: Path = Path("tests/fixtures/typ")
    ref_dir: Path = Path("tests/fixtures/ref")
    png_dir: Path = Path("tests/fixtures/png")
    pdf_dir: Path = Path("tests/fixtures/pdf")
    asset_dir: Path = Path("tests/fixtures")
    font_dir: Path | None = None
    fixture_suffix: str = ".pbt"

    # Execution
    workers: int | None = None  # None: ThreadPoolExecutor default

    @field_validator("update_expect", mode="before")
    @classmethod
    def _presence_enables(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower() not in _FALSE_VALUES
        return value
