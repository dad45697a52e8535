"""Configuration — Pydantic models for termservice settings."""

from __future__ import annotations

import os
from typing import Any

from pydantic import BaseModel, Field


class TerminalConfig(BaseModel):
    """Terminal session defaults.

    The batching window bounds how often data subscribers are called per
    session: chunks arriving within ``batch_interval_ms`` of the first
    pending chunk are delivered together.
    """

    default_cols: int = Field(default=80, ge=1, description="Columns for new sessions")
    default_rows: int = Field(default=24, ge=1, description="Rows for new sessions")
    batch_interval_ms: int = Field(
        default=16,
        ge=1,
        description="Output coalescing window per session, in milliseconds",
    )
    read_chunk_size: int = Field(
        default=4096, ge=1, description="Max bytes per read from the PTY master"
    )
    term: str = Field(
        default="xterm-256color", description="TERM exported to child processes"
    )
    colorterm: str = Field(
        default="truecolor", description="COLORTERM exported to child processes"
    )
    kill_timeout: float = Field(
        default=2.0,
        ge=0,
        description="Seconds to wait for a killed process to be reaped",
    )

    @property
    def batch_interval(self) -> float:
        """Batching window in seconds."""
        return self.batch_interval_ms / 1000

    @classmethod
    def load(cls, config_path: str | None = None) -> TerminalConfig:
        """Load config from file, env vars, or defaults.

        Priority: env vars > config file > defaults.

        Env vars:
            TERMSERVICE_COLS      - Default columns for new sessions
            TERMSERVICE_ROWS      - Default rows for new sessions
            TERMSERVICE_BATCH_MS  - Output batching window in milliseconds
            TERMSERVICE_TERM      - TERM value exported to child processes
        """
        from dotenv import find_dotenv, load_dotenv

        # .env next to where the host app runs, not next to this package
        load_dotenv(find_dotenv(usecwd=True))

        config_data: dict[str, Any] = {}

        if config_path and os.path.exists(config_path):
            import json

            with open(config_path) as f:
                config_data = json.load(f)

        env_overrides = {
            "TERMSERVICE_COLS": "default_cols",
            "TERMSERVICE_ROWS": "default_rows",
            "TERMSERVICE_BATCH_MS": "batch_interval_ms",
            "TERMSERVICE_TERM": "term",
        }
        for env_name, key in env_overrides.items():
            value = os.environ.get(env_name)
            if value:
                config_data[key] = value

        return cls.model_validate(config_data)
