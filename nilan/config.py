"""Configuration handling for nilan."""

from __future__ import annotations

import os
from dataclasses import dataclass


def _get_env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, default))
    except ValueError:
        return default


def _get_env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, default))
    except ValueError:
        return default


@dataclass
class Config:
    """Runtime configuration for the Nilan client."""

    host: str = os.getenv("NILAN_HOST", "192.168.1.31")
    port: int = _get_env_int("NILAN_PORT", 502)
    # per session, every batch opens a fresh connection
    timeout: float = _get_env_float("NILAN_TIMEOUT", 10.0)

    @classmethod
    def from_env(cls) -> "Config":
        """Create configuration from environment variables."""
        return cls(
            host=os.getenv("NILAN_HOST", "192.168.1.31"),
            port=_get_env_int("NILAN_PORT", 502),
            timeout=_get_env_float("NILAN_TIMEOUT", 10.0),
        )
