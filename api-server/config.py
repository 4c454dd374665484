from __future__ import annotations

import logging
import os
from dataclasses import dataclass


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    normalized = raw.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    database_url: str = ""
    pool_min_size: int = 1
    pool_max_size: int = 10
    command_timeout: float = 30.0
    log_level: str = "INFO"
    mcp_tools_enabled: bool = True

    @classmethod
    def from_env(cls) -> "Settings":
        min_size = max(1, _env_int("DB_POOL_MIN_SIZE", 1))
        return cls(
            database_url=os.getenv("DATABASE_URL", ""),
            pool_min_size=min_size,
            pool_max_size=max(min_size, _env_int("DB_POOL_MAX_SIZE", 10)),
            command_timeout=max(1.0, _env_float("DB_COMMAND_TIMEOUT_SEC", 30.0)),
            log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO",
            mcp_tools_enabled=_env_bool("MCP_TOOLS_ENABLED", True),
        )


def configure_logging(level: str = "INFO") -> None:
    root = logging.getLogger()
    if root.handlers:
        root.setLevel(level)
        return
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


__all__ = ["Settings", "configure_logging"]
