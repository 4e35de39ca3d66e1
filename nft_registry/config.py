"""
nft_registry.config: storage caps, database location and logging knobs.

This module has NO third-party deps and is safe to import very early.

Configuration precedence:
  1) Environment variables (NFT_REGISTRY_*)
  2) Hardcoded safe defaults below

Key env vars (case-insensitive where boolean):
  - NFT_REGISTRY_DB               (path)  default: unset (in-memory store)
  - NFT_REGISTRY_LOG_LEVEL        (str)   default: INFO
  - NFT_REGISTRY_CLI_LOG_LEVEL    (str)   default: WARNING
  - NFT_REGISTRY_LOG_JSON         (bool)  default: false
  - NFT_REGISTRY_MAX_KEY_BYTES    (int)   default: 64 (min 32, longest registry key is 21)
  - NFT_REGISTRY_MAX_VALUE_BYTES  (int)   default: 4096
  - NFT_REGISTRY_SQLITE_JOURNAL   (str)   default: WAL

Usage:
    from nft_registry.config import load_config
    CFG = load_config()
    if CFG.db_path: ...
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

ENV_PREFIX = "NFT_REGISTRY_"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
_JOURNAL_MODES = ("WAL", "DELETE", "TRUNCATE", "PERSIST", "MEMORY", "OFF")


# ----------------------------- helpers ---------------------------------------


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "t", "yes", "y", "on")


def _env_int(name: str, default: int, *, min_v: int, max_v: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        v = int(raw, 0)
    except ValueError:
        return default
    if v < min_v:
        return min_v
    if v > max_v:
        return max_v
    return v


def _env_choice(name: str, default: str, choices: tuple) -> str:
    raw = os.getenv(name)
    if raw is None:
        return default
    val = raw.strip().upper()
    return val if val in choices else default


def _env_path(name: str) -> Optional[Path]:
    raw = os.getenv(name)
    if not raw or not raw.strip():
        return None
    return Path(raw.strip()).expanduser()


# ------------------------------- config --------------------------------------


@dataclass(frozen=True)
class RegistryConfig:
    # Persistence
    db_path: Optional[Path]
    sqlite_journal_mode: str

    # Storage caps (enforced by nft_registry.storage)
    max_key_bytes: int
    max_value_bytes: int

    # Logging
    log_level: str
    log_json: bool
    cli_log_level: str

    def as_dict(self) -> Dict[str, Any]:
        return {
            "db_path": str(self.db_path) if self.db_path else None,
            "sqlite_journal_mode": self.sqlite_journal_mode,
            "max_key_bytes": self.max_key_bytes,
            "max_value_bytes": self.max_value_bytes,
            "log_level": self.log_level,
            "log_json": self.log_json,
            "cli_log_level": self.cli_log_level,
        }


@lru_cache(maxsize=1)
def load_config() -> RegistryConfig:
    """
    Build and cache a RegistryConfig from environment + safe defaults.
    Call ``load_config.cache_clear()`` after changing the environment.
    """
    return RegistryConfig(
        db_path=_env_path(ENV_PREFIX + "DB"),
        sqlite_journal_mode=_env_choice(ENV_PREFIX + "SQLITE_JOURNAL", "WAL", _JOURNAL_MODES),
        max_key_bytes=_env_int(ENV_PREFIX + "MAX_KEY_BYTES", 64, min_v=32, max_v=256),
        max_value_bytes=_env_int(ENV_PREFIX + "MAX_VALUE_BYTES", 4096, min_v=128, max_v=1_048_576),
        log_level=_env_choice(ENV_PREFIX + "LOG_LEVEL", "INFO", _LOG_LEVELS),
        log_json=_env_bool(ENV_PREFIX + "LOG_JSON", False),
        cli_log_level=_env_choice(ENV_PREFIX + "CLI_LOG_LEVEL", "WARNING", _LOG_LEVELS),
    )


CFG: RegistryConfig = load_config()

__all__ = ["RegistryConfig", "load_config", "CFG", "ENV_PREFIX"]
