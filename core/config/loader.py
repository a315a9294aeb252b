"""
Sync Server Configuration Loader - Single Source of Truth

Consolidates configuration for the backup server:
- Environment variables
- .env file in the repository root (never overrides the real environment)
- Defaults matching the original server (port 3000, 20 slots, 100MB bodies)

Usage:
    from core.config import get_config

    config = get_config()
    store_dir = config.data_dir
    ring_size = config.max_backups
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Type, TypeVar

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

ROOT = Path(__file__).resolve().parents[2]
ENV_FILE = ROOT / ".env"
DEFAULT_DATA_DIR = ROOT / "data"

T = TypeVar("T")


def _get_env(key: str, default: T = None, cast: Type[T] = str) -> T:
    """Get environment variable with type casting."""
    value = os.environ.get(key)

    if value is None or value.strip() == "":
        return default

    if cast == bool:
        return value.lower() in ('true', '1', 'yes', 'on')

    if cast == int:
        try:
            return int(value)
        except ValueError:
            logger.warning(f"Ignoring non-integer {key}={value!r}, using {default}")
            return default

    if cast == list:
        return [v.strip() for v in value.split(',') if v.strip()]

    return value


def load_env_file(path: Optional[Path] = None) -> bool:
    """Load a .env file (repository root by default) without overwriting variables already set."""
    path = path or ENV_FILE
    if not path.exists():
        return False

    loaded = load_dotenv(path, override=False)
    logger.debug(f"Loaded .env from {path}")
    return loaded


@dataclass
class SyncConfig:
    """Backup server configuration."""
    secret_key: str = ""
    host: str = "0.0.0.0"
    port: int = 3000
    max_backups: int = 20
    data_dir: Path = DEFAULT_DATA_DIR
    file_prefix: str = "telewindy-data"
    index_file: str = "current_index.txt"
    body_limit_mb: int = 100
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    atomic_writes: bool = True
    serialize_writes: bool = False
    log_level: str = "INFO"
    log_file: Optional[str] = None

    @classmethod
    def from_env(cls) -> 'SyncConfig':
        return cls(
            secret_key=_get_env("SYNC_SECRET_KEY", ""),
            host=_get_env("SYNC_HOST", "0.0.0.0"),
            port=_get_env("SYNC_PORT", 3000, int),
            max_backups=_get_env("SYNC_MAX_BACKUPS", 20, int),
            data_dir=Path(_get_env("SYNC_DATA_DIR", str(DEFAULT_DATA_DIR))),
            file_prefix=_get_env("SYNC_FILE_PREFIX", "telewindy-data"),
            index_file=_get_env("SYNC_INDEX_FILE", "current_index.txt"),
            body_limit_mb=_get_env("SYNC_BODY_LIMIT_MB", 100, int),
            cors_origins=_get_env("CORS_ORIGINS", ["*"], list),
            atomic_writes=_get_env("SYNC_ATOMIC_WRITES", True, bool),
            serialize_writes=_get_env("SYNC_SERIALIZE_WRITES", False, bool),
            log_level=_get_env("LOG_LEVEL", "INFO").upper(),
            log_file=_get_env("SYNC_LOG_FILE", None),
        )

    @property
    def body_limit_bytes(self) -> int:
        return self.body_limit_mb * 1024 * 1024

    def validate(self) -> List[str]:
        """Return a list of configuration problems (empty when usable)."""
        problems = []

        if not self.secret_key:
            problems.append("SYNC_SECRET_KEY is not set")
        if self.max_backups < 1:
            problems.append(f"SYNC_MAX_BACKUPS must be >= 1 (got {self.max_backups})")
        if self.body_limit_mb < 1:
            problems.append(f"SYNC_BODY_LIMIT_MB must be >= 1 (got {self.body_limit_mb})")
        if not 0 < self.port < 65536:
            problems.append(f"SYNC_PORT out of range: {self.port}")
        if not self.file_prefix:
            problems.append("SYNC_FILE_PREFIX must not be empty")

        return problems


_config: Optional[SyncConfig] = None


def get_config(reload: bool = False) -> SyncConfig:
    """Get the cached configuration, loading .env on first use."""
    global _config
    if _config is None or reload:
        load_env_file()
        _config = SyncConfig.from_env()
    return _config


def reset_config() -> None:
    """Drop the cached configuration (used by tests)."""
    global _config
    _config = None
