"""Application configuration — flat JSON file merged over defaults, saved atomically."""

from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Any

from loguru import logger

_instance: "Config | None" = None

# Default data directory
_DEFAULT_DATA_DIR = Path.home() / "Documents" / "BackupManager"

_POLICIES = ("abort", "continue")


def get_config() -> Config:
    """Module-level factory — single global Config instance."""
    global _instance
    if _instance is None:
        _instance = Config()
    return _instance


def reset_config() -> None:
    """Reset the global config instance (for testing)."""
    global _instance
    _instance = None


class Config:
    """JSON-based application configuration with file locking."""

    _DEFAULTS: dict[str, Any] = {
        "storage_path": "",
        "copy_failure_policy": "abort",
        "use_lock_files": True,
        "log_level": "INFO",
    }

    def __init__(self, data_dir: Path | None = None) -> None:
        self._data: dict[str, Any] = {}
        self._dir = Path(data_dir) if data_dir else _DEFAULT_DATA_DIR
        self._path = self._dir / "config.json"
        self._lock = threading.Lock()
        self._load()

    def _load(self) -> None:
        """Load config from disk, merging with defaults."""
        self._data = dict(self._DEFAULTS)
        if self._path.exists():
            try:
                with open(self._path, encoding="utf-8") as f:
                    user_data = json.load(f)
            except (json.JSONDecodeError, OSError) as e:
                logger.warning(f"Failed to load config, using defaults: {e}")
                return
            if isinstance(user_data, dict):
                self._data.update(user_data)
            else:
                logger.warning(f"Config {self._path} is not a JSON object, using defaults")

    def _save(self) -> None:
        """Persist config to disk with file locking."""
        with self._lock:
            self._dir.mkdir(parents=True, exist_ok=True)
            tmp_path = self._path.with_suffix(".tmp")
            try:
                with open(tmp_path, "w", encoding="utf-8") as f:
                    json.dump(self._data, f, ensure_ascii=False, indent=2)
                tmp_path.replace(self._path)
            except OSError as e:
                logger.error(f"Failed to save config: {e}")
                if tmp_path.exists():
                    tmp_path.unlink(missing_ok=True)

    # ── Generic access ──

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value
        self._save()

    # ── Typed properties ──

    @property
    def data_dir(self) -> Path:
        return self._dir

    @property
    def config_path(self) -> Path:
        return self._path

    @property
    def storage_path(self) -> Path | None:
        raw = self._data.get("storage_path", "")
        return Path(raw).expanduser() if raw else None

    @storage_path.setter
    def storage_path(self, value: Path | None) -> None:
        self.set("storage_path", str(value) if value else "")

    @property
    def copy_failure_policy(self) -> str:
        policy = str(self._data.get("copy_failure_policy", "abort")).lower()
        if policy not in _POLICIES:
            logger.warning(f"Unknown copy_failure_policy {policy!r}, using 'abort'")
            return "abort"
        return policy

    @copy_failure_policy.setter
    def copy_failure_policy(self, value: str) -> None:
        if value not in _POLICIES:
            raise ValueError(f"copy_failure_policy must be one of {_POLICIES}")
        self.set("copy_failure_policy", value)

    @property
    def use_lock_files(self) -> bool:
        return bool(self._data.get("use_lock_files", True))

    @use_lock_files.setter
    def use_lock_files(self, value: bool) -> None:
        self.set("use_lock_files", value)

    @property
    def log_level(self) -> str:
        return str(self._data.get("log_level", "INFO")).upper()

    @log_level.setter
    def log_level(self, value: str) -> None:
        self.set("log_level", value.upper())
