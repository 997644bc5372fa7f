"""Search configuration — JSON-based, with environment overrides and file locking."""

from __future__ import annotations

import json
import os
import threading
from pathlib import Path
from typing import Any

from loguru import logger

_instance: "Config | None" = None

# Default data directory
_DEFAULT_DATA_DIR = Path.home() / ".collectr"

# Environment variable -> dot-separated config key
_ENV_OVERRIDES: dict[str, str] = {
    "IGDB_CLIENT_ID": "providers.igdb_client_id",
    "IGDB_CLIENT_SECRET": "providers.igdb_client_secret",
    "RAWG_API_KEY": "providers.rawg_api_key",
}


def get_config() -> Config:
    """Module-level factory — single global Config instance."""
    global _instance
    if _instance is None:
        home = os.environ.get("COLLECTR_HOME")
        _instance = Config(Path(home) if home else None)
    return _instance


def reset_config() -> None:
    """Reset the global config instance (for testing)."""
    global _instance
    _instance = None


class Config:
    """JSON-based search configuration with file locking."""

    _DEFAULTS: dict[str, Any] = {
        "log_level": "INFO",
        "search": {
            "request_timeout": 10,
            "token_refresh_buffer": 300,
            "default_limit": 20,
            "max_limit": 50,
            "min_query_length": 2,
            "min_barcode_length": 8,
        },
        "providers": {
            "proxy_protocol": "http",
            "proxy_host": "",
            "proxy_port": "",
            "igdb_client_id": "",
            "igdb_client_secret": "",
            "rawg_api_key": "",
        },
    }

    def __init__(self, config_dir: Path | None = None) -> None:
        self._data: dict[str, Any] = {}
        self._env: dict[str, str] = {}
        self._dir = config_dir or _DEFAULT_DATA_DIR
        self._path = self._dir / "config.json"
        self._lock = threading.Lock()
        self._load()

    def _load(self) -> None:
        """Load config from disk, merging with defaults."""
        self._data = json.loads(json.dumps(self._DEFAULTS))  # deep copy defaults
        if self._path.exists():
            try:
                with open(self._path, encoding="utf-8") as f:
                    user_data = json.load(f)
                self._deep_merge(self._data, user_data)
            except (json.JSONDecodeError, OSError) as e:
                logger.warning(f"Failed to load config, using defaults: {e}")

        # Environment wins over the file but is never written back
        self._env = {
            key: os.environ[var] for var, key in _ENV_OVERRIDES.items() if os.environ.get(var)
        }

    def _deep_merge(self, base: dict, override: dict) -> None:
        """Recursively merge override into base."""
        for key, value in override.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                self._deep_merge(base[key], value)
            else:
                base[key] = value

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
        """Get a config value by dot-separated key path."""
        if key in self._env:
            return self._env[key]
        parts = key.split(".")
        node = self._data
        for part in parts:
            if isinstance(node, dict) and part in node:
                node = node[part]
            else:
                return default
        return node

    def set(self, key: str, value: Any) -> None:
        """Set a config value by dot-separated key path."""
        parts = key.split(".")
        node = self._data
        for part in parts[:-1]:
            if part not in node or not isinstance(node[part], dict):
                node[part] = {}
            node = node[part]
        node[parts[-1]] = value
        self._save()

    # ── Typed properties ──

    @property
    def data_dir(self) -> Path:
        return self._dir

    @property
    def log_level(self) -> str:
        return str(self.get("log_level", "INFO"))

    @property
    def request_timeout(self) -> float:
        return float(self.get("search.request_timeout", 10))

    @property
    def token_refresh_buffer(self) -> float:
        return float(self.get("search.token_refresh_buffer", 300))

    @property
    def default_limit(self) -> int:
        return int(self.get("search.default_limit", 20))

    @property
    def max_limit(self) -> int:
        return int(self.get("search.max_limit", 50))

    @property
    def min_query_length(self) -> int:
        return int(self.get("search.min_query_length", 2))

    @property
    def min_barcode_length(self) -> int:
        return int(self.get("search.min_barcode_length", 8))

    @property
    def igdb_client_id(self) -> str:
        return self.get("providers.igdb_client_id", "")

    @property
    def igdb_client_secret(self) -> str:
        return self.get("providers.igdb_client_secret", "")

    @property
    def rawg_api_key(self) -> str:
        return self.get("providers.rawg_api_key", "")

    @property
    def proxy_url(self) -> str:
        """Assemble proxy URL from config fields (protocol/host/port)."""
        host = self.get("providers.proxy_host", "")
        if not host:
            return ""
        proto = self.get("providers.proxy_protocol", "http")
        port = self.get("providers.proxy_port", "")
        return f"{proto}://{host}:{port}" if port else f"{proto}://{host}"
