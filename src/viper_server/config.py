"""Configuration loading utilities for the Viper assistant server.

This module handles layered configuration:
1. Explicit path argument (highest precedence)
2. Environment variable VIPER_CONFIG
3. Fallback to "config/default.yaml"

It also supports optional overrides from environment variables with prefix
``VIPER__`` (e.g., VIPER__RATE_LIMIT__MAX_REQUESTS=5), and a handful of
well-known variables such as ``DEEPSEEK_API_KEY`` and ``APP_URL``. A ``.env``
file in the working directory is read first; variables already set in the
process environment win over it.
"""

from __future__ import annotations

import copy
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

PLACEHOLDER_API_KEY = "your-deepseek-api-key"
DEFAULT_BASE_URL = "https://api.deepseek.com"
DEFAULT_MODEL = "deepseek-coder"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

_DEFAULTS: Dict[str, Any] = {
    "server": {
        "host": "127.0.0.1",
        "port": 3001,
        "cors_origins": ["http://localhost:5173"],
    },
    "assistant": {
        "api_key": None,
        "base_url": DEFAULT_BASE_URL,
        "model": DEFAULT_MODEL,
        "timeout": None,
        "demo_seed": None,
    },
    "rate_limit": {
        "enabled": True,
        "window_seconds": 60,
        "max_requests": 20,
    },
    "logging": {"level": "INFO"},
}

# Plain env var -> (section, key)
_WELL_KNOWN_ENV = {
    "DEEPSEEK_API_KEY": ("assistant", "api_key"),
    "DEEPSEEK_BASE_URL": ("assistant", "base_url"),
    "DEEPSEEK_MODEL": ("assistant", "model"),
    "HOST": ("server", "host"),
    "PORT": ("server", "port"),
    "LOG_LEVEL": ("logging", "level"),
}


def _coerce(value: str) -> Any:
    # Attempt to parse simple types (bool, int, float)
    if value.lower() in {"true", "false"}:
        return value.lower() == "true"
    try:
        if "." in value:
            return float(value)
        return int(value)
    except ValueError:
        return value


def _merge(base: Dict[str, Any], extra: Dict[str, Any]) -> Dict[str, Any]:
    for key, value in extra.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _merge(base[key], value)
        else:
            base[key] = value
    return base


def _apply_env_overrides(cfg: Dict[str, Any]) -> Dict[str, Any]:
    """Apply well-known variables, then generic overrides with prefix VIPER__."""
    for env_key, (section, leaf) in _WELL_KNOWN_ENV.items():
        value = os.environ.get(env_key)
        if value:
            cfg.setdefault(section, {})[leaf] = _coerce(value) if leaf == "port" else value

    app_url = os.environ.get("APP_URL")
    if app_url:
        cfg.setdefault("server", {})["cors_origins"] = [o.strip() for o in app_url.split(",") if o.strip()]

    prefix = "VIPER__"
    for key, value in os.environ.items():
        if not key.startswith(prefix):
            continue
        # e.g., VIPER__ASSISTANT__MODEL -> cfg["assistant"]["model"]
        parts = key[len(prefix):].lower().split("__")
        sub = cfg
        for p in parts[:-1]:
            if p not in sub or not isinstance(sub[p], dict):
                sub[p] = {}
            sub = sub[p]
        sub[parts[-1]] = _coerce(value)
    return cfg


def load_config(path: str | None = None) -> Dict[str, Any]:
    """Load YAML configuration for the assistant server.

    Parameters
    ----------
    path : str | None
        Optional path to a configuration file. If not provided, the
        environment variable ``VIPER_CONFIG`` is consulted. As a
        last resort ``config/default.yaml`` is used.

    Returns
    -------
    Dict[str, Any]
        Built-in defaults, overlaid with the file contents and then with
        environment overrides.
    """
    # Load environment variables from .env file
    load_dotenv(Path.cwd() / ".env", override=False)

    if path is None:
        path = os.environ.get("VIPER_CONFIG", "config/default.yaml")

    cfg = copy.deepcopy(_DEFAULTS)
    path_obj = Path(path)
    if not path_obj.exists():
        logger.warning("Config file not found at %s. Using defaults.", path_obj)
        return _apply_env_overrides(cfg)

    with path_obj.open("r", encoding="utf-8") as f:
        try:
            loaded = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise RuntimeError(f"Failed to parse config file {path_obj}: {e}") from e

    if not isinstance(loaded, dict):
        raise RuntimeError(f"Invalid config format in {path_obj}, expected dict.")

    return _apply_env_overrides(_merge(cfg, loaded))


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format=LOG_FORMAT,
    )


# -----------------------------
# Assistant credentials
# -----------------------------
def is_usable_key(api_key: Optional[str]) -> bool:
    """False for a missing, blank or placeholder credential."""
    if not api_key:
        return False
    key = str(api_key).strip()
    return bool(key) and key != PLACEHOLDER_API_KEY


@dataclass(frozen=True)
class AssistantSettings:
    api_key: Optional[str] = None
    base_url: str = DEFAULT_BASE_URL
    model: str = DEFAULT_MODEL
    timeout: Optional[float] = None
    demo_seed: Optional[int] = None

    @property
    def is_configured(self) -> bool:
        return is_usable_key(self.api_key)

    @classmethod
    def from_config(cls, cfg: Dict[str, Any]) -> "AssistantSettings":
        a = cfg.get("assistant", {}) or {}
        timeout = a.get("timeout")
        seed = a.get("demo_seed")
        return cls(
            api_key=a.get("api_key") or None,
            base_url=str(a.get("base_url") or DEFAULT_BASE_URL).rstrip("/"),
            model=str(a.get("model") or DEFAULT_MODEL),
            timeout=float(timeout) if timeout is not None else None,
            demo_seed=int(seed) if seed is not None else None,
        )
