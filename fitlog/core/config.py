"""Configuration loading and persistence."""

from __future__ import annotations

import copy
import json
import os
import tomllib
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from fitlog.core.constants import USERS_COLLECTION, WEEK_START_BY_NAME, WORKOUT_LOGS_COLLECTION


class ConfigError(RuntimeError):
    """Raised when config file parsing fails or required settings are missing."""


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def expand_path(path_str: str) -> Path:
    """Expand user/env vars and return absolute path."""
    return Path(os.path.expandvars(path_str)).expanduser().resolve()


def default_data_dir() -> Path:
    """Resolve XDG-style data directory with env override."""
    raw = os.getenv("FITLOG_DATA_DIR", "~/.local/share/fitlog")
    return expand_path(raw)


def default_config_path() -> Path:
    """Get default config file path."""
    raw = os.getenv("FITLOG_CONFIG_FILE", "~/.config/fitlog/config.toml")
    return expand_path(raw)


def _default_config() -> Dict[str, Any]:
    data_dir = default_data_dir()
    return {
        "firebase": {
            "api_key": "",
            "project_id": "",
            "database": "(default)",
        },
        "auth": {
            "email": None,
            "session_store": str(data_dir / "session.json"),
        },
        "collections": {
            "users": USERS_COLLECTION,
            "workout_logs": WORKOUT_LOGS_COLLECTION,
        },
        "defaults": {
            "week_start": "monday",
        },
        "api": {
            "rate_limit_delay": 0.0,
            "max_retries": 3,
            "timeout_seconds": 30,
        },
    }


def _read_config(path: Path) -> Dict[str, Any]:
    suffix = path.suffix.lower()
    text = path.read_text()
    try:
        if suffix in {".toml", ""}:
            loaded = tomllib.loads(text)
        else:
            loaded = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid JSON in config file {path}: {exc}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Invalid TOML in config file {path}: {exc}") from exc

    if not isinstance(loaded, dict):
        raise ConfigError(f"Config file {path} must contain an object/table at the root")
    return loaded


def load_config(path: Optional[Path] = None) -> Dict[str, Any]:
    """Load configuration from disk, merged with defaults."""
    cfg_path = path or default_config_path()
    cfg = _default_config()

    if cfg_path.exists():
        loaded = _read_config(cfg_path)
        cfg = _deep_merge(cfg, loaded)

    return cfg


def _toml_literal(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        escaped = value.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'
    if isinstance(value, list):
        items = ", ".join(_toml_literal(item) for item in value if item is not None)
        return f"[{items}]"
    raise TypeError(f"Unsupported TOML value type: {type(value)!r}")


def _dict_to_toml(data: Dict[str, Any], prefix: Optional[str] = None) -> str:
    lines = []
    plain_keys = []
    nested_keys = []

    for key, value in data.items():
        if value is None:
            continue
        if isinstance(value, dict):
            nested_keys.append((key, value))
        else:
            plain_keys.append((key, value))

    if prefix is not None:
        lines.append(f"[{prefix}]")

    for key, value in plain_keys:
        lines.append(f"{key} = {_toml_literal(value)}")

    if plain_keys and nested_keys:
        lines.append("")

    for index, (key, value) in enumerate(nested_keys):
        table_name = key if prefix is None else f"{prefix}.{key}"
        lines.append(_dict_to_toml(value, prefix=table_name))
        if index != len(nested_keys) - 1:
            lines.append("")

    return "\n".join(lines)


def save_config(config: Dict[str, Any], path: Optional[Path] = None) -> Path:
    """Save configuration to disk as TOML (default) or JSON."""
    cfg_path = path or default_config_path()
    cfg_path.parent.mkdir(parents=True, exist_ok=True)

    if cfg_path.suffix.lower() == ".json":
        cfg_path.write_text(json.dumps(config, indent=2) + "\n")
        return cfg_path

    cfg_path.write_text(_dict_to_toml(config).strip() + "\n")
    return cfg_path


def resolve_session_store(config: Dict[str, Any]) -> Path:
    """Resolve session file path from env/config."""
    raw = os.getenv("FITLOG_SESSION_STORE") or config.get("auth", {}).get("session_store")
    if not raw:
        raw = str(default_data_dir() / "session.json")
    return expand_path(raw)


def resolve_firebase_settings(config: Dict[str, Any]) -> Tuple[str, str]:
    """Return (api_key, project_id), env first, raising when either is unset."""
    firebase_cfg = config.get("firebase", {})
    api_key = os.getenv("FITLOG_API_KEY") or str(firebase_cfg.get("api_key") or "")
    project_id = os.getenv("FITLOG_PROJECT_ID") or str(firebase_cfg.get("project_id") or "")
    if not api_key or not project_id:
        raise ConfigError(
            "Backend is not configured. Run `fitlog configure --api-key ... --project-id ...` "
            "or set FITLOG_API_KEY/FITLOG_PROJECT_ID."
        )
    return api_key, project_id


def resolve_week_start(config: Dict[str, Any]) -> int:
    """Map defaults.week_start to a calendar first-weekday index."""
    raw = str(config.get("defaults", {}).get("week_start", "monday")).lower()
    if raw not in WEEK_START_BY_NAME:
        raise ConfigError(f"defaults.week_start must be one of: {', '.join(WEEK_START_BY_NAME)}")
    return WEEK_START_BY_NAME[raw]
