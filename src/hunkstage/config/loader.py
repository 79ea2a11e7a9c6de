"""Load and merge configuration from .hunkstage.toml and env vars."""

from __future__ import annotations

import dataclasses
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

from hunkstage.config.schema import (
    LOG_LEVELS,
    DiffConfig,
    HunkstageConfig,
    KeysConfig,
    LoggingConfig,
    UIConfig,
)

CONFIG_FILENAME = ".hunkstage.toml"


class ConfigError(Exception):
    """Raised for an unreadable, malformed, or out-of-range configuration."""


def find_config_file(repo_root: Path, override: Optional[str] = None) -> Optional[Path]:
    """Return the explicit --config path, else .hunkstage.toml in the repo root if it exists."""
    if not override:
        default = repo_root / CONFIG_FILENAME
        return default if default.is_file() else None
    explicit = Path(override).expanduser()
    if not explicit.is_file():
        raise ConfigError(f"--config file does not exist: {override}")
    return explicit


def _read_toml(path: Path) -> Dict[str, Any]:
    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, tomllib.TOMLDecodeError) as exc:
        raise ConfigError(f"{path}: {exc}") from exc


def _merge_env_overrides(cfg: HunkstageConfig) -> None:
    """Apply HUNKSTAGE_* environment variable overrides."""
    if val := os.environ.get("HUNKSTAGE_LOG_FILE"):
        cfg.logging.file = val
    if val := os.environ.get("HUNKSTAGE_LOG_LEVEL"):
        if val.lower() in LOG_LEVELS:
            cfg.logging.level = val.lower()  # type: ignore[assignment]
    if os.environ.get("HUNKSTAGE_NO_UNTRACKED") == "1":
        cfg.diff.include_untracked = False


def _section(raw: Dict[str, Any], name: str, cls: type):
    """Instantiate *cls* from the [name] table; keys it does not declare are dropped."""
    table = raw.get(name, {})
    if not isinstance(table, dict):
        raise ConfigError(f"[{name}] must be a table")
    known = {f.name for f in dataclasses.fields(cls)}
    return cls(**{key: value for key, value in table.items() if key in known})


def _validate(cfg: HunkstageConfig) -> None:
    if not isinstance(cfg.diff.context_lines, int) or cfg.diff.context_lines < 0:
        raise ConfigError("diff.context_lines must be a non-negative integer")
    if cfg.logging.level not in LOG_LEVELS:
        raise ConfigError(f"logging.level must be one of {', '.join(LOG_LEVELS)}")


def load_config(repo_root: Path, config_override: Optional[str] = None) -> HunkstageConfig:
    """Defaults, then the TOML file (if any), then HUNKSTAGE_* env vars; validated."""
    config_path = find_config_file(repo_root, config_override)
    cfg = HunkstageConfig()
    if config_path is not None:
        raw = _read_toml(config_path)
        cfg = HunkstageConfig(
            version=str(raw.get("version", cfg.version)),
            diff=_section(raw, "diff", DiffConfig),
            ui=_section(raw, "ui", UIConfig),
            keys=_section(raw, "keys", KeysConfig),
            logging=_section(raw, "logging", LoggingConfig),
        )

    _merge_env_overrides(cfg)
    _validate(cfg)
    return cfg
