"""Configuration schema: one dataclass per config section."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Literal

LogLevel = Literal["debug", "info", "warning", "error"]

LOG_LEVELS: dict[str, int] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


@dataclass
class DiffConfig:
    include_untracked: bool = True  # list untracked files as new files on the unstaged side
    context_lines: int = 3


@dataclass
class UIConfig:
    collapse_files: bool = False  # start with every file folded
    show_legend: bool = True
    confirm_discard: bool = True


@dataclass
class KeysConfig:
    keymap_file: str = ""  # empty = .hunkstage-keys.yaml in the repo root, if present


@dataclass
class LoggingConfig:
    file: str = ""  # empty = no logging
    level: LogLevel = "info"


@dataclass
class HunkstageConfig:
    version: str = "1.0"
    diff: DiffConfig = field(default_factory=DiffConfig)
    ui: UIConfig = field(default_factory=UIConfig)
    keys: KeysConfig = field(default_factory=KeysConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
