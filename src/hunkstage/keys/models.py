"""Command and key binding models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Tuple


class Command(str, Enum):
    NAVIGATE_UP = "navigate-up"
    NAVIGATE_DOWN = "navigate-down"
    EXPAND = "expand"
    COLLAPSE = "collapse"
    TOGGLE = "toggle"
    STAGE = "stage"
    UNSTAGE = "unstage"
    DISCARD = "discard"
    RELOAD = "reload"
    HIDE_LEGEND = "hide-legend"
    QUIT = "quit"


# Display names for multi-byte key tokens in the legend.
_KEY_NAMES = {
    "UP": "↑",
    "DOWN": "↓",
    "LEFT": "←",
    "RIGHT": "→",
    "TAB": "Tab",
    "ESC": "Esc",
    "ENTER": "Enter",
    " ": "Space",
}


def normalize_key(key: str) -> str:
    """Canonical token form: ``ctrl-n`` / ``Ctrl+N`` -> ``CTRL_N``, ``up`` -> ``UP``."""
    if len(key) == 1:
        return key
    token = key.strip().upper().replace("-", "_").replace("+", "_")
    if token == "SPACE":
        return " "
    return token


def display_key(key: str) -> str:
    if key in _KEY_NAMES:
        return _KEY_NAMES[key]
    if key.startswith("CTRL_"):
        return "^" + key[len("CTRL_"):]
    return key


@dataclass
class Binding:
    """Keys that trigger one command, with the label shown in the legend."""

    command: Command
    keys: Tuple[str, ...]
    label: str

    def __post_init__(self) -> None:
        self.keys = tuple(normalize_key(k) for k in self.keys)

    @property
    def display(self) -> str:
        return "/".join(display_key(k) for k in self.keys[:2])
