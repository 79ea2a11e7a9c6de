"""Keymap registry: built-in bindings plus optional YAML overrides."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional

import yaml

from hunkstage.config.schema import HunkstageConfig
from hunkstage.keys.models import Binding, Command, normalize_key

logger = logging.getLogger(__name__)

DEFAULT_KEYMAP_FILE = ".hunkstage-keys.yaml"


class KeymapError(Exception):
    """Raised when a keymap file is unreadable or names an unknown command."""


class KeymapRegistry:
    """Maps key tokens to commands; one binding per command."""

    def __init__(self) -> None:
        self._bindings: Dict[Command, Binding] = {}

    # ---- registration ----

    def register(self, binding: Binding) -> None:
        """Add or replace the binding for ``binding.command``."""
        self._bindings[binding.command] = binding

    def register_many(self, bindings: list[Binding]) -> None:
        for b in bindings:
            self.register(b)

    # ---- queries ----

    @property
    def bindings(self) -> List[Binding]:
        """Bindings in Command declaration order (legend order)."""
        return [self._bindings[c] for c in Command if c in self._bindings]

    def get(self, command: Command) -> Optional[Binding]:
        return self._bindings.get(command)

    def lookup(self, key: str) -> Optional[Command]:
        """Return the command bound to *key*, if any."""
        key = normalize_key(key) if key else key
        for binding in self._bindings.values():
            if key in binding.keys:
                return binding.command
        return None

    # ---- custom keymap loading ----

    def load_yaml(self, path: Path) -> int:
        """Load overrides from a YAML file. Returns count loaded."""
        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as exc:
            raise KeymapError(f"Failed to read keymap {path}: {exc}") from exc
        if data is None:
            return 0
        if not isinstance(data, list):
            data = [data]
        count = 0
        for entry in data:
            if not isinstance(entry, dict) or "command" not in entry:
                raise KeymapError(f"{path}: each entry needs a 'command' field")
            try:
                command = Command(entry["command"])
            except ValueError as exc:
                raise KeymapError(f"{path}: unknown command {entry['command']!r}") from exc
            keys = entry.get("keys", [])
            if isinstance(keys, str):
                keys = [keys]
            if not keys:
                raise KeymapError(f"{path}: command {command.value!r} has no keys")
            current = self._bindings.get(command)
            label = entry.get("label", current.label if current else command.value)
            self.register(Binding(command=command, keys=tuple(str(k) for k in keys), label=label))
            count += 1
        self._check_conflicts(path)
        logger.info("loaded %d key binding override(s) from %s", count, path)
        return count

    def _check_conflicts(self, path: Path) -> None:
        owner: Dict[str, Command] = {}
        for binding in self._bindings.values():
            for key in binding.keys:
                if key in owner and owner[key] is not binding.command:
                    raise KeymapError(
                        f"{path}: key {key!r} bound to both "
                        f"{owner[key].value!r} and {binding.command.value!r}"
                    )
                owner[key] = binding.command


def build_keymap(config: HunkstageConfig, repo_root: Path) -> KeymapRegistry:
    """Create the keymap: built-ins, then the configured or default YAML file."""
    from hunkstage.keys.builtin import ALL_BUILTIN_BINDINGS

    registry = KeymapRegistry()
    registry.register_many(ALL_BUILTIN_BINDINGS)

    if config.keys.keymap_file:
        path = Path(config.keys.keymap_file)
        if not path.is_absolute():
            path = repo_root / path
        if not path.is_file():
            raise KeymapError(f"Keymap file not found: {path}")
        registry.load_yaml(path)
    else:
        default = repo_root / DEFAULT_KEYMAP_FILE
        if default.is_file():
            registry.load_yaml(default)

    return registry
