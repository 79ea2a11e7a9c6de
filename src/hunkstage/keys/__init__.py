"""Commands, key bindings, and the keymap registry."""

from hunkstage.keys.models import Binding, Command, normalize_key
from hunkstage.keys.registry import KeymapError, KeymapRegistry, build_keymap

__all__ = [
    "Binding",
    "Command",
    "KeymapError",
    "KeymapRegistry",
    "build_keymap",
    "normalize_key",
]
