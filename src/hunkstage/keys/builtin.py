"""Built-in key bindings."""

from hunkstage.keys.models import Binding, Command

NAVIGATE_UP = Binding(Command.NAVIGATE_UP, ("UP", "k", "CTRL_P"), "up")
NAVIGATE_DOWN = Binding(Command.NAVIGATE_DOWN, ("DOWN", "j", "CTRL_N"), "down")
EXPAND = Binding(Command.EXPAND, ("RIGHT", "l", "CTRL_F"), "expand")
COLLAPSE = Binding(Command.COLLAPSE, ("LEFT", "h", "CTRL_B"), "collapse / back")
TOGGLE = Binding(Command.TOGGLE, ("TAB", "t"), "toggle fold")
STAGE = Binding(Command.STAGE, ("s",), "stage")
UNSTAGE = Binding(Command.UNSTAGE, ("u",), "unstage")
DISCARD = Binding(Command.DISCARD, ("D",), "discard")
RELOAD = Binding(Command.RELOAD, ("r", "g"), "reload")
HIDE_LEGEND = Binding(Command.HIDE_LEGEND, ("?",), "hide keys")
QUIT = Binding(Command.QUIT, ("q", "ESC", "CTRL_C"), "quit")

ALL_BUILTIN_BINDINGS: list[Binding] = [
    NAVIGATE_UP,
    NAVIGATE_DOWN,
    EXPAND,
    COLLAPSE,
    TOGGLE,
    STAGE,
    UNSTAGE,
    DISCARD,
    RELOAD,
    HIDE_LEGEND,
    QUIT,
]

__all__ = ["ALL_BUILTIN_BINDINGS"]
