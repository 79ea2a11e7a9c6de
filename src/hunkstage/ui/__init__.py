"""Interactive layer: key dispatch, rendering, terminal session."""

from hunkstage.ui.dispatcher import InputDispatcher
from hunkstage.ui.loop import run_loop
from hunkstage.ui.renderer import render
from hunkstage.ui.terminal import RESIZE, TerminalSession

__all__ = [
    "InputDispatcher",
    "RESIZE",
    "TerminalSession",
    "render",
    "run_loop",
]
