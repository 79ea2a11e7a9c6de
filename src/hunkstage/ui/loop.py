"""The read-dispatch-redraw loop."""

from __future__ import annotations

import logging
from typing import List, Protocol, Tuple

from rich.text import Text

from hunkstage.state import AppState
from hunkstage.ui.dispatcher import InputDispatcher
from hunkstage.ui.renderer import render

logger = logging.getLogger(__name__)


class Screen(Protocol):
    def size(self) -> Tuple[int, int]: ...

    def next_key_event(self) -> str: ...

    def draw(self, lines: List[Text]) -> None: ...


def run_loop(state: AppState, screen: Screen, dispatcher: InputDispatcher) -> None:
    """Redraw, wait for a key, dispatch it; stops on quit or when input ends."""
    try:
        while not state.should_quit:
            width, height = screen.size()
            screen.draw(render(state, dispatcher.active_bindings(state), width, height))
            key = screen.next_key_event()
            dispatcher.handle_key(state, key)
    except KeyboardInterrupt:
        logger.info("interrupted")
        state.should_quit = True
    except EOFError:
        logger.info("input closed")
        state.should_quit = True
