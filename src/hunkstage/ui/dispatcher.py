"""Map key tokens to commands, gate them on the current state, and run them."""

from __future__ import annotations

import logging
from typing import List, Optional

from hunkstage.actions.controller import ActionController
from hunkstage.git.models import Side
from hunkstage.keys.models import Binding, Command
from hunkstage.keys.registry import KeymapRegistry
from hunkstage.patch.selection import describe
from hunkstage.state import AppState, PendingConfirmation
from hunkstage.tree.diff_tree import Direction
from hunkstage.ui.terminal import RESIZE

logger = logging.getLogger(__name__)

_CONFIRM_KEYS = ("y", "Y")


class InputDispatcher:
    """Turns key tokens into state changes.

    A command is only executed when :meth:`is_enabled` says so; the same check
    decides which bindings the legend shows.
    """

    def __init__(
        self,
        keymap: KeymapRegistry,
        controller: ActionController,
        *,
        confirm_discard: bool = True,
    ) -> None:
        self.keymap = keymap
        self.controller = controller
        self.confirm_discard = confirm_discard

    def is_enabled(self, state: AppState, command: Command) -> bool:
        tree = state.tree
        match command:
            case Command.STAGE | Command.DISCARD:
                return tree.side_at_cursor() is Side.UNSTAGED and tree.selection_at_cursor() is not None
            case Command.UNSTAGE:
                return tree.side_at_cursor() is Side.STAGED and tree.selection_at_cursor() is not None
            case Command.TOGGLE:
                return tree.can_toggle()
            case Command.NAVIGATE_UP:
                return tree.can_navigate(Direction.UP)
            case Command.NAVIGATE_DOWN:
                return tree.can_navigate(Direction.DOWN)
            case Command.EXPAND:
                return tree.can_expand()
            case Command.COLLAPSE:
                return tree.can_collapse()
            case Command.RELOAD | Command.HIDE_LEGEND | Command.QUIT:
                return True
        return False

    def active_bindings(self, state: AppState) -> List[Binding]:
        """Bindings whose command is currently enabled, in legend order."""
        return [b for b in self.keymap.bindings if self.is_enabled(state, b.command)]

    def handle_key(self, state: AppState, key: str) -> Optional[Command]:
        """Process one key token. Returns the command run, if any."""
        if not key or key == RESIZE:
            return None

        if state.pending is not None:
            pending = state.pending
            state.pending = None
            if key in _CONFIRM_KEYS:
                self.controller.discard(state, pending.selection)
            else:
                state.set_status("Discard cancelled")
            return None

        command = self.keymap.lookup(key)
        if command is None:
            logger.debug("unbound key %r", key)
            return None
        if not self.is_enabled(state, command):
            logger.debug("ignoring disabled command %s", command.value)
            return None
        self.execute(state, command)
        return command

    def execute(self, state: AppState, command: Command) -> None:
        tree = state.tree
        match command:
            case Command.NAVIGATE_UP:
                tree.navigate(Direction.UP)
            case Command.NAVIGATE_DOWN:
                tree.navigate(Direction.DOWN)
            case Command.EXPAND:
                tree.expand_at_cursor()
            case Command.COLLAPSE:
                tree.collapse_at_cursor()
            case Command.TOGGLE:
                tree.toggle_at_cursor()
            case Command.STAGE:
                selection = tree.selection_at_cursor()
                if selection is not None:
                    self.controller.stage(state, selection)
            case Command.UNSTAGE:
                selection = tree.selection_at_cursor()
                if selection is not None:
                    self.controller.unstage(state, selection)
            case Command.DISCARD:
                selection = tree.selection_at_cursor()
                if selection is None:
                    return
                if self.confirm_discard:
                    state.pending = PendingConfirmation(
                        selection=selection,
                        prompt=f"Discard {describe(selection)}? This cannot be undone. [y/N]",
                    )
                else:
                    self.controller.discard(state, selection)
            case Command.RELOAD:
                self.controller.reload(state)
            case Command.HIDE_LEGEND:
                state.legend_hidden = not state.legend_hidden
            case Command.QUIT:
                state.should_quit = True
