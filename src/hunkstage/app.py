"""Wire config, git, keymap and UI together and run the session."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Tuple

from hunkstage.actions.controller import ActionController
from hunkstage.config.schema import HunkstageConfig
from hunkstage.git.adapter import GitRepository
from hunkstage.keys.registry import build_keymap
from hunkstage.state import AppState
from hunkstage.tree.diff_tree import DiffTree
from hunkstage.ui.dispatcher import InputDispatcher
from hunkstage.ui.loop import Screen, run_loop
from hunkstage.ui.terminal import TerminalSession

logger = logging.getLogger(__name__)


def bootstrap(repo_root: Path, cfg: HunkstageConfig) -> Tuple[AppState, InputDispatcher]:
    """Build the initial state from the repository.

    Raises KeymapError, GitError or ParseError; all of them are fatal at startup.
    """
    keymap = build_keymap(cfg, repo_root)
    repo = GitRepository(
        repo_root,
        include_untracked=cfg.diff.include_untracked,
        context_lines=cfg.diff.context_lines,
    )
    controller = ActionController(repo)
    unstaged, staged = controller.fetch()

    tree = DiffTree(unstaged, staged)
    if cfg.ui.collapse_files:
        tree.collapse_all_files()
    state = AppState(tree=tree, legend_hidden=not cfg.ui.show_legend)
    dispatcher = InputDispatcher(keymap, controller, confirm_discard=cfg.ui.confirm_discard)
    logger.info(
        "started in %s: %d unstaged / %d staged file(s)",
        repo_root, len(unstaged), len(staged),
    )
    return state, dispatcher


def run(state: AppState, dispatcher: InputDispatcher, screen: Optional[Screen] = None) -> None:
    """Run the interactive loop until the user quits."""
    if screen is not None:
        run_loop(state, screen, dispatcher)
        return
    with TerminalSession() as session:
        run_loop(state, session, dispatcher)
    logger.info("session ended")
