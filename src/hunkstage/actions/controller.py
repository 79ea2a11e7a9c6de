"""Stage / unstage / discard / reload, each followed by a tree refresh."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol, Tuple

from hunkstage.git.adapter import ApplyTarget, GitError
from hunkstage.git.diff_parser import DiffParser, ParseError
from hunkstage.git.models import DiffSet, Side
from hunkstage.patch.selection import Selection, describe
from hunkstage.patch.synthesizer import PatchFragment, SynthesisError, build
from hunkstage.state import AppState

logger = logging.getLogger(__name__)

_PAST = {"stage": "Staged", "unstage": "Unstaged", "discard": "Discarded"}


class Repository(Protocol):
    def fetch_diff(self, side: Side) -> str: ...

    def apply_patch(self, patch: str, target: ApplyTarget, reverse: bool = False) -> None: ...


@dataclass(frozen=True)
class ActionResult:
    ok: bool
    message: str


class ActionController:
    """Turns selections into applied patches and keeps the tree in sync with git."""

    def __init__(self, repo: Repository) -> None:
        self.repo = repo

    # ---- mutating actions ----

    def stage(self, state: AppState, selection: Selection) -> ActionResult:
        return self._apply(
            state, selection,
            expected=Side.UNSTAGED, target=ApplyTarget.INDEX, inverse=False, action="stage",
        )

    def unstage(self, state: AppState, selection: Selection) -> ActionResult:
        return self._apply(
            state, selection,
            expected=Side.STAGED, target=ApplyTarget.INDEX, inverse=True, action="unstage",
        )

    def discard(self, state: AppState, selection: Selection) -> ActionResult:
        # The working tree holds the new side of an unstaged diff, so the
        # inverse fragment is what applies there, in reverse.
        return self._apply(
            state, selection,
            expected=Side.UNSTAGED, target=ApplyTarget.WORKING_TREE, inverse=True, action="discard",
        )

    def _apply(
        self,
        state: AppState,
        selection: Selection,
        *,
        expected: Side,
        target: ApplyTarget,
        inverse: bool,
        action: str,
    ) -> ActionResult:
        label = describe(selection)
        if selection.side is not expected:
            return self._fail(state, f"{action} needs a {expected.value} selection")

        try:
            patch = _orient(build(selection), inverse)
        except SynthesisError as exc:
            logger.error("cannot build patch for %s: %s", label, exc)
            return self._fail(state, f"Cannot build patch: {exc}")

        try:
            self.repo.apply_patch(patch.text, target, reverse=inverse)
        except GitError as exc:
            message = f"git apply failed: {exc}"
            state.set_status(message, error=True)
            # The on-disk state may differ from what was shown; resynchronise.
            self._refresh(state, keep_status=True)
            return ActionResult(False, message)

        message = f"{_PAST[action]} {label}"
        logger.info(message)
        state.set_status(message)
        self._refresh(state, keep_status=True)
        return ActionResult(True, message)

    # ---- reload ----

    def reload(self, state: AppState) -> ActionResult:
        """Re-read both sides from git; the previous tree survives a failure."""
        ok = self._refresh(state, keep_status=False)
        if ok:
            state.set_status("Reloaded")
            return ActionResult(True, "Reloaded")
        return ActionResult(False, state.status.text if state.status else "reload failed")

    def fetch(self) -> Tuple[DiffSet, DiffSet]:
        """Fetch and parse both sides. Raises GitError or ParseError."""
        unstaged = DiffParser(self.repo.fetch_diff(Side.UNSTAGED), Side.UNSTAGED).parse()
        staged = DiffParser(self.repo.fetch_diff(Side.STAGED), Side.STAGED).parse()
        return unstaged, staged

    def _refresh(self, state: AppState, *, keep_status: bool) -> bool:
        try:
            unstaged, staged = self.fetch()
        except (GitError, ParseError) as exc:
            logger.error("reload failed: %s", exc)
            text = f"Reload failed: {exc}"
            if keep_status and state.status is not None:
                text = f"{state.status.text}; {text}"
            state.set_status(text, error=True)
            return False
        state.tree.replace(unstaged, staged)
        return True

    def _fail(self, state: AppState, message: str) -> ActionResult:
        state.set_status(message, error=True)
        return ActionResult(False, message)


def _orient(fragment: PatchFragment, inverse: bool) -> PatchFragment:
    if not inverse:
        return fragment
    if fragment.inverse is None:
        raise SynthesisError(f"no inverse fragment for {fragment.path}")
    return fragment.inverse
