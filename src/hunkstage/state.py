"""Application state owned by the event loop."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from hunkstage.patch.selection import Selection
from hunkstage.tree.diff_tree import DiffTree


@dataclass(frozen=True)
class StatusMessage:
    text: str
    error: bool = False


@dataclass(frozen=True)
class PendingConfirmation:
    """A discard waiting for the user to answer ``y``."""

    selection: Selection
    prompt: str


@dataclass
class AppState:
    tree: DiffTree = field(default_factory=DiffTree)
    status: Optional[StatusMessage] = None
    legend_hidden: bool = False
    pending: Optional[PendingConfirmation] = None
    should_quit: bool = False

    def set_status(self, text: str, *, error: bool = False) -> None:
        self.status = StatusMessage(text, error)

    def clear_status(self) -> None:
        self.status = None
