"""Row and identity models for the flattened diff tree."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional, Set, Union

from hunkstage.git.models import FileDiff, Hunk, Line, Side


@dataclass(frozen=True)
class NodeId:
    """Stable identity of a file, hunk, or line; survives reloads."""

    side: Side
    path: str
    hunk: Optional[str] = None  # Hunk.key
    line: Optional[int] = None  # offset within the hunk

    @property
    def file_id(self) -> "NodeId":
        return NodeId(self.side, self.path)

    @property
    def hunk_id(self) -> Optional["NodeId"]:
        if self.hunk is None:
            return None
        return NodeId(self.side, self.path, self.hunk)


@dataclass(frozen=True, eq=False)
class FileRow:
    node: NodeId
    file: FileDiff
    collapsed: bool

    depth = 0


@dataclass(frozen=True, eq=False)
class HunkRow:
    node: NodeId
    file: FileDiff
    hunk_index: int
    hunk: Hunk
    collapsed: bool

    depth = 1


@dataclass(frozen=True, eq=False)
class LineRow:
    node: NodeId
    file: FileDiff
    hunk_index: int
    offset: int
    line: Line

    depth = 2


Row = Union[FileRow, HunkRow, LineRow]


@dataclass
class ViewState:
    """Collapsed node identities, independent of any DiffSet instance."""

    collapsed: Set[NodeId] = field(default_factory=set)

    def is_collapsed(self, node: NodeId) -> bool:
        return node in self.collapsed

    def set_collapsed(self, node: NodeId, value: bool) -> None:
        if value:
            self.collapsed.add(node)
        else:
            self.collapsed.discard(node)

    def toggle(self, node: NodeId) -> bool:
        """Flip *node*; return the new collapsed state."""
        value = node not in self.collapsed
        self.set_collapsed(node, value)
        return value

    def retain(self, existing: Iterable[NodeId]) -> None:
        """Drop identities that no longer exist."""
        self.collapsed &= set(existing)
