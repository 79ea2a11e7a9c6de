"""Navigable diff tree: rows, view state, cursor."""

from hunkstage.tree.diff_tree import DiffTree, Direction
from hunkstage.tree.rows import FileRow, HunkRow, LineRow, NodeId, Row, ViewState

__all__ = [
    "DiffTree",
    "Direction",
    "FileRow",
    "HunkRow",
    "LineRow",
    "NodeId",
    "Row",
    "ViewState",
]
