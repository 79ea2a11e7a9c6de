"""DiffTree: parsed hierarchy for both sides plus view state and cursor.

``flatten()`` is the only definition of what is visible; navigation and
rendering both go through it. ``replace()`` installs freshly parsed DiffSets
and carries collapsed nodes and the cursor over by identity.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple

from hunkstage.git.models import DiffSet, FileDiff, Side
from hunkstage.patch.selection import (
    FileSelection,
    HunkSelection,
    LinePos,
    LineRunSelection,
    Selection,
)
from hunkstage.tree.rows import FileRow, HunkRow, LineRow, NodeId, Row, ViewState

logger = logging.getLogger(__name__)


class Direction(str, Enum):
    UP = "up"
    DOWN = "down"


class DiffTree:
    """Single source of truth for what is shown and where the cursor is."""

    def __init__(
        self,
        unstaged: Optional[DiffSet] = None,
        staged: Optional[DiffSet] = None,
        view: Optional[ViewState] = None,
    ) -> None:
        self.unstaged = unstaged or DiffSet(side=Side.UNSTAGED)
        self.staged = staged or DiffSet(side=Side.STAGED)
        self.view = view or ViewState()
        self.cursor: Optional[NodeId] = None
        self._apply_view()
        rows = self.flatten()
        self.cursor = rows[0].node if rows else None

    # ---- structure ----

    def diff_set(self, side: Side) -> DiffSet:
        return self.unstaged if side is Side.UNSTAGED else self.staged

    @property
    def is_empty(self) -> bool:
        return not self.unstaged.files and not self.staged.files

    def node_ids(self) -> Iterator[NodeId]:
        """Every collapsible identity in both DiffSets."""
        for diff_set in (self.unstaged, self.staged):
            for f in diff_set.files:
                yield NodeId(diff_set.side, f.path)
                for h in f.hunks:
                    yield NodeId(diff_set.side, f.path, h.key)

    def _apply_view(self) -> None:
        for diff_set in (self.unstaged, self.staged):
            for f in diff_set.files:
                f.collapsed = self.view.is_collapsed(NodeId(diff_set.side, f.path))
                for h in f.hunks:
                    h.collapsed = self.view.is_collapsed(NodeId(diff_set.side, f.path, h.key))

    def collapse_all_files(self) -> None:
        for diff_set in (self.unstaged, self.staged):
            for f in diff_set.files:
                self.view.set_collapsed(NodeId(diff_set.side, f.path), True)
        self._apply_view()
        self._clamp_cursor_to_file()

    # ---- flattening ----

    def rows_for(self, side: Side) -> List[Row]:
        diff_set = self.diff_set(side)
        rows: List[Row] = []
        for f in diff_set.files:
            file_id = NodeId(side, f.path)
            rows.append(FileRow(node=file_id, file=f, collapsed=f.collapsed))
            if f.collapsed:
                continue
            for hi, h in enumerate(f.hunks):
                hunk_id = NodeId(side, f.path, h.key)
                rows.append(HunkRow(node=hunk_id, file=f, hunk_index=hi, hunk=h, collapsed=h.collapsed))
                if h.collapsed:
                    continue
                for offset, line in enumerate(h.lines):
                    rows.append(
                        LineRow(
                            node=NodeId(side, f.path, h.key, offset),
                            file=f,
                            hunk_index=hi,
                            offset=offset,
                            line=line,
                        )
                    )
        return rows

    def flatten(self) -> List[Row]:
        """Visible rows, unstaged side first, honouring collapse flags."""
        return self.rows_for(Side.UNSTAGED) + self.rows_for(Side.STAGED)

    def cursor_index(self, rows: Optional[List[Row]] = None) -> Optional[int]:
        if self.cursor is None:
            return None
        rows = self.flatten() if rows is None else rows
        for i, row in enumerate(rows):
            if row.node == self.cursor:
                return i
        return None

    def current_row(self) -> Optional[Row]:
        rows = self.flatten()
        idx = self.cursor_index(rows)
        return rows[idx] if idx is not None else None

    def side_at_cursor(self) -> Optional[Side]:
        return self.cursor.side if self.cursor is not None else None

    # ---- navigation ----

    def _neighbour(self, direction: Direction) -> Optional[NodeId]:
        rows = self.flatten()
        idx = self.cursor_index(rows)
        if idx is None:
            return None
        target = idx - 1 if direction is Direction.UP else idx + 1
        if not 0 <= target < len(rows):
            return None
        return rows[target].node

    def can_navigate(self, direction: Direction) -> bool:
        return self._neighbour(direction) is not None

    def navigate(self, direction: Direction) -> bool:
        """Move to the adjacent visible row; stay put at either end."""
        target = self._neighbour(direction)
        if target is None:
            return False
        self.cursor = target
        return True

    # ---- collapse / expand ----

    def can_toggle(self) -> bool:
        match self.current_row():
            case FileRow(file=f):
                return bool(f.hunks)
            case HunkRow():
                return True
        return False

    def toggle_at_cursor(self) -> bool:
        """Flip the collapse flag of the file or hunk under the cursor."""
        if not self.can_toggle():
            return False
        row = self.current_row()
        match row:
            case FileRow(node=node) | HunkRow(node=node):
                self.view.toggle(node)
                self._apply_view()
                return True
            case _:
                return False

    def _expand_plan(self) -> Optional[Tuple[str, NodeId]]:
        row = self.current_row()
        match row:
            case FileRow(collapsed=True, node=node) | HunkRow(collapsed=True, node=node):
                return "open", node
            case FileRow(file=f, node=node) if f.hunks:
                return "move", NodeId(node.side, f.path, f.hunks[0].key)
            case HunkRow(hunk=h, node=node) if h.lines:
                return "move", NodeId(node.side, node.path, node.hunk, 0)
        return None

    def _collapse_plan(self) -> Optional[Tuple[str, NodeId]]:
        row = self.current_row()
        match row:
            case LineRow(node=node):
                return "move", node.hunk_id
            case HunkRow(collapsed=False, node=node):
                return "close", node
            case HunkRow(node=node):
                return "move", node.file_id
            case FileRow(collapsed=False, file=f, node=node) if f.hunks:
                return "close", node
        return None

    def can_expand(self) -> bool:
        return self._expand_plan() is not None

    def can_collapse(self) -> bool:
        return self._collapse_plan() is not None

    def expand_at_cursor(self) -> bool:
        """Open a collapsed node, or step into the first child of an open one."""
        return self._run_plan(self._expand_plan())

    def collapse_at_cursor(self) -> bool:
        """Close an open node, or step out to the parent of a closed one."""
        return self._run_plan(self._collapse_plan())

    def _run_plan(self, plan: Optional[Tuple[str, NodeId]]) -> bool:
        if plan is None:
            return False
        action, node = plan
        if action == "move":
            self.cursor = node
        else:
            self.view.set_collapsed(node, action == "close")
            self._apply_view()
        return True

    # ---- selection ----

    def selection_at_cursor(self) -> Optional[Selection]:
        """The selection an action at the cursor would apply to, if any."""
        row = self.current_row()
        match row:
            case FileRow(file=f, node=node):
                return FileSelection(file=f, side=node.side)
            case HunkRow(file=f, hunk_index=i, hunk=h, node=node) if (
                h.has_changes and not f.whole_file_only
            ):
                return HunkSelection(file=f, side=node.side, hunk=i)
            case LineRow(file=f, hunk_index=i, offset=off, line=line, node=node) if (
                line.is_change and not f.whole_file_only
            ):
                pos = LinePos(hunk=i, offset=off)
                return LineRunSelection(file=f, side=node.side, start=pos, end=pos)
        return None

    # ---- reload ----

    def replace(self, new_unstaged: DiffSet, new_staged: DiffSet) -> None:
        """Install new DiffSets, keeping view state and cursor by identity."""
        old_rows = self.flatten()
        old_index = self.cursor_index(old_rows)
        old_row = old_rows[old_index] if old_index is not None else None

        self.unstaged = new_unstaged
        self.staged = new_staged
        self.view.retain(self.node_ids())
        self._apply_view()

        new_rows = self.flatten()
        self.cursor = self._resolve_cursor(old_row, old_index, new_rows)
        logger.debug(
            "tree replaced: %d unstaged / %d staged file(s), cursor=%s",
            len(new_unstaged), len(new_staged), self.cursor,
        )

    def _resolve_cursor(
        self, old_row: Optional[Row], old_index: Optional[int], new_rows: List[Row]
    ) -> Optional[NodeId]:
        if not new_rows:
            return None
        visible: Dict[NodeId, int] = {row.node: i for i, row in enumerate(new_rows)}
        if old_row is None or old_index is None:
            return new_rows[0].node
        if old_row.node in visible:
            return old_row.node

        file_diff = self.diff_set(old_row.node.side).get(old_row.node.path)
        if file_diff is not None:
            candidate = _nearest_in_file(old_row, file_diff)
            if candidate in visible:
                return candidate
        return new_rows[min(old_index, len(new_rows) - 1)].node

    def _clamp_cursor_to_file(self) -> None:
        if self.cursor is not None and self.cursor_index() is None:
            self.cursor = self.cursor.file_id


def _nearest_in_file(old_row: Row, file_diff: FileDiff) -> NodeId:
    """Closest surviving node inside the same file: same hunk ordinal, same offset."""
    side = old_row.node.side
    file_id = NodeId(side, file_diff.path)
    if file_diff.collapsed or not file_diff.hunks:
        return file_id
    match old_row:
        case FileRow():
            return file_id
        case HunkRow(hunk_index=hi):
            hunk = file_diff.hunks[min(hi, len(file_diff.hunks) - 1)]
            return NodeId(side, file_diff.path, hunk.key)
        case LineRow(hunk_index=hi, offset=offset):
            hunk = file_diff.hunks[min(hi, len(file_diff.hunks) - 1)]
            if hunk.collapsed or not hunk.lines:
                return NodeId(side, file_diff.path, hunk.key)
            return NodeId(side, file_diff.path, hunk.key, min(offset, len(hunk.lines) - 1))
    return file_id
