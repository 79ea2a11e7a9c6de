"""Frame rendering: two diff panes, a status line and the key legend.

``render`` is pure: it takes the state and the terminal size and returns one
rich ``Text`` per screen line, each exactly ``width`` cells wide.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from rich.text import Text

from hunkstage.git.models import ChangeKind, FileDiff, LineKind, Side
from hunkstage.keys.models import Binding, Command
from hunkstage.state import AppState
from hunkstage.tree.rows import FileRow, HunkRow, LineRow, Row

LEGEND_WIDTH = 26
MIN_WIDTH_FOR_LEGEND = 60
INDENT = 2

_PANE_TITLES = {
    Side.UNSTAGED: "Unstaged changes",
    Side.STAGED: "Staged changes",
}

_LINE_STYLE = {
    LineKind.ADDITION: "green",
    LineKind.DELETION: "red",
    LineKind.CONTEXT: "",
}

_KIND_LABEL = {
    ChangeKind.ADDED: "new",
    ChangeKind.DELETED: "deleted",
    ChangeKind.RENAMED: "renamed",
    ChangeKind.BINARY: "binary",
    ChangeKind.TYPE_CHANGED: "typechange",
}


def _printable(text: str) -> str:
    # Paths and lines may carry surrogate-escaped bytes from git output.
    text = text.encode("utf-8", "surrogateescape").decode("utf-8", "replace")
    return text.expandtabs(4)


def _fit(text: Text, width: int) -> Text:
    text.no_wrap = True
    text.truncate(width, overflow="ellipsis", pad=True)
    return text


def _fold_marker(collapsed: bool) -> str:
    return "▸ " if collapsed else "▾ "


def _file_label(f: FileDiff) -> Text:
    text = Text()
    text.append(_printable(f.path), style="bold")
    if f.kind is ChangeKind.RENAMED and f.old_path:
        text.append(f" ← {_printable(f.old_path)}", style="dim")
    label = _KIND_LABEL.get(f.kind)
    if label:
        text.append(f" [{label}]", style="magenta")
    added = sum(1 for h in f.hunks for line in h.lines if line.kind is LineKind.ADDITION)
    removed = sum(1 for h in f.hunks for line in h.lines if line.kind is LineKind.DELETION)
    if added or removed:
        text.append("  ")
        text.append(f"+{added}", style="green")
        text.append(" ")
        text.append(f"-{removed}", style="red")
    return text


def render_row(row: Row, width: int, *, selected: bool = False) -> Text:
    """One tree row, indented by depth and truncated to *width*."""
    text = Text(" " * (row.depth * INDENT))
    match row:
        case FileRow(file=f, collapsed=collapsed):
            text.append(_fold_marker(collapsed) if f.hunks else "  ", style="dim")
            text.append_text(_file_label(f))
        case HunkRow(hunk=h, collapsed=collapsed):
            text.append(_fold_marker(collapsed), style="dim")
            text.append(_printable(h.header), style="cyan")
        case LineRow(line=line):
            text.append(line.kind.marker + _printable(line.text), style=_LINE_STYLE[line.kind])
            if line.no_newline:
                text.append("  \\ no newline", style="dim")
    text = _fit(text, width)
    if selected:
        text.stylize("reverse")
    return text


def _window(count: int, cursor: Optional[int], height: int) -> range:
    """Index range of *height* rows that keeps *cursor* visible."""
    if count <= height or cursor is None:
        return range(0, min(count, height))
    start = max(0, min(cursor - height // 2, count - height))
    return range(start, start + height)


def render_pane(
    state: AppState, side: Side, width: int, height: int
) -> List[Text]:
    """Title line plus the side's visible rows, scrolled to the cursor."""
    if height <= 0:
        return []
    tree = state.tree
    rows = tree.rows_for(side)
    cursor = None
    if tree.cursor is not None and tree.cursor.side is side:
        cursor = next((i for i, row in enumerate(rows) if row.node == tree.cursor), None)

    files = len(tree.diff_set(side))
    title = Text(f"{_PANE_TITLES[side]} ({files} file{'s' if files != 1 else ''})", style="bold underline")
    lines = [_fit(title, width)]

    body = height - 1
    if not rows:
        if body > 0:
            lines.append(_fit(Text("  (no changes)", style="dim"), width))
    else:
        for i in _window(len(rows), cursor, body):
            lines.append(render_row(rows[i], width, selected=i == cursor))

    while len(lines) < height:
        lines.append(_fit(Text(), width))
    return lines


def render_legend(bindings: Sequence[Binding], width: int, height: int) -> List[Text]:
    lines = [_fit(Text("Keys", style="bold underline"), width)]
    key_width = max((len(b.display) for b in bindings), default=0)
    for b in bindings:
        text = Text()
        text.append(b.display.ljust(key_width), style="bold yellow")
        text.append("  ")
        text.append(b.label)
        lines.append(_fit(text, width))
    lines = lines[:height]
    while len(lines) < height:
        lines.append(_fit(Text(), width))
    return lines


def render_status(state: AppState, width: int) -> Text:
    if state.pending is not None:
        return _fit(Text(state.pending.prompt, style="bold yellow"), width)
    if state.status is not None:
        style = "bold red" if state.status.error else "green"
        return _fit(Text(_printable(state.status.text), style=style), width)
    tree = state.tree
    if tree.is_empty:
        return _fit(Text("Working tree clean", style="dim"), width)
    summary = f"{len(tree.unstaged)} unstaged, {len(tree.staged)} staged"
    return _fit(Text(summary, style="dim"), width)


def _legend_hint(legend: Sequence[Binding]) -> Optional[Text]:
    """Right-aligned reminder of the key that brings the legend back."""
    for b in legend:
        if b.command is Command.HIDE_LEGEND:
            hint = Text(f"  {b.display} show keys", style="dim")
            hint.no_wrap = True
            return hint
    return None


def render(
    state: AppState,
    legend: Sequence[Binding],
    width: int,
    height: int,
) -> List[Text]:
    """Build a full frame of exactly *height* lines."""
    if width <= 0 or height <= 0:
        return []

    body_height = height - 1
    hint = _legend_hint(legend) if state.legend_hidden else None
    show_legend = not state.legend_hidden and width >= MIN_WIDTH_FOR_LEGEND
    left_width = width - LEGEND_WIDTH - 1 if show_legend else width

    top = body_height // 2 + body_height % 2
    left = render_pane(state, Side.UNSTAGED, left_width, top)
    left += render_pane(state, Side.STAGED, left_width, body_height - top)

    if show_legend:
        right = render_legend(legend, LEGEND_WIDTH, body_height)
        body = []
        for l_line, r_line in zip(left, right):
            line = Text()
            line.append_text(l_line)
            line.append("│", style="dim")
            line.append_text(r_line)
            body.append(line)
    else:
        body = left

    if hint is None or width <= len(hint.plain) + 10:
        return body + [render_status(state, width)]
    status = render_status(state, width - len(hint.plain))
    status.append_text(hint)
    return body + [status]
