"""Patch synthesis: turn a selection into a patch git can apply.

Every fragment comes in two orientations:

* the forward fragment matches the *old* side of the diff and is applied
  forward (stage into the index);
* the inverse fragment matches the *new* side and is applied in reverse
  (unstage from the index, discard from the working tree).

For a line-run, the forward fragment keeps every context line, drops the
additions that were not selected and turns the unselected deletions into
context. The inverse does the same with the roles of additions and deletions
swapped. Hunk counters are always recomputed from the emitted lines.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Set

from hunkstage.git.models import ChangeKind, FileDiff, Hunk, Line, LineKind
from hunkstage.patch.selection import (
    FileSelection,
    HunkSelection,
    LineRunSelection,
    Selection,
)

logger = logging.getLogger(__name__)

_MODE_PREFIXES = ("old mode ", "new mode ")


class SynthesisError(Exception):
    """Raised when a selection cannot be turned into a single-hunk patch."""


@dataclass(frozen=True)
class PatchFragment:
    """Patch text for one file plus the structure it was rendered from."""

    path: str
    file_diff: FileDiff
    inverse: Optional["PatchFragment"] = None

    @property
    def text(self) -> str:
        return self.file_diff.render()

    @property
    def hunks(self) -> List[Hunk]:
        return self.file_diff.hunks


def build(selection: Selection) -> PatchFragment:
    """Build the forward fragment for *selection*; ``.inverse`` holds the other."""
    match selection:
        case FileSelection(file=file_diff):
            return _whole_file(file_diff)
        case HunkSelection(file=file_diff, hunk=index):
            hunk = _hunk_at(file_diff, index)
            if not hunk.has_changes:
                raise SynthesisError("selection is empty")
            return _partial(file_diff, index, set(range(len(hunk.lines))))
        case LineRunSelection(file=file_diff, start=start, end=end):
            if start.hunk != end.hunk:
                raise SynthesisError("selection spans more than one hunk")
            hunk = _hunk_at(file_diff, start.hunk)
            lo, hi = sorted((start.offset, end.offset))
            if lo < 0 or hi >= len(hunk.lines):
                raise SynthesisError("selection is outside the hunk")
            run = hunk.lines[lo:hi + 1]
            if not any(line.is_change for line in run):
                raise SynthesisError("selection is empty")
            if not all(line.is_change for line in run):
                raise SynthesisError("selection is not a contiguous run of changed lines")
            return _partial(file_diff, start.hunk, set(range(lo, hi + 1)))
    raise SynthesisError(f"unsupported selection: {selection!r}")


# ---- whole file ----


def _whole_file(file_diff: FileDiff) -> PatchFragment:
    if not file_diff.hunks and len(file_diff.header_lines) <= 1 and not file_diff.binary_lines:
        raise SynthesisError(f"nothing to apply for {file_diff.path}")
    copy = _copy_file(file_diff, file_diff.header_lines, file_diff.hunks)
    copy.binary_lines = list(file_diff.binary_lines)
    if not file_diff.sections:
        inverse = PatchFragment(path=file_diff.path, file_diff=copy)
        return PatchFragment(path=file_diff.path, file_diff=copy, inverse=inverse)

    # git apply handles sections in order, so the reversed type change must
    # remove the new entry before recreating the old one.
    copy.sections = list(file_diff.sections)
    flipped = _copy_file(file_diff, file_diff.header_lines, file_diff.hunks)
    flipped.sections = list(reversed(file_diff.sections))
    inverse = PatchFragment(path=file_diff.path, file_diff=flipped)
    return PatchFragment(path=file_diff.path, file_diff=copy, inverse=inverse)


# ---- hunk / line-run ----


def _hunk_at(file_diff: FileDiff, index: int) -> Hunk:
    if file_diff.whole_file_only or not file_diff.hunks:
        raise SynthesisError(f"{file_diff.path} can only be selected as a whole file")
    if not 0 <= index < len(file_diff.hunks):
        raise SynthesisError(f"{file_diff.path} has no hunk {index + 1}")
    return file_diff.hunks[index]


def _partial(file_diff: FileDiff, index: int, selected: Set[int]) -> PatchFragment:
    hunk = file_diff.hunks[index]
    chosen = sum(1 for i in selected if hunk.lines[i].is_change)
    if chosen == file_diff.change_count:
        # Covers every change of the file; the file section itself is the patch.
        return _whole_file(file_diff)

    forward_hunk = derive_hunk(hunk, selected, forward=True)
    inverse_hunk = derive_hunk(hunk, selected, forward=False)
    inverse = PatchFragment(
        path=file_diff.path,
        file_diff=_copy_file(file_diff, _partial_header(file_diff, forward=False), [inverse_hunk]),
    )
    forward = PatchFragment(
        path=file_diff.path,
        file_diff=_copy_file(file_diff, _partial_header(file_diff, forward=True), [forward_hunk]),
        inverse=inverse,
    )
    logger.debug(
        "synthesized %s (inverse %s) for %s",
        forward_hunk.key, inverse_hunk.key, file_diff.path,
    )
    return forward


def derive_hunk(hunk: Hunk, selected: Iterable[int], *, forward: bool) -> Hunk:
    """Return a copy of *hunk* that changes only the lines at *selected*.

    ``forward`` keeps the old side intact (unselected deletions become
    context, unselected additions vanish); otherwise the new side is kept.
    """
    selected = set(selected)
    if selected.issuperset(range(len(hunk.lines))):
        return _copy_hunk(hunk)
    demote = LineKind.DELETION if forward else LineKind.ADDITION
    lines: List[Line] = []
    for i, line in enumerate(hunk.lines):
        if line.kind is LineKind.CONTEXT or i in selected:
            lines.append(line)
        elif line.kind is demote:
            lines.append(Line(text=line.text, kind=LineKind.CONTEXT, no_newline=line.no_newline))
        # the other kind of unselected change is dropped

    old_count = sum(1 for line in lines if line.kind is not LineKind.ADDITION)
    new_count = sum(1 for line in lines if line.kind is not LineKind.DELETION)
    if forward:
        old_start = hunk.old_start
        new_start = _other_start(old_start, old_count, new_count)
    else:
        new_start = hunk.new_start
        old_start = _other_start(new_start, new_count, old_count)
    return Hunk(
        old_start=old_start,
        old_count=old_count,
        new_start=new_start,
        new_count=new_count,
        lines=lines,
        section=hunk.section,
    )


def _other_start(start: int, count: int, other_count: int) -> int:
    """Start line for the recomputed side, following diff's empty-range rule."""
    if count == 0 and other_count > 0:
        return start + 1
    if other_count == 0 and count > 0:
        return max(start - 1, 0)
    return start


# ---- headers ----


def _partial_header(file_diff: FileDiff, *, forward: bool) -> List[str]:
    """File header for a fragment that changes only part of the file."""
    if forward:
        # Must match the old side: a new file does not exist there yet.
        if file_diff.is_new:
            return list(file_diff.header_lines)
        if file_diff.kind is ChangeKind.RENAMED:
            return [h for h in file_diff.header_lines if not h.startswith(_MODE_PREFIXES)]
        return _minimal_header(file_diff.old_path or file_diff.path)
    # Must match the new side: a deleted file no longer exists there.
    if file_diff.is_deleted:
        return list(file_diff.header_lines)
    return _minimal_header(file_diff.path)


def _minimal_header(path: str) -> List[str]:
    a, b = quote_path("a/" + path), quote_path("b/" + path)
    return [f"diff --git {a} {b}", f"--- {a}", f"+++ {b}"]


_ESCAPES = {'"': '\\"', "\\": "\\\\", "\t": "\\t", "\n": "\\n", "\r": "\\r"}


def quote_path(path: str) -> str:
    """Quote *path* the way git does when it holds control characters."""
    if not any(ch in _ESCAPES or ord(ch) < 0x20 for ch in path):
        return path
    out = []
    for ch in path:
        if ch in _ESCAPES:
            out.append(_ESCAPES[ch])
        elif ord(ch) < 0x20:
            out.append(f"\\{ord(ch):03o}")
        else:
            out.append(ch)
    return '"' + "".join(out) + '"'


def _copy_file(file_diff: FileDiff, header: List[str], hunks: List[Hunk]) -> FileDiff:
    return FileDiff(
        path=file_diff.path,
        kind=file_diff.kind,
        old_path=file_diff.old_path,
        header_lines=list(header),
        hunks=[_copy_hunk(h) for h in hunks],
        is_new=file_diff.is_new,
        is_deleted=file_diff.is_deleted,
    )


def _copy_hunk(hunk: Hunk) -> Hunk:
    return Hunk(
        old_start=hunk.old_start,
        old_count=hunk.old_count,
        new_start=hunk.new_start,
        new_count=hunk.new_count,
        lines=list(hunk.lines),
        section=hunk.section,
    )
