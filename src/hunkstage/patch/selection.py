"""Selection models: what part of a FileDiff an action applies to."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from hunkstage.git.models import FileDiff, Side


@dataclass(frozen=True)
class LinePos:
    """A line addressed by hunk index and offset within that hunk."""

    hunk: int
    offset: int


@dataclass(frozen=True)
class FileSelection:
    file: FileDiff
    side: Side


@dataclass(frozen=True)
class HunkSelection:
    file: FileDiff
    side: Side
    hunk: int


@dataclass(frozen=True)
class LineRunSelection:
    """A contiguous run of change lines, ``start`` and ``end`` inclusive."""

    file: FileDiff
    side: Side
    start: LinePos
    end: LinePos


Selection = Union[FileSelection, HunkSelection, LineRunSelection]


def describe(selection: Selection) -> str:
    """Short human-readable label used in status messages."""
    match selection:
        case FileSelection(file=f):
            return f.path
        case HunkSelection(file=f, hunk=i):
            return f"{f.path} hunk {i + 1}"
        case LineRunSelection(file=f, start=s, end=e) if s == e:
            return f"{f.path} line"
        case LineRunSelection(file=f):
            return f"{f.path} lines"
    raise TypeError(f"not a selection: {selection!r}")
