"""Data models for parsed diffs."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class Side(str, Enum):
    UNSTAGED = "unstaged"
    STAGED = "staged"


class LineKind(str, Enum):
    CONTEXT = "context"
    ADDITION = "addition"
    DELETION = "deletion"

    @property
    def marker(self) -> str:
        return _MARKERS[self]


_MARKERS = {
    LineKind.CONTEXT: " ",
    LineKind.ADDITION: "+",
    LineKind.DELETION: "-",
}


class ChangeKind(str, Enum):
    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"
    RENAMED = "renamed"
    BINARY = "binary"
    TYPE_CHANGED = "type_changed"


@dataclass(frozen=True, slots=True)
class Line:
    """A single line of hunk content, without its leading marker."""

    text: str
    kind: LineKind
    no_newline: bool = False  # followed by "\ No newline at end of file"

    @property
    def is_change(self) -> bool:
        return self.kind is not LineKind.CONTEXT

    def render(self) -> str:
        out = f"{self.kind.marker}{self.text}\n"
        if self.no_newline:
            out += "\\ No newline at end of file\n"
        return out


@dataclass
class Hunk:
    """One ``@@`` block. Counters always match the lines it holds."""

    old_start: int
    old_count: int
    new_start: int
    new_count: int
    lines: List[Line] = field(default_factory=list)
    section: str = ""  # trailing function-context text after the second @@
    collapsed: bool = False

    @property
    def header(self) -> str:
        out = (
            f"@@ -{_range(self.old_start, self.old_count)}"
            f" +{_range(self.new_start, self.new_count)} @@"
        )
        if self.section:
            out += f" {self.section}"
        return out

    @property
    def key(self) -> str:
        """Identity used to match this hunk across reloads."""
        return f"-{self.old_start},{self.old_count} +{self.new_start},{self.new_count}"

    @property
    def has_changes(self) -> bool:
        return any(line.is_change for line in self.lines)

    def render(self) -> str:
        return self.header + "\n" + "".join(line.render() for line in self.lines)


def _range(start: int, count: int) -> str:
    return str(start) if count == 1 else f"{start},{count}"


@dataclass
class FileDiff:
    """Everything a diff says about one path."""

    path: str
    kind: ChangeKind = ChangeKind.MODIFIED
    old_path: Optional[str] = None  # set on renames
    header_lines: List[str] = field(default_factory=list)
    hunks: List[Hunk] = field(default_factory=list)
    binary_lines: List[str] = field(default_factory=list)
    is_new: bool = False  # "new file mode" (also set for binary additions)
    is_deleted: bool = False  # "deleted file mode"
    # A type change (file to symlink) arrives as a deletion section followed
    # by a creation section for the same path; both are kept here, in order.
    sections: List["FileDiff"] = field(default_factory=list)
    collapsed: bool = False

    @property
    def is_binary(self) -> bool:
        return self.kind is ChangeKind.BINARY

    @property
    def whole_file_only(self) -> bool:
        return self.is_binary or self.kind is ChangeKind.TYPE_CHANGED

    @property
    def change_count(self) -> int:
        return sum(1 for h in self.hunks for line in h.lines if line.is_change)

    def render(self) -> str:
        """Return the file's section of the diff verbatim."""
        if self.sections:
            return "".join(s.render() for s in self.sections)
        parts = [line + "\n" for line in self.header_lines]
        parts.extend(line + "\n" for line in self.binary_lines)
        parts.extend(h.render() for h in self.hunks)
        return "".join(parts)


@dataclass
class DiffSet:
    """All files of one side, in diff order."""

    side: Side
    files: List[FileDiff] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.files)

    def __iter__(self):
        return iter(self.files)

    def get(self, path: str) -> Optional[FileDiff]:
        for f in self.files:
            if f.path == path:
                return f
        return None

    def render(self) -> str:
        return "".join(f.render() for f in self.files)
