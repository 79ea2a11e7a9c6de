"""Unified diff parser: builds a DiffSet in a single linear pass.

Handles new/deleted/renamed/mode-only sections, type changes, multiple
hunks per file, function-context text after the hunk header, omitted hunk
counts, quoted paths, CRLF content, ``\\ No newline at end of file``
markers, and both binary forms (``Binary files ... differ`` and
``GIT binary patch``).

Hunk content is checked against the header counters; any mismatch or
truncation raises ParseError before a DiffSet is returned, so a caller
holding an older DiffSet never sees a half-parsed one.
"""

from __future__ import annotations

import codecs
import logging
import re
from typing import List, Optional, Tuple

from hunkstage.git.models import ChangeKind, DiffSet, FileDiff, Hunk, Line, LineKind, Side

logger = logging.getLogger(__name__)

# --- Regex patterns for diff parsing ---

_DIFF_HEADER_PREFIX = "diff --git "
_HUNK_HEADER_RE = re.compile(
    r"^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@(.*)$"
)
_BINARY_RE = re.compile(r"^Binary files .* and .* differ$")
_GIT_BINARY_PATCH = "GIT binary patch"
_RENAME_FROM_RE = re.compile(r"^rename from (.+)$")
_RENAME_TO_RE = re.compile(r"^rename to (.+)$")
_NO_NEWLINE_PREFIX = "\\"
_FILE_HEADER_OLD = "--- "
_FILE_HEADER_NEW = "+++ "
_SIMILARITY_RE = re.compile(r"^(?:dis)?similarity index \d+%$")
_COPY_RE = re.compile(r"^copy (?:from|to) .+$")
_OLD_MODE_RE = re.compile(r"^old mode \d+$")
_NEW_MODE_RE = re.compile(r"^new mode \d+$")
_DELETED_FILE_RE = re.compile(r"^deleted file mode \d+$")
_NEW_FILE_RE = re.compile(r"^new file mode \d+$")
_INDEX_RE = re.compile(r"^index [0-9a-f]+\.\.[0-9a-f]+(?: \d+)?$")


class ParseError(Exception):
    """Raised when diff text is truncated or does not match its own headers."""


def unquote_path(raw: str) -> str:
    """Undo git's C-style quoting of paths with unusual characters."""
    if len(raw) < 2 or not (raw.startswith('"') and raw.endswith('"')):
        return raw
    body = raw[1:-1].encode("utf-8", "surrogateescape")
    try:
        unescaped, _ = codecs.escape_decode(body)
    except ValueError as exc:
        raise ParseError(f"bad quoted path: {raw}") from exc
    return unescaped.decode("utf-8", "surrogateescape")


def _strip_prefix(path: str) -> Optional[str]:
    """Turn ``a/foo`` or ``b/foo`` into ``foo``; ``/dev/null`` into None."""
    path = unquote_path(path.split("\t", 1)[0] if not path.startswith('"') else path)
    if path == "/dev/null":
        return None
    if path.startswith(("a/", "b/")):
        return path[2:]
    return path


def _split_git_header(rest: str) -> Tuple[str, str]:
    """Split the ``a/... b/...`` tail of a ``diff --git`` line."""
    if rest.startswith('"'):
        end = rest.index('"', 1)
        while rest[end - 1] == "\\":
            end = rest.index('"', end + 1)
        old, new = rest[: end + 1], rest[end + 2:]
        return old, new
    # Unquoted paths may contain spaces; prefer the split where both halves agree.
    candidates = [m.start() for m in re.finditer(r" b/", rest)]
    if not candidates:
        raise ParseError(f"malformed diff header: diff --git {rest}")
    for pos in candidates:
        old, new = rest[:pos], rest[pos + 1:]
        if old[2:] == new[2:]:
            return old, new
    pos = candidates[-1]
    return rest[:pos], rest[pos + 1:]


class DiffParser:
    """Parse unified diff text into a DiffSet.

    Usage::

        diff_set = DiffParser(diff_text, Side.UNSTAGED).parse()
    """

    def __init__(self, diff_text: str, side: Side = Side.UNSTAGED) -> None:
        self._lines = diff_text.split("\n")
        if self._lines and self._lines[-1] == "":
            self._lines.pop()
        self._side = side
        self._idx = 0

    # ---- top level ----

    def parse(self) -> DiffSet:
        """Return the parsed DiffSet or raise ParseError."""
        self._idx = 0
        diff_set = DiffSet(side=self._side)
        seen: set[str] = set()
        total = len(self._lines)

        while self._idx < total:
            line = self._lines[self._idx]
            if not line.strip():
                self._idx += 1
                continue
            if not line.startswith(_DIFF_HEADER_PREFIX):
                raise ParseError(f"line {self._idx + 1}: expected 'diff --git', got {line!r}")
            file_diff = self._parse_file()
            if file_diff.path in seen:
                prev = diff_set.files[-1]
                if not _is_type_change(prev, file_diff):
                    raise ParseError(f"duplicate path in diff: {file_diff.path}")
                diff_set.files[-1] = _fold_type_change(prev, file_diff)
                continue
            seen.add(file_diff.path)
            diff_set.files.append(file_diff)

        logger.debug("parsed %s diff: %d file(s)", self._side.value, len(diff_set.files))
        return diff_set

    # ---- one file section ----

    def _parse_file(self) -> FileDiff:
        total = len(self._lines)
        first = self._lines[self._idx]
        old_raw, new_raw = _split_git_header(first[len(_DIFF_HEADER_PREFIX):])
        old_path = _strip_prefix(old_raw)
        new_path = _strip_prefix(new_raw)
        header: List[str] = [first]
        binary_lines: List[str] = []
        is_new = is_deleted = is_rename = is_binary = False
        self._idx += 1

        # Extended header lines (index, modes, renames, ---/+++)
        while self._idx < total:
            sub = self._lines[self._idx]
            if sub.startswith(_DIFF_HEADER_PREFIX) or sub.startswith("@@"):
                break
            if _INDEX_RE.match(sub) or _SIMILARITY_RE.match(sub) or _COPY_RE.match(sub):
                header.append(sub)
            elif _OLD_MODE_RE.match(sub) or _NEW_MODE_RE.match(sub):
                header.append(sub)
            elif _NEW_FILE_RE.match(sub):
                is_new = True
                header.append(sub)
            elif _DELETED_FILE_RE.match(sub):
                is_deleted = True
                header.append(sub)
            elif rm := _RENAME_FROM_RE.match(sub):
                old_path = unquote_path(rm.group(1))
                is_rename = True
                header.append(sub)
            elif rt := _RENAME_TO_RE.match(sub):
                new_path = unquote_path(rt.group(1))
                header.append(sub)
            elif _BINARY_RE.match(sub):
                is_binary = True
                binary_lines.append(sub)
            elif sub == _GIT_BINARY_PATCH:
                is_binary = True
                binary_lines.extend(self._take_binary_payload())
                continue
            elif sub.startswith(_FILE_HEADER_OLD):
                if self._idx + 1 >= total or not self._lines[self._idx + 1].startswith(_FILE_HEADER_NEW):
                    raise ParseError(f"line {self._idx + 1}: '---' without matching '+++'")
                old_hdr = _strip_prefix(sub[len(_FILE_HEADER_OLD):])
                new_hdr = _strip_prefix(self._lines[self._idx + 1][len(_FILE_HEADER_NEW):])
                if old_hdr is not None:
                    old_path = old_hdr
                if new_hdr is not None:
                    new_path = new_hdr
                header.extend([sub, self._lines[self._idx + 1]])
                self._idx += 2
                continue
            else:
                raise ParseError(f"line {self._idx + 1}: unexpected diff header line {sub!r}")
            self._idx += 1

        path = new_path if not is_deleted else old_path
        path = path or old_path or new_path
        if not path:
            raise ParseError(f"cannot determine path for {first!r}")

        hunks: List[Hunk] = []
        while self._idx < total and self._lines[self._idx].startswith("@@"):
            hunks.append(self._parse_hunk())

        if is_binary:
            kind = ChangeKind.BINARY
        elif is_new:
            kind = ChangeKind.ADDED
        elif is_deleted:
            kind = ChangeKind.DELETED
        elif is_rename:
            kind = ChangeKind.RENAMED
        else:
            kind = ChangeKind.MODIFIED

        return FileDiff(
            path=path,
            kind=kind,
            old_path=old_path if is_rename else None,
            header_lines=header,
            hunks=hunks,
            binary_lines=binary_lines,
            is_new=is_new,
            is_deleted=is_deleted,
        )

    def _take_binary_payload(self) -> List[str]:
        """Consume a ``GIT binary patch`` block up to the next file section."""
        out: List[str] = []
        total = len(self._lines)
        while self._idx < total and not self._lines[self._idx].startswith(_DIFF_HEADER_PREFIX):
            out.append(self._lines[self._idx])
            self._idx += 1
        return out

    # ---- one hunk ----

    def _parse_hunk(self) -> Hunk:
        total = len(self._lines)
        raw = self._lines[self._idx]
        hm = _HUNK_HEADER_RE.match(raw)
        if not hm:
            raise ParseError(f"line {self._idx + 1}: malformed hunk header {raw!r}")
        old_start = int(hm.group(1))
        old_count = int(hm.group(2)) if hm.group(2) is not None else 1
        new_start = int(hm.group(3))
        new_count = int(hm.group(4)) if hm.group(4) is not None else 1
        section = hm.group(5)
        if section.startswith(" "):
            section = section[1:]
        self._idx += 1

        lines: List[Line] = []
        old_left, new_left = old_count, new_count
        while old_left > 0 or new_left > 0:
            if self._idx >= total:
                raise ParseError(f"truncated hunk {raw!r}: input ended early")
            content = self._lines[self._idx]
            if content.startswith(_NO_NEWLINE_PREFIX):
                self._mark_no_newline(lines, raw)
                self._idx += 1
                continue
            marker, text = content[:1], content[1:]
            if marker in (" ", ""):
                kind = LineKind.CONTEXT
                old_left -= 1
                new_left -= 1
            elif marker == "-":
                kind = LineKind.DELETION
                old_left -= 1
            elif marker == "+":
                kind = LineKind.ADDITION
                new_left -= 1
            else:
                raise ParseError(f"hunk {raw!r} has fewer lines than its header declares")
            if old_left < 0 or new_left < 0:
                raise ParseError(f"hunk {raw!r} does not match its line counts")
            lines.append(Line(text=text, kind=kind))
            self._idx += 1

        if self._idx < total and self._lines[self._idx].startswith(_NO_NEWLINE_PREFIX):
            self._mark_no_newline(lines, raw)
            self._idx += 1

        if self._idx < total:
            nxt = self._lines[self._idx]
            if nxt[:1] in ("+", "-", " ") and not nxt.startswith(_DIFF_HEADER_PREFIX):
                raise ParseError(f"hunk {raw!r} has more lines than its header declares")

        return Hunk(
            old_start=old_start,
            old_count=old_count,
            new_start=new_start,
            new_count=new_count,
            lines=lines,
            section=section,
        )

    @staticmethod
    def _mark_no_newline(lines: List[Line], raw: str) -> None:
        if not lines:
            raise ParseError(f"hunk {raw!r}: 'No newline' marker before any line")
        last = lines[-1]
        lines[-1] = Line(text=last.text, kind=last.kind, no_newline=True)


def _is_type_change(prev: FileDiff, nxt: FileDiff) -> bool:
    return (
        prev.path == nxt.path
        and prev.is_deleted
        and nxt.is_new
        and not prev.sections
    )


def _fold_type_change(deleted: FileDiff, created: FileDiff) -> FileDiff:
    """Merge the deletion and creation sections git emits for a type change."""
    return FileDiff(
        path=deleted.path,
        kind=ChangeKind.TYPE_CHANGED,
        header_lines=list(deleted.header_lines),
        hunks=deleted.hunks + created.hunks,
        binary_lines=deleted.binary_lines + created.binary_lines,
        sections=[deleted, created],
    )
