"""Git interface layer: adapter, diff parsing, models."""

from hunkstage.git.adapter import (
    ApplyError,
    ApplyTarget,
    GitError,
    GitRepository,
    NotARepository,
    get_repo_root,
)
from hunkstage.git.diff_parser import DiffParser, ParseError
from hunkstage.git.models import ChangeKind, DiffSet, FileDiff, Hunk, Line, LineKind, Side

__all__ = [
    "ApplyError",
    "ApplyTarget",
    "ChangeKind",
    "DiffParser",
    "DiffSet",
    "FileDiff",
    "GitError",
    "GitRepository",
    "Hunk",
    "Line",
    "LineKind",
    "NotARepository",
    "ParseError",
    "Side",
    "get_repo_root",
]
