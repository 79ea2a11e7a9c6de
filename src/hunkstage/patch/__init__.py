"""Selections and partial-patch synthesis."""

from hunkstage.patch.selection import (
    FileSelection,
    HunkSelection,
    LinePos,
    LineRunSelection,
    Selection,
    describe,
)
from hunkstage.patch.synthesizer import PatchFragment, SynthesisError, build, derive_hunk

__all__ = [
    "FileSelection",
    "HunkSelection",
    "LinePos",
    "LineRunSelection",
    "PatchFragment",
    "Selection",
    "SynthesisError",
    "build",
    "derive_hunk",
    "describe",
]
