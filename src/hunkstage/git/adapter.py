"""Git subprocess wrapper: diff fetch, patch apply, repository discovery."""

from __future__ import annotations

import logging
import subprocess
from enum import Enum
from pathlib import Path
from typing import List, Optional

from hunkstage.git.models import Side

logger = logging.getLogger(__name__)

# Paths and file contents are not guaranteed to be UTF-8; surrogateescape keeps
# every byte so a fragment built from fetched text applies unchanged.
_ENCODING = "utf-8"
_ERRORS = "surrogateescape"


class GitError(Exception):
    """Raised when git is unavailable or returns an unexpected error."""


class NotARepository(GitError):
    """Raised when the working directory is not inside a git repository."""


class ApplyError(GitError):
    """Raised when git rejects a patch; nothing was applied."""


class ApplyTarget(str, Enum):
    INDEX = "index"
    WORKING_TREE = "working_tree"


def _run_git(
    args: List[str],
    cwd: Path,
    timeout: int = 30,
    input_text: Optional[str] = None,
) -> subprocess.CompletedProcess:
    """Run a git command. Raises GitError when git cannot be run at all."""
    logger.debug("git %s", " ".join(args))
    try:
        return subprocess.run(
            ["git", *args],
            cwd=cwd,
            input=input_text,
            capture_output=True,
            text=True,
            timeout=timeout,
            encoding=_ENCODING,
            errors=_ERRORS,
        )
    except FileNotFoundError:
        raise GitError("git is not installed or not on PATH")
    except subprocess.TimeoutExpired:
        raise GitError(f"git command timed out after {timeout}s: git {' '.join(args)}")


def _check_output(args: List[str], cwd: Path, ok_codes: tuple[int, ...] = (0,)) -> str:
    """Run git and return stdout, raising GitError on unexpected exit codes."""
    result = _run_git(args, cwd)
    if result.returncode not in ok_codes:
        stderr = result.stderr.strip()
        if "not a git repository" in stderr.lower():
            raise NotARepository(stderr)
        raise GitError(f"git error: {stderr or f'exit code {result.returncode}'}")
    return result.stdout


def get_repo_root(cwd: Optional[Path] = None) -> Path:
    """Return the root of the current git repository."""
    cwd = cwd or Path.cwd()
    out = _check_output(["rev-parse", "--show-toplevel"], cwd=cwd)
    root = out.strip()
    if not root:
        raise NotARepository(f"not inside a git work tree: {cwd}")
    return Path(root)


class GitRepository:
    """Diff-fetch and patch-apply collaborator bound to one repository."""

    def __init__(
        self,
        repo_root: Path,
        *,
        include_untracked: bool = True,
        context_lines: int = 3,
    ) -> None:
        self.repo_root = repo_root
        self.include_untracked = include_untracked
        self.context_lines = context_lines

    def _diff_args(self) -> List[str]:
        return [
            "-c", "core.quotepath=false",
            "diff", "--no-color", "--no-ext-diff", "--binary",
            # diff.noprefix and diff.mnemonicPrefix would change the header paths
            "--src-prefix=a/", "--dst-prefix=b/",
            f"--unified={self.context_lines}",
        ]

    def fetch_diff(self, side: Side) -> str:
        """Return the unified diff text for one side."""
        if side is Side.STAGED:
            return _check_output([*self._diff_args(), "--cached"], cwd=self.repo_root)
        text = _check_output(self._diff_args(), cwd=self.repo_root)
        if self.include_untracked:
            text += "".join(self._untracked_diff(path) for path in self.untracked_files())
        return text

    def untracked_files(self) -> List[str]:
        """Return untracked, non-ignored paths relative to the repo root."""
        output = _check_output(
            ["ls-files", "--others", "--exclude-standard", "-z"],
            cwd=self.repo_root,
        )
        return [p for p in output.split("\0") if p]

    def _untracked_diff(self, path: str) -> str:
        # --no-index exits 1 when the files differ, which is always the case here
        return _check_output(
            [*self._diff_args(), "--no-index", "--", "/dev/null", path],
            cwd=self.repo_root,
            ok_codes=(0, 1),
        )

    def apply_patch(self, patch: str, target: ApplyTarget, reverse: bool = False) -> None:
        """Apply *patch* atomically. Raises ApplyError if git rejects it."""
        args = ["apply", "--whitespace=nowarn"]
        if target is ApplyTarget.INDEX:
            args.append("--cached")
        if reverse:
            args.append("--reverse")
        args.append("-")
        result = _run_git(args, cwd=self.repo_root, input_text=patch)
        if result.returncode != 0:
            stderr = result.stderr.strip() or f"git apply exited with {result.returncode}"
            logger.warning("git apply failed (%s, reverse=%s): %s", target.value, reverse, stderr)
            logger.debug("rejected patch:\n%s", patch)
            raise ApplyError(stderr)
        logger.info("applied patch to %s (reverse=%s)", target.value, reverse)
