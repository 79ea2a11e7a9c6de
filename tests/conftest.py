"""Shared test fixtures: sample diffs, temp git repos."""

from __future__ import annotations

import subprocess
import textwrap
from pathlib import Path

import pytest


def git(repo: Path, *args: str) -> str:
    """Run git in *repo* and return stdout; fail the test on a non-zero exit."""
    result = subprocess.run(
        ["git", *args], cwd=repo, capture_output=True, text=True, check=True,
    )
    return result.stdout


@pytest.fixture
def sample_diff_modified() -> str:
    """One file, two hunks, one of them with function context."""
    return textwrap.dedent("""\
        diff --git a/app.py b/app.py
        index 1234567..abcdef0 100644
        --- a/app.py
        +++ b/app.py
        @@ -1,4 +1,4 @@
         import os
        -import sys
        +import re

         def main():
        @@ -10,3 +10,4 @@ def main():
             x = 1
             y = 2
        +    z = 3
             return x
    """)


@pytest.fixture
def sample_diff_replace_one() -> str:
    """A single hunk with one deletion followed by one addition."""
    return textwrap.dedent("""\
        diff --git a/notes.txt b/notes.txt
        index 1111111..2222222 100644
        --- a/notes.txt
        +++ b/notes.txt
        @@ -1,3 +1,3 @@
         alpha
        -beta
        +BETA
         gamma
    """)


@pytest.fixture
def sample_diff_new_file() -> str:
    return textwrap.dedent("""\
        diff --git a/hello.py b/hello.py
        new file mode 100644
        index 0000000..e69de29
        --- /dev/null
        +++ b/hello.py
        @@ -0,0 +1,3 @@
        +def greet(name):
        +    return f"Hello, {name}!"
        +
    """)


@pytest.fixture
def sample_diff_deleted_file() -> str:
    return textwrap.dedent("""\
        diff --git a/old.txt b/old.txt
        deleted file mode 100644
        index abc1234..0000000
        --- a/old.txt
        +++ /dev/null
        @@ -1,2 +0,0 @@
        -first
        -second
    """)


@pytest.fixture
def sample_diff_binary() -> str:
    """A diff with a binary file."""
    return textwrap.dedent("""\
        diff --git a/image.png b/image.png
        new file mode 100644
        Binary files /dev/null and b/image.png differ
    """)


@pytest.fixture
def sample_diff_rename() -> str:
    """A diff with a renamed file."""
    return textwrap.dedent("""\
        diff --git a/old_name.py b/new_name.py
        similarity index 97%
        rename from old_name.py
        rename to new_name.py
        index abc1234..def5678 100644
        --- a/old_name.py
        +++ b/new_name.py
        @@ -1,0 +2,1 @@
        +# New line added after rename
    """)


@pytest.fixture
def sample_diff_mode_only() -> str:
    """A diff with only file mode change."""
    return textwrap.dedent("""\
        diff --git a/script.sh b/script.sh
        old mode 100644
        new mode 100755
    """)


@pytest.fixture
def sample_diff_type_change() -> str:
    """A regular file replaced by a symlink: two sections for one path."""
    return textwrap.dedent("""\
        diff --git a/notes.txt b/notes.txt
        deleted file mode 100644
        index 3f1c5a0..0000000
        --- a/notes.txt
        +++ /dev/null
        @@ -1,3 +0,0 @@
        -alpha
        -beta
        -gamma
        diff --git a/notes.txt b/notes.txt
        new file mode 120000
        index 0000000..1b2c3d4
        --- /dev/null
        +++ b/notes.txt
        @@ -0,0 +1 @@
        +README.md
        \\ No newline at end of file
    """)


@pytest.fixture
def sample_diff_no_newline() -> str:
    """A diff with 'No newline at end of file' marker."""
    return textwrap.dedent("""\
        diff --git a/data.txt b/data.txt
        index 1234567..abc1234 100644
        --- a/data.txt
        +++ b/data.txt
        @@ -1,2 +1,2 @@
         keep
        -old last
        \\ No newline at end of file
        +new last
        \\ No newline at end of file
    """)


@pytest.fixture
def sample_diff_two_files(sample_diff_modified, sample_diff_new_file) -> str:
    return sample_diff_modified + sample_diff_new_file


@pytest.fixture
def tmp_git_repo(tmp_path: Path) -> Path:
    """Create a temporary git repository for integration tests."""
    subprocess.run(["git", "init", str(tmp_path)], capture_output=True, check=True)
    git(tmp_path, "config", "user.email", "test@test.com")
    git(tmp_path, "config", "user.name", "Test")
    git(tmp_path, "config", "core.autocrlf", "false")
    # Initial commit
    readme = tmp_path / "README.md"
    readme.write_text("# Test\n")
    (tmp_path / "notes.txt").write_text("alpha\nbeta\ngamma\n")
    git(tmp_path, "add", ".")
    git(tmp_path, "commit", "-m", "init")
    return tmp_path
