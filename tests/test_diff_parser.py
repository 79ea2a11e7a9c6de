"""Tests for the unified diff parser."""

import pytest

from hunkstage.git.diff_parser import DiffParser, ParseError, unquote_path
from hunkstage.git.models import ChangeKind, LineKind, Side


class TestBasicParsing:
    def test_modified_file_hunks(self, sample_diff_modified):
        diff_set = DiffParser(sample_diff_modified, Side.UNSTAGED).parse()
        assert diff_set.side is Side.UNSTAGED
        assert len(diff_set) == 1
        f = diff_set.files[0]
        assert f.path == "app.py"
        assert f.kind is ChangeKind.MODIFIED
        assert len(f.hunks) == 2

        first, second = f.hunks
        assert (first.old_start, first.old_count, first.new_start, first.new_count) == (1, 4, 1, 4)
        assert [line.kind for line in first.lines] == [
            LineKind.CONTEXT,
            LineKind.DELETION,
            LineKind.ADDITION,
            LineKind.CONTEXT,
            LineKind.CONTEXT,
        ]
        assert first.lines[1].text == "import sys"
        assert second.section == "def main():"
        assert second.new_count == 4

    def test_blank_context_line(self, sample_diff_modified):
        f = DiffParser(sample_diff_modified).parse().files[0]
        blank = f.hunks[0].lines[3]
        assert blank.kind is LineKind.CONTEXT
        assert blank.text == ""

    def test_change_count(self, sample_diff_modified):
        f = DiffParser(sample_diff_modified).parse().files[0]
        assert f.change_count == 3

    def test_two_files_in_order(self, sample_diff_two_files):
        diff_set = DiffParser(sample_diff_two_files, Side.STAGED).parse()
        assert [f.path for f in diff_set] == ["app.py", "hello.py"]
        assert diff_set.get("hello.py").is_new
        assert diff_set.get("missing") is None

    def test_empty_input(self):
        diff_set = DiffParser("", Side.STAGED).parse()
        assert len(diff_set) == 0
        assert diff_set.side is Side.STAGED


class TestEdgeCases:
    def test_new_file(self, sample_diff_new_file):
        f = DiffParser(sample_diff_new_file).parse().files[0]
        assert f.kind is ChangeKind.ADDED
        assert f.is_new
        assert f.hunks[0].old_start == 0
        assert f.hunks[0].old_count == 0
        assert all(line.kind is LineKind.ADDITION for line in f.hunks[0].lines)

    def test_deleted_file(self, sample_diff_deleted_file):
        f = DiffParser(sample_diff_deleted_file).parse().files[0]
        assert f.path == "old.txt"
        assert f.kind is ChangeKind.DELETED
        assert f.is_deleted

    def test_binary_file(self, sample_diff_binary):
        f = DiffParser(sample_diff_binary).parse().files[0]
        assert f.path == "image.png"
        assert f.is_binary
        assert f.hunks == []
        assert f.binary_lines == ["Binary files /dev/null and b/image.png differ"]

    def test_git_binary_patch_kept_verbatim(self):
        diff = (
            "diff --git a/blob.bin b/blob.bin\n"
            "index 1234567..89abcde 100644\n"
            "GIT binary patch\n"
            "literal 4\n"
            "LcmZQzWMT#Y01f~L\n"
            "\n"
            "literal 0\n"
            "HcmV?d00001\n"
            "\n"
        )
        diff_set = DiffParser(diff).parse()
        f = diff_set.files[0]
        assert f.is_binary
        assert f.binary_lines[0] == "GIT binary patch"
        assert f.render() == diff

    def test_rename(self, sample_diff_rename):
        f = DiffParser(sample_diff_rename).parse().files[0]
        assert f.path == "new_name.py"
        assert f.old_path == "old_name.py"
        assert f.kind is ChangeKind.RENAMED

    def test_mode_only(self, sample_diff_mode_only):
        f = DiffParser(sample_diff_mode_only).parse().files[0]
        assert f.path == "script.sh"
        assert f.hunks == []
        assert "new mode 100755" in f.header_lines

    def test_no_newline_marker(self, sample_diff_no_newline):
        f = DiffParser(sample_diff_no_newline).parse().files[0]
        lines = f.hunks[0].lines
        assert len(lines) == 3
        assert lines[1].no_newline and lines[1].kind is LineKind.DELETION
        assert lines[2].no_newline and lines[2].kind is LineKind.ADDITION
        assert not lines[0].no_newline

    def test_single_line_hunk_header(self):
        """Hunk header without comma implies count=1."""
        diff = (
            "diff --git a/f.txt b/f.txt\n"
            "index abc..def 100644\n"
            "--- a/f.txt\n"
            "+++ b/f.txt\n"
            "@@ -1 +1 @@\n"
            "-old line\n"
            "+replaced line\n"
        )
        h = DiffParser(diff).parse().files[0].hunks[0]
        assert (h.old_count, h.new_count) == (1, 1)
        assert h.header == "@@ -1 +1 @@"

    def test_crlf_content_preserved(self):
        diff = (
            "diff --git a/win.txt b/win.txt\n"
            "index abc..def 100644\n"
            "--- a/win.txt\n"
            "+++ b/win.txt\n"
            "@@ -1 +1 @@\n"
            "-a\r\n"
            "+b\r\n"
        )
        f = DiffParser(diff).parse().files[0]
        assert f.hunks[0].lines[1].text == "b\r"
        assert f.render() == diff

    def test_quoted_path(self):
        diff = (
            'diff --git "a/tab\\there.txt" "b/tab\\there.txt"\n'
            "new file mode 100644\n"
            "index 0000000..abc1234\n"
            "--- /dev/null\n"
            '+++ "b/tab\\there.txt"\n'
            "@@ -0,0 +1 @@\n"
            "+x\n"
        )
        f = DiffParser(diff).parse().files[0]
        assert f.path == "tab\there.txt"

    def test_path_with_spaces(self):
        diff = (
            "diff --git a/my file.txt b/my file.txt\n"
            "index abc..def 100644\n"
            "--- a/my file.txt\n"
            "+++ b/my file.txt\n"
            "@@ -1 +1 @@\n"
            "-a\n"
            "+b\n"
        )
        assert DiffParser(diff).parse().files[0].path == "my file.txt"

    def test_unquote_plain_path(self):
        assert unquote_path("plain.txt") == "plain.txt"
        assert unquote_path('"caf\\303\\251.txt"') == "café.txt"


class TestRoundTrip:
    def test_render_reproduces_input(self, sample_diff_two_files):
        diff_set = DiffParser(sample_diff_two_files).parse()
        # Blank context lines are emitted with their space marker.
        assert diff_set.render() == sample_diff_two_files.replace("\n\n def", "\n \n def")

    def test_whole_file_reparse(self, sample_diff_modified):
        f = DiffParser(sample_diff_modified).parse().files[0]
        again = DiffParser(f.render()).parse().files[0]
        assert [h.key for h in again.hunks] == [h.key for h in f.hunks]
        assert [h.lines for h in again.hunks] == [h.lines for h in f.hunks]


class TestMalformed:
    def test_truncated_hunk(self):
        diff = (
            "diff --git a/f.txt b/f.txt\n"
            "--- a/f.txt\n"
            "+++ b/f.txt\n"
            "@@ -1,3 +1,3 @@\n"
            " a\n"
        )
        with pytest.raises(ParseError, match="truncated"):
            DiffParser(diff).parse()

    def test_too_many_lines(self):
        diff = (
            "diff --git a/f.txt b/f.txt\n"
            "--- a/f.txt\n"
            "+++ b/f.txt\n"
            "@@ -1 +1 @@\n"
            "-a\n"
            "+b\n"
            "+c\n"
        )
        with pytest.raises(ParseError, match="more lines"):
            DiffParser(diff).parse()

    def test_bad_hunk_header(self):
        diff = (
            "diff --git a/f.txt b/f.txt\n"
            "--- a/f.txt\n"
            "+++ b/f.txt\n"
            "@@ -x +1 @@\n"
        )
        with pytest.raises(ParseError, match="malformed hunk header"):
            DiffParser(diff).parse()

    def test_garbage_before_first_file(self):
        with pytest.raises(ParseError, match="expected 'diff --git'"):
            DiffParser("hello world\n").parse()

    def test_unknown_header_line(self):
        diff = "diff --git a/f.txt b/f.txt\nsomething odd\n"
        with pytest.raises(ParseError, match="unexpected diff header line"):
            DiffParser(diff).parse()

    def test_duplicate_path(self, sample_diff_replace_one):
        with pytest.raises(ParseError, match="duplicate path"):
            DiffParser(sample_diff_replace_one * 2).parse()


class TestTypeChange:
    def test_sections_folded_into_one_file(self, sample_diff_type_change):
        diff_set = DiffParser(sample_diff_type_change).parse()
        assert len(diff_set) == 1
        f = diff_set.files[0]
        assert f.path == "notes.txt"
        assert f.kind == ChangeKind.TYPE_CHANGED
        assert f.whole_file_only
        assert len(f.sections) == 2
        assert f.sections[0].is_deleted and f.sections[1].is_new
        assert [len(h.lines) for h in f.hunks] == [3, 1]

    def test_render_emits_both_sections(self, sample_diff_type_change):
        f = DiffParser(sample_diff_type_change).parse().files[0]
        assert f.render() == sample_diff_type_change

    def test_only_deletion_then_creation_folds(self, sample_diff_new_file):
        deleted = sample_diff_new_file.replace("new file mode", "deleted file mode")
        doubled = sample_diff_new_file + deleted
        with pytest.raises(ParseError, match="duplicate path"):
            DiffParser(doubled).parse()
