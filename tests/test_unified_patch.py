import pytest

from klyra.base import ToolError
from klyra.unified_patch import (
    PatchError,
    PatchFile,
    PatchHunk,
    apply_hunks_to_lines,
    apply_unified_patch,
    parse_hunk_header,
    parse_unified_patch,
    preview_unified_patch,
)

SIMPLE_PATCH = "\n".join(
    ["--- a/hello.txt", "+++ b/hello.txt", "@@ -1 +1 @@", "-hello", "+hello without git", ""]
)


def test_apply_replaces_line(tmp_path):
    (tmp_path / "hello.txt").write_text("hello\n")
    apply_unified_patch(str(tmp_path), SIMPLE_PATCH, False)
    assert (tmp_path / "hello.txt").read_text() == "hello without git\n"


def test_loose_hunk_counts_still_apply(tmp_path):
    (tmp_path / "hello.txt").write_text("hello\n")
    patch = "\n".join(
        ["--- a/hello.txt", "+++ b/hello.txt", "@@ -1,999 +1,999 @@", "-hello", "+hello fallback", ""]
    )
    apply_unified_patch(str(tmp_path), patch, False)
    assert (tmp_path / "hello.txt").read_text() == "hello fallback\n"


def test_check_only_leaves_file_untouched(tmp_path):
    (tmp_path / "hello.txt").write_text("hello\n")
    apply_unified_patch(str(tmp_path), SIMPLE_PATCH, True)
    assert (tmp_path / "hello.txt").read_text() == "hello\n"


def test_preview_reports_stats_without_applying(tmp_path):
    (tmp_path / "hello.txt").write_text("hello\n")
    assert preview_unified_patch(str(tmp_path), SIMPLE_PATCH) == ["hello.txt | +1 -1"]
    assert (tmp_path / "hello.txt").read_text() == "hello\n"


def test_creates_new_file(tmp_path):
    patch = "\n".join(["--- /dev/null", "+++ b/new.txt", "@@ -0,0 +1,2 @@", "+one", "+two", ""])
    apply_unified_patch(str(tmp_path), patch, False)
    assert (tmp_path / "new.txt").read_text() == "one\ntwo\n"


def test_deletes_file(tmp_path):
    (tmp_path / "gone.txt").write_text("hello\n")
    patch = "\n".join(["--- a/gone.txt", "+++ /dev/null", "@@ -1 +0,0 @@", "-hello", ""])
    apply_unified_patch(str(tmp_path), patch, False)
    assert not (tmp_path / "gone.txt").exists()


def test_mismatch_raises_and_keeps_file(tmp_path):
    (tmp_path / "hello.txt").write_text("other\n")
    with pytest.raises(PatchError, match="hunk mismatch"):
        apply_unified_patch(str(tmp_path), SIMPLE_PATCH, False)
    assert (tmp_path / "hello.txt").read_text() == "other\n"


def test_missing_target_file_raises(tmp_path):
    with pytest.raises(PatchError, match="hello.txt"):
        apply_unified_patch(str(tmp_path), SIMPLE_PATCH, False)


def test_escaping_path_is_rejected(tmp_path):
    patch = SIMPLE_PATCH.replace("hello.txt", "../outside.txt")
    with pytest.raises(ToolError, match="escapes workspace"):
        apply_unified_patch(str(tmp_path), patch, False)


def test_parse_hunk_header_single_line_ranges():
    hunk = parse_hunk_header("@@ -1 +1 @@")
    assert (hunk.old_start, hunk.old_count, hunk.new_start, hunk.new_count) == (1, 1, 1, 1)


def test_parse_hunk_header_explicit_counts():
    hunk = parse_hunk_header("@@ -0,0 +1,2 @@")
    assert (hunk.old_start, hunk.old_count, hunk.new_start, hunk.new_count) == (0, 0, 1, 2)


@pytest.mark.parametrize("header", ["@@ bad", "@@ +1 -1 @@", "@@ -x +1 @@"])
def test_parse_hunk_header_rejects_garbage(header):
    with pytest.raises(PatchError):
        parse_hunk_header(header)


def test_parse_strips_prefixes_and_collects_lines():
    files = parse_unified_patch(SIMPLE_PATCH)
    assert len(files) == 1
    assert files[0].old_path == "hello.txt"
    assert files[0].target_path() == "hello.txt"
    assert files[0].hunks[0].lines == ["-hello", "+hello without git"]
    assert files[0].stats() == (1, 1)


def test_parse_errors():
    with pytest.raises(PatchError, match="no unified diff file headers found"):
        parse_unified_patch("just text")
    with pytest.raises(PatchError, match="hunk before file header"):
        parse_unified_patch("@@ -1 +1 @@\n-a\n+b\n")
    with pytest.raises(PatchError, match="missing \\+\\+\\+ header"):
        parse_unified_patch("--- a/x.txt\n@@ -1 +1 @@\n")
    with pytest.raises(PatchError, match="has no hunks"):
        parse_unified_patch("--- a/x.txt\n+++ b/x.txt\n")


def test_target_path_falls_back_to_old_path():
    assert PatchFile("old.txt", "/dev/null").target_path() == "old.txt"


def test_apply_hunks_tracks_offset_between_hunks():
    lines = ["a", "b", "c", "d"]
    hunks = [
        PatchHunk(1, 1, 1, 2, ["-a", "+a1", "+a2"]),
        PatchHunk(3, 1, 4, 1, ["-c", "+C"]),
    ]
    assert apply_hunks_to_lines("f", lines, hunks) == ["a1", "a2", "b", "C", "d"]
    assert lines == ["a", "b", "c", "d"]


def test_apply_hunks_rejects_overrun():
    with pytest.raises(PatchError, match="exceeds file length"):
        apply_hunks_to_lines("f", ["a"], [PatchHunk(1, 2, 1, 2, [" a", "-b"])])


def test_apply_hunks_rejects_start_outside_file():
    with pytest.raises(PatchError, match="outside file"):
        apply_hunks_to_lines("f", ["a"], [PatchHunk(5, 1, 5, 1, ["-a"])])