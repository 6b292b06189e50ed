"""Parsing and direct application of unified diffs without git."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from klyra.base import ToolError
from klyra.workspace import safe_workspace_path

DEV_NULL = "/dev/null"
_NO_NEWLINE_MARKER = "\\ No newline at end of file"


class PatchError(ToolError):
    """Raised when a patch cannot be parsed or does not apply."""


@dataclass
class PatchHunk:
    """One @@ section of a unified diff."""

    old_start: int
    old_count: int
    new_start: int
    new_count: int
    lines: list[str] = field(default_factory=list)


@dataclass
class PatchFile:
    """The hunks for one file of a unified diff."""

    old_path: str
    new_path: str
    hunks: list[PatchHunk] = field(default_factory=list)

    def target_path(self) -> str:
        """The path the patch writes to, or the old path for deletions."""
        if self.new_path and self.new_path != DEV_NULL:
            return self.new_path
        return self.old_path

    def stats(self) -> tuple[int, int]:
        """Return (added, removed) line counts."""
        added = removed = 0
        for hunk in self.hunks:
            for line in hunk.lines:
                if line.startswith("+"):
                    added += 1
                elif line.startswith("-"):
                    removed += 1
        return added, removed


def _clean_header_path(path: str) -> str:
    fields = path.split()
    if not fields:
        return ""
    path = fields[0]
    if path == DEV_NULL:
        return path
    path = path.removeprefix("a/").removeprefix("b/")
    return path.replace(os.sep, "/")


def _parse_hunk_range(value: str, prefix: str) -> tuple[int, int]:
    if not value.startswith(prefix):
        raise ValueError(f"expected {prefix} range")
    start_text, comma, count_text = value[1:].partition(",")
    start = int(start_text)
    count = int(count_text) if comma else 1
    return start, count


def parse_hunk_header(header: str) -> PatchHunk:
    """Parse an '@@ -a,b +c,d @@' header into an empty hunk."""
    fields = header.split()
    if len(fields) < 3 or fields[0] != "@@":
        raise PatchError(f'invalid hunk header "{header}"')
    try:
        old_start, old_count = _parse_hunk_range(fields[1], "-")
    except ValueError as exc:
        raise PatchError(f'invalid old range in "{header}": {exc}') from exc
    try:
        new_start, new_count = _parse_hunk_range(fields[2], "+")
    except ValueError as exc:
        raise PatchError(f'invalid new range in "{header}": {exc}') from exc
    return PatchHunk(old_start, old_count, new_start, new_count)


def parse_unified_patch(patch: str) -> list[PatchFile]:
    """Parse a unified diff into per-file hunks."""
    files: list[PatchFile] = []
    current: PatchFile | None = None
    hunk: PatchHunk | None = None
    lines = iter(patch.replace("\r\n", "\n").split("\n"))
    for line in lines:
        if line.startswith("--- "):
            if current is not None:
                files.append(current)
                hunk = None
            old_path = _clean_header_path(line[4:].strip())
            header = next(lines, None)
            if header is None or not header.startswith("+++ "):
                raise PatchError(f"missing +++ header after {line}")
            current = PatchFile(old_path, _clean_header_path(header[4:].strip()))
        elif line.startswith("@@ "):
            if current is None:
                raise PatchError("hunk before file header")
            hunk = parse_hunk_header(line)
            current.hunks.append(hunk)
        elif hunk is not None:
            if line == _NO_NEWLINE_MARKER or line == "":
                continue
            if line[0] not in " -+":
                raise PatchError(f"invalid hunk line prefix '{line[0]}'")
            hunk.lines.append(line)
    if current is not None:
        files.append(current)
    if not files:
        raise PatchError("no unified diff file headers found")
    for file in files:
        if not file.hunks:
            raise PatchError(f"patch for {file.target_path()} has no hunks")
    return files


def apply_hunks_to_lines(path: str, lines: list[str], hunks: list[PatchHunk]) -> list[str]:
    """Apply hunks in order to lines and return the new lines; the input is left untouched."""
    result = list(lines)
    offset = 0
    for hunk in hunks:
        start = max(hunk.old_start, 1)
        idx = start - 1 + offset
        if idx < 0 or idx > len(result):
            raise PatchError(f"{path}: hunk starts outside file at line {hunk.old_start}")
        old_lines = [line[1:] for line in hunk.lines if line[0] in " -"]
        new_lines = [line[1:] for line in hunk.lines if line[0] in " +"]
        if idx + len(old_lines) > len(result):
            raise PatchError(f"{path}: hunk exceeds file length at line {hunk.old_start}")
        for number, (expected, actual) in enumerate(zip(old_lines, result[idx:]), start=idx + 1):
            if actual != expected:
                raise PatchError(
                    f'{path}: hunk mismatch at line {number}: expected "{expected}", got "{actual}"'
                )
        result[idx : idx + len(old_lines)] = new_lines
        offset += len(new_lines) - len(old_lines)
    return result


def _read_editable_lines(path: str) -> tuple[list[str], bool]:
    with open(path, "rb") as handle:
        text = handle.read().decode("utf-8", errors="replace")
    if not text:
        return [], True
    final_newline = text.endswith("\n")
    if final_newline:
        text = text[:-1]
    return text.split("\n"), final_newline


def _write_editable_lines(path: str, lines: list[str], final_newline: bool) -> None:
    text = "\n".join(lines)
    if lines and final_newline:
        text += "\n"
    with open(path, "wb") as handle:
        handle.write(text.encode("utf-8"))


def _apply_patch_file(cwd: str, file: PatchFile, check_only: bool) -> None:
    target_path = file.target_path()
    target = safe_workspace_path(cwd, target_path)
    lines: list[str] = []
    final_newline = True
    if file.old_path != DEV_NULL:
        try:
            lines, final_newline = _read_editable_lines(target)
        except OSError as exc:
            raise PatchError(f"{target_path}: {exc}") from exc
    patched = apply_hunks_to_lines(target_path, lines, file.hunks)
    if check_only:
        return
    try:
        if file.new_path == DEV_NULL:
            os.remove(target)
            return
        os.makedirs(os.path.dirname(target), exist_ok=True)
        _write_editable_lines(target, patched, final_newline)
    except OSError as exc:
        raise PatchError(str(exc)) from exc


def apply_unified_patch(cwd: str, patch: str, check_only: bool = False) -> None:
    """Apply every file of a unified diff under cwd; with check_only nothing is written."""
    for file in parse_unified_patch(patch):
        _apply_patch_file(cwd, file, check_only)


def preview_unified_patch(cwd: str, patch: str) -> list[str]:
    """Check that a patch applies and return one 'path | +added -removed' line per file."""
    stats = []
    for file in parse_unified_patch(patch):
        _apply_patch_file(cwd, file, True)
        added, removed = file.stats()
        stats.append(f"{file.target_path()} | +{added} -{removed}")
    return stats