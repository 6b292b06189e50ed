"""Workspace file tools: listing, reading, writing and creating files, plus file notes."""

from __future__ import annotations

import json
import os
from collections.abc import Iterator

from klyra.base import (
    Invocation,
    Result,
    Tool,
    ToolError,
    ToolSpec,
    integer_property,
    object_schema,
    optional_int_arg,
    optional_string_arg,
    string_arg,
    string_property,
)
from klyra.workspace import safe_workspace_path

_SKIPPED_DIRS = frozenset(
    {".git", ".agentcli", "node_modules", "dist", "build", ".cache", ".next", "vendor"}
)
_SECRET_SUFFIXES = (".pem", ".key", ".p12", ".pfx")
_NOTES_DIR = ".agentcli"
_NOTES_FILE = "file_notes.json"
_MAX_NOTE_BYTES = 180


def should_skip_dir(name: str) -> bool:
    """Report whether a directory is generated or internal and should not be listed."""
    return name in _SKIPPED_DIRS


def should_skip_file(name: str) -> bool:
    """Report whether a file looks like a secret or OS clutter."""
    if name in (".DS_Store", ".env"):
        return True
    lower = name.lower()
    return lower.startswith(".env.") or lower.endswith(_SECRET_SUFFIXES)


def clean_file_note(description: str) -> str:
    """Collapse whitespace and cap the note at 180 bytes."""
    description = " ".join(description.split())
    encoded = description.encode("utf-8")
    if len(encoded) > _MAX_NOTE_BYTES:
        description = encoded[:_MAX_NOTE_BYTES].decode("utf-8", errors="ignore")
    return description


def normalize_file_note_path(path: str) -> str:
    """Normalise a workspace-relative path to the form used as a note key."""
    cleaned = os.path.normpath(path.strip()).replace(os.sep, "/")
    if cleaned == ".":
        return ""
    return cleaned[2:] if cleaned.startswith("./") else cleaned


def _notes_path(cwd: str) -> str:
    return os.path.join(cwd, _NOTES_DIR, _NOTES_FILE)


def load_file_notes(cwd: str) -> dict[str, str]:
    """Load the stored file notes; a missing or malformed store yields no notes."""
    try:
        with open(_notes_path(cwd), encoding="utf-8") as handle:
            raw = json.load(handle)
    except (OSError, ValueError):
        return {}
    if not isinstance(raw, dict):
        return {}
    notes: dict[str, str] = {}
    for file, entry in raw.items():
        if entry is None:
            continue
        if not isinstance(entry, dict):
            return {}
        description = entry.get("description")
        if description is None:
            continue
        if not isinstance(description, str):
            return {}
        cleaned = clean_file_note(description)
        if cleaned:
            notes[normalize_file_note_path(file)] = cleaned
    return notes


def save_file_note(cwd: str, requested_path: str, description: str) -> None:
    """Store a short description for a file in the workspace note store."""
    path = normalize_file_note_path(requested_path)
    if not path:
        return
    os.makedirs(os.path.join(cwd, _NOTES_DIR), exist_ok=True)
    notes = load_file_notes(cwd)
    notes[path] = clean_file_note(description)
    raw = {file: {"description": note} for file, note in notes.items()}
    data = json.dumps(raw, indent=2, sort_keys=True, ensure_ascii=False)
    with open(_notes_path(cwd), "w", encoding="utf-8", newline="") as handle:
        handle.write(data + "\n")


def _walk_workspace(root: str) -> Iterator[tuple[str, os.DirEntry]]:
    """Yield (relative path, entry) for each non-directory entry outside skipped directories.

    Symbolic links are not followed. A directory that cannot be read raises ToolError.
    """
    pending = [root]
    while pending:
        current = pending.pop()
        try:
            with os.scandir(current) as scanner:
                entries = list(scanner)
        except OSError as exc:
            raise ToolError(str(exc)) from exc
        for entry in entries:
            if entry.is_dir(follow_symlinks=False):
                if not should_skip_dir(entry.name):
                    pending.append(entry.path)
                continue
            yield os.path.relpath(entry.path, root).replace(os.sep, "/"), entry


def _write_new_content(target: str, content: str) -> int:
    data = content.encode("utf-8")
    try:
        os.makedirs(os.path.dirname(target), exist_ok=True)
        with open(target, "wb") as handle:
            handle.write(data)
    except OSError as exc:
        raise ToolError(str(exc)) from exc
    return len(data)


class ListFiles(Tool):
    """Lists workspace files, skipping generated directories and secrets."""

    def spec(self) -> ToolSpec:
        return ToolSpec(
            name="list_files",
            description="List workspace files, skipping common generated directories.",
            parameters=object_schema(
                {"max_files": integer_property("Maximum number of files to return.", 1)}
            ),
        )

    def run(self, inv: Invocation) -> Result:
        max_files = optional_int_arg(inv.args, "max_files", 200)
        notes = load_file_notes(inv.cwd)
        files: list[str] = []
        for rel, entry in _walk_workspace(inv.cwd):
            if should_skip_file(entry.name):
                continue
            note = notes.get(rel)
            files.append(f"{rel}\t# {note}" if note else rel)
        files.sort()
        if len(files) > max_files:
            files = [*files[:max_files], f"... {len(files) - max_files} more files"]
        return Result("\n".join(files))


class FileReader(Tool):
    """Reads a numbered slice of lines from a file."""

    def spec(self) -> ToolSpec:
        return ToolSpec(
            name="read_file",
            description="Read a file slice. Prefer file_outline/read_symbol first; keep slices near 100 lines.",
            parameters=object_schema(
                {
                    "path": string_property("Relative file path."),
                    "start_line": integer_property("1-based start line.", 1),
                    "max_lines": integer_property("Maximum lines to return.", 1),
                },
                "path",
            ),
        )

    def run(self, inv: Invocation) -> Result:
        requested_path = string_arg(inv.args, "path")
        start_line = optional_int_arg(inv.args, "start_line", 1)
        max_lines = optional_int_arg(inv.args, "max_lines", 120)
        target = safe_workspace_path(inv.cwd, requested_path)
        try:
            with open(target, "rb") as handle:
                text = handle.read().decode("utf-8", errors="replace")
        except OSError as exc:
            raise ToolError(str(exc)) from exc
        lines = text.split("\n")
        start = max(start_line, 1) - 1
        if start >= len(lines):
            return Result("")
        end = min(start + max(max_lines, 0), len(lines))
        numbered = (f"{number}: {line}" for number, line in enumerate(lines[start:end], start=start + 1))
        return Result("\n".join(numbered))


class FileWriter(Tool):
    """Legacy full-file writer."""

    def spec(self) -> ToolSpec:
        return ToolSpec(
            name="write_file",
            description=(
                "Disabled legacy full-file writer. Use create_file for new files and focused "
                "edit tools for existing files."
            ),
            parameters=object_schema(
                {
                    "path": string_property("Relative file path."),
                    "content": string_property("Complete file content."),
                },
                "path",
                "content",
            ),
        )

    def run(self, inv: Invocation) -> Result:
        requested_path = string_arg(inv.args, "path")
        content = string_arg(inv.args, "content")
        target = safe_workspace_path(inv.cwd, requested_path)
        size = _write_new_content(target, content)
        return Result(f"wrote {requested_path} ({size} bytes)")


class FileCreator(Tool):
    """Creates a new file, refusing to overwrite, and records an optional note."""

    def spec(self) -> ToolSpec:
        return ToolSpec(
            name="create_file",
            description=(
                "Create a new file only. Use directly when the user asks for a known new file; "
                "for skills, keep files under .klyra/skills/<name>/ or .agentcli/skills/<name>/."
            ),
            parameters=object_schema(
                {
                    "path": string_property("Relative file path."),
                    "content": string_property("Complete new file content."),
                    "description": string_property(
                        "Short internal note for this file, shown beside it in file lists."
                    ),
                },
                "path",
                "content",
            ),
        )

    def run(self, inv: Invocation) -> Result:
        requested_path = string_arg(inv.args, "path")
        content = string_arg(inv.args, "content")
        description = optional_string_arg(inv.args, "description", "")
        target = safe_workspace_path(inv.cwd, requested_path)
        try:
            os.stat(target)
        except FileNotFoundError:
            pass
        except OSError as exc:
            raise ToolError(str(exc)) from exc
        else:
            raise ToolError(
                f"create_file refuses to overwrite existing file {requested_path}; "
                "use replace_symbol, replace_lines, insert_lines, or diff_patch"
            )
        size = _write_new_content(target, content)
        output = f"created {requested_path} ({size} bytes)"
        note = clean_file_note(description)
        if note:
            try:
                save_file_note(inv.cwd, requested_path, note)
            except OSError as exc:
                output += f"; description note failed: {exc}"
            else:
                output += "; description: " + note
        return Result(output)