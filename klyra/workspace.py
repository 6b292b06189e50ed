"""Resolution of user-supplied paths inside a workspace root."""

from __future__ import annotations

import os

from klyra.base import ToolError


def safe_workspace_path(cwd: str, requested: str) -> str:
    """Return the absolute path for requested under cwd, refusing escapes."""
    if not requested.strip():
        raise ToolError("path cannot be empty")
    if os.path.isabs(requested):
        raise ToolError(f"absolute paths are not allowed: {requested}")

    root = os.path.abspath(cwd)
    target = os.path.abspath(os.path.join(root, os.path.normpath(requested)))
    try:
        rel = os.path.relpath(target, root)
    except ValueError as exc:
        raise ToolError(f"path escapes workspace: {requested}") from exc
    if rel == ".." or rel.startswith(".." + os.sep):
        raise ToolError(f"path escapes workspace: {requested}")
    return target