"""Git status and diff tools and the helpers that run git."""

from __future__ import annotations

import subprocess

from klyra.base import (
    Invocation,
    Result,
    Tool,
    ToolError,
    ToolSpec,
    compress_output,
    integer_property,
    object_schema,
    optional_int_arg,
)


def run_git_command(cwd: str, max_lines: int, *args: str) -> Result:
    """Run git with args in cwd; raise ToolError carrying the output on failure."""
    label = "git [" + " ".join(args) + "]"
    try:
        proc = subprocess.run(
            ["git", *args],
            cwd=cwd or None,
            capture_output=True,
            text=True,
            errors="replace",
            check=False,
        )
    except OSError as exc:
        raise ToolError(f"{label} failed: {exc}") from exc
    output = proc.stdout
    if proc.stderr:
        output += "\n" + proc.stderr
    compressed = compress_output(output, max_lines)
    if proc.returncode != 0:
        raise ToolError(f"{label} failed: exit status {proc.returncode}", output=compressed)
    return Result(compressed)


def is_git_repository(cwd: str) -> bool:
    """Report whether cwd lies inside a git work tree."""
    try:
        result = run_git_command(cwd, 20, "rev-parse", "--is-inside-work-tree")
    except ToolError:
        return False
    return result.output.strip() == "true"


def is_not_git_repository(output: str) -> bool:
    normalized = output.lower()
    return "not a git repository" in normalized or "not a git repo" in normalized


class GitStatus(Tool):
    """Compact git status of the workspace."""

    def spec(self) -> ToolSpec:
        return ToolSpec(
            name="git_status",
            description="Return compact git status for the workspace.",
            parameters=object_schema({}),
        )

    def run(self, inv: Invocation) -> Result:
        try:
            result = run_git_command(inv.cwd, 120, "status", "--short")
        except ToolError as exc:
            if is_not_git_repository(exc.output):
                return Result("not a git repository")
            raise
        if not result.output.strip():
            return Result("clean working tree")
        return result


class GitDiff(Tool):
    """Compressed diff of tracked changes."""

    def spec(self) -> ToolSpec:
        return ToolSpec(
            name="git_diff",
            description="Return compressed git diff for tracked workspace changes.",
            parameters=object_schema(
                {"max_lines": integer_property("Maximum compressed output lines.", 1)}
            ),
        )

    def run(self, inv: Invocation) -> Result:
        max_lines = optional_int_arg(inv.args, "max_lines", 240)
        try:
            result = run_git_command(inv.cwd, max_lines, "diff", "--", ".")
        except ToolError as exc:
            if is_not_git_repository(exc.output):
                return Result("not a git repository; no tracked diff")
            raise
        if result.output == "":
            return Result("no tracked diff")
        return result