"""Tools that check and apply unified diffs, with git apply or a direct fallback."""

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
    string_arg,
    string_property,
)
from klyra.git import is_git_repository
from klyra.unified_patch import apply_unified_patch, preview_unified_patch


def run_git_apply(cwd: str, patch: str, max_lines: int, *args: str) -> Result:
    """Feed patch to 'git apply' with args; raise ToolError carrying the output on failure."""
    try:
        proc = subprocess.run(
            ["git", "apply", *args],
            cwd=cwd or None,
            input=patch,
            capture_output=True,
            text=True,
            errors="replace",
            check=False,
        )
    except OSError as exc:
        raise ToolError(str(exc)) from exc
    output = proc.stdout
    if proc.stderr:
        output += "\n" + proc.stderr
    compressed = compress_output(output, max_lines)
    if proc.returncode != 0:
        raise ToolError(f"exit status {proc.returncode}", output=compressed)
    return Result(compressed)


def _failure_output(prefix: str, git_error: ToolError, fallback_error: Exception) -> str:
    lines = [prefix]
    if git_error.output.strip():
        lines += ["git apply output:", git_error.output.strip()]
    lines.append(f"git apply error: {git_error}")
    lines.append(f"direct patch fallback error: {fallback_error}")
    return "\n".join(lines)


class DiffPatcher(Tool):
    """Applies a unified diff to the workspace."""

    def spec(self) -> ToolSpec:
        return ToolSpec(
            name="diff_patch",
            description=(
                "Apply a unified diff in the workspace. Uses git apply in git repos and a "
                "direct patch fallback elsewhere."
            ),
            parameters=object_schema({"patch": string_property("Unified diff patch.")}, "patch"),
        )

    def run(self, inv: Invocation) -> Result:
        patch = string_arg(inv.args, "patch")
        if is_git_repository(inv.cwd):
            try:
                run_git_apply(inv.cwd, patch, 80, "--whitespace=nowarn", "-")
            except ToolError as git_error:
                try:
                    apply_unified_patch(inv.cwd, patch, False)
                except ToolError as fallback_error:
                    raise ToolError(
                        f"patch failed: git apply: {git_error}; direct patch fallback: {fallback_error}",
                        output=_failure_output("patch failed", git_error, fallback_error),
                    ) from fallback_error
                return Result("patch applied without git apply")
            return Result("patch applied")
        try:
            apply_unified_patch(inv.cwd, patch, False)
        except ToolError as exc:
            raise ToolError(f"patch failed: {exc}") from exc
        return Result("patch applied without git")


class DiffPreview(Tool):
    """Validates a unified diff and reports a diffstat without applying it."""

    def spec(self) -> ToolSpec:
        return ToolSpec(
            name="diff_preview",
            description="Validate a unified diff and return compact diffstat; do not apply.",
            parameters=object_schema(
                {
                    "patch": string_property("Unified diff patch."),
                    "max_lines": integer_property("Maximum compressed output lines.", 1),
                },
                "patch",
            ),
        )

    def run(self, inv: Invocation) -> Result:
        patch = string_arg(inv.args, "patch")
        max_lines = optional_int_arg(inv.args, "max_lines", 120)

        if is_git_repository(inv.cwd):
            try:
                run_git_apply(inv.cwd, patch, max_lines, "--check", "--whitespace=nowarn", "-")
            except ToolError as git_error:
                try:
                    files = preview_unified_patch(inv.cwd, patch)
                except ToolError as fallback_error:
                    raise ToolError(
                        f"patch check failed: git apply: {git_error}; "
                        f"direct patch fallback: {fallback_error}",
                        output=_failure_output("patch check failed", git_error, fallback_error),
                    ) from fallback_error
                output = "patch check passed without git apply"
                if files:
                    output += "\n" + compress_output("\n".join(files), max_lines)
                return Result(output)
            try:
                stat = run_git_apply(inv.cwd, patch, max_lines, "--stat", "-")
            except ToolError as exc:
                raise ToolError(f"patch stat failed: {exc}", output=exc.output) from exc
            output = "patch check passed"
            if stat.output:
                output += "\n" + stat.output
            return Result(output)

        try:
            files = preview_unified_patch(inv.cwd, patch)
        except ToolError as exc:
            raise ToolError(f"patch check failed: {exc}") from exc
        output = "patch check passed"
        if files:
            output += "\n" + compress_output("\n".join(files), max_lines)
        return Result(output)