"""The search tool: workspace text search through ripgrep."""

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
    optional_string_arg,
    string_arg,
    string_property,
)

_EXCLUDED_GLOBS = (
    "!.git",
    "!.agentcli",
    "!node_modules",
    "!dist",
    "!build",
    "!.cache",
    "!.next",
    "!vendor",
    "!.env",
    "!.env.*",
    "!*.pem",
    "!*.key",
    "!*.p12",
    "!*.pfx",
)


def default_search_args(pattern: str, user_glob: str) -> list[str]:
    """Build the ripgrep arguments that skip secrets and generated directories."""
    args = ["--line-number", "--hidden"]
    for glob in _EXCLUDED_GLOBS:
        args += ["--glob", glob]
    if user_glob:
        args += ["--glob", user_glob]
    args.append(pattern)
    return args


class Search(Tool):
    """Searches workspace text with ripgrep."""

    def spec(self) -> ToolSpec:
        return ToolSpec(
            name="search",
            description=(
                "Search workspace text with ripgrep; skips secrets, sessions, generated, "
                "and dependency dirs."
            ),
            parameters=object_schema(
                {
                    "pattern": string_property("Search pattern."),
                    "glob": string_property("Optional file glob."),
                    "max_lines": integer_property("Maximum output lines.", 1),
                },
                "pattern",
            ),
        )

    def run(self, inv: Invocation) -> Result:
        pattern = string_arg(inv.args, "pattern")
        glob = optional_string_arg(inv.args, "glob", "")
        max_lines = optional_int_arg(inv.args, "max_lines", 120)

        try:
            proc = subprocess.run(
                ["rg", *default_search_args(pattern, glob)],
                cwd=inv.cwd or None,
                capture_output=True,
                text=True,
                errors="replace",
                check=False,
            )
        except OSError as exc:
            raise ToolError(f"search failed: {exc}") from exc
        output = proc.stdout or ""
        if proc.stderr:
            output += "\n" + proc.stderr
        if proc.returncode == 1:
            return Result("no matches")
        if proc.returncode != 0:
            raise ToolError(
                f"search failed: exit status {proc.returncode}",
                output=compress_output(output, max_lines),
            )
        return Result(compress_output(output, max_lines))