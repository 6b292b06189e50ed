# klyra

Tools a coding agent uses to work inside a project directory. Each tool
is a `klyra.base.Tool`: `spec()` returns a `ToolSpec` (name, description
and a JSON-schema `parameters` dict) and `run(inv)` takes an
`Invocation` and returns a `Result` whose `output` is plain text.

A tool that cannot do its work raises `klyra.base.ToolError`. The error's
`output` attribute holds any text produced before the failure (for
example the compressed output of a failed `git` command).

## Tools

| Module | Tool | Name in its spec | What it does |
| --- | --- | --- | --- |
| `klyra.files` | `ListFiles` | `list_files` | Lists workspace files, sorted, skipping `.git`, `.agentcli`, `node_modules`, `dist`, `build`, `.cache`, `.next`, `vendor`, `.env*` and key files; capped by `max_files` (default 200). |
| `klyra.files` | `FileReader` | `read_file` | Returns numbered lines from `start_line` (default 1), at most `max_lines` (default 120). |
| `klyra.files` | `FileCreator` | `create_file` | Creates a new file and refuses to overwrite an existing one; an optional `description` is stored and shown beside the file by `ListFiles`. |
| `klyra.files` | `FileWriter` | `write_file` | Writes a whole file, creating parent directories. |
| `klyra.patch` | `DiffPreview` | `diff_preview` | Checks a unified diff without applying it and reports a diffstat. |
| `klyra.patch` | `DiffPatcher` | `diff_patch` | Applies a unified diff. |
| `klyra.git` | `GitStatus` | `git_status` | `git status --short`; reports `clean working tree` or `not a git repository` instead of failing. |
| `klyra.git` | `GitDiff` | `git_diff` | `git diff -- .`, capped at `max_lines` (default 240); reports `no tracked diff` when there is none or outside a repository. |
| `klyra.project` | `ProjectMap` | `project_map` | A token-budgeted map: file and byte counts, extension counts, ranked important files and symbols of Python files. |
| `klyra.search` | `Search` | `search` | Runs `rg` with secret and generated paths excluded; reports `no matches` when nothing is found. |
| `klyra.plan` | `UpdatePlan` | `update_plan` | Validates and renders up to 8 plan steps with at most one `in_progress`. |
| `klyra.guide` | `Guide` | `guide` | Returns a built-in workflow for `general`, `edit`, `web` or `skill` work. |
| `klyra.discover` | `DiscoverTools` | `discover_tools` | Validates requested `Capability` groups and returns them normalised, deduplicated and sorted. |

Every path a file or patch tool touches goes through
`klyra.workspace.safe_workspace_path`, which rejects empty and absolute
paths and anything that escapes the workspace root.

## Running a tool

```python
from klyra.base import Invocation
from klyra.files import FileReader

out = FileReader().run(
    Invocation(cwd="/path/to/project", args={"path": "README.md", "start_line": 1, "max_lines": 20})
)
print(out.output)
```

## Patching

Inside a git repository `DiffPatcher` and `DiffPreview` use `git apply`;
if git rejects the patch, or outside a repository, they fall back to
`klyra.unified_patch`, which parses the diff itself and checks every
context and removed line before writing. The fallback creates files from
`--- /dev/null`, deletes them on `+++ /dev/null` and keeps the file's
trailing-newline state.

```python
from klyra.base import Invocation
from klyra.patch import DiffPatcher

patch = "--- a/hello.txt\n+++ b/hello.txt\n@@ -1 +1 @@\n-hello\n+hello agent\n"
print(DiffPatcher().run(Invocation(cwd="/path/to/project", args={"patch": patch})).output)
```

The patch engine can also be used on its own: `parse_unified_patch`
returns `PatchFile` objects with `PatchHunk`s, `preview_unified_patch`
returns `path | +added -removed` lines, and `apply_unified_patch`
applies (or, with `check_only=True`, only checks) a patch. Failures
raise `PatchError`, a subclass of `ToolError`.

## Helpers

`klyra.base` also provides the schema builders `object_schema`,
`string_property` and `integer_property`, the argument readers
`string_arg`, `optional_string_arg` and `optional_int_arg`, and
`compress_output`, which trims trailing whitespace and caps text at a
number of lines with a `... N more lines` marker.

## What this package does not do

- There is no registry that chooses which tool schemas to show a model
  or that enforces modes and sandbox profiles; the host decides which
  tools to offer and calls `run` itself.
- There are no web search or page-fetching tools, and no bridge to
  external tool servers, although `Guide` and `DiscoverTools` mention
  such groups by name.
- `Guide` returns only its built-in workflows; it does not read skill
  files from the project.
- `ProjectMap` extracts symbols from Python files only; other files are
  counted and ranked but not parsed.
- There is no command-line program.

## Requirements

Python 3.10 or later, with no third-party dependencies. `git` is used by
the git and patch tools and `rg` by `Search` when they are on `PATH`.