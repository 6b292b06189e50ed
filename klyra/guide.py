"""The guide tool: returns a compact workflow for a kind of task."""

from __future__ import annotations

from klyra.base import (
    Invocation,
    Result,
    Tool,
    ToolError,
    ToolSpec,
    object_schema,
    optional_string_arg,
    string_arg,
    string_property,
)

_SKILL_GUIDE = "\n".join(
    [
        "Skill creation workflow:",
        "1. Write a single markdown file at .klyra/skills/<short-name>.md or "
        ".klyra/skills/<short-name>/SKILL.md (skills/<short-name>.md and "
        "skills/<short-name>/SKILL.md work too).",
        "2. Put supporting scripts or examples in that same skill directory, and only when they are really needed.",
        "3. Use create_file for new skill files. Do not inspect sessions, .env, or other unrelated "
        "project files unless the user asks for it.",
        "4. Start the file with metadata: name, description, triggers.",
        "5. Keep the body brief and practical; name the exact tools or commands a later agent should run.",
        "6. A new skill takes effect from the next user request, not the current one.",
    ]
)

_WEB_GUIDE = "\n".join(
    [
        "Web and issue workflow:",
        "1. Use web_search just to find candidate pages; then call fetch_url with query/focus to pull relevant chunks.",
        "2. On long pages, give max_tokens and a narrow query instead of loading the whole page.",
        "3. Base the summary on fetched evidence and cite concrete links or identifiers where possible.",
        "4. Reach for shell or network workarounds only when the built-in web tools cannot answer.",
    ]
)

_EDIT_GUIDE = "\n".join(
    [
        "Edit workflow:",
        "1. Gather context with read_symbol/file_outline, then change code with replace_symbol, "
        "replace_lines, insert_lines, create_file, or diff_patch.",
        "2. Skip broad bash/find/session scans unless the file discovery tools fall short.",
        "3. Run the narrowest relevant test first; widen the test run when shared code was touched.",
        "4. Leave unrelated modified files alone.",
    ]
)

_GENERAL_GUIDE = "\n".join(
    [
        "General workflow:",
        "1. Find the smallest slice of context that is enough before acting.",
        "2. Favour project_map, file_outline, read_symbol, search, and focused fetch_url retrieval "
        "over dumping whole files.",
        "3. Reach for write tools only once the target file or path is clear.",
        "4. Check the change with focused tests or commands that fit the task.",
    ]
)

_GUIDES = {"skill": _SKILL_GUIDE, "web": _WEB_GUIDE, "edit": _EDIT_GUIDE}


def built_in_guide(workflow: str) -> str:
    """Return the built-in workflow text; unknown kinds get the general guide."""
    return _GUIDES.get(workflow, _GENERAL_GUIDE)


class Guide(Tool):
    """Returns task-specific workflow guidance."""

    def spec(self) -> ToolSpec:
        return ToolSpec(
            name="guide",
            description=(
                "Get a short workflow tailored to the task before unfamiliar work. Use no more than "
                "once per user request, then continue with a task tool or reply."
            ),
            parameters=object_schema(
                {
                    "query": string_property("Brief description of the task or the guidance wanted."),
                    "workflow": {
                        "type": "string",
                        "description": "Optional kind of workflow when specialised guidance helps.",
                        "enum": ["general", "edit", "web", "skill"],
                    },
                },
                "query",
            ),
        )

    def run(self, inv: Invocation) -> Result:
        query = string_arg(inv.args, "query").strip()
        if not query:
            raise ToolError("query cannot be empty")
        workflow = optional_string_arg(inv.args, "workflow", "general")
        return Result(built_in_guide(workflow.strip().lower()))