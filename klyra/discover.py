"""The discover_tools tool: unlocks groups of tools on request."""

from __future__ import annotations

from enum import Enum
from typing import Any

from klyra.base import Invocation, Result, Tool, ToolError, ToolSpec, object_schema


class Capability(str, Enum):
    """Groups of tools that can be unlocked."""

    WORKSPACE = "workspace"
    EDIT = "edit"
    GIT = "git"
    SHELL = "shell"
    WEB = "web"
    PLAN = "plan"
    EXTERNAL = "external"


_SUPPORTED = {capability.value for capability in Capability}


class DiscoverTools(Tool):
    """Unlocks compact tool groups for the current task."""

    def spec(self) -> ToolSpec:
        return ToolSpec(
            name="discover_tools",
            description=(
                "Unlock compact tool groups needed for the current task. Use this when the "
                "required tool is not visible; request only the smallest useful groups."
            ),
            parameters=object_schema(
                {
                    "capabilities": {
                        "type": "array",
                        "description": "Tool groups to unlock for this run. edit also unlocks workspace reads.",
                        "minItems": 1,
                        "uniqueItems": True,
                        "items": {
                            "type": "string",
                            "enum": [capability.value for capability in Capability],
                        },
                    },
                },
                "capabilities",
            ),
        )

    def run(self, inv: Invocation) -> Result:
        capabilities = requested_capabilities(inv.args)
        return Result(
            "Unlocked tool groups: "
            + ", ".join(capabilities)
            + ". Continue with the smallest relevant task tool."
        )


def requested_capabilities(args: dict[str, Any]) -> list[str]:
    """Validate the capabilities argument and return it normalised, unique and sorted."""
    if "capabilities" not in args:
        raise ToolError('missing argument "capabilities"')
    raw = args["capabilities"]
    if not isinstance(raw, (list, tuple)):
        raise ToolError('argument "capabilities" must be an array')
    if not all(isinstance(value, str) for value in raw):
        raise ToolError("capabilities must contain strings")
    if not raw:
        raise ToolError("capabilities cannot be empty")
    found: set[str] = set()
    for value in raw:
        capability = value.strip().lower()
        if capability not in _SUPPORTED:
            raise ToolError(f'unknown capability "{capability}"')
        found.add(capability)
    return sorted(found)