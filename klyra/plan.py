"""The update_plan tool: records a short structured execution plan."""

from __future__ import annotations

from klyra.base import Invocation, Result, Tool, ToolError, ToolSpec, object_schema, string_property

MAX_PLAN_STEPS = 8

_STATUSES = ("pending", "in_progress", "completed")


class UpdatePlan(Tool):
    """Validates and renders an ordered list of plan steps."""

    def spec(self) -> ToolSpec:
        return ToolSpec(
            name="update_plan",
            description=(
                "Record or update a short execution plan for a multi-step task. Use only when "
                "planning adds clarity, and update only when step status changes."
            ),
            parameters=object_schema(
                {
                    "explanation": string_property("Optional short reason for this plan update."),
                    "steps": {
                        "type": "array",
                        "description": "Ordered plan steps. Keep the list short and concrete.",
                        "minItems": 1,
                        "maxItems": MAX_PLAN_STEPS,
                        "items": object_schema(
                            {
                                "step": string_property("Concrete action or milestone."),
                                "status": {
                                    "type": "string",
                                    "description": "Current step status.",
                                    "enum": list(_STATUSES),
                                },
                            },
                            "step",
                            "status",
                        ),
                    },
                },
                "steps",
            ),
        )

    def run(self, inv: Invocation) -> Result:
        raw_steps = inv.args.get("steps")
        if not isinstance(raw_steps, list) or not raw_steps:
            raise ToolError("steps must be a non-empty array")
        if len(raw_steps) > MAX_PLAN_STEPS:
            raise ToolError(f"plan has {len(raw_steps)} steps; keep at most {MAX_PLAN_STEPS}")

        explanation = inv.args.get("explanation")
        if isinstance(explanation, str) and explanation.strip():
            lines = ["Plan updated: " + explanation.strip()]
        else:
            lines = ["Plan updated."]

        in_progress = 0
        for number, step in enumerate(raw_steps, start=1):
            if not isinstance(step, dict):
                raise ToolError(f"step {number} must be an object")
            text = step.get("step")
            text = text.strip() if isinstance(text, str) else ""
            if not text:
                raise ToolError(f"step {number} text cannot be empty")
            status = step.get("status")
            status = status if isinstance(status, str) else ""
            if status not in _STATUSES:
                raise ToolError(f'step {number} has invalid status "{status}"')
            if status == "in_progress":
                in_progress += 1
            lines.append(f"{number}. [{status}] {text}")
        if in_progress > 1:
            raise ToolError("plan must have at most one in_progress step")
        return Result("\n".join(lines))