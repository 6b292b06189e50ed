import pytest

from klyra.base import Invocation, ToolError
from klyra.guide import Guide, built_in_guide


def test_returns_skill_creation_workflow(tmp_path):
    result = Guide().run(
        Invocation(
            cwd=str(tmp_path),
            args={"query": "напиши сам себе скилл для github issue summary", "workflow": "skill"},
        )
    )
    assert ".klyra/skills" in result.output
    assert "Use create_file" in result.output
    assert "Do not inspect sessions, .env" in result.output


def test_default_workflow_is_general(tmp_path):
    result = Guide().run(Invocation(cwd=str(tmp_path), args={"query": "fix tests"}))
    assert result.output.startswith("General workflow:")


def test_workflow_is_normalised(tmp_path):
    result = Guide().run(Invocation(cwd=str(tmp_path), args={"query": "x", "workflow": "  EDIT "}))
    assert result.output.startswith("Edit workflow:")


def test_empty_query_is_rejected(tmp_path):
    with pytest.raises(ToolError, match="query cannot be empty"):
        Guide().run(Invocation(cwd=str(tmp_path), args={"query": "   "}))


def test_missing_query_is_rejected(tmp_path):
    with pytest.raises(ToolError):
        Guide().run(Invocation(cwd=str(tmp_path), args={}))


def test_built_in_guide_kinds():
    assert built_in_guide("web").startswith("Web and issue workflow:")
    assert "fetch_url" in built_in_guide("web")
    assert built_in_guide("unknown") == built_in_guide("general")
    assert built_in_guide("skill") != built_in_guide("edit")