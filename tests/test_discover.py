import pytest

from klyra.base import Invocation, ToolError
from klyra.discover import Capability, DiscoverTools, requested_capabilities


def test_unlocks_explicit_capabilities():
    result = DiscoverTools().run(Invocation(args={"capabilities": ["web", "workspace", "web"]}))
    assert "web, workspace" in result.output


def test_rejects_unknown_capability():
    with pytest.raises(ToolError, match="unknown capability"):
        DiscoverTools().run(Invocation(args={"capabilities": ["magic"]}))


def test_requested_capabilities_normalises_and_sorts():
    assert requested_capabilities({"capabilities": [" WEB ", "git", "web"]}) == ["git", "web"]


def test_requested_capabilities_accepts_all_known():
    values = [capability.value for capability in Capability]
    assert requested_capabilities({"capabilities": values}) == sorted(values)


@pytest.mark.parametrize(
    "args, message",
    [
        ({}, "missing argument"),
        ({"capabilities": "web"}, "must be an array"),
        ({"capabilities": []}, "cannot be empty"),
        ({"capabilities": ["web", 3]}, "must contain strings"),
    ],
)
def test_requested_capabilities_errors(args, message):
    with pytest.raises(ToolError, match=message):
        requested_capabilities(args)


def test_spec_lists_all_capabilities():
    spec = DiscoverTools().spec()
    assert spec.name == "discover_tools"
    enum = spec.parameters["properties"]["capabilities"]["items"]["enum"]
    assert set(enum) == {capability.value for capability in Capability}
    assert spec.parameters["required"] == ["capabilities"]