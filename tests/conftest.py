"""Shared fixtures: a scripted inference endpoint that never touches the network."""

import copy

import pytest

from mcp_eval.endpoints import Endpoint
from mcp_eval.models import EndpointResponse, ToolCall


class ScriptedEndpoint(Endpoint):
    """Replays a fixed list of replies (or raises queued exceptions)."""

    model = "scripted"

    def __init__(self, replies):
        self.replies = list(replies)
        self.requests = []

    def create(self, messages, registry, system):
        self.requests.append({
            "messages": copy.deepcopy(messages),
            "tools": registry.anthropic_tools(),
            "system": system,
        })
        if not self.replies:
            raise AssertionError("ScriptedEndpoint ran out of replies")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


def text_reply(text):
    return EndpointResponse(text=text, stop_reason="end_turn")


def tool_reply(*calls, text=""):
    return EndpointResponse(
        text=text,
        tool_calls=[ToolCall(id=f"call_{i}", name=name, input=args) for i, (name, args) in enumerate(calls)],
        stop_reason="tool_use",
    )


@pytest.fixture
def scripted():
    return ScriptedEndpoint


@pytest.fixture
def text():
    return text_reply


@pytest.fixture
def tool():
    return tool_reply


@pytest.fixture
def add_tool():
    """An ``ns_add`` descriptor plus a table entry for ``add``."""
    descriptors = [{
        "name": "ns_add",
        "description": "Add two integers.",
        "inputSchema": {
            "type": "object",
            "properties": {"a": {"type": "integer"}, "b": {"type": "integer"}},
            "required": ["a", "b"],
        },
    }]
    table = {"add": lambda args: args["a"] + args["b"]}
    return descriptors, table
