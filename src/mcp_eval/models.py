"""Data models shared across the eval harness."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

Message = dict[str, Any]
MessageList = list[Message]


@dataclass(frozen=True)
class Task:
    """One question / expected-answer pair."""

    question: str
    answer: str


@dataclass(frozen=True)
class ToolDescriptor:
    """A capability offered to the model."""

    name: str
    description: str = ""
    input_schema: dict[str, Any] = field(default_factory=lambda: {"type": "object"})

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ToolDescriptor":
        """Build from an MCP-style (``inputSchema``) or Anthropic-style dict."""
        schema = data.get("inputSchema", data.get("input_schema"))
        return cls(
            name=data["name"],
            description=data.get("description", ""),
            input_schema=dict(schema) if schema else {"type": "object"},
        )


@dataclass
class ToolCall:
    """A tool invocation requested by the model."""

    id: str
    name: str
    input: dict[str, Any] = field(default_factory=dict)


@dataclass
class EndpointResponse:
    """One reply from an inference endpoint, normalised across providers."""

    text: str = ""
    tool_calls: list[ToolCall] = field(default_factory=list)
    stop_reason: str = ""
    usage: dict[str, Any] = field(default_factory=dict)

    @property
    def wants_tool(self) -> bool:
        return bool(self.tool_calls)


@dataclass
class ToolCallStats:
    count: int = 0
    durations: list[float] = field(default_factory=list)

    def record(self, duration: float) -> None:
        self.count += 1
        self.durations.append(duration)


ToolMetrics = dict[str, ToolCallStats]


@dataclass
class AgentOutcome:
    """What the agent loop hands back once the model stops calling tools."""

    response_text: str
    tool_metrics: ToolMetrics = field(default_factory=dict)
    iterations: int = 0
    discarded_tool_calls: int = 0


@dataclass
class EvaluationResult:
    """Scored outcome of a single task."""

    question: str
    expected: str
    actual: Optional[str]
    score: int
    total_duration: float
    tool_calls: ToolMetrics = field(default_factory=dict)
    num_tool_calls: int = 0
    summary: Optional[str] = None
    feedback: Optional[str] = None
    error: Optional[str] = None

    @property
    def passed(self) -> bool:
        return self.score == 1


@dataclass
class RunSummary:
    """Aggregate metrics across every task in a run."""

    total: int
    correct: int
    accuracy: float
    avg_duration: float
    avg_tool_calls: float
    total_tool_calls: int
    errors: int = 0
    tool_stats: dict[str, dict[str, float]] = field(default_factory=dict)
