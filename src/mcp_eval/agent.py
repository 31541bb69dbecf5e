"""Agent loop: drive one conversation until the model stops calling tools."""

from __future__ import annotations

import logging
import time
from typing import Optional

from mcp_eval.config import DEFAULT_MAX_ITERATIONS
from mcp_eval.endpoints import Endpoint, EndpointError
from mcp_eval.models import AgentOutcome, Message, MessageList, ToolCallStats, ToolMetrics
from mcp_eval.tools import ToolRegistry

logger = logging.getLogger(__name__)

EVALUATION_PROMPT = """\
You are an AI assistant with access to tools.

When given a task, you MUST:
1. Use the available tools to complete the task
2. Provide summary of each step in your approach, wrapped in <summary> tags
3. Provide feedback on the tools provided, wrapped in <feedback> tags
4. Provide your final response, wrapped in <response> tags

Summary Requirements:
- In your <summary> tags, explain the steps you took, which tools you used, and how you arrived at the response

Feedback Requirements:
- In your <feedback> tags, provide constructive feedback on tool names, parameters, and descriptions

Response Requirements:
- Your response should be concise and directly address what was asked
- Always wrap your final response in <response> tags
- If you cannot solve the task return <response>NOT_FOUND</response>
- For numeric responses, provide just the number
- Your response should go last"""


class ToolLoopExceeded(Exception):
    """The model kept requesting tools past the iteration limit."""

    def __init__(self, max_iterations: int, tool_metrics: ToolMetrics):
        super().__init__(f"tool loop exceeded {max_iterations} iterations")
        self.max_iterations = max_iterations
        self.tool_metrics = tool_metrics


def run_agent_loop(
    endpoint: Endpoint,
    question: str,
    registry: ToolRegistry,
    *,
    max_iterations: Optional[int] = DEFAULT_MAX_ITERATIONS,
    system_prompt: str = EVALUATION_PROMPT,
) -> AgentOutcome:
    """Run *question* against *endpoint* until it returns a final answer.

    Only the first tool call of each reply is executed; any others are
    dropped from the transcript and counted in ``discarded_tool_calls``.
    Endpoint errors propagate with the metrics gathered so far attached as
    ``tool_metrics``.  A ``max_iterations`` of ``None`` or ``0`` removes the guard.
    """
    if max_iterations is not None and max_iterations <= 0:
        max_iterations = None

    messages: MessageList = [{"role": "user", "content": question}]
    tool_metrics: ToolMetrics = {}
    iterations = 0
    discarded = 0

    while True:
        try:
            response = endpoint.create(messages, registry, system_prompt)
        except EndpointError as e:
            e.tool_metrics = tool_metrics
            raise

        if not response.wants_tool:
            messages.append({"role": "assistant", "content": response.text, "tool_calls": []})
            return AgentOutcome(
                response_text=response.text,
                tool_metrics=tool_metrics,
                iterations=iterations,
                discarded_tool_calls=discarded,
            )

        if max_iterations is not None and iterations >= max_iterations:
            raise ToolLoopExceeded(max_iterations, tool_metrics)

        tool_use, *extra = response.tool_calls
        if extra:
            discarded += len(extra)
            logger.warning(
                "Model requested %d tool calls in one turn; running %s, discarding %s",
                len(response.tool_calls), tool_use.name,
                ", ".join(call.name for call in extra),
            )

        assistant: Message = {"role": "assistant", "content": response.text, "tool_calls": [tool_use]}
        messages.append(assistant)

        start = time.perf_counter()
        output = registry.invoke(tool_use.name, tool_use.input)
        duration = time.perf_counter() - start

        tool_metrics.setdefault(tool_use.name, ToolCallStats()).record(duration)
        iterations += 1
        logger.debug("Tool %s took %.2fs (%d chars)", tool_use.name, duration, len(output))

        messages.append({
            "role": "tool",
            "tool_call_id": tool_use.id,
            "name": tool_use.name,
            "content": output,
        })
