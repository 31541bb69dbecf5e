"""mcp-eval - evaluate MCP servers with a tool-using model."""

from mcp_eval.evaluator import evaluate_task, run_evaluation, run_tasks, score_answer
from mcp_eval.loader import extract_tag, load_tasks, parse_tasks
from mcp_eval.models import EvaluationResult, Task, ToolDescriptor
from mcp_eval.tools import ToolRegistry, resolve_and_invoke, to_anthropic_format

__all__ = [
    "EvaluationResult",
    "Task",
    "ToolDescriptor",
    "ToolRegistry",
    "evaluate_task",
    "extract_tag",
    "load_tasks",
    "parse_tasks",
    "resolve_and_invoke",
    "run_evaluation",
    "run_tasks",
    "score_answer",
    "to_anthropic_format",
]
