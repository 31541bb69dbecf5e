"""Evaluate question sets: one agent loop per task, exact-match scoring."""

from __future__ import annotations

import logging
import time
from typing import Iterable, Optional, Union

from mcp_eval import config
from mcp_eval.agent import EVALUATION_PROMPT, ToolLoopExceeded, run_agent_loop
from mcp_eval.common import map_with_progress
from mcp_eval.endpoints import Endpoint, EndpointError, make_endpoint
from mcp_eval.loader import extract_tag, parse_tasks
from mcp_eval.models import EvaluationResult, Task, ToolDescriptor, ToolMetrics
from mcp_eval.report import render_report
from mcp_eval.tools import ToolRegistry, ToolTable

logger = logging.getLogger(__name__)

_UNSET = object()


def score_answer(actual: Optional[str], expected: str) -> int:
    """1 for an exact (case-sensitive, whitespace-trimmed) match, else 0."""
    if actual is None:
        return 0
    return int(actual.strip() == expected.strip())


def _count_calls(metrics: ToolMetrics) -> int:
    return sum(stats.count for stats in metrics.values())


def evaluate_task(
    endpoint: Endpoint,
    task: Task,
    registry: ToolRegistry,
    index: int = 0,
    *,
    max_iterations: Optional[int] = config.DEFAULT_MAX_ITERATIONS,
    system_prompt: str = EVALUATION_PROMPT,
    fail_fast: bool = False,
) -> EvaluationResult:
    """Run one task to completion and score it.

    Endpoint failures and runaway tool loops are recorded on the result
    (``error`` set, score 0) unless *fail_fast* is given.
    """
    logger.info("Task %d: %s...", index + 1, task.question[:80])
    start = time.perf_counter()

    try:
        outcome = run_agent_loop(
            endpoint,
            task.question,
            registry,
            max_iterations=max_iterations,
            system_prompt=system_prompt,
        )
    except (EndpointError, ToolLoopExceeded) as e:
        if fail_fast:
            raise
        metrics = getattr(e, "tool_metrics", {})
        logger.error("Task %d failed: %s", index + 1, e)
        return EvaluationResult(
            question=task.question,
            expected=task.answer,
            actual=None,
            score=0,
            total_duration=time.perf_counter() - start,
            tool_calls=metrics,
            num_tool_calls=_count_calls(metrics),
            error=str(e),
        )

    actual = extract_tag(outcome.response_text, "response")
    result = EvaluationResult(
        question=task.question,
        expected=task.answer,
        actual=actual,
        score=score_answer(actual, task.answer),
        total_duration=time.perf_counter() - start,
        tool_calls=outcome.tool_metrics,
        num_tool_calls=_count_calls(outcome.tool_metrics),
        summary=extract_tag(outcome.response_text, "summary"),
        feedback=extract_tag(outcome.response_text, "feedback"),
    )
    logger.info("Task %d: score=%d  duration=%.2fs  tool_calls=%d",
                index + 1, result.score, result.total_duration, result.num_tool_calls)
    return result


def run_tasks(
    endpoint: Endpoint,
    tasks: list[Task],
    registry: ToolRegistry,
    *,
    threads: int = 1,
    pbar: bool = False,
    **kwargs,
) -> list[EvaluationResult]:
    """Evaluate *tasks*; results come back in task order."""
    def _run(item: tuple[int, Task]) -> EvaluationResult:
        i, task = item
        return evaluate_task(endpoint, task, registry, i, **kwargs)

    return map_with_progress(_run, list(enumerate(tasks)), num_threads=threads,
                             pbar=pbar, desc="Tasks")


def run_evaluation(
    task_text: str,
    tools: Iterable[Union[ToolDescriptor, dict]],
    table: ToolTable,
    *,
    model: Optional[str] = None,
    provider: str = "anthropic",
    endpoint: Optional[Endpoint] = None,
    max_iterations=_UNSET,
    threads: int = 1,
    strict_tools: bool = True,
    fail_fast: bool = False,
    pbar: bool = False,
) -> str:
    """Evaluate a ``<qa_pair>`` question set and return the markdown report.

    *endpoint* overrides *provider* / *model*; when omitted one is built
    with ``make_endpoint``.
    """
    logger.info("Starting evaluation")

    registry = ToolRegistry(tools, table, strict=strict_tools)
    logger.info("Loaded %d tools", len(registry))

    if endpoint is None:
        endpoint = make_endpoint(provider, model)

    if max_iterations is _UNSET:
        max_iterations = config.get_max_iterations()

    tasks = parse_tasks(task_text)
    logger.info("Loaded %d evaluation tasks", len(tasks))

    results = run_tasks(
        endpoint,
        tasks,
        registry,
        threads=threads,
        pbar=pbar,
        max_iterations=max_iterations,
        fail_fast=fail_fast,
    )

    report = render_report(results)
    logger.info("Evaluation complete")
    return report
