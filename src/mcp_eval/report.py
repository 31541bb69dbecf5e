"""Aggregate evaluation results and render them as markdown or a rich table."""

from __future__ import annotations

from collections import defaultdict
from typing import Optional

import numpy as np
from rich.console import Console
from rich.table import Table

from mcp_eval.models import EvaluationResult, RunSummary


def _mean(values: list[float]) -> float:
    return float(np.mean(values)) if values else 0.0


def summarize(results: list[EvaluationResult]) -> RunSummary:
    """Compute run-level metrics.  An empty run reports 0% accuracy."""
    total = len(results)
    correct = sum(r.score for r in results)

    durations: dict[str, list[float]] = defaultdict(list)
    for r in results:
        for name, stats in r.tool_calls.items():
            durations[name].extend(stats.durations)

    tool_stats = {
        name: {
            "count": len(values),
            "mean_duration": _mean(values),
            "total_duration": float(np.sum(values)) if values else 0.0,
        }
        for name, values in sorted(durations.items())
    }

    return RunSummary(
        total=total,
        correct=correct,
        accuracy=(correct / total * 100) if total else 0.0,
        avg_duration=_mean([r.total_duration for r in results]),
        avg_tool_calls=_mean([r.num_tool_calls for r in results]),
        total_tool_calls=sum(r.num_tool_calls for r in results),
        errors=sum(1 for r in results if r.error),
        tool_stats=tool_stats,
    )


def render_report(results: list[EvaluationResult]) -> str:
    """Render the markdown evaluation report."""
    s = summarize(results)

    lines = [
        "# Evaluation Report",
        "",
        "## Summary",
        "",
        f"- **Accuracy**: {s.correct}/{s.total} ({s.accuracy:.1f}%)",
        f"- **Average Task Duration**: {s.avg_duration:.2f}s",
        f"- **Average Tool Calls per Task**: {s.avg_tool_calls:.2f}",
        f"- **Total Tool Calls**: {s.total_tool_calls}",
        f"- **Failed Tasks**: {s.errors}",
        "",
    ]

    if s.tool_stats:
        lines += [
            "## Tool Usage",
            "",
            "| Tool | Calls | Mean Duration | Total Duration |",
            "|---|---|---|---|",
        ]
        for name, st in s.tool_stats.items():
            lines.append(
                f"| `{name}` | {st['count']} | {st['mean_duration']:.2f}s | {st['total_duration']:.2f}s |"
            )
        lines.append("")

    lines += ["---", ""]

    for i, r in enumerate(results, 1):
        lines += [
            f"### Task {i}",
            "",
            f"**Question**: {r.question}",
            f"**Expected**: `{r.expected}`",
            f"**Actual**: `{r.actual or 'N/A'}`",
            f"**Correct**: {'✅' if r.score else '❌'}",
            f"**Duration**: {r.total_duration:.2f}s",
            f"**Tool Calls**: {r.num_tool_calls}",
        ]
        if r.error:
            lines.append(f"**Error**: {r.error}")
        lines += [
            "",
            "**Summary**",
            r.summary or "N/A",
            "",
            "**Feedback**",
            r.feedback or "N/A",
            "",
            "---",
            "",
        ]

    return "\n".join(lines)


def print_summary(summary: RunSummary, console: Optional[Console] = None) -> None:
    """Print the run summary and per-tool usage as rich tables."""
    console = console or Console()

    table = Table(title="Evaluation Summary", show_header=False)
    table.add_column("Metric", style="bold")
    table.add_column("Value")
    style = "green" if summary.total and summary.correct == summary.total else "yellow"
    table.add_row("Accuracy", f"[{style}]{summary.correct}/{summary.total} ({summary.accuracy:.1f}%)[/{style}]")
    table.add_row("Avg duration", f"{summary.avg_duration:.2f}s")
    table.add_row("Avg tool calls", f"{summary.avg_tool_calls:.2f}")
    table.add_row("Total tool calls", str(summary.total_tool_calls))
    if summary.errors:
        table.add_row("Failed tasks", f"[red]{summary.errors}[/red]")
    console.print(table)

    if summary.tool_stats:
        tools = Table(title="Tool Usage")
        tools.add_column("Tool", style="cyan")
        tools.add_column("Calls", justify="right")
        tools.add_column("Mean", justify="right")
        tools.add_column("Total", justify="right")
        for name, st in summary.tool_stats.items():
            tools.add_row(name, str(st["count"]), f"{st['mean_duration']:.2f}s", f"{st['total_duration']:.2f}s")
        console.print(tools)
