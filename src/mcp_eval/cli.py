"""CLI entry point for the eval harness."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import click
from rich.console import Console

console = Console()


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@click.group()
@click.version_option(package_name="mcp-eval")
def cli():
    """mcp-eval - Score an agent's tool use against a fixed question set."""
    pass


# ---------------------------------------------------------------------------
# mcp-eval run
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("tasks_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--tools-module", "-t", required=True,
              help="Python file or module defining TOOLS and NAMESPACE.")
@click.option("--provider", type=click.Choice(["anthropic", "openai"]), default="anthropic",
              show_default=True, help="Inference endpoint.")
@click.option("--model", "-m", default=None, help="Model name (default: MCP_EVAL_MODEL or provider default).")
@click.option("--max-iterations", type=int, default=None,
              help="Tool calls allowed per task (0 = unbounded).")
@click.option("--max-tokens", type=int, default=4096, show_default=True)
@click.option("--timeout", type=float, default=600.0, show_default=True,
              help="Per-request endpoint timeout in seconds.")
@click.option("--threads", type=int, default=1, show_default=True,
              help="Tasks evaluated in parallel.")
@click.option("--output", "-o", type=click.Path(dir_okay=False), default=None,
              help="Write the markdown report here instead of stdout.")
@click.option("--fail-fast", is_flag=True, help="Abort the run on the first endpoint failure.")
@click.option("--no-progress", is_flag=True, help="Hide the progress bar.")
@click.option("--verbose", "-v", is_flag=True, help="Debug logging.")
def run(
    tasks_file: str,
    tools_module: str,
    provider: str,
    model: Optional[str],
    max_iterations: Optional[int],
    max_tokens: int,
    timeout: float,
    threads: int,
    output: Optional[str],
    fail_fast: bool,
    no_progress: bool,
    verbose: bool,
):
    """Evaluate TASKS_FILE (a <qa_pair> question set) against a tool module."""
    _setup_logging(verbose)

    from mcp_eval import config
    from mcp_eval.endpoints import EndpointError, make_endpoint
    from mcp_eval.evaluator import run_tasks
    from mcp_eval.loader import load_tasks
    from mcp_eval.report import print_summary, render_report, summarize
    from mcp_eval.tools import ToolRegistrationError, ToolRegistry, load_tool_module

    try:
        descriptors, table = load_tool_module(tools_module)
        registry = ToolRegistry(descriptors, table)
        endpoint = make_endpoint(provider, model, max_tokens=max_tokens, timeout=timeout)
        limit = config.get_max_iterations() if max_iterations is None else max_iterations
        task_list = load_tasks(tasks_file)
        results = run_tasks(
            endpoint,
            task_list,
            registry,
            threads=threads,
            pbar=not no_progress,
            max_iterations=limit,
            fail_fast=fail_fast,
        )
    except (ToolRegistrationError, config.ConfigError, EndpointError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise SystemExit(1)

    report = render_report(results)
    if output:
        Path(output).write_text(report, encoding="utf-8")
        console.print(f"Report written to {output}", style="dim")
    else:
        click.echo(report)

    print_summary(summarize(results), console)


# ---------------------------------------------------------------------------
# mcp-eval tasks
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("tasks_file", type=click.Path(exists=True, dir_okay=False))
def tasks(tasks_file: str):
    """List the tasks parsed from TASKS_FILE."""
    from mcp_eval.loader import load_tasks

    parsed = load_tasks(tasks_file)
    if not parsed:
        console.print("[yellow]No tasks found.[/yellow]")
        return

    console.print(f"Found {len(parsed)} tasks")
    console.print()
    for i, task in enumerate(parsed, 1):
        console.print(f"[bold cyan][{i}][/bold cyan] {task.question}")
        console.print(f"    answer: {task.answer}", style="dim")


# ---------------------------------------------------------------------------
# mcp-eval env
# ---------------------------------------------------------------------------


@cli.group(invoke_without_command=True)
@click.pass_context
def env(ctx):
    """Show which settings are configured, or save one with `env set`."""
    if ctx.invoked_subcommand is not None:
        return

    from rich.table import Table

    from mcp_eval.config import PERSISTENT_ENV, check_env

    table = Table(title="Configuration")
    table.add_column("Key", style="bold", no_wrap=True)
    table.add_column("Status")
    table.add_column("Purpose")
    for var, is_set, info in check_env():
        table.add_row(
            var,
            "[green]set[/green]" if is_set else "[red]not set[/red]",
            f"{info['description']} [dim]({', '.join(info['required_by'])})[/dim]",
        )
    console.print(table)
    console.print(f"Config file: {PERSISTENT_ENV}", style="dim")


@env.command("set")
@click.argument("key")
@click.argument("value")
def env_set(key: str, value: str):
    """Store KEY=VALUE in ~/.mcp-eval/.env."""
    from mcp_eval.config import VALID_KEYS, save_key

    key = key.upper()
    if key not in VALID_KEYS:
        console.print(f"[red]Unknown key: {key}[/red] (expected one of {', '.join(sorted(VALID_KEYS))})")
        raise SystemExit(1)

    console.print(f"Saved {key} to {save_key(key, value)}")
