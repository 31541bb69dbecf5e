"""Tool adapter: descriptor conversion and name-keyed dispatch.

Descriptors are converted to whatever calling convention the endpoint
expects, and model-issued tool calls are resolved against a table of
callables supplied by the caller.  ``resolve_and_invoke`` never raises:
every failure comes back as a string so the model can react to it.
"""

from __future__ import annotations

import asyncio
import importlib
import importlib.util
import inspect
import json
import logging
from collections.abc import Mapping
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Callable, Iterable, Optional, Union

from mcp_eval.models import ToolDescriptor

logger = logging.getLogger(__name__)

ToolTable = Union[Mapping[str, Callable[..., Any]], object]


class ToolRegistrationError(Exception):
    """Raised when tool descriptors cannot be bound to callables."""


def _as_descriptors(tools: Iterable[Union[ToolDescriptor, dict]]) -> list[ToolDescriptor]:
    return [t if isinstance(t, ToolDescriptor) else ToolDescriptor.from_dict(t) for t in tools]


# ---------------------------------------------------------------------------
# Endpoint formats
# ---------------------------------------------------------------------------


def to_anthropic_format(tools: Iterable[Union[ToolDescriptor, dict]]) -> list[dict[str, Any]]:
    """Map descriptors 1:1 onto the Anthropic tool-use schema."""
    return [
        {
            "name": tool.name,
            "description": tool.description,
            "input_schema": tool.input_schema,
        }
        for tool in _as_descriptors(tools)
    ]


def to_openai_format(tools: Iterable[Union[ToolDescriptor, dict]]) -> list[dict[str, Any]]:
    """Map descriptors onto OpenAI function-calling tool specs."""
    return [
        {
            "type": "function",
            "function": {
                "name": tool.name,
                "description": tool.description,
                "parameters": tool.input_schema,
            },
        }
        for tool in _as_descriptors(tools)
    ]


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------


def method_name(tool_name: str) -> str:
    """Strip the endpoint-facing prefix: ``"mcp_list"`` -> ``"list"``."""
    if "_" in tool_name:
        return tool_name.split("_", 1)[1]
    return tool_name


def _lookup(table: ToolTable, name: str) -> Optional[Callable[..., Any]]:
    if isinstance(table, Mapping):
        fn = table.get(name)
    else:
        fn = getattr(table, name, None)
    return fn if callable(fn) else None


async def _await(awaitable: Any) -> Any:
    return await awaitable


def _run_awaitable(awaitable: Any) -> Any:
    """Drive *awaitable* to completion from synchronous code.

    Inside a running event loop the awaitable gets a fresh loop on a worker
    thread, since the caller's loop is blocked until the tool returns.  It
    therefore must not depend on objects bound to the caller's loop.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(_await(awaitable))
    with ThreadPoolExecutor(max_workers=1) as pool:
        return pool.submit(asyncio.run, _await(awaitable)).result()


def _serialize(result: Any) -> str:
    if isinstance(result, str):
        return result
    if result is None or isinstance(result, (dict, list, tuple)):
        return json.dumps(result, default=str)
    return str(result)


def resolve_and_invoke(tool_name: str, args: dict[str, Any], table: ToolTable) -> str:
    """Call the table entry for *tool_name* and return its output as a string."""
    name = method_name(tool_name)
    fn = _lookup(table, name)
    if fn is None:
        logger.warning("Tool %s: no method %r in tool table", tool_name, name)
        return f"Error: Method {name} not found in tool table"

    try:
        result = fn(args)
        if inspect.isawaitable(result):
            result = _run_awaitable(result)
        return _serialize(result)
    except Exception as e:
        logger.exception("Tool %s failed", tool_name)
        return f"Error executing tool {tool_name}: {e}"


class ToolRegistry:
    """Descriptors bound to their callables, checked up front."""

    def __init__(
        self,
        descriptors: Iterable[Union[ToolDescriptor, dict]],
        table: ToolTable,
        strict: bool = True,
    ):
        self.descriptors = _as_descriptors(descriptors)
        self.table = table

        missing = [d.name for d in self.descriptors if _lookup(table, method_name(d.name)) is None]
        if missing:
            msg = f"No callable in tool table for: {', '.join(missing)}"
            if strict:
                raise ToolRegistrationError(msg)
            logger.warning(msg)

    def __len__(self) -> int:
        return len(self.descriptors)

    @property
    def names(self) -> list[str]:
        return [d.name for d in self.descriptors]

    def anthropic_tools(self) -> list[dict[str, Any]]:
        return to_anthropic_format(self.descriptors)

    def openai_tools(self) -> list[dict[str, Any]]:
        return to_openai_format(self.descriptors)

    def invoke(self, tool_name: str, args: dict[str, Any]) -> str:
        return resolve_and_invoke(tool_name, args, self.table)


# ---------------------------------------------------------------------------
# Loading tool modules (CLI)
# ---------------------------------------------------------------------------


def load_tool_module(ref: str) -> tuple[list[ToolDescriptor], ToolTable]:
    """Import *ref* (a ``.py`` path or dotted module) and read TOOLS / NAMESPACE."""
    if ref.endswith(".py") or Path(ref).is_file():
        path = Path(ref).expanduser().resolve()
        if not path.exists():
            raise ToolRegistrationError(f"Tool module not found: {path}")
        spec = importlib.util.spec_from_file_location(path.stem, path)
        module = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(module)
    else:
        module = importlib.import_module(ref)

    for attr in ("TOOLS", "NAMESPACE"):
        if not hasattr(module, attr):
            raise ToolRegistrationError(f"Tool module {ref} does not define {attr}")

    descriptors = _as_descriptors(module.TOOLS)
    logger.info("Loaded %d tools from %s", len(descriptors), ref)
    return descriptors, module.NAMESPACE
