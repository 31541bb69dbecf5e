"""Inference endpoints: the only modules that know about the model SDKs.

The agent loop keeps a provider-neutral transcript (see ``models.Message``);
each endpoint converts it to its own wire format on every request and
normalises the reply into an ``EndpointResponse``.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

import anthropic
import openai
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from mcp_eval import config
from mcp_eval.models import EndpointResponse, MessageList, ToolCall
from mcp_eval.tools import ToolRegistry

logger = logging.getLogger(__name__)

DEFAULT_MAX_TOKENS = 4096
DEFAULT_TIMEOUT = 600.0

_TRANSIENT_ERRORS = (
    anthropic.APIConnectionError,
    anthropic.RateLimitError,
    anthropic.InternalServerError,
    openai.APIConnectionError,
    openai.RateLimitError,
    openai.InternalServerError,
)


class EndpointError(Exception):
    """The inference endpoint failed to produce a reply."""


@retry(
    retry=retry_if_exception_type(_TRANSIENT_ERRORS),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, max=8),
    reraise=True,
)
def _call_with_retry(create, **params: Any) -> Any:
    return create(**params)


class Endpoint(ABC):
    """Submit a transcript plus tools, get back text and/or a tool request."""

    model: str

    @abstractmethod
    def create(
        self,
        messages: MessageList,
        registry: ToolRegistry,
        system: str,
    ) -> EndpointResponse:
        ...


# ---------------------------------------------------------------------------
# Anthropic
# ---------------------------------------------------------------------------


def to_anthropic_messages(messages: MessageList) -> list[dict[str, Any]]:
    """Convert the neutral transcript to Anthropic ``MessageParam`` dicts."""
    out: list[dict[str, Any]] = []
    for msg in messages:
        role = msg["role"]
        if role == "user":
            out.append({"role": "user", "content": msg["content"]})
        elif role == "assistant":
            blocks: list[dict[str, Any]] = []
            if msg.get("content"):
                blocks.append({"type": "text", "text": msg["content"]})
            for call in msg.get("tool_calls", []):
                blocks.append({
                    "type": "tool_use",
                    "id": call.id,
                    "name": call.name,
                    "input": call.input,
                })
            out.append({"role": "assistant", "content": blocks})
        elif role == "tool":
            out.append({
                "role": "user",
                "content": [{
                    "type": "tool_result",
                    "tool_use_id": msg["tool_call_id"],
                    "content": msg["content"],
                }],
            })
        else:
            raise ValueError(f"Unknown message role: {role}")
    return out


class AnthropicEndpoint(Endpoint):
    """Anthropic Messages API with tool use."""

    def __init__(
        self,
        model: Optional[str] = None,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        timeout: float = DEFAULT_TIMEOUT,
        client: Optional[anthropic.Anthropic] = None,
    ):
        self.model = model or config.get_default_model("anthropic")
        self.max_tokens = max_tokens
        self.client = client or anthropic.Anthropic(
            api_key=config.get_anthropic_key(),
            timeout=timeout,
            max_retries=0,
        )

    def create(self, messages: MessageList, registry: ToolRegistry, system: str) -> EndpointResponse:
        params: dict[str, Any] = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "system": system,
            "messages": to_anthropic_messages(messages),
        }
        tools = registry.anthropic_tools()
        if tools:
            params["tools"] = tools

        try:
            response = _call_with_retry(self.client.messages.create, **params)
        except anthropic.APIError as e:
            raise EndpointError(f"Anthropic request failed: {e}") from e

        texts: list[str] = []
        tool_calls: list[ToolCall] = []
        for block in response.content:
            if block.type == "text" and block.text:
                texts.append(block.text)
            elif block.type == "tool_use":
                tool_calls.append(ToolCall(id=block.id, name=block.name, input=dict(block.input or {})))

        usage = getattr(response, "usage", None)
        return EndpointResponse(
            text="\n".join(texts),
            tool_calls=tool_calls,
            stop_reason=response.stop_reason or "",
            usage={
                "input_tokens": getattr(usage, "input_tokens", 0),
                "output_tokens": getattr(usage, "output_tokens", 0),
            } if usage is not None else {},
        )


# ---------------------------------------------------------------------------
# OpenAI-compatible
# ---------------------------------------------------------------------------


def to_openai_messages(messages: MessageList, system: str) -> list[dict[str, Any]]:
    """Convert the neutral transcript to Chat Completions messages."""
    out: list[dict[str, Any]] = [{"role": "system", "content": system}]
    for msg in messages:
        role = msg["role"]
        if role == "user":
            out.append({"role": "user", "content": msg["content"]})
        elif role == "assistant":
            entry: dict[str, Any] = {"role": "assistant", "content": msg.get("content") or None}
            calls = msg.get("tool_calls", [])
            if calls:
                entry["tool_calls"] = [
                    {
                        "id": call.id,
                        "type": "function",
                        "function": {"name": call.name, "arguments": json.dumps(call.input)},
                    }
                    for call in calls
                ]
            out.append(entry)
        elif role == "tool":
            out.append({
                "role": "tool",
                "tool_call_id": msg["tool_call_id"],
                "content": msg["content"],
            })
        else:
            raise ValueError(f"Unknown message role: {role}")
    return out


def _parse_arguments(raw: Optional[str]) -> dict[str, Any]:
    try:
        args = json.loads(raw or "{}")
    except json.JSONDecodeError:
        logger.warning("Unparseable tool arguments: %s", (raw or "")[:200])
        return {}
    return args if isinstance(args, dict) else {}


class OpenAIEndpoint(Endpoint):
    """OpenAI (or compatible) Chat Completions with function calling."""

    def __init__(
        self,
        model: Optional[str] = None,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        timeout: float = DEFAULT_TIMEOUT,
        base_url: Optional[str] = None,
        client: Optional[openai.OpenAI] = None,
    ):
        self.model = model or config.get_default_model("openai")
        self.max_tokens = max_tokens
        self.client = client or openai.OpenAI(
            api_key=config.get_openai_key(),
            base_url=base_url,
            timeout=timeout,
            max_retries=0,
        )

    def create(self, messages: MessageList, registry: ToolRegistry, system: str) -> EndpointResponse:
        params: dict[str, Any] = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "messages": to_openai_messages(messages, system),
        }
        tools = registry.openai_tools()
        if tools:
            params["tools"] = tools

        try:
            response = _call_with_retry(self.client.chat.completions.create, **params)
        except openai.APIError as e:
            raise EndpointError(f"OpenAI request failed: {e}") from e

        if not response.choices:
            raise EndpointError(f"OpenAI response for {self.model} had no choices")
        choice = response.choices[0]
        message = choice.message
        tool_calls = [
            ToolCall(id=tc.id, name=tc.function.name, input=_parse_arguments(tc.function.arguments))
            for tc in (message.tool_calls or [])
        ]

        usage = getattr(response, "usage", None)
        return EndpointResponse(
            text=message.content or "",
            tool_calls=tool_calls,
            stop_reason=choice.finish_reason or "",
            usage={
                "input_tokens": getattr(usage, "prompt_tokens", 0),
                "output_tokens": getattr(usage, "completion_tokens", 0),
            } if usage is not None else {},
        )


PROVIDERS = {
    "anthropic": AnthropicEndpoint,
    "openai": OpenAIEndpoint,
}


def make_endpoint(provider: str = "anthropic", model: Optional[str] = None, **kwargs: Any) -> Endpoint:
    """Instantiate an endpoint by provider name."""
    try:
        cls = PROVIDERS[provider]
    except KeyError:
        raise config.ConfigError(
            f"Unknown provider '{provider}' (expected one of: {', '.join(PROVIDERS)})"
        ) from None
    return cls(model=model, **kwargs)
