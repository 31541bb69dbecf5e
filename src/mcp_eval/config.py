"""Environment variable configuration for the eval harness.

Values are loaded in priority order:
  1. Shell environment variables (highest priority)
  2. .env file in current directory
  3. ~/.mcp-eval/.env (persistent config, set via `mcp-eval env set`)

Run `mcp-eval env` to see which keys are configured.

Keys:
    ANTHROPIC_API_KEY        ->  --provider anthropic (default)
    OPENAI_API_KEY           ->  --provider openai
    MCP_EVAL_MODEL           ->  default model override
    MCP_EVAL_MAX_ITERATIONS  ->  default tool-loop guard
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv, set_key

CONFIG_DIR = Path.home() / ".mcp-eval"
PERSISTENT_ENV = CONFIG_DIR / ".env"

# Later loads don't overwrite existing values, so load lowest priority first.
if PERSISTENT_ENV.exists():
    load_dotenv(PERSISTENT_ENV)
load_dotenv()

DEFAULT_MODELS = {
    "anthropic": "claude-sonnet-4-20250514",
    "openai": "gpt-4.1-mini",
}
DEFAULT_MAX_ITERATIONS = 25


class ConfigError(ValueError):
    """A required setting is missing or invalid."""


def save_key(name: str, value: str) -> Path:
    """Persist *name* in ~/.mcp-eval/.env and apply it to this process."""
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    PERSISTENT_ENV.touch(exist_ok=True)
    set_key(PERSISTENT_ENV, name, value, quote_mode="never")
    os.environ[name] = value
    return PERSISTENT_ENV


# --- Accessors ---

def get_anthropic_key() -> str:
    key = os.getenv("ANTHROPIC_API_KEY", "")
    if not key:
        raise ConfigError(
            "ANTHROPIC_API_KEY is not set. "
            "Run `mcp-eval env set ANTHROPIC_API_KEY <your-key>` to configure it."
        )
    return key


def get_openai_key() -> str:
    key = os.getenv("OPENAI_API_KEY", "")
    if not key:
        raise ConfigError(
            "OPENAI_API_KEY is not set. "
            "Run `mcp-eval env set OPENAI_API_KEY <your-key>` to configure it."
        )
    return key


def get_default_model(provider: str = "anthropic") -> str:
    """MCP_EVAL_MODEL if set, else the provider's default."""
    override = os.getenv("MCP_EVAL_MODEL")
    if override:
        return override
    try:
        return DEFAULT_MODELS[provider]
    except KeyError:
        raise ConfigError(f"Unknown provider: {provider}") from None


def get_max_iterations() -> Optional[int]:
    """Tool-loop guard; ``0`` in the environment disables it."""
    raw = os.getenv("MCP_EVAL_MAX_ITERATIONS")
    if not raw:
        return DEFAULT_MAX_ITERATIONS
    try:
        value = int(raw)
    except ValueError:
        raise ConfigError(f"MCP_EVAL_MAX_ITERATIONS must be an integer, got {raw!r}") from None
    return value if value > 0 else None


# --- Status check ---

ENV_VARS = {
    "ANTHROPIC_API_KEY": {
        "required_by": ["mcp-eval run --provider anthropic"],
        "description": "Anthropic Messages API",
    },
    "OPENAI_API_KEY": {
        "required_by": ["mcp-eval run --provider openai"],
        "description": "OpenAI-compatible Chat Completions API",
    },
    "MCP_EVAL_MODEL": {
        "required_by": ["mcp-eval run (optional)"],
        "description": "Model used when --model is not given",
    },
    "MCP_EVAL_MAX_ITERATIONS": {
        "required_by": ["mcp-eval run (optional)"],
        "description": f"Tool calls allowed per task (default {DEFAULT_MAX_ITERATIONS}, 0 = unbounded)",
    },
}

VALID_KEYS = set(ENV_VARS)


def check_env() -> list[tuple[str, bool, dict]]:
    """Return list of (var_name, is_set, info) for all known env vars."""
    return [(var, bool(os.getenv(var)), info) for var, info in ENV_VARS.items()]
