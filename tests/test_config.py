"""Tests for mcp_eval config and environment variable handling."""

import os

import pytest

from mcp_eval.config import (
    DEFAULT_MAX_ITERATIONS,
    ConfigError,
    check_env,
    get_anthropic_key,
    get_default_model,
    get_max_iterations,
    get_openai_key,
    save_key,
)


@pytest.fixture
def config_dir(tmp_path, monkeypatch):
    import mcp_eval.config as config
    monkeypatch.setattr(config, "CONFIG_DIR", tmp_path)
    monkeypatch.setattr(config, "PERSISTENT_ENV", tmp_path / ".env")
    # save_key writes os.environ directly; register the keys so they get restored.
    for key in ("ANTHROPIC_API_KEY", "OPENAI_API_KEY", "MCP_EVAL_MODEL"):
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)
    return tmp_path


class TestCheckEnv:
    def test_returns_all_vars(self):
        names = [name for name, _, _ in check_env()]
        assert names == ["ANTHROPIC_API_KEY", "OPENAI_API_KEY", "MCP_EVAL_MODEL", "MCP_EVAL_MAX_ITERATIONS"]

    def test_detects_set_var(self, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "test-key")
        status = next(s for s in check_env() if s[0] == "ANTHROPIC_API_KEY")
        assert status[1] is True

    def test_detects_unset_var(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        status = next(s for s in check_env() if s[0] == "OPENAI_API_KEY")
        assert status[1] is False


class TestApiKeys:
    def test_anthropic_key(self, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant")
        assert get_anthropic_key() == "sk-ant"

    def test_anthropic_key_missing(self, monkeypatch):
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
        with pytest.raises(ConfigError, match="ANTHROPIC_API_KEY"):
            get_anthropic_key()

    def test_openai_key_missing(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        with pytest.raises(ValueError, match="OPENAI_API_KEY"):
            get_openai_key()


class TestDefaults:
    def test_provider_defaults(self, monkeypatch):
        monkeypatch.delenv("MCP_EVAL_MODEL", raising=False)
        assert get_default_model("anthropic") == "claude-sonnet-4-20250514"
        assert get_default_model("openai") == "gpt-4.1-mini"

    def test_model_override(self, monkeypatch):
        monkeypatch.setenv("MCP_EVAL_MODEL", "claude-test")
        assert get_default_model("openai") == "claude-test"

    def test_unknown_provider(self, monkeypatch):
        monkeypatch.delenv("MCP_EVAL_MODEL", raising=False)
        with pytest.raises(ConfigError):
            get_default_model("nope")

    def test_max_iterations_default(self, monkeypatch):
        monkeypatch.delenv("MCP_EVAL_MAX_ITERATIONS", raising=False)
        assert get_max_iterations() == DEFAULT_MAX_ITERATIONS

    def test_max_iterations_zero_disables(self, monkeypatch):
        monkeypatch.setenv("MCP_EVAL_MAX_ITERATIONS", "0")
        assert get_max_iterations() is None

    def test_max_iterations_invalid(self, monkeypatch):
        monkeypatch.setenv("MCP_EVAL_MAX_ITERATIONS", "lots")
        with pytest.raises(ConfigError, match="integer"):
            get_max_iterations()


class TestSaveKey:
    def test_save_new_key(self, config_dir):
        path = save_key("ANTHROPIC_API_KEY", "sk-123")
        assert path == config_dir / ".env"
        assert "ANTHROPIC_API_KEY=sk-123" in path.read_text()

    def test_update_existing_key(self, config_dir):
        save_key("MCP_EVAL_MODEL", "old-model")
        save_key("MCP_EVAL_MODEL", "new-model")
        content = (config_dir / ".env").read_text()
        assert "MCP_EVAL_MODEL=new-model" in content
        assert "old-model" not in content

    def test_preserves_other_keys(self, config_dir):
        save_key("ANTHROPIC_API_KEY", "ant")
        save_key("OPENAI_API_KEY", "oai")
        content = (config_dir / ".env").read_text()
        assert "ANTHROPIC_API_KEY=ant" in content
        assert "OPENAI_API_KEY=oai" in content

    def test_sets_in_current_process(self, config_dir):
        save_key("OPENAI_API_KEY", "oai-test")
        assert os.environ.get("OPENAI_API_KEY") == "oai-test"
