"""Tests for settings, errors and small helpers."""

import os
from pathlib import Path

import pytest

from siteclone.agents import ConversationState, Message, TextPart, ImagePart
from siteclone.agents.media import file_to_data_url, mime_from_extension
from siteclone.config import DEFAULT_MAX_STEPS, DEFAULT_MODEL, Settings
from siteclone.errors import ConfigurationError, ModelInvocationError, ToolParameterError

ENV_VARS = [
    "OPENAI_API_KEY",
    "OPENAI_MODEL",
    "OPENAI_BASE_URL",
    "SITECLONE_MAX_STEPS",
    "SITECLONE_SYSTEM_PROMPT",
    "SITECLONE_DATA_DIR",
    "SITECLONE_LOG_LEVEL",
]


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    # dotenv writes into os.environ; give each test its own copy.
    monkeypatch.setattr(
        os, "environ", {k: v for k, v in os.environ.items() if k not in ENV_VARS}
    )
    monkeypatch.chdir(tmp_path)
    return monkeypatch


def test_defaults(clean_env):
    settings = Settings.from_env()
    assert settings.openai_api_key == ""
    assert settings.openai_model == DEFAULT_MODEL
    assert settings.max_steps == DEFAULT_MAX_STEPS
    assert settings.data_dir == Path("data")
    assert settings.log_level == "INFO"


def test_environment_values(clean_env):
    clean_env.setenv("OPENAI_API_KEY", "sk-test")
    clean_env.setenv("OPENAI_MODEL", "gpt-4.1-mini")
    clean_env.setenv("SITECLONE_MAX_STEPS", "7")
    clean_env.setenv("SITECLONE_SYSTEM_PROMPT", "prompt.md")
    clean_env.setenv("SITECLONE_LOG_LEVEL", "debug")

    settings = Settings.from_env()

    assert settings.require_api_key() == "sk-test"
    assert settings.openai_model == "gpt-4.1-mini"
    assert settings.max_steps == 7
    assert settings.system_prompt_path == Path("prompt.md")
    assert settings.log_level == "DEBUG"


def test_dotenv_file_is_loaded(clean_env, tmp_path):
    (tmp_path / ".env.local").write_text("OPENAI_API_KEY=from-file\nSITECLONE_MAX_STEPS=3\n")

    settings = Settings.from_env()

    assert settings.openai_api_key == "from-file"
    assert settings.max_steps == 3


def test_process_env_wins_over_dotenv(clean_env, tmp_path):
    (tmp_path / ".env.local").write_text("OPENAI_MODEL=from-file\n")
    clean_env.setenv("OPENAI_MODEL", "from-env")
    assert Settings.from_env().openai_model == "from-env"


@pytest.mark.parametrize("raw", ["zero", "0", "-2"])
def test_invalid_max_steps(clean_env, raw):
    clean_env.setenv("SITECLONE_MAX_STEPS", raw)
    with pytest.raises(ConfigurationError, match="SITECLONE_MAX_STEPS"):
        Settings.from_env()


def test_invalid_log_level(clean_env):
    clean_env.setenv("SITECLONE_LOG_LEVEL", "LOUD")
    with pytest.raises(ConfigurationError, match="Unknown log level"):
        Settings.from_env()


def test_missing_api_key():
    with pytest.raises(ConfigurationError, match="Missing OPENAI_API_KEY"):
        Settings().require_api_key()


def test_error_messages():
    assert str(ToolParameterError("fs.list", "dirPath", "missing")) == (
        "fs.list requires field 'dirPath'"
    )
    assert str(ToolParameterError("fs.list", None, "params must be a JSON object")) == (
        "fs.list params must be a JSON object"
    )
    error = ModelInvocationError(2, TimeoutError("slow"))
    assert "step 3" in str(error)
    assert "TimeoutError: slow" in str(error)


def test_media_helpers(tmp_path):
    assert mime_from_extension("a.PNG") == "image/png"
    assert mime_from_extension("a.jpeg") == "image/jpeg"
    assert mime_from_extension("a.bin") == "application/octet-stream"

    path = tmp_path / "x.png"
    path.write_bytes(b"abc")
    assert file_to_data_url(path) == "data:image/png;base64,YWJj"


def test_conversation_state_rules():
    conversation = ConversationState()
    assert conversation.ensure_system("sys") is True
    assert conversation.ensure_system("again") is False
    assert conversation.has_system

    with pytest.raises(ValueError):
        conversation.append(Message(role="system", content="late"))

    conversation.append(
        Message(role="user", content=(TextPart("look "), ImagePart("data:,"), TextPart("here")))
    )
    assert conversation[1].text == "look here"
    assert len(conversation) == 2
