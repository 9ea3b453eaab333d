from __future__ import annotations

import pytest

import settings

ENV = {
    "API_ID": "12345",
    "API_HASH": "abcdef",
    "PHONE": "+15550000",
    "MY_USERNAME": "mybot",
    "LLM_CONTEXT_PATH": "context.txt",
    "COMMAND_BASE_URL": "http://llm.local",
}


def test_defaults_when_config_is_empty() -> None:
    loaded = settings.load_settings(config={}, environ=ENV)

    assert loaded.api_id == 12345
    assert loaded.session_string == ""
    assert [spec.prefix for spec in loaded.commands] == ["!q", "!cb"]
    assert loaded.commands[0].endpoint == "http://llm.local/q"
    assert loaded.flush_interval_seconds == 300.0
    assert loaded.log_directory.endswith("logs")
    assert loaded.connection_retries == 5


def test_missing_variables_are_all_reported() -> None:
    env = dict(ENV)
    del env["PHONE"]
    del env["COMMAND_BASE_URL"]

    with pytest.raises(RuntimeError) as excinfo:
        settings.load_settings(config={}, environ=env)

    assert "PHONE" in str(excinfo.value)
    assert "COMMAND_BASE_URL" in str(excinfo.value)


def test_api_id_must_be_numeric() -> None:
    with pytest.raises(RuntimeError):
        settings.load_settings(config={}, environ={**ENV, "API_ID": "abc"})


def test_config_overrides(tmp_path) -> None:
    config = {
        "commands": [{"key": "s", "prefix": "/sum", "path": "/summarize", "params": {"tokens": 100}}],
        "message_log": {"directory": str(tmp_path), "flush_interval_seconds": 30},
        "dispatcher": {"timeout_seconds": 10},
    }

    loaded = settings.load_settings(config=config, environ={**ENV, "SESSION_STRING": "1abc"})

    assert [spec.key for spec in loaded.commands] == ["s"]
    assert loaded.commands[0].endpoint == "http://llm.local/summarize"
    assert loaded.log_directory == str(tmp_path)
    assert loaded.flush_interval_seconds == 30.0
    assert loaded.dispatch_timeout_seconds == 10.0
    assert loaded.session_string == "1abc"


def test_load_json_config_missing_file(tmp_path) -> None:
    assert settings.load_json_config(str(tmp_path / "absent.json")) == {}
