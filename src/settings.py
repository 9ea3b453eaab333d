"""Configuration for telequery.

Secrets and account identity are read from the environment (a .env file is
honoured via python-dotenv). Non-secret settings such as the command table and
flush period live in an optional config.json so they can be edited without
touching Python.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from dotenv import load_dotenv

from core.commands import build_command_specs
from core.models import CommandSpec

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

CONFIG_PATH = os.path.join(PROJECT_ROOT, "config.json")

REQUIRED_ENV = (
    "API_ID",
    "API_HASH",
    "PHONE",
    "MY_USERNAME",
    "LLM_CONTEXT_PATH",
    "COMMAND_BASE_URL",
)

# Used when config.json has no "commands" section.
DEFAULT_COMMANDS: list[dict[str, Any]] = [
    {
        "key": "q",
        "prefix": "!q",
        "path": "/q",
        "params": {"temperature": 0.3, "tokens": 3000, "model": "openai-next", "version": "v2"},
    },
    {
        "key": "b",
        "prefix": "!cb",
        "path": "/q",
        "params": {
            "temperature": 0.92,
            "tokens": 4000,
            "format": "fun",
            "model": "openai-next",
            "version": "v2",
        },
    },
]

DEFAULT_LOG_DIRECTORY = "logs"
DEFAULT_FLUSH_INTERVAL_SECONDS = 300.0
DEFAULT_DISPATCH_TIMEOUT_SECONDS = 120.0
DEFAULT_CONNECTION_RETRIES = 5


@dataclass(frozen=True)
class Settings:
    api_id: int
    api_hash: str
    phone: str
    session_string: str
    own_username: str
    context_path: str
    command_base_url: str
    commands: tuple[CommandSpec, ...]
    log_directory: str
    flush_interval_seconds: float
    dispatch_timeout_seconds: float
    connection_retries: int
    refresh_dialogs_on_miss: bool
    logging: dict[str, Any]


def load_json_config(config_path: str = CONFIG_PATH) -> dict:
    """Load config.json, or an empty config when the file does not exist."""

    if not os.path.exists(config_path):
        return {}

    with open(config_path, "r", encoding="utf-8") as handle:
        return json.load(handle)


def _resolve_path(path: str) -> str:
    if os.path.isabs(path):
        return path
    return os.path.join(PROJECT_ROOT, path)


def load_settings(
    config: Optional[dict] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Settings:
    """Build Settings from config.json and the environment.

    Every missing required variable is reported at once so a first-time setup
    does not need several restarts to get right.
    """

    if environ is None:
        load_dotenv()
        environ = os.environ
    if config is None:
        config = load_json_config()

    missing = [name for name in REQUIRED_ENV if not environ.get(name)]
    if missing:
        raise RuntimeError(f"Missing required environment variables: {', '.join(missing)}")

    try:
        api_id = int(environ["API_ID"])
    except ValueError as e:
        raise RuntimeError("API_ID must be an integer") from e

    base_url = environ["COMMAND_BASE_URL"]
    commands = build_command_specs(config.get("commands") or DEFAULT_COMMANDS, base_url)
    if not commands:
        raise RuntimeError("At least one command must be configured")

    message_log = config.get("message_log", {})
    dispatcher = config.get("dispatcher", {})
    telegram = config.get("telegram", {})
    entities = config.get("entities", {})

    return Settings(
        api_id=api_id,
        api_hash=environ["API_HASH"],
        phone=environ["PHONE"],
        session_string=environ.get("SESSION_STRING", "") or "",
        own_username=environ["MY_USERNAME"],
        context_path=environ["LLM_CONTEXT_PATH"],
        command_base_url=base_url,
        commands=tuple(commands),
        log_directory=_resolve_path(message_log.get("directory", DEFAULT_LOG_DIRECTORY)),
        flush_interval_seconds=float(message_log.get("flush_interval_seconds", DEFAULT_FLUSH_INTERVAL_SECONDS)),
        dispatch_timeout_seconds=float(dispatcher.get("timeout_seconds", DEFAULT_DISPATCH_TIMEOUT_SECONDS)),
        connection_retries=int(telegram.get("connection_retries", DEFAULT_CONNECTION_RETRIES)),
        refresh_dialogs_on_miss=bool(entities.get("refresh_dialogs_on_miss", True)),
        logging=config.get("logging", {}),
    )
