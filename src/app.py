"""Application entry point for the telequery userbot."""

from __future__ import annotations

import asyncio
import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Optional
from urllib.parse import parse_qsl, urlsplit

from art import tprint
from dotenv import load_dotenv
from telethon import events

import settings
from adapters.console_prompt import ConsolePrompt
from adapters.json_log_store import JsonLogStore
from adapters.llm_dispatcher import CommandDispatcher, ContextLoader
from adapters.telegram_mapper import build_inbound
from adapters.telethon_transport import TelethonAuthenticator, TelethonTransport
from client import build_client
from core.commands import CommandGrammar, find_ambiguous_prefixes
from core.entities import EntityResolver
from core.login import LoginManager
from core.message_log import MessageLog
from core.processor import MessageProcessor
from core.reply_context import ReplyContextResolver

NAME = "TELEQUERY"
FONT = "tarty-1"

DEFAULT_REDACT_PATTERNS = ["API_HASH", "SESSION_STRING", "2FA", "PHONE"]


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


class _RedactingFormatter(logging.Formatter):
    """Mask secrets in every record, including ones learned after startup."""

    def __init__(self, secrets: list[str], fmt: str, datefmt: Optional[str] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self._secrets = [secret for secret in secrets if secret]

    def add_secret(self, secret: str) -> None:
        # A session string minted at login is not in the environment yet.
        if secret and secret not in self._secrets:
            self._secrets.append(secret)
            self._secrets.sort(key=len, reverse=True)

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for secret in self._secrets:
            message = message.replace(secret, "***")
        return message


def _url_credentials(url: Optional[str]) -> list[str]:
    """Return the password and token-like query values embedded in a URL."""

    if not url:
        return []
    parts = urlsplit(url)
    values = [parts.password] if parts.password else []
    for name, value in parse_qsl(parts.query):
        if value and any(word in name.lower() for word in ("key", "token", "secret")):
            values.append(value)
    return values


def _collect_redaction_values(config: dict) -> list[str]:
    redact_cfg = config.get("redact", {}) if config else {}
    if not redact_cfg.get("enabled", True):
        return []
    values = []
    for name in redact_cfg.get("patterns", DEFAULT_REDACT_PATTERNS):
        value = os.getenv(name)
        if value:
            values.append(value)
    # Endpoint URLs show up in dispatcher errors, so credentials inside them
    # are masked even though the URL itself stays readable.
    values.extend(_url_credentials(os.getenv("COMMAND_BASE_URL")))
    return sorted(set(values), key=len, reverse=True)


def _configure_logging(config: dict) -> Optional[_RedactingFormatter]:
    config = config or {}
    if not config.get("enabled", True):
        return None

    load_dotenv()
    level_name = str(config.get("level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    secrets = _collect_redaction_values(config)
    formatter = _RedactingFormatter(secrets, fmt=fmt, datefmt=datefmt)

    handlers: list[logging.Handler] = []

    if config.get("console", True):
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        path = file_cfg.get("path", "logs/telequery.log")
        if not os.path.isabs(path):
            path = os.path.join(settings.PROJECT_ROOT, path)
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        max_bytes = int(file_cfg.get("max_bytes", 5 * 1024 * 1024))
        backup_count = int(file_cfg.get("backup_count", 5))
        file_handler = RotatingFileHandler(
            path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if not handlers:
        return None

    logging.basicConfig(level=level, handlers=handlers)
    # Telethon logs every reconnect and update gap at INFO.
    telethon_level = str(config.get("telethon_level", "WARNING")).upper()
    logging.getLogger("telethon").setLevel(getattr(logging, telethon_level, logging.WARNING))
    return formatter


async def _serve(config: settings.Settings, redactor: Optional[_RedactingFormatter] = None) -> None:
    logger = logging.getLogger(__name__)

    client = build_client(config)
    login = LoginManager(TelethonAuthenticator(client), ConsolePrompt(), config.phone)
    if not await login.login():
        logger.error("Failed to log in. Exiting...")
        await client.disconnect()
        return

    transport = TelethonTransport(client)
    # A request after login also makes Telethon start receiving updates.
    me = await client.get_me()
    logger.info("Logged in as: %s", getattr(me, "username", None) or getattr(me, "first_name", None))
    session_token = transport.session_token()
    if redactor is not None:
        redactor.add_secret(session_token)
    if not config.session_string:
        # Shown once on the terminal so it can be copied into SESSION_STRING;
        # log files only ever see it masked.
        print(f"New session string (set SESSION_STRING to reuse it):\n{session_token}")
    logger.debug("Session string: %s", session_token)

    grammar = CommandGrammar(config.commands)
    for shorter, longer in find_ambiguous_prefixes(grammar.specs):
        logger.warning(
            "Command prefix %r shadows %r; the first configured command wins",
            shorter,
            longer,
        )
    logger.info("%s commands are loaded", len(grammar.specs))

    message_log = MessageLog(JsonLogStore(config.log_directory))
    processor = MessageProcessor(
        transport=transport,
        resolver=EntityResolver(transport, refresh_dialogs_on_miss=config.refresh_dialogs_on_miss),
        grammar=grammar,
        reply_resolver=ReplyContextResolver(transport, grammar, config.own_username),
        dispatcher=CommandDispatcher(grammar, timeout_seconds=config.dispatch_timeout_seconds),
        context_source=ContextLoader(config.context_path),
        message_log=message_log,
    )

    # Everything past message mapping happens in the core processor.
    async def handler(event) -> None:
        try:
            await processor.handle(build_inbound(event.message))
        except Exception:
            logger.exception("Error while processing message")

    client.add_event_handler(handler, events.NewMessage(incoming=True, forwards=False))

    flush_task = asyncio.create_task(message_log.run_periodic(config.flush_interval_seconds))
    logger.info(
        "Listening for incoming messages; flushing logs to %s every %ss",
        config.log_directory,
        config.flush_interval_seconds,
    )
    try:
        await client.run_until_disconnected()
    finally:
        flush_task.cancel()
        try:
            await flush_task
        except asyncio.CancelledError:
            pass
        await message_log.flush()
        await client.disconnect()


def main() -> None:
    _print_banner()
    raw_config = settings.load_json_config()
    redactor = _configure_logging(raw_config.get("logging", {}))
    logger = logging.getLogger(__name__)

    logger.info("Starting telequery")
    try:
        config = settings.load_settings(config=raw_config)
    except RuntimeError as e:
        logger.error("%s. Please check your .env file.", e)
        raise SystemExit(1) from e

    try:
        asyncio.run(_serve(config, redactor))
    except KeyboardInterrupt:
        logger.info("Interrupted; shutting down")


if __name__ == "__main__":
    main()
