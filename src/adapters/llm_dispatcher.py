"""Language-model HTTP adapter.

Posts a parsed command to its configured endpoint and returns the answer
text. This is the one place in the pipeline where failures are swallowed:
the user gets a fixed apology and message logging carries on.
"""

from __future__ import annotations

import asyncio
import http.client
import json
import logging
import urllib.error
import urllib.request
from pathlib import Path
from typing import Any

from core.commands import CommandGrammar

LOGGER = logging.getLogger(__name__)

APOLOGY = "Sorry, I encountered an error while processing your request."


class DispatchError(RuntimeError):
    """Raised internally when the endpoint call or its response is unusable."""


class CommandDispatcher:
    """Dispatcher adapter that sends commands to the LLM endpoint."""

    def __init__(self, grammar: CommandGrammar, timeout_seconds: float = 120.0) -> None:
        self._grammar = grammar
        self._timeout = timeout_seconds

    def _post_json(self, endpoint: str, payload: dict[str, Any]) -> Any:
        data = json.dumps(payload).encode("utf-8")
        try:
            request = urllib.request.Request(endpoint, data=data, method="POST")
        except ValueError as e:
            raise DispatchError(f"Invalid LLM endpoint {endpoint!r}: {e}") from e
        request.add_header("Content-Type", "application/json")
        try:
            with urllib.request.urlopen(request, timeout=self._timeout) as response:
                raw = response.read()
        except urllib.error.HTTPError as e:
            body = e.read().decode("utf-8", errors="replace")
            raise DispatchError(f"LLM endpoint error {e.code}: {body}") from e
        except (urllib.error.URLError, http.client.HTTPException, OSError, ValueError) as e:
            raise DispatchError(f"LLM endpoint unreachable: {e}") from e
        try:
            body = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DispatchError("LLM endpoint returned a body that is not UTF-8") from e
        try:
            return json.loads(body)
        except json.JSONDecodeError as e:
            raise DispatchError(f"LLM endpoint returned invalid JSON: {body[:200]}") from e

    async def dispatch(self, command_key: str, content: str, context: str) -> str:
        spec = self._grammar.get(command_key)
        payload = {"question": content, "context": context, **spec.params}
        try:
            # urllib is blocking; a worker thread keeps the event loop free.
            data = await asyncio.to_thread(self._post_json, spec.endpoint, payload)
            answer = data.get("assistant") if isinstance(data, dict) else None
            if not isinstance(answer, str):
                raise DispatchError("LLM response is missing the 'assistant' field")
        except DispatchError:
            LOGGER.exception("Error sending prompt to %s", spec.endpoint)
            return APOLOGY
        return answer


class ContextLoader:
    """Read the LLM context file on every dispatch so edits apply live."""

    def __init__(self, path: str) -> None:
        self._path = Path(path)

    async def load(self) -> str:
        return await asyncio.to_thread(self._path.read_text, encoding="utf-8")
