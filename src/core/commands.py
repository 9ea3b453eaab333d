"""Command grammar (core domain)."""

from __future__ import annotations

from typing import Iterable, List, Optional, Tuple

from core.models import CommandSpec, ParsedCommand


def build_command_specs(commands_config: Iterable[dict], base_url: str) -> List[CommandSpec]:
    """Normalize command configs into immutable specs.

    Each endpoint is the configured base URL joined with the command's path,
    so a single deployment can be moved by changing COMMAND_BASE_URL only.
    """

    base = base_url.rstrip("/")
    specs: List[CommandSpec] = []
    for command in commands_config:
        if not command.get("enabled", True):
            continue
        path = str(command.get("path", "/q"))
        if not path.startswith("/"):
            path = f"/{path}"
        specs.append(
            CommandSpec(
                key=command["key"],
                prefix=command["prefix"],
                endpoint=f"{base}{path}",
                params=dict(command.get("params", {}) or {}),
            )
        )
    return specs


def find_ambiguous_prefixes(specs: Iterable[CommandSpec]) -> List[Tuple[str, str]]:
    """Return (shorter, longer) prefix pairs where one shadows the other."""

    prefixes = [spec.prefix for spec in specs]
    pairs: List[Tuple[str, str]] = []
    for i, first in enumerate(prefixes):
        for second in prefixes[i + 1:]:
            if second.startswith(first):
                pairs.append((first, second))
            elif first.startswith(second):
                pairs.append((second, first))
    return pairs


class CommandGrammar:
    """Maps a leading prefix to a command key and its trailing content.

    Specs are tried in configuration order and the first prefix that starts
    the text wins. Overlapping prefixes make that order significant, which is
    why they are reported at startup rather than silently resolved.
    """

    def __init__(self, specs: Iterable[CommandSpec]) -> None:
        self._specs = list(specs)
        self._by_key = {spec.key: spec for spec in self._specs}

    @property
    def specs(self) -> List[CommandSpec]:
        return list(self._specs)

    def get(self, key: str) -> CommandSpec:
        return self._by_key[key]

    def parse(self, text: Optional[str]) -> Optional[ParsedCommand]:
        if not text:
            return None
        for spec in self._specs:
            if text.startswith(spec.prefix):
                return ParsedCommand(command=spec.key, content=text[len(spec.prefix):].strip())
        return None
