"""Workflow command formatting and escaping.

A command is written by the runner protocol as::

    ::name key=value,key=value::message

Examples::

    ::warning::This is the message
    ::remove-matcher owner=eslint::
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Union

CommandValue = Union[str, int, float, bool, None]

CMD_SEPARATOR = "::"
MISSING_COMMAND = "missing.command"

_ESCAPED_MESSAGE = {
    "%": "%25",
    "\r": "%0D",
    "\n": "%0A",
}

_ESCAPED_PROPERTY = {
    **_ESCAPED_MESSAGE,
    ":": "%3A",
    ",": "%2C",
}


def to_command_value(value: CommandValue) -> str:
    """Convert a message or property value to its canonical text."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (bool, int, float)):
        return json.dumps(value)
    raise TypeError(f"unsupported command value type: {type(value).__name__}")


def _escape(value: CommandValue, table: dict[str, str]) -> str:
    # Single pass over the original characters, replaced output is never rescanned.
    return "".join(table.get(ch, ch) for ch in to_command_value(value))


def escape_message(value: CommandValue) -> str:
    """Escape a command message (``%``, CR and LF)."""
    return _escape(value, _ESCAPED_MESSAGE)


def escape_property(value: CommandValue) -> str:
    """Escape a property value: the message set plus ``:`` and ``,``."""
    return _escape(value, _ESCAPED_PROPERTY)


def render_properties(properties: Mapping[str, CommandValue]) -> str:
    """Render properties as sorted ``key=value`` pairs joined by commas."""
    pairs = [f"{key}={escape_property(value)}" for key, value in properties.items()]
    pairs.sort()
    return ",".join(pairs)


@dataclass(frozen=True)
class Command:
    name: str
    message: CommandValue = None
    properties: Mapping[str, CommandValue] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "properties", dict(self.properties or {}))

    def __str__(self) -> str:
        parts = [CMD_SEPARATOR, self.name or MISSING_COMMAND]
        if self.properties:
            parts.append(" ")
            parts.append(render_properties(self.properties))
        parts.append(CMD_SEPARATOR)
        parts.append(escape_message(self.message))
        return "".join(parts)
