"""Helpers for reading action inputs from INPUT_* environment variables."""

from __future__ import annotations

_TRUE_VALUES = ("true", "True", "TRUE")
_FALSE_VALUES = ("false", "False", "FALSE")


class InputError(Exception):
    """Raised when action inputs are missing or invalid."""


def input_env_key(name: str) -> str:
    """Return the environment variable for an input (``my val`` -> ``INPUT_MY_VAL``)."""
    return "INPUT_" + name.replace(" ", "_").upper()


def parse_bool(name: str, value: str) -> bool:
    """Parse a boolean input using the YAML 1.2 core schema spellings."""
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise InputError(
        f"Input '{name}' does not meet YAML 1.2 \"Core Schema\" specification: {value!r}. "
        "Support boolean input list: `true | True | TRUE | false | False | FALSE`"
    )


def parse_lines(value: str) -> list[str]:
    """Split a newline-separated string into a list, stripping empty lines."""
    if not value.strip():
        return []
    return [line.strip() for line in value.strip().splitlines() if line.strip()]
