"""Deliver commands to the runner as stdout lines or environment file records."""

from __future__ import annotations

from collections.abc import Callable
from typing import TextIO

from actions_core.command import Command, to_command_value

GetenvFunc = Callable[[str], str]

EOL = "\n"

# https://docs.github.com/en/actions/using-workflows/workflow-commands-for-github-actions#multiline-strings
MULTILINE_DELIMITER = "_GitHubActionsFileCommandDelimeter_"


class FileCommandError(Exception):
    """Base class for failures while issuing a file command."""


class MissingFileCommandTargetError(FileCommandError):
    """Raised when the environment does not name the file for a command."""


class FileCommandWriteError(FileCommandError):
    """Raised when the environment file cannot be opened or written."""


class FileCommandValueError(FileCommandError, ValueError):
    """Raised when a key or value collides with the multiline delimiter."""


def file_command_env_key(name: str) -> str:
    """Map a file command name to the variable holding its path (env -> GITHUB_ENV)."""
    return "GITHUB_" + name.replace("-", "_").upper()


def format_multiline(key: str, value: str) -> str:
    """Wrap a key/value pair in the heredoc form understood by the runner."""
    if MULTILINE_DELIMITER in key:
        raise FileCommandValueError(f"Key {key!r} must not contain the delimiter {MULTILINE_DELIMITER}")
    if MULTILINE_DELIMITER in value:
        raise FileCommandValueError(f"Value for {key!r} must not contain the delimiter {MULTILINE_DELIMITER}")
    return f"{key}<<{MULTILINE_DELIMITER}{EOL}{value}{EOL}{MULTILINE_DELIMITER}"


class CommandSink:
    """Writes stream commands to ``writer`` and file commands to runner files."""

    def __init__(self, writer: TextIO, getenv: GetenvFunc) -> None:
        self.writer = writer
        self.getenv = getenv

    def issue(self, cmd: Command) -> None:
        """Write ``cmd`` as one line. Stream errors propagate to the caller."""
        self.writer.write(str(cmd) + EOL)
        self.writer.flush()

    def write_line(self, text: str) -> None:
        self.writer.write(text + EOL)
        self.writer.flush()

    def issue_file(self, cmd: Command) -> None:
        """Append ``cmd.message`` to the file named by ``GITHUB_<NAME>``.

        Properties are not part of the file format and are ignored.
        """
        env_key = file_command_env_key(cmd.name)
        path = self.getenv(env_key)
        if not path:
            raise MissingFileCommandTargetError(
                f"Unable to find environment variable for file command {cmd.name}: {env_key} is not set"
            )

        try:
            with open(path, "a", encoding="utf-8") as f:
                f.write(to_command_value(cmd.message) + EOL)
        except (OSError, UnicodeEncodeError) as e:
            raise FileCommandWriteError(
                f"unable to write command to the environment file {path}: {e}"
            ) from e
