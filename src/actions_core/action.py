"""The Action facade: logging commands, environment files, inputs and OIDC."""

from __future__ import annotations

import html
import os
import string
import sys
from collections.abc import Callable, Iterable, Iterator, Mapping
from contextlib import contextmanager
from typing import Any, TextIO

import requests

from actions_core import oidc
from actions_core.command import Command, CommandValue
from actions_core.context import GitHubContext, load_context
from actions_core.inputs import InputError, input_env_key, parse_bool, parse_lines
from actions_core.sink import CommandSink, GetenvFunc, format_multiline

ADD_MASK_CMD = "add-mask"
ADD_MATCHER_CMD = "add-matcher"
REMOVE_MATCHER_CMD = "remove-matcher"
GROUP_CMD = "group"
END_GROUP_CMD = "endgroup"
DEBUG_CMD = "debug"
NOTICE_CMD = "notice"
WARNING_CMD = "warning"
ERROR_CMD = "error"

ENV_FILE_CMD = "env"
OUTPUT_FILE_CMD = "output"
PATH_FILE_CMD = "path"
STATE_FILE_CMD = "state"
STEP_SUMMARY_FILE_CMD = "step-summary"


class InvalidFieldPairError(ValueError):
    """Raised when a field passed as a string is not a ``key=value`` pair."""


def _os_getenv(key: str) -> str:
    return os.environ.get(key, "")


def _format(msg: str, args: tuple[Any, ...]) -> str:
    if not args:
        return msg
    try:
        return msg % args
    except (TypeError, ValueError):
        # A bad format string still gets logged, unformatted.
        return msg


class Action:
    """Helpers for talking to the GitHub Actions runner.

    Construct one per process and pass it where it is needed. Every keyword is
    optional: ``writer`` defaults to stdout, ``getenv`` to the process
    environment, ``exit`` to :func:`sys.exit`.
    """

    def __init__(
        self,
        *,
        writer: TextIO | None = None,
        getenv: GetenvFunc | None = None,
        session: requests.Session | None = None,
        fields: Mapping[str, CommandValue] | None = None,
        exit: Callable[[int], Any] | None = None,
        timeout: float = oidc.DEFAULT_TIMEOUT,
    ) -> None:
        self._writer = writer if writer is not None else sys.stdout
        self._getenv = getenv or _os_getenv
        self._session = session
        self._fields: dict[str, CommandValue] = dict(fields or {})
        self._exit = exit or sys.exit
        self._timeout = timeout
        self._sink = CommandSink(self._writer, self._getenv)

    @property
    def fields(self) -> dict[str, CommandValue]:
        return dict(self._fields)

    # --- raw commands ---

    def issue_command(self, cmd: Command) -> None:
        self._sink.issue(cmd)

    def issue_file_command(self, cmd: Command) -> None:
        self._sink.issue_file(cmd)

    # --- stream commands ---

    def add_mask(self, value: str) -> None:
        """Mask ``value`` as ``***`` in all later log output."""
        self.issue_command(Command(ADD_MASK_CMD, value))

    def add_matcher(self, path: str) -> None:
        """Register the problem matcher defined in the JSON file at ``path``."""
        self.issue_command(Command(ADD_MATCHER_CMD, path))

    def remove_matcher(self, owner: str) -> None:
        self.issue_command(Command(REMOVE_MATCHER_CMD, properties={"owner": owner}))

    def group(self, title: str) -> None:
        """Start a collapsible log group, closed by the next end_group()."""
        self.issue_command(Command(GROUP_CMD, title))

    def end_group(self) -> None:
        self.issue_command(Command(END_GROUP_CMD))

    @contextmanager
    def grouped(self, title: str) -> Iterator[None]:
        """Wrap a block in group/endgroup; endgroup is written even on error."""
        self.group(title)
        try:
            yield
        finally:
            self.end_group()

    def debug(self, msg: str, *args: Any) -> None:
        self._log(DEBUG_CMD, msg, args)

    def notice(self, msg: str, *args: Any) -> None:
        self._log(NOTICE_CMD, msg, args)

    def warning(self, msg: str, *args: Any) -> None:
        self._log(WARNING_CMD, msg, args)

    def error(self, msg: str, *args: Any) -> None:
        self._log(ERROR_CMD, msg, args)

    def fatal(self, msg: str, *args: Any) -> None:
        """Log an error, then call the exit function with status 1."""
        self.error(msg, *args)
        self._exit(1)

    def info(self, msg: str, *args: Any) -> None:
        """Print a plain line with no command annotation."""
        self._sink.write_line(_format(msg, args))

    def is_debug(self) -> bool:
        return self._getenv("RUNNER_DEBUG") == "1"

    def _log(self, name: str, msg: str, args: tuple[Any, ...]) -> None:
        self.issue_command(Command(name, _format(msg, args), self._fields))

    # --- file commands ---

    def set_env(self, key: str, value: str) -> None:
        """Export an environment variable to the following steps."""
        self.issue_file_command(Command(ENV_FILE_CMD, format_multiline(key, value)))

    def set_output(self, key: str, value: str) -> None:
        self.issue_file_command(Command(OUTPUT_FILE_CMD, format_multiline(key, value)))

    def save_state(self, key: str, value: str) -> None:
        """Save state for the post step of this action, read back with get_state()."""
        self.issue_file_command(Command(STATE_FILE_CMD, format_multiline(key, value)))

    def get_state(self, name: str) -> str:
        return self._getenv(f"STATE_{name}")

    def add_path(self, path: str) -> None:
        """Prepend ``path`` to PATH for the following steps."""
        self.issue_file_command(Command(PATH_FILE_CMD, path))

    def add_step_summary(self, markdown: str) -> None:
        """Append markdown to the job summary."""
        self.issue_file_command(Command(STEP_SUMMARY_FILE_CMD, markdown))

    def add_step_summary_template(self, template: str, data: Mapping[str, Any]) -> None:
        """Render ``$name`` placeholders with HTML-escaped values and append the result."""
        escaped = {key: html.escape(str(value)) for key, value in data.items()}
        self.add_step_summary(string.Template(template).substitute(escaped))

    # --- inputs ---

    def get_input(self, name: str, required: bool = False) -> str:
        """Return the trimmed value of input ``name``, or "" when it is unset."""
        value = self._getenv(input_env_key(name)).strip()
        if required and not value:
            raise InputError(f"Input required and not supplied: {name}")
        return value

    def get_boolean_input(self, name: str, required: bool = False) -> bool:
        value = self.get_input(name, required=required)
        if not value:
            return False
        return parse_bool(name, value)

    def get_multiline_input(self, name: str, required: bool = False) -> list[str]:
        return parse_lines(self.get_input(name, required=required))

    # --- fields ---

    def with_fields(self, fields: Mapping[str, CommandValue]) -> Action:
        """Return a copy of this Action that attaches ``fields`` to log commands."""
        return Action(
            writer=self._writer,
            getenv=self._getenv,
            session=self._session,
            fields=fields,
            exit=self._exit,
            timeout=self._timeout,
        )

    def with_fields_pairs(self, pairs: Iterable[str]) -> Action:
        """Like with_fields(), taking ``key=value`` strings."""
        fields: dict[str, CommandValue] = {}
        for pair in pairs:
            key, sep, value = pair.partition("=")
            if not sep:
                raise InvalidFieldPairError(f"{pair!r} is not a proper k=v pair!")
            fields[key] = value
        return self.with_fields(fields)

    # --- environment ---

    def getenv(self, key: str) -> str:
        return self._getenv(key)

    def context(self) -> GitHubContext:
        return load_context(self._getenv)

    def get_id_token(self, audience: str = "") -> str:
        """Mint an OIDC token from the Actions runtime.

        Requires the workflow to grant ``id-token: write``.
        """
        request_url = self._getenv("ACTIONS_ID_TOKEN_REQUEST_URL")
        if not request_url:
            raise oidc.MissingOIDCConfigError("missing ACTIONS_ID_TOKEN_REQUEST_URL in environment")
        request_token = self._getenv("ACTIONS_ID_TOKEN_REQUEST_TOKEN")
        if not request_token:
            raise oidc.MissingOIDCConfigError("missing ACTIONS_ID_TOKEN_REQUEST_TOKEN in environment")

        if self._session is None:
            self._session = requests.Session()
        return oidc.fetch_id_token(
            self._session, request_url, request_token, audience, timeout=self._timeout
        )
