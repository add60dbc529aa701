"""Workflow context read from GITHUB_* environment variables.

See https://docs.github.com/en/actions/learn-github-actions/environment-variables
"""

from __future__ import annotations

import json
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from github import Github

DEFAULT_API_URL = "https://api.github.com"
DEFAULT_GRAPHQL_URL = "https://api.github.com/graphql"
DEFAULT_SERVER_URL = "https://github.com"


class ContextError(Exception):
    """Raised when the workflow context variables or event payload are invalid."""


@dataclass(frozen=True)
class GitHubContext:
    action: str = ""
    action_path: str = ""
    action_repository: str = ""
    actions: bool = False
    actor: str = ""
    api_url: str = DEFAULT_API_URL
    base_ref: str = ""
    env: str = ""
    event_name: str = ""
    event_path: str = ""
    graphql_url: str = DEFAULT_GRAPHQL_URL
    head_ref: str = ""
    job: str = ""
    path: str = ""
    ref: str = ""
    ref_name: str = ""
    ref_protected: bool = False
    ref_type: str = ""
    # owner/name, e.g. octocat/Hello-World. Prefer repo() over reading this directly.
    repository: str = ""
    repository_owner: str = ""
    retention_days: int = 0
    run_attempt: int = 0
    run_id: int = 0
    run_number: int = 0
    server_url: str = DEFAULT_SERVER_URL
    sha: str = ""
    step_summary: str = ""
    workflow: str = ""
    workspace: str = ""
    event: dict[str, Any] = field(default_factory=dict)

    def repo(self) -> tuple[str, str]:
        """Return ``(owner, name)`` of the repository the workflow runs for."""
        if self.repository:
            owner, _, name = self.repository.partition("/")
            return owner, name

        # Falls back to GITHUB_REPOSITORY_OWNER when the event has no owner name.
        owner = self.repository_owner
        name = ""
        repository = self.event.get("repository")
        if isinstance(repository, dict):
            if isinstance(repository.get("name"), str):
                name = repository["name"]
            repo_owner = repository.get("owner")
            if isinstance(repo_owner, dict) and isinstance(repo_owner.get("name"), str):
                owner = repo_owner["name"]
        return owner, name

    def client(self, token: str) -> Github:
        """Create a PyGithub client for this context's API endpoint."""
        from github import Auth, Github

        auth = Auth.Token(token) if token else None
        if self.api_url and self.api_url != DEFAULT_API_URL:
            return Github(auth=auth, base_url=self.api_url)
        return Github(auth=auth)


_STRING_VARS = {
    "action": "GITHUB_ACTION",
    "action_path": "GITHUB_ACTION_PATH",
    "action_repository": "GITHUB_ACTION_REPOSITORY",
    "actor": "GITHUB_ACTOR",
    "api_url": "GITHUB_API_URL",
    "base_ref": "GITHUB_BASE_REF",
    "env": "GITHUB_ENV",
    "event_name": "GITHUB_EVENT_NAME",
    "event_path": "GITHUB_EVENT_PATH",
    "graphql_url": "GITHUB_GRAPHQL_URL",
    "head_ref": "GITHUB_HEAD_REF",
    "job": "GITHUB_JOB",
    "path": "GITHUB_PATH",
    "ref": "GITHUB_REF",
    "ref_name": "GITHUB_REF_NAME",
    "ref_type": "GITHUB_REF_TYPE",
    "repository": "GITHUB_REPOSITORY",
    "repository_owner": "GITHUB_REPOSITORY_OWNER",
    "server_url": "GITHUB_SERVER_URL",
    "sha": "GITHUB_SHA",
    "step_summary": "GITHUB_STEP_SUMMARY",
    "workflow": "GITHUB_WORKFLOW",
    "workspace": "GITHUB_WORKSPACE",
}

_BOOL_VARS = {
    "actions": "GITHUB_ACTIONS",
    "ref_protected": "GITHUB_REF_PROTECTED",
}

_INT_VARS = {
    "retention_days": "GITHUB_RETENTION_DAYS",
    "run_attempt": "GITHUB_RUN_ATTEMPT",
    "run_id": "GITHUB_RUN_ID",
    "run_number": "GITHUB_RUN_NUMBER",
}


def _parse_bool(env_key: str, value: str) -> bool:
    # 1/0, t/f and true/false in lower, title or upper case.
    stripped = value.strip()
    if stripped in ("1", "t", "T", "true", "True", "TRUE"):
        return True
    if stripped in ("0", "f", "F", "false", "False", "FALSE"):
        return False
    raise ContextError(f"{env_key} is not a boolean: {value!r}")


def _parse_int(env_key: str, value: str) -> int:
    try:
        return int(value.strip(), 10)
    except ValueError as e:
        raise ContextError(f"{env_key} is not an integer: {value!r}") from e


def _load_event(event_path: str) -> dict[str, Any]:
    try:
        with open(event_path, encoding="utf-8") as f:
            raw = f.read()
    except FileNotFoundError:
        return {}
    except OSError as e:
        raise ContextError(f"could not read event file: {e}") from e

    try:
        event = json.loads(raw)
    except ValueError as e:
        raise ContextError(f"failed to unmarshal event payload: {e}") from e
    if not isinstance(event, dict):
        raise ContextError("event payload is not a JSON object")
    return event


def load_context(getenv: Callable[[str], str]) -> GitHubContext:
    """Build a GitHubContext from ``getenv``, parsing the event payload if present."""
    values: dict[str, Any] = {}
    for attr, env_key in _STRING_VARS.items():
        value = getenv(env_key)
        if value:
            values[attr] = value
    for attr, env_key in _BOOL_VARS.items():
        value = getenv(env_key)
        if value:
            values[attr] = _parse_bool(env_key, value)
    for attr, env_key in _INT_VARS.items():
        value = getenv(env_key)
        if value:
            values[attr] = _parse_int(env_key, value)

    if values.get("event_path"):
        values["event"] = _load_event(values["event_path"])

    return GitHubContext(**values)
