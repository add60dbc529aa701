import io

import pytest

from actions_core.action import Action


@pytest.fixture
def out():
    return io.StringIO()


@pytest.fixture
def env():
    """Mutable environment backing the Action's getenv."""
    return {}


@pytest.fixture
def action(out, env):
    return Action(writer=out, getenv=lambda k: env.get(k, ""))


@pytest.fixture
def env_file(tmp_path, env):
    """Create an empty environment file and point GITHUB_<NAME> at it."""

    def _make(env_key: str):
        p = tmp_path / env_key.lower()
        p.touch()
        env[env_key] = str(p)
        return p

    return _make
