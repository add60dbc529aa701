"""Tests for actions_core.oidc module and Action.get_id_token."""

import io
from unittest.mock import MagicMock

import pytest
import requests

from actions_core.action import Action
from actions_core.oidc import (
    MAX_BODY_BYTES,
    MissingOIDCConfigError,
    OIDCRequestError,
    OIDCResponseError,
    OIDCStatusError,
    fetch_id_token,
)

URL = "https://pipelines.actions.githubusercontent.com/abc/idtoken"
TOKEN = "request-token"


def _session(status_code=200, body=b'{"value": "the-token"}'):
    session = MagicMock()
    response = session.get.return_value
    response.status_code = status_code
    response.iter_content.return_value = [body]
    return session


class TestFetchIDToken:
    def test_returns_value(self):
        session = _session()
        assert fetch_id_token(session, URL, TOKEN) == "the-token"

        call = session.get.call_args
        assert call[0][0] == URL
        assert call[1]["headers"]["Authorization"] == f"Bearer {TOKEN}"
        assert call[1]["stream"] is True

    def test_audience_appended(self):
        session = _session()
        fetch_id_token(session, URL, TOKEN, audience="aud")
        assert session.get.call_args[0][0] == f"{URL}?audience=aud"

    def test_audience_keeps_existing_query(self):
        session = _session()
        fetch_id_token(session, f"{URL}?api-version=2.0", TOKEN, audience="sts.amazonaws.com")
        assert session.get.call_args[0][0] == f"{URL}?api-version=2.0&audience=sts.amazonaws.com"

    def test_response_closed(self):
        session = _session()
        fetch_id_token(session, URL, TOKEN)
        session.get.return_value.close.assert_called_once()

    @pytest.mark.parametrize("status", [401, 500])
    def test_non_success_status(self, status):
        session = _session(status, b"  denied by policy \n")
        with pytest.raises(OIDCStatusError, match="denied by policy") as exc_info:
            fetch_id_token(session, URL, TOKEN)
        assert exc_info.value.status_code == status
        assert exc_info.value.body == "denied by policy"

    def test_body_truncated(self):
        session = _session(500, b"x" * (MAX_BODY_BYTES + 500))
        with pytest.raises(OIDCStatusError) as exc_info:
            fetch_id_token(session, URL, TOKEN)
        assert len(exc_info.value.body) == MAX_BODY_BYTES

    def test_invalid_json(self):
        session = _session(body=b"<html>")
        with pytest.raises(OIDCResponseError, match="failed to process response as JSON"):
            fetch_id_token(session, URL, TOKEN)

    def test_missing_value(self):
        session = _session(body=b'{"count": 1}')
        with pytest.raises(OIDCResponseError, match="'value'"):
            fetch_id_token(session, URL, TOKEN)

    def test_transport_error(self):
        session = MagicMock()
        session.get.side_effect = requests.ConnectionError("connection refused")
        with pytest.raises(OIDCRequestError, match="connection refused"):
            fetch_id_token(session, URL, TOKEN)


class TestActionGetIDToken:
    def _action(self, env, session=None):
        return Action(writer=io.StringIO(), getenv=lambda k: env.get(k, ""), session=session or _session())

    def test_missing_url(self):
        a = self._action({"ACTIONS_ID_TOKEN_REQUEST_TOKEN": TOKEN})
        with pytest.raises(MissingOIDCConfigError, match="ACTIONS_ID_TOKEN_REQUEST_URL"):
            a.get_id_token()

    def test_missing_token(self):
        a = self._action({"ACTIONS_ID_TOKEN_REQUEST_URL": URL})
        with pytest.raises(MissingOIDCConfigError, match="ACTIONS_ID_TOKEN_REQUEST_TOKEN"):
            a.get_id_token()

    def test_custom_timeout(self):
        session = _session()
        a = Action(
            writer=io.StringIO(),
            getenv={"ACTIONS_ID_TOKEN_REQUEST_URL": URL, "ACTIONS_ID_TOKEN_REQUEST_TOKEN": TOKEN}.get,
            session=session,
            timeout=2.5,
        )
        assert a.get_id_token() == "the-token"
        assert session.get.call_args[1]["timeout"] == 2.5
