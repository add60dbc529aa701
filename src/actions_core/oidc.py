"""Mint GitHub OIDC tokens from the Actions runtime token endpoint."""

from __future__ import annotations

import json
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import requests

MAX_BODY_BYTES = 64 * 1000
DEFAULT_TIMEOUT = 10


class OIDCError(Exception):
    """Raised when an OIDC token cannot be obtained."""


class MissingOIDCConfigError(OIDCError):
    """Raised when the runtime did not expose the token request variables."""


class OIDCRequestError(OIDCError):
    """Raised when the token request fails in transport."""


class OIDCStatusError(OIDCError):
    """Raised when the token endpoint answers with a non-200 status."""

    def __init__(self, status_code: int, body: str) -> None:
        super().__init__(f"non-successful response from minting OIDC token ({status_code}): {body}")
        self.status_code = status_code
        self.body = body


class OIDCResponseError(OIDCError):
    """Raised when the token endpoint returns an unusable body."""


def _with_audience(request_url: str, audience: str) -> str:
    if not audience:
        return request_url
    parts = urlsplit(request_url)
    query = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k != "audience"]
    query.append(("audience", audience))
    return urlunsplit(parts._replace(query=urlencode(query)))


def _read_body(response: requests.Response) -> str:
    chunks: list[bytes] = []
    remaining = MAX_BODY_BYTES
    for chunk in response.iter_content(chunk_size=8192):
        if not chunk:
            continue
        chunks.append(chunk[:remaining])
        remaining -= len(chunks[-1])
        if remaining <= 0:
            break
    return b"".join(chunks).decode("utf-8", errors="replace").strip()


def fetch_id_token(
    session: requests.Session,
    request_url: str,
    request_token: str,
    audience: str = "",
    timeout: float = DEFAULT_TIMEOUT,
) -> str:
    """Request an ID token and return the ``value`` field of the response."""
    url = _with_audience(request_url, audience)
    try:
        response = session.get(
            url,
            headers={"Authorization": f"Bearer {request_token}"},
            timeout=timeout,
            stream=True,
        )
        try:
            body = _read_body(response)
        finally:
            response.close()
    except requests.RequestException as e:
        raise OIDCRequestError(f"failed to make HTTP request: {e}") from e

    if response.status_code != 200:
        raise OIDCStatusError(response.status_code, body)

    try:
        data = json.loads(body)
    except ValueError as e:
        raise OIDCResponseError(f"failed to process response as JSON: {e}") from e

    value = data.get("value") if isinstance(data, dict) else None
    if not isinstance(value, str):
        raise OIDCResponseError("response JSON does not contain a string 'value' field")
    return value
