"""Integration test: full register → authorize → timeline flow over the real
``requests`` dispatcher, with only ``requests.Session.request`` stubbed.

Marked ``ci_safe`` because no network traffic leaves the process.
"""

from __future__ import annotations

import json
from types import SimpleNamespace
from typing import Any
from unittest.mock import patch

import pytest
import requests

from mastodon_client import MastodonClient, SessionState, Status


def _response(status: int, body: Any) -> SimpleNamespace:
    content = json.dumps(body).encode()

    def raise_for_status() -> None:
        if status >= 400:
            raise requests.HTTPError(f"{status} error")

    return SimpleNamespace(
        status_code=status,
        content=content,
        json=lambda: json.loads(content),
        raise_for_status=raise_for_status,
    )


ROUTES: dict[tuple[str, str], SimpleNamespace] = {
    ("POST", "https://social.example.test/api/v1/apps"): _response(
        200, {"id": "1", "name": "FlowBot", "client_id": "cid", "client_secret": "cs"}
    ),
    ("POST", "https://social.example.test/oauth/token"): _response(
        200,
        {
            "access_token": "flow-token",
            "token_type": "Bearer",
            "scope": "read write follow",
            "created_at": 1_600_000_000,
        },
    ),
    ("GET", "https://social.example.test/api/v1/timelines/public?local"): _response(
        200,
        [{"id": "10", "content": "hi", "account": {"id": "2", "acct": "alice"}}],
    ),
    ("GET", "https://social.example.test/api/v1/accounts/verify_credentials"): _response(
        401, {"error": "The access token is invalid"}
    ),
}


@pytest.mark.integration
@pytest.mark.ci_safe
def test_register_authorize_and_read_timeline() -> None:
    sent: list[tuple[str, str, dict[str, Any]]] = []

    def fake_request(self, method: str, url: str, **kwargs: Any):  # noqa: ANN001
        sent.append((method, url, kwargs))
        return ROUTES[(method, url)]

    with patch.object(requests.Session, "request", fake_request):
        client = MastodonClient("FlowBot", instance="social.example.test")
        client.register().authorize(username="a@example.test", password="pw")

        assert client.state is SessionState.AUTHORIZED
        statuses = client.timeline(name="public", local=True)
        me = client.get_account()

    assert isinstance(statuses[0], Status) and statuses[0].account.acct == "alice"
    assert type(me).__name__ == "Error"

    # token endpoint saw no bearer, later calls carry the stored token
    assert "Authorization" not in sent[1][2]["headers"]
    assert sent[2][2]["headers"]["Authorization"] == "Bearer flow-token"
    assert sent[1][2]["json"]["grant_type"] == "password"
