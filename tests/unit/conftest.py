"""Shared fixtures for unit tests: a recording, scriptable dispatcher."""

from __future__ import annotations

from typing import Any

import pytest

from mastodon_client.client import MastodonClient


class FakeDispatcher:
    """Dispatcher double returning queued payloads and recording calls."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, str, Any]] = []
        self.responses: list[Any] = []

    def queue(self, *payloads: Any) -> "FakeDispatcher":
        self.responses.extend(payloads)
        return self

    def _next(self, method: str, path: str, body: Any) -> Any:
        self.calls.append((method, path, body))
        if not self.responses:
            raise AssertionError(f"unexpected {method} {path}")
        return self.responses.pop(0)

    def get(self, path, params=None):  # noqa: ANN001
        return self._next("GET", path, params)

    def post(self, path, data=None, files=None):  # noqa: ANN001
        return self._next("POST", path, {"data": data, "files": files})

    def patch(self, path, data=None, files=None):  # noqa: ANN001
        return self._next("PATCH", path, {"data": data, "files": files})

    def delete(self, path):  # noqa: ANN001
        return self._next("DELETE", path, None)


class FakeListener:
    def __init__(self, *, url: str, access_token: str | None) -> None:
        self.url = url
        self.access_token = access_token


@pytest.fixture()
def dispatcher() -> FakeDispatcher:
    return FakeDispatcher()


@pytest.fixture()
def client(dispatcher: FakeDispatcher) -> MastodonClient:
    """Unregistered client on a test instance with the default scopes."""
    return MastodonClient(
        "TestBot",
        instance="social.example.test",
        dispatcher=dispatcher,
        listener_factory=FakeListener,
        clock=lambda: 1_500_000_000.0,
    )


@pytest.fixture()
def registered_client(dispatcher: FakeDispatcher) -> MastodonClient:
    return MastodonClient(
        "TestBot",
        instance="social.example.test",
        client_id="cid",
        client_secret="csecret",
        dispatcher=dispatcher,
        listener_factory=FakeListener,
        clock=lambda: 1_500_000_000.0,
    )
