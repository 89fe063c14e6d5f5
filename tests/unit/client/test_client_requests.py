"""Unit tests for timeline, streaming, account and generic request helpers."""

from __future__ import annotations

import pytest

from mastodon_client.client import MastodonClient
from mastodon_client.entities import Account, Error, Status
from mastodon_client.entities import coerce
from mastodon_client.errors import StateError, ValidationError

STATUS = {
    "id": "1",
    "content": "<p>hello</p>",
    "created_at": "2017-04-12T10:00:00.000Z",
    "account": {"id": "7", "username": "alice", "acct": "alice"},
}


def test_timeline_defaults_to_home(client: MastodonClient, dispatcher) -> None:
    dispatcher.queue([STATUS])
    statuses = client.timeline()

    assert dispatcher.calls[0][:2] == ("GET", "timelines/home")
    assert isinstance(statuses, list) and isinstance(statuses[0], Status)
    assert statuses[0].account.username == "alice"


@pytest.mark.parametrize(
    "kwargs, path",
    [
        ({"name": "public", "local": True}, "timelines/public?local"),
        ({"tag": "perl"}, "timelines/tag/perl"),
        ({"name": "public"}, "timelines/public"),
    ],
)
def test_timeline_paths(client: MastodonClient, dispatcher, kwargs, path) -> None:
    dispatcher.queue([])
    client.timeline(**kwargs)
    assert dispatcher.calls[0][1] == path


def test_unknown_timeline_never_dispatches(client: MastodonClient, dispatcher) -> None:
    with pytest.raises(ValidationError, match="unknown timeline name"):
        client.timeline(name="homepage")
    assert dispatcher.calls == []


def test_timeline_error_body_becomes_error(client: MastodonClient, dispatcher) -> None:
    dispatcher.queue({"error": "This method requires an authenticated user"})
    result = client.timeline()
    assert isinstance(result, Error)
    assert result.error == "This method requires an authenticated user"


def test_stream_builds_listener(registered_client: MastodonClient) -> None:
    listener = registered_client.stream("public")
    assert listener.url == "https://social.example.test/api/v1/streaming/public"

    listener = registered_client.stream(tag="news")
    assert listener.url == "https://social.example.test/api/v1/streaming/hashtag?news"

    listener = registered_client.stream()
    assert listener.url.endswith("/streaming/user")


def test_stream_hands_over_token(dispatcher) -> None:
    c = MastodonClient(
        "TestBot",
        instance="social.example.test",
        client_id="cid",
        client_secret="cs",
        access_token="tok",
        dispatcher=dispatcher,
        listener_factory=lambda **kw: kw,
    )
    assert c.stream() == {
        "url": "https://social.example.test/api/v1/streaming/user",
        "access_token": "tok",
    }


def test_unknown_stream_rejected(client: MastodonClient) -> None:
    with pytest.raises(ValidationError, match="unknown stream name"):
        client.stream(name="home")


def test_get_account_defaults_to_verify_credentials(client: MastodonClient, dispatcher) -> None:
    dispatcher.queue({"id": "7", "username": "alice"}, {"id": "9", "username": "bob"})

    me = client.get_account()
    other = client.get_account("9")

    assert [c[1] for c in dispatcher.calls] == ["accounts/verify_credentials", "accounts/9"]
    assert isinstance(me, Account) and me.username == "alice"
    assert other.id == "9"


def test_update_account_sends_fields_and_files(client: MastodonClient, dispatcher) -> None:
    dispatcher.queue({"id": "7", "display_name": "Alice"})

    acct = client.update_account(display_name="Alice", avatar=b"\x89PNG")

    method, path, body = dispatcher.calls[0]
    assert (method, path) == ("PATCH", "accounts/update_credentials")
    assert body["data"] == {"display_name": "Alice"}
    assert body["files"] == {"avatar": b"\x89PNG"}
    assert acct.display_name == "Alice"


def test_update_account_rejects_wrong_types(client: MastodonClient, dispatcher) -> None:
    with pytest.raises(ValidationError) as exc:
        client.update_account(note=12)
    assert exc.value.field == "note"
    assert dispatcher.calls == []


def test_generic_get_returns_raw_json(client: MastodonClient, dispatcher) -> None:
    dispatcher.queue({"uri": "social.example.test"})
    assert client.get("instance") == {"uri": "social.example.test"}


def test_generic_request_requires_path(client: MastodonClient) -> None:
    with pytest.raises(ValidationError):
        client.get("")


def test_entities_link_back_to_client(client: MastodonClient, dispatcher) -> None:
    dispatcher.queue({"id": "7", "username": "alice"}, [STATUS])

    me = client.get_account()
    statuses = me.statuses(limit=5)

    assert me.client is client
    assert dispatcher.calls[1] == ("GET", "accounts/7/statuses", {"limit": 5})
    assert statuses[0].id == "1"


def test_follow_ups_need_an_entity_id(client: MastodonClient, dispatcher) -> None:
    nameless = coerce({"username": "bob"}, Account, client)
    orphan = coerce({"content": "<p>hi</p>"}, Status, client)

    with pytest.raises(StateError, match="Account has no id"):
        nameless.refresh()
    with pytest.raises(StateError, match="Account has no id"):
        nameless.statuses()
    with pytest.raises(StateError, match="Status has no id"):
        orphan.context()
    assert dispatcher.calls == []


def test_refresh_refetches_by_id(client: MastodonClient, dispatcher) -> None:
    dispatcher.queue({"id": "9", "username": "bob", "display_name": "Bob"})
    bob = coerce({"id": "9", "username": "bob"}, Account, client)

    fresh = bob.refresh()

    assert dispatcher.calls[0][1] == "accounts/9"
    assert fresh.display_name == "Bob"
