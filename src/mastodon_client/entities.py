"""Typed, immutable entities coerced from Mastodon JSON payloads.

Every entity is a frozen dataclass composed with :class:`ClientBound`, a
mixin providing a *weak* back-reference to the client that produced it.
An entity never keeps its client alive; once the client is garbage
collected the entity stays readable but its follow-up helpers raise
:class:`~mastodon_client.errors.StateError`.

:func:`coerce` is the single entry point used by the client.  Any payload
carrying an ``error`` key becomes an :class:`Error` regardless of the
requested target, so failures can be detected with ``isinstance``.
"""

from __future__ import annotations

import weakref
from dataclasses import dataclass, field, fields
from datetime import datetime
from typing import TYPE_CHECKING, Any, ClassVar, TypeVar

from mastodon_client.clock import parse_timestamp
from mastodon_client.errors import RemoteError, StateError

if TYPE_CHECKING:  # pragma: no cover
    from mastodon_client.client import MastodonClient  # circular – only for typing

E = TypeVar("E", bound="ClientBound")


@dataclass(frozen=True, slots=True)
class ClientBound:
    """Mixin holding the non-owning reference to the originating client."""

    _client_ref: "weakref.ReferenceType[MastodonClient] | None" = field(
        default=None, kw_only=True, repr=False, compare=False
    )

    # nested field name -> entity type name
    _nested: ClassVar[dict[str, str]] = {}
    _timestamps: ClassVar[tuple[str, ...]] = ()

    @property
    def client(self) -> "MastodonClient | None":
        return self._client_ref() if self._client_ref is not None else None

    def _require_client(self) -> "MastodonClient":
        client = self.client
        if client is None:
            raise StateError(f"{type(self).__name__} is detached from its client")
        return client

    def _require_id(self) -> str:
        ident = getattr(self, "id", None)
        if not ident:
            raise StateError(f"{type(self).__name__} has no id")
        return ident

    @classmethod
    def from_payload(cls: type[E], payload: dict[str, Any], client: Any = None) -> E:
        """Build an instance from *payload*, ignoring unknown keys."""
        known = {f.name for f in fields(cls) if not f.name.startswith("_")}
        values: dict[str, Any] = {}
        for key, value in payload.items():
            if key not in known:
                continue
            if key in cls._nested and value is not None:
                value = coerce(value, ENTITY_TYPES[cls._nested[key]], client)
            elif key in cls._timestamps:
                value = parse_timestamp(value)
            values[key] = value
        ref = weakref.ref(client) if client is not None else None
        return cls(**values, _client_ref=ref)


@dataclass(frozen=True, slots=True)
class Error(ClientBound):
    error: str
    error_description: str | None = None

    def to_exception(self) -> RemoteError:
        return RemoteError(self.error, self.error_description)


@dataclass(frozen=True, slots=True)
class Application(ClientBound):
    name: str | None = None
    website: str | None = None
    id: str | None = None
    redirect_uri: str | None = None
    client_id: str | None = None
    client_secret: str | None = field(default=None, repr=False)
    vapid_key: str | None = None


@dataclass(frozen=True, slots=True)
class Account(ClientBound):
    id: str | None = None
    username: str | None = None
    acct: str | None = None
    display_name: str | None = None
    locked: bool | None = None
    bot: bool | None = None
    created_at: datetime | None = None
    note: str | None = None
    url: str | None = None
    avatar: str | None = None
    avatar_static: str | None = None
    header: str | None = None
    header_static: str | None = None
    followers_count: int | None = None
    following_count: int | None = None
    statuses_count: int | None = None

    _timestamps: ClassVar[tuple[str, ...]] = ("created_at",)

    def refresh(self) -> "Account | Error":
        """Fetch this account again from the instance."""
        return self._require_client().get_account(self._require_id())

    def statuses(self, **params: Any) -> "list[Status] | Error":
        """Fetch the account's statuses (``max_id``/``since_id`` page through)."""
        ident = self._require_id()
        return self._require_client().get(
            f"accounts/{ident}/statuses", params=params or None, entity=Status
        )


@dataclass(frozen=True, slots=True)
class Mention(ClientBound):
    id: str | None = None
    username: str | None = None
    acct: str | None = None
    url: str | None = None


@dataclass(frozen=True, slots=True)
class Tag(ClientBound):
    name: str | None = None
    url: str | None = None


@dataclass(frozen=True, slots=True)
class Attachment(ClientBound):
    id: str | None = None
    type: str | None = None
    url: str | None = None
    remote_url: str | None = None
    preview_url: str | None = None
    text_url: str | None = None
    description: str | None = None


@dataclass(frozen=True, slots=True)
class Status(ClientBound):
    id: str | None = None
    uri: str | None = None
    url: str | None = None
    account: Account | None = None
    in_reply_to_id: str | None = None
    in_reply_to_account_id: str | None = None
    reblog: "Status | None" = None
    content: str | None = None
    created_at: datetime | None = None
    reblogs_count: int | None = None
    favourites_count: int | None = None
    replies_count: int | None = None
    reblogged: bool | None = None
    favourited: bool | None = None
    sensitive: bool | None = None
    spoiler_text: str | None = None
    visibility: str | None = None
    language: str | None = None
    application: Application | None = None
    media_attachments: list[Attachment] = field(default_factory=list)
    mentions: list[Mention] = field(default_factory=list)
    tags: list[Tag] = field(default_factory=list)

    _nested: ClassVar[dict[str, str]] = {
        "account": "Account",
        "reblog": "Status",
        "application": "Application",
        "media_attachments": "Attachment",
        "mentions": "Mention",
        "tags": "Tag",
    }
    _timestamps: ClassVar[tuple[str, ...]] = ("created_at",)

    def context(self) -> "dict[str, list[Status]] | Error":
        """Return the ``ancestors`` and ``descendants`` of this status."""
        ident = self._require_id()
        client = self._require_client()
        raw = client.get(f"statuses/{ident}/context")
        if isinstance(raw, Error):
            return raw
        return {
            key: coerce(raw.get(key) or [], Status, client)
            for key in ("ancestors", "descendants")
        }


ENTITY_TYPES: dict[str, type[ClientBound]] = {
    cls.__name__: cls
    for cls in (Error, Application, Account, Mention, Tag, Attachment, Status)
}


def is_error_payload(raw: Any) -> bool:
    return isinstance(raw, dict) and "error" in raw


def coerce(raw: Any, entity: type[ClientBound] | None, client: Any = None) -> Any:
    """Coerce a decoded JSON value into *entity* instances.

    Parameters
    ----------
    raw:
        A JSON object, a JSON array of objects, or any other decoded value.
    entity:
        Target entity type; ``None`` returns *raw* unchanged unless it is an
        error payload.
    client:
        Client to reference weakly from every produced entity.

    Raises
    ------
    RemoteError
        If *raw* is neither an object nor an array while *entity* is set.
    """
    if is_error_payload(raw):
        return Error.from_payload(raw, client)
    if entity is None:
        return raw
    if isinstance(raw, list):
        return [coerce(item, entity, client) for item in raw]
    if isinstance(raw, dict):
        return entity.from_payload(raw, client)
    raise RemoteError(
        "unexpected_payload",
        f"cannot coerce {type(raw).__name__} into {entity.__name__}",
    )


def raise_for_error(value: Any) -> Any:
    """Return *value* unchanged, raising :class:`RemoteError` for :class:`Error`."""
    if isinstance(value, Error):
        raise value.to_exception()
    return value
