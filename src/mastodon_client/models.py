"""Session records used by the client's authorization logic."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Final

from mastodon_client.clock import parse_timestamp
from mastodon_client.errors import StateError

DEFAULT_SCOPES: Final[tuple[str, ...]] = ("read", "write", "follow")


class SessionState(str, enum.Enum):
    UNREGISTERED = "unregistered"
    REGISTERED = "registered"
    AUTHORIZED = "authorized"


def scope_string(scopes: Any) -> str:
    """Return *scopes* sorted and space-joined (order-insensitive form)."""
    if isinstance(scopes, str):
        scopes = scopes.split()
    return " ".join(sorted(scopes))


@dataclass(slots=True)
class ClientSession:
    """OAuth credentials of one application on one instance.

    ``client_id``/``client_secret`` are filled once by registration and
    ``access_token``/``authorized_at`` once by authorization.  The two
    ``mark_*`` methods are the only writers; they refuse to overwrite.

    Not thread-safe: callers must serialise ``register``/``authorize``.
    """

    name: str
    scopes: list[str] = field(default_factory=lambda: list(DEFAULT_SCOPES))
    client_id: str | None = None
    client_secret: str | None = None
    access_token: str | None = None
    authorized_at: datetime | None = None

    def __post_init__(self) -> None:
        if (self.access_token is None) != (self.authorized_at is None):
            raise StateError("access_token and authorized_at must be set together")

    @property
    def state(self) -> SessionState:
        if self.access_token:
            return SessionState.AUTHORIZED
        if self.client_id and self.client_secret:
            return SessionState.REGISTERED
        return SessionState.UNREGISTERED

    @property
    def is_registered(self) -> bool:
        return bool(self.client_id and self.client_secret)

    @property
    def is_authorized(self) -> bool:
        return self.state is SessionState.AUTHORIZED

    @property
    def requested_scopes(self) -> str:
        return scope_string(self.scopes)

    def mark_registered(self, client_id: str, client_secret: str) -> None:
        if self.is_registered:
            raise StateError("session is already registered")
        if not client_id or not client_secret:
            raise StateError("registration returned empty credentials")
        self.client_id = client_id
        self.client_secret = client_secret

    def mark_authorized(self, access_token: str, authorized_at: datetime) -> None:
        if self.access_token:
            raise StateError("session is already authorized")
        if not access_token or authorized_at is None:
            raise StateError("authorization requires a token and a timestamp")
        self.access_token = access_token
        self.authorized_at = authorized_at

    # ---------------- persistence helpers -------------------------------- #
    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "scopes": list(self.scopes),
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "access_token": self.access_token,
            "authorized_at": self.authorized_at.isoformat() if self.authorized_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ClientSession":
        return cls(
            name=data["name"],
            scopes=list(data.get("scopes") or DEFAULT_SCOPES),
            client_id=data.get("client_id"),
            client_secret=data.get("client_secret"),
            access_token=data.get("access_token"),
            authorized_at=parse_timestamp(data.get("authorized_at")),
        )


@dataclass(frozen=True, slots=True)
class StreamTarget:
    """Selection of a streaming endpoint: a named stream *or* a hashtag."""

    name: str = "user"
    tag: str | None = None
