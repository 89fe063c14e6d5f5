"""Client library for Mastodon instances.

Sub-modules
-----------
client
    :class:`MastodonClient` – registration, authorization and requests.
schema
    Declarative argument shapes and the generic validator.
endpoints
    Pure builders for timeline paths, streaming and OAuth URLs.
entities
    Immutable entities coerced from JSON, weakly bound to their client.
models
    :class:`ClientSession` and its state machine.
transport
    Dispatcher contract and the ``requests`` implementation.
listener
    Server-sent-event streaming listener.
store
    On-disk session persistence.
config
    Environment-driven configuration.
clock
    Test-friendly time abstraction.
errors
    Exception types.
log_utils
    Logging helpers that never emit secrets.

All public objects are re-exported here for convenience.
"""

from __future__ import annotations

from .client import MastodonClient  # noqa: F401
from .clock import Clock, default_clock, parse_timestamp  # noqa: F401
from .config import ClientConfig  # noqa: F401
from .endpoints import stream_url, timeline_path  # noqa: F401
from .entities import (  # noqa: F401
    Account,
    Application,
    Attachment,
    ClientBound,
    Error,
    Mention,
    Status,
    Tag,
    coerce,
    raise_for_error,
)
from .errors import (  # noqa: F401
    MastodonError,
    RemoteError,
    ScopeMismatchError,
    StateError,
    ValidationError,
)
from .listener import Listener  # noqa: F401
from .log_utils import get_client_logger, mask_sensitive  # noqa: F401
from .models import ClientSession, SessionState, StreamTarget  # noqa: F401
from .schema import Field, Shape  # noqa: F401
from .store import DiskSessionStore, SessionStore  # noqa: F401
from .transport import Dispatcher, RequestsDispatcher  # noqa: F401

__version__ = "0.1.0"

__all__ = [
    # client
    "MastodonClient",
    # clock
    "Clock",
    "default_clock",
    "parse_timestamp",
    # config
    "ClientConfig",
    # endpoints
    "stream_url",
    "timeline_path",
    # entities
    "Account",
    "Application",
    "Attachment",
    "ClientBound",
    "Error",
    "Mention",
    "Status",
    "Tag",
    "coerce",
    "raise_for_error",
    # errors
    "MastodonError",
    "RemoteError",
    "ScopeMismatchError",
    "StateError",
    "ValidationError",
    # streaming
    "Listener",
    # logging helpers
    "get_client_logger",
    "mask_sensitive",
    # models
    "ClientSession",
    "SessionState",
    "StreamTarget",
    # schema
    "Field",
    "Shape",
    # persistence
    "DiskSessionStore",
    "SessionStore",
    # transport
    "Dispatcher",
    "RequestsDispatcher",
]
