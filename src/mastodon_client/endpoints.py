"""Endpoint construction for the subset of the Mastodon API the client uses.

All helpers here are pure: they validate their input against a
:class:`~mastodon_client.schema.Shape` and return a path or URL string.
Relative paths (``timelines/home``) are resolved against
``<instance>/api/v<version>/`` by the dispatcher; OAuth and streaming
endpoints are returned as absolute URLs.
"""

from __future__ import annotations

from typing import Any, Final
from urllib.parse import urlencode, urlparse

from mastodon_client.errors import ValidationError
from mastodon_client.models import StreamTarget
from mastodon_client.schema import Field, Shape, is_bool, is_non_empty_str, one_of

DEFAULT_INSTANCE: Final[str] = "https://mastodon.social"
DEFAULT_API_VERSION: Final[int] = 1
OOB_REDIRECT_URI: Final[str] = "urn:ietf:wg:oauth:2.0:oob"

TIMELINE_NAMES: Final[tuple[str, ...]] = ("home", "public")
STREAM_NAMES: Final[tuple[str, ...]] = ("user", "public")

authorize_path = "/oauth/authorize"  # GET response_type=code, client_id, redirect_uri, scope
token_path = "/oauth/token"  # POST authorization_code | password
apps_path = "apps"  # POST client_name, redirect_uris, scopes

TIMELINE_SHAPE: Final = Shape(
    Field(
        "name",
        one_of(*TIMELINE_NAMES),
        default="home",
        message="unknown timeline name",
    ),
    Field("local", is_bool, default=False),
    Field("tag", is_non_empty_str),
)

STREAM_SHAPE: Final = Shape(
    Field(
        "name",
        one_of(*STREAM_NAMES),
        default="user",
        message="unknown stream name",
    ),
    Field("tag", is_non_empty_str),
)


def normalize_instance(instance: str) -> str:
    """Return the HTTP origin for *instance* (``mastodon.social`` → ``https://mastodon.social``)."""
    if not instance or not instance.strip():
        raise ValidationError("instance", "is required")
    instance = instance.strip().rstrip("/")
    if "://" not in instance:
        instance = f"https://{instance}"
    parsed = urlparse(instance)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValidationError("instance", f"not an http(s) URI: {instance!r}")
    return instance


def api_base(instance: str, api_version: int = DEFAULT_API_VERSION) -> str:
    return f"{normalize_instance(instance)}/api/v{api_version}"


def token_url(instance: str) -> str:
    return f"{normalize_instance(instance)}{token_path}"


def apps_url(instance: str, api_version: int = DEFAULT_API_VERSION) -> str:
    return f"{api_base(instance, api_version)}/{apps_path}"


def authorize_url(
    instance: str,
    *,
    client_id: str,
    redirect_uri: str,
    scopes: str,
) -> str:
    query = urlencode(
        {
            "client_id": client_id,
            "response_type": "code",
            "redirect_uri": redirect_uri,
            "scope": scopes,
        }
    )
    return f"{normalize_instance(instance)}{authorize_path}?{query}"


def timeline_path(*args: Any, **params: Any) -> str:
    """Return the relative path of a timeline.

    >>> timeline_path(name="public", local=True)
    'timelines/public?local'
    >>> timeline_path(tag="perl")
    'timelines/tag/perl'
    """
    p = TIMELINE_SHAPE.validate(args, params)
    if p["tag"] is not None:
        path = f"timelines/tag/{p['tag']}"
    else:
        path = f"timelines/{p['name']}"
    if p["local"]:
        path += "?local"
    return path


def stream_target(*args: Any, **params: Any) -> StreamTarget:
    p = STREAM_SHAPE.validate(args, params)
    return StreamTarget(name=p["name"], tag=p["tag"])


def stream_url(
    instance: str,
    *args: Any,
    api_version: int = DEFAULT_API_VERSION,
    **params: Any,
) -> str:
    """Return the absolute URL of a streaming endpoint.

    >>> stream_url("https://example.social", tag="news")
    'https://example.social/api/v1/streaming/hashtag?news'
    """
    target = stream_target(*args, **params)
    suffix = f"hashtag?{target.tag}" if target.tag else target.name
    return f"{api_base(instance, api_version)}/streaming/{suffix}"
