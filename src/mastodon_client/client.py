"""MastodonClient – application registration, authorization and requests.

Every public operation follows the same pipeline:

1. Validate arguments against a declarative :class:`~mastodon_client.schema.Shape`.
2. Consult (and, for ``register``/``authorize`` only, update) the
   :class:`~mastodon_client.models.ClientSession`.
3. Build the endpoint with :mod:`mastodon_client.endpoints`.
4. Call the :class:`~mastodon_client.transport.Dispatcher`.
5. Coerce the JSON result with :func:`~mastodon_client.entities.coerce`.

Session lifecycle: ``Unregistered → Registered → Authorized``.  Repeated
``register``/``authorize`` calls are logged no-ops; session fields are only
written once the whole response has been validated.  The client is not
thread-safe; concurrent ``register``/``authorize`` calls on the same client
must be serialised by the caller.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Final, Mapping

from mastodon_client import endpoints
from mastodon_client.clock import Clock, default_clock, parse_timestamp
from mastodon_client.config import ClientConfig
from mastodon_client.endpoints import DEFAULT_API_VERSION, DEFAULT_INSTANCE, OOB_REDIRECT_URI
from mastodon_client.entities import (
    Account,
    Application,
    ClientBound,
    Error,
    Status,
    coerce,
)
from mastodon_client.errors import RemoteError, ScopeMismatchError, StateError, ValidationError
from mastodon_client.listener import Listener
from mastodon_client.log_utils import get_client_logger, mask_sensitive
from mastodon_client.models import DEFAULT_SCOPES, ClientSession, SessionState, scope_string
from mastodon_client.schema import (
    Field,
    Shape,
    is_image,
    is_non_empty_str,
    is_str,
    is_str_list,
    is_uri,
)
from mastodon_client.store import SessionStore
from mastodon_client.transport import Dispatcher, RequestsDispatcher

ListenerFactory = Callable[..., Any]


def _is_id(value: Any) -> bool:
    return is_non_empty_str(value) or (isinstance(value, int) and not isinstance(value, bool))


# --------------------------------------------------------------------------- #
# Operation shapes                                                            #
# --------------------------------------------------------------------------- #
# register: defaults for instance/redirect_uris/scopes are supplied per call
REGISTER_SHAPE: Final = Shape(
    Field("instance", is_uri),
    Field("redirect_uris", is_str),
    Field("scopes", is_str_list),
    Field("website", is_str, default=""),
)

AUTHORIZE_SHAPE: Final = Shape(
    Field("access_code", is_str, default=""),
    Field("username", is_str, default=""),
    Field("password", is_str, default=""),
)

AUTHORIZATION_URL_SHAPE: Final = Shape(
    Field("scopes", is_str_list),
    Field("redirect_uri", is_non_empty_str),
)

ACCOUNT_SHAPE: Final = Shape(
    Field("id", _is_id, default="verify_credentials"),
)

UPDATE_ACCOUNT_SHAPE: Final = Shape(
    Field("display_name", is_str),
    Field("note", is_str),
    Field("avatar", is_image),
    Field("header", is_image),
)

PATH_SHAPE: Final = Shape(Field("path", is_non_empty_str, required=True))

SESSION_SHAPE: Final = Shape(
    Field("name", is_non_empty_str, required=True),
    Field("scopes", is_str_list, default=lambda: list(DEFAULT_SCOPES)),
    Field("client_id", is_non_empty_str),
    Field("client_secret", is_non_empty_str),
    Field("access_token", is_non_empty_str),
)


# --------------------------------------------------------------------------- #
# Public client                                                               #
# --------------------------------------------------------------------------- #
class MastodonClient:
    """Talk to one Mastodon instance as one registered application."""

    def __init__(
        self,
        name: str | None = None,
        *,
        instance: str = DEFAULT_INSTANCE,
        api_version: int = DEFAULT_API_VERSION,
        redirect_uri: str = OOB_REDIRECT_URI,
        scopes: list[str] | tuple[str, ...] | None = None,
        client_id: str | None = None,
        client_secret: str | None = None,
        access_token: str | None = None,
        authorized_at: Any = None,
        session: ClientSession | None = None,
        dispatcher: Dispatcher | None = None,
        listener_factory: ListenerFactory = Listener,
        logger: logging.Logger | logging.LoggerAdapter | None = None,
        clock: Clock = default_clock,
    ) -> None:
        self.instance: str = endpoints.normalize_instance(instance)
        self.api_version = api_version
        self.redirect_uri = redirect_uri
        self.clock = clock

        if session is not None:
            overlapping = {
                "name": name,
                "scopes": scopes,
                "client_id": client_id,
                "client_secret": client_secret,
                "access_token": access_token,
                "authorized_at": authorized_at,
            }
            for key, value in overlapping.items():
                if value is not None:
                    raise ValidationError(key, "cannot be combined with session")
        else:
            p = SESSION_SHAPE.validate(
                kwargs={
                    "name": name,
                    "scopes": list(scopes) if scopes is not None else None,
                    "client_id": client_id,
                    "client_secret": client_secret,
                    "access_token": access_token,
                }
            )
            if p["access_token"] and authorized_at is None:
                # resumed token without a recorded grant time
                authorized_at = clock()
            session = ClientSession(
                name=p["name"],
                scopes=p["scopes"],
                client_id=p["client_id"],
                client_secret=p["client_secret"],
                access_token=p["access_token"],
                authorized_at=parse_timestamp(authorized_at) if p["access_token"] else None,
            )
        self.session: ClientSession = session
        self.application: Application | None = None

        self.log = logger or get_client_logger(
            base_logger_name="mastodon-client.client",
            instance=self.instance,
            client_name=self.session.name,
        )
        self.dispatcher: Dispatcher = dispatcher or RequestsDispatcher(
            self.instance,
            api_version=api_version,
            token_provider=lambda: self.session.access_token,
        )
        self.listener_factory = listener_factory

    @classmethod
    def from_config(cls, config: ClientConfig, **collaborators: Any) -> "MastodonClient":
        """Build a client from a :class:`~mastodon_client.config.ClientConfig`."""
        return cls(
            config.name,
            instance=config.instance,
            api_version=config.api_version,
            redirect_uri=config.redirect_uri,
            scopes=list(config.scopes),
            client_id=config.client_id,
            client_secret=config.client_secret,
            access_token=config.access_token,
            **collaborators,
        )

    @classmethod
    def resume(
        cls,
        store: SessionStore,
        name: str,
        *,
        instance: str = DEFAULT_INSTANCE,
        **kwargs: Any,
    ) -> "MastodonClient":
        """Return a client using the session persisted in *store*, if any."""
        session = store.load_session(instance, name)
        if session is None:
            return cls(name, instance=instance, **kwargs)
        return cls(instance=instance, session=session, **kwargs)

    def persist(self, store: SessionStore) -> None:
        store.save_session(self.instance, self.session)

    def __repr__(self) -> str:
        return (
            f"MastodonClient(name={self.name!r}, instance={self.instance!r}, "
            f"state={self.state.value})"
        )

    # ------------------------------------------------------------------ #
    # Session accessors                                                  #
    # ------------------------------------------------------------------ #
    @property
    def name(self) -> str:
        return self.session.name

    @property
    def scopes(self) -> list[str]:
        return list(self.session.scopes)

    @property
    def client_id(self) -> str | None:
        return self.session.client_id

    @property
    def client_secret(self) -> str | None:
        return self.session.client_secret

    @property
    def access_token(self) -> str | None:
        return self.session.access_token

    @property
    def authorized_at(self):
        return self.session.authorized_at

    @property
    def state(self) -> SessionState:
        return self.session.state

    # ------------------------------------------------------------------ #
    # Registration & authorization                                       #
    # ------------------------------------------------------------------ #
    def register(self, **opts: Any) -> "MastodonClient":
        """Register this application on the instance.

        Accepted options: ``instance``, ``redirect_uris``, ``scopes`` and
        ``website``; the first three default to the client's settings.
        A no-op when the session already holds client credentials.
        """
        if self.session.is_registered:
            self.log.warning("Client is already registered")
            return self

        p = REGISTER_SHAPE.validate(
            kwargs=opts,
            defaults={
                "instance": self.instance,
                "redirect_uris": self.redirect_uri,
                "scopes": list(self.session.scopes),
            },
        )
        if endpoints.normalize_instance(p["instance"]) != self.instance:
            raise ValidationError("instance", "must match the client's instance")

        body: dict[str, Any] = {
            "client_name": self.name,
            "redirect_uris": p["redirect_uris"],
            "scopes": scope_string(p["scopes"]),
        }
        if p["website"]:
            body["website"] = p["website"]

        raw = self.dispatcher.post(
            endpoints.apps_url(self.instance, self.api_version), body
        )
        app = coerce(raw, Application, self)
        if isinstance(app, Error):
            self.log.warning(
                "Could not register with %s: %s",
                self.instance,
                app.error_description or app.error,
            )
            return self
        if not app.client_id or not app.client_secret:
            self.log.warning("Registration response from %s lacks credentials", self.instance)
            return self

        self.session.mark_registered(app.client_id, app.client_secret)
        self.application = app
        self.log.info(
            "Registered %s as client_id=%s",
            self.name,
            mask_sensitive(app.client_id, 6),
        )
        return self

    def authorization_url(self, **opts: Any) -> str:
        """Return the page where a user grants this application access.

        The code shown there is passed to :meth:`authorize` as
        ``access_code``.
        """
        if not self.session.is_registered:
            self.log.error("Cannot build authorization URL without client credentials")
            raise StateError("Cannot build authorization URL without client_id and client_secret")
        p = AUTHORIZATION_URL_SHAPE.validate(
            kwargs=opts,
            defaults={"scopes": list(self.session.scopes), "redirect_uri": self.redirect_uri},
        )
        return endpoints.authorize_url(
            self.instance,
            client_id=self.session.client_id or "",
            redirect_uri=p["redirect_uri"],
            scopes=scope_string(p["scopes"]),
        )

    def authorize(self, **opts: Any) -> "MastodonClient":
        """Obtain an access token.

        With ``access_code`` the *authorization_code* grant is used,
        otherwise the *password* grant with ``username``/``password``.

        If the instance answers with an error body the session stays
        unauthorized and the error is only logged: check
        :attr:`access_token` afterwards.

        Raises
        ------
        StateError
            If the client has not been registered.
        ScopeMismatchError
            If the granted scopes differ from the requested ones; the
            returned token is discarded.
        """
        if not self.session.is_registered:
            self.log.error("Cannot authorize client without client_id and client_secret")
            raise StateError("Cannot authorize client without client_id and client_secret")

        if self.session.is_authorized:
            self.log.warning("Client is already authorized")
            return self

        p = AUTHORIZE_SHAPE.validate(kwargs=opts)

        data: dict[str, Any] = {
            "client_id": self.session.client_id,
            "client_secret": self.session.client_secret,
            "redirect_uri": self.redirect_uri,
        }
        if p["access_code"]:
            data["grant_type"] = "authorization_code"
            data["code"] = p["access_code"]
        else:
            data["grant_type"] = "password"
            data["username"] = p["username"]
            data["password"] = p["password"]

        response = self.dispatcher.post(endpoints.token_url(self.instance), data)

        if isinstance(response, Mapping) and "error" in response:
            self.log.warning(
                "Authorization failed: %s",
                response.get("error_description") or response.get("error"),
            )
            return self
        if not isinstance(response, Mapping) or not response.get("access_token"):
            raise RemoteError("invalid_token_response", "Token response missing access_token")

        granted = scope_string(response.get("scope") or "")
        requested = self.session.requested_scopes
        if granted != requested:
            self.log.error(
                "Granted and requested scopes do not match (requested=%r, granted=%r)",
                requested,
                granted,
            )
            raise ScopeMismatchError(requested=requested, granted=granted)

        created_at = response.get("created_at")
        try:
            authorized_at = parse_timestamp(created_at if created_at is not None else self.clock())
        except ValueError as exc:
            raise RemoteError(
                "invalid_token_response", f"Unreadable created_at {created_at!r}"
            ) from exc
        self.session.mark_authorized(response["access_token"], authorized_at)
        self.log.info(
            "Authorized %s via %s grant (token=%s)",
            self.name,
            data["grant_type"],
            mask_sensitive(response["access_token"]),
        )
        return self

    # ------------------------------------------------------------------ #
    # Timelines & streaming                                              #
    # ------------------------------------------------------------------ #
    def timeline(self, *args: Any, **opts: Any) -> "list[Status] | Error":
        """Fetch the ``home`` or ``public`` timeline, or a hashtag timeline."""
        return self.get(endpoints.timeline_path(*args, **opts), entity=Status)

    def stream(self, *args: Any, **opts: Any) -> Any:
        """Return a listener for the ``user`` or ``public`` stream, or a hashtag.

        The listener is not started; subscribe with ``on`` then call ``start``.
        """
        url = endpoints.stream_url(self.instance, *args, api_version=self.api_version, **opts)
        return self.listener_factory(url=url, access_token=self.session.access_token)

    # ------------------------------------------------------------------ #
    # Accounts                                                           #
    # ------------------------------------------------------------------ #
    def get_account(self, *args: Any, **opts: Any) -> "Account | Error":
        """Fetch an account by id; the authenticated one by default."""
        p = ACCOUNT_SHAPE.validate(args, opts)
        return self.get(f"accounts/{p['id']}", entity=Account)

    def update_account(self, **opts: Any) -> "Account | Error":
        """Update the authenticated account's profile."""
        p = UPDATE_ACCOUNT_SHAPE.validate(kwargs=opts)
        data = {k: p[k] for k in ("display_name", "note") if p[k] is not None}
        files = {k: p[k] for k in ("avatar", "header") if p[k] is not None}
        return self.patch("accounts/update_credentials", data, files=files or None, entity=Account)

    # ------------------------------------------------------------------ #
    # Generic requests                                                   #
    # ------------------------------------------------------------------ #
    def get(
        self,
        path: str,
        params: Mapping[str, Any] | None = None,
        *,
        entity: type[ClientBound] | None = None,
    ) -> Any:
        PATH_SHAPE.validate((path,))
        return coerce(self.dispatcher.get(path, params), entity, self)

    def post(
        self,
        path: str,
        data: Mapping[str, Any] | None = None,
        *,
        files: Mapping[str, Any] | None = None,
        entity: type[ClientBound] | None = None,
    ) -> Any:
        PATH_SHAPE.validate((path,))
        return coerce(self.dispatcher.post(path, data, files), entity, self)

    def patch(
        self,
        path: str,
        data: Mapping[str, Any] | None = None,
        *,
        files: Mapping[str, Any] | None = None,
        entity: type[ClientBound] | None = None,
    ) -> Any:
        PATH_SHAPE.validate((path,))
        return coerce(self.dispatcher.patch(path, data, files), entity, self)

    def delete(self, path: str, *, entity: type[ClientBound] | None = None) -> Any:
        PATH_SHAPE.validate((path,))
        return coerce(self.dispatcher.delete(path), entity, self)
