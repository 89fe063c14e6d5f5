"""Request dispatcher: the thin seam between the client and HTTP.

:class:`Dispatcher` is the contract the client depends on;
:class:`RequestsDispatcher` is the default implementation built on a
``requests.Session``.

Error surfacing
---------------
* A response whose JSON body carries an ``error`` key is **returned** as
  data, whatever its status code, so that the client can coerce it into an
  :class:`~mastodon_client.entities.Error`.
* Any other non-2xx response raises ``requests.HTTPError``.
* Network failures raise the corresponding ``requests`` exception.

No retries are attempted here.
"""

from __future__ import annotations

import logging
from typing import IO, Any, Callable, Mapping, Protocol, Union, runtime_checkable

import requests

from mastodon_client.endpoints import DEFAULT_API_VERSION, api_base, normalize_instance

_LOG = logging.getLogger("mastodon-client.transport")

FileSpec = Union[str, bytes, IO[bytes]]
TokenProvider = Callable[[], "str | None"]

_DEFAULT_TIMEOUT = (5, 30)


@runtime_checkable
class Dispatcher(Protocol):
    """Minimal HTTP contract consumed by :class:`~mastodon_client.client.MastodonClient`."""

    def get(self, path: str, params: Mapping[str, Any] | None = None) -> Any: ...

    def post(
        self,
        path: str,
        data: Mapping[str, Any] | None = None,
        files: Mapping[str, FileSpec] | None = None,
    ) -> Any: ...

    def patch(
        self,
        path: str,
        data: Mapping[str, Any] | None = None,
        files: Mapping[str, FileSpec] | None = None,
    ) -> Any: ...

    def delete(self, path: str) -> Any: ...


class RequestsDispatcher(Dispatcher):
    """:class:`Dispatcher` backed by ``requests``."""

    def __init__(
        self,
        instance: str,
        *,
        api_version: int = DEFAULT_API_VERSION,
        token_provider: TokenProvider | None = None,
        session: requests.Session | None = None,
        timeout: float | tuple[float, float] = _DEFAULT_TIMEOUT,
        user_agent: str | None = None,
    ) -> None:
        self.instance = normalize_instance(instance)
        self.api_version = api_version
        self.token_provider = token_provider
        self.session = session or requests.Session()
        self.timeout = timeout
        self.session.headers.setdefault("Accept", "application/json")
        if user_agent:
            self.session.headers["User-Agent"] = user_agent

    # ------------------------------------------------------------------ #
    # Contract                                                           #
    # ------------------------------------------------------------------ #
    def get(self, path: str, params: Mapping[str, Any] | None = None) -> Any:
        return self._request("GET", path, params=params)

    def post(
        self,
        path: str,
        data: Mapping[str, Any] | None = None,
        files: Mapping[str, FileSpec] | None = None,
    ) -> Any:
        return self._request("POST", path, data=data, files=files)

    def patch(
        self,
        path: str,
        data: Mapping[str, Any] | None = None,
        files: Mapping[str, FileSpec] | None = None,
    ) -> Any:
        return self._request("PATCH", path, data=data, files=files)

    def delete(self, path: str) -> Any:
        return self._request("DELETE", path)

    # ---------------- internal helpers --------------------------------- #
    def url_for(self, path: str) -> str:
        """Resolve *path* against ``<instance>/api/v<version>/``."""
        if path.startswith(("http://", "https://")):
            return path
        return f"{api_base(self.instance, self.api_version)}/{path.lstrip('/')}"

    def _headers(self) -> dict[str, str]:
        token = self.token_provider() if self.token_provider else None
        return {"Authorization": f"Bearer {token}"} if token else {}

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        data: Mapping[str, Any] | None = None,
        files: Mapping[str, FileSpec] | None = None,
    ) -> Any:
        url = self.url_for(path)
        opened: list[IO[bytes]] = []
        try:
            kwargs: dict[str, Any] = {
                "headers": self._headers(),
                "timeout": self.timeout,
            }
            if params:
                kwargs["params"] = dict(params)
            if files:
                kwargs["files"] = _prepare_files(files, opened)
                kwargs["data"] = dict(data or {})
            elif data is not None:
                kwargs["json"] = dict(data)
            resp = self.session.request(method, url, **kwargs)
        finally:
            for fh in opened:
                fh.close()

        _LOG.debug("%s %s -> %s", method, url.split("?", 1)[0], resp.status_code)
        body = _json_or_none(resp)
        if isinstance(body, dict) and "error" in body:
            _LOG.debug("Application error from %s: %s", url, body.get("error"))
            return body
        resp.raise_for_status()
        return body


def _json_or_none(resp: requests.Response) -> Any:
    if not resp.content:
        return None
    try:
        return resp.json()
    except ValueError:
        return None


def _prepare_files(
    files: Mapping[str, FileSpec], opened: list[IO[bytes]]
) -> dict[str, Any]:
    """Turn paths/bytes/file objects into the ``files=`` mapping of requests."""
    prepared: dict[str, Any] = {}
    for name, source in files.items():
        if isinstance(source, str):
            fh = open(source, "rb")  # noqa: SIM115 – closed by caller
            opened.append(fh)
            prepared[name] = (source.rsplit("/", 1)[-1], fh)
        elif isinstance(source, (bytes, bytearray)):
            prepared[name] = (name, bytes(source))
        else:
            prepared[name] = (getattr(source, "name", name), source)
    return prepared
