"""Streaming listener for Mastodon's server-sent-event endpoints.

The client only *constructs* a :class:`Listener` (URL + bearer token); the
caller subscribes to events and calls :meth:`Listener.start`, which blocks
while events are dispatched.

Frames follow the SSE format::

    event: update
    data: {"id": "1", ...}

    :thump

Lines starting with ``:`` are heartbeats and are ignored.
"""

from __future__ import annotations

import json
import logging
import time
from collections import defaultdict
from typing import Any, Callable, Iterable, Iterator

import requests

from mastodon_client.log_utils import mask_sensitive

_LOG = logging.getLogger("mastodon-client.listener")

Callback = Callable[["Listener", Any], None]

# failures after which the stream is reopened
_RECONNECTABLE = (requests.ConnectionError, requests.exceptions.ChunkedEncodingError)

WILDCARD = "*"


def iter_events(lines: Iterable[str | bytes]) -> Iterator[tuple[str, Any]]:
    """Yield ``(event, payload)`` pairs parsed from SSE *lines*.

    ``data`` holding a JSON object or array is decoded; anything else, such
    as the bare status id of a ``delete`` event, is yielded as a string.
    """
    event: str | None = None
    data: list[str] = []
    for raw in lines:
        line = raw.decode("utf-8") if isinstance(raw, bytes) else raw
        line = line.rstrip("\r")
        if not line:
            if event is not None or data:
                yield event or "message", _decode("\n".join(data))
            event, data = None, []
            continue
        if line.startswith(":"):
            continue
        key, _, value = line.partition(":")
        value = value[1:] if value.startswith(" ") else value
        if key == "event":
            event = value
        elif key == "data":
            data.append(value)
    if event is not None or data:
        yield event or "message", _decode("\n".join(data))


def _decode(data: str) -> Any:
    if not data.lstrip().startswith(("{", "[")):
        return data
    try:
        return json.loads(data)
    except ValueError:
        return data


class Listener:
    """Long-lived connection dispatching streaming events to callbacks."""

    def __init__(
        self,
        url: str,
        access_token: str | None,
        *,
        session: requests.Session | None = None,
        retries: int = 3,
        delay: float = 1.0,
        timeout: float | tuple[float, float] | None = (5, None),
    ) -> None:
        self.url = url
        self.access_token = access_token
        self.session = session or requests.Session()
        self.retries = retries
        self.delay = delay
        self.timeout = timeout
        self._handlers: dict[str, list[Callback]] = defaultdict(list)
        self._running = False
        self._attempt = 0

    def __repr__(self) -> str:
        return f"Listener(url={self.url!r}, access_token={mask_sensitive(self.access_token)!r})"

    def on(self, event: str, callback: Callback) -> "Listener":
        """Register *callback* for *event* (``"*"`` receives everything)."""
        self._handlers[event].append(callback)
        return self

    def stop(self) -> None:
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def dispatch(self, event: str, payload: Any) -> None:
        for callback in [*self._handlers.get(event, ()), *self._handlers.get(WILDCARD, ())]:
            callback(self, payload)

    def start(self) -> None:
        """Connect and dispatch events until :meth:`stop` or the stream ends.

        Dropped or refused connections are retried up to ``retries`` times
        in a row, ``delay`` seconds apart, before being re-raised.  The count
        starts over each time a connection is established.
        """
        self._running = True
        self._attempt = 0
        try:
            while self._running:
                try:
                    self._consume()
                    return
                except _RECONNECTABLE:
                    if self._attempt >= self.retries or not self._running:
                        raise
                    self._attempt += 1
                    _LOG.warning(
                        "Stream %s dropped, reconnecting (%s/%s)",
                        self.url,
                        self._attempt,
                        self.retries,
                    )
                    time.sleep(self.delay)
        finally:
            self._running = False

    def _consume(self) -> None:
        headers = {"Accept": "text/event-stream"}
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"
        with self.session.get(
            self.url, headers=headers, stream=True, timeout=self.timeout
        ) as resp:
            resp.raise_for_status()
            self._attempt = 0
            _LOG.info("Connected to stream %s", self.url)
            for event, payload in iter_events(resp.iter_lines(decode_unicode=True)):
                if not self._running:
                    break
                self.dispatch(event, payload)
