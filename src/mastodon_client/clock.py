"""Clock abstraction and timestamp parsing for session bookkeeping.

The session logic never calls ``time.time()`` or ``datetime.now()``
directly; it depends on an injected :class:`Clock` so that tests can pin
``authorized_at`` to a known value.

Example
-------
>>> from mastodon_client.clock import default_clock, parse_timestamp
>>> isinstance(default_clock(), float)
True
>>> parse_timestamp(0).year
1970
"""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Protocol, runtime_checkable


@runtime_checkable
class Clock(Protocol):
    """Callable protocol returning *seconds* since the UNIX epoch."""

    def __call__(self) -> float: ...


def default_clock() -> float:
    """Default implementation that delegates to ``time.time()``."""
    return time.time()


def parse_timestamp(value: object) -> datetime | None:
    """Return a timezone-aware :class:`datetime` for *value*.

    Parameters
    ----------
    value:
        UNIX epoch seconds (``int``/``float`` or a digit string), an
        ISO-8601 string (a trailing ``Z`` is accepted), an existing
        ``datetime`` or ``None``.

    Returns
    -------
    datetime | None
        ``None`` only when *value* is ``None``.

    Raises
    ------
    ValueError
        If *value* cannot be interpreted as a timestamp.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, bool):
        raise ValueError(f"not a timestamp: {value!r}")
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    if isinstance(value, str):
        text = value.strip()
        if text.isdigit():
            return datetime.fromtimestamp(int(text), tz=timezone.utc)
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    raise ValueError(f"not a timestamp: {value!r}")
