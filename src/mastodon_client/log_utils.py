"""Structured logging helpers for the Mastodon client.

Only the following *non-sensitive* fields are ever attached to log records:

- ``instance``       – Origin of the Mastodon instance
- ``client_name``    – Application name used at registration
- ``correlation_id`` – Optional identifier supplied by the caller

Client secrets, access tokens and passwords must go through
:func:`mask_sensitive` before being formatted into a message.

Usage
-----
>>> from mastodon_client.log_utils import get_client_logger
>>> log = get_client_logger(instance="https://mastodon.social", client_name="bot")
>>> log.info("Registering application")
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, MutableMapping


def mask_sensitive(value: str | None, keep: int = 4) -> str:
    """Return *value* with everything but the first *keep* characters hidden."""
    if not value:
        return "<empty>"
    return f"{value[:keep]}****"


class _ClientLoggerAdapter(logging.LoggerAdapter):
    """Inject whitelisted client context into log records."""

    extra_keys = ("instance", "client_name", "correlation_id")

    def __init__(self, logger: logging.Logger, extra: Mapping[str, Any] | None = None):
        extra = extra or {}
        bound = {k: extra[k] for k in self.extra_keys if extra.get(k) is not None}
        super().__init__(logger, bound)

    def process(self, msg: str, kwargs: MutableMapping[str, Any]):
        # call-site extras take precedence over the bound client context
        kwargs["extra"] = {**self.extra, **(kwargs.get("extra") or {})}
        return msg, kwargs


def get_client_logger(
    *,
    base_logger_name: str = "mastodon-client",
    instance: str | None = None,
    client_name: str | None = None,
    correlation_id: str | None = None,
) -> logging.LoggerAdapter:
    """Return a LoggerAdapter pre-filled with client context."""
    logger = logging.getLogger(base_logger_name)
    return _ClientLoggerAdapter(
        logger,
        {
            "instance": instance,
            "client_name": client_name,
            "correlation_id": correlation_id,
        },
    )
