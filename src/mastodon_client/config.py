"""Client configuration, optionally loaded from environment variables.

Resolution order for :meth:`ClientConfig.from_env` (prefix ``MASTODON_``):

==========================  =====================================
Variable                    Meaning
==========================  =====================================
``MASTODON_NAME``           Application name (required)
``MASTODON_INSTANCE``       Instance host or origin
``MASTODON_API_VERSION``    REST API version (integer)
``MASTODON_REDIRECT_URI``   OAuth redirect URI
``MASTODON_SCOPES``         Space or comma separated scopes
``MASTODON_CLIENT_ID``      Credentials from a previous registration
``MASTODON_CLIENT_SECRET``
``MASTODON_ACCESS_TOKEN``   Token from a previous authorization
==========================  =====================================
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field

from mastodon_client.endpoints import (
    DEFAULT_API_VERSION,
    DEFAULT_INSTANCE,
    OOB_REDIRECT_URI,
    normalize_instance,
)
from mastodon_client.models import DEFAULT_SCOPES

logger = logging.getLogger("mastodon-client.config")


def _split_scopes(value: str) -> list[str]:
    return [s for s in re.split(r"[\s,]+", value) if s]


@dataclass(frozen=True)
class ClientConfig:
    """Static settings of one client application."""

    name: str
    instance: str = DEFAULT_INSTANCE
    api_version: int = DEFAULT_API_VERSION
    redirect_uri: str = OOB_REDIRECT_URI
    scopes: tuple[str, ...] = field(default=DEFAULT_SCOPES)
    client_id: str | None = None
    client_secret: str | None = None
    access_token: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "instance", normalize_instance(self.instance))
        object.__setattr__(self, "scopes", tuple(self.scopes))

    @classmethod
    def from_env(cls, prefix: str = "MASTODON_") -> "ClientConfig | None":
        """Return a config built from ``<prefix>*`` variables, or ``None``."""
        name = os.getenv(f"{prefix}NAME")
        if not name:
            logger.debug("%sNAME not set; no client configured", prefix)
            return None

        api_version_raw = os.getenv(f"{prefix}API_VERSION")
        try:
            api_version = int(api_version_raw) if api_version_raw else DEFAULT_API_VERSION
        except ValueError:
            raise ValueError(
                f"{prefix}API_VERSION must be an integer, got {api_version_raw!r}"
            ) from None

        scopes_raw = os.getenv(f"{prefix}SCOPES")
        return cls(
            name=name,
            instance=os.getenv(f"{prefix}INSTANCE") or DEFAULT_INSTANCE,
            api_version=api_version,
            redirect_uri=os.getenv(f"{prefix}REDIRECT_URI") or OOB_REDIRECT_URI,
            scopes=tuple(_split_scopes(scopes_raw)) if scopes_raw else DEFAULT_SCOPES,
            client_id=os.getenv(f"{prefix}CLIENT_ID") or None,
            client_secret=os.getenv(f"{prefix}CLIENT_SECRET") or None,
            access_token=os.getenv(f"{prefix}ACCESS_TOKEN") or None,
        )
