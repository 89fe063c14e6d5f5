"""Exception types raised by the Mastodon client core.

Only lightweight, **data-carrying** exceptions live here so that callers
(CLI tools, bots, web handlers) can turn them into user-facing messages.

Transport failures are *not* wrapped: ``requests`` exceptions propagate
untouched from the dispatcher.
"""

from __future__ import annotations

from typing import Any


class MastodonError(RuntimeError):
    """Base class for every error raised by :mod:`mastodon_client`."""

    code: str = "mastodon_error"

    def to_payload(self) -> dict[str, Any]:
        """Return a JSON-serialisable payload **without secrets**."""
        return {"error": self.code, "message": str(self)}


class ValidationError(MastodonError, ValueError):
    """Raised when call arguments do not match the declared shape.

    Always raised before any network I/O takes place.
    """

    code = "validation_error"

    def __init__(self, field: str | None, message: str) -> None:
        prefix = f"{field}: " if field else ""
        super().__init__(f"{prefix}{message}")
        self.field: str | None = field

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        payload["field"] = self.field
        return payload


class StateError(MastodonError):
    """Raised when an operation is invoked out of sequence."""

    code = "state_error"


class ScopeMismatchError(MastodonError):
    """Raised when the granted scopes differ from the requested ones.

    The access token returned alongside the mismatch is discarded.
    """

    code = "scope_mismatch"

    def __init__(self, *, requested: str, granted: str) -> None:
        super().__init__(
            f"Granted and requested scopes do not match "
            f"(requested={requested!r}, granted={granted!r})"
        )
        self.requested: str = requested
        self.granted: str = granted

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        payload.update(requested=self.requested, granted=self.granted)
        return payload


class RemoteError(MastodonError):
    """The instance answered with an ``{"error": ...}`` body."""

    code = "remote_error"

    def __init__(self, error: str, description: str | None = None) -> None:
        super().__init__(description or error)
        self.error: str = error
        self.description: str | None = description

    def to_payload(self) -> dict[str, Any]:
        return {
            "error": self.code,
            "remote_error": self.error,
            "message": str(self),
        }
