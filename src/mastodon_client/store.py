"""Concurrency-safe, on-disk persistence for client sessions.

Persisting a :class:`~mastodon_client.models.ClientSession` lets a later
run resume from *Registered* or *Authorized* without registering a new
application on the instance every time.

* **Atomicity** – writes go to a mode-600 temp file, then *os.replace*.
* **Concurrency** – per-session advisory lock files (``O_EXCL``).
* **Filename safety** – instance and application names are hashed /
  slugified before hitting the filesystem.

Environment variables
---------------------
MASTODON_CLIENT_STORAGE_DIR
    Base directory for persisted sessions.
    Defaults to ``~/.mastodon-client/sessions`` when unset.
"""

from __future__ import annotations

import json
import os
import re
import time
from contextlib import contextmanager
from hashlib import sha256
from pathlib import Path
from typing import Protocol, runtime_checkable

from mastodon_client.endpoints import normalize_instance
from mastodon_client.models import ClientSession

# --------------------------------------------------------------------------- #
# helpers                                                                     #
# --------------------------------------------------------------------------- #
_UNSAFE = re.compile(r"[^a-z0-9._-]+")


def _session_filename(origin: str, name: str) -> str:
    """``<readable-name>-<digest>.json``; the digest keeps distinct names apart."""
    readable = _UNSAFE.sub("-", name.strip().lower()).strip("-")[:48] or "app"
    digest = sha256(f"{origin}\n{name}".encode()).hexdigest()[:8]
    return f"{readable}-{digest}.json"


def _host_dirname(origin: str) -> str:
    host = origin.split("://", 1)[-1]
    return _UNSAFE.sub("-", host.lower()).strip("-")[:64] or "instance"


def _write_private_json(path: Path, data: dict) -> None:
    """Replace *path* with *data*, never exposing a partial or world-readable file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(f".{path.name}.{os.getpid()}.tmp")
    fd = os.open(tmp, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            json.dump(data, fh, sort_keys=True)
        os.replace(tmp, path)
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise


@contextmanager
def _session_locked(lock_path: Path, *, wait: float = 5.0, poll: float = 0.1):
    """Hold the advisory ``O_EXCL`` lock file for one session.

    Raises ``TimeoutError`` once *wait* seconds pass without acquiring it;
    ``wait=0`` gives up immediately.
    """
    lock_path.parent.mkdir(parents=True, exist_ok=True)
    deadline = time.monotonic() + wait
    while True:
        try:
            os.close(os.open(lock_path, os.O_CREAT | os.O_EXCL | os.O_WRONLY))
            break
        except FileExistsError:
            if time.monotonic() >= deadline:
                raise TimeoutError(f"session is locked: {lock_path}") from None
            time.sleep(poll)
    try:
        yield
    finally:
        lock_path.unlink(missing_ok=True)


# --------------------------------------------------------------------------- #
# public interface                                                            #
# --------------------------------------------------------------------------- #


@runtime_checkable
class SessionStore(Protocol):
    """Minimal persistence contract for client sessions."""

    def save_session(self, instance: str, session: ClientSession) -> None: ...

    def load_session(self, instance: str, name: str) -> ClientSession | None: ...

    def delete_session(self, instance: str, name: str) -> None: ...


class DiskSessionStore(SessionStore):
    """JSON-file implementation of :class:`SessionStore`."""

    def __init__(self, base_dir: str | os.PathLike | None = None) -> None:
        self.base_dir = Path(
            base_dir
            or os.getenv("MASTODON_CLIENT_STORAGE_DIR")
            or Path.home() / ".mastodon-client" / "sessions"
        ).expanduser()
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def _session_path(self, instance: str, name: str) -> Path:
        origin = normalize_instance(instance)
        return self.base_dir / _host_dirname(origin) / _session_filename(origin, name)

    def _session_lock(self, instance: str, name: str) -> Path:
        return self._session_path(instance, name).with_suffix(".lock")

    def save_session(self, instance: str, session: ClientSession) -> None:
        path = self._session_path(instance, session.name)
        # fail fast if another writer holds the lock
        with _session_locked(self._session_lock(instance, session.name), wait=0):
            _write_private_json(path, session.to_dict())

    def load_session(self, instance: str, name: str) -> ClientSession | None:
        path = self._session_path(instance, name)
        if not path.exists():
            return None
        with path.open(encoding="utf-8") as fh:
            data = json.load(fh)
        return ClientSession.from_dict(data)

    def delete_session(self, instance: str, name: str) -> None:
        with _session_locked(self._session_lock(instance, name)):
            self._session_path(instance, name).unlink(missing_ok=True)
