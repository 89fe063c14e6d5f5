"""Declarative argument shapes for public client operations.

Each operation describes its accepted arguments as a :class:`Shape` – an
ordered collection of :class:`Field` descriptors – and passes the raw
caller input through :meth:`Shape.validate`.  A single generic routine
therefore handles every call, and every check happens before any request
is dispatched.

Rules
-----
* A field that is absent **or** ``None`` receives its default (a value or a
  zero-argument callable evaluated lazily).
* A field that is present is checked against its predicate and is *never*
  coerced; an invalid explicit value raises :class:`ValidationError`.
* Unknown fields are rejected.
* Positional arguments bind to fields in declaration order.

Example
-------
>>> shape = Shape(Field("name", is_non_empty_str, default="home"))
>>> shape.validate()
{'name': 'home'}
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Final, Mapping, Sequence
from urllib.parse import urlparse

from mastodon_client.errors import ValidationError

Predicate = Callable[[Any], bool]

_MISSING: Final = object()


# --------------------------------------------------------------------------- #
# Predicates                                                                  #
# --------------------------------------------------------------------------- #
def is_str(value: Any) -> bool:
    return isinstance(value, str)


def is_non_empty_str(value: Any) -> bool:
    return isinstance(value, str) and value != ""


def is_bool(value: Any) -> bool:
    return isinstance(value, bool)


def is_str_list(value: Any) -> bool:
    return isinstance(value, (list, tuple)) and all(isinstance(v, str) for v in value)


def is_uri(value: Any) -> bool:
    """Accept absolute ``http(s)`` URIs and bare host names."""
    if not is_non_empty_str(value):
        return False
    parsed = urlparse(value if "://" in value else f"https://{value}")
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def is_image(value: Any) -> bool:
    """Accept a file path, raw bytes or a readable binary file object."""
    if isinstance(value, (bytes, bytearray)):
        return True
    if is_non_empty_str(value):
        return True
    return callable(getattr(value, "read", None))


def one_of(*choices: str) -> Predicate:
    """Return a predicate accepting exactly one of *choices*."""
    allowed = frozenset(choices)

    def _check(value: Any) -> bool:
        return isinstance(value, str) and value in allowed

    _check.__name__ = f"one_of({', '.join(sorted(allowed))})"
    return _check


# --------------------------------------------------------------------------- #
# Descriptors                                                                 #
# --------------------------------------------------------------------------- #
@dataclass(frozen=True, slots=True)
class Field:
    """One named argument of an operation."""

    name: str
    predicate: Predicate
    required: bool = False
    default: Any = None
    # message used when the predicate fails
    message: str | None = None

    def resolve_default(self) -> Any:
        return self.default() if callable(self.default) else self.default


class Shape:
    """Ordered set of :class:`Field` descriptors with a generic validator."""

    def __init__(self, *fields: Field) -> None:
        names = [f.name for f in fields]
        if len(set(names)) != len(names):
            raise ValueError("duplicate field names in shape")
        self.fields: tuple[Field, ...] = fields

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(f.name for f in self.fields)

    def validate(
        self,
        args: Sequence[Any] = (),
        kwargs: Mapping[str, Any] | None = None,
        *,
        defaults: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Return a fully populated, type-checked argument bundle.

        Parameters
        ----------
        args, kwargs:
            Caller-supplied positional and named arguments.
        defaults:
            Per-call defaults that override the declared ones (used for
            values only known at call time, e.g. the client's instance).

        Raises
        ------
        ValidationError
            Naming the first offending field.
        """
        kwargs = dict(kwargs or {})
        if len(args) > len(self.fields):
            raise ValidationError(
                None,
                f"expected at most {len(self.fields)} positional arguments, got {len(args)}",
            )
        for field_, value in zip(self.fields, args):
            if field_.name in kwargs:
                raise ValidationError(field_.name, "given both positionally and by name")
            kwargs[field_.name] = value

        unknown = sorted(set(kwargs) - set(self.names))
        if unknown:
            raise ValidationError(unknown[0], "unexpected argument")

        result: dict[str, Any] = {}
        for field_ in self.fields:
            value = kwargs.get(field_.name, _MISSING)
            if value is _MISSING or value is None:
                if field_.required:
                    raise ValidationError(field_.name, "is required")
                if defaults and field_.name in defaults:
                    value = defaults[field_.name]
                else:
                    value = field_.resolve_default()
                # optional fields without a default stay None
                if value is None:
                    result[field_.name] = None
                    continue
            if not field_.predicate(value):
                raise ValidationError(
                    field_.name,
                    field_.message or f"invalid value {value!r} ({field_.predicate.__name__})",
                )
            result[field_.name] = value
        return result
