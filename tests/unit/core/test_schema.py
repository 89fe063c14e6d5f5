"""Unit tests for the declarative argument validator."""

from __future__ import annotations

import pytest

from mastodon_client.errors import ValidationError
from mastodon_client.schema import (
    Field,
    Shape,
    is_bool,
    is_image,
    is_non_empty_str,
    is_str_list,
    is_uri,
    one_of,
)

SHAPE = Shape(
    Field("name", is_non_empty_str, default="home"),
    Field("local", is_bool, default=False),
    Field("tag", is_non_empty_str),
)


def test_defaults_fill_absent_and_none_fields() -> None:
    assert SHAPE.validate() == {"name": "home", "local": False, "tag": None}
    assert SHAPE.validate(kwargs={"name": None, "local": None}) == {
        "name": "home",
        "local": False,
        "tag": None,
    }


def test_explicit_invalid_values_are_not_coerced() -> None:
    with pytest.raises(ValidationError) as exc:
        SHAPE.validate(kwargs={"name": ""})
    assert exc.value.field == "name"

    with pytest.raises(ValidationError) as exc:
        SHAPE.validate(kwargs={"local": 1})
    assert exc.value.field == "local"


def test_positional_binding_in_declaration_order() -> None:
    assert SHAPE.validate(("public", True)) == {"name": "public", "local": True, "tag": None}


def test_positional_and_named_conflict() -> None:
    with pytest.raises(ValidationError, match="both positionally and by name"):
        SHAPE.validate(("public",), {"name": "home"})


def test_too_many_positionals() -> None:
    with pytest.raises(ValidationError):
        SHAPE.validate(("a", True, "t", "extra"))


def test_unknown_field_rejected() -> None:
    with pytest.raises(ValidationError) as exc:
        SHAPE.validate(kwargs={"limit": 10})
    assert exc.value.field == "limit"


def test_required_field() -> None:
    shape = Shape(Field("path", is_non_empty_str, required=True))
    with pytest.raises(ValidationError, match="is required"):
        shape.validate()


def test_call_time_defaults_override_declared() -> None:
    shape = Shape(Field("instance", is_uri, default="https://a.example"))
    assert shape.validate(defaults={"instance": "https://b.example"}) == {
        "instance": "https://b.example"
    }


def test_callable_default_is_evaluated_per_call() -> None:
    shape = Shape(Field("scopes", is_str_list, default=lambda: ["read"]))
    first = shape.validate()
    first["scopes"].append("write")
    assert shape.validate() == {"scopes": ["read"]}


def test_duplicate_field_names() -> None:
    with pytest.raises(ValueError):
        Shape(Field("a", is_bool), Field("a", is_bool))


def test_predicates() -> None:
    assert one_of("home", "public")("home")
    assert not one_of("home", "public")("homepage")
    assert not one_of("home", "public")("my-public")
    assert is_uri("mastodon.social") and is_uri("https://mastodon.social")
    assert not is_uri("ftp://mastodon.social") and not is_uri("")
    assert is_str_list(["a", "b"]) and not is_str_list("ab") and not is_str_list([1])
    assert is_image(b"data") and is_image("/tmp/avatar.png") and not is_image(42)
