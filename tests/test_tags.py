"""Tests for field tag parsing."""

import pytest

from docforge.validation.errors import TagSyntaxError
from docforge.validation.tags import parse_tag
from docforge.validation.types import DirectiveKind, Method


class TestStoreName:
    def test_empty_tag_uses_source_name(self):
        parsed = parse_tag("", "firstName")
        assert parsed.store_name == "firstName"
        assert parsed.rules == ()
        assert parsed.omit_scopes == ()
        assert parsed.ignore is False

    def test_none_tag_uses_source_name(self):
        assert parse_tag(None, "age").store_name == "age"

    def test_first_slot_overrides_name(self):
        assert parse_tag("first_name,required", "firstName").store_name == "first_name"

    def test_empty_first_slot_keeps_source_name(self):
        parsed = parse_tag(",required", "email")
        assert parsed.store_name == "email"
        assert [d.name for d in parsed.rules] == ["required"]

    def test_whitespace_is_stripped(self):
        parsed = parse_tag(" name , required , min = 3 ", "n")
        assert parsed.store_name == "name"
        assert [(d.name, d.param) for d in parsed.rules] == [("required", None), ("min", "3")]


class TestIgnore:
    def test_dash_ignores_field(self):
        parsed = parse_tag("-", "secret")
        assert parsed.ignore is True
        assert parsed.rules == ()

    def test_tokens_after_dash_are_not_parsed(self):
        parsed = parse_tag("-,required,transform=hash", "secret")
        assert parsed.ignore is True
        assert parsed.rules == ()

    def test_dash_outside_first_slot_is_rejected(self):
        with pytest.raises(TagSyntaxError, match="first slot"):
            parse_tag("name,-", "name")


class TestDirectives:
    def test_rules_keep_declared_order(self):
        parsed = parse_tag(
            "password,required,min=6,transform=hash_pass,omitempty", "password"
        )
        assert [d.token for d in parsed.rules] == [
            "required",
            "min=6",
            "transform=hash_pass",
        ]
        assert [d.kind for d in parsed.rules] == [
            DirectiveKind.VALIDATION,
            DirectiveKind.VALIDATION,
            DirectiveKind.TRANSFORMATION,
        ]

    def test_parameter_is_split_from_name(self):
        (directive,) = parse_tag("age,max=120", "age").rules
        assert directive.name == "max"
        assert directive.param == "120"
        assert directive.token == "max=120"

    def test_transform_name(self):
        (directive,) = parse_tag("email,transform=to_lower", "email").rules
        assert directive.kind is DirectiveKind.TRANSFORMATION
        assert directive.name == "to_lower"
        assert directive.param is None

    def test_omitempty_is_positionless(self):
        first = parse_tag("name,omitempty,required", "name")
        last = parse_tag("name,required,omitempty", "name")
        assert first.omit_scopes == last.omit_scopes == (None,)
        assert first.rules == last.rules

    def test_scoped_omitempty(self):
        parsed = parse_tag(
            "x,omitempty_create,omitempty_update,omitempty_validate", "x"
        )
        assert parsed.omit_scopes == (Method.CREATE, Method.UPDATE, Method.VALIDATE)

    def test_duplicate_omitempty_is_collapsed(self):
        assert parse_tag("x,omitempty,omitempty", "x").omit_scopes == (None,)

    def test_trailing_comma_is_ignored(self):
        assert [d.name for d in parse_tag("x,required,", "x").rules] == ["required"]

    def test_directives_lists_structural_first(self):
        parsed = parse_tag(",required,omitempty_update", "x")
        assert [d.token for d in parsed.directives] == ["omitempty_update", "required"]

    def test_explicit_name_is_a_directive(self):
        parsed = parse_tag("pw,required", "password")
        assert parsed.renamed
        assert [d.kind for d in parsed.directives] == [
            DirectiveKind.NAME,
            DirectiveKind.VALIDATION,
        ]
        assert parsed.directives[0].name == "pw"

    def test_empty_name_slot_is_not_a_rename(self):
        assert not parse_tag(",required", "password").renamed


class TestSyntaxErrors:
    def test_empty_transform_name(self):
        with pytest.raises(TagSyntaxError, match="transform="):
            parse_tag("x,transform=", "x")

    def test_missing_rule_name(self):
        with pytest.raises(TagSyntaxError, match="missing rule name"):
            parse_tag("x,=5", "x")

    def test_name_slot_with_parameter(self):
        with pytest.raises(TagSyntaxError) as exc_info:
            parse_tag("min=5", "age")
        assert exc_info.value.source_field == "age"
        assert exc_info.value.tag == "min=5"
