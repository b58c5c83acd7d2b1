# tests/utilities/test_labels.py
from __future__ import annotations

import pytest

from utilities.errors import ParseError, ValidationError
from utilities.labels import (
    DEFAULT_RULES,
    LabelRules,
    label_key_limit_errors,
    label_key_syntax_errors,
    label_value_syntax_errors,
    parse_label_set,
    validate_label_key,
    validate_label_value,
    validate_labels,
)


class TestLabelKeySyntax:
    """Tests for the always-on character grammar of label keys."""

    @pytest.mark.parametrize(
        "key",
        ["app", "my_app.v2", "a", "A-1", "app.kubernetes.io/name", "Example.COM/x"],
    )
    def test_valid_keys(self, key: str) -> None:
        assert label_key_syntax_errors(key) == []

    @pytest.mark.parametrize(
        "key",
        ["", "-app", "app-", "a b", "a|b", "/name", "prefix/", "a/b/c", "`whoami`"],
    )
    def test_invalid_keys(self, key: str) -> None:
        assert label_key_syntax_errors(key) != []

    def test_custom_extra_chars(self) -> None:
        rules = LabelRules(name_extra_chars="-")
        assert label_key_syntax_errors("my-app", rules) == []
        assert label_key_syntax_errors("my_app", rules) != []


class TestLabelKeyLimits:
    """Tests for the strict-mode limits of label keys."""

    def test_name_length(self) -> None:
        assert label_key_limit_errors("a" * 63) == []
        assert label_key_limit_errors("a" * 64) != []

    def test_prefix_length(self) -> None:
        long_prefix = ".".join(["a" * 50] * 5) + ".com"
        assert len(long_prefix) > DEFAULT_RULES.max_prefix_length
        assert label_key_limit_errors(f"{long_prefix}/x") != []

    def test_prefix_must_be_lowercase_subdomain(self) -> None:
        assert label_key_limit_errors("example.com/x") == []
        assert label_key_limit_errors("Example.com/x") != []
        assert label_key_limit_errors("example_co/x") != []


class TestLabelValueSyntax:
    """Tests for label value grammar."""

    @pytest.mark.parametrize("value", ["", "production", "v1.2_3-rc"])
    def test_valid_values(self, value: str) -> None:
        assert label_value_syntax_errors(value) == []

    @pytest.mark.parametrize("value", ["-x", "x-", "a/b", "a b", "$x"])
    def test_invalid_values(self, value: str) -> None:
        assert label_value_syntax_errors(value) != []


class TestValidate:
    """Tests for validate_label_key(), validate_label_value() and validate_labels()."""

    def test_syntax_error_raises_parse_error(self) -> None:
        with pytest.raises(ParseError, match="invalid label key") as excinfo:
            validate_label_key("bad key", position=7)
        assert excinfo.value.token == "bad key"
        assert excinfo.value.position == 7

    def test_limit_only_checked_in_strict(self) -> None:
        validate_label_value("v" * 64)
        with pytest.raises(ValidationError, match="no more than 63"):
            validate_label_value("v" * 64, strict=True)

    def test_non_string_key(self) -> None:
        with pytest.raises(ParseError, match="must be a string"):
            validate_label_key(3)  # type: ignore[arg-type]

    def test_validate_labels(self) -> None:
        validate_labels({"app": "web", "example.com/tier": ""})
        with pytest.raises(ParseError):
            validate_labels({"app": "bad value"})

    def test_validation_error_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            validate_label_key("a" * 64, strict=True)


class TestParseLabelSet:
    """Tests for parse_label_set()."""

    def test_parses_pairs(self) -> None:
        result = parse_label_set("app=web, tier=frontend,empty=")
        assert result == {"app": "web", "tier": "frontend", "empty": ""}

    def test_empty_string(self) -> None:
        assert parse_label_set("") == {}
        assert parse_label_set("  ") == {}

    def test_missing_equals(self) -> None:
        with pytest.raises(ParseError, match="expected key=value") as excinfo:
            parse_label_set("app=web,tier")
        assert excinfo.value.token == "tier"
        assert excinfo.value.position == 8

    def test_duplicate_key(self) -> None:
        with pytest.raises(ParseError, match="duplicate label key"):
            parse_label_set("app=web,app=api")

    def test_invalid_value(self) -> None:
        with pytest.raises(ParseError, match="invalid label value"):
            parse_label_set("app==web")
