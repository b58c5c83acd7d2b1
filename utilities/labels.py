# utilities/labels.py
from __future__ import annotations

import functools
import re
from collections.abc import Mapping
from dataclasses import dataclass

from utilities.errors import ParseError, ValidationError


@dataclass(frozen=True)
class LabelRules:
    """Limits and character rules applied to label keys and values.

    The character grammar is always enforced. Lengths and the DNS-subdomain
    prefix grammar are only enforced in strict mode. Loaded from
    config/label_rules.yaml by :func:`utilities.config.load_label_rules`.
    """

    max_prefix_length: int = 253
    max_name_length: int = 63
    max_value_length: int = 63
    # Characters allowed between the leading and trailing alphanumerics of a
    # name or value.
    name_extra_chars: str = "-_."


DEFAULT_RULES = LabelRules()

_ALNUM = "A-Za-z0-9"

# Loose prefix grammar; strict mode narrows it to a lowercase DNS subdomain.
PREFIX_PATTERN = re.compile(rf"[{_ALNUM}]([{_ALNUM}.-]*[{_ALNUM}])?")

DNS_1123_LABEL = "[a-z0-9]([-a-z0-9]*[a-z0-9])?"
DNS_1123_SUBDOMAIN_PATTERN = re.compile(rf"{DNS_1123_LABEL}(\.{DNS_1123_LABEL})*")


@functools.lru_cache(maxsize=8)
def name_pattern(extra_chars: str) -> re.Pattern[str]:
    """Return the compiled qualified-name pattern for the given extra characters."""
    inner = _ALNUM + re.escape(extra_chars)
    return re.compile(rf"[{_ALNUM}]([{inner}]*[{_ALNUM}])?")


def _split_key(key: str) -> tuple[str | None, str]:
    """Split a label key into (prefix, name). Prefix is None when absent."""
    if "/" not in key:
        return None, key
    prefix, name = key.split("/", 1)
    return prefix, name


def label_key_syntax_errors(key: str, rules: LabelRules = DEFAULT_RULES) -> list[str]:
    """Return character-grammar violations for a label key."""
    errors: list[str] = []
    prefix, name = _split_key(key)

    if prefix is not None:
        if not prefix:
            errors.append("prefix part must be non-empty")
        elif not PREFIX_PATTERN.fullmatch(prefix):
            errors.append(
                "prefix part must consist of alphanumeric characters, '-' or '.', "
                "and must start and end with an alphanumeric character"
            )

    if not name:
        errors.append("name part must be non-empty")
    elif not name_pattern(rules.name_extra_chars).fullmatch(name):
        errors.append(
            "name part must consist of alphanumeric characters or "
            f"{_describe_chars(rules.name_extra_chars)}, and must start and end "
            "with an alphanumeric character"
        )

    return errors


def label_key_limit_errors(key: str, rules: LabelRules = DEFAULT_RULES) -> list[str]:
    """Return strict-mode violations (lengths, DNS prefix) for a label key."""
    errors: list[str] = []
    prefix, name = _split_key(key)

    if prefix is not None:
        if len(prefix) > rules.max_prefix_length:
            errors.append(
                f"prefix part must be no more than {rules.max_prefix_length} characters"
            )
        if not DNS_1123_SUBDOMAIN_PATTERN.fullmatch(prefix):
            errors.append(
                "prefix part must be a lowercase RFC 1123 subdomain (e.g. 'example.com')"
            )

    if len(name) > rules.max_name_length:
        errors.append(
            f"name part must be no more than {rules.max_name_length} characters"
        )

    return errors


def label_value_syntax_errors(
    value: str, rules: LabelRules = DEFAULT_RULES
) -> list[str]:
    """Return character-grammar violations for a label value. Empty is valid."""
    if value == "" or name_pattern(rules.name_extra_chars).fullmatch(value):
        return []
    return [
        "value must be empty or consist of alphanumeric characters or "
        f"{_describe_chars(rules.name_extra_chars)}, and must start and end "
        "with an alphanumeric character"
    ]


def label_value_limit_errors(
    value: str, rules: LabelRules = DEFAULT_RULES
) -> list[str]:
    """Return strict-mode violations for a label value."""
    if len(value) > rules.max_value_length:
        return [f"value must be no more than {rules.max_value_length} characters"]
    return []


def _describe_chars(chars: str) -> str:
    return " or ".join(repr(char) for char in chars) if chars else "nothing else"


def validate_label_key(
    key: str,
    rules: LabelRules | None = None,
    strict: bool = False,
    position: int | None = None,
) -> None:
    """Raise ParseError (grammar) or ValidationError (strict limits) for a bad key."""
    rules = rules or DEFAULT_RULES
    if not isinstance(key, str):
        raise ParseError("label key must be a string", token=repr(key), position=position)

    errors = label_key_syntax_errors(key, rules)
    if errors:
        raise ParseError(
            f"invalid label key ({'; '.join(errors)})", token=key, position=position
        )

    if strict:
        errors = label_key_limit_errors(key, rules)
        if errors:
            raise ValidationError(f"invalid label key ({'; '.join(errors)})", token=key)


def validate_label_value(
    value: str,
    rules: LabelRules | None = None,
    strict: bool = False,
    position: int | None = None,
) -> None:
    """Raise ParseError (grammar) or ValidationError (strict limits) for a bad value."""
    rules = rules or DEFAULT_RULES
    if not isinstance(value, str):
        raise ParseError(
            "label value must be a string", token=repr(value), position=position
        )

    errors = label_value_syntax_errors(value, rules)
    if errors:
        raise ParseError(
            f"invalid label value ({'; '.join(errors)})", token=value, position=position
        )

    if strict:
        errors = label_value_limit_errors(value, rules)
        if errors:
            raise ValidationError(
                f"invalid label value ({'; '.join(errors)})", token=value
            )


def validate_labels(
    labels: Mapping[str, str], rules: LabelRules | None = None, strict: bool = False
) -> None:
    """Validate every key and value of a label set."""
    for key, value in labels.items():
        validate_label_key(key, rules=rules, strict=strict)
        validate_label_value(value, rules=rules, strict=strict)


def parse_label_set(
    labels_str: str, rules: LabelRules | None = None, strict: bool = False
) -> dict[str, str]:
    """Parse ``key1=value1,key2=value2`` into a validated label dict.

    An empty (or blank) string yields an empty dict. Duplicate keys and pairs
    without ``=`` raise ParseError; the position is the pair's character offset.
    """
    labels: dict[str, str] = {}
    if not labels_str.strip():
        return labels

    offset = 0
    for pair in labels_str.split(","):
        position = offset + len(pair) - len(pair.lstrip())
        offset += len(pair) + 1
        pair = pair.strip()

        if "=" not in pair:
            raise ParseError("expected key=value", token=pair, position=position)

        key, value = pair.split("=", 1)
        key, value = key.strip(), value.strip()
        validate_label_key(key, rules=rules, strict=strict, position=position)
        validate_label_value(value, rules=rules, strict=strict, position=position)

        if key in labels:
            raise ParseError("duplicate label key", token=key, position=position)
        labels[key] = value

    return labels
