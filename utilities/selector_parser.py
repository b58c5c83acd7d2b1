# utilities/selector_parser.py
from __future__ import annotations

import enum
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from utilities.errors import ParseError
from utilities.labels import LabelRules, validate_label_key, validate_label_value
from utilities.selector import Operator, Requirement, Selector

logger = logging.getLogger(__name__)


# Textual selector syntax:
#
# <selector>     ::= <requirement> | <requirement> "," <selector>
# <requirement>  ::= KEY
#                  | "!" KEY
#                  | KEY ("=" | "==" | "!=") [VALUE]
#                  | KEY ("in" | "notin") "(" VALUE ("," VALUE)* ")"
#
# Whitespace separates tokens and is otherwise ignored. KEY and VALUE follow
# the label grammar in utilities.labels.


class TokenKind(enum.Enum):
    IDENTIFIER = enum.auto()
    OPERATOR = enum.auto()
    OPEN_PAR = enum.auto()
    CLOSED_PAR = enum.auto()
    COMMA = enum.auto()


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    text: str
    position: int


WHITESPACE = frozenset(" \t\r\n")
# Runs of these characters form one operator token, so "=!" or ">=" surface
# as unrecognized operators instead of odd keys.
OPERATOR_CHARS = frozenset("=!<>")
DELIMITERS = {
    "(": TokenKind.OPEN_PAR,
    ")": TokenKind.CLOSED_PAR,
    ",": TokenKind.COMMA,
}
_IDENTIFIER_STOP = WHITESPACE | OPERATOR_CHARS | frozenset(DELIMITERS)

EQUALITY_TOKENS: dict[str, Operator] = {
    "=": Operator.EQUALS,
    "==": Operator.EQUALS,
    "!=": Operator.NOT_EQUALS,
}
SET_KEYWORDS: dict[str, Operator] = {
    "in": Operator.IN,
    "notin": Operator.NOT_IN,
}

MATCH_EXPRESSION_FIELDS = frozenset({"key", "operator", "values"})
LABEL_SELECTOR_FIELDS = frozenset({"matchLabels", "matchExpressions"})


def split_terms(selector_str: str) -> list[tuple[str, int]]:
    """Split on top-level commas, returning (term, start offset) pairs.

    Commas inside a parenthesised value list do not split. Raises ParseError
    for a stray ``)``, a nested ``(`` or an unclosed ``(``.
    """
    terms: list[tuple[str, int]] = []
    open_position: int | None = None
    start = 0

    for position, char in enumerate(selector_str):
        if char == "(":
            if open_position is not None:
                raise ParseError("nested parenthesis", token="(", position=position)
            open_position = position
        elif char == ")":
            if open_position is None:
                raise ParseError(
                    "unbalanced parenthesis", token=")", position=position
                )
            open_position = None
        elif char == "," and open_position is None:
            terms.append((selector_str[start:position], start))
            start = position + 1

    if open_position is not None:
        raise ParseError("unbalanced parenthesis", token="(", position=open_position)

    terms.append((selector_str[start:], start))
    return terms


def tokenize(term: str, offset: int = 0) -> list[Token]:
    """Tokenize one requirement term; positions are offsets into the full selector."""
    tokens: list[Token] = []
    length = len(term)
    pos = 0

    while pos < length:
        char = term[pos]
        if char in WHITESPACE:
            pos += 1
            continue

        if char in DELIMITERS:
            tokens.append(Token(DELIMITERS[char], char, offset + pos))
            pos += 1
            continue

        start = pos
        if char in OPERATOR_CHARS:
            while pos < length and term[pos] in OPERATOR_CHARS:
                pos += 1
            kind = TokenKind.OPERATOR
        else:
            while pos < length and term[pos] not in _IDENTIFIER_STOP:
                pos += 1
            kind = TokenKind.IDENTIFIER
        tokens.append(Token(kind, term[start:pos], offset + start))

    return tokens


def _reject_trailing(tokens: list[Token]) -> None:
    if tokens:
        raise ParseError(
            "unexpected token", token=tokens[0].text, position=tokens[0].position
        )


def _parse_values(
    tokens: list[Token],
    keyword: Token,
    rules: LabelRules | None,
    strict: bool,
) -> tuple[tuple[str, ...], list[Token]]:
    """Parse ``( v1, v2, ... )``; return the values and any tokens after ``)``."""
    if not tokens or tokens[0].kind is not TokenKind.OPEN_PAR:
        raise ParseError(
            f"expected '(' after '{keyword.text}'",
            token=tokens[0].text if tokens else keyword.text,
            position=tokens[0].position if tokens else keyword.position,
        )

    values: list[str] = []
    expect_value = True
    for index, token in enumerate(tokens[1:], start=1):
        if token.kind is TokenKind.CLOSED_PAR:
            if not values:
                raise ParseError(
                    f"'{keyword.text}' requires at least one value",
                    token=keyword.text,
                    position=keyword.position,
                )
            if expect_value:
                raise ParseError("empty value in set", token=",", position=token.position)
            return tuple(values), tokens[index + 1 :]

        if token.kind is TokenKind.IDENTIFIER and expect_value:
            validate_label_value(
                token.text, rules=rules, strict=strict, position=token.position
            )
            values.append(token.text)
            expect_value = False
        elif token.kind is TokenKind.COMMA and not expect_value:
            expect_value = True
        elif token.kind is TokenKind.COMMA:
            raise ParseError("empty value in set", token=",", position=token.position)
        else:
            raise ParseError(
                "unexpected token in value list", token=token.text, position=token.position
            )

    # split_terms guarantees a closing parenthesis, so this is unreachable for
    # terms produced by parse_selector.
    raise ParseError("unbalanced parenthesis", token="(", position=tokens[0].position)


def parse_requirement(
    tokens: list[Token],
    position: int,
    rules: LabelRules | None = None,
    strict: bool = False,
) -> Requirement:
    """Build a Requirement from the tokens of one term starting at *position*."""
    if not tokens:
        raise ParseError("empty requirement", position=position)

    first = tokens[0]

    if first.kind is TokenKind.OPERATOR:
        if first.text != "!":
            raise ParseError(
                "unrecognized operator", token=first.text, position=first.position
            )
        if len(tokens) < 2 or tokens[1].kind is not TokenKind.IDENTIFIER:
            raise ParseError("expected key after '!'", token="!", position=first.position)
        key_token = tokens[1]
        validate_label_key(
            key_token.text, rules=rules, strict=strict, position=key_token.position
        )
        _reject_trailing(tokens[2:])
        return Requirement(key=key_token.text, operator=Operator.NOT_EXISTS)

    if first.kind is not TokenKind.IDENTIFIER:
        raise ParseError("expected key", token=first.text, position=first.position)

    key = first.text
    validate_label_key(key, rules=rules, strict=strict, position=first.position)

    if len(tokens) == 1:
        return Requirement(key=key, operator=Operator.EXISTS)

    op_token = tokens[1]

    if op_token.kind is TokenKind.OPERATOR:
        operator = EQUALITY_TOKENS.get(op_token.text)
        if operator is None:
            raise ParseError(
                "unrecognized operator", token=op_token.text, position=op_token.position
            )
        rest = tokens[2:]
        value = ""
        if rest:
            if rest[0].kind is not TokenKind.IDENTIFIER:
                raise ParseError(
                    "expected value", token=rest[0].text, position=rest[0].position
                )
            value = rest[0].text
            validate_label_value(
                value, rules=rules, strict=strict, position=rest[0].position
            )
            _reject_trailing(rest[1:])
        return Requirement(key=key, operator=operator, values=(value,))

    if op_token.kind is TokenKind.IDENTIFIER:
        operator = SET_KEYWORDS.get(op_token.text)
        if operator is None:
            raise ParseError(
                "unrecognized operator", token=op_token.text, position=op_token.position
            )
        values, rest = _parse_values(tokens[2:], op_token, rules, strict)
        _reject_trailing(rest)
        return Requirement(key=key, operator=operator, values=values)

    raise ParseError(
        "expected operator", token=op_token.text, position=op_token.position
    )


def parse_selector(
    selector_str: str, rules: LabelRules | None = None, strict: bool = False
) -> Selector:
    """Parse a textual label selector into a Selector.

    Supports ``=``, ``==`` and ``!=`` (equality-based), ``in (...)`` and
    ``notin (...)`` (set-based), ``key`` (exists) and ``!key`` (does not
    exist), separated by commas. An empty or blank string returns the empty
    selector, which matches everything.

    Raises ParseError on malformed input and, when *strict* is set,
    ValidationError for keys or values that break the limits in *rules*.
    """
    if not isinstance(selector_str, str):
        raise ParseError("selector must be a string", token=repr(selector_str))
    if not selector_str.strip():
        return Selector()

    requirements: list[Requirement] = []
    for term, start in split_terms(selector_str):
        tokens = tokenize(term, offset=start)
        requirements.append(
            parse_requirement(tokens, position=start, rules=rules, strict=strict)
        )

    logger.debug(
        "Parsed selector %r into %d requirement(s)", selector_str, len(requirements)
    )
    return Selector(tuple(requirements))


def _parse_match_expression(
    expression: Any, index: int, rules: LabelRules | None, strict: bool
) -> Requirement:
    if not isinstance(expression, Mapping):
        raise ParseError(
            "match expression must be a mapping", token=repr(expression), position=index
        )

    unknown = sorted(str(name) for name in expression if name not in MATCH_EXPRESSION_FIELDS)
    if unknown:
        raise ParseError(
            "unknown field in match expression", token=unknown[0], position=index
        )

    if "key" not in expression:
        raise ParseError("match expression is missing 'key'", position=index)
    key = expression["key"]
    validate_label_key(key, rules=rules, strict=strict, position=index)

    operator_name = expression.get("operator")
    if not isinstance(operator_name, str):
        raise ParseError(
            "match expression is missing 'operator'",
            token=None if operator_name is None else repr(operator_name),
            position=index,
        )
    try:
        operator = Operator.from_name(operator_name)
    except ParseError as err:
        raise ParseError(err.message, token=operator_name, position=index) from None

    values = expression.get("values")
    if values is None:
        values = []
    if not isinstance(values, (list, tuple)):
        raise ParseError("'values' must be a list", token=repr(values), position=index)
    for value in values:
        validate_label_value(value, rules=rules, strict=strict, position=index)

    try:
        return Requirement(key=key, operator=operator, values=tuple(values))
    except ParseError as err:
        raise ParseError(err.message, token=err.token, position=index) from None


def parse_match_expressions(
    expressions: Any, rules: LabelRules | None = None, strict: bool = False
) -> Selector:
    """Parse a structured ``matchExpressions`` list into a Selector.

    Each entry is a mapping with ``key``, ``operator`` and (depending on the
    operator) ``values``. Errors report the entry index as their position.
    """
    if not isinstance(expressions, (list, tuple)):
        raise ParseError(
            "matchExpressions must be a list", token=type(expressions).__name__
        )

    return Selector(
        tuple(
            _parse_match_expression(expression, index, rules, strict)
            for index, expression in enumerate(expressions)
        )
    )


def parse_label_selector(
    obj: Any, rules: LabelRules | None = None, strict: bool = False
) -> Selector:
    """Parse a ``{matchLabels, matchExpressions}`` mapping into a Selector.

    matchLabels become equality requirements and come first, in mapping
    order, followed by matchExpressions. An empty mapping selects everything.
    """
    if not isinstance(obj, Mapping):
        raise ParseError("label selector must be a mapping", token=type(obj).__name__)

    unknown = sorted(str(name) for name in obj if name not in LABEL_SELECTOR_FIELDS)
    if unknown:
        raise ParseError("unknown field in label selector", token=unknown[0])

    match_labels = obj.get("matchLabels")
    if match_labels is None:
        match_labels = {}
    if not isinstance(match_labels, Mapping):
        raise ParseError(
            "matchLabels must be a mapping", token=type(match_labels).__name__
        )

    requirements: list[Requirement] = []
    for key, value in match_labels.items():
        validate_label_key(key, rules=rules, strict=strict)
        validate_label_value(value, rules=rules, strict=strict)
        requirements.append(
            Requirement(key=key, operator=Operator.EQUALS, values=(value,))
        )

    expressions = obj.get("matchExpressions")
    if expressions is None:
        expressions = []
    requirements.extend(parse_match_expressions(expressions, rules, strict))
    return Selector(tuple(requirements))


def build_selector(
    source: Any, rules: LabelRules | None = None, strict: bool = False
) -> Selector:
    """Build a Selector from text, a matchExpressions list or a LabelSelector mapping."""
    if isinstance(source, str):
        return parse_selector(source, rules=rules, strict=strict)
    if isinstance(source, (list, tuple)):
        return parse_match_expressions(source, rules=rules, strict=strict)
    if isinstance(source, Mapping):
        return parse_label_selector(source, rules=rules, strict=strict)
    raise ParseError("unsupported selector type", token=type(source).__name__)
