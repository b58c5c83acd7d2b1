# utilities/selector.py
from __future__ import annotations

import enum
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any

from utilities.errors import ParseError


class Operator(enum.Enum):
    """Selector requirement operators, valued by their structured names."""

    EQUALS = "Equals"
    NOT_EQUALS = "NotEquals"
    IN = "In"
    NOT_IN = "NotIn"
    EXISTS = "Exists"
    NOT_EXISTS = "DoesNotExist"

    @classmethod
    def from_name(cls, name: str) -> Operator:
        """Look up an operator by its structured (matchExpressions) name.

        Raises ParseError for unknown names. Matching is case-sensitive.
        """
        if name in _OPERATOR_ALIASES:
            return _OPERATOR_ALIASES[name]
        try:
            return cls(name)
        except ValueError:
            raise ParseError("unrecognized operator", token=name) from None


_OPERATOR_ALIASES: dict[str, Operator] = {"NotExists": Operator.NOT_EXISTS}

EQUALITY_OPERATORS = frozenset({Operator.EQUALS, Operator.NOT_EQUALS})
SET_OPERATORS = frozenset({Operator.IN, Operator.NOT_IN})
PRESENCE_OPERATORS = frozenset({Operator.EXISTS, Operator.NOT_EXISTS})


@dataclass(frozen=True)
class Requirement:
    """A single key/operator/values clause of a selector."""

    key: str
    operator: Operator
    values: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        values = tuple(self.values)

        if self.operator in PRESENCE_OPERATORS and values:
            raise ParseError(
                f"operator {self.operator.value} takes no values", token=self.key
            )
        if self.operator in EQUALITY_OPERATORS and len(values) != 1:
            raise ParseError(
                f"operator {self.operator.value} takes exactly one value",
                token=self.key,
            )
        if self.operator in SET_OPERATORS:
            if not values:
                raise ParseError(
                    f"operator {self.operator.value} requires at least one value",
                    token=self.key,
                )
            if "" in values:
                raise ParseError(
                    f"operator {self.operator.value} does not accept empty values",
                    token=self.key,
                )
            # Drop duplicate values but keep first-seen order for stable output.
            values = tuple(dict.fromkeys(values))
        object.__setattr__(self, "values", values)

    def matches(self, labels: Mapping[str, str]) -> bool:
        """Return True if *labels* satisfy this requirement."""
        present = self.key in labels

        if self.operator is Operator.EXISTS:
            return present
        if self.operator is Operator.NOT_EXISTS:
            return not present
        if self.operator in (Operator.EQUALS, Operator.IN):
            return present and labels[self.key] in self.values
        # NOT_EQUALS and NOT_IN are satisfied by an absent key.
        return not present or labels[self.key] not in self.values

    def to_match_expression(self) -> dict[str, Any]:
        """Return the structured ``{key, operator, values}`` form."""
        expression: dict[str, Any] = {"key": self.key, "operator": self.operator.value}
        if self.values:
            expression["values"] = list(self.values)
        return expression

    def __str__(self) -> str:
        if self.operator is Operator.EXISTS:
            return self.key
        if self.operator is Operator.NOT_EXISTS:
            return f"!{self.key}"
        if self.operator is Operator.EQUALS:
            return f"{self.key}={self.values[0]}"
        if self.operator is Operator.NOT_EQUALS:
            return f"{self.key}!={self.values[0]}"
        keyword = "in" if self.operator is Operator.IN else "notin"
        return f"{self.key} {keyword} ({','.join(self.values)})"


@dataclass(frozen=True)
class Selector:
    """An ordered conjunction of requirements.

    The empty selector matches every label set. Requirement order does not
    change the result but is kept so output and errors are deterministic.
    """

    requirements: tuple[Requirement, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "requirements", tuple(self.requirements))

    @classmethod
    def from_labels(cls, labels: Mapping[str, str]) -> Selector:
        """Build an equality selector from a plain label map (``matchLabels`` form)."""
        return cls(
            tuple(
                Requirement(key=key, operator=Operator.EQUALS, values=(value,))
                for key, value in labels.items()
            )
        )

    def matches(self, labels: Mapping[str, str]) -> bool:
        """Return True if *labels* satisfy every requirement."""
        for requirement in self.requirements:
            if not requirement.matches(labels):
                return False
        return True

    def is_empty(self) -> bool:
        return not self.requirements

    def to_match_expressions(self) -> list[dict[str, Any]]:
        return [requirement.to_match_expression() for requirement in self.requirements]

    def __iter__(self) -> Iterator[Requirement]:
        return iter(self.requirements)

    def __len__(self) -> int:
        return len(self.requirements)

    def __str__(self) -> str:
        return ",".join(str(requirement) for requirement in self.requirements)


def matches_selector(labels: Mapping[str, str], selector: Selector) -> bool:
    """Return True if ALL selector requirements match the given labels.

    An empty selector matches everything (returns True).
    """
    return selector.matches(labels)


def format_selector(selector: Selector) -> str:
    """Canonical textual form of *selector*; parses back to an equal selector."""
    return str(selector)
