# utilities/errors.py
from __future__ import annotations


class SelectorError(ValueError):
    """Base class for label and selector errors.

    Subclasses ValueError so existing ``except ValueError`` handlers in the
    CLI treat selector errors like any other invalid input.
    """


class ParseError(SelectorError):
    """Malformed selector or label syntax.

    Carries the offending token and its position (character offset for
    textual selectors, entry index for structured ones) when known.
    """

    def __init__(
        self, message: str, token: str | None = None, position: int | None = None
    ) -> None:
        self.message = message
        self.token = token
        self.position = position
        super().__init__(self._render())

    def _render(self) -> str:
        rendered = self.message
        if self.token is not None:
            rendered += f": {self.token!r}"
        if self.position is not None:
            rendered += f" at position {self.position}"
        return rendered


class ValidationError(SelectorError):
    """Key or value is syntactically valid but breaks a strict-mode limit."""

    def __init__(self, message: str, token: str | None = None) -> None:
        self.message = message
        self.token = token
        rendered = message if token is None else f"{message}: {token!r}"
        super().__init__(rendered)
