"""Exception types raised by prettyline."""

from __future__ import annotations


class PrettyLineError(Exception):
    """Base class for prettyline errors."""


class HighlightError(PrettyLineError):
    """The external highlighter failed to colorize a piece of text.

    The original exception is chained as ``__cause__``.
    """

    def __init__(self, text: str, message: str | None = None) -> None:
        self.text = text
        super().__init__(message or f"Failed to highlight {text!r}")
