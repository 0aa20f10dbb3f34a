"""Default highlighter built on Pygments."""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Callable

from pygments import highlight
from pygments.formatters import Terminal256Formatter, TerminalFormatter
from pygments.lexers import get_lexer_by_name
from pygments.styles import get_style_by_name
from pygments.util import ClassNotFound


def supports_256_colors(environ: Mapping[str, str] | None = None) -> bool:
    """Guess from ``TERM``/``COLORTERM`` whether 256 colours are available."""
    env = os.environ if environ is None else environ
    term = env.get("TERM", "").lower()
    color_term = env.get("COLORTERM", "").lower()
    return "256color" in term or color_term in ("truecolor", "24bit")


def make_highlighter(
    language: str = "javascript",
    style: str = "default",
    *,
    use_256_colors: bool | None = None,
) -> Callable[[str], str]:
    """Return a function that highlights text with terminal escape sequences.

    The lexer keeps leading and trailing newlines as they are, so stripping
    escape sequences from the output gives back the input.

    Raises:
        ValueError: Unknown *language* or *style*.
    """
    try:
        lexer = get_lexer_by_name(language, stripnl=False, ensurenl=False)
    except ClassNotFound as exc:
        raise ValueError(f"Unknown language: {language}") from exc

    try:
        style_class = get_style_by_name(style)
    except ClassNotFound as exc:
        raise ValueError(f"Unknown style: {style}") from exc

    if use_256_colors is None:
        use_256_colors = supports_256_colors()

    if use_256_colors:
        formatter = Terminal256Formatter(style=style_class)
    else:
        # The 16-colour formatter has its own fixed palette
        formatter = TerminalFormatter()

    def colorize(text: str) -> str:
        if not text:
            return text
        return highlight(text, lexer, formatter)

    return colorize
