"""Shared fixtures: deterministic highlighters."""

from __future__ import annotations

import re
from typing import Callable

import pytest

CYAN = "\x1b[36m"
YELLOW = "\x1b[33m"
FG_RESET = "\x1b[39m"

_TOKEN_RE = re.compile(r"\blet\b|\d+")


def fake_colorize(text: str) -> str:
    """Colour ``let`` cyan and numbers yellow."""

    def repl(match: re.Match[str]) -> str:
        color = CYAN if match.group(0) == "let" else YELLOW
        return f"{color}{match.group(0)}{FG_RESET}"

    return _TOKEN_RE.sub(repl, text)


class CountingHighlighter:
    """Wraps a highlighter and records every text it is asked to colorize."""

    def __init__(self, colorize: Callable[[str], str] = fake_colorize) -> None:
        self._colorize = colorize
        self.calls: list[str] = []

    def __call__(self, text: str) -> str:
        self.calls.append(text)
        return self._colorize(text)


@pytest.fixture
def counting_highlighter() -> CountingHighlighter:
    return CountingHighlighter()
