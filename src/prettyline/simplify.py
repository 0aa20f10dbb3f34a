"""Structural simplification of partially typed source lines.

Highlighting a whole line on every keystroke gets expensive for long input.
Complete bracket pairs and string literals that contain no further structure
do not influence how the text after them is tokenized, so they can be cut out
before the highlighter runs.
"""

from __future__ import annotations

import re
from typing import Callable

# Alternatives, in order:
# - (), [] and {} pairs with none of ()[]{}`'" inside
# - '' literals, with \\ and \' consumed as escape pairs
# - "" literals, likewise
# - `` literals without { or } inside (template interpolation)
_STRUCTURE_RE = re.compile(
    r"""\([^()\[\]{}`'"]*\)"""
    r"""|\[[^()\[\]{}`'"]*\]"""
    r"""|\{[^()\[\]{}`'"]*\}"""
    r"""|'(?:[^'\\]|\\[\s\S])*'"""
    r"""|"(?:[^"\\]|\\[\s\S])*\""""
    r"""|`(?:[^{}`\\]|\\[^{}])*`"""
)

_CLOSING_CHARS_RE = re.compile(r"""[)\]}`'"]""")


def simplify_step(text: str) -> str:
    """Run a single simplification pass over *text*."""
    matches = list(_STRUCTURE_RE.finditer(text))
    if not matches:
        return text

    # A trailing () can decide whether the preceding word reads as a keyword:
    # keep it in `function() {`, drop it in `{ foo(); }`.
    last = matches[-1]
    if last.group(0).startswith("(") and not _CLOSING_CHARS_RE.search(text, last.end()):
        matches.pop()

    for match in reversed(matches):
        text = text[: match.start()] + text[match.end() :]
    return text


def simplify(text: str, step: Callable[[str], str] = simplify_step) -> str:
    """Reduce *text* to a shorter string that highlights the same at its end.

    Passes are repeated until one leaves the text unchanged. *step* may be a
    memoized ``simplify_step``.

    >>> simplify("{a: (x) => x.y = 1}")
    ''
    >>> simplify("(function() {")
    '(function() {'
    """
    while True:
        reduced = step(text)
        if reduced == text:
            return text
        text = reduced
