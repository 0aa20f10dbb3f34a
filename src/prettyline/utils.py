"""Terminal text utilities: ANSI tokenization, escape stripping, width measurement.

Escape sequences are handled as atomic tokens. Counting for cursor movement is
done in codepoints; ``visible_width`` measures terminal cells for column math.
"""

from __future__ import annotations

import functools
import re
import unicodedata
from dataclasses import dataclass

import grapheme
import wcwidth as _wcwidth


# ---------------------------------------------------------------------------
# Escape sequence patterns
# ---------------------------------------------------------------------------

# Upper bound on parameter/intermediate bytes; an ESC with no final byte within
# this window is not treated as an escape sequence.
MAX_CSI_PARAMS = 32

# CSI sequences: ESC[ <parameter bytes> <intermediate bytes> <final byte>
_CSI_RE = re.compile(
    r"\x1b\[[0-?]{0,%d}[ -/]{0,4}[@-~]" % MAX_CSI_PARAMS
)

# SGR sequences that set the foreground colour (30-37, 38;..., 39)
_FOREGROUND_SGR_RE = re.compile(r"^\x1b\[3\d.*m$")

FOREGROUND_RESET = "\x1b[39m"


@dataclass(frozen=True)
class AnsiToken:
    """A run of visible text or a single escape sequence."""

    text: str
    is_escape: bool = False


# ---------------------------------------------------------------------------
# Extraction / tokenization
# ---------------------------------------------------------------------------


def extract_ansi_code(text: str, pos: int) -> str | None:
    """Return the escape sequence starting at *pos* in *text*, or ``None``.

    Only well-formed CSI sequences are recognized. A lone ESC, or an ESC
    whose sequence is not terminated within the lookahead window, is left
    for the caller to treat as a visible character.
    """
    if pos >= len(text) or text[pos] != "\x1b":
        return None
    match = _CSI_RE.match(text, pos)
    if match is None:
        return None
    return match.group(0)


def tokenize_ansi(text: str) -> list[AnsiToken]:
    """Split *text* into visible runs and escape-sequence tokens."""
    tokens: list[AnsiToken] = []
    last = 0
    for match in _CSI_RE.finditer(text):
        if match.start() > last:
            tokens.append(AnsiToken(text[last : match.start()]))
        tokens.append(AnsiToken(match.group(0), is_escape=True))
        last = match.end()
    if last < len(text):
        tokens.append(AnsiToken(text[last:]))
    return tokens


def find_ansi_codes(text: str) -> list[str]:
    """Return every escape sequence in *text*, in order."""
    return [token.text for token in tokenize_ansi(text) if token.is_escape]


def strip_ansi(text: str) -> str:
    """Remove all recognized escape sequences from *text*."""
    if "\x1b" not in text:
        return text
    return _CSI_RE.sub("", text)


def is_foreground_code(code: str) -> bool:
    """Return ``True`` if *code* is an SGR sequence setting the foreground colour."""
    return _FOREGROUND_SGR_RE.match(code) is not None


def codepoint_count(text: str) -> int:
    """Number of visible codepoints in *text* (escape sequences excluded)."""
    return sum(len(token.text) for token in tokenize_ansi(text) if not token.is_escape)


# ---------------------------------------------------------------------------
# Width measurement
# ---------------------------------------------------------------------------

# Codepoints that make a multi-codepoint cluster render as a wide emoji:
# VS16, ZWJ, skin tone modifiers, regional indicators
_EMOJI_JOINERS = frozenset((0xFE0F, 0x200D))
_EMOJI_RANGES = ((0x1F3FB, 0x1F3FF), (0x1F1E6, 0x1F1FF))


def _is_emoji_part(cp: int) -> bool:
    return cp in _EMOJI_JOINERS or any(lo <= cp <= hi for lo, hi in _EMOJI_RANGES)


def _cluster_width(cluster: str) -> int:
    first = cluster[0]
    if len(cluster) == 1:
        if unicodedata.category(first) == "Cc":
            return 0
        return max(_wcwidth.wcwidth(first), 0)
    if ord(first) >= 0x1F000 or any(_is_emoji_part(ord(ch)) for ch in cluster):
        return 2
    category = unicodedata.category(first)
    if category.startswith("M") or category == "Cf":
        return 0
    return max(_wcwidth.wcwidth(first), 0)


@functools.lru_cache(maxsize=512)
def _text_width(plain: str) -> int:
    return sum(_cluster_width(cluster) for cluster in split_graphemes(plain))


def visible_width(text: str) -> int:
    """Terminal cells taken by *text*, ignoring escape sequences."""
    plain = strip_ansi(text)
    if plain.isascii() and plain.isprintable():
        return len(plain)
    return _text_width(plain)


# ---------------------------------------------------------------------------
# Grapheme clusters
# ---------------------------------------------------------------------------


def split_graphemes(text: str) -> list[str]:
    """Split *text* into user-perceived characters."""
    return list(grapheme.graphemes(text))
