"""Bracket matching aware of string and template literals.

The scan is lexical only: ``'`` and ``"`` start string literals, a backtick
starts a template literal in which ``${`` opens an interpolation that runs
until its matching ``}``. Brackets inside literal text never match anything.
"""

from __future__ import annotations

from dataclasses import dataclass, field

OPENING = "([{"
CLOSING = ")]}"
QUOTES = "'\""
BACKTICK = "`"

_PARTNER = dict(zip(CLOSING, OPENING))
_ESCAPABLE = QUOTES + BACKTICK + "\\"


@dataclass(frozen=True)
class BracketSpan:
    """Offsets of an opening token and its closing partner."""

    open: int
    close: int


@dataclass
class _CodeFrame:
    # Unresolved openers per bracket kind
    stacks: dict[str, list[int]] = field(default_factory=lambda: {ch: [] for ch in OPENING})
    # Offset of the `{` of `${` for interpolations, None at top level
    interpolation: int | None = None


@dataclass
class _TemplateFrame:
    open: int


def _skip_string(text: str, start: int) -> int:
    """Return the offset of the quote closing the literal at *start*, or -1."""
    quote = text[start]
    i = start + 1
    while i < len(text):
        ch = text[i]
        if ch == "\\":
            i += 2
            continue
        if ch == quote:
            return i
        i += 1
    return -1


def _scan(text: str) -> dict[int, int]:
    """Map every resolvable token offset to its partner's offset."""
    partners: dict[int, int] = {}
    frames: list[_CodeFrame | _TemplateFrame] = [_CodeFrame()]

    i = 0
    n = len(text)
    while i < n:
        frame = frames[-1]
        ch = text[i]

        if isinstance(frame, _TemplateFrame):
            if ch == "\\":
                i += 2
                continue
            if ch == BACKTICK:
                partners[frame.open] = i
                partners[i] = frame.open
                frames.pop()
            elif ch == "$" and i + 1 < n and text[i + 1] == "{":
                frames.append(_CodeFrame(interpolation=i + 1))
                i += 2
                continue
            i += 1
            continue

        if ch == "\\" and i + 1 < n and text[i + 1] in _ESCAPABLE:
            # Backslash pairs consume each other; an odd run escapes the quote
            i += 2
            continue
        if ch in OPENING:
            frame.stacks[ch].append(i)
        elif ch in CLOSING:
            opener = _PARTNER[ch]
            if frame.stacks[opener]:
                start = frame.stacks[opener].pop()
                partners[start] = i
                partners[i] = start
            elif ch == "}" and frame.interpolation is not None:
                brace = frame.interpolation
                partners[brace] = i
                partners[brace - 1] = i
                partners[i] = brace
                frames.pop()
        elif ch in QUOTES:
            end = _skip_string(text, i)
            if end == -1:
                # Unterminated: the rest of the text is literal content
                break
            partners[i] = end
            partners[end] = i
            i = end
        elif ch == BACKTICK:
            frames.append(_TemplateFrame(open=i))
        i += 1

    return partners


def find_matching_bracket(text: str, offset: int) -> int | None:
    """Return the offset of the partner of the token at *offset*.

    The token must be a bracket, a quote, a backtick, or the ``$`` of a
    ``${`` interpolation opener. Returns ``None`` for any other character,
    for tokens inside literal text, and for tokens without a partner.
    """
    if offset < 0 or offset >= len(text):
        return None
    ch = text[offset]
    if ch not in OPENING + CLOSING + QUOTES + BACKTICK and ch != "$":
        return None
    return _scan(text).get(offset)


def find_all_matching_brackets(text: str) -> list[BracketSpan]:
    """Return every resolved pair in *text*, ordered by opening offset."""
    partners = _scan(text)
    spans = [
        BracketSpan(open=start, close=end)
        for start, end in partners.items()
        if start < end and text[start] != "$"
    ]
    spans.sort(key=lambda span: span.open)
    return spans
