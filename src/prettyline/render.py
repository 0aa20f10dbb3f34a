"""ANSI-aware differential rendering of a single highlighted line.

When a character is appended to the line, the previously drawn highlighted
text and the new highlighted text usually share a long prefix. Instead of
redrawing the line, the renderer backspaces over the part that changed,
replays the colour state in effect at that point, and writes the new tail.
"""

from __future__ import annotations

import logging
from typing import Callable

from prettyline.cache import HighlightCache, memoize
from prettyline.simplify import simplify, simplify_step
from prettyline.utils import (
    FOREGROUND_RESET,
    codepoint_count,
    extract_ansi_code,
    find_ansi_codes,
    is_foreground_code,
)

logger = logging.getLogger(__name__)

BACKSPACE = "\b"


def common_prefix_length(before: str, after: str) -> int:
    """Length of the longest common prefix, never splitting an escape sequence.

    ``'abcd', 'abab'`` gives 2, and so does ``'ab\\x1b[3m', 'ab\\x1b[5m'``.
    """
    i = 0
    limit = min(len(before), len(after))
    while i < limit and before[i] == after[i]:
        code_before = extract_ansi_code(before, i)
        code_after = extract_ansi_code(after, i)
        if code_before is None and code_after is None:
            i += 1
        elif code_before == code_after:
            i += len(code_before)
        else:
            break
    return i


def backtrack_length(before: str, prefix_length: int) -> int:
    """Visible codepoints in *before* after the common prefix."""
    return codepoint_count(before[prefix_length:])


def replay_sequences(prefix: str) -> list[str]:
    """Escape sequences needed to restore the colour state at the end of *prefix*.

    Foreground colour changes made before the last foreground reset are
    dropped; everything else is kept in order.
    """
    codes = find_ansi_codes(prefix)
    try:
        last_reset = len(codes) - 1 - codes[::-1].index(FOREGROUND_RESET)
    except ValueError:
        return codes
    return [
        code
        for index, code in enumerate(codes)
        if index >= last_reset or not is_foreground_code(code)
    ]


def _common_suffix_length(a: str, b: str) -> int:
    n = 0
    limit = min(len(a), len(b))
    while n < limit and a[-1 - n] == b[-1 - n]:
        n += 1
    return n


class DiffRenderer:
    """Computes terminal writes for one line-editing session.

    Owns the highlight cache and the memoized simplifier passes, so an
    instance must not be shared between sessions.
    """

    def __init__(
        self,
        colorize: Callable[[str], str],
        *,
        cache_size: int = 100,
        simplify_cache_size: int = 10000,
    ) -> None:
        self.highlight_cache = HighlightCache(colorize, cache_size)
        self._simplify_step = memoize(simplify_step, simplify_cache_size)

    def simplify(self, text: str) -> str:
        return simplify(text, self._simplify_step)

    def colorize(self, text: str) -> str:
        return self.highlight_cache.colorize(text)

    def render_append(self, line_before_insert: str, new_line: str) -> str:
        """Terminal write turning the drawn *line_before_insert* into *new_line*.

        *new_line* must be *line_before_insert* with text appended.

        Raises:
            ValueError: *new_line* does not extend *line_before_insert*.
            HighlightError: The highlighter failed.
        """
        if not new_line.startswith(line_before_insert):
            raise ValueError("render_append requires new_line to extend line_before_insert")
        inserted = new_line[len(line_before_insert) :]

        # Appending to the simplified line is a valid simplification of the
        # new line, so both states can be highlighted from the short form.
        simplified = self.simplify(line_before_insert)
        write, backtrack = self._diff(simplified, simplified + inserted)

        # Only the tail after the last removed span is on screen as-is
        if backtrack > _common_suffix_length(simplified, line_before_insert):
            logger.debug("Change reaches into simplified text, diffing full line")
            write, _ = self._diff(line_before_insert, new_line)
        return write

    def _diff(self, old: str, new: str) -> tuple[str, int]:
        before = self.colorize(old)
        after = self.colorize(new)
        prefix_length = common_prefix_length(before, after)
        backtrack = backtrack_length(before, prefix_length)
        replay = replay_sequences(before[:prefix_length])
        return BACKSPACE * backtrack + "".join(replay) + after[prefix_length:], backtrack

    def render_full_line(self, prompt: str, rest: str) -> str:
        """Prompt followed by the highlighted remainder of the line."""
        return prompt + self.colorize(rest)

    def render_write(
        self,
        data: str,
        *,
        prompt: str,
        line: str,
        line_before_insert: str | None = None,
    ) -> str:
        """Translate a write issued by the line editor into a terminal write.

        Whitespace-only writes and anything that is neither an append to the
        line nor a full line starting with the prompt pass through unchanged.
        """
        if not data:
            return ""
        if data.isspace():
            return data
        if line_before_insert is not None and line_before_insert + data == line:
            return self.render_append(line_before_insert, line)
        if data.startswith(prompt):
            return self.render_full_line(prompt, data[len(prompt) :])
        logger.debug("Passing through write of %d characters", len(data))
        return data

    def clear(self) -> None:
        """Drop all cached state."""
        self.highlight_cache.clear()
        self._simplify_step.cache.clear()  # type: ignore[attr-defined]
