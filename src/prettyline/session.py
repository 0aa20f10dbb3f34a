"""Line sessions and the rendering strategies they are composed with.

A ``LineSession`` holds the line being edited and knows how to write it to
an output stream. How text reaches the terminal is delegated to a
``LineRenderer`` chosen when the session is built: ``PlainRenderer`` writes
everything as-is, ``HighlightingRenderer`` colorizes the line incrementally.
Strategies call back into the session's ``default_*`` methods for the base
behavior.
"""

from __future__ import annotations

import logging
import sys
from typing import Callable, Protocol, TextIO, runtime_checkable

from prettyline.brackets import find_matching_bracket
from prettyline.config import RenderSettings
from prettyline.errors import HighlightError
from prettyline.highlight import make_highlighter
from prettyline.render import DiffRenderer
from prettyline.utils import split_graphemes, visible_width

logger = logging.getLogger(__name__)


_CLEAR_FROM_CURSOR = "\x1b[0J"
_CURSOR_LEFT_FMT = "\x1b[{}D"
_CURSOR_RIGHT_FMT = "\x1b[{}C"


# ---------------------------------------------------------------------------
# Rendering strategies
# ---------------------------------------------------------------------------


@runtime_checkable
class LineRenderer(Protocol):
    """Decides what reaches the terminal for writes and insertions."""

    def on_write(self, session: LineSession, data: str) -> None:
        """Handle a write of *data* issued by the session."""
        ...

    def on_insert(self, session: LineSession, text: str) -> None:
        """Handle insertion of *text* at the session's cursor."""
        ...

    def close(self) -> None:
        """Release per-session state."""
        ...


class PlainRenderer:
    """Writes text unmodified."""

    def on_write(self, session: LineSession, data: str) -> None:
        session.default_write(data)

    def on_insert(self, session: LineSession, text: str) -> None:
        session.default_insert(text)

    def close(self) -> None:
        pass


class HighlightingRenderer:
    """Colorizes the line as it is typed, writing only what changed.

    If the highlighter fails, the text is written uncolorized.
    """

    def __init__(
        self,
        colorize: Callable[[str], str],
        settings: RenderSettings | None = None,
    ) -> None:
        settings = settings or RenderSettings()
        self.diff = DiffRenderer(
            colorize,
            cache_size=settings.cache_size,
            simplify_cache_size=settings.simplify_cache_size,
        )
        self._line_before_insert: str | None = None

    def on_insert(self, session: LineSession, text: str) -> None:
        self._line_before_insert = session.line
        try:
            session.default_insert(text)
        finally:
            self._line_before_insert = None

    def on_write(self, session: LineSession, data: str) -> None:
        try:
            rendered = self.diff.render_write(
                data,
                prompt=session.prompt,
                line=session.line,
                line_before_insert=self._line_before_insert,
            )
        except HighlightError:
            logger.exception("Highlighting failed, writing plain text")
            rendered = data
        session.default_write(rendered)

    def close(self) -> None:
        self.diff.clear()


# ---------------------------------------------------------------------------
# LineSession
# ---------------------------------------------------------------------------


class LineSession:
    """A single line being edited after a prompt."""

    def __init__(
        self,
        output: TextIO,
        *,
        prompt: str = "> ",
        renderer: LineRenderer | None = None,
    ) -> None:
        self.output = output
        self.prompt = prompt
        self.line: str = ""
        self.cursor: int = 0
        self.renderer: LineRenderer = renderer or PlainRenderer()
        self.closed = False

    # -- output -------------------------------------------------------------

    def write(self, data: str) -> None:
        """Write *data* through the rendering strategy."""
        self.renderer.on_write(self, data)

    def default_write(self, data: str) -> None:
        if not data:
            return
        self.output.write(data)
        flush = getattr(self.output, "flush", None)
        if flush is not None:
            flush()

    # -- editing ------------------------------------------------------------

    def insert_string(self, text: str) -> None:
        """Insert *text* at the cursor through the rendering strategy."""
        self.renderer.on_insert(self, text)

    def default_insert(self, text: str) -> None:
        if self.cursor < len(self.line):
            self.line = self.line[: self.cursor] + text + self.line[self.cursor :]
            self.cursor += len(text)
            self.refresh_line()
        else:
            self.line += text
            self.cursor += len(text)
            self.write(text)

    def delete_backward(self) -> None:
        """Delete the grapheme cluster before the cursor."""
        if self.cursor == 0:
            return
        graphemes = split_graphemes(self.line[: self.cursor])
        removed = len(graphemes[-1]) if graphemes else 1
        self.line = self.line[: self.cursor - removed] + self.line[self.cursor :]
        self.cursor -= removed
        self.refresh_line()

    def move_cursor(self, delta: int) -> None:
        """Move the cursor by *delta* grapheme clusters (negative is left)."""
        old = self.cursor
        if delta < 0:
            graphemes = split_graphemes(self.line[: self.cursor])
            steps = min(-delta, len(graphemes))
            for g in graphemes[len(graphemes) - steps :]:
                self.cursor -= len(g)
            columns = visible_width(self.line[self.cursor : old])
            if columns:
                self.default_write(_CURSOR_LEFT_FMT.format(columns))
        elif delta > 0:
            graphemes = split_graphemes(self.line[self.cursor :])
            for g in graphemes[:delta]:
                self.cursor += len(g)
            columns = visible_width(self.line[old : self.cursor])
            if columns:
                self.default_write(_CURSOR_RIGHT_FMT.format(columns))

    def accept_line(self) -> str:
        """Finish the line: write a line break, return the text, start afresh."""
        line = self.line
        self.write("\r\n")
        self.line = ""
        self.cursor = 0
        return line

    # -- display ------------------------------------------------------------

    def display_prompt(self) -> None:
        """Write the prompt followed by the current line."""
        self.write(self.prompt + self.line)
        self._move_back_to_cursor()

    def refresh_line(self) -> None:
        """Redraw prompt and line from the start of the terminal row."""
        self.default_write("\r" + _CLEAR_FROM_CURSOR)
        self.display_prompt()

    def _move_back_to_cursor(self) -> None:
        columns = visible_width(self.line[self.cursor :])
        if columns:
            self.default_write(_CURSOR_LEFT_FMT.format(columns))

    def cursor_column(self) -> int:
        """Terminal column of the cursor, counted from the start of the prompt."""
        return visible_width(self.prompt + self.line[: self.cursor])

    # -- navigation ---------------------------------------------------------

    def matching_bracket(self) -> int | None:
        """Partner of the bracket under the cursor, else of the one before it."""
        match = find_matching_bracket(self.line, self.cursor)
        if match is None and self.cursor > 0:
            match = find_matching_bracket(self.line, self.cursor - 1)
        return match

    # -- lifecycle ----------------------------------------------------------

    def close(self) -> None:
        """End the session and drop its rendering state."""
        if self.closed:
            return
        self.renderer.close()
        self.closed = True


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


def _is_terminal(output: TextIO) -> bool:
    isatty = getattr(output, "isatty", None)
    if isatty is None:
        return False
    try:
        return bool(isatty())
    except ValueError:
        # Closed stream
        return False


def create_session(
    output: TextIO | None = None,
    *,
    prompt: str = "> ",
    colorize: Callable[[str], str] | None = None,
    terminal: bool | None = None,
    settings: RenderSettings | None = None,
) -> LineSession:
    """Build a session with the rendering strategy suited to *output*.

    Highlighting is used when *terminal* is true, or when it is ``None``
    and *output* is a TTY, unless colour is disabled in *settings*.
    *colorize* defaults to a Pygments highlighter configured from *settings*.
    """
    output = output if output is not None else sys.stdout
    settings = settings or RenderSettings.from_env()
    if terminal is None:
        terminal = _is_terminal(output)

    renderer: LineRenderer
    if terminal and settings.color:
        if colorize is None:
            colorize = make_highlighter(settings.language, settings.style)
        renderer = HighlightingRenderer(colorize, settings)
        logger.debug("Using highlighting renderer (language=%s)", settings.language)
    else:
        renderer = PlainRenderer()
        logger.debug("Using plain renderer (terminal=%s, color=%s)", terminal, settings.color)

    return LineSession(output, prompt=prompt, renderer=renderer)
