"""Tests for prettyline.session -- line sessions and rendering strategies."""

from __future__ import annotations

import logging
import re

import pytest

from prettyline.config import RenderSettings
from prettyline.session import (
    HighlightingRenderer,
    LineRenderer,
    LineSession,
    PlainRenderer,
    create_session,
)
from prettyline.utils import strip_ansi

from .conftest import CYAN, FG_RESET, CountingHighlighter, fake_colorize
from .virtual_output import VirtualOutput


def _highlighting_session(
    output: VirtualOutput, colorize=fake_colorize, prompt: str = "> "
) -> LineSession:
    return LineSession(output, prompt=prompt, renderer=HighlightingRenderer(colorize))


def _type(session: LineSession, text: str) -> None:
    for ch in text:
        session.insert_string(ch)


class TestStrategies:
    def test_strategies_satisfy_protocol(self) -> None:
        assert isinstance(PlainRenderer(), LineRenderer)
        assert isinstance(HighlightingRenderer(fake_colorize), LineRenderer)

    def test_default_strategy_is_plain(self) -> None:
        session = LineSession(VirtualOutput())
        assert isinstance(session.renderer, PlainRenderer)


class TestPlainSession:
    def test_typing_writes_characters_verbatim(self) -> None:
        out = VirtualOutput()
        session = LineSession(out, prompt="> ")
        session.display_prompt()
        _type(session, "let x")
        assert out.output == "> let x"
        assert session.line == "let x"
        assert session.cursor == 5


class TestTypingScenario:
    """Typing `let foo = 12` one character at a time."""

    def test_screen_shows_typed_line(self) -> None:
        out = VirtualOutput()
        session = _highlighting_session(out)
        session.display_prompt()
        _type(session, "let foo = 12")
        assert out.screen_line() == "> let foo = 12"

    def test_last_keystroke_is_a_minimal_update(self) -> None:
        out = VirtualOutput()
        session = _highlighting_session(out)
        session.display_prompt()
        _type(session, "let foo = 12")
        last = out.writes[-1]
        match = re.fullmatch(r"(\x08*)((?:\x1b\[[0-9;]*m)*)(.*)", last, re.DOTALL)
        assert match is not None
        backspaces, _replay, remainder = match.groups()
        assert backspaces == ""
        assert strip_ansi(remainder) == "2"

    def test_keyword_is_redrawn_in_color(self) -> None:
        out = VirtualOutput()
        session = _highlighting_session(out)
        _type(session, "let")
        assert out.writes == ["l", "e", f"\b\b{CYAN}let{FG_RESET}"]

    def test_space_is_written_plainly(self) -> None:
        out = VirtualOutput()
        session = _highlighting_session(out)
        _type(session, "let ")
        assert out.writes[-1] == " "

    def test_long_line_highlights_simplified_text(self, counting_highlighter: CountingHighlighter) -> None:
        out = VirtualOutput()
        session = _highlighting_session(out, colorize=counting_highlighter)
        _type(session, "f({a: 1}) + 2")
        assert out.screen_line() == "f({a: 1}) + 2"
        assert max(len(text) for text in counting_highlighter.calls) < len("f({a: 1}) + 2")


    def test_append_after_closed_brackets_draws_typed_text(self) -> None:
        out = VirtualOutput()
        session = _highlighting_session(out)
        session.display_prompt()
        _type(session, "let[a]x")
        assert out.screen_line() == "> let[a]x"


class TestMidLineEditing:
    def test_insert_in_middle_redraws_line(self) -> None:
        out = VirtualOutput()
        session = _highlighting_session(out)
        session.display_prompt()
        _type(session, "lt")
        session.move_cursor(-1)
        session.insert_string("e")
        assert session.line == "let"
        assert session.cursor == 2
        assert out.screen_line() == "> let"
        assert f"> {CYAN}let{FG_RESET}" in out.output

    def test_delete_backward(self) -> None:
        out = VirtualOutput()
        session = _highlighting_session(out)
        session.display_prompt()
        _type(session, "lets")
        session.delete_backward()
        assert session.line == "let"
        assert out.screen_line() == "> let"

    def test_delete_backward_removes_whole_grapheme(self) -> None:
        out = VirtualOutput()
        session = LineSession(out)
        session.insert_string("ae\u0301")
        session.delete_backward()
        assert session.line == "a"
        assert session.cursor == 1

    def test_delete_backward_at_start_does_nothing(self) -> None:
        out = VirtualOutput()
        session = LineSession(out)
        session.delete_backward()
        assert out.output == ""

    def test_move_cursor_writes_motion(self) -> None:
        out = VirtualOutput()
        session = LineSession(out)
        _type(session, "abc")
        out.clear_buffer()
        session.move_cursor(-2)
        session.move_cursor(1)
        assert out.writes == ["\x1b[2D", "\x1b[1C"]
        assert session.cursor == 2

    def test_move_cursor_stops_at_edges(self) -> None:
        session = LineSession(VirtualOutput())
        _type(session, "ab")
        session.move_cursor(-10)
        assert session.cursor == 0
        session.move_cursor(10)
        assert session.cursor == 2


class TestLineLifecycle:
    def test_accept_line(self) -> None:
        out = VirtualOutput()
        session = _highlighting_session(out)
        _type(session, "let")
        assert session.accept_line() == "let"
        assert out.writes[-1] == "\r\n"
        assert session.line == ""
        assert session.cursor == 0

    def test_cursor_column_counts_cells(self) -> None:
        session = LineSession(VirtualOutput(), prompt="> ")
        session.insert_string("\u4e16a")
        assert session.cursor_column() == 5

    def test_cursor_column_ignores_prompt_colors(self) -> None:
        session = LineSession(VirtualOutput(), prompt="\x1b[32m>\x1b[0m ")
        assert session.cursor_column() == 2

    def test_matching_bracket_before_cursor(self) -> None:
        session = LineSession(VirtualOutput())
        _type(session, "(abc)")
        assert session.matching_bracket() == 0

    def test_matching_bracket_under_cursor(self) -> None:
        session = LineSession(VirtualOutput())
        _type(session, "(abc)")
        session.move_cursor(-5)
        assert session.matching_bracket() == 4

    def test_close_drops_render_state(self) -> None:
        renderer = HighlightingRenderer(fake_colorize)
        session = LineSession(VirtualOutput(), renderer=renderer)
        _type(session, "let")
        assert len(renderer.diff.highlight_cache) > 0
        session.close()
        assert session.closed
        assert len(renderer.diff.highlight_cache) == 0


class TestHighlighterFailure:
    def test_falls_back_to_plain_text(self, caplog: pytest.LogCaptureFixture) -> None:
        def broken(text: str) -> str:
            raise RuntimeError("boom")

        out = VirtualOutput()
        session = _highlighting_session(out, colorize=broken)
        with caplog.at_level(logging.ERROR, logger="prettyline.session"):
            session.display_prompt()
            _type(session, "let x")
        assert out.output == "> let x"
        assert "Highlighting failed" in caplog.text

    def test_recovers_when_highlighter_works_again(self) -> None:
        failing = {"on": True}

        def flaky(text: str) -> str:
            if failing["on"]:
                raise RuntimeError("boom")
            return fake_colorize(text)

        out = VirtualOutput()
        session = _highlighting_session(out, colorize=flaky)
        _type(session, "le")
        failing["on"] = False
        session.insert_string("t")
        assert out.screen_line() == "let"
        assert out.writes[-1] == f"\b\b{CYAN}let{FG_RESET}"


class TestCreateSession:
    def _colorize(self, text: str) -> str:
        return text.replace("const", "<color>const</color>", 1)

    def test_colors_full_line_on_terminal(self) -> None:
        out = VirtualOutput(tty=True)
        session = create_session(
            out,
            prompt="test-prompt > ",
            colorize=self._colorize,
            terminal=True,
            settings=RenderSettings(),
        )
        session.write("test-prompt > const foo = 12\n")
        assert out.output == "test-prompt > <color>const</color> foo = 12\n"

    def test_no_colors_when_not_tty(self) -> None:
        out = VirtualOutput(tty=False)
        session = create_session(
            out, prompt="test-prompt > ", colorize=self._colorize, settings=RenderSettings()
        )
        session.write("test-prompt > const foo = 12\n")
        assert out.output == "test-prompt > const foo = 12\n"
        assert isinstance(session.renderer, PlainRenderer)

    def test_tty_detection(self) -> None:
        session = create_session(
            VirtualOutput(tty=True), colorize=self._colorize, settings=RenderSettings()
        )
        assert isinstance(session.renderer, HighlightingRenderer)

    def test_color_disabled_in_settings(self) -> None:
        session = create_session(
            VirtualOutput(tty=True),
            colorize=self._colorize,
            terminal=True,
            settings=RenderSettings(color=False),
        )
        assert isinstance(session.renderer, PlainRenderer)

    def test_no_color_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("NO_COLOR", "1")
        session = create_session(VirtualOutput(tty=True), colorize=self._colorize)
        assert isinstance(session.renderer, PlainRenderer)

    def test_default_highlighter(self) -> None:
        out = VirtualOutput(tty=True)
        session = create_session(out, prompt="> ", settings=RenderSettings())
        session.display_prompt()
        _type(session, "let foo = 12")
        assert out.screen_line() == "> let foo = 12"
        assert "\x1b[" in out.output

    def test_cache_bounds_come_from_settings(self) -> None:
        session = create_session(
            VirtualOutput(tty=True),
            colorize=self._colorize,
            settings=RenderSettings(cache_size=7),
        )
        assert isinstance(session.renderer, HighlightingRenderer)
        assert session.renderer.diff.highlight_cache.cache.max_size == 7
