"""prettyline: incremental syntax-highlighted rendering of an edited line."""

# Bracket matching
from prettyline.brackets import BracketSpan, find_all_matching_brackets, find_matching_bracket

# Caches
from prettyline.cache import HighlightCache, LRUCache

# Configuration
from prettyline.config import RenderSettings

# Errors
from prettyline.errors import HighlightError, PrettyLineError

# Default highlighter
from prettyline.highlight import make_highlighter

# Differential rendering
from prettyline.render import DiffRenderer, common_prefix_length

# Sessions and rendering strategies
from prettyline.session import (
    HighlightingRenderer,
    LineRenderer,
    LineSession,
    PlainRenderer,
    create_session,
)

# Structural simplification
from prettyline.simplify import simplify

# Utilities
from prettyline.utils import AnsiToken, strip_ansi, tokenize_ansi, visible_width

__all__ = [
    # Brackets
    "BracketSpan",
    "find_all_matching_brackets",
    "find_matching_bracket",
    # Caches
    "HighlightCache",
    "LRUCache",
    # Config
    "RenderSettings",
    # Errors
    "HighlightError",
    "PrettyLineError",
    # Highlighter
    "make_highlighter",
    # Rendering
    "DiffRenderer",
    "common_prefix_length",
    # Sessions
    "HighlightingRenderer",
    "LineRenderer",
    "LineSession",
    "PlainRenderer",
    "create_session",
    # Simplifier
    "simplify",
    # Utilities
    "AnsiToken",
    "strip_ansi",
    "tokenize_ansi",
    "visible_width",
]
