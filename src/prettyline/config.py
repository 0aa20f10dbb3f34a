"""Renderer settings with environment overrides."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, replace

logger = logging.getLogger(__name__)

ENV_CACHE_SIZE = "PRETTYLINE_CACHE_SIZE"
ENV_SIMPLIFY_CACHE_SIZE = "PRETTYLINE_SIMPLIFY_CACHE_SIZE"
ENV_LANGUAGE = "PRETTYLINE_LANGUAGE"
ENV_STYLE = "PRETTYLINE_STYLE"
ENV_NO_COLOR = "NO_COLOR"


@dataclass(frozen=True)
class RenderSettings:
    """Controls one rendering session.

    ``cache_size`` bounds the highlight cache, ``simplify_cache_size`` the
    memoized simplifier passes. A bound of zero or less disables that cache.
    """

    cache_size: int = 100
    simplify_cache_size: int = 10000
    language: str = "javascript"
    style: str = "default"
    color: bool = True

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, **overrides: object) -> RenderSettings:
        """Build settings from defaults, then the environment, then *overrides*."""
        env = os.environ if environ is None else environ
        settings = cls()

        values: dict[str, object] = {}
        for key, field_name in (
            (ENV_CACHE_SIZE, "cache_size"),
            (ENV_SIMPLIFY_CACHE_SIZE, "simplify_cache_size"),
        ):
            raw = env.get(key)
            if raw is None:
                continue
            try:
                values[field_name] = int(raw)
            except ValueError:
                logger.warning("Ignoring %s=%r: not an integer", key, raw)

        if env.get(ENV_LANGUAGE):
            values["language"] = env[ENV_LANGUAGE]
        if env.get(ENV_STYLE):
            values["style"] = env[ENV_STYLE]
        # https://no-color.org: any non-empty value disables colour
        if env.get(ENV_NO_COLOR):
            values["color"] = False

        values.update(overrides)
        return replace(settings, **values)
