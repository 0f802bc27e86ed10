"""Style-source-dialect compilation."""

from __future__ import annotations

from typing import Iterable, Sequence

import sass
from loguru import logger


class CompileError(Exception):
    """Raised when a style source cannot be compiled to CSS."""
    pass


class StyleCompiler:
    """Interface for turning one dialect source file into CSS text."""

    def compile(self, source: str, include_paths: Iterable[str] = ()) -> str:
        raise NotImplementedError


class ScssCompiler(StyleCompiler):
    """SCSS compiler backed by libsass, emitting compressed CSS."""

    def __init__(self, output_style: str = "compressed", include_paths: Sequence[str] = ()):
        self.output_style = output_style
        self.include_paths = list(include_paths)

    def compile(self, source: str, include_paths: Iterable[str] = ()) -> str:
        paths = [*include_paths, *self.include_paths]
        logger.debug(f"Compiling SCSS source ({len(source)} chars, include_paths={paths})")
        try:
            css = sass.compile(string=source, output_style=self.output_style, include_paths=paths)
        except sass.CompileError as e:
            raise CompileError(str(e)) from e
        return css.strip()
