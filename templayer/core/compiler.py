# templayer/core/compiler.py
"""
Adapter around the pybars Handlebars compiler.

Template sources come through the shared ContentCache and compiled template
functions are kept per path until the source fingerprint changes. In
diagnostic mode (`compile_debug`) both caches are bypassed and failures carry
a numbered source excerpt and the formatted traceback.
"""
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional
import traceback

import pybars  # type: ignore
import structlog

from templayer.config.settings import EngineOptions
from templayer.core.cache import ContentCache
from templayer.exceptions import TemplateCompileError, TemplateError, TemplateRuntimeError

log = structlog.get_logger(__name__)

EXCERPT_CONTEXT_LINES = 2


@dataclass(frozen=True)
class CompiledTemplate:
    path: Path
    source: str
    fingerprint: str
    render: Callable[..., Any]


def _line_of(source: str, position: Any) -> Optional[int]:
    if not isinstance(position, int) or position < 0:
        return None
    return source.count("\n", 0, position) + 1


def source_excerpt(source: str, line: Optional[int] = None, context: int = EXCERPT_CONTEXT_LINES) -> str:
    """Numbers the lines of `source`, marking `line` and keeping only its surroundings."""
    lines = source.splitlines() or [""]
    if line is None:
        start, end = 1, len(lines)
    else:
        start, end = max(1, line - context), min(len(lines), line + context)
    width = len(str(end))
    out = []
    for number in range(start, end + 1):
        pointer = ">>" if number == line else "  "
        out.append(f"{pointer} {number:>{width}}| {lines[number - 1]}")
    return "\n".join(out)


def describe_failure(error: BaseException, source: str) -> str:
    # builds the diagnostic report attached to errors raised in compile_debug mode.
    line = _line_of(source, getattr(error, "position", None))
    location = f" (line {line})" if line else ""
    parts = [
        f"{type(error).__name__}{location}: {error}",
        source_excerpt(source, line),
        "".join(traceback.format_exception(type(error), error, error.__traceback__)).rstrip(),
    ]
    return "\n\n".join(parts)


class TemplateCompiler:
    """Manages loading, compilation, and rendering of Handlebars template files."""
    def __init__(self, content_cache: ContentCache):
        self.content_cache = content_cache
        self.handlebars_compiler = pybars.Compiler()
        self._compiled: Dict[Path, CompiledTemplate] = {}

    def __contains__(self, path: Path) -> bool:
        return Path(path) in self._compiled

    def load(self, path: Path, no_cache: bool = False) -> CompiledTemplate:
        path = Path(path)
        try:
            read = self.content_cache.read(path, no_cache=no_cache)
        except OSError as e:
            raise TemplateCompileError(f"Failed to read template file {path}: {e}", path=path) from e

        cached = self._compiled.get(path)
        if not no_cache and cached is not None and cached.fingerprint == read.fingerprint:
            return cached

        try:
            render_fn = self.handlebars_compiler.compile(read.content)
        except Exception as e:
            log.debug("template_compilation_failed", path=str(path), error=str(e))
            details = describe_failure(e, read.content) if no_cache else None
            raise TemplateCompileError(f"Failed to compile template '{path}': {e}", path=path, details=details) from e

        compiled = CompiledTemplate(path=path, source=read.content, fingerprint=read.fingerprint, render=render_fn)
        if not no_cache:
            self._compiled[path] = compiled
        log.debug("template_compiled_successfully", path=str(path), cached=not no_cache)
        return compiled

    def render_file(self, path: Path, data: Mapping[str, Any], helpers: Mapping[str, Callable[..., Any]],
                    engine: EngineOptions) -> str:
        """Renders one template file with `data` as its context."""
        debug = engine.compile_debug
        compiled = self.load(path, no_cache=debug)
        try:
            output = compiled.render(data, helpers=dict(helpers))
        except TemplateError:
            # a nested include/widget already identified the failing template
            raise
        except Exception as e:
            log.debug("template_rendering_error_occurred", path=str(compiled.path), error=str(e))
            details = describe_failure(e, compiled.source) if debug else None
            raise TemplateRuntimeError(f"Template render failed for '{compiled.path}': {e}",
                                       path=compiled.path, details=details) from e

        markup = output if isinstance(output, str) else "".join(output)
        if engine.trim_output:
            markup = markup.strip() + "\n"
        return markup
