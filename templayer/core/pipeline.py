# templayer/core/pipeline.py
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Tuple

import pathspec  # type: ignore
import structlog

from templayer.core.engine import LayoutEngine
from templayer.core.environment import RenderEnvironment
from templayer.core.source_file import SourceFile
from templayer.exceptions import TemplayerError

log = structlog.get_logger(__name__)

ErrorHook = Callable[[TemplayerError, SourceFile], None]


class TemplayerPipeline:
    # feeds source files through the layout engine for one set of options.
    def __init__(self, options: Dict[str, Any], environment: RenderEnvironment):
        self.environment = environment
        self.configuration = environment.registry.get_or_create(options)
        self.engine = LayoutEngine(self.configuration, environment)
        self.errors: List[Tuple[SourceFile, TemplayerError]] = []
        self.log = structlog.get_logger(f"{__name__}.{self.__class__.__name__}")

    def process(self, files: Iterable[SourceFile], on_error: Optional[ErrorHook] = None) -> Iterator[SourceFile]:
        """Yields each rendered file; errors propagate unless `on_error` handles them."""
        for source_file in files:
            try:
                yield self.engine.render(source_file)
            except TemplayerError as error:
                if on_error is None:
                    raise
                on_error(error, source_file)

    def prevent_crash(self, error: TemplayerError, source_file: SourceFile) -> None:
        """Error hook that ends the stream for the failing file only.

        The error is logged and kept in `errors`; the remaining files still render.
        """
        self.errors.append((source_file, error))
        self.log.warning("render_error_skipped_file", path=str(source_file.path),
                         error_type=type(error).__name__, message=str(error))


def discover_sources(inputs: Iterable[Path], template_ext: str, skip_dirs: Iterable[Path] = (),
                     exclude_patterns: Iterable[str] = ()) -> List[SourceFile]:
    """Expands input paths into SourceFiles.

    Directories contribute every `*<template_ext>` file below them, except files
    under `skip_dirs` (layouts, partials, widgets) and files matching the
    gitwildmatch `exclude_patterns`.
    """
    spec = pathspec.PathSpec.from_lines("gitwildmatch", list(exclude_patterns))
    skip_dirs = [Path(d).resolve() for d in skip_dirs]
    found: List[SourceFile] = []
    seen = set()

    for input_path in inputs:
        input_path = Path(input_path).resolve()
        if input_path.is_file():
            candidates = [(input_path, input_path.parent)]
        elif input_path.is_dir():
            candidates = [(p, input_path) for p in sorted(input_path.rglob(f"*{template_ext}")) if p.is_file()]
        else:
            log.warning("input_path_not_found", path=str(input_path))
            continue

        for path, base in candidates:
            if path in seen:
                continue
            if any(skip in path.parents for skip in skip_dirs):
                log.debug("skipping_template_support_file", path=str(path))
                continue
            if spec.match_file(path.relative_to(base).as_posix()):
                log.debug("skipping_excluded_file", path=str(path))
                continue
            seen.add(path)
            found.append(SourceFile.from_path(path, base=base))

    log.info("sources_discovered", count=len(found))
    return found
