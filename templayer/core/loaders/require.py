# templayer/core/loaders/require.py
"""
The `require` loader: resolves an identifier relative to the requires folder
(or as an importable module when it has no suffix) into a value for templates.

Supported kinds:
 - no suffix, or a dotted module path: importable Python module
 - `.json`, `.toml`: parsed data
 - `.py`: executed module, exposed as a dict of its public names
 - `.md`: markdown rendered to html, cached in its rendered form
"""
from enum import Enum
from pathlib import Path, PurePosixPath
from typing import Any, Dict
import importlib
import importlib.util
import json
import sys
import types

import markdown
import toml
import structlog

from templayer.core.cache import ContentCache, LoadCache
from templayer.core.history import Indent, TraceRecorder
from templayer.util import as_flag
from templayer.exceptions import (
    LoaderError, UnresolvedModuleError, UnsupportedExtensionError, WrongUsageError,
)

log = structlog.get_logger(__name__)


class RequireKind(Enum):
    MODULE = ""
    JSON = ".json"
    TOML = ".toml"
    PYTHON = ".py"
    MARKDOWN = ".md"


def _is_importable_dotted_name(identifier: str) -> bool:
    # "os.path" style names whose top-level package can be found on sys.path
    parts = identifier.split(".")
    if not all(part.isidentifier() for part in parts):
        return False
    return importlib.util.find_spec(parts[0]) is not None


def classify(identifier: str, template_ext: str) -> RequireKind:
    """Maps an identifier to its RequireKind by suffix.

    A suffix that is not a known file kind still resolves to a module when the
    identifier is a dotted module path whose top-level package is importable.
    """
    if not identifier or not isinstance(identifier, str):
        raise WrongUsageError("require() called without an identifier")
    if identifier.endswith(template_ext):
        raise WrongUsageError(
            f'requiring *{template_ext} file -> "{identifier}"\n'
            f"use the include(), widget() or setLayout() helpers for template files")
    suffix = PurePosixPath(identifier).suffix
    try:
        return RequireKind(suffix)
    except ValueError:
        if _is_importable_dotted_name(identifier):
            return RequireKind.MODULE
        raise UnsupportedExtensionError(
            f'requiring *{suffix} file -> "{identifier}"\nthis extension is not available for requiring') from None


def _module_namespace(module: types.ModuleType) -> Dict[str, Any]:
    return {name: value for name, value in vars(module).items() if not name.startswith("_")}


class RequireLoader:
    """Loads external resources for templates, bound to one requires folder."""

    def __init__(self, folder: Path, content_cache: ContentCache, load_cache: LoadCache,
                 history: TraceRecorder, template_ext: str = ".hbs"):
        self.folder = Path(folder)
        self.content_cache = content_cache
        self.load_cache = load_cache
        self.history = history
        self.template_ext = template_ext

    def __call__(self, identifier: str, no_cache: bool = False) -> Any:
        kind = classify(identifier, self.template_ext)
        if kind is RequireKind.MODULE:
            return self._require_module(identifier)

        resolved = self.folder / identifier.lstrip("/")
        self.history.push("> requiring file", resolved, Indent.OPEN)
        try:
            if kind is RequireKind.MARKDOWN:
                return self._require_markdown(resolved, no_cache)
            return self._require_data(resolved, kind, no_cache)
        except FileNotFoundError as e:
            raise LoaderError(f'required file not found -> "{resolved}"') from e
        finally:
            self.history.indent(Indent.CLOSE)

    def helper(self, this: Any, identifier: str, no_cache: bool = False, **kwargs: Any) -> Any:
        # pybars passes the current scope first; hash arguments arrive as kwargs.
        return self(identifier, as_flag(kwargs.get("no_cache", no_cache)))

    def block_helper(self, this: Any, options: Dict[str, Any], identifier: str, no_cache: bool = False, **kwargs: Any):
        # {{#with_require "file.json"}}...{{/with_require}} renders the body against the loaded value.
        value = self(identifier, as_flag(kwargs.get("no_cache", no_cache)))
        return options["fn"](value)

    def _require_module(self, identifier: str) -> Any:
        self.history.push("> requiring module", identifier, Indent.OPEN)
        try:
            if identifier in sys.modules:
                self.history.push("module is cached")
            try:
                return importlib.import_module(identifier)
            except ImportError as e:
                raise UnresolvedModuleError(f'cannot resolve module "{identifier}": {e}') from e
        finally:
            self.history.indent(Indent.CLOSE)

    def _require_data(self, resolved: Path, kind: RequireKind, no_cache: bool) -> Any:
        if no_cache:
            self.load_cache.evict(resolved)
            self.history.push("no cache")
            read = self.content_cache.read(resolved, no_cache=True)
            try:
                return self._parse(resolved, kind, read.content)
            finally:
                self.load_cache.evict(resolved)

        read = self.content_cache.read(resolved)
        if read.changed:
            self.load_cache.evict(resolved)
        self.history.push("file changed" if read.changed else "file not changed")
        if resolved in self.load_cache:
            return self.load_cache.get(resolved)
        value = self._parse(resolved, kind, read.content)
        self.load_cache.put(resolved, value)
        return value

    def _parse(self, resolved: Path, kind: RequireKind, content: str) -> Any:
        log.debug("parsing_required_file", path=str(resolved), kind=kind.name)
        try:
            if kind is RequireKind.JSON:
                return json.loads(content)
            if kind is RequireKind.TOML:
                return toml.loads(content)
            spec = importlib.util.spec_from_loader(f"templayer_required_{resolved.stem}", loader=None, origin=str(resolved))
            module = importlib.util.module_from_spec(spec)
            module.__file__ = str(resolved)
            exec(compile(content, str(resolved), "exec"), module.__dict__)
            return _module_namespace(module)
        except (ValueError, toml.TomlDecodeError, SyntaxError) as e:
            raise LoaderError(f'failed to parse required file "{resolved}": {e}') from e

    def _require_markdown(self, resolved: Path, no_cache: bool) -> str:
        read = self.content_cache.read(resolved, no_cache=no_cache)
        self.history.push("file changed" if read.changed else "file not changed")
        if not read.changed:
            self.history.push("get early rendered html content")
            return read.content

        html = markdown.markdown(read.content)
        if not no_cache:
            self.content_cache.store(resolved, html)
            self.history.push("set in cache new rendered content from markdown into html")
        return html
