# templayer/core/loaders/partials.py
"""
Template-file loaders: `include` (partials), `widget` and `setLayout`.

Each resolves a template-relative name against its configured base directory.
`include` and `widget` render the file immediately and return its markup;
`setLayout` only records the layout path for the engine's next chain link.
"""
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterable, List, Optional, Tuple
import hashlib
import json
import structlog

from templayer.core.cache import fingerprint_bytes
from templayer.core.environment import WidgetCacheEntry
from templayer.core.history import Indent
from templayer.util import as_flag, with_template_ext

if TYPE_CHECKING:
    from templayer.core.context import RenderContext

log = structlog.get_logger(__name__)


def resolve_template(base_dir: Path, name: str, template_ext: str) -> Path:
    return (Path(base_dir) / with_template_ext(str(name).lstrip("/"), template_ext)).resolve()


def _locals_digest(locals_: Dict[str, Any]) -> str:
    serialized = json.dumps(locals_, sort_keys=True, default=repr)
    return hashlib.sha256(serialized.encode()).hexdigest()[:16]


def _render_template(context: "RenderContext", path: Path, locals_: Dict[str, Any]) -> str:
    data = {**context.data, **locals_} if locals_ else context.data
    return context.environment.compiler.render_file(path, data, context.helpers, context.engine)


def make_include_helper(context: "RenderContext") -> Callable[..., str]:
    def include(this: Any, name: str, **locals_: Any) -> str:
        options = context.options
        path = resolve_template(options.partials, name, options.template_ext)
        context.history.visit("> include", path, Indent.OPEN)
        try:
            return _render_template(context, path, locals_)
        finally:
            context.history.indent(Indent.CLOSE)

    return include


def _fingerprints(paths: Iterable[Path]) -> Optional[Tuple[Tuple[Path, str], ...]]:
    try:
        return tuple((path, fingerprint_bytes(path.read_bytes())) for path in paths)
    except OSError:
        return None


def _is_fresh(entry: WidgetCacheEntry) -> bool:
    return _fingerprints(path for path, _ in entry.sources) == entry.sources


def make_widget_helper(context: "RenderContext") -> Callable[..., str]:
    """Builds the `widget` helper.

    With `cache=true` the rendered markup is memoized per (widget path, locals)
    in the environment. An entry is served while the widget and every template
    it rendered (includes, nested widgets) still hash to the stored values.
    Cached widgets should only depend on the locals they are given: pass data
    such as `view_name`, blocks and required files are not part of the key.
    """
    # source lists of the cached widgets currently rendering, innermost last
    collecting: List[List[Path]] = []

    def widget(this: Any, name: str, cache: bool = False, **locals_: Any) -> str:
        options = context.options
        path = resolve_template(options.widgets, name, options.template_ext)
        context.history.visit("> widget", path, Indent.OPEN)
        try:
            if not as_flag(cache) or context.engine.compile_debug:
                return _render_template(context, path, locals_)

            widget_cache = context.environment.widget_cache
            key = (context.configuration.key, path, _locals_digest(locals_))
            hit = widget_cache.get(key)
            if hit is not None and _is_fresh(hit):
                widget_cache.move_to_end(key)
                for pending in collecting:
                    pending.extend(source for source, _ in hit.sources)
                context.history.push("widget markup from cache")
                return hit.markup

            start = len(context.history.paths)
            pending: List[Path] = []
            collecting.append(pending)
            try:
                markup = _render_template(context, path, locals_)
            finally:
                collecting.pop()

            sources = _fingerprints(dict.fromkeys([path, *context.history.paths[start:], *pending]))
            if sources is not None:
                widget_cache[key] = WidgetCacheEntry(sources=sources, markup=markup)
                while len(widget_cache) > context.environment.widget_cache_limit:
                    widget_cache.popitem(last=False)
                context.history.push("widget markup cached")
            return markup
        finally:
            context.history.indent(Indent.CLOSE)

    return widget


def make_set_layout_helper(context: "RenderContext") -> Callable[..., str]:
    def set_layout(this: Any, name: str) -> str:
        options = context.options
        path = resolve_template(options.layouts, name, options.template_ext)
        context.data["layout"] = path
        context.history.push("set layout", path)
        log.debug("layout_requested", view=context.data.get("view_path"), layout=str(path))
        return ""

    return set_layout
