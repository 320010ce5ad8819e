"""
Resource loaders exposed to templates as Handlebars helpers.
"""
from typing import TYPE_CHECKING, Any, Callable, Dict

from templayer.core.blocks import make_block_helper
from .partials import make_include_helper, make_set_layout_helper, make_widget_helper, resolve_template
from .require import RequireKind, RequireLoader, classify

if TYPE_CHECKING:
    from templayer.core.context import RenderContext


def bind_helpers(context: "RenderContext") -> Dict[str, Callable[..., Any]]:
    """Binds every loader helper to one render context."""
    options = context.options
    environment = context.environment
    require = RequireLoader(
        folder=options.requires,
        content_cache=environment.content_cache,
        load_cache=environment.load_cache,
        history=context.history,
        template_ext=options.template_ext,
    )
    set_layout = make_set_layout_helper(context)
    return {
        "require": require.helper,
        "with_require": require.block_helper,
        "include": make_include_helper(context),
        "widget": make_widget_helper(context),
        "block": make_block_helper(context.blocks, context.history),
        "setLayout": set_layout,
        "set_layout": set_layout,
    }


__all__ = [
    "bind_helpers",
    "classify",
    "resolve_template",
    "RequireKind",
    "RequireLoader",
]
