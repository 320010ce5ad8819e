from collections import OrderedDict
from dataclasses import dataclass, field
from pathlib import Path
from typing import Tuple

from templayer.config.registry import ConfigurationRegistry
from templayer.core.cache import ContentCache, LoadCache
from templayer.core.compiler import TemplateCompiler

DEFAULT_WIDGET_CACHE_LIMIT = 256


@dataclass(frozen=True)
class WidgetCacheEntry:
    # (template path, sha256) for the widget and every template it rendered
    sources: Tuple[Tuple[Path, str], ...]
    markup: str


@dataclass
class RenderEnvironment:
    """Process-wide render state, passed explicitly to every pipeline and engine.

    Only state keyed by immutable identities lives here (file paths, option
    identities); per-pass state lives on the RenderContext.
    """
    content_cache: ContentCache = field(default_factory=ContentCache)
    load_cache: LoadCache = field(default_factory=LoadCache)
    registry: ConfigurationRegistry = field(default_factory=ConfigurationRegistry)
    # (configuration key, widget path, locals digest) -> entry, least recently used first
    widget_cache: "OrderedDict[Tuple[str, Path, str], WidgetCacheEntry]" = field(default_factory=OrderedDict)
    widget_cache_limit: int = DEFAULT_WIDGET_CACHE_LIMIT
    compiler: TemplateCompiler = field(init=False)

    def __post_init__(self):
        self.compiler = TemplateCompiler(self.content_cache)
