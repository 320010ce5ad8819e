"""
Option dataclasses and the normalization step that turns a raw options
mapping into the canonical form every render under a configuration shares.
"""
import copy
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional
import structlog

from templayer.exceptions import ConfigError
from templayer.util import normalize_extname

log = structlog.get_logger(__name__)

# key under which the registry tags a caller's options mapping
UNIQUE_KEY = "__unique_key__"

DEFAULT_LAYOUTS_DIR = "layouts"
DEFAULT_PARTIALS_DIR = "partials"
DEFAULT_WIDGETS_DIR = "widgets"
DEFAULT_REQUIRES_DIR = "requires"
DEFAULT_EXTNAME = ".html"
DEFAULT_TEMPLATE_EXT = ".hbs"

AfterRenderHook = Callable[[str, Any, tuple], Optional[str]]


class BlockMode(Enum):
    # how a deposit combines with content already stored under a block name.
    REPLACE = "replace"
    APPEND = "append"
    PREPEND = "prepend"

    @classmethod
    def from_string(cls, s: Optional[str]) -> "BlockMode":
        if not s:
            return cls.REPLACE
        try:
            return cls(s.lower())
        except ValueError:
            log.warning("invalid_block_mode_string", input_string=s)
            return cls.REPLACE


@dataclass(frozen=True)
class EngineOptions:
    """Options handed to the template compiler on every render."""
    compile_debug: bool = False
    trim_output: bool = False


@dataclass
class PluginOptions:
    """Normalized plugin options shared by every render under one configuration."""
    root: Path = field(default_factory=lambda: Path.cwd().resolve())
    layouts: Path = Path(DEFAULT_LAYOUTS_DIR)
    partials: Path = Path(DEFAULT_PARTIALS_DIR)
    widgets: Path = Path(DEFAULT_WIDGETS_DIR)
    requires: Path = Path(DEFAULT_REQUIRES_DIR)
    extname: str = DEFAULT_EXTNAME
    template_ext: str = DEFAULT_TEMPLATE_EXT
    after_render: Optional[AfterRenderHook] = None
    show_history: bool = False
    helpers: Dict[str, Callable[..., Any]] = field(default_factory=dict)


_PATH_KEYS = ("layouts", "partials", "widgets", "requires")
_KNOWN_KEYS = {"root", "extname", "template_ext", "after_render", "show_history",
               "helpers", "engine", "locals", UNIQUE_KEY, *_PATH_KEYS}


def _coerce_path(name: str, value: Any) -> Path:
    if isinstance(value, Path):
        return value
    if isinstance(value, str) and value:
        return Path(value)
    raise ConfigError(f"option '{name}' must be a non-empty path, got {value!r}")


def _coerce_bool(name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    raise ConfigError(f"option '{name}' must be a boolean, got {value!r}")


def normalize_engine_options(raw: Optional[Mapping[str, Any]]) -> EngineOptions:
    # copies the engine sub-options so later mutation of the caller's dict never leaks in.
    if raw is None:
        return EngineOptions()
    if not isinstance(raw, Mapping):
        raise ConfigError(f"option 'engine' must be a mapping, got {type(raw).__name__}")
    raw = copy.deepcopy(dict(raw))
    unknown = set(raw) - {"compile_debug", "trim_output"}
    if unknown:
        log.warning("unknown_engine_options_ignored", keys=sorted(unknown))
    return EngineOptions(
        compile_debug=_coerce_bool("engine.compile_debug", raw.get("compile_debug", False)),
        trim_output=_coerce_bool("engine.trim_output", raw.get("trim_output", False)),
    )


def normalize_options(raw: Mapping[str, Any]) -> tuple[PluginOptions, EngineOptions, Dict[str, Any]]:
    """Turns raw user options into (plugin options, engine options, locals).

    Base directories are resolved against `root`; `locals` is deep-copied so
    the render context owns its initial data.
    """
    if not isinstance(raw, Mapping):
        raise ConfigError(f"options must be a mapping, got {type(raw).__name__}")

    unknown = set(raw) - _KNOWN_KEYS
    if unknown:
        log.warning("unknown_options_ignored", keys=sorted(unknown))

    root = _coerce_path("root", raw["root"]).resolve() if raw.get("root") else Path.cwd().resolve()
    dirs = {}
    for key in _PATH_KEYS:
        value = _coerce_path(key, raw.get(key, getattr(PluginOptions, key)))
        dirs[key] = value if value.is_absolute() else (root / value).resolve()

    extname = raw.get("extname", DEFAULT_EXTNAME)
    template_ext = raw.get("template_ext", DEFAULT_TEMPLATE_EXT)
    if not isinstance(extname, str) or not isinstance(template_ext, str):
        raise ConfigError("options 'extname' and 'template_ext' must be strings")
    template_ext = normalize_extname(template_ext)
    if not template_ext:
        raise ConfigError("option 'template_ext' cannot be empty")

    after_render = raw.get("after_render")
    if after_render is not None and not callable(after_render):
        raise ConfigError("option 'after_render' must be callable")

    helpers = raw.get("helpers") or {}
    if not isinstance(helpers, Mapping) or not all(callable(h) for h in helpers.values()):
        raise ConfigError("option 'helpers' must map names to callables")

    locals_ = raw.get("locals") or {}
    if not isinstance(locals_, Mapping):
        raise ConfigError("option 'locals' must be a mapping")

    plugin_options = PluginOptions(
        root=root,
        extname=normalize_extname(extname),
        template_ext=template_ext,
        after_render=after_render,
        show_history=_coerce_bool("show_history", raw.get("show_history", False)),
        helpers=dict(helpers),
        **dirs,
    )
    engine_options = normalize_engine_options(raw.get("engine"))
    log.debug("options_normalized", root=str(root), extname=plugin_options.extname,
              template_ext=template_ext, compile_debug=engine_options.compile_debug)
    return plugin_options, engine_options, copy.deepcopy(dict(locals_))
