"""
Memoizes one Configuration per distinct options identity.

Repeated renders of different files with equal options (the usual case in a
build loop) resolve to the same Configuration instance, so normalization and
context setup happen once per identity for the lifetime of the registry.
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, MutableMapping
import hashlib
import json
import structlog

from .settings import EngineOptions, PluginOptions, UNIQUE_KEY, normalize_options

log = structlog.get_logger(__name__)


def _callable_identity(fn: Callable[..., Any]) -> str:
    name = getattr(fn, "__qualname__", type(fn).__name__)
    return f"{getattr(fn, '__module__', '?')}.{name}@{id(fn):x}"


def _json_default(value: Any) -> str:
    if callable(value):
        return _callable_identity(value)
    if isinstance(value, Path):
        return str(value)
    return repr(value)


def options_identity(options: PluginOptions, engine: EngineOptions, locals_: Dict[str, Any]) -> str:
    """Computes a stable short digest over the normalized options."""
    payload = {
        "root": str(options.root),
        "layouts": str(options.layouts),
        "partials": str(options.partials),
        "widgets": str(options.widgets),
        "requires": str(options.requires),
        "extname": options.extname,
        "template_ext": options.template_ext,
        "show_history": options.show_history,
        "after_render": _callable_identity(options.after_render) if options.after_render else None,
        "helpers": {name: _callable_identity(fn) for name, fn in options.helpers.items()},
        "engine": {"compile_debug": engine.compile_debug, "trim_output": engine.trim_output},
        "locals": locals_,
    }
    serialized = json.dumps(payload, sort_keys=True, default=_json_default)
    return hashlib.sha256(serialized.encode()).hexdigest()[:16]


@dataclass
class Configuration:
    """Everything a render needs that does not change between render passes."""
    key: str
    options: PluginOptions
    engine: EngineOptions
    locals: Dict[str, Any] = field(default_factory=dict)


class ConfigurationRegistry:
    # owns every Configuration; entries are never evicted.
    def __init__(self):
        self._configs: Dict[str, Configuration] = {}

    def __len__(self) -> int:
        return len(self._configs)

    def __contains__(self, key: str) -> bool:
        return key in self._configs

    def get_or_create(self, raw_options: MutableMapping[str, Any]) -> Configuration:
        tagged_key = raw_options.get(UNIQUE_KEY)
        if tagged_key is not None and tagged_key in self._configs:
            return self._configs[tagged_key]

        options, engine, locals_ = normalize_options(raw_options)
        key = options_identity(options, engine, locals_)
        config = self._configs.get(key)
        if config is None:
            config = Configuration(key=key, options=options, engine=engine, locals=locals_)
            self._configs[key] = config
            log.info("configuration_created", key=key, root=str(options.root))
        else:
            log.debug("configuration_reused_by_identity", key=key)

        raw_options[UNIQUE_KEY] = key
        return config
