"""
Per-pass render context: the data mapping threaded through one layout chain,
its block map, trace recorder and the helpers bound to them.
"""
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List
import copy

from templayer.config.registry import Configuration
from templayer.config.settings import EngineOptions
from templayer.core.blocks import BlockMap
from templayer.core.environment import RenderEnvironment
from templayer.core.history import TraceRecorder
from templayer.core.loaders import bind_helpers


class RenderState(Enum):
    START = "start"
    RENDERING = "rendering"
    FINALIZING = "finalizing"
    DONE = "done"
    FAILED = "failed"


@dataclass
class RenderContext:
    configuration: Configuration
    environment: RenderEnvironment
    engine: EngineOptions
    history: TraceRecorder = field(default_factory=TraceRecorder)
    blocks: BlockMap = field(default_factory=dict)
    data: Dict[str, Any] = field(default_factory=dict)
    helpers: Dict[str, Callable[..., Any]] = field(default_factory=dict)
    chain: List[Path] = field(default_factory=list)
    state: RenderState = RenderState.START

    @property
    def options(self):
        return self.configuration.options


def create_render_context(configuration: Configuration, environment: RenderEnvironment) -> RenderContext:
    """Allocates a fresh context for one render pass under `configuration`."""
    context = RenderContext(configuration=configuration, environment=environment, engine=configuration.engine)
    context.data = copy.deepcopy(configuration.locals)
    context.data["blocks"] = context.blocks
    context.helpers = {**configuration.options.helpers, **bind_helpers(context)}
    return context
