"""
Render orchestration for templayer: caches, trace recorder, blocks,
resource loaders and the layout composition engine.
"""
from .environment import RenderEnvironment
from .engine import LayoutEngine, RenderState
from .source_file import SourceFile

__all__ = [
    "RenderEnvironment",
    "LayoutEngine",
    "RenderState",
    "SourceFile",
]
