"""
Named content blocks: a template deposits content under a name and an
ancestor layout reads it back later in the same render pass.
"""
from typing import Any, Callable, Dict, Optional
import structlog

from templayer.config.settings import BlockMode
from templayer.core.history import TraceRecorder

log = structlog.get_logger(__name__)

BlockMap = Dict[str, str]


def clear_all_blocks(blocks: BlockMap) -> None:
    # empties the map in place; helpers bound to it keep working.
    blocks.clear()


def deposit(blocks: BlockMap, name: str, content: Any, mode: BlockMode = BlockMode.REPLACE) -> str:
    content = "" if content is None else str(content)
    current = blocks.get(name, "")
    if mode is BlockMode.APPEND:
        blocks[name] = current + content
    elif mode is BlockMode.PREPEND:
        blocks[name] = content + current
    else:
        blocks[name] = content
    return blocks[name]


def make_block_helper(blocks: BlockMap, history: TraceRecorder) -> Callable[..., str]:
    """Builds the `block` template helper bound to one block map.

    `{{block "name"}}` reads, `{{block "name" content}}` replaces and
    `{{block "name" content "append"}}` / `"prepend"` accumulate.
    """
    def block(this: Any, name: str, content: Optional[Any] = None, mode: Optional[str] = None, **kwargs: Any) -> str:
        mode = kwargs.get("mode", mode)
        if content is None:
            value = blocks.get(name, "")
            history.push("block read", name)
            return value
        block_mode = BlockMode.from_string(mode)
        deposit(blocks, name, content, block_mode)
        history.push(f"block {block_mode.value}", name)
        return ""

    return block
