"""
Request-scoped state for one parse() call.

A fresh ParseContext is created at the start of every ContentParser.parse()
and threaded through the resolver and the sourcing engine, so the parser
object itself holds configuration only and can be shared between threads.
"""

from typing import Any, Callable, Optional

from .logger import get_module_logger
from .schemas import PostId

logger = get_module_logger("context")

# (resolved_block, block_name, post_id, original_node) -> resolved_block
SourcedBlockHook = Callable[[dict, Optional[str], Optional[PostId], Any], dict]

MISSING_BLOCK_WARNING = (
    'Block type "{}" is not server-side registered. '
    'Sourced block attributes will not be available.'
)


def passthrough_hook(sourced_block: dict, block_name, post_id, block) -> dict:
    """Default post-resolution hook: returns the block unchanged."""
    return sourced_block


class ParseContext:
    """Collaborators plus the per-call post id and warnings."""

    def __init__(
        self,
        registry,
        meta_store=None,
        hook: Optional[SourcedBlockHook] = None,
        post_id: Optional[PostId] = None,
        debug: bool = False
    ):
        self.registry = registry
        self.meta_store = meta_store
        self.hook = hook or passthrough_hook
        self.post_id = post_id
        self.debug = debug
        self.warnings: list[str] = []

    def add_missing_block_warning(self, block_name: str) -> None:
        message = MISSING_BLOCK_WARNING.format(block_name)

        # Ordered set: the same missing type seen twice is reported once
        if message not in self.warnings:
            logger.info(message)
            self.warnings.append(message)
