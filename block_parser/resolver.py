"""
Block resolver: one BlockNode in, one resolved block dict out.

For every attribute the block type declares, the resolver either keeps the
value from the block delimiter (unsourced attributes, falling back to the
declared default) or sources it from the block's inner HTML. Child blocks are
resolved recursively, then the post-resolution hook gets the final word.

Output shape:
    {"name": ..., "attributes": {...}, "children": [...], "debug": {...}}
"children" only when there are any, "debug" only in debug mode.
"""

from typing import Optional

from .context import ParseContext
from .dom import DomScope, SoupScope
from .logger import get_module_logger
from .schemas import BlockNode
from .sources import source_attribute

logger = get_module_logger("resolver")


def resolve_blocks(nodes: Optional[list[BlockNode]], context: ParseContext) -> list[dict]:
    """Resolve a sequence of sibling blocks, skipping whitespace-only untyped gaps."""
    return [
        resolve_block(node, context)
        for node in nodes or []
        if not node.is_whitespace()
    ]


def resolve_block(node: BlockNode, context: ParseContext) -> dict:
    """
    Resolve the attributes of one block and, recursively, of its children.

    Args:
        node: Block from the tokenizer
        context: Per-parse state (registry, meta store, hook, post id, warnings)

    Returns:
        The resolved block as returned by the post-resolution hook
    """
    block_name = node.name
    definitions = context.registry.get_definition(block_name)

    if definitions is None:
        # Untyped freeform content is reported as block type ""
        context.add_missing_block_warning(block_name or "")
        definitions = {}

    attributes = dict(node.declared_attributes)
    scope: Optional[DomScope] = None

    for attribute_name, definition in definitions.items():
        if definition.source is None:
            # Unsourced attributes live in the block delimiter; the DOM is not consulted
            if attribute_name not in attributes and definition.default is not None:
                attributes[attribute_name] = definition.default
            continue

        # One parse of the fragment per block, shared by its sourced attributes
        if scope is None:
            scope = SoupScope.from_fragment(node.inner_markup)

        value = source_attribute(scope, definition, context)

        # A sourced value always wins over a same-named delimiter attribute
        if value is not None:
            attributes[attribute_name] = value

    sourced_block = {
        "name": block_name,
        "attributes": attributes,
    }

    if node.children is not None:
        children = resolve_blocks(node.children, context)
        if children:
            sourced_block["children"] = children

    if context.debug:
        sourced_block["debug"] = {
            "blockDefinitionAttributes": {
                name: definition.model_dump(mode="json", exclude_none=True)
                for name, definition in definitions.items()
            },
        }

    logger.debug(f"Resolved {block_name or 'freeform'} block with {len(attributes)} attributes")

    sourced_block = context.hook(sourced_block, block_name, context.post_id, node)

    # The hook may drop or empty the attributes; consumers always get a mapping
    if not sourced_block.get("attributes"):
        sourced_block["attributes"] = {}

    return sourced_block
