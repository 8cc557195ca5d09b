"""
Attribute sourcing engine.

Resolves the runtime value of one sourced block attribute from a DOM scope,
following the block attribute sources of the block editor:
https://developer.wordpress.org/block-editor/reference-guides/block-api/block-attributes/#value-source

Every strategy returns None when it finds nothing; source_attribute() then
substitutes the definition's default (which may itself be None).
"""

from typing import Any, Optional

from .context import ParseContext
from .dom import DomScope, NodeKind
from .logger import get_module_logger
from .schemas import AttributeDefinition, AttributeSource

logger = get_module_logger("sources")

# Characters trimmed from raw markup and children text; U+00A0 is kept
TRIM_CHARACTERS = " \t\n\r\x00\x0b"


def source_attribute(
    scope: DomScope,
    definition: AttributeDefinition,
    context: ParseContext
) -> Any:
    """
    Resolve one attribute definition against a DOM scope.

    Args:
        scope: Nodes to extract from (the block's <body>, or one query match)
        definition: The attribute definition; one without a source only has a default
        context: Per-parse state, used by the meta source

    Returns:
        The sourced value, else the definition's default, else None
    """
    if definition.source is None:
        return definition.default

    strategy = STRATEGIES[definition.source]
    value = strategy(scope, definition, context)

    if value is None:
        value = definition.default

    return value


def _narrow(scope: DomScope, selector: Optional[str]) -> DomScope:
    # No selector means the scope itself, never an empty one
    if selector is None:
        return scope
    return scope.filter(selector)


def source_block_attribute(scope: DomScope, definition: AttributeDefinition, context) -> Optional[str]:
    """'attribute' source (and the legacy 'property' alias)."""
    scope = _narrow(scope, definition.selector)

    if scope.count() > 0:
        return scope.attr(definition.attribute)
    return None


def source_block_html(scope: DomScope, definition: AttributeDefinition, context) -> Optional[str]:
    """
    'html' source.

    With a multiline selector the value is rebuilt from the outer HTML of
    every matching line element, joined with no separator.
    """
    scope = _narrow(scope, definition.selector)

    if scope.count() == 0:
        return None

    if definition.multiline is None:
        return scope.html()

    parts = scope.filter(definition.multiline).each(lambda node: node.outer_html())
    return "".join(parts)


def source_block_text(scope: DomScope, definition: AttributeDefinition, context) -> Optional[str]:
    """'text' source."""
    scope = _narrow(scope, definition.selector)

    if scope.count() > 0:
        return scope.text()
    return None


def source_block_tag(scope: DomScope, definition: AttributeDefinition, context) -> Optional[str]:
    """'tag' source. Core only uses it for the table block's section tags."""
    scope = _narrow(scope, definition.selector)

    if scope.count() > 0:
        return scope.node_name()
    return None


def source_block_raw(scope: DomScope, definition: AttributeDefinition, context) -> Optional[str]:
    """'raw' source: the whole fragment, trimmed. The selector is ignored."""
    if scope.count() > 0:
        return scope.html().strip(TRIM_CHARACTERS)
    return None


def source_block_query(scope: DomScope, definition: AttributeDefinition, context) -> list[dict]:
    """
    'query' source.

    Every matching node becomes one mapping of sub-attribute name to value;
    sub-attributes that resolve to None are left out. Always a list.
    """
    scope = _narrow(scope, definition.selector)
    query_items = definition.query or {}

    def source_node(node: DomScope) -> dict:
        values = {}
        for name, query_item in query_items.items():
            value = source_attribute(node, query_item, context)
            if value is not None:
                values[name] = value
        return values

    return scope.each(source_node)


def source_block_children(scope: DomScope, definition: AttributeDefinition, context) -> list[str]:
    """
    'children' source (deprecated in the block editor, still found in older blocks).

    A first match without element children yields its inner HTML as the only
    item. Otherwise its direct child nodes are walked in order: elements give
    their full markup, text nodes their trimmed text unless that is empty.
    """
    scope = _narrow(scope, definition.selector)

    if scope.count() == 0:
        return []

    if scope.children().count() == 0:
        return [scope.html()]

    values = []
    for child in scope.child_nodes():
        if child.kind == NodeKind.ELEMENT:
            values.append(child.value)
        elif child.kind == NodeKind.TEXT:
            text = child.value.strip(TRIM_CHARACTERS)
            if text:
                values.append(text)
    return values


def source_block_meta(scope: DomScope, definition: AttributeDefinition, context: ParseContext) -> Any:
    """'meta' source: a post metadata value. The DOM scope is ignored."""
    if context.post_id is None or context.meta_store is None:
        return None

    meta_key = definition.meta

    # exists() is checked first so an explicitly empty stored value is still returned
    if not context.meta_store.exists(context.post_id, meta_key):
        logger.debug(f"No meta '{meta_key}' for post {context.post_id}")
        return None

    return context.meta_store.get(context.post_id, meta_key)


STRATEGIES = {
    AttributeSource.ATTRIBUTE: source_block_attribute,
    AttributeSource.HTML: source_block_html,
    AttributeSource.TEXT: source_block_text,
    AttributeSource.TAG: source_block_tag,
    AttributeSource.RAW: source_block_raw,
    AttributeSource.QUERY: source_block_query,
    AttributeSource.CHILDREN: source_block_children,
    AttributeSource.META: source_block_meta,
}
