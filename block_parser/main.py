"""
Main orchestrator for the Block Parser.

Coordinates the pipeline: tokenizer → whitespace filter → resolver. The
parser object only holds its collaborators; everything that belongs to one
document (post id, warnings) lives in a ParseContext created per call, so one
ContentParser can serve many documents, concurrently if need be.
"""

from typing import Optional

from .config import resolve_debug
from .context import ParseContext, SourcedBlockHook
from .logger import get_module_logger, setup_logger
from .meta_store import BaseMetaStore
from .registry import BlockRegistry
from .resolver import resolve_blocks
from .schemas import ParseDebug, ParseResult, PostId
from .tokenizer import BaseTokenizer

logger = get_module_logger("main")


class ContentParser:
    """
    Turns block content into blocks with fully resolved attributes.

    Collaborators:
    1. Tokenizer: splits content into a tree of BlockNode
    2. BlockRegistry: attribute definitions per block type
    3. Meta store (optional): values for 'meta' sourced attributes
    4. Hook (optional): last chance to rewrite each resolved block
    """

    def __init__(
        self,
        registry: BlockRegistry,
        tokenizer: BaseTokenizer,
        meta_store: Optional[BaseMetaStore] = None,
        hook: Optional[SourcedBlockHook] = None,
        debug: Optional[bool] = None,
        log_level: int = None
    ):
        if log_level is not None:
            setup_logger(level=log_level)

        self.registry = registry
        self.tokenizer = tokenizer
        self.meta_store = meta_store
        self.hook = hook
        # None defers to BLOCK_PARSER_PARSE_DEBUG
        self.debug = debug

        logger.info(f"ContentParser initialized with {len(registry)} block types")

    def parse(self, content: str, post_id: Optional[PostId] = None) -> ParseResult:
        """
        Parse content and resolve every block's attributes.

        Args:
            content: Raw content handed to the tokenizer
            post_id: Post the content belongs to; needed for 'meta' sourced
                     attributes and passed to the hook

        Returns:
            ParseResult with resolved blocks, warnings and optional debug data
        """
        debug = resolve_debug(self.debug)
        context = ParseContext(
            registry=self.registry,
            meta_store=self.meta_store,
            hook=self.hook,
            post_id=post_id,
            debug=debug,
        )

        logger.info(f"Parsing content{f' for post {post_id}' if post_id is not None else ''}")

        # Drop untyped whitespace between real blocks before anything else sees it
        blocks = [node for node in self.tokenizer.tokenize(content) if not node.is_whitespace()]

        result = ParseResult(
            blocks=resolve_blocks(blocks, context),
            warnings=context.warnings,
        )

        if debug:
            result.debug = ParseDebug(blocks_parsed=blocks, content=content)

        logger.info(f"Complete: {len(result.blocks)} blocks, {len(result.warnings)} warnings")
        return result


def parse_content(
    content: str,
    registry: BlockRegistry,
    tokenizer: BaseTokenizer,
    post_id: Optional[PostId] = None,
    **kwargs
) -> ParseResult:
    """Convenience function to parse content with a one-off parser."""
    return ContentParser(registry, tokenizer, **kwargs).parse(content, post_id=post_id)
