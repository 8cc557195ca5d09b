"""
Tokenizer contract: markup in, tree of BlockNode out.

Splitting raw post content on block delimiters is left to an external
tokenizer (for WordPress content, parse_blocks()). JSONBlockTokenizer reads
that tokenizer's output serialized as JSON, which is how the CLI receives it.
"""

import json
from abc import ABC, abstractmethod

from pydantic import ValidationError

from .exceptions import TokenizerError
from .logger import get_module_logger
from .schemas import BlockNode

logger = get_module_logger("tokenizer")


class BaseTokenizer(ABC):
    """Abstract base class for block tokenizers."""

    @abstractmethod
    def tokenize(self, markup: str) -> list[BlockNode]:
        """
        Split markup into top-level block nodes.

        Args:
            markup: Raw content

        Returns:
            Top-level blocks in document order, children nested
        """
        pass


class JSONBlockTokenizer(BaseTokenizer):
    """
    Reads pre-tokenized blocks from JSON.

    Accepts either a list of blocks or an object with a "blocks" list, each
    block shaped like parse_blocks() output:
        {"blockName": ..., "attrs": {...}, "innerHTML": "...", "innerBlocks": [...]}
    """

    def tokenize(self, markup: str) -> list[BlockNode]:
        try:
            data = json.loads(markup)
        except json.JSONDecodeError as e:
            raise TokenizerError(f"Tokenized blocks are not valid JSON: {e}")

        if isinstance(data, dict):
            data = data.get("blocks")

        if not isinstance(data, list):
            raise TokenizerError("Tokenized blocks must be a JSON list of block objects")

        try:
            nodes = [BlockNode.model_validate(item) for item in data]
        except ValidationError as e:
            raise TokenizerError(
                f"Invalid block in tokenized input: {e.error_count()} validation error(s)",
                details={"errors": e.errors(include_url=False, include_context=False, include_input=False)}
            )

        logger.debug(f"Tokenized {len(nodes)} top-level blocks")
        return nodes
