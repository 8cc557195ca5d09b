"""
Custom exceptions for the Block Parser.

Error philosophy:
  - SchemaError     → FAIL HARD at load time: a block type with an unknown or
                      incomplete attribute definition is never registered.
  - TokenizerError  → FAIL HARD: without a block tree there is nothing to parse.
  - MetaStoreError  → FAIL HARD: raised by the metadata store and propagated out
                      of parse() untouched, like any other collaborator fault.
  - EmptyScopeError → internal: a single-node DOM read on an empty scope.

Conditions that are NOT errors:
  - An unregistered block type is recorded as a warning on the parse result.
  - A selector that matches nothing resolves to the attribute's default.
"""

from typing import Optional


class BlockParserError(Exception):
    """Base exception for all Block Parser errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


# --- FAIL HARD: raised while loading collaborators ---

class SchemaError(BlockParserError):
    """
    Raised when a block type or attribute definition cannot be registered.

    The registry validates definitions once, at load time, so the sourcing
    engine never has to skip an unknown source while resolving.
    """

    def __init__(
        self,
        message: str,
        block_name: Optional[str] = None,
        details: Optional[dict] = None
    ):
        super().__init__(message, details)
        self.block_name = block_name  # None when the block name itself is missing


class TokenizerError(BlockParserError):
    """Raised when the tokenizer cannot turn its input into block nodes."""
    pass


# --- Collaborator faults: propagated out of parse() ---

class MetaStoreError(BlockParserError):
    """Raised when the metadata store cannot read a post's metadata."""

    def __init__(
        self,
        message: str,
        post_id=None,
        details: Optional[dict] = None
    ):
        super().__init__(message, details)
        self.post_id = post_id


# --- Internal ---

class EmptyScopeError(BlockParserError):
    """Raised when a single-node read is attempted on an empty DOM scope."""
    pass
