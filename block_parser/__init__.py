"""
Block Parser

Resolves the typed attributes of block-structured content. Each block carries
delimiter attributes plus an HTML fragment; its registered attribute
definitions say where every attribute's value comes from.
- Registry: block type name → attribute definitions (block.json compatible)
- Sources: one sourcing strategy per source tag, run against a DOM scope
- Resolver: per-block merge of delimiter values, sourced values and defaults

Public API surface:
  Orchestrator          — ContentParser, parse_content
  Collaborators         — BlockRegistry, JSONBlockTokenizer, InMemoryMetaStore, FileMetaStore
  Data models           — BlockNode, AttributeDefinition, AttributeSource, BlockType, ParseResult
  DOM adapter           — DomScope, SoupScope
  Error types           — BlockParserError, SchemaError, TokenizerError, MetaStoreError
"""

# --- Orchestrator ---
from .main import ContentParser, parse_content

# --- Collaborators ---
from .registry import BlockRegistry
from .tokenizer import BaseTokenizer, JSONBlockTokenizer
from .meta_store import BaseMetaStore, InMemoryMetaStore, FileMetaStore
from .context import ParseContext, passthrough_hook

# --- Engine ---
from .resolver import resolve_block
from .sources import source_attribute
from .dom import DomScope, SoupScope

# --- Data models ---
from .schemas import AttributeDefinition, AttributeSource, BlockNode, BlockType, ParseResult

# --- Exceptions ---
from .exceptions import BlockParserError, SchemaError, TokenizerError, MetaStoreError

__version__ = "0.1.0"
__all__ = [
    "ContentParser",
    "parse_content",
    "BlockRegistry",
    "BaseTokenizer",
    "JSONBlockTokenizer",
    "BaseMetaStore",
    "InMemoryMetaStore",
    "FileMetaStore",
    "ParseContext",
    "passthrough_hook",
    "resolve_block",
    "source_attribute",
    "DomScope",
    "SoupScope",
    "AttributeDefinition",
    "AttributeSource",
    "BlockNode",
    "BlockType",
    "ParseResult",
    "BlockParserError",
    "SchemaError",
    "TokenizerError",
    "MetaStoreError",
]
