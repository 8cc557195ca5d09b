"""
Block type registry: block name → attribute definitions.

Block types are validated once, when they are registered, so an unknown
source tag or a definition missing its required key is rejected here with a
SchemaError instead of being silently skipped while a document is parsed.

Block types can be registered directly or loaded from block.json files:
    registry = BlockRegistry()
    registry.load_directory("blocks/")            # every **/block.json
    registry.load_block_json("my-block/block.json")
    registry.register_attributes("core/paragraph", {"content": {...}})
"""

import json
from pathlib import Path
from typing import Optional, Union

from pydantic import ValidationError

from .exceptions import SchemaError
from .logger import get_module_logger
from .schemas import AttributeDefinition, BlockType

logger = get_module_logger("registry")

BLOCK_JSON_FILENAME = "block.json"


class BlockRegistry:
    """In-memory catalog of registered block types."""

    def __init__(self, block_types: Optional[list[BlockType]] = None):
        self._block_types: dict[str, BlockType] = {}
        for block_type in block_types or []:
            self.register(block_type)

    @classmethod
    def from_dict(cls, definitions: dict) -> "BlockRegistry":
        """Build a registry from {block_name: {attribute_name: definition}}."""
        registry = cls()
        for name, attributes in definitions.items():
            registry.register_attributes(name, attributes)
        return registry

    def register(self, block_type: BlockType) -> BlockType:
        if block_type.name in self._block_types:
            logger.debug(f"Replacing registered block type: {block_type.name}")
        self._block_types[block_type.name] = block_type
        return block_type

    def register_attributes(self, name: str, attributes: dict) -> BlockType:
        """Validate raw attribute definitions (as found in block.json) and register them."""
        return self.register(self._validate({"name": name, "attributes": attributes}))

    def is_registered(self, name: Optional[str]) -> bool:
        return name is not None and name in self._block_types

    def get_definition(self, name: Optional[str]) -> Optional[dict[str, AttributeDefinition]]:
        """Attribute definitions for a block name, or None when it is not registered."""
        if name is None:
            return None
        block_type = self._block_types.get(name)
        return block_type.attributes if block_type is not None else None

    def get_all_registered(self) -> dict[str, BlockType]:
        return dict(self._block_types)

    def load_block_json(self, path: Union[str, Path]) -> BlockType:
        """Register the block type described by a block.json file."""
        path = Path(path)

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise SchemaError(
                f"Cannot read block metadata from {path}: {e}",
                details={"path": str(path)}
            )

        if not isinstance(data, dict):
            raise SchemaError(
                f"Block metadata in {path} must be a JSON object",
                details={"path": str(path)}
            )

        block_type = self.register(self._validate(data, path=path))
        logger.info(f"Registered block type {block_type.name} from {path}")
        return block_type

    def load_directory(self, directory: Union[str, Path]) -> list[BlockType]:
        """Register every block.json found below a directory."""
        directory = Path(directory)
        if not directory.is_dir():
            raise SchemaError(
                f"Block directory not found: {directory}",
                details={"path": str(directory)}
            )

        loaded = [
            self.load_block_json(path)
            for path in sorted(directory.rglob(BLOCK_JSON_FILENAME))
        ]
        logger.info(f"Loaded {len(loaded)} block types from {directory}")
        return loaded

    def _validate(self, data: dict, path: Optional[Path] = None) -> BlockType:
        name = data.get("name")
        try:
            return BlockType.model_validate(data)
        except ValidationError as e:
            details = {"errors": e.errors(include_url=False, include_context=False, include_input=False)}
            if path is not None:
                details["path"] = str(path)
            raise SchemaError(
                f"Invalid block type {name!r}: {e.error_count()} validation error(s)",
                block_name=name,
                details=details
            )

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name in self._block_types

    def __len__(self) -> int:
        return len(self._block_types)
