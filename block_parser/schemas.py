"""
Pydantic schemas defining the contracts between modules.

BlockNode: Contract from the tokenizer to the resolver
AttributeDefinition / BlockType: Contract from the registry to the sourcing engine
ParseResult: Output envelope of ContentParser.parse()

Data flow through the pipeline:
  tokenizer → list[BlockNode] → resolver (per block, recursively)
  registry → AttributeDefinition → sources (per attribute) → resolved value
"""

from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

PostId = Union[int, str]


# --- Attribute sourcing ---

class AttributeSource(str, Enum):
    """Sourcing strategies an attribute definition can declare."""
    ATTRIBUTE = "attribute"
    HTML = "html"
    TEXT = "text"
    TAG = "tag"
    RAW = "raw"
    QUERY = "query"
    CHILDREN = "children"
    META = "meta"


# 'property' sources were dropped from the block API in 2018 and read like 'attribute'
LEGACY_SOURCE_ALIASES = {
    "property": AttributeSource.ATTRIBUTE,
}


class AttributeDefinition(BaseModel):
    """
    How one block attribute gets its runtime value.

    Mirrors an entry of the "attributes" object in a block.json file. Keys the
    parser does not use (enum, role, ...) are ignored.
    """
    model_config = ConfigDict(frozen=True, extra="ignore")

    type: Optional[Union[str, list[str]]] = None
    source: Optional[AttributeSource] = None
    selector: Optional[str] = None
    attribute: Optional[str] = None   # DOM attribute name, source=attribute
    multiline: Optional[str] = None   # per-line selector, source=html
    query: Optional[dict[str, "AttributeDefinition"]] = None
    meta: Optional[str] = None        # metadata key, source=meta
    default: Any = None

    @field_validator("source", mode="before")
    @classmethod
    def normalize_source(cls, value: Any) -> Any:
        if isinstance(value, str) and value in LEGACY_SOURCE_ALIASES:
            return LEGACY_SOURCE_ALIASES[value]
        return value

    @model_validator(mode="after")
    def check_required_fields(self) -> "AttributeDefinition":
        if self.source == AttributeSource.ATTRIBUTE and not self.attribute:
            raise ValueError("'attribute' source requires an 'attribute' name")
        if self.source == AttributeSource.QUERY and self.query is None:
            raise ValueError("'query' source requires a 'query' mapping")
        if self.source == AttributeSource.META and not self.meta:
            raise ValueError("'meta' source requires a 'meta' key")
        return self


AttributeDefinition.model_rebuild()


class BlockType(BaseModel):
    """A registered block type: its name and attribute definitions in declaration order."""
    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str
    attributes: dict[str, AttributeDefinition] = Field(default_factory=dict)

    @field_validator("attributes", mode="before")
    @classmethod
    def empty_list_as_mapping(cls, value: Any) -> Any:
        # JSON encoders for PHP arrays write an empty mapping as []
        if value is None or value == []:
            return {}
        return value


# --- Tokenizer contract ---

class BlockNode(BaseModel):
    """
    One block as produced by the tokenizer.

    Field aliases follow the shape of WordPress' parse_blocks() output so a JSON
    dump of it validates directly; snake_case names are accepted as well.
    """
    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    name: Optional[str] = Field(default=None, alias="blockName")
    declared_attributes: dict[str, Any] = Field(default_factory=dict, alias="attrs")
    inner_markup: str = Field(default="", alias="innerHTML")
    children: Optional[list["BlockNode"]] = Field(default=None, alias="innerBlocks")

    @field_validator("declared_attributes", mode="before")
    @classmethod
    def empty_list_as_mapping(cls, value: Any) -> Any:
        if value is None or value == []:
            return {}
        return value

    @field_validator("inner_markup", mode="before")
    @classmethod
    def none_as_empty_markup(cls, value: Any) -> Any:
        return "" if value is None else value

    def is_whitespace(self) -> bool:
        """An untyped node with nothing but whitespace: a gap between real blocks."""
        return self.name is None and not self.inner_markup.strip()


BlockNode.model_rebuild()


# --- Output envelope ---

class ParseDebug(BaseModel):
    """Debug payload: the tokenized tree before resolution and the raw input."""
    blocks_parsed: list[BlockNode] = Field(default_factory=list)
    content: str = ""

    def to_dict(self) -> dict:
        return {
            "blocksParsed": [node.model_dump(by_alias=True) for node in self.blocks_parsed],
            "content": self.content,
        }


class ParseResult(BaseModel):
    """Output of ContentParser.parse()."""
    blocks: list[dict[str, Any]] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)  # Unregistered block types, deduplicated
    debug: Optional[ParseDebug] = None

    def to_dict(self) -> dict:
        """
        JSON-ready envelope: "warnings" only when there are any, "debug" only when present.

        Built by hand rather than with exclude_none so that null attribute values
        inside resolved blocks survive.
        """
        result: dict[str, Any] = {"blocks": self.blocks}
        if self.warnings:
            result["warnings"] = list(self.warnings)
        if self.debug is not None:
            result["debug"] = self.debug.to_dict()
        return result
