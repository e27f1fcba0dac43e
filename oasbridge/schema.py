"""Parsed view over the JSON Schema nodes of a contract.

The contract itself stays a plain dict graph. SchemaNode gives the
translator a tagged view of one schema dict: the kind is decided once
here instead of re-probing dict keys at every use. Each node keeps a
pointer to the dict it was parsed from so example updates land in the
document.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

COMPONENT_SCHEMA_PREFIX = "#/components/schemas/"


class SchemaKind(str, Enum):
    STRING = "string"
    NUMBER = "number"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    ARRAY = "array"
    OBJECT = "object"
    REFERENCE = "reference"
    UNION = "union"
    ALL_OF = "all_of"
    ANY = "any"


_TYPE_KINDS: dict[str, SchemaKind] = {
    "string": SchemaKind.STRING,
    "number": SchemaKind.NUMBER,
    "integer": SchemaKind.INTEGER,
    "boolean": SchemaKind.BOOLEAN,
    "array": SchemaKind.ARRAY,
    "object": SchemaKind.OBJECT,
}


@dataclass
class SchemaNode:
    kind: SchemaKind
    raw: dict[str, Any] = field(repr=False)
    ref: str | None = None
    format: str | None = None
    declared_type: str | None = None
    items: SchemaNode | None = None
    properties: dict[str, SchemaNode] = field(default_factory=dict)
    additional_properties: bool | SchemaNode | None = None
    required: frozenset[str] = frozenset()
    members: list[SchemaNode] = field(default_factory=list)
    default: Any = None
    nullable: bool = False
    enum: list[Any] | None = None
    description: str = ""
    title: str = ""
    read_only: bool = False

    @property
    def ref_name(self) -> str | None:
        """Component name of a local schema reference, if this is one."""
        if self.ref is None or not self.ref.startswith(COMPONENT_SCHEMA_PREFIX):
            return None
        return self.ref[len(COMPONENT_SCHEMA_PREFIX):]

    @property
    def has_default(self) -> bool:
        return "default" in self.raw

    @property
    def example(self) -> Any:
        return self.raw.get("example")

    @property
    def examples(self) -> dict[str, Any] | None:
        return self.raw.get("examples")

    def set_example(self, value: Any) -> None:
        self.raw["example"] = value

    def set_examples(self, values: dict[str, Any]) -> None:
        self.raw["examples"] = values

    @property
    def is_annotation_only(self) -> bool:
        """True for schemas that only carry metadata (description, nullable...)."""
        return self.kind is SchemaKind.ANY and self.declared_type is None


def _kind_of(raw: dict[str, Any]) -> SchemaKind:
    if "$ref" in raw:
        return SchemaKind.REFERENCE
    if "oneOf" in raw or "anyOf" in raw:
        return SchemaKind.UNION
    if "allOf" in raw:
        return SchemaKind.ALL_OF
    declared = raw.get("type")
    if isinstance(declared, str):
        return _TYPE_KINDS.get(declared, SchemaKind.ANY)
    if "properties" in raw or "additionalProperties" in raw:
        return SchemaKind.OBJECT
    if "items" in raw:
        return SchemaKind.ARRAY
    return SchemaKind.ANY


def parse_schema(raw: dict[str, Any] | None) -> SchemaNode:
    """Parse one schema dict (and its inline children) into a SchemaNode."""
    if raw is None:
        raw = {}
    kind = _kind_of(raw)
    declared = raw.get("type")
    node = SchemaNode(
        kind=kind,
        raw=raw,
        format=raw.get("format"),
        declared_type=declared if isinstance(declared, str) else (repr(declared) if declared else None),
        required=frozenset(raw.get("required", []) or []),
        default=raw.get("default"),
        nullable=bool(raw.get("nullable", False)),
        enum=raw.get("enum"),
        description=raw.get("description", "") or "",
        title=raw.get("title", "") or "",
        read_only=bool(raw.get("readOnly", False)),
    )

    if kind is SchemaKind.REFERENCE:
        node.ref = raw["$ref"]
        return node

    if kind is SchemaKind.UNION:
        alternatives = raw.get("oneOf") or raw.get("anyOf") or []
        node.members = [parse_schema(sub) for sub in alternatives]
    elif kind is SchemaKind.ALL_OF:
        node.members = [parse_schema(sub) for sub in raw.get("allOf", [])]

    if "items" in raw:
        node.items = parse_schema(raw["items"])

    for name, sub in (raw.get("properties") or {}).items():
        node.properties[name] = parse_schema(sub)

    extra = raw.get("additionalProperties")
    if isinstance(extra, dict):
        node.additional_properties = parse_schema(extra)
    elif isinstance(extra, bool):
        node.additional_properties = extra

    return node
