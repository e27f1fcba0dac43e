"""Translate contract schemas into structural types.

Handles:
- Primitive kinds and their formats (int32, float, byte, binary)
- $ref resolution through the TypeRegistry (cycle safe)
- oneOf/anyOf unions
- allOf record merging
- nullable wrapping
- Inline object hoisting into uniquely named records
- Enum value extraction into descriptions
"""

from __future__ import annotations

import logging
import re
from typing import Any

from .diagnostics import DiagnosticAccumulator, DiagnosticCode
from .loader import get_schemas
from .naming import to_pascal
from .registry import TypeRegistry
from .schema import SchemaKind, SchemaNode, parse_schema
from .structural import (
    BOOL,
    BYTES,
    DOUBLE,
    FLOAT,
    INT32,
    INT64,
    NIL,
    STRING,
    ArrayType,
    Field,
    MapType,
    Primitive,
    Record,
    Reference,
    StructuralType,
    UnionType,
    Unknown,
    is_nilable,
    primitive,
)

logger = logging.getLogger(__name__)

# (kind, format) -> primitive name; (kind, None) is the fallback
_PRIMITIVES: dict[tuple[SchemaKind, str | None], str] = {
    (SchemaKind.STRING, None): STRING,
    (SchemaKind.STRING, "byte"): BYTES,
    (SchemaKind.STRING, "binary"): BYTES,
    (SchemaKind.INTEGER, None): INT64,
    (SchemaKind.INTEGER, "int64"): INT64,
    (SchemaKind.INTEGER, "int32"): INT32,
    (SchemaKind.NUMBER, None): DOUBLE,
    (SchemaKind.NUMBER, "double"): DOUBLE,
    (SchemaKind.NUMBER, "float"): FLOAT,
    (SchemaKind.BOOLEAN, None): BOOL,
}


def strip_html(text: str) -> str:
    """Strip HTML tags and collapse whitespace."""
    text = re.sub(r"<[^>]+>", "", text)
    text = re.sub(r"\s+", " ", text).strip()
    return text


def describe(node: SchemaNode) -> str:
    """Build a field description, appending enum values when present."""
    description = strip_html(node.description) if node.description else ""
    if node.enum:
        enum_str = ", ".join(str(v) for v in node.enum)
        if description:
            description = f"{description} (values: {enum_str})"
        else:
            description = f"Values: {enum_str}"
    return description


class SchemaTranslator:
    """Translate the schemas of one contract document."""

    def __init__(
        self,
        document: dict[str, Any],
        registry: TypeRegistry,
        diagnostics: DiagnosticAccumulator,
    ) -> None:
        self.registry = registry
        self.diagnostics = diagnostics
        self._schemas = get_schemas(document)
        # hoisted record name -> the raw inline schema it was built from
        self._hoisted: dict[str, dict[str, Any]] = {}
        self._rebuilding: set[str] = set()
        registry.reserve(self._schemas)

    def translate_components(self) -> None:
        """Register every component schema, in document order."""
        for name in self._schemas:
            self.translate_component(name)

    def translate_component(self, name: str) -> StructuralType:
        raw = self._schemas[name]
        return self.registry.register(name, lambda: self._build_named(name, parse_schema(raw)))

    def translate(self, node: SchemaNode, context: str = "") -> StructuralType:
        """Translate one schema node; ``context`` names hoisted inline records."""
        result = self._translate(node, context)
        if node.nullable and not is_nilable(result):
            result = UnionType((result, Primitive(NIL)))
        return result

    def _build_named(self, name: str, node: SchemaNode) -> StructuralType:
        if node.kind is SchemaKind.OBJECT and node.properties:
            return self._record(name, node)
        if node.kind is SchemaKind.ALL_OF:
            return self._all_of(node, name)
        if node.kind is SchemaKind.UNION:
            members = tuple(self.translate(m, f"{name}{i + 1}") for i, m in enumerate(node.members))
            result: StructuralType = UnionType(members, name)
            if node.nullable and not is_nilable(result):
                result = UnionType(members + (Primitive(NIL),), name)
            return result
        return self.translate(node, name)

    def _translate(self, node: SchemaNode, context: str) -> StructuralType:
        kind = node.kind
        if kind is SchemaKind.REFERENCE:
            return self._reference(node)
        if (kind, None) in _PRIMITIVES:
            name = _PRIMITIVES.get((kind, node.format)) or _PRIMITIVES[(kind, None)]
            result = primitive(name, node.format)
            if node.enum:
                result = Primitive(result.name, result.format, result.minimum, result.maximum, tuple(node.enum))
            return result
        if kind is SchemaKind.ARRAY:
            if node.items is None:
                return ArrayType(Unknown("untyped items"))
            return ArrayType(self.translate(node.items, f"{context}Item" if context else ""))
        if kind is SchemaKind.OBJECT:
            return self._object(node, context)
        if kind is SchemaKind.UNION:
            return UnionType(tuple(
                self.translate(m, f"{context}{i + 1}" if context else "")
                for i, m in enumerate(node.members)
            ))
        if kind is SchemaKind.ALL_OF:
            return self._all_of(node, context or None)
        if node.declared_type is not None:
            self.diagnostics.add(
                DiagnosticCode.UNSUPPORTED_SCHEMA, context or "<inline>", f"type {node.declared_type}",
            )
            return Unknown(f"unsupported type {node.declared_type}")
        return Unknown("any")

    def _reference(self, node: SchemaNode) -> StructuralType:
        name = node.ref_name
        if name is None or name not in self._schemas:
            self.diagnostics.add(DiagnosticCode.UNRESOLVED_REFERENCE, node.ref)
            return Unknown(f"unresolved {node.ref}")
        self.translate_component(name)
        if self._nullable_record(name):
            return UnionType((Reference(name), Primitive(NIL)))
        return Reference(name)

    def _nullable_record(self, name: str) -> bool:
        """Nullable record and allOf components carry nil at each use site."""
        node = parse_schema(self._schemas[name])
        if not node.nullable:
            return False
        return node.kind is SchemaKind.ALL_OF or (node.kind is SchemaKind.OBJECT and bool(node.properties))

    def _object(self, node: SchemaNode, context: str) -> StructuralType:
        if node.properties:
            if not context:
                return self._record(None, node)
            # the same inline schema reached again keeps its first name
            if self._hoisted.get(context) is node.raw and context in self.registry:
                return Reference(context)
            name = self.registry.unique_name(context)
            self._hoisted[name] = node.raw
            self.registry.register(name, lambda: self._record(name, node))
            return Reference(name)
        extra = node.additional_properties
        if isinstance(extra, SchemaNode):
            return MapType(self.translate(extra, f"{context}Value" if context else ""))
        return MapType(Unknown("any"))

    def _record(self, name: str | None, node: SchemaNode) -> Record:
        fields = []
        for prop_name, prop in node.properties.items():
            prop_context = f"{name}{to_pascal(prop_name)}" if name else ""
            fields.append(Field(
                name=prop_name,
                type=self.translate(prop, prop_context),
                required=prop_name in node.required,
                default=prop.default,
                description=describe(prop),
                read_only=prop.read_only,
            ))
        return Record(name, tuple(fields), strip_html(node.description))

    def _all_of(self, node: SchemaNode, name: str | None) -> StructuralType:
        typed = [m for m in node.members if not m.is_annotation_only]
        # inline object members merge anonymously instead of being hoisted
        translated = [
            self.translate(m, f"{name}{i + 1}" if name and m.kind is not SchemaKind.OBJECT else "")
            for i, m in enumerate(typed)
        ]
        resolved = [self._merge_source(t) for t in translated]

        if resolved and all(isinstance(t, Record) for t in resolved):
            merged: dict[str, Field] = {}
            for record in resolved:
                for f in record.fields:
                    merged[f.name] = f
            return Record(name, tuple(merged.values()), strip_html(node.description))

        if len(translated) == 1:
            return UnionType((translated[0],), name)

        self.diagnostics.add(DiagnosticCode.UNSUPPORTED_COMBINATOR, name or "<inline>")
        return Unknown("unsupported allOf")

    def _merge_source(self, type_: StructuralType) -> StructuralType:
        """Resolve an allOf member to the type whose fields get merged.

        A member naming a component that is still being built (a cycle
        back into the allOf) is rebuilt from its schema, so the merge does
        not depend on component order.
        """
        if isinstance(type_, UnionType) and type_.name is None:
            rest = [m for m in type_.members if not (isinstance(m, Primitive) and m.name == NIL)]
            if len(rest) == 1:
                type_ = rest[0]
        resolved = self.registry.resolve(type_)
        if not isinstance(resolved, Reference):
            return resolved
        name = resolved.name
        if not self.registry.in_progress(name) or name not in self._schemas or name in self._rebuilding:
            return resolved
        self._rebuilding.add(name)
        try:
            return self._build_named(name, parse_schema(self._schemas[name]))
        finally:
            self._rebuilding.discard(name)


def translate_schema(
    raw: dict[str, Any] | None,
    translator: SchemaTranslator,
    context: str = "",
) -> StructuralType:
    """Parse and translate a raw schema dict."""
    return translator.translate(parse_schema(raw), context)
