"""Propagate example values between source annotations and the contract.

Source -> contract: each target (type declaration, record field, path /
query / header parameter, request body) reads at most one
``openapi.Example`` and at most one ``openapi.Examples`` annotation,
decodes its literal and stores it on the matching contract node. A target
carrying both annotations is disabled. Request bodies only take examples
when exactly one media type is declared.

Contract -> source: ``annotations_for`` turns a node's example or named
examples back into annotations with encoded literals.
"""

from __future__ import annotations

import logging
from typing import Any

from .classifier import ParameterKind, classify
from .diagnostics import DiagnosticAccumulator, DiagnosticCode, Location
from .literals import MalformedLiteralError, decode_literal, encode_literal
from .loader import HTTP_METHODS, get_paths, get_schemas, resolve_ref
from .naming import display_name
from .symbols import (
    EXAMPLE_ANNOTATION,
    EXAMPLES_ANNOTATION,
    HEADER_ANNOTATION,
    HTTP_MODULE,
    OPENAPI_MODULE,
    Annotation,
    AnnotationType,
    Symbol,
    SymbolModel,
)

logger = logging.getLogger(__name__)

EXAMPLE = "example"
EXAMPLES = "examples"

# Schema extension naming the source type of a component
TYPE_EXTENSION = "x-python-type"

_MISSING = object()


def _find(annotations: tuple[Annotation, ...], name: str) -> Annotation | None:
    for annotation in annotations:
        if annotation.type.module == OPENAPI_MODULE and annotation.type.name == name:
            return annotation
    return None


def has_both_example_annotations(annotations: tuple[Annotation, ...]) -> bool:
    return _find(annotations, EXAMPLE_ANNOTATION) is not None and _find(annotations, EXAMPLES_ANNOTATION) is not None


def _decode_named_examples(text: str) -> dict[str, Any]:
    value = decode_literal(text)
    if not isinstance(value, dict):
        raise MalformedLiteralError("named examples must be a mapping")
    for name, example in value.items():
        if not isinstance(example, dict):
            raise MalformedLiteralError(f"named example {name!r} is not an example object")
    return value


class ExampleMapper:
    """Map the example annotations of one source symbol onto one contract target.

    Subclasses implement ``_apply_example`` / ``_apply_examples``.
    """

    target_kind = "target"

    def __init__(
        self,
        name: str,
        annotations: tuple[Annotation, ...],
        diagnostics: DiagnosticAccumulator,
        location: Location | None = None,
    ) -> None:
        self.name = name
        self.annotations = annotations
        self.diagnostics = diagnostics
        self.location = location
        self.disabled = False
        if has_both_example_annotations(annotations):
            diagnostics.add(DiagnosticCode.CONFLICTING_EXAMPLE_ANNOTATIONS, name, location=location)
            self.disabled = True

    def _literal(self, annotation_name: str) -> str | None:
        annotation = _find(self.annotations, annotation_name)
        if annotation is None:
            return None
        literal = annotation.fields.get("value")
        if literal is None:
            raise MalformedLiteralError("annotation has no 'value' field")
        return literal

    def _malformed(self, which: str, exc: MalformedLiteralError) -> None:
        self.diagnostics.add(
            DiagnosticCode.MALFORMED_EXAMPLE_LITERAL,
            which, self.target_kind, self.name, exc,
            location=self.location,
        )

    def set_example(self) -> None:
        if self.disabled:
            return
        try:
            literal = self._literal(EXAMPLE_ANNOTATION)
            if literal is None:
                return
            value = decode_literal(literal)
        except MalformedLiteralError as exc:
            self._malformed(EXAMPLE, exc)
            return
        self._apply_example(value)

    def set_examples(self) -> None:
        if self.disabled:
            return
        try:
            literal = self._literal(EXAMPLES_ANNOTATION)
            if literal is None:
                return
            values = _decode_named_examples(literal)
        except MalformedLiteralError as exc:
            self._malformed(EXAMPLES, exc)
            return
        self._apply_examples(values)

    def apply(self) -> None:
        self.set_example()
        self.set_examples()

    def _apply_example(self, value: Any) -> None:
        raise NotImplementedError

    def _apply_examples(self, values: dict[str, Any]) -> None:
        raise NotImplementedError


class NodeExampleMapper(ExampleMapper):
    """Examples stored directly on one contract dict (schema or parameter)."""

    def __init__(
        self,
        target_kind: str,
        name: str,
        annotations: tuple[Annotation, ...],
        node: dict[str, Any],
        diagnostics: DiagnosticAccumulator,
        location: Location | None = None,
    ) -> None:
        self.target_kind = target_kind
        self.node = node
        super().__init__(name, annotations, diagnostics, location)

    def _apply_example(self, value: Any) -> None:
        self.node[EXAMPLE] = value

    def _apply_examples(self, values: dict[str, Any]) -> None:
        self.node[EXAMPLES] = values


def type_example_mapper(symbol: Symbol, schema: dict[str, Any], diagnostics: DiagnosticAccumulator) -> ExampleMapper:
    return NodeExampleMapper("type", symbol.name, symbol.annotations, schema, diagnostics, symbol.location)


def parameter_example_mapper(
    kind: ParameterKind,
    symbol: Symbol,
    parameter: dict[str, Any],
    diagnostics: DiagnosticAccumulator,
) -> ExampleMapper:
    return NodeExampleMapper(
        f"{kind.value} parameter", symbol.name, symbol.annotations, parameter, diagnostics, symbol.location,
    )


class RecordFieldExampleMapper:
    """Per-field examples of a record type, keyed by field name."""

    def __init__(
        self,
        type_name: str,
        symbol: Symbol,
        schema: dict[str, Any],
        diagnostics: DiagnosticAccumulator,
    ) -> None:
        properties = schema.get("properties") or {}
        self.mappers: list[ExampleMapper] = []
        for field_name, field_symbol in symbol.fields.items():
            prop = properties.get(field_name)
            if prop is None:
                logger.debug("%s.%s has no contract property", type_name, field_name)
                continue
            self.mappers.append(NodeExampleMapper(
                "field", f"{type_name}.{field_name}", field_symbol.annotations, prop,
                diagnostics, field_symbol.location,
            ))

    def apply(self) -> None:
        for mapper in self.mappers:
            mapper.apply()


class RequestExampleMapper(ExampleMapper):
    """Examples of a payload parameter, stored on the request body media type."""

    target_kind = "request"

    def __init__(
        self,
        symbol: Symbol,
        request_body: dict[str, Any] | None,
        diagnostics: DiagnosticAccumulator,
    ) -> None:
        self.request_body = request_body or {}
        super().__init__(symbol.name, symbol.annotations, diagnostics, symbol.location)

    def _validated_content(self) -> dict[str, Any] | None:
        content = self.request_body.get("content")
        if content is None:
            return None
        if len(content) != 1:
            self.diagnostics.add(DiagnosticCode.INVALID_MEDIA_TYPE_COUNT, self.name, location=self.location)
            return None
        return content

    def _apply_example(self, value: Any) -> None:
        content = self._validated_content()
        if content is None:
            return
        for media_type in content.values():
            media_type[EXAMPLE] = value

    def _apply_examples(self, values: dict[str, Any]) -> None:
        content = self._validated_content()
        if content is None:
            return
        for media_type in content.values():
            media_type[EXAMPLES] = values


class ContractExampleMapper:
    """Set the examples of a whole contract from a symbol model."""

    def __init__(
        self,
        document: dict[str, Any],
        symbols: SymbolModel,
        diagnostics: DiagnosticAccumulator,
    ) -> None:
        self.document = document
        self.symbols = symbols
        self.diagnostics = diagnostics

    def set_examples(self) -> None:
        for key, schema in get_schemas(self.document).items():
            self._set_type_examples(key, schema)

        for _path, path_item in get_paths(self.document).items():
            shared = path_item.get("parameters") or []
            for method in HTTP_METHODS:
                operation = path_item.get(method)
                if not operation or not operation.get("operationId"):
                    continue
                function = self.symbols.function_for(operation["operationId"])
                if function is None:
                    continue
                # operation-level parameters shadow path-item ones
                params = [*(operation.get("parameters") or []), *shared]
                for symbol in function.parameters:
                    self._set_parameter_examples(symbol, operation, params)
                for symbol in function.path_parameters:
                    target = self._find_parameter(params, "path", symbol.name)
                    if target is not None:
                        parameter_example_mapper(ParameterKind.PATH, symbol, target, self.diagnostics).apply()

    def _set_type_examples(self, key: str, schema: dict[str, Any]) -> None:
        type_name = schema.get(TYPE_EXTENSION, key)
        symbol = self.symbols.type_named(type_name)
        if symbol is None:
            return
        type_example_mapper(symbol, schema, self.diagnostics).apply()
        if symbol.fields and "properties" in schema:
            RecordFieldExampleMapper(type_name, symbol, schema, self.diagnostics).apply()

    def _set_parameter_examples(
        self,
        symbol: Symbol,
        operation: dict[str, Any],
        params: list[dict[str, Any]],
    ) -> None:
        kind = classify(symbol, self.symbols)
        if kind is ParameterKind.PAYLOAD:
            body = operation.get("requestBody")
            if body is None:
                return
            if "$ref" in body:
                body = self._resolve(body)
            RequestExampleMapper(symbol, body, self.diagnostics).apply()
        elif kind is ParameterKind.QUERY:
            target = self._find_parameter(params, "query", symbol.name)
            if target is not None:
                parameter_example_mapper(kind, symbol, target, self.diagnostics).apply()
        elif kind is ParameterKind.HEADER:
            target = self._find_parameter(params, "header", self._header_name(symbol))
            if target is not None:
                parameter_example_mapper(kind, symbol, target, self.diagnostics).apply()

    def _header_name(self, symbol: Symbol) -> str:
        for annotation in symbol.annotations:
            if annotation.type.is_subtype_of(HTTP_MODULE, HEADER_ANNOTATION) and "name" in annotation.fields:
                try:
                    name = decode_literal(annotation.fields["name"])
                except MalformedLiteralError:
                    continue
                if isinstance(name, str):
                    return name
        return symbol.name

    def _resolve(self, node: dict[str, Any]) -> dict[str, Any] | None:
        try:
            return resolve_ref(self.document, node["$ref"])
        except KeyError:
            return None

    def _find_parameter(self, params: list[dict[str, Any]], location: str, name: str) -> dict[str, Any] | None:
        wanted = display_name(name)
        for raw in params:
            param = self._resolve(raw) if "$ref" in raw else raw
            if param is None or param.get("in") != location:
                continue
            if display_name(param.get("name", "")) == wanted:
                return param
        return None


def annotations_for(
    node: dict[str, Any],
    name: str,
    diagnostics: DiagnosticAccumulator,
) -> tuple[Annotation, ...]:
    """Example annotations for generated source, from a contract node."""
    example = node.get(EXAMPLE, _MISSING)
    examples = node.get(EXAMPLES)
    if example is not _MISSING and examples is not None:
        diagnostics.add(DiagnosticCode.CONFLICTING_EXAMPLE_ANNOTATIONS, name)
        return ()
    try:
        if example is not _MISSING:
            return (Annotation(
                AnnotationType(OPENAPI_MODULE, EXAMPLE_ANNOTATION), {"value": encode_literal(example)},
            ),)
        if examples is not None:
            return (Annotation(
                AnnotationType(OPENAPI_MODULE, EXAMPLES_ANNOTATION), {"value": encode_literal(examples)},
            ),)
    except MalformedLiteralError as exc:
        which = EXAMPLE if example is not _MISSING else EXAMPLES
        diagnostics.add(DiagnosticCode.MALFORMED_EXAMPLE_LITERAL, which, "contract node", name, exc)
    return ()
