"""Run a whole translation in either direction.

build_fragments: contract -> type declarations + operation signatures.
enrich_contract: symbol model -> examples and descriptions in the contract.

Both always finish and return best-effort output; everything that went
wrong is in the returned DiagnosticAccumulator.
"""

from __future__ import annotations

import logging
from typing import Any, Iterator

from .config import MappingConfig
from .diagnostics import DiagnosticAccumulator, DiagnosticCode
from .examples import TYPE_EXTENSION, ContractExampleMapper, annotations_for
from .fragments import SourceFragmentSet, TypeDeclaration
from .loader import HTTP_METHODS, get_paths, get_schemas
from .naming import build_function_name, deduplicate_names, display_name
from .parameters import SignatureBuilder
from .registry import TypeRegistry
from .structural import Record
from .symbols import SymbolModel
from .translator import SchemaTranslator

logger = logging.getLogger(__name__)


def iter_operations(
    document: dict[str, Any],
) -> Iterator[tuple[str, str, dict[str, Any], list[dict[str, Any]]]]:
    """Yield (path, method, operation, path-item parameters) in document order."""
    for path, path_item in get_paths(document).items():
        if not isinstance(path_item, dict):
            continue
        shared = path_item.get("parameters") or []
        for method in HTTP_METHODS:
            operation = path_item.get(method)
            if isinstance(operation, dict):
                yield path, method, operation, shared


def _declaration(
    name: str,
    type_: Any,
    schemas: dict[str, Any],
    diagnostics: DiagnosticAccumulator,
) -> TypeDeclaration:
    raw = schemas.get(name)
    if raw is None:
        return TypeDeclaration(name, type_)
    field_annotations = {}
    if isinstance(type_, Record):
        properties = raw.get("properties") or {}
        for f in type_.fields:
            prop = properties.get(f.name)
            if prop is not None:
                found = annotations_for(prop, f"{name}.{f.name}", diagnostics)
                if found:
                    field_annotations[f.name] = found
    return TypeDeclaration(name, type_, annotations_for(raw, name, diagnostics), field_annotations)


def build_fragments(
    document: dict[str, Any],
    config: MappingConfig | None = None,
    diagnostics: DiagnosticAccumulator | None = None,
) -> tuple[SourceFragmentSet, DiagnosticAccumulator]:
    """Translate a contract into a source fragment set."""
    config = config or MappingConfig()
    diagnostics = diagnostics if diagnostics is not None else DiagnosticAccumulator()
    registry = TypeRegistry(diagnostics)
    translator = SchemaTranslator(document, registry, diagnostics)
    builder = SignatureBuilder(document, translator, diagnostics, config)

    translator.translate_components()

    operations = list(iter_operations(document))
    names = deduplicate_names(
        [build_function_name(method, path, op.get("operationId")) for path, method, op, _ in operations],
        [method for _, method, _, _ in operations],
    )

    fragments = SourceFragmentSet(
        title=(document.get("info") or {}).get("title", ""),
        version=str((document.get("info") or {}).get("version", "")),
    )
    for name, (path, method, operation, shared) in zip(names, operations):
        signature = builder.build(name, method, path, operation, shared)
        if signature is None:
            logger.info("skipped %s %s", method.upper(), path)
            continue
        fragments.operations.append(signature)

    for name in registry.dangling():
        diagnostics.add(DiagnosticCode.DANGLING_REFERENCE, name)

    schemas = get_schemas(document)
    fragments.types = [_declaration(name, type_, schemas, diagnostics) for name, type_ in registry.items()]

    logger.info(
        "translated %d types and %d of %d operations (%d diagnostics)",
        len(fragments.types), len(fragments.operations), len(operations), len(diagnostics),
    )
    return fragments, diagnostics


def _set_description(node: dict[str, Any], documentation: str) -> None:
    if documentation and not node.get("description") and "$ref" not in node:
        node["description"] = documentation


def _enrich_descriptions(document: dict[str, Any], symbols: SymbolModel) -> None:
    for key, schema in get_schemas(document).items():
        symbol = symbols.type_named(schema.get(TYPE_EXTENSION, key))
        if symbol is None:
            continue
        _set_description(schema, symbol.documentation)
        properties = schema.get("properties") or {}
        for field_name, field_symbol in symbol.fields.items():
            if field_name in properties:
                _set_description(properties[field_name], field_symbol.documentation)

    for _path, _method, operation, _shared in iter_operations(document):
        function = symbols.function_for(operation.get("operationId") or "")
        if function is None:
            continue
        docs = {
            display_name(s.name): s.documentation
            for s in (*function.path_parameters, *function.parameters)
            if s.documentation
        }
        for param in operation.get("parameters") or []:
            if "$ref" not in param:
                _set_description(param, docs.get(display_name(param.get("name", "")), ""))


def enrich_contract(
    document: dict[str, Any],
    symbols: SymbolModel,
    diagnostics: DiagnosticAccumulator | None = None,
) -> DiagnosticAccumulator:
    """Copy examples and documentation from source symbols into the contract, in place."""
    diagnostics = diagnostics if diagnostics is not None else DiagnosticAccumulator()
    ContractExampleMapper(document, symbols, diagnostics).set_examples()
    _enrich_descriptions(document, symbols)
    logger.info("enriched contract (%d diagnostics)", len(diagnostics))
    return diagnostics
