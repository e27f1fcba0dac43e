"""Read-only model of annotated host source symbols.

Parsing source is someone else's job; this module only describes the
already-resolved result: names, declared types, annotations with their
literal field values, documentation and locations. A model is usually
built from a YAML/JSON manifest:

    types:
      Pet:
        file: pets/models.py
        line: 12
        annotations:
          - {type: openapi.Example, value: "{'id': 1, 'name': 'Rex'}"}
        fields:
          name:
            annotations:
              - {type: openapi.Example, value: "'Rex'"}
    functions:
      - operation_id: createPet
        parameters:
          - name: pet
            type: {name: Pet}
            annotations:
              - {type: http.Payload}
        path_parameters:
          - name: petId
            type: {name: int}
    annotation_types:
      http.JsonPayload: [http.Payload]
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

import yaml

from .diagnostics import Location

HTTP_MODULE = "http"
OPENAPI_MODULE = "openapi"

PAYLOAD_ANNOTATION = "Payload"
HEADER_ANNOTATION = "Header"
QUERY_ANNOTATION = "Query"
EXAMPLE_ANNOTATION = "Example"
EXAMPLES_ANNOTATION = "Examples"


class SymbolKind(str, Enum):
    TYPE = "type"
    FIELD = "field"
    PARAMETER = "parameter"
    PATH_PARAMETER = "path_parameter"


@dataclass(frozen=True)
class AnnotationType:
    module: str
    name: str
    bases: tuple[str, ...] = ()

    @property
    def qualified_name(self) -> str:
        return f"{self.module}.{self.name}"

    def is_subtype_of(self, module: str, name: str) -> bool:
        target = f"{module}.{name}"
        return self.qualified_name == target or target in self.bases


@dataclass(frozen=True)
class Annotation:
    type: AnnotationType
    # field name -> literal expression source
    fields: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class TypeDescriptor:
    name: str
    module: str = "builtins"
    # subtype of the JSON-compatible data universe
    is_data: bool = True
    nilable: bool = False


@dataclass(frozen=True)
class Symbol:
    name: str
    kind: SymbolKind
    type: TypeDescriptor | None = None
    annotations: tuple[Annotation, ...] = ()
    documentation: str = ""
    location: Location | None = None
    fields: dict[str, Symbol] = field(default_factory=dict)


@dataclass(frozen=True)
class FunctionSymbol:
    operation_id: str
    parameters: tuple[Symbol, ...] = ()
    path_parameters: tuple[Symbol, ...] = ()
    location: Location | None = None


class SymbolModel:
    """Queries over resolved source symbols. Never mutated after construction."""

    def __init__(
        self,
        types: dict[str, Symbol] | None = None,
        functions: list[FunctionSymbol] | None = None,
    ) -> None:
        self._types = dict(types or {})
        self._functions = {f.operation_id: f for f in functions or []}

    def type_of(self, symbol: Symbol) -> TypeDescriptor | None:
        return symbol.type

    def annotations_of(self, symbol: Symbol) -> tuple[Annotation, ...]:
        return symbol.annotations

    def name_of(self, symbol: Symbol) -> str:
        return symbol.name

    def location_of(self, symbol: Symbol) -> Location | None:
        return symbol.location

    def module_of(self, type_: AnnotationType | TypeDescriptor) -> str:
        return type_.module

    def type_named(self, name: str) -> Symbol | None:
        return self._types.get(name)

    def function_for(self, operation_id: str) -> FunctionSymbol | None:
        return self._functions.get(operation_id)

    @property
    def functions(self) -> list[FunctionSymbol]:
        return list(self._functions.values())

    @classmethod
    def from_dict(cls, data: dict[str, Any], source: str = "") -> SymbolModel:
        """Build a model from a manifest dict (see the module docstring)."""
        hierarchy = {
            name: tuple(bases or ())
            for name, bases in (data.get("annotation_types") or {}).items()
        }
        types = {
            name: _symbol(name, SymbolKind.TYPE, raw or {}, hierarchy, source)
            for name, raw in (data.get("types") or {}).items()
        }
        functions = []
        for raw in data.get("functions") or []:
            functions.append(FunctionSymbol(
                operation_id=raw["operation_id"],
                parameters=tuple(
                    _symbol(p["name"], SymbolKind.PARAMETER, p, hierarchy, source)
                    for p in raw.get("parameters") or []
                ),
                path_parameters=tuple(
                    _symbol(p["name"], SymbolKind.PATH_PARAMETER, p, hierarchy, source)
                    for p in raw.get("path_parameters") or []
                ),
                location=_location(raw, source),
            ))
        return cls(types, functions)


def _location(raw: dict[str, Any], source: str) -> Location | None:
    file = raw.get("file") or source
    if not file:
        return None
    return Location(file, int(raw.get("line", 0)), int(raw.get("column", 0)))


def _annotation(raw: dict[str, Any], hierarchy: dict[str, tuple[str, ...]]) -> Annotation:
    qualified = raw["type"]
    module, _, name = qualified.rpartition(".")
    fields = {
        key: value if isinstance(value, str) else repr(value)
        for key, value in raw.items()
        if key != "type"
    }
    return Annotation(AnnotationType(module, name, hierarchy.get(qualified, ())), fields)


def _symbol(
    name: str,
    kind: SymbolKind,
    raw: dict[str, Any],
    hierarchy: dict[str, tuple[str, ...]],
    source: str,
) -> Symbol:
    type_raw = raw.get("type")
    type_ = None
    if type_raw is not None:
        type_ = TypeDescriptor(
            name=type_raw.get("name", "Any"),
            module=type_raw.get("module", "builtins"),
            is_data=bool(type_raw.get("data", True)),
            nilable=bool(type_raw.get("nilable", False)),
        )
    return Symbol(
        name=name,
        kind=kind,
        type=type_,
        annotations=tuple(_annotation(a, hierarchy) for a in raw.get("annotations") or []),
        documentation=raw.get("doc", "") or "",
        location=_location(raw, source),
        fields={
            field_name: _symbol(field_name, SymbolKind.FIELD, field_raw or {}, hierarchy, source)
            for field_name, field_raw in (raw.get("fields") or {}).items()
        },
    )


class SymbolLoadError(Exception):
    """The symbol manifest could not be read or parsed."""


def load_symbols(path: Path) -> SymbolModel:
    """Load a symbol manifest from a YAML or JSON file."""
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except OSError as exc:
        raise SymbolLoadError(f"cannot read {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise SymbolLoadError(f"cannot parse {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise SymbolLoadError(f"{path} does not contain a symbol manifest")
    try:
        return SymbolModel.from_dict(data, source=str(path))
    except (KeyError, TypeError, AttributeError, ValueError) as exc:
        raise SymbolLoadError(f"malformed symbol manifest {path}: {exc!r}") from exc
