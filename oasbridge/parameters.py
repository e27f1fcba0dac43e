"""Build operation signatures.

Every operation's path, query and header parameters, its request body
and the headers declared in the body encoding become one ordered,
duplicate-free parameter list. Required parameters come first,
defaultable ones after, each group in declaration order. A parameter
that cannot be mapped fails the whole operation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from .classifier import ParameterKind
from .config import MappingConfig
from .diagnostics import DiagnosticAccumulator, DiagnosticCode
from .examples import annotations_for
from .loader import resolve_ref
from .naming import display_name, escape_identifier, to_pascal
from .structural import (
    NIL,
    SCALAR_NAMES,
    STRING,
    ArrayType,
    Primitive,
    StructuralType,
    UnionType,
    is_nilable,
)
from .symbols import Annotation
from .translator import SchemaTranslator, strip_html, translate_schema

logger = logging.getLogger(__name__)

# Integers >= 2^53 are unsafe for JSON serialization
MAX_SAFE_INT = 2**53

# Media types preferred for the payload parameter, in order
_PREFERRED_MEDIA_TYPES = ("application/json", "text/json", "application/x-www-form-urlencoded", "multipart/form-data")

PAYLOAD_NAME = "payload"

_LOCATIONS: dict[str, ParameterKind] = {
    "path": ParameterKind.PATH,
    "query": ParameterKind.QUERY,
    "header": ParameterKind.HEADER,
}


@dataclass(frozen=True)
class Parameter:
    name: str
    display_name: str
    identifier: str
    kind: ParameterKind
    required: bool
    type: StructuralType
    default: Any = None
    description: str = ""
    media_type: str | None = None
    annotations: tuple[Annotation, ...] = ()


@dataclass(frozen=True)
class OperationSignature:
    function_name: str
    operation_id: str | None
    method: str
    path: str
    parameters: tuple[Parameter, ...]
    return_type: StructuralType | None
    description: str = ""

    @property
    def required(self) -> tuple[Parameter, ...]:
        return tuple(p for p in self.parameters if p.required)

    @property
    def defaultable(self) -> tuple[Parameter, ...]:
        return tuple(p for p in self.parameters if not p.required)

    def parameter(self, display: str) -> Parameter | None:
        for p in self.parameters:
            if p.display_name == display:
                return p
        return None


class SignatureError(Exception):
    """One parameter of an operation cannot be mapped."""


def _sanitize_default(value: Any) -> Any:
    """Replace unsafe large integer defaults with None."""
    if isinstance(value, int) and not isinstance(value, bool) and abs(value) >= MAX_SAFE_INT:
        return None
    return value


def select_media_type(content: dict[str, Any]) -> str | None:
    """Pick the media type whose schema types the payload parameter."""
    for media_type in _PREFERRED_MEDIA_TYPES:
        if media_type in content:
            return media_type
    for media_type in content:
        return media_type
    return None


class SignatureBuilder:
    """Build operation signatures for one contract document."""

    def __init__(
        self,
        document: dict[str, Any],
        translator: SchemaTranslator,
        diagnostics: DiagnosticAccumulator,
        config: MappingConfig | None = None,
    ) -> None:
        self.document = document
        self.translator = translator
        self.diagnostics = diagnostics
        self.config = config or MappingConfig()

    def build(
        self,
        function_name: str,
        method: str,
        path: str,
        operation: dict[str, Any],
        shared_parameters: list[dict[str, Any]] | None = None,
    ) -> OperationSignature | None:
        """Build the signature of one operation, or None if any parameter fails."""
        context = to_pascal(function_name)
        mark = self.translator.registry.checkpoint()
        try:
            candidates = self._declared_parameters(operation, shared_parameters or [], context)
            candidates.extend(self._request_body_parameters(operation, context))
        except SignatureError:
            # types hoisted for a skipped operation are not emitted
            self.translator.registry.rollback(mark)
            self.diagnostics.add(DiagnosticCode.SIGNATURE_FAILED, operation.get("operationId") or function_name)
            return None

        emitted: set[str] = set()
        required: list[Parameter] = []
        defaultable: list[Parameter] = []
        for param in candidates:
            if param.display_name in emitted:
                logger.debug("%s: dropped duplicate parameter %s", function_name, param.name)
                continue
            emitted.add(param.display_name)
            (required if param.required else defaultable).append(param)

        return OperationSignature(
            function_name=function_name,
            operation_id=operation.get("operationId"),
            method=method,
            path=path,
            parameters=tuple(required + defaultable),
            return_type=self._return_type(operation, context),
            description=strip_html(operation.get("summary") or operation.get("description") or ""),
        )

    def _resolve(self, raw: dict[str, Any]) -> dict[str, Any]:
        seen: set[str] = set()
        while "$ref" in raw:
            ref = raw["$ref"]
            if ref in seen:
                raise KeyError(ref)
            seen.add(ref)
            raw = resolve_ref(self.document, ref)
        return raw

    def _declared_parameters(
        self,
        operation: dict[str, Any],
        shared: list[dict[str, Any]],
        context: str,
    ) -> list[Parameter]:
        resolved: list[dict[str, Any]] = []
        for raw in [*shared, *(operation.get("parameters") or [])]:
            try:
                param = self._resolve(raw)
            except KeyError:
                self.diagnostics.add(DiagnosticCode.UNRESOLVED_PARAMETER, raw.get("$ref"))
                raise SignatureError(raw.get("$ref")) from None
            # operation-level parameters override path-item ones with the same name and location
            key = (param.get("name"), param.get("in"))
            for i, existing in enumerate(resolved):
                if (existing.get("name"), existing.get("in")) == key:
                    resolved[i] = param
                    break
            else:
                resolved.append(param)

        params = []
        for raw in resolved:
            kind = _LOCATIONS.get(raw.get("in", ""), ParameterKind.OTHER)
            if kind is ParameterKind.OTHER:
                logger.debug("skipped %s parameter %s", raw.get("in"), raw.get("name"))
                continue
            params.append(self._parameter(raw, kind, context))
        return params

    def _parameter(self, raw: dict[str, Any], kind: ParameterKind, context: str) -> Parameter:
        name = raw["name"]
        schema = raw.get("schema")
        if schema is None and raw.get("content"):
            media_type = select_media_type(raw["content"])
            schema = raw["content"][media_type].get("schema")

        if schema is None:
            type_: StructuralType = Primitive(STRING)
            default = None
        else:
            type_ = translate_schema(schema, self.translator, f"{context}{to_pascal(name)}")
            default = schema.get("default")
            if default is not None and _sanitize_default(default) is None:
                self.diagnostics.add(DiagnosticCode.UNSAFE_DEFAULT, name)
                default = None

        if kind is ParameterKind.PATH and not self._is_scalar(type_):
            self.diagnostics.add(DiagnosticCode.INVALID_PATH_PARAMETER, name)
            raise SignatureError(name)
        if kind is ParameterKind.HEADER and not self._is_header_type(type_):
            self.diagnostics.add(DiagnosticCode.INVALID_HEADER_PARAMETER, name)
            raise SignatureError(name)

        if kind is ParameterKind.PATH:
            required = True
        else:
            optional_nil = self.config.treat_nilable_as_optional and is_nilable(type_)
            required = bool(raw.get("required", False)) and default is None and not optional_nil

        display = display_name(name)
        return Parameter(
            name=name,
            display_name=display,
            identifier=escape_identifier(display),
            kind=kind,
            required=required,
            type=type_,
            default=default,
            description=strip_html(raw.get("description", "") or ""),
            annotations=annotations_for(raw, name, self.diagnostics),
        )

    def _request_body_parameters(self, operation: dict[str, Any], context: str) -> list[Parameter]:
        raw_body = operation.get("requestBody")
        if not raw_body:
            return []
        try:
            body = self._resolve(raw_body)
        except KeyError:
            self.diagnostics.add(DiagnosticCode.UNRESOLVED_PARAMETER, raw_body.get("$ref"))
            raise SignatureError(raw_body.get("$ref")) from None

        content = body.get("content") or {}
        media_type = select_media_type(content)
        schema = content[media_type].get("schema") if media_type else None
        params = [Parameter(
            name=PAYLOAD_NAME,
            display_name=PAYLOAD_NAME,
            identifier=PAYLOAD_NAME,
            kind=ParameterKind.PAYLOAD,
            required=True,
            type=translate_schema(schema, self.translator, f"{context}Request"),
            description=strip_html(body.get("description", "") or ""),
            media_type=media_type,
            annotations=annotations_for(content[media_type], PAYLOAD_NAME, self.diagnostics) if media_type else (),
        )]

        for media in content.values():
            for encoding in (media.get("encoding") or {}).values():
                for header_name, raw_header in (encoding.get("headers") or {}).items():
                    try:
                        header = self._resolve(raw_header)
                    except KeyError:
                        self.diagnostics.add(DiagnosticCode.UNRESOLVED_PARAMETER, raw_header.get("$ref"))
                        raise SignatureError(raw_header.get("$ref")) from None
                    params.append(self._parameter(
                        {**header, "name": header_name, "in": "header"}, ParameterKind.HEADER, context,
                    ))
        return params

    def _return_type(self, operation: dict[str, Any], context: str) -> StructuralType | None:
        responses = operation.get("responses") or {}
        for status in sorted(str(code) for code in responses):
            if not status.startswith("2"):
                continue
            response = responses.get(status, responses.get(int(status) if status.isdigit() else status))
            try:
                response = self._resolve(response or {})
            except KeyError:
                continue
            content = response.get("content") or {}
            media_type = select_media_type(content)
            if media_type and content[media_type].get("schema") is not None:
                return translate_schema(content[media_type]["schema"], self.translator, f"{context}Response")
        return None

    def _is_scalar(self, type_: StructuralType) -> bool:
        type_ = self.translator.registry.resolve(type_)
        if isinstance(type_, Primitive):
            return type_.name in SCALAR_NAMES or type_.name == NIL
        if isinstance(type_, UnionType):
            return all(self._is_scalar(m) for m in type_.members)
        return False

    def _is_header_type(self, type_: StructuralType) -> bool:
        resolved = self.translator.registry.resolve(type_)
        if isinstance(resolved, ArrayType):
            return self._is_scalar(resolved.element)
        return self._is_scalar(resolved)
