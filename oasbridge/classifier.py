"""Classify source parameter symbols.

A parameter is classified once, from its declared type and its http
annotations, and the result never changes afterwards.
"""

from __future__ import annotations

from enum import Enum

from .symbols import (
    HEADER_ANNOTATION,
    HTTP_MODULE,
    PAYLOAD_ANNOTATION,
    QUERY_ANNOTATION,
    Symbol,
    SymbolModel,
)


class ParameterKind(str, Enum):
    PATH = "path"
    QUERY = "query"
    HEADER = "header"
    PAYLOAD = "payload"
    OTHER = "other"


# Fixed classification priority for http annotations
_ANNOTATION_PRIORITY: tuple[tuple[ParameterKind, str], ...] = (
    (ParameterKind.PAYLOAD, PAYLOAD_ANNOTATION),
    (ParameterKind.HEADER, HEADER_ANNOTATION),
    (ParameterKind.QUERY, QUERY_ANNOTATION),
)


def classify(symbol: Symbol, symbols: SymbolModel) -> ParameterKind:
    """Classify a source parameter symbol.

    Non-data types are OTHER and stay out of the contract. Without http
    annotations a parameter is a query parameter; otherwise PAYLOAD,
    HEADER and QUERY are tried in that order against the annotation types.
    """
    type_ = symbols.type_of(symbol)
    if type_ is None or not type_.is_data:
        return ParameterKind.OTHER

    http_annotations = [
        a for a in symbols.annotations_of(symbol)
        if symbols.module_of(a.type).split(".")[0] == HTTP_MODULE
    ]
    if not http_annotations:
        return ParameterKind.QUERY

    for kind, annotation_name in _ANNOTATION_PRIORITY:
        if any(a.type.is_subtype_of(HTTP_MODULE, annotation_name) for a in http_annotations):
            return kind
    return ParameterKind.QUERY
