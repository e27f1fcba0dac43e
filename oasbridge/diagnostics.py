"""Collect non-fatal translation failures.

Every stage of a run appends to one shared DiagnosticAccumulator instead
of raising. Codes are stable identifiers; message text may change freely.

  OAS_MAP_1xx  schema translation and the type registry
  OAS_MAP_2xx  parameters and operation signatures
  OAS_MAP_3xx  example mapping
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


class DiagnosticCode(str, Enum):
    UNSUPPORTED_SCHEMA = "OAS_MAP_100"
    UNSUPPORTED_COMBINATOR = "OAS_MAP_101"
    UNRESOLVED_REFERENCE = "OAS_MAP_102"
    TYPE_NAME_CONFLICT = "OAS_MAP_103"
    DANGLING_REFERENCE = "OAS_MAP_104"
    INVALID_PATH_PARAMETER = "OAS_MAP_200"
    INVALID_HEADER_PARAMETER = "OAS_MAP_201"
    UNRESOLVED_PARAMETER = "OAS_MAP_202"
    SIGNATURE_FAILED = "OAS_MAP_203"
    UNSAFE_DEFAULT = "OAS_MAP_204"
    MALFORMED_EXAMPLE_LITERAL = "OAS_MAP_300"
    INVALID_MEDIA_TYPE_COUNT = "OAS_MAP_301"
    CONFLICTING_EXAMPLE_ANNOTATIONS = "OAS_MAP_302"


# code -> (severity, message template)
_MESSAGES: dict[DiagnosticCode, tuple[Severity, str]] = {
    DiagnosticCode.UNSUPPORTED_SCHEMA: (
        Severity.WARNING, "unsupported schema at '{0}': {1}; mapped to an unknown type",
    ),
    DiagnosticCode.UNSUPPORTED_COMBINATOR: (
        Severity.WARNING, "cannot combine the 'allOf' members of '{0}'; mapped to an unknown type",
    ),
    DiagnosticCode.UNRESOLVED_REFERENCE: (
        Severity.WARNING, "reference '{0}' does not point to a component schema",
    ),
    DiagnosticCode.TYPE_NAME_CONFLICT: (
        Severity.ERROR, "type name '{0}' is already registered with a different structure",
    ),
    DiagnosticCode.DANGLING_REFERENCE: (
        Severity.ERROR, "type '{0}' is referenced but never registered",
    ),
    DiagnosticCode.INVALID_PATH_PARAMETER: (
        Severity.ERROR,
        "path parameter '{0}' is invalid: structured types cannot be serialized into a path segment",
    ),
    DiagnosticCode.INVALID_HEADER_PARAMETER: (
        Severity.ERROR, "header parameter '{0}' is invalid: only scalar or list of scalar types are supported",
    ),
    DiagnosticCode.UNRESOLVED_PARAMETER: (
        Severity.ERROR, "parameter reference '{0}' cannot be resolved",
    ),
    DiagnosticCode.SIGNATURE_FAILED: (
        Severity.ERROR, "skipped operation '{0}': its function signature could not be generated",
    ),
    DiagnosticCode.UNSAFE_DEFAULT: (
        Severity.WARNING, "default value of '{0}' exceeds the safe integer range and was dropped",
    ),
    DiagnosticCode.MALFORMED_EXAMPLE_LITERAL: (
        Severity.ERROR, "cannot decode the {0} value of {1} '{2}': {3}",
    ),
    DiagnosticCode.INVALID_MEDIA_TYPE_COUNT: (
        Severity.ERROR,
        "examples of request parameter '{0}' are dropped: the request body must declare exactly one media type",
    ),
    DiagnosticCode.CONFLICTING_EXAMPLE_ANNOTATIONS: (
        Severity.ERROR, "'{0}' carries both an example and an examples annotation; examples are not mapped",
    ),
}


@dataclass(frozen=True)
class Location:
    """A position in host source. Lines and columns are 1-based."""

    file: str
    line: int = 0
    column: int = 0

    def __str__(self) -> str:
        return f"{self.file}:{self.line}:{self.column}"


@dataclass(frozen=True)
class Diagnostic:
    code: DiagnosticCode
    severity: Severity
    message: str
    location: Location | None = None
    args: tuple[Any, ...] = ()

    def __str__(self) -> str:
        where = f"{self.location}: " if self.location is not None else ""
        return f"{where}{self.severity.value} [{self.code.value}] {self.message}"


def make_diagnostic(
    code: DiagnosticCode,
    *args: Any,
    location: Location | None = None,
) -> Diagnostic:
    """Build a diagnostic from the message table."""
    severity, template = _MESSAGES[code]
    return Diagnostic(
        code=code,
        severity=severity,
        message=template.format(*args),
        location=location,
        args=tuple(args),
    )


@dataclass
class DiagnosticAccumulator:
    """Append-only diagnostic sink shared by one translation run."""

    _items: list[Diagnostic] = field(default_factory=list)

    def add(
        self,
        code: DiagnosticCode,
        *args: Any,
        location: Location | None = None,
    ) -> Diagnostic:
        diagnostic = make_diagnostic(code, *args, location=location)
        self._items.append(diagnostic)
        return diagnostic

    def extend(self, diagnostics: list[Diagnostic]) -> None:
        self._items.extend(diagnostics)

    def has_errors(self) -> bool:
        return any(d.severity is Severity.ERROR for d in self._items)

    def errors(self) -> list[Diagnostic]:
        return [d for d in self._items if d.severity is Severity.ERROR]

    def warnings(self) -> list[Diagnostic]:
        return [d for d in self._items if d.severity is Severity.WARNING]

    def codes(self) -> list[DiagnosticCode]:
        return [d.code for d in self._items]

    def ranked(self) -> list[Diagnostic]:
        """Errors before warnings; insertion order within a severity."""
        return self.errors() + self.warnings()

    def report(self, logger: logging.Logger) -> None:
        """Log every diagnostic at its severity level, errors first."""
        for diagnostic in self.ranked():
            level = logging.ERROR if diagnostic.severity is Severity.ERROR else logging.WARNING
            logger.log(level, "%s", diagnostic)

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(list(self._items))

    def __len__(self) -> int:
        return len(self._items)
