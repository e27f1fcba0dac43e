"""Named structural types of one translation run.

Entries are ordered by completion: a type is stored once its factory
returns, so dependencies land before their dependents (leaf-first).
While a factory runs, its name resolves to a placeholder Reference,
which is what lets self- and mutually-recursive schemas terminate.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Iterator

from .diagnostics import DiagnosticAccumulator, DiagnosticCode
from .structural import (
    ArrayType,
    MapType,
    Record,
    Reference,
    StructuralType,
    UnionType,
)

logger = logging.getLogger(__name__)


class TypeRegistry:
    def __init__(self, diagnostics: DiagnosticAccumulator | None = None) -> None:
        self._entries: dict[str, StructuralType] = {}
        self._placeholders: dict[str, Reference] = {}
        self._reserved: set[str] = set()
        self._diagnostics = diagnostics if diagnostics is not None else DiagnosticAccumulator()

    def register(self, name: str, factory: Callable[[], StructuralType]) -> StructuralType:
        """Return the type registered under ``name``, building it at most once."""
        if name in self._entries:
            return self._entries[name]
        if name in self._placeholders:
            return self._placeholders[name]

        self._placeholders[name] = Reference(name)
        try:
            built = factory()
        finally:
            del self._placeholders[name]
        self._entries[name] = built
        logger.debug("registered type %s", name)
        return built

    def define(self, name: str, type_: StructuralType) -> StructuralType:
        """Register an already built type; conflicting redefinitions keep the first."""
        existing = self._entries.get(name)
        if existing is None:
            self._entries[name] = type_
            return type_
        if existing != type_:
            self._diagnostics.add(DiagnosticCode.TYPE_NAME_CONFLICT, name)
        return existing

    def reserve(self, names: Iterable[str]) -> None:
        """Keep ``names`` (component schema names) out of ``unique_name`` results."""
        self._reserved.update(names)

    def _taken(self, name: str) -> bool:
        return name in self or name in self._reserved

    def unique_name(self, base: str) -> str:
        """Return ``base`` or the first free ``base_N`` (N >= 2)."""
        if not self._taken(base):
            return base
        n = 2
        while self._taken(f"{base}_{n}"):
            n += 1
        return f"{base}_{n}"

    def checkpoint(self) -> int:
        """Mark the current end of the registry for a later ``rollback``."""
        return len(self._entries)

    def rollback(self, mark: int) -> None:
        """Drop every entry registered after ``mark``."""
        for name in list(self._entries)[mark:]:
            del self._entries[name]
            logger.debug("rolled back type %s", name)

    def in_progress(self, name: str) -> bool:
        """True while the factory for ``name`` is running."""
        return name in self._placeholders

    def get(self, name: str) -> StructuralType | None:
        return self._entries.get(name)

    def resolve(self, type_: StructuralType) -> StructuralType:
        """Follow references until a non-reference type (or a dangling one)."""
        seen: set[str] = set()
        while isinstance(type_, Reference) and type_.name not in seen:
            seen.add(type_.name)
            target = self._entries.get(type_.name)
            if target is None:
                return type_
            type_ = target
        return type_

    def dangling(self) -> list[str]:
        """Names referenced from registered types that were never registered."""
        missing: list[str] = []
        for type_ in self._entries.values():
            for name in _references_in(type_):
                if name not in self._entries and name not in missing:
                    missing.append(name)
        return missing

    def items(self) -> list[tuple[str, StructuralType]]:
        return list(self._entries.items())

    def __contains__(self, name: object) -> bool:
        return name in self._entries or name in self._placeholders

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._entries))

    def __len__(self) -> int:
        return len(self._entries)


def _references_in(type_: StructuralType) -> Iterator[str]:
    if isinstance(type_, Reference):
        yield type_.name
    elif isinstance(type_, ArrayType):
        yield from _references_in(type_.element)
    elif isinstance(type_, MapType):
        yield from _references_in(type_.value)
    elif isinstance(type_, Record):
        for f in type_.fields:
            yield from _references_in(f.type)
    elif isinstance(type_, UnionType):
        for member in type_.members:
            yield from _references_in(member)
