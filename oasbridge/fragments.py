"""Source fragments produced from a contract.

A fragment set is what the emitter consumes: named type declarations in
registry order and operation signatures in document order.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .parameters import OperationSignature
from .structural import StructuralType
from .symbols import Annotation


@dataclass(frozen=True)
class TypeDeclaration:
    name: str
    type: StructuralType
    annotations: tuple[Annotation, ...] = ()
    field_annotations: dict[str, tuple[Annotation, ...]] = field(default_factory=dict)


@dataclass
class SourceFragmentSet:
    types: list[TypeDeclaration] = field(default_factory=list)
    operations: list[OperationSignature] = field(default_factory=list)
    title: str = ""
    version: str = ""

    def type_named(self, name: str) -> TypeDeclaration | None:
        for declaration in self.types:
            if declaration.name == name:
                return declaration
        return None

    def operation(self, function_name: str) -> OperationSignature | None:
        for signature in self.operations:
            if signature.function_name == function_name:
                return signature
        return None

    def operation_by_id(self, operation_id: str) -> OperationSignature | None:
        for signature in self.operations:
            if signature.operation_id == operation_id:
                return signature
        return None
