"""Render a source fragment set into a Python client module.

Takes the fragments from driver.build_fragments and produces client.py:
dataclasses for records, aliases for everything else, one method per
operation signature.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import jinja2

from .config import MappingConfig
from .fragments import SourceFragmentSet, TypeDeclaration
from .naming import display_name, escape_identifier
from .parameters import OperationSignature, Parameter
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
    MapType,
    Primitive,
    Record,
    Reference,
    StructuralType,
    UnionType,
    Unknown,
)
from .symbols import Annotation

TEMPLATE_DIR = Path(__file__).parent / "templates"

_PYTHON_TYPES: dict[str, str] = {
    STRING: "str",
    BYTES: "bytes",
    INT64: "int",
    INT32: "int",
    DOUBLE: "float",
    FLOAT: "float",
    BOOL: "bool",
    NIL: "None",
}


def render_type(type_: StructuralType | None, quote: bool = False) -> str:
    """Python annotation text for a structural type.

    ``quote`` renders references as strings, for aliases evaluated at import.
    """
    if type_ is None:
        return "None"
    if isinstance(type_, Primitive):
        return _PYTHON_TYPES.get(type_.name, "Any")
    if isinstance(type_, Reference):
        return f'"{type_.name}"' if quote else type_.name
    if isinstance(type_, ArrayType):
        return f"list[{render_type(type_.element, quote)}]"
    if isinstance(type_, MapType):
        return f"dict[str, {render_type(type_.value, quote)}]"
    if isinstance(type_, Record):
        return "dict[str, Any]"
    if isinstance(type_, UnionType):
        nilable = any(isinstance(m, Primitive) and m.name == NIL for m in type_.members)
        members = [render_type(m, quote) for m in type_.members if not (isinstance(m, Primitive) and m.name == NIL)]
        members = list(dict.fromkeys(members))
        if not members:
            return "None"
        inner = members[0] if len(members) == 1 else f"Union[{', '.join(members)}]"
        return f"Optional[{inner}]" if nilable else inner
    if isinstance(type_, Unknown):
        return "Any"
    return "Any"


def render_annotation(annotation: Annotation) -> str:
    return f"{annotation.type.name}(value={annotation.fields.get('value', 'None')})"


def _annotated(text: str, annotations: tuple[Annotation, ...]) -> str:
    if not annotations:
        return text
    rendered = ", ".join(render_annotation(a) for a in annotations)
    return f"Annotated[{text}, {rendered}]"


def _field_default(
    wire_name: str, identifier: str, required: bool, default: Any, read_only: bool = False,
) -> str | None:
    """Text after ``=`` in a dataclass field, or None for a bare required field."""
    args = []
    if not required or default is not None:
        if isinstance(default, (list, dict)):
            args.append(f"default_factory=lambda: {default!r}")
        else:
            args.append(f"default={default!r}")
    metadata = []
    if wire_name != identifier:
        metadata.append(f"'wire_name': {wire_name!r}")
    if read_only:
        metadata.append("'read_only': True")
    if metadata:
        args.append(f"metadata={{{', '.join(metadata)}}}")
    if not args:
        return None
    if len(args) == 1 and args[0].startswith("default="):
        return args[0][len("default="):]
    return f"field({', '.join(args)})"


def _type_view(declaration: TypeDeclaration) -> dict[str, Any]:
    type_ = declaration.type
    view: dict[str, Any] = {
        "name": declaration.name,
        "annotations": [render_annotation(a) for a in declaration.annotations],
    }
    if isinstance(type_, Record):
        fields = []
        for f in type_.fields:
            identifier = escape_identifier(display_name(f.name))
            text = render_type(f.type)
            if not f.required:
                text = text if text.startswith("Optional[") or text == "Any" else f"Optional[{text}]"
            fields.append({
                "identifier": identifier,
                "annotation": _annotated(text, declaration.field_annotations.get(f.name, ())),
                "default": _field_default(f.name, identifier, f.required, f.default, f.read_only),
                "description": f.description,
            })
        view.update(kind="record", fields=fields, description=type_.description)
    else:
        view.update(kind="alias", alias=render_type(type_, quote=True))
    return view


def _parameter_view(param: Parameter) -> dict[str, Any]:
    text = render_type(param.type)
    if not param.required and not text.startswith("Optional[") and text != "Any":
        text = f"Optional[{text}]"
    return {
        "identifier": param.identifier,
        "name": param.name,
        "kind": param.kind.value,
        "annotation": _annotated(text, param.annotations),
        "required": param.required,
        "default": repr(param.default) if param.default is not None else "None",
        "description": param.description,
    }


def _operation_view(signature: OperationSignature) -> dict[str, Any]:
    params = [_parameter_view(p) for p in signature.parameters]
    return {
        "name": signature.function_name,
        "method": signature.method,
        "path": signature.path,
        "params": params,
        "path_params": [p for p in params if p["kind"] == "path"],
        "query_params": [p for p in params if p["kind"] == "query"],
        "header_params": [p for p in params if p["kind"] == "header"],
        "payload": next((p for p in params if p["kind"] == "payload"), None),
        "media_type": next((p.media_type for p in signature.parameters if p.kind.value == "payload"), None),
        "return_type": render_type(signature.return_type),
        "description": signature.description,
    }


def build_context(fragments: SourceFragmentSet, config: MappingConfig | None = None) -> dict[str, Any]:
    """Build the template context for client.py.j2."""
    config = config or MappingConfig()
    return {
        "title": fragments.title,
        "version": fragments.version,
        "client_name": config.client_name,
        "types": [_type_view(d) for d in fragments.types],
        "operations": [_operation_view(s) for s in fragments.operations],
        "operation_count": len(fragments.operations),
    }


def render(fragments: SourceFragmentSet, config: MappingConfig | None = None) -> str:
    """Render the client module source text."""
    env = jinja2.Environment(
        loader=jinja2.FileSystemLoader(str(TEMPLATE_DIR)),
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
    )
    template = env.get_template("client.py.j2")
    return template.render(**build_context(fragments, config))


def generate(fragments: SourceFragmentSet, output_dir: Path, config: MappingConfig | None = None) -> Path:
    """Render the client template and write it to output_dir/client.py."""
    output = render(fragments, config)

    output_dir.mkdir(parents=True, exist_ok=True)
    output_path = output_dir / "client.py"
    output_path.write_text(output, encoding="utf-8")

    print(f"Generated {output_path} ({len(fragments.operations)} operations, {len(fragments.types)} types)")
    return output_path
