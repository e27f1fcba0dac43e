"""Derive Python names from contract names.

Operation functions:
  - operationId present -> snake_case of the operationId
  - GET collection      -> list_{plural}
  - GET collection/{id} -> get_{singular}
  - POST collection     -> create_{singular}
  - PUT collection/{id} -> update_{singular}
  - DELETE col/{id}     -> delete_{singular}

Leading /api/ and /api/vN/ prefixes are ignored.

Examples:
  GET  /api/v1/pets               -> list_pets
  GET  /api/v1/pets/{petId}       -> get_pet
  POST /pets                      -> create_pet
  GET  /stores/{id}/orders        -> get_stores_orders
  listPets (operationId)          -> list_pets

Parameter names have two forms: the display form is the canonical,
unescaped identifier used to detect duplicates; the identifier form is
escaped so it is always a legal Python name (``class`` -> ``class_``).
"""

from __future__ import annotations

import keyword
import re

# Standard HTTP method to verb mapping
_METHOD_VERBS: dict[str, str] = {
    "get": "list",
    "post": "create",
    "put": "update",
    "delete": "delete",
    "patch": "update",
}

_VERSION_SEGMENT = re.compile(r"^v\d+$")


def _pluralize(word: str) -> str:
    """Return the plural form of a resource name."""
    if word.endswith("s"):
        return word
    if word.endswith("y") and not word.endswith(("ay", "ey", "oy", "uy")):
        return word[:-1] + "ies"
    return word + "s"


def _singularize(word: str) -> str:
    """Return the singular form of a resource name."""
    if word.endswith("ies"):
        return word[:-3] + "y"
    if word.endswith("ses"):
        return word[:-2]
    if word.endswith("s") and not word.endswith("ss"):
        return word[:-1]
    return word


def _camel_to_snake(name: str) -> str:
    """Convert camelCase or PascalCase to snake_case."""
    s1 = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", name)
    return re.sub(r"([a-z\d])([A-Z])", r"\1_\2", s1).lower()


def _sanitize_segment(segment: str) -> str:
    """Sanitize a name fragment for use in a Python identifier."""
    name = _camel_to_snake(segment)
    name = re.sub(r"[.\-\s]", "_", name)
    name = re.sub(r"[^a-z0-9_]", "", name)
    name = re.sub(r"_+", "_", name)
    return name.strip("_")


def _extract_path_parts(path: str) -> list[str]:
    """Extract meaningful path segments, stripping /api/[vN/] and {params}."""
    parts = [p for p in path.split("/") if p]
    if parts and parts[0] == "api":
        parts = parts[1:]
        if parts and _VERSION_SEGMENT.match(parts[0]):
            parts = parts[1:]
    return [p for p in parts if not p.startswith("{")]


def to_pascal(name: str) -> str:
    """Convert any contract name to PascalCase (``pet-owner`` -> ``PetOwner``)."""
    snake = _sanitize_segment(name)
    return "".join(part[:1].upper() + part[1:] for part in snake.split("_") if part)


def display_name(raw: str) -> str:
    """Canonical unescaped form of a parameter or field name."""
    name = _sanitize_segment(raw)
    if not name:
        return "param"
    return name


def escape_identifier(name: str) -> str:
    """Make a display name a legal Python identifier."""
    if name[:1].isdigit():
        name = f"_{name}"
    if keyword.iskeyword(name):
        name = f"{name}_"
    return name


def build_function_name(method: str, path: str, operation_id: str | None = None) -> str:
    """Build a client function name from an operation.

    Returns a name like 'list_pets' or 'get_pet'.
    """
    if operation_id:
        name = _sanitize_segment(operation_id)
        if name:
            return escape_identifier(name)

    method_lower = method.lower()
    parts = _extract_path_parts(path)
    has_id = any(p.startswith("{") for p in path.split("/") if p)

    if not parts:
        return f"{_METHOD_VERBS.get(method_lower, method_lower)}_root"

    clean_parts = [_sanitize_segment(p) for p in parts]
    clean_parts = [p for p in clean_parts if p] or ["root"]

    # Determine verb
    if method_lower == "get":
        verb = "get" if has_id else "list"
    else:
        verb = _METHOD_VERBS.get(method_lower, method_lower)

    # Single-segment paths: standard CRUD
    if len(clean_parts) == 1:
        resource = clean_parts[0]
        if verb == "list":
            resource = _pluralize(resource)
        elif has_id or verb == "create":
            resource = _singularize(resource)
        return escape_identifier(f"{verb}_{resource}")

    # Multi-segment paths: join with underscores
    resource = "_".join(clean_parts)
    return escape_identifier(f"{verb}_{resource}")


def deduplicate_names(names: list[str], methods: list[str]) -> list[str]:
    """Make names unique, first by appending the HTTP method, then a counter."""
    result = list(names)
    seen: set[str] = set()
    for i, name in enumerate(result):
        if name in seen:
            result[i] = f"{name}_{methods[i]}"
        else:
            seen.add(name)

    final_seen: dict[str, int] = {}
    for i, name in enumerate(result):
        if name in final_seen:
            final_seen[name] += 1
            result[i] = f"{name}_{final_seen[name]}"
        else:
            final_seen[name] = 1
    return result
