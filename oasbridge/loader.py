"""Load and save OpenAPI contracts.

Reads a JSON or YAML contract from disk or over HTTP and extracts
paths and component schemas.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import httpx
import yaml

logger = logging.getLogger(__name__)

HTTP_METHODS = ("get", "put", "post", "delete", "options", "head", "patch", "trace")


class ContractLoadError(Exception):
    """The contract could not be read or parsed."""


def _parse_text(text: str, name: str) -> dict[str, Any]:
    try:
        if name.endswith(".json"):
            document = json.loads(text)
        else:
            document = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ContractLoadError(f"cannot parse {name}: {exc}") from exc
    if not isinstance(document, dict):
        raise ContractLoadError(f"{name} does not contain an OpenAPI document")
    if "openapi" not in document:
        logger.warning("%s has no 'openapi' version field", name)
    return document


def load_contract(source: str | Path, client: httpx.Client | None = None) -> dict[str, Any]:
    """Load a contract from a file path or an http(s) URL."""
    source_str = str(source)
    if source_str.startswith(("http://", "https://")):
        owned = client is None
        http = client or httpx.Client(timeout=30.0, follow_redirects=True)
        try:
            response = http.get(source_str)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise ContractLoadError(f"cannot fetch {source_str}: {exc}") from exc
        finally:
            if owned:
                http.close()
        return _parse_text(response.text, source_str.split("?")[0])

    path = Path(source)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ContractLoadError(f"cannot read {path}: {exc}") from exc
    return _parse_text(text, path.name)


def save_contract(document: dict[str, Any], path: Path) -> None:
    """Write a contract as JSON or YAML depending on the file suffix."""
    if path.suffix == ".json":
        path.write_text(json.dumps(document, indent=2) + "\n", encoding="utf-8")
    else:
        path.write_text(yaml.safe_dump(document, sort_keys=False, allow_unicode=True), encoding="utf-8")


def get_paths(document: dict[str, Any]) -> dict[str, Any]:
    """Extract paths from the contract."""
    return document.get("paths") or {}


def get_schemas(document: dict[str, Any]) -> dict[str, Any]:
    """Extract component schemas from the contract."""
    return (document.get("components") or {}).get("schemas") or {}


def resolve_ref(document: dict[str, Any], ref: str) -> dict[str, Any]:
    """Resolve a local $ref pointer in the contract.

    Raises KeyError when the pointer does not lead anywhere.
    """
    if not ref.startswith("#/"):
        raise KeyError(ref)
    node: Any = document
    for part in ref[2:].split("/"):
        part = part.replace("~1", "/").replace("~0", "~")
        if not isinstance(node, dict) or part not in node:
            raise KeyError(ref)
        node = node[part]
    return node
