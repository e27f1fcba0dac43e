"""Shared fixtures: the petstore contract and its symbol manifest.

Contracts are loaded fresh for every test because enrichment mutates them.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from oasbridge.loader import load_contract
from oasbridge.symbols import SymbolModel, load_symbols

FIXTURES = Path(__file__).parent / "fixtures"
PETSTORE = FIXTURES / "petstore.yaml"
SYMBOLS = FIXTURES / "symbols.yaml"


@pytest.fixture
def petstore() -> dict[str, Any]:
    """A fresh copy of the petstore contract."""
    return load_contract(PETSTORE)


@pytest.fixture
def symbols() -> SymbolModel:
    return load_symbols(SYMBOLS)


def contract(schemas: dict[str, Any] | None = None, paths: dict[str, Any] | None = None) -> dict[str, Any]:
    """Build a minimal contract document around schemas and paths."""
    return {
        "openapi": "3.0.3",
        "info": {"title": "Test", "version": "1"},
        "paths": paths or {},
        "components": {"schemas": schemas or {}},
    }
