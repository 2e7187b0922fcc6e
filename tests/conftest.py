"""Shared pytest fixtures for sphinxql tests."""
from __future__ import annotations

import pytest

from sphinxql.compile.builder import QueryBuilder
from sphinxql.compile.manticore import ManticoreCompiler
from sphinxql.compile.sphinx import SphinxCompiler
from sphinxql.schema.index import SchemaSnapshot
from tests.fixtures import load_schema_snapshot


@pytest.fixture(scope="session")
def snapshot() -> SchemaSnapshot:
    """Canonical schema snapshot shared across all tests."""
    return load_schema_snapshot()


@pytest.fixture
def builder(snapshot: SchemaSnapshot) -> QueryBuilder:
    """Sphinx builder with schema-aware coercion."""
    return QueryBuilder(SphinxCompiler(), snapshot)


@pytest.fixture
def bare_builder() -> QueryBuilder:
    """Sphinx builder without any schema (no coercion)."""
    return QueryBuilder(SphinxCompiler())


@pytest.fixture
def quoting_builder(snapshot: SchemaSnapshot) -> QueryBuilder:
    """Manticore builder (backtick-quoted identifiers)."""
    return QueryBuilder(ManticoreCompiler(), snapshot)
