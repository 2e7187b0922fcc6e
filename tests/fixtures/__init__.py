"""Test fixtures: sample index schemas as a SchemaSnapshot JSON."""

from __future__ import annotations

import json
from pathlib import Path

from sphinxql.schema.index import SchemaSnapshot

_FIXTURES_DIR = Path(__file__).parent


def load_schema_snapshot() -> SchemaSnapshot:
    """Load the canonical sample SchemaSnapshot from schema.json."""
    data = json.loads((_FIXTURES_DIR / "schema.json").read_text())
    return SchemaSnapshot.model_validate(data)
