"""Compilation context value objects.

``CompilationContext`` packages the ``(compiler, schema, settings)`` data
clump shared by ``QueryBuilder`` and all clause-level sub-builders.
``RuntimeContext`` is the per-statement parameter accumulator.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from sphinxql.compile.base import SQLCompiler
from sphinxql.schema.index import IndexSchema, SchemaProvider
from sphinxql.settings import BuilderSettings


@dataclass(frozen=True)
class CompilationContext:
    """Immutable context for every compilation run of one builder.

    Attributes:
        compiler: Dialect-specific compiler instance.
        schema: Optional schema provider used for value coercion.
        settings: Grammar settings.
    """

    compiler: SQLCompiler
    schema: SchemaProvider | None
    settings: BuilderSettings

    def get_index_schemas(self, names: list[str]) -> list[IndexSchema]:
        """Return the schemas known for ``names``, skipping unknown ones."""
        if self.schema is None:
            return []
        schemas: list[IndexSchema] = []
        for name in names:
            schema = self.schema.get_index_schema(name)
            if schema is not None:
                schemas.append(schema)
        return schemas


@dataclass
class RuntimeContext:
    """Accumulates bound parameters during a single compilation run.

    A single instance is threaded through every sub-builder and every nested
    sub-query.  Placeholder names are derived from the current size of
    ``params``, so one instance must never be shared between concurrent
    compilations.
    """

    params: dict[str, Any] = field(default_factory=dict)
    prefix: str = ":qp"

    def add_value(self, value: Any) -> str:
        """Store a value and return its placeholder name."""
        name = f"{self.prefix}{len(self.params)}"
        self.params[name] = value
        return name

    def merge(self, params: dict[str, Any]) -> None:
        """Add externally named parameters (raw expressions) unchanged."""
        self.params.update(params)
