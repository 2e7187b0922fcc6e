"""sphinxql schema models: Query, index schemas, raw expressions."""
from sphinxql.schema.converters import index_schema_from_describe
from sphinxql.schema.expressions import (
    ConditionOperator,
    SortDirection,
    escape_match_value,
)
from sphinxql.schema.index import (
    ColumnSchema,
    IndexSchema,
    SchemaProvider,
    SchemaSnapshot,
    find_column,
)
from sphinxql.schema.query import Query
from sphinxql.schema.values import Expression, ValueKind, classify_value

__all__ = [
    "ConditionOperator",
    "SortDirection",
    "escape_match_value",
    "ColumnSchema",
    "IndexSchema",
    "SchemaProvider",
    "SchemaSnapshot",
    "find_column",
    "index_schema_from_describe",
    "Query",
    "Expression",
    "ValueKind",
    "classify_value",
]
