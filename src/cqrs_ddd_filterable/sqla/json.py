"""Dialect-aware JSON constructs used by the SQLAlchemy query builder.

``json_array_contains(column, value)`` is true when the JSON array stored
in ``column`` has ``value`` as one of its elements:

* SQLite (and the generic fallback): ``EXISTS`` over ``json_each``
* PostgreSQL: ``CAST(column AS JSONB) @> CAST(:json AS JSONB)``
* MySQL / MariaDB: ``JSON_CONTAINS(column, :json)``
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from sqlalchemy import Boolean, String, literal
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.sql.functions import FunctionElement

if TYPE_CHECKING:
    from sqlalchemy.sql.compiler import SQLCompiler


class json_array_contains(FunctionElement[bool]):  # noqa: N801
    """JSON array ``column`` contains ``value``."""

    type = Boolean()
    name = "json_array_contains"
    inherit_cache = True

    def __init__(self, column: Any, value: Any) -> None:
        # Raw value for json_each comparison, JSON text for @> / JSON_CONTAINS.
        super().__init__(
            column,
            literal(value),
            literal(json.dumps(value), String()),
        )


@compiles(json_array_contains)
def _json_array_contains_default(
    element: Any, compiler: SQLCompiler, **kw: Any
) -> str:
    column, value, _ = list(element.clauses)
    target = compiler.process(column, **kw)
    candidate = compiler.process(value, **kw)
    return (
        f"EXISTS (SELECT 1 FROM json_each({target}) "
        f"WHERE json_each.value = {candidate})"
    )


@compiles(json_array_contains, "postgresql")
def _json_array_contains_postgresql(
    element: Any, compiler: SQLCompiler, **kw: Any
) -> str:
    column, _, document = list(element.clauses)
    target = compiler.process(column, **kw)
    candidate = compiler.process(document, **kw)
    return f"CAST({target} AS JSONB) @> CAST({candidate} AS JSONB)"


@compiles(json_array_contains, "mysql")
@compiles(json_array_contains, "mariadb")
def _json_array_contains_mysql(
    element: Any, compiler: SQLCompiler, **kw: Any
) -> str:
    column, _, document = list(element.clauses)
    target = compiler.process(column, **kw)
    candidate = compiler.process(document, **kw)
    return f"JSON_CONTAINS({target}, {candidate})"
