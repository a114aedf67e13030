"""
PredicateEmitter: turn one resolved filter into QueryBuilder calls.

Decision order for a single ``(type, name, operator, value)``:

1. ``relation.column`` keys open an existence sub-query on the relation;
   the relationship scope (if any) is applied inside it first, then the
   rest of this table runs against the related column.
2. ``in`` builds a value list (JSON-contains checks for ``array`` fields,
   set membership otherwise).
3. ``is`` / ``not`` with a null token become null checks.
4. A JSON path is folded into the target field (``column->path``).
5. The semantic type picks the comparison method.
"""

from __future__ import annotations

import logging
from functools import partial
from typing import TYPE_CHECKING, Any

from .coercion import is_null_token, to_bool, to_list
from .exceptions import UnsupportedFilterTypeError
from .naming import to_accessor_name
from .types import FilterOperator, SemanticType

if TYPE_CHECKING:
    from .naming import ParsedFilterName
    from .query import QueryBuilder, RelationshipScope

logger = logging.getLogger("cqrs_ddd.filterable")

DATE_ONLY_LENGTH = 10  # YYYY-MM-DD

_GENERIC_TYPES = frozenset(
    {
        SemanticType.ID,
        SemanticType.INTEGER,
        SemanticType.FLOAT,
        SemanticType.STRING,
        SemanticType.JSON,
        SemanticType.ARRAY,
    }
)


class PredicateEmitter:
    """Emit the predicate(s) for one filter entry onto a query builder."""

    def emit(
        self,
        semantic_type: SemanticType,
        name: ParsedFilterName,
        operator: FilterOperator,
        value: Any,
        query: QueryBuilder,
        *,
        relationship_scope: RelationshipScope | None = None,
    ) -> QueryBuilder:
        if name.relation is not None:
            relation = to_accessor_name(name.relation)
            logger.debug(
                "Filtering through relation %s: %s %s %r",
                relation,
                name.field,
                operator.value,
                value,
            )
            return query.where_has(
                relation,
                partial(
                    self._constrain_related,
                    semantic_type,
                    name.field,
                    operator,
                    value,
                    relationship_scope,
                ),
            )
        return self._emit_local(
            semantic_type,
            name.field,
            operator,
            value,
            query,
            relationship_scope=relationship_scope,
            in_relation=False,
        )

    def _constrain_related(
        self,
        semantic_type: SemanticType,
        field: str,
        operator: FilterOperator,
        value: Any,
        relationship_scope: RelationshipScope | None,
        sub_query: QueryBuilder,
    ) -> QueryBuilder:
        if relationship_scope is not None:
            sub_query = relationship_scope(sub_query)
        return self._emit_local(
            semantic_type,
            field,
            operator,
            value,
            sub_query,
            relationship_scope=None,
            in_relation=True,
        )

    def _emit_local(
        self,
        semantic_type: SemanticType,
        field: str,
        operator: FilterOperator,
        value: Any,
        query: QueryBuilder,
        *,
        relationship_scope: RelationshipScope | None,
        in_relation: bool,
    ) -> QueryBuilder:
        if operator is FilterOperator.IN:
            return self._emit_in(semantic_type, field, value, query)

        if operator in (FilterOperator.IS, FilterOperator.NOT) and is_null_token(
            value
        ):
            if operator is FilterOperator.IS:
                return query.where_null(field)
            return query.where_not_null(field)

        if semantic_type in _GENERIC_TYPES:
            return query.where(field, operator.value, value)

        if semantic_type is SemanticType.BOOLEAN:
            return query.where(field, operator.value, to_bool(value))

        if semantic_type is SemanticType.DATE:
            return query.where_date(field, operator.value, value)

        if semantic_type is SemanticType.DATETIME:
            if len(str(value)) == DATE_ONLY_LENGTH:
                return query.where_date(field, operator.value, value)
            return query.where(field, operator.value, value)

        if semantic_type is SemanticType.RELATIONSHIP:
            if in_relation:
                return query.where(field, operator.value, value)
            return query.has(
                to_accessor_name(field), operator.value, value, relationship_scope
            )

        raise UnsupportedFilterTypeError(semantic_type)

    def _emit_in(
        self,
        semantic_type: SemanticType,
        field: str,
        value: Any,
        query: QueryBuilder,
    ) -> QueryBuilder:
        values = to_list(value)
        if semantic_type is not SemanticType.ARRAY:
            return query.where_in(field, values)
        if len(values) == 1:
            return query.where_json_contains(field, values[0])
        return query.any_of(
            *(partial(_json_contains, field, item) for item in values)
        )


def _json_contains(field: str, value: Any, query: QueryBuilder) -> QueryBuilder:
    return query.where_json_contains(field, value)
