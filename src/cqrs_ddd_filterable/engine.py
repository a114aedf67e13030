"""FilterEngine: validate a filter request and translate it into predicates."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from .config import FilterConfig, coerce_semantic_type
from .emitter import PredicateEmitter
from .exceptions import InvalidFilterColumnError
from .naming import ParsedFilterName, parse_filter_name
from .operators import OperatorResolver
from .scopes import ScopeDispatcher, ScopeRegistry
from .types import SemanticType

if TYPE_CHECKING:
    from .query import QueryBuilder, RelationshipScope
    from .types import FilterOperator

logger = logging.getLogger("cqrs_ddd.filterable")


class FilterEngine:
    """Translate filter requests into predicates on a :class:`QueryBuilder`.

    The engine is immutable: the relationship scope is either passed to
    each :meth:`apply` call or bound to a new engine through
    :meth:`configure_relationship_scope`, so one engine can serve
    concurrent requests.

    Example::

        engine = FilterEngine.from_mapping(
            {"age": "integer", "user.email": "string"},
            validate_columns=True,
        )
        query = engine.apply({"age": {"gte": 30}}, query)
    """

    def __init__(
        self,
        config: FilterConfig,
        *,
        scopes: ScopeRegistry | None = None,
        relationship_scope: RelationshipScope | None = None,
    ) -> None:
        """
        Initialize FilterEngine.

        Args:
            config: Filterable map, operator permissions and options.
            scopes: Registry of named scope functions for ``scope`` fields.
            relationship_scope: Default extra predicate ANDed into every
                relationship sub-query.
        """
        self._config = config
        self._scopes = scopes or ScopeRegistry()
        self._relationship_scope = relationship_scope
        self._resolver = OperatorResolver(config.permissions)
        self._emitter = PredicateEmitter()
        self._dispatcher = ScopeDispatcher(self._scopes)

    @classmethod
    def from_mapping(
        cls,
        filterable: Mapping[str, Any],
        *,
        scopes: ScopeRegistry | None = None,
        **options: Any,
    ) -> FilterEngine:
        """Build an engine from a plain ``{field: type}`` mapping and options."""
        config = FilterConfig(filterable=dict(filterable), **options)
        return cls(config, scopes=scopes)

    @property
    def config(self) -> FilterConfig:
        return self._config

    @property
    def scopes(self) -> ScopeRegistry:
        return self._scopes

    def configure_relationship_scope(
        self, predicate: RelationshipScope | None
    ) -> FilterEngine:
        """Return a new engine whose relationship sub-queries apply ``predicate``."""
        return type(self)(
            self._config, scopes=self._scopes, relationship_scope=predicate
        )

    # -- translation ---------------------------------------------------------

    def apply(
        self,
        filters: Mapping[str, Any] | None,
        query: QueryBuilder,
        *,
        relationship_scope: RelationshipScope | None = None,
    ) -> QueryBuilder:
        """
        Apply every declared filter in ``filters`` to ``query``.

        Args:
            filters: ``{key: scalar}`` (default operator) or
                ``{key: {operator: value, ...}}``, applied in order.
            query: Builder to extend.
            relationship_scope: Overrides the engine's relationship scope
                for this call only.

        Returns:
            The extended builder; ``query`` itself when there is nothing
            to filter.
        """
        if not filters or not self._config.filterable:
            return query

        if self._config.validate_columns:
            self._validate_columns(filters)

        scope = relationship_scope or self._relationship_scope
        for raw_key, raw_value in filters.items():
            name = parse_filter_name(raw_key)
            semantic_type = self._config.semantic_type(name.validation_key)
            if semantic_type is None:
                logger.debug("Skipping undeclared filter %r", raw_key)
                continue

            if semantic_type is SemanticType.SCOPE:
                query = self._dispatcher.dispatch(
                    name.validation_key, query, raw_value, filters
                )
                continue

            if isinstance(raw_value, Mapping):
                for token, value in raw_value.items():
                    operator = self._resolver.resolve(token, semantic_type)
                    query = self._emit(
                        semantic_type, name, operator, value, query, scope
                    )
            else:
                query = self._emit(
                    semantic_type,
                    name,
                    self._config.default_operator,
                    raw_value,
                    query,
                    scope,
                )
        return query

    def apply_one(
        self,
        semantic_type: SemanticType | str,
        name: ParsedFilterName | str,
        value: Any,
        query: QueryBuilder,
        operator: Any = None,
        *,
        relationship_scope: RelationshipScope | None = None,
    ) -> QueryBuilder:
        """
        Apply a single filter, bypassing the filterable map.

        ``operator`` is url-decoded, alias-resolved and checked against
        ``semantic_type``; without one the default operator is used.
        """
        semantic_type = coerce_semantic_type(semantic_type)
        if isinstance(name, str):
            name = parse_filter_name(name)

        if semantic_type is SemanticType.SCOPE:
            return self._dispatcher.dispatch(name.validation_key, query, value)

        resolved = (
            self._config.default_operator
            if operator is None
            else self._resolver.resolve(operator, semantic_type)
        )
        return self._emit(
            semantic_type,
            name,
            resolved,
            value,
            query,
            relationship_scope or self._relationship_scope,
        )

    def _emit(
        self,
        semantic_type: SemanticType,
        name: ParsedFilterName,
        operator: FilterOperator,
        value: Any,
        query: QueryBuilder,
        relationship_scope: RelationshipScope | None,
    ) -> QueryBuilder:
        return self._emitter.emit(
            semantic_type,
            name,
            operator,
            value,
            query,
            relationship_scope=relationship_scope,
        )

    def _validate_columns(self, filters: Mapping[str, Any]) -> None:
        declared = self._config.filterable
        for raw_key in filters:
            key = parse_filter_name(raw_key).validation_key
            if key not in declared:
                raise InvalidFilterColumnError(key, list(declared))
