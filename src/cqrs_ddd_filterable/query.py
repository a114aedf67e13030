"""QueryBuilder: capability protocol implemented by storage backends."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class QueryBuilder(Protocol):
    """Predicate sink consumed by the filter engine.

    Every method returns the builder to continue with; implementations
    may be generative (return a new builder) or mutate and return self.
    Field names may carry a JSON path suffix (``meta->key->sub``).
    """

    def where(self, field: str, operator: str, value: Any) -> QueryBuilder:
        """``field <operator> value``."""
        ...

    def where_in(self, field: str, values: Sequence[Any]) -> QueryBuilder:
        """``field`` is one of ``values``."""
        ...

    def where_null(self, field: str) -> QueryBuilder: ...

    def where_not_null(self, field: str) -> QueryBuilder: ...

    def where_date(self, field: str, operator: str, value: Any) -> QueryBuilder:
        """Compare only the date part of ``field``."""
        ...

    def where_json_contains(self, field: str, value: Any) -> QueryBuilder:
        """JSON array ``field`` contains ``value``."""
        ...

    def where_has(
        self, relation: str, callback: Callable[[QueryBuilder], QueryBuilder]
    ) -> QueryBuilder:
        """At least one related row satisfies the predicates ``callback`` adds."""
        ...

    def has(
        self,
        relation: str,
        operator: str,
        count: Any,
        callback: Callable[[QueryBuilder], QueryBuilder] | None = None,
    ) -> QueryBuilder:
        """Number of related rows (optionally constrained) ``<operator> count``."""
        ...

    def any_of(
        self, *branches: Callable[[QueryBuilder], QueryBuilder]
    ) -> QueryBuilder:
        """OR of the predicate groups each branch adds."""
        ...


RelationshipScope = Callable[[QueryBuilder], QueryBuilder]
"""Extra predicate ANDed into every relationship sub-query."""
