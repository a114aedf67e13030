"""
SQLAlchemyQueryBuilder: a generative ``QueryBuilder`` over a 2.x ``Select``.

Every predicate method returns a **new** builder carrying one more
criterion; nothing is shared between builders, so a failed filter
application never leaks a partial statement.  Call :attr:`statement`
to obtain the filtered ``Select``.

Field resolution
----------------
``"age"`` resolves to ``Model.age``.  ``"meta->key->sub"`` resolves to a
JSON path index ``Model.meta[("key", "sub")]`` typed by the compared
value (``as_string`` / ``as_integer`` / ``as_float`` / ``as_boolean``).

Relationships
-------------
``where_has`` compiles to ``.any()`` (collections) or ``.has()``
(scalars).  ``has`` compiles to a correlated ``count(*)`` subquery, with
``>= 1`` / ``> 0`` short-circuited to ``EXISTS``.  Null checks on a
relationship field test for the absence or presence of related rows.
"""

from __future__ import annotations

import logging
import operator as op_module
from collections.abc import Callable, Sequence
from datetime import date, datetime
from decimal import Decimal
from typing import Any, cast

from sqlalchemy import ColumnElement, Select, and_, func, inspect, or_, select

from ..exceptions import InvalidFilterValueError
from ..naming import to_accessor_name
from .json import json_array_contains

logger = logging.getLogger("cqrs_ddd.filterable.sqla")

SubQueryCallback = Callable[["SQLAlchemyQueryBuilder"], "SQLAlchemyQueryBuilder"]

_COMPARATORS: dict[str, Callable[[Any, Any], Any]] = {
    "=": op_module.eq,
    "<>": op_module.ne,
    ">": op_module.gt,
    ">=": op_module.ge,
    "<": op_module.lt,
    "<=": op_module.le,
    "like": lambda column, value: column.like(value),
    "is": lambda column, value: column.is_(value),
    "not": lambda column, value: column.is_not(value),
}

_EXISTS_SHORTCUTS = frozenset({(">=", 1), (">", 0)})

_JSON_PATH_SEPARATOR = "->"


def compare(column: Any, operator: Any, value: Any) -> ColumnElement[bool]:
    """
    Build ``column <operator> value``.

    Raises:
        ValueError: If the operator has no SQLAlchemy comparator.
    """
    key = str(getattr(operator, "value", operator))
    comparator = _COMPARATORS.get(key)
    if comparator is None:
        raise ValueError(f"Unsupported operator for SQLAlchemy: {operator}")
    return cast("ColumnElement[bool]", comparator(column, value))


def coerce_value(column: Any, value: Any) -> Any:
    """Convert a string ``value`` to the column's Python type where possible."""
    if not isinstance(value, str):
        return value
    try:
        python_type = column.type.python_type
    except (AttributeError, NotImplementedError):
        return value
    try:
        if python_type is datetime:
            return datetime.fromisoformat(value)
        if python_type is date:
            return date.fromisoformat(value)
        if python_type in (int, float, Decimal):
            return python_type(value)
    except (ValueError, ArithmeticError):
        # Not parseable: let the database compare the raw string.
        return value
    return value


def json_path_element(column: Any, path: str, value: Any = None) -> Any:
    """Index ``column`` by an arrow path, typed after ``value``."""
    keys: list[str | int] = [
        int(part) if part.isdigit() else part
        for part in path.split(_JSON_PATH_SEPARATOR)
    ]
    element = column[keys[0]] if len(keys) == 1 else column[tuple(keys)]
    if isinstance(value, bool):
        return element.as_boolean()
    if isinstance(value, int):
        return element.as_integer()
    if isinstance(value, float):
        return element.as_float()
    return element.as_string()


class SQLAlchemyQueryBuilder:
    """QueryBuilder that accumulates SQLAlchemy criteria for ``model``."""

    def __init__(
        self,
        model: type[Any],
        stmt: Select[Any] | None = None,
        criteria: Sequence[ColumnElement[bool]] = (),
    ) -> None:
        """
        Initialize SQLAlchemyQueryBuilder.

        Args:
            model: Mapped class the field names refer to.
            stmt: Base statement (defaults to ``select(model)``); existing
                WHERE clauses are preserved.
            criteria: Criteria already accumulated.
        """
        self.model = model
        self._stmt = stmt if stmt is not None else select(model)
        self._criteria = tuple(criteria)

    @property
    def criteria(self) -> tuple[ColumnElement[bool], ...]:
        return self._criteria

    @property
    def statement(self) -> Select[Any]:
        """The base statement with every accumulated criterion applied."""
        if not self._criteria:
            return self._stmt
        return self._stmt.where(*self._criteria)

    # -- QueryBuilder --------------------------------------------------------

    def where(self, field: str, operator: str, value: Any) -> SQLAlchemyQueryBuilder:
        column = self._column(field, value)
        return self._extend(compare(column, operator, coerce_value(column, value)))

    def where_in(
        self, field: str, values: Sequence[Any]
    ) -> SQLAlchemyQueryBuilder:
        sample = values[0] if values else None
        column = self._column(field, sample)
        return self._extend(column.in_([coerce_value(column, v) for v in values]))

    def where_null(self, field: str) -> SQLAlchemyQueryBuilder:
        related = self._related_exists(field)
        if related is not None:
            return self._extend(~related)
        return self._extend(self._column(field).is_(None))

    def where_not_null(self, field: str) -> SQLAlchemyQueryBuilder:
        related = self._related_exists(field)
        if related is not None:
            return self._extend(related)
        return self._extend(self._column(field).is_not(None))

    def where_date(
        self, field: str, operator: str, value: Any
    ) -> SQLAlchemyQueryBuilder:
        if isinstance(value, date):
            value = value.isoformat()[:10]
        return self._extend(compare(func.date(self._column(field)), operator, value))

    def where_json_contains(self, field: str, value: Any) -> SQLAlchemyQueryBuilder:
        return self._extend(json_array_contains(self._column(field), value))

    def where_has(
        self, relation: str, callback: SubQueryCallback
    ) -> SQLAlchemyQueryBuilder:
        attribute, prop = self._relationship(relation)
        related = callback(self._for_model(prop.mapper.class_))
        criterion = _conjunction(related)
        if prop.uselist:
            return self._extend(attribute.any(criterion))
        return self._extend(attribute.has(criterion))

    def has(
        self,
        relation: str,
        operator: str,
        count: Any,
        callback: SubQueryCallback | None = None,
    ) -> SQLAlchemyQueryBuilder:
        attribute, prop = self._relationship(relation)
        related = self._for_model(prop.mapper.class_)
        if callback is not None:
            related = callback(related)
        criterion = _conjunction(related)
        count = _related_count(relation, count)
        op_key = str(getattr(operator, "value", operator))

        if (op_key, count) in _EXISTS_SHORTCUTS:
            if prop.uselist:
                return self._extend(attribute.any(criterion))
            return self._extend(attribute.has(criterion))

        conditions: list[Any] = [prop.primaryjoin]
        if prop.secondaryjoin is not None:
            conditions.append(prop.secondaryjoin)
        if criterion is not None:
            conditions.append(criterion)
        related_count = (
            select(func.count())
            .select_from(prop.mapper.class_)
            .where(*conditions)
            .scalar_subquery()
        )
        return self._extend(compare(related_count, op_key, count))

    def any_of(self, *branches: SubQueryCallback) -> SQLAlchemyQueryBuilder:
        alternatives = [
            criterion
            for criterion in (
                _conjunction(branch(self._for_model(self.model)))
                for branch in branches
            )
            if criterion is not None
        ]
        if not alternatives:
            return self
        return self._extend(or_(*alternatives))

    # -- extensions ----------------------------------------------------------

    def where_clause(self, *clauses: ColumnElement[bool]) -> SQLAlchemyQueryBuilder:
        """Add raw SQLAlchemy criteria (for scope functions)."""
        return self._extend(*clauses)

    # -- internals -----------------------------------------------------------

    def _extend(self, *clauses: ColumnElement[bool]) -> SQLAlchemyQueryBuilder:
        logger.debug("Adding %d criteria on %s", len(clauses), self.model.__name__)
        return type(self)(self.model, self._stmt, (*self._criteria, *clauses))

    def _for_model(self, model: type[Any]) -> SQLAlchemyQueryBuilder:
        return type(self)(model)

    def _column(self, field: str, value: Any = None) -> Any:
        name, sep, path = field.partition(_JSON_PATH_SEPARATOR)
        column = getattr(self.model, name, None)
        if column is None:
            raise AttributeError(f"Model {self.model.__name__} has no attribute {name}")
        if sep:
            return json_path_element(column, path, value)
        return column

    def _related_exists(self, field: str) -> ColumnElement[bool] | None:
        """EXISTS over ``field`` when it names a relationship, else ``None``."""
        relationships = inspect(self.model).relationships
        name = field if field in relationships else to_accessor_name(field)
        prop = relationships.get(name)
        if prop is None:
            return None
        attribute = getattr(self.model, name)
        return cast(
            "ColumnElement[bool]",
            attribute.any() if prop.uselist else attribute.has(),
        )

    def _relationship(self, name: str) -> tuple[Any, Any]:
        relationships = inspect(self.model).relationships
        if name not in relationships:
            raise AttributeError(
                f"Model {self.model.__name__} has no relationship {name}"
            )
        return getattr(self.model, name), relationships[name]


def _conjunction(builder: SQLAlchemyQueryBuilder) -> ColumnElement[bool] | None:
    if not builder.criteria:
        return None
    if len(builder.criteria) == 1:
        return builder.criteria[0]
    return and_(*builder.criteria)


def _related_count(relation: str, count: Any) -> int:
    try:
        return int(count)
    except (TypeError, ValueError):
        raise InvalidFilterValueError(relation, count, "integer count") from None
