"""Operator alias resolution and per-type permission checks."""

from __future__ import annotations

from typing import Any
from urllib.parse import unquote

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .exceptions import IllegalOperatorError, OperatorNotAllowedForTypeError
from .types import FilterOperator, SemanticType

_ORDERED = frozenset(
    {
        SemanticType.INTEGER,
        SemanticType.FLOAT,
        SemanticType.ID,
        SemanticType.DATE,
        SemanticType.DATETIME,
        SemanticType.RELATIONSHIP,
    }
)

_ALL_FILTERABLE = frozenset(SemanticType) - {SemanticType.SCOPE}

DEFAULT_PERMISSIONS: dict[FilterOperator, frozenset[SemanticType]] = {
    FilterOperator.NE: frozenset(
        {
            SemanticType.INTEGER,
            SemanticType.ID,
            SemanticType.FLOAT,
            SemanticType.STRING,
        }
    ),
    FilterOperator.GE: _ORDERED,
    FilterOperator.LE: _ORDERED,
    FilterOperator.GT: _ORDERED,
    FilterOperator.LT: _ORDERED,
    FilterOperator.EQ: _ALL_FILTERABLE,
    FilterOperator.LIKE: frozenset({SemanticType.STRING}),
    FilterOperator.IN: frozenset(
        {
            SemanticType.INTEGER,
            SemanticType.ID,
            SemanticType.FLOAT,
            SemanticType.STRING,
            SemanticType.JSON,
            SemanticType.ARRAY,
        }
    ),
    FilterOperator.IS: _ALL_FILTERABLE,
    FilterOperator.NOT: _ALL_FILTERABLE,
}

DEFAULT_ALIASES: dict[str, FilterOperator] = {
    "gt": FilterOperator.GT,
    "gte": FilterOperator.GE,
    "lt": FilterOperator.LT,
    "lte": FilterOperator.LE,
    "ne": FilterOperator.NE,
    "eq": FilterOperator.EQ,
}


class OperatorPermissionTable(BaseModel):
    """
    Which canonical operators are legal for which semantic types.

    ``allowed`` keys must be canonical operators; ``aliases`` maps
    alternative spellings onto them.  Keys of either mapping may be given
    as plain strings and are validated when the table is built.
    """

    model_config = ConfigDict(frozen=True)

    allowed: dict[FilterOperator, frozenset[SemanticType]] = Field(
        default_factory=lambda: dict(DEFAULT_PERMISSIONS)
    )
    aliases: dict[str, FilterOperator] = Field(
        default_factory=lambda: dict(DEFAULT_ALIASES)
    )

    @field_validator("allowed", mode="before")
    @classmethod
    def _check_operators(cls, value: Any) -> Any:
        if isinstance(value, dict):
            valid = [op.value for op in FilterOperator]
            for key in value:
                if str(getattr(key, "value", key)) not in valid:
                    raise IllegalOperatorError(str(key), valid)
        return value

    def canonicalize(self, token: Any) -> FilterOperator:
        """
        Url-decode and alias-resolve an operator token.

        Raises:
            IllegalOperatorError: If the result is not a key of ``allowed``.
        """
        raw = token.value if isinstance(token, FilterOperator) else str(token)
        decoded = unquote(raw)
        resolved = self.aliases.get(decoded, decoded)
        try:
            operator = FilterOperator(resolved)
        except ValueError:
            operator = None
        if operator is None or operator not in self.allowed:
            raise IllegalOperatorError(decoded, self.known_tokens)
        return operator

    def allows(self, operator: FilterOperator, semantic_type: SemanticType) -> bool:
        return semantic_type in self.allowed.get(operator, frozenset())

    @property
    def known_tokens(self) -> list[str]:
        """Canonical operators and aliases accepted by this table."""
        return [op.value for op in self.allowed] + list(self.aliases)


class OperatorResolver:
    """Resolve raw operator tokens against an :class:`OperatorPermissionTable`."""

    def __init__(self, table: OperatorPermissionTable | None = None) -> None:
        self._table = table or OperatorPermissionTable()

    @property
    def table(self) -> OperatorPermissionTable:
        return self._table

    def resolve(self, token: Any, semantic_type: SemanticType) -> FilterOperator:
        """
        Return the canonical operator for ``token`` on ``semantic_type``.

        Raises:
            IllegalOperatorError: Unknown operator after decoding/aliasing.
            OperatorNotAllowedForTypeError: Operator not legal for the type.
        """
        operator = self._table.canonicalize(token)
        if not self._table.allows(operator, semantic_type):
            raise OperatorNotAllowedForTypeError(operator.value, semantic_type.value)
        return operator
