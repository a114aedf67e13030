"""
Filter translation exception hierarchy.

All exceptions inherit from ``FilterError`` and provide ``to_dict()``
for API-friendly error responses.  Every error is fatal for the
``apply`` call that raised it.
"""

from __future__ import annotations

from difflib import get_close_matches
from typing import Any


class FilterError(Exception):
    """Base exception for all filter translation errors."""

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.__class__.__name__,
            "message": str(self),
        }


class InvalidFilterColumnError(FilterError):
    """
    Filter key is not declared in the filterable map (strict mode only).

    Example error message::

        Filter column 'age' is not allowed.
        Did you mean: name?
    """

    def __init__(self, column: str, available_columns: list[str]) -> None:
        self.column = column
        self.available_columns = available_columns
        self.suggestions = get_close_matches(
            column, available_columns, n=3, cutoff=0.6
        )

        message = f"Filter column '{column}' is not allowed."
        if self.suggestions:
            message += f"\nDid you mean: {', '.join(self.suggestions)}?"
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "INVALID_FILTER_COLUMN",
            "column": self.column,
            "suggestions": self.suggestions,
            "available_columns": sorted(self.available_columns),
        }


class MaxRelationshipDepthExceededError(FilterError):
    """Filter key traverses more than one relationship (``a.b.c``)."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__("Maximum one-level sub-query filtering supported.")

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "MAX_RELATIONSHIP_DEPTH_EXCEEDED",
            "key": self.key,
            "message": str(self),
        }


class IllegalOperatorError(FilterError):
    """
    Operator token is unknown after url-decoding and alias resolution.

    Provides fuzzy-matched suggestions for likely intended operators.
    """

    def __init__(self, operator: str, valid_operators: list[str]) -> None:
        self.operator = operator
        self.valid_operators = valid_operators
        self.suggestions = get_close_matches(operator, valid_operators, n=3, cutoff=0.6)

        message = f"Illegal operator {operator}"
        if self.suggestions:
            message += f". Did you mean: {', '.join(self.suggestions)}?"
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "ILLEGAL_OPERATOR",
            "operator": self.operator,
            "suggestions": self.suggestions,
            "valid_operators": sorted(self.valid_operators),
        }


class OperatorNotAllowedForTypeError(FilterError):
    """Known operator used on a semantic type it is not permitted for."""

    def __init__(self, operator: str, semantic_type: str) -> None:
        self.operator = operator
        self.semantic_type = semantic_type
        super().__init__(
            f"Operator '{operator}' is not allowed for type '{semantic_type}'"
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "OPERATOR_NOT_ALLOWED_FOR_TYPE",
            "operator": self.operator,
            "semantic_type": self.semantic_type,
        }


class UnsupportedFilterTypeError(FilterError):
    """Semantic type is outside the closed set the emitter understands."""

    def __init__(self, semantic_type: object) -> None:
        self.semantic_type = str(getattr(semantic_type, "value", semantic_type))
        super().__init__(f"Unsupported filter type {self.semantic_type}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "UNSUPPORTED_FILTER_TYPE",
            "semantic_type": self.semantic_type,
        }


class UndefinedScopeMethodError(FilterError):
    """A ``scope`` field has no registered predicate function."""

    def __init__(self, name: str, candidates: list[str]) -> None:
        self.name = name
        self.candidates = candidates
        quoted = " or ".join(f"'{c}'" for c in candidates)
        super().__init__(f"Scope method {quoted} not registered for filter '{name}'.")

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "UNDEFINED_SCOPE_METHOD",
            "name": self.name,
            "candidates": self.candidates,
        }


class ScopeRegistrationError(FilterError):
    """Raised when two different functions are registered under one scope name."""


class InvalidFilterValueError(FilterError):
    """A filter value cannot be used as the operand its field requires."""

    def __init__(self, field: str, value: object, expected: str) -> None:
        self.field = field
        self.value = value
        self.expected = expected
        super().__init__(
            f"Filter value {value!r} for '{field}' is not a valid {expected}"
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "INVALID_FILTER_VALUE",
            "field": self.field,
            "value": str(self.value),
            "expected": self.expected,
        }
