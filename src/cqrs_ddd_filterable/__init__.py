"""Declarative filtering: translate filter requests into query predicates."""

from __future__ import annotations

from .coercion import is_null_token, to_bool, to_list
from .config import FilterConfig, coerce_semantic_type
from .emitter import PredicateEmitter
from .engine import FilterEngine
from .exceptions import (
    FilterError,
    IllegalOperatorError,
    InvalidFilterColumnError,
    InvalidFilterValueError,
    MaxRelationshipDepthExceededError,
    OperatorNotAllowedForTypeError,
    ScopeRegistrationError,
    UndefinedScopeMethodError,
    UnsupportedFilterTypeError,
)
from .naming import ParsedFilterName, parse_filter_name, to_accessor_name
from .operators import (
    DEFAULT_ALIASES,
    DEFAULT_PERMISSIONS,
    OperatorPermissionTable,
    OperatorResolver,
)
from .query import QueryBuilder, RelationshipScope
from .scopes import RegisteredScope, ScopeDispatcher, ScopeRegistry
from .types import FilterOperator, SemanticType

__all__ = [
    "DEFAULT_ALIASES",
    "DEFAULT_PERMISSIONS",
    "FilterConfig",
    "FilterEngine",
    "FilterError",
    "FilterOperator",
    "IllegalOperatorError",
    "InvalidFilterColumnError",
    "InvalidFilterValueError",
    "MaxRelationshipDepthExceededError",
    "OperatorNotAllowedForTypeError",
    "OperatorPermissionTable",
    "OperatorResolver",
    "ParsedFilterName",
    "PredicateEmitter",
    "QueryBuilder",
    "RegisteredScope",
    "RelationshipScope",
    "ScopeDispatcher",
    "ScopeRegistrationError",
    "ScopeRegistry",
    "SemanticType",
    "UndefinedScopeMethodError",
    "UnsupportedFilterTypeError",
    "coerce_semantic_type",
    "is_null_token",
    "parse_filter_name",
    "to_accessor_name",
    "to_bool",
    "to_list",
]
