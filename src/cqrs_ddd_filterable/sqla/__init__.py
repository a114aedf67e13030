"""SQLAlchemy 2.x query builder and declarative mixin for filter translation."""

from __future__ import annotations

from .builder import SQLAlchemyQueryBuilder, coerce_value, compare, json_path_element
from .json import json_array_contains
from .mixin import FilterableMixin, filter_scope

__all__ = [
    "FilterableMixin",
    "SQLAlchemyQueryBuilder",
    "coerce_value",
    "compare",
    "filter_scope",
    "json_array_contains",
    "json_path_element",
]
