"""
Declarative model mixin exposing filter translation on the model class.

Declare the filterable fields and scopes on the model::

    class Post(FilterableMixin, Base):
        __tablename__ = "posts"
        __filterable__ = {
            "title": "string",
            "user": "relationship",
            "user.email": "string",
            "popular": "scope",
        }

        @filter_scope("popular")
        def popular(query, value):
            return query.has("comments", ">=", 10) if to_bool(value) else query

    stmt = Post.apply_filters({"title": {"like": "%orm%"}, "popular": "1"})

Scope functions take ``(query, value)`` (or ``(query, value, filters)``
with ``pass_filters=True``); they are registered when the subclass is
created, and subclasses may override a parent's scope by name.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any, ClassVar

from ..config import FilterConfig
from ..engine import FilterEngine
from ..naming import to_accessor_name
from ..scopes import ScopeRegistry
from .builder import SQLAlchemyQueryBuilder

if TYPE_CHECKING:
    from sqlalchemy import Select

    from ..query import RelationshipScope

_SCOPE_MARKER = "__filter_scope__"


def filter_scope(
    name: str | None = None, *, pass_filters: bool = False
) -> Callable[[Callable[..., Any]], Any]:
    """Mark a model-body function as the scope for filter ``name``."""

    def decorator(func: Callable[..., Any]) -> Any:
        setattr(func, _SCOPE_MARKER, (name or func.__name__, pass_filters))
        return staticmethod(func)

    return decorator


class FilterableMixin:
    """Adds ``filter_engine()`` and ``apply_filters()`` to a mapped class."""

    # Left unannotated so declarative mapping skips them.
    __filterable__ = {}  # noqa: RUF012
    __filter_default_operator__ = "="
    __filter_validate_columns__ = False

    if TYPE_CHECKING:
        __filter_scopes__: ClassVar[ScopeRegistry]
        _filter_engine: ClassVar[FilterEngine | None]

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        collected: dict[str, tuple[Callable[..., Any], bool]] = {}
        for klass in reversed(cls.__mro__):
            for attr in vars(klass).values():
                if not isinstance(attr, staticmethod):
                    continue
                func = attr.__func__
                marker = getattr(func, _SCOPE_MARKER, None)
                if marker is not None:
                    scope_name, pass_filters = marker
                    collected[to_accessor_name(scope_name)] = (func, pass_filters)

        registry = ScopeRegistry()
        for scope_name, (func, pass_filters) in collected.items():
            registry.register(scope_name, func, pass_filters=pass_filters)
        cls.__filter_scopes__ = registry
        cls._filter_engine = None

    @classmethod
    def filter_engine(cls) -> FilterEngine:
        """The engine for this model, built once from the class declarations."""
        engine = cls.__dict__.get("_filter_engine")
        if engine is None:
            config = FilterConfig(
                filterable=dict(cls.__filterable__ or {}),
                default_operator=cls.__filter_default_operator__,
                validate_columns=cls.__filter_validate_columns__,
            )
            engine = FilterEngine(config, scopes=cls.__filter_scopes__)
            cls._filter_engine = engine
        return engine

    @classmethod
    def apply_filters(
        cls,
        filters: Mapping[str, Any] | None,
        stmt: Select[Any] | None = None,
        *,
        relationship_scope: RelationshipScope | None = None,
    ) -> Select[Any]:
        """Return ``stmt`` (default ``select(cls)``) with ``filters`` applied."""
        builder = SQLAlchemyQueryBuilder(cls, stmt)
        result = cls.filter_engine().apply(
            filters, builder, relationship_scope=relationship_scope
        )
        return _as_builder(result).statement


def _as_builder(query: Any) -> SQLAlchemyQueryBuilder:
    if not isinstance(query, SQLAlchemyQueryBuilder):
        raise TypeError(
            f"Filter scopes must return a SQLAlchemyQueryBuilder, got {type(query)!r}"
        )
    return query
