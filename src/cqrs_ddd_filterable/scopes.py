"""Named custom predicates ("scopes") for filters declared as ``scope``."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from .exceptions import ScopeRegistrationError, UndefinedScopeMethodError
from .naming import to_accessor_name

if TYPE_CHECKING:
    from .query import QueryBuilder

logger = logging.getLogger("cqrs_ddd.filterable.scopes")

SCOPE_PREFIX = "filter_"

ScopeFunction = Callable[..., Any]


@dataclass(frozen=True)
class RegisteredScope:
    """A scope function and how it wants to be called."""

    name: str
    func: ScopeFunction
    pass_filters: bool = False


class ScopeRegistry:
    """Explicit name -> predicate function registry.

    Names are normalised to snake_case, so ``activeUsers`` and
    ``active_users`` address the same scope.  Lookups prefer the
    prefixed form ``filter_<name>`` (which keeps scope names clear of
    query-builder method names) and fall back to the bare name.

    Usage::

        scopes = ScopeRegistry()

        @scopes.scope("active_users")
        def active_users(query, value):
            return query.where("active", "=", True) if value else query
    """

    def __init__(self) -> None:
        self._scopes: dict[str, RegisteredScope] = {}

    # -- registration --------------------------------------------------------

    def register(
        self,
        name: str,
        func: ScopeFunction,
        *,
        pass_filters: bool = False,
    ) -> None:
        """Register ``func`` under ``name``.

        Args:
            name: Scope name (any casing; stored as snake_case).
            func: Called as ``func(query, value)``, or
                ``func(query, value, filters)`` when ``pass_filters`` is set.
            pass_filters: Also pass the whole filter request, for
                cross-field scopes.
        """
        key = to_accessor_name(name)
        existing = self._scopes.get(key)
        if existing is not None and existing.func is not func:
            raise ScopeRegistrationError(
                f"Duplicate scope {key!r}: {existing.func!r} already registered, "
                f"cannot register {func!r}"
            )
        self._scopes[key] = RegisteredScope(key, func, pass_filters)
        logger.debug("Registered filter scope %s", key)

    def scope(
        self, name: str | None = None, *, pass_filters: bool = False
    ) -> Callable[[ScopeFunction], ScopeFunction]:
        """Decorator form of :meth:`register` (defaults to the function name)."""

        def decorator(func: ScopeFunction) -> ScopeFunction:
            self.register(name or func.__name__, func, pass_filters=pass_filters)
            return func

        return decorator

    # -- look-up -------------------------------------------------------------

    @staticmethod
    def candidates(name: str) -> list[str]:
        """Names tried for ``name``, in order of preference."""
        key = to_accessor_name(name)
        return [f"{SCOPE_PREFIX}{key}", key]

    def get(self, name: str) -> RegisteredScope | None:
        for candidate in self.candidates(name):
            found = self._scopes.get(candidate)
            if found is not None:
                return found
        return None

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.get(name) is not None

    @property
    def names(self) -> set[str]:
        return set(self._scopes)


class ScopeDispatcher:
    """Invoke the registered scope for a ``scope``-typed filter."""

    def __init__(self, registry: ScopeRegistry | None = None) -> None:
        self._registry = registry or ScopeRegistry()

    @property
    def registry(self) -> ScopeRegistry:
        return self._registry

    def dispatch(
        self,
        name: str,
        query: QueryBuilder,
        value: Any,
        filters: Mapping[str, Any] | None = None,
    ) -> QueryBuilder:
        """
        Apply the scope registered for ``name`` and return the query to continue with.

        A scope returning ``None`` is taken to have mutated ``query`` in place.

        Raises:
            UndefinedScopeMethodError: If no scope is registered for ``name``.
        """
        scope = self._registry.get(name)
        if scope is None:
            raise UndefinedScopeMethodError(name, self._registry.candidates(name))

        logger.debug("Dispatching filter %s to scope %s", name, scope.name)
        if scope.pass_filters:
            result = scope.func(query, value, dict(filters or {}))
        else:
            result = scope.func(query, value)
        return query if result is None else result
