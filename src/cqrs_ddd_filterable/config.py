"""FilterConfig: per-resource filter whitelist and engine options."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from .exceptions import UnsupportedFilterTypeError
from .operators import OperatorPermissionTable
from .types import FilterOperator, SemanticType


def coerce_semantic_type(value: Any) -> SemanticType:
    """
    Return ``value`` as a :class:`SemanticType`.

    Raises:
        UnsupportedFilterTypeError: If the value names no known type.
    """
    if isinstance(value, SemanticType):
        return value
    try:
        return SemanticType(str(value).strip().lower())
    except ValueError:
        raise UnsupportedFilterTypeError(value) from None


class FilterConfig(BaseModel):
    """Immutable filter definition for one resource.

    Example::

        config = FilterConfig(
            filterable={
                "age": "integer",
                "user": "relationship",
                "user.email": "string",
                "activeUsers": "scope",
            },
            validate_columns=True,
        )
    """

    model_config = ConfigDict(frozen=True)

    filterable: dict[str, SemanticType] = Field(default_factory=dict)
    permissions: OperatorPermissionTable = Field(
        default_factory=OperatorPermissionTable
    )
    default_operator: FilterOperator = FilterOperator.EQ
    validate_columns: bool = Field(
        default=False,
        description="Reject undeclared filter keys instead of skipping them",
    )

    @field_validator("filterable", mode="before")
    @classmethod
    def _coerce_types(cls, value: Any) -> Any:
        if value is None:
            return {}
        if isinstance(value, dict):
            return {str(k): coerce_semantic_type(v) for k, v in value.items()}
        return value

    @field_validator("default_operator", mode="before")
    @classmethod
    def _resolve_default_operator(cls, value: Any, info: ValidationInfo) -> Any:
        permissions = info.data.get("permissions")
        if isinstance(permissions, OperatorPermissionTable):
            return permissions.canonicalize(value)
        return value

    def semantic_type(self, key: str) -> SemanticType | None:
        return self.filterable.get(key)
