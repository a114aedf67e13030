"""Filter key parsing: ``relation.column->json->path``."""

from __future__ import annotations

import re
from typing import NamedTuple

from .exceptions import MaxRelationshipDepthExceededError

RELATION_SEPARATOR = "."
JSON_PATH_SEPARATOR = "->"

_WORD_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")
_SEPARATORS = re.compile(r"[\s\-]+")


class ParsedFilterName(NamedTuple):
    """A filter key split into its relation hop, column and JSON path."""

    relation: str | None
    column: str
    json_path: str | None

    @property
    def validation_key(self) -> str:
        """Key consulted in the filterable map (JSON suffix ignored)."""
        if self.relation is None:
            return self.column
        return f"{self.relation}{RELATION_SEPARATOR}{self.column}"

    @property
    def field(self) -> str:
        """Target field on the (possibly related) resource."""
        if self.json_path is None:
            return self.column
        return f"{self.column}{JSON_PATH_SEPARATOR}{self.json_path}"


def parse_filter_name(raw_key: str) -> ParsedFilterName:
    """
    Split a raw filter key.

    The relation hop is split first and depth-checked before any JSON
    path extraction, so ``a.b.c->x`` is rejected for its depth even
    though it also carries a path.  The JSON path keeps any further
    ``->`` segments verbatim.

    Raises:
        MaxRelationshipDepthExceededError: If the key has more than one ``.``.
    """
    if raw_key.count(RELATION_SEPARATOR) > 1:
        raise MaxRelationshipDepthExceededError(raw_key)

    relation: str | None = None
    remainder = raw_key
    if RELATION_SEPARATOR in raw_key:
        relation, remainder = raw_key.split(RELATION_SEPARATOR, 1)

    column, sep, json_path = remainder.partition(JSON_PATH_SEPARATOR)
    return ParsedFilterName(relation, column, json_path if sep else None)


def to_accessor_name(name: str) -> str:
    """
    Convert a filter name to its Python accessor form (snake_case).

    ``activeUsers`` -> ``active_users``, ``test-models`` -> ``test_models``,
    ``HTTPStatus`` -> ``http_status``.
    """
    name = _SEPARATORS.sub("_", name.strip())
    return _WORD_BOUNDARY.sub("_", name).lower()
