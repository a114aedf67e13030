from enum import Enum


class SemanticType(str, Enum):
    """Declared filtering meaning of a field, independent of its storage type."""

    ID = "id"
    INTEGER = "integer"
    FLOAT = "float"
    STRING = "string"
    BOOLEAN = "boolean"
    DATE = "date"
    DATETIME = "datetime"
    JSON = "json"
    ARRAY = "array"
    RELATIONSHIP = "relationship"
    SCOPE = "scope"


class FilterOperator(str, Enum):
    """Canonical filter operators (aliases are resolved before lookup)."""

    # Comparison
    EQ = "="
    NE = "<>"
    GT = ">"
    GE = ">="
    LT = "<"
    LE = "<="

    # String
    LIKE = "like"

    # Set
    IN = "in"

    # Null checks (``is null`` / ``not null``)
    IS = "is"
    NOT = "not"
