"""Schema definitions for the title table."""

from .base import BaseSchema, SchemaField
from .titles import (
    TitleSchema,
    StoredTitleSchema,
    RECORD_COLUMNS,
    DERIVED_COLUMNS,
    COLUMN_ALIASES,
    MOVIE,
    TV_SHOW,
    TITLE_TYPES,
)

__all__ = [
    "BaseSchema",
    "SchemaField",
    "TitleSchema",
    "StoredTitleSchema",
    "RECORD_COLUMNS",
    "DERIVED_COLUMNS",
    "COLUMN_ALIASES",
    "MOVIE",
    "TV_SHOW",
    "TITLE_TYPES",
]
