"""Title reporting queries."""

from .titles import TitleQueries, DEFAULT_KEYWORDS, BAD_LABEL, GOOD_LABEL, years_before
from .registry import QueryParam, QuerySpec, QueryRegistry, build_registry, registry

__all__ = [
    "TitleQueries",
    "DEFAULT_KEYWORDS",
    "BAD_LABEL",
    "GOOD_LABEL",
    "years_before",
    "QueryParam",
    "QuerySpec",
    "QueryRegistry",
    "build_registry",
    "registry",
]
