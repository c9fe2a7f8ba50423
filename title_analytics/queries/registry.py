"""Registry of named queries, used by the CLI and the exporter."""

from dataclasses import dataclass, field
from typing import Any, Callable, Optional
import pyarrow as pa

from ..errors import QueryParameterInvalid
from .titles import DEFAULT_KEYWORDS, TitleQueries


REQUIRED = object()


def _to_int(value: str) -> int:
    return int(value.strip())


def _to_str(value: str) -> str:
    return value


def _to_list(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


CONVERTERS: dict[str, Callable[[str], Any]] = {
    "int": _to_int,
    "str": _to_str,
    "list": _to_list,
}


@dataclass
class QueryParam:
    """A literal parameter accepted by a query."""

    name: str
    kind: str = "int"  # 'int', 'str' or 'list'
    default: Any = REQUIRED
    help: str = ""

    @property
    def required(self) -> bool:
        return self.default is REQUIRED

    def coerce(self, query: str, raw: Any) -> Any:
        """Convert a CLI string to the parameter type; other values pass through."""
        if not isinstance(raw, str):
            return raw
        try:
            return CONVERTERS[self.kind](raw)
        except ValueError:
            raise QueryParameterInvalid(query, self.name, f"cannot read {raw!r} as {self.kind}")

    def describe(self) -> str:
        if self.required:
            return f"{self.name}"
        default = self.default
        if isinstance(default, (list, tuple)):
            default = ",".join(default)
        return f"{self.name}={default}"


@dataclass
class QuerySpec:
    """A named query: the TitleQueries method and its parameters."""

    name: str
    method: str
    description: str
    params: list[QueryParam] = field(default_factory=list)

    @property
    def required_params(self) -> list[str]:
        return [p.name for p in self.params if p.required]

    def signature(self) -> str:
        return " ".join(p.describe() for p in self.params)

    def check(self, raw_params: Optional[dict] = None) -> dict:
        """Coerce the supplied parameters, rejecting unknown names."""
        raw_params = dict(raw_params or {})
        known = {p.name for p in self.params}
        unknown = sorted(set(raw_params) - known)
        if unknown:
            raise QueryParameterInvalid(self.name, unknown[0], "unknown parameter")

        return {
            p.name: p.coerce(self.name, raw_params[p.name])
            for p in self.params
            if p.name in raw_params
        }

    def bind(self, raw_params: Optional[dict] = None) -> dict:
        """Resolve raw parameters against the declared ones, filling defaults."""
        supplied = self.check(raw_params)

        kwargs = {}
        for param in self.params:
            if param.name in supplied:
                kwargs[param.name] = supplied[param.name]
            elif param.required:
                raise QueryParameterInvalid(self.name, param.name, "parameter is required")
            else:
                kwargs[param.name] = param.default
        return kwargs


class QueryRegistry:
    """Registry for managing named queries."""

    def __init__(self):
        self._queries: dict[str, QuerySpec] = {}

    def register(self, spec: QuerySpec) -> None:
        """Register a query."""
        self._queries[spec.name] = spec

    def get(self, name: str) -> QuerySpec:
        """Get a query by name."""
        if name not in self._queries:
            raise QueryParameterInvalid(name, "name", "unknown query")
        return self._queries[name]

    def specs(self) -> list[QuerySpec]:
        return list(self._queries.values())

    # Shadows the builtin for the rest of the class body; no list[...] annotations below
    def list(self) -> list[str]:
        """List all registered query names."""
        return list(self._queries.keys())

    def run(self, queries: TitleQueries, name: str, params: Optional[dict] = None) -> pa.Table:
        """Run a query by name with raw (possibly string) parameters."""
        spec = self.get(name)
        kwargs = spec.bind(params)
        return getattr(queries, spec.method)(**kwargs)


def build_registry() -> QueryRegistry:
    """The registry of every title query."""
    reg = QueryRegistry()
    for spec in [
        QuerySpec("count-by-type", "count_by_type", "Number of movies vs TV shows"),
        QuerySpec(
            "most-common-rating", "most_common_rating_by_type",
            "Most common rating for movies and TV shows",
        ),
        QuerySpec(
            "by-release-year", "by_release_year", "Titles released in a given year",
            [QueryParam("year", "int", help="Release year")],
        ),
        QuerySpec(
            "top-countries", "top_countries", "Countries with the most content",
            [QueryParam("n", "int", 5, "Number of countries")],
        ),
        QuerySpec("longest-movie", "longest_movie", "The longest movie"),
        QuerySpec(
            "recent-additions", "recent_additions", "Titles added in the last years",
            [QueryParam("years", "int", 5, "Window in years")],
        ),
        QuerySpec(
            "by-director", "by_director", "Titles by a director",
            [QueryParam("name", "str", help="Director name, matched exactly")],
        ),
        QuerySpec(
            "long-running-shows", "long_running_shows", "TV shows with many seasons",
            [QueryParam("min_seasons", "int", 5, "Seasons to exceed")],
        ),
        QuerySpec("count-by-genre", "count_by_genre", "Number of titles per genre"),
        QuerySpec(
            "india-years-by-share", "top_india_years_by_share",
            "Years with the largest share of India's titles",
            [QueryParam("n", "int", 5, "Number of years")],
        ),
        QuerySpec(
            "country-years-by-share", "years_by_country_share",
            "Years with the largest share of a country's titles",
            [
                QueryParam("country", "str", help="Country, matched exactly"),
                QueryParam("n", "int", 5, "Number of years"),
            ],
        ),
        QuerySpec("documentaries", "documentaries", "All documentaries"),
        QuerySpec("missing-director", "missing_director", "Titles without a director"),
        QuerySpec(
            "actor-appearances", "actor_appearances", "Recent titles featuring an actor",
            [
                QueryParam("name", "str", help="Actor name, matched exactly"),
                QueryParam("within_years", "int", 10, "Release window in years"),
            ],
        ),
        QuerySpec(
            "top-actors-by-country", "top_actors_by_country",
            "Actors in the most titles from a country",
            [
                QueryParam("country", "str", help="Country, matched exactly"),
                QueryParam("n", "int", 10, "Number of actors"),
            ],
        ),
        QuerySpec(
            "categorize-by-keywords", "categorize_by_keywords",
            "Good/Bad split by description keywords",
            [QueryParam("keywords", "list", list(DEFAULT_KEYWORDS), "Comma-separated keywords")],
        ),
    ]:
        reg.register(spec)
    return reg


# Global registry
registry = build_registry()
