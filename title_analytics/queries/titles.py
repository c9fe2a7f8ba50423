"""
The title reporting queries.

Every query is a read-only SELECT over the loaded title table and
returns a PyArrow table. Ties are broken by load order ("first seen").
"""

from datetime import date
from typing import Iterable, Optional
import pyarrow as pa

from ..backends import QueryBackend
from ..errors import QueryParameterInvalid
from ..logging import get_logger, log_execution_time
from ..schemas import MOVIE, RECORD_COLUMNS, TV_SHOW


logger = get_logger("queries")

DEFAULT_KEYWORDS = ("kill", "violence")
BAD_LABEL = "Bad"
GOOD_LABEL = "Good"


def years_before(day: date, years: int) -> date:
    """Same calendar day ``years`` earlier; Feb 29 falls back to Feb 28."""
    try:
        return day.replace(year=day.year - years)
    except ValueError:
        return day.replace(year=day.year - years, day=28)


def _check_positive(query: str, name: str, value) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise QueryParameterInvalid(query, name, f"expected an integer, got {value!r}")
    if value < 1:
        raise QueryParameterInvalid(query, name, f"must be at least 1, got {value}")
    return value


def _check_non_negative(query: str, name: str, value) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise QueryParameterInvalid(query, name, f"expected an integer, got {value!r}")
    if value < 0:
        raise QueryParameterInvalid(query, name, f"must not be negative, got {value}")
    return value


def _check_text(query: str, name: str, value) -> str:
    if not isinstance(value, str) or not value.strip():
        raise QueryParameterInvalid(query, name, "must be a non-empty string")
    return value.strip()


class TitleQueries:
    """
    Fixed menu of analytical queries over the title table.

    Args:
        backend: Backend holding the loaded table
        table_name: Name of the loaded table
        today: Reference date for the time-window queries (defaults to today)
    """

    def __init__(
        self,
        backend: QueryBackend,
        table_name: str = "titles",
        today: Optional[date] = None,
    ):
        self.backend = backend
        self.table_name = table_name
        self._today = today

    @property
    def today(self) -> date:
        return self._today or date.today()

    @property
    def _record_columns(self) -> str:
        return ", ".join(RECORD_COLUMNS)

    def _run(self, name: str, sql: str, params: Optional[dict] = None) -> pa.Table:
        with log_execution_time(logger, name):
            result = self.backend.query(sql, params)
        logger.debug(f"{name} returned {result.num_rows} rows")
        return result

    def _tokens(self, column: str, cte: str = "tokens", where: str = "TRUE") -> str:
        """
        CTE splitting a comma-separated column into trimmed tokens.

        Yields (row_num, token, seen_order); seen_order numbers tokens by
        record load order, then position inside the field. Blank tokens
        are dropped.
        """
        return f"""
            {cte}_exploded AS (
                SELECT
                    row_num,
                    UNNEST(string_split({column}, ',')) AS raw_token,
                    UNNEST(generate_series(1, len(string_split({column}, ',')))) AS token_pos
                FROM {self.table_name}
                WHERE {column} IS NOT NULL AND ({where})
            ),
            {cte} AS (
                SELECT
                    row_num,
                    trim(raw_token) AS token,
                    ROW_NUMBER() OVER (ORDER BY row_num, token_pos) AS seen_order
                FROM {cte}_exploded
                WHERE trim(raw_token) <> ''
            )
        """

    def record_count(self) -> int:
        """Total number of loaded titles."""
        return self.backend.scalar(f"SELECT COUNT(*) FROM {self.table_name}")

    def count_by_type(self) -> pa.Table:
        """Number of titles per type (Movie / TV Show)."""
        return self._run("count_by_type", f"""
            SELECT type, COUNT(*) AS total_content
            FROM {self.table_name}
            GROUP BY type
            ORDER BY total_content DESC, MIN(row_num)
        """)

    def most_common_rating_by_type(self) -> pa.Table:
        """
        The most frequent rating for each type.

        Ties go to the rating seen first in the dataset. Titles without a
        rating are ignored.
        """
        return self._run("most_common_rating_by_type", f"""
            WITH rating_counts AS (
                SELECT
                    type,
                    rating,
                    COUNT(*) AS rating_count,
                    MIN(row_num) AS first_seen
                FROM {self.table_name}
                WHERE rating IS NOT NULL
                GROUP BY type, rating
            ),
            ranked AS (
                SELECT
                    *,
                    ROW_NUMBER() OVER (
                        PARTITION BY type ORDER BY rating_count DESC, first_seen
                    ) AS rating_rank
                FROM rating_counts
            )
            SELECT type, rating, rating_count
            FROM ranked
            WHERE rating_rank = 1
            ORDER BY type
        """)

    def by_release_year(self, year: int) -> pa.Table:
        """All titles released in ``year``."""
        year = _check_non_negative("by_release_year", "year", year)
        return self._run("by_release_year", f"""
            SELECT {self._record_columns}
            FROM {self.table_name}
            WHERE release_year = $year
            ORDER BY row_num
        """, {"year": year})

    def top_countries(self, n: int = 5) -> pa.Table:
        """The ``n`` countries with the most titles, counting each listed country."""
        n = _check_positive("top_countries", "n", n)
        return self._run("top_countries", f"""
            WITH {self._tokens("country")}
            SELECT token AS country, COUNT(*) AS total_content
            FROM tokens
            GROUP BY token
            ORDER BY total_content DESC, MIN(seen_order)
            LIMIT {n}
        """)

    def longest_movie(self) -> pa.Table:
        """The movie with the longest runtime; empty if no movie has a numeric duration."""
        return self._run("longest_movie", f"""
            SELECT {self._record_columns}
            FROM {self.table_name}
            WHERE type = $movie AND duration_value IS NOT NULL
            ORDER BY duration_value DESC, row_num
            LIMIT 1
        """, {"movie": MOVIE})

    def recent_additions(self, years: int = 5) -> pa.Table:
        """Titles added to the catalog within the last ``years`` years, newest first."""
        years = _check_non_negative("recent_additions", "years", years)
        cutoff = years_before(self.today, years)
        return self._run("recent_additions", f"""
            SELECT {self._record_columns}
            FROM {self.table_name}
            WHERE date_added_parsed >= $cutoff
            ORDER BY date_added_parsed DESC, row_num
        """, {"cutoff": cutoff})

    def by_director(self, name: str) -> pa.Table:
        """Titles where ``name`` is one of the listed directors (exact match)."""
        name = _check_text("by_director", "name", name)
        return self._run("by_director", f"""
            WITH {self._tokens("director")}
            SELECT {self._record_columns}
            FROM {self.table_name}
            WHERE row_num IN (SELECT row_num FROM tokens WHERE token = $name)
            ORDER BY row_num
        """, {"name": name})

    def long_running_shows(self, min_seasons: int = 5) -> pa.Table:
        """TV shows with more than ``min_seasons`` seasons."""
        min_seasons = _check_non_negative("long_running_shows", "min_seasons", min_seasons)
        return self._run("long_running_shows", f"""
            SELECT {self._record_columns}
            FROM {self.table_name}
            WHERE type = $tv_show AND duration_value > $min_seasons
            ORDER BY row_num
        """, {"tv_show": TV_SHOW, "min_seasons": min_seasons})

    def count_by_genre(self) -> pa.Table:
        """Number of titles per genre."""
        return self._run("count_by_genre", f"""
            WITH {self._tokens("listed_in")}
            SELECT token AS genre, COUNT(*) AS total_content
            FROM tokens
            GROUP BY token
            ORDER BY total_content DESC, MIN(seen_order)
        """)

    def years_by_country_share(self, country: str, n: int = 5) -> pa.Table:
        """
        Release years with the largest share of a country's titles.

        Only titles whose country field is exactly ``country`` count.
        share_pct is the year's count over the country total, as a
        percentage rounded to 2 decimals.
        """
        country = _check_text("years_by_country_share", "country", country)
        n = _check_positive("years_by_country_share", "n", n)
        return self._run("years_by_country_share", f"""
            WITH country_titles AS (
                SELECT release_year, row_num
                FROM {self.table_name}
                WHERE country = $country
            ),
            yearly AS (
                SELECT
                    release_year,
                    COUNT(*) AS yearly_content,
                    MIN(row_num) AS first_seen
                FROM country_titles
                GROUP BY release_year
            )
            SELECT
                release_year,
                yearly_content,
                ROUND(
                    CAST(yearly_content AS DOUBLE) * 100
                        / (SELECT COUNT(*) FROM country_titles),
                    2
                ) AS share_pct
            FROM yearly
            ORDER BY yearly_content DESC, first_seen
            LIMIT {n}
        """, {"country": country})

    def top_india_years_by_share(self, n: int = 5) -> pa.Table:
        """Release years with the largest share of India's titles."""
        return self.years_by_country_share("India", n)

    def documentaries(self) -> pa.Table:
        """Titles whose genre list ends with Documentaries."""
        return self._run("documentaries", f"""
            SELECT {self._record_columns}
            FROM {self.table_name}
            WHERE listed_in LIKE '%Documentaries'
            ORDER BY row_num
        """)

    def missing_director(self) -> pa.Table:
        """Titles with no director listed."""
        return self._run("missing_director", f"""
            SELECT {self._record_columns}
            FROM {self.table_name}
            WHERE director IS NULL
            ORDER BY row_num
        """)

    def actor_appearances(self, name: str, within_years: int = 10) -> pa.Table:
        """Titles featuring ``name`` released in the last ``within_years`` years."""
        name = _check_text("actor_appearances", "name", name)
        within_years = _check_non_negative("actor_appearances", "within_years", within_years)
        return self._run("actor_appearances", f"""
            WITH {self._tokens("casts")}
            SELECT {self._record_columns}
            FROM {self.table_name}
            WHERE row_num IN (SELECT row_num FROM tokens WHERE token = $name)
              AND release_year > $first_year
            ORDER BY row_num
        """, {"name": name, "first_year": self.today.year - within_years})

    def top_actors_by_country(self, country: str, n: int = 10) -> pa.Table:
        """The ``n`` actors appearing in the most titles from ``country``."""
        country = _check_text("top_actors_by_country", "country", country)
        n = _check_positive("top_actors_by_country", "n", n)
        return self._run("top_actors_by_country", f"""
            WITH {self._tokens("country", cte="country_tokens")},
            {self._tokens(
                "casts",
                cte="cast_tokens",
                where="row_num IN (SELECT row_num FROM country_tokens WHERE token = $country)",
            )}
            SELECT token AS actor, COUNT(*) AS total_content
            FROM cast_tokens
            GROUP BY token
            ORDER BY total_content DESC, MIN(seen_order)
            LIMIT {n}
        """, {"country": country})

    def categorize_by_keywords(self, keywords: Iterable[str] = DEFAULT_KEYWORDS) -> pa.Table:
        """
        Label titles Bad when the description mentions any keyword, else Good.

        Matching is a case-insensitive substring test. Both labels are
        always reported, with 0 when no title carries them.
        """
        if isinstance(keywords, str):
            keywords = [keywords]
        keywords = list(dict.fromkeys(
            _check_text("categorize_by_keywords", "keywords", k).lower()
            for k in keywords
        ))
        if not keywords:
            raise QueryParameterInvalid("categorize_by_keywords", "keywords", "no keywords given")

        params = {f"k{i}": keyword for i, keyword in enumerate(keywords)}
        matches = " OR ".join(
            f"contains(lower(coalesce(description, '')), ${name})" for name in params
        )

        return self._run("categorize_by_keywords", f"""
            WITH labelled AS (
                SELECT CASE WHEN {matches} THEN '{BAD_LABEL}' ELSE '{GOOD_LABEL}' END AS category
                FROM {self.table_name}
            ),
            labels AS (
                SELECT '{BAD_LABEL}' AS category, 1 AS label_order
                UNION ALL
                SELECT '{GOOD_LABEL}' AS category, 2 AS label_order
            )
            SELECT labels.category, COUNT(labelled.category) AS total_content
            FROM labels
            LEFT JOIN labelled ON labelled.category = labels.category
            GROUP BY labels.category, labels.label_order
            ORDER BY labels.label_order
        """, params)
