"""Title record schema definitions."""

import pyarrow as pa
from .base import BaseSchema, SchemaField


class TitleSchema(BaseSchema):
    """
    Schema for one catalog title (movie or TV show).

    Multi-value columns (director, casts, country, listed_in) hold
    comma-separated lists with no ordering guarantee.
    """

    show_id = SchemaField(
        name="show_id",
        dtype=pa.string(),
        nullable=False,
        description="Unique title identifier, e.g. 's1'",
    )
    type = SchemaField(
        name="type",
        dtype=pa.string(),
        nullable=False,
        description="'Movie' or 'TV Show'",
    )
    title = SchemaField(
        name="title",
        dtype=pa.string(),
        nullable=False,
        description="Display title",
    )
    director = SchemaField(
        name="director",
        dtype=pa.string(),
        nullable=True,
        description="Comma-separated director names",
    )
    casts = SchemaField(
        name="casts",
        dtype=pa.string(),
        nullable=True,
        description="Comma-separated cast names",
    )
    country = SchemaField(
        name="country",
        dtype=pa.string(),
        nullable=True,
        description="Comma-separated production countries",
    )
    date_added = SchemaField(
        name="date_added",
        dtype=pa.string(),
        nullable=True,
        description="Date added to the catalog, e.g. 'September 25, 2021'",
    )
    release_year = SchemaField(
        name="release_year",
        dtype=pa.int64(),
        nullable=False,
        description="Original release year",
    )
    rating = SchemaField(
        name="rating",
        dtype=pa.string(),
        nullable=True,
        description="Content rating code, e.g. 'TV-MA'",
    )
    duration = SchemaField(
        name="duration",
        dtype=pa.string(),
        nullable=True,
        description="'90 min' for movies, '3 Seasons' for shows",
    )
    listed_in = SchemaField(
        name="listed_in",
        dtype=pa.string(),
        nullable=True,
        description="Comma-separated genres",
    )
    description = SchemaField(
        name="description",
        dtype=pa.string(),
        nullable=True,
        description="Free-text synopsis",
    )


class StoredTitleSchema(TitleSchema):
    """
    Schema of the loaded table.

    Adds columns computed once at load time.
    """

    row_num = SchemaField(
        name="row_num",
        dtype=pa.int64(),
        nullable=False,
        description="1-based load order, used for first-seen tie-breaks",
    )
    duration_value = SchemaField(
        name="duration_value",
        dtype=pa.int64(),
        nullable=True,
        description="Leading integer of duration (minutes or seasons)",
    )
    date_added_parsed = SchemaField(
        name="date_added_parsed",
        dtype=pa.date32(),
        nullable=True,
        description="date_added parsed as a date",
    )


RECORD_COLUMNS = TitleSchema.field_names()
DERIVED_COLUMNS = [
    name for name in StoredTitleSchema.field_names() if name not in RECORD_COLUMNS
]

MOVIE = "Movie"
TV_SHOW = "TV Show"
TITLE_TYPES = (MOVIE, TV_SHOW)

# Header spellings accepted in source files
COLUMN_ALIASES = {"cast": "casts"}
