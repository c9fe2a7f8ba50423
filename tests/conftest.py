"""Shared fixtures: a small title catalog written to a temporary CSV."""

import tempfile
from datetime import date
from pathlib import Path

import pyarrow as pa
import pyarrow.csv as pv
import pytest

from title_analytics.config import DatasetConfig, PlatformConfig
from title_analytics.runner import QueryRunner


TODAY = date(2024, 6, 1)

COLUMNS = [
    "show_id", "type", "title", "director", "casts", "country", "date_added",
    "release_year", "rating", "duration", "listed_in", "description",
]

ROWS = [
    ["s1", "Movie", "Dick Johnson Is Dead", "Kirsten Johnson", "", "United States",
     "September 25, 2021", "2020", "PG-13", "90 min", "Documentaries",
     "As her father nears the end of his life, filmmaker Kirsten Johnson stages his death."],
    ["s2", "TV Show", "Blood & Water", "", "Ama Qamata, Khosi Ngema", "South Africa",
     "September 24, 2021", "2021", "TV-MA", "2 Seasons",
     "International TV Shows, TV Dramas, TV Mysteries",
     "A Cape Town teen sets out to prove whether a swimming star is her sister."],
    ["s3", "TV Show", "Ganglands", "Julien Leclercq", "Sami Bouajila, Tracy Gotoas",
     "France, Belgium", "September 24, 2021", "2021", "TV-MA", "1 Season",
     "Crime TV Shows, International TV Shows",
     "A thief named Mehdi is pulled into a violent turf war."],
    ["s4", "Movie", "Chhota Bheem: The Rise", "Rajiv Chilaka, Anita Iyer",
     "Vatsal Dubey, Julie Tejwani", "India", "January 15, 2022", "2020", "TV-Y7",
     "62 min", "Children & Family Movies",
     "Bheem and his friends face a demon who wants to kill the king."],
    ["s5", "Movie", "Mumbai Nights", "Anurag Kashyap", "Shah Rukh Khan, Kajol", "India",
     "March 3, 2020", "2020", "TV-14", "148 min", "Dramas, International Movies",
     "Two strangers meet on a rainy night in Mumbai."],
    ["s6", "Movie", "The Bazaar", "Rajiv Chilakapati", "Shah Rukh Khan, Naseeruddin Shah",
     "India", "March 10, 2019", "2019", "TV-MA", "131 min", "Dramas, Thrillers",
     "A trader is drawn into a world of violence and greed."],
    ["s7", "Movie", "Monsoon Letters", "", "Kajol", "India", "not a date", "2019", "TV-14",
     "110 min", "Romantic Movies", "Letters bring two families together."],
    ["s8", "TV Show", "Delhi Stories", "Anurag Kashyap", "Shah Rukh Khan", "India",
     "June 1, 2021", "2019", "TV-MA", "3 Seasons", "International TV Shows, TV Dramas",
     "Stories from the capital."],
    ["s9", "Movie", "Cricket Fever", "Rajiv Chilaka", "Naseeruddin Shah, Kajol", "India",
     "August 20, 2018", "2018", "TV-PG", "125 min", "Comedies, Sports Movies",
     "A village team takes on the champions."],
    ["s10", "TV Show", "Kota Diaries", "", "", "India", "July 2, 2018", "2018", "TV-14",
     "6 Seasons", "International TV Shows, Teen TV Shows",
     "Students chase engineering dreams."],
    ["s11", "Movie", "The Old Fort", "Anurag Kashyap", "Naseeruddin Shah", "India",
     "May 5, 2017", "2017", "TV-MA", "99 min", "Documentaries",
     "The history of a crumbling fort."],
    ["s12", "Movie", "River Song", "Anita Iyer", "Shah Rukh Khan", "India",
     "April 4, 2016", "2016", "TV-14", "105 min", "Music & Musicals",
     "A singer returns home."],
    ["s13", "Movie", "Silent Temple", "", "Kajol", "India", "February 2, 2015", "2015",
     "TV-MA", "95 min", "Dramas", "A monk keeps a secret."],
    ["s14", "Movie", "Bollywood Abroad", "Anurag Kashyap", "Shah Rukh Khan, Kajol",
     "India, United States", "October 10, 2023", "2023", "PG-13", "155 min",
     "Comedies, International Movies", "A film crew gets lost in New York."],
    ["s15", "TV Show", "The Crown Jewels", "Peter Morgan", "Olivia Colman, Tobias Menzies",
     "United Kingdom", "November 17, 2023", "2023", "TV-MA", "6 Seasons",
     "British TV Shows, TV Dramas", "Royal intrigue at the palace."],
    ["s16", "Movie", "Epic Journey", "Ava Marsh", "Tom Hale", "United States", "", "2012",
     "R", "200 min", "Action & Adventure, Documentaries",
     "An epic journey with a deadly KILLER on the loose."],
    ["s17", "Movie", "Broken Runtime", "", "", "", "March 1, 2024", "2024", "", "unknown",
     "Dramas", ""],
]


def rows_to_table(rows, columns=COLUMNS) -> pa.Table:
    """Build an all-string Arrow table from row lists."""
    return pa.table({
        name: pa.array([row[i] for row in rows], type=pa.string())
        for i, name in enumerate(columns)
    })


def write_csv(path: Path, rows, columns=COLUMNS) -> Path:
    pv.write_csv(rows_to_table(rows, columns), path)
    return path


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def titles_csv(temp_dir):
    """The sample catalog as a CSV file."""
    return write_csv(temp_dir / "titles.csv", ROWS)


@pytest.fixture
def config(titles_csv):
    """In-memory configuration pointing at the sample catalog."""
    return PlatformConfig(dataset=DatasetConfig(path=titles_csv))


@pytest.fixture
def runner(config):
    """A runner with the sample catalog loaded."""
    runner = QueryRunner(config, today=TODAY)
    runner.load()
    yield runner
    runner.close()


@pytest.fixture
def queries(runner):
    return runner.queries
