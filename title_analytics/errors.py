"""Exceptions raised by the title analytics package."""

from typing import Any, Optional


class TitleAnalyticsError(Exception):
    """Base exception for title analytics errors."""
    pass


class DatasetLoadError(TitleAnalyticsError):
    """The source dataset could not be loaded."""
    def __init__(self, path: Any, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot load dataset {path}: {reason}")


class MalformedRowError(TitleAnalyticsError):
    """A source row could not be turned into a record (strict loads only)."""
    def __init__(self, reason: str, row: Optional[int] = None):
        self.reason = reason
        self.row = row
        msg = f"Malformed row: {reason}"
        if row is not None:
            msg = f"Malformed row {row}: {reason}"
        super().__init__(msg)


class SchemaValidationError(TitleAnalyticsError):
    """Loaded data does not match the record schema."""
    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__(f"Schema validation failed: {errors}")


class QueryParameterInvalid(TitleAnalyticsError):
    """A query was called with an unusable parameter value."""
    def __init__(self, query: str, parameter: str, reason: str):
        self.query = query
        self.parameter = parameter
        self.reason = reason
        super().__init__(f"Invalid parameter '{parameter}' for {query}: {reason}")
