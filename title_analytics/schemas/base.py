"""Declarative Arrow schemas."""

from dataclasses import dataclass
import pyarrow as pa


@dataclass
class SchemaField:
    """One column: name, Arrow type, nullability and a short description."""

    name: str
    dtype: pa.DataType
    nullable: bool = True
    description: str = ""

    def to_arrow_field(self) -> pa.Field:
        metadata = {b"description": self.description.encode()} if self.description else None
        return pa.field(self.name, self.dtype, nullable=self.nullable, metadata=metadata)


class BaseSchema:
    """
    Base class for schema definitions.

    Subclasses declare SchemaField class attributes. Columns are ordered
    by declaration, inherited columns first, so a subclass extends its
    parent's column list.
    """

    @classmethod
    def fields(cls) -> list[SchemaField]:
        by_name: dict[str, SchemaField] = {}
        for klass in reversed(cls.__mro__):
            for value in vars(klass).values():
                if isinstance(value, SchemaField):
                    by_name[value.name] = value
        return list(by_name.values())

    @classmethod
    def to_arrow_schema(cls) -> pa.Schema:
        return pa.schema([f.to_arrow_field() for f in cls.fields()])

    @classmethod
    def field_names(cls) -> list[str]:
        return [f.name for f in cls.fields()]

    @classmethod
    def required_field_names(cls) -> list[str]:
        """Columns that may not hold nulls."""
        return [f.name for f in cls.fields() if not f.nullable]

    @classmethod
    def empty_table(cls) -> pa.Table:
        return cls.to_arrow_schema().empty_table()

    @classmethod
    def validate(cls, table: pa.Table) -> list[str]:
        """
        Check a table against the schema.

        Extra columns are allowed. Returns one message per problem: a
        missing column, an incompatible type, or nulls in a required
        column. An empty list means the table is valid.
        """
        errors = []

        for f in cls.fields():
            if f.name not in table.column_names:
                errors.append(f"Missing column: {f.name}")
                continue

            actual = table.schema.field(f.name).type
            if not _compatible(actual, f.dtype):
                errors.append(f"Type mismatch for {f.name}: expected {f.dtype}, got {actual}")

            if not f.nullable and table.column(f.name).null_count:
                errors.append(f"Nulls in required column: {f.name}")

        return errors


def _compatible(actual: pa.DataType, expected: pa.DataType) -> bool:
    if actual.equals(expected):
        return True
    # any integer width
    if pa.types.is_integer(actual) and pa.types.is_integer(expected):
        return True
    if pa.types.is_temporal(actual) and pa.types.is_temporal(expected):
        return pa.types.is_date(actual) or pa.types.is_timestamp(actual)
    # DuckDB may return VARCHAR as large_string
    return pa.types.is_large_string(actual) and pa.types.is_string(expected)
