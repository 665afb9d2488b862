"""
Typed errors raised by the schema compiler and generated entity code.
"""


class SchemaError(Exception):
    """Base class for schema compiler errors."""


class SchemaStructureError(SchemaError):
    """
    Fatal build-time error: the entity declaration cannot be compiled.
    Raised while decorating the class, never while serving requests.
    """

    def __init__(self, entity: str, message: str):
        self.entity = entity
        super().__init__(f"{entity}: {message}")


class QueryError(SchemaError):
    """A statement against the datastore failed."""


class NotFoundError(QueryError):
    """The fetch failed or returned an empty record."""

    def __init__(self, table: str):
        self.table = table
        super().__init__(f"No matching record(s) found in {table} table")
