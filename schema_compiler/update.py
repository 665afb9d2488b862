"""
Partial-update statement builder.

    UPDATE users SET name = $1, email = $2 WHERE id = $3
    RETURNING users.id AS users_id, users.name AS users_name, ...

Values are bound in column declaration order with the identifier last, and
the returned row is parsed with the base table parser.
"""

import asyncio
import logging
from typing import Any, List, Tuple

import asyncpg

from schema_compiler.accessors import unwrap
from schema_compiler.errors import QueryError, SchemaError
from schema_compiler.models import EntitySchema
from schema_compiler.nulls import Null
from schema_compiler.parsers import RowParserGroup

logger = logging.getLogger(__name__)

# Failures that surface from a single statement round trip
STATEMENT_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, asyncio.TimeoutError)


class UpdateStatementBuilder:
    """
    Builds and runs the UPDATE statement of one entity.

    ``partial=False`` writes every non-identifier column, binding NULL for
    fields that were never set. ``partial=True`` skips undefined fields;
    explicit nulls are still written.
    """

    def __init__(self, schema: EntitySchema, parser: RowParserGroup):
        self.schema = schema
        self.parser = parser
        self.fields = schema.update_fields

    def build(self, entity: Any, partial: bool = False) -> Tuple[str, List[Any]]:
        """Statement text and bind values for ``entity``."""
        if not self.schema.has_identifier:
            raise SchemaError(
                f"{self.schema.name} has no '{self.schema.identifier}' column and cannot be updated"
            )

        assignments = []
        values = []

        for field in self.fields:
            current = getattr(entity, field.name)
            if partial and isinstance(current, Null) and current.is_undefined():
                continue

            values.append(unwrap(current))
            assignments.append(field.render(len(values)))

        if not assignments:
            raise QueryError(f"Nothing to update in {self.schema.table_name} table")

        values.append(unwrap(getattr(entity, self.schema.identifier)))

        sql = (
            f"UPDATE {self.schema.table_name} SET {', '.join(assignments)} "
            f"WHERE {self.schema.identifier} = ${len(values)} "
            f"RETURNING {self.parser.ALL}"
        )
        return sql, values

    async def execute(self, entity: Any, connection: Any, partial: bool = False) -> Any:
        """
        Run the statement as one round trip on ``connection`` (anything with
        an async ``fetchrow``) and parse the returned row.
        """
        sql, values = self.build(entity, partial=partial)

        try:
            row = await connection.fetchrow(sql, *values)
        except STATEMENT_ERRORS as e:
            logger.error(f"Update failed on {self.schema.table_name}: {e}\nSQL: {sql}")
            raise QueryError(f"Update failed on {self.schema.table_name} table: {e}") from e

        return self.parser.result(row)
