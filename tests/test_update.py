"""
Tests for the update statement builder.
"""

import asyncio
import pytest
from schema_compiler import NotFoundError, Null, QueryError, SchemaError
from tests.sample_entities import AuditEntry, User

USER_RETURNING = "users.id AS users_id, users.name AS users_name, users.email AS users_email"


class FakeWriter:
    """Writer handle recording statements and returning a canned row."""

    def __init__(self, row=None, error=None):
        self.row = row
        self.error = error
        self.calls = []

    async def fetchrow(self, sql, *args):
        self.calls.append((sql, list(args)))
        if self.error:
            raise self.error
        return self.row


class TestStatementBuilding:
    """Test SQL assembly and bind order."""

    def test_full_update_binds_every_column(self):
        """Unset columns are bound as NULL; id comes last."""
        user = User().set_id("u1").set_name("Ann")
        sql, values = user.update_statement()

        assert sql == (
            "UPDATE users SET name = $1, email = $2 WHERE id = $3 "
            f"RETURNING {USER_RETURNING}"
        )
        assert values == ["Ann", None, "u1"]

    def test_partial_update_skips_undefined(self):
        user = User().set_id("u1").set_name("Ann")
        sql, values = user.update_statement(partial=True)

        assert sql == f"UPDATE users SET name = $1 WHERE id = $2 RETURNING {USER_RETURNING}"
        assert values == ["Ann", "u1"]

    def test_partial_update_writes_explicit_null(self):
        """Explicit nulls count as provided values."""
        user = User(id=Null.new("u1"), email=Null.null())
        sql, values = user.update_statement(partial=True)

        assert "SET email = $1 WHERE id = $2" in sql
        assert values == [None, "u1"]

    def test_partial_update_with_nothing_to_write(self):
        with pytest.raises(QueryError):
            User().set_id("u1").update_statement(partial=True)

    def test_unattributed_fields_never_written(self):
        user = User().set_id("u1").set_password("secret")
        sql, values = user.update_statement()
        assert "password" not in sql
        assert "secret" not in values

    def test_entity_without_identifier(self):
        with pytest.raises(SchemaError):
            AuditEntry().set_message("hi").update_statement()

    def test_update_fields(self):
        """The identifier is never part of the SET list."""
        fields = User.__schema__.update_fields
        assert [f.name for f in fields] == ["name", "email"]
        assert fields[0].render(1) == "name = $1"


class TestUpdateExecution:
    """Test the single round trip against a writer handle."""

    def test_update_returns_parsed_row(self):
        """The returned row is parsed through the base table projection."""
        writer = FakeWriter(row={"users_id": "u1", "users_name": "Ann", "users_email": None})
        user = User().set_id("u1").set_name("Ann")

        stored = asyncio.run(user.update(writer))

        assert len(writer.calls) == 1
        sql, args = writer.calls[0]
        assert sql.startswith("UPDATE users SET name = $1, email = $2 WHERE id = $3")
        assert args == ["Ann", None, "u1"]
        assert stored.get_id() == "u1"
        assert stored.get_name() == "Ann"
        assert stored.email.is_undefined()

    def test_no_matching_row(self):
        writer = FakeWriter(row=None)
        with pytest.raises(NotFoundError):
            asyncio.run(User().set_id("missing").set_name("Ann").update(writer))

    def test_statement_failure(self):
        """Connection failures surface as QueryError without retries."""
        cause = ConnectionRefusedError("connection refused")
        writer = FakeWriter(error=cause)

        with pytest.raises(QueryError) as exc:
            asyncio.run(User().set_id("u1").set_name("Ann").update(writer))

        assert exc.value.__cause__ is cause
        assert not isinstance(exc.value, NotFoundError)
        assert len(writer.calls) == 1

    def test_statement_timeout(self):
        """A command timeout surfaces as QueryError."""
        cause = asyncio.TimeoutError()
        writer = FakeWriter(error=cause)

        with pytest.raises(QueryError) as exc:
            asyncio.run(User().set_id("u1").set_name("Ann").update(writer))
        assert exc.value.__cause__ is cause

    def test_default_writer_not_connected(self):
        """Without a connected pool the update fails before any I/O."""
        with pytest.raises(QueryError):
            asyncio.run(User().set_id("u1").set_name("Ann").update())


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
