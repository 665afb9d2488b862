"""
Tests for the schema compiler driver and entity helpers.
"""

import json
import pytest
from datetime import datetime
from pydantic import ValidationError

from schema_compiler import COMPILER, Entity, Null, SchemaCompiler, column, postgresql
from tests.sample_entities import Task, User


class TestRegistry:
    """Test compilation and registration."""

    def test_entities_registered(self):
        """Decorated entities land in the default compiler's registry."""
        assert COMPILER.get_entity("User") is User
        assert COMPILER.schemas["User"].table_name == "users"
        assert COMPILER.schemas["Task"].table_name == "task"

    def test_unknown_entity(self):
        with pytest.raises(ValueError):
            COMPILER.get_entity("Nope")

    def test_schema_is_frozen(self):
        with pytest.raises(ValidationError):
            User.__schema__.table_name = "people"

    def test_requires_entity_base(self):
        class Plain:
            pass

        with pytest.raises(TypeError):
            SchemaCompiler().compile(Plain)

    def test_bare_decorator(self):
        """@postgresql works without arguments."""
        @postgresql
        class LoginEvent(Entity):
            id: Null[str] = column()

        assert LoginEvent.__schema__.table_name == "login_event"
        assert len(LoginEvent.parsers) == 0

    def test_separate_compilers(self):
        """Compilers keep independent registries."""
        compiler = SchemaCompiler(identifier="key")

        class Setting(Entity):
            key: Null[str] = column()
            value: Null[str] = column()

        compiler.compile(Setting, rename="settings")
        assert "Setting" in compiler.schemas
        assert "Setting" not in COMPILER.schemas
        sql, values = Setting().set_key("k").set_value("v").update_statement()
        assert sql.startswith("UPDATE settings SET value = $1 WHERE key = $2")
        assert values == ["v", "k"]

    def test_describe(self):
        description = COMPILER.describe("User")
        assert description["table"] == "users"
        assert description["tabled"]["NAME"] == "users.name"
        assert description["aliases"]["owner"]["aliased"]["NAME"] == "users.name AS owner_name"
        assert description["update"].startswith("UPDATE users SET name = $1, email = $2 WHERE id = $3")
        assert [f["name"] for f in description["fields"]] == ["id", "name", "email", "password"]
        json.dumps(description)


class TestEntityHelpers:
    """Test is_empty, serialization and responses."""

    def test_is_empty(self):
        assert User().is_empty()
        assert not User().set_name("Ann").is_empty()

    def test_to_json_omits_undefined(self):
        """Undefined fields are left out; explicit nulls stay."""
        user = User(name=Null.new("Ann"), email=Null.null())
        assert user.to_json() == {"name": "Ann", "email": None}

    def test_to_json_nested(self):
        owner = User().set_id("u1")
        task = Task().set_title("Ship").with_owner(owner)
        assert task.to_json() == {"title": "Ship", "done": False, "owner": {"id": "u1"}}

    def test_to_jsonb(self):
        task = Task().set_due_at(datetime(2024, 1, 2, 3, 4, 5))
        assert json.loads(task.to_jsonb()) == {"due_at": "2024-01-02T03:04:05", "done": False}

    def test_respond(self):
        response = User().set_name("Ann").respond()
        assert response.status_code == 200
        assert json.loads(response.body) == {"code": 200, "data": {"name": "Ann"}}

    def test_to_converter(self):
        user = User().set_name("Ann")
        assert user.to(lambda u: u.get_name()) == "Ann"


class TestSchemaDump:
    """Test the schema dump entry point."""

    def test_dump_schemas(self):
        from main import dump_schemas

        schemas = dump_schemas(["tests.sample_entities"], ["User", "Task"])
        assert set(schemas) == {"User", "Task"}
        assert schemas["Task"]["aliases"]["child"]["renamed"]["TITLE"] == "child_title"

    def test_main_reports_unknown_entity(self):
        from main import main

        assert main(["tests.sample_entities", "--entity", "Nope"]) == 1


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
