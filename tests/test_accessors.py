"""
Tests for generated accessors.
"""

import pytest
from schema_compiler import Entity, Null, SchemaCompiler, SchemaStructureError, column
from schema_compiler.ids import ALPHABET, ID_SIZES
from tests.sample_entities import AuditEntry, Task, User


class TestGettersAndSetters:
    """Test get_/set_/set_opt_ methods."""

    def test_set_then_get(self):
        """Setters store present values and return the entity."""
        user = User().set_name("Ann").set_email("ann@example.com")
        assert user.get_name() == "Ann"
        assert user.get_email() == "ann@example.com"
        assert user.name == Null.new("Ann")

    def test_unset_getter_returns_none(self):
        assert User().get_name() is None

    def test_string_setter_converts(self):
        """String fields accept anything convertible to str."""
        assert User().set_name(42).get_name() == "42"

    def test_string_list_setter_drops_empty(self):
        """String list fields convert items and drop empty strings."""
        task = Task().set_labels(["a", "", 3])
        assert task.get_labels() == ["a", "3"]

    def test_other_types_stored_as_given(self):
        assert Task().set_priority(2).get_priority() == 2

    def test_plain_field_setter(self):
        """Non-wrapped fields are stored directly."""
        task = Task().set_done(True)
        assert task.done is True
        assert task.get_done() is True

    def test_opt_setter_ignores_none(self):
        """set_opt_ only mutates for present values."""
        user = User().set_name("Ann")
        user.set_opt_name(None)
        assert user.get_name() == "Ann"
        user.set_opt_name("Bo")
        assert user.get_name() == "Bo"

    def test_unattributed_field_accessors(self):
        """Every field gets accessors, column or not."""
        user = User().set_password("secret")
        assert user.get_password() == "secret"


class TestClearers:
    """Test clear_ methods and clear_all."""

    def test_clear_field(self):
        """Clearing resets to undefined and the entity becomes empty again."""
        user = User().set_name("Ann")
        user.clear_name()
        assert user.get_name() is None
        assert user.name.is_undefined()
        assert user.is_empty()

    def test_no_clearer_for_plain_fields(self):
        assert hasattr(Task, "clear_title")
        assert not hasattr(Task, "clear_done")

    def test_clear_all(self):
        """clear_all turns explicit nulls into undefined and keeps values."""
        user = User(name=Null.new("Ann"), email=Null.null())
        user.clear_all()
        assert user.email.is_undefined()
        assert user.get_name() == "Ann"


class TestBuilders:
    """Test with_ copy builders."""

    def test_with_returns_copy(self):
        user = User().set_name("Ann")
        renamed = user.with_name("Bo")
        assert renamed.get_name() == "Bo"
        assert user.get_name() == "Ann"
        assert renamed is not user

    def test_with_accepts_wrapper(self):
        user = User().set_name("Ann").with_name(Null.undefined())
        assert user.name.is_undefined()


class TestNameClashes:
    """Test generated names that would collide."""

    def test_clearer_cannot_replace_entity_method(self):
        """A field named all would generate clear_all over the base method."""
        class Rec(Entity):
            id: Null[str] = column()
            all: Null[str] = column()

        with pytest.raises(SchemaStructureError) as exc:
            SchemaCompiler().compile(Rec)
        assert "clear_all" in str(exc.value)
        assert "clear_all" not in Rec.__dict__

    def test_insert_id_field(self):
        """A field named insert_id competes with the identifier generator."""
        class Ticket(Entity):
            id: Null[str] = column()
            insert_id: Null[str] = column()

        with pytest.raises(SchemaStructureError):
            SchemaCompiler().compile(Ticket)

    def test_generated_name_matches_field(self):
        class Profile(Entity):
            name: Null[str] = column()
            get_name: Null[str] = column()

        with pytest.raises(SchemaStructureError):
            SchemaCompiler().compile(Profile)

    def test_nothing_installed_on_failure(self):
        class Partial(Entity):
            id: Null[str] = column()
            name: Null[str] = column()
            opt_name: Null[str] = column()

        with pytest.raises(SchemaStructureError):
            SchemaCompiler().compile(Partial)
        assert not hasattr(Partial, "get_id")


class TestInsertId:
    """Test identifier generation."""

    def test_sizes(self):
        """Size classes map to identifier lengths; unknown means max."""
        for size, length in ID_SIZES.items():
            assert len(User().set_insert_id(size).get_id()) == length
        assert len(User().set_insert_id("huge").get_id()) == ID_SIZES["max"]
        assert len(User().set_insert_id("SM").get_id()) == ID_SIZES["sm"]

    def test_alphabet(self):
        assert set(User().set_insert_id("lg").get_id()) <= set(ALPHABET)

    def test_idempotent(self):
        """A second call keeps the first identifier."""
        user = User()
        first = user.set_insert_id("sm").get_id()
        second = user.set_insert_id("sm").get_id()
        assert first == second

    def test_existing_id_kept(self):
        user = User().set_id("u1").set_insert_id("md")
        assert user.get_id() == "u1"

    def test_only_identifier_entities(self):
        assert hasattr(User, "set_insert_id")
        assert not hasattr(AuditEntry, "set_insert_id")


class TestExplicitMethods:
    """Test that hand-written methods win over generated ones."""

    def test_explicit_getter_kept(self):
        class Person(Entity):
            name: Null[str] = column()

            def get_name(self):
                return (self.name.take() or "").upper()

        compiled = SchemaCompiler().compile(Person)
        person = compiled().set_name("ann")
        assert person.get_name() == "ANN"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
