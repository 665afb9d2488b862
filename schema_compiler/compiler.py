"""
Schema compiler driver.

Entities are dataclasses deriving from ``Entity`` and decorated with
``@postgresql``. Decoration runs introspection once and installs the naming
tables, accessors, row parsers and the update builder on the class:

    @postgresql(rename="users", alias="owner")
    class User(Entity):
        id: Null[str] = column()
        name: Null[str] = column()
        email: Null[str] = column()

    User.tabled.NAME                 # "users.name"
    User.parsers.owner.NAME          # "users.name AS owner_name"
    await user.update()              # UPDATE users SET ... RETURNING ...
"""

import copy
import dataclasses
import json
import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from config import SCHEMA_CONFIG
from database.postgres_service import db_service
from schema_compiler.accessors import attach_accessors
from schema_compiler.errors import QueryError, SchemaStructureError
from schema_compiler.introspector import RESERVED_NAMES, FieldIntrospector, extract_table_attrs
from schema_compiler.models import EntitySchema, snake_case
from schema_compiler.naming import NamingTables, build_naming_tables
from schema_compiler.nulls import Null
from schema_compiler.parsers import ParserRegistry, build_parsers
from schema_compiler.update import UpdateStatementBuilder

logger = logging.getLogger(__name__)


def column(default=dataclasses.MISSING, *, default_factory=dataclasses.MISSING, **attrs):
    """
    Mark a dataclass field as a table column.
    Without a default the field starts as an undefined ``Null``.
    """
    if default is dataclasses.MISSING and default_factory is dataclasses.MISSING:
        default_factory = Null
    return dataclasses.field(
        default=default,
        default_factory=default_factory,
        metadata={SCHEMA_CONFIG["column_attribute"]: attrs},
    )


def _json_value(value: Any) -> Any:
    if isinstance(value, Null):
        value = value.take()
    if isinstance(value, Entity):
        return value.to_json()
    if isinstance(value, (list, tuple)):
        return [_json_value(v) for v in value]
    return value


class Entity:
    """
    Base class of compiled entities.
    Class attributes below are installed by SchemaCompiler.compile.
    """

    __schema__: EntitySchema
    __updater__: UpdateStatementBuilder
    plain: Any
    tabled: Any
    renamed: Any
    aliased: Any
    parsers: ParserRegistry

    def is_empty(self) -> bool:
        """True when every field still holds its default."""
        return self == type(self)()

    def to(self, converter: Callable[[Any], Any]) -> Any:
        return converter(copy.deepcopy(self))

    def to_json(self) -> Dict[str, Any]:
        """Field values as a dict; undefined fields are left out."""
        data = {}
        for f in dataclasses.fields(self):
            value = getattr(self, f.name)
            if isinstance(value, Null) and value.is_undefined():
                continue
            data[f.name] = _json_value(value)
        return data

    def to_jsonb(self) -> str:
        """JSON text suitable for binding to a jsonb parameter."""
        return json.dumps(jsonable_encoder(self.to_json()))

    def respond(self, status_code: int = 200) -> JSONResponse:
        return JSONResponse(
            status_code=status_code,
            content=jsonable_encoder({"code": status_code, "data": self.to_json()}),
        )

    def clear_all(self):
        """Reset every Null field that holds no value to undefined."""
        for f in self.__schema__.fields:
            value = getattr(self, f.name)
            if f.is_nullable and isinstance(value, Null) and not value.is_some():
                setattr(self, f.name, Null.undefined())
        return self

    @classmethod
    def parse(cls, row: Any):
        return cls.parsers.parse(row)

    def update_statement(self, partial: bool = False) -> Tuple[str, List[Any]]:
        """SQL text and bind values the next update() would send."""
        return self.__updater__.build(self, partial=partial)

    async def update(self, connection: Any = None, partial: bool = False):
        """
        Write the entity's columns in one statement and return the stored row.
        Uses the shared writer pool unless a connection is given.
        """
        if connection is None:
            try:
                connection = db_service.writer()
            except ConnectionError as e:
                raise QueryError(str(e)) from e

        return await self.__updater__.execute(self, connection, partial=partial)


# Names generated accessors and alias parsers may not take over
ENTITY_ATTRIBUTES = frozenset(dir(Entity)) | RESERVED_NAMES


class SchemaCompiler:
    """
    Compiles entity classes and keeps a registry of compiled schemas.
    """

    def __init__(
        self,
        attribute: Optional[str] = None,
        identifier: Optional[str] = None,
        default_id_size: Optional[str] = None
    ):
        self.introspector = FieldIntrospector(attribute or SCHEMA_CONFIG["column_attribute"])
        self.identifier = identifier or SCHEMA_CONFIG["identifier_field"]
        self.default_id_size = default_id_size or SCHEMA_CONFIG["default_id_size"]
        self.schemas: Dict[str, EntitySchema] = {}
        self.entities: Dict[str, type] = {}
        self.tables: Dict[str, NamingTables] = {}

    def compile(self, cls: type, **table_attrs) -> type:
        """
        Compile ``cls`` in place and register it.

        ``table_attrs`` accepts ``rename`` and ``alias``; malformed attributes
        are ignored with a warning. Raises SchemaStructureError when a field
        declaration cannot be compiled or a generated name clashes with an
        existing attribute.
        """
        if not (isinstance(cls, type) and issubclass(cls, Entity)):
            raise TypeError(f"{cls!r} must subclass Entity to be compiled")

        if "__dataclass_fields__" not in cls.__dict__:
            cls = dataclasses.dataclass(cls)

        attrs = extract_table_attrs(table_attrs, cls.__name__)
        table_name = snake_case(attrs.rename or cls.__name__)
        fields = self.introspector.introspect(cls)

        schema = EntitySchema(
            name=cls.__name__,
            table_name=table_name,
            fields=tuple(fields),
            aliases=tuple(attrs.alias_names()),
            identifier=self.identifier,
        )

        tables = build_naming_tables(table_name, schema.fields, schema.aliases)
        parsers = build_parsers(cls, schema, tables)
        alias_parsers = {
            f"parse_{alias}": group
            for alias, group in parsers.aliases.items()
            if alias.isidentifier()
        }
        taken = ENTITY_ATTRIBUTES | {f.name for f in schema.fields}
        for method_name in alias_parsers:
            if method_name in taken:
                raise SchemaStructureError(
                    cls.__name__, f"alias parser '{method_name}' clashes with an existing attribute"
                )
        attach_accessors(
            cls, schema, self.default_id_size, reserved=ENTITY_ATTRIBUTES | set(alias_parsers)
        )

        cls.__schema__ = schema
        cls.plain = tables.plain
        cls.tabled = tables.tabled
        cls.renamed = tables.renamed
        cls.aliased = tables.aliased
        cls.parsers = parsers
        cls.__updater__ = UpdateStatementBuilder(schema, parsers.base)

        for method_name, group in alias_parsers.items():
            setattr(cls, method_name, staticmethod(group.parse))

        if cls.__name__ in self.schemas and self.entities[cls.__name__] is not cls:
            logger.warning(f"Entity {cls.__name__} compiled again, replacing the registered schema")

        self.schemas[cls.__name__] = schema
        self.entities[cls.__name__] = cls
        self.tables[cls.__name__] = tables

        logger.debug(
            f"Compiled {cls.__name__} -> {table_name} "
            f"({len(schema.attributed_fields)} columns, aliases: {list(schema.aliases)})"
        )
        return cls

    def get_entity(self, name: str) -> type:
        if name not in self.entities:
            raise ValueError(f"Entity '{name}' not found in registry")
        return self.entities[name]

    def describe(self, name: str) -> Dict[str, Any]:
        """Compiled naming tables and statements of one entity."""
        schema = self.schemas.get(name)
        if schema is None:
            raise ValueError(f"Entity '{name}' not found in registry")
        tables = self.tables[name]

        update = None
        if schema.has_identifier and schema.update_fields:
            assignments = [f.render(i) for i, f in enumerate(schema.update_fields, start=1)]
            update = (
                f"UPDATE {schema.table_name} SET {', '.join(assignments)} "
                f"WHERE {schema.identifier} = ${len(assignments) + 1} "
                f"RETURNING {tables.aliased.ALL}"
            )

        return {
            "entity": schema.name,
            "table": schema.table_name,
            "fields": [f.model_dump() for f in schema.fields],
            "plain": tables.plain.to_dict(),
            "tabled": tables.tabled.to_dict(),
            "renamed": tables.renamed.to_dict(),
            "aliased": tables.aliased.to_dict(),
            "aliases": {
                alias: {
                    "renamed": naming.renamed.to_dict(),
                    "aliased": naming.aliased.to_dict(),
                }
                for alias, naming in tables.aliases.items()
            },
            "update": update,
        }


# Default compiler used by the decorator
COMPILER = SchemaCompiler()


def postgresql(cls: Optional[type] = None, **table_attrs):
    """
    Class decorator compiling an entity with the default compiler.
    Usable bare (``@postgresql``) or with ``rename``/``alias``.
    """
    def wrap(target: type) -> type:
        return COMPILER.compile(target, **table_attrs)

    if cls is None:
        return wrap
    return wrap(cls)
