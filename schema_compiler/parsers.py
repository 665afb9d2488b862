"""
Row parsers.

One parser group for the base table and one per join alias. A group reads
columns by its renamed keys, so ``users_name`` feeds the base parser and
``owner_name`` the ``owner`` parser of the same entity.
"""

import logging
import types
import typing
from types import MappingProxyType
from typing import Any, Iterator, Mapping, Optional, Union

from schema_compiler.errors import NotFoundError, SchemaStructureError
from schema_compiler.models import EntitySchema
from schema_compiler.naming import NamingTable, NamingTables
from schema_compiler.nulls import Null

logger = logging.getLogger(__name__)

MISSING = object()

_UNION_TYPES = (Union, getattr(types, "UnionType", Union))


def matches_type(value: Any, expected: Any) -> bool:
    """Loose runtime check of a column value against a resolved annotation."""
    if expected is None or expected is Any:
        return True

    origin = typing.get_origin(expected) or expected
    if origin in _UNION_TYPES:
        return any(
            matches_type(value, arg)
            for arg in typing.get_args(expected)
            if arg is not type(None)
        )
    if not isinstance(origin, type):
        return True
    if origin is int and isinstance(value, bool):
        return False

    return isinstance(value, origin)


def extract(row: Any, key: str, expected: Any = None) -> Any:
    """
    Typed column extraction.
    Returns MISSING when the key is absent, the value is NULL, or the value
    has the wrong type.
    """
    try:
        value = row[key]
    except (LookupError, TypeError):
        return MISSING

    if value is None or not matches_type(value, expected):
        return MISSING
    return value


class RowParserGroup:
    """
    Parser, result and relational wrappers over one renamed projection,
    bundled with the matching select list.
    """

    def __init__(
        self,
        entity_cls: type,
        schema: EntitySchema,
        name: str,
        renamed: NamingTable,
        aliased: NamingTable
    ):
        self.entity_cls = entity_cls
        self.schema = schema
        self.name = name
        self.renamed = renamed
        self.aliased = aliased

    @property
    def ALL(self) -> str:
        """Select list for this group."""
        return self.aliased.ALL

    def __getattr__(self, name: str) -> str:
        aliased = self.__dict__.get("aliased")
        if aliased is None or name not in aliased.constants:
            raise AttributeError(f"{type(self).__name__} has no attribute {name!r}")
        return aliased.constants[name]

    def parse(self, row: Any) -> Any:
        """Build an entity from a row; unreadable columns stay unset."""
        data = self.entity_cls()

        for f in self.schema.attributed_fields:
            key = self.renamed.column(f.name)
            value = extract(row, key, f.value_type)

            if value is MISSING:
                logger.debug(f"{self.schema.name}: column {key} unavailable, leaving {f.name} unset")
                if f.is_nullable:
                    setattr(data, f.name, Null.undefined())
                continue

            setattr(data, f.name, Null.new(value) if f.is_nullable else value)

        return data

    def result(self, row: Union[Any, BaseException, None]) -> Any:
        """
        Parse the outcome of a single-row fetch.

        ``row`` is the fetched record, or the exception (or None) the fetch
        produced. Raises NotFoundError when the fetch failed or the record
        parses to an empty entity.
        """
        if row is None or isinstance(row, BaseException):
            cause = row if isinstance(row, BaseException) else None
            raise NotFoundError(self.schema.table_name) from cause

        data = self.parse(row)
        if data.is_empty():
            raise NotFoundError(self.schema.table_name)
        return data

    def relational(self, row: Any) -> Null:
        """Parse a joined sub-record: undefined when empty."""
        data = self.parse(row)
        if data.is_empty():
            return Null.undefined()
        return Null.new(data)

    def __repr__(self) -> str:
        return f"RowParserGroup({self.schema.name}, {self.name!r})"


class ParserRegistry:
    """
    Base parser group plus alias groups looked up by alias name.
    Built once per entity; the mapping is read-only.
    """

    def __init__(self, base: RowParserGroup, aliases: Mapping[str, RowParserGroup]):
        self._base = base
        self._aliases = MappingProxyType(dict(aliases))

    @property
    def base(self) -> RowParserGroup:
        return self._base

    @property
    def aliases(self) -> Mapping[str, RowParserGroup]:
        return self._aliases

    def parse(self, row: Any) -> Any:
        return self._base.parse(row)

    def result(self, row: Any) -> Any:
        return self._base.result(row)

    def relational(self, row: Any) -> Null:
        return self._base.relational(row)

    def get(self, alias: str) -> Optional[RowParserGroup]:
        return self._aliases.get(alias.lower())

    def __getitem__(self, alias: str) -> RowParserGroup:
        group = self.get(alias)
        if group is None:
            raise KeyError(f"Alias '{alias}' is not declared on {self._base.schema.name}")
        return group

    def __getattr__(self, alias: str) -> RowParserGroup:
        if alias.startswith("_"):
            raise AttributeError(alias)
        group = self.get(alias)
        if group is None:
            raise AttributeError(f"Alias '{alias}' is not declared on {self._base.schema.name}")
        return group

    def __contains__(self, alias: str) -> bool:
        return alias.lower() in self._aliases

    def __iter__(self) -> Iterator[str]:
        return iter(self._aliases)

    def __len__(self) -> int:
        return len(self._aliases)


# Alias names that would be shadowed by registry attributes
RESERVED_ALIASES = frozenset(name for name in dir(ParserRegistry) if not name.startswith("_"))


def check_aliases(schema: EntitySchema) -> None:
    """Reject aliases that attribute access on the registry cannot reach."""
    for alias in schema.aliases:
        if alias in RESERVED_ALIASES:
            raise SchemaStructureError(
                schema.name,
                f"alias '{alias}' clashes with a parser registry attribute"
            )


def build_parsers(entity_cls: type, schema: EntitySchema, tables: NamingTables) -> ParserRegistry:
    """One group for the table and one per alias, in alias declaration order."""
    check_aliases(schema)
    base = RowParserGroup(entity_cls, schema, schema.table_name, tables.renamed, tables.aliased)
    aliases = {
        alias: RowParserGroup(entity_cls, schema, alias, naming.renamed, naming.aliased)
        for alias, naming in tables.aliases.items()
    }
    return ParserRegistry(base, aliases)
