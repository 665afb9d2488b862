"""
Column naming tables.

Each attributed field is projected onto four SQL forms, one table per form:

    plain    name
    tabled   users.name
    renamed  users_name
    aliased  users.name AS users_name

Join aliases get their own renamed/aliased tables, prefixed with the alias
name instead of the table name, so the same column can appear once per
joined entity in a single SELECT list.
"""

from types import MappingProxyType
from typing import Dict, Iterator, List, Mapping, Sequence, Tuple

from schema_compiler.models import FieldDescriptor


class NamingTable:
    """
    Immutable table of column texts, one constant per field.

    Constants are the upper-cased plain column names (``table.NAME``);
    ``ALL`` joins every text in declaration order.
    """

    __slots__ = ("name", "_entries", "_constants", "_by_field", "_all")

    def __init__(self, name: str, entries: Sequence[Tuple[str, str, str]]):
        constants = {}
        by_field = {}
        for field_name, constant, text in entries:
            constants[constant] = text
            by_field[field_name] = text

        object.__setattr__(self, "name", name)
        object.__setattr__(self, "_entries", tuple(entries))
        object.__setattr__(self, "_constants", MappingProxyType(constants))
        object.__setattr__(self, "_by_field", MappingProxyType(by_field))
        object.__setattr__(self, "_all", ", ".join(text for _, _, text in entries))

    @property
    def ALL(self) -> str:
        return self._all

    @property
    def constants(self) -> Mapping[str, str]:
        return self._constants

    def column(self, field_name: str) -> str:
        """Text for a field by its declared name."""
        try:
            return self._by_field[field_name]
        except KeyError:
            raise KeyError(f"Field '{field_name}' is not a column of {self.name}") from None

    def texts(self) -> List[str]:
        return [text for _, _, text in self._entries]

    def __getattr__(self, name: str) -> str:
        if name.startswith("_"):
            raise AttributeError(name)
        try:
            return self._constants[name]
        except KeyError:
            raise AttributeError(f"{self.name} has no column constant {name}") from None

    def __getitem__(self, key: str) -> str:
        if key in self._constants:
            return self._constants[key]
        return self.column(key)

    def __setattr__(self, name, value):
        raise AttributeError("Naming tables are immutable")

    def __iter__(self) -> Iterator[str]:
        return iter(self._constants)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"NamingTable({self.name!r}, {dict(self._constants)!r})"

    def to_dict(self) -> Dict[str, str]:
        data = dict(self._constants)
        data["ALL"] = self._all
        return data


class AliasNaming:
    """Renamed and aliased tables scoped to one join alias."""

    __slots__ = ("alias", "renamed", "aliased")

    def __init__(self, alias: str, renamed: NamingTable, aliased: NamingTable):
        self.alias = alias
        self.renamed = renamed
        self.aliased = aliased


class NamingTables:
    """The four global tables plus one AliasNaming per declared alias."""

    __slots__ = ("table", "plain", "tabled", "renamed", "aliased", "aliases")

    def __init__(
        self,
        table: str,
        plain: NamingTable,
        tabled: NamingTable,
        renamed: NamingTable,
        aliased: NamingTable,
        aliases: Mapping[str, AliasNaming]
    ):
        self.table = table
        self.plain = plain
        self.tabled = tabled
        self.renamed = renamed
        self.aliased = aliased
        self.aliases = MappingProxyType(dict(aliases))


def build_naming_tables(
    table: str,
    fields: Sequence[FieldDescriptor],
    aliases: Sequence[str] = ()
) -> NamingTables:
    """
    Project attributed fields onto the naming tables.
    Unattributed fields are skipped; order follows ``fields``.
    """
    plain, tabled, renamed, aliased = [], [], [], []
    scoped: Dict[str, Tuple[list, list]] = {a: ([], []) for a in aliases}

    for f in fields:
        if not f.is_attributed:
            continue

        column = f.plain
        constant = column.upper()
        tabled_text = f"{table}.{column}"
        renamed_text = f"{table}_{column}"

        plain.append((f.name, constant, column))
        tabled.append((f.name, constant, tabled_text))
        renamed.append((f.name, constant, renamed_text))
        aliased.append((f.name, constant, f"{tabled_text} AS {renamed_text}"))

        for alias, (alias_renamed, alias_aliased) in scoped.items():
            alias_text = f"{alias}_{column}"
            alias_renamed.append((f.name, constant, alias_text))
            alias_aliased.append((f.name, constant, f"{tabled_text} AS {alias_text}"))

    return NamingTables(
        table=table,
        plain=NamingTable("plain", plain),
        tabled=NamingTable("tabled", tabled),
        renamed=NamingTable("renamed", renamed),
        aliased=NamingTable("aliased", aliased),
        aliases={
            alias: AliasNaming(
                alias,
                NamingTable(f"{alias}.renamed", alias_renamed),
                NamingTable(f"{alias}.aliased", alias_aliased),
            )
            for alias, (alias_renamed, alias_aliased) in scoped.items()
        },
    )
