"""
Schema compiler package: PostgreSQL entity naming tables, accessors,
row parsers and update statements generated from one field declaration.
"""

from schema_compiler.nulls import (
    Null,
    NullState,
    new,
    null,
    undefined
)

from schema_compiler.errors import (
    SchemaError,
    SchemaStructureError,
    QueryError,
    NotFoundError
)

from schema_compiler.models import (
    TableAttrs,
    ColumnAttrs,
    FieldDescriptor,
    UpdateField,
    EntitySchema,
    snake_case
)

from schema_compiler.introspector import FieldIntrospector
from schema_compiler.naming import NamingTable, NamingTables, build_naming_tables
from schema_compiler.parsers import RowParserGroup, ParserRegistry
from schema_compiler.update import UpdateStatementBuilder
from schema_compiler.compiler import (
    Entity,
    SchemaCompiler,
    COMPILER,
    column,
    postgresql
)

__all__ = [
    'Null',
    'NullState',
    'new',
    'null',
    'undefined',
    'SchemaError',
    'SchemaStructureError',
    'QueryError',
    'NotFoundError',
    'TableAttrs',
    'ColumnAttrs',
    'FieldDescriptor',
    'UpdateField',
    'EntitySchema',
    'snake_case',
    'FieldIntrospector',
    'NamingTable',
    'NamingTables',
    'build_naming_tables',
    'RowParserGroup',
    'ParserRegistry',
    'UpdateStatementBuilder',
    'Entity',
    'SchemaCompiler',
    'COMPILER',
    'column',
    'postgresql'
]

__version__ = "1.0.0"
