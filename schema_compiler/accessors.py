"""
Accessor synthesis.
Attaches getters, setters, clearers and copy builders for every entity field.
"""

import dataclasses
import logging
from typing import AbstractSet, Any, Callable, Dict

from schema_compiler import ids
from schema_compiler.errors import SchemaStructureError
from schema_compiler.models import EntitySchema, FieldDescriptor
from schema_compiler.nulls import Null

logger = logging.getLogger(__name__)

STRING_TYPES = frozenset({"str"})
STRING_LIST_TYPES = frozenset({"list[str]", "List[str]"})


def unwrap(value: Any) -> Any:
    """Plain value of a field: Null wrappers give their value or None."""
    if isinstance(value, Null):
        return value.take()
    return value


def converter_for(field: FieldDescriptor) -> Callable[[Any], Any]:
    """Conversion applied by setters, chosen from the inner type."""
    if field.inner_type in STRING_TYPES:
        return str
    if field.inner_type in STRING_LIST_TYPES:
        return lambda values: [s for s in (str(v) for v in values) if s]
    return lambda value: value


def make_getter(field: FieldDescriptor) -> Callable:
    name = field.name

    def getter(self):
        return unwrap(getattr(self, name))

    getter.__doc__ = f"Value of {name}, or None when it is not set."
    return getter


def make_setter(field: FieldDescriptor) -> Callable:
    name = field.name
    convert = converter_for(field)
    nullable = field.is_nullable

    def setter(self, value):
        value = convert(value)
        setattr(self, name, Null.new(value) if nullable else value)
        return self

    setter.__doc__ = f"Set {name} as present."
    return setter


def make_opt_setter(field: FieldDescriptor) -> Callable:
    name = field.name
    convert = converter_for(field)
    nullable = field.is_nullable

    def setter(self, value):
        if value is not None:
            value = convert(value)
            setattr(self, name, Null.new(value) if nullable else value)
        return self

    setter.__doc__ = f"Set {name} only when value is not None."
    return setter


def make_clearer(field: FieldDescriptor) -> Callable:
    name = field.name

    def clearer(self):
        setattr(self, name, Null.undefined())
        return self

    clearer.__doc__ = f"Reset {name} to undefined."
    return clearer


def make_builder(field: FieldDescriptor) -> Callable:
    name = field.name
    nullable = field.is_nullable

    def builder(self, value):
        if nullable and not isinstance(value, Null):
            value = Null.new(value)
        return dataclasses.replace(self, **{name: value})

    builder.__doc__ = f"Copy of the entity with {name} replaced."
    return builder


def make_insert_id(field: FieldDescriptor, default_size: str) -> Callable:
    name = field.name
    nullable = field.is_nullable

    def set_insert_id(self, size=default_size):
        """
        Assign a fresh identifier of the given size class (sm, md, lg, max)
        when the entity has none. Existing identifiers are kept.
        """
        if not unwrap(getattr(self, name)):
            value = ids.generate(size)
            setattr(self, name, Null.new(value) if nullable else value)
        return self

    return set_insert_id


def _add(methods: Dict[str, Callable], schema: EntitySchema, name: str, func: Callable) -> None:
    if name in methods:
        raise SchemaStructureError(schema.name, f"generated method '{name}' is produced by two fields")
    methods[name] = func


def build_accessors(
    schema: EntitySchema,
    default_id_size: str = "sm"
) -> Dict[str, Callable]:
    """
    Accessor functions keyed by method name.
    Raises SchemaStructureError when two fields generate the same name.
    """
    methods = {}

    for f in schema.fields:
        _add(methods, schema, f"get_{f.name}", make_getter(f))
        _add(methods, schema, f"set_{f.name}", make_setter(f))
        _add(methods, schema, f"set_opt_{f.name}", make_opt_setter(f))
        _add(methods, schema, f"with_{f.name}", make_builder(f))

        if f.is_nullable:
            _add(methods, schema, f"clear_{f.name}", make_clearer(f))

        if f.name == schema.identifier:
            _add(methods, schema, "set_insert_id", make_insert_id(f, default_id_size))

    return methods


def attach_accessors(
    cls: type,
    schema: EntitySchema,
    default_id_size: str = "sm",
    reserved: AbstractSet[str] = frozenset()
) -> None:
    """
    Install accessors on the entity class.

    Methods already defined in the class body are left in place. A generated
    name that matches a field or a ``reserved`` base attribute is a
    SchemaStructureError, checked before anything is installed.
    """
    methods = build_accessors(schema, default_id_size)
    field_names = {f.name for f in schema.fields}

    for method_name in methods:
        if method_name in field_names or method_name in reserved:
            raise SchemaStructureError(
                schema.name,
                f"generated method '{method_name}' clashes with an existing attribute"
            )

    for method_name, func in methods.items():
        if method_name in cls.__dict__:
            logger.debug(f"{cls.__name__}.{method_name} defined explicitly, not generated")
            continue

        func.__name__ = method_name
        func.__qualname__ = f"{cls.__name__}.{method_name}"
        func.__module__ = cls.__module__
        setattr(cls, method_name, func)
