"""
Field introspection.
Extracts the ordered field list of an entity declaration with per-field
metadata: type text, unwrapped inner type, wrapper detection and the
column marker.
"""

import ast
import dataclasses
import logging
import re
import typing
from typing import Any, Dict, List, Mapping, Optional, Tuple

from pydantic import ValidationError

from schema_compiler.errors import SchemaStructureError
from schema_compiler.models import ColumnAttrs, FieldDescriptor, TableAttrs
from schema_compiler.nulls import Null

logger = logging.getLogger(__name__)

# Matches the outermost generic: Wrapper[Inner]
GENERIC_PATTERN = re.compile(r"^[^\[]*\[(.+)\]$")
NULL_PREFIX = "null["

# Raised by get_type_hints for names or expressions it cannot evaluate
HINT_ERRORS = (NameError, AttributeError, TypeError, SyntaxError)

# Attribute names generated on every entity class
RESERVED_NAMES = frozenset({
    "plain", "tabled", "renamed", "aliased", "parsers", "parse",
    "update", "to", "to_json", "to_jsonb", "respond", "is_empty", "clear_all",
})

_TYPE_NODES = (
    ast.Expression, ast.Name, ast.Attribute, ast.Subscript, ast.Tuple,
    ast.List, ast.Constant, ast.Load, ast.BinOp, ast.BitOr,
)


def render_type(annotation: Any) -> str:
    """Render a declared annotation to compact text, e.g. ``Null[str]``."""
    if isinstance(annotation, type) and not typing.get_args(annotation):
        return annotation.__name__

    text = annotation if isinstance(annotation, str) else repr(annotation)
    text = text.replace("<locals>.", "")
    text = re.sub(r"<class '(?:[\w\.]+\.)?(\w+)'>", r"\1", text)
    # Drop module qualifiers: schema_compiler.nulls.Null -> Null
    text = re.sub(r"\b(?:[A-Za-z_]\w*\.)+([A-Za-z_]\w*)", r"\1", text)

    return text.replace(" ", "")


def parse_type_expression(text: str) -> Optional[ast.Expression]:
    """Parse text as a type expression; None when it is not one."""
    try:
        tree = ast.parse(text, mode="eval")
    except SyntaxError:
        return None

    for node in ast.walk(tree):
        if not isinstance(node, _TYPE_NODES):
            return None
        if isinstance(node, ast.Constant) and not (node.value is None or isinstance(node.value, str)):
            return None
        if isinstance(node, ast.BinOp) and not isinstance(node.op, ast.BitOr):
            return None

    return tree


def parse_inner_type(text: str) -> str:
    """
    Unwrap a single-level generic: ``Null[int]`` -> ``int``.
    Non-generic and multi-argument types are returned unchanged.
    """
    match = GENERIC_PATTERN.match(text)
    if match:
        inner = match.group(1)
        tree = parse_type_expression(inner)
        if tree is not None and not isinstance(tree.body, ast.Tuple):
            return inner
    return text


def is_null_type(declared: Any) -> bool:
    """
    True for ``Null[...]`` annotations. Resolved annotations are checked by
    their generic origin; unresolved ones fall back to the rendered text.
    """
    if isinstance(declared, str):
        return render_type(declared).lower().startswith(NULL_PREFIX)
    return typing.get_origin(declared) is Null


def extract_table_attrs(raw: Mapping[str, Any], entity: str = "") -> TableAttrs:
    """Validate table attributes, falling back to defaults when malformed."""
    try:
        return TableAttrs.model_validate(dict(raw))
    except (ValidationError, TypeError, ValueError) as e:
        logger.warning(f"Ignoring malformed table attributes on {entity}: {e}")
        return TableAttrs()


def extract_column_attrs(raw: Any) -> ColumnAttrs:
    """Validate a column marker. True and None mean a bare marker."""
    if raw is True or raw is None:
        raw = {}
    return ColumnAttrs.model_validate(raw)


class FieldIntrospector:
    """
    Walks the fields of a dataclass entity in declaration order.
    """

    def __init__(self, attribute: str = "column"):
        self.attribute = attribute

    def introspect(self, cls: type) -> List[FieldDescriptor]:
        """
        Build descriptors for every field of ``cls``.

        Raises SchemaStructureError when a declared type is not a valid type
        expression, a field has no default, or a field name is reserved.
        A malformed column marker only resets that field's metadata.
        """
        if not dataclasses.is_dataclass(cls):
            raise SchemaStructureError(cls.__name__, "entity must be a dataclass")

        hints = self._type_hints(cls)
        descriptors = []

        for f in dataclasses.fields(cls):
            if f.name in RESERVED_NAMES:
                raise SchemaStructureError(cls.__name__, f"field name '{f.name}' is reserved")
            if f.default is dataclasses.MISSING and f.default_factory is dataclasses.MISSING:
                raise SchemaStructureError(
                    cls.__name__,
                    f"field '{f.name}' needs a default so the entity can be built empty"
                )

            declared = render_type(f.type)
            if parse_type_expression(declared) is None:
                raise SchemaStructureError(
                    cls.__name__,
                    f"field '{f.name}' has an invalid type expression: {declared!r}"
                )

            inner = parse_inner_type(declared)
            is_attributed, attrs = self._column_attrs(cls.__name__, f)
            declared_runtime = hints.get(f.name)
            nullable = is_null_type(f.type if declared_runtime is None else declared_runtime)

            descriptors.append(FieldDescriptor(
                name=f.name,
                declared_type=declared,
                inner_type=inner,
                is_nullable=nullable,
                is_attributed=is_attributed,
                attrs=attrs,
                declared_runtime=declared_runtime,
                inner_runtime=self._inner_runtime(declared_runtime, nullable),
            ))

        return descriptors

    def _column_attrs(self, entity: str, f: dataclasses.Field) -> Tuple[bool, ColumnAttrs]:
        if self.attribute not in f.metadata:
            return False, ColumnAttrs()

        try:
            return True, extract_column_attrs(f.metadata[self.attribute])
        except (ValidationError, TypeError, ValueError) as e:
            logger.warning(
                f"Ignoring malformed '{self.attribute}' marker on {entity}.{f.name}: {e}"
            )
            return False, ColumnAttrs()

    def _type_hints(self, cls: type) -> Dict[str, Any]:
        """
        Runtime annotations of ``cls``. When the class as a whole cannot be
        resolved, fields are resolved one by one and the failures are left
        out, so those fields get no runtime type check.
        """
        localns = {cls.__name__: cls, "Null": Null}
        try:
            return typing.get_type_hints(cls, localns=localns, include_extras=True)
        except HINT_ERRORS as e:
            logger.debug(f"Resolving {cls.__name__} annotations field by field: {e}")

        hints = {}
        for f in dataclasses.fields(cls):
            holder = type(cls.__name__, (), {
                "__annotations__": {f.name: f.type},
                "__module__": cls.__module__,
            })
            try:
                hints.update(typing.get_type_hints(holder, localns=localns, include_extras=True))
            except HINT_ERRORS as e:
                logger.debug(f"Could not resolve {cls.__name__}.{f.name} annotation {f.type!r}: {e}")
        return hints

    @staticmethod
    def _inner_runtime(declared_runtime: Any, nullable: bool) -> Any:
        if declared_runtime is None or not nullable:
            return declared_runtime
        args = typing.get_args(declared_runtime)
        return args[0] if len(args) == 1 else None
