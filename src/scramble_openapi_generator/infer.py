"""Annotation resolution and schema inference for handler signatures."""

from __future__ import annotations

import ast
import builtins
import datetime
import decimal
import enum
import uuid
from collections.abc import Mapping
from typing import Any, Optional

from pydantic import BaseModel

from .json_types import JSONValue, MutableJSONObject
from .openapi import Components
from .parsing import FunctionNode

_SCALAR_SCHEMAS: dict[type, MutableJSONObject] = {
    bool: {"type": "boolean"},
    int: {"type": "integer"},
    float: {"type": "number"},
    decimal.Decimal: {"type": "number"},
    str: {"type": "string"},
    bytes: {"type": "string", "format": "binary"},
    datetime.datetime: {"type": "string", "format": "date-time"},
    datetime.date: {"type": "string", "format": "date"},
    datetime.time: {"type": "string", "format": "time"},
    uuid.UUID: {"type": "string", "format": "uuid"},
    dict: {"type": "object"},
    list: {"type": "array"},
}

_ARRAY_ORIGINS = frozenset({"list", "List", "Sequence", "Iterable", "set", "Set", "frozenset", "tuple", "Tuple"})
_MAPPING_ORIGINS = frozenset({"dict", "Dict", "Mapping", "MutableMapping"})
_SELF_NAMES = frozenset({"self", "cls"})


def handler_parameters(node: FunctionNode) -> list[ast.arg]:
    """Return the declared parameters of a method, without ``self``/``cls``."""
    arguments = node.args
    positional = [*arguments.posonlyargs, *arguments.args]
    if positional and positional[0].arg in _SELF_NAMES:
        positional = positional[1:]
    return [*positional, *arguments.kwonlyargs]


class Infer:
    """Resolve annotation nodes against a module namespace without running handler code."""

    def resolve_annotation(
        self,
        annotation: Optional[ast.expr],
        namespace: Mapping[str, Any],
    ) -> Optional[Any]:
        """Resolve an annotation node to the object it names.

        Subscripted annotations resolve to their origin; unions and anything
        that is not a plain name lookup resolve to ``None``.
        """
        if annotation is None:
            return None
        if isinstance(annotation, ast.Constant):
            if isinstance(annotation.value, str):
                return self.resolve_annotation(_parse_string_annotation(annotation.value), namespace)
            return None
        if isinstance(annotation, ast.Name):
            if annotation.id in namespace:
                return namespace[annotation.id]
            return getattr(builtins, annotation.id, None)
        if isinstance(annotation, ast.Attribute):
            owner = self.resolve_annotation(annotation.value, namespace)
            return getattr(owner, annotation.attr, None) if owner is not None else None
        if isinstance(annotation, ast.Subscript):
            return self.resolve_annotation(annotation.value, namespace)
        return None

    def resolve_class(
        self,
        annotation: Optional[ast.expr],
        namespace: Mapping[str, Any],
    ) -> Optional[type]:
        """Resolve an annotation node to a class, or ``None``."""
        value = self.resolve_annotation(annotation, namespace)
        return value if isinstance(value, type) else None

    def annotation_schema(
        self,
        annotation: Optional[ast.expr],
        namespace: Mapping[str, Any],
        components: Components,
    ) -> MutableJSONObject:
        """Map an annotation node to a JSON schema fragment; unknown types map to ``{}``."""
        if annotation is None:
            return {}
        if isinstance(annotation, ast.Constant):
            if annotation.value is None:
                return {"type": "null"}
            if isinstance(annotation.value, str):
                return self.annotation_schema(
                    _parse_string_annotation(annotation.value), namespace, components
                )
            return {}
        if isinstance(annotation, ast.BinOp) and isinstance(annotation.op, ast.BitOr):
            members = _flatten_bitor(annotation)
            return _union_schema(
                [self.annotation_schema(member, namespace, components) for member in members]
            )
        if isinstance(annotation, ast.Subscript):
            return self._subscript_schema(annotation, namespace, components)
        return self.python_type_schema(self.resolve_annotation(annotation, namespace), components)

    def python_type_schema(self, value: Optional[Any], components: Components) -> MutableJSONObject:
        """Map a runtime type to a JSON schema fragment."""
        if not isinstance(value, type):
            return {}
        if value is type(None):
            return {"type": "null"}
        if issubclass(value, BaseModel):
            return self.register_model(value, components)
        if issubclass(value, enum.Enum):
            values: list[JSONValue] = [member.value for member in value]
            return {"enum": values}
        for python_type, schema in _SCALAR_SCHEMAS.items():
            if value is python_type:
                return dict(schema)
        for python_type, schema in _SCALAR_SCHEMAS.items():
            if issubclass(value, python_type):
                return dict(schema)
        return {}

    @staticmethod
    def register_model(model: type[BaseModel], components: Components) -> MutableJSONObject:
        """Hoist a pydantic model (and its nested definitions) into components."""
        name = model.__name__
        if components.has_schema(name):
            return components.reference(name)
        schema = model.model_json_schema(ref_template="#/components/schemas/{model}")
        definitions = schema.pop("$defs", {})
        for definition_name, definition in definitions.items():
            if not components.has_schema(definition_name):
                components.add_schema(definition_name, definition)
        return components.add_schema(name, schema)

    def _subscript_schema(
        self,
        annotation: ast.Subscript,
        namespace: Mapping[str, Any],
        components: Components,
    ) -> MutableJSONObject:
        origin = self.resolve_annotation(annotation.value, namespace)
        origin_name = getattr(origin, "__name__", None) or getattr(origin, "_name", None)
        if origin_name is None and isinstance(annotation.value, (ast.Name, ast.Attribute)):
            origin_name = _dotted_tail(annotation.value)
        arguments = _subscript_arguments(annotation)

        if origin_name == "Optional" and arguments:
            return _union_schema(
                [self.annotation_schema(arguments[0], namespace, components), {"type": "null"}]
            )
        if origin_name == "Union":
            return _union_schema(
                [self.annotation_schema(argument, namespace, components) for argument in arguments]
            )
        if origin_name == "Annotated" and arguments:
            return self.annotation_schema(arguments[0], namespace, components)
        if origin_name == "Literal":
            values: list[JSONValue] = [
                argument.value for argument in arguments if isinstance(argument, ast.Constant)
            ]
            return {"enum": values}
        if origin_name in _ARRAY_ORIGINS:
            schema: MutableJSONObject = {"type": "array"}
            if arguments:
                items = self.annotation_schema(arguments[0], namespace, components)
                if items:
                    schema["items"] = items
            return schema
        if origin_name in _MAPPING_ORIGINS:
            schema = {"type": "object"}
            if len(arguments) == 2:
                values_schema = self.annotation_schema(arguments[1], namespace, components)
                if values_schema:
                    schema["additionalProperties"] = values_schema
            return schema
        return self.python_type_schema(origin, components)


def _parse_string_annotation(value: str) -> Optional[ast.expr]:
    try:
        return ast.parse(value, mode="eval").body
    except SyntaxError:
        return None


def _flatten_bitor(node: ast.expr) -> list[ast.expr]:
    if isinstance(node, ast.BinOp) and isinstance(node.op, ast.BitOr):
        return [*_flatten_bitor(node.left), *_flatten_bitor(node.right)]
    return [node]


def _subscript_arguments(node: ast.Subscript) -> list[ast.expr]:
    if isinstance(node.slice, ast.Tuple):
        return list(node.slice.elts)
    return [node.slice]


def _dotted_tail(node: ast.expr) -> Optional[str]:
    if isinstance(node, ast.Name):
        return node.id
    if isinstance(node, ast.Attribute):
        return node.attr
    return None


def _union_schema(schemas: list[MutableJSONObject]) -> MutableJSONObject:
    nullable = any(schema == {"type": "null"} for schema in schemas)
    members = [schema for schema in schemas if schema != {"type": "null"}]
    if any(not schema for schema in members):
        return {}
    if len(members) == 1:
        member = dict(members[0])
        if not nullable:
            return member
        member_type = member.get("type")
        if isinstance(member_type, str):
            member["type"] = [member_type, "null"]
            return member
        return {"anyOf": [member, {"type": "null"}]}
    options: list[JSONValue] = list(members)
    if nullable:
        options.append({"type": "null"})
    return {"anyOf": options}
