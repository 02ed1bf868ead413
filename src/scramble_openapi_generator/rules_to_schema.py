"""Map pipe-separated validation rules to JSON schema fragments."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Optional, Union

from .form_request import RuleExpression
from .json_types import JSONValue, MutableJSONObject

_TYPE_RULES: dict[str, MutableJSONObject] = {
    "string": {"type": "string"},
    "str": {"type": "string"},
    "integer": {"type": "integer"},
    "int": {"type": "integer"},
    "numeric": {"type": "number"},
    "number": {"type": "number"},
    "boolean": {"type": "boolean"},
    "bool": {"type": "boolean"},
    "array": {"type": "array"},
    "list": {"type": "array"},
    "dict": {"type": "object"},
    "file": {"type": "string", "format": "binary"},
    "image": {"type": "string", "format": "binary"},
}

_FORMAT_RULES: dict[str, str] = {
    "email": "email",
    "url": "uri",
    "uuid": "uuid",
    "date": "date",
    "date_time": "date-time",
    "ipv4": "ipv4",
    "ipv6": "ipv6",
}

_BOUNDS: dict[str, tuple[str, str]] = {
    "string": ("minLength", "maxLength"),
    "integer": ("minimum", "maximum"),
    "number": ("minimum", "maximum"),
    "array": ("minItems", "maxItems"),
}


def parse_rules(expression: RuleExpression) -> list[tuple[str, list[str]]]:
    """Split a rule expression into ``(name, arguments)`` pairs.

    Strings are split on ``|``; lists contribute their string items. Rule
    objects that are not strings carry no static meaning and are skipped.
    """
    if isinstance(expression, str):
        raw_rules = expression.split("|")
    elif isinstance(expression, (list, tuple)):
        raw_rules = [item for item in expression if isinstance(item, str)]
    else:
        return []

    parsed: list[tuple[str, list[str]]] = []
    for raw_rule in raw_rules:
        name, separator, argument_text = raw_rule.strip().partition(":")
        if not name:
            continue
        if not separator:
            parsed.append((name, []))
        elif name == "regex":
            parsed.append((name, [argument_text]))
        else:
            parsed.append((name, [argument.strip() for argument in argument_text.split(",")]))
    return parsed


def rule_schema(expression: RuleExpression) -> tuple[MutableJSONObject, bool]:
    """Return the schema fragment and required flag for one field's rules."""
    rules = parse_rules(expression)
    names = {name for name, _ in rules}

    schema: MutableJSONObject = {"type": "string"}
    for name, _ in rules:
        if name in _TYPE_RULES:
            schema = dict(_TYPE_RULES[name])
            break
    for name, _ in rules:
        if name in _FORMAT_RULES and schema.get("type") == "string":
            schema["format"] = _FORMAT_RULES[name]

    schema_type = schema.get("type")
    for name, arguments in rules:
        if name in {"min", "max", "between"} and isinstance(schema_type, str):
            _apply_bounds(schema, schema_type, name, arguments)
        elif name == "in" and arguments:
            values: list[JSONValue] = [_cast(value, schema_type) for value in arguments]
            schema["enum"] = values
        elif name == "regex" and arguments:
            schema["pattern"] = _strip_delimiters(arguments[0])

    if "nullable" in names and isinstance(schema_type, str):
        schema["type"] = [schema_type, "null"]
    return schema, "required" in names


def rules_to_schema(
    rules: Mapping[str, RuleExpression],
    descriptions: Optional[Mapping[str, str]] = None,
) -> MutableJSONObject:
    """Build an object schema from field rules; dotted names nest, ``*`` addresses items."""
    descriptions = descriptions or {}
    root: MutableJSONObject = {"type": "object", "properties": {}}
    for field_name, expression in rules.items():
        schema, required = rule_schema(expression)
        description = descriptions.get(field_name)
        if description:
            schema["description"] = description
        _place(root, field_name.split("."), schema, required)
    return root


def _place(node: MutableJSONObject, parts: list[str], schema: MutableJSONObject, required: bool) -> None:
    head, rest = parts[0], parts[1:]
    if head == "*":
        items = node.get("items")
        items_schema: MutableJSONObject = dict(items) if isinstance(items, dict) else {}
        if not rest:
            node["items"] = {**items_schema, **schema}
            return
        items_schema.setdefault("type", "object")
        node["items"] = items_schema
        _place(items_schema, rest, schema, required)
        return

    properties = node.get("properties")
    if not isinstance(properties, dict):
        properties = {}
        node["properties"] = properties
    if not rest:
        existing = properties.get(head)
        properties[head] = {**existing, **schema} if isinstance(existing, dict) else schema
        if required:
            required_fields = node.get("required")
            if not isinstance(required_fields, list):
                required_fields = []
                node["required"] = required_fields
            if head not in required_fields:
                required_fields.append(head)
        return

    child = properties.get(head)
    if not isinstance(child, dict):
        child = {"type": "object"}
        properties[head] = child
    _place(child, rest, schema, required)


def _apply_bounds(
    schema: MutableJSONObject, schema_type: str, name: str, arguments: list[str]
) -> None:
    keys = _BOUNDS.get(schema_type)
    if keys is None:
        return
    numbers = [_number(argument) for argument in arguments]
    if name == "min" and numbers and numbers[0] is not None:
        schema[keys[0]] = numbers[0]
    elif name == "max" and numbers and numbers[0] is not None:
        schema[keys[1]] = numbers[0]
    elif name == "between" and len(numbers) == 2:
        if numbers[0] is not None:
            schema[keys[0]] = numbers[0]
        if numbers[1] is not None:
            schema[keys[1]] = numbers[1]


def _number(value: str) -> Optional[Union[int, float]]:
    try:
        return int(value)
    except ValueError:
        pass
    try:
        return float(value)
    except ValueError:
        return None


def _cast(value: str, schema_type: JSONValue) -> JSONValue:
    if schema_type in {"integer", "number"}:
        number = _number(value)
        if number is not None:
            return number
    return value


def _strip_delimiters(pattern: str) -> str:
    if len(pattern) >= 2 and pattern[0] == "/" and pattern.rfind("/") > 0:
        return pattern[1 : pattern.rfind("/")]
    return pattern
