"""Query parameters or a JSON request body built from validation rules."""

from __future__ import annotations

from copy import deepcopy

from ..json_types import MutableJSONObject
from ..openapi import Operation, Parameter, RequestBody, Response
from ..route_info import RouteInfo
from ..rules_to_schema import rules_to_schema
from .base import OperationExtension
from .rules_extractor import RequestObjectRulesExtractor

_QUERY_METHODS = frozenset({"GET", "HEAD", "DELETE"})

VALIDATION_ERROR_SCHEMA: MutableJSONObject = {
    "type": "object",
    "properties": {
        "message": {"type": "string"},
        "errors": {
            "type": "object",
            "additionalProperties": {"type": "array", "items": {"type": "string"}},
        },
    },
    "required": ["message", "errors"],
}


class RequestBodyExtension(OperationExtension):
    """Describe the input a handler validates through its request objects.

    Rule values and their comments are both collected before any parameter or
    body schema is synthesized from them.
    """

    def handle(self, operation: Operation, route_info: RouteInfo) -> None:
        extractor = RequestObjectRulesExtractor(
            route_info.method_node,
            route_info.namespace,
            file_parser=self.file_parser,
            infer=self.infer,
        )
        if not extractor.should_handle():
            return

        rules = extractor.extract(route_info.route)
        descriptions = extractor.descriptions()
        if not rules:
            return

        schema = rules_to_schema(rules, descriptions)
        if route_info.method in _QUERY_METHODS:
            for parameter in _query_parameters(schema):
                operation.add_parameter(parameter)
        elif operation.request_body is None:
            operation.request_body = RequestBody(
                content={"application/json": schema},
                required=bool(schema.get("required")),
            )

        operation.responses.setdefault(
            "422",
            Response(
                description="Validation error",
                content={"application/json": deepcopy(VALIDATION_ERROR_SCHEMA)},
            ),
        )


def _query_parameters(schema: MutableJSONObject) -> list[Parameter]:
    properties = schema.get("properties")
    required = schema.get("required")
    required_fields = set(required) if isinstance(required, list) else set()
    if not isinstance(properties, dict):
        return []

    parameters: list[Parameter] = []
    for name, property_schema in properties.items():
        if not isinstance(property_schema, dict):
            continue
        field_schema = dict(property_schema)
        description = field_schema.pop("description", "")
        parameters.append(
            Parameter(
                name=name,
                location="query",
                required=name in required_fields,
                description=description if isinstance(description, str) else "",
                schema=field_schema,
            )
        )
    return parameters
