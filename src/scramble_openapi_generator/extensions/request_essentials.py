"""Identity, documentation text, path parameters and alternate servers of an operation."""

from __future__ import annotations

import ast
import re
from typing import Optional

from ..infer import handler_parameters
from ..json_types import MutableJSONObject
from ..openapi import Operation, Parameter, Server, ServerVariable
from ..route_info import RouteInfo
from ..routing import path_parameters
from .base import OperationExtension

_CONVERTER_SCHEMAS: dict[str, MutableJSONObject] = {
    "int": {"type": "integer"},
    "float": {"type": "number"},
    "uuid": {"type": "string", "format": "uuid"},
    "path": {"type": "string"},
    "str": {"type": "string"},
}
_CLASS_SUFFIXES: tuple[str, ...] = ("Controller", "View", "Handler")
_DOMAIN_VARIABLE_RE = re.compile(r"\{(?P<name>[A-Za-z_]\w*)\}")


class RequestEssentialsExtension(OperationExtension):
    """Fill in what every operation has regardless of its body or responses."""

    def handle(self, operation: Operation, route_info: RouteInfo) -> None:
        if operation.operation_id is None:
            operation.operation_id = route_info.route.name or (
                f"{route_info.class_name}.{route_info.method_name}"
            )
        if not operation.tags and route_info.class_name:
            operation.tags = [_tag_name(route_info.class_name)]

        doc = route_info.doc
        operation.summary = operation.summary or doc.summary
        operation.description = operation.description or doc.description

        for parameter in self._path_parameters(route_info):
            operation.add_parameter(parameter)

        server = self._alternative_server(route_info.route.domain)
        if server is not None and not operation.servers:
            operation.servers = [server]

    def _path_parameters(self, route_info: RouteInfo) -> list[Parameter]:
        annotations: dict[str, Optional[ast.expr]] = {}
        if route_info.method_node is not None:
            annotations = {
                argument.arg: argument.annotation
                for argument in handler_parameters(route_info.method_node)
            }
        descriptions = {
            name: text
            for name, _, text in (
                tag.value.partition(" ") for tag in route_info.doc.tags if tag.name == "@param"
            )
        }

        parameters: list[Parameter] = []
        for name, converter in path_parameters(route_info.uri):
            schema = self.infer.annotation_schema(
                annotations.get(name), route_info.namespace, self.components
            )
            if not schema:
                schema = dict(_CONVERTER_SCHEMAS.get(converter or "str", {"type": "string"}))
            parameters.append(
                Parameter(
                    name=name,
                    location="path",
                    required=True,
                    description=descriptions.get(name, "").strip(),
                    schema=schema,
                )
            )
        return parameters

    def _alternative_server(self, domain: Optional[str]) -> Optional[Server]:
        if not domain or domain == self.config.api_domain:
            return None
        base = domain if "://" in domain else f"{self.config.default_protocol}://{domain}"
        api_path = self.config.api_path.strip("/")
        return Server(
            url=f"{base.rstrip('/')}/{api_path}" if api_path else base.rstrip("/"),
            variables={
                match.group("name"): ServerVariable()
                for match in _DOMAIN_VARIABLE_RE.finditer(domain)
            },
        )


def _tag_name(class_name: str) -> str:
    for suffix in _CLASS_SUFFIXES:
        if class_name.endswith(suffix) and class_name != suffix:
            return class_name[: -len(suffix)]
    return class_name
