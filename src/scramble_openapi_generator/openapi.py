"""In-memory OpenAPI document model built by the generator."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

import structlog

from .json_types import MutableJSONObject, JSONValue

logger = structlog.get_logger(__name__)

OPENAPI_VERSION = "3.1.0"


@dataclass
class InfoObject:
    """The ``info`` block of the document."""

    title: str
    version: str = "0.0.1"
    description: str = ""

    def to_dict(self) -> MutableJSONObject:
        """Serialize to an OpenAPI mapping."""
        result: MutableJSONObject = {"title": self.title, "version": self.version}
        if self.description:
            result["description"] = self.description
        return result


@dataclass
class ServerVariable:
    """A templated variable of a server URL."""

    default: str = ""
    description: str = ""

    def to_dict(self) -> MutableJSONObject:
        """Serialize to an OpenAPI mapping."""
        result: MutableJSONObject = {"default": self.default}
        if self.description:
            result["description"] = self.description
        return result


@dataclass
class Server:
    """A server the API is reachable at."""

    url: str
    description: str = ""
    variables: dict[str, ServerVariable] = field(default_factory=dict)

    def to_dict(self) -> MutableJSONObject:
        """Serialize to an OpenAPI mapping."""
        result: MutableJSONObject = {"url": self.url}
        if self.description:
            result["description"] = self.description
        if self.variables:
            result["variables"] = {
                name: variable.to_dict() for name, variable in self.variables.items()
            }
        return result


@dataclass
class Parameter:
    """A path, query, header or cookie parameter."""

    name: str
    location: str
    required: bool = False
    description: str = ""
    schema: MutableJSONObject = field(default_factory=dict)

    def to_dict(self) -> MutableJSONObject:
        """Serialize to an OpenAPI mapping."""
        result: MutableJSONObject = {"name": self.name, "in": self.location}
        if self.required or self.location == "path":
            result["required"] = True
        if self.description:
            result["description"] = self.description
        result["schema"] = dict(self.schema)
        return result


@dataclass
class RequestBody:
    """A request body with one schema per media type."""

    content: dict[str, MutableJSONObject] = field(default_factory=dict)
    required: bool = False
    description: str = ""

    def to_dict(self) -> MutableJSONObject:
        """Serialize to an OpenAPI mapping."""
        result: MutableJSONObject = {}
        if self.description:
            result["description"] = self.description
        result["content"] = {
            media_type: {"schema": schema} for media_type, schema in self.content.items()
        }
        if self.required:
            result["required"] = True
        return result


@dataclass
class Response:
    """A response declared for one status code."""

    description: str = ""
    content: dict[str, MutableJSONObject] = field(default_factory=dict)

    def to_dict(self) -> MutableJSONObject:
        """Serialize to an OpenAPI mapping."""
        result: MutableJSONObject = {"description": self.description}
        if self.content:
            result["content"] = {
                media_type: {"schema": schema} for media_type, schema in self.content.items()
            }
        return result


@dataclass
class Operation:
    """Accumulator for the analysis result of one route.

    Extensions mutate this record in turn; every field starts out empty so an
    extension never depends on another having run first.
    """

    method: str
    path: str = ""
    operation_id: Optional[str] = None
    summary: str = ""
    description: str = ""
    tags: list[str] = field(default_factory=list)
    parameters: list[Parameter] = field(default_factory=list)
    request_body: Optional[RequestBody] = None
    responses: dict[str, Response] = field(default_factory=dict)
    deprecated: bool = False
    servers: list[Server] = field(default_factory=list)

    def add_parameter(self, parameter: Parameter) -> None:
        """Add a parameter, replacing one with the same name and location."""
        self.parameters = [
            existing
            for existing in self.parameters
            if (existing.name, existing.location) != (parameter.name, parameter.location)
        ]
        self.parameters.append(parameter)

    def to_dict(self) -> MutableJSONObject:
        """Serialize to an OpenAPI mapping."""
        result: MutableJSONObject = {}
        if self.operation_id:
            result["operationId"] = self.operation_id
        if self.tags:
            result["tags"] = list(self.tags)
        if self.summary:
            result["summary"] = self.summary
        if self.description:
            result["description"] = self.description
        if self.parameters:
            result["parameters"] = [parameter.to_dict() for parameter in self.parameters]
        if self.request_body is not None:
            result["requestBody"] = self.request_body.to_dict()
        responses = self.responses or {"200": Response()}
        result["responses"] = {
            status: responses[status].to_dict() for status in sorted(responses)
        }
        if self.deprecated:
            result["deprecated"] = True
        if self.servers:
            result["servers"] = [server.to_dict() for server in self.servers]
        return result


@dataclass
class Path:
    """Operations sharing one path template."""

    path: str
    operations: dict[str, Operation] = field(default_factory=dict)
    servers: list[Server] = field(default_factory=list)

    def add_operation(self, operation: Operation) -> Path:
        """Register an operation under its HTTP method."""
        method = operation.method.upper()
        if method in self.operations:
            logger.warning("path.operation_replaced", path=self.path, method=method)
        self.operations[method] = operation
        return self

    def to_dict(self) -> MutableJSONObject:
        """Serialize to an OpenAPI path item."""
        result: MutableJSONObject = {}
        if self.servers:
            result["servers"] = [server.to_dict() for server in self.servers]
        for method, operation in self.operations.items():
            result[method.lower()] = operation.to_dict()
        return result


@dataclass
class Components:
    """Reusable schemas referenced from operations."""

    schemas: dict[str, MutableJSONObject] = field(default_factory=dict)

    def has_schema(self, name: str) -> bool:
        """Return whether a schema is registered under ``name``."""
        return name in self.schemas

    def add_schema(self, name: str, schema: MutableJSONObject) -> MutableJSONObject:
        """Register a schema and return a reference to it."""
        self.schemas[name] = schema
        return self.reference(name)

    @staticmethod
    def reference(name: str) -> MutableJSONObject:
        """Return a ``$ref`` pointing at a named component schema."""
        return {"$ref": f"#/components/schemas/{name}"}

    def to_dict(self) -> MutableJSONObject:
        """Serialize to an OpenAPI components mapping."""
        schemas: dict[str, JSONValue] = {name: self.schemas[name] for name in sorted(self.schemas)}
        return {"schemas": schemas}


@dataclass
class OpenApi:
    """Root of the generated document."""

    info: InfoObject
    openapi: str = OPENAPI_VERSION
    servers: list[Server] = field(default_factory=list)
    paths: list[Path] = field(default_factory=list)
    webhooks: list[Path] = field(default_factory=list)
    components: Components = field(default_factory=Components)

    def add_server(self, server: Server) -> OpenApi:
        """Append a document-level server."""
        self.servers.append(server)
        return self

    def add_path(self, path: Path) -> OpenApi:
        """Fold a path into the regular path collection."""
        _fold_path(self.paths, path)
        return self

    def add_webhook_path(self, path: Path) -> OpenApi:
        """Fold a path into the webhook path collection."""
        _fold_path(self.webhooks, path)
        return self

    def find_path(self, path: str) -> Optional[Path]:
        """Return the regular path registered for ``path``."""
        for candidate in self.paths:
            if candidate.path == path:
                return candidate
        return None

    def to_dict(self) -> MutableJSONObject:
        """Serialize the whole document."""
        result: MutableJSONObject = {
            "openapi": self.openapi,
            "info": self.info.to_dict(),
        }
        if self.servers:
            result["servers"] = [server.to_dict() for server in self.servers]
        result["paths"] = {f"/{path.path}": path.to_dict() for path in self.paths}
        if self.webhooks:
            result["webhooks"] = {f"/{path.path}": path.to_dict() for path in self.webhooks}
        if self.components.schemas:
            result["components"] = self.components.to_dict()
        return result


def _fold_path(collection: list[Path], path: Path) -> None:
    for existing in collection:
        if existing.path != path.path:
            continue
        for operation in path.operations.values():
            existing.add_operation(operation)
        if path.servers and not existing.servers:
            existing.servers = list(path.servers)
        return
    collection.append(path)
