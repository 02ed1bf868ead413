"""Success response inferred from the handler's return annotation."""

from __future__ import annotations

import ast

from ..openapi import Operation, Response
from ..route_info import RouteInfo
from .base import OperationExtension


class ResponseExtension(OperationExtension):
    """Add the success response.

    ``-> None`` documents ``204``; a ``@status`` docstring tag overrides the
    status code of a response with content.
    """

    def handle(self, operation: Operation, route_info: RouteInfo) -> None:
        node = route_info.method_node
        returns = node.returns if node is not None else None

        if isinstance(returns, ast.Constant) and returns.value is None:
            operation.responses.setdefault("204", Response(description="No content"))
            return

        status = _status_code(route_info)
        schema = self.infer.annotation_schema(returns, route_info.namespace, self.components)
        content = {"application/json": schema} if schema else {}
        operation.responses.setdefault(status, Response(description="", content=content))


def _status_code(route_info: RouteInfo) -> str:
    for tag in route_info.doc.tags:
        if tag.name == "@status" and tag.value.strip().isdigit():
            return tag.value.strip()
    return "200"
