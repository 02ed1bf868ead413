"""Mark operations deprecated from their handler docstring."""

from __future__ import annotations

from ..openapi import Operation
from ..route_info import RouteInfo
from .base import OperationExtension


class DeprecationExtension(OperationExtension):
    """Set ``deprecated`` when the handler docstring carries a ``@deprecated`` tag."""

    def handle(self, operation: Operation, route_info: RouteInfo) -> None:
        for tag in route_info.doc.tags:
            if tag.name == "@deprecated":
                operation.deprecated = True
                break
