"""Per-route view of a handler: its source node, docstring and module namespace."""

from __future__ import annotations

import ast
import inspect
import sys
from functools import cached_property
from typing import Any, Optional

from .infer import Infer
from .parsing import DocBlock, FileParser, FunctionNode, parse_docblock
from .routing import HandlerRef, HandlerResolutionError, Route


class RouteInfo:
    """Route plus its resolved handler, as seen by operation extensions."""

    def __init__(self, route: Route, file_parser: FileParser, infer: Infer) -> None:
        self.route = route
        self.file_parser = file_parser
        self.infer = infer

    @property
    def method(self) -> str:
        """Primary HTTP method of the route."""
        return self.route.method

    @property
    def uri(self) -> str:
        """URI template as registered."""
        return self.route.uri

    @cached_property
    def handler_ref(self) -> Optional[HandlerRef]:
        """Handler class and method, ``None`` for closures."""
        return self.route.handler_ref()

    def is_class_based(self) -> bool:
        """Whether the handler is a method of a class."""
        return self.handler_ref is not None

    @property
    def class_name(self) -> Optional[str]:
        """Handler class name."""
        return self.handler_ref.cls.__name__ if self.handler_ref else None

    @property
    def method_name(self) -> Optional[str]:
        """Handler method name."""
        return self.handler_ref.method_name if self.handler_ref else None

    @cached_property
    def method_node(self) -> Optional[FunctionNode]:
        """The handler's function node, parsed from the class's source file."""
        handler_ref = self.handler_ref
        if handler_ref is None:
            return None
        try:
            source_file = inspect.getsourcefile(handler_ref.cls)
        except TypeError as exc:
            raise HandlerResolutionError(
                f"No source file available for {handler_ref.cls.__qualname__}"
            ) from exc
        if source_file is None:
            raise HandlerResolutionError(
                f"No source file available for {handler_ref.cls.__qualname__}"
            )
        parsed = self.file_parser.parse(source_file)
        return parsed.find_method(f"{handler_ref.cls.__qualname__}@{handler_ref.method_name}")

    @cached_property
    def doc(self) -> DocBlock:
        """Parsed docstring of the handler; empty when it has none."""
        node = self.method_node
        if node is None:
            return DocBlock()
        return parse_docblock(ast.get_docstring(node, clean=True))

    @cached_property
    def namespace(self) -> dict[str, Any]:
        """Globals of the handler's module, used to resolve annotations."""
        if self.handler_ref is None:
            return {}
        module = sys.modules.get(self.handler_ref.cls.__module__)
        namespace = dict(vars(module)) if module is not None else {}
        namespace.setdefault(self.handler_ref.cls.__name__, self.handler_ref.cls)
        return namespace
