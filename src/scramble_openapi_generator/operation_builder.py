"""Run the ordered extension pipeline over one route."""

from __future__ import annotations

from collections.abc import Sequence

from .config import GeneratorConfig
from .extensions import DEFAULT_EXTENSIONS, OperationExtension
from .infer import Infer
from .openapi import OpenApi, Operation
from .parsing import FileParser
from .route_info import RouteInfo
from .routing import path_template


class OperationBuilder:
    """Build an :class:`Operation` by applying extensions in their configured order."""

    def __init__(
        self,
        *,
        infer: Infer,
        config: GeneratorConfig,
        file_parser: FileParser,
        extensions: Sequence[type[OperationExtension]] = DEFAULT_EXTENSIONS,
    ) -> None:
        self._infer = infer
        self._config = config
        self._file_parser = file_parser
        self._extensions = tuple(extensions)

    @property
    def extensions(self) -> tuple[type[OperationExtension], ...]:
        """Extension classes in the order they run."""
        return self._extensions

    def build(self, route_info: RouteInfo, openapi: OpenApi) -> Operation:
        """Build the operation of a class-based route."""
        operation = Operation(method=route_info.method, path=path_template(route_info.uri))
        for extension_class in self._extensions:
            extension = extension_class(
                infer=self._infer,
                components=openapi.components,
                config=self._config,
                file_parser=self._file_parser,
            )
            extension.handle(operation, route_info)
        return operation
