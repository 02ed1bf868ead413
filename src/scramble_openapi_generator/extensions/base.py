"""Common interface of operation extensions."""

from __future__ import annotations

from abc import ABC, abstractmethod

from ..config import GeneratorConfig
from ..infer import Infer
from ..openapi import Components, Operation
from ..parsing import FileParser
from ..route_info import RouteInfo


class OperationExtension(ABC):
    """One analyzer contributing to an :class:`Operation`.

    Extensions are built per route with the document's components and must
    not rely on any other extension having run before them.
    """

    def __init__(
        self,
        *,
        infer: Infer,
        components: Components,
        config: GeneratorConfig,
        file_parser: FileParser,
    ) -> None:
        self.infer = infer
        self.components = components
        self.config = config
        self.file_parser = file_parser

    @abstractmethod
    def handle(self, operation: Operation, route_info: RouteInfo) -> None:
        """Read the route and update ``operation`` in place."""
