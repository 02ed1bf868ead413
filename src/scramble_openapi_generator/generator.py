"""High-level generator orchestration."""

from __future__ import annotations

import traceback
from collections.abc import Callable, Iterable, Sequence
from typing import Optional

import structlog

from .config import GeneratorConfig
from .extensions import DEFAULT_EXTENSIONS, OperationExtension
from .infer import Infer
from .json_types import MutableJSONObject
from .merger import move_same_alternative_servers_to_path
from .openapi import InfoObject, OpenApi, Operation, Path, Server
from .operation_builder import OperationBuilder
from .parsing import FileParser
from .route_info import RouteInfo
from .routing import Route, RouteResolver, discover

logger = structlog.get_logger(__name__)

type OpenApiExtender = Callable[[OpenApi], None]
type RouteErrorHandler = Callable[[Route, Exception], None]


def raise_route_error(route: Route, exc: Exception) -> None:
    """Abort the run on the first route that fails analysis."""
    raise exc


def skip_route_error(route: Route, exc: Exception) -> None:
    """Leave a failing route out of the document and keep going."""
    logger.warning(
        "route.skipped",
        method=route.method,
        uri=route.uri,
        action=route.action,
        error=str(exc),
    )


class Generator:
    """Build an OpenAPI document from a route table.

    Every call to :meth:`generate` takes a fresh snapshot of ``routes`` and
    starts from an empty parse cache, so the route table must be iterable
    more than once.
    """

    def __init__(
        self,
        routes: Iterable[Route],
        *,
        config: Optional[GeneratorConfig] = None,
        infer: Optional[Infer] = None,
        file_parser: Optional[FileParser] = None,
        extensions: Sequence[type[OperationExtension]] = DEFAULT_EXTENSIONS,
        route_resolver: Optional[RouteResolver] = None,
        openapi_extender: Optional[OpenApiExtender] = None,
        on_route_error: RouteErrorHandler = raise_route_error,
    ) -> None:
        self._routes = routes
        self._config = config or GeneratorConfig()
        self._infer = infer or Infer()
        self._file_parser = file_parser or FileParser()
        self._route_resolver = route_resolver
        self._openapi_extender = openapi_extender
        self._on_route_error = on_route_error
        self._operation_builder = OperationBuilder(
            infer=self._infer,
            config=self._config,
            file_parser=self._file_parser,
            extensions=extensions,
        )

    @property
    def config(self) -> GeneratorConfig:
        """Configuration the generator was built with."""
        return self._config

    def __call__(self) -> MutableJSONObject:
        return self.generate().to_dict()

    def generate(self) -> OpenApi:
        """Run one generation over the current route table."""
        self._file_parser.clear()
        routes = list(self._routes)
        openapi = self.make_openapi()
        api_path = self._config.api_path
        webhook_path = self._config.webhook_path

        for operation in self.routes_to_operations(openapi, self.get_routes(routes, api_path)):
            openapi.add_path(
                Path(path=_path_key(operation.path, api_path)).add_operation(operation)
            )
        for operation in self.routes_to_operations(openapi, self.get_routes(routes, webhook_path)):
            openapi.add_webhook_path(
                Path(path=_path_key(operation.path, webhook_path)).add_operation(operation)
            )

        if self._openapi_extender is not None:
            self._openapi_extender(openapi)
        move_same_alternative_servers_to_path(openapi)

        logger.debug(
            "generation.completed",
            paths=len(openapi.paths),
            webhooks=len(openapi.webhooks),
            parsed_files=len(self._file_parser),
        )
        return openapi

    def make_openapi(self) -> OpenApi:
        """Create the document with its info block and servers."""
        config = self._config
        openapi = OpenApi(
            info=InfoObject(
                title=config.app_name,
                version=config.info.version,
                description=config.info.description,
            )
        )

        servers = dict(config.servers)
        if not servers:
            domain = config.api_domain or ""
            if domain and "://" not in domain:
                domain = f"{config.default_protocol}://{domain}"
            servers[""] = f"{domain}/{config.api_path}"

        for description, url in servers.items():
            openapi.add_server(Server(url=config.url(url or "/"), description=description))
        return openapi

    def get_routes(self, routes: Iterable[Route], path: str) -> list[Route]:
        """Return the routes to document under ``path``."""
        return discover(
            routes,
            path,
            config=self._config,
            route_resolver=self._route_resolver,
        )

    def routes_to_operations(self, openapi: OpenApi, routes: Iterable[Route]) -> list[Operation]:
        """Analyze routes in order; closures yield no operation."""
        operations: list[Operation] = []
        for route in routes:
            try:
                operation = self.route_to_operation(openapi, route)
            except Exception as exc:
                self._report_route_error(route, exc)
                self._on_route_error(route, exc)
                continue
            if operation is not None:
                operations.append(operation)
        return operations

    def route_to_operation(self, openapi: OpenApi, route: Route) -> Optional[Operation]:
        """Build one route's operation, ``None`` when the handler is not class-based."""
        route_info = RouteInfo(route, self._file_parser, self._infer)
        if not route_info.is_class_based():
            return None
        return self._operation_builder.build(route_info, openapi)

    def _report_route_error(self, route: Route, exc: Exception) -> None:
        frames = traceback.extract_tb(exc.__traceback__)
        location = f"{frames[-1].filename} on line {frames[-1].lineno}" if frames else "unknown"
        message = f"Error when analyzing route '{route.method} {route.uri}' ({route.action})"
        exc.add_note(f"{message}: {exc} - {location}")
        if self._config.debug:
            logger.error(
                "route.analysis_failed",
                method=route.method,
                uri=route.uri,
                action=route.action,
                error=str(exc),
                location=location,
            )


def _path_key(path: str, prefix: str) -> str:
    key = path.lstrip("/")
    prefix = prefix.strip("/")
    if prefix and key.startswith(prefix):
        key = key[len(prefix) :]
    return key.strip("/")
