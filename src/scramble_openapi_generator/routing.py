"""Route table records, handler resolution and route discovery."""

from __future__ import annotations

import importlib
import inspect
import re
from collections.abc import Callable, Iterable, Iterator, Sequence
from dataclasses import dataclass
from typing import Any, Optional, Union

import structlog

from .config import GeneratorConfig

logger = structlog.get_logger(__name__)

RESERVED_ROUTE_NAME_PREFIX = "scramble"
ONLY_DOCS_MARKER = "@only-docs"

_PATH_PARAM_RE = re.compile(r"\{(?P<name>[A-Za-z_]\w*)(?::(?P<converter>\w+))?(?P<optional>\?)?\}")

type Handler = Union[str, tuple[type, str], Callable[..., Any]]
type RouteResolver = Callable[[Route, str], bool]


class HandlerResolutionError(RuntimeError):
    """Raised when a class-based handler reference cannot be resolved."""


@dataclass(frozen=True)
class HandlerRef:
    """A handler resolved to its class and method name."""

    cls: type
    method_name: str

    @property
    def action(self) -> str:
        """Return the ``module.Class@method`` form of the handler."""
        return f"{self.cls.__module__}.{self.cls.__qualname__}@{self.method_name}"

    def method(self) -> Callable[..., Any]:
        """Return the handler function as declared on the class."""
        try:
            return getattr(self.cls, self.method_name)
        except AttributeError as exc:
            raise HandlerResolutionError(
                f"Handler class {self.cls.__qualname__} has no method {self.method_name!r}"
            ) from exc


@dataclass(frozen=True)
class Route:
    """One registered route of the application.

    ``handler`` is either a ``(cls, "method")`` tuple, a
    ``"package.module:Class@method"`` string, a function declared on a class,
    or any other callable, which is treated as a closure.
    """

    methods: tuple[str, ...]
    uri: str
    handler: Handler
    name: Optional[str] = None
    domain: Optional[str] = None

    @property
    def method(self) -> str:
        """Return the primary HTTP method."""
        return self.methods[0]

    @property
    def is_class_based(self) -> bool:
        """Whether the handler has the shape of a class method reference."""
        return _handler_target(self.handler) is not None

    @property
    def action(self) -> Optional[str]:
        """Return a printable ``module.Class@method`` reference, or ``None`` for closures."""
        target = _handler_target(self.handler)
        if target is None:
            return None
        owner, method_name = target
        if isinstance(owner, type):
            return HandlerRef(cls=owner, method_name=method_name).action
        return f"{owner.replace(':', '.', 1)}@{method_name}"

    def resolve_handler(self) -> Optional[HandlerRef]:
        """Resolve the handler to a class and method, ``None`` for closures.

        Raises:
            HandlerResolutionError: The module, class or method does not exist.
        """
        target = _handler_target(self.handler)
        if target is None:
            return None
        owner, method_name = target
        cls = owner if isinstance(owner, type) else _import_class(owner)
        handler_ref = HandlerRef(cls=cls, method_name=method_name)
        handler_ref.method()
        return handler_ref

    def handler_ref(self) -> Optional[HandlerRef]:
        """Resolve the handler, ``None`` for closures and unresolvable references."""
        try:
            return self.resolve_handler()
        except HandlerResolutionError as exc:
            logger.debug("route.handler_unresolved", method=self.method, uri=self.uri, error=str(exc))
            return None


class RouteRegistry:
    """Ordered collection of routes an application registers."""

    def __init__(self, routes: Iterable[Route] = ()) -> None:
        self._routes: list[Route] = list(routes)

    def add(
        self,
        methods: Union[str, Sequence[str]],
        uri: str,
        handler: Handler,
        *,
        name: Optional[str] = None,
        domain: Optional[str] = None,
    ) -> Route:
        """Register a route and return it."""
        method_list = [methods] if isinstance(methods, str) else list(methods)
        route = Route(
            methods=tuple(method.upper() for method in method_list),
            uri=uri,
            handler=handler,
            name=name,
            domain=domain,
        )
        self._routes.append(route)
        return route

    def get(self, uri: str, handler: Handler, **kwargs: Any) -> Route:
        """Register a GET route."""
        return self.add("GET", uri, handler, **kwargs)

    def post(self, uri: str, handler: Handler, **kwargs: Any) -> Route:
        """Register a POST route."""
        return self.add("POST", uri, handler, **kwargs)

    def put(self, uri: str, handler: Handler, **kwargs: Any) -> Route:
        """Register a PUT route."""
        return self.add("PUT", uri, handler, **kwargs)

    def patch(self, uri: str, handler: Handler, **kwargs: Any) -> Route:
        """Register a PATCH route."""
        return self.add("PATCH", uri, handler, **kwargs)

    def delete(self, uri: str, handler: Handler, **kwargs: Any) -> Route:
        """Register a DELETE route."""
        return self.add("DELETE", uri, handler, **kwargs)

    def discover(
        self,
        path: str,
        *,
        config: GeneratorConfig,
        route_resolver: Optional[RouteResolver] = None,
    ) -> list[Route]:
        """Return the routes to document under ``path``; see :func:`discover`."""
        return discover(self, path, config=config, route_resolver=route_resolver)

    def __iter__(self) -> Iterator[Route]:
        return iter(self._routes)

    def __len__(self) -> int:
        return len(self._routes)


def default_route_resolver(config: GeneratorConfig) -> RouteResolver:
    """Build the default acceptance predicate: URI prefix plus expected domain."""
    expected_domain = config.api_domain

    def _resolve(route: Route, path: str) -> bool:
        return route.uri.lstrip("/").startswith(path) and (
            not expected_domain or route.domain == expected_domain
        )

    return _resolve


def discover(
    routes: Iterable[Route],
    path: str,
    *,
    config: GeneratorConfig,
    route_resolver: Optional[RouteResolver] = None,
) -> list[Route]:
    """Return the routes to document under ``path``, in registration order.

    Args:
        routes (Iterable[Route]): The application's route table.
        path (str): URI prefix of the route group, for example ``api``.
        config (GeneratorConfig): Generator configuration.
        route_resolver (Optional[RouteResolver]): Replacement acceptance predicate.

    Returns:
        list[Route]: Routes with a resolvable class-based handler accepted for documentation.
    """
    candidates = list(routes)
    only_route = next((route for route in candidates if _has_only_docs_marker(route)), None)
    if only_route is not None:
        candidates = [only_route]

    accept = route_resolver or default_route_resolver(config)
    return [
        route
        for route in candidates
        if not (route.name and route.name.startswith(RESERVED_ROUTE_NAME_PREFIX))
        and accept(route, path)
        and route.handler_ref() is not None
    ]


def _has_only_docs_marker(route: Route) -> bool:
    if not route.is_class_based:
        return False
    # Best-effort lookup: a handler that cannot be introspected carries no marker.
    try:
        handler_ref = route.handler_ref()
        if handler_ref is None:
            return False
        docstring = inspect.getdoc(handler_ref.method())
    except Exception:
        return False
    return ONLY_DOCS_MARKER in (docstring or "")


def _is_class_qualname(qualname: str) -> bool:
    return "." in qualname and "<locals>" not in qualname


def _handler_target(handler: Handler) -> Optional[tuple[Union[type, str], str]]:
    """Split a handler into its owner (class or ``module:Class`` text) and method name."""
    if isinstance(handler, str):
        if "@" not in handler:
            return None
        target, _, method_name = handler.partition("@")
        return target, method_name
    if isinstance(handler, tuple):
        cls, method_name = handler
        return cls, method_name
    if inspect.ismethod(handler):
        owner = handler.__self__ if isinstance(handler.__self__, type) else type(handler.__self__)
        return owner, handler.__name__
    if inspect.isfunction(handler) and _is_class_qualname(handler.__qualname__):
        return f"{handler.__module__}:{handler.__qualname__.rsplit('.', 1)[0]}", handler.__name__
    return None


def _import_class(reference: str) -> type:
    if ":" in reference:
        module_name, _, class_path = reference.partition(":")
    else:
        module_name, _, class_path = reference.rpartition(".")
    if not module_name or not class_path:
        raise HandlerResolutionError(f"Invalid handler reference: {reference!r}")
    return _import_attribute(module_name, class_path)


def _import_attribute(module_name: str, attribute_path: str) -> type:
    try:
        value: Any = importlib.import_module(module_name)
    except ImportError as exc:
        raise HandlerResolutionError(f"Unable to import handler module {module_name}: {exc}") from exc
    for part in attribute_path.split("."):
        try:
            value = getattr(value, part)
        except AttributeError as exc:
            raise HandlerResolutionError(
                f"Module {module_name} has no attribute {attribute_path!r}"
            ) from exc
    if not isinstance(value, type):
        raise HandlerResolutionError(f"{module_name}.{attribute_path} is not a class")
    return value


def path_template(uri: str) -> str:
    """Strip converters and optional markers: ``/users/{id:int}`` becomes ``/users/{id}``."""
    return _PATH_PARAM_RE.sub(lambda match: "{" + match.group("name") + "}", uri)


def path_parameters(uri: str) -> list[tuple[str, Optional[str]]]:
    """Return ``(name, converter)`` for every ``{name}`` or ``{name:converter}`` segment."""
    return [(match.group("name"), match.group("converter")) for match in _PATH_PARAM_RE.finditer(uri)]
