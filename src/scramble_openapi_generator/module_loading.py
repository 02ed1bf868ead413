"""Import an application's route table from a module or file reference."""

from __future__ import annotations

import importlib
import importlib.util
from pathlib import Path
import sys
from types import ModuleType
from typing import Any

from .routing import Route, RouteRegistry


class RouteLoadError(RuntimeError):
    """Raised when a route table reference cannot be imported."""


def load_module_from_path(*, module_name: str, module_path: Path) -> ModuleType:
    """Load a module from file path and register it in ``sys.modules``.

    The module stays registered so handler classes defined in it can be
    resolved by module name during generation.

    Args:
        module_name (str): Import name for the module.
        module_path (Path): File system path to the Python module.

    Returns:
        ModuleType: Imported Python module object.
    """
    spec = importlib.util.spec_from_file_location(module_name, module_path)
    if spec is None or spec.loader is None:
        raise RouteLoadError(f"Unable to import module from: {module_path}")

    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except Exception:
        sys.modules.pop(module_name, None)
        raise
    return module


def load_route_table(reference: str) -> RouteRegistry:
    """Load routes from ``package.module:attribute`` or ``path/to/file.py:attribute``.

    The attribute may be a :class:`RouteRegistry`, any iterable of
    :class:`Route`, or a zero-argument callable returning one of those.
    """
    target, separator, attribute = reference.rpartition(":")
    if not separator or not target or not attribute:
        raise RouteLoadError(f"Route reference must look like 'module:attribute', got {reference!r}")

    module = _import_target(target)
    try:
        value: Any = getattr(module, attribute)
    except AttributeError as exc:
        raise RouteLoadError(f"{target} has no attribute {attribute!r}") from exc

    if callable(value) and not isinstance(value, RouteRegistry):
        value = value()
    if isinstance(value, RouteRegistry):
        return value
    try:
        routes = list(value)
    except TypeError as exc:
        raise RouteLoadError(f"{reference} is not an iterable of routes") from exc
    invalid = [item for item in routes if not isinstance(item, Route)]
    if invalid:
        raise RouteLoadError(f"{reference} contains non-route entries: {invalid[:3]!r}")
    return RouteRegistry(routes)


def _import_target(target: str) -> ModuleType:
    if target.endswith(".py"):
        module_path = Path(target).resolve()
        if not module_path.is_file():
            raise RouteLoadError(f"Route file not found: {module_path}")
        if str(module_path.parent) not in sys.path:
            sys.path.insert(0, str(module_path.parent))
        return load_module_from_path(module_name=module_path.stem, module_path=module_path)
    try:
        return importlib.import_module(target)
    except ImportError as exc:
        raise RouteLoadError(f"Unable to import route module {target}: {exc}") from exc
