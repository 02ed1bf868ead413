"""Static OpenAPI generation from route tables and handler source."""

from __future__ import annotations

from .cli import main
from .config import GeneratorConfig, load_config
from .extensions import OperationExtension
from .form_request import FormRequest
from .generator import Generator, raise_route_error, skip_route_error
from .routing import Route, RouteRegistry

__all__ = [
    "FormRequest",
    "Generator",
    "GeneratorConfig",
    "OperationExtension",
    "Route",
    "RouteRegistry",
    "load_config",
    "main",
    "raise_route_error",
    "skip_route_error",
]
