"""Operation extensions and their default order."""

from __future__ import annotations

from .base import OperationExtension
from .deprecation import DeprecationExtension
from .request_body import RequestBodyExtension
from .request_essentials import RequestEssentialsExtension
from .response import ResponseExtension
from .rules_extractor import (
    RequestObjectRulesExtractor,
    ValidationNodesResult,
    ValidationRuleEntry,
)

DEFAULT_EXTENSIONS: tuple[type[OperationExtension], ...] = (
    RequestEssentialsExtension,
    RequestBodyExtension,
    ResponseExtension,
    DeprecationExtension,
)

__all__ = [
    "DEFAULT_EXTENSIONS",
    "DeprecationExtension",
    "OperationExtension",
    "RequestBodyExtension",
    "RequestEssentialsExtension",
    "RequestObjectRulesExtractor",
    "ResponseExtension",
    "ValidationNodesResult",
    "ValidationRuleEntry",
]
