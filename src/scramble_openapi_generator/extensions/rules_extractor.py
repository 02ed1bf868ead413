"""Validation rules declared by request-object parameters of a handler."""

from __future__ import annotations

import ast
import inspect
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Optional

import structlog

from ..form_request import RuleExpression, Rules
from ..infer import Infer, handler_parameters
from ..parsing import FileParser, FunctionNode
from ..routing import HandlerResolutionError, Route

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ValidationRuleEntry:
    """One rule item of a ``rules()`` body with its preceding comment.

    ``rule`` is the literal value as written, ``None`` when it is computed.
    """

    field: str
    rule: Optional[RuleExpression]
    description: Optional[str]


@dataclass(frozen=True)
class ValidationNodesResult:
    """Documented rule items found in one ``rules()`` method."""

    entries: tuple[ValidationRuleEntry, ...]

    def descriptions(self) -> dict[str, str]:
        """Return the documented fields mapped to their comment text."""
        return {entry.field: entry.description for entry in self.entries if entry.description}


class RequestObjectRulesExtractor:
    """Rules of the request objects a handler declares as parameters.

    A parameter qualifies when its annotation resolves to a class exposing a
    callable ``rules``. The rule values come from instantiating that class;
    their documentation comes from the source of its ``rules`` method.
    """

    def __init__(
        self,
        handler: Optional[FunctionNode],
        namespace: Mapping[str, Any],
        *,
        file_parser: FileParser,
        infer: Infer,
    ) -> None:
        self._handler = handler
        self._namespace = namespace
        self._file_parser = file_parser
        self._infer = infer

    def should_handle(self) -> bool:
        """Whether the handler declares at least one request-object parameter."""
        return bool(self.request_classes())

    def request_classes(self) -> list[type]:
        """Return the qualifying parameter classes in declaration order."""
        if self._handler is None:
            return []
        classes: list[type] = []
        for parameter in handler_parameters(self._handler):
            cls = self._infer.resolve_class(parameter.annotation, self._namespace)
            if cls is not None and callable(getattr(cls, "rules", None)) and cls not in classes:
                classes.append(cls)
        return classes

    def nodes(self) -> list[Optional[ValidationNodesResult]]:
        """Return documented rule items per request class, ``None`` where it has no source ``rules``."""
        return [self._node(cls) for cls in self.request_classes()]

    def extract(self, route: Route) -> Rules:
        """Merge the rules of every request class, simulating the route's HTTP method."""
        merged: Rules = {}
        for cls in self.request_classes():
            rules = self._extract_rules(route, cls)
            overlapping = sorted(set(merged) & set(rules))
            if overlapping:
                logger.warning(
                    "rules.overlapping_fields",
                    uri=route.uri,
                    request_class=cls.__qualname__,
                    fields=overlapping,
                )
            merged.update(rules)
        return merged

    def descriptions(self) -> dict[str, str]:
        """Return documented field descriptions across every request class."""
        descriptions: dict[str, str] = {}
        for result in self.nodes():
            if result is not None:
                descriptions.update(result.descriptions())
        return descriptions

    def _node(self, cls: type, *, documented_only: bool = True) -> Optional[ValidationNodesResult]:
        try:
            source_file = inspect.getsourcefile(cls)
        except TypeError as exc:
            raise HandlerResolutionError(f"No source file available for {cls.__qualname__}") from exc
        if source_file is None:
            raise HandlerResolutionError(f"No source file available for {cls.__qualname__}")

        parsed = self._file_parser.parse(source_file)
        rules_node = parsed.find_method(f"{cls.__qualname__}@rules")
        if rules_node is None:
            return None

        entries: list[ValidationRuleEntry] = []
        dict_nodes = [node for node in ast.walk(rules_node) if isinstance(node, ast.Dict)]
        for dict_node in dict_nodes:
            for key, value in zip(dict_node.keys, dict_node.values):
                if not isinstance(key, ast.Constant) or not isinstance(key.value, str):
                    continue
                description = parsed.comment_before(key)
                if description is None and documented_only:
                    continue
                entries.append(
                    ValidationRuleEntry(
                        field=key.value,
                        rule=_static_rule(value),
                        description=description,
                    )
                )
        return ValidationNodesResult(entries=tuple(entries))

    def _extract_rules(self, route: Route, cls: type) -> Rules:
        try:
            request = cls()
        except TypeError as exc:
            return self._static_rules(route, cls, exc)
        set_method = getattr(request, "set_method", None)
        if callable(set_method):
            set_method(route.method)
        else:
            request.method = route.method
        return dict(request.rules())

    def _static_rules(self, route: Route, cls: type, exc: TypeError) -> Rules:
        """Read the rule literals from the source of a class that needs constructor arguments."""
        result = self._node(cls, documented_only=False)
        if result is None:
            raise exc
        logger.warning(
            "rules.static_fallback",
            uri=route.uri,
            request_class=cls.__qualname__,
            error=str(exc),
        )
        return {entry.field: entry.rule for entry in result.entries if entry.rule is not None}


def _static_rule(node: ast.expr) -> Optional[RuleExpression]:
    try:
        return ast.literal_eval(node)
    except (ValueError, TypeError, SyntaxError):
        return None
