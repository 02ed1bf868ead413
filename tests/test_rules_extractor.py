"""Unit tests for request-object rule extraction and rule-to-schema mapping."""

from __future__ import annotations

import ast

from scramble_openapi_generator.extensions import (
    RequestObjectRulesExtractor,
    ValidationRuleEntry,
)
from scramble_openapi_generator.infer import Infer
from scramble_openapi_generator.parsing import FileParser
from scramble_openapi_generator.route_info import RouteInfo
from scramble_openapi_generator.routing import Route
from scramble_openapi_generator.rules_to_schema import parse_rules, rule_schema, rules_to_schema

from .fixtures.sample_app.controllers import (
    ProfileController,
    ScopedController,
    TokenController,
    UserController,
)
from .fixtures.sample_app.forms import InheritedUserRequest


def _extractor(route: Route) -> tuple[RequestObjectRulesExtractor, RouteInfo]:
    file_parser = FileParser()
    infer = Infer()
    route_info = RouteInfo(route, file_parser, infer)
    extractor = RequestObjectRulesExtractor(
        route_info.method_node,
        route_info.namespace,
        file_parser=file_parser,
        infer=infer,
    )
    return extractor, route_info


def test_extract_rules_for_post_route_is_exact() -> None:
    """The request object's rules for POST come back unchanged."""
    route = Route(methods=("POST",), uri="/api/users", handler=(UserController, "store"))
    extractor, _ = _extractor(route)

    assert extractor.should_handle()
    assert extractor.extract(route) == {"email": "required|email"}


def test_extract_rules_uses_simulated_http_method() -> None:
    """Rules keyed on the HTTP method see the route's method."""
    route = Route(methods=("PATCH",), uri="/api/users", handler=(UserController, "store"))
    extractor, _ = _extractor(route)
    assert extractor.extract(route) == {"email": "email"}


def test_plain_request_object_gets_method_attribute() -> None:
    """Classes without ``set_method`` receive the method as an attribute."""
    route = Route(methods=("POST",), uri="/api/tokens", handler=(TokenController, "issue"))
    extractor, _ = _extractor(route)
    assert extractor.extract(route) == {"token": "required|string|min:32"}


def test_handler_without_request_objects_is_not_handled() -> None:
    """Handlers whose parameters expose no ``rules`` contribute nothing."""
    route = Route(methods=("GET",), uri="/api/users/{id}", handler=(UserController, "show"))
    extractor, _ = _extractor(route)
    assert not extractor.should_handle()
    assert extractor.extract(route) == {}
    assert extractor.nodes() == []


def test_missing_handler_node_is_not_handled() -> None:
    """Without a handler node there is nothing to analyze."""
    extractor = RequestObjectRulesExtractor(None, {}, file_parser=FileParser(), infer=Infer())
    assert not extractor.should_handle()


def test_later_request_object_overwrites_overlapping_fields() -> None:
    """Overlapping field names resolve to the later parameter's rule."""
    route = Route(methods=("PUT",), uri="/api/profile", handler=(ProfileController, "update"))
    extractor, _ = _extractor(route)

    rules = extractor.extract(route)

    assert rules["name"] == "string|max:50"
    assert rules["phone"] == "string"
    assert rules["bio"] == "nullable|string|max:500"


def test_nodes_pair_rule_items_with_their_comments() -> None:
    """Only string-keyed items with a comment block above them are returned."""
    route = Route(methods=("GET",), uri="/api/users", handler=(UserController, "index"))
    extractor, _ = _extractor(route)

    results = extractor.nodes()

    assert len(results) == 1
    result = results[0]
    assert result is not None
    assert result.entries == (
        ValidationRuleEntry(
            field="q",
            rule="string|max:100",
            description="Free-text search over names\nand email addresses.",
        ),
    )


def test_inherited_rules_have_no_documented_nodes() -> None:
    """A request class without its own ``rules`` source yields ``None``."""
    file_parser = FileParser()
    infer = Infer()
    extractor = RequestObjectRulesExtractor(
        _handler_node_for(InheritedUserRequest),
        {"InheritedUserRequest": InheritedUserRequest},
        file_parser=file_parser,
        infer=infer,
    )
    route = Route(methods=("POST",), uri="/api/users", handler=(UserController, "store"))

    assert extractor.nodes() == [None]
    assert extractor.extract(route) == {"email": "required|email"}


def test_request_object_needing_arguments_falls_back_to_rule_literals() -> None:
    """Literal rules are read from source; computed ones are left out."""
    route = Route(methods=("PUT",), uri="/api/scoped", handler=(ScopedController, "update"))
    extractor, _ = _extractor(route)

    assert extractor.extract(route) == {
        "title": "required|string|max:80",
        "archived": "boolean",
    }
    assert extractor.descriptions() == {"title": "Display name inside the tenant."}


def _handler_node_for(request_class: type) -> ast.FunctionDef:
    tree = ast.parse(f"def handler(self, request: {request_class.__name__}): ...")
    node = tree.body[0]
    assert isinstance(node, ast.FunctionDef)
    return node


def test_parse_rules_splits_names_and_arguments() -> None:
    """Pipe strings and lists are split into rule names with arguments."""
    assert parse_rules("required|in:a,b|regex:/^a,b$/") == [
        ("required", []),
        ("in", ["a", "b"]),
        ("regex", ["/^a,b$/"]),
    ]
    assert parse_rules(["required", object(), "max:3"]) == [("required", []), ("max", ["3"])]
    assert parse_rules(None) == []


def test_rule_schema_maps_types_formats_and_bounds() -> None:
    """Rule names translate to schema keywords."""
    assert rule_schema("required|email") == ({"type": "string", "format": "email"}, True)
    assert rule_schema("integer|between:1,10") == (
        {"type": "integer", "minimum": 1, "maximum": 10},
        False,
    )
    assert rule_schema("nullable|string|max:500") == (
        {"type": ["string", "null"], "maxLength": 500},
        False,
    )
    assert rule_schema("integer|in:1,2") == ({"type": "integer", "enum": [1, 2]}, False)
    assert rule_schema("array|min:1") == ({"type": "array", "minItems": 1}, False)


def test_rules_to_schema_nests_dotted_fields() -> None:
    """Dotted names nest into properties; ``*`` addresses array items."""
    schema = rules_to_schema(
        {
            "name": "required|string",
            "address.city": "required|string",
            "tags": "array",
            "tags.*": "string",
        },
        {"name": "Full name."},
    )
    assert schema == {
        "type": "object",
        "properties": {
            "name": {"type": "string", "description": "Full name."},
            "address": {
                "type": "object",
                "properties": {"city": {"type": "string"}},
                "required": ["city"],
            },
            "tags": {"type": "array", "items": {"type": "string"}},
        },
        "required": ["name"],
    }
