"""Tests for the command line interface and route table loading."""

from __future__ import annotations

import json
from collections.abc import Iterator
from pathlib import Path

import pytest
import structlog
import yaml

from scramble_openapi_generator.cli import main, render_document
from scramble_openapi_generator.module_loading import RouteLoadError, load_route_table
from scramble_openapi_generator.routing import RouteRegistry

from .fixtures.sample_app import routes as routes_module

_ROUTES_REFERENCE = f"{routes_module.__name__}:routes"


@pytest.fixture(autouse=True)
def _reset_logging() -> Iterator[None]:
    """Drop the logger ``main`` configures; its stream is closed after each test."""
    yield
    structlog.reset_defaults()


def test_cli_help_screen(capsys: pytest.CaptureFixture[str]) -> None:
    """Running the CLI help should succeed and print usage information."""
    with pytest.raises(SystemExit) as exc_info:
        main(["--help"])
    assert exc_info.value.code == 0
    assert "usage:" in capsys.readouterr().out.lower()


def test_cli_prints_json_document(capsys: pytest.CaptureFixture[str]) -> None:
    """Without ``--output`` the JSON document goes to stdout."""
    assert main(["--routes", _ROUTES_REFERENCE]) == 0

    document = json.loads(capsys.readouterr().out)
    assert document["openapi"] == "3.1.0"
    assert "/users" in document["paths"]


def test_cli_writes_yaml_with_config(tmp_path: Path) -> None:
    """Config values and the chosen format reach the written file."""
    config_path = tmp_path / "scramble.yaml"
    config_path.write_text("app_name: Sample\ninfo:\n  version: 1.2.3\n", encoding="utf-8")
    output_path = tmp_path / "openapi.yaml"

    exit_code = main(
        [
            "--routes",
            _ROUTES_REFERENCE,
            "--config",
            str(config_path),
            "--output",
            str(output_path),
            "--format",
            "yaml",
        ]
    )

    assert exit_code == 0
    document = yaml.safe_load(output_path.read_text(encoding="utf-8"))
    assert document["info"] == {"title": "Sample", "version": "1.2.3"}
    assert list(document["webhooks"]) == ["/user-created"]


def test_cli_rejects_missing_config(tmp_path: Path) -> None:
    """Unreadable configuration is a usage error."""
    with pytest.raises(SystemExit) as exc_info:
        main(["--routes", _ROUTES_REFERENCE, "--config", str(tmp_path / "missing.yaml")])
    assert exc_info.value.code == 2


def test_cli_rejects_unknown_route_module() -> None:
    """An unimportable route reference is a usage error."""
    with pytest.raises(SystemExit) as exc_info:
        main(["--routes", "missing_package.routes:routes"])
    assert exc_info.value.code == 2


def test_cli_skip_failed_routes(capsys: pytest.CaptureFixture[str]) -> None:
    """The skip flag keeps failing routes out instead of aborting."""
    reference = f"{routes_module.__name__}:build_broken_routes"
    assert main(["--routes", reference, "--skip-failed-routes"]) == 0

    document = json.loads(capsys.readouterr().out)
    assert list(document["paths"]) == ["/users", "/legacy/users"]


def test_cli_verify_reports_to_stderr(capsys: pytest.CaptureFixture[str]) -> None:
    """Verification output goes to stderr, the document to stdout."""
    main(["--routes", _ROUTES_REFERENCE, "--verify"])

    captured = capsys.readouterr()
    assert "Checked component schemas: 1" in captured.err
    assert json.loads(captured.out)["openapi"] == "3.1.0"


def test_render_document_formats() -> None:
    """JSON keeps non-ASCII text; YAML keeps key order and has no anchors."""
    shared = {"type": "string"}
    document = {"b": "é", "a": shared, "c": shared}

    rendered_json = render_document(document, "json")
    rendered_yaml = render_document(document, "yaml")

    assert '"b": "é"' in rendered_json
    assert rendered_json.endswith("\n")
    assert rendered_yaml.splitlines()[0] == "b: é"
    assert "&" not in rendered_yaml
    assert yaml.safe_load(rendered_yaml) == document


def test_load_route_table_accepts_factories_and_files(tmp_path: Path) -> None:
    """Callables are invoked; file references are imported by path."""
    from_factory = load_route_table(f"{routes_module.__name__}:build_tenant_routes")
    assert isinstance(from_factory, RouteRegistry)
    assert len(from_factory) == 3

    routes_file = tmp_path / "standalone_routes.py"
    routes_file.write_text(
        "from scramble_openapi_generator import Route\n"
        "routes = [Route(methods=('GET',), uri='/api/ping', handler=lambda: 'pong')]\n",
        encoding="utf-8",
    )
    from_file = load_route_table(f"{routes_file}:routes")
    assert [route.uri for route in from_file] == ["/api/ping"]


@pytest.mark.parametrize(
    ("reference", "message"),
    [
        ("no_separator", "must look like"),
        (f"{routes_module.__name__}:missing", "has no attribute"),
        (f"{routes_module.__name__}:health_check", "contains non-route entries"),
        ("/does/not/exist.py:routes", "Route file not found"),
    ],
)
def test_load_route_table_errors(reference: str, message: str) -> None:
    """Bad references raise ``RouteLoadError`` with a readable message."""
    with pytest.raises(RouteLoadError, match=message):
        load_route_table(reference)
