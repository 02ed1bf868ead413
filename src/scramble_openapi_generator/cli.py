"""Command line interface for OpenAPI document generation."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Optional

import yaml

from .config import ConfigLoadError, GeneratorConfig, load_config
from .generator import Generator, raise_route_error, skip_route_error
from .json_types import JSONObject
from .log import configure_logging
from .module_loading import RouteLoadError, load_route_table
from .verify import format_report, validate_document


class _NoAliasDumper(yaml.SafeDumper):
    def ignore_aliases(self, data: Any) -> bool:
        return True


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI parser."""
    parser = argparse.ArgumentParser(
        prog="scramble-openapi",
        description="Generate an OpenAPI document from an application's route table",
    )
    parser.add_argument(
        "--routes",
        required=True,
        help="Route table reference, 'package.module:attribute' or 'path/to/routes.py:attribute'",
    )
    parser.add_argument("--config", help="Path to a YAML configuration file")
    parser.add_argument("--output", help="Output file; the document is printed when omitted")
    parser.add_argument("--format", choices=("json", "yaml"), default="json", help="Output format")
    parser.add_argument(
        "--skip-failed-routes",
        action="store_true",
        help="Leave routes that fail analysis out instead of aborting",
    )
    parser.add_argument(
        "--verify",
        action="store_true",
        help="Validate the generated document and its component schemas",
    )
    parser.add_argument("--debug", action="store_true", help="Log analysis diagnostics")
    return parser


def render_document(document: JSONObject, output_format: str) -> str:
    """Serialize the document as JSON or YAML."""
    if output_format == "yaml":
        return yaml.dump(document, Dumper=_NoAliasDumper, sort_keys=False, allow_unicode=True)
    return json.dumps(document, indent=2, ensure_ascii=False) + "\n"


def main(argv: Optional[list[str]] = None) -> int:
    """Run CLI and return process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(Path(args.config)) if args.config else GeneratorConfig()
        if args.debug:
            config = config.model_copy(update={"debug": True})
        configure_logging(debug=config.debug)
        routes = load_route_table(args.routes)
    except (ConfigLoadError, RouteLoadError) as exc:
        parser.error(str(exc))
        return 2

    generator = Generator(
        routes,
        config=config,
        on_route_error=skip_route_error if args.skip_failed_routes else raise_route_error,
    )
    document = generator()
    rendered = render_document(document, args.format)

    if args.output:
        Path(args.output).write_text(rendered, encoding="utf-8")
    else:
        sys.stdout.write(rendered)

    if args.verify:
        report = validate_document(document)
        print(format_report(report), file=sys.stderr)
        if report.issue_count > 0:
            return 1

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
