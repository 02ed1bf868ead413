"""Structural validation of a rendered OpenAPI document."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from jsonschema.exceptions import SchemaError
from jsonschema.validators import Draft202012Validator
from openapi_python_client.schema import OpenAPI
from pydantic import ValidationError

from .json_types import JSONObject


@dataclass(frozen=True)
class VerificationReport:
    """Issues found while validating a generated document."""

    checked_schemas: int
    issues: tuple[str, ...]

    @property
    def issue_count(self) -> int:
        """Number of issues found."""
        return len(self.issues)


def validate_document(document: JSONObject) -> VerificationReport:
    """Validate the document shape and every component schema.

    Webhooks are checked as a separate paths-only document so the check does
    not depend on the validator's support for the ``webhooks`` key.
    """
    issues: list[str] = []
    base = {key: value for key, value in document.items() if key != "webhooks"}
    issues.extend(_model_issues("document", base))

    webhooks = document.get("webhooks")
    if isinstance(webhooks, dict) and webhooks:
        issues.extend(
            _model_issues(
                "webhooks",
                {"openapi": document.get("openapi"), "info": document.get("info"), "paths": webhooks},
            )
        )

    components = document.get("components")
    schemas: dict[str, Any] = {}
    if isinstance(components, dict) and isinstance(components.get("schemas"), dict):
        schemas = dict(components["schemas"])
    for name, schema in sorted(schemas.items()):
        try:
            Draft202012Validator.check_schema(schema)
        except SchemaError as exc:
            issues.append(f"components.schemas.{name}: {exc.message}")

    return VerificationReport(checked_schemas=len(schemas), issues=tuple(issues))


def format_report(report: VerificationReport) -> str:
    """Render report as CLI output text."""
    lines = [
        f"Checked component schemas: {report.checked_schemas}",
        f"Issues: {report.issue_count}",
    ]
    lines.extend(f"- {issue}" for issue in report.issues)
    return "\n".join(lines)


def _model_issues(label: str, payload: dict[str, Any]) -> list[str]:
    try:
        OpenAPI.model_validate(payload)
    except ValidationError as exc:
        return [
            f"{label}.{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in exc.errors()
        ]
    return []
