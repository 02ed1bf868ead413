"""Base class for request objects that declare validation rules."""

from __future__ import annotations

from typing import Any

type RuleExpression = Any
type Rules = dict[str, RuleExpression]


class FormRequest:
    """Request object whose rules may depend on the HTTP method.

    Subclasses override :meth:`rules`. The generator instantiates the class
    without arguments and calls :meth:`set_method` before asking for rules.
    """

    def __init__(self) -> None:
        self.method = "GET"

    def set_method(self, method: str) -> FormRequest:
        """Set the simulated HTTP method."""
        self.method = method.upper()
        return self

    def is_method(self, method: str) -> bool:
        """Return whether the simulated method is ``method``."""
        return self.method == method.upper()

    def rules(self) -> Rules:
        """Return the validation rules keyed by field name."""
        return {}
