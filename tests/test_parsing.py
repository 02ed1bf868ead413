"""Unit tests for source parsing and docstring tags."""

from __future__ import annotations

import ast
from pathlib import Path

from scramble_openapi_generator.parsing import DocTag, FileParser, parse_docblock

_SOURCE = '''
class Outer:
    class Inner:
        def rules(self):
            return {
                # Documented field.
                "documented": "required",
                "undocumented": "string",  # trailing comments do not count
            }

    async def handle(self):
        """Handle it."""


def rules():
    return {}
'''


def _write_source(tmp_path: Path) -> Path:
    path = tmp_path / "module_under_test.py"
    path.write_text(_SOURCE, encoding="utf-8")
    return path


def test_find_method_locates_nested_and_async_methods(tmp_path: Path) -> None:
    """Methods are found by class name, including nested classes and dotted names."""
    parsed = FileParser().parse(_write_source(tmp_path))

    inner_rules = parsed.find_method("Outer.Inner@rules")
    handle = parsed.find_method("Outer@handle")

    assert isinstance(inner_rules, ast.FunctionDef)
    assert inner_rules.name == "rules"
    assert isinstance(handle, ast.AsyncFunctionDef)
    assert parsed.find_method("Outer@rules") is None
    assert parsed.find_method("Missing@rules") is None


def test_comment_before_only_attaches_full_line_comments(tmp_path: Path) -> None:
    """Leading comment blocks attach to the next node; trailing comments do not."""
    parsed = FileParser().parse(_write_source(tmp_path))
    dict_node = next(node for node in ast.walk(parsed.tree) if isinstance(node, ast.Dict) and node.keys)
    documented, undocumented = dict_node.keys

    assert documented is not None and undocumented is not None
    assert parsed.comment_before(documented) == "Documented field."
    assert parsed.comment_before(undocumented) is None


def test_parse_is_memoized_until_cleared(tmp_path: Path) -> None:
    """Parsing the same file twice returns the cached tree until the cache is cleared."""
    path = _write_source(tmp_path)
    parser = FileParser()

    first = parser.parse(path)
    assert parser.parse(str(path)) is first
    assert len(parser) == 1

    parser.clear()
    assert len(parser) == 0
    assert parser.parse(path) is not first


def test_parse_docblock_splits_summary_description_and_tags() -> None:
    """The first paragraph is the summary; ``@`` lines become tags."""
    doc = parse_docblock(
        """Create a user.

        Sends a welcome email
        to the new address.

        @status 201
        @deprecated
        """
    )
    assert doc.summary == "Create a user."
    assert doc.description == "Sends a welcome email to the new address."
    assert doc.tags == (DocTag(name="@status", value="201"), DocTag(name="@deprecated", value=""))
    assert doc.has_tag("@deprecated")


def test_parse_docblock_reads_sphinx_deprecation_directive() -> None:
    """``.. deprecated::`` counts as a deprecation tag."""
    doc = parse_docblock("Old listing.\n\n.. deprecated:: 2.0\n")
    assert doc.has_tag("@deprecated")
    assert doc.summary == "Old listing."
    assert doc.description == ""


def test_parse_docblock_handles_missing_text() -> None:
    """No docstring yields an empty block."""
    doc = parse_docblock(None)
    assert doc.summary == ""
    assert doc.tags == ()
