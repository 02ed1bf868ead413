"""Source parsing with a per-run cache, comment attachment and docstring tags."""

from __future__ import annotations

import ast
import inspect
import io
import re
import tokenize
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

type FunctionNode = Union[ast.FunctionDef, ast.AsyncFunctionDef]

_TAG_RE = re.compile(r"^@(?P<name>[\w-]+)\s*(?P<value>.*)$")
_SPHINX_DEPRECATED_RE = re.compile(r"^\.\.\s+deprecated::\s*(?P<value>.*)$")


@dataclass(frozen=True)
class DocTag:
    """A ``@name value`` line of a docstring."""

    name: str
    value: str = ""


@dataclass(frozen=True)
class DocBlock:
    """A docstring split into summary, description and tags."""

    summary: str = ""
    description: str = ""
    tags: tuple[DocTag, ...] = ()

    def has_tag(self, name: str) -> bool:
        """Return whether a tag named ``name`` (including ``@``) is present."""
        return any(tag.name == name for tag in self.tags)


def parse_docblock(text: Optional[str]) -> DocBlock:
    """Split a docstring into summary, description and tags.

    The first paragraph becomes the summary, the remaining free text the
    description. Lines starting with ``@`` are tags; a Sphinx
    ``.. deprecated::`` directive is read as an ``@deprecated`` tag.
    """
    if not text:
        return DocBlock()

    tags: list[DocTag] = []
    paragraphs: list[list[str]] = [[]]
    for raw_line in inspect.cleandoc(text).splitlines():
        line = raw_line.strip()
        tag_match = _TAG_RE.match(line)
        if tag_match:
            tags.append(DocTag(name=f"@{tag_match.group('name')}", value=tag_match.group("value")))
            continue
        sphinx_match = _SPHINX_DEPRECATED_RE.match(line)
        if sphinx_match:
            tags.append(DocTag(name="@deprecated", value=sphinx_match.group("value")))
            continue
        if not line:
            if paragraphs[-1]:
                paragraphs.append([])
            continue
        paragraphs[-1].append(line)

    texts = [" ".join(paragraph) for paragraph in paragraphs if paragraph]
    return DocBlock(
        summary=texts[0] if texts else "",
        description="\n\n".join(texts[1:]),
        tags=tuple(tags),
    )


@dataclass
class ParseResult:
    """A parsed source file together with its full-line comments."""

    path: Path
    tree: ast.Module
    comments: dict[int, str] = field(default_factory=dict)

    def find_method(self, reference: str) -> Optional[FunctionNode]:
        """Find a method node by ``Class@method``; dotted class names match on the last segment."""
        class_path, _, method_name = reference.partition("@")
        class_name = class_path.rsplit(".", 1)[-1].rsplit(":", 1)[-1]
        for node in ast.walk(self.tree):
            if not isinstance(node, ast.ClassDef) or node.name != class_name:
                continue
            for statement in node.body:
                if (
                    isinstance(statement, (ast.FunctionDef, ast.AsyncFunctionDef))
                    and statement.name == method_name
                ):
                    return statement
        return None

    def comment_before(self, node: ast.AST) -> Optional[str]:
        """Return the comment block directly above ``node``, if any."""
        line = getattr(node, "lineno", 0) - 1
        lines: list[str] = []
        while line in self.comments:
            lines.insert(0, self.comments[line])
            line -= 1
        if not lines:
            return None
        return "\n".join(lines).strip() or None


class FileParser:
    """Parse Python files once per generation run."""

    def __init__(self) -> None:
        self._cache: dict[Path, ParseResult] = {}

    def parse(self, path: Union[str, Path]) -> ParseResult:
        """Parse ``path``, returning the cached result on repeated calls."""
        resolved = Path(path).resolve()
        cached = self._cache.get(resolved)
        if cached is not None:
            return cached

        source = resolved.read_text(encoding="utf-8")
        result = ParseResult(
            path=resolved,
            tree=ast.parse(source, filename=str(resolved)),
            comments=_collect_comments(source),
        )
        self._cache[resolved] = result
        return result

    def clear(self) -> None:
        """Drop every cached parse result."""
        self._cache.clear()

    def __len__(self) -> int:
        return len(self._cache)


def _collect_comments(source: str) -> dict[int, str]:
    comments: dict[int, str] = {}
    lines = source.splitlines()
    for token in tokenize.generate_tokens(io.StringIO(source).readline):
        if token.type != tokenize.COMMENT:
            continue
        line_number = token.start[0]
        # Trailing comments belong to the code on their line.
        if lines[line_number - 1].strip().startswith("#"):
            comments[line_number] = token.string.lstrip("#").strip()
    return comments
