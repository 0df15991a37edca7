"""Syntax-tree provider for CommonJS analysis.

This module wraps tree-sitter so the export analyzer and the require
rewriter can work against a small, stable surface: parse source text into
a ``ParsedAST``, classify nodes into a closed ``NodeKind`` enumeration, and
walk the tree depth-first with enter/exit callbacks.

Usage::

    engine = ASTEngine()
    ast = engine.parse("module.exports = { a, b };")
    if ast.has_errors:
        ...
    ast.walk(lambda node: print(classify(node)))
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import Enum

import tree_sitter as ts
import tree_sitter_javascript as ts_js

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Node classification
# ---------------------------------------------------------------------------


class NodeKind(str, Enum):
    """Node categories the analyzers care about."""

    ASSIGNMENT = "assignment"
    CALL = "call"
    OBJECT = "object"
    PAIR = "pair"
    SHORTHAND_PROPERTY = "shorthand_property"
    SPREAD = "spread"
    METHOD = "method"
    FUNCTION = "function"
    ARROW_FUNCTION = "arrow_function"
    STRING = "string"
    NUMBER = "number"
    IDENTIFIER = "identifier"
    PROPERTY_IDENTIFIER = "property_identifier"
    MEMBER = "member"
    SUBSCRIPT = "subscript"
    COMPUTED_KEY = "computed_key"
    RETURN = "return"
    EXPRESSION_STATEMENT = "expression_statement"
    STATEMENT_BLOCK = "statement_block"
    COMMENT = "comment"
    EMPTY_STATEMENT = "empty_statement"
    FALSE = "false"
    OTHER = "other"


# tree-sitter-javascript renamed ``function`` to ``function_expression``;
# both spellings map to the same kind.
_TYPE_TO_KIND: dict[str, NodeKind] = {
    "assignment_expression": NodeKind.ASSIGNMENT,
    "call_expression": NodeKind.CALL,
    "object": NodeKind.OBJECT,
    "pair": NodeKind.PAIR,
    "shorthand_property_identifier": NodeKind.SHORTHAND_PROPERTY,
    "spread_element": NodeKind.SPREAD,
    "method_definition": NodeKind.METHOD,
    "function_expression": NodeKind.FUNCTION,
    "function": NodeKind.FUNCTION,
    "arrow_function": NodeKind.ARROW_FUNCTION,
    "string": NodeKind.STRING,
    "number": NodeKind.NUMBER,
    "identifier": NodeKind.IDENTIFIER,
    "property_identifier": NodeKind.PROPERTY_IDENTIFIER,
    "member_expression": NodeKind.MEMBER,
    "subscript_expression": NodeKind.SUBSCRIPT,
    "computed_property_name": NodeKind.COMPUTED_KEY,
    "return_statement": NodeKind.RETURN,
    "expression_statement": NodeKind.EXPRESSION_STATEMENT,
    "statement_block": NodeKind.STATEMENT_BLOCK,
    "comment": NodeKind.COMMENT,
    "empty_statement": NodeKind.EMPTY_STATEMENT,
    "false": NodeKind.FALSE,
}


def classify(node: ts.Node | None) -> NodeKind:
    """Return the ``NodeKind`` for *node* (``OTHER`` for anything unmapped)."""
    if node is None:
        return NodeKind.OTHER
    return _TYPE_TO_KIND.get(node.type, NodeKind.OTHER)


def meaningful_children(node: ts.Node) -> list[ts.Node]:
    """Named children of *node*, without comments."""
    return [
        child for child in node.named_children
        if classify(child) is not NodeKind.COMMENT
    ]


# ---------------------------------------------------------------------------
# ParsedAST wrapper
# ---------------------------------------------------------------------------


class ParsedAST:
    """Wrapper around a tree-sitter parse tree with convenience methods.

    Attributes:
        tree: The underlying ``tree_sitter.Tree``.
        source_code: Original source string that was parsed.
    """

    __slots__ = ("tree", "source_code", "_source_bytes")

    def __init__(self, tree: ts.Tree, source_code: str) -> None:
        self.tree = tree
        self.source_code = source_code
        self._source_bytes: bytes = source_code.encode("utf-8")

    @property
    def root_node(self) -> ts.Node:
        """Return the root node of the parse tree."""
        return self.tree.root_node

    @property
    def has_errors(self) -> bool:
        """Return ``True`` if the tree contains any parse errors."""
        return self.tree.root_node.has_error

    def get_text(self, node: ts.Node) -> str:
        """Extract the source text spanned by *node*."""
        return self.slice_text(node.start_byte, node.end_byte)

    def slice_text(self, start_byte: int, end_byte: int | None = None) -> str:
        """Return the source text between two byte offsets."""
        return self._source_bytes[start_byte:end_byte].decode(
            "utf-8", errors="replace"
        )

    def first_error(self) -> ts.Node | None:
        """Return the first ERROR or MISSING node in document order."""
        found: list[ts.Node] = []

        def _enter(node: ts.Node) -> bool:
            if found:
                return False
            if node.is_error or node.is_missing:
                found.append(node)
                return False
            return node.has_error

        self.walk(_enter)
        return found[0] if found else None

    def describe_error(self, line_offset: int = 0) -> tuple[str, int, int]:
        """Build a parser diagnostic for the first syntax error.

        Args:
            line_offset: Lines that preceded the parsed text in the
                original document, added to the reported line.

        Returns:
            A tuple of ``(message, line, column)`` with a 1-based line and
            a 0-based column. Falls back to the root position when no
            individual error node can be located.
        """
        node = self.first_error()
        if node is None:
            return "syntax error", line_offset + 1, 0

        line = node.start_point.row + 1 + line_offset
        column = node.start_point.column
        if node.is_missing:
            message = f"expected {node.type!r}"
        else:
            snippet = self.get_text(node).strip().splitlines()
            token = snippet[0][:40] if snippet else ""
            message = f"unexpected {token!r}" if token else "unexpected end of input"
        return f"{message} on line {line} and column {column + 1}", line, column

    def walk(
        self,
        enter: Callable[[ts.Node], bool | None],
        leave: Callable[[ts.Node], None] | None = None,
    ) -> None:
        """Depth-first walk of the tree with enter/exit callbacks.

        The walk is driven by a tree cursor instead of recursion, so deeply
        nested bundles don't hit the interpreter's recursion limit.

        Args:
            enter: Called for every node before its children. Return
                ``False`` explicitly to skip the children.
            leave: Optional callback invoked once a node's subtree is done.
        """
        cursor = self.tree.walk()
        while True:
            if enter(cursor.node) is not False and cursor.goto_first_child():
                continue
            while True:
                if leave is not None:
                    leave(cursor.node)
                if cursor.goto_next_sibling():
                    break
                if not cursor.goto_parent():
                    return


# ---------------------------------------------------------------------------
# ASTEngine
# ---------------------------------------------------------------------------


class ASTEngine:
    """Parsing engine for JavaScript sources.

    Initialises the tree-sitter ``Language`` lazily on first use and caches
    the parser for the lifetime of the engine instance. An engine holds no
    per-document state, so one instance can serve any number of files.

    Example::

        engine = ASTEngine()
        ast = engine.parse(source)
        for node in engine.find_nodes_by_kind(ast, NodeKind.CALL):
            print(ast.get_text(node))
    """

    def __init__(self) -> None:
        self._language: ts.Language | None = None
        self._parser: ts.Parser | None = None

    def _get_language(self) -> ts.Language:
        if self._language is None:
            self._language = ts.Language(ts_js.language())
        return self._language

    def _get_parser(self) -> ts.Parser:
        if self._parser is None:
            self._parser = ts.Parser(language=self._get_language())
        return self._parser

    def parse(self, source_code: str) -> ParsedAST:
        """Parse *source_code* into a ``ParsedAST``.

        tree-sitter never raises on bad input; callers check
        ``ParsedAST.has_errors``.
        """
        tree = self._get_parser().parse(source_code.encode("utf-8"))
        logger.debug("Parsed %d bytes", len(source_code))
        return ParsedAST(tree=tree, source_code=source_code)

    def find_nodes_by_kind(self, ast: ParsedAST, kind: NodeKind) -> list[ts.Node]:
        """Return all nodes of *kind* in document order.

        This is a low-level helper, mostly useful in tests and debugging.
        """
        matches: list[ts.Node] = []

        def _visitor(node: ts.Node) -> None:
            if classify(node) is kind:
                matches.append(node)

        ast.walk(_visitor)
        return matches
