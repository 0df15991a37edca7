"""JavaScript syntax support: tree-sitter parsing and literal decoding.

Quick start::

    from cjsconv.js import ASTEngine, NodeKind, classify

    engine = ASTEngine()
    ast = engine.parse("exports.a = 1;")
    calls = engine.find_nodes_by_kind(ast, NodeKind.ASSIGNMENT)
"""

from .ast_engine import (
    ASTEngine,
    NodeKind,
    ParsedAST,
    classify,
    meaningful_children,
)
from .literals import decode_string_literal, strip_quotes, unescape

__all__ = [
    "ASTEngine",
    "NodeKind",
    "ParsedAST",
    "classify",
    "decode_string_literal",
    "meaningful_children",
    "strip_quotes",
    "unescape",
]
