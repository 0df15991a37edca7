"""Hoisting of external ``require``-like calls into ES module imports.

Bundlers targeting the browser leave calls such as
``__require("/node_modules/react")`` in CommonJS output. Browsers can't
resolve those at runtime, so every such call whose single string argument
starts with a configured prefix is turned into a static import:

    import __cjs_import_react__ from "/node_modules/react"
    const __cjs_imports__ = {
        "/node_modules/react": __cjs_import_react__,
    }
    function __cjs_require__(path) { ... }
    var React = __cjs_require__("/node_modules/react");

The tree is only used to *find* the calls. Substitution happens on the
original text, so comments and formatting survive untouched.
"""

from __future__ import annotations

import hashlib
import json
import logging
import re

import tree_sitter as ts

from .constants import (
    COLLISION_HASH_LENGTH,
    FALLBACK_SEGMENT_NAME,
    IMPORT_BINDING_PREFIX,
    IMPORT_BINDING_SUFFIX,
    IMPORT_TABLE_NAME,
    REQUIRE_FUNCTION_NAME,
)
from .exceptions import ConfigurationError, ParseError
from .js.ast_engine import (
    ASTEngine,
    NodeKind,
    ParsedAST,
    classify,
    meaningful_children,
)
from .js.literals import decode_string_literal
from .models import HoistedImport, RequireCallSite, RewritePlan
from .shebang import split_shebang, stripped_line_count

logger = logging.getLogger(__name__)

_UNSAFE_IDENTIFIER_CHARS = re.compile(r"[^A-Za-z0-9_]")

_WHITESPACE = " \t\r\n"

_REQUIRE_FUNCTION = f"""function {REQUIRE_FUNCTION_NAME}(path) {{
\tconst req = {IMPORT_TABLE_NAME}[path]
\tif (!req) {{
\t\tthrow new Error("Module not found: " + path)
\t}}
\treturn req
}}
"""


# ---------------------------------------------------------------------------
# Binding names
# ---------------------------------------------------------------------------


def binding_name(path: str) -> str:
    """Derive the import binding for *path* from its last segment.

    ``"/node_modules/@babel/core"`` becomes ``"__cjs_import_core__"``.
    """
    segment = next(
        (part for part in reversed(path.split("/")) if part),
        FALLBACK_SEGMENT_NAME,
    )
    segment = _UNSAFE_IDENTIFIER_CHARS.sub("_", segment)
    if segment[0].isdigit():
        segment = "_" + segment
    return f"{IMPORT_BINDING_PREFIX}{segment}{IMPORT_BINDING_SUFFIX}"


def _disambiguate(binding: str, path: str) -> str:
    digest = hashlib.sha1(path.encode("utf-8")).hexdigest()[:COLLISION_HASH_LENGTH]
    stem = binding[: -len(IMPORT_BINDING_SUFFIX)]
    return f"{stem}_{digest}{IMPORT_BINDING_SUFFIX}"


def assign_bindings(paths: list[str]) -> list[HoistedImport]:
    """Pair each path with a unique binding, keeping *paths* order.

    The first path to claim a name keeps it; later paths whose last
    segment sanitises to the same name get a hash suffix.
    """
    taken: set[str] = set()
    imports: list[HoistedImport] = []
    for path in paths:
        binding = binding_name(path)
        if binding in taken:
            disambiguated = _disambiguate(binding, path)
            logger.warning(
                "Binding %s for %s is already used, renaming to %s",
                binding, path, disambiguated,
            )
            binding = disambiguated
        taken.add(binding)
        imports.append(HoistedImport(path=path, binding=binding))
    return imports


# ---------------------------------------------------------------------------
# Discovery
# ---------------------------------------------------------------------------


class _RequireVisitor:
    """Collects single-string-argument calls whose path has the prefix."""

    def __init__(self, ast: ParsedAST, prefix: str) -> None:
        self.ast = ast
        self.prefix = prefix
        self.path_order: dict[str, None] = {}
        self.call_sites: list[RequireCallSite] = []

    def enter(self, node: ts.Node) -> bool:
        if classify(node) is NodeKind.CALL:
            self._handle_call(node)
        return True

    def _handle_call(self, node: ts.Node) -> None:
        arguments = node.child_by_field_name("arguments")
        if arguments is None or arguments.type != "arguments":
            return
        args = meaningful_children(arguments)
        if len(args) != 1 or classify(args[0]) is not NodeKind.STRING:
            return

        literal = self.ast.get_text(args[0])
        path = decode_string_literal(literal)
        if not path.startswith(self.prefix):
            return

        callee_node = node.child_by_field_name("function")
        callee = None
        if classify(callee_node) is NodeKind.IDENTIFIER:
            callee = self.ast.get_text(callee_node)
            if callee == REQUIRE_FUNCTION_NAME:
                # Already rewritten
                return

        self.path_order.setdefault(path, None)
        self.call_sites.append(
            RequireCallSite(
                callee=callee,
                path=path,
                literal=literal,
                line=node.start_point.row + 1,
                column=node.start_point.column,
            )
        )


# ---------------------------------------------------------------------------
# Text assembly
# ---------------------------------------------------------------------------


def _directive_statements(ast: ParsedAST) -> list[ts.Node]:
    """Leading ``"use strict";``-style statements, skipping comments."""
    directives: list[ts.Node] = []
    for stmt in ast.root_node.named_children:
        kind = classify(stmt)
        if kind is NodeKind.COMMENT:
            continue
        if kind is not NodeKind.EXPRESSION_STATEMENT:
            break
        expression = meaningful_children(stmt)
        if len(expression) != 1 or classify(expression[0]) is not NodeKind.STRING:
            break
        directives.append(stmt)
    return directives


def split_directives(ast: ParsedAST) -> tuple[str, str]:
    """Separate the directive prologue from the rest of the program.

    Returns:
        ``(directives, body)``: each directive on its own line, and the
        source with those statements (and the whitespace after them)
        removed. Comments around the directives stay in the body.
    """
    statements = _directive_statements(ast)
    if not statements:
        return "", ast.source_code

    directives: list[str] = []
    pieces: list[str] = []
    cursor = 0
    for stmt in statements:
        gap = ast.slice_text(cursor, stmt.start_byte).strip(_WHITESPACE)
        if gap:
            pieces.append(gap + "\n")
        directives.append(ast.get_text(stmt) + "\n")
        cursor = stmt.end_byte
    pieces.append(ast.slice_text(cursor).lstrip(_WHITESPACE))
    return "".join(directives), "".join(pieces)


def render_scaffolding(imports: list[HoistedImport]) -> str:
    """Build the import statements, lookup table and lookup function."""
    lines = [f"import {imp.binding} from {json.dumps(imp.path)}\n" for imp in imports]
    entries = ",\n\t".join(f"{json.dumps(imp.path)}: {imp.binding}" for imp in imports)
    lines.append(f"const {IMPORT_TABLE_NAME} = {{\n\t{entries},\n}}\n")
    lines.append(_REQUIRE_FUNCTION)
    return "".join(lines)


def replace_calls(body: str, substitutions: list[tuple[str, str]]) -> str:
    """Point ``callee(<literal>`` calls at the generated lookup function.

    *substitutions* holds ``(callee, literal)`` pairs, the literal being
    the argument's raw source text quotes included. The callee must not
    be a property access (``obj.callee``) or the tail of a longer name;
    a spread (``...callee``) is fine.
    """
    for callee, literal in substitutions:
        pattern = re.compile(
            r"(?<![\w$])(?<![^.]\.)" + re.escape(callee) + r"\s*\(\s*" + re.escape(literal)
        )
        replacement = f"{REQUIRE_FUNCTION_NAME}({literal}"
        body = pattern.sub(lambda _match: replacement, body)
    return body


# ---------------------------------------------------------------------------
# RequireRewriter
# ---------------------------------------------------------------------------


class RequireRewriter:
    """Rewrites external require calls into hoisted ES module imports.

    Example::

        rewriter = RequireRewriter()
        output = rewriter.rewrite("bundle.js", "/node_modules/", source)
    """

    def __init__(self, engine: ASTEngine | None = None) -> None:
        self.engine = engine or ASTEngine()

    def _discover(self, path: str, prefix: str, source: str) -> tuple[str, ParsedAST, RewritePlan]:
        if not prefix:
            raise ConfigurationError("require prefix must not be empty")

        shebang, code = split_shebang(source)
        ast = self.engine.parse(code)
        if ast.has_errors:
            diagnostic, line, column = ast.describe_error(stripped_line_count(source, code))
            raise ParseError(path, diagnostic, line=line, column=column)

        visitor = _RequireVisitor(ast, prefix)
        ast.walk(visitor.enter)
        plan = RewritePlan(
            prefix=prefix,
            imports=assign_bindings(list(visitor.path_order)),
            call_sites=visitor.call_sites,
        )
        return shebang, ast, plan

    def plan(self, path: str, prefix: str, source: str) -> RewritePlan:
        """Report which calls would be hoisted, without rewriting.

        Raises:
            ParseError: If *source* is not valid JavaScript.
            ConfigurationError: If *prefix* is empty.
        """
        return self._discover(path, prefix, source)[2]

    def rewrite(self, path: str, prefix: str, source: str) -> str:
        """Hoist every in-scope call in *source* into a static import.

        Returns *source* unchanged when nothing qualifies.

        Raises:
            ParseError: If *source* is not valid JavaScript.
            ConfigurationError: If *prefix* is empty.
        """
        shebang, ast, plan = self._discover(path, prefix, source)
        if plan.is_empty:
            return source

        logger.debug(
            "Hoisting %d paths from %s", len(plan.imports), path,
            extra={"path": path, "prefix": prefix, "import_count": len(plan.imports)},
        )
        directives, body = split_directives(ast)
        body = replace_calls(body, plan.substitutions)
        return shebang + directives + render_scaffolding(plan.imports) + body


def rewrite_requires(path: str, prefix: str, source: str) -> str:
    """Hoist ``prefix``-matching require calls in *source*.

    Raises:
        ParseError: If *source* is not valid JavaScript.
        ConfigurationError: If *prefix* is empty.
    """
    return RequireRewriter().rewrite(path, prefix, source)
