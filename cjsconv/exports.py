"""Static inference of the export names of a CommonJS module.

Engines only know a CommonJS module's exports after running it. This module
approximates that set from syntax alone by recognising the idioms bundlers
and transpilers emit:

- ``exports.NAME = ...`` / ``exports["NAME"] = ...``
- ``module.exports.NAME = ...`` / ``module.exports["NAME"] = ...``
- ``module.exports = ...`` (the default export; object literal keys are
  also reported as named exports)
- ``Object.defineProperty(exports, "NAME", {...})`` with a ``value`` or a
  getter that returns a plain member access

Usage::

    names = analyze_exports("index.js", "exports.a = 1; module.exports.b = 2;")
    # ["a", "b"]
"""

from __future__ import annotations

import logging

import tree_sitter as ts

from .exceptions import ParseError
from .js.ast_engine import (
    ASTEngine,
    NodeKind,
    ParsedAST,
    classify,
    meaningful_children,
)
from .js.literals import decode_string_literal
from .models import ExportSurface
from .shebang import split_shebang, stripped_line_count

logger = logging.getLogger(__name__)

_DIRECT_INDEX_KINDS = frozenset({NodeKind.STRING, NodeKind.NUMBER, NodeKind.IDENTIFIER})


def _is_directive(stmt: ts.Node) -> bool:
    """A bare string statement such as ``'use strict';``."""
    if classify(stmt) is not NodeKind.EXPRESSION_STATEMENT:
        return False
    expression = meaningful_children(stmt)
    return len(expression) == 1 and classify(expression[0]) is NodeKind.STRING


class _ExportVisitor:
    """Collects export idioms during a single tree walk."""

    def __init__(self, ast: ParsedAST) -> None:
        self.ast = ast
        self.surface = ExportSurface()

    def enter(self, node: ts.Node) -> bool:
        kind = classify(node)
        if kind is NodeKind.ASSIGNMENT:
            self._handle_assignment(node)
        elif kind is NodeKind.CALL:
            self._handle_call(node)
        return True

    # ------------------------------------------------------------------
    # Identifier helpers
    # ------------------------------------------------------------------

    def _is_identifier(self, node: ts.Node | None, name: str) -> bool:
        return classify(node) is NodeKind.IDENTIFIER and self.ast.get_text(node) == name

    def _is_property(self, node: ts.Node | None, name: str) -> bool:
        return (
            classify(node) is NodeKind.PROPERTY_IDENTIFIER
            and self.ast.get_text(node) == name
        )

    def _is_exports(self, node: ts.Node | None) -> bool:
        return self._is_identifier(node, "exports")

    def _is_module_exports(self, node: ts.Node | None) -> bool:
        if classify(node) is not NodeKind.MEMBER:
            return False
        return self._is_identifier(
            node.child_by_field_name("object"), "module"
        ) and self._is_property(node.child_by_field_name("property"), "exports")

    def _is_export_target(self, node: ts.Node | None) -> bool:
        return self._is_exports(node) or self._is_module_exports(node)

    def _string_value(self, node: ts.Node | None) -> str | None:
        if classify(node) is not NodeKind.STRING:
            return None
        return decode_string_literal(self.ast.get_text(node))

    def _property_name(self, key: ts.Node | None) -> str | None:
        """Resolve an object key to its name, or ``None`` if it is dynamic."""
        kind = classify(key)
        if kind in (NodeKind.PROPERTY_IDENTIFIER, NodeKind.IDENTIFIER, NodeKind.NUMBER):
            return self.ast.get_text(key)
        if kind is NodeKind.STRING:
            return self._string_value(key)
        if kind is NodeKind.COMPUTED_KEY:
            inner = meaningful_children(key)
            if len(inner) == 1:
                return self._string_value(inner[0])
        return None

    # ------------------------------------------------------------------
    # Assignments
    # ------------------------------------------------------------------

    def _handle_assignment(self, node: ts.Node) -> None:
        left = node.child_by_field_name("left")
        right = node.child_by_field_name("right")
        kind = classify(left)

        if kind is NodeKind.MEMBER:
            target = left.child_by_field_name("object")
            prop = left.child_by_field_name("property")
            if self._is_export_target(target):
                if classify(prop) is NodeKind.PROPERTY_IDENTIFIER:
                    self.surface.add(self.ast.get_text(prop))
            elif self._is_module_exports(left):
                self._handle_module_exports(right)
        elif kind is NodeKind.SUBSCRIPT:
            if self._is_export_target(left.child_by_field_name("object")):
                name = self._string_value(left.child_by_field_name("index"))
                if name:
                    self.surface.add(name)
        # Rebinding the local `exports` identifier exports nothing

    def _handle_module_exports(self, right: ts.Node | None) -> None:
        self.surface.has_default = True
        if classify(right) is NodeKind.OBJECT:
            self._extract_object_keys(right)

    def _extract_object_keys(self, obj: ts.Node) -> None:
        for prop in meaningful_children(obj):
            kind = classify(prop)
            if kind is NodeKind.SHORTHAND_PROPERTY:
                name = self.ast.get_text(prop)
            elif kind in (NodeKind.PAIR, NodeKind.METHOD):
                field = "key" if kind is NodeKind.PAIR else "name"
                name = self._property_name(prop.child_by_field_name(field))
            else:
                # Spread entries re-export something we can't see
                continue
            if name:
                self.surface.add(name)

    # ------------------------------------------------------------------
    # Object.defineProperty(exports, "name", {...})
    # ------------------------------------------------------------------

    def _handle_call(self, node: ts.Node) -> None:
        callee = node.child_by_field_name("function")
        if classify(callee) is not NodeKind.MEMBER:
            return
        if not (
            self._is_identifier(callee.child_by_field_name("object"), "Object")
            and self._is_property(callee.child_by_field_name("property"), "defineProperty")
        ):
            return

        arguments = node.child_by_field_name("arguments")
        if arguments is None or arguments.type != "arguments":
            return
        args = meaningful_children(arguments)
        if len(args) < 3 or not self._is_export_target(args[0]):
            return

        name = self._string_value(args[1])
        if not name or classify(args[2]) is not NodeKind.OBJECT:
            return

        if self._should_export_descriptor(args[2], name):
            logger.debug("defineProperty export %r", name)
            self.surface.add(name)

    def _should_export_descriptor(self, descriptor: ts.Node, name: str) -> bool:
        has_getter = False
        has_value = False
        enumerable_false = False

        for prop in meaningful_children(descriptor):
            kind = classify(prop)

            if kind is NodeKind.METHOD:
                method_name = self.ast.get_text(prop.child_by_field_name("name"))
                if method_name == "get" or self._is_get_accessor(prop):
                    has_getter = True
                    if not self._is_safe_body(prop.child_by_field_name("body")):
                        self.surface.mark_unsafe(name)
                        return False
                continue

            if kind is NodeKind.PAIR:
                key = self._property_name(prop.child_by_field_name("key"))
                value = prop.child_by_field_name("value")
            elif kind is NodeKind.SHORTHAND_PROPERTY:
                key = self.ast.get_text(prop)
                value = prop
            else:
                continue

            if key == "get":
                has_getter = True
                if not self._is_safe_getter(value):
                    self.surface.mark_unsafe(name)
                    return False
            elif key == "value":
                has_value = True
            elif key == "enumerable" and classify(value) is NodeKind.FALSE:
                enumerable_false = True

        if name in self.surface.unsafe:
            self.surface.names.discard(name)
            return False

        if has_getter and enumerable_false:
            return False

        return has_value or has_getter

    @staticmethod
    def _is_get_accessor(method: ts.Node) -> bool:
        """``get name() {}`` as opposed to a method literally named ``get``."""
        return any(child.type == "get" and not child.is_named for child in method.children)

    def _is_safe_getter(self, value: ts.Node | None) -> bool:
        kind = classify(value)
        if kind is NodeKind.FUNCTION:
            return self._is_safe_body(value.child_by_field_name("body"))
        if kind is NodeKind.ARROW_FUNCTION:
            body = value.child_by_field_name("body")
            if classify(body) is NodeKind.STATEMENT_BLOCK:
                return self._is_safe_body(body)
            return self._is_direct_reference(body)
        return False

    def _is_safe_body(self, block: ts.Node | None) -> bool:
        """A body is safe when it only returns a direct reference."""
        if classify(block) is not NodeKind.STATEMENT_BLOCK:
            return False
        statements = [
            stmt for stmt in meaningful_children(block)
            if classify(stmt) is not NodeKind.EMPTY_STATEMENT and not _is_directive(stmt)
        ]
        if len(statements) != 1 or classify(statements[0]) is not NodeKind.RETURN:
            return False
        returned = meaningful_children(statements[0])
        return len(returned) == 1 and self._is_direct_reference(returned[0])

    def _is_direct_reference(self, node: ts.Node | None) -> bool:
        kind = classify(node)
        if kind is NodeKind.IDENTIFIER:
            return True
        if kind is NodeKind.MEMBER:
            return self._is_direct_reference(node.child_by_field_name("object"))
        if kind is NodeKind.SUBSCRIPT:
            return (
                classify(node.child_by_field_name("index")) in _DIRECT_INDEX_KINDS
                and self._is_direct_reference(node.child_by_field_name("object"))
            )
        return False


class ExportAnalyzer:
    """Infers the export surface of CommonJS sources.

    An analyzer only holds the parsing engine; every call builds its own
    working sets, so one instance can analyze any number of files.

    Example::

        analyzer = ExportAnalyzer()
        analyzer.analyze("lib.js", source)
    """

    def __init__(self, engine: ASTEngine | None = None) -> None:
        self.engine = engine or ASTEngine()

    def analyze_surface(self, path: str, source: str) -> ExportSurface:
        """Walk *source* and return the raw ``ExportSurface``.

        Raises:
            ParseError: If *source* is not valid JavaScript.
        """
        _, code = split_shebang(source)
        ast = self.engine.parse(code)
        if ast.has_errors:
            diagnostic, line, column = ast.describe_error(stripped_line_count(source, code))
            raise ParseError(path, diagnostic, line=line, column=column)

        visitor = _ExportVisitor(ast)
        ast.walk(visitor.enter)
        return visitor.surface

    def analyze(self, path: str, source: str) -> list[str]:
        """Return the sorted export names of *source*.

        ``"default"`` is included when ``module.exports`` is assigned.

        Raises:
            ParseError: If *source* is not valid JavaScript.
        """
        surface = self.analyze_surface(path, source)
        names = surface.sorted_names()
        logger.debug(
            "Analyzed exports of %s: %d names", path, len(names),
            extra={"path": path, "export_count": len(names)},
        )
        return names


def analyze_surface(path: str, source: str) -> ExportSurface:
    """Module-level shortcut for ``ExportAnalyzer().analyze_surface``."""
    return ExportAnalyzer().analyze_surface(path, source)


def analyze_exports(path: str, source: str) -> list[str]:
    """Return the sorted export names of the CommonJS module in *source*.

    Raises:
        ParseError: If *source* is not valid JavaScript.
    """
    return ExportAnalyzer().analyze(path, source)
