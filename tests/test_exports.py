"""Tests for CommonJS export surface analysis."""

import pytest

from cjsconv import ParseError, analyze_exports, analyze_surface
from cjsconv.exports import ExportAnalyzer
from cjsconv.js.ast_engine import ASTEngine
from cjsconv.models import ExportSurface


def _exports(code: str) -> list[str]:
    return analyze_exports("test.js", code)


class TestAssignmentIdioms:
    """exports.X / module.exports.X / module.exports = ..."""

    def test_shebang_is_skipped(self):
        code = "#!/bin/bash\n\t\texports.foo = 'bar';\n"
        assert _exports(code) == ["foo"]

    def test_module_exports_string(self):
        """Assigning module.exports only produces the default export."""
        assert _exports("module.exports = 'asdf';") == ["default"]

    def test_module_exports_field(self):
        assert _exports("module.exports.asdf = 'asdf';") == ["asdf"]

    def test_module_exports_index(self):
        assert _exports("module.exports['a b'] = 1;") == ["a b"]

    def test_exports_dot_and_index(self):
        code = """
            exports.foo = 'bar';
            exports['baz'] = 'qux';
        """
        assert _exports(code) == ["baz", "foo"]

    def test_repeated_assignment_is_idempotent(self):
        assert _exports("exports.a='x'; exports.a='y';") == ["a"]

    def test_rebinding_exports_is_ignored(self):
        code = """
            module.exports.asdf = 'asdf';
            exports = 'asdf';
            module.exports = require('./asdf');
            if (maybe)
                module.exports = require("./another");
        """
        assert _exports(code) == ["asdf", "default"]

    def test_dynamic_index_is_ignored(self):
        code = "for (var p in m) if (!exports.hasOwnProperty(p)) exports[p] = m[p];"
        assert _exports(code) == []

    def test_reserved_word_properties(self):
        code = """
            exports.package = "STRICT RESERVED!";
            exports.var = "RESERVED";
        """
        assert _exports(code) == ["package", "var"]

    def test_nested_assignment_is_found(self):
        """Assignments are found at any depth, e.g. esbuild's export hints."""
        code = "0 && (module.exports = {a, b, c}) && __exportStar(require('fs'));"
        assert _exports(code) == ["a", "b", "c", "default"]

    def test_member_read_is_not_an_export(self):
        assert _exports("exports['b'].b; console.log(exports.c);") == []


class TestObjectLiteralKeys:
    """Keys of `module.exports = { ... }`."""

    def test_literal_exports(self):
        code = "module.exports = { a, b: c, d, 'e': f };"
        assert _exports(code) == ["a", "b", "d", "default", "e"]

    def test_spread_entries_are_skipped(self):
        code = """
            module.exports = {
                ...a,
                ...b,
                ...require('dep1'),
                c: d,
                ...require('dep2'),
                name
            };
        """
        assert _exports(code) == ["c", "default", "name"]

    def test_computed_keys(self):
        """Only computed keys that are string literals resolve."""
        code = "module.exports = { ['x']: 1, [y]: 2, [`z`]: 3 };"
        assert _exports(code) == ["default", "x"]

    def test_method_and_numeric_keys(self):
        code = "module.exports = { run() {}, get size() { return 1; }, 42: true };"
        assert _exports(code) == ["42", "default", "run", "size"]

    def test_non_object_rhs_has_no_named_exports(self):
        assert _exports("module.exports = factory({ a: 1 });") == ["default"]


class TestDefineProperty:
    """Object.defineProperty(exports, name, descriptor)."""

    def test_value_descriptors(self):
        code = """
            Object.defineProperty(exports, 'namedExport', { enumerable: false, value: true });
            Object.defineProperty(exports, 'namedExport', { configurable: false, value: true });
            Object.defineProperty(module.exports, 'thing', { value: true });
            Object.defineProperty(exports, "other", { enumerable: true, value: true });
            Object.defineProperty(exports, "__esModule", { value: true });
        """
        assert _exports(code) == ["__esModule", "namedExport", "other", "thing"]

    def test_reexport_getters(self):
        code = """
            Object.defineProperty(exports, 'a', {
                enumerable: true,
                get: function () {
                    return q.p;
                }
            });

            Object.defineProperty(exports, 'b', {
                enumerable: false,
                get: function () {
                    return q.p;
                }
            });

            Object.defineProperty(exports, "c", {
                get: function get () {
                    return q['p' ];
                }
            });

            Object.defineProperty(exports, 'd', {
                get: function () {
                    return __ns.val;
                }
            });

            Object.defineProperty(exports, 'e', {
                get () {
                    return external;
                }
            });
        """
        assert _exports(code) == ["a", "c", "d", "e"]

    def test_arrow_getter(self):
        code = "Object.defineProperty(exports, 'a', { get: () => q.p });"
        assert _exports(code) == ["a"]

    def test_typescript_reexports(self):
        code = """
            "use strict";
            function __export(m) {
                for (var p in m) if (!exports.hasOwnProperty(p)) exports[p] = m[p];
            }
            Object.defineProperty(exports, "__esModule", { value: true });
            __export(require("external1"));
            tslib.__export(require("external2"));
            __exportStar(require("external3"));
            tslib1.__exportStar(require("external4"));

            "use strict";
            Object.defineProperty(exports, "__esModule", { value: true });
            var color_factory_1 = require("./color-factory");
            Object.defineProperty(exports, "colorFactory", { enumerable: true, get: function () { return color_factory_1.colorFactory; }, });
        """
        assert _exports(code) == ["__esModule", "colorFactory"]

    def test_unsafe_getter_opts_out(self):
        code = """
            Object.defineProperty(exports, 'a', {
                enumerable: true,
                get: function () {
                    return q.p;
                }
            });

            if (false) {
                Object.defineProperty(exports, 'a', {
                    enumerable: false,
                    get: function () {
                        return dynamic();
                    }
                });
            }
        """
        assert _exports(code) == []

    def test_unsafe_getter_wins_regardless_of_order(self):
        safe = "Object.defineProperty(exports,'a',{get:()=>q.p});"
        unsafe = "Object.defineProperty(exports,'a',{get:()=>dynamic()});"
        assert _exports(safe + unsafe) == []
        assert _exports(unsafe + safe) == []

    def test_unsafe_getter_removes_plain_assignment(self):
        code = """
            exports.a = 1;
            Object.defineProperty(exports, 'a', { get: function () { if (x) return y; return z; } });
            exports.a = 2;
        """
        assert _exports(code) == []

    @pytest.mark.parametrize(
        "getter",
        [
            "get: function () { return a ? b : c; }",
            "get: function () { var x = q.p; return x; }",
            "get: function () {}",
            "get: () => compute()",
            "get: () => a.b()",
            "get: helper",
            "get () { return q[k()]; }",
        ],
    )
    def test_unsafe_getter_shapes(self, getter):
        code = "Object.defineProperty(exports, 'a', { %s });" % getter
        surface = analyze_surface("test.js", code)
        assert surface.unsafe == {"a"}
        assert surface.sorted_names() == []

    def test_directive_in_getter_is_ignored(self):
        code = """
            Object.defineProperty(exports, "a", { get: function () { "use strict"; return a.b; } });
            Object.defineProperty(exports, "b", { get () { "use strict"; ; return q["b"]; } });
        """
        assert _exports(code) == ["a", "b"]

    def test_extra_statement_after_return_is_unsafe(self):
        code = "Object.defineProperty(exports, 'a', { get: function () { return a.b; x(); } });"
        assert _exports(code) == []

    def test_value_method_is_not_a_value(self):
        assert _exports("Object.defineProperty(exports, 'a', { value() {} });") == []

    def test_other_targets_are_ignored(self):
        code = """
            Object.defineProperty(foo, 'a', { value: 1 });
            Object.defineProperty(exports, name, { value: 1 });
            Object.defineProperty(exports, 'b', descriptor);
            Object.defineProperty(exports, 'c');
            Reflect.defineProperty(exports, 'd', { value: 1 });
        """
        assert _exports(code) == []


class TestNonIdentifierNames:
    """String keys decode through the escape decoder."""

    def test_non_identifiers(self):
        code = r"""
            module.exports = { "ab cd": foo };
            exports["not identifier"] = "asdf";
            exports["\u{1F310}"] = 1;
            exports["\uD83C"] = 1;
            exports["墸"] = 1;
            exports["\n"] = 1;
            exports["\xFF"] = 1;
            exports["       "] = 1;
            exports["z"] = 1;
            exports["'"] = 1;
            exports["@notidentifier"] = "asdf";
            Object.defineProperty(exports, "%notidentifier", { value: x });
            Object.defineProperty(exports, "hm\u{1F914}", { value: x });
            exports["⨉"] = 45;
            exports["α"] = 54;
            exports.package = "STRICT RESERVED!";
            exports.var = "RESERVED";
        """
        assert _exports(code) == sorted([
            "\n",
            "       ",
            "%notidentifier",
            "'",
            "@notidentifier",
            "ab cd",
            "default",
            "hm\U0001F914",
            "not identifier",
            "package",
            "var",
            "z",
            "ÿ",
            "α",
            "⨉",
            "墸",
            "�",
            "\U0001F310",
        ])

    def test_empty_string_key_is_ignored(self):
        assert _exports("exports[''] = 1;") == []


class TestESMSyntax:
    """ES module syntax never matches a CommonJS idiom."""

    def test_ignore_esm_syntax(self):
        code = """
            import 'x';
            export { x };
            exports.a = 1;
            export function x () {}
            exports["b"] = 2;
            import {
                y as z
            } from 'y';
            module.exports.c = 3;
            export {
                y as w,
            }
            module.exports.d = 3;
        """
        assert _exports(code) == ["a", "b", "c", "d"]


class TestSurfaceAndErrors:
    """Result shape and failure modes."""

    def test_output_sorted_without_duplicates(self):
        code = """
            exports.b = 1; exports.a = 1; exports.b = 2;
            module.exports = { c, a };
        """
        names = _exports(code)
        assert names == sorted(set(names))
        assert names == ["a", "b", "c", "default"]

    def test_explicit_default_property_is_deduplicated(self):
        assert _exports("exports.default = 1; module.exports = x;") == ["default"]

    def test_surface_model(self):
        surface = analyze_surface("test.js", "exports.a = 1; module.exports = {b};")
        assert isinstance(surface, ExportSurface)
        assert surface.names == {"a", "b"}
        assert surface.has_default
        assert surface.unsafe == set()

    def test_parse_error(self):
        with pytest.raises(ParseError) as exc_info:
            _exports("exports.a = ;")
        assert exc_info.value.path == "test.js"
        assert "cjs: failed to parse test.js" in str(exc_info.value)
        assert exc_info.value.line is not None

    def test_parse_error_line_counts_shebang(self):
        with pytest.raises(ParseError) as exc_info:
            _exports("#!/usr/bin/env node\n\nvar = ;\n")
        assert exc_info.value.line == 3
        assert "on line 3" in str(exc_info.value)

    def test_shared_engine_reuse(self):
        """One analyzer can serve many files without leaking state."""
        analyzer = ExportAnalyzer(ASTEngine())
        assert analyzer.analyze("a.js", "exports.a = 1;") == ["a"]
        assert analyzer.analyze("b.js", "exports.b = 1;") == ["b"]

    def test_empty_source(self):
        assert _exports("") == []


class TestExportSurface:
    """Finalisation rules of the ExportSurface model."""

    def test_unsafe_names_are_purged(self):
        surface = ExportSurface(names={"a", "b"}, unsafe={"a"})
        assert surface.sorted_names() == ["b"]

    def test_mark_unsafe_removes_name(self):
        surface = ExportSurface()
        surface.add("a")
        surface.mark_unsafe("a")
        surface.add("a")
        assert surface.sorted_names() == []

    def test_default_is_sorted_into_place(self):
        surface = ExportSurface(names={"z", "a"}, has_default=True)
        assert surface.sorted_names() == ["a", "default", "z"]

    def test_empty_names_not_added(self):
        surface = ExportSurface()
        surface.add("")
        assert surface.names == set()
