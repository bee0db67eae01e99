"""
Tests for the name resolution pass.
"""

import pytest

from wumbocc.error import InternalError, Msg
from wumbocc.semantic.resolver import NameResolver
from wumbocc.semantic.symbol import (
    Symbol, SymbolKind, FunctionSymbol, StructDefSymbol, StructSymbol,
)
from wumbocc.semantic.type import INT, BOOL, ERROR_T, FunctionType
from wumbocc.tree.nodes import ASTNode, Program

from tests.conftest import NESTED_STRUCTS


def _diag_pairs(result):
    return [(d.message, d.line, d.column) for d in result.diags.errors]


class TestDeclarations:

    def test_clean_globals(self, analyze):
        result = analyze("int x;\nbool b;")
        assert result.success
        table = result.analyzer.table
        assert table.lookup_global('x').wtype == INT
        assert table.lookup_global('b').wtype == BOOL

    def test_multiply_declared(self, analyze):
        result = analyze("int x;\nbool x;")
        assert _diag_pairs(result) == [(Msg.MULTIPLY_DECLARED, 2, 6)]
        # first declaration wins
        assert result.analyzer.table.lookup_global('x').wtype == INT

    def test_void_variable(self, analyze):
        result = analyze("void v;")
        assert _diag_pairs(result) == [(Msg.VOID_VARIABLE, 1, 6)]
        assert result.analyzer.table.lookup_global('v') is None

    def test_void_and_duplicate_both_reported(self, errors):
        assert errors("int v;\nvoid v;") == [Msg.VOID_VARIABLE, Msg.MULTIPLY_DECLARED]

    def test_declaration_binds_identifier(self, analyze):
        result = analyze("int x;")
        decl = result.ast.decls[0]
        sym = result.analyzer.bindings.symbol_of(decl.ident)
        assert sym is result.analyzer.table.lookup_global('x')
        assert sym.node is decl.ident


class TestStructDeclarations:

    def test_unknown_struct_type(self, analyze):
        result = analyze("struct Nope n;")
        assert _diag_pairs(result) == [(Msg.BAD_STRUCT_TYPE, 1, 8)]

    def test_struct_type_must_name_a_struct(self, errors):
        assert errors("int S;\nstruct S s;") == [Msg.BAD_STRUCT_TYPE]

    def test_struct_cannot_contain_itself(self, errors):
        assert errors("struct Node {\n  struct Node next;\n};") == [Msg.BAD_STRUCT_TYPE]

    def test_struct_var_symbol(self, analyze):
        result = analyze("struct P { int x; };\nstruct P p;")
        assert result.success
        p = result.analyzer.table.lookup_global('p')
        assert isinstance(p, StructSymbol)
        assert p.definition is result.analyzer.table.lookup_global('P')
        assert p.struct_id.name == 'P'
        assert result.analyzer.bindings.symbol_of(p.struct_id) is p.definition

    def test_duplicate_struct_skips_fields(self, errors):
        source = "struct A { int x; };\nstruct A { int y; int y; };"
        assert errors(source) == [Msg.MULTIPLY_DECLARED]

    def test_duplicate_field(self, analyze):
        result = analyze("struct A {\n  int x;\n  bool x;\n};")
        assert _diag_pairs(result) == [(Msg.MULTIPLY_DECLARED, 3, 8)]

    def test_fields_live_in_their_own_table(self, analyze):
        result = analyze("struct A { int val; };\nvoid f() { val = 1; }")
        assert [d.message for d in result.diags.errors] == [Msg.UNDECLARED]
        a = result.analyzer.table.lookup_global('A')
        assert isinstance(a, StructDefSymbol)
        assert a.lookup_field('val').wtype == INT
        assert result.analyzer.table.lookup_global('val') is None

    def test_field_names_isolated_across_structs(self, analyze):
        result = analyze(
            "struct A { int val; };\n"
            "struct B { bool val; };\n"
            "struct A a;\n"
            "struct B b;\n"
            "void f() {\n"
            "  a.val = 1;\n"
            "  b.val = true;\n"
            "}\n")
        assert result.success
        bindings = result.analyzer.bindings
        first, second = result.ast.decls[4].body.stmts
        assert bindings.symbol_of(first.assign.left.member).wtype == INT
        assert bindings.symbol_of(second.assign.left.member).wtype == BOOL


class TestFunctions:

    def test_function_symbol(self, analyze):
        result = analyze("int add(int a, bool b) { return a; }")
        assert result.success
        f = result.analyzer.table.lookup_global('add')
        assert isinstance(f, FunctionSymbol)
        assert f.wtype == FunctionType(INT, (INT, BOOL))
        assert str(f) == 'int,bool->int'

    def test_recursion(self, analyze):
        result = analyze("int fact(int n) { return fact(n - 1) * n; }")
        assert result.success

    def test_duplicate_function_name_still_resolves_body(self, errors):
        source = "int f;\nvoid f() { q = 1; }"
        assert errors(source) == [Msg.MULTIPLY_DECLARED, Msg.UNDECLARED]

    def test_formals_share_scope_with_body(self, errors):
        assert errors("void f(int a) { int a; }") == [Msg.MULTIPLY_DECLARED]

    def test_duplicate_formal(self, analyze):
        result = analyze("void f(int a, bool a) {}")
        assert [d.message for d in result.diags.errors] == [Msg.MULTIPLY_DECLARED]
        # arity counts every formal; the duplicate keeps its declared type
        assert result.analyzer.table.lookup_global('f').param_types == [INT, BOOL]

    def test_void_formal_contributes_error_type(self, analyze):
        result = analyze("void f(void a) {}\nvoid g() { f(true); }")
        assert [d.message for d in result.diags.errors] == [Msg.VOID_VARIABLE]
        assert result.analyzer.table.lookup_global('f').param_types == [ERROR_T]

    def test_formal_kind(self, analyze):
        result = analyze("void f(int a) { a = 1; }")
        assign = result.ast.decls[0].body.stmts[0].assign
        assert result.analyzer.bindings.symbol_of(assign.left).kind == SymbolKind.PARAM

    def test_locals_invisible_after_function(self, errors):
        assert errors("void f() { int t; }\nvoid g() { t = 1; }") == [Msg.UNDECLARED]


class TestScopes:

    def test_shadowing_is_not_a_duplicate(self, analyze):
        result = analyze("int x;\nvoid f() {\n  bool x;\n  x = true;\n}")
        assert result.success
        assign = result.ast.decls[1].body.stmts[0].assign
        assert result.analyzer.bindings.symbol_of(assign.left).wtype == BOOL

    def test_block_scope_popped(self, analyze):
        result = analyze("void f() {\n  if (true) { int y; y = 1; }\n  y = 2;\n}")
        assert _diag_pairs(result) == [(Msg.UNDECLARED, 3, 3)]

    def test_if_else_branches_have_separate_frames(self, analyze):
        result = analyze("void f() {\n  if (true) { int y; } else { int y; }\n}")
        assert result.success

    def test_condition_resolved_in_enclosing_scope(self, errors):
        source = "void f() {\n  while (k) { bool k; }\n}"
        assert errors(source) == [Msg.UNDECLARED]

    def test_nested_blocks(self, analyze):
        result = analyze(
            "int x;\n"
            "void f() {\n"
            "  while (true) {\n"
            "    int x;\n"
            "    repeat (x) { bool x; x = false; }\n"
            "    x = 1;\n"
            "  }\n"
            "  x = 2;\n"
            "}\n")
        assert result.success
        assert result.analyzer.table.depth == 1

    def test_undeclared(self, analyze):
        result = analyze("void f() {\n  cout << nope;\n}")
        assert _diag_pairs(result) == [(Msg.UNDECLARED, 2, 11)]


class TestDotAccess:

    def test_chained_access_resolves(self, analyze):
        result = analyze(NESTED_STRUCTS)
        assert result.success
        assign = result.ast.decls[3].body.stmts[0].assign
        outer = assign.left                 # o.i.v
        inner = outer.obj                   # o.i
        bindings = result.analyzer.bindings
        inner_def = result.analyzer.table.lookup_global('Inner')
        assert bindings.symbol_of(outer.member).wtype == INT
        assert isinstance(bindings.symbol_of(inner.member), StructSymbol)
        assert bindings.struct_of(inner) is inner_def
        assert bindings.struct_of(outer) is None

    def test_missing_field_in_chain_reported_once(self, analyze):
        source = NESTED_STRUCTS.replace("o.i.v = 3;", "o.i.missing = 3;")
        result = analyze(source)
        assert _diag_pairs(result) == [(Msg.BAD_FIELD, 10, 9)]

    def test_missing_middle_field_reported_once(self, errors):
        source = NESTED_STRUCTS.replace("o.i.v = 3;", "o.nope.v = 3;")
        assert errors(source) == [Msg.BAD_FIELD]

    def test_undeclared_base(self, errors):
        assert errors("void f() { q.v = 1; }") == [Msg.UNDECLARED]

    def test_undeclared_base_in_chain(self, errors):
        assert errors("void f() { q.a.b.c = 1; }") == [Msg.UNDECLARED]

    def test_dot_on_non_struct_variable(self, analyze):
        result = analyze("int x;\nvoid f() {\n  x.y = 1;\n}")
        assert _diag_pairs(result) == [(Msg.DOT_NON_STRUCT, 3, 3)]

    def test_dot_on_non_struct_field(self, analyze):
        source = NESTED_STRUCTS.replace("o.i.v = 3;", "o.flag.z = 3;")
        result = analyze(source)
        # reported at the field that is not a struct
        assert _diag_pairs(result) == [(Msg.DOT_NON_STRUCT, 10, 7)]

    def test_dot_on_struct_name(self, errors):
        source = "struct P { int x; };\nvoid f() { P.x = 1; }"
        assert errors(source) == [Msg.DOT_NON_STRUCT]


class TestResolverInternals:

    def test_unknown_node_kind_fails_fast(self):
        class Mystery(ASTNode):
            pass

        with pytest.raises(InternalError):
            NameResolver().resolve(Program(decls=(Mystery(),)))

    def test_resolver_leaves_table_balanced(self, frontend):
        program = frontend.transform_only(NESTED_STRUCTS)
        resolver = NameResolver()
        diags = resolver.resolve(program)
        assert diags.count == 0
        assert resolver.table.depth == 1
        assert isinstance(resolver.table.lookup_global('o'), Symbol)
