"""
Tests for the front end pipeline, diagnostics and the command-line driver.
"""

import pytest

from wumbocc import WumboFrontend, FrontendResult, DiagnosticBag, SemanticError, Msg, unparse
from wumbocc.__main__ import main, EXIT_OK, EXIT_ERROR, EXIT_INFRA
from wumbocc.error import ErrorSeverity, SemanticDiag
from wumbocc.pipeline import GRAMMAR_FILE
from wumbocc.tree.nodes import Program

from tests.conftest import NESTED_STRUCTS


class TestFrontend:

    def test_success(self, analyze):
        result = analyze(NESTED_STRUCTS)
        assert isinstance(result, FrontendResult)
        assert isinstance(result.ast, Program)
        assert result.success
        assert result.analyzer.table.lookup_global('main') is not None

    def test_semantic_errors_keep_ast(self, analyze):
        result = analyze("void f() { x = 1; }")
        assert result.ast is not None
        assert result.analyzer is not None
        assert not result.success

    def test_syntax_error_stops_before_analysis(self, analyze):
        result = analyze("int;")
        assert result.ast is None
        assert result.analyzer is None
        assert result.diags.messages == [Msg.SYNTAX_ERROR]

    def test_diagnostics_in_traversal_order(self, errors):
        source = ("int a;\n"
                  "bool a;\n"
                  "void f() {\n"
                  "  b = 1;\n"
                  "  a = true;\n"
                  "  if (a) {}\n"
                  "}\n")
        assert errors(source) == [
            Msg.MULTIPLY_DECLARED, Msg.UNDECLARED,
            Msg.TYPE_MISMATCH, Msg.IF_CONDITION,
        ]

    def test_analysis_state_is_per_unit(self, frontend):
        first = frontend.process_string("int x;")
        second = frontend.process_string("int x;")
        assert first.success and second.success
        assert first.analyzer is not second.analyzer

    def test_process_file(self, frontend, tmp_path):
        path = tmp_path / "ok.wumbo"
        path.write_text(NESTED_STRUCTS, encoding="utf-8")
        assert frontend.process_file(path).success

    def test_process_missing_file(self, frontend, tmp_path):
        with pytest.raises(OSError):
            frontend.process_file(tmp_path / "missing.wumbo")

    def test_custom_grammar_text(self):
        text = GRAMMAR_FILE.read_text(encoding="utf-8")
        result = WumboFrontend(grammar_text=text).process_string("int x;")
        assert result.success

    def test_grammar_file_and_text_are_exclusive(self):
        with pytest.raises(ValueError):
            WumboFrontend(grammar_file="a.lark", grammar_text="start: \"a\"")

    def test_parse_only_returns_lark_tree(self, frontend):
        tree = frontend.parse_only("int x;")
        assert tree.data == 'start'


class TestDiagnosticBag:

    def test_report_sorted_with_summary(self):
        bag = DiagnosticBag()
        bag.error(Msg.UNDECLARED, (3, 1))
        bag.warning(Msg.INT_TOO_LARGE, (1, 9))
        report = bag.report()
        lines = report.splitlines()
        assert lines[0] == "[WARNING] 1:9  integer literal too large; using max value"
        assert lines[1] == "[ERROR] 3:1  undeclared identifier"
        assert "1 error(s), 1 warning(s)" in report

    def test_empty_report(self):
        assert DiagnosticBag().report() == "No diagnostics."

    def test_raise_if_errors(self):
        bag = DiagnosticBag()
        bag.warning(Msg.INT_TOO_LARGE, (1, 1))
        bag.raise_if_errors()
        bag.error(Msg.SYNTAX_ERROR, (2, 2))
        with pytest.raises(SemanticError):
            bag.raise_if_errors()

    def test_extend_keeps_order(self):
        first, second = DiagnosticBag(), DiagnosticBag()
        first.error("one", (5, 5))
        second.error("two", (1, 1))
        first.extend(second)
        assert first.messages == ["one", "two"]
        assert len(first) == 2

    def test_diag_str(self):
        diag = SemanticDiag(ErrorSeverity.ERROR, Msg.TYPE_MISMATCH, 4, 7)
        assert str(diag) == "[ERROR] 4:7  type mismatch"

    def test_location_from_node(self, frontend):
        program = frontend.transform_only("int x;")
        bag = DiagnosticBag()
        bag.error(Msg.MULTIPLY_DECLARED, program.decls[0].ident)
        assert (bag.errors[0].line, bag.errors[0].column) == (1, 5)


class TestCommandLine:

    @pytest.fixture
    def source_file(self, tmp_path):
        def _write(text):
            path = tmp_path / "prog.wumbo"
            path.write_text(text, encoding="utf-8")
            return str(path)
        return _write

    def test_clean_program(self, source_file, capsys):
        assert main([source_file(NESTED_STRUCTS)]) == EXIT_OK
        captured = capsys.readouterr()
        assert captured.out == ""

    def test_program_with_errors(self, source_file, capsys):
        assert main([source_file("void f() {\n  x = 1;\n}\n")]) == EXIT_ERROR
        err = capsys.readouterr().err
        assert "[ERROR] 2:3  undeclared identifier" in err

    def test_syntax_error(self, source_file, capsys):
        assert main([source_file("int")]) == EXIT_ERROR
        assert "syntax error" in capsys.readouterr().err

    def test_warning_only_is_success(self, source_file, capsys):
        path = source_file("int x;\nvoid f() { x = 4294967296; }\n")
        assert main([path]) == EXIT_OK
        assert Msg.INT_TOO_LARGE in capsys.readouterr().err

    def test_unreadable_input(self, tmp_path, capsys):
        assert main([str(tmp_path / "nope.wumbo")]) == EXIT_INFRA
        assert "cannot read" in capsys.readouterr().err

    def test_unparse(self, source_file, frontend, capsys):
        assert main(["--unparse", source_file(NESTED_STRUCTS)]) == EXIT_OK
        out = capsys.readouterr().out
        assert out == unparse(frontend.transform_only(NESTED_STRUCTS))

    def test_annotate(self, source_file, capsys):
        assert main(["--annotate", source_file(NESTED_STRUCTS)]) == EXIT_OK
        assert "o(Outer).i(Inner).v(int) = 3;" in capsys.readouterr().out

    def test_symbols(self, source_file, capsys):
        assert main(["--symbols", source_file(NESTED_STRUCTS)]) == EXIT_OK
        out = capsys.readouterr().out
        assert "[global]" in out
        assert "main:" in out
