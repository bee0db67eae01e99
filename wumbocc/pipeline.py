"""
WumboCC 分析流水线
==================
将词法分析 → 语法分析 → AST 转换 → 名字解析 → 类型检查串联为一个高层接口。
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from lark import Lark, exceptions as lark_exc

from .tree.nodes import Program
from .tree.transformer import WumboTransformer
from .semantic.analyzer import WumboAnalyzer
from wumbocc.error import DiagnosticBag, Msg

log = logging.getLogger(__name__)

GRAMMAR_FILE = Path(__file__).with_name('wumbo.lark')


# ─── 结果对象 ──────────────────────────────────────────────────────────────────

@dataclass
class FrontendResult:
    """分析流水线的输出"""
    ast:      Optional[Program]          # None 表示词法 / 语法分析失败
    diags:    DiagnosticBag
    analyzer: Optional[WumboAnalyzer]    # None 表示未进入语义分析

    @property
    def success(self) -> bool:
        return self.ast is not None and not self.diags.has_errors


# ─── 主流水线 ─────────────────────────────────────────────────────────────────

class WumboFrontend:
    """
    Wumbo 编译器前端。

    主要流程：
      1. Lark 解析（词法 + 语法）→ CST
      2. WumboTransformer → AST
      3. WumboAnalyzer    → 符号表 + 绑定 + 表达式类型

    用法::

        frontend = WumboFrontend()
        result = frontend.process_file("test.wumbo")
        print(result.diags.report())
    """

    def __init__(self, grammar_file: str | Path = None, grammar_text: str = None,
                 parser: str = 'lalr', check_after_name_errors: bool = True):
        """
        Args:
            grammar_file: .lark 文件路径（与 grammar_text 二选一；都不给时使用包内 wumbo.lark）
            grammar_text: 直接传入 grammar 字符串
            parser:       Lark 解析算法，默认 'lalr'
            check_after_name_errors: 名字解析报错后是否仍做类型检查
        """
        if grammar_file is not None and grammar_text is not None:
            raise ValueError("grammar_file 与 grammar_text 只能提供一个")

        options = dict(
            parser=parser,
            lexer='basic' if parser == 'lalr' else 'dynamic',
            propagate_positions=True,
            maybe_placeholders=True,
        )
        if grammar_text is not None:
            self._parser = Lark(grammar_text, **options)
        else:
            self._parser = Lark.open(str(grammar_file or GRAMMAR_FILE), **options)

        self.check_after_name_errors = check_after_name_errors

    # ── 分析入口 ───────────────────────────────────────────────────────────

    def process_file(self, path: str | Path) -> FrontendResult:
        """分析单个 .wumbo 文件；文件不可读时抛 OSError"""
        path = Path(path)
        source = path.read_text(encoding='utf-8')
        return self.process_string(source, source_name=str(path))

    def process_string(self, source: str, source_name: str = '<input>') -> FrontendResult:
        """
        分析源码字符串，返回 FrontendResult。
        语义错误不会中断分析；词法 / 语法错误在报告后停止（ast 为 None）。
        """
        diag = DiagnosticBag()
        log.debug("processing %s (%d chars)", source_name, len(source))

        # ── Step 1: 词法 + 语法分析 ─────────────────────────────────────
        try:
            cst = self._parser.parse(source)
        except lark_exc.UnexpectedCharacters as e:
            diag.error(Msg.ILLEGAL_CHAR.format(char=e.char), (e.line, e.column))
            return FrontendResult(ast=None, diags=diag, analyzer=None)
        except lark_exc.UnexpectedToken as e:
            diag.error(Msg.SYNTAX_ERROR, _token_pos(e))
            return FrontendResult(ast=None, diags=diag, analyzer=None)
        except lark_exc.UnexpectedInput as e:
            diag.error(Msg.SYNTAX_ERROR, (e.line, e.column))
            return FrontendResult(ast=None, diags=diag, analyzer=None)

        # ── Step 2: CST → AST ───────────────────────────────────────────
        ast = self._transform(cst, diag)

        # ── Step 3: 语义分析 ─────────────────────────────────────────────
        # InternalError 是分析器自身的 bug，不转成诊断，直接向上抛出
        analyzer = WumboAnalyzer(check_after_name_errors=self.check_after_name_errors)
        diag.extend(analyzer.analyze(ast))

        log.debug("%s: %d error(s), %d warning(s)",
                  source_name, len(diag.errors), len(diag.warnings))
        return FrontendResult(ast=ast, diags=diag, analyzer=analyzer)

    # ── 调试工具 ───────────────────────────────────────────────────────────

    def parse_only(self, source: str):
        """仅做语法分析，返回 Lark Tree（调试用）"""
        return self._parser.parse(source)

    def transform_only(self, source: str) -> Program:
        """语法分析 + AST 转换，不做语义分析（调试用）"""
        return self._transform(self._parser.parse(source), DiagnosticBag())

    def _transform(self, cst, diag: DiagnosticBag) -> Program:
        try:
            return WumboTransformer(diag).transform(cst)
        except lark_exc.VisitError as e:
            # Transformer 会把回调里的异常包一层，这里还原成原始异常
            raise e.orig_exc from e


def _token_pos(e: lark_exc.UnexpectedToken) -> tuple[int, int]:
    tok = e.token
    # 文件末尾的 $END token 没有位置，退回到异常本身记录的位置
    line = getattr(tok, 'line', None) or e.line
    column = getattr(tok, 'column', None) or e.column
    return line, column
