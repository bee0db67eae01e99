"""
Wumbo 语义分析器
================
对一个编译单元依次运行两个 pass：

  1. NameResolver  → 符号表 + 标识符绑定（Bindings）
  2. TypeChecker   → 表达式类型（types）

两个 pass 共用同一个 DiagnosticBag，诊断顺序即遍历顺序。
名字解析报错后默认仍继续做类型检查：未绑定的标识符在类型检查中
得到 ERROR_T，不会产生重复诊断。
"""

from __future__ import annotations
import logging

from wumbocc.error import DiagnosticBag
from .bindings import Bindings
from .checker import TypeChecker
from .resolver import NameResolver
from .symbol import SymbolTable
from .type import WType

from ..tree.nodes import ASTNode, Program

log = logging.getLogger(__name__)


class WumboAnalyzer:
    """
    Wumbo 语义分析器。

    用法：
        analyzer = WumboAnalyzer()
        diags = analyzer.analyze(program)
        if diags.has_errors:
            print(diags.report())

    Attributes（analyze 之后可用）:
        table:    文件作用域符号表
        bindings: 标识符 → 符号 的旁路表
        types:    表达式 → 类型 的旁路表
    """

    def __init__(self, check_after_name_errors: bool = True):
        self.check_after_name_errors = check_after_name_errors
        self.diag     = DiagnosticBag()
        self.table    = SymbolTable()
        self.bindings = Bindings()
        self.types: dict[ASTNode, WType] = {}

    def analyze(self, root: Program) -> DiagnosticBag:
        # 每个编译单元使用全新的状态
        self.diag     = DiagnosticBag()
        self.table    = SymbolTable()
        self.bindings = Bindings()
        self.types    = {}

        NameResolver(self.table, self.bindings, self.diag).resolve(root)

        if self.diag.has_errors and not self.check_after_name_errors:
            log.debug("skipping type checking: %d name error(s)", len(self.diag.errors))
            return self.diag

        checker = TypeChecker(self.bindings, self.diag)
        checker.check(root)
        self.types = checker.types
        return self.diag

    def type_of(self, node: ASTNode) -> WType | None:
        return self.types.get(node)
