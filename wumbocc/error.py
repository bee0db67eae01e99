"""
Wumbo 诊断信息体系
===================
收集所有词法 / 语法 / 语义诊断，支持"继续分析模式"（报错后不立即崩溃，
尽量多检测错误）。

两类错误严格分开：
  - 用户程序的错误 → DiagnosticBag（可恢复，继续遍历）
  - 分析器自身的不变量被破坏 → InternalError（立即抛出，不进入 DiagnosticBag）
"""

from dataclasses import dataclass
from enum import Enum, auto


class ErrorSeverity(Enum):
    WARNING = auto()
    ERROR   = auto()


# ──────────────────────────────────────────────────────────────────────────────
# 固定的诊断文本（消息文本本身就是错误分类，没有独立的错误码）
# ──────────────────────────────────────────────────────────────────────────────

class Msg:
    # 名字解析
    MULTIPLY_DECLARED   = "multiply declared identifier"
    UNDECLARED          = "undeclared identifier"
    VOID_VARIABLE       = "non-function declared void"
    BAD_STRUCT_TYPE     = "invalid name of struct type"
    DOT_NON_STRUCT      = "dot-access of non-struct type"
    BAD_FIELD           = "invalid struct field name"

    # 运算符
    ARITH_OPERAND       = "arithmetic operator applied to non-numeric operand"
    LOGIC_OPERAND       = "logical operator applied to non-bool operand"
    REL_OPERAND         = "relational operator applied to non-numeric operand"
    EQ_FUNCTIONS        = "equality operator applied to functions"
    EQ_VOID             = "equality operator applied to void functions"
    EQ_STRUCT_NAMES     = "equality operator applied to struct names"
    EQ_STRUCT_VARS      = "equality operator applied to struct variables"
    TYPE_MISMATCH       = "type mismatch"

    # 赋值
    ASSIGN_FUNCTION     = "function assignment"
    ASSIGN_STRUCT_NAME  = "struct name assignment"
    ASSIGN_STRUCT_VAR   = "struct variable assignment"

    # 调用
    CALL_NON_FUNCTION   = "attempt to call a non-function"
    WRONG_ARG_COUNT     = "function call with wrong number of args"
    ACTUAL_FORMAL       = "type of actual does not match type of formal"

    # cin / cout
    READ_FUNCTION       = "attempt to read a function"
    READ_STRUCT_NAME    = "attempt to read a struct name"
    READ_STRUCT_VAR     = "attempt to read a struct variable"
    WRITE_FUNCTION      = "attempt to write a function"
    WRITE_VOID          = "attempt to write void"
    WRITE_STRUCT_NAME   = "attempt to write a struct name"
    WRITE_STRUCT_VAR    = "attempt to write a struct variable"

    # 控制流
    IF_CONDITION        = "non-bool expression used as an if condition"
    WHILE_CONDITION     = "non-bool expression used as a while condition"
    REPEAT_CLAUSE       = "non-integer expression used as a repeat clause"

    # return
    VOID_RETURN_VALUE   = "return with a value in a void function"
    MISSING_RETURN      = "missing return value"
    BAD_RETURN          = "bad return value"

    # 词法 / 语法（前端）
    INT_TOO_LARGE       = "integer literal too large; using max value"
    ILLEGAL_CHAR        = "illegal character: {char}"
    SYNTAX_ERROR        = "syntax error"


@dataclass
class SemanticDiag:
    """一条诊断信息"""
    severity: ErrorSeverity
    message:  str
    line:     int = -1
    column:   int = -1
    hint:     str = ''       # 可选修复提示

    def __str__(self):
        loc = f"{self.line}:{self.column}" if self.line > 0 else '?:?'
        tag = self.severity.name
        base = f"[{tag}] {loc}  {self.message}"
        if self.hint:
            base += f"\n  hint: {self.hint}"
        return base


class SemanticError(Exception):
    """单次立即抛出（仅在 fail-fast 模式使用，见 DiagnosticBag.raise_if_errors）"""
    def __init__(self, message, line=-1, column=-1):
        super().__init__(message)
        self.line   = line
        self.column = column


class InternalError(Exception):
    """
    分析器自身的 bug（作用域栈失衡、重复绑定等）。
    永远不写入 DiagnosticBag，直接向上抛出。
    """


class DiagnosticBag:
    """
    诊断信息收集袋。
    各个 pass 将错误/警告加入此袋，
    分析结束后统一输出，而不是每遇一个错误立即中断。
    顺序即遍历顺序（声明顺序，表达式内从左到右）。
    """
    def __init__(self):
        self._diags: list[SemanticDiag] = []

    # ── 添加诊断 ────────────────────────────────────────────────────────────

    def error(self, message: str, node=None, hint: str = ''):
        line, column = _loc(node)
        self._diags.append(SemanticDiag(ErrorSeverity.ERROR, message, line, column, hint))

    def warning(self, message: str, node=None, hint: str = ''):
        line, column = _loc(node)
        self._diags.append(SemanticDiag(ErrorSeverity.WARNING, message, line, column, hint))

    def extend(self, other: 'DiagnosticBag'):
        """合并另一个袋子的诊断（保持原有顺序）"""
        self._diags.extend(other)

    # ── 查询 ────────────────────────────────────────────────────────────────

    @property
    def has_errors(self) -> bool:
        return any(d.severity == ErrorSeverity.ERROR for d in self._diags)

    @property
    def count(self) -> int:
        return len(self._diags)

    @property
    def errors(self):
        return [d for d in self._diags if d.severity == ErrorSeverity.ERROR]

    @property
    def warnings(self):
        return [d for d in self._diags if d.severity == ErrorSeverity.WARNING]

    @property
    def messages(self) -> list[str]:
        return [d.message for d in self._diags]

    def __iter__(self):
        return iter(self._diags)

    def __len__(self):
        return len(self._diags)

    # ── 输出 ────────────────────────────────────────────────────────────────

    def report(self) -> str:
        if not self._diags:
            return "No diagnostics."
        lines = [str(d) for d in sorted(self._diags, key=lambda d: (d.line, d.column))]
        summary = (f"\n{'─'*60}\n"
                   f"{len(self.errors)} error(s), {len(self.warnings)} warning(s)")
        return '\n'.join(lines) + summary

    def raise_if_errors(self):
        if self.has_errors:
            raise SemanticError(f"{len(self.errors)} semantic error(s) found.\n" +
                                '\n'.join(str(d) for d in self.errors))


def _loc(node) -> tuple[int, int]:
    """从 AST 节点 / Lark Token / (line, col) 元组提取行列信息"""
    if node is None:
        return -1, -1
    if isinstance(node, tuple):
        return node
    # AST 节点：pos 已按节点种类推导好（二元运算取左操作数，点访问取字段名 …）
    pos = getattr(node, 'pos', None)
    if pos is not None:
        return pos
    # Lark Token
    if hasattr(node, 'line') and hasattr(node, 'column'):
        return getattr(node, 'line', -1), getattr(node, 'column', -1)
    return -1, -1
