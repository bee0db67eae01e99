"""
Wumbo 类型检查
==============
第二次自顶向下遍历（名字解析之后），自底向上计算每个表达式的类型：

  - 表达式的类型记入 TypeChecker.types（节点 → WType），AST 本身不变
  - 语句只做检查，不产生类型
  - 名字解析失败的标识符没有绑定，其类型为 ERROR_T，不再报错

级联抑制：一条规则遇到已经是 ERROR_T 的操作数时不再报错，只把 ERROR_T
向上传递。每个根本原因恰好产生一条诊断。
"""

from __future__ import annotations
import logging
from typing import Callable, Optional

from wumbocc.error import DiagnosticBag, InternalError, Msg
from .bindings import Bindings
from .type import (
    WType, INT, BOOL, STRING, ERROR_T, BUILTIN_TYPES,
    is_error, is_function, is_struct_var, is_struct_name,
    is_int, is_bool, is_void,
)

from ..tree.nodes import (
    ASTNode, Program, FnDecl, Block,
    AssignStmt, PostIncStmt, PostDecStmt, ReadStmt, WriteStmt,
    IfStmt, IfElseStmt, WhileStmt, RepeatStmt, CallStmt, ReturnStmt,
    Identifier, DotAccess, AssignExp, CallExp, UnaryOp, BinaryOp,
    EXPRESSION_NODES,
)

log = logging.getLogger(__name__)


ARITH_OPS    = ('+', '-', '*', '/')
LOGIC_OPS    = ('&&', '||')
REL_OPS      = ('<', '>', '<=', '>=')
EQUALITY_OPS = ('==', '!=')

# 相等比较中禁止的类型类别（两边同属一类时报对应的错）
_EQUALITY_FORBIDDEN = (
    (is_function,    Msg.EQ_FUNCTIONS),
    (is_void,        Msg.EQ_VOID),
    (is_struct_name, Msg.EQ_STRUCT_NAMES),
    (is_struct_var,  Msg.EQ_STRUCT_VARS),
)

_ASSIGN_FORBIDDEN = (
    (is_function,    Msg.ASSIGN_FUNCTION),
    (is_struct_name, Msg.ASSIGN_STRUCT_NAME),
    (is_struct_var,  Msg.ASSIGN_STRUCT_VAR),
)

_READ_FORBIDDEN = (
    (is_function,    Msg.READ_FUNCTION),
    (is_struct_name, Msg.READ_STRUCT_NAME),
    (is_struct_var,  Msg.READ_STRUCT_VAR),
)

_WRITE_FORBIDDEN = (
    (is_function,    Msg.WRITE_FUNCTION),
    (is_void,        Msg.WRITE_VOID),
    (is_struct_name, Msg.WRITE_STRUCT_NAME),
    (is_struct_var,  Msg.WRITE_STRUCT_VAR),
)


class TypeChecker:
    """
    类型检查 pass。

    用法：
        checker = TypeChecker(resolver.bindings)
        diags = checker.check(program)
        checker.types[some_expression]   # → WType
    """

    def __init__(self, bindings: Bindings, diag: DiagnosticBag = None):
        self.bindings = bindings
        self.diag     = diag if diag is not None else DiagnosticBag()
        self.types: dict[ASTNode, WType] = {}

        # 当前所在函数的声明返回类型（检查 return 语句用）
        self._curr_ret: Optional[WType] = None

    # ══════════════════════════════════════════════════════════════════════
    # 入口
    # ══════════════════════════════════════════════════════════════════════

    def check(self, root: Program) -> DiagnosticBag:
        before = self.diag.count
        log.debug("type checking: start")
        self._visit(root)
        log.debug("type checking: done, %d expression(s) typed, %d new diagnostic(s)",
                  len(self.types), self.diag.count - before)
        return self.diag

    def type_of(self, node: ASTNode) -> Optional[WType]:
        return self.types.get(node)

    # ══════════════════════════════════════════════════════════════════════
    # 分发器
    # ══════════════════════════════════════════════════════════════════════

    def _visit(self, node: ASTNode) -> Optional[WType]:
        """分发到 _visit_* 方法；表达式节点的结果记入 types"""
        method = '_visit_' + type(node).__name__
        handler = getattr(self, method, None)
        if handler is None:
            raise InternalError(f"type checking has no rule for {type(node).__name__}")
        result = handler(node)
        if isinstance(node, EXPRESSION_NODES):
            if result is None:
                raise InternalError(f"{type(node).__name__} produced no type")
            self.types[node] = result
        return result

    # ══════════════════════════════════════════════════════════════════════
    # 声明
    # ══════════════════════════════════════════════════════════════════════

    def _visit_Program(self, node: Program):
        for decl in node.decls:
            self._visit(decl)

    def _visit_VarDecl(self, node):
        pass

    def _visit_StructDecl(self, node):
        pass

    def _visit_FnDecl(self, node: FnDecl):
        self._curr_ret = BUILTIN_TYPES[node.type_spec.base_name]
        self._visit_Block(node.body)
        self._curr_ret = None

    def _visit_Block(self, node: Block):
        # 局部声明在名字解析阶段已处理完毕
        for stmt in node.stmts:
            self._visit(stmt)

    # ══════════════════════════════════════════════════════════════════════
    # 语句
    # ══════════════════════════════════════════════════════════════════════

    def _visit_AssignStmt(self, node: AssignStmt):
        self._visit(node.assign)

    def _visit_PostIncStmt(self, node: PostIncStmt):
        self._expect(node.target, is_int, Msg.ARITH_OPERAND)

    def _visit_PostDecStmt(self, node: PostDecStmt):
        self._expect(node.target, is_int, Msg.ARITH_OPERAND)

    def _visit_ReadStmt(self, node: ReadStmt):
        t = self._visit(node.target)
        self._forbid(node.target, t, _READ_FORBIDDEN)

    def _visit_WriteStmt(self, node: WriteStmt):
        t = self._visit(node.value)
        self._forbid(node.value, t, _WRITE_FORBIDDEN)

    def _visit_IfStmt(self, node: IfStmt):
        self._expect(node.cond, is_bool, Msg.IF_CONDITION)
        self._visit_Block(node.body)

    def _visit_IfElseStmt(self, node: IfElseStmt):
        self._expect(node.cond, is_bool, Msg.IF_CONDITION)
        self._visit_Block(node.then_body)
        self._visit_Block(node.else_body)

    def _visit_WhileStmt(self, node: WhileStmt):
        self._expect(node.cond, is_bool, Msg.WHILE_CONDITION)
        self._visit_Block(node.body)

    def _visit_RepeatStmt(self, node: RepeatStmt):
        self._expect(node.cond, is_int, Msg.REPEAT_CLAUSE)
        self._visit_Block(node.body)

    def _visit_CallStmt(self, node: CallStmt):
        self._visit(node.call)

    def _visit_ReturnStmt(self, node: ReturnStmt):
        ret = self._curr_ret
        if ret is None:
            raise InternalError("return statement outside of a function body")

        if node.value is None:
            if not is_void(ret):
                self.diag.error(Msg.MISSING_RETURN, node)
            return

        if is_void(ret):
            # 返回值本身不再检查
            self.diag.error(Msg.VOID_RETURN_VALUE, node.value)
            return

        t = self._visit(node.value)
        if not is_error(t) and t != ret:
            self.diag.error(Msg.BAD_RETURN, node.value)

    # ── 语句辅助 ────────────────────────────────────────────────────────────

    def _expect(self, exp: ASTNode, accept: Callable[[WType], bool], message: str):
        """exp 的类型必须满足 accept；ERROR_T 不再报错"""
        t = self._visit(exp)
        if not is_error(t) and not accept(t):
            self.diag.error(message, exp)

    def _forbid(self, exp: ASTNode, t: WType, rules) -> bool:
        """按顺序匹配禁止的类型类别，命中则报对应消息并返回 True"""
        for matches, message in rules:
            if matches(t):
                self.diag.error(message, exp)
                return True
        return False

    # ══════════════════════════════════════════════════════════════════════
    # 表达式
    # ══════════════════════════════════════════════════════════════════════

    def _visit_IntLiteral(self, node) -> WType:
        return INT

    def _visit_StringLiteral(self, node) -> WType:
        return STRING

    def _visit_BoolLiteral(self, node) -> WType:
        return BOOL

    def _visit_Identifier(self, node: Identifier) -> WType:
        sym = self.bindings.symbol_of(node)
        if sym is None:
            return ERROR_T      # 名字解析阶段已经报过错
        return sym.wtype

    def _visit_DotAccess(self, node: DotAccess) -> WType:
        self._visit(node.obj)
        return self._visit(node.member)

    def _visit_UnaryOp(self, node: UnaryOp) -> WType:
        if node.op == '-':
            return self._check_operands(node, (node.operand,), is_int, Msg.ARITH_OPERAND, INT)
        if node.op == '!':
            return self._check_operands(node, (node.operand,), is_bool, Msg.LOGIC_OPERAND, BOOL)
        raise InternalError(f"unknown unary operator {node.op!r}")

    def _visit_BinaryOp(self, node: BinaryOp) -> WType:
        operands = (node.left, node.right)
        if node.op in ARITH_OPS:
            return self._check_operands(node, operands, is_int, Msg.ARITH_OPERAND, INT)
        if node.op in LOGIC_OPS:
            return self._check_operands(node, operands, is_bool, Msg.LOGIC_OPERAND, BOOL)
        if node.op in REL_OPS:
            return self._check_operands(node, operands, is_int, Msg.REL_OPERAND, BOOL)
        if node.op in EQUALITY_OPS:
            return self._check_equality(node)
        raise InternalError(f"unknown binary operator {node.op!r}")

    def _check_operands(self, node, operands, accept, message: str,
                        result: WType) -> WType:
        """
        算术 / 逻辑 / 关系运算的公共规则：
        每个不合格的操作数各报一次错（位置取该操作数），已是 ERROR_T 的不报。
        """
        ok = True
        for operand in operands:
            t = self._visit(operand)
            if is_error(t):
                ok = False
            elif not accept(t):
                self.diag.error(message, operand)
                ok = False
        return result if ok else ERROR_T

    def _check_equality(self, node: BinaryOp) -> WType:
        lt = self._visit(node.left)
        rt = self._visit(node.right)
        if is_error(lt) or is_error(rt):
            return ERROR_T

        for matches, message in _EQUALITY_FORBIDDEN:
            if matches(lt) and matches(rt):
                self.diag.error(message, node)
                return ERROR_T

        if lt != rt:
            self.diag.error(Msg.TYPE_MISMATCH, node)
            return ERROR_T
        return BOOL

    def _visit_AssignExp(self, node: AssignExp) -> WType:
        lt = self._visit(node.left)
        rt = self._visit(node.right)

        if self._forbid(node.left, lt, _ASSIGN_FORBIDDEN):
            return ERROR_T

        # 调用表达式的类型就是函数的返回类型，x = f() 按普通规则比较
        if (is_int(lt) and is_int(rt)) or (is_bool(lt) and is_bool(rt)):
            return rt
        if is_error(lt) or is_error(rt):
            return ERROR_T

        self.diag.error(Msg.TYPE_MISMATCH, node)
        return ERROR_T

    def _visit_CallExp(self, node: CallExp) -> WType:
        ft = self._visit(node.callee)
        if is_error(ft):
            return ERROR_T
        if not is_function(ft):
            self.diag.error(Msg.CALL_NON_FUNCTION, node.callee)
            return ERROR_T
        if len(node.args) != len(ft.param_types):
            self.diag.error(Msg.WRONG_ARG_COUNT, node.callee)
            return ERROR_T

        for arg, formal in zip(node.args, ft.param_types):
            at = self._visit(arg)
            if is_error(at) or is_error(formal):
                continue
            if at != formal:
                self.diag.error(Msg.ACTUAL_FORMAL, arg)
        return ft.return_type
