"""
Wumbo 名字解析
==============
单次自顶向下遍历 AST，完成：
  1. 建立作用域嵌套的符号表（文件 → 函数 → 块）
  2. 每个 struct 定义拥有独立的字段符号表（不压入主作用域栈）
  3. 把每个标识符使用绑定到它的声明（写入 Bindings 旁路表）
  4. 解析链式点访问 a.b.c：从左到右穿过各层 struct 的字段表

设计原则：
  - 用户程序的错误写入 DiagnosticBag，继续遍历
  - 每条断裂的点访问链只报一次错，节点被标记为"坏"，外层不再重复报告
  - 没有默认访问器：遇到未知节点种类直接抛 InternalError
"""

from __future__ import annotations
import logging

from wumbocc.error import DiagnosticBag, InternalError, Msg
from .bindings import Bindings
from .symbol import (
    Symbol, SymbolKind, SymbolTable,
    FunctionSymbol, StructDefSymbol, StructSymbol,
)
from .type import BUILTIN_TYPES, ERROR_T

from ..tree.nodes import (
    ASTNode, Program, VarDecl, FnDecl, FormalDecl, StructDecl, Block,
    Identifier, DotAccess,
)

log = logging.getLogger(__name__)


class ScopeImbalanceError(InternalError):
    """遍历结束后作用域栈没有回到文件作用域"""


class NameResolver:
    """
    名字解析 pass。

    用法：
        resolver = NameResolver()
        diags = resolver.resolve(program)
        sym = resolver.bindings.symbol_of(some_identifier)
    """

    def __init__(self, table: SymbolTable = None, bindings: Bindings = None,
                 diag: DiagnosticBag = None):
        self.table    = table if table is not None else SymbolTable()
        self.bindings = bindings if bindings is not None else Bindings()
        self.diag     = diag if diag is not None else DiagnosticBag()

    # ══════════════════════════════════════════════════════════════════════
    # 入口
    # ══════════════════════════════════════════════════════════════════════

    def resolve(self, root: Program) -> DiagnosticBag:
        depth = self.table.depth
        before = self.diag.count
        log.debug("name resolution: start (%d top-level decls)", len(root.decls))

        self._visit(root)

        if self.table.depth != depth:
            raise ScopeImbalanceError(
                f"scope depth {self.table.depth} after resolution, expected {depth}")
        log.debug("name resolution: done, %d identifier(s) bound, %d new diagnostic(s)",
                  len(self.bindings), self.diag.count - before)
        return self.diag

    # ══════════════════════════════════════════════════════════════════════
    # 分发器
    # ══════════════════════════════════════════════════════════════════════

    def _visit(self, node: ASTNode):
        method = '_visit_' + type(node).__name__
        handler = getattr(self, method, None)
        if handler is None:
            raise InternalError(f"name resolution has no rule for {type(node).__name__}")
        handler(node)

    # ══════════════════════════════════════════════════════════════════════
    # 声明
    # ══════════════════════════════════════════════════════════════════════

    def _visit_Program(self, node: Program):
        for decl in node.decls:
            self._visit(decl)

    def _visit_VarDecl(self, node: VarDecl):
        self._declare(node, self.table, SymbolKind.VAR)

    def _declare(self, node, table: SymbolTable, kind: SymbolKind):
        """
        变量 / 形参 / 字段声明的公共规则，插入到 table 的当前作用域。

        void 检查、struct 类型名检查与重名检查相互独立，可以同时报告。
        struct 类型名总是在主符号表中查找（即使 table 是某个 struct 的字段表）。
        返回新插入的符号；任何一项检查失败则返回 None。
        """
        ident = node.ident
        spec  = node.type_spec
        ok = True
        definition = None

        if spec.is_void:
            self.diag.error(Msg.VOID_VARIABLE, ident)
            ok = False
        elif spec.is_struct:
            found = self.table.lookup_global(spec.struct_id.name)
            if isinstance(found, StructDefSymbol):
                definition = found
                self.bindings.bind(spec.struct_id, found)
            else:
                self.diag.error(Msg.BAD_STRUCT_TYPE, spec.struct_id)
                ok = False

        if table.lookup_local(ident.name) is not None:
            self.diag.error(Msg.MULTIPLY_DECLARED, ident)
            ok = False

        if not ok:
            return None

        if definition is not None:
            sym = StructSymbol(ident.name, spec.struct_id, definition, node=ident)
        else:
            sym = Symbol(ident.name, BUILTIN_TYPES[spec.base_name], kind, node=ident)
        table.add_decl(ident.name, sym)
        self.bindings.bind(ident, sym)
        return sym

    def _visit_FnDecl(self, node: FnDecl):
        ident = node.ident
        func_sym = FunctionSymbol(ident.name, BUILTIN_TYPES[node.type_spec.base_name],
                                  node=ident)

        # 函数名先于函数体插入，支持递归调用
        if self.table.lookup_local(ident.name) is not None:
            self.diag.error(Msg.MULTIPLY_DECLARED, ident)
        else:
            self.table.add_decl(ident.name, func_sym)
            self.bindings.bind(ident, func_sym)

        # 即使函数名重复也照常压栈，保持 add_scope / remove_scope 配对
        self.table.add_scope(f"fn:{ident.name}")

        param_types = []
        for formal in node.formals:
            self._visit_FormalDecl(formal)
            spec = formal.type_spec
            param_types.append(ERROR_T if spec.is_void else BUILTIN_TYPES[spec.base_name])
        func_sym.set_params(param_types)

        # 形参与函数体的局部声明共用同一个作用域
        self._visit_block_items(node.body)
        self.table.remove_scope()

    def _visit_FormalDecl(self, node: FormalDecl):
        self._declare(node, self.table, SymbolKind.PARAM)

    def _visit_StructDecl(self, node: StructDecl):
        ident = node.ident
        if self.table.lookup_local(ident.name) is not None:
            self.diag.error(Msg.MULTIPLY_DECLARED, ident)
            return

        fields = SymbolTable(f"struct:{ident.name}")
        for field_decl in node.fields:
            self._declare(field_decl, fields, SymbolKind.VAR)

        # 字段解析完之后才插入：字段不能以正在定义的 struct 为类型
        struct_sym = StructDefSymbol(ident.name, fields, node=ident)
        self.table.add_decl(ident.name, struct_sym)
        self.bindings.bind(ident, struct_sym)

    # ══════════════════════════════════════════════════════════════════════
    # 语句
    # ══════════════════════════════════════════════════════════════════════

    def _visit_block_items(self, block: Block):
        for decl in block.decls:
            self._visit(decl)
        for stmt in block.stmts:
            self._visit(stmt)

    def _visit_Block(self, node: Block):
        """if / else / while / repeat 体：各自独立的作用域"""
        self.table.add_scope()
        self._visit_block_items(node)
        self.table.remove_scope()

    def _visit_AssignStmt(self, node):
        self._visit(node.assign)

    def _visit_PostIncStmt(self, node):
        self._visit(node.target)

    def _visit_PostDecStmt(self, node):
        self._visit(node.target)

    def _visit_ReadStmt(self, node):
        self._visit(node.target)

    def _visit_WriteStmt(self, node):
        self._visit(node.value)

    def _visit_IfStmt(self, node):
        self._visit(node.cond)      # 条件在外层作用域中解析
        self._visit_Block(node.body)

    def _visit_IfElseStmt(self, node):
        self._visit(node.cond)
        self._visit_Block(node.then_body)
        self._visit_Block(node.else_body)

    def _visit_WhileStmt(self, node):
        self._visit(node.cond)
        self._visit_Block(node.body)

    def _visit_RepeatStmt(self, node):
        self._visit(node.cond)
        self._visit_Block(node.body)

    def _visit_CallStmt(self, node):
        self._visit(node.call)

    def _visit_ReturnStmt(self, node):
        if node.value is not None:
            self._visit(node.value)

    # ══════════════════════════════════════════════════════════════════════
    # 表达式
    # ══════════════════════════════════════════════════════════════════════

    def _visit_IntLiteral(self, node):
        pass

    def _visit_StringLiteral(self, node):
        pass

    def _visit_BoolLiteral(self, node):
        pass

    def _visit_Identifier(self, node: Identifier):
        sym = self.table.lookup_global(node.name)
        if sym is None:
            self.diag.error(Msg.UNDECLARED, node)
            return
        self.bindings.bind(node, sym)

    def _visit_DotAccess(self, node: DotAccess):
        obj = node.obj
        self._visit(obj)

        if isinstance(obj, Identifier):
            sym = self.bindings.symbol_of(obj)
            if sym is None:
                # 未声明：已经报过 undeclared identifier
                self.bindings.mark_bad(node)
                return
            if not isinstance(sym, StructSymbol):
                self.diag.error(Msg.DOT_NON_STRUCT, obj)
                self.bindings.mark_bad(node)
                return
            definition = sym.definition
        elif isinstance(obj, DotAccess):
            if self.bindings.is_bad(obj):
                self.bindings.mark_bad(node)
                return
            definition = self.bindings.struct_of(obj)
            if definition is None:
                # 内层字段存在，但不是 struct 变量
                self.diag.error(Msg.DOT_NON_STRUCT, obj)
                self.bindings.mark_bad(node)
                return
        else:
            raise InternalError(f"dot-access on {type(obj).__name__}")

        # 字段名只在该 struct 自己的字段表里查找
        field_sym = definition.lookup_field(node.member.name)
        if field_sym is None:
            self.diag.error(Msg.BAD_FIELD, node.member)
            self.bindings.mark_bad(node)
            return

        self.bindings.bind(node.member, field_sym)
        if isinstance(field_sym, StructSymbol):
            self.bindings.bind_struct(node, field_sym.definition)

    def _visit_AssignExp(self, node):
        self._visit(node.left)
        self._visit(node.right)

    def _visit_CallExp(self, node):
        self._visit(node.callee)
        for arg in node.args:
            self._visit(arg)

    def _visit_UnaryOp(self, node):
        self._visit(node.operand)

    def _visit_BinaryOp(self, node):
        self._visit(node.left)
        self._visit(node.right)
