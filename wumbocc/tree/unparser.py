"""
Wumbo 反解析（pretty printer）
==============================
把 AST 还原成合法的 Wumbo 源码：

  - 缩进按 indent_step 递增
  - 子表达式一律加括号：(a + b)、(-a)、(!a)；赋值在语句层不加括号
  - 给定 bindings 时，表达式中已绑定的标识符渲染成 name(type)，
    例如 x(int)、f(int,bool->int)、p(Point)
"""

from __future__ import annotations

from wumbocc.error import InternalError
from .nodes import ASTNode, Program, Identifier


class Unparser:
    def __init__(self, bindings=None, indent_step: int = 4):
        self.bindings    = bindings
        self.indent_step = indent_step
        self._out: list[str] = []

    def unparse(self, root: Program) -> str:
        self._out = []
        self._visit(root, 0)
        return ''.join(self._out)

    # ── 输出辅助 ────────────────────────────────────────────────────────────

    def _write(self, text: str):
        self._out.append(text)

    def _line(self, indent: int, text: str):
        self._out.append(' ' * indent + text + '\n')

    def _visit(self, node: ASTNode, indent: int):
        method = '_visit_' + type(node).__name__
        handler = getattr(self, method, None)
        if handler is None:
            raise InternalError(f"unparser has no rule for {type(node).__name__}")
        handler(node, indent)

    # ── 声明 ────────────────────────────────────────────────────────────────

    def _visit_Program(self, node, indent):
        for decl in node.decls:
            self._visit(decl, indent)

    def _visit_VarDecl(self, node, indent):
        self._line(indent, f"{self._type(node.type_spec)} {node.ident.name};")

    def _visit_FnDecl(self, node, indent):
        formals = ', '.join(f"{self._type(f.type_spec)} {f.ident.name}"
                            for f in node.formals)
        self._line(indent, f"{self._type(node.type_spec)} {node.ident.name}({formals}) {{")
        self._block(node.body, indent + self.indent_step)
        self._line(indent, "}")
        self._write('\n')

    def _visit_StructDecl(self, node, indent):
        self._line(indent, f"struct {node.ident.name}{{")
        for field_decl in node.fields:
            self._visit(field_decl, indent + self.indent_step)
        self._line(indent, "};")
        self._write('\n')

    @staticmethod
    def _type(spec) -> str:
        if spec.is_struct:
            return f"struct {spec.struct_id.name}"
        return spec.base_name

    def _block(self, block, indent):
        for decl in block.decls:
            self._visit(decl, indent)
        for stmt in block.stmts:
            self._visit(stmt, indent)

    # ── 语句 ────────────────────────────────────────────────────────────────

    def _visit_AssignStmt(self, node, indent):
        self._line(indent, self._exp(node.assign, top=True) + ';')

    def _visit_PostIncStmt(self, node, indent):
        self._line(indent, self._exp(node.target) + '++;')

    def _visit_PostDecStmt(self, node, indent):
        self._line(indent, self._exp(node.target) + '--;')

    def _visit_ReadStmt(self, node, indent):
        self._line(indent, f"cin >> {self._exp(node.target)};")

    def _visit_WriteStmt(self, node, indent):
        self._line(indent, f"cout << {self._exp(node.value)};")

    def _visit_IfStmt(self, node, indent):
        self._braced(f"if ({self._exp(node.cond)})", node.body, indent)

    def _visit_IfElseStmt(self, node, indent):
        self._braced(f"if ({self._exp(node.cond)})", node.then_body, indent)
        self._braced("else", node.else_body, indent)

    def _visit_WhileStmt(self, node, indent):
        self._braced(f"while ({self._exp(node.cond)})", node.body, indent)

    def _visit_RepeatStmt(self, node, indent):
        self._braced(f"repeat ({self._exp(node.cond)})", node.body, indent)

    def _visit_CallStmt(self, node, indent):
        self._line(indent, self._exp(node.call) + ';')

    def _visit_ReturnStmt(self, node, indent):
        if node.value is None:
            self._line(indent, "return;")
        else:
            self._line(indent, f"return {self._exp(node.value)};")

    def _braced(self, head: str, body, indent):
        self._line(indent, head + " {")
        self._block(body, indent + self.indent_step)
        self._line(indent, "}")

    # ── 表达式 ──────────────────────────────────────────────────────────────

    def _exp(self, node: ASTNode, top: bool = False) -> str:
        kind = type(node).__name__
        if kind == 'IntLiteral':
            return str(node.value)
        if kind == 'StringLiteral':
            return node.raw
        if kind == 'BoolLiteral':
            return 'true' if node.value else 'false'
        if kind == 'Identifier':
            return self._ident(node)
        if kind == 'DotAccess':
            return f"{self._exp(node.obj)}.{self._ident(node.member)}"
        if kind == 'AssignExp':
            text = f"{self._exp(node.left)} = {self._exp(node.right)}"
            return text if top else f"({text})"
        if kind == 'CallExp':
            args = ', '.join(self._exp(a) for a in node.args)
            return f"{self._ident(node.callee)}({args})"
        if kind == 'UnaryOp':
            return f"({node.op}{self._exp(node.operand)})"
        if kind == 'BinaryOp':
            return f"({self._exp(node.left)} {node.op} {self._exp(node.right)})"
        raise InternalError(f"unparser has no rule for expression {kind}")

    def _ident(self, node: Identifier) -> str:
        if self.bindings is None:
            return node.name
        sym = self.bindings.symbol_of(node)
        if sym is None:
            return node.name
        return f"{node.name}({sym})"


def unparse(root: Program, bindings=None, indent_step: int = 4) -> str:
    """渲染整个程序；bindings 给定时为表达式中的标识符附加类型注解"""
    return Unparser(bindings, indent_step).unparse(root)
