"""
Wumbo AST 节点
==============
由 WumboTransformer 从 Lark 解析树构造，之后对两个分析 pass 只读：

  - 所有节点都是 frozen dataclass，子节点序列用 tuple 保存（顺序有语义：
    声明顺序、实参顺序）
  - eq=False：节点按对象身份比较 / 哈希，可以直接作为旁路表的键
  - 标识符、字面量叶子携带源码位置（line, col，从 1 开始）和扫描值
  - 名字解析 / 类型检查的结果不写回节点（见 semantic/bindings.py）

节点一览：

    Program          decls
    VarDecl          type_spec, ident
    FnDecl           type_spec, ident, formals, body
    FormalDecl       type_spec, ident
    StructDecl       ident, fields
    TypeSpecNode     base_name ('int' | 'bool' | 'void' | 'struct'), struct_id
    Block            decls, stmts            函数体 / if / else / while / repeat 体

    AssignStmt  PostIncStmt  PostDecStmt  ReadStmt  WriteStmt
    IfStmt  IfElseStmt  WhileStmt  RepeatStmt  CallStmt  ReturnStmt

    IntLiteral  StringLiteral  BoolLiteral  Identifier
    DotAccess  AssignExp  CallExp  UnaryOp  BinaryOp
"""

from __future__ import annotations

from dataclasses import dataclass, fields as dc_fields
from typing import Iterator, Optional, Tuple


# ──────────────────────────────────────────────────────────────────────────────
# AST 节点基类
# ──────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True, eq=False)
class ASTNode:
    """
    所有 AST 节点的公共基类。

    Attributes:
        line, col: 源码位置（由 Transformer 从 token / meta 填入）
    """
    line: int = -1
    col:  int = -1

    @property
    def pos(self) -> tuple[int, int]:
        """报错用的位置；复合表达式按约定从子节点推导"""
        return self.line, self.col

    def children(self) -> Iterator[ASTNode]:
        for f in dc_fields(self):
            value = getattr(self, f.name)
            if isinstance(value, ASTNode):
                yield value
            elif isinstance(value, tuple):
                for item in value:
                    if isinstance(item, ASTNode):
                        yield item


def walk(node: ASTNode) -> Iterator[ASTNode]:
    """先序遍历整棵子树"""
    yield node
    for child in node.children():
        yield from walk(child)


# ──────────────────────────────────────────────────────────────────────────────
# 顶层 & 声明节点
# ──────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True, eq=False)
class Program(ASTNode):
    """整个编译单元（一个 .wumbo 文件）"""
    decls: Tuple[ASTNode, ...] = ()


@dataclass(frozen=True, eq=False)
class TypeSpecNode(ASTNode):
    """类型说明：`int` / `bool` / `void`，或 `struct Name`（struct_id 为 Name）"""
    base_name: str = ''
    struct_id: Optional[Identifier] = None

    @property
    def is_struct(self) -> bool:
        return self.base_name == 'struct'

    @property
    def is_void(self) -> bool:
        return self.base_name == 'void'


@dataclass(frozen=True, eq=False)
class VarDecl(ASTNode):
    type_spec: TypeSpecNode = None
    ident:     Identifier = None

    @property
    def pos(self):
        return self.ident.pos


@dataclass(frozen=True, eq=False)
class FormalDecl(ASTNode):
    type_spec: TypeSpecNode = None
    ident:     Identifier = None

    @property
    def pos(self):
        return self.ident.pos


@dataclass(frozen=True, eq=False)
class Block(ASTNode):
    """花括号体：先局部声明，后语句"""
    decls: Tuple[VarDecl, ...] = ()
    stmts: Tuple[ASTNode, ...] = ()


@dataclass(frozen=True, eq=False)
class FnDecl(ASTNode):
    type_spec: TypeSpecNode = None
    ident:     Identifier = None
    formals:   Tuple[FormalDecl, ...] = ()
    body:      Block = None

    @property
    def pos(self):
        return self.ident.pos


@dataclass(frozen=True, eq=False)
class StructDecl(ASTNode):
    ident:  Identifier = None
    fields: Tuple[VarDecl, ...] = ()

    @property
    def pos(self):
        return self.ident.pos


# ──────────────────────────────────────────────────────────────────────────────
# 语句节点
# ──────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True, eq=False)
class AssignStmt(ASTNode):
    assign: AssignExp = None


@dataclass(frozen=True, eq=False)
class PostIncStmt(ASTNode):
    target: ASTNode = None


@dataclass(frozen=True, eq=False)
class PostDecStmt(ASTNode):
    target: ASTNode = None


@dataclass(frozen=True, eq=False)
class ReadStmt(ASTNode):
    """cin >> loc;"""
    target: ASTNode = None


@dataclass(frozen=True, eq=False)
class WriteStmt(ASTNode):
    """cout << exp;"""
    value: ASTNode = None


@dataclass(frozen=True, eq=False)
class IfStmt(ASTNode):
    cond: ASTNode = None
    body: Block = None


@dataclass(frozen=True, eq=False)
class IfElseStmt(ASTNode):
    cond:      ASTNode = None
    then_body: Block = None
    else_body: Block = None


@dataclass(frozen=True, eq=False)
class WhileStmt(ASTNode):
    cond: ASTNode = None
    body: Block = None


@dataclass(frozen=True, eq=False)
class RepeatStmt(ASTNode):
    """repeat (n) { … }：n 必须是 int"""
    cond: ASTNode = None
    body: Block = None


@dataclass(frozen=True, eq=False)
class CallStmt(ASTNode):
    call: CallExp = None


@dataclass(frozen=True, eq=False)
class ReturnStmt(ASTNode):
    value: Optional[ASTNode] = None


# ──────────────────────────────────────────────────────────────────────────────
# 表达式节点
# ──────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True, eq=False)
class Identifier(ASTNode):
    name: str = ''

    def __repr__(self):
        return f"Id({self.name}@{self.line}:{self.col})"


@dataclass(frozen=True, eq=False)
class IntLiteral(ASTNode):
    value: int = 0


@dataclass(frozen=True, eq=False)
class StringLiteral(ASTNode):
    raw: str = ''   # 含引号与转义的原始文本

    @property
    def value(self) -> str:
        return self.raw[1:-1]   # 去掉引号


@dataclass(frozen=True, eq=False)
class BoolLiteral(ASTNode):
    value: bool = False


@dataclass(frozen=True, eq=False)
class DotAccess(ASTNode):
    """obj.member；obj 只能是 Identifier 或另一个 DotAccess"""
    obj:    ASTNode = None
    member: Identifier = None

    @property
    def pos(self):
        return self.member.pos


@dataclass(frozen=True, eq=False)
class AssignExp(ASTNode):
    left:  ASTNode = None
    right: ASTNode = None

    @property
    def pos(self):
        return self.left.pos


@dataclass(frozen=True, eq=False)
class CallExp(ASTNode):
    callee: Identifier = None
    args:   Tuple[ASTNode, ...] = ()

    @property
    def pos(self):
        return self.callee.pos


@dataclass(frozen=True, eq=False)
class UnaryOp(ASTNode):
    op:      str = ''     # '-' | '!'
    operand: ASTNode = None

    @property
    def pos(self):
        return self.operand.pos


@dataclass(frozen=True, eq=False)
class BinaryOp(ASTNode):
    op:    str = ''
    left:  ASTNode = None
    right: ASTNode = None

    @property
    def pos(self):
        return self.left.pos

    def __repr__(self):
        return f"BinOp({self.op})"


EXPRESSION_NODES = (
    IntLiteral, StringLiteral, BoolLiteral, Identifier,
    DotAccess, AssignExp, CallExp, UnaryOp, BinaryOp,
)
