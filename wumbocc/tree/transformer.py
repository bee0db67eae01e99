"""
Wumbo AST Transformer
=====================
将 Lark 生成的 CST（具体语法树）转换为 nodes.py 中的只读 AST。

使用 Lark 的 Transformer 机制：每个方法对应 grammar 中一条规则（或别名），
接收已转换的子节点，返回 AST 节点对象。

使用方式：
    transformer = WumboTransformer(diag)
    ast = transformer.transform(lark_tree)

整数字面量超过 int 上限时，向 diag 写一条警告并截断为上限值。
"""

import logging

from lark import Transformer, Token, v_args

from wumbocc.error import DiagnosticBag, Msg
from .nodes import (
    Program, VarDecl, FnDecl, FormalDecl, StructDecl, TypeSpecNode, Block,
    AssignStmt, PostIncStmt, PostDecStmt, ReadStmt, WriteStmt,
    IfStmt, IfElseStmt, WhileStmt, RepeatStmt, CallStmt, ReturnStmt,
    IntLiteral, StringLiteral, BoolLiteral, Identifier,
    DotAccess, AssignExp, CallExp, UnaryOp, BinaryOp,
)

log = logging.getLogger(__name__)

MAX_INT = 2147483647


def _meta_pos(meta) -> dict:
    if meta is None or getattr(meta, 'empty', True):
        return {'line': -1, 'col': -1}
    return {'line': getattr(meta, 'line', -1), 'col': getattr(meta, 'column', -1)}


def _tok_pos(tok: Token) -> dict:
    return {'line': tok.line, 'col': tok.column}


def _seq(items) -> tuple:
    """[x] 可选项缺省时 Lark 给出 None"""
    return tuple(items) if items is not None else ()


class WumboTransformer(Transformer):
    """
    将 Lark CST 转换为 Wumbo AST。
    规则名与 wumbo.lark 中的产生式名 / 别名保持一致。

    使用 @v_args(meta=True) 来获取源码位置。
    """

    def __init__(self, diag: DiagnosticBag = None):
        super().__init__(visit_tokens=False)
        self.diag = diag if diag is not None else DiagnosticBag()

    # ── 顶层 ────────────────────────────────────────────────────────────────

    @v_args(meta=True)
    def start(self, meta, items):
        return Program(decls=tuple(items), **_meta_pos(meta))

    # ── 声明 ────────────────────────────────────────────────────────────────

    @v_args(meta=True)
    def var_decl(self, meta, items):
        type_spec, ident = items
        return VarDecl(type_spec=type_spec, ident=ident, **_meta_pos(meta))

    @v_args(meta=True)
    def struct_decl(self, meta, items):
        ident, fields = items
        return StructDecl(ident=ident, fields=fields, **_meta_pos(meta))

    def struct_body(self, items):
        return tuple(items)

    @v_args(meta=True)
    def fn_decl(self, meta, items):
        type_spec, ident, formals, body = items
        return FnDecl(type_spec=type_spec, ident=ident, formals=_seq(formals),
                      body=body, **_meta_pos(meta))

    def formals(self, items):
        return tuple(items)

    @v_args(meta=True)
    def formal_decl(self, meta, items):
        type_spec, ident = items
        return FormalDecl(type_spec=type_spec, ident=ident, **_meta_pos(meta))

    def type(self, items):
        tok = items[0]
        return TypeSpecNode(base_name=str(tok), **_tok_pos(tok))

    @v_args(meta=True)
    def struct_type(self, meta, items):
        return TypeSpecNode(base_name='struct', struct_id=items[0], **_meta_pos(meta))

    @v_args(meta=True)
    def block(self, meta, items):
        decls, stmts = items
        return Block(decls=decls, stmts=stmts, **_meta_pos(meta))

    def decl_list(self, items):
        return tuple(items)

    def stmt_list(self, items):
        return tuple(items)

    # ── 语句 ────────────────────────────────────────────────────────────────

    @v_args(meta=True)
    def assign_stmt(self, meta, items):
        return AssignStmt(assign=items[0], **_meta_pos(meta))

    @v_args(meta=True)
    def post_inc_stmt(self, meta, items):
        return PostIncStmt(target=items[0], **_meta_pos(meta))

    @v_args(meta=True)
    def post_dec_stmt(self, meta, items):
        return PostDecStmt(target=items[0], **_meta_pos(meta))

    @v_args(meta=True)
    def read_stmt(self, meta, items):
        return ReadStmt(target=items[0], **_meta_pos(meta))

    @v_args(meta=True)
    def write_stmt(self, meta, items):
        return WriteStmt(value=items[0], **_meta_pos(meta))

    @v_args(meta=True)
    def if_stmt(self, meta, items):
        cond, body = items
        return IfStmt(cond=cond, body=body, **_meta_pos(meta))

    @v_args(meta=True)
    def if_else_stmt(self, meta, items):
        cond, then_body, else_body = items
        return IfElseStmt(cond=cond, then_body=then_body, else_body=else_body,
                          **_meta_pos(meta))

    @v_args(meta=True)
    def while_stmt(self, meta, items):
        cond, body = items
        return WhileStmt(cond=cond, body=body, **_meta_pos(meta))

    @v_args(meta=True)
    def repeat_stmt(self, meta, items):
        cond, body = items
        return RepeatStmt(cond=cond, body=body, **_meta_pos(meta))

    def return_stmt(self, items):
        # RETURN [exp]：位置取 return 关键字
        ret_tok, value = items
        return ReturnStmt(value=value, **_tok_pos(ret_tok))

    @v_args(meta=True)
    def call_stmt(self, meta, items):
        return CallStmt(call=items[0], **_meta_pos(meta))

    # ── 表达式 ──────────────────────────────────────────────────────────────

    @v_args(meta=True)
    def assign_exp(self, meta, items):
        left, right = items
        return AssignExp(left=left, right=right, **_meta_pos(meta))

    @v_args(meta=True)
    def binop(self, meta, items):
        left, op, right = items
        return BinaryOp(op=str(op), left=left, right=right, **_meta_pos(meta))

    def unop(self, items):
        op, operand = items
        return UnaryOp(op=str(op), operand=operand, **_tok_pos(op))

    @v_args(meta=True)
    def fncall(self, meta, items):
        callee, args = items
        return CallExp(callee=callee, args=_seq(args), **_meta_pos(meta))

    def actuals(self, items):
        return tuple(items)

    @v_args(meta=True)
    def dot_access(self, meta, items):
        obj, member = items
        return DotAccess(obj=obj, member=member, **_meta_pos(meta))

    def id(self, items):
        tok = items[0]
        return Identifier(name=str(tok), **_tok_pos(tok))

    # ── 字面量 ──────────────────────────────────────────────────────────────

    def int_lit(self, items):
        tok = items[0]
        value = int(tok)
        if value > MAX_INT:
            log.debug("clamping integer literal %s at %d:%d", tok, tok.line, tok.column)
            self.diag.warning(Msg.INT_TOO_LARGE, (tok.line, tok.column))
            value = MAX_INT
        return IntLiteral(value=value, **_tok_pos(tok))

    def str_lit(self, items):
        tok = items[0]
        return StringLiteral(raw=str(tok), **_tok_pos(tok))

    def true_lit(self, items):
        return BoolLiteral(value=True, **_tok_pos(items[0]))

    def false_lit(self, items):
        return BoolLiteral(value=False, **_tok_pos(items[0]))
