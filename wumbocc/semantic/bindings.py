"""
名字解析结果的旁路表
====================
AST 是只读的。名字解析得到的两种标注不写回节点，而是记在这里：

  1. 标识符节点 → 它绑定的 Symbol
  2. 点访问节点 → 其右侧字段所属的 struct 定义符号（字段本身是 struct 变量时），
     供外层点访问继续查找（链式 a.b.c）

另外记录"坏"的点访问节点，外层点访问看到后不再重复报错。

节点按对象身份作键（AST 节点 eq=False），每个键只允许写一次。
类型检查阶段只读。
"""

from typing import Optional

from wumbocc.error import InternalError
from .symbol import Symbol, StructDefSymbol


class RebindError(InternalError):
    """同一节点被绑定两次"""


class Bindings:
    def __init__(self):
        self._symbols: dict[object, Symbol] = {}
        self._struct_defs: dict[object, StructDefSymbol] = {}
        self._bad: set = set()

    # ── 写（仅名字解析阶段） ─────────────────────────────────────────────────

    def bind(self, node, sym: Symbol):
        if node in self._symbols:
            raise RebindError(f"{node!r} is already bound to {self._symbols[node]!r}")
        self._symbols[node] = sym

    def bind_struct(self, node, struct_def: StructDefSymbol):
        if node in self._struct_defs:
            raise RebindError(f"{node!r} already carries a struct definition")
        self._struct_defs[node] = struct_def

    def mark_bad(self, node):
        self._bad.add(node)

    # ── 读 ──────────────────────────────────────────────────────────────────

    def symbol_of(self, node) -> Optional[Symbol]:
        return self._symbols.get(node)

    def struct_of(self, node) -> Optional[StructDefSymbol]:
        return self._struct_defs.get(node)

    def is_bad(self, node) -> bool:
        return node in self._bad

    def __contains__(self, node) -> bool:
        return node in self._symbols

    def __len__(self):
        return len(self._symbols)
