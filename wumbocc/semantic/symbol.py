"""
Wumbo 符号表
============
实现作用域嵌套的符号表：文件作用域 → 函数（形参 + 函数体）→ 块 → 块 …

符号种类：
  - 普通符号（变量 / 形参），携带 int / bool 类型
  - 函数符号，携带返回类型和形参类型列表（形参列表在解析完形参后回填，
    函数名本身先插入，以支持递归调用）
  - struct 定义符号，持有自己独立的字段符号表（不压入主作用域栈）
  - struct 变量符号，回指命名其 struct 类型的标识符及对应的定义符号

符号表操作的失败（空栈、同层重名、参数缺失）全部是分析器自身的 bug，
以 SymbolTableError 的子类抛出；需要把重名变成用户诊断的调用方必须先
lookup_local 再 add_decl。
"""

from enum import Enum, auto
from typing import Optional

from wumbocc.error import InternalError
from .type import (
    WType, FunctionType, StructType, StructDefType,
)


class SymbolKind(Enum):
    VAR        = auto()   # 普通变量
    PARAM      = auto()   # 函数形参（用于区分局部变量）
    FUNC       = auto()   # 函数
    STRUCT_DEF = auto()   # struct 类型名
    STRUCT_VAR = auto()   # struct 类型的变量


# ──────────────────────────────────────────────────────────────────────────────
# 符号
# ──────────────────────────────────────────────────────────────────────────────

class Symbol:
    """
    符号表条目（普通符号）。

    Attributes:
        name:   符号名
        wtype:  Wumbo 类型（WType 实例）
        kind:   SymbolKind
        node:   声明处的标识符节点（用于报错定位）
    """
    def __init__(self, name: str, wtype: WType, kind: SymbolKind = SymbolKind.VAR,
                 node=None):
        self.name  = name
        self._wtype = wtype
        self.kind  = kind
        self.node  = node

    @property
    def wtype(self) -> WType:
        return self._wtype

    def __str__(self):
        return str(self.wtype)

    def __repr__(self):
        return f"Symbol({self.kind.name} {self.wtype} {self.name!r})"


class FunctionSymbol(Symbol):
    """函数符号。param_types 在形参解析完成后由 set_params 回填。"""
    def __init__(self, name: str, return_type: WType, node=None):
        super().__init__(name, return_type, SymbolKind.FUNC, node)
        self.return_type = return_type
        self.param_types: list[WType] = []

    def set_params(self, param_types):
        self.param_types = list(param_types)

    @property
    def param_count(self) -> int:
        return len(self.param_types)

    @property
    def wtype(self) -> FunctionType:
        return FunctionType(self.return_type, self.param_types)


class StructDefSymbol(Symbol):
    """struct 定义符号：fields 是该 struct 私有的字段命名空间"""
    def __init__(self, name: str, fields: 'SymbolTable', node=None):
        super().__init__(name, StructDefType(name), SymbolKind.STRUCT_DEF, node)
        self.fields = fields

    def lookup_field(self, name: str) -> Optional[Symbol]:
        return self.fields.lookup_global(name)

    def __str__(self):
        return 'struct'


class StructSymbol(Symbol):
    """
    struct 变量符号。

    Attributes:
        struct_id:   命名其 struct 类型的标识符节点（`struct Point p;` 中的 Point）
        definition:  对应的 StructDefSymbol（字段查找、链式点访问都经由它）
    """
    def __init__(self, name: str, struct_id, definition: StructDefSymbol, node=None):
        super().__init__(name, StructType(definition.name), SymbolKind.STRUCT_VAR, node)
        self.struct_id  = struct_id
        self.definition = definition

    @property
    def struct_name(self) -> str:
        return self.definition.name


# ──────────────────────────────────────────────────────────────────────────────
# 符号表异常（全部是内部错误）
# ──────────────────────────────────────────────────────────────────────────────

class SymbolTableError(InternalError):
    pass


class EmptyTableError(SymbolTableError):
    """作用域栈已空"""


class DuplicateNameError(SymbolTableError):
    """同一作用域内重名插入"""


class InvalidArgumentError(SymbolTableError, ValueError):
    """名字或符号缺失"""


# ──────────────────────────────────────────────────────────────────────────────
# 作用域与符号表
# ──────────────────────────────────────────────────────────────────────────────

class Scope:
    """单个作用域（一个哈希表）"""
    def __init__(self, name: str = ''):
        self.name    = name
        self._table: dict[str, Symbol] = {}

    def define(self, name: str, sym: Symbol):
        self._table[name] = sym

    def lookup_local(self, name: str):
        return self._table.get(name)

    def __contains__(self, name: str) -> bool:
        return name in self._table

    def items(self):
        return self._table.items()


class SymbolTable:
    """
    嵌套作用域符号表（作用域栈）。

    新建时已有一个作用域（文件作用域 / struct 字段命名空间）。
    每个 pass 在整个遍历期间持有同一个实例，add_scope / remove_scope
    严格配对。
    """
    def __init__(self, name: str = 'global'):
        self._scopes: list[Scope] = [Scope(name)]

    # ── 作用域管理 ──────────────────────────────────────────────────────────

    def add_scope(self, name: str = 'block'):
        self._scopes.append(Scope(name))

    def remove_scope(self):
        if not self._scopes:
            raise EmptyTableError("remove_scope() on an empty symbol table")
        self._scopes.pop()

    @property
    def depth(self) -> int:
        return len(self._scopes)

    @property
    def current_scope(self) -> Scope:
        if not self._scopes:
            raise EmptyTableError("no scope on the symbol table")
        return self._scopes[-1]

    # ── 符号操作 ────────────────────────────────────────────────────────────

    def add_decl(self, name: str, sym: Symbol):
        """在当前（最内层）作用域插入符号"""
        if not self._scopes:
            raise EmptyTableError(f"add_decl({name!r}) on an empty symbol table")
        if name is None or sym is None:
            raise InvalidArgumentError("add_decl() requires both a name and a symbol")
        scope = self._scopes[-1]
        if name in scope:
            raise DuplicateNameError(f"{name!r} already declared in scope '{scope.name}'")
        scope.define(name, sym)

    def lookup_local(self, name: str) -> Symbol | None:
        """仅在当前作用域查找（用于检测同层重定义）"""
        return self.current_scope.lookup_local(name)

    def lookup_global(self, name: str) -> Symbol | None:
        """从最内层作用域向外查找，内层优先（遮蔽）"""
        if not self._scopes:
            raise EmptyTableError(f"lookup_global({name!r}) on an empty symbol table")
        for scope in reversed(self._scopes):
            sym = scope.lookup_local(name)
            if sym is not None:
                return sym
        return None

    # ── 调试辅助 ────────────────────────────────────────────────────────────

    def dump(self) -> str:
        lines = []
        for i, scope in enumerate(self._scopes):
            indent = '  ' * i
            lines.append(f"{indent}[{scope.name}]")
            for name, sym in scope.items():
                lines.append(f"{indent}  {name}: {sym!r}")
        return '\n'.join(lines)

