"""
Wumbo 类型系统
==============
类型只在类型检查阶段使用：

  int / bool / void / string       基础类型（BasicType 单例）
  StructType(name)                 struct 变量（实例）的类型
  StructDefType(name)              struct 名字本身的类型
  FunctionType(ret, params)        函数类型
  ERROR_T                          错误恢复哨兵

Wumbo 是名义类型系统：两个 struct 实例类型按名字区分，没有任何隐式转换。
"""


class WType:
    """所有类型的基类"""
    def __eq__(self, other):
        return isinstance(other, self.__class__)

    def __hash__(self):
        return hash(repr(self))

    def __repr__(self):
        return self.__class__.__name__


# ──────────────────────────────────────────────────────────────────────────────
# 基础标量类型
# ──────────────────────────────────────────────────────────────────────────────

class BasicType(WType):
    """基础标量类型（int、bool、void、string）"""
    def __init__(self, name: str):
        self.name = name

    def __eq__(self, other):
        return isinstance(other, BasicType) and self.name == other.name

    def __hash__(self):
        return hash(self.name)

    def __repr__(self):
        return self.name


# ──────────────────────────────────────────────────────────────────────────────
# 复合类型
# ──────────────────────────────────────────────────────────────────────────────

class FunctionType(WType):
    """函数类型（返回类型 + 有序的形参类型列表）"""
    def __init__(self, return_type: WType, param_types=()):
        self.return_type = return_type
        self.param_types = tuple(param_types)

    def __eq__(self, other):
        return (isinstance(other, FunctionType) and
                self.return_type == other.return_type and
                self.param_types == other.param_types)

    def __hash__(self):
        return hash(('func', self.return_type, self.param_types))

    def __repr__(self):
        params = ','.join(map(str, self.param_types))
        return f"{params}->{self.return_type}"


class StructType(WType):
    """struct 变量的类型，按 struct 名字区分"""
    def __init__(self, name: str):
        self.name = name

    def __eq__(self, other):
        return isinstance(other, StructType) and self.name == other.name

    def __hash__(self):
        return hash(('struct', self.name))

    def __repr__(self):
        return self.name


class StructDefType(WType):
    """struct 名字本身（出现在表达式位置时）的类型"""
    def __init__(self, name: str):
        self.name = name

    def __eq__(self, other):
        return isinstance(other, StructDefType) and self.name == other.name

    def __hash__(self):
        return hash(('struct-def', self.name))

    def __repr__(self):
        return f"struct {self.name}"


# ──────────────────────────────────────────────────────────────────────────────
# 特殊哨兵类型（用于错误恢复）
# ──────────────────────────────────────────────────────────────────────────────

class ErrorType(WType):
    """
    语义错误恢复类型。
    当子表达式已经报过错时，父节点使用 ErrorType，
    避免产生大量级联错误。

    注意：ErrorType 只与自身相等。是否压制诊断由每条规则显式判断
    （is_error），而不是靠"与一切类型相等"来隐式放行。
    """
    def __repr__(self):
        return '<error>'

    def __hash__(self):
        return hash('error')


# ──────────────────────────────────────────────────────────────────────────────
# 预定义类型常量
# ──────────────────────────────────────────────────────────────────────────────

VOID    = BasicType('void')
INT     = BasicType('int')
BOOL    = BasicType('bool')
STRING  = BasicType('string')
ERROR_T = ErrorType()

# 源码中可以书写的类型关键字
BUILTIN_TYPES: dict[str, WType] = {
    'int': INT, 'bool': BOOL, 'void': VOID,
}


# ──────────────────────────────────────────────────────────────────────────────
# 类型工具函数
# ──────────────────────────────────────────────────────────────────────────────

def is_error(t: WType) -> bool:
    return isinstance(t, ErrorType)

def is_function(t: WType) -> bool:
    return isinstance(t, FunctionType)

def is_struct_var(t: WType) -> bool:
    return isinstance(t, StructType)

def is_struct_name(t: WType) -> bool:
    return isinstance(t, StructDefType)

def is_int(t: WType) -> bool:
    return t == INT

def is_bool(t: WType) -> bool:
    return t == BOOL

def is_void(t: WType) -> bool:
    return t == VOID
