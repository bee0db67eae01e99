"""
WumboCC - Wumbo 语言编译器前端（名字解析 + 类型检查）
=====================================================
模块结构：
  wumbocc/
    __init__.py          本文件：公共 API
    __main__.py          命令行入口
    error.py             诊断信息系统
    pipeline.py          Lark 解析 → AST → 语义分析
    wumbo.lark           语法定义
    tree/
      nodes.py           AST 节点定义
      transformer.py     CST → AST 转换器
      unparser.py        AST → 源码（可附带类型注解）
    semantic/
      type.py            类型系统
      symbol.py          符号与作用域符号表
      bindings.py        标识符绑定旁路表
      resolver.py        名字解析
      checker.py         类型检查
      analyzer.py        两个 pass 的编排

快速使用示例：

    from wumbocc import WumboFrontend, unparse

    frontend = WumboFrontend()
    result = frontend.process_string(source_code)
    if result.diags.has_errors:
        print(result.diags.report())
    else:
        print(unparse(result.ast, result.analyzer.bindings))
"""

from .pipeline import WumboFrontend, FrontendResult
from .error import DiagnosticBag, SemanticDiag, SemanticError, InternalError, Msg
from .semantic.analyzer import WumboAnalyzer
from .semantic.symbol import SymbolTable
from .semantic.type import (
    VOID, INT, BOOL, STRING, ERROR_T,
    WType, BasicType, FunctionType, StructType, StructDefType, ErrorType,
)
from .tree.unparser import unparse

__version__ = '0.1.0'

__all__ = [
    'WumboFrontend', 'FrontendResult', 'WumboAnalyzer', 'SymbolTable',
    'DiagnosticBag', 'SemanticDiag', 'SemanticError', 'InternalError', 'Msg',
    'VOID', 'INT', 'BOOL', 'STRING', 'ERROR_T',
    'WType', 'BasicType', 'FunctionType', 'StructType', 'StructDefType', 'ErrorType',
    'unparse',
]
