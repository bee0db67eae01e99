"""
wumbocc 命令行入口
==================
    python -m wumbocc [-v] [--unparse | --annotate] [--symbols] FILE

退出码：
    0   没有错误（可能有警告）
    1   源程序有词法 / 语法 / 语义错误
    2   输入文件无法读取
"""

import argparse
import logging
import sys
from typing import Optional, Sequence

from wumbocc import __version__
from wumbocc.pipeline import WumboFrontend
from wumbocc.tree.unparser import unparse

log = logging.getLogger("wumbocc")

EXIT_OK    = 0
EXIT_ERROR = 1
EXIT_INFRA = 2


def _configure_logging(verbosity: int) -> None:
    """0 → WARNING, 1 → INFO, 2+ → DEBUG"""
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s [%(levelname)-5.5s] %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    root = logging.getLogger("wumbocc")
    root.setLevel(level)
    root.addHandler(handler)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wumbocc",
        description="Name resolution and type checking for Wumbo programs.",
    )
    parser.add_argument("file", metavar="FILE", help="Wumbo source file")
    out = parser.add_mutually_exclusive_group()
    out.add_argument("--unparse", action="store_true",
                     help="print the program back as source text")
    out.add_argument("--annotate", action="store_true",
                     help="like --unparse, with name(type) on every bound identifier")
    parser.add_argument("--symbols", action="store_true",
                        help="dump the file-scope symbol table")
    parser.add_argument("-v", "--verbose", action="count", default=0,
                        help="increase log verbosity (-v info, -vv debug)")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    _configure_logging(args.verbose)

    frontend = WumboFrontend()
    try:
        result = frontend.process_file(args.file)
    except (OSError, UnicodeDecodeError) as exc:
        log.error("cannot read %s: %s", args.file, exc)
        print(f"wumbocc: cannot read {args.file}: {exc}", file=sys.stderr)
        return EXIT_INFRA

    if result.diags.count:
        print(result.diags.report(), file=sys.stderr)

    if result.ast is not None:
        if args.annotate:
            print(unparse(result.ast, result.analyzer.bindings), end='')
        elif args.unparse:
            print(unparse(result.ast), end='')
        if args.symbols:
            print(result.analyzer.table.dump())

    log.info("%s: %d error(s), %d warning(s)",
             args.file, len(result.diags.errors), len(result.diags.warnings))
    return EXIT_OK if result.success else EXIT_ERROR


if __name__ == "__main__":
    raise SystemExit(main())
