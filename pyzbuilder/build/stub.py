"""
启动存根

生成归档的解释器指令行和 ``__main__.py`` 启动脚本，并清理入口脚本自带的解释器指令行。

归档布局::

    #!/usr/bin/env python3        <- 解释器指令行，位于 zip 数据之前
    <zip 数据>                    <- 之后全部是二进制数据，不会被当作源码解析
        __main__.py               <- 启动脚本，定位并执行归档内的入口脚本
"""

import re
from typing import Iterable, Union

BOOTSTRAP_NAME = "__main__.py"

# 入口脚本本身就是根目录的 __main__.py 时改存为此名
RELOCATED_ENTRY_NAME = "__entry__.py"

ARCHIVE_SCHEME = "archive://"

_SHEBANG_TEXT = re.compile(r"\A#!.*?\n")
_SHEBANG_BYTES = re.compile(rb"\A#!.*?\n")

_BOOTSTRAP_TEMPLATE = """\
# -*- coding: utf-8 -*-
# pyzbuilder bootstrap for {origin_root}
import os, sys, zipfile
__archive__ = os.path.dirname(os.path.abspath(__file__))
sys.path[1:1] = [os.path.join(__archive__, p) for p in {search_paths!r}]
with zipfile.ZipFile(__archive__) as __zip__:
    __code__ = __zip__.read({entry!r})
exec(compile(__code__, {origin!r}, 'exec'), {{'__name__': '__main__', '__file__': os.path.join(__archive__, {entry!r})}})
"""


def rewrite_stub(content: Union[str, bytes]) -> Union[str, bytes]:
    """去掉内容开头的解释器指令行（如果有）

    只匹配位于内容最开头、以 ``#!`` 开始的第一行（包括换行符），其余内容原样保留。

    Args:
        content: 入口脚本内容（str 或 bytes）

    Returns:
        与输入类型相同的内容
    """
    if isinstance(content, bytes):
        return _SHEBANG_BYTES.sub(b"", content, count=1)
    return _SHEBANG_TEXT.sub("", content, count=1)


def make_directive(interpreter: str = "python3") -> bytes:
    """生成归档开头的解释器指令行"""
    return f"#!/usr/bin/env {interpreter}\n".encode("utf-8")


def make_bootstrap(entry: str, alias: str, search_paths: Iterable[str] = ()) -> str:
    """生成 ``__main__.py`` 启动脚本

    Args:
        entry: 入口脚本的归档内路径
        alias: 归档别名（约定为归档文件名）
        search_paths: 需要加入 sys.path 的归档内目录（源码根目录、依赖目录）

    Returns:
        str: 启动脚本源码
    """
    entry = entry.replace("\\", "/")
    paths = []
    for path in search_paths:
        path = path.replace("\\", "/").strip("/")
        if path and path not in paths:
            paths.append(path)

    return _BOOTSTRAP_TEMPLATE.format(
        origin_root=f"{ARCHIVE_SCHEME}{alias}",
        origin=f"{ARCHIVE_SCHEME}{alias}/{entry}",
        entry=entry,
        search_paths=paths,
    )
