"""
压缩策略

决定单个归档条目是否需要压缩，并把压缩模式映射到 zip 的压缩方法。

压缩是逐个文件决定和执行的，而不是在所有条目加入后对整个归档统一压缩。
对大量条目做整体压缩时，底层归档实现会因为临时文件句柄直到压缩结束才释放
而失败或耗尽资源。zip 格式本身没有这个问题，这里保留逐条压缩只是沿用旧的规避做法，
并不是格式本身的要求。
"""

import zipfile
from pathlib import PurePosixPath
from typing import Any, FrozenSet

from ..config.schema import CompressionMode


# 常见的文本类文件扩展名，压缩率较好；二进制和已压缩的资源压缩没有收益
COMPRESSIBLE_EXTENSIONS: FrozenSet[str] = frozenset({
    '.py', '.pyi',
    '.txt', '.md', '.rst',
    '.xml', '.html', '.svg',
    '.js', '.css', '.less', '.scss',
    '.json', '.toml', '.cfg', '.ini', '.yaml', '.yml',
})

_ZIP_METHODS = {
    CompressionMode.NONE: zipfile.ZIP_STORED,
    CompressionMode.GZIP: zipfile.ZIP_DEFLATED,
    CompressionMode.BZIP2: zipfile.ZIP_BZIP2,
}


def should_compress(mode: Any, archive_path: str) -> bool:
    """判断归档条目是否需要压缩

    Args:
        mode: 全局压缩模式（CompressionMode 或字符串）
        archive_path: 归档内路径

    Returns:
        bool: 压缩模式为 none 时总是 False，否则仅对白名单扩展名返回 True
    """
    if CompressionMode.parse(mode) is CompressionMode.NONE:
        return False

    return PurePosixPath(archive_path).suffix in COMPRESSIBLE_EXTENSIONS


def zip_method(mode: Any) -> int:
    """获取压缩模式对应的 zip 压缩方法"""
    return _ZIP_METHODS[CompressionMode.parse(mode)]


class CompressionPolicy:
    """绑定了全局压缩模式的压缩策略"""

    def __init__(self, mode: Any = CompressionMode.NONE):
        self.mode = CompressionMode.parse(mode)

    @property
    def enabled(self) -> bool:
        return self.mode is not CompressionMode.NONE

    def should_compress(self, archive_path: str) -> bool:
        return should_compress(self.mode, archive_path)

    def method_for(self, archive_path: str) -> int:
        """返回条目写入时使用的 zip 压缩方法"""
        if self.should_compress(archive_path):
            return zip_method(self.mode)
        return zipfile.ZIP_STORED
