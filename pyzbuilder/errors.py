"""
构建错误定义

所有错误都携带出错的路径和所处阶段，便于定位问题。任何一个错误都会中止整个构建。
"""

from os import PathLike
from typing import Optional, Union


class PackError(Exception):
    """构建错误基类"""

    default_phase = "build"

    def __init__(
        self,
        message: str,
        path: Optional[Union[str, PathLike]] = None,
        phase: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.path = str(path) if path is not None else None
        self.phase = phase or self.default_phase

    def __str__(self) -> str:
        if self.path:
            return f"[{self.phase}] {self.message}: {self.path}"
        return f"[{self.phase}] {self.message}"


class InvalidInputError(PackError):
    """配置或输入无效（目录不存在、清单无法解析等）"""
    default_phase = "manifest"


class ArtifactCreateError(PackError):
    """输出路径不可写，或已存在的归档无法删除"""
    default_phase = "open"


class IngestionError(PackError):
    """文件读取失败或目录遍历中途失败"""
    default_phase = "ingest"


class CommitError(PackError):
    """最终写入输出路径失败"""
    default_phase = "commit"


class BuildError(PackError):
    """构建过程中出现的其他意外错误"""
    default_phase = "build"
