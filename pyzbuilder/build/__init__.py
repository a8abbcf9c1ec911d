"""构建服务模块

提供单文件可执行归档构建的核心功能。
"""

from .archive import ArchiveEntry, ArchiveState, ArchiveWriter
from .build_context import (
    BuildContext,
    PackError,
    InvalidInputError,
    ArtifactCreateError,
    IngestionError,
    CommitError,
    BuildError,
)
from .builder import Builder, BuildResult
from .collector import FileSelector, DEFAULT_FILTERS
from .compressor import CompressionPolicy, should_compress
from .reporter import BuildReporter, ConsoleReporter
from .stub import rewrite_stub

__all__ = [
    # 主构建器
    "Builder",
    "BuildResult",
    "BuildContext",

    # 错误
    "PackError",
    "InvalidInputError",
    "ArtifactCreateError",
    "IngestionError",
    "CommitError",
    "BuildError",

    # 归档
    "ArchiveWriter",
    "ArchiveEntry",
    "ArchiveState",

    # 文件选择与压缩
    "FileSelector",
    "DEFAULT_FILTERS",
    "CompressionPolicy",
    "should_compress",

    # 进度报告
    "BuildReporter",
    "ConsoleReporter",

    "rewrite_stub",
]
