"""
构建上下文模块

定义构建过程中各步骤共享的数据结构，并导出构建错误类型。
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, TYPE_CHECKING

from ..config.schema import BuildConfig
from ..errors import (
    ArtifactCreateError,
    BuildError,
    CommitError,
    IngestionError,
    InvalidInputError,
    PackError,
)
from .reporter import BuildReporter

if TYPE_CHECKING:
    from ..manifest.reader import ManifestResolution
    from .archive import ArchiveWriter
    from .collector import FileSelector

__all__ = [
    "BuildContext",
    "PackError",
    "InvalidInputError",
    "ArtifactCreateError",
    "IngestionError",
    "CommitError",
    "BuildError",
]


@dataclass
class BuildContext:
    """构建上下文，包含构建过程中的共享数据"""
    config: BuildConfig
    reporter: BuildReporter = field(default_factory=BuildReporter)

    # 构建过程中生成的数据
    manifest: Optional['ManifestResolution'] = None
    writer: Optional['ArchiveWriter'] = None
    selector: Optional['FileSelector'] = None
    entry_point: Optional[str] = None  # 入口脚本的归档内路径
    entry_source: Optional[Path] = None  # 入口脚本的源文件

    # 统计信息
    build_stats: Dict[str, Any] = field(default_factory=lambda: {
        'start_time': 0.0,
        'end_time': 0.0,
        'total_files': 0,
        'total_size': 0,
        'compressed_files': 0,
        'artifact_size': 0,
    })

    @property
    def output_path(self) -> Path:
        return self.config.output_path

    @property
    def root(self) -> Path:
        """工作根目录（清单所在目录）"""
        if self.manifest is None:
            raise BuildError("清单尚未解析", phase="manifest")
        return self.manifest.manifest_dir
