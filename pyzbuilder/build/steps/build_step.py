"""
构建步骤基类模块

定义构建步骤的抽象接口和各步骤共用的文件写入逻辑。
"""

from abc import ABC, abstractmethod
from pathlib import Path, PurePosixPath
from typing import Iterable, List

from pyzbuilder.build.build_context import BuildContext
from pyzbuilder.utils.logging import debug, warning
from pyzbuilder.utils.paths import to_archive_relative


class BuildStep(ABC):
    """构建步骤抽象基类"""

    def __init__(self, name: str, description: str):
        self.name = name
        self.description = description

    @abstractmethod
    def execute(self, context: BuildContext) -> None:
        """执行构建步骤"""
        pass

    @abstractmethod
    def get_progress_range(self) -> tuple[int, int]:
        """获取此步骤的进度范围 (start_percent, end_percent)"""
        pass

    def add_directory(self, context: BuildContext, directory: str, excludes: Iterable[str] = ()) -> List[str]:
        """选择目录下的文件并全部加入归档

        目录位于工作根目录之外时，归档内以目录本身的名称作为前缀。

        Returns:
            List[str]: 加入归档的条目路径
        """
        root = context.root
        relative_paths = context.selector.select_relative(directory, excludes, root=root)

        # 绝对路径会覆盖 root
        resolved = (root / directory).resolve()
        outside = not resolved.is_relative_to(root)
        if outside:
            base = PurePosixPath(resolved.name)
        else:
            base = PurePosixPath(resolved.relative_to(root).as_posix())

        # 根目录之外的目录只按名称归档，同名目录会互相覆盖
        if outside:
            prefix = f"{base}/"
            if any(entry.path.startswith(prefix) for entry in context.writer):
                overwritten = sum(1 for p in relative_paths if (base / p).as_posix() in context.writer)
                warning(
                    f"{resolved} 与已加入的条目共用归档前缀 {prefix}，其中 {overwritten} 个文件将被覆盖",
                    stage=self.name.upper(),
                )

        added = []
        for relative_path in relative_paths:
            archive_path = (base / relative_path).as_posix()
            context.writer.add_file(archive_path, source=resolved / relative_path)
            added.append(archive_path)
            debug(f"  + {archive_path}", stage=self.name.upper())

        return added

    def add_file(self, context: BuildContext, file_path: str) -> str:
        """把单个文件加入归档（路径相对于工作根目录）"""
        archive_path = to_archive_relative(file_path, context.root)
        source = Path(file_path)
        if not source.is_absolute():
            source = context.root / source
        context.writer.add_file(archive_path, source=source)
        debug(f"  + {archive_path}", stage=self.name.upper())
        return archive_path
