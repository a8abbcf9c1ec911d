"""
依赖收集步骤模块

把依赖目录加入归档，不保留开发依赖时排除只被开发依赖使用的包。
"""

from pyzbuilder.build.build_context import BuildContext
from pyzbuilder.utils.logging import info, success, LogStage
from .build_step import BuildStep


class DependencyIngestionStep(BuildStep):
    """依赖收集步骤"""

    def __init__(self):
        super().__init__("vendor", "加入依赖目录")

    def get_progress_range(self) -> tuple[int, int]:
        return (45, 80)

    def execute(self, context: BuildContext) -> None:
        manifest = context.manifest
        if manifest.vendor_dir is None:
            info("项目没有依赖目录，跳过", stage=LogStage.INGEST)
            return

        info(f"加入依赖目录: {manifest.vendor_dir}", stage=LogStage.INGEST)
        added = self.add_directory(context, manifest.vendor_dir, manifest.dev_excludes)
        success(f"依赖加入完成: {len(added)} 个文件", stage=LogStage.INGEST)
