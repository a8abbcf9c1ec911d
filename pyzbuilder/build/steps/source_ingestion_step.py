"""
源码收集步骤模块

把项目源码目录、单独的源码文件和额外包含的目录加入归档。
"""

from pyzbuilder.build.build_context import BuildContext
from pyzbuilder.utils.logging import info, success, LogStage
from .build_step import BuildStep


class SourceIngestionStep(BuildStep):
    """源码收集步骤"""

    def __init__(self):
        super().__init__("select", "加入项目源码")

    def get_progress_range(self) -> tuple[int, int]:
        return (15, 45)

    def execute(self, context: BuildContext) -> None:
        manifest = context.manifest
        context.reporter.on_section_start("Adding files to archive...")

        count = 0
        for directory in manifest.source_dirs:
            info(f"加入源码目录: {directory}", stage=LogStage.SELECT)
            count += len(self.add_directory(context, directory))

        for file in manifest.source_files:
            self.add_file(context, file)
            count += 1

        for directory in context.config.includes:
            info(f"加入额外目录: {directory}", stage=LogStage.SELECT)
            count += len(self.add_directory(context, str(directory)))

        success(f"源码加入完成: {count} 个文件", stage=LogStage.SELECT)
