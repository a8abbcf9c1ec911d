"""
清单文件步骤模块

pyproject.toml 和 pylock.toml 总是原样加入归档，即使目录遍历时会按名称排除它们。
"""

from pyzbuilder.build.build_context import BuildContext
from pyzbuilder.utils.logging import debug, LogStage
from .build_step import BuildStep


class ManifestFilesStep(BuildStep):
    """清单文件步骤"""

    def __init__(self):
        super().__init__("manifest_files", "加入清单文件")

    def get_progress_range(self) -> tuple[int, int]:
        return (80, 85)

    def execute(self, context: BuildContext) -> None:
        manifest = context.manifest
        self.add_file(context, manifest.descriptor)

        if manifest.lock_file is not None:
            self.add_file(context, manifest.lock_file)
        else:
            debug("没有锁文件，跳过", stage=LogStage.INGEST)
