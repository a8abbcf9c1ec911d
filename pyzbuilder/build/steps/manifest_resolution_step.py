"""
清单解析步骤模块

读取 pyproject.toml，得到源码目录、源码文件、依赖目录和需要排除的开发依赖。
"""

from pyzbuilder.build.build_context import BuildContext
from pyzbuilder.build.collector import FileSelector
from pyzbuilder.manifest.reader import ManifestReader
from pyzbuilder.utils.logging import info, success, debug, LogStage
from .build_step import BuildStep


class ManifestResolutionStep(BuildStep):
    """清单解析步骤"""

    def __init__(self):
        super().__init__("manifest", "读取 pyproject.toml")

    def get_progress_range(self) -> tuple[int, int]:
        return (0, 10)

    def execute(self, context: BuildContext) -> None:
        config = context.config
        context.reporter.on_section_start("Reading pyproject.toml...")
        info(f"读取清单: {config.manifest}", stage=LogStage.MANIFEST)

        reader = ManifestReader(config.manifest)
        context.manifest = reader.resolve(keep_dev=config.keep_dev)
        context.selector = FileSelector(exclude_patterns=config.exclude)

        manifest = context.manifest
        debug(f"工作根目录: {manifest.manifest_dir}", stage=LogStage.MANIFEST)
        debug(f"源码目录: {list(manifest.source_dirs)} 源码文件: {list(manifest.source_files)}",
              stage=LogStage.MANIFEST)
        debug(f"依赖目录: {manifest.vendor_dir} 排除的开发依赖: {len(manifest.dev_excludes)} 项",
              stage=LogStage.MANIFEST)

        success("清单解析完成", stage=LogStage.MANIFEST)
