"""
归档创建步骤模块

创建归档并设置启动存根。
"""

from pathlib import Path

from pyzbuilder.build.archive import ArchiveWriter
from pyzbuilder.build.build_context import BuildContext, InvalidInputError
from pyzbuilder.build.stub import BOOTSTRAP_NAME, RELOCATED_ENTRY_NAME
from pyzbuilder.config.schema import CompressionMode
from pyzbuilder.utils.logging import debug, info, warning, LogStage
from pyzbuilder.utils.paths import to_archive_relative
from .build_step import BuildStep


class ArchiveOpenStep(BuildStep):
    """归档创建步骤"""

    def __init__(self):
        super().__init__("open", "创建归档并设置启动存根")

    def get_progress_range(self) -> tuple[int, int]:
        return (10, 15)

    def execute(self, context: BuildContext) -> None:
        config = context.config
        root = context.root

        if config.compression is CompressionMode.BZIP2:
            warning("zipimport 不支持 bzip2 压缩的模块，归档中的包将无法被导入", stage=LogStage.OPEN)

        entry_source = config.entry_point if config.entry_point.is_absolute() else root / config.entry_point
        if not entry_source.is_file():
            raise InvalidInputError("入口脚本不存在", path=entry_source, phase="open")

        context.writer = ArchiveWriter(config.compression, root=root, reporter=context.reporter)
        context.writer.open(config.output_path, alias=config.alias)
        info(f"创建归档: {config.output_path}", stage=LogStage.OPEN)

        context.entry_point = to_archive_relative(Path(entry_source).resolve(), root)
        if Path(context.entry_point).is_absolute():
            raise InvalidInputError("入口脚本必须位于清单目录之下", path=entry_source, phase="open")
        context.entry_source = Path(entry_source)
        if context.entry_point == BOOTSTRAP_NAME:
            # 根目录的 __main__.py 归启动存根所有
            context.entry_point = RELOCATED_ENTRY_NAME
            debug(f"入口脚本 {BOOTSTRAP_NAME} 改存为 {RELOCATED_ENTRY_NAME}", stage=LogStage.OPEN)

        context.writer.set_bootstrap(
            context.entry_point,
            alias=config.alias,
            search_paths=context.manifest.python_path,
            interpreter=config.interpreter,
        )
        info(f"启动入口: {config.alias}/{context.entry_point}", stage=LogStage.STUB)
