"""
入口脚本步骤模块

去掉入口脚本的解释器指令行后作为独立条目写入归档。
"""

from pyzbuilder.build.build_context import BuildContext, IngestionError
from pyzbuilder.build.stub import rewrite_stub
from pyzbuilder.utils.logging import debug, LogStage
from .build_step import BuildStep


class StubStep(BuildStep):
    """入口脚本步骤"""

    def __init__(self):
        super().__init__("stub", "写入入口脚本")

    def get_progress_range(self) -> tuple[int, int]:
        return (85, 90)

    def execute(self, context: BuildContext) -> None:
        source = context.entry_source or context.root / context.entry_point
        try:
            content = source.read_bytes()
        except OSError as e:
            raise IngestionError(f"读取入口脚本失败: {e.strerror or e}", path=source, phase="stub") from e

        stub = rewrite_stub(content)
        if len(stub) != len(content):
            debug(f"已去掉入口脚本的解释器指令行: {context.entry_point}", stage=LogStage.STUB)

        context.writer.add_bytes(context.entry_point, stub)
