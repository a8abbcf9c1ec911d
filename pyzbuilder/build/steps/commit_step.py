"""
提交步骤模块

把缓存的条目写入归档文件并统计结果。
"""

from pyzbuilder.build.build_context import BuildContext
from pyzbuilder.utils import format_size
from pyzbuilder.utils.logging import info, success, LogStage
from .build_step import BuildStep


class CommitStep(BuildStep):
    """提交步骤"""

    def __init__(self):
        super().__init__("commit", "写入归档文件")

    def get_progress_range(self) -> tuple[int, int]:
        return (90, 100)

    def execute(self, context: BuildContext) -> None:
        writer = context.writer
        entries = list(writer)

        context.build_stats['total_files'] = len(entries)
        context.build_stats['total_size'] = sum(entry.size for entry in entries)
        context.build_stats['compressed_files'] = sum(1 for entry in entries if entry.compressed)

        info(f"写入 {len(entries)} 个条目 ({format_size(context.build_stats['total_size'])})",
             stage=LogStage.COMMIT)
        path = writer.commit()

        context.build_stats['artifact_size'] = path.stat().st_size
        success(f"归档已写入: {path}", stage=LogStage.COMMIT)
