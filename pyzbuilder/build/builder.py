"""
构建器主类

负责整个构建流程的协调，使用管道模式组织构建步骤。
"""

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from ..config.schema import BuildConfig
from .build_context import PackError
from .build_pipeline import BuildPipeline
from .reporter import BuildReporter


@dataclass
class BuildResult:
    """构建结果"""
    success: bool
    output_path: Optional[Path] = None
    output_size: Optional[int] = None
    build_time: Optional[float] = None
    entry_count: int = 0
    error: Optional[PackError] = None


class Builder:
    """归档构建器

    使用管道模式协调构建步骤，提供统一的构建接口。
    """

    def __init__(self):
        self.pipeline = BuildPipeline()

    def build(self, config: BuildConfig, reporter: Optional[BuildReporter] = None) -> BuildResult:
        """构建归档

        Args:
            config: 构建配置
            reporter: 进度报告器

        Returns:
            BuildResult: 构建结果，失败时 error 为具体的错误对象
        """
        try:
            context = self.pipeline.execute(config, reporter)
        except PackError as e:
            return BuildResult(success=False, error=e)

        stats = context.build_stats
        return BuildResult(
            success=True,
            output_path=config.output_path,
            output_size=stats['artifact_size'],
            build_time=stats['end_time'] - stats['start_time'],
            entry_count=stats['total_files'],
        )

    def get_pipeline(self) -> BuildPipeline:
        """获取构建管道，用于自定义构建流程"""
        return self.pipeline

    def validate_build_pipeline(self) -> List[str]:
        """验证构建管道的完整性"""
        return self.pipeline.validate_pipeline()
