"""
构建管道模块

使用管道模式协调构建步骤的执行：
清单解析 -> 创建归档 -> 加入源码 -> 加入依赖 -> 加入清单文件 -> 写入入口脚本 -> 提交。
"""

import time
from typing import List, Optional

from ..config.schema import BuildConfig
from ..utils import format_duration, format_size
from ..utils.logging import info, debug, success, error, LogStage
from .build_context import BuildContext, BuildError, PackError
from .reporter import BuildReporter
from .steps.build_step import BuildStep
from .steps.manifest_resolution_step import ManifestResolutionStep
from .steps.archive_open_step import ArchiveOpenStep
from .steps.source_ingestion_step import SourceIngestionStep
from .steps.dependency_ingestion_step import DependencyIngestionStep
from .steps.manifest_files_step import ManifestFilesStep
from .steps.stub_step import StubStep
from .steps.commit_step import CommitStep


class BuildPipeline:
    """构建管道，负责协调构建步骤的执行"""

    def __init__(self):
        self._steps: List[BuildStep] = []
        self._init_default_steps()

    def _init_default_steps(self):
        """初始化默认的构建步骤"""
        self._steps = [
            ManifestResolutionStep(),
            ArchiveOpenStep(),
            SourceIngestionStep(),
            DependencyIngestionStep(),
            ManifestFilesStep(),
            StubStep(),
            CommitStep(),
        ]

    def add_step(self, step: BuildStep, position: Optional[int] = None):
        """添加构建步骤"""
        if position is None:
            self._steps.append(step)
        else:
            self._steps.insert(position, step)

    def remove_step(self, step_name: str):
        """移除构建步骤"""
        self._steps = [step for step in self._steps if step.name != step_name]

    def get_steps(self) -> List[BuildStep]:
        """获取所有构建步骤"""
        return self._steps.copy()

    def execute(self, config: BuildConfig, reporter: Optional[BuildReporter] = None) -> BuildContext:
        """执行构建管道

        Args:
            config: 构建配置
            reporter: 进度报告器，默认不输出

        Returns:
            BuildContext: 构建上下文，包含所有构建结果

        Raises:
            PackError: 构建失败，原有的错误类型保持不变，其他异常包装为 BuildError
        """
        context = BuildContext(config=config, reporter=reporter or BuildReporter())
        context.build_stats['start_time'] = time.time()

        try:
            context.reporter.on_title(f"Building {config.name}")
            info(f"开始构建归档: {config.output_path}", stage=LogStage.BUILD)
            debug(f"构建配置: compression={config.compression.value} keep_dev={config.keep_dev} "
                  f"includes={len(config.includes)}", stage=LogStage.BUILD)

            for step in self._steps:
                info(f"执行步骤: {step.description}", stage=LogStage.BUILD)
                step.execute(context)

        except Exception as e:
            context.build_stats['end_time'] = time.time()
            if context.writer is not None:
                context.writer.discard()

            error(f"构建失败: {e}", stage=LogStage.ERROR)
            if isinstance(e, PackError):
                raise
            raise BuildError(f"构建失败: {e}", path=config.output_path) from e

        context.build_stats['end_time'] = time.time()
        build_time = context.build_stats['end_time'] - context.build_stats['start_time']
        artifact_size = context.build_stats['artifact_size']

        success(f"归档构建成功: {config.output_path}", stage=LogStage.DONE)
        context.reporter.on_success([
            f"Archive created: {config.output_path}",
            f"Entries: {context.build_stats['total_files']} "
            f"({context.build_stats['compressed_files']} compressed)",
            f"Size: {format_size(artifact_size)}",
            f"Time: {format_duration(build_time)}",
        ])

        return context

    def validate_pipeline(self) -> List[str]:
        """验证构建管道的完整性

        Returns:
            List[str]: 验证错误列表，空列表表示验证通过
        """
        errors = []

        if not self._steps:
            errors.append("构建管道中没有步骤")
            return errors

        # 检查步骤的进度范围是否连续
        prev_end = 0
        for step in self._steps:
            start, end = step.get_progress_range()
            if start != prev_end:
                errors.append(f"步骤 '{step.name}' 的进度范围不连续: 期望起始 {prev_end}%, 实际 {start}%")
            if start >= end:
                errors.append(f"步骤 '{step.name}' 的进度范围无效: {start}% - {end}%")
            prev_end = end

        if prev_end != 100:
            errors.append(f"构建管道的总进度范围不是100%: {prev_end}%")

        return errors
