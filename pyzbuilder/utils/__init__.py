"""通用工具模块"""

from .logging import (
    configure_logging,
    set_log_level,
    set_log_file,
    close_logger,
    LogStage,
    OutputLevel,
)

from .paths import (
    to_archive_relative,
    ensure_directory,
    format_size,
    format_duration,
)

__all__ = [
    # 日志相关
    "configure_logging",
    "set_log_level",
    "set_log_file",
    "close_logger",
    "LogStage",
    "OutputLevel",

    # 路径相关
    "to_archive_relative",
    "ensure_directory",
    "format_size",
    "format_duration",
]
