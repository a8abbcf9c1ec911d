"""
路径工具

提供路径归一化和大小、时长格式化相关的工具函数。
"""

import os
from pathlib import Path, PurePath
from typing import Union


def to_archive_relative(path: Union[str, PurePath], working_root: Union[str, PurePath]) -> str:
    """将路径转换为归档内的相对路径

    绝对路径且位于工作根目录之下时，去掉根目录前缀和开头的分隔符；
    其余情况原样返回。不访问文件系统。

    Args:
        path: 原始路径
        working_root: 工作根目录（清单文件所在目录）

    Returns:
        str: 归档内路径（使用正斜杠）
    """
    path_str = os.fspath(path)
    if not os.path.isabs(path_str):
        return path_str

    root_str = os.fspath(working_root).rstrip('/\\')
    if path_str == root_str:
        return ''
    if path_str.startswith(root_str + os.sep) or path_str.startswith(root_str + '/'):
        remainder = path_str[len(root_str):].lstrip('/\\')
        return remainder.replace('\\', '/')

    return path_str


def format_size(size_bytes: int) -> str:
    """格式化文件大小

    Args:
        size_bytes: 字节数

    Returns:
        str: 格式化的大小字符串
    """
    if size_bytes == 0:
        return "0 B"

    units = ["B", "KiB", "MiB", "GiB", "TiB"]
    unit_index = 0
    size = float(size_bytes)

    while size >= 1024.0 and unit_index < len(units) - 1:
        size /= 1024.0
        unit_index += 1

    if unit_index == 0:
        return f"{int(size)} {units[unit_index]}"
    return f"{size:.1f} {units[unit_index]}"


_DURATION_UNITS = (
    ("day", 86400),
    ("hour", 3600),
    ("minute", 60),
    ("second", 1),
)


def format_duration(seconds: float, max_units: int = 2) -> str:
    """格式化时长，只保留最大的几个单位

    Examples:
        >>> format_duration(65)
        '1 minute, 5 seconds'
        >>> format_duration(3600 * 26 + 30)
        '1 day, 2 hours'
    """
    remaining = int(round(seconds))
    parts = []

    for unit, unit_seconds in _DURATION_UNITS:
        value, remaining = divmod(remaining, unit_seconds)
        if value:
            parts.append(f"{value} {unit}{'s' if value != 1 else ''}")
        if len(parts) == max_units:
            break

    return ", ".join(parts) if parts else "0 seconds"


def ensure_directory(path: Union[str, Path]) -> Path:
    """确保目录存在

    Args:
        path: 目录路径

    Returns:
        Path: 目录路径
    """
    dir_path = Path(path)
    dir_path.mkdir(parents=True, exist_ok=True)
    return dir_path
