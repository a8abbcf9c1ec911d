"""
pyzbuilder - 单文件可执行 Python 归档构建工具

Packages a project's sources and vendored dependencies into one executable zip archive.
"""

__version__ = "0.1.0"
__license__ = "MIT"

from .config.schema import BuildConfig, CompressionMode
from .build.builder import Builder, BuildResult

__all__ = ["BuildConfig", "CompressionMode", "Builder", "BuildResult", "__version__"]
