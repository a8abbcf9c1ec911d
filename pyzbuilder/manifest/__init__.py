"""清单模块

读取 pyproject.toml，得到构建需要的源码和依赖路径。
"""

from .reader import (
    ManifestReader,
    ManifestResolution,
    MANIFEST_NAME,
    LOCK_NAME,
    canonicalize_name,
)

__all__ = [
    "ManifestReader",
    "ManifestResolution",
    "MANIFEST_NAME",
    "LOCK_NAME",
    "canonicalize_name",
]
