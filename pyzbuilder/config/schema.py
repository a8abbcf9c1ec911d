"""
配置 Schema 定义

使用 Pydantic 定义构建配置模型，支持验证和类型检查。
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class CompressionMode(str, Enum):
    """压缩模式枚举"""
    NONE = "none"
    GZIP = "gzip"
    BZIP2 = "bzip2"

    @classmethod
    def parse(cls, value: Any) -> "CompressionMode":
        """解析压缩模式

        不区分大小写，``no`` 视为 ``none``。无法识别的值一律回退为 ``none``。
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return cls.NONE

        normalized = value.strip().lower()
        if normalized == "no":
            return cls.NONE
        try:
            return cls(normalized)
        except ValueError:
            return cls.NONE


class BuildConfig(BaseModel):
    """构建配置模型

    一次构建的完整输入，构建过程中不可修改。
    """

    manifest: Path = Field(..., description="pyproject.toml 路径或其所在目录")
    output_dir: Path = Field(..., description="归档输出目录")
    name: str = Field(..., description="归档文件名（同时作为归档别名）", min_length=1, max_length=255)
    entry_point: Path = Field(..., description="入口脚本路径")
    compression: CompressionMode = Field(CompressionMode.NONE, description="压缩模式")
    includes: List[Path] = Field(default_factory=list, description="额外包含的目录")
    keep_dev: bool = Field(False, description="是否保留开发依赖")
    exclude: Optional[List[str]] = Field(None, description="额外排除模式列表（glob 格式）")
    interpreter: str = Field("python3", description="解释器指令行中的解释器名称", min_length=1)

    model_config = {
        "extra": "forbid",
        "frozen": True,
        "str_strip_whitespace": True,
    }

    @field_validator('compression', mode='before')
    @classmethod
    def normalize_compression(cls, v: Any) -> CompressionMode:
        """规范化压缩模式"""
        return CompressionMode.parse(v)

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        """验证归档文件名"""
        if '/' in v or '\\' in v:
            raise ValueError("归档文件名不能包含路径分隔符")
        if v in ('.', '..'):
            raise ValueError("归档文件名无效")
        if any(ord(ch) < 32 or ord(ch) == 127 for ch in v):
            raise ValueError("归档文件名不能包含控制字符")
        return v

    @field_validator('interpreter')
    @classmethod
    def validate_interpreter(cls, v: str) -> str:
        """验证解释器名称"""
        if any(ch.isspace() for ch in v):
            raise ValueError("解释器名称不能包含空白字符")
        return v

    @field_validator('exclude')
    @classmethod
    def validate_exclude(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        """去除空白和重复的排除模式"""
        if v is None:
            return None

        cleaned = []
        for pattern in v:
            pattern = pattern.strip()
            if pattern and pattern not in cleaned:
                cleaned.append(pattern)

        return cleaned or None

    @model_validator(mode='after')
    def validate_includes(self) -> 'BuildConfig':
        """额外包含目录不能重复"""
        seen = set()
        for include in self.includes:
            if include in seen:
                raise ValueError(f"额外包含目录重复: {include}")
            seen.add(include)
        return self

    @property
    def output_path(self) -> Path:
        """归档输出路径（output_dir / name）

        Path 本身会去掉末尾的分隔符，这里直接拼接即可。
        """
        return self.output_dir / self.name

    @property
    def alias(self) -> str:
        """归档别名（约定为文件名）"""
        return self.name

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典格式"""
        data = self.model_dump(exclude_none=True)

        def convert_values(obj):
            if isinstance(obj, dict):
                return {k: convert_values(v) for k, v in obj.items()}
            elif isinstance(obj, list):
                return [convert_values(item) for item in obj]
            elif isinstance(obj, Enum):
                return obj.value
            elif isinstance(obj, Path):
                return str(obj)
            else:
                return obj

        return convert_values(data)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BuildConfig':
        """从字典创建配置实例"""
        return cls.model_validate(data)
