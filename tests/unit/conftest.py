"""
测试公共夹具

提供一个带有源码目录、依赖目录和开发依赖的示例项目。
"""

from pathlib import Path
from typing import Dict, List

import pytest

from pyzbuilder.config.schema import BuildConfig


ENTRY_SCRIPT = """\
#!/usr/bin/env python3
import sys
from demo.core import answer
import requests_lite
print(answer(), requests_lite.NAME)
"""

PYPROJECT = """\
[project]
name = "demo"
version = "1.0"
dependencies = ["requests-lite>=1.0"]

[dependency-groups]
lint = ["iniconfig-lite"]
dev = ["pytest-lite", {include-group = "lint"}]

[tool.pyzbuilder]
sources = ["src"]
dev-sources = ["tools"]
"""


def write_files(root: Path, files: Dict[str, str]) -> None:
    """按相对路径批量写入文本文件"""
    for relative, content in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding='utf-8')


def install_fake_dist(vendor: Path, name: str, module: str, requires: List[str] = (),
                      extra_files: Dict[str, str] = None) -> None:
    """在依赖目录中写入一个模拟的已安装发行包（带 METADATA 和 RECORD）"""
    dist_info = f"{module}-1.0.dist-info"
    files = {
        f"{module}/__init__.py": f"NAME = {name!r}\n",
        **(extra_files or {}),
    }
    metadata_lines = ["Metadata-Version: 2.1", f"Name: {name}", "Version: 1.0"]
    metadata_lines += [f"Requires-Dist: {requirement}" for requirement in requires]
    files[f"{dist_info}/METADATA"] = "\n".join(metadata_lines) + "\n"

    record = [f"{path},," for path in files] + [f"{dist_info}/RECORD,,"]
    files[f"{dist_info}/RECORD"] = "\n".join(record) + "\n"

    write_files(vendor, files)


@pytest.fixture
def demo_project(tmp_path) -> Path:
    """示例项目

    - src/demo: 项目源码（含测试目录、隐藏文件、备份文件等需要过滤的文件）
    - tools: 只在保留开发依赖时打包
    - vendor: requests-lite -> idna-lite 为运行依赖，
      pytest-lite -> idna-lite, iniconfig-lite 为开发依赖
    """
    project = tmp_path / "project"
    write_files(project, {
        "pyproject.toml": PYPROJECT,
        "pylock.toml": "lock-version = \"1.0\"\n",
        "bin/demo": ENTRY_SCRIPT,
        "src/demo/__init__.py": "",
        "src/demo/core.py": "def answer():\n    return 42\n",
        "src/demo/data.json": "{\"key\": \"value\"}\n",
        "src/demo/core.py~": "backup\n",
        "src/demo/.secret": "hidden\n",
        "src/demo/tests/test_core.py": "def test_answer():\n    pass\n",
        "src/docs/index.md": "# docs\n",
        "tools/release.py": "print('release')\n",
    })

    vendor = project / "vendor"
    install_fake_dist(vendor, "requests-lite", "requests_lite", requires=["idna-lite (>=1.0)"])
    install_fake_dist(vendor, "idna-lite", "idna_lite")
    install_fake_dist(vendor, "pytest-lite", "pytest_lite",
                      requires=["idna-lite", "iniconfig-lite", 'colorama-lite; extra == "color"'])
    install_fake_dist(vendor, "iniconfig-lite", "iniconfig_lite")
    return project


@pytest.fixture
def demo_config(demo_project, tmp_path):
    """示例项目的构建配置工厂"""

    def factory(**overrides) -> BuildConfig:
        data = {
            'manifest': demo_project / "pyproject.toml",
            'output_dir': tmp_path / "dist",
            'name': "demo.pyz",
            'entry_point': "bin/demo",
            'compression': "none",
        }
        data.update(overrides)
        Path(data['output_dir']).mkdir(parents=True, exist_ok=True)
        return BuildConfig(**data)

    return factory
