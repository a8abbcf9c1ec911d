"""
清单读取器

读取项目的 pyproject.toml，得到需要打包的源码目录、源码文件、依赖目录，
以及在去掉开发依赖时需要排除的依赖包路径。

所有相对路径都相对于 pyproject.toml 所在目录（构建的工作根目录）。

pyproject.toml 中的 ``[tool.pyzbuilder]`` 表::

    [tool.pyzbuilder]
    sources = ["src"]            # 源码目录
    files = ["main.py"]          # 单独的源码文件
    dev-sources = ["tests"]      # 仅在保留开发依赖时打包
    dev-files = []
    vendor-dir = "vendor"        # pip install --target 的目标目录
    dev-groups = ["dev"]         # 视为开发依赖的依赖组
    python-path = ["src"]        # 启动时加入 sys.path 的目录
"""

import re
import tomllib
from dataclasses import dataclass
from importlib import metadata
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple, Union

from ..errors import InvalidInputError
from ..utils.logging import debug, warning, LogStage

MANIFEST_NAME = "pyproject.toml"
LOCK_NAME = "pylock.toml"
TOOL_TABLE = "pyzbuilder"

DEFAULT_VENDOR_DIR = "vendor"
DEFAULT_DEV_GROUPS = ("dev",)

_REQUIREMENT_NAME = re.compile(r"^\s*([A-Za-z0-9](?:[A-Za-z0-9._-]*[A-Za-z0-9])?)")
_REQUIREMENT_EXTRAS = re.compile(r"^\s*[A-Za-z0-9][A-Za-z0-9._-]*\s*\[([^\]]*)\]")
_EXTRA_MARKER = re.compile(r"""\bextra\s*==\s*['"]([^'"]+)['"]|['"]([^'"]+)['"]\s*==\s*extra\b""")


def canonicalize_name(name: str) -> str:
    """规范化发行包名称（PEP 503）"""
    return re.sub(r"[-_.]+", "-", name).lower()


def requirement_name(requirement: str) -> Optional[str]:
    """从依赖声明中提取规范化后的包名，无法解析时返回 None"""
    match = _REQUIREMENT_NAME.match(requirement)
    if not match:
        return None
    return canonicalize_name(match.group(1))


def requirement_extras(requirement: str) -> Set[str]:
    """依赖声明中方括号里的 extra，如 ``httpish[socks]``"""
    match = _REQUIREMENT_EXTRAS.match(requirement)
    if not match:
        return set()
    return {canonicalize_name(e.strip()) for e in match.group(1).split(',') if e.strip()}


def marker_extras(requirement: str) -> Set[str]:
    """依赖声明的环境标记中 ``extra == "x"`` 引用的 extra"""
    marker = requirement.partition(';')[2]
    return {canonicalize_name(a or b) for a, b in _EXTRA_MARKER.findall(marker)}


@dataclass(frozen=True)
class ManifestResolution:
    """清单解析结果"""
    manifest_dir: Path  # 工作根目录（绝对路径）
    descriptor: str  # 清单描述文件（相对路径）
    lock_file: Optional[str]  # 锁文件（相对路径），不存在时为 None
    source_dirs: Tuple[str, ...] = ()
    source_files: Tuple[str, ...] = ()
    vendor_dir: Optional[str] = None
    dev_excludes: Tuple[str, ...] = ()  # 依赖目录下需要排除的绝对路径
    python_path: Tuple[str, ...] = ()  # 启动时加入 sys.path 的归档内目录


class ManifestReader:
    """pyproject.toml 读取器

    Args:
        path: pyproject.toml 路径或其所在目录

    Raises:
        InvalidInputError: 清单文件不存在或无法解析
    """

    def __init__(self, path: Union[str, Path]):
        manifest_path = Path(path)
        if manifest_path.is_dir():
            manifest_path = manifest_path / MANIFEST_NAME

        if not manifest_path.is_file():
            raise InvalidInputError("清单文件不存在", path=manifest_path, phase="manifest")

        self.manifest_path = manifest_path.resolve()
        try:
            with open(self.manifest_path, 'rb') as f:
                self.data: Dict[str, Any] = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise InvalidInputError(f"清单文件解析失败: {e}",
                                    path=self.manifest_path, phase="manifest") from e
        except OSError as e:
            raise InvalidInputError(f"清单文件读取失败: {e.strerror or e}",
                                    path=self.manifest_path, phase="manifest") from e

        tool = self.data.get('tool', {}).get(TOOL_TABLE, {})
        if not isinstance(tool, dict):
            raise InvalidInputError(f"[tool.{TOOL_TABLE}] 必须是表",
                                    path=self.manifest_path, phase="manifest")
        self.tool: Dict[str, Any] = tool

    def get_manifest_directory(self) -> Path:
        """清单所在目录，所有其他路径都相对于它"""
        return self.manifest_path.parent

    def get_manifest_file(self) -> str:
        return self.manifest_path.name

    def get_lock_file(self) -> Optional[str]:
        """锁文件相对路径，不存在时返回 None"""
        lock_path = self.get_manifest_directory() / LOCK_NAME
        return LOCK_NAME if lock_path.is_file() else None

    def get_source_paths(self, include_dev: bool = False) -> Dict[str, List[str]]:
        """获取项目源码路径

        Args:
            include_dev: 是否包含开发用的源码目录和文件

        Returns:
            Dict: ``{"dirs": [...], "files": [...]}``
        """
        dirs = self._string_list('sources', default=self._default_sources())
        files = self._string_list('files', default=[])

        if include_dev:
            dirs += [d for d in self._string_list('dev-sources', default=[]) if d not in dirs]
            files += [f for f in self._string_list('dev-files', default=[]) if f not in files]

        return {
            'dirs': [self._strip_separator(d) for d in dirs],
            'files': files,
        }

    def get_vendor_dir(self) -> Optional[str]:
        """依赖目录

        显式声明的目录必须存在；未声明时只有默认目录存在才使用。
        """
        declared = self.tool.get('vendor-dir')
        if declared is not None:
            if not isinstance(declared, str) or not declared.strip():
                raise InvalidInputError("vendor-dir 必须是非空字符串",
                                        path=self.manifest_path, phase="manifest")
            vendor_dir = self._strip_separator(declared)
            if not (self.get_manifest_directory() / vendor_dir).is_dir():
                raise InvalidInputError("依赖目录不存在",
                                        path=self.get_manifest_directory() / vendor_dir, phase="manifest")
            return vendor_dir

        if (self.get_manifest_directory() / DEFAULT_VENDOR_DIR).is_dir():
            return DEFAULT_VENDOR_DIR
        return None

    def get_python_path(self) -> List[str]:
        """启动时需要加入 sys.path 的归档内目录"""
        default = ['src'] if 'src' in self.get_source_paths(include_dev=False)['dirs'] else []
        return [self._strip_separator(p) for p in self._string_list('python-path', default=default)]

    def get_dev_only_package_names(self) -> List[str]:
        """获取只被开发依赖使用的包在依赖目录中的路径

        开发依赖的闭包减去运行依赖的闭包得到只用于开发的发行包，
        每个发行包贡献 RECORD 中列出的顶层条目（包目录、模块、.dist-info）。

        Returns:
            List[str]: 绝对路径列表，已排序
        """
        vendor_dir = self.get_vendor_dir()
        if vendor_dir is None:
            return []

        vendor_path = (self.get_manifest_directory() / vendor_dir).resolve()
        installed = self._installed_distributions(vendor_path)

        runtime = self._closure(self._runtime_requirements(), installed)
        dev_only = self._closure(self._dev_requirements(), installed) - runtime
        if not dev_only:
            return []

        shared: Set[str] = set()
        for name in runtime:
            shared |= self._top_level_entries(installed[name])

        excludes: Set[str] = set()
        for name in sorted(dev_only):
            entries = self._top_level_entries(installed[name]) - shared
            debug(f"开发依赖 {name}: {sorted(entries)}", stage=LogStage.MANIFEST)
            excludes |= entries

        return sorted(str(vendor_path / entry) for entry in excludes)

    def resolve(self, keep_dev: bool = False) -> ManifestResolution:
        """解析清单，得到构建所需的全部路径"""
        sources = self.get_source_paths(include_dev=keep_dev)
        manifest_dir = self.get_manifest_directory()

        for directory in sources['dirs']:
            if not (manifest_dir / directory).is_dir():
                raise InvalidInputError("源码目录不存在", path=manifest_dir / directory, phase="manifest")
        for file in sources['files']:
            if not (manifest_dir / file).is_file():
                raise InvalidInputError("源码文件不存在", path=manifest_dir / file, phase="manifest")

        vendor_dir = self.get_vendor_dir()
        dev_excludes = [] if keep_dev else self.get_dev_only_package_names()

        search_paths = self.get_python_path()
        if vendor_dir is not None and vendor_dir not in search_paths:
            search_paths.append(vendor_dir)

        return ManifestResolution(
            manifest_dir=manifest_dir,
            descriptor=self.get_manifest_file(),
            lock_file=self.get_lock_file(),
            source_dirs=tuple(sources['dirs']),
            source_files=tuple(sources['files']),
            vendor_dir=vendor_dir,
            dev_excludes=tuple(dev_excludes),
            python_path=tuple(search_paths),
        )

    def _default_sources(self) -> List[str]:
        if (self.get_manifest_directory() / 'src').is_dir():
            return ['src']
        return []

    def _string_list(self, key: str, default: List[str]) -> List[str]:
        value = self.tool.get(key)
        if value is None:
            return list(default)
        if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
            raise InvalidInputError(f"[tool.{TOOL_TABLE}] {key} 必须是字符串列表",
                                    path=self.manifest_path, phase="manifest")
        return list(value)

    @staticmethod
    def _strip_separator(path: str) -> str:
        return path.replace('\\', '/').rstrip('/') or '.'

    def _runtime_requirements(self) -> List[str]:
        project = self.data.get('project', {})
        return list(project.get('dependencies', []))

    def _dev_requirements(self) -> List[str]:
        groups = self._string_list('dev-groups', default=list(DEFAULT_DEV_GROUPS))
        dependency_groups = self.data.get('dependency-groups', {})
        optional = self.data.get('project', {}).get('optional-dependencies', {})

        requirements: List[str] = []
        for group in groups:
            requirements += self._expand_group(group, dependency_groups, set())
            requirements += list(optional.get(group, []))
        return requirements

    def _expand_group(self, group: str, dependency_groups: Dict[str, Any], seen: Set[str]) -> List[str]:
        """展开依赖组（支持 include-group）"""
        if group in seen:
            raise InvalidInputError(f"依赖组 {group} 存在循环引用",
                                    path=self.manifest_path, phase="manifest")
        seen = seen | {group}

        requirements: List[str] = []
        for item in dependency_groups.get(group, []):
            if isinstance(item, str):
                requirements.append(item)
            elif isinstance(item, dict) and 'include-group' in item:
                requirements += self._expand_group(item['include-group'], dependency_groups, seen)
        return requirements

    @staticmethod
    def _installed_distributions(vendor_path: Path) -> Dict[str, metadata.Distribution]:
        """依赖目录中已安装的发行包，按规范化名称索引"""
        installed: Dict[str, metadata.Distribution] = {}
        for dist in metadata.distributions(path=[str(vendor_path)]):
            name = dist.metadata['Name']
            if name:
                installed.setdefault(canonicalize_name(name), dist)
        return installed

    @staticmethod
    def _closure(requirements: Iterable[str], installed: Dict[str, metadata.Distribution]) -> Set[str]:
        """沿 Requires-Dist 计算已安装发行包的依赖闭包"""
        # 包名 -> 已展开的 extra
        expanded: Dict[str, Set[str]] = {}
        missing: Set[str] = set()
        pending = [(requirement_name(r), requirement_extras(r)) for r in requirements]

        while pending:
            name, extras = pending.pop()
            if not name:
                continue
            if name not in installed:
                if name not in missing:
                    missing.add(name)
                    warning(f"依赖 {name} 未安装在依赖目录中", stage=LogStage.MANIFEST)
                continue

            first = name not in expanded
            done = expanded.setdefault(name, set())
            new_extras = extras - done
            if not first and not new_extras:
                continue
            done |= new_extras

            for requirement in installed[name].requires or []:
                # 只在 extra 中需要的依赖，仅当该 extra 被请求时计入
                wanted = marker_extras(requirement)
                if wanted:
                    if not wanted & new_extras:
                        continue
                elif not first:
                    continue
                pending.append((requirement_name(requirement), requirement_extras(requirement)))

        return set(expanded)

    @staticmethod
    def _top_level_entries(dist: metadata.Distribution) -> Set[str]:
        """发行包在依赖目录中的顶层条目"""
        entries: Set[str] = set()
        for file in dist.files or []:
            parts = Path(file).parts
            if not parts or parts[0] == '..':
                # 安装到依赖目录之外的脚本等
                continue
            entries.add(parts[0])
        return entries
