"""
文件选择器

遍历目录，按一组相互独立的过滤规则剔除不需要打包的文件，返回最终的文件列表。
过滤规则以列表形式组合，新增规则时不需要修改已有规则。
"""

import fnmatch
import os
from pathlib import Path, PurePosixPath
from typing import Callable, Iterable, Iterator, List, Optional, Sequence, Tuple, Union

from ..errors import IngestionError, InvalidInputError

# 过滤函数：参数为相对于被遍历目录的路径，返回 True 表示剔除该文件
FileFilter = Callable[[PurePosixPath], bool]

PathLike = Union[str, os.PathLike]

VCS_DIRECTORIES = frozenset({
    '.git', '.svn', '_svn', '.hg', '.bzr', 'CVS', '_darcs', '.arch-params', '.monotone',
})

MANIFEST_PATTERNS = ('pyproject.*', 'pylock.*')

BACKUP_PATTERNS = ('*~', '*.back', '*.swp')

TEST_RUNNER_PATTERNS = ('pytest*', 'py.test*')

TEST_DIRECTORIES = frozenset({'Tests', 'tests', 'test'})

DOC_DIRECTORIES = frozenset({'docs'})


def _name_matches(name: str, patterns: Iterable[str]) -> bool:
    # 区分大小写
    return any(fnmatch.fnmatchcase(name, pattern) for pattern in patterns)


def in_vcs_directory(relative_path: PurePosixPath) -> bool:
    """位于版本控制元数据目录中"""
    return any(part in VCS_DIRECTORIES for part in relative_path.parts[:-1])


def is_hidden(relative_path: PurePosixPath) -> bool:
    """文件本身或其所在目录以点开头"""
    return any(part.startswith('.') for part in relative_path.parts)


def is_manifest_file(relative_path: PurePosixPath) -> bool:
    """清单描述文件和锁文件"""
    return _name_matches(relative_path.name, MANIFEST_PATTERNS)


def is_backup_file(relative_path: PurePosixPath) -> bool:
    """编辑器备份文件"""
    return _name_matches(relative_path.name, BACKUP_PATTERNS)


def is_test_runner(relative_path: PurePosixPath) -> bool:
    """测试运行器脚本和配置"""
    return _name_matches(relative_path.name, TEST_RUNNER_PATTERNS)


def in_test_directory(relative_path: PurePosixPath) -> bool:
    """位于名为 Tests/tests/test 的目录中（任意层级，精确匹配目录名）"""
    return any(part in TEST_DIRECTORIES for part in relative_path.parts[:-1])


def in_docs_directory(relative_path: PurePosixPath) -> bool:
    """位于名为 docs 的目录中"""
    return any(part in DOC_DIRECTORIES for part in relative_path.parts[:-1])


DEFAULT_FILTERS: Tuple[FileFilter, ...] = (
    in_vcs_directory,
    is_hidden,
    is_manifest_file,
    is_backup_file,
    is_test_runner,
    in_test_directory,
    in_docs_directory,
)


class ExcludeListFilter:
    """剔除位于排除列表中的路径（路径本身或其子路径）"""

    def __init__(self, excludes: Iterable[str]):
        self.excludes = tuple(e for e in excludes if e)

    def __call__(self, relative_path: PurePosixPath) -> bool:
        path_str = relative_path.as_posix()
        for exclude in self.excludes:
            if path_str == exclude or path_str.startswith(exclude + '/'):
                return True
        return False


class GlobPatternFilter:
    """按 glob 模式剔除文件

    支持以下写法：
    - ``*.pyc``：扩展名匹配
    - ``__pycache__/``：目录模式，匹配该目录下的所有文件
    - ``pkg/*.dat``：路径片段匹配，可出现在任意层级
    - 其他：对完整相对路径和文件名做 glob 匹配
    """

    def __init__(self, patterns: Iterable[str]):
        self.patterns = tuple(p.replace('\\', '/') for p in patterns if p)

    def __call__(self, relative_path: PurePosixPath) -> bool:
        path_str = relative_path.as_posix()
        return any(self._match_pattern(path_str, pattern) for pattern in self.patterns)

    @staticmethod
    def _match_pattern(path: str, pattern: str) -> bool:
        if fnmatch.fnmatchcase(path, pattern):
            return True

        path_parts = path.split('/')

        # 目录模式匹配（以 / 结尾）
        if pattern.endswith('/'):
            dir_pattern = pattern.rstrip('/')
            return any(fnmatch.fnmatchcase(part, dir_pattern) for part in path_parts[:-1]) \
                or path.startswith(dir_pattern + '/')

        # 路径片段匹配（包含路径分隔符）
        if '/' in pattern:
            pattern_parts = pattern.split('/')
            for i in range(len(path_parts) - len(pattern_parts) + 1):
                if all(
                    fnmatch.fnmatchcase(path_parts[i + j], pattern_parts[j])
                    for j in range(len(pattern_parts))
                ):
                    return True
            return False

        # 只有文件名的模式对文件名匹配
        return fnmatch.fnmatchcase(path_parts[-1], pattern)


class FileSelector:
    """文件选择器

    所有相对路径都基于显式传入的根目录解析，不依赖也不修改进程的当前工作目录。
    """

    def __init__(
        self,
        filters: Optional[Sequence[FileFilter]] = None,
        exclude_patterns: Optional[Sequence[str]] = None,
    ):
        self.filters: List[FileFilter] = list(DEFAULT_FILTERS if filters is None else filters)
        if exclude_patterns:
            self.filters.append(GlobPatternFilter(exclude_patterns))

    def add_filter(self, file_filter: FileFilter) -> None:
        """追加一条过滤规则"""
        self.filters.append(file_filter)

    def select(
        self,
        directory: PathLike,
        excludes: Iterable[PathLike] = (),
        root: Optional[PathLike] = None,
    ) -> List[str]:
        """选择目录下需要打包的文件

        Args:
            directory: 要遍历的目录（相对路径基于 root 解析）
            excludes: 需要剔除的路径列表（绝对路径或相对于 directory 的路径）
            root: 工作根目录，默认为当前目录

        Returns:
            List[str]: 以 directory 参数为前缀的文件路径（正斜杠），按字典序排序

        Raises:
            InvalidInputError: 目录不存在或不是目录
            IngestionError: 目录遍历中途失败
        """
        prefix = PurePosixPath(Path(directory).as_posix().rstrip('/') or '/')
        return [(prefix / relative_path).as_posix() for relative_path in self.select_relative(directory, excludes, root)]

    def select_relative(
        self,
        directory: PathLike,
        excludes: Iterable[PathLike] = (),
        root: Optional[PathLike] = None,
    ) -> List[str]:
        """与 select 相同，但返回相对于目录本身的路径"""
        resolved = self._resolve_directory(directory, root)
        exclude_filter = ExcludeListFilter(self._normalize_excludes(excludes, resolved))

        selected = []
        for relative_path in self._walk(resolved):
            if exclude_filter(relative_path):
                continue
            if any(file_filter(relative_path) for file_filter in self.filters):
                continue
            selected.append(relative_path.as_posix())

        selected.sort()
        return selected

    def _resolve_directory(self, directory: PathLike, root: Optional[PathLike]) -> Path:
        path = Path(directory)
        if not path.is_absolute() and root is not None:
            path = Path(root) / path

        if not path.is_dir():
            raise InvalidInputError("目录不存在或不是目录", path=path, phase="select")

        return path.resolve()

    @staticmethod
    def _normalize_excludes(excludes: Iterable[PathLike], resolved: Path) -> List[str]:
        """把排除列表改写为相对于已解析目录的路径，并去掉末尾分隔符"""
        normalized = []
        resolved_str = str(resolved)
        for exclude in excludes:
            exclude_str = os.fspath(exclude)
            if os.path.isabs(exclude_str) and exclude_str.startswith(resolved_str + os.sep):
                exclude_str = exclude_str[len(resolved_str) + 1:]
            exclude_str = exclude_str.replace('\\', '/').rstrip('/')
            if exclude_str:
                normalized.append(exclude_str)
        return normalized

    @staticmethod
    def _walk(directory: Path) -> Iterator[PurePosixPath]:
        """递归列出目录下的所有普通文件（相对路径）"""

        def on_error(exc: OSError) -> None:
            raise IngestionError(f"目录遍历失败: {exc.strerror or exc}",
                                 path=exc.filename or directory, phase="select") from exc

        for current, dirnames, filenames in os.walk(directory, onerror=on_error):
            # 固定遍历顺序
            dirnames.sort()
            current_path = Path(current)
            for filename in sorted(filenames):
                file_path = current_path / filename
                if not file_path.is_file():
                    continue
                yield PurePosixPath(file_path.relative_to(directory).as_posix())
