"""
归档写入器

负责目标归档文件的整个生命周期：创建、写入条目（原样或压缩）、设置启动存根、提交。

状态流转::

    EMPTY -> BUFFERING -> COMMITTED
                 |
                 +-----> FAILED

条目先缓存在内存中，提交时写入目标目录下的隐藏临时文件，成功后原子替换到目标路径。
任何失败都不会在目标路径留下写了一半的文件。
"""

import os
import stat
import tempfile
import time
import zipfile
from dataclasses import dataclass
from enum import Enum
from pathlib import Path, PurePosixPath
from typing import Dict, Iterable, Iterator, Optional, Tuple, Union

from ..config.schema import CompressionMode
from ..errors import ArtifactCreateError, CommitError, IngestionError
from ..utils.logging import debug, warning, LogStage
from .compressor import CompressionPolicy
from .reporter import BuildReporter
from .stub import BOOTSTRAP_NAME, make_bootstrap, make_directive

PathLike = Union[str, os.PathLike]

# zip 格式能表示的最早时间
_ZIP_EPOCH = (1980, 1, 1, 0, 0, 0)


class ArchiveState(str, Enum):
    """归档写入器状态"""
    EMPTY = "empty"
    BUFFERING = "buffering"
    COMMITTED = "committed"
    FAILED = "failed"


@dataclass(frozen=True)
class ArchiveEntry:
    """归档条目"""
    path: str  # 归档内路径（正斜杠）
    content: bytes
    compressed: bool = False
    mtime: Optional[float] = None  # 源文件修改时间，直接写入的内容为 None

    @property
    def size(self) -> int:
        return len(self.content)

    def date_time(self) -> Tuple[int, int, int, int, int, int]:
        """zip 条目使用的时间戳"""
        if self.mtime is None:
            return _ZIP_EPOCH
        date_time = time.localtime(self.mtime)[:6]
        return max(date_time, _ZIP_EPOCH)


def normalize_archive_path(archive_path: PathLike) -> str:
    """规范化归档内路径：正斜杠、去掉开头的 ./ 和 /"""
    path_str = os.fspath(archive_path).replace('\\', '/')
    normalized = PurePosixPath(path_str).as_posix().lstrip('/')
    if normalized in ('', '.'):
        raise IngestionError("归档内路径无效", path=path_str, phase="ingest")
    if '..' in PurePosixPath(normalized).parts:
        raise IngestionError("归档内路径不能包含 ..", path=path_str, phase="ingest")
    return normalized


class ArchiveWriter:
    """归档写入器

    一个实例只对应一次构建，不能在多次构建之间复用。

    Args:
        compression: 全局压缩模式
        root: 读取 add_file 相对路径时使用的根目录
        reporter: 进度报告器
    """

    def __init__(
        self,
        compression: Union[CompressionMode, str] = CompressionMode.NONE,
        root: Optional[PathLike] = None,
        reporter: Optional[BuildReporter] = None,
    ):
        self.policy = CompressionPolicy(compression)
        self.root = Path(root) if root is not None else Path.cwd()
        self.reporter = reporter or BuildReporter()

        self._state = ArchiveState.EMPTY
        self._path: Optional[Path] = None
        self._alias: Optional[str] = None
        self._temp_path: Optional[Path] = None
        self._entries: Dict[str, ArchiveEntry] = {}
        self._bootstrap: Optional[str] = None
        self._directive: bytes = make_directive()

    @property
    def state(self) -> ArchiveState:
        return self._state

    @property
    def path(self) -> Optional[Path]:
        return self._path

    @property
    def alias(self) -> Optional[str]:
        return self._alias

    @property
    def bootstrap(self) -> Optional[str]:
        return self._bootstrap

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, archive_path: str) -> bool:
        return archive_path in self._entries

    def __iter__(self) -> Iterator[ArchiveEntry]:
        return iter(self._entries.values())

    def get_entry(self, archive_path: str) -> Optional[ArchiveEntry]:
        return self._entries.get(archive_path)

    def open(self, path: PathLike, alias: Optional[str] = None) -> None:
        """创建新的归档

        会先删除目标路径上已存在的归档，然后在目标目录中创建临时文件。

        Raises:
            ArtifactCreateError: 目标路径不可写或已存在的归档无法删除
        """
        if self._state is not ArchiveState.EMPTY:
            raise ArtifactCreateError(f"归档写入器状态为 {self._state.value}，不能再次打开",
                                      path=path, phase="open")

        target = Path(path)
        if target.is_dir():
            self._state = ArchiveState.FAILED
            raise ArtifactCreateError("目标路径是一个目录", path=target, phase="open")

        if target.exists() or target.is_symlink():
            try:
                target.unlink()
            except OSError as e:
                self._state = ArchiveState.FAILED
                raise ArtifactCreateError(f"无法删除已存在的归档: {e.strerror or e}",
                                          path=target, phase="open") from e
            debug(f"已删除旧归档: {target}", stage=LogStage.OPEN)

        try:
            fd, temp_name = tempfile.mkstemp(
                prefix=f".{target.name}.", suffix=".tmp", dir=target.parent
            )
            os.close(fd)
        except OSError as e:
            self._state = ArchiveState.FAILED
            raise ArtifactCreateError(f"输出目录不可写: {e.strerror or e}",
                                      path=target, phase="open") from e

        self._path = target
        self._alias = alias or target.name
        self._temp_path = Path(temp_name)
        self._state = ArchiveState.BUFFERING
        debug(f"创建归档 {target} (alias={self._alias}, 临时文件 {self._temp_path.name})",
              stage=LogStage.OPEN)

    def set_bootstrap(
        self,
        entry_path: PathLike,
        alias: Optional[str] = None,
        search_paths: Iterable[str] = (),
        interpreter: str = "python3",
    ) -> str:
        """设置启动存根

        Args:
            entry_path: 入口脚本的归档内路径
            alias: 归档别名，默认为 open() 时的别名
            search_paths: 启动时加入 sys.path 的归档内目录
            interpreter: 解释器指令行中的解释器

        Returns:
            str: 生成的启动脚本
        """
        self._require_buffering(entry_path)
        entry = normalize_archive_path(entry_path)
        self._bootstrap = make_bootstrap(entry, alias or self._alias, search_paths)
        self._directive = make_directive(interpreter)
        debug(f"启动存根入口: {entry}", stage=LogStage.STUB)
        return self._bootstrap

    def add_file(self, archive_path: PathLike, source: Optional[PathLike] = None) -> ArchiveEntry:
        """从磁盘读取文件加入归档

        Args:
            archive_path: 归档内路径（也是相对于 root 的源文件路径）
            source: 源文件路径，默认为 root / archive_path

        Raises:
            IngestionError: 文件读取失败
        """
        self._require_buffering(archive_path)
        entry_path = normalize_archive_path(archive_path)

        source_path = Path(source) if source is not None else Path(archive_path)
        if not source_path.is_absolute():
            source_path = self.root / source_path

        try:
            with open(source_path, 'rb') as f:
                content = f.read()
            mtime = os.stat(source_path).st_mtime
        except OSError as e:
            self._fail()
            raise IngestionError(f"读取文件失败: {e.strerror or e}",
                                 path=source_path, phase="ingest") from e

        return self._store(entry_path, content, mtime)

    def add_bytes(self, archive_path: PathLike, content: Union[bytes, str]) -> ArchiveEntry:
        """直接写入内容到归档"""
        self._require_buffering(archive_path)
        entry_path = normalize_archive_path(archive_path)
        if isinstance(content, str):
            content = content.encode('utf-8')
        return self._store(entry_path, content, None)

    def _store(self, entry_path: str, content: bytes, mtime: Optional[float]) -> ArchiveEntry:
        if entry_path == BOOTSTRAP_NAME:
            warning(f"{BOOTSTRAP_NAME} 由启动存根占用，已跳过项目中的同名文件", stage=LogStage.INGEST)
            return ArchiveEntry(entry_path, content, False, mtime)

        # 加入后立即按文件决定是否压缩
        compressed = self.policy.should_compress(entry_path)
        entry = ArchiveEntry(entry_path, content, compressed, mtime)
        self._entries[entry_path] = entry

        self.reporter.on_file_added(entry_path)
        if compressed:
            self.reporter.on_compressed(entry_path)
        return entry

    def commit(self) -> Path:
        """把所有缓存的条目写入目标路径

        Returns:
            Path: 归档路径

        Raises:
            CommitError: 写入失败，目标路径不会留下半成品
        """
        if self._state is not ArchiveState.BUFFERING:
            raise CommitError(f"归档写入器状态为 {self._state.value}，不能提交",
                              path=self._path, phase="commit")
        if self._bootstrap is None:
            raise CommitError("提交前必须先设置启动存根", path=self._path, phase="commit")

        try:
            with open(self._temp_path, 'wb') as fp:
                fp.write(self._directive)
                with zipfile.ZipFile(fp, 'w') as zf:
                    zf.writestr(self._zip_info(BOOTSTRAP_NAME, _ZIP_EPOCH), self._bootstrap,
                                compress_type=zipfile.ZIP_STORED)
                    for entry in self._entries.values():
                        method = self.policy.method_for(entry.path) if entry.compressed else zipfile.ZIP_STORED
                        zf.writestr(self._zip_info(entry.path, entry.date_time()), entry.content,
                                    compress_type=method)
                fp.flush()
                os.fsync(fp.fileno())

            mode = os.stat(self._temp_path).st_mode
            os.chmod(self._temp_path, mode | stat.S_IRUSR | stat.S_IRGRP | stat.S_IROTH
                     | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
            os.replace(self._temp_path, self._path)
        except (OSError, zipfile.LargeZipFile, RuntimeError) as e:
            self._fail()
            raise CommitError(f"写入归档失败: {e}", path=self._path, phase="commit") from e

        self._temp_path = None
        self._state = ArchiveState.COMMITTED
        debug(f"归档已提交: {self._path} ({len(self._entries)} 个条目)", stage=LogStage.COMMIT)
        return self._path

    def discard(self) -> None:
        """放弃本次构建，删除临时文件"""
        if self._state is ArchiveState.COMMITTED:
            return
        self._fail()

    def _fail(self) -> None:
        self._entries.clear()
        if self._temp_path is not None:
            self._temp_path.unlink(missing_ok=True)
            self._temp_path = None
        self._state = ArchiveState.FAILED

    def _require_buffering(self, archive_path: PathLike) -> None:
        if self._state is not ArchiveState.BUFFERING:
            raise IngestionError(f"归档写入器状态为 {self._state.value}，不能写入条目",
                                 path=archive_path, phase="ingest")

    @staticmethod
    def _zip_info(name: str, date_time: Tuple[int, int, int, int, int, int]) -> zipfile.ZipInfo:
        info = zipfile.ZipInfo(name, date_time=date_time)
        info.external_attr = (stat.S_IFREG | 0o644) << 16
        return info
