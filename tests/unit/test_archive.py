"""
归档写入器单元测试

测试归档的创建、条目写入、启动存根、提交和失败清理。
"""

import os
import stat
import zipfile
from unittest.mock import MagicMock

import pytest

from pyzbuilder.build.archive import ArchiveEntry, ArchiveState, ArchiveWriter, normalize_archive_path
from pyzbuilder.build.reporter import BuildReporter
from pyzbuilder.errors import ArtifactCreateError, CommitError, IngestionError


@pytest.fixture
def source_root(tmp_path):
    root = tmp_path / "src_root"
    (root / "pkg").mkdir(parents=True)
    (root / "pkg" / "a.py").write_text("A = 1\n")
    (root / "pkg" / "b.png").write_bytes(b"\x89PNG")
    return root


@pytest.fixture
def target(tmp_path):
    out = tmp_path / "out"
    out.mkdir()
    return out / "app.pyz"


def temp_files(target):
    return list(target.parent.glob(f".{target.name}.*.tmp"))


class TestNormalizeArchivePath:
    """归档内路径规范化测试"""

    def test_normalize(self):
        assert normalize_archive_path("./pkg/a.py") == "pkg/a.py"
        assert normalize_archive_path("/pkg/a.py") == "pkg/a.py"
        assert normalize_archive_path("pkg\\a.py") == "pkg/a.py"

    @pytest.mark.parametrize("path", ["", ".", "../a.py", "pkg/../../a.py"])
    def test_invalid(self, path):
        with pytest.raises(IngestionError):
            normalize_archive_path(path)


class TestArchiveEntry:
    """归档条目测试"""

    def test_size(self):
        assert ArchiveEntry("a.txt", b"abc").size == 3

    def test_date_time_floor(self):
        # 1970 年早于 zip 能表示的最早时间
        assert ArchiveEntry("a.txt", b"", mtime=0).date_time() == (1980, 1, 1, 0, 0, 0)
        assert ArchiveEntry("a.txt", b"").date_time() == (1980, 1, 1, 0, 0, 0)


class TestArchiveWriterOpen:
    """归档创建测试"""

    def test_open_creates_temp_file(self, target):
        writer = ArchiveWriter()
        writer.open(target, alias="app")

        assert writer.state is ArchiveState.BUFFERING
        assert writer.path == target
        assert writer.alias == "app"
        assert len(temp_files(target)) == 1
        assert not target.exists()

    def test_open_removes_existing_artifact(self, target):
        target.write_bytes(b"old artifact")

        writer = ArchiveWriter()
        writer.open(target)

        assert not target.exists()
        assert writer.alias == "app.pyz"

    def test_open_directory_target(self, tmp_path):
        writer = ArchiveWriter()
        with pytest.raises(ArtifactCreateError) as exc_info:
            writer.open(tmp_path)
        assert exc_info.value.phase == "open"
        assert writer.state is ArchiveState.FAILED

    def test_open_missing_output_dir(self, tmp_path):
        with pytest.raises(ArtifactCreateError):
            ArchiveWriter().open(tmp_path / "missing" / "app.pyz")

    def test_open_twice(self, target):
        writer = ArchiveWriter()
        writer.open(target)
        with pytest.raises(ArtifactCreateError):
            writer.open(target)

    def test_add_before_open(self):
        with pytest.raises(IngestionError):
            ArchiveWriter().add_bytes("a.py", "x = 1")


class TestArchiveWriterEntries:
    """条目写入测试"""

    def test_add_file_relative_to_root(self, source_root, target):
        writer = ArchiveWriter(root=source_root)
        writer.open(target)
        entry = writer.add_file("pkg/a.py")

        assert entry.path == "pkg/a.py"
        assert entry.content == b"A = 1\n"
        assert entry.mtime is not None
        assert "pkg/a.py" in writer

    def test_add_file_with_source(self, source_root, target):
        writer = ArchiveWriter()
        writer.open(target)
        writer.add_file("lib/a.py", source=source_root / "pkg" / "a.py")
        assert writer.get_entry("lib/a.py").content == b"A = 1\n"

    def test_re_adding_overwrites(self, target):
        writer = ArchiveWriter()
        writer.open(target)
        writer.add_bytes("a.py", "x = 1\n")
        writer.add_bytes("a.py", "x = 2\n")

        assert len(writer) == 1
        assert writer.get_entry("a.py").content == b"x = 2\n"

    def test_compression_decided_per_entry(self, source_root, target):
        reporter = MagicMock(spec=BuildReporter)
        writer = ArchiveWriter("gzip", root=source_root, reporter=reporter)
        writer.open(target)

        assert writer.add_file("pkg/a.py").compressed is True
        assert writer.add_file("pkg/b.png").compressed is False
        assert reporter.on_file_added.call_count == 2
        reporter.on_compressed.assert_called_once_with("pkg/a.py")

    def test_bootstrap_name_reserved(self, target):
        writer = ArchiveWriter()
        writer.open(target)
        writer.add_bytes("__main__.py", "print('project main')")
        assert "__main__.py" not in writer

    def test_missing_file_fails_build(self, source_root, target):
        writer = ArchiveWriter(root=source_root)
        writer.open(target)
        writer.add_file("pkg/a.py")

        with pytest.raises(IngestionError) as exc_info:
            writer.add_file("pkg/missing.py")

        assert exc_info.value.phase == "ingest"
        assert exc_info.value.path == str(source_root / "pkg" / "missing.py")
        assert writer.state is ArchiveState.FAILED
        assert len(writer) == 0
        assert temp_files(target) == []


class TestArchiveWriterCommit:
    """提交测试"""

    def _writer(self, source_root, target, compression="none"):
        writer = ArchiveWriter(compression, root=source_root)
        writer.open(target, alias="app.pyz")
        writer.add_file("pkg/a.py")
        writer.add_file("pkg/b.png")
        writer.set_bootstrap("pkg/a.py", search_paths=["vendor"])
        return writer

    def test_commit_without_bootstrap(self, target):
        writer = ArchiveWriter()
        writer.open(target)
        with pytest.raises(CommitError):
            writer.commit()

    def test_commit_before_open(self):
        with pytest.raises(CommitError):
            ArchiveWriter().commit()

    def test_commit_layout(self, source_root, target):
        writer = self._writer(source_root, target)
        assert writer.commit() == target

        assert writer.state is ArchiveState.COMMITTED
        assert target.read_bytes().startswith(b"#!/usr/bin/env python3\n")
        with zipfile.ZipFile(target) as zf:
            assert zf.namelist() == ["__main__.py", "pkg/a.py", "pkg/b.png"]
            assert zf.read("pkg/a.py") == b"A = 1\n"
            assert "archive://app.pyz/pkg/a.py" in zf.read("__main__.py").decode()
            assert all(info.compress_type == zipfile.ZIP_STORED for info in zf.infolist())
        assert temp_files(target) == []

    def test_commit_executable(self, source_root, target):
        self._writer(source_root, target).commit()
        mode = os.stat(target).st_mode
        assert mode & stat.S_IXUSR

    def test_commit_compressed_entries(self, source_root, target):
        self._writer(source_root, target, compression="gzip").commit()
        with zipfile.ZipFile(target) as zf:
            assert zf.getinfo("pkg/a.py").compress_type == zipfile.ZIP_DEFLATED
            assert zf.getinfo("pkg/b.png").compress_type == zipfile.ZIP_STORED
            assert zf.getinfo("__main__.py").compress_type == zipfile.ZIP_STORED

    def test_custom_interpreter(self, source_root, target):
        writer = ArchiveWriter(root=source_root)
        writer.open(target)
        writer.set_bootstrap("pkg/a.py", interpreter="python3.12")
        writer.commit()
        assert target.read_bytes().startswith(b"#!/usr/bin/env python3.12\n")

    def test_commit_failure_leaves_nothing(self, source_root, target, monkeypatch):
        writer = self._writer(source_root, target)

        def broken_replace(src, dst):
            raise OSError(28, "No space left on device")

        monkeypatch.setattr(os, "replace", broken_replace)
        with pytest.raises(CommitError) as exc_info:
            writer.commit()

        assert exc_info.value.phase == "commit"
        assert writer.state is ArchiveState.FAILED
        assert not target.exists()
        assert temp_files(target) == []

    def test_discard(self, source_root, target):
        writer = self._writer(source_root, target)
        writer.discard()
        assert writer.state is ArchiveState.FAILED
        assert temp_files(target) == []

    def test_discard_after_commit(self, source_root, target):
        writer = self._writer(source_root, target)
        writer.commit()
        writer.discard()
        assert writer.state is ArchiveState.COMMITTED
        assert target.exists()
