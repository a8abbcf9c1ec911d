"""
文件选择器单元测试

测试目录遍历、默认过滤规则、排除列表和 glob 排除模式。
"""

import os
from pathlib import PurePosixPath

import pytest

from pyzbuilder.build.collector import (
    DEFAULT_FILTERS,
    ExcludeListFilter,
    FileSelector,
    GlobPatternFilter,
    in_test_directory,
    in_vcs_directory,
    is_backup_file,
    is_hidden,
    is_manifest_file,
    is_test_runner,
)
from pyzbuilder.errors import InvalidInputError

from conftest import write_files


@pytest.fixture
def tree(tmp_path):
    """包含各种需要过滤的文件的目录树"""
    root = tmp_path / "root"
    write_files(root, {
        "lib/pkg/__init__.py": "",
        "lib/pkg/core.py": "",
        "lib/pkg/data.bin": "",
        "lib/pkg/.hidden": "",
        "lib/.cache/state.py": "",
        "lib/.git/config": "",
        "lib/CVS/Entries": "",
        "lib/pkg/core.py~": "",
        "lib/pkg/notes.swp": "",
        "lib/pkg/old.back": "",
        "lib/pkg/pyproject.toml": "",
        "lib/pkg/pylock.toml": "",
        "lib/pkg/pytest.ini": "",
        "lib/pkg/tests/test_core.py": "",
        "lib/pkg/Tests/case.py": "",
        "lib/pkg/test/case.py": "",
        "lib/pkg/testing/helpers.py": "",
        "lib/docs/index.md": "",
        "lib/vendored/dev/tool.py": "",
        "lib/vendored/runtime/lib.py": "",
    })
    return root


class TestFilters:
    """单条过滤规则测试"""

    def test_vcs_directory(self):
        assert in_vcs_directory(PurePosixPath(".git/config"))
        assert in_vcs_directory(PurePosixPath("a/.svn/entries"))
        assert not in_vcs_directory(PurePosixPath("a/git/config"))

    def test_hidden(self):
        assert is_hidden(PurePosixPath(".env"))
        assert is_hidden(PurePosixPath(".cache/x.py"))
        assert not is_hidden(PurePosixPath("a/b.py"))

    def test_manifest_names(self):
        assert is_manifest_file(PurePosixPath("pyproject.toml"))
        assert is_manifest_file(PurePosixPath("sub/pylock.toml"))
        assert not is_manifest_file(PurePosixPath("myproject.toml"))

    def test_backup_names(self):
        assert is_backup_file(PurePosixPath("a.py~"))
        assert is_backup_file(PurePosixPath("a.back"))
        assert is_backup_file(PurePosixPath("a.swp"))
        assert not is_backup_file(PurePosixPath("a.backup"))

    def test_test_runner(self):
        assert is_test_runner(PurePosixPath("pytest.ini"))
        assert is_test_runner(PurePosixPath("bin/py.test"))
        assert not is_test_runner(PurePosixPath("mytest.py"))

    def test_test_directory_exact_segment(self):
        assert in_test_directory(PurePosixPath("pkg/tests/a.py"))
        assert in_test_directory(PurePosixPath("Tests/a.py"))
        assert not in_test_directory(PurePosixPath("pkg/testing/a.py"))
        # 文件本身叫 test 不算
        assert not in_test_directory(PurePosixPath("pkg/test"))

    def test_exclude_list_filter(self):
        exclude = ExcludeListFilter(["vendored/dev", "one.py"])
        assert exclude(PurePosixPath("vendored/dev/tool.py"))
        assert exclude(PurePosixPath("one.py"))
        assert not exclude(PurePosixPath("vendored/devtools/a.py"))

    @pytest.mark.parametrize("pattern,path,expected", [
        ("*.bin", "pkg/data.bin", True),
        ("__pycache__/", "pkg/__pycache__/a.pyc", True),
        ("pkg/*.bin", "lib/pkg/data.bin", True),
        ("pkg/*.bin", "lib/other/data.bin", False),
        ("*.BIN", "pkg/data.bin", False),
    ])
    def test_glob_pattern_filter(self, pattern, path, expected):
        assert GlobPatternFilter([pattern])(PurePosixPath(path)) is expected


class TestFileSelector:
    """FileSelector 测试"""

    def test_default_filters(self, tree):
        selector = FileSelector()
        files = selector.select("lib", root=tree)

        assert files == [
            "lib/pkg/__init__.py",
            "lib/pkg/core.py",
            "lib/pkg/data.bin",
            "lib/pkg/testing/helpers.py",
            "lib/vendored/dev/tool.py",
            "lib/vendored/runtime/lib.py",
        ]

    def test_relative_exclude(self, tree):
        files = FileSelector().select("lib", ["vendored/dev/"], root=tree)
        assert "lib/vendored/dev/tool.py" not in files
        assert "lib/vendored/runtime/lib.py" in files

    def test_absolute_exclude(self, tree):
        excludes = [str((tree / "lib" / "vendored" / "dev").resolve())]
        files = FileSelector().select("lib", excludes, root=tree)
        assert not any(f.startswith("lib/vendored/dev/") for f in files)

    def test_absolute_directory(self, tree):
        files = FileSelector().select(tree / "lib" / "vendored")
        assert files == [
            f"{(tree / 'lib' / 'vendored').as_posix()}/dev/tool.py",
            f"{(tree / 'lib' / 'vendored').as_posix()}/runtime/lib.py",
        ]

    def test_select_relative(self, tree):
        files = FileSelector().select_relative("lib/vendored", root=tree)
        assert files == ["dev/tool.py", "runtime/lib.py"]

    def test_exclude_patterns(self, tree):
        selector = FileSelector(exclude_patterns=["*.bin"])
        files = selector.select("lib", root=tree)
        assert "lib/pkg/data.bin" not in files
        assert "lib/pkg/core.py" in files

    def test_custom_filters(self, tree):
        selector = FileSelector(filters=[])
        files = selector.select("lib", root=tree)
        assert "lib/pkg/.hidden" in files

        selector.add_filter(is_hidden)
        assert "lib/pkg/.hidden" not in selector.select("lib", root=tree)

    def test_idempotent(self, tree):
        selector = FileSelector()
        assert selector.select("lib", root=tree) == selector.select("lib", root=tree)

    def test_never_returns_filtered_paths(self, tree):
        excludes = ["vendored"]
        files = FileSelector().select("lib", excludes, root=tree)
        for file in files:
            relative = PurePosixPath(file).relative_to("lib")
            assert not in_vcs_directory(relative)
            assert not is_hidden(relative)
            assert not relative.as_posix().startswith("vendored/")

    def test_does_not_change_cwd(self, tree):
        cwd = os.getcwd()
        FileSelector().select("lib", root=tree)
        assert os.getcwd() == cwd

    def test_missing_directory(self, tree):
        with pytest.raises(InvalidInputError) as exc_info:
            FileSelector().select("missing", root=tree)
        assert exc_info.value.phase == "select"

    def test_file_is_not_directory(self, tree):
        with pytest.raises(InvalidInputError):
            FileSelector().select("lib/pkg/core.py", root=tree)

    def test_default_filter_count(self):
        assert len(DEFAULT_FILTERS) == 7

    @pytest.mark.skipif(not hasattr(os, "symlink"), reason="需要符号链接支持")
    def test_symlinked_directory_resolved(self, tree, tmp_path):
        link = tmp_path / "link"
        link.symlink_to(tree / "lib" / "vendored", target_is_directory=True)
        excludes = [str((tree / "lib" / "vendored" / "dev").resolve())]

        files = FileSelector().select(link, excludes)
        assert files == [f"{link.as_posix()}/runtime/lib.py"]
