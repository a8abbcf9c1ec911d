"""
压缩策略单元测试

测试压缩模式解析、按文件的压缩判断和 zip 压缩方法映射。
"""

import zipfile

import pytest

from pyzbuilder.build.compressor import COMPRESSIBLE_EXTENSIONS, CompressionPolicy, should_compress, zip_method
from pyzbuilder.config.schema import CompressionMode


class TestCompressionMode:
    """压缩模式解析测试"""

    @pytest.mark.parametrize("value,expected", [
        ("none", CompressionMode.NONE),
        ("no", CompressionMode.NONE),
        ("gzip", CompressionMode.GZIP),
        ("GZIP", CompressionMode.GZIP),
        ("Gzip", CompressionMode.GZIP),
        (" bzip2 ", CompressionMode.BZIP2),
        ("zstd", CompressionMode.NONE),
        (None, CompressionMode.NONE),
        (CompressionMode.GZIP, CompressionMode.GZIP),
    ])
    def test_parse(self, value, expected):
        assert CompressionMode.parse(value) is expected


class TestShouldCompress:
    """按文件压缩判断测试"""

    @pytest.mark.parametrize("path", ["a.json", "pkg/mod.py", "a.png", "README", "lib.so"])
    def test_none_never_compresses(self, path):
        assert should_compress(CompressionMode.NONE, path) is False
        assert should_compress("none", path) is False

    def test_gzip_whitelist(self):
        assert should_compress(CompressionMode.GZIP, "a.json") is True
        assert should_compress(CompressionMode.GZIP, "a.png") is False

    def test_bzip2_whitelist(self):
        assert should_compress("bzip2", "pkg/module.py") is True
        assert should_compress("bzip2", "pkg/_speedups.so") is False

    def test_extension_case_sensitive(self):
        assert should_compress("gzip", "A.JSON") is False

    def test_files_without_extension(self):
        assert should_compress("gzip", "bin/app") is False

    def test_whitelist_contains_sources(self):
        assert ".py" in COMPRESSIBLE_EXTENSIONS
        assert ".toml" in COMPRESSIBLE_EXTENSIONS


class TestCompressionPolicy:
    """压缩策略测试"""

    def test_zip_methods(self):
        assert zip_method("none") == zipfile.ZIP_STORED
        assert zip_method("gzip") == zipfile.ZIP_DEFLATED
        assert zip_method("bzip2") == zipfile.ZIP_BZIP2

    def test_policy_disabled(self):
        policy = CompressionPolicy("none")
        assert policy.enabled is False
        assert policy.method_for("a.py") == zipfile.ZIP_STORED

    def test_policy_method_for(self):
        policy = CompressionPolicy(CompressionMode.GZIP)
        assert policy.enabled is True
        assert policy.method_for("a.py") == zipfile.ZIP_DEFLATED
        assert policy.method_for("a.png") == zipfile.ZIP_STORED
