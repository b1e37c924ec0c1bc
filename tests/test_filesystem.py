"""
Tests for path confinement, configuration and file reading.
"""

import os
import tempfile
from pathlib import Path

import pytest
from pydantic import ValidationError

from fs_inspector.filesystem import (
    FileReadError,
    FileSizeLimitExceededError,
    FileSystemAccessConfig,
    InvalidPathError,
    PathGuard,
    PathNotFoundError,
    PathTraversalError,
    RestrictedFileReader,
)


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir).resolve()


@pytest.fixture
def outside_dir():
    """A second directory outside the sandbox."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir).resolve()


@pytest.fixture
def config(temp_dir):
    """Create a test filesystem configuration."""
    return FileSystemAccessConfig(base_path=temp_dir, max_file_size_bytes=1000)


@pytest.fixture
def reader(config):
    """Create a RestrictedFileReader instance."""
    return RestrictedFileReader(config)


@pytest.fixture
def guard(temp_dir):
    return PathGuard(temp_dir)


class TestFileSystemAccessConfig:
    """Test FileSystemAccessConfig."""

    def test_default_config(self, temp_dir):
        """Test default configuration."""
        config = FileSystemAccessConfig(base_path=temp_dir)
        assert config.max_file_size_bytes == 10 * 1024 * 1024
        assert config.default_context_lines == 5
        assert config.max_queries == 20
        assert config.search_backend == "grep"
        assert config.ignore_file_name == ".gitignore"
        assert config.vcs_directory == ".git"
        assert config.follow_symlinks is False

    def test_base_path_is_resolved(self, temp_dir):
        """Relative segments in the base path are resolved away."""
        (temp_dir / "sub").mkdir()
        config = FileSystemAccessConfig(base_path=temp_dir / "sub" / "..")
        assert config.base_path == temp_dir
        assert config.base_path.is_absolute()

    def test_missing_base_path_rejected(self, temp_dir):
        """The base directory must exist."""
        with pytest.raises(ValidationError):
            FileSystemAccessConfig(base_path=temp_dir / "missing")

    def test_file_base_path_rejected(self, temp_dir):
        """The base path must be a directory."""
        target = temp_dir / "file.txt"
        target.write_text("x")
        with pytest.raises(ValidationError):
            FileSystemAccessConfig(base_path=target)

    def test_config_is_immutable(self, config):
        """Configs are frozen once built."""
        with pytest.raises(ValidationError):
            config.max_file_size_bytes = 5

    def test_negative_size_rejected(self, temp_dir):
        with pytest.raises(ValidationError):
            FileSystemAccessConfig(base_path=temp_dir, max_file_size_bytes=-1)

    def test_vcs_directory_must_be_plain_name(self, temp_dir):
        with pytest.raises(ValidationError):
            FileSystemAccessConfig(base_path=temp_dir, vcs_directory="a/.git")


class TestPathGuard:
    """Test PathGuard resolution."""

    def test_resolve_simple(self, temp_dir, guard):
        assert guard.resolve("src/main.py") == temp_dir / "src" / "main.py"

    def test_resolve_base(self, temp_dir, guard):
        assert guard.resolve("") == temp_dir
        assert guard.resolve(".") == temp_dir

    def test_resolve_normalizes(self, temp_dir, guard):
        assert guard.resolve("a/./b/../c.txt") == temp_dir / "a" / "c.txt"

    def test_leading_separator_stays_inside(self, temp_dir, guard):
        """An absolute-looking path is taken relative to the base."""
        assert guard.resolve("/etc/passwd") == temp_dir / "etc" / "passwd"

    def test_dots_inside_a_name_are_allowed(self, temp_dir, guard):
        assert guard.resolve("foo..bar") == temp_dir / "foo..bar"

    @pytest.mark.parametrize(
        "path",
        ["..", "../etc/passwd", "a/../../x", "a/b/../../../c", "./../x"],
    )
    def test_traversal_rejected(self, guard, path):
        with pytest.raises(PathTraversalError):
            guard.resolve(path)

    def test_traversal_is_invalid_path(self, guard):
        with pytest.raises(InvalidPathError):
            guard.resolve("../x")

    def test_nul_byte_rejected(self, guard):
        with pytest.raises(InvalidPathError) as exc_info:
            guard.resolve("src/a\0.py")
        assert not isinstance(exc_info.value, PathTraversalError)

    def test_is_within_base_with_nul_byte(self, temp_dir, guard):
        assert guard.is_within_base(f"{temp_dir}/a\0b") is False

    def test_relative_to_base(self, temp_dir, guard):
        assert guard.relative_to_base(temp_dir) == ""
        assert guard.relative_to_base(temp_dir / "a" / "b.txt") == "a/b.txt"
        assert guard.relative_to_base(temp_dir.parent / "elsewhere") is None

    def test_is_within_base(self, temp_dir, outside_dir, guard):
        inside = temp_dir / "inside.txt"
        inside.write_text("x")
        link = temp_dir / "escape"
        os.symlink(outside_dir, link)

        assert guard.is_within_base(inside) is True
        assert guard.is_within_base(link) is False


class TestRestrictedFileReader:
    """Test RestrictedFileReader."""

    def test_read_file_success(self, temp_dir, reader):
        """Test reading a valid file."""
        content = "print('hello world')"
        (temp_dir / "test.py").write_text(content)

        result = reader.read_file("test.py")
        assert result.content == content
        assert result.file_path == "test.py"
        assert result.size_bytes == len(content)

    def test_size_counts_bytes(self, temp_dir, reader):
        """size_bytes is the byte length, not the character count."""
        data = "héllo".encode("utf-8")
        (temp_dir / "utf8.txt").write_bytes(data)

        result = reader.read_file("utf8.txt")
        assert result.size_bytes == len(data) == 6
        assert result.content == "héllo"

    def test_read_nested_file(self, temp_dir, reader):
        (temp_dir / "a" / "b").mkdir(parents=True)
        (temp_dir / "a" / "b" / "c.txt").write_text("nested")

        assert reader.read_file("a/b/c.txt").content == "nested"

    def test_file_at_limit_is_read(self, temp_dir, reader):
        (temp_dir / "limit.txt").write_text("x" * 1000)

        result = reader.read_file("limit.txt")
        assert result.size_bytes == 1000

    def test_read_file_size_limit(self, temp_dir, reader):
        """Test that large files are rejected."""
        (temp_dir / "large.txt").write_text("x" * 1001)

        with pytest.raises(FileSizeLimitExceededError) as exc_info:
            reader.read_file("large.txt")
        assert exc_info.value.size == 1001
        assert exc_info.value.limit == 1000

    def test_read_file_not_found(self, reader):
        with pytest.raises(PathNotFoundError):
            reader.read_file("missing.py")

    def test_read_file_traversal(self, reader):
        with pytest.raises(PathTraversalError):
            reader.read_file("../etc/passwd")

    def test_read_directory_fails(self, temp_dir, reader):
        (temp_dir / "folder").mkdir()

        with pytest.raises(FileReadError):
            reader.read_file("folder")

    def test_invalid_utf8_is_replaced(self, temp_dir, reader):
        (temp_dir / "bin.dat").write_bytes(b"ok\xff\xfe")

        result = reader.read_file("bin.dat")
        assert result.size_bytes == 4
        assert result.content.startswith("ok")
        assert "�" in result.content

    def test_symlink_outside_base_denied(self, temp_dir, outside_dir, reader):
        (outside_dir / "secret.txt").write_text("secret")
        os.symlink(outside_dir / "secret.txt", temp_dir / "link.txt")

        with pytest.raises(PathTraversalError):
            reader.read_file("link.txt")

    def test_symlink_outside_base_allowed_when_following(self, temp_dir, outside_dir):
        (outside_dir / "shared.txt").write_text("shared")
        os.symlink(outside_dir / "shared.txt", temp_dir / "link.txt")
        config = FileSystemAccessConfig(base_path=temp_dir, follow_symlinks=True)

        assert RestrictedFileReader(config).read_file("link.txt").content == "shared"

    def test_symlink_inside_base_allowed(self, temp_dir, reader):
        (temp_dir / "real.txt").write_text("real")
        os.symlink(temp_dir / "real.txt", temp_dir / "alias.txt")

        assert reader.read_file("alias.txt").content == "real"

    def test_nul_byte_in_path_rejected(self, reader):
        with pytest.raises(InvalidPathError) as exc_info:
            reader.read_file("a\0b")
        assert exc_info.value.reason == "Path contains a NUL byte"
