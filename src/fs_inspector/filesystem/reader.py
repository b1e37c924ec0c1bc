"""
Restricted file reader for the read-contents operation.
"""

import logging
import os
import stat

from fs_inspector.filesystem.config import FileSystemAccessConfig
from fs_inspector.filesystem.exceptions import (
    FileReadError,
    FileSizeLimitExceededError,
    PathNotFoundError,
    PathTraversalError,
)
from fs_inspector.filesystem.guard import PathGuard
from fs_inspector.filesystem.models import FileContents

logger = logging.getLogger(__name__)


class RestrictedFileReader:
    """
    Secure file reader confined to the base directory with a size limit.

    Usage:
        config = FileSystemAccessConfig(
            base_path=Path("/srv/repo"),
            max_file_size_bytes=1_000_000,
        )
        reader = RestrictedFileReader(config)

        try:
            contents = reader.read_file("src/main.py")
        except FileSizeLimitExceededError as e:
            print(f"Too large: {e.size} > {e.limit}")
    """

    def __init__(self, config: FileSystemAccessConfig):
        """
        Initialize the file reader.

        Args:
            config: Filesystem access configuration
        """
        self.config = config
        self.guard = PathGuard(config.base_path)

    def read_file(self, file_path: str, encoding: str = "utf-8") -> FileContents:
        """
        Read a file below the base directory.

        Args:
            file_path: Path relative to the base directory
            encoding: Text encoding; undecodable bytes are replaced

        Returns:
            FileContents with the echoed path, byte size and decoded text

        Raises:
            PathTraversalError: If the path escapes the base directory
            PathNotFoundError: If the file doesn't exist
            FileSizeLimitExceededError: If the file is larger than allowed
            FileReadError: If the path is not a regular file or reading fails
        """
        full_path = self.guard.resolve(file_path)

        if not self.config.follow_symlinks and not self.guard.is_within_base(full_path):
            logger.warning(f"Access denied to {full_path}: symlink leaves the base directory")
            raise PathTraversalError(file_path, "Path outside of allowed directory")

        try:
            st = os.stat(full_path)
        except FileNotFoundError:
            raise PathNotFoundError(file_path)
        except OSError as e:
            raise FileReadError(file_path, f"Failed to stat file ({e.strerror})")

        if not stat.S_ISREG(st.st_mode):
            raise FileReadError(file_path, "Path is not a regular file")

        limit = self.config.max_file_size_bytes
        if st.st_size > limit:
            logger.warning(f"File too large: {full_path} ({st.st_size} bytes > {limit} bytes)")
            raise FileSizeLimitExceededError(file_path, st.st_size, limit)

        try:
            with open(full_path, "rb") as f:
                # One byte past the limit catches files that grew after the stat
                data = f.read(limit + 1)
        except OSError as e:
            logger.error(f"Failed to read file {full_path}: {e}")
            raise FileReadError(file_path, f"Failed to read file ({e.strerror})")

        if len(data) > limit:
            raise FileSizeLimitExceededError(file_path, len(data), limit)

        logger.debug(f"Successfully read file: {full_path} ({len(data)} bytes)")
        return FileContents(
            file_path=file_path,
            size_bytes=len(data),
            content=data.decode(encoding, errors="replace"),
        )
