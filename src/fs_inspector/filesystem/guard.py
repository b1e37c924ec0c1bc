"""
Confinement of caller-supplied paths to the base directory.
"""

import logging
import os
from pathlib import Path
from typing import Optional, Union

from fs_inspector.filesystem.exceptions import InvalidPathError, PathTraversalError

logger = logging.getLogger(__name__)

PARENT_SEGMENT = ".."
NUL = "\0"


def _has_parent_segment(path: str) -> bool:
    return PARENT_SEGMENT in path.replace(os.sep, "/").split("/")


class PathGuard:
    """
    Resolves relative paths against a fixed base directory.

    Resolution is purely syntactic: the filesystem is never touched, so a
    path is accepted or rejected the same way whether it exists or not.
    Symlink confinement is checked separately with ``is_within_base``.

    Usage:
        guard = PathGuard(Path("/srv/repo"))
        guard.resolve("src/main.py")   # Path("/srv/repo/src/main.py")
        guard.resolve("../etc/passwd")  # raises PathTraversalError
    """

    def __init__(self, base_path: Union[str, Path]):
        self.base_path = Path(base_path)
        self._base = os.path.normpath(str(self.base_path))

    def resolve(self, relative_path: str) -> Path:
        """
        Resolve a caller-supplied path to an absolute path inside the base.

        Args:
            relative_path: Path relative to the base directory. A leading
                separator is treated as relative to the base, not the root.

        Returns:
            Absolute path below (or equal to) the base directory

        Raises:
            InvalidPathError: If the path contains a NUL byte
            PathTraversalError: If the path would escape the base directory
        """
        if NUL in relative_path:
            logger.warning(f"Rejected path with embedded NUL byte: {relative_path!r}")
            raise InvalidPathError(relative_path, "Path contains a NUL byte")

        clean =os.path.normpath(relative_path) if relative_path else "."

        if _has_parent_segment(clean):
            logger.warning(f"Rejected path traversal attempt: {relative_path!r}")
            raise PathTraversalError(relative_path)

        full_path = os.path.normpath(os.path.join(self._base, clean.lstrip("/" + os.sep)))

        try:
            rel_path = os.path.relpath(full_path, self._base)
        except ValueError:
            rel_path = None
        if rel_path is None or rel_path.split(os.sep)[0] == PARENT_SEGMENT:
            logger.warning(f"Rejected path outside base directory: {relative_path!r}")
            raise PathTraversalError(relative_path, "Path outside of allowed directory")

        return Path(full_path)

    def relative_to_base(self, path: Union[str, Path]) -> Optional[str]:
        """
        Express an absolute path relative to the base.

        Returns:
            Slash-separated relative path ('' for the base itself), or None
            if the path cannot be expressed without leaving the base
        """
        try:
            rel_path = os.path.relpath(os.path.normpath(str(path)), self._base)
        except ValueError:
            return None
        if rel_path == ".":
            return ""
        if rel_path.split(os.sep)[0] == PARENT_SEGMENT:
            return None
        return rel_path.replace(os.sep, "/")

    def is_within_base(self, path: Union[str, Path]) -> bool:
        """Check that a path still lies inside the base once symlinks are resolved."""
        try:
            real_base = os.path.realpath(self._base)
            real_path = os.path.realpath(str(path))
            return os.path.commonpath([real_base, real_path]) == real_base
        except ValueError:
            return False
