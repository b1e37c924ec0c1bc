"""
Ignore-aware structure tree of the base directory.
"""

import logging
import os
import stat
from pathlib import Path
from typing import Optional, Union

from fs_inspector.filesystem.config import FileSystemAccessConfig
from fs_inspector.filesystem.exceptions import FileSystemError, PathNotAccessibleError
from fs_inspector.filesystem.guard import PathGuard
from fs_inspector.filesystem.ignore import IgnoreFilter
from fs_inspector.filesystem.models import FileNode, NodeType

logger = logging.getLogger(__name__)


class TreeBuilder:
    """
    Builds a FileNode tree for the base directory.

    Entries the ignore filter rejects are left out. Entries that fail
    below the starting path (unreadable directories, broken symlinks,
    files removed mid-walk) are skipped rather than failing the whole
    tree; only a failure on the starting path itself is raised.

    Usage:
        config = FileSystemAccessConfig(base_path=Path("/srv/repo"))
        root = TreeBuilder(config).build()
    """

    def __init__(
        self,
        config: FileSystemAccessConfig,
        ignore_filter: Optional[IgnoreFilter] = None,
    ):
        self.config = config
        self.ignore_filter = ignore_filter or IgnoreFilter.from_config(config)
        self._guard = PathGuard(config.base_path)

    def build(self, path: Optional[Union[str, Path]] = None) -> Optional[FileNode]:
        """
        Build the tree rooted at ``path`` (the base directory by default).

        Returns:
            The root node, or None if the ignore filter skips the path

        Raises:
            PathNotAccessibleError: If the starting path cannot be stat'ed
                or listed
        """
        root_path = Path(path) if path is not None else self.config.base_path
        return self._build(root_path, set())

    def _build(self, path: Path, ancestors: set) -> Optional[FileNode]:
        if self.ignore_filter.should_ignore(path):
            return None

        try:
            st = os.stat(path)
        except OSError as e:
            raise PathNotAccessibleError(str(path), f"Cannot stat path ({e.strerror})")

        rel_path = self._guard.relative_to_base(path)
        if rel_path is None:
            raise PathNotAccessibleError(str(path), "Path outside of allowed directory")

        if not stat.S_ISDIR(st.st_mode):
            return FileNode(
                name=path.name,
                type=NodeType.FILE,
                path=rel_path,
                size=st.st_size,
            )

        key = (st.st_dev, st.st_ino)
        if key in ancestors:
            raise PathNotAccessibleError(str(path), "Directory cycle")

        try:
            with os.scandir(path) as it:
                entries = list(it)
        except OSError as e:
            raise PathNotAccessibleError(str(path), f"Cannot list directory ({e.strerror})")

        children = []
        ancestors.add(key)
        try:
            for entry in entries:
                child_path = path / entry.name
                if (
                    not self.config.follow_symlinks
                    and entry.is_symlink()
                    and not self._guard.is_within_base(child_path)
                ):
                    logger.debug(f"Skipping symlink leaving the base directory: {child_path}")
                    continue

                try:
                    child = self._build(child_path, ancestors)
                except (FileSystemError, OSError) as e:
                    logger.debug(f"Skipping {child_path}: {e}")
                    continue

                if child is not None:
                    children.append(child)
        finally:
            ancestors.discard(key)

        return FileNode(
            name=path.name,
            type=NodeType.DIRECTORY,
            path=rel_path,
            children=children,
        )


def count_nodes(node: Optional[FileNode]) -> tuple[int, int]:
    """Count (files, directories) in a tree."""
    if node is None:
        return 0, 0
    files = directories = 0
    for item in node.iter_nodes():
        if item.is_directory:
            directories += 1
        else:
            files += 1
    return files, directories
