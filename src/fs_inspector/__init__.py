"""
fs-inspector - read-only inspection of a sandboxed directory tree.

This package exposes three operations over a single base directory:
an ignore-aware structure listing, size-limited file reads and
multi-query grep search with context lines.
"""

__version__ = "0.1.0"

from fs_inspector.filesystem import (
    FileContents,
    FileNode,
    FileSystemAccessConfig,
    FileSystemError,
    FileSystemTools,
    GrepLine,
    GrepMatchResult,
    GrepQuery,
    GrepResult,
    IgnoreFilter,
    PathGuard,
    RestrictedFileReader,
    SearchEngine,
    TreeBuilder,
)

from fs_inspector.settings import ServerSettings

__all__ = [
    # Version
    "__version__",
    # Config
    "FileSystemAccessConfig",
    "ServerSettings",
    # Models
    "FileNode",
    "FileContents",
    "GrepQuery",
    "GrepLine",
    "GrepMatchResult",
    "GrepResult",
    # Components
    "PathGuard",
    "IgnoreFilter",
    "TreeBuilder",
    "RestrictedFileReader",
    "SearchEngine",
    "FileSystemTools",
    # Errors
    "FileSystemError",
]
