"""
Sandboxed, read-only filesystem inspection.

This module provides confined access to a single base directory:
an ignore-aware structure tree, size-limited file reads and
multi-query pattern search with context lines.
"""

from fs_inspector.filesystem.config import FileSystemAccessConfig
from fs_inspector.filesystem.exceptions import (
    FileReadError,
    FileSizeLimitExceededError,
    FileSystemError,
    InvalidContextLinesError,
    InvalidPathError,
    InvalidQueriesEncodingError,
    NoQueriesError,
    PathNotAccessibleError,
    PathNotFoundError,
    PathTraversalError,
    SearchError,
    SearchRequestError,
    TooManyQueriesError,
)
from fs_inspector.filesystem.guard import PathGuard
from fs_inspector.filesystem.ignore import IgnoreFilter
from fs_inspector.filesystem.models import (
    FileContents,
    FileNode,
    GrepLine,
    GrepMatchResult,
    GrepQuery,
    GrepResult,
    NodeType,
    SearchResponse,
    StructureResponse,
)
from fs_inspector.filesystem.parsing import LineRecord, group_records, parse_grep_output
from fs_inspector.filesystem.reader import RestrictedFileReader
from fs_inspector.filesystem.search import (
    GrepSearchBackend,
    PythonSearchBackend,
    SearchBackend,
    SearchEngine,
    decode_queries,
)
from fs_inspector.filesystem.tools import FileSystemTools
from fs_inspector.filesystem.tree import TreeBuilder

__all__ = [
    # Config
    "FileSystemAccessConfig",
    # Exceptions
    "FileSystemError",
    "InvalidPathError",
    "PathTraversalError",
    "PathNotFoundError",
    "PathNotAccessibleError",
    "FileSizeLimitExceededError",
    "FileReadError",
    "SearchRequestError",
    "NoQueriesError",
    "TooManyQueriesError",
    "InvalidQueriesEncodingError",
    "InvalidContextLinesError",
    "SearchError",
    # Models
    "NodeType",
    "FileNode",
    "GrepQuery",
    "GrepLine",
    "GrepMatchResult",
    "GrepResult",
    "StructureResponse",
    "FileContents",
    "SearchResponse",
    # Components
    "PathGuard",
    "IgnoreFilter",
    "TreeBuilder",
    "RestrictedFileReader",
    "LineRecord",
    "parse_grep_output",
    "group_records",
    "SearchBackend",
    "GrepSearchBackend",
    "PythonSearchBackend",
    "SearchEngine",
    "decode_queries",
    "FileSystemTools",
]
