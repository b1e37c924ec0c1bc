"""
Data models for filesystem inspection results.

This module defines Pydantic models for the structure tree, search
queries and search results returned by the inspection operations.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, model_validator


class NodeType(str, Enum):
    """Kind of entry in the structure tree."""

    FILE = "file"
    DIRECTORY = "directory"


class FileNode(BaseModel):
    """A file or directory in the structure tree."""

    name: str = Field(description="Base name of the entry")
    type: NodeType = Field(description="Entry kind")
    path: str = Field(description="Slash-separated path relative to the base ('' for the root)")
    size: Optional[int] = Field(default=None, ge=0, description="Size in bytes (files only)")
    children: Optional[list["FileNode"]] = Field(
        default=None, description="Entries in directory-listing order (directories only)"
    )

    @model_validator(mode="after")
    def check_shape(self) -> "FileNode":
        if self.type == NodeType.FILE:
            if self.children is not None:
                raise ValueError("file nodes cannot have children")
        else:
            if self.size is not None:
                raise ValueError("directory nodes cannot have a size")
            if self.children is None:
                self.children = []
        return self

    @property
    def is_directory(self) -> bool:
        return self.type == NodeType.DIRECTORY

    def iter_nodes(self):
        """Yield this node and all descendants, depth first."""
        yield self
        for child in self.children or []:
            yield from child.iter_nodes()

    def find(self, path: str) -> Optional["FileNode"]:
        """Return the descendant with the given relative path, if listed."""
        for node in self.iter_nodes():
            if node.path == path:
                return node
        return None

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


class GrepQuery(BaseModel):
    """A single search query."""

    model_config = {"extra": "ignore"}

    pattern: str = Field(description="Pattern passed verbatim to the search tool")
    file_pattern: Optional[str] = Field(
        default=None, description="Glob restricting which files are searched (e.g. '*.py')"
    )
    ignore_case: Optional[bool] = Field(default=None, description="Case-insensitive search")


class GrepLine(BaseModel):
    """A line in a search result."""

    line_number: int = Field(ge=1, description="1-based line number")
    content: str = Field(description="Line text without the trailing newline")
    is_match: bool = Field(description="True for matching lines, False for context lines")


class GrepMatchResult(BaseModel):
    """All lines reported for one file."""

    file_path: str = Field(description="File path relative to the base")
    lines: list[GrepLine] = Field(default_factory=list)

    @property
    def match_count(self) -> int:
        return sum(1 for line in self.lines if line.is_match)


class GrepResult(BaseModel):
    """Result of one query, in the same position as the query."""

    query: str = Field(description="The query pattern, echoed")
    matches: list[GrepMatchResult] = Field(default_factory=list)
    error: Optional[str] = Field(default=None, description="Why the query failed, if it did")

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


class StructureResponse(BaseModel):
    """Result of the read-structure operation."""

    base_path: str
    structure: Optional[FileNode] = None
    note: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "base_path": self.base_path,
            "structure": self.structure.to_dict() if self.structure else None,
            "note": self.note,
        }


class FileContents(BaseModel):
    """Result of the read-contents operation."""

    file_path: str
    size_bytes: int
    content: str

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class SearchResponse(BaseModel):
    """Result of the search operation."""

    base_path: str
    context_lines: int
    results: list[GrepResult] = Field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "base_path": self.base_path,
            "context_lines": self.context_lines,
            "results": [result.to_dict() for result in self.results],
        }
