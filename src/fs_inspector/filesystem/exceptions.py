"""
Exceptions for filesystem inspection operations.
"""


class FileSystemError(Exception):
    """Base exception for filesystem operations."""

    pass


class InvalidPathError(FileSystemError):
    """Raised when a path is invalid or malformed."""

    def __init__(self, path: str, reason: str = "Invalid path"):
        self.path = path
        self.reason = reason
        super().__init__(f"{reason}: {path}")


class PathTraversalError(InvalidPathError):
    """Raised when a path would escape the base directory."""

    def __init__(self, path: str, reason: str = "Path traversal not allowed"):
        super().__init__(path, reason)


class PathNotFoundError(FileSystemError):
    """Raised when a path does not exist below the base directory."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"File not found: {path}")


class PathNotAccessibleError(FileSystemError):
    """Raised when a path cannot be stat'ed or listed."""

    def __init__(self, path: str, reason: str = "Path not accessible"):
        self.path = path
        self.reason = reason
        super().__init__(f"{reason}: {path}")


class FileSizeLimitExceededError(FileSystemError):
    """Raised when a file exceeds the size limit."""

    def __init__(self, path: str, size: int, limit: int):
        self.path = path
        self.size = size
        self.limit = limit
        super().__init__(
            f"File too large ({size / 1024 / 1024:.2f} MB > "
            f"{limit / 1024 / 1024:.2f} MB, {size} bytes > {limit} bytes): {path}"
        )


class FileReadError(FileSystemError):
    """Raised when a file exists but cannot be read."""

    def __init__(self, path: str, reason: str = "Failed to read file"):
        self.path = path
        self.reason = reason
        super().__init__(f"{reason}: {path}")


class SearchRequestError(FileSystemError):
    """Raised when a search request is rejected before running any query."""

    pass


class NoQueriesError(SearchRequestError):
    """Raised when a search call carries no queries."""

    def __init__(self):
        super().__init__("At least one search query is required")


class TooManyQueriesError(SearchRequestError):
    """Raised when a search call carries more queries than allowed."""

    def __init__(self, count: int, limit: int):
        self.count = count
        self.limit = limit
        super().__init__(f"Maximum {limit} search queries allowed (got {count})")


class InvalidQueriesEncodingError(SearchRequestError):
    """Raised when the query list cannot be decoded."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Invalid queries JSON: {reason}")


class InvalidContextLinesError(SearchRequestError):
    """Raised when the context window is negative or not an integer."""

    def __init__(self, value):
        self.value = value
        super().__init__(f"context_lines must be a non-negative integer (got {value!r})")


class SearchError(FileSystemError):
    """Raised when a search operation fails."""

    pass
