"""
Configuration for sandboxed filesystem inspection.
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

DEFAULT_MAX_FILE_SIZE = 10 * 1024 * 1024  # 10 MiB
DEFAULT_CONTEXT_LINES = 5
MAX_QUERIES = 20


class FileSystemAccessConfig(BaseModel):
    """
    Immutable context shared by every inspection component.

    Holds the base directory all operations are confined to, the size
    ceiling for content reads and the search tuning knobs. Instances are
    frozen so one config can be handed to concurrent requests.

    Usage:
        config = FileSystemAccessConfig(base_path=Path("/srv/repo"))
        reader = RestrictedFileReader(config)
        tree = TreeBuilder(config).build()
    """

    model_config = {"frozen": True, "extra": "forbid"}

    base_path: Path = Field(
        description="Directory all operations are confined to (resolved to an absolute path)",
    )

    max_file_size_bytes: int = Field(
        default=DEFAULT_MAX_FILE_SIZE,
        ge=0,
        description="Maximum file size that can be read (bytes)",
    )

    default_context_lines: int = Field(
        default=DEFAULT_CONTEXT_LINES,
        ge=0,
        description="Context lines before and after each match when a search omits them",
    )

    max_queries: int = Field(
        default=MAX_QUERIES,
        ge=1,
        description="Maximum number of queries per search call",
    )

    search_timeout_seconds: float = Field(
        default=30.0,
        gt=0.0,
        le=600.0,
        description="Timeout for a single search query (seconds)",
    )

    max_concurrent_searches: int = Field(
        default=4,
        ge=1,
        le=MAX_QUERIES,
        description="How many queries of one search call may run at the same time",
    )

    search_backend: Literal["grep", "python"] = Field(
        default="grep",
        description="Search implementation: external grep process or in-process regex scan",
    )

    grep_command: str = Field(
        default="grep",
        description="Executable used by the grep search backend",
    )

    ignore_file_name: str = Field(
        default=".gitignore",
        description="Ignore file read from the base directory when building the structure",
    )

    vcs_directory: str = Field(
        default=".git",
        description="Version-control metadata directory that is never listed",
    )

    follow_symlinks: bool = Field(
        default=False,
        description="Allow symbolic links that resolve outside the base directory",
    )

    @field_validator("base_path", mode="before")
    @classmethod
    def resolve_base_path(cls, v):
        """Resolve the base directory to an absolute path."""
        return Path(v).expanduser().resolve()

    @field_validator("base_path")
    @classmethod
    def check_base_path(cls, v: Path) -> Path:
        """The base directory must exist when the config is created."""
        if not v.exists():
            raise ValueError(f"base path does not exist: {v}")
        if not v.is_dir():
            raise ValueError(f"base path is not a directory: {v}")
        return v

    @field_validator("ignore_file_name", "vcs_directory")
    @classmethod
    def check_plain_name(cls, v: str) -> str:
        """Ignore file and VCS directory are plain names inside the base."""
        if not v or "/" in v or v in (".", ".."):
            raise ValueError(f"expected a plain file name, got {v!r}")
        return v

    def __repr__(self) -> str:
        return (
            f"FileSystemAccessConfig("
            f"base_path={str(self.base_path)!r}, "
            f"max_size={self.max_file_size_bytes}, "
            f"backend={self.search_backend!r})"
        )
