"""
Server configuration.

Settings are read, in increasing priority, from defaults, a ``.env``
file, ``FS_INSPECTOR_*`` environment variables and explicit values
(CLI options or a YAML/JSON config file).
"""

import json
from pathlib import Path
from typing import Literal, Union

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from fs_inspector.filesystem.config import (
    DEFAULT_CONTEXT_LINES,
    DEFAULT_MAX_FILE_SIZE,
    MAX_QUERIES,
    FileSystemAccessConfig,
)

ENV_PREFIX = "FS_INSPECTOR_"


class ServerSettings(BaseSettings):
    """
    Complete fs-inspector server configuration.

    Example:
        ```python
        # From the environment (FS_INSPECTOR_BASE_PATH, FS_INSPECTOR_PORT, ...)
        settings = ServerSettings()

        # From a file
        settings = ServerSettings.from_file("~/.config/fs-inspector.yaml")

        config = settings.to_access_config()
        ```
    """

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    host: str = Field(default="127.0.0.1", description="Address to listen on")
    port: int = Field(default=3001, ge=1, le=65535, description="Port to listen on")
    transport: Literal["streamable-http", "stdio"] = Field(
        default="streamable-http", description="MCP transport"
    )
    base_path: Path = Field(default=Path("."), description="Base filesystem path to serve")
    max_file_size_bytes: int = Field(
        default=DEFAULT_MAX_FILE_SIZE, ge=0, description="Maximum file size in bytes"
    )
    default_context_lines: int = Field(default=DEFAULT_CONTEXT_LINES, ge=0)
    max_queries: int = Field(default=MAX_QUERIES, ge=1)
    search_timeout_seconds: float = Field(default=30.0, gt=0.0, le=600.0)
    max_concurrent_searches: int = Field(default=4, ge=1, le=MAX_QUERIES)
    search_backend: Literal["grep", "python"] = Field(default="grep")
    grep_command: str = Field(default="grep")
    follow_symlinks: bool = Field(default=False)
    log_level: str = Field(default="INFO", description="Logging level name")

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Accept level names in any case."""
        level = v.upper()
        if level not in ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"):
            raise ValueError(f"Unknown log level: {v}")
        return level

    @classmethod
    def from_file(cls, path: Union[str, Path], **overrides) -> "ServerSettings":
        """
        Load settings from a YAML or JSON file.

        File format (YAML):
            ```yaml
            host: 0.0.0.0
            port: 3001
            base_path: /srv/repo
            max_file_size_bytes: 10485760
            search_backend: grep
            ```

        Args:
            path: Path to configuration file
            **overrides: Values taking precedence over the file

        Raises:
            FileNotFoundError: If the config file doesn't exist
        """
        path = Path(path).expanduser().resolve()

        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        content = path.read_text()

        if path.suffix == ".json":
            data = json.loads(content)
        else:
            data = yaml.safe_load(content)

        data = dict(data or {})
        data.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**data)

    def to_access_config(self) -> FileSystemAccessConfig:
        """
        Build the immutable filesystem context.

        Raises:
            pydantic.ValidationError: If the base path doesn't exist
        """
        return FileSystemAccessConfig(
            base_path=self.base_path,
            max_file_size_bytes=self.max_file_size_bytes,
            default_context_lines=self.default_context_lines,
            max_queries=self.max_queries,
            search_timeout_seconds=self.search_timeout_seconds,
            max_concurrent_searches=self.max_concurrent_searches,
            search_backend=self.search_backend,
            grep_command=self.grep_command,
            follow_symlinks=self.follow_symlinks,
        )

    def __str__(self) -> str:
        return f"ServerSettings(base_path={self.base_path}, {self.transport}://{self.host}:{self.port})"
