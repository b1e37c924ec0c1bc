"""MCP server exposing the inspection operations as tools.

Each tool returns its result as JSON text. Filesystem errors are raised
as ``ToolError`` so the client receives an error result instead of a
transport failure.
"""

import json
import logging
from typing import Any, Optional, Union

from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.exceptions import ToolError

from fs_inspector.filesystem.config import FileSystemAccessConfig
from fs_inspector.filesystem.exceptions import FileSystemError
from fs_inspector.filesystem.tools import (
    GREP_SEARCH,
    READ_FILE_CONTENTS,
    READ_FILE_STRUCTURE,
    FileSystemTools,
)

logger = logging.getLogger(__name__)

SERVER_NAME = "filesystem-mcp-server"

INSTRUCTIONS = (
    "Read-only access to one directory tree. Use read_file_structure to list "
    "files, read_file_contents to fetch a file by its relative path and "
    "grep_search to run several pattern searches with context lines at once."
)


def create_server(
    config: FileSystemAccessConfig,
    host: str = "127.0.0.1",
    port: int = 3001,
    name: str = SERVER_NAME,
) -> FastMCP:
    """Create an MCP server with the three filesystem tools.

    Args:
        config: Filesystem access configuration
        host: Address for the HTTP transport
        port: Port for the HTTP transport
        name: Server name reported to clients

    Returns:
        Configured FastMCP server instance
    """
    tools = FileSystemTools(config)
    mcp = FastMCP(name, instructions=INSTRUCTIONS, host=host, port=port)

    @mcp.tool(
        name=READ_FILE_STRUCTURE,
        description="Read and return the file structure of the configured filesystem path",
    )
    def read_file_structure() -> str:
        try:
            return json.dumps(tools.read_file_structure())
        except FileSystemError as e:
            raise ToolError(f"Failed to read file structure: {e}") from e

    @mcp.tool(
        name=READ_FILE_CONTENTS,
        description="Read and return the contents of a specific file",
    )
    def read_file_contents(file_path: str) -> str:
        """
        Args:
            file_path: Path to the file relative to the configured base path
        """
        try:
            return json.dumps(tools.read_file_contents(file_path))
        except FileSystemError as e:
            raise ToolError(str(e)) from e

    @mcp.tool(
        name=GREP_SEARCH,
        description=(
            "Search for patterns in files using grep with context lines. "
            f"Supports up to {config.max_queries} search queries."
        ),
    )
    async def grep_search(
        queries: Union[str, list[dict[str, Any]]],
        context_lines: Optional[int] = None,
    ) -> str:
        """
        Args:
            queries: JSON string containing array of search queries
                ({"pattern", "file_pattern"?, "ignore_case"?})
            context_lines: Number of lines before and after each match
        """
        try:
            return json.dumps(await tools.grep_search(queries, context_lines))
        except FileSystemError as e:
            raise ToolError(str(e)) from e

    logger.info(
        f"Registered 3 filesystem tools: {READ_FILE_STRUCTURE}, "
        f"{READ_FILE_CONTENTS}, {GREP_SEARCH}"
    )
    return mcp


def run_server(mcp: FastMCP, transport: str = "streamable-http") -> None:
    """Run the server until interrupted."""
    if transport == "streamable-http":
        logger.info(
            f"Server endpoint will be: http://{mcp.settings.host}:{mcp.settings.port}"
            f"{mcp.settings.streamable_http_path}"
        )
    mcp.run(transport=transport)
