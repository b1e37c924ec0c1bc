"""
Read-only filesystem tools interface.

Provides the three inspection operations (structure, contents, search)
as plain result dicts, plus OpenAI-style function schemas and a
name-based dispatcher for callers that route tool calls themselves.
"""

import logging
from typing import Any, Optional

from fs_inspector.filesystem.config import FileSystemAccessConfig
from fs_inspector.filesystem.exceptions import FileSystemError
from fs_inspector.filesystem.ignore import IgnoreFilter
from fs_inspector.filesystem.models import SearchResponse, StructureResponse
from fs_inspector.filesystem.reader import RestrictedFileReader
from fs_inspector.filesystem.search import SearchBackend, SearchEngine, decode_queries
from fs_inspector.filesystem.tree import TreeBuilder, count_nodes

logger = logging.getLogger(__name__)

READ_FILE_STRUCTURE = "read_file_structure"
READ_FILE_CONTENTS = "read_file_contents"
GREP_SEARCH = "grep_search"


class FileSystemTools:
    """
    The inspection operations exposed to remote callers.

    Every operation is independent: the ignore filter is rebuilt per
    structure call and no state is carried between calls.

    Usage:
        config = FileSystemAccessConfig(base_path=Path("/srv/repo"))
        tools = FileSystemTools(config)

        structure = tools.read_file_structure()
        contents = tools.read_file_contents("README.md")
        found = await tools.grep_search('[{"pattern": "TODO"}]', context_lines=1)
    """

    def __init__(
        self,
        config: FileSystemAccessConfig,
        search_backend: Optional[SearchBackend] = None,
    ):
        """
        Initialize the tools.

        Args:
            config: Filesystem access configuration
            search_backend: Override for the configured search backend
        """
        self.config = config
        self.reader = RestrictedFileReader(config)
        self.search = SearchEngine(config, backend=search_backend)

    @property
    def note(self) -> str:
        return (
            f"Filtered out {self.config.vcs_directory} directory "
            f"and {self.config.ignore_file_name} patterns"
        )

    def read_file_structure(self) -> dict[str, Any]:
        """
        Return the ignore-filtered tree of the base directory.

        Raises:
            PathNotAccessibleError: If the base directory cannot be listed
        """
        ignore_filter = IgnoreFilter.from_config(self.config)
        root = TreeBuilder(self.config, ignore_filter).build()

        files, directories = count_nodes(root)
        logger.info(f"Built file structure: {files} files, {directories} directories")

        return StructureResponse(
            base_path=str(self.config.base_path),
            structure=root,
            note=self.note,
        ).to_dict()

    def read_file_contents(self, file_path: str) -> dict[str, Any]:
        """
        Return the contents of one file below the base directory.

        Raises:
            InvalidPathError: If the path escapes the base directory
            PathNotFoundError: If the file doesn't exist
            FileSizeLimitExceededError: If the file is too large
            FileReadError: If the file cannot be read
        """
        return self.reader.read_file(file_path).to_dict()

    async def grep_search(
        self, queries: Any, context_lines: Optional[Any] = None
    ) -> dict[str, Any]:
        """
        Run up to ``max_queries`` search queries.

        Args:
            queries: JSON string or list of query objects
                (``pattern``, optional ``file_pattern``, optional ``ignore_case``)
            context_lines: Lines of context before and after each match

        Raises:
            InvalidQueriesEncodingError: If the queries cannot be decoded
            NoQueriesError: If no queries were given
            TooManyQueriesError: If too many queries were given
            InvalidContextLinesError: If the context window is invalid
        """
        decoded = decode_queries(queries)
        window = self.search.resolve_context_lines(context_lines)
        results = await self.search.search(decoded, window)

        return SearchResponse(
            base_path=str(self.config.base_path),
            context_lines=window,
            results=results,
        ).to_dict()

    def get_tool_schemas(self) -> list[dict[str, Any]]:
        """
        Get OpenAI function calling schemas for all available tools.

        Returns:
            List of tool schemas in OpenAI format
        """
        return [
            {
                "type": "function",
                "function": {
                    "name": READ_FILE_STRUCTURE,
                    "description": "Read and return the file structure of the configured "
                    "filesystem path, skipping the version-control directory and ignored paths.",
                    "parameters": {
                        "type": "object",
                        "properties": {},
                    },
                },
            },
            {
                "type": "function",
                "function": {
                    "name": READ_FILE_CONTENTS,
                    "description": "Read and return the contents of a specific file.",
                    "parameters": {
                        "type": "object",
                        "properties": {
                            "file_path": {
                                "type": "string",
                                "description": "Path to the file relative to the configured base path",
                            },
                        },
                        "required": ["file_path"],
                    },
                },
            },
            {
                "type": "function",
                "function": {
                    "name": GREP_SEARCH,
                    "description": "Search for patterns in files using grep with context lines. "
                    f"Supports up to {self.config.max_queries} search queries.",
                    "parameters": {
                        "type": "object",
                        "properties": {
                            "queries": {
                                "type": "string",
                                "description": "JSON string containing array of search queries "
                                f"(max {self.config.max_queries}), each with 'pattern' and "
                                "optional 'file_pattern' and 'ignore_case'",
                            },
                            "context_lines": {
                                "type": "integer",
                                "description": "Number of lines before and after each match "
                                f"(default: {self.config.default_context_lines})",
                            },
                        },
                        "required": ["queries"],
                    },
                },
            },
        ]

    async def execute_tool(
        self, tool_name: str, arguments: Optional[dict[str, Any]] = None
    ) -> dict[str, Any]:
        """
        Execute a tool call by name.

        Filesystem errors are returned as ``{"success": False, ...}``
        instead of raised.

        Args:
            tool_name: Name of the tool to execute
            arguments: Tool arguments

        Returns:
            Tool execution result as a dict

        Raises:
            ValueError: If tool name is unknown
        """
        arguments = arguments or {}

        if tool_name == READ_FILE_CONTENTS and "file_path" not in arguments:
            return {
                "success": False,
                "error": "Missing required parameter: file_path",
                "error_type": "MissingParameter",
            }

        try:
            if tool_name == READ_FILE_STRUCTURE:
                result = self.read_file_structure()
            elif tool_name == READ_FILE_CONTENTS:
                result = self.read_file_contents(arguments["file_path"])
            elif tool_name == GREP_SEARCH:
                result = await self.grep_search(
                    arguments.get("queries"), arguments.get("context_lines")
                )
            else:
                raise ValueError(f"Unknown tool: {tool_name}")
        except FileSystemError as e:
            logger.warning(f"Tool {tool_name} failed: {e}")
            return {
                "success": False,
                "error": str(e),
                "error_type": type(e).__name__,
            }

        return {"success": True, **result}
