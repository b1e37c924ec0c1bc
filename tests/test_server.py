"""Tests for the MCP server wiring."""

import json
import tempfile
from pathlib import Path

import pytest
from mcp.server.fastmcp.exceptions import ToolError

from fs_inspector.filesystem import FileSystemAccessConfig
from fs_inspector.server import SERVER_NAME, create_server


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir).resolve()


@pytest.fixture
def server(temp_dir):
    (temp_dir / "a.txt").write_text("alpha\nbeta\nalpha\n")
    config = FileSystemAccessConfig(base_path=temp_dir, search_backend="python")
    return create_server(config, host="127.0.0.1", port=3999)


def result_json(result):
    """Decode the JSON text of a call_tool result."""
    # Newer SDKs return (content, structured_content)
    content = result[0] if isinstance(result, tuple) else result
    return json.loads(content[0].text)


class TestCreateServer:
    """Tests for create_server."""

    def test_settings(self, server):
        assert server.name == SERVER_NAME
        assert server.settings.host == "127.0.0.1"
        assert server.settings.port == 3999

    @pytest.mark.asyncio
    async def test_registers_three_tools(self, server):
        tools = await server.list_tools()

        assert sorted(tool.name for tool in tools) == [
            "grep_search",
            "read_file_contents",
            "read_file_structure",
        ]
        grep_tool = next(tool for tool in tools if tool.name == "grep_search")
        assert "queries" in grep_tool.inputSchema["required"]

    @pytest.mark.asyncio
    async def test_read_file_structure(self, server):
        data = result_json(await server.call_tool("read_file_structure", {}))

        assert data["note"] == "Filtered out .git directory and .gitignore patterns"
        assert [child["name"] for child in data["structure"]["children"]] == ["a.txt"]

    @pytest.mark.asyncio
    async def test_read_file_contents(self, server):
        data = result_json(await server.call_tool("read_file_contents", {"file_path": "a.txt"}))

        assert data == {"file_path": "a.txt", "size_bytes": 17, "content": "alpha\nbeta\nalpha\n"}

    @pytest.mark.asyncio
    async def test_read_file_contents_traversal(self, server):
        with pytest.raises(ToolError, match="Path traversal not allowed"):
            await server.call_tool("read_file_contents", {"file_path": "../etc/passwd"})

    @pytest.mark.asyncio
    async def test_grep_search_json_string(self, server):
        data = result_json(
            await server.call_tool(
                "grep_search", {"queries": '[{"pattern": "alpha"}]', "context_lines": 0}
            )
        )

        lines = data["results"][0]["matches"][0]["lines"]
        assert [line["line_number"] for line in lines] == [1, 3]

    @pytest.mark.asyncio
    async def test_grep_search_too_many_queries(self, server):
        queries = json.dumps([{"pattern": "x"}] * 21)

        with pytest.raises(ToolError, match="Maximum 20 search queries"):
            await server.call_tool("grep_search", {"queries": queries})
