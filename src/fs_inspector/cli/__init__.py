"""
CLI module for fs-inspector.

Provides the command-line entry point that starts the MCP server and
runs the inspection operations locally.
"""

from fs_inspector.cli.main import cli

__all__ = ["cli"]
