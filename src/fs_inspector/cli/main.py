"""
CLI for fs-inspector.

Starts the MCP server, or runs the inspection operations locally
against a directory and prints their JSON results.
"""

import asyncio
import logging
import sys
from typing import Any, Optional

import click
from dotenv import load_dotenv
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel

from fs_inspector import __version__
from fs_inspector.filesystem import FileSystemError, FileSystemTools, GrepQuery
from fs_inspector.settings import ServerSettings

# Load environment variables
load_dotenv()

console = Console()
# Logs go to stderr so the stdio transport keeps stdout for the protocol
err_console = Console(stderr=True)


def setup_logging(verbose: bool = False, level: str = "INFO") -> None:
    """Setup rich logging."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else getattr(logging, level, logging.INFO),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, rich_tracebacks=True)],
        force=True,
    )
    # Reduce noise from the HTTP stack
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def _load_settings(config: Optional[str], **overrides: Any) -> ServerSettings:
    """Load settings from a file or the environment, applying CLI overrides."""
    try:
        if config:
            return ServerSettings.from_file(config, **overrides)
        return ServerSettings(**{k: v for k, v in overrides.items() if v is not None})
    except (FileNotFoundError, ValidationError) as e:
        err_console.print(f"[bold red]Configuration error:[/bold red] {e}")
        sys.exit(1)


def _build_tools(settings: ServerSettings) -> FileSystemTools:
    try:
        return FileSystemTools(settings.to_access_config())
    except ValidationError as e:
        err_console.print(f"[bold red]Configuration error:[/bold red] {e}")
        sys.exit(1)


def _fail(e: Exception) -> None:
    err_console.print(f"[bold red]Error:[/bold red] {e}")
    sys.exit(1)


config_option = click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Path to a YAML or JSON settings file",
)
base_path_option = click.option(
    "--base-path",
    "-b",
    type=click.Path(exists=True, file_okay=False),
    default=None,
    help="Base filesystem path to serve (default: current directory)",
)
verbose_option = click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose logging",
)


@click.group()
@click.version_option(version=__version__)
def cli():
    """fs-inspector - read-only inspection of a sandboxed directory tree."""
    pass


@cli.command()
@config_option
@base_path_option
@click.option("--host", "-H", default=None, help="Address to listen on (default: 127.0.0.1)")
@click.option("--port", "-p", type=int, default=None, help="Port to listen on (default: 3001)")
@click.option(
    "--max-file-size",
    type=int,
    default=None,
    help="Maximum file size in bytes (default: 10MB)",
)
@click.option(
    "--transport",
    "-t",
    type=click.Choice(["streamable-http", "stdio"]),
    default=None,
    help="MCP transport (default: streamable-http)",
)
@verbose_option
def serve(
    config: Optional[str],
    base_path: Optional[str],
    host: Optional[str],
    port: Optional[int],
    max_file_size: Optional[int],
    transport: Optional[str],
    verbose: bool,
):
    """
    Start the MCP filesystem server.

    Examples:

        # Serve the current directory over HTTP on port 3001
        fs-inspector serve

        # Serve a repository on all interfaces
        fs-inspector serve -b /srv/repo -H 0.0.0.0 -p 8080

        # Run as a stdio server for a local MCP client
        fs-inspector serve -b /srv/repo -t stdio
    """
    from fs_inspector.server import create_server, run_server

    settings = _load_settings(
        config,
        base_path=base_path,
        host=host,
        port=port,
        max_file_size_bytes=max_file_size,
        transport=transport,
    )
    setup_logging(verbose, settings.log_level)
    logger = logging.getLogger(__name__)

    try:
        access_config = settings.to_access_config()
    except ValidationError as e:
        logger.error(f"Failed to load configuration: {e}")
        sys.exit(1)

    if settings.transport == "streamable-http":
        err_console.print(
            Panel(
                f"[bold cyan]MCP File Server[/bold cyan]\n\n"
                f"Base path: [green]{access_config.base_path}[/green]\n"
                f"Listening: [green]{settings.host}:{settings.port}[/green]\n"
                f"Max file size: [green]{access_config.max_file_size_bytes} bytes[/green]\n"
                f"Search backend: [green]{access_config.search_backend}[/green]\n\n"
                f"Press [yellow]Ctrl+C[/yellow] to stop.",
                title="Starting",
            )
        )

    logger.info(f"Configured base path: {access_config.base_path}")
    server = create_server(access_config, host=settings.host, port=settings.port)
    run_server(server, settings.transport)


@cli.command()
@config_option
@base_path_option
@verbose_option
def structure(config: Optional[str], base_path: Optional[str], verbose: bool):
    """Print the ignore-filtered file structure as JSON."""
    setup_logging(verbose)
    tools = _build_tools(_load_settings(config, base_path=base_path))

    try:
        result = tools.read_file_structure()
    except FileSystemError as e:
        _fail(e)
    console.print_json(data=result)


@cli.command()
@click.argument("file_path")
@config_option
@base_path_option
@verbose_option
def read(file_path: str, config: Optional[str], base_path: Optional[str], verbose: bool):
    """Print the contents of FILE_PATH (relative to the base path)."""
    setup_logging(verbose)
    tools = _build_tools(_load_settings(config, base_path=base_path))

    try:
        result = tools.read_file_contents(file_path)
    except FileSystemError as e:
        _fail(e)
    console.print_json(data=result)


@cli.command()
@click.argument("patterns", nargs=-1, required=True)
@click.option("--file-pattern", "-f", default=None, help="Only search files matching this glob")
@click.option("--ignore-case", "-i", is_flag=True, help="Case-insensitive search")
@click.option("--context-lines", "-C", type=int, default=None, help="Context lines (default: 5)")
@click.option(
    "--backend",
    type=click.Choice(["grep", "python"]),
    default=None,
    help="Search backend (default: grep)",
)
@config_option
@base_path_option
@verbose_option
def search(
    patterns: tuple[str, ...],
    file_pattern: Optional[str],
    ignore_case: bool,
    context_lines: Optional[int],
    backend: Optional[str],
    config: Optional[str],
    base_path: Optional[str],
    verbose: bool,
):
    """
    Search for one or more PATTERNS and print the results as JSON.

    Each pattern becomes its own query.

    Examples:

        fs-inspector search -b /srv/repo "def main" "TODO" -f "*.py" -C 2
    """
    setup_logging(verbose)
    tools = _build_tools(
        _load_settings(config, base_path=base_path, search_backend=backend)
    )
    queries = [
        GrepQuery(pattern=pattern, file_pattern=file_pattern, ignore_case=ignore_case or None)
        for pattern in patterns
    ]

    try:
        result = asyncio.run(
            tools.grep_search([q.model_dump(exclude_none=True) for q in queries], context_lines)
        )
    except FileSystemError as e:
        _fail(e)
    console.print_json(data=result)


if __name__ == "__main__":
    cli()
