"""
Multi-query search over the base directory.

A search call carries up to ``max_queries`` independent queries. Each
query is handed to a search backend, which returns raw match/context
line records; the records are then grouped per file. The backend is
the only environment-dependent piece: ``GrepSearchBackend`` shells out
to grep, ``PythonSearchBackend`` scans files in-process with ``re``.
"""

import asyncio
import logging
import os
import re
import shlex
import threading
from fnmatch import fnmatchcase
from typing import Any, Optional, Protocol, Sequence

from pydantic import TypeAdapter, ValidationError

from fs_inspector.filesystem.config import FileSystemAccessConfig
from fs_inspector.filesystem.exceptions import (
    InvalidContextLinesError,
    InvalidQueriesEncodingError,
    NoQueriesError,
    SearchError,
    TooManyQueriesError,
)
from fs_inspector.filesystem.models import GrepQuery, GrepResult
from fs_inspector.filesystem.parsing import LineRecord, group_records, parse_grep_output

logger = logging.getLogger(__name__)

_QUERY_LIST = TypeAdapter(list[GrepQuery])

# grep exits with 1 when it ran cleanly and found nothing
GREP_NO_MATCHES = 1

BINARY_SNIFF_BYTES = 8192


class SearchBackend(Protocol):
    """Runs one query against the base directory."""

    async def run(self, query: GrepQuery, context_lines: int) -> list[LineRecord]:
        """
        Return matched and context line records for one query.

        An empty list means nothing matched.

        Raises:
            SearchError: If the search itself failed
        """
        ...


def decode_queries(raw: Any) -> list[GrepQuery]:
    """
    Decode a query list from a JSON string or already-decoded objects.

    Raises:
        InvalidQueriesEncodingError: If the value is not a list of queries
    """
    try:
        if isinstance(raw, (str, bytes)):
            return _QUERY_LIST.validate_json(raw)
        return _QUERY_LIST.validate_python(raw)
    except ValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first["loc"])
        detail = f"{first['msg']} at {location}" if location else first["msg"]
        raise InvalidQueriesEncodingError(detail)


async def _kill(proc: asyncio.subprocess.Process) -> None:
    if proc.returncode is None:
        proc.kill()
        await proc.wait()


class GrepSearchBackend:
    """
    Search backend running ``grep -r`` once per query.

    Usage:
        backend = GrepSearchBackend(config)
        records = await backend.run(GrepQuery(pattern="def main"), context_lines=2)
    """

    def __init__(self, config: FileSystemAccessConfig):
        self.config = config

    def build_command(self, query: GrepQuery, context_lines: int) -> list[str]:
        """Build the grep argument vector for one query."""
        cmd = [self.config.grep_command, "-r", "-n", "--null"]

        if query.ignore_case:
            cmd.append("-i")

        if context_lines > 0:
            cmd.extend(["-C", str(context_lines)])

        if query.file_pattern:
            cmd.append(f"--include={query.file_pattern}")

        # -e keeps patterns starting with '-' from being read as options
        cmd.extend(["-e", query.pattern, "--", str(self.config.base_path)])
        return cmd

    async def run(self, query: GrepQuery, context_lines: int) -> list[LineRecord]:
        cmd = self.build_command(query, context_lines)
        timeout = self.config.search_timeout_seconds

        logger.debug(f"Running grep: {shlex.join(cmd)}")

        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except (OSError, ValueError) as e:
            # ValueError: embedded NUL byte in an argument
            logger.error(f"grep failed to start: {e}")
            raise SearchError(f"grep command failed: {e}")

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
        except asyncio.TimeoutError:
            await _kill(proc)
            logger.error(f"grep timed out after {timeout}s")
            raise SearchError(f"Search timed out after {timeout} seconds")
        except asyncio.CancelledError:
            await _kill(proc)
            raise

        if proc.returncode == GREP_NO_MATCHES:
            return []

        if proc.returncode != 0:
            message = stderr.decode("utf-8", errors="replace").strip()
            logger.error(f"grep exited with status {proc.returncode}: {message}")
            detail = f": {message}" if message else ""
            raise SearchError(
                f"grep command failed: exit status {proc.returncode}{detail}"
            )

        return parse_grep_output(stdout.decode("utf-8", errors="replace"))


class PythonSearchBackend:
    """
    In-process search backend using Python's re module.

    Walks the base directory like ``grep -r`` (symlinks are not
    followed, binary files are skipped) and emits records in the order
    grep would print them, merging overlapping context windows within a
    file. Patterns use Python regular expression syntax.
    """

    def __init__(self, config: FileSystemAccessConfig):
        self.config = config

    async def run(self, query: GrepQuery, context_lines: int) -> list[LineRecord]:
        flags = re.IGNORECASE if query.ignore_case else 0
        try:
            regex = re.compile(query.pattern, flags)
        except re.error as e:
            raise SearchError(f"Invalid regex pattern: {e}")

        timeout = self.config.search_timeout_seconds
        cancel_event = threading.Event()
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(
                    self._scan_tree, regex, query.file_pattern, context_lines, cancel_event
                ),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            cancel_event.set()
            logger.error(f"Python search timed out after {timeout}s")
            raise SearchError(f"Search timed out after {timeout} seconds")
        except asyncio.CancelledError:
            cancel_event.set()
            raise

    def _scan_tree(
        self,
        regex: re.Pattern,
        file_pattern: Optional[str],
        context_lines: int,
        cancel_event: Optional[threading.Event] = None,
    ) -> list[LineRecord]:
        records = []
        for root, _dirs, files in os.walk(self.config.base_path):
            for name in files:
                if cancel_event is not None and cancel_event.is_set():
                    logger.debug(f"Search for {regex.pattern!r} cancelled")
                    return records
                if file_pattern and not fnmatchcase(name, file_pattern):
                    continue
                path = os.path.join(root, name)
                if os.path.islink(path):
                    continue
                records.extend(self._scan_file(path, regex, context_lines))
        return records

    def _scan_file(self, path: str, regex: re.Pattern, context_lines: int) -> list[LineRecord]:
        try:
            with open(path, "rb") as f:
                data = f.read()
        except OSError as e:
            logger.warning(f"Failed to search in {path}: {e}")
            return []

        if b"\0" in data[:BINARY_SNIFF_BYTES]:
            return []

        lines = data.decode("utf-8", errors="replace").split("\n")
        if lines and lines[-1] == "":
            lines.pop()

        matched = {index for index, line in enumerate(lines) if regex.search(line)}
        if not matched:
            return []

        records = []
        last_emitted = -1
        for index in sorted(matched):
            start = max(index - context_lines, last_emitted + 1)
            end = min(index + context_lines, len(lines) - 1)
            for line_index in range(start, end + 1):
                records.append(
                    LineRecord(
                        path=path,
                        line_number=line_index + 1,
                        content=lines[line_index],
                        is_match=line_index in matched,
                    )
                )
            last_emitted = max(last_emitted, end)
        return records


def create_backend(config: FileSystemAccessConfig) -> SearchBackend:
    """Create the search backend selected in the config."""
    if config.search_backend == "python":
        return PythonSearchBackend(config)
    return GrepSearchBackend(config)


class SearchEngine:
    """
    Runs a batch of search queries and builds per-query results.

    Results come back in query order, one per query. A failing query
    only sets the ``error`` of its own result; a query that matches
    nothing yields empty ``matches`` and no error.

    Usage:
        engine = SearchEngine(config)
        results = await engine.search(
            [GrepQuery(pattern="TODO"), GrepQuery(pattern="def ", file_pattern="*.py")],
            context_lines=2,
        )
    """

    def __init__(
        self,
        config: FileSystemAccessConfig,
        backend: Optional[SearchBackend] = None,
    ):
        self.config = config
        self.backend = backend or create_backend(config)

    def validate_queries(self, queries: Sequence[GrepQuery]) -> None:
        """
        Check the query count.

        Raises:
            NoQueriesError: If there are no queries
            TooManyQueriesError: If there are more than ``max_queries``
        """
        if len(queries) == 0:
            raise NoQueriesError()
        if len(queries) > self.config.max_queries:
            raise TooManyQueriesError(len(queries), self.config.max_queries)

    def resolve_context_lines(self, context_lines: Any = None) -> int:
        """
        Apply the default context window and validate the value.

        Raises:
            InvalidContextLinesError: If the value is negative or not integral
        """
        if context_lines is None:
            return self.config.default_context_lines
        if isinstance(context_lines, bool):
            raise InvalidContextLinesError(context_lines)
        if isinstance(context_lines, float) and context_lines.is_integer():
            context_lines = int(context_lines)
        if not isinstance(context_lines, int) or context_lines < 0:
            raise InvalidContextLinesError(context_lines)
        return context_lines

    async def search(
        self, queries: Sequence[GrepQuery], context_lines: Any = None
    ) -> list[GrepResult]:
        """
        Run every query and return one result per query, in input order.

        Raises:
            NoQueriesError: If there are no queries
            TooManyQueriesError: If there are too many queries
            InvalidContextLinesError: If the context window is invalid
        """
        self.validate_queries(queries)
        window = self.resolve_context_lines(context_lines)

        semaphore = asyncio.Semaphore(self.config.max_concurrent_searches)

        async def run_limited(query: GrepQuery) -> GrepResult:
            async with semaphore:
                return await self.run_query(query, window)

        outcomes = await asyncio.gather(
            *(run_limited(query) for query in queries), return_exceptions=True
        )

        results = []
        for query, outcome in zip(queries, outcomes):
            if isinstance(outcome, GrepResult):
                results.append(outcome)
            elif isinstance(outcome, Exception):
                logger.error(
                    f"Search for {query.pattern!r} failed unexpectedly: {outcome}",
                    exc_info=outcome,
                )
                results.append(GrepResult(query=query.pattern, error=f"Search failed: {outcome}"))
            else:
                raise outcome

        logger.info(f"Completed {len(results)} search queries (context_lines={window})")
        return results

    async def run_query(self, query: GrepQuery, context_lines: int) -> GrepResult:
        """Run a single query, turning a search failure into a result error."""
        try:
            records = await self.backend.run(query, context_lines)
        except SearchError as e:
            logger.error(f"Search for {query.pattern!r} failed: {e}")
            return GrepResult(query=query.pattern, error=str(e))

        matches = group_records(records, self.config.base_path)
        logger.debug(f"Query {query.pattern!r} matched in {len(matches)} files")
        return GrepResult(query=query.pattern, matches=matches)
