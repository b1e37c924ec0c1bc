"""
Parsing of line-oriented search output into structured results.

grep prints one record per line::

    /base/src/app.py:12:    def main():        match line
    /base/src/app.py-13-        run()          context line (GNU grep)
    --                                         block separator

With ``--null`` the file name is terminated by a NUL byte instead, which
keeps context lines unambiguous even when file names contain dashes or
digits::

    /base/src/app.py\\x0012:    def main():
    /base/src/app.py\\x0013-        run()

Both shapes are accepted. Anything else (separators, blank lines,
"Binary file ... matches" notices) is dropped without raising.
"""

import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, Union

from fs_inspector.filesystem.guard import PathGuard
from fs_inspector.filesystem.models import GrepLine, GrepMatchResult

logger = logging.getLogger(__name__)

BLOCK_SEPARATOR = "--"
MATCH_SEPARATOR = ":"
CONTEXT_SEPARATOR = "-"

# <file-path>:<line-number><: or -><content>
_RECORD_RE = re.compile(r"^([^:]+):(\d+)([:-])(.*)$")
# <line-number><: or -><content>, after a NUL-terminated file path
_NULL_RECORD_RE = re.compile(r"^(\d+)([:-])(.*)$")


@dataclass(frozen=True)
class LineRecord:
    """One matched or context line reported by a search backend."""

    path: str
    line_number: int
    content: str
    is_match: bool


def parse_grep_line(line: str) -> Optional[LineRecord]:
    """
    Parse one line of grep output.

    Returns:
        The record, or None for separators and unrecognised lines
    """
    if not line or line == BLOCK_SEPARATOR:
        return None

    if "\0" in line:
        path, _, rest = line.partition("\0")
        match = _NULL_RECORD_RE.match(rest)
        if not path or match is None:
            return None
        number, separator, content = match.groups()
    else:
        match = _RECORD_RE.match(line)
        if match is None:
            return None
        path, number, separator, content = match.groups()

    line_number = int(number)
    if line_number < 1:
        return None

    return LineRecord(
        path=path,
        line_number=line_number,
        content=content,
        is_match=separator == MATCH_SEPARATOR,
    )


def parse_grep_output(output: str) -> list[LineRecord]:
    """Parse raw grep output into records, in output order."""
    if not output:
        return []

    records = []
    dropped = 0
    for line in output.rstrip("\n").split("\n"):
        record = parse_grep_line(line)
        if record is None:
            if line and line != BLOCK_SEPARATOR:
                dropped += 1
            continue
        records.append(record)

    if dropped:
        logger.debug(f"Dropped {dropped} unparseable output lines")
    return records


def group_records(
    records: Iterable[LineRecord], base_path: Union[str, Path]
) -> list[GrepMatchResult]:
    """
    Group records by file, in the order files are first seen.

    Lines keep their output order within a file. Blocks from the same
    file are appended one after the other without deduplication, so
    overlapping context windows can repeat line numbers.
    """
    guard = PathGuard(base_path)
    grouped: dict[str, list[GrepLine]] = {}

    for record in records:
        file_path = record.path
        if os.path.isabs(file_path):
            file_path = guard.relative_to_base(file_path) or record.path

        grouped.setdefault(file_path, []).append(
            GrepLine(
                line_number=record.line_number,
                content=record.content,
                is_match=record.is_match,
            )
        )

    return [GrepMatchResult(file_path=path, lines=lines) for path, lines in grouped.items()]
