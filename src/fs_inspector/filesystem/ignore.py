"""
Ignore-file filtering for the structure tree.

Implements the subset of ignore-file semantics the structure listing
needs: depth-independent name patterns, patterns containing a slash
matched at any depth, and directory patterns with a trailing slash.
Rules are scanned in file order and the first match wins. Negation
lines (``!pattern``) are dropped when the file is read, so they can
never bring back a path an earlier rule ignored.
"""

import logging
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Iterable, Union

from fs_inspector.filesystem.guard import PathGuard

logger = logging.getLogger(__name__)

COMMENT_PREFIX = "#"
NEGATION_PREFIX = "!"


def glob_match(pattern: str, path: str) -> bool:
    """
    Shell-style match where ``*`` and ``?`` never cross a ``/``.

    Both arguments are slash-separated; they only match when they have
    the same number of segments and every segment matches.
    """
    pattern_parts = pattern.split("/")
    path_parts = path.split("/")
    if len(pattern_parts) != len(path_parts):
        return False
    return all(fnmatchcase(part, glob) for glob, part in zip(pattern_parts, path_parts))


def parse_ignore_lines(lines: Iterable[str]) -> list[str]:
    """Extract patterns from ignore-file lines, dropping comments and negations."""
    patterns = []
    for raw_line in lines:
        line = raw_line.strip()
        if not line or line.startswith(COMMENT_PREFIX):
            continue
        if line.startswith(NEGATION_PREFIX):
            logger.debug(f"Dropping negation pattern {line!r}")
            continue
        patterns.append(line)
    return patterns


class IgnoreFilter:
    """
    Decides which paths the structure listing skips.

    Usage:
        ignore_filter = IgnoreFilter.build(Path("/srv/repo"))
        ignore_filter.should_ignore(Path("/srv/repo/node_modules"))
    """

    def __init__(
        self,
        base_path: Union[str, Path],
        patterns: Iterable[str] = (),
        vcs_directory: str = ".git",
    ):
        self.base_path = Path(base_path)
        self.vcs_directory = vcs_directory
        self.patterns = tuple(patterns)
        self._guard = PathGuard(self.base_path)

    @classmethod
    def build(
        cls,
        base_path: Union[str, Path],
        ignore_file_name: str = ".gitignore",
        vcs_directory: str = ".git",
    ) -> "IgnoreFilter":
        """
        Create a filter from the seed patterns and the base ignore file.

        A missing or unreadable ignore file is not an error; the filter
        then only skips the version-control directory.
        """
        patterns = [vcs_directory, f"{vcs_directory}/"]

        ignore_file = Path(base_path) / ignore_file_name
        try:
            with open(ignore_file, "r", encoding="utf-8", errors="replace") as f:
                file_patterns = parse_ignore_lines(f)
        except OSError as e:
            logger.debug(f"No ignore patterns loaded from {ignore_file}: {e}")
        else:
            logger.debug(f"Loaded {len(file_patterns)} ignore patterns from {ignore_file}")
            patterns.extend(file_patterns)

        return cls(base_path, patterns, vcs_directory=vcs_directory)

    @classmethod
    def from_config(cls, config) -> "IgnoreFilter":
        return cls.build(
            config.base_path,
            ignore_file_name=config.ignore_file_name,
            vcs_directory=config.vcs_directory,
        )

    def should_ignore(self, path: Union[str, Path]) -> bool:
        """
        Check whether a path below the base should be skipped.

        Paths that cannot be expressed relative to the base are never
        ignored, and neither is the base itself.
        """
        rel_path = self._guard.relative_to_base(path)
        if not rel_path:
            return False

        segments = rel_path.split("/")
        if self.vcs_directory in segments:
            return True

        for pattern in self.patterns:
            if self._matches(pattern, rel_path, segments):
                logger.debug(f"Ignoring {rel_path} (pattern {pattern!r})")
                return True

        return False

    def _matches(self, pattern: str, rel_path: str, segments: list[str]) -> bool:
        name = segments[-1]

        # Leading slash anchors the pattern to the base directory
        if pattern.startswith("/"):
            anchored = pattern.lstrip("/")
            if anchored.endswith("/"):
                anchored = anchored[:-1]
                return glob_match(anchored, rel_path) or rel_path.startswith(f"{anchored}/")
            return glob_match(anchored, rel_path)

        if pattern.endswith("/"):
            dir_pattern = pattern[:-1]
            if glob_match(dir_pattern, name):
                return True
            if f"{dir_pattern}/" in rel_path:
                return True
            if "/" in dir_pattern:
                return self._matches_any_suffix(dir_pattern, segments)
            return False

        if glob_match(pattern, name):
            return True
        if "/" in pattern:
            return self._matches_any_suffix(pattern, segments)
        return False

    @staticmethod
    def _matches_any_suffix(pattern: str, segments: list[str]) -> bool:
        # Full path first, then with leading segments dropped one at a time
        for start in range(len(segments)):
            if glob_match(pattern, "/".join(segments[start:])):
                return True
        return False

    def __repr__(self) -> str:
        return f"IgnoreFilter(base_path={str(self.base_path)!r}, patterns={len(self.patterns)})"
