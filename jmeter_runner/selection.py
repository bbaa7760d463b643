"""Select test plans from a source directory using Ant-style patterns."""

import logging
import re
from collections.abc import Iterator, Sequence
from pathlib import Path

from jmeter_runner.models.plan import TestPlan

log = logging.getLogger(__name__)

DEFAULT_INCLUDES: Sequence[str] = ("**/*.jmx",)

# Ant's DirectoryScanner default excludes
DEFAULT_EXCLUDES: Sequence[str] = (
    "**/*~",
    "**/#*#",
    "**/.#*",
    "**/%*%",
    "**/._*",
    "**/CVS/**",
    "**/.cvsignore",
    "**/SCCS/**",
    "**/vssver.scc",
    "**/.svn/**",
    "**/.DS_Store",
    "**/.git/**",
    "**/.gitattributes",
    "**/.gitignore",
    "**/.gitmodules",
    "**/.hg/**",
    "**/.hgignore",
    "**/.hgsub",
    "**/.hgsubstate",
    "**/.hgtags",
    "**/.bzr/**",
    "**/.bzrignore",
)


def select_test_plans(
    root: Path,
    includes: Sequence[str] | None = None,
    excludes: Sequence[str] | None = None,
) -> Sequence[TestPlan]:
    """Find the test plans under root and order them for execution.

    Args:
        root: Directory holding the test plans
        includes: Include patterns. When given, plans run in the order of the
            first pattern they match, ties broken by path. When omitted (or
            empty), every ``.jmx`` file is included and plans run in path order.
        excludes: Patterns removed from the included files

    Returns:
        Test plans in execution order. Empty when nothing matches.

    """
    if not root.is_dir():
        log.info("Test directory %s does not exist", root)
        return []

    include_patterns = [compile_pattern(p) for p in includes or DEFAULT_INCLUDES]
    exclude_patterns = [
        compile_pattern(p) for p in (*DEFAULT_EXCLUDES, *(excludes or ()))
    ]

    selected = [
        path
        for path in sorted(iter_relative_files(root))
        if matches_any(path, include_patterns)
        and not matches_any(path, exclude_patterns)
    ]

    if includes:
        # sort is stable, so paths matching the same pattern stay in path order
        selected.sort(key=lambda path: first_match_index(path, include_patterns))

    log.debug("Selected %d test plan(s) under %s", len(selected), root)
    return [TestPlan(root=root, relative_path=path) for path in selected]


def iter_relative_files(root: Path) -> Iterator[str]:
    """Yield every file below root as a ``/`` separated relative path."""
    for path in root.rglob("*"):
        if path.is_file():
            yield path.relative_to(root).as_posix()


def compile_pattern(pattern: str) -> re.Pattern[str]:
    """Translate an Ant-style pattern into a regular expression.

    ``**`` matches any number of directories, ``*`` any characters within a
    single path segment and ``?`` exactly one character. A trailing ``/`` is
    shorthand for ``/**``.
    """
    normalized = pattern.replace("\\", "/").lstrip("/")
    if normalized.endswith("/"):
        normalized += "**"

    segments = normalized.split("/")
    parts: list[str] = []
    for index, segment in enumerate(segments):
        is_last = index == len(segments) - 1
        if segment == "**":
            parts.append(".*" if is_last else "(?:[^/]*/)*")
        else:
            parts.append(_segment_regex(segment) + ("" if is_last else "/"))

    return re.compile("".join(parts))


def _segment_regex(segment: str) -> str:
    regex: list[str] = []
    for char in segment:
        if char == "*":
            regex.append("[^/]*")
        elif char == "?":
            regex.append("[^/]")
        else:
            regex.append(re.escape(char))
    return "".join(regex)


def matches_any(path: str, patterns: Sequence[re.Pattern[str]]) -> bool:
    """Check whether path fully matches one of the patterns."""
    return any(pattern.fullmatch(path) for pattern in patterns)


def first_match_index(path: str, patterns: Sequence[re.Pattern[str]]) -> int:
    """Return the index of the first pattern matching path."""
    for index, pattern in enumerate(patterns):
        if pattern.fullmatch(path):
            return index
    return len(patterns)
