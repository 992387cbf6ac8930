"""Selection helpers. Selections are immutable sets of absolute paths."""

from collections.abc import Iterable, Sequence

from pathspec import GitIgnoreSpec

from source2prompt.config import INCLUDE_CEILING_BYTES
from source2prompt.scanner.classifier import is_selectable_text_node
from source2prompt.scanner.models import FileCategory, FileNode

ALL_TEXT = "all-text"

QUICK_SELECT_KEYS = (ALL_TEXT, *(c.value for c in FileCategory if c is not FileCategory.OTHER))


def select_by_category(files: Iterable[FileNode], key: str) -> list[FileNode]:
    """Return the files matched by a quick-select key.

    ``all-text`` matches every text file; any other key must be a category
    value such as ``python`` or ``react-component``.
    """
    if key == ALL_TEXT:
        return [f for f in files if not f.is_directory and f.is_text]
    category = FileCategory(key)
    return [f for f in files if not f.is_directory and f.category is category]


def select_by_glob(files: Iterable[FileNode], patterns: Sequence[str]) -> list[FileNode]:
    """Return files whose relative path matches any gitignore-style pattern."""
    if not patterns:
        return []
    spec = GitIgnoreSpec.from_lines(patterns)
    return [f for f in files if not f.is_directory and spec.match_file(f.rel_path)]


def selectable_paths(
    files: Iterable[FileNode], include_ceiling: int = INCLUDE_CEILING_BYTES
) -> frozenset[str]:
    return frozenset(f.path for f in files if is_selectable_text_node(f, include_ceiling))


def toggle(selection: frozenset[str], paths: Iterable[str]) -> frozenset[str]:
    """Select every path if any is unselected, otherwise deselect them all."""
    paths = frozenset(paths)
    if paths <= selection:
        return selection - paths
    return selection | paths
