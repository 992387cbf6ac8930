"""Data models for scanned project trees."""

from dataclasses import dataclass, field
from enum import Enum


class FileCategory(Enum):
    """Language family a file belongs to, used for quick selection."""

    JAVASCRIPT = "javascript"
    REACT_COMPONENT = "react-component"
    TYPESCRIPT = "typescript"
    JSON = "json"
    MARKDOWN = "markdown"
    PYTHON = "python"
    GO = "go"
    JAVA = "java"
    RUBY = "ruby"
    PHP = "php"
    RUST = "rust"
    OTHER = "other"


@dataclass
class FileNode:
    """One filesystem entry in a scanned tree.

    Directories own their ``children``; files have ``children=None``.
    ``num_lines`` is -1 when the file was too large to read during the scan.
    """

    path: str
    rel_path: str
    name: str
    is_directory: bool
    size_bytes: int = 0
    depth: int = 0
    extension: str = ""
    is_text: bool = False
    category: FileCategory = FileCategory.OTHER
    num_lines: int = 0
    tokens: int | None = None
    children: list["FileNode"] | None = None

    def iter_nodes(self):
        """Yield this node and every descendant, depth first."""
        yield self
        for child in self.children or ():
            yield from child.iter_nodes()


@dataclass(frozen=True)
class ScanSnapshot:
    """Result of one complete walk: the owning tree plus a flat file index."""

    root: FileNode
    flat_files: tuple[FileNode, ...] = field(default_factory=tuple)

    def find(self, rel_path: str) -> FileNode | None:
        for node in self.root.iter_nodes():
            if node.rel_path == rel_path:
                return node
        return None

    def text_files(self) -> list[FileNode]:
        return [f for f in self.flat_files if f.is_text]

    @property
    def total_bytes(self) -> int:
        return sum(f.size_bytes for f in self.flat_files)


@dataclass(frozen=True)
class ScanProgress:
    """Progress event emitted after each file is classified."""

    processed_count: int
    current_relative_path: str | None = None
