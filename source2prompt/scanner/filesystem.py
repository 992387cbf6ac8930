"""Filesystem traversal producing a snapshot of a project tree."""

import asyncio
import logging
import os
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path

from source2prompt.config import IGNORE_FILENAME, READ_CEILING_BYTES, ScannerConfig
from source2prompt.scanner.classifier import (
    count_lines,
    get_file_category,
    is_text_file,
    parse_extension,
)
from source2prompt.scanner.gate import ConcurrencyGate
from source2prompt.scanner.ignore import (
    IgnoreRule,
    build_default_rule,
    load_ignore_rule,
    should_ignore,
)
from source2prompt.scanner.models import FileNode, ScanProgress, ScanSnapshot
from source2prompt.tokens import count_tokens, estimate_tokens_from_bytes

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ScanProgress], None]


@dataclass
class DirectoryEntry:
    name: str
    path: str
    is_dir: bool


class DirectoryWalker:
    """Walks a project tree concurrently, bounded by a shared gate.

    Every directory listing and every per-file stat/read holds one gate
    permit. Recursion into subdirectories happens outside the permit so deep
    trees cannot exhaust the gate while waiting on their own children.
    """

    def __init__(
        self,
        gate: ConcurrencyGate | None = None,
        *,
        read_ceiling: int = READ_CEILING_BYTES,
        ignore_filename: str = IGNORE_FILENAME,
        extra_ignores: Sequence[str] = (),
        on_progress: ProgressCallback | None = None,
        count: Callable[[str], int] = count_tokens,
    ):
        self.gate = gate or ConcurrencyGate()
        self.read_ceiling = read_ceiling
        self.ignore_filename = ignore_filename
        self.extra_ignores = tuple(extra_ignores)
        self.on_progress = on_progress
        self.count = count
        self._processed = 0

    async def walk(self, root_dir: str | Path) -> ScanSnapshot:
        source_root = Path(root_dir).expanduser().resolve()
        root = FileNode(
            path=str(source_root),
            rel_path=".",
            name=source_root.name,
            is_directory=True,
            children=[],
        )
        flat_files: list[FileNode] = []
        self._processed = 0

        rules = [build_default_rule(self.extra_ignores)]
        await self._walk_recursive(source_root, root, "", 0, rules, flat_files)

        _sort_tree(root)
        flat_files.sort(key=lambda node: node.rel_path)
        return ScanSnapshot(root=root, flat_files=tuple(flat_files))

    async def _walk_recursive(
        self,
        current_dir: Path,
        parent: FileNode,
        relative_dir: str,
        depth: int,
        rules: list[IgnoreRule],
        flat_files: list[FileNode],
    ) -> None:
        async with self.gate:
            entries, local_rule = await asyncio.to_thread(
                self._read_directory, current_dir, relative_dir
            )

        # Scoped to this directory's subtree; siblings keep the parent stack.
        child_rules = [*rules, local_rule] if local_rule else rules

        results = await asyncio.gather(
            *(
                self._process_entry(entry, relative_dir, depth, child_rules, flat_files)
                for entry in entries
            )
        )
        parent.children = [node for node in results if node is not None]

    async def _process_entry(
        self,
        entry: DirectoryEntry,
        relative_dir: str,
        depth: int,
        rules: list[IgnoreRule],
        flat_files: list[FileNode],
    ) -> FileNode | None:
        rel_path = f"{relative_dir}/{entry.name}" if relative_dir else entry.name
        if should_ignore(rel_path, entry.is_dir, rules):
            logger.debug("Ignored: %s", rel_path)
            return None

        if entry.is_dir:
            node = FileNode(
                path=entry.path,
                rel_path=rel_path,
                name=entry.name,
                is_directory=True,
                depth=depth + 1,
                children=[],
            )
            await self._walk_recursive(
                Path(entry.path), node, rel_path, depth + 1, rules, flat_files
            )
            return node

        async with self.gate:
            node = await asyncio.to_thread(self._classify_file, entry, rel_path, depth + 1)

        flat_files.append(node)
        self._processed += 1
        self._report(ScanProgress(self._processed, rel_path))
        return node

    def _read_directory(
        self, directory: Path, relative_dir: str
    ) -> tuple[list[DirectoryEntry], IgnoreRule | None]:
        entries = _list_entries(directory)
        local_rule = load_ignore_rule(directory, relative_dir, self.ignore_filename)
        return entries, local_rule

    def _classify_file(self, entry: DirectoryEntry, rel_path: str, depth: int) -> FileNode:
        size_bytes = _safe_file_size(entry.path)
        extension = parse_extension(entry.name)
        is_text = is_text_file(extension, entry.name)
        num_lines = -1 if is_text and size_bytes > self.read_ceiling else 0
        tokens = None

        if is_text and size_bytes <= self.read_ceiling:
            content = _read_text(entry.path)
            if content is None:
                is_text = False
            else:
                num_lines = count_lines(content)
                tokens = self._count_tokens(content)

        return FileNode(
            path=entry.path,
            rel_path=rel_path,
            name=entry.name,
            is_directory=False,
            size_bytes=size_bytes,
            depth=depth,
            extension=extension,
            is_text=is_text,
            category=get_file_category(extension),
            num_lines=num_lines,
            tokens=tokens,
        )

    def _count_tokens(self, content: str) -> int:
        try:
            return self.count(content)
        except Exception as e:
            logger.debug("Token counting failed, estimating from size: %s", e)
            return estimate_tokens_from_bytes(len(content.encode("utf-8")))

    def _report(self, event: ScanProgress) -> None:
        if self.on_progress is None:
            return
        try:
            self.on_progress(event)
        except Exception:
            logger.warning("Progress callback failed for %s", event.current_relative_path, exc_info=True)


async def scan_project(
    root_dir: str | Path,
    *,
    config: ScannerConfig | None = None,
    gate: ConcurrencyGate | None = None,
    on_progress: ProgressCallback | None = None,
) -> ScanSnapshot:
    config = config or ScannerConfig()
    walker = DirectoryWalker(
        gate or ConcurrencyGate(config.max_concurrent_ops),
        read_ceiling=config.read_ceiling_bytes,
        ignore_filename=config.ignore_filename,
        on_progress=on_progress,
    )
    return await walker.walk(root_dir)


def walk_directory(
    root_dir: str | Path,
    *,
    config: ScannerConfig | None = None,
    on_progress: ProgressCallback | None = None,
) -> ScanSnapshot:
    """Synchronous wrapper around :func:`scan_project`."""
    return asyncio.run(scan_project(root_dir, config=config, on_progress=on_progress))


def _list_entries(directory: Path) -> list[DirectoryEntry]:
    entries: list[DirectoryEntry] = []
    try:
        with os.scandir(directory) as it:
            for entry in sorted(it, key=lambda e: e.name):
                parsed = _parse_entry(entry)
                if parsed:
                    entries.append(parsed)
    except PermissionError:
        logger.warning("Permission denied listing directory: %s", directory)
    except OSError as e:
        logger.error("Error listing directory %s: %s", directory, e)
    return entries


def _parse_entry(entry: os.DirEntry) -> DirectoryEntry | None:
    try:
        if entry.is_symlink():
            return None
        if entry.is_dir(follow_symlinks=False):
            return DirectoryEntry(entry.name, entry.path, is_dir=True)
        if entry.is_file(follow_symlinks=False):
            return DirectoryEntry(entry.name, entry.path, is_dir=False)
    except OSError as e:
        logger.error("Error processing %s: %s", entry.path, e)
    return None


def _safe_file_size(path: str) -> int:
    try:
        return os.stat(path, follow_symlinks=False).st_size
    except PermissionError:
        logger.warning("Permission denied: %s", path)
    except FileNotFoundError:
        logger.warning("File disappeared during scan: %s", path)
    except OSError as e:
        logger.error("Error reading size of %s: %s", path, e)
    return 0


def _read_text(path: str) -> str | None:
    """Return decoded UTF-8 content, or None when the file is not usable as text."""
    try:
        data = Path(path).read_bytes()
    except PermissionError:
        logger.warning("Permission denied: %s", path)
        return None
    except OSError as e:
        logger.error("Error reading %s: %s", path, e)
        return None

    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        logger.debug("Not valid UTF-8, treating as binary: %s", path)
        return None


def _sort_tree(node: FileNode) -> None:
    if node.children is None:
        return
    node.children.sort(key=lambda child: (not child.is_directory, child.name))
    for child in node.children:
        _sort_tree(child)
