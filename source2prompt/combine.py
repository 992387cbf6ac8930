"""Assembly of the combined prompt document from a selection."""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime, timezone

from source2prompt.config import READ_CEILING_BYTES
from source2prompt.scanner.classifier import (
    count_lines,
    is_large_text_node,
    language_from_extension,
    read_file_head,
)
from source2prompt.scanner.models import FileNode, ScanSnapshot
from source2prompt.scanner.progress import format_bytes
from source2prompt.stats.engine import PromptText, selected_text_files
from source2prompt.tokens import count_tokens
from source2prompt.transform import TransformOptions, transform_file_content, transform_text

logger = logging.getLogger(__name__)

HEADER_TITLE = "===== SOURCE2PROMPT v2 ====="


@dataclass(frozen=True)
class CombinedResult:
    text: str
    bytes: int
    tokens: int
    lines: int


def build_project_tree_lines(root: FileNode | None, selection: Iterable[str]) -> list[str]:
    """Render the subtree of ``root`` that leads to selected files."""
    if root is None:
        return []
    selected = frozenset(selection)
    has_selected: dict[str, bool] = {}

    def contains_selection(node: FileNode) -> bool:
        if node.path not in has_selected:
            found = not node.is_directory and node.path in selected
            if not found and node.children:
                found = any(contains_selection(child) for child in node.children)
            has_selected[node.path] = found
        return has_selected[node.path]

    if not contains_selection(root):
        return []

    lines = ["<project_structure>"]

    def print_node(node: FileNode, prefix: str, is_last: bool) -> None:
        is_root = node.rel_path == "."
        connector = "" if is_root else ("└── " if is_last else "├── ")
        child_prefix = "" if is_root else prefix + ("    " if is_last else "│   ")

        if node.is_directory:
            lines.append(f"{prefix}{connector}{node.name}/")
        else:
            size_kb = f"{node.size_bytes / 1024:.2f}"
            lines_label = f"{node.num_lines:,}" if node.num_lines >= 0 else "?"
            lines.append(f"{prefix}{connector}{node.name} (Size: {size_kb}kb; Lines: {lines_label})")

        visible = [child for child in node.children or () if contains_selection(child)]
        for index, child in enumerate(visible):
            print_node(child, child_prefix, index == len(visible) - 1)

    print_node(root, "", True)
    lines.append("</project_structure>")
    return lines


def build_combined_output(
    snapshot: ScanSnapshot,
    selection: Iterable[str],
    prompt: PromptText | None = None,
    options: TransformOptions | None = None,
    *,
    transform: Callable[[FileNode, TransformOptions], str] = transform_file_content,
    count: Callable[[str], int] = count_tokens,
    read_ceiling: int = READ_CEILING_BYTES,
    on_progress: Callable[[int, int, str], None] | None = None,
) -> CombinedResult:
    """Build the full document: meta header, prompt text, tree and files.

    Files above ``read_ceiling`` contribute only a bounded prefix.
    """
    prompt = prompt or PromptText()
    options = options or TransformOptions()
    selection = frozenset(selection)
    files = selected_text_files(snapshot, selection)

    body: list[str] = []
    body_bytes = 0
    body_tokens = 0
    body_lines = 0

    def push(line: str) -> None:
        nonlocal body_bytes, body_tokens, body_lines
        body.append(line)
        body_bytes += len(line.encode("utf-8")) + 1
        body_tokens += count(line)
        body_lines += line.count("\n") + 1

    if prompt.include_preamble and prompt.preamble.strip():
        for line in ("<preamble>", prompt.preamble.strip(), "</preamble>", ""):
            push(line)

    if prompt.include_goal and prompt.goal.strip():
        for line in ("<goal>", prompt.goal.strip(), "</goal>", ""):
            push(line)

    if files:
        tree_lines = build_project_tree_lines(snapshot.root, selection)
        if tree_lines:
            for line in tree_lines:
                push(line)
            push("")

    push("<files>")
    for index, node in enumerate(files, start=1):
        if on_progress is not None:
            on_progress(index, len(files), node.rel_path)
        content = _file_content(node, options, transform, read_ceiling).rstrip()
        content_lines = count_lines(content)
        content_bytes = len(content.encode("utf-8"))
        lang = language_from_extension(node.extension)
        push(
            f'<file path="{node.rel_path}" lang="{lang}" lines="{content_lines}" '
            f'bytes="{content_bytes}" tokens="{count(content)}">'
        )
        push(content)
        push("</file>")
        push("")
    push("</files>")

    # The final join adds one newline fewer than lines pushed.
    if body_bytes > 0:
        body_bytes -= 1

    header = [
        HEADER_TITLE,
        "",
        "[meta]",
        f"project_root: {snapshot.root.path}",
        f"generated_at: {datetime.now(timezone.utc).isoformat()}",
        f"files_selected: {len(files)}",
        f"body_bytes: {body_bytes}",
        f"body_lines: {body_lines}",
        f"body_tokens_est: {body_tokens}",
        (
            f"options: include_preamble={_flag(prompt.include_preamble)}, "
            f"include_goal={_flag(prompt.include_goal)}, "
            f"remove_comments={_flag(options.remove_comments)}, "
            f"minify={_flag(options.minify)}"
        ),
        "[/meta]",
        "",
    ]

    text = "\n".join([*header, *body])
    return CombinedResult(
        text=text,
        bytes=len(text.encode("utf-8")),
        tokens=count(text),
        lines=count_lines(text),
    )


def _file_content(
    node: FileNode,
    options: TransformOptions,
    transform: Callable[[FileNode, TransformOptions], str],
    read_ceiling: int,
) -> str:
    if is_large_text_node(node, read_ceiling):
        try:
            head = read_file_head(node.path, read_ceiling)
        except OSError as e:
            logger.warning("Could not read %s: %s", node.path, e)
            return ""
        note = (
            f"// Large file ({format_bytes(node.size_bytes)}). "
            f"Showing first {format_bytes(read_ceiling)}."
        )
        return f"{note}\n{transform_text(head, node.extension, options)}"

    try:
        return transform(node, options)
    except Exception as e:
        logger.warning("Transform failed for %s, using raw content: %s", node.rel_path, e)
        return transform_file_content(node, TransformOptions())


def _flag(value: bool) -> str:
    return "true" if value else "false"
