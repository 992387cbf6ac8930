"""File classification: textness, category and size tiers."""

import re
from pathlib import Path

from source2prompt.config import INCLUDE_CEILING_BYTES, READ_CEILING_BYTES
from source2prompt.scanner.models import FileCategory, FileNode

TEXT_EXTENSIONS = frozenset(
    {
        ".js", ".jsx", ".ts", ".tsx", ".mjs", ".cjs", ".json",
        ".md", ".mdx", ".markdown", ".rst", ".txt",
        ".html", ".htm", ".css", ".scss", ".sass", ".less",
        ".yml", ".yaml", ".xml",
        ".py", ".rb", ".go", ".java", ".php", ".rs",
        ".c", ".h", ".cpp", ".hpp", ".cc", ".hh",
        ".sh", ".bash", ".zsh", ".fish",
        ".env", ".toml", ".ini", ".cfg", ".conf",
        ".sql", ".graphql", ".gql", ".prisma",
        ".svelte", ".vue", ".astro",
        ".swift", ".kt", ".kts", ".scala", ".clj", ".cljs",
        ".ex", ".exs", ".erl", ".hrl", ".hs", ".lua", ".r",
        ".pl", ".pm", ".tf", ".tfvars", ".dockerfile", ".containerfile",
        ".cs", ".dart", ".bat", ".cmd", ".ps1",
        ".gradle", ".properties", ".cmake",
    }
)

# Conventionally text files that carry no extension.
TEXT_FILENAMES = frozenset(
    {
        "Makefile", "Dockerfile", "Containerfile",
        "LICENSE", "README", "CHANGELOG", "CONTRIBUTING", "AUTHORS",
        "COPYING", "INSTALL", "TODO", "NEWS", "NOTICE",
        "Rakefile", "Gemfile", "Podfile", "Brewfile", "Procfile",
        "Vagrantfile", "Justfile", "Taskfile",
        ".gitignore", ".gitattributes", ".gitmodules", ".editorconfig",
        ".prettierrc", ".prettierignore", ".eslintrc", ".eslintignore",
        ".babelrc", ".npmrc", ".nvmrc", ".dockerignore", ".helmignore",
        ".npmignore",
    }
)

CATEGORY_BY_EXTENSION: dict[str, FileCategory] = {
    ".js": FileCategory.JAVASCRIPT,
    ".mjs": FileCategory.JAVASCRIPT,
    ".cjs": FileCategory.JAVASCRIPT,
    ".jsx": FileCategory.REACT_COMPONENT,
    ".tsx": FileCategory.REACT_COMPONENT,
    ".ts": FileCategory.TYPESCRIPT,
    ".json": FileCategory.JSON,
    ".md": FileCategory.MARKDOWN,
    ".mdx": FileCategory.MARKDOWN,
    ".markdown": FileCategory.MARKDOWN,
    ".py": FileCategory.PYTHON,
    ".go": FileCategory.GO,
    ".java": FileCategory.JAVA,
    ".rb": FileCategory.RUBY,
    ".php": FileCategory.PHP,
    ".rs": FileCategory.RUST,
}

LANGUAGE_BY_EXTENSION: dict[str, str] = {
    ".ts": "ts",
    ".tsx": "ts",
    ".js": "js",
    ".jsx": "js",
    ".mjs": "js",
    ".cjs": "js",
    ".json": "json",
    ".md": "md",
    ".markdown": "md",
    ".mdx": "md",
    ".py": "py",
    ".java": "java",
    ".go": "go",
    ".rb": "rb",
    ".php": "php",
    ".rs": "rs",
    ".html": "html",
    ".htm": "html",
    ".css": "css",
    ".scss": "css",
    ".sass": "css",
    ".less": "css",
    ".yml": "yaml",
    ".yaml": "yaml",
    ".xml": "xml",
}

_LINE_BREAK = re.compile(r"\r?\n")


def parse_extension(filename: str) -> str:
    """Return the lower-cased extension including its dot, or ``""``.

    Dotfiles such as ``.gitignore`` have no extension.
    """
    dot_index = filename.rfind(".")
    if dot_index <= 0 or dot_index == len(filename) - 1:
        return ""
    return filename[dot_index:].lower()


def is_text_file(extension: str, filename: str) -> bool:
    return extension.lower() in TEXT_EXTENSIONS or filename in TEXT_FILENAMES


def get_file_category(extension: str) -> FileCategory:
    return CATEGORY_BY_EXTENSION.get(extension.lower(), FileCategory.OTHER)


def language_from_extension(extension: str) -> str:
    return LANGUAGE_BY_EXTENSION.get(extension.lower(), "txt")


def count_lines(text: str) -> int:
    if not text:
        return 0
    return len(_LINE_BREAK.split(text))


def is_large_text_node(node: FileNode, read_ceiling: int = READ_CEILING_BYTES) -> bool:
    """True for text files whose content must be read as a bounded prefix."""
    return not node.is_directory and node.is_text and node.size_bytes > read_ceiling


def is_selectable_text_node(
    node: FileNode, include_ceiling: int = INCLUDE_CEILING_BYTES
) -> bool:
    return not node.is_directory and node.is_text and node.size_bytes <= include_ceiling


def read_file_head(path: str | Path, max_bytes: int) -> str:
    """Read at most ``max_bytes`` from the start of a file as UTF-8.

    A multi-byte sequence cut by the limit is replaced rather than raising.
    """
    if max_bytes <= 0:
        return ""
    with open(path, "rb") as handle:
        data = handle.read(max_bytes)
    return data.decode("utf-8", errors="replace")
