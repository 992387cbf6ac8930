"""Comment stripping and light minification of file content.

Comments in source code are found with real tokenizers: Pygments lexers for
most languages and the ``tokenize`` module for Python, so comment markers
inside string, regex or character literals are left alone.
"""

import io
import json
import logging
import re
import tokenize
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from pygments.lexer import Lexer
from pygments.lexers import get_lexer_for_filename
from pygments.token import Comment
from pygments.util import ClassNotFound

from source2prompt.scanner.models import FileNode

logger = logging.getLogger(__name__)

JS_LIKE_EXTENSIONS = frozenset({".js", ".jsx", ".ts", ".tsx", ".mjs", ".cjs"})
CODE_COMMENT_EXTENSIONS = frozenset(
    {".java", ".go", ".rs", ".php", ".c", ".cpp", ".h", ".hpp", ".rb", ".sh", ".bash"}
)
MARKUP_EXTENSIONS = frozenset({".md", ".mdx", ".markdown", ".html", ".htm"})
MARKDOWN_EXTENSIONS = frozenset({".md", ".mdx", ".markdown"})
CSS_EXTENSIONS = frozenset({".css", ".scss", ".sass", ".less"})

# Comment subtypes that carry meaning and must survive stripping.
_KEPT_COMMENTS = (Comment.Preproc, Comment.Hashbang)

_HTML_COMMENT = re.compile(r"<!--.*?-->", re.DOTALL)
_CSS_COMMENT = re.compile(r"/\*.*?\*/", re.DOTALL)
_CSS_SPACE = re.compile(r"\s+")
_CSS_PUNCTUATION = re.compile(r"\s*([{}:;,>])\s*")
_LINE_BREAK = re.compile(r"\r?\n")


@dataclass(frozen=True)
class TransformOptions:
    remove_comments: bool = False
    minify: bool = False

    @property
    def active(self) -> bool:
        return self.remove_comments or self.minify

    @property
    def fingerprint(self) -> str:
        return f"rc={int(self.remove_comments)}|m={int(self.minify)}"


def transform_file_content(node: FileNode, options: TransformOptions) -> str:
    """Read ``node`` and apply the requested transforms.

    Non-text nodes and unreadable files yield an empty string.
    """
    if not node.is_text:
        return ""
    try:
        text = Path(node.path).read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        logger.warning("Could not read %s: %s", node.path, e)
        return ""
    return transform_text(text, node.extension, options)


def transform_text(text: str, extension: str, options: TransformOptions) -> str:
    ext = extension.lower()

    if options.remove_comments:
        if ext in JS_LIKE_EXTENSIONS:
            # Minification below strips comments itself.
            if not options.minify:
                text = strip_code_comments(text, ext)
        elif ext in CODE_COMMENT_EXTENSIONS:
            text = strip_code_comments(text, ext)
        elif ext == ".py":
            text = strip_python_comments(text)
        elif ext in MARKUP_EXTENSIONS:
            text = strip_html_comments(text)

    if options.minify:
        text = minify_text(text, ext)

    return text


def minify_text(text: str, ext: str) -> str:
    if ext in JS_LIKE_EXTENSIONS:
        stripped = strip_code_comments(text, ext)
        return "\n".join(line.strip() for line in _split_lines(stripped) if line.strip())
    if ext in CSS_EXTENSIONS:
        collapsed = _CSS_SPACE.sub(" ", _CSS_COMMENT.sub("", text))
        return _CSS_PUNCTUATION.sub(r"\1", collapsed).strip()
    if ext in (".html", ".htm"):
        return "\n".join(
            line.strip() for line in _split_lines(strip_html_comments(text)) if line.strip()
        )
    if ext == ".json":
        try:
            return json.dumps(json.loads(text), separators=(",", ":"), ensure_ascii=False)
        except ValueError:
            return text
    if ext in MARKDOWN_EXTENSIONS:
        text = strip_html_comments(text)
    return "\n".join(line.rstrip() for line in _split_lines(text))


def strip_html_comments(text: str) -> str:
    return _HTML_COMMENT.sub("", text)


def strip_code_comments(text: str, extension: str) -> str:
    """Drop comment tokens found by the Pygments lexer for ``extension``.

    Preprocessor lines and a leading ``#!`` line are kept. Text without a
    matching lexer is returned unchanged.
    """
    lexer = _lexer_for_extension(extension)
    if lexer is None:
        return text

    shebang, body = _split_shebang(text)
    parts: list[str] = [shebang] if shebang else []
    for tok_type, value in lexer.get_tokens(body):
        if tok_type in Comment and not _is_kept_comment(tok_type):
            _trim_trailing_blanks(parts)
            if value.endswith("\n"):
                parts.append("\n")
            continue
        parts.append(value)

    result = "".join(parts)
    # The lexer appends a final newline to input that lacks one.
    if result.endswith("\n") and not body.endswith("\n"):
        result = result[:-1]
    return result


def strip_python_comments(text: str) -> str:
    """Drop ``#`` comments found by the ``tokenize`` module.

    A leading ``#!`` line is kept. Source that does not tokenize is returned
    unchanged.
    """
    lines = io.StringIO(text).readlines()
    comments: dict[int, int] = {}
    readline = io.StringIO(text).readline
    try:
        for tok_type, value, (row, col), _, _ in tokenize.generate_tokens(readline):
            if tok_type != tokenize.COMMENT:
                continue
            if row == 1 and col == 0 and value.startswith("#!"):
                continue
            comments[row] = col
    except (tokenize.TokenError, SyntaxError) as e:
        logger.debug("Could not tokenize Python source, keeping comments: %s", e)
        return text

    for row, col in comments.items():
        line = lines[row - 1]
        ending = line[len(line.rstrip("\r\n")) :]
        lines[row - 1] = line[:col].rstrip() + ending
    return "".join(lines)


@lru_cache(maxsize=None)
def _lexer_for_extension(extension: str) -> Lexer | None:
    try:
        return get_lexer_for_filename(f"source{extension}", stripnl=False)
    except ClassNotFound:
        logger.debug("No lexer for %s, keeping comments", extension)
        return None


def _is_kept_comment(tok_type) -> bool:
    return any(tok_type in kept for kept in _KEPT_COMMENTS)


def _split_shebang(text: str) -> tuple[str, str]:
    if not text.startswith("#!"):
        return "", text
    newline = text.find("\n")
    if newline == -1:
        return text, ""
    return text[: newline + 1], text[newline + 1 :]


def _trim_trailing_blanks(parts: list[str]) -> None:
    while parts and not parts[-1].strip(" \t"):
        parts.pop()
    if parts:
        parts[-1] = parts[-1].rstrip(" \t")


def _split_lines(text: str) -> list[str]:
    return _LINE_BREAK.split(text)
