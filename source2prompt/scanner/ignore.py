"""Hierarchical ignore rules built from per-directory exclusion files.

Each directory that carries its own exclusion file contributes one
:class:`IgnoreRule` scoped to that directory. When a path is tested, every
rule on the stack (root first, in descent order) gets a chance to match and
the last rule that produces a verdict wins, so a deeper ``!pattern`` can
re-include something an ancestor excluded.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from pathspec import GitIgnoreSpec

from source2prompt.config import IGNORE_FILENAME

logger = logging.getLogger(__name__)

DEFAULT_IGNORES = (
    "node_modules/",
    ".git/",
    ".hg/",
    ".svn/",
    ".idea/",
    ".vscode/",
    "dist/",
    "build/",
    "out/",
    ".next/",
    ".turbo/",
    ".vercel/",
)


@dataclass(frozen=True)
class IgnoreRule:
    """Compiled patterns that apply to ``base_rel`` and everything below it.

    An empty ``base_rel`` means the rule applies from the scan root.
    """

    base_rel: str
    spec: GitIgnoreSpec


def build_default_rule(extra_patterns: Sequence[str] = ()) -> IgnoreRule:
    patterns = [*DEFAULT_IGNORES, *extra_patterns]
    return IgnoreRule(base_rel="", spec=GitIgnoreSpec.from_lines(patterns))


def parse_ignore_lines(content: str) -> list[str]:
    lines = (line.rstrip() for line in content.splitlines())
    return [line for line in lines if line and not line.startswith("#")]


def load_ignore_rule(
    directory: Path,
    base_rel: str,
    filename: str = IGNORE_FILENAME,
) -> IgnoreRule | None:
    """Load the exclusion file of ``directory`` if it has one.

    A missing, unreadable or empty file yields ``None``.
    """
    ignore_path = directory / filename
    try:
        content = ignore_path.read_text(encoding="utf-8", errors="replace")
    except FileNotFoundError:
        return None
    except IsADirectoryError:
        logger.debug("Ignore file is a directory, skipping: %s", ignore_path)
        return None
    except PermissionError:
        logger.warning("Permission denied reading ignore file: %s", ignore_path)
        return None
    except OSError as e:
        logger.error("Error reading ignore file %s: %s", ignore_path, e)
        return None

    patterns = parse_ignore_lines(content)
    if not patterns:
        return None

    logger.debug("Loaded %d ignore patterns from %s", len(patterns), ignore_path)
    return IgnoreRule(base_rel=base_rel, spec=GitIgnoreSpec.from_lines(patterns))


def match_outcome(spec: GitIgnoreSpec, candidate: str) -> bool | None:
    """Test one candidate against a compiled spec.

    Returns True when the last matching pattern ignores the path, False when
    it is an explicit ``!`` negation, and None when nothing matched.
    """
    outcome = None
    for pattern in spec.patterns:
        if pattern.include is None:
            continue
        if pattern.match_file(candidate) is not None:
            outcome = pattern.include
    return outcome


def should_ignore(rel_path: str, is_directory: bool, rules: Sequence[IgnoreRule]) -> bool:
    """Resolve whether ``rel_path`` is excluded by the layered ``rules``."""
    path_for_match = f"{rel_path}/" if is_directory else rel_path
    ignored = False

    for rule in rules:
        if rule.base_rel:
            prefix = f"{rule.base_rel}/"
            if not path_for_match.startswith(prefix):
                continue
            candidate = path_for_match[len(prefix) :]
        else:
            candidate = path_for_match
        if not candidate:
            continue

        outcome = match_outcome(rule.spec, candidate)
        if outcome is not None:
            ignored = outcome

    return ignored
