"""Shared fixtures."""

from pathlib import Path

import pytest

from source2prompt.tokens import configure_tokenizer


@pytest.fixture(autouse=True)
def heuristic_tokenizer():
    """Count tokens as ceil(bytes / 4) so results are offline and exact."""
    configure_tokenizer("heuristic")
    yield
    configure_tokenizer("heuristic")


@pytest.fixture
def make_tree(tmp_path: Path):
    """Return a helper that writes ``{rel_path: content}`` under tmp_path."""

    def _make(files: dict) -> Path:
        for rel_path, content in files.items():
            path = tmp_path / rel_path
            path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                path.write_bytes(content)
            else:
                path.write_text(content)
        return tmp_path

    return _make
