"""Tests for layered ignore rules."""

from pathlib import Path

from pathspec import GitIgnoreSpec

from source2prompt.scanner.ignore import (
    IgnoreRule,
    build_default_rule,
    load_ignore_rule,
    match_outcome,
    parse_ignore_lines,
    should_ignore,
)


def rule(base_rel: str, *patterns: str) -> IgnoreRule:
    return IgnoreRule(base_rel=base_rel, spec=GitIgnoreSpec.from_lines(patterns))


class TestParseIgnoreLines:
    """Tests for parse_ignore_lines function."""

    def test_skips_blank_and_comment_lines(self):
        content = "# comment\n\n*.log\n   \nbuild/\n"
        assert parse_ignore_lines(content) == ["*.log", "build/"]

    def test_strips_trailing_whitespace(self):
        assert parse_ignore_lines("*.tmp   \r\n") == ["*.tmp"]


class TestMatchOutcome:
    """Tests for match_outcome function."""

    def test_no_match(self):
        spec = GitIgnoreSpec.from_lines(["*.log"])
        assert match_outcome(spec, "main.py") is None

    def test_ignore_match(self):
        spec = GitIgnoreSpec.from_lines(["*.log"])
        assert match_outcome(spec, "debug.log") is True

    def test_last_pattern_wins(self):
        spec = GitIgnoreSpec.from_lines(["*.log", "!keep.log"])
        assert match_outcome(spec, "keep.log") is False
        assert match_outcome(spec, "other.log") is True


class TestDefaultRule:
    """Tests for the built-in ignore list."""

    def test_ignores_common_directories(self):
        rules = [build_default_rule()]
        assert should_ignore("node_modules", True, rules) is True
        assert should_ignore(".git", True, rules) is True
        assert should_ignore("packages/web/dist", True, rules) is True

    def test_directory_patterns_do_not_match_files(self):
        rules = [build_default_rule()]
        assert should_ignore("build", False, rules) is False

    def test_regular_paths_pass(self):
        rules = [build_default_rule()]
        assert should_ignore("src/index.ts", False, rules) is False
        assert should_ignore("src", True, rules) is False

    def test_extra_patterns(self):
        rules = [build_default_rule(["*.snap"])]
        assert should_ignore("tests/a.snap", False, rules) is True


class TestShouldIgnore:
    """Tests for should_ignore function."""

    def test_no_rules(self):
        assert should_ignore("anything.txt", False, []) is False

    def test_root_rule(self):
        rules = [rule("", "*.log")]
        assert should_ignore("a/ignored.log", False, rules) is True
        assert should_ignore("a/keep.ts", False, rules) is False

    def test_nested_rule_is_relative_to_its_directory(self):
        rules = [rule("b", ".locally-ignored-dir/")]
        assert should_ignore("b/.locally-ignored-dir", True, rules) is True
        assert should_ignore(".locally-ignored-dir", True, rules) is False

    def test_nested_rule_ignored_outside_its_base(self):
        rules = [rule("c", "*.tmp")]
        assert should_ignore("d/x.tmp", False, rules) is False
        assert should_ignore("cc/x.tmp", False, rules) is False

    def test_deeper_negation_reincludes(self):
        rules = [rule("", "*.tmp"), rule("c", "!keep.tmp")]
        assert should_ignore("c/keep.tmp", False, rules) is False
        assert should_ignore("c/other.tmp", False, rules) is True
        assert should_ignore("d/keep.tmp", False, rules) is True

    def test_deeper_rule_reignores(self):
        rules = [rule("", "*.tmp", "!*.keep.tmp"), rule("c", "*.tmp")]
        assert should_ignore("a.keep.tmp", False, rules) is False
        assert should_ignore("c/a.keep.tmp", False, rules) is True

    def test_rule_without_verdict_keeps_previous(self):
        rules = [rule("", "*.log"), rule("a", "*.tmp")]
        assert should_ignore("a/x.log", False, rules) is True


class TestLoadIgnoreRule:
    """Tests for load_ignore_rule function."""

    def test_missing_file(self, tmp_path: Path):
        assert load_ignore_rule(tmp_path, "") is None

    def test_empty_file(self, tmp_path: Path):
        (tmp_path / ".gitignore").write_text("")
        assert load_ignore_rule(tmp_path, "") is None

    def test_comment_only_file(self, tmp_path: Path):
        (tmp_path / ".gitignore").write_text("# nothing here\n\n")
        assert load_ignore_rule(tmp_path, "") is None

    def test_ignore_file_is_directory(self, tmp_path: Path):
        (tmp_path / ".gitignore").mkdir()
        assert load_ignore_rule(tmp_path, "") is None

    def test_loads_patterns_with_base(self, tmp_path: Path):
        (tmp_path / ".gitignore").write_text("*.log\n")
        loaded = load_ignore_rule(tmp_path, "sub")
        assert loaded is not None
        assert loaded.base_rel == "sub"
        assert should_ignore("sub/x.log", False, [loaded]) is True

    def test_custom_filename(self, tmp_path: Path):
        (tmp_path / ".promptignore").write_text("secret.txt\n")
        loaded = load_ignore_rule(tmp_path, "", filename=".promptignore")
        assert loaded is not None
        assert should_ignore("secret.txt", False, [loaded]) is True
