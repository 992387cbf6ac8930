"""Tests for comment stripping and minification."""

from pathlib import Path

from source2prompt.scanner.models import FileNode
from source2prompt.transform import (
    TransformOptions,
    minify_text,
    strip_code_comments,
    strip_html_comments,
    strip_python_comments,
    transform_file_content,
    transform_text,
)


class TestTransformOptions:
    """Tests for TransformOptions."""

    def test_inactive_by_default(self):
        assert TransformOptions().active is False

    def test_active_when_any_flag_set(self):
        assert TransformOptions(remove_comments=True).active is True
        assert TransformOptions(minify=True).active is True

    def test_fingerprint_distinguishes_options(self):
        fingerprints = {
            TransformOptions(rc, m).fingerprint for rc in (False, True) for m in (False, True)
        }
        assert len(fingerprints) == 4
        assert TransformOptions(remove_comments=True).fingerprint == "rc=1|m=0"


class TestStripCodeComments:
    """Tests for strip_code_comments function."""

    def test_line_and_block_comments(self):
        text = "const a = 1; // note\n/* block\ncomment */const b = 2;\n"
        assert strip_code_comments(text, ".js") == "const a = 1;\nconst b = 2;\n"

    def test_comment_markers_in_strings_kept(self):
        text = "const url = 'http://example.com'; const s = \"/* no */\";\n"
        assert strip_code_comments(text, ".js") == text

    def test_regex_literal_with_quote(self):
        text = 'const re = /["]/;\nconst url = "http://example.com";\n'
        assert strip_code_comments(text, ".js") == text

    def test_rust_lifetime_does_not_open_string(self):
        text = 'fn f(x: &\'a str) {\n    println!("don\'t // stop");\n}\n'
        assert strip_code_comments(text, ".rs") == text

    def test_rust_comment_removed(self):
        assert strip_code_comments("let x = 1; // one\n", ".rs") == "let x = 1;\n"

    def test_preprocessor_lines_kept(self):
        result = strip_code_comments("#include <stdio.h>\n/* c */int x;\n", ".c")
        assert "#include <stdio.h>" in result
        assert "/* c */" not in result
        assert "int x;" in result

    def test_shell_script(self):
        result = strip_code_comments("#!/bin/sh\necho hi # greet\nurl=a#b\n", ".sh")
        assert result.startswith("#!/bin/sh\n")
        assert "echo hi\n" in result
        assert "greet" not in result
        assert "url=a#b" in result

    def test_no_trailing_newline_added(self):
        assert strip_code_comments("puts 1 # c", ".rb") == "puts 1"

    def test_unknown_extension_unchanged(self):
        assert strip_code_comments("// kept", ".nothing") == "// kept"


class TestStripPythonComments:
    """Tests for strip_python_comments function."""

    def test_trailing_comment(self):
        assert strip_python_comments("x = 1  # note\ny = 2\n") == "x = 1\ny = 2\n"

    def test_hash_in_strings_kept(self):
        text = "s = '# keep'\nt = \"#also\"\n"
        assert strip_python_comments(text) == text

    def test_triple_quoted_string_kept(self):
        text = 'doc = """\n# not a comment\n"""\n'
        assert strip_python_comments(text) == text

    def test_shebang_kept(self):
        text = "#!/usr/bin/env python\n# comment\nprint(1)"
        assert strip_python_comments(text) == "#!/usr/bin/env python\n\nprint(1)"

    def test_hash_after_string_with_quote(self):
        text = "s = \"it's\"  # note\nurl = 'http://x#frag'\n"
        assert strip_python_comments(text) == "s = \"it's\"\nurl = 'http://x#frag'\n"

    def test_untokenizable_source_unchanged(self):
        text = "x = (1,  # open\n"
        assert strip_python_comments(text) == text


class TestStripHtmlComments:
    """Tests for strip_html_comments function."""

    def test_multiline_comment(self):
        assert strip_html_comments("a<!-- x\ny -->b") == "ab"


class TestMinifyText:
    """Tests for minify_text function."""

    def test_javascript(self):
        text = "// header\nconst a = 1;\n\n   return a;   \n"
        assert minify_text(text, ".js") == "const a = 1;\nreturn a;"

    def test_css(self):
        text = "a {\n  color: red; /* note */\n}\n"
        assert minify_text(text, ".css") == "a{color:red;}"

    def test_json(self):
        assert minify_text('{ "a": [1, 2],\n "b": "é" }', ".json") == '{"a":[1,2],"b":"é"}'

    def test_invalid_json_unchanged(self):
        assert minify_text("{ not json", ".json") == "{ not json"

    def test_markdown_drops_html_comments(self):
        assert minify_text("# Title  \n<!-- hidden -->\ntext", ".md") == "# Title\n\ntext"

    def test_other_text_trims_line_ends(self):
        assert minify_text("a  \r\nb\t\n", ".txt") == "a\nb\n"


class TestTransformText:
    """Tests for transform_text function."""

    def test_no_options_is_identity(self):
        text = "x = 1  # c\n"
        assert transform_text(text, ".py", TransformOptions()) == text

    def test_remove_comments_by_extension(self):
        options = TransformOptions(remove_comments=True)
        assert transform_text("a(); // c", ".ts", options) == "a();"
        assert transform_text("x = 1 # c", ".py", options) == "x = 1"
        assert transform_text("puts 1 # c", ".rb", options) == "puts 1"
        assert transform_text("<!-- c -->hi", ".md", options) == "hi"

    def test_unknown_extension_untouched(self):
        options = TransformOptions(remove_comments=True)
        assert transform_text("# not a comment here", ".txt", options) == "# not a comment here"

    def test_remove_comments_and_minify(self):
        options = TransformOptions(remove_comments=True, minify=True)
        assert transform_text("/* a */\nfoo();\n// b\nbar();\n", ".js", options) == "foo();\nbar();"


class TestTransformFileContent:
    """Tests for transform_file_content function."""

    def _node(self, path: Path, is_text: bool = True) -> FileNode:
        return FileNode(
            path=str(path), rel_path=path.name, name=path.name, is_directory=False,
            extension=path.suffix, is_text=is_text,
        )

    def test_reads_and_transforms(self, tmp_path: Path):
        path = tmp_path / "m.py"
        path.write_text("x = 1  # c\n")
        result = transform_file_content(self._node(path), TransformOptions(remove_comments=True))
        assert result == "x = 1\n"

    def test_binary_node(self, tmp_path: Path):
        path = tmp_path / "img.png"
        path.write_bytes(b"\x89PNG")
        assert transform_file_content(self._node(path, is_text=False), TransformOptions()) == ""

    def test_missing_file(self, tmp_path: Path):
        node = self._node(tmp_path / "gone.py")
        assert transform_file_content(node, TransformOptions()) == ""
