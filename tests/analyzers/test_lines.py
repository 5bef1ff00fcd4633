"""Tests for logical line counting."""

from contract_scope.analyzers.lines import count_logical_lines


class TestCountLogicalLines:
    def test_reference_example(self):
        """Comment line and blank line excluded; inline block comment line counts once."""
        text = "// comment\nfn foo() { /* block */ let x = 1; }\n\n"
        assert count_logical_lines(text) == 1

    def test_empty_text(self):
        assert count_logical_lines("") == 0

    def test_whitespace_only(self):
        assert count_logical_lines("   \n\t\n") == 0

    def test_multiline_block_comment_interior_excluded(self):
        text = "/*\n * doc\n * more\n */\nlet a = 1;\n"
        assert count_logical_lines(text) == 1

    def test_code_after_block_comment_close_counts(self):
        text = "/* start\nstill comment */ let a = 1;\n"
        assert count_logical_lines(text) == 1

    def test_code_before_block_comment_open_counts(self):
        text = "let a = 1; /* start\nend */\n"
        assert count_logical_lines(text) == 1

    def test_trailing_line_comment(self):
        assert count_logical_lines("let a = 1; // note\n") == 1

    def test_block_comment_wholly_on_line(self):
        assert count_logical_lines("/* only a comment */\n") == 0

    def test_two_block_comments_on_one_line(self):
        assert count_logical_lines("/* a */ x /* b */\n") == 1

    def test_line_comment_inside_block_is_ignored(self):
        text = "/* // not a line comment\n*/\nfn f() {}\n"
        assert count_logical_lines(text) == 1

    def test_crlf_line_endings(self):
        assert count_logical_lines("let a = 1;\r\n\r\nlet b = 2;\r\n") == 2
