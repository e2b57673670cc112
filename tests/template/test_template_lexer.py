"""
Тесты лексера шаблонов.
"""

from templater.lexer import Delimiters, TemplateLexer, tokenize_template
from templater.tokens import TokenType


def _kinds(tokens):
    return [t.type for t in tokens]


class TestTemplateLexer:

    def test_plain_text(self):
        tokens = tokenize_template("Hello, world!")
        assert _kinds(tokens) == [TokenType.TEXT, TokenType.EOF]
        assert tokens[0].value == "Hello, world!"

    def test_empty_source(self):
        tokens = tokenize_template("")
        assert _kinds(tokens) == [TokenType.EOF]

    def test_variable_and_tag_segments(self):
        tokens = tokenize_template("A {{ name }} B {% if x %}C{% endif %}")
        assert _kinds(tokens) == [
            TokenType.TEXT, TokenType.VARIABLE, TokenType.TEXT,
            TokenType.TAG, TokenType.TEXT, TokenType.TAG, TokenType.EOF,
        ]
        assert tokens[1].value == "name"
        assert tokens[3].value == "if x"
        assert tokens[5].value == "endif"

    def test_segment_content_is_trimmed(self):
        tokens = tokenize_template("{{   user.name   }}")
        assert tokens[0].value == "user.name"

    def test_text_is_verbatim_with_newlines(self):
        tokens = tokenize_template("line1\n  line2\n{{ x }}")
        assert tokens[0].value == "line1\n  line2\n"

    def test_no_empty_text_tokens(self):
        tokens = tokenize_template("{{ a }}{{ b }}")
        assert _kinds(tokens) == [TokenType.VARIABLE, TokenType.VARIABLE, TokenType.EOF]

    def test_unclosed_segment_consumes_rest(self):
        tokens = tokenize_template("before {{ name and more")
        assert _kinds(tokens) == [TokenType.TEXT, TokenType.VARIABLE, TokenType.EOF]
        assert tokens[1].value == "name and more"

    def test_line_and_column_tracking(self):
        tokens = tokenize_template("ab\ncd {{ x }}\n{% if y %}")
        variable = tokens[1]
        assert (variable.line, variable.column) == (2, 4)
        tag = tokens[3]
        assert (tag.line, tag.column) == (3, 1)

    def test_position_is_absolute_offset(self):
        tokens = tokenize_template("abc{{ x }}")
        assert tokens[1].position == 3

    def test_custom_delimiters(self):
        lexer = TemplateLexer("Hi [[ name ]] {{ literal }}", Delimiters("[[", "]]"))
        tokens = lexer.tokenize()
        assert _kinds(tokens) == [TokenType.TEXT, TokenType.VARIABLE, TokenType.TEXT, TokenType.EOF]
        assert tokens[1].value == "name"
        assert tokens[2].value == " {{ literal }}"

    def test_tag_marker_checked_before_variable_marker(self):
        # "{%" побеждает, даже если маркер переменной настроен как "{"
        tokens = TemplateLexer("{% if a %}", Delimiters("{", "}")).tokenize()
        assert tokens[0].type == TokenType.TAG
