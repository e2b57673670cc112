"""
Тесты HTML-экранирования и безопасных строк.
"""

from markupsafe import Markup

from templater.escape import SafeString, ensure_safe, escape_html, escape_markup, is_safe
from templater.utils import UNDEFINED


def test_escape_html_replaces_all_special_characters():
    assert escape_html("&<>\"'/") == "&amp;&lt;&gt;&quot;&#x27;&#x2F;"


def test_escape_html_leaves_plain_text():
    assert escape_html("plain text 123") == "plain text 123"


def test_ampersand_is_escaped_once():
    assert escape_html("&amp;") == "&amp;amp;"


def test_escape_markup_keeps_slash_and_marks_safe():
    result = escape_markup("</p>")
    assert result == "&lt;/p&gt;"
    assert is_safe(result)


def test_escape_markup_passes_safe_strings_through():
    value = SafeString("<b>")
    assert escape_markup(value) is value


def test_ensure_safe_escapes_only_when_enabled():
    assert ensure_safe("<b>", auto_escape=True) == "&lt;b&gt;"
    assert ensure_safe("<b>", auto_escape=False) == "<b>"


def test_ensure_safe_never_escapes_safe_strings():
    assert ensure_safe(SafeString("<b>"), auto_escape=True) == "<b>"


def test_ensure_safe_stringifies_values():
    assert ensure_safe(None, auto_escape=True) == ""
    assert ensure_safe(UNDEFINED, auto_escape=True) == ""
    assert ensure_safe(True, auto_escape=True) == "true"
    assert ensure_safe(3, auto_escape=True) == "3"


def test_safe_string_is_a_str():
    value = SafeString("x")
    assert isinstance(value, str)
    assert value + "y" == "xy"
    assert not is_safe("x")


def test_safe_string_is_markup():
    assert isinstance(SafeString("x"), Markup)


def test_markup_values_are_not_escaped_again():
    """Тест: любой объект с __html__ выводится без повторного экранирования."""
    assert ensure_safe(Markup("<i>x</i>"), auto_escape=True) == "<i>x</i>"
    assert is_safe(Markup("x"))


def test_escape_markup_accepts_markup():
    result = escape_markup(Markup("<b>"))
    assert isinstance(result, SafeString)
    assert result == "<b>"
