"""
Тесты {% include %} и наследования через {% block %} / {% extends %}.
"""

import pytest

from templater.errors import TemplateNotFoundError, TemplateRuntimeError

from tests.infrastructure import make_env, render, render_strict


class TestInclude:

    def test_include_uses_current_context(self):
        env = make_env({"greeting.html": "Hello, {{ name }}!"})
        assert env.render('<p>{% include "greeting.html" %}</p>', {"name": "Ann"}) == "<p>Hello, Ann!</p>"

    def test_include_sees_loop_variables(self):
        env = make_env({"item.html": "[{{ item }}:{{ loop.index }}]"})
        template = '{% for item in items %}{% include "item.html" %}{% endfor %}'
        assert env.render(template, {"items": ["a", "b"]}) == "[a:0][b:1]"

    def test_nested_includes(self):
        env = make_env({"outer.html": 'O({% include "inner.html" %})', "inner.html": "I"})
        assert env.render('{% include "outer.html" %}') == "O(I)"

    def test_missing_template_propagates(self):
        env = make_env({})
        with pytest.raises(TemplateNotFoundError, match="missing.html"):
            env.render('{% include "missing.html" %}')

    def test_included_output_is_not_escaped_again(self):
        env = make_env({"part.html": "<b>{{ x }}</b>"})
        assert env.render('{% include "part.html" %}', {"x": "<"}) == "<b>&lt;</b>"


class TestBlocks:

    def test_block_without_parent_renders_body(self):
        assert render("{% block title %}Default{% endblock %}") == "Default"

    def test_child_overrides_parent_blocks(self):
        env = make_env({
            "base.html": "<h1>{% block title %}Base{% endblock %}</h1><div>{% block body %}B{% endblock %}</div>",
        })
        child = '{% extends "base.html" %}{% block title %}Child{% endblock %}'
        assert env.render(child) == "<h1>Child</h1><div>B</div>"

    def test_child_content_outside_blocks_is_ignored(self):
        env = make_env({"base.html": "[{% block a %}{% endblock %}]"})
        child = '{% extends "base.html" %}ignored{% block a %}A{% endblock %}also ignored'
        assert env.render(child) == "[A]"

    def test_blocks_use_render_context(self):
        env = make_env({"base.html": "{% block greet %}{% endblock %}"})
        child = '{% extends "base.html" %}{% block greet %}Hi {{ name }}{% endblock %}'
        assert env.render(child, {"name": "Ann"}) == "Hi Ann"

    def test_two_level_inheritance(self):
        env = make_env({
            "base.html": "{% block title %}base{% endblock %}|{% block body %}base{% endblock %}|{% block foot %}base{% endblock %}",
            "layout.html": '{% extends "base.html" %}{% block body %}layout{% endblock %}{% block foot %}layout{% endblock %}',
        })
        child = '{% extends "layout.html" %}{% block foot %}child{% endblock %}'
        assert env.render(child) == "base|layout|child"

    def test_nested_blocks_can_be_overridden(self):
        env = make_env({
            "base.html": "{% block outer %}<{% block inner %}i{% endblock %}>{% endblock %}",
        })
        child = '{% extends "base.html" %}{% block inner %}I{% endblock %}'
        assert env.render(child) == "<I>"

    def test_rendering_has_no_shared_side_effects(self):
        env = make_env({"base.html": "{% block a %}base{% endblock %}"})
        child = '{% extends "base.html" %}{% block a %}child{% endblock %}'
        assert env.render(child) == "child"
        assert env.render_file("base.html") == "base"

    def test_render_file_with_inheritance(self):
        env = make_env({
            "base.html": "{% block a %}base{% endblock %}",
            "page.html": '{% extends "base.html" %}{% block a %}page {{ n }}{% endblock %}',
        })
        assert env.render_file("page.html", {"n": 1}) == "page 1"

    def test_circular_extends_raises(self):
        env = make_env({
            "a.html": '{% extends "b.html" %}',
            "b.html": '{% extends "a.html" %}',
        })
        with pytest.raises(TemplateRuntimeError, match="Circular template inheritance"):
            env.render_file("a.html")

    def test_self_extends_from_string_raises(self):
        env = make_env({"a.html": '{% extends "a.html" %}'})
        with pytest.raises(TemplateRuntimeError, match="Circular"):
            env.render('{% extends "a.html" %}')

    def test_extends_without_loader(self):
        template = '{% extends "base.html" %}[{% block a %}A{% endblock %}]'
        assert render(template) == "[A]"
        with pytest.raises(TemplateRuntimeError, match="no template loader"):
            render_strict(template)
