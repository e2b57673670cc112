"""
Тесты настроек движка и загрузки настроек из YAML.
"""

from pathlib import Path

import pytest

from templater import EngineOptions, load_options
from templater.config import cache_enabled_from_env
from templater.errors import ConfigLoadError

from tests.infrastructure import write


class TestEngineOptions:

    def test_defaults(self):
        options = EngineOptions()
        assert (options.variable_start, options.variable_end) == ("{{", "}}")
        assert options.auto_escape is True
        assert options.strict is False
        assert options.cache is True
        assert options.filters == {} and options.helpers == {}

    def test_delimiters_property(self):
        delimiters = EngineOptions(variable_start="[[", variable_end="]]").delimiters
        assert (delimiters.start, delimiters.end) == ("[[", "]]")

    def test_with_overrides_returns_copy(self):
        base = EngineOptions()
        changed = base.with_overrides(strict=True)
        assert changed.strict and not base.strict
        assert base.with_overrides() is base

    def test_with_overrides_validates(self):
        with pytest.raises(ValueError):
            EngineOptions().with_overrides(cache_size=-5)


class TestLoadOptions:

    def test_reads_yaml(self, tmp_path):
        path = write(tmp_path / "templater.yaml", (
            "auto_escape: false\n"
            "strict: true\n"
            "cache_size: 10\n"
            "variable_start: '[['\n"
            "variable_end: ']]'\n"
        ))
        options = load_options(path)
        assert options.auto_escape is False
        assert options.strict is True
        assert options.cache_size == 10
        assert options.variable_start == "[["

    def test_file_overrides_base(self, tmp_path):
        path = write(tmp_path / "o.yaml", "strict: true\n")
        base = EngineOptions(auto_escape=False)
        options = load_options(path, base)
        assert options.strict and not options.auto_escape

    def test_empty_file_gives_defaults(self, tmp_path):
        path = write(tmp_path / "empty.yaml", "")
        assert load_options(path) == EngineOptions()

    def test_relative_template_dirs_resolve_against_file(self, tmp_path):
        path = write(tmp_path / "conf" / "o.yaml", "template_dirs:\n  - templates\n  - /abs/dir\n")
        options = load_options(path)
        assert options.template_dirs == [tmp_path / "conf" / "templates", Path("/abs/dir")]

    @pytest.mark.parametrize("text, message", [
        ("colour: red\n", "unknown option 'colour'"),
        ("strict: 'yes please'\n", "must be bool"),
        ("cache_size: true\n", "must be int"),
        ("cache_size: 0\n", "positive"),
        ("template_dirs: [1, 2]\n", "list of strings"),
        ("- a\n- b\n", "must be a mapping"),
        ("strict: [unclosed\n", "Invalid YAML"),
    ])
    def test_invalid_files(self, tmp_path, text, message):
        path = write(tmp_path / "bad.yaml", text)
        with pytest.raises(ConfigLoadError, match=message):
            load_options(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigLoadError, match="Cannot read options file"):
            load_options(tmp_path / "nope.yaml")

    def test_config_error_is_value_error(self, tmp_path):
        path = write(tmp_path / "bad.yaml", "nope: 1\n")
        with pytest.raises(ValueError):
            load_options(path)


class TestCacheEnvironmentVariable:

    def test_unset(self):
        assert cache_enabled_from_env() is None

    @pytest.mark.parametrize("value", ["0", "false", "OFF", "no", ""])
    def test_disabling_values(self, monkeypatch, value):
        monkeypatch.setenv("TEMPLATER_CACHE", value)
        assert cache_enabled_from_env() is False

    @pytest.mark.parametrize("value", ["1", "true", "yes"])
    def test_enabling_values(self, monkeypatch, value):
        monkeypatch.setenv("TEMPLATER_CACHE", value)
        assert cache_enabled_from_env() is True
