from pathlib import Path

import pytest

from templater import Environment

from tests.infrastructure.file_utils import write_templates


@pytest.fixture(autouse=True)
def _no_cache_env(monkeypatch):
    # Переключатель кеша не должен просачиваться из окружения разработчика
    monkeypatch.delenv("TEMPLATER_CACHE", raising=False)


@pytest.fixture
def env() -> Environment:
    return Environment()


@pytest.fixture
def strict_env() -> Environment:
    return Environment(strict=True)


@pytest.fixture
def tmpproj(tmp_path: Path) -> Path:
    """Директория шаблонов: макет, наследующая его страница и фрагмент."""
    return write_templates(tmp_path / "templates", {
        "base.html": (
            "<title>{% block title %}Site{% endblock %}</title>\n"
            "{% block content %}{% endblock %}\n"
        ),
        "page.html": (
            '{% extends "base.html" %}\n'
            "{% block title %}{{ title }}{% endblock %}\n"
            "{% block content %}{% include \"partials/greeting.html\" %}{% endblock %}\n"
        ),
        "partials/greeting.html": "Hello, {{ name }}!",
    })
