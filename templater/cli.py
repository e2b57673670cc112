from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from .config import EngineOptions, load_options
from .environment import Environment
from .errors import TemplaterError
from .loaders import FileSystemLoader
from .version import tool_version

_yaml = YAML(typ="safe")


class CliUsageError(TemplaterError):
    """Некорректный ввод командной строки (неверный --var, нечитаемый файл контекста)."""
    pass


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="templater",
        description="Рендеринг шаблонов из командной строки",
        add_help=True,
    )
    p.add_argument("-v", "--version", action="version", version=f"%(prog)s {tool_version()}")
    sub = p.add_subparsers(dest="cmd", required=True)

    sp_render = sub.add_parser("render", help="отрендерить файл шаблона в stdout")
    sp_render.add_argument("template", help="файл шаблона или - для чтения шаблона из stdin")
    sp_render.add_argument(
        "-c", "--context",
        metavar="FILE",
        help="YAML- или JSON-файл с переменными шаблона",
    )
    sp_render.add_argument(
        "--var",
        action="append",
        metavar="KEY=VALUE",
        help="переменная шаблона (можно указать несколько; приоритетнее --context)",
    )
    sp_render.add_argument(
        "-o", "--output",
        metavar="FILE",
        help="записать результат в файл вместо stdout",
    )
    sp_render.add_argument(
        "--template-dir",
        action="append",
        metavar="DIR",
        help="директория поиска для include и extends (можно указать несколько)",
    )
    sp_render.add_argument("--config", metavar="FILE", help="YAML-файл настроек движка")
    sp_render.add_argument("--no-autoescape", action="store_true", help="отключить автоматическое HTML-экранирование")
    sp_render.add_argument("--strict", action="store_true", help="ошибка на неопределённых переменных и неизвестных фильтрах")
    sp_render.add_argument("--verbose", action="store_true", help="отладочное логирование в stderr")

    return p


def _parse_vars(specs: list[str] | None) -> Dict[str, str]:
    """Парсит пары KEY=VALUE."""
    result: Dict[str, str] = {}
    if not specs:
        return result

    for spec in specs:
        if "=" not in spec:
            raise CliUsageError(f"Invalid variable '{spec}'. Expected 'KEY=VALUE'")
        key, value = spec.split("=", 1)
        key = key.strip()
        if not key:
            raise CliUsageError(f"Invalid variable '{spec}': empty key")
        result[key] = value

    return result


def _load_context(path: Optional[str]) -> Dict[str, Any]:
    """Читает переменные шаблона из YAML/JSON-файла со словарём."""
    if not path:
        return {}

    p = Path(path)
    try:
        data = _yaml.load(p.read_text(encoding="utf-8")) or {}
    except OSError as e:
        raise CliUsageError(f"Cannot read context file {p}: {e}") from e
    except YAMLError as e:
        raise CliUsageError(f"Invalid context file {p}: {e}") from e

    if not isinstance(data, dict):
        raise CliUsageError(f"Context file {p} must contain a mapping")
    return data


def _options(ns: argparse.Namespace) -> EngineOptions:
    options = load_options(ns.config) if ns.config else EngineOptions()

    overrides: Dict[str, Any] = {}
    if ns.no_autoescape:
        overrides["auto_escape"] = False
    if ns.strict:
        overrides["strict"] = True
    if ns.template_dir:
        overrides["template_dirs"] = [*options.template_dirs, *ns.template_dir]
    return options.with_overrides(**overrides)


def _render(ns: argparse.Namespace) -> str:
    options = _options(ns)
    context = _load_context(ns.context)
    context.update(_parse_vars(ns.var))

    if ns.template == "-":
        environment = Environment(options)
        return environment.render(sys.stdin.read(), context)

    template_path = Path(ns.template).resolve()
    # Соседние шаблоны доступны после настроенных директорий
    loader = FileSystemLoader([*options.template_dirs, template_path.parent])
    environment = Environment(options, loader=loader)
    return environment.render_file(str(template_path), context)


def main(argv: list[str] | None = None) -> int:
    ns = _build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if getattr(ns, "verbose", False) else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        if ns.cmd == "render":
            text = _render(ns)
            if ns.output:
                Path(ns.output).write_text(text, encoding="utf-8")
            else:
                sys.stdout.write(text)
            return 0

    except TemplaterError as e:
        sys.stderr.write(str(e).rstrip() + "\n")
        return 2

    return 2


if __name__ == "__main__":
    raise SystemExit(main())
