"""
Компилятор: превращает AST шаблона в замыкание рендеринга.

Каждый узел один раз компилируется в функцию (context, state) -> str;
функция шаблона склеивает функции узлов по порядку. Данные одного вызова
рендеринга (переопределения блоков цепочки extends) живут в RenderState,
создаваемом на каждый вызов, поэтому скомпилированные шаблоны не хранят изменяемого состояния.
"""

from __future__ import annotations

import logging
from collections import ChainMap
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from .config import EngineOptions
from .errors import (
    FilterError,
    TemplateRuntimeError,
    TemplaterError,
    UndefinedVariableError,
    UnknownFilterError,
)
from .escape import ensure_safe
from .expressions.evaluator import Evaluator, get_iterable, is_truthy
from .filters import FilterRegistry, HelperRegistry
from .nodes import (
    BlockNode,
    ExtendsNode,
    FilterCall,
    ForNode,
    IfNode,
    IncludeNode,
    TemplateNode,
    TextNode,
    VariableNode,
)
from .utils import UNDEFINED

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenderState:
    """
    Данные одного вызова рендеринга.

    Attributes:
        blocks: Переопределения блоков по имени, самый внутренний потомок побеждает
        chain: Имена шаблонов текущей цепочки extends
    """
    blocks: Mapping[str, "NodeRenderer"] = field(default_factory=dict)
    chain: Tuple[str, ...] = ()


NodeRenderer = Callable[[Mapping[str, Any], RenderState], str]

# Разрешает имя шаблона в скомпилированную форму (include / extends)
LoaderHook = Callable[[str], "CompiledTemplate"]


@dataclass(frozen=True)
class LoopInfo:
    """Переменная `loop` внутри тела for."""
    index: int
    length: int

    @property
    def index0(self) -> int:
        return self.index

    @property
    def index1(self) -> int:
        return self.index + 1

    @property
    def first(self) -> bool:
        return self.index == 0

    @property
    def last(self) -> bool:
        return self.index == self.length - 1


@dataclass(frozen=True)
class CompiledTemplate:
    """
    Скомпилированный шаблон для многократного использования.

    Можно рендерить конкурентно и любое число раз.
    """
    source: str
    nodes: Tuple[TemplateNode, ...]
    render_function: NodeRenderer = field(repr=False)
    name: Optional[str] = None

    def render(self, context: Optional[Mapping[str, Any]] = None, **kwargs: Any) -> str:
        """
        Рендерит шаблон.

        Args:
            context: Переменные, доступные шаблону
            **kwargs: Дополнительные переменные, приоритетнее context

        Returns:
            Отрендеренный текст
        """
        variables: Dict[str, Any] = dict(context or {})
        variables.update(kwargs)
        return self.render_with_state(variables, self.initial_state())

    def render_with_state(self, context: Mapping[str, Any], state: RenderState) -> str:
        return self.render_function(context, state)

    def initial_state(self) -> RenderState:
        return RenderState(chain=(self.name,) if self.name else ())


class Compiler:
    """
    Компилятор шаблонов.

    Фильтры и хелперы ищутся во время рендеринга, поэтому фильтры, добавленные
    в окружение после компиляции, видны закешированным шаблонам.
    """

    def __init__(self, options: Optional[EngineOptions] = None,
                 filters: Optional[FilterRegistry] = None,
                 helpers: Optional[HelperRegistry] = None,
                 loader_hook: Optional[LoaderHook] = None):
        self.options = options or EngineOptions()
        self.filters = filters if filters is not None else FilterRegistry()
        self.helpers = helpers if helpers is not None else HelperRegistry()
        self.loader_hook = loader_hook
        self.evaluator = Evaluator(self.helpers)

    def compile(self, nodes: Sequence[TemplateNode], source: str = "",
                name: Optional[str] = None) -> CompiledTemplate:
        """
        Компилирует AST.

        Args:
            nodes: Корневые узлы от TemplateParser
            source: Исходный текст, из которого разобраны узлы
            name: Имя шаблона (только для загруженных шаблонов)

        Returns:
            Скомпилированный шаблон
        """
        node_tuple = tuple(nodes)
        parent = next((n.parent for n in node_tuple if isinstance(n, ExtendsNode)), None)

        if parent is None:
            render_function = self._compile_nodes(node_tuple)
        elif self.loader_hook is not None:
            render_function = self._compile_child(parent, node_tuple)
        else:
            render_function = self._compile_unresolved_child(parent, node_tuple)

        logger.debug(f"Compiled template{f' {name!r}' if name else ''} with {len(node_tuple)} top-level nodes")
        return CompiledTemplate(source=source, nodes=node_tuple, render_function=render_function, name=name)

    # ------------------------------------------------------------------
    # Диспетчеризация узлов
    # ------------------------------------------------------------------

    def _compile_nodes(self, nodes: Sequence[TemplateNode]) -> NodeRenderer:
        renderers = [self._compile_node(node) for node in nodes]

        if len(renderers) == 1:
            return renderers[0]

        def render(context: Mapping[str, Any], state: RenderState) -> str:
            return "".join(renderer(context, state) for renderer in renderers)

        return render

    def _compile_node(self, node: TemplateNode) -> NodeRenderer:
        if isinstance(node, TextNode):
            return self._compile_text(node)
        elif isinstance(node, VariableNode):
            return self._compile_variable(node)
        elif isinstance(node, IfNode):
            return self._compile_if(node)
        elif isinstance(node, ForNode):
            return self._compile_for(node)
        elif isinstance(node, IncludeNode):
            return self._compile_include(node)
        elif isinstance(node, BlockNode):
            return self._compile_block(node)
        elif isinstance(node, ExtendsNode):
            return _render_nothing
        else:
            raise TypeError(f"No compiler for node type: {type(node).__name__}")

    # ------------------------------------------------------------------
    # Узлы
    # ------------------------------------------------------------------

    def _compile_text(self, node: TextNode) -> NodeRenderer:
        text = node.text

        def render(context: Mapping[str, Any], state: RenderState) -> str:
            return text

        return render

    def _compile_variable(self, node: VariableNode) -> NodeRenderer:
        name = node.name
        filters = node.filters
        auto_escape = self.options.auto_escape

        def render(context: Mapping[str, Any], state: RenderState) -> str:
            value = self._lookup_variable(name, context)
            for call in filters:
                value = self._apply_filter(call, value)
            return ensure_safe(value, auto_escape)

        return render

    def _compile_if(self, node: IfNode) -> NodeRenderer:
        branches: List[Tuple[Any, NodeRenderer]] = [(node.condition, self._compile_nodes(node.body))]
        for block in node.elif_blocks:
            branches.append((block.condition, self._compile_nodes(block.body)))
        alternate = self._compile_nodes(node.else_body) if node.else_body is not None else None
        evaluate = self.evaluator.evaluate

        def render(context: Mapping[str, Any], state: RenderState) -> str:
            for condition, body in branches:
                if is_truthy(evaluate(condition, context)):
                    return body(context, state)
            if alternate is not None:
                return alternate(context, state)
            return ""

        return render

    def _compile_for(self, node: ForNode) -> NodeRenderer:
        body = self._compile_nodes(node.body)
        target, index_var, iterable = node.target, node.index_var, node.iterable
        evaluate = self.evaluator.evaluate

        def render(context: Mapping[str, Any], state: RenderState) -> str:
            value = evaluate(iterable, context)
            # Элемент словаря: пара [key, value]
            items = get_iterable(value)
            length = len(items)

            parts = []
            for index, item in enumerate(items):
                bindings: Dict[str, Any] = {"loop": LoopInfo(index=index, length=length), target: item}
                if index_var is not None:
                    bindings[index_var] = index
                parts.append(body(ChainMap(bindings, context), state))

            return "".join(parts)

        return render

    def _compile_include(self, node: IncludeNode) -> NodeRenderer:
        template_name = node.template

        def render(context: Mapping[str, Any], state: RenderState) -> str:
            if self.loader_hook is None:
                self._check_loader(f"include '{template_name}'")
                return ""
            included = self.loader_hook(template_name)
            return included.render_with_state(context, included.initial_state())

        return render

    def _compile_block(self, node: BlockNode) -> NodeRenderer:
        block_name = node.name
        own_body = self._compile_nodes(node.body)

        def render(context: Mapping[str, Any], state: RenderState) -> str:
            body = state.blocks.get(block_name, own_body)
            return body(context, state)

        return render

    def _compile_child(self, parent: str, nodes: Tuple[TemplateNode, ...]) -> NodeRenderer:
        """
        Рендерит родительский шаблон с блоками этого шаблона в качестве переопределений.

        Содержимое вне блоков не выводится.
        """
        own_blocks = {
            block.name: self._compile_nodes(block.body)
            for block in _collect_blocks(nodes)
        }

        def render(context: Mapping[str, Any], state: RenderState) -> str:
            if parent in state.chain:
                chain = " -> ".join(state.chain + (parent,))
                raise TemplateRuntimeError(f"Circular template inheritance: {chain}")

            parent_template = self.loader_hook(parent)
            # Блоки, уже лежащие в state, пришли от более глубокого потомка и побеждают
            blocks = {**own_blocks, **state.blocks}
            parent_state = RenderState(blocks=blocks, chain=state.chain + (parent,))
            return parent_template.render_with_state(context, parent_state)

        return render

    def _compile_unresolved_child(self, parent: str, nodes: Tuple[TemplateNode, ...]) -> NodeRenderer:
        """Без загрузчика шаблон рендерится как написан (в строгом режиме ошибка)."""
        body = self._compile_nodes(nodes)

        def render(context: Mapping[str, Any], state: RenderState) -> str:
            self._check_loader(f"extend '{parent}'")
            return body(context, state)

        return render

    # ------------------------------------------------------------------
    # Вспомогательные методы
    # ------------------------------------------------------------------

    def _lookup_variable(self, name: str, context: Mapping[str, Any]) -> Any:
        value = self.evaluator.resolve(context, name)
        if value is UNDEFINED and self.options.strict:
            raise UndefinedVariableError(name)
        return value

    def _apply_filter(self, call: FilterCall, value: Any) -> Any:
        function = self.filters.get(call.name)
        if function is None:
            if self.options.strict:
                raise UnknownFilterError(call.name)
            logger.warning(f"Unknown filter '{call.name}' ignored")
            return value

        try:
            return function(value, *call.args)
        except TemplaterError:
            raise
        except Exception as e:
            raise FilterError(call.name, e) from e

    def _check_loader(self, action: str) -> None:
        """Нет загрузчика: ошибка в строгом режиме, иначе предупреждение."""
        message = f"Cannot {action}: no template loader configured"
        if self.options.strict:
            raise TemplateRuntimeError(message)
        logger.warning(message)


def _render_nothing(context: Mapping[str, Any], state: RenderState) -> str:
    return ""


def _collect_blocks(nodes: Sequence[TemplateNode]) -> List[BlockNode]:
    """Все узлы block поддерева, начиная с внешних."""
    found: List[BlockNode] = []
    for node in nodes:
        if isinstance(node, BlockNode):
            found.append(node)
            found.extend(_collect_blocks(node.body))
        elif isinstance(node, IfNode):
            found.extend(_collect_blocks(node.body))
            for block in node.elif_blocks:
                found.extend(_collect_blocks(block.body))
            if node.else_body is not None:
                found.extend(_collect_blocks(node.else_body))
        elif isinstance(node, ForNode):
            found.extend(_collect_blocks(node.body))
    return found


__all__ = ["Compiler", "CompiledTemplate", "RenderState", "LoopInfo", "LoaderHook"]
