"""
Структурный парсер шаблонизатора.

Превращает поток сегментов TemplateLexer в AST: текст, подстановки переменных
с цепочками фильтров и конструкции if / for / include / block / extends.
Выражения внутри тегов передаются в ExpressionParser.
"""

from __future__ import annotations

import logging
import re
from typing import Any, List, Optional, Sequence, Tuple

from .errors import TemplateSyntaxError
from .expressions.lexer import ExpressionLexer
from .expressions.model import Expression
from .expressions.parser import ExpressionParser, parse_number
from .lexer import Delimiters, TemplateLexer
from .nodes import (
    BlockNode,
    ElifBlock,
    ExtendsNode,
    FilterCall,
    ForNode,
    IfNode,
    IncludeNode,
    TemplateAST,
    TemplateNode,
    TextNode,
    VariableNode,
)
from .tokens import Token, TokenType

logger = logging.getLogger(__name__)

# Ведущее слово тега и остаток его содержимого
_TAG_RE = re.compile(r'^(\w*)\s*(.*)$', re.DOTALL)

_FOR_RE = re.compile(r'^for\s+(\w+)(?:\s*,\s*(\w+))?\s+in\s+(.+)$', re.DOTALL)

_NAME_RE = re.compile(r'^[A-Za-z_]\w*$')

# Терминаторы, допустимые только внутри своей конструкции
_STRAY_TAGS = {
    "endif": "if",
    "elif": "if",
    "else": "if",
    "endfor": "for",
    "endblock": "block",
}


class TemplateParser:
    """
    Рекурсивный парсер шаблонов.

    Проходит токены сегментов один раз слева направо. Каждая конструкция
    разбирает своё тело и потребляет свой терминатор, поэтому вложенные
    конструкции не видят терминаторов охватывающей.
    """

    def __init__(self, tokens: List[Token]):
        self.tokens = tokens
        self.position = 0
        self.depth = 0
        self.expression_lexer = ExpressionLexer()
        self.expression_parser = ExpressionParser()
        self._seen_extends = False

    def parse(self) -> TemplateAST:
        """
        Разбирает весь поток токенов в AST.

        Returns:
            Список корневых узлов

        Raises:
            TemplateSyntaxError: При любой ошибке структуры или выражения
        """
        ast: List[TemplateNode] = []

        while not self._is_at_end():
            ast.append(self._parse_node())

        logger.debug(f"Parsed {len(ast)} top-level nodes")
        return ast

    def _parse_node(self) -> TemplateNode:
        current = self._current_token()

        if current.type == TokenType.TEXT:
            self._advance()
            return TextNode(text=current.value)
        elif current.type == TokenType.VARIABLE:
            self._advance()
            return self._parse_variable(current)
        elif current.type == TokenType.TAG:
            self._advance()
            return self._parse_tag(current)
        else:
            raise TemplateSyntaxError(f"Unexpected token {current.type.name}", current)

    # ------------------------------------------------------------------
    # Переменные
    # ------------------------------------------------------------------

    def _parse_variable(self, token: Token) -> VariableNode:
        """
        Разбирает {{ name | filter | filter(arg, ...) }}.

        Содержимое делится по вертикальным чертам вне строк и скобок; первая
        часть является путём переменной, остальные фильтрами.
        """
        if not token.value:
            raise TemplateSyntaxError("Empty variable", token)

        tokens = self.expression_lexer.tokenize(token.value, token.line, token.column)
        parts = _split_on_pipes(tokens[:-1])

        name = self._parse_variable_name(parts[0], token)
        filters = tuple(self._parse_filter(part, token) for part in parts[1:])

        return VariableNode(name=name, filters=filters)

    def _parse_variable_name(self, tokens: List[Token], token: Token) -> str:
        """Восстанавливает путь через точки; допустимы только идентификаторы и целые сегменты."""
        if not tokens:
            raise TemplateSyntaxError("Missing variable name", token)

        first = tokens[0]
        if first.type != TokenType.IDENTIFIER:
            raise TemplateSyntaxError(f"Invalid variable name '{token.value}'", first)

        segments = [first.value]
        index = 1
        while index < len(tokens):
            dot = tokens[index]
            if dot.type != TokenType.DOT or index + 1 >= len(tokens):
                raise TemplateSyntaxError(f"Invalid variable name '{token.value}'", dot)

            segment = tokens[index + 1]
            if segment.type in (TokenType.IDENTIFIER, TokenType.KEYWORD):
                segments.append(segment.value)
            elif segment.type == TokenType.NUMBER and all(p.isdigit() for p in segment.value.split(".")):
                segments.extend(segment.value.split("."))
            else:
                raise TemplateSyntaxError(f"Invalid variable name '{token.value}'", segment)
            index += 2

        return ".".join(segments)

    def _parse_filter(self, tokens: List[Token], token: Token) -> FilterCall:
        """Разбирает один фильтр: name или name(literal, ...)."""
        if not tokens or tokens[0].type != TokenType.IDENTIFIER:
            where = tokens[0] if tokens else token
            raise TemplateSyntaxError("Expected filter name after '|'", where)

        name = tokens[0].value
        if len(tokens) == 1:
            return FilterCall(name=name)

        if tokens[1].type != TokenType.LPAREN or tokens[-1].type != TokenType.RPAREN:
            raise TemplateSyntaxError(f"Invalid filter syntax for '{name}'", tokens[1])

        args = _parse_literal_args(tokens[2:-1])
        return FilterCall(name=name, args=tuple(args))

    # ------------------------------------------------------------------
    # Теги
    # ------------------------------------------------------------------

    def _parse_tag(self, token: Token) -> TemplateNode:
        keyword, arguments = _split_tag(token)

        if not keyword:
            raise TemplateSyntaxError("Empty tag" if not token.value else f"Invalid tag '{token.value}'", token)

        if keyword == "if":
            return self._parse_if(token, arguments)
        elif keyword == "for":
            return self._parse_for(token)
        elif keyword == "include":
            return IncludeNode(template=self._parse_template_name(token, keyword, arguments))
        elif keyword == "block":
            return self._parse_block(token, arguments)
        elif keyword == "extends":
            return self._parse_extends(token, arguments)
        elif keyword in _STRAY_TAGS:
            raise TemplateSyntaxError(f"'{keyword}' without matching '{_STRAY_TAGS[keyword]}'", token)
        else:
            raise TemplateSyntaxError(f"Unknown tag '{keyword}'", token)

    def _parse_if(self, token: Token, arguments: str) -> IfNode:
        """
        Разбирает {% if %} с необязательными ветками elif и веткой else.

        Состояния: consequent -> elif(k) -> alternate -> done. Переходы
        происходят только на тегах этой глубины вложенности.
        """
        condition = self._parse_condition(token, "if", arguments)
        terminators = ("elif", "else", "endif")

        body, end = self._parse_body(token, "if", terminators)
        elif_blocks: List[ElifBlock] = []
        else_body: Optional[Tuple[TemplateNode, ...]] = None

        while True:
            keyword, end_arguments = _split_tag(end)

            if keyword == "endif":
                _expect_no_arguments(end, keyword, end_arguments)
                break

            if else_body is not None:
                raise TemplateSyntaxError(f"'{keyword}' after 'else'", end)

            if keyword == "elif":
                elif_condition = self._parse_condition(end, "elif", end_arguments)
                elif_body, end = self._parse_body(token, "if", terminators)
                elif_blocks.append(ElifBlock(condition=elif_condition, body=tuple(elif_body)))
            else:
                _expect_no_arguments(end, keyword, end_arguments)
                alternate, end = self._parse_body(token, "if", terminators)
                else_body = tuple(alternate)

        return IfNode(
            condition=condition,
            body=tuple(body),
            elif_blocks=tuple(elif_blocks),
            else_body=else_body,
        )

    def _parse_for(self, token: Token) -> ForNode:
        """Разбирает {% for item[, index] in expr %} ... {% endfor %}."""
        match = _FOR_RE.match(token.value)
        if not match:
            raise TemplateSyntaxError(
                f"Invalid for loop syntax '{token.value}', expected 'for item in items'", token
            )

        target, index_var, iterable_text = match.groups()
        iterable = self._parse_expression(iterable_text, token)

        body, end = self._parse_body(token, "for", ("endfor",))
        _expect_no_arguments(end, "endfor", _split_tag(end)[1])

        return ForNode(target=target, index_var=index_var, iterable=iterable, body=tuple(body))

    def _parse_block(self, token: Token, arguments: str) -> BlockNode:
        """Разбирает {% block name %} ... {% endblock [name] %}."""
        if not _NAME_RE.match(arguments):
            raise TemplateSyntaxError(f"Invalid block name '{arguments}'", token)

        body, end = self._parse_body(token, "block", ("endblock",))

        end_name = _split_tag(end)[1]
        if end_name and end_name != arguments:
            raise TemplateSyntaxError(
                f"Mismatched endblock: expected '{arguments}', got '{end_name}'", end
            )

        return BlockNode(name=arguments, body=tuple(body))

    def _parse_extends(self, token: Token, arguments: str) -> ExtendsNode:
        if self.depth > 0:
            raise TemplateSyntaxError("'extends' must appear at the top level", token)
        if self._seen_extends:
            raise TemplateSyntaxError("Template extends more than one parent", token)

        self._seen_extends = True
        return ExtendsNode(parent=self._parse_template_name(token, "extends", arguments))

    def _parse_template_name(self, token: Token, keyword: str, arguments: str) -> str:
        """Извлекает единственное имя шаблона в кавычках для include/extends."""
        tokens = self.expression_lexer.tokenize(arguments, token.line, token.column)
        if len(tokens) != 2 or tokens[0].type != TokenType.STRING:
            raise TemplateSyntaxError(f"'{keyword}' expects a quoted template name", token)
        return tokens[0].value

    # ------------------------------------------------------------------
    # Вспомогательные методы
    # ------------------------------------------------------------------

    def _parse_body(self, opening: Token, construct: str,
                    terminators: Sequence[str]) -> Tuple[List[TemplateNode], Token]:
        """
        Разбирает узлы до одного из тегов-терминаторов на этой глубине.

        Returns:
            Узлы тела и (потреблённый) токен терминатора

        Raises:
            TemplateSyntaxError: Если ввод закончился раньше терминатора
        """
        body: List[TemplateNode] = []
        self.depth += 1
        try:
            while not self._is_at_end():
                current = self._current_token()
                if current.type == TokenType.TAG and _split_tag(current)[0] in terminators:
                    self._advance()
                    return body, current
                body.append(self._parse_node())
        finally:
            self.depth -= 1

        raise TemplateSyntaxError(
            f"Unclosed '{construct}' block, expected {{% {terminators[-1]} %}}", opening
        )

    def _parse_condition(self, token: Token, keyword: str, text: str) -> Expression:
        if not text:
            raise TemplateSyntaxError(f"Missing condition in '{keyword}'", token)
        return self._parse_expression(text, token)

    def _parse_expression(self, text: str, token: Token) -> Expression:
        return self.expression_parser.parse(text, token.line, token.column)

    def _current_token(self) -> Token:
        if self.position >= len(self.tokens):
            return self.tokens[-1] if self.tokens else Token(TokenType.EOF, "", 0, 1, 1)
        return self.tokens[self.position]

    def _is_at_end(self) -> bool:
        return self._current_token().type == TokenType.EOF

    def _advance(self) -> Token:
        current = self._current_token()
        if not self._is_at_end():
            self.position += 1
        return current


# ----------------------------------------------------------------------
# Вспомогательные функции модуля
# ----------------------------------------------------------------------

def _split_tag(token: Token) -> Tuple[str, str]:
    """Делит содержимое тега на ведущее ключевое слово и остаток."""
    match = _TAG_RE.match(token.value)
    if match is None:
        return "", token.value
    return match.group(1), match.group(2).strip()


def _expect_no_arguments(token: Token, keyword: str, arguments: str) -> None:
    if arguments:
        raise TemplateSyntaxError(f"Unexpected arguments after '{keyword}'", token)


def _split_on_pipes(tokens: List[Token]) -> List[List[Token]]:
    """Делит токены выражения по '|' вне скобок."""
    parts: List[List[Token]] = [[]]
    depth = 0
    for token in tokens:
        if token.type == TokenType.LPAREN:
            depth += 1
        elif token.type == TokenType.RPAREN:
            depth -= 1
        elif token.type == TokenType.PIPE and depth == 0:
            parts.append([])
            continue
        parts[-1].append(token)
    return parts


def _parse_literal_args(tokens: List[Token]) -> List[Any]:
    """
    Преобразует литеральные токены через запятую в значения Python.

    Числа становятся int/float (допустим ведущий '-'), строки остаются
    строками, true/false/null отображаются в True/False/None, а голый
    идентификатор берётся как собственное имя.
    """
    args: List[Any] = []
    index = 0

    while index < len(tokens):
        token = tokens[index]
        negative = False

        if token.type == TokenType.OPERATOR and token.value == "-":
            negative = True
            index += 1
            if index >= len(tokens) or tokens[index].type != TokenType.NUMBER:
                raise TemplateSyntaxError("Expected number after '-' in filter arguments", token)
            token = tokens[index]

        if token.type == TokenType.NUMBER:
            value: Any = parse_number(token.value)
            args.append(-value if negative else value)
        elif token.type == TokenType.STRING:
            args.append(token.value)
        elif token.type == TokenType.KEYWORD and token.value in ("true", "false", "null"):
            args.append({"true": True, "false": False, "null": None}[token.value])
        elif token.type == TokenType.IDENTIFIER:
            args.append(token.value)
        else:
            raise TemplateSyntaxError(f"Invalid filter argument '{token.value}'", token)

        index += 1
        if index < len(tokens):
            if tokens[index].type != TokenType.COMMA or index + 1 >= len(tokens):
                raise TemplateSyntaxError("Expected ',' between filter arguments", tokens[index])
            index += 1

    return args


def parse_template(text: str, delimiters: Optional[Delimiters] = None) -> TemplateAST:
    """
    Удобная функция: токенизирует и разбирает исходник шаблона.

    Raises:
        TemplateSyntaxError: При любой синтаксической ошибке
    """
    tokens = TemplateLexer(text, delimiters).tokenize()
    return TemplateParser(tokens).parse()


__all__ = ["TemplateParser", "parse_template"]
