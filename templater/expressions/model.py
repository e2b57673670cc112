"""
Дерево выражений для условий тегов, итерируемых значений циклов и вызовов хелперов.

Замкнутый набор неизменяемых классов узлов; каждый узел сообщает свой
ExpressionType, чтобы вычислитель мог исчерпывающе их диспетчеризовать.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Tuple, Union


class ExpressionType(Enum):
    """Типы узлов выражений."""
    LITERAL = "literal"
    VARIABLE = "variable"
    BINARY = "binary"
    UNARY = "unary"
    MEMBER = "member"
    CALL = "call"


@dataclass(frozen=True)
class Expression(ABC):
    """Базовый класс для всех узлов выражений."""

    @abstractmethod
    def get_type(self) -> ExpressionType:
        """Возвращает тип узла."""
        pass

    def __str__(self) -> str:
        return self._to_string()

    @abstractmethod
    def _to_string(self) -> str:
        pass


@dataclass(frozen=True)
class Literal(Expression):
    """Число, строка, true, false или null."""
    value: Any

    def get_type(self) -> ExpressionType:
        return ExpressionType.LITERAL

    def _to_string(self) -> str:
        if self.value is None:
            return "null"
        if isinstance(self.value, bool):
            return "true" if self.value else "false"
        return repr(self.value)


@dataclass(frozen=True)
class Variable(Expression):
    """Ссылка на переменную контекста (или хелпер) по имени."""
    name: str

    def get_type(self) -> ExpressionType:
        return ExpressionType.VARIABLE

    def _to_string(self) -> str:
        return self.name


@dataclass(frozen=True)
class Binary(Expression):
    """
    Бинарная операция: left op right

    Операторы: or, and, ==, !=, <, <=, >, >=, +, -, *, /, %
    """
    operator: str
    left: Expression
    right: Expression

    def get_type(self) -> ExpressionType:
        return ExpressionType.BINARY

    def _to_string(self) -> str:
        return f"({self.left} {self.operator} {self.right})"


@dataclass(frozen=True)
class Unary(Expression):
    """Унарная операция: -x, !x, not x"""
    operator: str
    argument: Expression

    def get_type(self) -> ExpressionType:
        return ExpressionType.UNARY

    def _to_string(self) -> str:
        separator = " " if self.operator == "not" else ""
        return f"{self.operator}{separator}{self.argument}"


@dataclass(frozen=True)
class Member(Expression):
    """Доступ к члену: object.property или object[property]"""
    object: Expression
    property: str

    def get_type(self) -> ExpressionType:
        return ExpressionType.MEMBER

    def _to_string(self) -> str:
        return f"{self.object}.{self.property}"


@dataclass(frozen=True)
class Call(Expression):
    """Вызов: callee(arg, ...)"""
    callee: Expression
    arguments: Tuple[Expression, ...] = ()

    def get_type(self) -> ExpressionType:
        return ExpressionType.CALL

    def _to_string(self) -> str:
        args = ", ".join(str(arg) for arg in self.arguments)
        return f"{self.callee}({args})"


AnyExpression = Union[Literal, Variable, Binary, Unary, Member, Call]

__all__ = [
    "Expression",
    "ExpressionType",
    "Literal",
    "Variable",
    "Binary",
    "Unary",
    "Member",
    "Call",
    "AnyExpression",
]
