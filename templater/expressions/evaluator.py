"""
Вычислитель выражений.

Обходит дерево выражения в контексте рендеринга и вычисляет его значение.
Также определяет общие для движка правила истинности и итерации.
"""

from __future__ import annotations

import operator
from collections.abc import Mapping, Sequence, Set
from typing import Any, Callable, Dict, List, Optional, cast

from .model import (
    Binary,
    Call,
    Expression,
    ExpressionType,
    Literal,
    Member,
    Unary,
    Variable,
)
from ..errors import NotCallableError, TemplateRuntimeError
from ..utils import UNDEFINED, is_nullish, to_string


_COMPARISONS: Dict[str, Callable[[Any, Any], bool]] = {
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}

_ARITHMETIC: Dict[str, Callable[[Any, Any], Any]] = {
    "+": operator.add,
    "-": operator.sub,
    "*": operator.mul,
    "/": operator.truediv,
    "%": operator.mod,
}


# ---------------------------------------------------------------------------
# Правила для значений
# ---------------------------------------------------------------------------

def _is_collection(value: Any) -> bool:
    """Нестроковые последовательности и множества."""
    return isinstance(value, (Sequence, Set)) and not isinstance(value, (str, bytes, bytearray))


def is_truthy(value: Any) -> bool:
    """
    Истинность значения в шаблоне.

    Ложны None, UNDEFINED, False, пустые коллекции и пустые словари.
    Всё остальное истинно, включая 0 и "".
    """
    if value is None or value is UNDEFINED or value is False:
        return False
    if isinstance(value, Mapping) or _is_collection(value):
        return len(value) > 0
    return True


def get_iterable(value: Any) -> List[Any]:
    """
    Приводит значение к списку, который обходит цикл for.

    - последовательность: её элементы
    - словарь: пары [key, value] в порядке вставки
    - неотрицательное целое n: 0 .. n-1
    - всё остальное: пустой список
    """
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        return list(value)
    if isinstance(value, Mapping):
        return [[key, item] for key, item in value.items()]
    if isinstance(value, int) and not isinstance(value, bool) and value >= 0:
        return list(range(value))
    return []


def get_member(obj: Any, name: str) -> Any:
    """
    Читает одно поле значения.

    Словари читаются по ключу, последовательности по целому индексу, прочие
    объекты по атрибуту. Отсутствующие поля, пустые объекты и приватные
    атрибуты дают UNDEFINED.
    """
    if is_nullish(obj):
        return UNDEFINED

    if isinstance(obj, Mapping):
        if name in obj:
            return obj[name]
        return UNDEFINED

    if isinstance(obj, Sequence) and _is_index(name):
        try:
            return obj[int(name)]
        except IndexError:
            return UNDEFINED

    if name.startswith("_"):
        return UNDEFINED

    return getattr(obj, name, UNDEFINED)


def lookup_path(context: Any, name: str) -> Any:
    """
    Разрешает имя с точками ("user.address.city") в контексте.

    Останавливается с UNDEFINED, как только шаг отсутствует или пуст.
    Никогда не бросает исключений.
    """
    value = context
    for part in name.split("."):
        value = get_member(value, part)
        if value is UNDEFINED:
            return UNDEFINED
    return value


def _is_index(name: str) -> bool:
    return name.isdigit()


def _to_number(value: Any) -> Optional[float]:
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def loose_equals(left: Any, right: Any) -> bool:
    """
    Равенство с приведением типов.

    None равно UNDEFINED; числовая строка равна соответствующему числу;
    иначе обычное равенство Python.
    """
    if is_nullish(left) or is_nullish(right):
        return is_nullish(left) and is_nullish(right)

    if (isinstance(left, str) and isinstance(right, (int, float))) or \
            (isinstance(right, str) and isinstance(left, (int, float))):
        left_num, right_num = _to_number(left), _to_number(right)
        return left_num is not None and right_num is not None and left_num == right_num

    return left == right


# ---------------------------------------------------------------------------
# Вычислитель
# ---------------------------------------------------------------------------

class Evaluator:
    """
    Вычислитель выражений.

    Принимает дерево выражения и словарь контекста, возвращает значение.
    Имена, отсутствующие в контексте, ищутся в реестре хелперов.
    """

    def __init__(self, helpers: Optional[Mapping[str, Callable[..., Any]]] = None):
        """
        Args:
            helpers: Функции, вызываемые из выражений по имени
        """
        self.helpers = helpers if helpers is not None else {}

    def evaluate(self, expr: Expression, context: Mapping[str, Any]) -> Any:
        """
        Вычисляет значение выражения.

        Args:
            expr: Корень дерева выражения
            context: Переменные, видимые выражению

        Returns:
            Значение выражения (UNDEFINED для ненайденных имён)

        Raises:
            NotCallableError: Если вызывается невызываемое значение
            TemplateRuntimeError: При неподдерживаемых операндах или делении на ноль
        """
        expr_type = expr.get_type()

        if expr_type == ExpressionType.LITERAL:
            return cast(Literal, expr).value
        elif expr_type == ExpressionType.VARIABLE:
            return self._evaluate_variable(cast(Variable, expr), context)
        elif expr_type == ExpressionType.BINARY:
            return self._evaluate_binary(cast(Binary, expr), context)
        elif expr_type == ExpressionType.UNARY:
            return self._evaluate_unary(cast(Unary, expr), context)
        elif expr_type == ExpressionType.MEMBER:
            return self._evaluate_member(cast(Member, expr), context)
        elif expr_type == ExpressionType.CALL:
            return self._evaluate_call(cast(Call, expr), context)
        else:
            raise TemplateRuntimeError(f"Unknown expression type: {expr_type}")

    def resolve(self, context: Mapping[str, Any], name: str) -> Any:
        """Ищет имя с точками в контексте; корень при отсутствии берётся из хелперов."""
        root, _, rest = name.partition(".")
        value = get_member(context, root)
        if value is UNDEFINED:
            value = self.helpers.get(root, UNDEFINED)
        if not rest or value is UNDEFINED:
            return value
        return lookup_path(value, rest)

    def _evaluate_variable(self, expr: Variable, context: Mapping[str, Any]) -> Any:
        return self.resolve(context, expr.name)

    def _evaluate_binary(self, expr: Binary, context: Mapping[str, Any]) -> Any:
        op = expr.operator

        # Логические операторы вычисляются сокращённо и возвращают операнд
        if op == "and":
            left = self.evaluate(expr.left, context)
            if not is_truthy(left):
                return left
            return self.evaluate(expr.right, context)
        if op == "or":
            left = self.evaluate(expr.left, context)
            if is_truthy(left):
                return left
            return self.evaluate(expr.right, context)

        left = self.evaluate(expr.left, context)
        right = self.evaluate(expr.right, context)

        if op == "==":
            return loose_equals(left, right)
        if op == "!=":
            return not loose_equals(left, right)
        if op in _COMPARISONS:
            return self._compare(op, left, right)
        if op in _ARITHMETIC:
            return self._arithmetic(expr, left, right)

        raise TemplateRuntimeError(f"Unknown operator: {op}")

    def _compare(self, op: str, left: Any, right: Any) -> bool:
        """Естественный порядок; несравнимые операнды дают False."""
        if is_nullish(left) or is_nullish(right):
            return False
        compare = _COMPARISONS[op]
        try:
            return compare(left, right)
        except TypeError:
            left_num, right_num = _to_number(left), _to_number(right)
            if left_num is None or right_num is None:
                return False
            return compare(left_num, right_num)

    def _arithmetic(self, expr: Binary, left: Any, right: Any) -> Any:
        op = expr.operator

        if op == "+" and (isinstance(left, str) or isinstance(right, str)):
            return to_string(left) + to_string(right)

        if is_nullish(left) or is_nullish(right):
            return UNDEFINED

        try:
            return _ARITHMETIC[op](left, right)
        except ZeroDivisionError as e:
            raise TemplateRuntimeError(f"Division by zero in '{expr}'") from e
        except TypeError as e:
            raise TemplateRuntimeError(
                f"Unsupported operands for '{op}': "
                f"{type(left).__name__} and {type(right).__name__}"
            ) from e

    def _evaluate_unary(self, expr: Unary, context: Mapping[str, Any]) -> Any:
        argument = self.evaluate(expr.argument, context)

        if expr.operator in ("!", "not"):
            return not is_truthy(argument)

        if expr.operator == "-":
            if is_nullish(argument):
                return UNDEFINED
            try:
                return -argument
            except TypeError as e:
                raise TemplateRuntimeError(
                    f"Unsupported operand for unary '-': {type(argument).__name__}"
                ) from e

        raise TemplateRuntimeError(f"Unknown unary operator: {expr.operator}")

    def _evaluate_member(self, expr: Member, context: Mapping[str, Any]) -> Any:
        obj = self.evaluate(expr.object, context)
        return get_member(obj, expr.property)

    def _evaluate_call(self, expr: Call, context: Mapping[str, Any]) -> Any:
        function = self.evaluate(expr.callee, context)
        if not callable(function):
            raise NotCallableError(str(expr.callee))

        arguments = [self.evaluate(argument, context) for argument in expr.arguments]
        return function(*arguments)


__all__ = [
    "Evaluator",
    "is_truthy",
    "get_iterable",
    "get_member",
    "lookup_path",
    "loose_equals",
]
