"""
Errors — Таксономия ошибок finprim

Все сбои возвращаются вызывающему коду как типизированные исключения.
Никаких sentinel-значений (NaN/Inf/None) вместо ошибки.

Иерархия:
    FinPrimError
    ├── InvalidInput            (ValueError)
    ├── DivisionByZero          (ZeroDivisionError)
    ├── ScalarDomainError       (ArithmeticError)
    └── RootFindingError        (last_x, last_fx, iterations)
        ├── DerivativeZero
        ├── SecondOrderTermZero
        ├── NonConvergent
        └── EvaluationError     (stage)
"""

from typing import Any


class FinPrimError(Exception):
    """Базовая ошибка всех вычислений finprim."""

    pass


class InvalidInput(FinPrimError, ValueError):
    """
    Структурно невалидный вход.

    Пустая или нулевая последовательность cash flows, epsilon ≤ 0,
    max_iter ≤ 0, нарушение JSON контракта запроса.
    """

    pass


class DivisionByZero(FinPrimError, ZeroDivisionError):
    """Знаменатель равен аддитивной единице (нулю) в прямом вычислении."""

    pass


class ScalarDomainError(FinPrimError, ArithmeticError):
    """
    Операция не определена для данного scalar типа.

    Например: отрицательное основание с дробной степенью, 0 в отрицательной
    степени, переполнение.
    """

    pass


class RootFindingError(FinPrimError):
    """
    Сбой итеративного поиска корня.

    Всегда несёт лучшую оценку на момент остановки, чтобы вызывающий код
    мог принять приближённый ответ.

    Attributes:
        last_x: Последняя оценка корня
        last_fx: f(last_x) (None, если вычислить не удалось)
        iterations: Количество выполненных итераций
    """

    def __init__(self, message: str, last_x: Any, last_fx: Any, iterations: int):
        super().__init__(message)
        self.last_x = last_x
        self.last_fx = last_fx
        self.iterations = iterations

    def __str__(self) -> str:
        return (
            f"{self.args[0]} "
            f"(last_x={self.last_x}, last_fx={self.last_fx}, iterations={self.iterations})"
        )


class DerivativeZero(RootFindingError):
    """f'(x) округляется к нулю: шаг Newton-Raphson не определён."""

    pass


class SecondOrderTermZero(RootFindingError):
    """Знаменатель шага Halley 2·f'² − f·f'' округляется к нулю."""

    pass


class NonConvergent(RootFindingError):
    """Исчерпан max_iter без выполнения критерия сходимости."""

    pass


class EvaluationError(RootFindingError):
    """
    Сбой вычисления f, f' или f'' внутри итерации.

    Attributes:
        stage: "objective" | "derivative" | "second_derivative" | "step"
    """

    def __init__(
        self,
        message: str,
        last_x: Any,
        last_fx: Any,
        iterations: int,
        stage: str,
    ):
        super().__init__(message, last_x, last_fx, iterations)
        self.stage = stage
