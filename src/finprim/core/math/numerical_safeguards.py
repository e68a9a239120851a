"""
Numerical Safeguards — Константы, точная коэрсия и валидация входов

Модуль обеспечивает:
- Значения по умолчанию для солверов (guess, tolerance, max_iter)
- Точное преобразование любых числовых литералов в Fraction
- Валидацию tolerance/max_iter/cash flows до начала вычислений

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. tolerance > 0 (ноль и отрицательный epsilon — ошибка конфигурации)
2. max_iter > 0
3. Последовательность cash flows не пуста, не содержит NaN/Inf и не нулевая целиком
4. Порядок cash flows никогда не меняется
"""

import math
from decimal import Decimal
from fractions import Fraction
from typing import Any, Final

from finprim.core.errors import InvalidInput

# =============================================================================
# ЗНАЧЕНИЯ ПО УМОЛЧАНИЮ
# =============================================================================

# Начальное приближение ставки для IRR/XIRR (10%)
# Строка, чтобы Decimal получал точное значение
DEFAULT_GUESS: Final[str] = "0.1"

# Epsilon сходимости солвера
DEFAULT_TOLERANCE: Final[str] = "1e-5"

# Максимум итераций Newton-Raphson/Halley
DEFAULT_MAX_ITER: Final[int] = 20

# Ширина "tie" области на границе округления (в единицах последнего разряда)
DEFAULT_ROUNDING_EPSILON: Final[str] = "1e-5"

# Конвенция длины года для нерегулярных cash flows (как у XIRR в Excel)
DAYS_PER_YEAR: Final[int] = 365


# =============================================================================
# ТОЧНАЯ КОЭРСИЯ
# =============================================================================


def as_fraction(value: Any) -> Fraction:
    """
    Точное преобразование числового литерала в Fraction.

    Поддерживает int, Fraction, Decimal, float, str и numpy scalars
    (через float, что точно для float32/float64).

    Args:
        value: Числовое значение

    Returns:
        Fraction, точно равная value

    Raises:
        InvalidInput: Если value не число или NaN/Inf

    Examples:
        >>> as_fraction("0.1")
        Fraction(1, 10)
        >>> as_fraction(3)
        Fraction(3, 1)
    """
    if isinstance(value, bool):
        raise InvalidInput(f"Boolean is not a numeric value: {value!r}")
    if not isinstance(value, (int, Fraction, str)) and not is_finite_number(value):
        raise InvalidInput(f"Not a finite numeric value: {value!r}")

    try:
        if isinstance(value, (int, Fraction, Decimal, float, str)):
            return Fraction(value)
        return Fraction(float(value))
    except (TypeError, ValueError, OverflowError) as e:
        raise InvalidInput(f"Not a finite numeric value: {value!r}") from e


def is_finite_number(value: Any) -> bool:
    """
    Проверка, что значение — конечное число (не NaN/Inf).

    Args:
        value: Проверяемое значение

    Returns:
        True если value конечно
    """
    if isinstance(value, Decimal):
        return value.is_finite()
    try:
        return math.isfinite(value)
    except TypeError:
        return False


# =============================================================================
# ВАЛИДАЦИЯ
# =============================================================================


def validate_tolerance(tolerance: Any, name: str = "tolerance") -> Fraction:
    """
    Валидация epsilon: строго положительное конечное число.

    Args:
        tolerance: Epsilon сходимости или округления
        name: Имя параметра (для сообщения об ошибке)

    Returns:
        Точное значение tolerance как Fraction

    Raises:
        InvalidInput: Если tolerance ≤ 0 или не число
    """
    exact = as_fraction(tolerance)
    if exact <= 0:
        raise InvalidInput(f"{name} must be positive, got {tolerance}")
    return exact


def validate_max_iter(max_iter: Any) -> int:
    """
    Валидация максимального числа итераций.

    Raises:
        InvalidInput: Если max_iter не целое или ≤ 0
    """
    if isinstance(max_iter, bool) or not isinstance(max_iter, int):
        raise InvalidInput(f"max_iter must be an integer, got {max_iter!r}")
    if max_iter <= 0:
        raise InvalidInput(f"max_iter must be positive, got {max_iter}")
    return max_iter


def validate_cash_flows(amounts: list, scalar: Any, name: str = "cash_flows") -> None:
    """
    Валидация уже приведённых к scalar типу сумм cash flows.

    Args:
        amounts: Суммы cash flows (в порядке поступления)
        scalar: ScalarType, к которому приведены суммы
        name: Имя параметра (для сообщения об ошибке)

    Raises:
        InvalidInput: Если последовательность пуста, содержит NaN/Inf
            или все суммы равны нулю
    """
    if not amounts:
        raise InvalidInput(f"{name} cannot be empty")

    all_zero = True
    for index, amount in enumerate(amounts):
        if not scalar.is_finite(amount):
            raise InvalidInput(f"{name}[{index}] is not finite: {amount}")
        if all_zero and not scalar.is_zero(amount):
            all_zero = False

    if all_zero:
        raise InvalidInput(f"{name} are all zero")
