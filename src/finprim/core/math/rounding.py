"""
Rounding Policy — Округление с epsilon-областью "tie"

Модуль определяет режимы округления и единую политику (mode + epsilon),
которая используется одинаково:
- для округления результатов (display rounding)
- для проверки сходимости солверов (is_negligible)

Алгоритм для двоичных float (float32/float64):
    shifted = value × 10^digits
    - Half-режимы: если |frac(shifted) − 0.5| ≤ epsilon, значение считается
      лежащим на границе и разрешается по правилу режима; иначе
      округление к ближайшему целому.
    - Направленные режимы: если shifted в пределах epsilon от ближайшего
      целого, оно "прилипает" к этому целому; иначе усечение в направлении
      режима.
    result = rounded / 10^digits

Epsilon измеряется в единицах последнего сохраняемого разряда.

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. Идемпотентность: повторное округление с теми же digits/mode/epsilon — no-op
2. Округление не создаёт NaN/Inf
"""

import math
from dataclasses import dataclass
from decimal import (
    ROUND_CEILING,
    ROUND_DOWN,
    ROUND_FLOOR,
    ROUND_HALF_DOWN,
    ROUND_HALF_EVEN,
    ROUND_HALF_UP,
    ROUND_UP,
)
from enum import Enum
from typing import Any, Final

from finprim.core.math.numerical_safeguards import DEFAULT_ROUNDING_EPSILON


# =============================================================================
# ENUMS
# =============================================================================


class RoundingMode(str, Enum):
    """
    Режим округления.

    Examples (digits=0):
        HALF_TO_EVEN:          2.5 → 2,  3.5 → 4  ("bankers rounding")
        HALF_AWAY_FROM_ZERO:   2.5 → 3, -2.5 → -3
        HALF_TOWARD_ZERO:      2.5 → 2, -2.5 → -2
        TOWARD_ZERO:           2.7 → 2, -2.7 → -2
        AWAY_FROM_ZERO:        2.3 → 3, -2.3 → -3
        TO_NEGATIVE_INFINITY:  2.7 → 2, -2.3 → -3
        TO_INFINITY:           2.3 → 3, -2.7 → -2
    """

    HALF_TO_EVEN = "half_to_even"
    HALF_AWAY_FROM_ZERO = "half_away_from_zero"
    HALF_TOWARD_ZERO = "half_toward_zero"
    TOWARD_ZERO = "toward_zero"
    AWAY_FROM_ZERO = "away_from_zero"
    TO_NEGATIVE_INFINITY = "to_negative_infinity"
    TO_INFINITY = "to_infinity"


HALF_MODES: Final[frozenset] = frozenset(
    {
        RoundingMode.HALF_TO_EVEN,
        RoundingMode.HALF_AWAY_FROM_ZERO,
        RoundingMode.HALF_TOWARD_ZERO,
    }
)

# Соответствие режимов стратегиям модуля decimal
DECIMAL_ROUNDING: Final[dict] = {
    RoundingMode.HALF_TO_EVEN: ROUND_HALF_EVEN,
    RoundingMode.HALF_AWAY_FROM_ZERO: ROUND_HALF_UP,
    RoundingMode.HALF_TOWARD_ZERO: ROUND_HALF_DOWN,
    RoundingMode.TOWARD_ZERO: ROUND_DOWN,
    RoundingMode.AWAY_FROM_ZERO: ROUND_UP,
    RoundingMode.TO_NEGATIVE_INFINITY: ROUND_FLOOR,
    RoundingMode.TO_INFINITY: ROUND_CEILING,
}


# =============================================================================
# ОКРУГЛЕНИЕ ДВОИЧНЫХ FLOAT
# =============================================================================


def round_shifted(shifted: Any, mode: RoundingMode, epsilon: Any, scalar: Any) -> Any:
    """
    Округление сдвинутого значения (value × 10^digits) до целого.

    Работает в арифметике scalar типа (float32 считается во float32).

    Args:
        shifted: Значение, уже умноженное на 10^digits
        mode: Режим округления
        epsilon: Ширина tie-области (в единицах scalar)
        scalar: ScalarType значения

    Returns:
        Целое значение в scalar типе
    """
    floor = scalar.floor(shifted)
    ceil = scalar.ceil(shifted)
    if floor == ceil:
        return floor

    half = scalar.from_ratio(1, 2)
    diff_floor = shifted - floor
    nearest = floor if diff_floor < half else ceil
    positive = shifted > scalar.zero

    if mode in HALF_MODES:
        if scalar.abs(diff_floor - half) > epsilon:
            return nearest

        # На границе .5 решает режим
        if mode is RoundingMode.HALF_TO_EVEN:
            return floor if math.floor(floor) % 2 == 0 else ceil
        if mode is RoundingMode.HALF_TOWARD_ZERO:
            return floor if positive else ceil
        return ceil if positive else floor

    # Направленные режимы: в пределах epsilon от целого → прилипание
    if scalar.abs(shifted - nearest) <= epsilon:
        return nearest

    if mode is RoundingMode.TOWARD_ZERO:
        return floor if positive else ceil
    if mode is RoundingMode.AWAY_FROM_ZERO:
        return ceil if positive else floor
    if mode is RoundingMode.TO_NEGATIVE_INFINITY:
        return floor
    return ceil


# =============================================================================
# ROUNDING POLICY
# =============================================================================


@dataclass(frozen=True)
class RoundingPolicy:
    """
    Политика округления: режим + epsilon.

    Одна и та же политика применяется к выводу (round) и к критерию
    сходимости солверов (is_negligible).
    """

    mode: RoundingMode = RoundingMode.HALF_TO_EVEN
    epsilon: Any = DEFAULT_ROUNDING_EPSILON

    def round(self, value: Any, digits: int, scalar: Any) -> Any:
        """Округление value до digits знаков после запятой."""
        return scalar.round(value, digits, self.mode, scalar.coerce(self.epsilon))

    def is_negligible(self, value: Any, scalar: Any) -> bool:
        """
        Округляется ли value к нулю при кванте epsilon.

        Эквивалентно усечению value / epsilon к нулю: |value| < epsilon.
        Используется как предикат сходимости (|x_{n+1} − x_n|, |f(x)|)
        и как проверка нулевого знаменателя шага.
        """
        return scalar.abs(value) < scalar.coerce(self.epsilon)


def round_with_mode(
    value: Any,
    digits: int,
    mode: RoundingMode = RoundingMode.HALF_TO_EVEN,
    epsilon: Any = DEFAULT_ROUNDING_EPSILON,
    scalar: Any = None,
) -> Any:
    """
    Округление value до digits знаков после запятой.

    Args:
        value: Значение любого поддерживаемого scalar типа
        digits: Количество дробных разрядов (≥ 0)
        mode: Режим округления (default: HALF_TO_EVEN)
        epsilon: Ширина tie-области в единицах последнего разряда
        scalar: ScalarType (default: определяется по value)

    Returns:
        Округлённое значение того же scalar типа

    Examples:
        >>> round_with_mode(2.5, 0, RoundingMode.HALF_TO_EVEN)
        2.0
        >>> round_with_mode(-3.005, 2, RoundingMode.HALF_AWAY_FROM_ZERO)
        -3.01
    """
    # Локальный импорт: scalar зависит от этого модуля
    from finprim.core.math.scalar import scalar_for

    if scalar is None:
        scalar = scalar_for(value)
    return RoundingPolicy(mode, epsilon).round(scalar.coerce(value), digits, scalar)
