"""
Returns — Простые отношения доходности

Замкнутые формулы без итераций:
    pct_change       = (end − begin) / |begin|
    apply_pct_change = value + pct · |value|
    cagr             = (end / begin)^(1 / n) − 1
    twr              = Π (1 + pct_change(V_{t−1}, V_t − CF_t)) − 1
    apr              = npery · ((1 + ear)^(1 / npery) − 1)
    ear              = (1 + apr / npery)^npery − 1

Модуль |begin| в pct_change корректно обрабатывает переход через ноль:
рост EBITDA с −1000 до −500 — это +50%, а не −50%.

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. Нулевая база (begin = 0, npery = 0, n = 0) → DivisionByZero
2. Отрицательное основание с дробной степенью → ScalarDomainError
"""

from typing import Any, Optional, Sequence

from finprim.core.errors import InvalidInput
from finprim.core.math.cashflow import resolve_scalar
from finprim.core.math.scalar import ScalarType, guarded


# =============================================================================
# ЯДРО
# =============================================================================


def cagr_core(beginning: Any, ending: Any, n: Any, scalar: ScalarType) -> Any:
    """CAGR над уже приведёнными значениями."""
    ratio = scalar.div(ending, beginning)
    return scalar.pow(ratio, scalar.div(scalar.one, n)) - scalar.one


def pct_change_core(beginning: Any, ending: Any, scalar: ScalarType) -> Any:
    return scalar.div(ending - beginning, scalar.abs(beginning))


# =============================================================================
# ПУБЛИЧНЫЕ ФУНКЦИИ
# =============================================================================


def pct_change(beginning_value: Any, ending_value: Any, scalar: ScalarType | None = None) -> Any:
    """
    Относительное изменение от beginning_value к ending_value.

    Raises:
        DivisionByZero: beginning_value = 0

    Examples:
        >>> pct_change(1000.0, 1500.0)
        0.5
        >>> pct_change(-1000.0, 1500.0)
        2.5
    """
    scalar = resolve_scalar(scalar, beginning_value)
    with guarded(scalar):
        return pct_change_core(scalar.coerce(beginning_value), scalar.coerce(ending_value), scalar)


def apply_pct_change(value: Any, pct: Any, scalar: ScalarType | None = None) -> Any:
    """
    Применение относительного изменения (обратная к pct_change).

    Examples:
        >>> apply_pct_change(1000.0, 0.5)
        1500.0
        >>> apply_pct_change(-1000.0, 0.5)
        -500.0
    """
    scalar = resolve_scalar(scalar, value)
    with guarded(scalar):
        value = scalar.coerce(value)
        return scalar.coerce(pct) * scalar.abs(value) + value


def cagr(beginning_balance: Any, ending_balance: Any, n: Any, scalar: ScalarType | None = None) -> Any:
    """
    Compound Annual Growth Rate.

    Args:
        beginning_balance: Начальное значение
        ending_balance: Конечное значение
        n: Количество периодов (может быть дробным)

    Raises:
        DivisionByZero: beginning_balance = 0 или n = 0
        ScalarDomainError: Отношение отрицательно, а 1/n дробное

    Examples:
        >>> round(cagr(1000.0, 500.0, 5), 5)
        -0.12945
    """
    scalar = resolve_scalar(scalar, beginning_balance)
    with guarded(scalar):
        return cagr_core(
            scalar.coerce(beginning_balance),
            scalar.coerce(ending_balance),
            scalar.coerce(n),
            scalar,
        )


def twr(
    values: Sequence[Sequence[Any]],
    annualization_period: Optional[Any] = None,
    scalar: ScalarType | None = None,
) -> Any:
    """
    Time Weighted Return по рядам (стоимость на конец периода, net cash flow).

    Доходность каждого периода считается от стоимости на конец предыдущего
    к стоимости на конец текущего за вычетом cash flow периода, что
    исключает влияние взносов и изъятий.

    Args:
        values: Пары (value, cash_flow); cash_flow > 0 — взнос, < 0 — изъятие.
            cash_flow первой пары не используется.
        annualization_period: Число лет, за которое приводить доходность
            (None — без приведения)
        scalar: ScalarType (default: по типу первого value)

    Returns:
        TWR за весь ряд или годовая TWR

    Raises:
        InvalidInput: Меньше одной пары или пара не (value, cash_flow)
        DivisionByZero: Нулевая стоимость на начало какого-либо периода

    Examples:
        >>> values = [(1000.0, 0.0), (1600.0, 400.0)]
        >>> round(twr(values), 10)
        0.2
    """
    if not values:
        raise InvalidInput("values cannot be empty")
    scalar = resolve_scalar(scalar, values[0][0])

    with guarded(scalar):
        total = scalar.one
        previous = None
        for index, pair in enumerate(values):
            try:
                value, cash_flow = pair
            except (TypeError, ValueError) as e:
                raise InvalidInput(
                    f"values[{index}] must be a (value, cash_flow) pair, got {pair!r}"
                ) from e
            value = scalar.coerce(value)
            if previous is not None:
                adjusted_end = value - scalar.coerce(cash_flow)
                total = total * (scalar.one + pct_change_core(previous, adjusted_end, scalar))
            previous = value

        if annualization_period is None:
            return total - scalar.one
        period = scalar.coerce(annualization_period)
        return scalar.pow(total, scalar.div(scalar.one, period)) - scalar.one


def apr(effective_rate: Any, npery: Any, scalar: ScalarType | None = None) -> Any:
    """
    Номинальная годовая ставка по эффективной (аналог NOMINAL в Excel).

    Args:
        effective_rate: Эффективная годовая ставка (EAR)
        npery: Число периодов начисления в году

    Examples:
        >>> round(apr(0.05, 12), 5)
        0.04889
    """
    scalar = resolve_scalar(scalar, effective_rate)
    with guarded(scalar):
        npery = scalar.coerce(npery)
        nth_root = scalar.pow(scalar.one + scalar.coerce(effective_rate), scalar.div(scalar.one, npery))
        return npery * (nth_root - scalar.one)


def ear(nominal_rate: Any, npery: Any, scalar: ScalarType | None = None) -> Any:
    """
    Эффективная годовая ставка по номинальной (аналог EFFECT в Excel).

    Args:
        nominal_rate: Номинальная годовая ставка (APR)
        npery: Число периодов начисления в году

    Examples:
        >>> round(ear(0.05, 12), 5)
        0.05116
    """
    scalar = resolve_scalar(scalar, nominal_rate)
    with guarded(scalar):
        npery = scalar.coerce(npery)
        growth = scalar.one + scalar.div(scalar.coerce(nominal_rate), npery)
        return scalar.pow(growth, npery) - scalar.one
