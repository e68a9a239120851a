"""
MIRR / XMIRR — Модифицированная внутренняя норма доходности

Замкнутая формула (без итераций):
    PV_neg = Σ |CF_t| / (1 + finance_rate)^t         по CF_t < 0
    FV_pos = Σ CF_t · (1 + reinvest_rate)^(n − t)     по CF_t ≥ 0
    MIRR   = (FV_pos / PV_neg)^(1 / n) − 1            (= cagr(PV_neg, FV_pos, n))

Для XMIRR периоды t и горизонт n измеряются в годах от первого flow.
"""

from typing import Any, Sequence

from finprim.core.math.cashflow import _first, _split_dated, resolve_scalar, year_fractions
from finprim.core.math.numerical_safeguards import DAYS_PER_YEAR, validate_cash_flows
from finprim.core.math.scalar import ScalarType, guarded
from finprim.rate.returns import cagr_core


def _mirr_core(
    periods: Sequence[Any],
    amounts: Sequence[Any],
    horizon: Any,
    finance_rate: Any,
    reinvest_rate: Any,
    scalar: ScalarType,
) -> Any:
    finance_growth = scalar.one + finance_rate
    reinvest_growth = scalar.one + reinvest_rate
    pv_negative = scalar.zero
    fv_positive = scalar.zero
    for period, amount in zip(periods, amounts):
        if amount < scalar.zero:
            pv_negative = pv_negative + scalar.div(
                scalar.abs(amount), scalar.pow(finance_growth, period)
            )
        else:
            fv_positive = fv_positive + amount * scalar.pow(reinvest_growth, horizon - period)
    return cagr_core(pv_negative, fv_positive, horizon, scalar)


def mirr(
    cash_flows: Sequence[Any],
    finance_rate: Any,
    reinvest_rate: Any,
    scalar: ScalarType | None = None,
) -> Any:
    """
    Modified Internal Rate of Return (аналог MIRR в Excel).

    Args:
        cash_flows: Суммы CF_0, ..., CF_n в порядке периодов
        finance_rate: Ставка финансирования отрицательных flows
        reinvest_rate: Ставка реинвестирования положительных flows
        scalar: ScalarType (default: по типу первого cash flow)

    Returns:
        MIRR за период

    Raises:
        InvalidInput: Пустые/нулевые/нечисловые cash flows
        DivisionByZero: Нет отрицательных flows или только один flow (n = 0)

    Examples:
        >>> round(mirr([-100.0, -20.0, 20.0, 20.0, 20.0], 0.1, 0.05), 5)
        -0.14536
    """
    scalar = resolve_scalar(scalar, _first(cash_flows))
    amounts = [scalar.coerce(amount) for amount in cash_flows]
    validate_cash_flows(amounts, scalar)

    with guarded(scalar):
        periods = [scalar.from_int(t) for t in range(len(amounts))]
        return _mirr_core(
            periods,
            amounts,
            scalar.from_int(len(amounts) - 1),
            scalar.coerce(finance_rate),
            scalar.coerce(reinvest_rate),
            scalar,
        )


def xmirr(
    flows: Sequence[Sequence[Any]],
    finance_rate: Any,
    reinvest_rate: Any,
    year_length: int = DAYS_PER_YEAR,
    scalar: ScalarType | None = None,
) -> Any:
    """
    MIRR для датированных cash flows.

    Первый flow задаёт момент 0; горизонт n — период последнего flow
    относительно первого (в годах).

    Args:
        flows: Пары (when, amount); when — datetime.date или номер дня
        finance_rate: Годовая ставка финансирования
        reinvest_rate: Годовая ставка реинвестирования
        year_length: Дней в году (default: 365)

    Returns:
        Годовая MIRR

    Examples:
        >>> flows = [(0, -100.0), (365, -20.0), (730, 20.0), (1095, 20.0), (1460, 20.0)]
        >>> round(xmirr(flows, 0.1, 0.05), 5)
        -0.14536
    """
    dates, raw_amounts = _split_dated(flows)
    scalar = resolve_scalar(scalar, _first(raw_amounts))
    amounts = [scalar.coerce(amount) for amount in raw_amounts]
    validate_cash_flows(amounts, scalar, name="flows")

    with guarded(scalar):
        periods = year_fractions(dates, year_length, scalar)
        return _mirr_core(
            periods,
            amounts,
            periods[-1],
            scalar.coerce(finance_rate),
            scalar.coerce(reinvest_rate),
            scalar,
        )
