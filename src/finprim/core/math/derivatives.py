"""
Derivatives — Производные приведённой стоимости и WACC

Замкнутые формулы (без символьного/автоматического дифференцирования).
Используются как f'/f'' в солверах и для анализа чувствительности
(duration/convexity во внешнем коде).

ФОРМУЛЫ:
    PV(r)    = CF / (1 + r)^n
    PV'(r)   = −CF · n / (1 + r)^(n + 1)
    PV''(r)  = CF · n · (n + 1) / (1 + r)^(n + 2)

    WACC(D/E)   = R_e / (1 + D/E) + R_d · (D/E) / (1 + D/E) · (1 − T)
    WACC'(D/E)  = −(T·R_d + R_e − R_d) / (1 + D/E)^2
    WACC''(D/E) = 2 · (T·R_d + R_e − R_d) / (1 + D/E)^3

По свойству суммы NPV'(r) = Σ PV'_t(r); npv_prime_r/npv_prime2_r
считают это за один проход с накоплением степени (1 + r).
"""

from typing import Any, Iterable, Sequence

from finprim.core.math.cashflow import (
    _first,
    _split_dated,
    resolve_scalar,
    year_fractions,
)
from finprim.core.math.numerical_safeguards import DAYS_PER_YEAR
from finprim.core.math.scalar import ScalarType, guarded


# =============================================================================
# ЯДРО (без коэрсии, для горячего пути солверов)
# =============================================================================


def npv_prime_core(rate: Any, amounts: Iterable[Any], scalar: ScalarType) -> Any:
    """NPV'(r) за один проход: знаменатель (1 + r)^(t + 1) накапливается."""
    growth = scalar.one + rate
    discount = None
    total = scalar.zero
    t = scalar.zero
    for amount in amounts:
        if discount is None:
            discount = growth
        else:
            discount = discount * growth
            t = t + scalar.one
        total = total - scalar.div(amount * t, discount)
    return total


def npv_prime2_core(rate: Any, amounts: Iterable[Any], scalar: ScalarType) -> Any:
    """NPV''(r) за один проход: знаменатель (1 + r)^(t + 2) накапливается."""
    growth = scalar.one + rate
    discount = None
    total = scalar.zero
    t = scalar.zero
    for amount in amounts:
        if discount is None:
            discount = growth * growth
        else:
            discount = discount * growth
            t = t + scalar.one
        total = total + scalar.div(amount * t * (t + scalar.one), discount)
    return total


def pv_prime_core(rate: Any, n: Any, amount: Any, scalar: ScalarType) -> Any:
    """PV'(r) одной суммы над приведёнными значениями."""
    growth = scalar.one + rate
    return -scalar.div(amount * n, scalar.pow(growth, n + scalar.one))


def pv_prime2_core(rate: Any, n: Any, amount: Any, scalar: ScalarType) -> Any:
    """PV''(r) одной суммы над приведёнными значениями."""
    growth = scalar.one + rate
    return scalar.div(amount * n * (n + scalar.one), scalar.pow(growth, n + scalar.two))


def xnpv_prime_core(rate: Any, periods: Sequence[Any], amounts: Sequence[Any], scalar: ScalarType) -> Any:
    total = scalar.zero
    for period, amount in zip(periods, amounts):
        total = total + pv_prime_core(rate, period, amount, scalar)
    return total


def xnpv_prime2_core(rate: Any, periods: Sequence[Any], amounts: Sequence[Any], scalar: ScalarType) -> Any:
    total = scalar.zero
    for period, amount in zip(periods, amounts):
        total = total + pv_prime2_core(rate, period, amount, scalar)
    return total


# =============================================================================
# PRESENT VALUE DERIVATIVES
# =============================================================================


def pv_prime_r(rate: Any, n: Any, amount: Any, scalar: ScalarType | None = None) -> Any:
    """
    PV'(r) — производная PV суммы периода n по ставке.

    Args:
        rate: Ставка дисконтирования за период
        n: Номер периода (может быть дробным)
        amount: Cash flow периода n

    Returns:
        dPV/dr

    Examples:
        >>> round(pv_prime_r(0.05, 5, 1000.0), 5)
        -3731.07698
    """
    scalar = resolve_scalar(scalar, amount, rate)
    with guarded(scalar):
        return pv_prime_core(scalar.coerce(rate), scalar.coerce(n), scalar.coerce(amount), scalar)


def pv_prime2_r(rate: Any, n: Any, amount: Any, scalar: ScalarType | None = None) -> Any:
    """
    PV''(r) — вторая производная PV суммы периода n по ставке.

    Examples:
        >>> round(pv_prime2_r(0.05, 5, 1000.0), 5)
        21320.4399
    """
    scalar = resolve_scalar(scalar, amount, rate)
    with guarded(scalar):
        return pv_prime2_core(scalar.coerce(rate), scalar.coerce(n), scalar.coerce(amount), scalar)


def npv_prime_r(rate: Any, cash_flows: Sequence[Any], scalar: ScalarType | None = None) -> Any:
    """
    NPV'(r) — производная NPV регулярных cash flows по ставке.

    Args:
        rate: Ставка дисконтирования за период
        cash_flows: Суммы CF_0, CF_1, ...

    Returns:
        Σ −CF_t · t / (1 + r)^(t + 1)
    """
    scalar = resolve_scalar(scalar, _first(cash_flows), rate)
    with guarded(scalar):
        return npv_prime_core(
            scalar.coerce(rate),
            (scalar.coerce(amount) for amount in cash_flows),
            scalar,
        )


def npv_prime2_r(rate: Any, cash_flows: Sequence[Any], scalar: ScalarType | None = None) -> Any:
    """
    NPV''(r) — вторая производная NPV регулярных cash flows по ставке.

    Returns:
        Σ CF_t · t · (t + 1) / (1 + r)^(t + 2)
    """
    scalar = resolve_scalar(scalar, _first(cash_flows), rate)
    with guarded(scalar):
        return npv_prime2_core(
            scalar.coerce(rate),
            (scalar.coerce(amount) for amount in cash_flows),
            scalar,
        )


def xnpv_prime_r(
    rate: Any,
    flows: Sequence[Sequence[Any]],
    year_length: int = DAYS_PER_YEAR,
    scalar: ScalarType | None = None,
) -> Any:
    """
    XNPV'(r) — производная XNPV по годовой ставке.

    Args:
        flows: Пары (date, amount), отсчёт от первого flow
    """
    dates, amounts = _split_dated(flows)
    scalar = resolve_scalar(scalar, _first(amounts), rate)
    with guarded(scalar):
        return xnpv_prime_core(
            scalar.coerce(rate),
            year_fractions(dates, year_length, scalar),
            [scalar.coerce(amount) for amount in amounts],
            scalar,
        )


def xnpv_prime2_r(
    rate: Any,
    flows: Sequence[Sequence[Any]],
    year_length: int = DAYS_PER_YEAR,
    scalar: ScalarType | None = None,
) -> Any:
    """XNPV''(r) — вторая производная XNPV по годовой ставке."""
    dates, amounts = _split_dated(flows)
    scalar = resolve_scalar(scalar, _first(amounts), rate)
    with guarded(scalar):
        return xnpv_prime2_core(
            scalar.coerce(rate),
            year_fractions(dates, year_length, scalar),
            [scalar.coerce(amount) for amount in amounts],
            scalar,
        )


# =============================================================================
# WACC
# =============================================================================


def wacc(r_e: Any, r_d: Any, de_ratio: Any, tax: Any, scalar: ScalarType | None = None) -> Any:
    """
    Weighted Average Cost of Capital через отношение D/E.

    Args:
        r_e: Cost of Equity
        r_d: Cost of Debt
        de_ratio: Debt/Equity (рыночные стоимости, D + E = V)
        tax: Ставка налога

    Raises:
        DivisionByZero: Если 1 + D/E = 0
    """
    scalar = resolve_scalar(scalar, r_e)
    with guarded(scalar):
        r_e, r_d, de, tax = (scalar.coerce(v) for v in (r_e, r_d, de_ratio, tax))
        leverage = scalar.one + de
        equity_weight = scalar.div(scalar.one, leverage)
        debt_weight = scalar.div(de, leverage)
        return r_e * equity_weight + r_d * debt_weight * (scalar.one - tax)


def wacc_prime_de(r_e: Any, r_d: Any, de_ratio: Any, tax: Any, scalar: ScalarType | None = None) -> Any:
    """
    WACC'(D/E) — первая производная WACC по отношению D/E.

    Examples:
        >>> round(wacc_prime_de(0.05, 0.07, 0.7, 0.25), 5)
        0.00087
    """
    scalar = resolve_scalar(scalar, r_e)
    with guarded(scalar):
        r_e, r_d, de, tax = (scalar.coerce(v) for v in (r_e, r_d, de_ratio, tax))
        spread = tax * r_d + r_e - r_d
        return -scalar.div(spread, scalar.pow(scalar.one + de, scalar.two))


def wacc_prime2_de(r_e: Any, r_d: Any, de_ratio: Any, tax: Any, scalar: ScalarType | None = None) -> Any:
    """WACC''(D/E) — вторая производная WACC по отношению D/E."""
    scalar = resolve_scalar(scalar, r_e)
    with guarded(scalar):
        r_e, r_d, de, tax = (scalar.coerce(v) for v in (r_e, r_d, de_ratio, tax))
        spread = tax * r_d + r_e - r_d
        return scalar.two * scalar.div(spread, scalar.pow(scalar.one + de, scalar.from_int(3)))
