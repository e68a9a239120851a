"""
Cash Flow Evaluation — Приведённая стоимость последовательности cash flows

Функции отображают ставку r и последовательность cash flows в PV:
    NPV(r)  = Σ CF_t / (1 + r)^t                  (регулярные периоды)
    XNPV(r) = Σ CF_i / (1 + r)^((d_i − d_0) / Y)  (даты, Y = длина года)

npv() считает за один проход с накоплением (1 + r)^t умножением, без
вызова pow на каждый член; npv_naive() — эталонная почленная сумма.

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. Порядок cash flows сохраняется как передан (никакой сортировки)
2. Период нерегулярного flow отсчитывается от первого flow в последовательности
3. Горячий путь не материализует последовательностей (только аккумуляторы)
4. 1 + r = 0 → DivisionByZero, а не Inf
"""

import datetime
from typing import Any, Iterable, MutableSequence, Sequence

from finprim.core.errors import InvalidInput
from finprim.core.math.numerical_safeguards import DAYS_PER_YEAR
from finprim.core.math.scalar import ScalarType, guarded, scalar_for


# =============================================================================
# ВСПОМОГАТЕЛЬНЫЕ
# =============================================================================


def resolve_scalar(scalar: ScalarType | None, *samples: Any) -> ScalarType:
    """Явно заданный scalar или тип первого непустого образца."""
    if scalar is not None:
        return scalar
    for sample in samples:
        if sample is not None:
            return scalar_for(sample)
    return scalar_for(0.0)


def _first(values: Sequence) -> Any:
    return values[0] if len(values) else None


def elapsed_days(when: Any, origin: Any) -> int:
    """
    Количество дней между origin и when.

    Args:
        when: datetime.date или целый номер дня
        origin: Того же вида, что и when

    Raises:
        InvalidInput: При смешении дат и номеров дней
    """
    if isinstance(when, datetime.date) and isinstance(origin, datetime.date):
        return (_as_date(when) - _as_date(origin)).days
    if (
        isinstance(when, int)
        and isinstance(origin, int)
        and not isinstance(when, bool)
        and not isinstance(origin, bool)
    ):
        return when - origin
    raise InvalidInput(
        f"Cash flow dates must be all datetime.date or all integer day numbers, "
        f"got {when!r} and {origin!r}"
    )


def _as_date(value: datetime.date) -> datetime.date:
    # datetime является подклассом date, время суток не учитывается
    if isinstance(value, datetime.datetime):
        return value.date()
    return value


def year_fractions(
    dates: Sequence[Any],
    year_length: int = DAYS_PER_YEAR,
    scalar: ScalarType | None = None,
) -> list:
    """
    Периоды (в годах) каждой даты относительно первой.

    Аллоцирующая операция: вызывается один раз до итераций солвера.

    Args:
        dates: Даты cash flows (datetime.date или номера дней)
        year_length: Дней в году (default: 365)
        scalar: ScalarType результата (default: FLOAT64)

    Returns:
        Список периодов той же длины, что dates

    Examples:
        >>> year_fractions([0, 365, 730])
        [0.0, 1.0, 2.0]
    """
    if year_length <= 0:
        raise InvalidInput(f"year_length must be positive, got {year_length}")
    scalar = resolve_scalar(scalar)
    if not dates:
        return []
    origin = dates[0]
    return [scalar.from_ratio(elapsed_days(when, origin), year_length) for when in dates]


def _split_dated(flows: Sequence[Sequence[Any]]) -> tuple[list, list]:
    dates = []
    amounts = []
    for index, flow in enumerate(flows):
        try:
            when, amount = flow
        except (TypeError, ValueError) as e:
            raise InvalidInput(
                f"flows[{index}] must be a (date, amount) pair, got {flow!r}"
            ) from e
        dates.append(when)
        amounts.append(amount)
    return dates, amounts


# =============================================================================
# PRESENT VALUE — ЯДРО (без коэрсии, для горячего пути солверов)
# =============================================================================


def npv_core(rate: Any, amounts: Iterable[Any], scalar: ScalarType) -> Any:
    """Однопроходный NPV над уже приведёнными значениями."""
    growth = scalar.one + rate
    discount = None
    total = scalar.zero
    for amount in amounts:
        # Степень наращивается только перед очередным членом
        discount = scalar.one if discount is None else discount * growth
        total = total + scalar.div(amount, discount)
    return total


def xnpv_core(rate: Any, periods: Sequence[Any], amounts: Sequence[Any], scalar: ScalarType) -> Any:
    """XNPV над уже приведёнными периодами (в годах) и суммами."""
    growth = scalar.one + rate
    total = scalar.zero
    for period, amount in zip(periods, amounts):
        total = total + scalar.div(amount, scalar.pow(growth, period))
    return total


# =============================================================================
# PRESENT VALUE — ПУБЛИЧНЫЕ ФУНКЦИИ
# =============================================================================


def pv_of_amount(rate: Any, n: Any, amount: Any, scalar: ScalarType | None = None) -> Any:
    """
    PV одной суммы, полученной в период n: amount / (1 + rate)^n.

    Examples:
        >>> round(pv_of_amount(0.1, 1, 110.0), 10)
        100.0
    """
    scalar = resolve_scalar(scalar, amount, rate)
    with guarded(scalar):
        growth = scalar.one + scalar.coerce(rate)
        return scalar.div(scalar.coerce(amount), scalar.pow(growth, scalar.coerce(n)))


def npv(rate: Any, cash_flows: Sequence[Any], scalar: ScalarType | None = None) -> Any:
    """
    Net Present Value регулярных cash flows (CF_0 в момент 0).

    Один проход: (1 + r)^t накапливается умножением.

    Args:
        rate: Ставка дисконтирования за период
        cash_flows: Суммы CF_0, CF_1, ... в порядке периодов
        scalar: ScalarType (default: по типу первого cash flow)

    Returns:
        NPV в scalar типе

    Raises:
        DivisionByZero: Если 1 + rate = 0 и есть flows после периода 0

    Examples:
        >>> round(npv(0.1, [-100.0, 110.0]), 10)
        0.0
    """
    scalar = resolve_scalar(scalar, _first(cash_flows), rate)
    with guarded(scalar):
        return npv_core(
            scalar.coerce(rate),
            (scalar.coerce(amount) for amount in cash_flows),
            scalar,
        )


def npv_naive(rate: Any, cash_flows: Sequence[Any], scalar: ScalarType | None = None) -> Any:
    """
    Эталонный NPV: почленная сумма pv_of_amount(rate, t, CF_t).

    Совпадает с npv() с точностью до округления; используется для
    проверки однопроходного варианта.
    """
    scalar = resolve_scalar(scalar, _first(cash_flows), rate)
    with guarded(scalar):
        growth = scalar.one + scalar.coerce(rate)
        total = scalar.zero
        for t, amount in enumerate(cash_flows):
            term = scalar.div(scalar.coerce(amount), scalar.pow(growth, scalar.from_int(t)))
            total = total + term
        return total


def xnpv(
    rate: Any,
    flows: Sequence[Sequence[Any]],
    year_length: int = DAYS_PER_YEAR,
    scalar: ScalarType | None = None,
) -> Any:
    """
    Net Present Value нерегулярных cash flows (аналог XNPV в Excel).

    Args:
        rate: Годовая ставка дисконтирования
        flows: Пары (date, amount); date — datetime.date или номер дня.
            Первый flow задаёт точку отсчёта.
        year_length: Дней в году (default: 365)
        scalar: ScalarType (default: по типу первой суммы)

    Returns:
        XNPV в scalar типе

    Examples:
        >>> flows = [(0, -100.0), (365, 50.0), (730, 40.0), (1095, 30.0), (1460, 20.0)]
        >>> round(xnpv(0.05, flows), 5)
        26.2694
    """
    dates, amounts = _split_dated(flows)
    scalar = resolve_scalar(scalar, _first(amounts), rate)
    with guarded(scalar):
        periods = year_fractions(dates, year_length, scalar)
        return xnpv_core(
            scalar.coerce(rate),
            periods,
            [scalar.coerce(amount) for amount in amounts],
            scalar,
        )


def npv_differing_rates(flows: Sequence[Sequence[Any]], scalar: ScalarType | None = None) -> Any:
    """
    NPV, где каждый период дисконтируется по своей ставке.

    NPV = Σ CF_t / (1 + r_t)^t

    Args:
        flows: Пары (rate_t, amount_t) в порядке периодов

    Examples:
        >>> round(npv_differing_rates([(0.0, -100.0), (0.1, 55.0), (0.1, 60.5)]), 10)
        0.0
    """
    scalar = resolve_scalar(scalar, flows[0][1] if flows else None)
    with guarded(scalar):
        total = scalar.zero
        for t, (rate, amount) in enumerate(flows):
            growth = scalar.one + scalar.coerce(rate)
            total = total + scalar.div(
                scalar.coerce(amount), scalar.pow(growth, scalar.from_int(t))
            )
        return total


# =============================================================================
# NPV PROFILE
# =============================================================================


def npv_profile(
    rates: Iterable[Any],
    cash_flows: Sequence[Any],
    scalar: ScalarType | None = None,
) -> list:
    """
    NPV на сетке ставок (аллоцирующая операция).

    Полезно для диагностики нескольких корней IRR.

    Returns:
        Список NPV в порядке rates
    """
    scalar = resolve_scalar(scalar, _first(cash_flows))
    with guarded(scalar):
        amounts = [scalar.coerce(amount) for amount in cash_flows]
        return [npv_core(scalar.coerce(rate), amounts, scalar) for rate in rates]


def npv_profile_into(
    rates: Sequence[Any],
    cash_flows: Sequence[Any],
    out: MutableSequence,
    scalar: ScalarType | None = None,
) -> int:
    """
    NPV на сетке ставок с записью в буфер вызывающего кода.

    Вариант без аллокации результата: для сред с фиксированной памятью.

    Args:
        rates: Сетка ставок
        cash_flows: Суммы CF_0, CF_1, ...
        out: Буфер фиксированной ёмкости (list, numpy array, ...)

    Returns:
        Количество записанных значений (= len(rates))

    Raises:
        InvalidInput: Если ёмкость out меньше len(rates)
    """
    if len(out) < len(rates):
        raise InvalidInput(
            f"Output buffer too small: capacity {len(out)}, need {len(rates)}"
        )
    scalar = resolve_scalar(scalar, _first(cash_flows))
    with guarded(scalar):
        for index, rate in enumerate(rates):
            out[index] = npv_core(
                scalar.coerce(rate),
                (scalar.coerce(amount) for amount in cash_flows),
                scalar,
            )
    return len(rates)
