"""
Property-based тесты (hypothesis)

Проверяемые свойства:
1. IRR — корень NPV для стандартных cash flows (одна смена знака)
2. Newton-Raphson и Halley согласованы в пределах 2·epsilon
3. float64, Decimal и float32 дают одну и ту же ставку
4. Однопроходный NPV = почленная сумма
5. PV не возрастает по ставке, NPV стандартных flows строго убывает
6. Сбои солвера (нулевая производная, далёкий guess, нет корня) —
   только RootFindingError с конечной оценкой
7. Округление идемпотентно
"""

import math
from decimal import Decimal

import hypothesis as h
import hypothesis.strategies as st
import numpy as np
import pytest

from finprim.core.domain import RootMethod
from finprim.core.errors import DerivativeZero, NonConvergent, RootFindingError
from finprim.core.math.cashflow import npv, npv_naive, pv_of_amount
from finprim.core.math.rounding import RoundingMode, round_with_mode
from finprim.rate import irr

h.settings.register_profile("finprim", max_examples=50, deadline=None)
h.settings.load_profile("finprim")

MAX_ITER = 100


@st.composite
def conventional_flows(draw):
    """Одна инвестиция, затем 2..6 поступлений с положительной суммарной доходностью."""
    outflow = draw(st.floats(min_value=50.0, max_value=200.0))
    inflows = draw(
        st.lists(st.floats(min_value=10.0, max_value=80.0), min_size=2, max_size=6)
    )
    h.assume(sum(inflows) > 1.05 * outflow)
    return [-outflow] + inflows


rates = st.floats(min_value=-0.5, max_value=1.0)


# =============================================================================
# ТЕСТЫ: Сходимость
# =============================================================================


@h.given(cash_flows=conventional_flows())
def test_irr_is_root_of_npv(cash_flows):
    rate = irr(cash_flows, max_iter=MAX_ITER)
    assert math.isfinite(rate)
    assert rate > 0
    assert abs(npv(rate, cash_flows)) < 1e-3


@h.given(cash_flows=conventional_flows())
def test_newton_and_halley_agree(cash_flows):
    newton = irr(cash_flows, max_iter=MAX_ITER)
    halley = irr(cash_flows, max_iter=MAX_ITER, method=RootMethod.HALLEY)
    assert halley == pytest.approx(newton, abs=2e-5)


@h.given(cash_flows=conventional_flows())
def test_decimal_agrees_with_float64(cash_flows):
    expected = irr(cash_flows, max_iter=MAX_ITER)
    result = irr([Decimal(repr(cf)) for cf in cash_flows], max_iter=MAX_ITER)
    assert isinstance(result, Decimal)
    assert float(result) == pytest.approx(expected, abs=1e-6)


@h.given(cash_flows=conventional_flows())
def test_float32_agrees_with_float64(cash_flows):
    expected = irr(cash_flows, max_iter=MAX_ITER)
    try:
        result = irr([np.float32(cf) for cf in cash_flows], max_iter=MAX_ITER)
    except RootFindingError:
        h.reject()
    assert float(result) == pytest.approx(expected, abs=1e-4)


# =============================================================================
# ТЕСТЫ: Приведённая стоимость
# =============================================================================


@h.given(
    rate=rates,
    cash_flows=st.lists(st.floats(min_value=-1e4, max_value=1e4), min_size=1, max_size=12),
)
def test_npv_matches_naive(rate, cash_flows):
    assert npv(rate, cash_flows) == pytest.approx(
        npv_naive(rate, cash_flows), rel=1e-9, abs=1e-6
    )


@h.given(
    rate=rates,
    delta=st.floats(min_value=0.01, max_value=1.0),
    period=st.integers(min_value=0, max_value=30),
    amount=st.floats(min_value=1.0, max_value=1e6),
)
def test_pv_non_increasing_in_rate(rate, delta, period, amount):
    assert pv_of_amount(rate, period, amount) >= pv_of_amount(rate + delta, period, amount)


@h.given(cash_flows=conventional_flows(), rate=rates, delta=st.floats(min_value=0.01, max_value=1.0))
def test_npv_decreasing_in_rate(cash_flows, rate, delta):
    assert npv(rate, cash_flows) > npv(rate + delta, cash_flows)


# =============================================================================
# ТЕСТЫ: Локализация сбоев
# =============================================================================


@h.given(amount=st.floats(min_value=1.0, max_value=1e6), negative=st.booleans())
def test_single_flow_is_derivative_zero(amount, negative):
    with pytest.raises(DerivativeZero):
        irr([-amount if negative else amount])


@h.given(cash_flows=conventional_flows(), guess=st.floats(min_value=2.0, max_value=5.0))
def test_far_guess_is_non_convergent(cash_flows, guess):
    try:
        irr(cash_flows, guess=guess, max_iter=2)
    except NonConvergent as e:
        assert e.iterations == 2
        assert math.isfinite(e.last_x)
    except DerivativeZero:
        h.reject()
    else:
        pytest.fail("two iterations from a far guess must not converge")


@h.given(
    cash_flows=st.lists(st.floats(min_value=10.0, max_value=1e4), min_size=2, max_size=8)
)
def test_rootless_flows_fail_with_finite_estimate(cash_flows):
    """Только положительные flows: NPV > 0 при любой ставке > −1"""
    with pytest.raises(RootFindingError) as exc_info:
        irr(cash_flows)
    assert math.isfinite(exc_info.value.last_x)


# =============================================================================
# ТЕСТЫ: Округление
# =============================================================================


@h.given(
    value=st.floats(min_value=-1e6, max_value=1e6),
    digits=st.integers(min_value=0, max_value=4),
    mode=st.sampled_from(list(RoundingMode)),
)
def test_rounding_idempotent_float64(value, digits, mode):
    once = round_with_mode(value, digits, mode)
    assert round_with_mode(once, digits, mode) == once


@h.given(
    value=st.floats(min_value=-10.0, max_value=10.0, width=32),
    mode=st.sampled_from(list(RoundingMode)),
)
def test_rounding_idempotent_float32(value, mode):
    once = round_with_mode(np.float32(value), 2, mode, epsilon="1e-3")
    assert round_with_mode(once, 2, mode, epsilon="1e-3") == once
