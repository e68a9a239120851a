"""
Тесты для IRR / XIRR

Проверяемые инварианты:
1. Эталонные значения (совпадение с Excel IRR/XIRR)
2. Newton-Raphson и Halley находят одну и ту же ставку
3. Результат в scalar типе входа (float32, float64, Decimal)
4. Пустые/нулевые/нечисловые cash flows → InvalidInput
5. Исчерпание max_iter → NonConvergent с конечной оценкой
6. 1 + r = 0 → EvaluationError, а не DivisionByZero из глубины NPV
"""

import datetime
from decimal import Decimal

import numpy as np
import pytest

from finprim.core.domain import DatedCashFlow, RootMethod, SolverConfig
from finprim.core.errors import (
    DerivativeZero,
    EvaluationError,
    InvalidInput,
    NonConvergent,
)
from finprim.core.math.cashflow import npv, xnpv
from finprim.core.math.rounding import RoundingMode
from finprim.core.math.scalar import DECIMAL, FLOAT32
from finprim.rate import irr, xirr

EXCEL_FLOWS = [-70000.0, 12000.0, 15000.0, 18000.0, 21000.0, 26000.0]
EXCEL_IRR = 0.086630948

DATED_FLOWS = [(0, -100.0), (359, 50.0), (400, 40.0), (1000, 30.0), (2000, 20.0)]
DATED_XIRR = 0.20084


def as_dates(flows, origin=datetime.date(2019, 3, 1)):
    return [(origin + datetime.timedelta(days=day), amount) for day, amount in flows]


# =============================================================================
# ТЕСТЫ: IRR
# =============================================================================


class TestIrr:
    """IRR регулярных cash flows"""

    def test_single_period(self):
        assert irr([-100.0, 110.0]) == pytest.approx(0.1, abs=1e-9)

    def test_excel_reference(self):
        assert irr(EXCEL_FLOWS) == pytest.approx(EXCEL_IRR, abs=1e-6)

    def test_root_of_npv(self):
        rate = irr(EXCEL_FLOWS)
        assert abs(npv(rate, EXCEL_FLOWS)) < 1e-3

    def test_large_rate_needs_more_iterations(self):
        assert irr([-100.0, 50.0, 40.0, 30.0, 1000.0], max_iter=50) == pytest.approx(
            1.008240536, abs=1e-6
        )

    def test_halley_matches_newton(self):
        newton = irr(EXCEL_FLOWS)
        halley = irr(EXCEL_FLOWS, method=RootMethod.HALLEY)
        assert halley == pytest.approx(newton, abs=2e-5)

    def test_halley_small_amounts(self):
        """Малые суммы: знаменатель Halley сравнивается в масштабе NPV'"""
        flows = [-0.002, 0.0022]
        newton = irr(flows, guess=0.2)
        halley = irr(flows, guess=0.2, method=RootMethod.HALLEY)
        assert halley == pytest.approx(0.1, abs=1e-3)
        assert halley == pytest.approx(newton, abs=1e-3)

    def test_method_as_string(self):
        assert irr(EXCEL_FLOWS, method="halley") == pytest.approx(EXCEL_IRR, abs=1e-6)

    def test_guess_selects_root(self):
        """Явный guess рядом с корнем"""
        assert irr(EXCEL_FLOWS, guess=0.08) == pytest.approx(EXCEL_IRR, abs=1e-6)

    def test_decimal(self):
        result = irr([Decimal("-100"), Decimal("110")])
        assert isinstance(result, Decimal)
        assert result == Decimal("0.1")

    def test_decimal_excel_reference(self):
        result = irr([Decimal(repr(cf)) for cf in EXCEL_FLOWS], tolerance="1e-12")
        assert isinstance(result, Decimal)
        assert abs(result - Decimal("0.086630948")) < Decimal("1e-8")

    def test_float32(self):
        result = irr([np.float32(cf) for cf in EXCEL_FLOWS])
        assert isinstance(result, np.float32)
        assert float(result) == pytest.approx(EXCEL_IRR, abs=1e-4)

    def test_explicit_scalar_coerces_input(self):
        assert isinstance(irr(EXCEL_FLOWS, scalar=FLOAT32), np.float32)
        assert isinstance(irr(["-100", "110"], scalar=DECIMAL), Decimal)


# =============================================================================
# ТЕСТЫ: Конфигурация
# =============================================================================


class TestIrrConfig:
    """SolverConfig и явные аргументы"""

    def test_digits_rounds_result(self):
        config = SolverConfig(digits=4)
        assert irr(EXCEL_FLOWS, config=config) == 0.0866

    def test_rounding_mode(self):
        config = SolverConfig(digits=4, rounding_mode=RoundingMode.TO_INFINITY)
        assert irr(EXCEL_FLOWS, config=config) == 0.0867

    def test_explicit_argument_overrides_config(self):
        config = SolverConfig(max_iter=50)
        with pytest.raises(NonConvergent):
            irr(EXCEL_FLOWS, max_iter=1, config=config)

    def test_config_is_not_modified(self):
        config = SolverConfig(max_iter=50)
        irr(EXCEL_FLOWS, max_iter=10, config=config)
        assert config.max_iter == 50

    @pytest.mark.parametrize("tolerance", [0, -1e-5])
    def test_invalid_tolerance(self, tolerance):
        with pytest.raises(InvalidInput):
            irr(EXCEL_FLOWS, tolerance=tolerance)

    def test_invalid_max_iter(self):
        with pytest.raises(InvalidInput):
            irr(EXCEL_FLOWS, max_iter=0)

    @pytest.mark.parametrize(
        "cash_flows, guess",
        [
            ([-100.0, 110.0], "1e400"),
            ([np.float32(-100.0), np.float32(110.0)], "1e39"),
        ],
    )
    def test_guess_outside_scalar_range(self, cash_flows, guess):
        """guess, переполняющий scalar тип, отклоняется до первой итерации"""
        with pytest.raises(InvalidInput, match="guess"):
            irr(cash_flows, guess=guess)

    @pytest.mark.parametrize(
        "cash_flows, tolerance",
        [
            ([-100.0, 110.0], "1e-400"),
            ([np.float32(-100.0), np.float32(110.0)], "1e-50"),
        ],
    )
    def test_tolerance_underflows_to_zero(self, cash_flows, tolerance):
        with pytest.raises(InvalidInput, match="tolerance"):
            irr(cash_flows, tolerance=tolerance)


# =============================================================================
# ТЕСТЫ: Ошибки IRR
# =============================================================================


class TestIrrErrors:
    """Невалидный вход и сбои солвера"""

    @pytest.mark.parametrize(
        "cash_flows",
        [[], [0.0, 0.0, 0.0], [-100.0, float("nan")], [-100.0, float("inf")]],
        ids=["empty", "all_zero", "nan", "inf"],
    )
    def test_invalid_cash_flows(self, cash_flows):
        with pytest.raises(InvalidInput):
            irr(cash_flows)

    def test_single_flow_has_no_slope(self):
        """Один flow: NPV'(r) = 0"""
        with pytest.raises(DerivativeZero):
            irr([100.0])

    def test_non_convergent_carries_estimate(self):
        with pytest.raises(NonConvergent) as exc_info:
            irr([-100.0, 110.0], guess=5.0, max_iter=2)
        error = exc_info.value
        assert error.iterations == 2
        assert np.isfinite(error.last_x)
        assert error.last_x == pytest.approx(-433.1, abs=0.5)

    def test_guess_at_minus_one(self):
        """1 + r = 0 в точке guess"""
        with pytest.raises(EvaluationError) as exc_info:
            irr([-100.0, 110.0], guess=-1.0)
        assert exc_info.value.stage == "objective"
        assert exc_info.value.last_x == -1.0


# =============================================================================
# ТЕСТЫ: XIRR
# =============================================================================


class TestXirr:
    """XIRR датированных cash flows"""

    def test_reference_value(self):
        assert xirr(DATED_FLOWS) == pytest.approx(DATED_XIRR, abs=2e-5)

    def test_root_of_xnpv(self):
        rate = xirr(DATED_FLOWS, tolerance="1e-10")
        assert abs(xnpv(rate, DATED_FLOWS)) < 1e-8

    def test_dates_equal_day_numbers(self):
        assert xirr(as_dates(DATED_FLOWS)) == pytest.approx(xirr(DATED_FLOWS))

    def test_dated_cash_flow_value_objects(self):
        flows = [DatedCashFlow(day, amount) for day, amount in DATED_FLOWS]
        assert xirr(flows) == pytest.approx(DATED_XIRR, abs=2e-5)

    def test_halley(self):
        assert xirr(DATED_FLOWS, method=RootMethod.HALLEY) == pytest.approx(DATED_XIRR, abs=2e-5)

    def test_whole_years_match_irr(self):
        flows = [(365 * t, cf) for t, cf in enumerate(EXCEL_FLOWS)]
        assert xirr(flows) == pytest.approx(irr(EXCEL_FLOWS), abs=1e-6)

    def test_year_length(self):
        flows = [(0, -100.0), (360, 110.0)]
        assert xirr(flows, year_length=360) == pytest.approx(0.1, abs=1e-9)
        assert xirr(flows) > 0.1

    def test_decimal(self):
        result = xirr([(0, Decimal("-100")), (365, Decimal("110"))])
        assert isinstance(result, Decimal)
        assert result == Decimal("0.1")

    def test_float32(self):
        flows = [(day, np.float32(amount)) for day, amount in DATED_FLOWS]
        result = xirr(flows)
        assert isinstance(result, np.float32)
        assert float(result) == pytest.approx(DATED_XIRR, abs=1e-4)

    def test_all_zero_flows(self):
        with pytest.raises(InvalidInput, match="flows"):
            xirr([(0, 0.0), (365, 0.0)])

    def test_mixed_date_kinds(self):
        with pytest.raises(InvalidInput):
            xirr([(datetime.date(2020, 1, 1), -100.0), (365, 110.0)])

    def test_invalid_year_length(self):
        with pytest.raises(InvalidInput):
            xirr(DATED_FLOWS, year_length=0)
