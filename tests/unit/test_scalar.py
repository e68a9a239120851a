"""
Тесты для Scalar Abstraction

Проверяемые инварианты:
1. div(x, 0) → DivisionByZero для всех трёх типов
2. pow вне области определения → ScalarDomainError
3. from_int/from_ratio/to_fraction точны
4. Decimal коэрсия float через кратчайший repr
5. Разрешение типа по образцу значения
"""

import math
from decimal import Decimal
from fractions import Fraction

import numpy as np
import pytest

from finprim.core.errors import DivisionByZero, InvalidInput, ScalarDomainError
from finprim.core.math.scalar import (
    DECIMAL,
    FLOAT32,
    FLOAT64,
    SCALAR_TYPES,
    DecimalScalar,
    ScalarType,
    get_scalar,
    guarded,
    scalar_for,
)

ALL_SCALARS = [FLOAT32, FLOAT64, DECIMAL]


# =============================================================================
# ТЕСТЫ: Протокол
# =============================================================================


class TestProtocol:
    """Все реализации удовлетворяют ScalarType"""

    @pytest.mark.parametrize("scalar", ALL_SCALARS, ids=repr)
    def test_conforms(self, scalar):
        assert isinstance(scalar, ScalarType)

    @pytest.mark.parametrize("scalar", ALL_SCALARS, ids=repr)
    def test_constants(self, scalar):
        """zero/one/two — аддитивная и мультипликативная единицы"""
        assert scalar.zero + scalar.one == scalar.one
        assert scalar.one * scalar.two == scalar.two
        assert scalar.is_zero(scalar.zero)
        assert not scalar.is_zero(scalar.one)

    def test_registry(self):
        assert set(SCALAR_TYPES) == {"float32", "float64", "decimal"}
        assert get_scalar("decimal") is DECIMAL
        with pytest.raises(InvalidInput, match="Unknown scalar type"):
            get_scalar("float16")


# =============================================================================
# ТЕСТЫ: Деление
# =============================================================================


class TestDivision:
    """Деление на ноль — типизированная ошибка, не Inf/NaN"""

    @pytest.mark.parametrize("scalar", ALL_SCALARS, ids=repr)
    def test_division_by_zero(self, scalar):
        with pytest.raises(DivisionByZero):
            scalar.div(scalar.one, scalar.zero)

    def test_division_by_zero_is_zero_division_error(self):
        """Совместимость с обработчиками ZeroDivisionError"""
        with pytest.raises(ZeroDivisionError):
            FLOAT64.div(1.0, 0.0)

    def test_regular_division(self):
        assert FLOAT64.div(1.0, 4.0) == 0.25
        assert FLOAT32.div(np.float32(1.0), np.float32(4.0)) == np.float32(0.25)
        assert DECIMAL.div(Decimal(1), Decimal(8)) == Decimal("0.125")

    def test_decimal_precision_limit(self):
        """Результат ограничен числом значащих разрядов"""
        scalar = DecimalScalar(precision=5)
        assert scalar.div(Decimal(1), Decimal(3)) == Decimal("0.33333")

    def test_invalid_precision(self):
        with pytest.raises(InvalidInput):
            DecimalScalar(precision=0)


# =============================================================================
# ТЕСТЫ: Степень
# =============================================================================


class TestPower:
    """pow и его область определения"""

    def test_integer_and_fractional_exponents(self):
        assert FLOAT64.pow(1.1, 2.0) == pytest.approx(1.21)
        assert FLOAT64.pow(4.0, 0.5) == 2.0
        assert DECIMAL.pow(Decimal("1.1"), Decimal(2)) == Decimal("1.21")
        assert FLOAT32.pow(np.float32(4.0), np.float32(0.5)) == pytest.approx(2.0)

    @pytest.mark.parametrize("scalar", ALL_SCALARS, ids=repr)
    def test_negative_base_fractional_exponent(self, scalar):
        with pytest.raises(ScalarDomainError, match="Negative base"):
            scalar.pow(scalar.coerce(-1.0), scalar.coerce(0.5))

    @pytest.mark.parametrize("scalar", ALL_SCALARS, ids=repr)
    def test_negative_base_integer_exponent(self, scalar):
        assert scalar.pow(scalar.coerce(-2.0), scalar.from_int(2)) == scalar.from_int(4)

    @pytest.mark.parametrize("scalar", ALL_SCALARS, ids=repr)
    def test_zero_base_negative_exponent(self, scalar):
        with pytest.raises(ScalarDomainError, match="Zero base"):
            scalar.pow(scalar.zero, scalar.from_int(-1))

    def test_float64_overflow(self):
        with pytest.raises(ScalarDomainError):
            FLOAT64.pow(10.0, 400.0)

    def test_domain_error_is_arithmetic_error(self):
        with pytest.raises(ArithmeticError):
            FLOAT64.pow(-8.0, 1.0 / 3.0)


# =============================================================================
# ТЕСТЫ: Конверсия
# =============================================================================


class TestConversion:
    """Точность from_int/from_ratio/to_fraction и коэрсия"""

    def test_from_ratio_exact_when_representable(self):
        assert DECIMAL.from_ratio(1, 4) == Decimal("0.25")
        assert FLOAT64.from_ratio(3, 8) == 0.375
        assert FLOAT32.from_ratio(1, 2) == np.float32(0.5)

    def test_from_ratio_nearest(self):
        assert FLOAT64.from_ratio(1, 3) == 1.0 / 3.0

    @pytest.mark.parametrize("scalar", ALL_SCALARS, ids=repr)
    def test_from_ratio_zero_denominator(self, scalar):
        with pytest.raises(DivisionByZero):
            scalar.from_ratio(1, 0)

    @pytest.mark.parametrize("scalar", ALL_SCALARS, ids=repr)
    def test_from_int_round_trips_through_fraction(self, scalar):
        assert scalar.to_fraction(scalar.from_int(365)) == Fraction(365)

    def test_to_fraction_exact(self):
        assert FLOAT64.to_fraction(0.1) == Fraction(0.1)
        assert FLOAT32.to_fraction(np.float32(0.75)) == Fraction(3, 4)
        assert DECIMAL.to_fraction(Decimal("0.1")) == Fraction(1, 10)

    def test_decimal_coerce_uses_shortest_repr(self):
        """0.1 → Decimal("0.1"), а не двоичное разложение"""
        assert DECIMAL.coerce(0.1) == Decimal("0.1")
        assert DECIMAL.coerce("2.50") == Decimal("2.50")
        assert DECIMAL.coerce(Fraction(1, 8)) == Decimal("0.125")

    def test_float32_coerce_type(self):
        assert isinstance(FLOAT32.coerce(0.1), np.float32)
        assert isinstance(FLOAT32.coerce("3.5"), np.float32)

    def test_float32_coerce_out_of_range(self):
        """Конечное значение вне диапазона float32 не превращается в Inf"""
        with pytest.raises(ScalarDomainError, match="out of float32 range"):
            FLOAT32.coerce("1e39")
        assert np.isinf(FLOAT32.coerce(math.inf))

    @pytest.mark.parametrize("scalar", ALL_SCALARS, ids=repr)
    def test_coerce_rejects_bool(self, scalar):
        with pytest.raises(InvalidInput):
            scalar.coerce(True)

    @pytest.mark.parametrize("scalar", ALL_SCALARS, ids=repr)
    def test_coerce_rejects_garbage(self, scalar):
        with pytest.raises(InvalidInput):
            scalar.coerce("not a number")

    def test_is_finite(self):
        assert not FLOAT64.is_finite(math.inf)
        assert not FLOAT32.is_finite(np.float32("nan"))
        assert not DECIMAL.is_finite(Decimal("Infinity"))
        assert DECIMAL.is_finite(Decimal("1"))

    def test_resolution(self):
        assert FLOAT64.resolution == np.finfo(np.float64).eps
        assert FLOAT32.resolution == np.finfo(np.float32).eps
        assert DECIMAL.resolution == Decimal("1e-27")


# =============================================================================
# ТЕСТЫ: Разрешение типа
# =============================================================================


class TestScalarFor:
    """scalar_for выбирает реализацию по образцу"""

    def test_resolution_by_sample(self):
        assert scalar_for(Decimal("1")) is DECIMAL
        assert scalar_for(np.float32(1.0)) is FLOAT32
        assert scalar_for(1.0) is FLOAT64
        assert scalar_for(1) is FLOAT64


# =============================================================================
# ТЕСТЫ: Контекст
# =============================================================================


class TestContext:
    """context() активирует арифметическую среду типа"""

    def test_decimal_context_precision(self):
        with DECIMAL.context():
            assert Decimal(1) / Decimal(7) == DECIMAL.div(Decimal(1), Decimal(7))

    def test_float32_context_raises_on_invalid(self):
        with pytest.raises(FloatingPointError):
            with FLOAT32.context():
                np.float32(0.0) / np.float32(0.0)

    def test_guarded_types_float32_overflow(self):
        with pytest.raises(ScalarDomainError, match="float32 arithmetic failed"):
            with guarded(FLOAT32):
                np.float32(3e38) * np.float32(10.0)

    def test_guarded_types_decimal_overflow(self):
        with pytest.raises(ScalarDomainError, match="decimal arithmetic failed"):
            with guarded(DECIMAL):
                Decimal("9e999999") * Decimal(10)

    def test_guarded_keeps_division_by_zero(self):
        with pytest.raises(DivisionByZero):
            with guarded(FLOAT32):
                FLOAT32.div(FLOAT32.one, FLOAT32.zero)
