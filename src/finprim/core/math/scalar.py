"""
Scalar Abstraction — Единый интерфейс числовых типов

Каждая финансовая формула пишется один раз и исполняется над любым
scalar типом, удовлетворяющим протоколу ScalarType:
- FLOAT32: numpy.float32 (одинарная точность)
- FLOAT64: float (двойная точность)
- DECIMAL: decimal.Decimal, 28 значащих разрядов

Сложение, вычитание, умножение, отрицание и сравнение выполняются
нативными операторами конкретного типа. Деление и возведение в степень
идут через scalar, чтобы нулевой знаменатель и неопределённая степень
давали типизированную ошибку, а не Inf/NaN.

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. div(x, 0) → DivisionByZero (никогда Inf/NaN)
2. pow вне области определения → ScalarDomainError
3. from_int/from_ratio точны, если значение представимо в типе
4. to_fraction точен для всех трёх типов
"""

import contextlib
import math
import sys
from decimal import (
    Context,
    Decimal,
    DecimalException,
    DivisionByZero as DecimalDivisionByZero,
    InvalidOperation,
    Overflow,
    ROUND_CEILING,
    ROUND_FLOOR,
    ROUND_HALF_EVEN,
    localcontext,
)
from fractions import Fraction
from typing import Any, ContextManager, Final, Iterator, Protocol, runtime_checkable

import numpy as np

from finprim.core.errors import DivisionByZero, InvalidInput, ScalarDomainError
from finprim.core.math.rounding import DECIMAL_ROUNDING, RoundingMode, round_shifted

# Количество значащих разрядов Decimal по умолчанию
DECIMAL_PRECISION_DEFAULT: Final[int] = 28


# =============================================================================
# PROTOCOL
# =============================================================================


@runtime_checkable
class ScalarType(Protocol):
    """
    Набор возможностей, который должен предоставлять числовой тип.

    Реализации не хранят состояния между вызовами.
    """

    name: str

    @property
    def zero(self) -> Any: ...

    @property
    def one(self) -> Any: ...

    @property
    def two(self) -> Any: ...

    @property
    def resolution(self) -> Any: ...

    def coerce(self, value: Any) -> Any: ...

    def from_int(self, n: int) -> Any: ...

    def from_ratio(self, numerator: int, denominator: int) -> Any: ...

    def to_fraction(self, value: Any) -> Fraction: ...

    def div(self, numerator: Any, denominator: Any) -> Any: ...

    def pow(self, base: Any, exponent: Any) -> Any: ...

    def abs(self, value: Any) -> Any: ...

    def is_finite(self, value: Any) -> bool: ...

    def is_zero(self, value: Any) -> bool: ...

    def floor(self, value: Any) -> Any: ...

    def ceil(self, value: Any) -> Any: ...

    def round(self, value: Any, digits: int, mode: RoundingMode, epsilon: Any) -> Any: ...

    def context(self) -> ContextManager: ...


# =============================================================================
# ДВОИЧНЫЕ FLOAT
# =============================================================================


class _BinaryFloatScalar:
    """Общая логика float32/float64: проверки области pow и округление."""

    name = "binary"

    @property
    def two(self) -> Any:
        return self.from_int(2)

    def to_fraction(self, value: Any) -> Fraction:
        # float32 → float точно, далее Fraction точно
        return Fraction(float(value))

    def is_zero(self, value: Any) -> bool:
        return value == 0

    def _check_pow_domain(self, base: Any, exponent: Any) -> None:
        if base < 0 and not float(exponent).is_integer():
            raise ScalarDomainError(
                f"Negative base {base} with fractional exponent {exponent}"
            )
        if base == 0 and exponent < 0:
            raise ScalarDomainError(f"Zero base with negative exponent {exponent}")

    def round(self, value: Any, digits: int, mode: RoundingMode, epsilon: Any) -> Any:
        """
        Округление до digits знаков после запятой.

        Если 10^digits или value · 10^digits не помещается в тип, value
        возвращается без изменений (одинаково для float32 и float64).
        """
        if digits < 0:
            raise InvalidInput(f"digits must be non-negative, got {digits}")
        value = self.coerce(value)
        if not self.is_finite(value):
            raise ScalarDomainError(f"Cannot round non-finite value {value}")

        with self.context():
            try:
                factor = self.pow(self.from_int(10), self.from_int(digits))
                shifted = value * factor
            except (ScalarDomainError, FloatingPointError):
                return value
            if not self.is_finite(shifted):
                return value
            rounded = round_shifted(shifted, mode, self.coerce(epsilon), self)
            return self.div(rounded, factor)


class Float64Scalar(_BinaryFloatScalar):
    """Двойная точность: Python float (IEEE 754 binary64)."""

    name = "float64"

    @property
    def zero(self) -> float:
        return 0.0

    @property
    def one(self) -> float:
        return 1.0

    @property
    def resolution(self) -> float:
        return sys.float_info.epsilon

    def coerce(self, value: Any) -> float:
        if isinstance(value, float):
            return value
        if isinstance(value, bool):
            raise InvalidInput(f"Boolean is not a numeric value: {value!r}")
        try:
            return float(value)
        except (TypeError, ValueError, OverflowError) as e:
            raise InvalidInput(f"Cannot convert {value!r} to float64") from e

    def from_int(self, n: int) -> float:
        return float(n)

    def from_ratio(self, numerator: int, denominator: int) -> float:
        if denominator == 0:
            raise DivisionByZero(f"Ratio {numerator}/0 is undefined")
        # float(Fraction) даёт корректно округлённое ближайшее значение
        return float(Fraction(numerator, denominator))

    def div(self, numerator: float, denominator: float) -> float:
        if denominator == 0.0:
            raise DivisionByZero(f"Division of {numerator} by zero")
        return numerator / denominator

    def pow(self, base: float, exponent: float) -> float:
        self._check_pow_domain(base, exponent)
        try:
            return math.pow(base, exponent)
        except (ValueError, OverflowError) as e:
            raise ScalarDomainError(f"pow({base}, {exponent}) is undefined: {e}") from e

    def abs(self, value: float) -> float:
        return abs(value)

    def is_finite(self, value: Any) -> bool:
        return math.isfinite(value)

    def floor(self, value: float) -> float:
        return float(math.floor(value))

    def ceil(self, value: float) -> float:
        return float(math.ceil(value))

    def context(self) -> ContextManager:
        return contextlib.nullcontext()

    def __repr__(self) -> str:
        return "FLOAT64"


class Float32Scalar(_BinaryFloatScalar):
    """
    Одинарная точность: numpy.float32.

    Внутри context() numpy поднимает FloatingPointError на переполнение,
    деление на ноль и невалидные операции вместо тихих Inf/NaN.
    """

    name = "float32"

    @property
    def zero(self) -> np.float32:
        return np.float32(0.0)

    @property
    def one(self) -> np.float32:
        return np.float32(1.0)

    @property
    def resolution(self) -> np.float32:
        return np.finfo(np.float32).eps

    def coerce(self, value: Any) -> np.float32:
        if isinstance(value, np.float32):
            return value
        if isinstance(value, bool):
            raise InvalidInput(f"Boolean is not a numeric value: {value!r}")
        try:
            source = float(value)
        except (TypeError, ValueError, OverflowError) as e:
            raise InvalidInput(f"Cannot convert {value!r} to float32") from e
        with np.errstate(over="ignore"):
            result = np.float32(source)
        if np.isinf(result) and math.isfinite(source):
            raise ScalarDomainError(f"{value!r} is out of float32 range")
        return result

    def from_int(self, n: int) -> np.float32:
        return np.float32(n)

    def from_ratio(self, numerator: int, denominator: int) -> np.float32:
        if denominator == 0:
            raise DivisionByZero(f"Ratio {numerator}/0 is undefined")
        return np.float32(float(Fraction(numerator, denominator)))

    def div(self, numerator: np.float32, denominator: np.float32) -> np.float32:
        if denominator == 0:
            raise DivisionByZero(f"Division of {numerator} by zero")
        try:
            with self.context():
                return np.float32(numerator) / np.float32(denominator)
        except FloatingPointError as e:
            raise ScalarDomainError(f"{numerator} / {denominator} overflows float32") from e

    def pow(self, base: np.float32, exponent: np.float32) -> np.float32:
        self._check_pow_domain(base, exponent)
        try:
            with self.context():
                return np.float32(base) ** np.float32(exponent)
        except FloatingPointError as e:
            raise ScalarDomainError(f"pow({base}, {exponent}) is undefined: {e}") from e

    def abs(self, value: np.float32) -> np.float32:
        return np.abs(value)

    def is_finite(self, value: Any) -> bool:
        return bool(np.isfinite(value))

    def floor(self, value: np.float32) -> np.float32:
        return np.floor(value)

    def ceil(self, value: np.float32) -> np.float32:
        return np.ceil(value)

    def context(self) -> ContextManager:
        return np.errstate(over="raise", divide="raise", invalid="raise")

    def __repr__(self) -> str:
        return "FLOAT32"


# =============================================================================
# DECIMAL
# =============================================================================


class DecimalScalar:
    """
    Десятичная арифметика с фиксированным числом значащих разрядов.

    Все операции выполняются в собственном decimal.Context (half-even,
    traps на DivisionByZero/InvalidOperation/Overflow). Tie-epsilon при
    округлении не нужен: десятичная граница .5 представима точно.
    """

    name = "decimal"

    def __init__(self, precision: int = DECIMAL_PRECISION_DEFAULT):
        if precision <= 0:
            raise InvalidInput(f"precision must be positive, got {precision}")
        self.precision = precision
        self._context = Context(
            prec=precision,
            rounding=ROUND_HALF_EVEN,
            traps=[DecimalDivisionByZero, InvalidOperation, Overflow],
        )

    @property
    def zero(self) -> Decimal:
        return Decimal(0)

    @property
    def one(self) -> Decimal:
        return Decimal(1)

    @property
    def two(self) -> Decimal:
        return Decimal(2)

    @property
    def resolution(self) -> Decimal:
        return Decimal(1).scaleb(1 - self.precision)

    def coerce(self, value: Any) -> Decimal:
        if isinstance(value, Decimal):
            return value
        if isinstance(value, bool):
            raise InvalidInput(f"Boolean is not a numeric value: {value!r}")
        if isinstance(value, Fraction):
            return self.from_ratio(value.numerator, value.denominator)
        if isinstance(value, int):
            return self._context.create_decimal(value)
        try:
            # Кратчайший repr: 0.1 → Decimal("0.1"), а не двоичное разложение
            text = repr(value) if isinstance(value, float) else str(value)
            return self._context.create_decimal(text)
        except (DecimalException, TypeError, ValueError) as e:
            raise InvalidInput(f"Cannot convert {value!r} to Decimal") from e

    def from_int(self, n: int) -> Decimal:
        return self._context.create_decimal(n)

    def from_ratio(self, numerator: int, denominator: int) -> Decimal:
        if denominator == 0:
            raise DivisionByZero(f"Ratio {numerator}/0 is undefined")
        return self._context.divide(Decimal(numerator), Decimal(denominator))

    def to_fraction(self, value: Decimal) -> Fraction:
        return Fraction(value)

    def div(self, numerator: Decimal, denominator: Decimal) -> Decimal:
        if denominator.is_zero():
            raise DivisionByZero(f"Division of {numerator} by zero")
        return self._context.divide(numerator, denominator)

    def pow(self, base: Decimal, exponent: Decimal) -> Decimal:
        is_integral = exponent == exponent.to_integral_value()
        if base < 0 and not is_integral:
            raise ScalarDomainError(
                f"Negative base {base} with fractional exponent {exponent}"
            )
        if base.is_zero() and exponent < 0:
            raise ScalarDomainError(f"Zero base with negative exponent {exponent}")
        try:
            return self._context.power(base, exponent)
        except DecimalException as e:
            raise ScalarDomainError(f"pow({base}, {exponent}) is undefined: {e}") from e

    def abs(self, value: Decimal) -> Decimal:
        return value.copy_abs()

    def is_finite(self, value: Any) -> bool:
        return isinstance(value, Decimal) and value.is_finite()

    def is_zero(self, value: Decimal) -> bool:
        return value.is_zero()

    def floor(self, value: Decimal) -> Decimal:
        return value.to_integral_value(rounding=ROUND_FLOOR)

    def ceil(self, value: Decimal) -> Decimal:
        return value.to_integral_value(rounding=ROUND_CEILING)

    def round(self, value: Any, digits: int, mode: RoundingMode, epsilon: Any) -> Decimal:
        if digits < 0:
            raise InvalidInput(f"digits must be non-negative, got {digits}")
        value = self.coerce(value)
        if not value.is_finite():
            raise ScalarDomainError(f"Cannot round non-finite value {value}")
        try:
            return value.quantize(
                Decimal(1).scaleb(-digits),
                rounding=DECIMAL_ROUNDING[mode],
                context=self._context,
            )
        except InvalidOperation as e:
            raise ScalarDomainError(
                f"Cannot round {value} to {digits} digits within precision "
                f"{self.precision}"
            ) from e

    def context(self) -> ContextManager:
        return localcontext(self._context)

    def __repr__(self) -> str:
        return f"DecimalScalar(precision={self.precision})"


# =============================================================================
# ТИПИЗИРОВАННЫЕ СБОИ АРИФМЕТИКИ
# =============================================================================


@contextlib.contextmanager
def guarded(scalar: ScalarType) -> Iterator[None]:
    """
    scalar.context(), в котором сбои нативной арифметики типизированы.

    FloatingPointError (numpy) и decimal.DecimalException, поднятые
    операторами +, −, × внутри блока, выходят наружу как ScalarDomainError.
    """
    try:
        with scalar.context():
            yield
    except (FloatingPointError, DecimalException) as e:
        raise ScalarDomainError(f"{scalar.name} arithmetic failed: {e}") from e


# =============================================================================
# ЭКЗЕМПЛЯРЫ И РАЗРЕШЕНИЕ ТИПА
# =============================================================================

FLOAT32: Final[Float32Scalar] = Float32Scalar()
FLOAT64: Final[Float64Scalar] = Float64Scalar()
DECIMAL: Final[DecimalScalar] = DecimalScalar()

SCALAR_TYPES: Final[dict] = {
    FLOAT32.name: FLOAT32,
    FLOAT64.name: FLOAT64,
    DECIMAL.name: DECIMAL,
}


def scalar_for(value: Any) -> ScalarType:
    """
    Определение scalar типа по образцу значения.

    Decimal → DECIMAL, numpy.float32 → FLOAT32, всё остальное → FLOAT64.

    Examples:
        >>> scalar_for(Decimal("1.5")) is DECIMAL
        True
        >>> scalar_for(0.1) is FLOAT64
        True
    """
    if isinstance(value, Decimal):
        return DECIMAL
    if isinstance(value, np.float32):
        return FLOAT32
    return FLOAT64


def get_scalar(name: str) -> ScalarType:
    """
    Получение scalar типа по имени ("float32", "float64", "decimal").

    Raises:
        InvalidInput: Если имя неизвестно
    """
    try:
        return SCALAR_TYPES[name]
    except KeyError:
        raise InvalidInput(
            f"Unknown scalar type {name!r}, expected one of {sorted(SCALAR_TYPES)}"
        ) from None
