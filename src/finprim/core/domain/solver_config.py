"""
Solver Config — Конфигурация итеративных солверов

Immutable Pydantic модель: начальное приближение, epsilon, максимум
итераций, метод, режим округления результата.

Числовые поля guess/tolerance хранятся как переданы (str, int, float,
Decimal, numpy scalar) и приводятся к scalar типу только в момент
вычисления, поэтому "0.1" остаётся точным для Decimal.

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. tolerance > 0
2. max_iter > 0
3. year_length > 0
4. Невалидная конфигурация через build() → InvalidInput
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from finprim.core.errors import InvalidInput
from finprim.core.math.numerical_safeguards import (
    DAYS_PER_YEAR,
    DEFAULT_GUESS,
    DEFAULT_MAX_ITER,
    DEFAULT_TOLERANCE,
    as_fraction,
    validate_tolerance,
)
from finprim.core.math.rounding import RoundingMode, RoundingPolicy


# =============================================================================
# ENUMS
# =============================================================================


class RootMethod(str, Enum):
    """Алгоритм поиска корня"""

    NEWTON_RAPHSON = "newton_raphson"
    HALLEY = "halley"


# =============================================================================
# SOLVER CONFIG MODEL
# =============================================================================


class SolverConfig(BaseModel):
    """
    Конфигурация солвера ставки (IRR/XIRR).

    Immutable модель (frozen=True): изменения только через build(base, ...).
    """

    # Итерации
    guess: Any = Field(default=DEFAULT_GUESS, description="Начальное приближение ставки")
    tolerance: Any = Field(default=DEFAULT_TOLERANCE, description="Epsilon сходимости (> 0)")
    max_iter: int = Field(default=DEFAULT_MAX_ITER, gt=0, description="Максимум итераций")
    method: RootMethod = Field(
        default=RootMethod.NEWTON_RAPHSON, description="Newton-Raphson или Halley"
    )

    # Результат
    rounding_mode: RoundingMode = Field(
        default=RoundingMode.HALF_TO_EVEN, description="Режим округления результата"
    )
    digits: Optional[int] = Field(
        default=None, ge=0, description="Знаков после запятой в результате (None = без округления)"
    )

    # Нерегулярные cash flows
    year_length: int = Field(default=DAYS_PER_YEAR, gt=0, description="Дней в году")

    model_config = {"frozen": True, "arbitrary_types_allowed": True}

    @field_validator("guess")
    @classmethod
    def validate_guess(cls, v: Any) -> Any:
        """Начальное приближение — конечное число."""
        as_fraction(v)
        return v

    @field_validator("tolerance")
    @classmethod
    def validate_tolerance_positive(cls, v: Any) -> Any:
        """Epsilon строго положителен."""
        validate_tolerance(v)
        return v

    @classmethod
    def build(cls, base: Optional["SolverConfig"] = None, **overrides: Any) -> "SolverConfig":
        """
        Сборка конфигурации из базовой и переопределений.

        Переопределения со значением None игнорируются, что позволяет
        прокидывать необязательные аргументы функций как есть.

        Args:
            base: Базовая конфигурация (default: значения по умолчанию)
            **overrides: Поля SolverConfig

        Returns:
            Новый SolverConfig

        Raises:
            InvalidInput: Если итоговая конфигурация невалидна

        Examples:
            >>> SolverConfig.build(max_iter=50).max_iter
            50
            >>> SolverConfig.build(SolverConfig(max_iter=50), guess=None).max_iter
            50
        """
        values = base.model_dump() if base is not None else {}
        values.update({key: value for key, value in overrides.items() if value is not None})
        try:
            return cls(**values)
        except ValidationError as e:
            raise InvalidInput(f"Invalid solver configuration: {e}") from e

    def policy(self) -> RoundingPolicy:
        """Политика округления: режим результата + epsilon сходимости."""
        return RoundingPolicy(mode=self.rounding_mode, epsilon=self.tolerance)
