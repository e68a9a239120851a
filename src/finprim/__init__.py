"""
finprim — Financial numeric primitives

Приведённая стоимость и её производные, Newton-Raphson/Halley и солверы
ставок (IRR, XIRR, MIRR) над float32, float64 и Decimal.
"""

from finprim.core.domain import DatedCashFlow, RootMethod, SolverConfig
from finprim.core.errors import (
    DerivativeZero,
    DivisionByZero,
    EvaluationError,
    FinPrimError,
    InvalidInput,
    NonConvergent,
    RootFindingError,
    ScalarDomainError,
    SecondOrderTermZero,
)
from finprim.core.math import (
    DECIMAL,
    FLOAT32,
    FLOAT64,
    RoundingMode,
    RoundingPolicy,
    RootResult,
    ScalarType,
    halley,
    newton_raphson,
    npv,
    round_with_mode,
    xnpv,
)
from finprim.rate import (
    apply_pct_change,
    apr,
    cagr,
    ear,
    irr,
    irr_from_request,
    mirr,
    pct_change,
    twr,
    xirr,
    xirr_from_request,
    xmirr,
)

__version__ = "0.1.0"

__all__ = [
    # Errors
    "FinPrimError",
    "InvalidInput",
    "DivisionByZero",
    "ScalarDomainError",
    "RootFindingError",
    "DerivativeZero",
    "SecondOrderTermZero",
    "NonConvergent",
    "EvaluationError",
    # Domain
    "DatedCashFlow",
    "RootMethod",
    "SolverConfig",
    # Scalars and rounding
    "ScalarType",
    "FLOAT32",
    "FLOAT64",
    "DECIMAL",
    "RoundingMode",
    "RoundingPolicy",
    "round_with_mode",
    # Present value
    "npv",
    "xnpv",
    # Root finding
    "RootResult",
    "newton_raphson",
    "halley",
    # Rate solvers
    "irr",
    "xirr",
    "mirr",
    "xmirr",
    "pct_change",
    "apply_pct_change",
    "cagr",
    "twr",
    "apr",
    "ear",
    "irr_from_request",
    "xirr_from_request",
]
