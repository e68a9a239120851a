"""
Core math modules для finprim

Scalar abstraction, rounding policy, cash flow evaluation, производные
и итеративный поиск корня.
"""

# Numerical Safeguards
from finprim.core.math.numerical_safeguards import (
    # Defaults
    DAYS_PER_YEAR,
    DEFAULT_GUESS,
    DEFAULT_MAX_ITER,
    DEFAULT_ROUNDING_EPSILON,
    DEFAULT_TOLERANCE,
    # Coercion
    as_fraction,
    is_finite_number,
    # Validation
    validate_cash_flows,
    validate_max_iter,
    validate_tolerance,
)

# Rounding Policy
from finprim.core.math.rounding import RoundingMode, RoundingPolicy, round_with_mode

# Scalar Abstraction
from finprim.core.math.scalar import (
    DECIMAL,
    FLOAT32,
    FLOAT64,
    DecimalScalar,
    Float32Scalar,
    Float64Scalar,
    ScalarType,
    get_scalar,
    guarded,
    scalar_for,
)

# Cash Flow Evaluation
from finprim.core.math.cashflow import (
    npv,
    npv_differing_rates,
    npv_naive,
    npv_profile,
    npv_profile_into,
    pv_of_amount,
    xnpv,
    year_fractions,
)

# Derivatives
from finprim.core.math.derivatives import (
    npv_prime2_r,
    npv_prime_r,
    pv_prime2_r,
    pv_prime_r,
    wacc,
    wacc_prime2_de,
    wacc_prime_de,
    xnpv_prime2_r,
    xnpv_prime_r,
)

# Root Finding
from finprim.core.math.root_finding import RootResult, halley, newton_raphson

__all__ = [
    # Numerical Safeguards — Defaults
    "DAYS_PER_YEAR",
    "DEFAULT_GUESS",
    "DEFAULT_MAX_ITER",
    "DEFAULT_ROUNDING_EPSILON",
    "DEFAULT_TOLERANCE",
    # Numerical Safeguards — Coercion
    "as_fraction",
    "is_finite_number",
    # Numerical Safeguards — Validation
    "validate_cash_flows",
    "validate_max_iter",
    "validate_tolerance",
    # Rounding Policy
    "RoundingMode",
    "RoundingPolicy",
    "round_with_mode",
    # Scalar Abstraction
    "ScalarType",
    "Float32Scalar",
    "Float64Scalar",
    "DecimalScalar",
    "FLOAT32",
    "FLOAT64",
    "DECIMAL",
    "scalar_for",
    "get_scalar",
    "guarded",
    # Cash Flow Evaluation
    "pv_of_amount",
    "npv",
    "npv_naive",
    "xnpv",
    "npv_differing_rates",
    "npv_profile",
    "npv_profile_into",
    "year_fractions",
    # Derivatives
    "pv_prime_r",
    "pv_prime2_r",
    "npv_prime_r",
    "npv_prime2_r",
    "xnpv_prime_r",
    "xnpv_prime2_r",
    "wacc",
    "wacc_prime_de",
    "wacc_prime2_de",
    # Root Finding
    "RootResult",
    "newton_raphson",
    "halley",
]
