"""
Domain models and value objects.

Contains solver configuration and dated cash flow value objects.
"""

from finprim.core.domain.cash_flow import DatedCashFlow, When
from finprim.core.domain.solver_config import RootMethod, SolverConfig

__all__ = [
    # Cash flows
    "DatedCashFlow",
    "When",
    # Solver config
    "RootMethod",
    "SolverConfig",
]
