"""
Rate solvers для finprim

IRR/XIRR (итеративные), MIRR/XMIRR и простые отношения доходности
(замкнутые формулы).
"""

# IRR / XIRR
from finprim.rate.irr import irr, xirr

# MIRR / XMIRR
from finprim.rate.mirr import mirr, xmirr

# Returns
from finprim.rate.returns import (
    apply_pct_change,
    apr,
    cagr,
    ear,
    pct_change,
    twr,
)

# Request entry points
from finprim.rate.requests import irr_from_request, xirr_from_request

__all__ = [
    # IRR / XIRR
    "irr",
    "xirr",
    # MIRR / XMIRR
    "mirr",
    "xmirr",
    # Returns
    "pct_change",
    "apply_pct_change",
    "cagr",
    "twr",
    "apr",
    "ear",
    # Request entry points
    "irr_from_request",
    "xirr_from_request",
]
