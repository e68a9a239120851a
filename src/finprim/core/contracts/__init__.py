"""
Contract Validation Module

Валидация JSON контрактов запросов к солверам ставок.
"""

from .validators import (
    ContractValidator,
    IrrRequestValidator,
    SchemaLoader,
    XirrRequestValidator,
    validate_irr_request,
    validate_xirr_request,
)

__all__ = [
    # Classes
    "SchemaLoader",
    "ContractValidator",
    "IrrRequestValidator",
    "XirrRequestValidator",
    # Functions
    "validate_irr_request",
    "validate_xirr_request",
]
