"""
Request Entry Points — IRR/XIRR из JSON-подобных запросов

Запрос валидируется по JSON Schema контракту (irr_request / xirr_request),
после чего собирается SolverConfig и запускается солвер.

Числа допускаются как JSON numbers или десятичные строки ("0.1"),
даты задаются как ISO строки "YYYY-MM-DD" или целые номера дней.
"""

import datetime
import logging
from typing import Any, Dict

from finprim.core.contracts.validators import (
    ContractValidator,
    IrrRequestValidator,
    XirrRequestValidator,
)
from finprim.core.domain.cash_flow import DatedCashFlow
from finprim.core.domain.solver_config import SolverConfig
from finprim.core.errors import InvalidInput
from finprim.core.math.scalar import ScalarType, get_scalar
from finprim.rate.irr import irr, xirr

logger = logging.getLogger(__name__)


def _check_contract(validator: ContractValidator, payload: Dict[str, Any]) -> None:
    if validator.is_valid(payload):
        return
    problems = validator.error_messages(payload)
    logger.debug("Request rejected by %s contract: %s", validator.schema_name, problems)
    raise InvalidInput(f"Request violates {validator.schema_name} contract: " + "; ".join(problems))


def _parse_common(payload: Dict[str, Any]) -> tuple[ScalarType, SolverConfig]:
    scalar = get_scalar(payload.get("scalar", "float64"))
    config = SolverConfig.build(**payload.get("solver", {}))
    return scalar, config


def _parse_when(value: Any, index: int) -> Any:
    if isinstance(value, (int, float)):
        # JSON Schema считает 2.0 целым числом
        return int(value)
    try:
        return datetime.date.fromisoformat(value)
    except ValueError as e:
        raise InvalidInput(f"flows[{index}].date is not a valid date: {value!r}") from e


def irr_from_request(payload: Dict[str, Any]) -> Any:
    """
    IRR по запросу, соответствующему контракту irr_request.

    Args:
        payload: {"cash_flows": [...], "scalar": "...", "solver": {...}}

    Returns:
        IRR в scalar типе запроса

    Raises:
        InvalidInput: Нарушение контракта или невалидная конфигурация
        RootFindingError: Как у irr()

    Examples:
        >>> round(irr_from_request({"cash_flows": [-100, 110]}), 10)
        0.1
    """
    _check_contract(IrrRequestValidator(), payload)
    scalar, config = _parse_common(payload)
    return irr(payload["cash_flows"], config=config, scalar=scalar)


def xirr_from_request(payload: Dict[str, Any]) -> Any:
    """
    XIRR по запросу, соответствующему контракту xirr_request.

    Args:
        payload: {"flows": [{"date": ..., "amount": ...}, ...], "scalar": "...", "solver": {...}}

    Returns:
        Годовая IRR в scalar типе запроса

    Raises:
        InvalidInput: Нарушение контракта, невалидная дата или конфигурация
        RootFindingError: Как у xirr()
    """
    _check_contract(XirrRequestValidator(), payload)
    scalar, config = _parse_common(payload)
    flows = [
        DatedCashFlow(_parse_when(flow["date"], index), flow["amount"])
        for index, flow in enumerate(payload["flows"])
    ]
    return xirr(flows, config=config, scalar=scalar)
