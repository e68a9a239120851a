"""
IRR / XIRR — Внутренняя норма доходности

Ставка r, при которой NPV(r) = 0 (XNPV(r) = 0 для датированных flows).
Целевая функция и её производные строятся замыканиями над уже
приведёнными к scalar типу суммами и периодами; движок (Newton-Raphson
по умолчанию или Halley) выбирается в SolverConfig.method.

Начальное приближение фиксировано (SolverConfig.guess, по умолчанию 10%).
Эвристик выбора корня нет: при нескольких сменах знака cash flows
результат зависит от guess, при отсутствии корня — NonConvergent или
DerivativeZero.

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. Пустые, нулевые целиком или содержащие NaN/Inf cash flows → InvalidInput
2. Исчерпание max_iter → NonConvergent (с последней оценкой)
3. Порядок cash flows не меняется
"""

import logging
from typing import Any, Optional, Sequence

from finprim.core.domain.solver_config import RootMethod, SolverConfig
from finprim.core.errors import RootFindingError
from finprim.core.math.cashflow import (
    _first,
    _split_dated,
    npv_core,
    resolve_scalar,
    xnpv_core,
    year_fractions,
)
from finprim.core.math.derivatives import (
    npv_prime2_core,
    npv_prime_core,
    xnpv_prime2_core,
    xnpv_prime_core,
)
from finprim.core.math.numerical_safeguards import validate_cash_flows
from finprim.core.math.root_finding import halley, newton_raphson
from finprim.core.math.scalar import ScalarType

logger = logging.getLogger(__name__)


def _solve(f, f_prime, f_prime2, config: SolverConfig, scalar: ScalarType) -> Any:
    """Запуск выбранного движка и округление результата по config."""
    engine_args = (config.guess, config.tolerance, config.max_iter, scalar)
    try:
        if config.method is RootMethod.HALLEY:
            result = halley(f, f_prime, f_prime2, *engine_args)
        else:
            result = newton_raphson(f, f_prime, *engine_args)
        result.require_converged()
    except RootFindingError as e:
        logger.debug("Rate solver (%s) failed: %s", config.method.value, e)
        raise

    if config.digits is None:
        return result.root
    return config.policy().round(result.root, config.digits, scalar)


def irr(
    cash_flows: Sequence[Any],
    guess: Any = None,
    tolerance: Any = None,
    max_iter: Optional[int] = None,
    *,
    method: Optional[RootMethod] = None,
    config: Optional[SolverConfig] = None,
    scalar: Optional[ScalarType] = None,
) -> Any:
    """
    Internal Rate of Return регулярных cash flows (аналог IRR в Excel).

    CF_0 — в момент 0, CF_t — в конце периода t.

    Args:
        cash_flows: Суммы CF_0, CF_1, ... в порядке периодов
        guess: Начальное приближение (default: 0.1)
        tolerance: Epsilon сходимости (default: 1e-5)
        max_iter: Максимум итераций (default: 20)
        method: Newton-Raphson (default) или Halley
        config: Базовая конфигурация; явные аргументы её переопределяют
        scalar: ScalarType (default: по типу первого cash flow)

    Returns:
        IRR за период в scalar типе

    Raises:
        InvalidInput: Невалидные cash flows или конфигурация
        DerivativeZero: NPV'(r) ≈ 0 на одной из итераций
        SecondOrderTermZero: Знаменатель шага Halley ≈ 0
        NonConvergent: max_iter исчерпан
        EvaluationError: Сбой вычисления NPV (например, 1 + r = 0)

    Examples:
        >>> round(irr([-100.0, 110.0]), 10)
        0.1
    """
    config = SolverConfig.build(
        config, guess=guess, tolerance=tolerance, max_iter=max_iter, method=method
    )
    scalar = resolve_scalar(scalar, _first(cash_flows))
    amounts = [scalar.coerce(amount) for amount in cash_flows]
    validate_cash_flows(amounts, scalar)

    return _solve(
        lambda rate: npv_core(rate, amounts, scalar),
        lambda rate: npv_prime_core(rate, amounts, scalar),
        lambda rate: npv_prime2_core(rate, amounts, scalar),
        config,
        scalar,
    )


def xirr(
    flows: Sequence[Sequence[Any]],
    guess: Any = None,
    tolerance: Any = None,
    max_iter: Optional[int] = None,
    *,
    method: Optional[RootMethod] = None,
    year_length: Optional[int] = None,
    config: Optional[SolverConfig] = None,
    scalar: Optional[ScalarType] = None,
) -> Any:
    """
    Internal Rate of Return датированных cash flows (аналог XIRR в Excel).

    Период каждого flow = (дата − дата первого flow) / year_length.

    Args:
        flows: Пары (when, amount); when — datetime.date или номер дня
        guess: Начальное приближение годовой ставки (default: 0.1)
        tolerance: Epsilon сходимости (default: 1e-5)
        max_iter: Максимум итераций (default: 20)
        method: Newton-Raphson (default) или Halley
        year_length: Дней в году (default: 365)
        config: Базовая конфигурация; явные аргументы её переопределяют
        scalar: ScalarType (default: по типу первой суммы)

    Returns:
        Годовая IRR в scalar типе

    Raises:
        InvalidInput: Невалидные flows, смешение дат и номеров дней,
            невалидная конфигурация
        DerivativeZero / SecondOrderTermZero / NonConvergent / EvaluationError:
            Как у irr()
    """
    config = SolverConfig.build(
        config,
        guess=guess,
        tolerance=tolerance,
        max_iter=max_iter,
        method=method,
        year_length=year_length,
    )
    dates, raw_amounts = _split_dated(flows)
    scalar = resolve_scalar(scalar, _first(raw_amounts))
    amounts = [scalar.coerce(amount) for amount in raw_amounts]
    validate_cash_flows(amounts, scalar, name="flows")
    periods = year_fractions(dates, config.year_length, scalar)

    return _solve(
        lambda rate: xnpv_core(rate, periods, amounts, scalar),
        lambda rate: xnpv_prime_core(rate, periods, amounts, scalar),
        lambda rate: xnpv_prime2_core(rate, periods, amounts, scalar),
        config,
        scalar,
    )
