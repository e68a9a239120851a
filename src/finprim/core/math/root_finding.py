"""
Root Finding — Newton-Raphson и Halley над любым ScalarType

Оба движка принимают замыкания f, f' (и f'' для Halley), начальное
приближение, epsilon сходимости и максимум итераций. Итерационное
состояние — только локальные переменные (x, f(x), счётчик).

ШАГИ:
    Newton-Raphson: x_{n+1} = x_n − f / f'
    Halley:         x_{n+1} = x_n − 2·f / ((2·f'^2 − f·f'') / f')

КРИТЕРИИ ОСТАНОВКИ (предикат RoundingPolicy.is_negligible с epsilon = tolerance):
    |f(x_n)| округляется к нулю        → сошлось в x_n
    |x_{n+1} − x_n| округляется к нулю → сошлось в x_{n+1}
    исчерпан max_iter                  → RootResult(converged=False)

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. f'(x) ≈ 0 → DerivativeZero (никогда деление на ноль)
2. (2·f'^2 − f·f'') / f' ≈ 0 → SecondOrderTermZero
   (знаменатель в масштабе f')
3. Сбой вычисления f/f'/f'' или шага → EvaluationError со stage
4. Любая ошибка несёт последнюю оценку (last_x, last_fx, iterations)
5. NaN/Inf никогда не возвращаются как корень
6. guess и tolerance, не представимые в scalar типе конечным числом → InvalidInput
"""

import logging
from typing import Any, Callable, NamedTuple

from finprim.core.errors import (
    DerivativeZero,
    EvaluationError,
    InvalidInput,
    NonConvergent,
    SecondOrderTermZero,
)
from finprim.core.math.numerical_safeguards import (
    DEFAULT_MAX_ITER,
    DEFAULT_TOLERANCE,
    validate_max_iter,
    validate_tolerance,
)
from finprim.core.math.rounding import RoundingPolicy
from finprim.core.math.scalar import ScalarType, scalar_for

logger = logging.getLogger(__name__)

Function = Callable[[Any], Any]


# =============================================================================
# РЕЗУЛЬТАТ
# =============================================================================


class RootResult(NamedTuple):
    """
    Результат итеративного поиска корня.

    converged=False означает исчерпание max_iter: root — последняя оценка.
    """
    root: Any  # Последняя оценка корня
    fx: Any  # f(root)
    iterations: int  # Количество выполненных итераций
    converged: bool  # Выполнен ли критерий сходимости

    def require_converged(self) -> "RootResult":
        """
        Возвращает self, если поиск сошёлся.

        Raises:
            NonConvergent: Если max_iter исчерпан (несёт лучшую оценку)
        """
        if not self.converged:
            raise NonConvergent(
                "Maximum iterations reached without convergence",
                self.root,
                self.fx,
                self.iterations,
            )
        return self


# =============================================================================
# ВСПОМОГАТЕЛЬНЫЕ
# =============================================================================


def _evaluate(
    func: Function,
    x: Any,
    stage: str,
    scalar: ScalarType,
    last_fx: Any,
    iteration: int,
) -> Any:
    """Вычисление func(x) с переводом арифметических сбоев в EvaluationError."""
    try:
        value = scalar.coerce(func(x))
    except ArithmeticError as e:
        logger.debug("Root finding %s failed at x=%s: %s", stage, x, e)
        raise EvaluationError(
            f"{stage} evaluation failed: {e}", x, last_fx, iteration, stage
        ) from e
    if not scalar.is_finite(value):
        logger.debug("Root finding %s is not finite at x=%s", stage, x)
        raise EvaluationError(
            f"{stage} evaluation returned non-finite value {value}",
            x,
            last_fx,
            iteration,
            stage,
        )
    return value


def _next_iterate(
    x: Any,
    numerator: Any,
    denominator: Any,
    scalar: ScalarType,
    fx: Any,
    iteration: int,
) -> Any:
    """x − numerator / denominator; переполнение и NaN → EvaluationError(stage="step")."""
    try:
        x_next = x - scalar.div(numerator, denominator)
    except ArithmeticError as e:
        raise EvaluationError(f"step failed: {e}", x, fx, iteration, "step") from e
    if not scalar.is_finite(x_next):
        raise EvaluationError(
            f"step produced non-finite iterate {x_next}", x, fx, iteration, "step"
        )
    return x_next


def _prepare(
    guess: Any,
    tolerance: Any,
    max_iter: Any,
    scalar: ScalarType | None,
) -> tuple[ScalarType, RoundingPolicy, int, Any]:
    """Проверка параметров и приведение guess/tolerance к scalar типу."""
    exact_tolerance = validate_tolerance(tolerance)
    max_iter = validate_max_iter(max_iter)
    if scalar is None:
        scalar = scalar_for(guess)
    try:
        with scalar.context():
            x0 = scalar.coerce(guess)
            epsilon = scalar.coerce(exact_tolerance)
    except ArithmeticError as e:
        raise InvalidInput(f"guess/tolerance not representable in {scalar.name}: {e}") from e
    if not scalar.is_finite(x0):
        raise InvalidInput(f"guess {guess!r} is not finite in {scalar.name}")
    if not scalar.is_finite(epsilon) or scalar.is_zero(epsilon):
        raise InvalidInput(f"tolerance {tolerance!r} is not a positive finite {scalar.name} value")
    return scalar, RoundingPolicy(epsilon=epsilon), max_iter, x0


# =============================================================================
# NEWTON-RAPHSON
# =============================================================================


def newton_raphson(
    f: Function,
    f_prime: Function,
    guess: Any,
    tolerance: Any = DEFAULT_TOLERANCE,
    max_iter: int = DEFAULT_MAX_ITER,
    scalar: ScalarType | None = None,
) -> RootResult:
    """
    Поиск корня f методом Newton-Raphson.

    Args:
        f: Целевая функция
        f_prime: Производная f
        guess: Начальное приближение
        tolerance: Epsilon сходимости (> 0)
        max_iter: Максимум итераций (> 0)
        scalar: ScalarType (default: по типу guess)

    Returns:
        RootResult; converged=False при исчерпании max_iter

    Raises:
        InvalidInput: tolerance ≤ 0 или max_iter ≤ 0
        DerivativeZero: f'(x) округляется к нулю
        EvaluationError: Сбой вычисления f, f' или шага

    Examples:
        >>> result = newton_raphson(lambda x: x * x - 2.0, lambda x: 2.0 * x, 1.0)
        >>> round(result.root, 5)
        1.41421
    """
    scalar, policy, max_iter, x0 = _prepare(guess, tolerance, max_iter, scalar)

    with scalar.context():
        x = x0
        fx = None
        for iteration in range(max_iter):
            fx = _evaluate(f, x, "objective", scalar, fx, iteration)
            if policy.is_negligible(fx, scalar):
                logger.debug("Newton-Raphson converged on |f(x)| at x=%s after %d iterations", x, iteration)
                return RootResult(x, fx, iteration, True)

            dfx = _evaluate(f_prime, x, "derivative", scalar, fx, iteration)
            if policy.is_negligible(dfx, scalar):
                logger.debug("Newton-Raphson derivative is zero at x=%s", x)
                raise DerivativeZero(
                    f"Derivative {dfx} rounds to zero", x, fx, iteration
                )

            x_next = _next_iterate(x, fx, dfx, scalar, fx, iteration)
            if policy.is_negligible(x_next - x, scalar):
                fx_next = _evaluate(f, x_next, "objective", scalar, fx, iteration + 1)
                logger.debug("Newton-Raphson converged at x=%s after %d iterations", x_next, iteration + 1)
                return RootResult(x_next, fx_next, iteration + 1, True)
            x = x_next

        fx = _evaluate(f, x, "objective", scalar, fx, max_iter)
        logger.debug("Newton-Raphson exhausted %d iterations at x=%s", max_iter, x)
        return RootResult(x, fx, max_iter, False)


# =============================================================================
# HALLEY
# =============================================================================


def halley(
    f: Function,
    f_prime: Function,
    f_prime2: Function,
    guess: Any,
    tolerance: Any = DEFAULT_TOLERANCE,
    max_iter: int = DEFAULT_MAX_ITER,
    scalar: ScalarType | None = None,
) -> RootResult:
    """
    Поиск корня f методом Halley (кубическая сходимость).

    Находит тот же корень, что и Newton-Raphson, за меньшее число итераций.

    Args:
        f: Целевая функция
        f_prime: Первая производная f
        f_prime2: Вторая производная f
        guess: Начальное приближение
        tolerance: Epsilon сходимости (> 0)
        max_iter: Максимум итераций (> 0)
        scalar: ScalarType (default: по типу guess)

    Returns:
        RootResult; converged=False при исчерпании max_iter

    Raises:
        InvalidInput: tolerance ≤ 0 или max_iter ≤ 0
        DerivativeZero: f'(x) округляется к нулю
        SecondOrderTermZero: (2·f'^2 − f·f'') / f' округляется к нулю
        EvaluationError: Сбой вычисления f, f', f'' или шага
    """
    scalar, policy, max_iter, x0 = _prepare(guess, tolerance, max_iter, scalar)

    with scalar.context():
        two = scalar.two
        x = x0
        fx = None
        for iteration in range(max_iter):
            fx = _evaluate(f, x, "objective", scalar, fx, iteration)
            if policy.is_negligible(fx, scalar):
                logger.debug("Halley converged on |f(x)| at x=%s after %d iterations", x, iteration)
                return RootResult(x, fx, iteration, True)

            dfx = _evaluate(f_prime, x, "derivative", scalar, fx, iteration)
            if policy.is_negligible(dfx, scalar):
                logger.debug("Halley derivative is zero at x=%s", x)
                raise DerivativeZero(
                    f"Derivative {dfx} rounds to zero", x, fx, iteration
                )
            d2fx = _evaluate(f_prime2, x, "second_derivative", scalar, fx, iteration)

            try:
                # Знаменатель в масштабе f'
                denominator = scalar.div(two * dfx * dfx - fx * d2fx, dfx)
                numerator = two * fx
            except ArithmeticError as e:
                raise EvaluationError(f"step failed: {e}", x, fx, iteration, "step") from e
            if not scalar.is_finite(denominator):
                raise EvaluationError(
                    f"Halley denominator {denominator} is not finite", x, fx, iteration, "step"
                )
            if policy.is_negligible(denominator, scalar):
                logger.debug("Halley second-order term is zero at x=%s", x)
                raise SecondOrderTermZero(
                    f"Halley denominator {denominator} rounds to zero", x, fx, iteration
                )

            x_next = _next_iterate(x, numerator, denominator, scalar, fx, iteration)
            if policy.is_negligible(x_next - x, scalar):
                fx_next = _evaluate(f, x_next, "objective", scalar, fx, iteration + 1)
                logger.debug("Halley converged at x=%s after %d iterations", x_next, iteration + 1)
                return RootResult(x_next, fx_next, iteration + 1, True)
            x = x_next

        fx = _evaluate(f, x, "objective", scalar, fx, max_iter)
        logger.debug("Halley exhausted %d iterations at x=%s", max_iter, x)
        return RootResult(x, fx, max_iter, False)
