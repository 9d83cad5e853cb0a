"""Levenberg-Marquardt main loop and the public ``levenberg_marquardt`` entry point."""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping, Sequence, Union

import numpy as np

from .errors import FitDivergenceError, FitTimeoutError
from .model import ModelFactory, parameter_names
from .options import FitState, LMOptions, normalize_options
from .residuals import error_calculation
from .run import FitResult, FitStatus
from .step import step

log = logging.getLogger(__name__)

MIN_DAMPING = 1e-7
MAX_DAMPING = 1e7


class _CountingFactory:
    """Model factory wrapper that counts factory calls."""

    def __init__(self, model: ModelFactory):
        self.model = model
        self.calls = 0

    def __call__(self, parameters: Sequence[float]) -> Callable[[Any], Any]:
        self.calls += 1
        return self.model(parameters)


def levenberg_marquardt(
    data: Any,
    model: ModelFactory,
    options: Union[LMOptions, Mapping[str, Any], None] = None,
    **overrides: Any,
) -> FitResult:
    """Fit ``model`` to ``data`` by damped non-linear least squares.

    Parameters
    ----------
    data:
        A :class:`~marquardt_fit.SampleSet`, a ``{"x": ..., "y": ...}``
        mapping or an ``(x, y)`` tuple with at least two points.
    model:
        Factory ``parameters -> (x -> y)``. Its parameter count (an
        ``n_params`` attribute, else its positional arity) sizes the default
        all-ones ``initial_values``.
    options:
        :class:`~marquardt_fit.LMOptions` or a mapping of option names
        (snake_case or the original camelCase). Keyword ``overrides`` win.

    Returns
    -------
    FitResult
        ``status`` is ``CONVERGED`` once the weighted error is at or below
        ``error_tolerance``, ``MAX_ITERATIONS`` when the budget runs out, and
        ``DIVERGED`` if the error became NaN (the parameters are then the
        NaN-producing ones).

    Raises
    ------
    FitInputError
        Invalid samples or options; raised before the model is evaluated.
    FitTimeoutError
        ``timeout`` seconds elapsed; checked once per iteration.
    FitDivergenceError
        Only with ``strict=True``, instead of returning a diverged result.
    """
    state = normalize_options(data, model, options, **overrides)
    return optimize(state)


fit = levenberg_marquardt


def optimize(state: FitState) -> FitResult:
    """Run the iteration loop on an already normalized :class:`FitState`."""
    data = state.data
    model = _CountingFactory(state.model)
    parameters = state.parameters
    min_values = state.min_values
    max_values = state.max_values
    weight_square = state.weight_square
    damping = state.damping
    vectorized = state.vectorized

    error = error_calculation(data, parameters, model, weight_square, vectorized)
    converged = error <= state.error_tolerance
    diverged = False

    iteration = 0
    while iteration < state.max_iterations and not converged:
        previous_error = error

        result = step(
            data,
            parameters,
            damping,
            state.gradient_difference,
            model,
            state.central_difference,
            weight_square,
            vectorized,
        )
        perturbations = result.perturbations

        # Clamp the candidate before scoring it.
        parameters[:] = np.minimum(
            np.maximum(min_values, parameters - perturbations), max_values
        )

        error = error_calculation(data, parameters, model, weight_square, vectorized)
        if np.isnan(error):
            diverged = True
            break

        with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
            predicted = perturbations @ (
                perturbations * damping + result.jacobian_weighted_residual
            )
            improvement_metric = np.float64(previous_error - error) / predicted

        if improvement_metric > state.improvement_threshold:
            damping = max(damping / state.damping_step_down, MIN_DAMPING)
            accepted = True
        else:
            # Only the error is rolled back; parameters keep the trial values.
            error = previous_error
            damping = min(damping * state.damping_step_up, MAX_DAMPING)
            accepted = False

        log.debug(
            "iteration %d: error=%.6g gain=%.3g damping=%.3g %s",
            iteration + 1,
            error,
            improvement_metric,
            damping,
            "accepted" if accepted else "rejected",
        )

        if state.timed_out():
            raise FitTimeoutError(state.timeout)

        converged = error <= state.error_tolerance
        iteration += 1

    if diverged:
        status = FitStatus.DIVERGED
        message = f"error became NaN after {iteration} iterations"
    elif converged:
        status = FitStatus.CONVERGED
        message = ""
    else:
        status = FitStatus.MAX_ITERATIONS
        message = f"error tolerance not reached in {state.max_iterations} iterations"

    fit_result = FitResult(
        parameter_values=parameters.copy(),
        parameter_error=float(error),
        iterations=iteration,
        status=status,
        damping=float(damping),
        n_evaluations=model.calls,
        message=message,
        param_names=parameter_names(state.model),
        label=data.label,
    )

    if diverged:
        log.warning("Levenberg-Marquardt fit diverged: %s", message)
        if state.strict:
            raise FitDivergenceError(message, result=fit_result)
    else:
        log.info(
            "Levenberg-Marquardt fit finished: status=%s iterations=%d error=%.6g",
            status.value,
            iteration,
            error,
        )
    return fit_result
