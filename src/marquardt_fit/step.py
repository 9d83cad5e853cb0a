"""One damped normal-equations solve of the Levenberg-Marquardt iteration."""

from __future__ import annotations

import warnings
from dataclasses import dataclass

import numpy as np
from scipy.linalg import LinAlgError, LinAlgWarning, solve

from .inputs import SampleSet
from .jacobian import active_parameters, gradient_function
from .model import ModelFactory
from .residuals import evaluate_model


@dataclass(frozen=True)
class StepResult:
    """Outcome of :func:`step`.

    Both vectors have one entry per parameter; held parameters (zero
    finite-difference step) carry zeros.
    """

    perturbations: np.ndarray
    jacobian_weighted_residual: np.ndarray
    evaluated_data: np.ndarray


def step(
    data: SampleSet,
    params: np.ndarray,
    damping: float,
    gradient_difference: np.ndarray,
    model: ModelFactory,
    central_difference: bool,
    weight_square: np.ndarray,
    vectorized: bool = False,
) -> StepResult:
    """Solve ``(damping * I + J W J^T) delta = J W r`` for the perturbation.

    ``J`` comes from :func:`gradient_function`, ``W = diag(weight_square)``
    and ``r = y - f(params)``. The caller subtracts ``delta`` from
    ``params``. A singular or non-finite system gives a NaN perturbation;
    nothing is raised here.
    """
    params = np.asarray(params, dtype=float)
    n_params = params.shape[0]

    evaluated = evaluate_model(data, params, model, vectorized)
    jac = gradient_function(
        data,
        evaluated,
        params,
        gradient_difference,
        model,
        central_difference,
        vectorized,
    )
    residual = np.asarray(data.y, dtype=float) - evaluated

    with np.errstate(over="ignore", invalid="ignore"):
        normal = damping * np.eye(jac.shape[0]) + jac @ (jac.T * weight_square[:, None])
        rhs = jac @ (residual * weight_square)
    delta = _solve_damped(normal, rhs)

    active = active_parameters(gradient_difference)
    perturbations = np.zeros(n_params, dtype=float)
    perturbations[active] = delta
    jwr = np.zeros(n_params, dtype=float)
    jwr[active] = rhs

    return StepResult(
        perturbations=perturbations,
        jacobian_weighted_residual=jwr,
        evaluated_data=evaluated,
    )


def _solve_damped(normal: np.ndarray, rhs: np.ndarray) -> np.ndarray:
    """Cholesky solve, LU fallback; NaN when the system is singular."""
    if rhs.shape[0] == 0:
        return rhs
    if not (np.all(np.isfinite(normal)) and np.all(np.isfinite(rhs))):
        return np.full(rhs.shape, np.nan)
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", LinAlgWarning)
        try:
            return solve(normal, rhs, assume_a="pos", check_finite=False)
        except LinAlgError:
            pass
        try:
            return solve(normal, rhs, check_finite=False)
        except LinAlgError:
            return np.full(rhs.shape, np.nan)
