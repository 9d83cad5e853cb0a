"""Finite-difference Jacobian of the model with respect to its parameters."""

from __future__ import annotations

import numpy as np

from .inputs import SampleSet
from .model import ModelFactory
from .residuals import evaluate_model


def active_parameters(gradient_difference: np.ndarray) -> np.ndarray:
    """Indices of parameters with a nonzero finite-difference step."""
    return np.flatnonzero(np.asarray(gradient_difference, dtype=float) != 0.0)


def gradient_function(
    data: SampleSet,
    evaluated_data: np.ndarray,
    params: np.ndarray,
    gradient_difference: np.ndarray,
    model: ModelFactory,
    central_difference: bool = False,
    vectorized: bool = False,
) -> np.ndarray:
    """Approximate the (negated) Jacobian, shape ``(n_active, n_points)``.

    Row ``k`` belongs to the k-th parameter with a nonzero step; parameters
    whose step is zero get no row. Forward differences use
    ``(f(p) - f(p + d)) / d`` and need ``evaluated_data == f(p)``; central
    differences use ``(f(p - d) - f(p + d)) / (2 d)``. ``params`` is never
    modified.
    """
    params = np.asarray(params, dtype=float)
    evaluated_data = np.asarray(evaluated_data, dtype=float)
    active = active_parameters(gradient_difference)
    ans = np.zeros((active.shape[0], len(data)), dtype=float)

    with np.errstate(over="ignore", invalid="ignore"):
        for row, param in enumerate(active):
            delta = float(gradient_difference[param])
            aux = params.copy()
            aux[param] += delta
            plus = evaluate_model(data, aux, model, vectorized)
            if not central_difference:
                ans[row] = (evaluated_data - plus) / delta
            else:
                aux = params.copy()
                aux[param] -= delta
                minus = evaluate_model(data, aux, model, vectorized)
                ans[row] = (minus - plus) / (2.0 * delta)

    return ans
