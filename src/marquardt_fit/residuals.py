from __future__ import annotations

from typing import Sequence

import numpy as np

from .inputs import SampleSet
from .model import ModelFactory


def evaluate_model(
    data: SampleSet,
    parameters: Sequence[float],
    model: ModelFactory,
    vectorized: bool = False,
) -> np.ndarray:
    """Evaluate the model at every sample x; one factory call.

    The factory receives a copy of ``parameters``. With ``vectorized`` the
    unary model is called once on the whole x array, otherwise once per
    sample.
    """
    x = np.asarray(data.x, dtype=float)
    func = model(np.array(parameters, dtype=float))
    if vectorized:
        out = np.asarray(func(x), dtype=float)
        return np.array(np.broadcast_to(out, x.shape), dtype=float)
    return np.fromiter((func(xi) for xi in x), dtype=float, count=x.shape[0])


def weighted_squared_error(
    y: np.ndarray, evaluated_data: np.ndarray, weight_square: np.ndarray
) -> float:
    """``sum((y - f)**2 / weight_square)`` for already evaluated model output."""
    with np.errstate(over="ignore", invalid="ignore"):
        r = np.asarray(y, dtype=float) - evaluated_data
        return float(np.sum(r * r / weight_square))


def error_calculation(
    data: SampleSet,
    parameters: Sequence[float],
    model: ModelFactory,
    weight_square: np.ndarray,
    vectorized: bool = False,
) -> float:
    """Sum of the weighted squared residuals between ``data.y`` and the model."""
    evaluated = evaluate_model(data, parameters, model, vectorized)
    return weighted_squared_error(data.y, evaluated, weight_square)
