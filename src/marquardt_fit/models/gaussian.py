from __future__ import annotations

from typing import Dict

import numpy as np

from ..model import ParameterizedFunction


def gaussian_with_offset_func(x, x0, y0, a, sigma):
    """Gaussian with baseline: y = y0 + a * exp(-0.5 * ((x - x0)/sigma)^2)."""
    return y0 + a * np.exp(-0.5 * ((x - x0) / sigma) ** 2)


def _guess_gaussian(x: np.ndarray, y: np.ndarray) -> Dict[str, float]:
    """Baseline from the mean, peak from the largest excursion, width from the span."""
    if x.size == 0 or y.size == 0:
        return {}

    y0 = float(np.mean(y))
    dy_min = y0 - float(np.min(y))
    dy_max = float(np.max(y) - y0)

    if dy_max >= dy_min:
        a = dy_max
        x0 = float(x[np.argmax(y)])
    else:
        # Dip: negative amplitude
        a = -dy_min
        x0 = float(x[np.argmin(y)])

    span = float(np.max(x) - np.min(x))
    sigma = 0.2 * span if span > 0 else 1.0
    return {"x0": x0, "y0": y0, "a": a, "sigma": sigma}


def gaussian_with_offset(*, name: str = "gaussian") -> ParameterizedFunction:
    """Return a Gaussian model factory with offset.

    Parameters in the model
    -----------------------
    x0   : center position
    y0   : baseline
    a    : amplitude (negative for a dip)
    sigma: width
    """
    return ParameterizedFunction.from_function(
        gaussian_with_offset_func, name=name
    ).with_guesser(_guess_gaussian)
