from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Sequence, Tuple

import numpy as np


@dataclass(frozen=True)
class LorentzianSum:
    """Sum of ``n_peaks`` Lorentzians, parameters laid out as
    ``[center_0, height_0, width_0, center_1, ...]``.

    Each peak is ``height * w**2 / ((x - center)**2 + w**2)`` with
    ``w = width / 2``.
    """

    n_peaks: int

    @property
    def n_params(self) -> int:
        return 3 * self.n_peaks

    @property
    def param_names(self) -> Tuple[str, ...]:
        return tuple(
            f"{kind}_{i}" for i in range(self.n_peaks) for kind in ("center", "height", "width")
        )

    def __call__(self, parameters: Sequence[float]) -> Callable[[float], float]:
        p = np.asarray(parameters, dtype=float).reshape(-1)
        if p.size != self.n_params:
            raise TypeError(f"expected {self.n_params} parameters, got {p.size}")
        centers = p[0::3]
        heights = p[1::3]
        half_widths2 = (p[2::3] / 2.0) ** 2

        def predict(x):
            x = np.asarray(x, dtype=float)[..., None]
            return np.sum(heights * half_widths2 / ((x - centers) ** 2 + half_widths2), axis=-1)

        return predict


def lorentzian_sum(n_peaks: int) -> LorentzianSum:
    """Return a factory for a sum of ``n_peaks`` Lorentzian peaks."""
    if n_peaks < 1:
        raise ValueError("n_peaks must be at least 1.")
    return LorentzianSum(int(n_peaks))
