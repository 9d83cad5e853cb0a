from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Mapping, Optional

import numpy as np

from .errors import FitInputError
from .util import as_float_array, is_sequence


@dataclass(frozen=True)
class SampleSet:
    """Observed ``(x, y)`` samples for a fit.

    The fitter also accepts a ``{"x": ..., "y": ...}`` mapping or an
    ``(x, y)`` tuple; see :meth:`coerce`.
    """

    x: Any
    y: Any
    label: Optional[str] = None  # shown by FitResult.summary()

    @staticmethod
    def coerce(data: Any) -> "SampleSet":
        """Validate ``data`` and return a SampleSet holding float arrays."""
        if isinstance(data, SampleSet):
            x, y, label = data.x, data.y, data.label
        elif isinstance(data, Mapping):
            x, y, label = data.get("x"), data.get("y"), data.get("label")
        elif isinstance(data, tuple) and len(data) == 2:
            (x, y), label = data, None
        else:
            x = y = label = None

        if x is None or y is None:
            raise FitInputError("The data parameter must have x and y elements")
        points = "The data parameter elements must be an array with more than 2 points"
        if not is_sequence(x) or not is_sequence(y):
            raise FitInputError(points)
        numeric = "The data parameter elements must be 1-D arrays of numbers"
        x, y = as_float_array(x, numeric), as_float_array(y, numeric)
        if x.shape[0] < 2 or y.shape[0] < 2:
            raise FitInputError(points)
        if x.shape[0] != y.shape[0]:
            raise FitInputError("The data parameter elements must have the same size")

        return SampleSet(x=x, y=y, label=label)

    def __len__(self) -> int:
        return len(self.x)

    def sorted(self) -> "SampleSet":
        """Return a copy sorted by x."""
        x = np.asarray(self.x, dtype=float).reshape((-1,))
        y = np.asarray(self.y, dtype=float).reshape((-1,))
        order = np.argsort(x, kind="stable")
        if np.all(order == np.arange(order.size)):
            return self
        return replace(self, x=x[order], y=y[order])
