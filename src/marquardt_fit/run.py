from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple

import numpy as np


class FitStatus(str, Enum):
    """How the optimization loop stopped (a timeout raises instead)."""

    CONVERGED = "converged"
    MAX_ITERATIONS = "max_iterations"
    DIVERGED = "diverged"


@dataclass(frozen=True)
class FitResult:
    """Final state of one Levenberg-Marquardt fit.

    ``parameter_values`` / ``parameter_error`` / ``iterations`` mirror the
    classic ``{parameterValues, parameterError, iterations}`` result; see
    :meth:`to_dict`. Hitting ``max_iterations`` is not a failure, so check
    ``status`` (or ``converged``) to tell the two apart.
    """

    parameter_values: np.ndarray
    parameter_error: float
    iterations: int
    status: FitStatus = FitStatus.CONVERGED
    damping: float = float("nan")  # final lambda
    n_evaluations: int = 0  # model factory calls
    message: str = ""
    param_names: Optional[Tuple[str, ...]] = None
    label: Optional[str] = None

    @property
    def converged(self) -> bool:
        return self.status is FitStatus.CONVERGED

    @property
    def diverged(self) -> bool:
        return self.status is FitStatus.DIVERGED

    @property
    def params(self) -> Dict[str, float]:
        """Parameter values keyed by name (``p0``, ``p1``, ... if unnamed)."""
        names = self.param_names or tuple(
            f"p{i}" for i in range(len(self.parameter_values))
        )
        return {n: float(v) for n, v in zip(names, self.parameter_values)}

    def __getitem__(self, key: Any) -> float:
        """``res["m"]`` by name or ``res[0]`` by position."""
        if isinstance(key, str):
            return self.params[key]
        return float(self.parameter_values[key])

    def to_dict(self) -> Dict[str, Any]:
        """Plain dict in the original camelCase result layout."""
        return {
            "parameterValues": [float(v) for v in self.parameter_values],
            "parameterError": float(self.parameter_error),
            "iterations": int(self.iterations),
        }

    def summary(self, digits: int = 4) -> str:
        """Return a human-readable summary string for the result."""
        head = f"FitResult(status={self.status.value!r}, iterations={self.iterations}"
        if self.label:
            head += f", label={self.label!r}"
        lines = [head + ")"]
        lines.append(f"  {'error':>12s}: {float(self.parameter_error):.{digits}g}")
        lines.append(f"  {'damping':>12s}: {float(self.damping):.{digits}g}")
        for name, v in self.params.items():
            lines.append(f"  {name:>12s}: {v:.{digits}g}")
        if self.message:
            lines.append(f"  {self.message}")
        return "\n".join(lines)
