"""Option validation and normalization for a single fit.

:func:`normalize_options` turns user samples, a model factory and loosely
typed options into a :class:`FitState`: float arrays for the parameter
vector, bounds, squared weights and finite-difference steps, plus the loop
limits and a lazily evaluated timeout check. It never evaluates the model.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field, fields
from typing import Any, Dict, Mapping, Optional, Sequence, Union

import numpy as np

from .errors import FitInputError
from .inputs import SampleSet
from .model import ModelFactory, parameter_count
from .util import (
    MAX_SAFE_INTEGER,
    as_float_array,
    is_number,
    is_sequence,
    safe_float,
    warn_or_raise,
)

# Broadcast warnings point at the line calling levenberg_marquardt().
_CALLER_STACKLEVEL = 4

# camelCase spellings accepted for callers of the original API.
_ALIASES: Dict[str, str] = {
    "minValues": "min_values",
    "maxValues": "max_values",
    "initialValues": "initial_values",
    "dampingStepUp": "damping_step_up",
    "dampingStepDown": "damping_step_down",
    "maxIterations": "max_iterations",
    "errorTolerance": "error_tolerance",
    "centralDifference": "central_difference",
    "gradientDifference": "gradient_difference",
    "improvementThreshold": "improvement_threshold",
}


@dataclass(frozen=True)
class LMOptions:
    """User-facing fit options with their defaults.

    ``timeout`` is in seconds. ``strict`` turns the silent broadcasting of
    short ``weights`` / mismatched ``gradient_difference`` sequences and a
    NaN divergence into errors. ``vectorized`` evaluates the unary model
    once on the whole ``x`` array instead of once per sample.
    """

    timeout: Optional[float] = None
    min_values: Optional[Sequence[float]] = None
    max_values: Optional[Sequence[float]] = None
    initial_values: Optional[Sequence[float]] = None
    weights: Any = 1
    damping: float = 1e-2
    damping_step_up: float = 11
    damping_step_down: float = 9
    max_iterations: int = 100
    error_tolerance: float = 1e-7
    central_difference: bool = False
    gradient_difference: Any = 10e-2
    improvement_threshold: float = 1e-3
    vectorized: bool = False
    strict: bool = False

    @staticmethod
    def from_mapping(options: Optional[Mapping[str, Any]]) -> "LMOptions":
        """Build options from a mapping of snake_case or camelCase keys.

        ``None`` values mean "use the default".
        """
        if options is None:
            return LMOptions()
        known = {f.name for f in fields(LMOptions)}
        values: Dict[str, Any] = {}
        unknown = []
        for key, value in options.items():
            name = _ALIASES.get(key, key)
            if name not in known:
                unknown.append(key)
                continue
            if value is not None:
                values[name] = value
        if unknown:
            raise FitInputError(
                f"Unknown option(s): {sorted(unknown)}. Available: {sorted(known)}"
            )
        return LMOptions(**values)

    def replace(self, **overrides: Any) -> "LMOptions":
        """Return a copy with ``overrides`` applied (same key rules as from_mapping)."""
        merged = {f.name: getattr(self, f.name) for f in fields(self)}
        # None keeps the current value rather than resetting to the default.
        merged.update({k: v for k, v in overrides.items() if v is not None})
        return LMOptions.from_mapping(merged)


@dataclass
class FitState:
    """Fully resolved inputs for one call of the optimization loop."""

    data: SampleSet
    model: ModelFactory
    parameters: np.ndarray
    min_values: np.ndarray
    max_values: np.ndarray
    weight_square: np.ndarray
    gradient_difference: np.ndarray
    damping: float
    damping_step_up: float
    damping_step_down: float
    max_iterations: int
    error_tolerance: float
    improvement_threshold: float
    central_difference: bool = False
    vectorized: bool = False
    strict: bool = False
    timeout: Optional[float] = None
    deadline: Optional[float] = field(default=None, repr=False)

    @property
    def n_params(self) -> int:
        return int(self.parameters.shape[0])

    def timed_out(self) -> bool:
        """True once the monotonic clock has passed the deadline."""
        if self.deadline is None:
            return False
        return time.monotonic() > self.deadline


def normalize_options(
    data: Any,
    model: ModelFactory,
    options: Union[LMOptions, Mapping[str, Any], None] = None,
    **overrides: Any,
) -> FitState:
    """Validate inputs and fill defaults; raises FitInputError on bad input."""
    if isinstance(options, LMOptions):
        opts = options.replace(**overrides) if overrides else options
    else:
        merged = dict(options or {})
        merged.update({k: v for k, v in overrides.items() if v is not None})
        opts = LMOptions.from_mapping(merged)

    damping = opts.damping
    if not is_number(damping) or damping <= 0:
        raise FitInputError("The damping option must be a positive number")

    samples = SampleSet.coerce(data)
    n_points = len(samples)

    if opts.initial_values is None:
        n_params = parameter_count(model)
        if n_params < 1:
            raise FitInputError(
                "initialValues must be given when the model's parameter count "
                "cannot be inferred"
            )
        initial: Any = np.ones(n_params, dtype=float)
    else:
        initial = opts.initial_values

    par_len = len(initial) if is_sequence(initial) else 0
    max_values = opts.max_values
    min_values = opts.min_values
    if max_values is None:
        max_values = np.full(par_len, MAX_SAFE_INTEGER)
    if min_values is None:
        min_values = np.full(par_len, -MAX_SAFE_INTEGER)
    if not is_sequence(min_values) or not is_sequence(max_values):
        raise FitInputError("minValues and maxValues must be arrays")
    bounds = "minValues and maxValues must be 1-D arrays of numbers"
    min_values = as_float_array(min_values, bounds)
    max_values = as_float_array(max_values, bounds)
    if len(max_values) != len(min_values):
        raise FitInputError("minValues and maxValues must be the same size")

    if not is_sequence(initial):
        raise FitInputError("initialValues must be an array")
    initial = as_float_array(initial, "initialValues must be a 1-D array of numbers")
    if par_len < 1:
        raise FitInputError("initialValues must hold at least one parameter")
    if len(min_values) != par_len:
        raise FitInputError(
            "minValues and maxValues must have one entry per parameter "
            f"(expected {par_len}, got {len(min_values)})"
        )

    gradient_difference = _normalize_gradient_difference(
        opts.gradient_difference, par_len, opts.strict
    )
    weight_square = _normalize_weights(opts.weights, n_points, opts.strict)

    timeout = opts.timeout
    deadline = None
    if timeout is not None:
        if not is_number(timeout):
            raise FitInputError("timeout should be a number")
        timeout = safe_float(timeout)
        deadline = time.monotonic() + timeout

    return FitState(
        data=samples,
        model=model,
        parameters=initial,
        min_values=min_values,
        max_values=max_values,
        weight_square=weight_square,
        gradient_difference=gradient_difference,
        damping=safe_float(damping),
        damping_step_up=safe_float(opts.damping_step_up),
        damping_step_down=safe_float(opts.damping_step_down),
        max_iterations=int(opts.max_iterations),
        error_tolerance=safe_float(opts.error_tolerance),
        improvement_threshold=safe_float(opts.improvement_threshold),
        central_difference=bool(opts.central_difference),
        vectorized=bool(opts.vectorized),
        strict=bool(opts.strict),
        timeout=timeout,
        deadline=deadline,
    )


def _normalize_gradient_difference(value: Any, par_len: int, strict: bool) -> np.ndarray:
    """Broadcast the finite-difference step to one entry per parameter."""
    if is_number(value):
        return np.full(par_len, safe_float(value))
    message = (
        "gradientDifference should be a number or array with length equal to "
        "the number of parameters"
    )
    if is_sequence(value) and len(value) > 0:
        steps = as_float_array(value, message)
        if steps.shape[0] != par_len:
            warn_or_raise(
                strict,
                f"gradientDifference has {steps.shape[0]} entries for {par_len} "
                "parameters; using its first value for every parameter.",
                stacklevel=_CALLER_STACKLEVEL,
            )
            return np.full(par_len, steps[0])
        return steps
    raise FitInputError(message)


def _normalize_weights(value: Any, n_points: int, strict: bool) -> np.ndarray:
    """Return ``1 / weight**2`` per sample."""
    message = (
        "weights should be a number or array with length equal to the "
        "number of data points"
    )
    if is_number(value):
        w = np.full(n_points, safe_float(value))
    elif is_sequence(value) and len(value) > 0:
        w = as_float_array(value, message)
        if w.shape[0] < n_points:
            warn_or_raise(
                strict,
                f"weights has {w.shape[0]} entries for {n_points} points; "
                "using its first value for every point.",
                stacklevel=_CALLER_STACKLEVEL,
            )
            w = np.full(n_points, w[0])
        else:
            w = w[:n_points]
    else:
        raise FitInputError(message)
    with np.errstate(divide="ignore"):
        return 1.0 / w**2
