from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, Optional, Sequence, Tuple

import numpy as np

from .inputs import SampleSet
from .util import infer_param_names, positional_arity

# parameters -> (x -> y_predicted)
ModelFactory = Callable[[Sequence[float]], Callable[[Any], Any]]

# (x, y) -> {name: initial value}; may leave names out.
Guesser = Callable[[np.ndarray, np.ndarray], Dict[str, float]]


@dataclass(frozen=True)
class ParameterizedFunction:
    """A model factory built from a plain ``f(x, p1, p2, ...)`` function.

    Calling it with a parameter vector returns the unary model ``x -> y``
    that the fitter evaluates.
    """

    name: str
    func: Callable[..., Any]
    param_names: Tuple[str, ...]
    guesser: Optional[Guesser] = None

    # ---- constructor ----
    @staticmethod
    def from_function(
        func: Callable[..., Any], *, name: Optional[str] = None
    ) -> "ParameterizedFunction":
        """Construct a ParameterizedFunction from a plain function signature."""
        names = infer_param_names(func)
        return ParameterizedFunction(
            name=name or getattr(func, "__name__", "model"),
            func=func,
            param_names=names,
        )

    @property
    def n_params(self) -> int:
        return len(self.param_names)

    # ---- evaluation ----
    def __call__(self, parameters: Sequence[float]) -> Callable[[Any], Any]:
        values = tuple(parameters)
        if len(values) != self.n_params:
            raise TypeError(
                f"{self.name!r} expects {self.n_params} parameters, got {len(values)}."
            )
        func = self.func

        def predict(x):
            return func(x, *values)

        return predict

    def eval(self, x: Any, parameters: Sequence[float]) -> Any:
        """Evaluate the model function at x with the given parameter vector."""
        return self(parameters)(x)

    def named(self, parameters: Sequence[float]) -> Dict[str, float]:
        """Map a parameter vector onto the function's parameter names."""
        return {n: float(v) for n, v in zip(self.param_names, parameters)}

    def with_guesser(self, fn: Guesser) -> "ParameterizedFunction":
        """Return a copy that seeds ``initial_guess`` with ``fn``."""
        return replace(self, guesser=fn)

    def initial_guess(self, data: Any, **overrides: float) -> np.ndarray:
        """Heuristic starting vector for ``initial_values``.

        Precedence per parameter: ``overrides``, then the guesser, then 1.0
        (the fitter's own default).
        """
        samples = SampleSet.coerce(data)
        unknown = set(overrides) - set(self.param_names)
        if unknown:
            raise KeyError(sorted(unknown)[0])
        seeds: Dict[str, float] = {}
        if self.guesser is not None:
            guessed = self.guesser(np.asarray(samples.x), np.asarray(samples.y))
            seeds.update({k: float(v) for k, v in guessed.items() if np.isfinite(v)})
        seeds.update({k: float(v) for k, v in overrides.items()})
        return np.array([seeds.get(n, 1.0) for n in self.param_names], dtype=float)


def from_function(
    func: Callable[..., Any], *, name: Optional[str] = None
) -> ParameterizedFunction:
    """Adapt ``func(x, p1, p2, ...)`` into a model factory."""
    return ParameterizedFunction.from_function(func, name=name)


def parameter_count(factory: ModelFactory) -> int:
    """Number of parameters a factory declares.

    An explicit integer ``n_params`` attribute wins; otherwise the factory's
    positional arity is used.
    """
    n = getattr(factory, "n_params", None)
    if isinstance(n, int) and not isinstance(n, bool):
        return n
    return positional_arity(factory)


def parameter_names(factory: ModelFactory) -> Optional[Tuple[str, ...]]:
    names = getattr(factory, "param_names", None)
    if names is None:
        return None
    return tuple(str(n) for n in names)
