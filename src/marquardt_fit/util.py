from __future__ import annotations

import inspect
import numbers
from typing import Any, Callable, Tuple
from warnings import warn

import numpy as np

from .errors import FitInputError

# Number.MAX_SAFE_INTEGER; used as the default "unbounded" clamp.
MAX_SAFE_INTEGER = float(2**53 - 1)


def infer_param_names(func: Callable[..., Any]) -> Tuple[str, ...]:
    """Infer parameter names from a function signature.

    Conventions:
    - first arg is the independent variable (x)
    - remaining positional/keyword parameters are fit parameters

    No *args/**kwargs in model functions.
    """
    sig = inspect.signature(func)
    params = list(sig.parameters.values())

    if len(params) < 2:
        raise TypeError("Model function must have at least (x, p1, ...).")

    bad_kinds = {inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD}
    for p in params:
        if p.kind in bad_kinds:
            raise TypeError("*args/**kwargs are not supported in model functions.")

    names = [p.name for p in params[1:]]
    if len(set(names)) != len(names):
        raise TypeError("Duplicate parameter names in function signature.")
    return tuple(names)


def positional_arity(func: Callable[..., Any]) -> int:
    """Count positional parameters without defaults (JS ``Function.length``)."""
    try:
        sig = inspect.signature(func)
    except (TypeError, ValueError):
        return 0
    n = 0
    for p in sig.parameters.values():
        if p.kind not in (
            inspect.Parameter.POSITIONAL_ONLY,
            inspect.Parameter.POSITIONAL_OR_KEYWORD,
        ):
            break
        if p.default is not inspect.Parameter.empty:
            break
        n += 1
    return n


def is_number(x: Any) -> bool:
    """True for real scalars (python or numpy); bools are rejected."""
    if isinstance(x, bool):
        return False
    if isinstance(x, np.ndarray):
        return x.shape == () and np.issubdtype(x.dtype, np.number)
    return isinstance(x, numbers.Real)


def is_sequence(x: Any) -> bool:
    """True for lists, tuples and 1-D arrays."""
    if isinstance(x, np.ndarray):
        return x.ndim == 1
    return isinstance(x, (list, tuple))


def safe_float(x: Any) -> float:
    """Convert numpy scalar / 0-d array to python float."""
    if isinstance(x, np.ndarray) and x.shape == ():
        return float(x.item())
    return float(x)


def as_float_array(values: Any, message: str) -> np.ndarray:
    """Copy ``values`` into a fresh 1-D float array.

    Nested, ragged or non-numeric input raises FitInputError with ``message``.
    """
    try:
        arr = np.array(values, dtype=float)
    except (TypeError, ValueError) as exc:
        raise FitInputError(message) from exc
    if arr.ndim != 1:
        raise FitInputError(message)
    return arr


def warn_or_raise(strict: bool, message: str, stacklevel: int = 2) -> None:
    """Warn or raise based on strict mode.

    ``stacklevel`` counts from the caller of this function.
    """
    if strict:
        raise FitInputError(message)
    warn(message, UserWarning, stacklevel=stacklevel + 1)
