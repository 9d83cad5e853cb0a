"""Exception types raised by marquardt_fit."""

from __future__ import annotations

from typing import Any, Optional


class LevenbergMarquardtError(Exception):
    """Base class for every error raised by a fit."""


class FitInputError(LevenbergMarquardtError, ValueError):
    """Invalid samples or options, raised before any model evaluation."""


class FitTimeoutError(LevenbergMarquardtError, TimeoutError):
    """The wall-clock deadline passed while iterating."""

    def __init__(self, timeout: float):
        self.timeout = timeout
        super().__init__(f"The execution time is over to {timeout} seconds")


class FitDivergenceError(LevenbergMarquardtError, ArithmeticError):
    """The error metric became NaN (strict mode only).

    ``result`` holds the state the loop stopped in, parameters included.
    """

    def __init__(self, message: str, result: Optional[Any] = None):
        self.result = result
        super().__init__(message)
