"""marquardt_fit public API."""
import logging

from .errors import (
    FitDivergenceError,
    FitInputError,
    FitTimeoutError,
    LevenbergMarquardtError,
)
from .inputs import SampleSet
from .model import ParameterizedFunction, from_function
from .options import LMOptions
from .run import FitResult, FitStatus
from .solver import fit, levenberg_marquardt
from . import models

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "levenberg_marquardt",
    "fit",
    "SampleSet",
    "LMOptions",
    "FitResult",
    "FitStatus",
    "ParameterizedFunction",
    "from_function",
    "models",
    "LevenbergMarquardtError",
    "FitInputError",
    "FitTimeoutError",
    "FitDivergenceError",
]
