"""Ready-made model factories."""

from .gaussian import gaussian_with_offset, gaussian_with_offset_func
from .line import straight_line, straight_line_func
from .lorentzian import LorentzianSum, lorentzian_sum
from .sinusoid import sinusoid, sinusoid_func

__all__ = [
    "straight_line",
    "straight_line_func",
    "gaussian_with_offset",
    "gaussian_with_offset_func",
    "sinusoid",
    "sinusoid_func",
    "lorentzian_sum",
    "LorentzianSum",
]
