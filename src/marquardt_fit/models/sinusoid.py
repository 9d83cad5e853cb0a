from __future__ import annotations

from typing import Dict

import numpy as np

from ..model import ParameterizedFunction


def sinusoid_func(x, amplitude, offset, frequency, phase):
    """Module-level sinusoid: offset + amplitude * sin(2π f x + phase)."""
    return offset + amplitude * np.sin(2 * np.pi * frequency * x + phase)


def _guess_sinusoid(x: np.ndarray, y: np.ndarray) -> Dict[str, float]:
    """Sensible default guesser for sinusoids.

    Strategy:
    - estimate frequency via FFT peak (requires ~uniform sampling),
    - then estimate offset/amplitude/phase via linear least squares at that frequency.
    """
    x_arr = np.asarray(x, dtype=float).reshape(-1)
    y_arr = np.asarray(y, dtype=float).reshape(-1)
    if x_arr.size < 6 or y_arr.size != x_arr.size:
        return {}
    if not (np.all(np.isfinite(x_arr)) and np.all(np.isfinite(y_arr))):
        return {}

    if np.any(np.diff(x_arr) < 0):
        order = np.argsort(x_arr)
        x_arr = x_arr[order]
        y_arr = y_arr[order]

    out: Dict[str, float] = {"offset": float(np.mean(y_arr))}
    amp0 = 0.5 * float(np.max(y_arr) - np.min(y_arr))
    out["amplitude"] = amp0 if np.isfinite(amp0) and amp0 > 0 else 1.0

    dx = np.diff(x_arr)
    if not np.all(dx > 0):
        return out
    dx_med = float(np.median(dx))
    # Rough uniformity check: FFT is only sensible for near-uniform x.
    if float(np.std(dx) / (np.mean(dx) + 1e-15)) > 1e-2:
        return out

    y0 = y_arr - float(np.mean(y_arr))
    mag = np.abs(np.fft.rfft(y0))
    freqs = np.fft.rfftfreq(y0.size, d=dx_med)
    if freqs.size < 2:
        return out

    k = int(np.argmax(mag[1:]) + 1)
    f_peak = float(freqs[k])
    # Sub-bin refinement via quadratic interpolation around the FFT peak.
    if 0 < k < (mag.size - 1):
        y1, y2, y3 = float(mag[k - 1]), float(mag[k]), float(mag[k + 1])
        denom = y1 - 2.0 * y2 + y3
        if denom != 0.0:
            delta = 0.5 * (y1 - y3) / denom
            if np.isfinite(delta) and abs(delta) <= 1.0:
                f_peak = float(freqs[k] + delta * (freqs[1] - freqs[0]))
    out["frequency"] = f_peak

    w = 2.0 * np.pi * f_peak
    A = np.stack([np.ones_like(x_arr), np.sin(w * x_arr), np.cos(w * x_arr)], axis=1)
    coef, *_ = np.linalg.lstsq(A, y_arr, rcond=None)
    off, a_sin, a_cos = [float(v) for v in coef]
    amp = float(np.hypot(a_sin, a_cos))
    if np.isfinite(off):
        out["offset"] = off
    if np.isfinite(amp) and amp > 0:
        out["amplitude"] = amp
        out["phase"] = float(np.arctan2(a_cos, a_sin))
    return out


def sinusoid(*, name: str = "sinusoid") -> ParameterizedFunction:
    """Return a sinusoid model factory with FFT-based seeding."""
    return ParameterizedFunction.from_function(sinusoid_func, name=name).with_guesser(
        _guess_sinusoid
    )
