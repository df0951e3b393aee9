"""Aliasing of Chebyshev coefficients onto a coarser (or finer) grid."""

from __future__ import annotations

import numpy as np


def alias(coeffs: np.ndarray, m: int) -> np.ndarray:
    """Return the coefficients of the interpolant of *coeffs* on *m* points.

    On the ``m``-point second-kind grid, ``T_d`` is indistinguishable from
    ``T_k`` with ``k = d mod 2(m-1)`` reflected into ``[0, m-1]``. Discarded
    coefficients are therefore added onto the retained degree they alias
    to, rather than dropped. For ``m`` larger than the current length the
    coefficients are padded with zero rows.

    Parameters
    ----------
    coeffs : ndarray of shape (n,) or (n, k)
        Chebyshev coefficients, lowest degree first.
    m : int
        Number of rows to return (degree ``m - 1``).

    Returns
    -------
    ndarray of shape (m,) or (m, k)
    """
    if m < 1:
        raise ValueError(f"m must be >= 1, got {m}")
    coeffs = np.asarray(coeffs)
    n = coeffs.shape[0]

    if m >= n:
        pad = [(0, m - n)] + [(0, 0)] * (coeffs.ndim - 1)
        return np.pad(coeffs, pad)

    if m == 1:
        # The one-point grid is x = 0, where T_d(0) = cos(d*pi/2).
        signs = np.zeros(n)
        signs[0::4] = 1.0
        signs[2::4] = -1.0
        return np.tensordot(signs, coeffs, axes=([0], [0]))[np.newaxis, ...]

    period = 2 * (m - 1)
    degrees = np.arange(m, n) % period
    degrees = np.where(degrees > m - 1, period - degrees, degrees)

    result = coeffs[:m].copy()
    np.add.at(result, degrees, coeffs[m:])
    return result


def prolong(coeffs: np.ndarray, m: int) -> np.ndarray:
    """Resize *coeffs* to *m* rows, padding with zeros or aliasing as needed."""
    return alias(coeffs, m)
