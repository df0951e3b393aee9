"""Chebyshev grid and value/coefficient transforms.

All grids are Chebyshev points of the second kind in ascending order,
``x_j = -cos(j*pi/(n-1))`` for ``j = 0, ..., n-1``. Values and coefficients
are stored as 2-D arrays with one row per grid point (or degree) and one
column per output component.

References
----------
- Trefethen (2013), "Approximation Theory and Approximation Practice",
  SIAM, Chapters 2-3 and 5.
- Berrut & Trefethen (2004), "Barycentric Lagrange Interpolation",
  SIAM Review 46(3):501-517
"""

from __future__ import annotations

import numpy as np
from scipy.fft import dct


def chebpts(n: int) -> np.ndarray:
    """Return *n* Chebyshev points of the second kind on [-1, 1].

    Parameters
    ----------
    n : int
        Number of points (degree ``n - 1``). Must be >= 1.

    Returns
    -------
    ndarray of shape (n,)
        Points in ascending order. For ``n == 1`` this is ``[0.0]``.
    """
    if n < 1:
        raise ValueError(f"n must be >= 1, got {n}")
    if n == 1:
        return np.array([0.0])
    m = n - 1
    # The sine form is exactly antisymmetric about 0, unlike -cos(j*pi/m).
    return np.sin(np.pi * np.arange(-m, m + 1, 2) / (2 * m))


def barycentric_weights(n: int) -> np.ndarray:
    """Barycentric weights for :func:`chebpts` of size *n*.

    Alternating signs with halved endpoints, scaled to max magnitude 1.
    """
    if n < 1:
        raise ValueError(f"n must be >= 1, got {n}")
    weights = np.ones(n)
    weights[1::2] = -1.0
    if n > 1:
        weights[0] *= 0.5
        weights[-1] *= 0.5
    return weights


def _dct1(x: np.ndarray) -> np.ndarray:
    """Type-I DCT along axis 0, applied to real and imaginary parts separately."""
    if np.iscomplexobj(x):
        return dct(x.real, type=1, axis=0) + 1j * dct(x.imag, type=1, axis=0)
    return dct(x, type=1, axis=0)


def vals2coeffs(values: np.ndarray) -> np.ndarray:
    """Convert values on the Chebyshev grid to Chebyshev coefficients.

    Parameters
    ----------
    values : ndarray of shape (n,) or (n, m)
        Values at ``chebpts(n)`` (ascending order).

    Returns
    -------
    ndarray, same shape as *values*
        Row ``k`` holds the coefficient of ``T_k``.
    """
    values = np.asarray(values)
    n = values.shape[0]
    if n <= 1:
        return values.copy()
    # Reverse to descending-node order for the DCT-I convention
    coeffs = _dct1(values[::-1]) / (n - 1)
    coeffs[0] /= 2
    coeffs[-1] /= 2
    return coeffs


def coeffs2vals(coeffs: np.ndarray) -> np.ndarray:
    """Convert Chebyshev coefficients to values on the Chebyshev grid.

    Exact inverse of :func:`vals2coeffs` up to rounding.
    """
    coeffs = np.asarray(coeffs)
    n = coeffs.shape[0]
    if n <= 1:
        return coeffs.copy()
    tmp = coeffs.copy()
    tmp[1:-1] /= 2
    return _dct1(tmp)[::-1].copy()


def bary(x: np.ndarray, values: np.ndarray, points: np.ndarray,
         weights: np.ndarray) -> np.ndarray:
    """Evaluate the barycentric interpolant through (*points*, *values*) at *x*.

    Parameters
    ----------
    x : ndarray of shape (k,)
        Evaluation points.
    values : ndarray of shape (n, m)
        Values at the interpolation nodes.
    points : ndarray of shape (n,)
        Interpolation nodes.
    weights : ndarray of shape (n,)
        Barycentric weights for *points*.

    Returns
    -------
    ndarray of shape (k, m)
        Interpolated values. Points within 1e-14 of a node return the
        node value.
    """
    x = np.asarray(x, dtype=float).ravel()
    values = np.asarray(values)
    if len(points) == 1:
        return np.repeat(values[:1], len(x), axis=0)

    diff = x[:, np.newaxis] - points[np.newaxis, :]
    coincident = np.abs(diff) < 1e-14
    diff[coincident] = 1.0
    c = weights / diff
    result = (c @ values) / c.sum(axis=1)[:, np.newaxis]

    rows, nodes = np.nonzero(coincident)
    if len(rows):
        result[rows] = values[nodes]
    return result
