"""Vertical and horizontal scale bookkeeping for construction."""

from __future__ import annotations

import math

import numpy as np


def max_abs(values: np.ndarray) -> np.ndarray:
    """Column-wise max magnitude of the finite entries (0 for non-finite)."""
    values = np.asarray(values)
    magnitude = np.abs(values)
    magnitude[~np.isfinite(magnitude)] = 0.0
    if magnitude.shape[0] == 0:
        return np.zeros(magnitude.shape[1])
    return magnitude.max(axis=0)


def update_vscale(vscale, values: np.ndarray) -> np.ndarray:
    """Return the running vertical scale after observing *values*.

    Parameters
    ----------
    vscale : float or ndarray of shape (m,)
        Previous running scale. A scalar is broadcast to every column.
    values : ndarray of shape (n, m)
        Newly sampled values. NaN and Inf entries are ignored.

    Returns
    -------
    ndarray of shape (m,)
        ``max(vscale, max|finite values|)`` per column; never decreases.
    """
    observed = max_abs(values)
    return np.maximum(np.broadcast_to(np.asarray(vscale, dtype=float),
                                      observed.shape), observed)


def validate_hscale(hscale) -> float:
    """Check that *hscale* is a positive finite number and return it as float."""
    try:
        hscale = float(hscale)
    except (TypeError, ValueError):
        raise TypeError(f"hscale must be a real number, got {hscale!r}") from None
    if not (math.isfinite(hscale) and hscale > 0):
        raise ValueError(f"hscale must be positive and finite, got {hscale}")
    return hscale
