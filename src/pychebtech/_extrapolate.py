"""Replacement of non-finite samples by barycentric extrapolation."""

from __future__ import annotations

from typing import Tuple

import numpy as np

from pychebtech._transforms import bary, barycentric_weights, chebpts
from pychebtech.exceptions import AllNonFiniteError


def extrapolate(values: np.ndarray, extrapolate_endpoints: bool = False
                ) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Replace NaN/Inf samples with values extrapolated from finite ones.

    Each non-finite entry is replaced by the polynomial through the finite
    entries of the same column, evaluated with barycentric weights that
    have been modified for the removed nodes (``w_j * (x_j - x_bad)`` for
    each removed node).

    Parameters
    ----------
    values : ndarray of shape (n, m)
        Samples on ``chebpts(n)``. Not modified.
    extrapolate_endpoints : bool, optional
        If True, the first and last rows are also replaced (for functions
        singular at +/-1). They are not recorded in the masks unless they
        were non-finite.

    Returns
    -------
    values : ndarray of shape (n, m)
        Copy with every non-finite entry replaced.
    mask_nan : ndarray of bool, shape (n, m)
        Entries that were NaN.
    mask_inf : ndarray of bool, shape (n, m)
        Entries that were +/-Inf.

    Raises
    ------
    AllNonFiniteError
        If a column has no finite entry left to extrapolate from.
    """
    values = np.array(values, copy=True)
    mask_nan = np.isnan(values)
    mask_inf = np.isinf(values)
    bad = mask_nan | mask_inf

    n = values.shape[0]
    if extrapolate_endpoints and n > 2:
        bad[[0, -1], :] = True
    if not bad.any():
        return values, mask_nan, mask_inf

    points = chebpts(n)
    weights = barycentric_weights(n)
    for col in range(values.shape[1]):
        bad_rows = bad[:, col]
        if not bad_rows.any():
            continue
        good_rows = ~bad_rows
        if not good_rows.any():
            raise AllNonFiniteError(
                f"Column {col} has no finite values on the {n}-point grid"
            )
        x_good = points[good_rows]
        x_bad = points[bad_rows]
        # Weights of the reduced node set, renormalised to avoid underflow.
        # The factor is signed: removing an interior node flips the
        # alternation on one side of it.
        w = weights[good_rows].copy()
        for xb in x_bad:
            w *= x_good - xb
            w /= np.max(np.abs(w))
        values[bad_rows, col] = bary(
            x_bad, values[good_rows, col][:, np.newaxis], x_good, w
        )[:, 0]

    return values, mask_nan, mask_inf


def restore_nonfinite(values: np.ndarray, mask_nan: np.ndarray,
                      mask_inf: np.ndarray) -> np.ndarray:
    """Put the NaN/Inf markers recorded by :func:`extrapolate` back into *values*."""
    values = np.array(values, copy=True)
    values[mask_nan] = np.nan
    values[mask_inf] = np.inf
    return values
