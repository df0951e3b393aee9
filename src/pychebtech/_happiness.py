"""Convergence ("happiness") tests for Chebyshev coefficients.

The classic check looks at how fast the tail of the coefficients decays
relative to the vertical scale of each column. The sample test cross-checks
a happy result by evaluating the function at points that lie on no
Chebyshev grid, which catches functions that only look resolved because of
aliasing.
"""

from __future__ import annotations

from typing import Callable, NamedTuple, Optional

import numpy as np

from pychebtech._alias import alias
from pychebtech._refine import sample
from pychebtech._scale import max_abs
from pychebtech._transforms import bary, barycentric_weights, chebpts, coeffs2vals
from pychebtech.prefs import HappinessMode, TechPreferences

EPS = np.finfo(float).eps

# Two fixed points in (-1, 1) that are not nodes of any Chebyshev grid.
SAMPLE_TEST_POINTS = np.array([-0.357998918959666, 0.036785641195074])

MAX_CONDITION = 1e6

# Rounding in an n-point transform leaves a tail of roughly n*eps.
ROUNDOFF_FACTOR = 10.0


class HappinessResult(NamedTuple):
    ishappy: bool
    epslevel: np.ndarray
    cutoff: int


def tail_length(n: int) -> int:
    """Number of trailing coefficients that must be negligible for happiness."""
    return min(n, max(5, int(round((n - 1) / 8))))


def _condition_estimate(values: np.ndarray, vscl: np.ndarray, hscale: float) -> np.ndarray:
    """Crude per-column estimate of ``hscale * |f'| / vscale`` on the grid."""
    n = values.shape[0]
    if n < 2:
        return np.ones(values.shape[1])
    dx = np.diff(chebpts(n))
    grad = np.abs(np.diff(values, axis=0) / dx[:, np.newaxis])
    grad[~np.isfinite(grad)] = 0.0
    cond = hscale * grad.max(axis=0) / vscl
    return np.clip(cond, 1.0, MAX_CONDITION)


def classic_check(coeffs: np.ndarray, values: Optional[np.ndarray] = None,
                  vscale=0.0, hscale: float = 1.0, tol=EPS,
                  pad: bool = False, cond=None) -> HappinessResult:
    """Test whether the coefficient tail is negligible in every column.

    Parameters
    ----------
    coeffs : ndarray of shape (n, m)
        Chebyshev coefficients, lowest degree first.
    values : ndarray of shape (n, m), optional
        Values on the grid. Computed from *coeffs* if omitted (and always
        when *pad* is True).
    vscale : float or ndarray of shape (m,), optional
        Running vertical scale; the magnitude of *values* is folded in.
    hscale : float, optional
        Horizontal scale, used to estimate the conditioning of the function.
    tol : float or ndarray of shape (m,), optional
        Target relative accuracy. Never taken below machine epsilon.
    pad : bool, optional
        Append zero coefficients before testing. A representation that was
        already simplified then checks happy with ``cutoff == n - 1``.
    cond : float or ndarray of shape (m,), optional
        Conditioning factor applied to the threshold. Estimated from
        *values* and *hscale* if omitted. Pass 1 when *tol* is an
        ``epslevel`` that already includes it.

    Returns
    -------
    HappinessResult
        ``(ishappy, epslevel, cutoff)``. ``cutoff`` is the highest degree
        whose tail (sum of relative magnitudes from that degree up) is not
        negligible in at least one column; it is shared by all columns.
        ``epslevel`` is never below the threshold the tail was compared
        with, so it bounds the truncation error.
    """
    coeffs = np.asarray(coeffs)
    if coeffs.ndim == 1:
        coeffs = coeffs[:, np.newaxis]
    if pad:
        n = coeffs.shape[0]
        extra = 5
        while tail_length(n + extra) > extra:
            extra += 1
        coeffs = np.pad(coeffs, [(0, extra), (0, 0)])
        values = None
    if values is None:
        values = coeffs2vals(coeffs)

    n, m = coeffs.shape
    vscl = np.maximum(np.broadcast_to(np.asarray(vscale, dtype=float), (m,)),
                      max_abs(values))
    vscl = np.where(vscl == 0, 1.0, vscl)

    ac = np.abs(coeffs) / vscl
    ac[~np.isfinite(ac)] = np.inf
    tail = np.cumsum(ac[::-1], axis=0)[::-1]

    if cond is None:
        cond = _condition_estimate(values, vscl, hscale)
    eps_tol = cond * np.maximum(tol, ROUNDOFF_FACTOR * EPS * n)

    significant = (tail >= eps_tol).sum(axis=0)
    cutoff = int(max(significant.max() - 1, 0))

    length = tail_length(n)
    ishappy = bool(n >= 4 and cutoff <= n - 1 - length)

    if ishappy:
        rest = tail[cutoff + 1] if cutoff + 1 < n else np.zeros(m)
    else:
        rest = tail[max(n - length, 0)]
    epslevel = np.maximum(np.maximum(rest, eps_tol), EPS)
    return HappinessResult(ishappy, epslevel, cutoff)


def sample_test(op: Callable, coeffs: np.ndarray, vscale,
                epslevel) -> bool:
    """Compare the interpolant with *op* at :data:`SAMPLE_TEST_POINTS`.

    Entries where *op* is not finite are not compared.
    """
    n, m = coeffs.shape
    expected = sample(op, SAMPLE_TEST_POINTS, m)
    actual = bary(SAMPLE_TEST_POINTS, coeffs2vals(coeffs), chebpts(n),
                  barycentric_weights(n))

    vscl = np.broadcast_to(np.asarray(vscale, dtype=float), (m,))
    vscl = np.where(vscl == 0, 1.0, vscl)
    tol = np.maximum(epslevel, 1e3 * EPS) * n * vscl

    finite = np.isfinite(expected)
    err = np.abs(expected - actual)
    return bool(np.all((err <= tol) | ~finite))


def _classic(op, coeffs, values, vscale, hscale, prefs):
    return classic_check(coeffs, values, vscale, hscale, prefs.eps)


def _classic_sample_test(op, coeffs, values, vscale, hscale, prefs):
    result = _classic(op, coeffs, values, vscale, hscale, prefs)
    if result.ishappy:
        truncated = alias(coeffs, result.cutoff + 1)
        if not sample_test(op, truncated, vscale, result.epslevel):
            result = result._replace(ishappy=False)
    return result


HAPPINESS_CHECKS = {
    HappinessMode.CLASSIC: _classic,
    HappinessMode.CLASSIC_SAMPLE_TEST: _classic_sample_test,
}


def happiness_check(op: Callable, coeffs: np.ndarray, values: np.ndarray,
                    vscale, hscale: float,
                    prefs: TechPreferences) -> HappinessResult:
    """Dispatch to the check selected by ``prefs.happiness``."""
    return HAPPINESS_CHECKS[prefs.happiness](op, coeffs, values, vscale,
                                             hscale, prefs)
