"""Grid refinement strategies for adaptive construction.

Each strategy takes the function, the values sampled so far (``None`` on
the first call) and the preferences, and returns ``(values, give_up)``.
The user function is only ever called through :func:`sample`.
"""

from __future__ import annotations

import math
from typing import Callable, Optional, Sequence, Tuple

import numpy as np

from pychebtech._alias import prolong
from pychebtech._transforms import chebpts, coeffs2vals
from pychebtech.exceptions import EvaluationError
from pychebtech.prefs import RefinementMode, TechPreferences


def sample(op: Callable, x: np.ndarray, n_columns: Optional[int] = None) -> np.ndarray:
    """Evaluate *op* at the points *x* and return an ``(len(x), m)`` matrix.

    Raises
    ------
    EvaluationError
        If *op* raises, returns non-numeric data, returns a number of rows
        different from ``len(x)``, or a number of columns different from
        *n_columns* (when given).
    """
    try:
        out = op(x)
    except Exception as exc:
        raise EvaluationError(
            f"Function raised {type(exc).__name__} when evaluated at "
            f"{len(x)} points: {exc}"
        ) from exc

    out = np.asarray(out)
    if not (np.issubdtype(out.dtype, np.number) or out.dtype == np.bool_):
        raise EvaluationError(f"Function returned non-numeric dtype {out.dtype}")
    if out.ndim == 1:
        out = out[:, np.newaxis]
    if out.ndim != 2:
        raise EvaluationError(
            f"Function must return a vector or a matrix, got an array of "
            f"shape {out.shape} for {len(x)} points"
        )
    if out.shape[0] != len(x):
        raise EvaluationError(
            f"Function returned {out.shape[0]} rows for {len(x)} points"
        )
    if n_columns is not None and out.shape[1] != n_columns:
        raise EvaluationError(
            f"Function returned {out.shape[1]} columns, expected {n_columns}"
        )
    dtype = np.complex128 if np.iscomplexobj(out) else np.float64
    return out.astype(dtype)


class ComposedOperator:
    """``op(f(x))`` or ``op(f(x), g(x))`` for existing Chebtech operands.

    On a Chebyshev grid the operand values come from prolonging their
    coefficients, so no operand is ever re-evaluated pointwise. Calling
    the object at arbitrary points evaluates the operands by interpolation.
    """

    def __init__(self, op: Callable, operands: Sequence):
        if not operands:
            raise ValueError("At least one operand is required")
        self.op = op
        self.operands = list(operands)

    def __call__(self, x):
        return self.op(*[f(x) for f in self.operands])

    def sample(self, n: int, n_columns: Optional[int] = None) -> np.ndarray:
        """Values of the composition on the *n*-point grid."""
        grid_values = [coeffs2vals(prolong(f.coeffs, n)) for f in self.operands]
        if all(v.shape[1] == 1 for v in grid_values):
            grid_values = [v[:, 0] for v in grid_values]
        return sample(lambda _: self.op(*grid_values), chebpts(n), n_columns)

    @property
    def max_length(self) -> int:
        return max(f.length for f in self.operands)


def _first_size(prefs: TechPreferences) -> int:
    return min(prefs.min_samples, prefs.max_degree + 1)


def _gives_up(n_old: int, n_new: int, prefs: TechPreferences) -> bool:
    return n_new - 1 > prefs.max_degree or n_new <= n_old


def refine_nested(op: Callable, values: Optional[np.ndarray],
                  prefs: TechPreferences) -> Tuple[Optional[np.ndarray], bool]:
    """Double the grid, sampling only the new points.

    The ``n``-point grid is the even-indexed subset of the ``2n-1`` point
    grid, so previous values are kept and interleaved with the new ones.
    """
    if values is None:
        n = _first_size(prefs)
        return sample(op, chebpts(n)), False

    n_old = values.shape[0]
    n = 2 * n_old - 1
    if _gives_up(n_old, n, prefs):
        return values, True

    x_new = chebpts(n)[1::2]
    new_values = sample(op, x_new, values.shape[1])
    refined = np.empty((n, values.shape[1]),
                       dtype=np.result_type(values, new_values))
    refined[0::2] = values
    refined[1::2] = new_values
    return refined, False


def _next_resampling_size(n: int) -> int:
    m = n - 1
    if m < 1:
        return 3
    power = math.log2(m)
    if power == math.floor(power) and power > 5:
        # Between 2^6 and 2^(k+1), take the (odd) size nearest 2^(k+1/2)
        n = round(2 ** (power + 0.5)) + 1
        return n - n % 2 + 1
    return 2 ** (math.floor(power) + 1) + 1


def refine_resampling(op: Callable, values: Optional[np.ndarray],
                      prefs: TechPreferences) -> Tuple[Optional[np.ndarray], bool]:
    """Sample the whole of a larger grid on every call."""
    if values is None:
        n = _first_size(prefs)
        return sample(op, chebpts(n)), False

    n_old = values.shape[0]
    n = _next_resampling_size(n_old)
    if _gives_up(n_old, n, prefs):
        return values, True
    return sample(op, chebpts(n), values.shape[1]), False


def refine_compose(op: ComposedOperator, values: Optional[np.ndarray],
                   prefs: TechPreferences) -> Tuple[Optional[np.ndarray], bool]:
    """Double the grid for a composition of existing Chebtechs."""
    if not isinstance(op, ComposedOperator):
        raise TypeError(
            "COMPOSE refinement needs a ComposedOperator source; "
            f"got {type(op).__name__}. Use compose() instead."
        )
    if values is None:
        n = min(max(prefs.min_samples, op.max_length), prefs.max_degree + 1)
        return op.sample(n), False

    n_old = values.shape[0]
    n = 2 * n_old - 1
    if _gives_up(n_old, n, prefs):
        return values, True
    return op.sample(n, values.shape[1]), False


REFINEMENT_STRATEGIES = {
    RefinementMode.NESTED: refine_nested,
    RefinementMode.RESAMPLING: refine_resampling,
    RefinementMode.COMPOSE: refine_compose,
}


def refine(op: Callable, values: Optional[np.ndarray],
           prefs: TechPreferences) -> Tuple[Optional[np.ndarray], bool]:
    """Dispatch to the strategy selected by ``prefs.refinement``."""
    return REFINEMENT_STRATEGIES[prefs.refinement](op, values, prefs)
