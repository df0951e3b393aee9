"""Adaptive construction of Chebtech objects.

The construction loop is::

    --->[refine]         sample the function on the next grid
   |        |            (nested, resampling or composition)
   |        v
   |  [update vscale]    from sampled values only, never extrapolated ones
   |        |
   |        v
   |  [extrapolate]      replace NaN/Inf (and optionally endpoint) samples
   |        |
   |        v
   |  [vals2coeffs]
   |        |
   |        v
    -<--[happy?]         classic tail check, plus the sample test
     no     | yes
            v
        [alias]          fold the discarded tail onto the kept degrees
            |
            v
       [simplify]

If the refinement strategy runs past ``max_degree`` the loop gives up and
the best representation found so far is returned with ``ishappy=False``.
"""

from __future__ import annotations

import time
import warnings
from dataclasses import dataclass, field
from typing import Callable, List, Optional

import numpy as np

from pychebtech._alias import alias
from pychebtech._extrapolate import extrapolate, restore_nonfinite
from pychebtech._happiness import happiness_check
from pychebtech._refine import ComposedOperator, refine
from pychebtech._scale import max_abs, update_vscale, validate_hscale
from pychebtech._transforms import coeffs2vals, vals2coeffs
from pychebtech.chebtech import Chebtech, IterationRecord
from pychebtech.exceptions import DimensionMismatchError
from pychebtech.prefs import TechPreferences


class _CountingFunction:
    """Wrap a callable and count the points it is evaluated at."""

    def __init__(self, function: Callable):
        self.function = function
        self.n_evaluations = 0

    def __call__(self, x, *args):
        self.n_evaluations += len(np.atleast_1d(x))
        return self.function(x, *args)


@dataclass
class _ConstructionState:
    """Mutable state of one adaptive construction; never leaves :func:`construct`."""

    vscale: np.ndarray
    values: Optional[np.ndarray] = None
    coeffs: Optional[np.ndarray] = None
    epslevel: Optional[np.ndarray] = None
    cutoff: int = 0
    ishappy: bool = False
    history: List[IterationRecord] = field(default_factory=list)


def construct(source, vscale=0.0, hscale: float = 1.0,
              prefs: Optional[TechPreferences] = None, verbose: bool = False,
              **overrides) -> Chebtech:
    """Build a Chebtech from a function or from pre-computed data.

    Parameters
    ----------
    source : callable, array_like or (values, coeffs) tuple
        A vectorized function ``f(x) -> array`` taking a 1-D array of
        points in [-1, 1] and returning a vector of the same length or a
        matrix with one row per point. An array is taken as values on
        ``chebpts(len(values))``; a tuple also supplies the coefficients.
    vscale : float or ndarray, optional
        Initial vertical scale. Happiness is judged relative to the larger
        of this and the magnitude of the samples. Default 0.
    hscale : float, optional
        Horizontal scale of the domain this interval represents. Default 1.
    prefs : TechPreferences, optional
        Construction settings. Defaults to ``TechPreferences()``.
    verbose : bool, optional
        If True, print progress for each refinement. Default is False.
    **overrides
        Individual :class:`TechPreferences` fields, e.g. ``max_degree=128``.

    Returns
    -------
    Chebtech
        A happy representation, or (adaptive mode only) the best effort
        at ``max_degree`` with ``ishappy=False``.

    Raises
    ------
    EvaluationError
        If the function raises or returns an array of the wrong shape.
    AllNonFiniteError
        If a column of samples contains no finite value.
    DimensionMismatchError
        If pre-computed values and coefficients do not match.

    Warns
    -----
    UserWarning
        If the function could not be resolved within ``max_degree``.
    """
    prefs = prefs if prefs is not None else TechPreferences()
    if overrides:
        prefs = prefs.merge(**overrides)
    hscale = validate_hscale(hscale)

    if callable(source):
        return _construct_adaptive(source, vscale, hscale, prefs, verbose)
    return _construct_from_data(source, vscale, hscale)


def _construct_adaptive(function: Callable, vscale, hscale: float,
                        prefs: TechPreferences, verbose: bool) -> Chebtech:
    if isinstance(function, ComposedOperator):
        counter = _CountingFunction(function.op)
        op = ComposedOperator(counter, function.operands)
    else:
        counter = _CountingFunction(function)
        op = counter

    if verbose:
        print(f"Building Chebtech ({prefs.refinement.value} refinement, "
              f"max degree {prefs.max_degree:,})...")

    start = time.time()
    state = _ConstructionState(vscale=np.asarray(vscale, dtype=float))

    while True:
        values, give_up = refine(op, state.values, prefs)
        if give_up:
            break

        # Only sampled values count towards the scale, not extrapolated ones
        state.vscale = update_vscale(state.vscale, values)

        values, mask_nan, mask_inf = extrapolate(values, prefs.extrapolate)
        coeffs = vals2coeffs(values)

        result = happiness_check(op, coeffs, values, state.vscale, hscale, prefs)
        state.coeffs = coeffs
        state.epslevel = result.epslevel
        state.cutoff = result.cutoff
        state.ishappy = result.ishappy
        state.history.append(IterationRecord(
            values.shape[0], state.vscale.copy(), result.epslevel,
            result.cutoff, result.ishappy,
        ))

        if verbose:
            print(f"  {values.shape[0]:>6} points: cutoff {result.cutoff}, "
                  f"epslevel {np.max(result.epslevel):.2e}, "
                  f"{'happy' if result.ishappy else 'not happy'}")

        if result.ishappy:
            state.coeffs = alias(coeffs, result.cutoff + 1)
            break

        state.values = restore_nonfinite(values, mask_nan, mask_inf)

    tech = _finalize(state, hscale, counter.n_evaluations, time.time() - start)

    if tech.ishappy:
        tech = tech.simplify(tech.epslevel)
    else:
        warnings.warn(
            f"Function not resolved using {tech.length:,} points "
            f"(max_degree={prefs.max_degree:,}). The result has ishappy=False.",
            UserWarning,
            stacklevel=3,
        )

    if verbose:
        print(f"  Built in {tech.build_time:.3f}s "
              f"({tech.n_evaluations:,} evaluations, degree {tech.degree})")
    return tech


def _finalize(state: _ConstructionState, hscale: float, n_evaluations: int,
              build_time: float) -> Chebtech:
    """Freeze the loop state into a Chebtech, rescaling epslevel to the global vscale."""
    values = coeffs2vals(state.coeffs)
    vscale_out = max_abs(values)
    vscale = np.maximum(state.vscale, vscale_out)

    epslevel = state.epslevel
    epslevel = epslevel * np.maximum(vscale, epslevel) / np.maximum(vscale_out, epslevel)

    return Chebtech(state.coeffs, vscale, hscale, epslevel, state.ishappy,
                    n_evaluations, build_time, state.history)


def _as_matrix(data, name: str) -> np.ndarray:
    data = np.asarray(data)
    if not np.issubdtype(data.dtype, np.number):
        raise TypeError(f"{name} must be numeric, got dtype {data.dtype}")
    if data.ndim == 1:
        data = data[:, np.newaxis]
    if data.ndim != 2 or data.shape[0] == 0 or data.shape[1] == 0:
        raise DimensionMismatchError(
            f"{name} must be a non-empty vector or matrix, got shape {data.shape}"
        )
    dtype = np.complex128 if np.iscomplexobj(data) else np.float64
    return data.astype(dtype)


def _construct_from_data(source, vscale, hscale: float) -> Chebtech:
    """Non-adaptive construction: no sampling, no refinement, always happy."""
    if isinstance(source, tuple):
        if len(source) != 2:
            raise ValueError(
                f"Expected a (values, coeffs) pair, got a tuple of length {len(source)}"
            )
        values = _as_matrix(source[0], "values")
        coeffs = _as_matrix(source[1], "coeffs")
        if values.shape != coeffs.shape:
            raise DimensionMismatchError(
                f"values.shape={values.shape} does not match "
                f"coeffs.shape={coeffs.shape}"
            )
    else:
        values = _as_matrix(source, "values")
        coeffs = None

    vscale = update_vscale(vscale, values)
    if coeffs is None:
        values, _, _ = extrapolate(values)
        coeffs = vals2coeffs(values)

    # Discrete data is taken as exact: epslevel is rounding relative to
    # the largest column.
    epslevel = 10 * np.spacing(np.max(vscale))
    vscl = np.where(vscale <= epslevel, 1.0, vscale)
    return Chebtech(coeffs, vscale, hscale, epslevel / vscl, True)
