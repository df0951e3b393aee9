"""Chebyshev polynomial representation of a function on [-1, 1].

A :class:`Chebtech` stores the Chebyshev coefficients of a (possibly
array-valued) function together with the scale and accuracy information
produced by :func:`pychebtech.construct`. It is immutable once built:
operations such as :meth:`Chebtech.simplify` return new objects.

References
----------
- Battles & Trefethen (2004), "An Extension of MATLAB to Continuous
  Functions and Operators", SIAM J. Sci. Comput. 25(5):1743-1770
- Trefethen (2013), "Approximation Theory and Approximation Practice",
  SIAM, Chapters 3-4.
"""

from __future__ import annotations

from typing import Callable, NamedTuple, Optional, Sequence, Tuple

import numpy as np

from pychebtech._alias import prolong
from pychebtech._happiness import classic_check
from pychebtech._transforms import bary, barycentric_weights, chebpts, coeffs2vals


class IterationRecord(NamedTuple):
    """State of one pass of the adaptive construction loop."""

    n_points: int
    vscale: np.ndarray
    epslevel: np.ndarray
    cutoff: int
    ishappy: bool


def _frozen(array: np.ndarray) -> np.ndarray:
    array = np.array(array, copy=True)
    array.flags.writeable = False
    return array


class Chebtech:
    """Chebyshev interpolant on the second-kind grid of ``[-1, 1]``.

    Instances are normally created by :func:`pychebtech.construct` or one
    of the ``from_*`` class methods.

    Parameters
    ----------
    coeffs : ndarray of shape (n, m)
        Chebyshev coefficients, lowest degree first, one column per
        output component.
    vscale : ndarray of shape (m,)
        Vertical scale of each column.
    hscale : float
        Horizontal scale of the underlying domain.
    epslevel : ndarray of shape (m,)
        Achieved relative accuracy of each column.
    ishappy : bool
        Whether construction converged.
    n_evaluations : int, optional
        Number of points at which the source function was evaluated.
    build_time : float, optional
        Wall-clock construction time in seconds.
    history : sequence of IterationRecord, optional
        One record per adaptive iteration.

    Examples
    --------
    >>> import numpy as np
    >>> from pychebtech import construct
    >>> f = construct(np.exp)
    >>> f.ishappy
    True
    >>> abs(f(0.5) - np.exp(0.5)) < 1e-14
    True
    """

    def __init__(
        self,
        coeffs: np.ndarray,
        vscale: np.ndarray,
        hscale: float,
        epslevel: np.ndarray,
        ishappy: bool,
        n_evaluations: int = 0,
        build_time: float = 0.0,
        history: Sequence[IterationRecord] = (),
    ):
        coeffs = np.asarray(coeffs)
        if coeffs.ndim == 1:
            coeffs = coeffs[:, np.newaxis]
        m = coeffs.shape[1]
        self.coeffs = _frozen(coeffs)
        self.values = _frozen(coeffs2vals(coeffs))
        self.vscale = _frozen(np.broadcast_to(np.asarray(vscale, dtype=float), (m,)))
        self.epslevel = _frozen(np.broadcast_to(np.asarray(epslevel, dtype=float), (m,)))
        self.hscale = float(hscale)
        self.ishappy = bool(ishappy)
        self.n_evaluations = int(n_evaluations)
        self.build_time = float(build_time)
        self.history: Tuple[IterationRecord, ...] = tuple(history)

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------

    @classmethod
    def from_function(cls, function: Callable, vscale=0.0, hscale: float = 1.0,
                      prefs=None, verbose: bool = False, **overrides) -> "Chebtech":
        """Adaptively construct from a vectorized function. See :func:`construct`."""
        from pychebtech.populate import construct

        return construct(function, vscale, hscale, prefs, verbose, **overrides)

    @classmethod
    def from_values(cls, values: np.ndarray, coeffs: Optional[np.ndarray] = None,
                    vscale=0.0, hscale: float = 1.0) -> "Chebtech":
        """Construct non-adaptively from values on ``chebpts(len(values))``.

        Parameters
        ----------
        values : ndarray of shape (n,) or (n, m)
            Function values at the Chebyshev points returned by
            :meth:`nodes`. Non-finite entries are extrapolated.
        coeffs : ndarray, optional
            Matching coefficients. If given they are used unchanged.
        vscale, hscale : optional
            Initial vertical scale and horizontal scale.

        Returns
        -------
        Chebtech
            Always happy; the length is that of *values*.

        Examples
        --------
        >>> x = Chebtech.nodes(20)
        >>> f = Chebtech.from_values(np.sin(x))
        >>> abs(f(0.3) - np.sin(0.3)) < 1e-12
        True
        """
        from pychebtech.populate import construct

        source = values if coeffs is None else (values, coeffs)
        return construct(source, vscale, hscale)

    @classmethod
    def from_coeffs(cls, coeffs: np.ndarray, vscale=0.0,
                    hscale: float = 1.0) -> "Chebtech":
        """Construct non-adaptively from Chebyshev coefficients."""
        coeffs = np.asarray(coeffs)
        return cls.from_values(coeffs2vals(coeffs), coeffs, vscale, hscale)

    @staticmethod
    def nodes(n: int) -> np.ndarray:
        """The *n* Chebyshev points at which :meth:`from_values` expects values."""
        return chebpts(n)

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def length(self) -> int:
        """Number of coefficients (and grid points)."""
        return self.coeffs.shape[0]

    @property
    def degree(self) -> int:
        return self.length - 1

    @property
    def n_columns(self) -> int:
        return self.coeffs.shape[1]

    @property
    def points(self) -> np.ndarray:
        """The Chebyshev grid that :attr:`values` live on."""
        return chebpts(self.length)

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def __call__(self, x):
        """Evaluate at *x* by barycentric interpolation.

        Parameters
        ----------
        x : float or array_like
            Evaluation point(s), normally in [-1, 1].

        Returns
        -------
        scalar or ndarray
            For a single-column Chebtech the result has the shape of *x*.
            Otherwise one row per point and one column per component.
        """
        x_arr = np.asarray(x, dtype=float)
        out = bary(x_arr.ravel(), self.values, self.points,
                   barycentric_weights(self.length))
        if self.n_columns == 1:
            out = out[:, 0]
            return out[0] if x_arr.ndim == 0 else out.reshape(x_arr.shape)
        return out[0] if x_arr.ndim == 0 else out

    # ------------------------------------------------------------------
    # Length manipulation
    # ------------------------------------------------------------------

    def _with_coeffs(self, coeffs: np.ndarray, epslevel=None) -> "Chebtech":
        """Copy of this Chebtech with new coefficients and the same metadata."""
        if epslevel is None:
            epslevel = self.epslevel
        return Chebtech(
            coeffs, self.vscale, self.hscale, epslevel, self.ishappy,
            self.n_evaluations, self.build_time, self.history,
        )

    def prolong(self, n: int) -> "Chebtech":
        """Return the same polynomial (aliased if shortened) on *n* points."""
        if n == self.length:
            return self
        return self._with_coeffs(prolong(self.coeffs, n))

    def simplify(self, tol=None) -> "Chebtech":
        """Remove trailing coefficients that are negligible at tolerance *tol*.

        Truncation is repeated until the happiness check finds nothing
        more to remove, so ``f.simplify()`` is a fixed point of itself.
        The tail is compared with *tol* directly: an ``epslevel`` already
        accounts for the conditioning of the function. The returned
        :attr:`epslevel` is raised to the level that was truncated at.
        Unhappy Chebtechs are returned unchanged.

        Parameters
        ----------
        tol : float or ndarray of shape (m,), optional
            Relative tolerance. Defaults to :attr:`epslevel`.
        """
        if not self.ishappy:
            return self
        if tol is None:
            tol = self.epslevel

        coeffs = self.coeffs
        while True:
            result = classic_check(coeffs, vscale=self.vscale, hscale=self.hscale,
                                   tol=tol, pad=True, cond=1.0)
            if result.cutoff >= coeffs.shape[0] - 1:
                break
            coeffs = coeffs[:result.cutoff + 1]

        epslevel = np.maximum(self.epslevel, result.epslevel)
        if coeffs.shape[0] == self.length and np.array_equal(epslevel, self.epslevel):
            return self
        return self._with_coeffs(coeffs, epslevel)

    # ------------------------------------------------------------------
    # Printing
    # ------------------------------------------------------------------

    def __repr__(self) -> str:
        return (
            f"Chebtech("
            f"length={self.length}, "
            f"columns={self.n_columns}, "
            f"happy={self.ishappy})"
        )

    def __str__(self) -> str:
        status = "happy" if self.ishappy else "not happy"
        lines = [
            f"Chebtech (degree {self.degree}, {self.n_columns} column(s), {status})",
            f"  vscale:      {np.array2string(self.vscale, precision=2)}",
            f"  epslevel:    {np.array2string(self.epslevel, precision=2)}",
            f"  hscale:      {self.hscale:g}",
        ]
        if self.history:
            lines.append(
                f"  Build:       {self.build_time:.3f}s, "
                f"{self.n_evaluations:,} evaluations, "
                f"{len(self.history)} iterations"
            )
        return "\n".join(lines)


def simplify(tech: Chebtech, tol=None) -> Chebtech:
    """Functional form of :meth:`Chebtech.simplify`."""
    return tech.simplify(tol)


def compose(op: Callable, f: Chebtech, g: Optional[Chebtech] = None,
            prefs=None, verbose: bool = False, **overrides) -> Chebtech:
    """Construct ``op(f)`` or ``op(f, g)`` from existing Chebtechs.

    The operands are never re-sampled pointwise: on each refinement their
    coefficients are prolonged to the new grid and *op* is applied to the
    resulting values.

    Parameters
    ----------
    op : callable
        Vectorized operator, e.g. ``np.sin`` or ``np.multiply``.
    f, g : Chebtech
        Operands. *g* is optional.
    prefs : TechPreferences, optional
        Base preferences; ``refinement`` is always set to ``COMPOSE``.

    Examples
    --------
    >>> from pychebtech import construct
    >>> f = construct(lambda x: x)
    >>> h = compose(np.sin, f)
    >>> abs(h(0.5) - np.sin(0.5)) < 1e-14
    True
    """
    from pychebtech._refine import ComposedOperator
    from pychebtech.populate import construct
    from pychebtech.prefs import RefinementMode

    operands = [f] if g is None else [f, g]
    hscale = max(t.hscale for t in operands)
    return construct(ComposedOperator(op, operands), 0.0, hscale, prefs, verbose,
                     **dict(overrides, refinement=RefinementMode.COMPOSE))
