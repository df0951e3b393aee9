"""Exception types raised while constructing a Chebtech.

A construction either returns a representation (possibly with
``ishappy=False`` when the degree limit is reached) or raises one of the
errors below. No partially built object escapes a failed construction.
"""

from __future__ import annotations


class ChebtechError(Exception):
    """Base class for all construction errors."""


class EvaluationError(ChebtechError, ValueError):
    """The user function raised, or returned an array of the wrong shape."""


class AllNonFiniteError(ChebtechError, ValueError):
    """A column of sampled values has no finite entry to extrapolate from."""


class DimensionMismatchError(ChebtechError, ValueError):
    """Pre-computed values and coefficients have inconsistent shapes."""
