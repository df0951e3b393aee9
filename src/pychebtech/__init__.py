"""pychebtech: adaptive Chebyshev polynomial representations on [-1, 1].

Provides :func:`construct`, which samples a vectorized (possibly
array-valued) function on successively finer Chebyshev grids until the
coefficient tail shows the function is resolved to the requested relative
accuracy, and the :class:`Chebtech` class holding the result. Pre-computed
values or coefficients can be turned into a :class:`Chebtech` directly,
and existing Chebtechs can be combined with :func:`compose`.

Example
-------
>>> import numpy as np
>>> from pychebtech import construct
>>> f = construct(lambda x: np.cos(10 * np.pi * x))
>>> f.ishappy
True
>>> abs(f(0.1) - np.cos(np.pi)) < 1e-10
True
"""

from pychebtech._alias import alias, prolong
from pychebtech._extrapolate import extrapolate
from pychebtech._transforms import chebpts, coeffs2vals, vals2coeffs
from pychebtech._version import __version__
from pychebtech.chebtech import Chebtech, IterationRecord, compose, simplify
from pychebtech.exceptions import (
    AllNonFiniteError,
    ChebtechError,
    DimensionMismatchError,
    EvaluationError,
)
from pychebtech.populate import construct
from pychebtech.prefs import HappinessMode, RefinementMode, TechPreferences

__all__ = [
    "Chebtech",
    "IterationRecord",
    "construct",
    "compose",
    "simplify",
    "TechPreferences",
    "RefinementMode",
    "HappinessMode",
    "ChebtechError",
    "EvaluationError",
    "AllNonFiniteError",
    "DimensionMismatchError",
    "chebpts",
    "vals2coeffs",
    "coeffs2vals",
    "alias",
    "prolong",
    "extrapolate",
    "__version__",
]
