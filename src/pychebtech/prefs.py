"""Construction preferences for Chebtech objects.

The refinement and happiness strategies form closed sets selected by
enum; every construction call reads its settings from one immutable
:class:`TechPreferences` instance.
"""

from __future__ import annotations

import dataclasses
import enum
import math
import numbers
from dataclasses import dataclass


class RefinementMode(enum.Enum):
    """How each iteration chooses and samples the next grid."""

    NESTED = "nested"
    RESAMPLING = "resampling"
    COMPOSE = "compose"


class HappinessMode(enum.Enum):
    """Which convergence test decides whether a representation is accepted."""

    CLASSIC = "classic"
    CLASSIC_SAMPLE_TEST = "classic+sampletest"


def _is_integer(value) -> bool:
    return isinstance(value, numbers.Integral) and not isinstance(value, bool)


@dataclass(frozen=True)
class TechPreferences:
    """Settings for adaptive construction.

    Parameters
    ----------
    eps : float, optional
        Target relative accuracy. Default is machine epsilon (``2**-52``).
    max_degree : int, optional
        Largest polynomial degree tried before giving up. Default ``2**16``.
    min_samples : int, optional
        Number of points sampled on the first iteration. Default 17.
    refinement : RefinementMode, optional
        Grid refinement strategy. Default ``NESTED``.
    happiness : HappinessMode, optional
        Convergence test. Default ``CLASSIC_SAMPLE_TEST``.
    extrapolate : bool, optional
        If True, the endpoint samples are replaced by values extrapolated
        from the interior. Use for functions singular at +/-1.
    """

    eps: float = 2.0 ** -52
    max_degree: int = 2 ** 16
    min_samples: int = 17
    refinement: RefinementMode = RefinementMode.NESTED
    happiness: HappinessMode = HappinessMode.CLASSIC_SAMPLE_TEST
    extrapolate: bool = False

    def __post_init__(self):
        # Accept the enum values as plain strings, e.g. refinement="resampling".
        object.__setattr__(self, "refinement", RefinementMode(self.refinement))
        object.__setattr__(self, "happiness", HappinessMode(self.happiness))

        if not (isinstance(self.eps, (int, float)) and math.isfinite(self.eps)
                and 0 < self.eps < 1):
            raise ValueError(f"eps must be a float in (0, 1), got {self.eps!r}")
        if not _is_integer(self.max_degree) or self.max_degree < 0:
            raise ValueError(
                f"max_degree must be a non-negative int, got {self.max_degree!r}"
            )
        if not _is_integer(self.min_samples) or self.min_samples < 1:
            raise ValueError(
                f"min_samples must be a positive int, got {self.min_samples!r}"
            )
        object.__setattr__(self, "max_degree", int(self.max_degree))
        object.__setattr__(self, "min_samples", int(self.min_samples))

    def merge(self, **overrides) -> "TechPreferences":
        """Return a copy with the given fields replaced.

        Raises
        ------
        TypeError
            If an override does not name a preference.
        """
        names = {f.name for f in dataclasses.fields(self)}
        unknown = sorted(set(overrides) - names)
        if unknown:
            raise TypeError(
                f"Unknown preference(s) {unknown}; valid names are {sorted(names)}"
            )
        return dataclasses.replace(self, **overrides)
