"""Shared test fixtures for pychebtech tests."""

import numpy as np
import pytest

from pychebtech import construct


# ---------------------------------------------------------------------------
# Test functions
# ---------------------------------------------------------------------------

def cos_10pi(x):
    """cos(10*pi*x): ten oscillations over [-1, 1]."""
    return np.cos(10 * np.pi * x)


def sin_and_square(x):
    """Two-column function [sin(x), x^2]."""
    return np.column_stack([np.sin(x), x ** 2])


def off_grid_bump(x):
    """Gaussian bump whose peak (at 0.13) lies on no Chebyshev grid."""
    return np.exp(-50 * (x - 0.13) ** 2)


def chebyshev_t(k):
    """Return T_k evaluated through numpy's Clenshaw recurrence."""
    coeffs = np.zeros(k + 1)
    coeffs[k] = 1.0
    return lambda x: np.polynomial.chebyshev.chebval(x, coeffs)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def cheb_cos():
    """Adaptively built cos(10*pi*x)."""
    return construct(cos_10pi)


@pytest.fixture
def cheb_two_columns():
    """Adaptively built [sin(x), x^2]."""
    return construct(sin_and_square)


@pytest.fixture
def rng():
    return np.random.default_rng(1234)
