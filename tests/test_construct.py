"""Tests for adaptive and non-adaptive construction."""

import warnings

import numpy as np
import pytest

from conftest import cos_10pi, off_grid_bump
from pychebtech import (
    AllNonFiniteError,
    Chebtech,
    DimensionMismatchError,
    EvaluationError,
    TechPreferences,
    coeffs2vals,
    construct,
)
from pychebtech._happiness import classic_check


# ======================================================================
# Adaptive construction
# ======================================================================

class TestAdaptive:
    def test_constant(self):
        f = construct(np.ones_like)
        assert f.ishappy
        assert f.degree <= 1
        assert f.epslevel[0] < 1e-13
        np.testing.assert_allclose(f.coeffs[0], [1.0], rtol=1e-14)

    def test_cos_10pi(self, cheb_cos):
        assert cheb_cos.ishappy
        assert 30 <= cheb_cos.degree <= 100
        x = np.linspace(-1, 1, 201)
        np.testing.assert_allclose(cheb_cos(x), cos_10pi(x), atol=1e-8)

    def test_two_columns(self, cheb_two_columns):
        f = cheb_two_columns
        assert f.ishappy
        assert f.coeffs.shape[1] == 2
        x = np.linspace(-1, 1, 50)
        np.testing.assert_allclose(f(x), np.column_stack([np.sin(x), x ** 2]),
                                   atol=1e-12)
        # x^2 only needs degree 2; the shared length is set by sin(x)
        sin_only = construct(np.sin)
        square_only = construct(lambda x: x ** 2)
        assert square_only.degree == 2
        assert f.degree == max(sin_only.degree, square_only.degree)

    def test_columns_converge_independently(self, cheb_two_columns):
        epslevel = cheb_two_columns.epslevel
        assert epslevel.shape == (2,)
        assert np.all(epslevel < 1e-10)

    def test_matches_numpy_for_exp(self):
        f = construct(np.exp)
        assert 10 <= f.degree <= 20
        x = np.linspace(-1, 1, 101)
        np.testing.assert_allclose(f(x), np.exp(x), rtol=1e-12)

    def test_complex_function(self):
        f = construct(lambda x: np.exp(1j * np.pi * x))
        assert f.ishappy
        assert np.iscomplexobj(f.coeffs)
        np.testing.assert_allclose(f(0.5), 1j, atol=1e-13)

    def test_monotone_vscale(self):
        f = construct(off_grid_bump)
        vscales = np.array([record.vscale for record in f.history])
        assert len(f.history) >= 2
        assert np.all(np.diff(vscales, axis=0) >= 0)
        # The peak is never sampled exactly
        assert 0.9 < f.vscale[0] <= 1.0 + 1e-12

    def test_history_records_grid_sizes(self, cheb_cos):
        sizes = [record.n_points for record in cheb_cos.history]
        assert sizes[0] == 17
        assert sizes == [17 * 2 ** k - (2 ** k - 1) for k in range(len(sizes))]
        assert cheb_cos.history[-1].ishappy
        assert not any(record.ishappy for record in cheb_cos.history[:-1])

    def test_evaluation_count_for_nested_sampling(self):
        f = construct(np.exp, happiness="classic")
        # Nested sampling evaluates each point of the final grid exactly once
        assert f.n_evaluations == f.history[-1].n_points

    def test_initial_vscale_is_a_floor(self):
        f = construct(lambda x: 1e-3 * np.sin(x), vscale=10.0)
        np.testing.assert_array_equal(f.vscale, [10.0])
        # Relative to vscale=10 fewer coefficients are significant
        assert f.degree < construct(lambda x: 1e-3 * np.sin(x)).degree

    def test_resampling_refinement(self):
        f = construct(cos_10pi, refinement="resampling")
        assert f.ishappy
        x = np.linspace(-1, 1, 77)
        np.testing.assert_allclose(f(x), cos_10pi(x), atol=1e-8)

    def test_idempotent_happiness(self, cheb_cos):
        result = classic_check(cheb_cos.coeffs, vscale=cheb_cos.vscale,
                               hscale=cheb_cos.hscale, tol=cheb_cos.epslevel,
                               pad=True, cond=1.0)
        assert result.ishappy
        assert result.cutoff == cheb_cos.degree
        assert cheb_cos.simplify() is cheb_cos

    def test_values_consistent_with_coeffs(self, cheb_cos):
        np.testing.assert_allclose(cheb_cos.values, coeffs2vals(cheb_cos.coeffs))
        assert cheb_cos.values.shape == cheb_cos.coeffs.shape

    def test_verbose_output(self, capsys):
        construct(np.exp, verbose=True)
        out = capsys.readouterr().out
        assert "Building Chebtech" in out
        assert "happy" in out
        assert "Built in" in out

    def test_quiet_by_default(self, capsys):
        construct(np.exp)
        assert capsys.readouterr().out == ""


class TestAccuracy:
    """The error of a happy result is within a small multiple of epslevel*vscale."""

    @pytest.mark.parametrize("function", [
        np.exp,
        lambda x: np.tanh(50 * x),
        cos_10pi,
    ], ids=["exp", "tanh50", "cos10pi"])
    def test_error_bounded_by_epslevel(self, function):
        f = construct(function)
        assert f.ishappy
        x = np.linspace(-1, 1, 2001)
        err = np.max(np.abs(f(x) - function(x)))
        assert err <= 10 * f.epslevel[0] * f.vscale[0]

    def test_steep_function_keeps_resolution(self):
        f = construct(lambda x: np.tanh(50 * x))
        # Conditioning is counted once: the final degree stays close to
        # what the coefficient decay of tanh(50x) requires at ~1e-10
        assert f.degree > 600
        assert f.epslevel[0] < 1e-9

    def test_simplify_raises_epslevel(self, cheb_cos):
        short = cheb_cos.simplify(1e-6)
        assert np.all(short.epslevel >= 1e-6)
        x = np.linspace(-1, 1, 401)
        err = np.max(np.abs(short(x) - cos_10pi(x)))
        assert err <= 10 * short.epslevel[0] * short.vscale[0]


class TestGiveUp:
    def test_jump_is_not_happy(self):
        with pytest.warns(UserWarning, match="not resolved"):
            f = construct(np.sign, max_degree=64)
        assert not f.ishappy
        assert f.length == 65
        assert len(f.history) == 3

    def test_unhappy_result_is_finite(self):
        with pytest.warns(UserWarning):
            f = construct(np.sign, max_degree=32)
        assert np.all(np.isfinite(f.coeffs))
        assert np.all(np.isfinite(f.values))
        np.testing.assert_allclose(f.values, coeffs2vals(f.coeffs))

    def test_no_warning_when_happy(self):
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            construct(np.cos)


class TestNonFinite:
    def test_removable_singularity(self):
        def sinc(x):
            with np.errstate(invalid="ignore", divide="ignore"):
                return np.sin(x) / x

        f = construct(sinc)
        assert f.ishappy
        np.testing.assert_allclose(f(0.0), 1.0, atol=1e-10)
        np.testing.assert_allclose(f(0.7), np.sin(0.7) / 0.7, atol=1e-12)

    def test_infinite_endpoints(self):
        def f_inf(x):
            out = np.exp(x)
            out[np.abs(x) == 1] = np.inf
            return out

        f = construct(f_inf, extrapolate=True)
        assert f.ishappy
        np.testing.assert_allclose(f(0.5), np.exp(0.5), rtol=1e-10)
        # vscale only counts sampled finite values
        assert np.all(np.isfinite(f.vscale))

    def test_all_nan_raises(self):
        with pytest.raises(AllNonFiniteError):
            construct(lambda x: np.full_like(x, np.nan))


class TestErrors:
    def test_function_exception_propagates_as_evaluation_error(self):
        def broken(x):
            raise RuntimeError("solver diverged")

        with pytest.raises(EvaluationError, match="solver diverged"):
            construct(broken)

    def test_wrong_output_length(self):
        with pytest.raises(EvaluationError, match="rows"):
            construct(lambda x: np.ones(len(x) + 1))

    def test_unknown_preference(self):
        with pytest.raises(TypeError, match="Unknown preference"):
            construct(np.exp, tolerance=1e-8)

    def test_invalid_hscale(self):
        with pytest.raises(ValueError, match="hscale"):
            construct(np.exp, hscale=-2.0)

    def test_compose_refinement_needs_compose(self):
        with pytest.raises(TypeError, match="compose"):
            construct(np.exp, refinement="compose")


# ======================================================================
# Non-adaptive construction
# ======================================================================

class TestNonAdaptive:
    def test_values_and_coeffs_unchanged(self):
        coeffs = np.array([[1.0, 0.5], [2.0, 0.0], [3.0, -1.0]])
        values = coeffs2vals(coeffs)
        f = construct((values, coeffs))
        assert f.ishappy
        np.testing.assert_array_equal(f.coeffs, coeffs)

    def test_values_only(self):
        x = Chebtech.nodes(12)
        f = construct(np.cos(x))
        assert f.ishappy
        assert f.length == 12
        np.testing.assert_allclose(f(0.25), np.cos(0.25), atol=1e-9)

    def test_length_not_altered(self):
        values = np.zeros(40)
        values[0] = 1.0
        assert construct(values).length == 40

    def test_epslevel_from_scale(self):
        x = Chebtech.nodes(9)
        f = construct(np.column_stack([100 * x, x]))
        np.testing.assert_allclose(f.vscale, [100.0, 1.0])
        eps_abs = 10 * np.spacing(100.0)
        np.testing.assert_allclose(f.epslevel, [eps_abs / 100.0, eps_abs])

    def test_nan_values_are_extrapolated(self):
        x = Chebtech.nodes(15)
        values = x ** 2
        values[7] = np.nan
        f = construct(values)
        np.testing.assert_allclose(f.values[:, 0], x ** 2, atol=1e-13)

    def test_shape_mismatch_raises(self):
        with pytest.raises(DimensionMismatchError, match="does not match"):
            construct((np.ones(4), np.ones(5)))

    def test_column_mismatch_raises(self):
        with pytest.raises(DimensionMismatchError):
            construct((np.ones((4, 2)), np.ones((4, 3))))

    def test_bad_tuple_length(self):
        with pytest.raises(ValueError, match="pair"):
            construct((np.ones(4), np.ones(4), np.ones(4)))

    def test_empty_values(self):
        with pytest.raises(DimensionMismatchError, match="non-empty"):
            construct(np.array([]))

    def test_non_numeric_values(self):
        with pytest.raises(TypeError, match="numeric"):
            construct(np.array(["a", "b"]))


class TestPreferences:
    def test_defaults(self):
        prefs = TechPreferences()
        assert prefs.eps == 2.0 ** -52
        assert prefs.max_degree == 2 ** 16
        assert prefs.min_samples == 17

    def test_merge_returns_new_object(self):
        prefs = TechPreferences()
        merged = prefs.merge(max_degree=100)
        assert merged.max_degree == 100
        assert prefs.max_degree == 2 ** 16

    @pytest.mark.parametrize("field,value", [
        ("eps", 0.0), ("eps", 2.0), ("max_degree", -1), ("min_samples", 0),
    ])
    def test_invalid_values(self, field, value):
        with pytest.raises(ValueError, match=field):
            TechPreferences(**{field: value})

    def test_numpy_integers_accepted(self):
        prefs = TechPreferences(max_degree=np.int64(64), min_samples=np.int32(9))
        assert prefs.max_degree == 64 and type(prefs.max_degree) is int
        assert prefs.min_samples == 9 and type(prefs.min_samples) is int

    @pytest.mark.parametrize("field", ["max_degree", "min_samples"])
    def test_bool_rejected(self, field):
        with pytest.raises(ValueError, match=field):
            TechPreferences(**{field: True})

    def test_unknown_mode(self):
        with pytest.raises(ValueError):
            TechPreferences(refinement="bisection")

    def test_prefs_object_is_used(self):
        with pytest.warns(UserWarning):
            f = construct(np.sign, prefs=TechPreferences(max_degree=16))
        assert f.length == 17
