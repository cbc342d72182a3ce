"""
Tests for the trial evaluator (three OLS fits, p-values, Cohen's f).
"""

import numpy as np
import pytest

from factorpower.stats.data_generation import condition_codes, generate_dataset
from factorpower.stats.ols import (
    TrialFitError,
    TrialResult,
    _ols_core,
    cohens_f,
    evaluate_dataset,
    evaluate_trial,
    fit_interaction,
    fit_main_effect,
)
from tests.config import REFERENCE_MEANS, SEED


def _reference_data(seed=SEED, n=600, sd=1.5):
    return generate_dataset(n, REFERENCE_MEANS, sd, np.random.default_rng(seed))


class TestOLSCore:
    """QR least squares against numpy's lstsq."""

    def test_matches_lstsq(self, rng):
        X = np.column_stack((np.ones(50), rng.normal(size=(50, 2))))
        y = X @ np.array([1.0, 2.0, -0.5]) + rng.normal(size=50)
        fit = _ols_core(X, y, "test")
        beta_ref, ss_ref, _, _ = np.linalg.lstsq(X, y, rcond=None)
        np.testing.assert_allclose(fit.beta, beta_ref, rtol=1e-10)
        assert fit.ss_res == pytest.approx(ss_ref[0])
        assert fit.dof == 47

    def test_rank_deficient_raises(self, rng):
        x = rng.normal(size=20)
        X = np.column_stack((np.ones(20), x, 2 * x))
        with pytest.raises(TrialFitError, match="rank deficient"):
            _ols_core(X, rng.normal(size=20), "test")

    def test_no_residual_dof_raises(self, rng):
        X = np.column_stack((np.ones(4), rng.normal(size=(4, 3))))
        with pytest.raises(TrialFitError, match="degrees of freedom"):
            _ols_core(X, rng.normal(size=4), "test")

    def test_perfect_fit_raises(self):
        x = np.arange(10, dtype=float)
        X = np.column_stack((np.ones(10), x))
        with pytest.raises(TrialFitError, match="zero residual variance"):
            _ols_core(X, 3.0 + 2.0 * x, "test")


class TestCohensF:
    def test_from_eta_squared(self):
        # eta2 = 0.2 -> f = sqrt(0.25) = 0.5
        assert cohens_f(20.0, 80.0) == pytest.approx(0.5)

    def test_zero_effect(self):
        assert cohens_f(0.0, 10.0) == 0.0

    def test_negative_rounding_noise_clamped(self):
        assert cohens_f(-1e-13, 10.0) == 0.0

    def test_zero_residual_raises(self):
        with pytest.raises(TrialFitError):
            cohens_f(1.0, 0.0)


class TestEvaluateTrial:
    """Behaviour of the full three-model evaluation."""

    def test_returns_trial_result(self):
        result = evaluate_dataset(_reference_data())
        assert isinstance(result, TrialResult)
        for i in (1, 2, 3):
            p = getattr(result, f"p_{i}")
            assert 0.0 <= p <= 1.0
            assert getattr(result, f"sig_{i}") == (p < 0.05)
            assert getattr(result, f"es_{i}") >= 0.0

    def test_deterministic_for_seed(self):
        a = evaluate_dataset(_reference_data(seed=11))
        b = evaluate_dataset(_reference_data(seed=11))
        assert a == b

    def test_alpha_controls_flags(self):
        data = _reference_data()
        strict = evaluate_dataset(data, alpha=1e-300)
        loose = evaluate_dataset(data, alpha=0.25)
        assert not any([strict.sig_1, strict.sig_2, strict.sig_3])
        assert strict.p_1 == loose.p_1

    def test_reference_design_detects_main_effects(self):
        """With n=600 and sd=1.5 both main effects are significant."""
        result = evaluate_dataset(_reference_data())
        assert result.sig_1
        assert result.sig_2
        # Cohen's f for the iv1 main effect is ~0.2 under these means
        assert 0.05 < result.es_1 < 0.4

    def test_constant_response_raises(self):
        x1, x2 = condition_codes(40)
        with pytest.raises(TrialFitError):
            evaluate_trial(np.full(40, 3.0), x1, x2)

    def test_cell_constant_response_raises(self):
        """Responses equal to their cell means leave no residual variance."""
        x1, x2 = condition_codes(40)
        y = np.tile([1.0, 2.0, 3.0, 5.0], 10)
        with pytest.raises(TrialFitError, match="interaction model"):
            evaluate_trial(y, x1, x2)

    def test_as_dict_keys(self):
        result = evaluate_dataset(_reference_data())
        assert list(result.as_dict()) == ["p_1", "sig_1", "p_2", "sig_2", "p_3", "sig_3", "es_1", "es_2", "es_3"]


class TestPartialInteractionEffect:
    """The interaction effect size isolates the interaction term."""

    def test_additive_means_small_interaction(self):
        """Purely additive means give an interaction f near zero."""
        data = generate_dataset(4000, (1.0, 2.0, 3.0, 4.0), 1.0, np.random.default_rng(SEED))
        result = evaluate_dataset(data)
        assert result.es_3 < 0.06
        assert result.es_1 > 0.25

    def test_pure_interaction(self):
        """Crossover means: no main effects, strong interaction."""
        data = generate_dataset(4000, (0.0, 2.0, 2.0, 0.0), 1.0, np.random.default_rng(SEED))
        result = evaluate_dataset(data)
        assert result.es_3 > 0.5
        assert result.sig_3
        assert result.es_1 < 0.1

    def test_interaction_uses_nested_sums_of_squares(self):
        y = _reference_data()["response"].to_numpy()
        x1, x2 = condition_codes(len(y))
        _, f_int = fit_interaction(y, x1, x2)

        ones = np.ones(len(y))
        full = _ols_core(np.column_stack((ones, x1, x2, x1 * x2)), y, "full")
        additive = _ols_core(np.column_stack((ones, x1, x2)), y, "additive")
        eta2_partial = (additive.ss_res - full.ss_res) / additive.ss_res
        assert f_int == pytest.approx(np.sqrt(eta2_partial / (1 - eta2_partial)))

    def test_main_effect_f_from_r_squared(self):
        y = _reference_data()["response"].to_numpy()
        x1, _ = condition_codes(len(y))
        _, f = fit_main_effect(y, x1, "iv1 model")
        r2 = np.corrcoef(y, x1)[0, 1] ** 2
        assert f == pytest.approx(np.sqrt(r2 / (1 - r2)))


class TestAgainstStatsmodels:
    """Reference computation: statsmodels OLS and ANOVA on the same data."""

    @pytest.fixture
    def smf(self):
        return pytest.importorskip("statsmodels.formula.api")

    @pytest.mark.parametrize("seed", [1, 2, 3])
    def test_p_values_and_effect_sizes(self, smf, seed):
        import statsmodels.api as sm

        data = _reference_data(seed=seed)
        result = evaluate_dataset(data)

        m1 = smf.ols("response ~ iv1", data=data).fit()
        m2 = smf.ols("response ~ iv2", data=data).fit()
        m3 = smf.ols("response ~ iv1 * iv2", data=data).fit()

        assert result.p_1 == pytest.approx(m1.pvalues["iv1[T.a2]"], rel=1e-8)
        assert result.p_2 == pytest.approx(m2.pvalues["iv2[T.b2]"], rel=1e-8)
        assert result.p_3 == pytest.approx(m3.pvalues["iv1[T.a2]:iv2[T.b2]"], rel=1e-8)

        assert result.es_1 == pytest.approx(np.sqrt(m1.rsquared / (1 - m1.rsquared)), rel=1e-8)
        assert result.es_2 == pytest.approx(np.sqrt(m2.rsquared / (1 - m2.rsquared)), rel=1e-8)

        table = sm.stats.anova_lm(m3, typ=2)
        ss_int = table.loc["iv1:iv2", "sum_sq"]
        ss_res = table.loc["Residual", "sum_sq"]
        assert result.es_3 == pytest.approx(np.sqrt(ss_int / ss_res), rel=1e-8)


class TestGoldenValues:
    """Eight rows, two per condition, with statistics worked out by hand.

    Condition means are 2, 3, 4, 7 and every pair differs by 2, so
    SS_tot = 36, SS_res(iv1) = 28, SS_res(iv2) = 18, SS_res(full) = 8 and
    SS_res(additive) = 10.
    """

    Y = np.array([1.0, 2.0, 3.0, 6.0, 3.0, 4.0, 5.0, 8.0])
    X1 = np.array([0.0, 1.0, 0.0, 1.0, 0.0, 1.0, 0.0, 1.0])
    X2 = np.array([0.0, 0.0, 1.0, 1.0, 0.0, 0.0, 1.0, 1.0])

    def test_effect_sizes(self):
        result = evaluate_trial(self.Y, self.X1, self.X2)
        assert result.es_1 == pytest.approx(np.sqrt(2 / 7), rel=1e-10)
        assert result.es_2 == pytest.approx(1.0, rel=1e-10)
        assert result.es_3 == pytest.approx(0.5, rel=1e-10)

    def test_p_values(self):
        from scipy import stats

        result = evaluate_trial(self.Y, self.X1, self.X2)
        # t = 2 / sqrt(7/3) on 6 df, t = 3 / sqrt(1.5) on 6 df, t = 2 / 2 on 4 df
        assert result.p_1 == pytest.approx(2 * stats.t.sf(2 * np.sqrt(3 / 7), df=6), rel=1e-10)
        assert result.p_2 == pytest.approx(2 * stats.t.sf(np.sqrt(6), df=6), rel=1e-10)
        assert result.p_3 == pytest.approx(0.3739, abs=1e-4)

    def test_flags(self):
        result = evaluate_trial(self.Y, self.X1, self.X2)
        assert not result.sig_1
        assert not result.sig_3
