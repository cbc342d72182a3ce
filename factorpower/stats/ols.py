"""
OLS Analysis for 2x2 factorial power analysis.

Fits the three fixed models of one trial (main effect of iv1, main effect
of iv2, full factorial) with QR-based least squares, tests one coefficient
per model with a two-sided t-test and reports Cohen's f for the tested term.
"""

from dataclasses import asdict, dataclass
from typing import Dict, Tuple

import numpy as np
from scipy.stats import t as t_dist

FLOAT_NEAR_ZERO = 1e-15
RANK_TOLERANCE = 1e-10

EFFECT_LABELS = ("iv1", "iv2", "iv1:iv2")


class TrialFitError(ArithmeticError):
    """Raised when one of the models of a trial cannot be estimated."""


@dataclass(frozen=True)
class OLSFit:
    """Least-squares fit of one design matrix.

    Attributes:
        beta: Coefficients, intercept first.
        se: Standard errors of ``beta``.
        ss_res: Residual sum of squares.
        dof: Residual degrees of freedom (``n - p``).
    """

    beta: np.ndarray
    se: np.ndarray
    ss_res: float
    dof: int

    def t_test(self, index: int) -> Tuple[float, float]:
        """Two-sided t-test of coefficient *index*; returns ``(t, p)``."""
        t_stat = self.beta[index] / self.se[index]
        p_value = 2.0 * t_dist.sf(abs(t_stat), self.dof)
        return float(t_stat), float(p_value)


@dataclass(frozen=True)
class TrialResult:
    """Statistics of one simulated trial.

    Index 1 is the iv1 main-effect model, 2 the iv2 main-effect model and
    3 the interaction term of the full factorial model.
    """

    p_1: float
    sig_1: bool
    p_2: float
    sig_2: bool
    p_3: float
    sig_3: bool
    es_1: float
    es_2: float
    es_3: float

    def as_dict(self) -> Dict[str, object]:
        return asdict(self)


def _ols_core(X: np.ndarray, y: np.ndarray, name: str) -> OLSFit:
    """
    Core OLS via QR decomposition.

    Args:
        X: (n, p) design matrix including the intercept column
        y: (n,) response vector
        name: Model name used in error messages

    Returns:
        OLSFit

    Raises:
        TrialFitError: If ``X`` is rank deficient, there are no residual
            degrees of freedom, or the residual variance is zero
    """
    n, p = X.shape
    dof = n - p
    if dof <= 0:
        raise TrialFitError(f"{name}: no residual degrees of freedom (n={n}, p={p})")

    Q, R = np.linalg.qr(X)
    diag = np.abs(np.diag(R))
    if np.any(diag <= RANK_TOLERANCE * max(diag.max(), 1.0)):
        raise TrialFitError(f"{name}: design matrix is rank deficient")

    beta = np.linalg.solve(R, Q.T @ y)
    residuals = y - X @ beta
    ss_res = float(residuals @ residuals)
    if ss_res <= FLOAT_NEAR_ZERO:
        raise TrialFitError(f"{name}: zero residual variance, coefficients are not testable")

    mse = ss_res / dof
    R_inv = np.linalg.solve(R, np.eye(p))
    se = np.sqrt(mse * np.sum(R_inv**2, axis=1))

    return OLSFit(beta=beta, se=se, ss_res=ss_res, dof=dof)


def cohens_f(ss_effect: float, ss_res: float) -> float:
    """Cohen's f from an effect and a residual sum of squares.

    Equal to ``sqrt(eta2 / (1 - eta2))`` with
    ``eta2 = ss_effect / (ss_effect + ss_res)``.
    """
    if ss_res <= FLOAT_NEAR_ZERO:
        raise TrialFitError("Cohen's f is undefined for zero residual variance")
    return float(np.sqrt(max(ss_effect, 0.0) / ss_res))


def fit_main_effect(y: np.ndarray, x: np.ndarray, name: str) -> Tuple[float, float]:
    """Fit ``y ~ x``; return ``(p_value, cohens_f)`` for ``x``."""
    n = len(y)
    X = np.column_stack((np.ones(n), x))
    fit = _ols_core(X, y, name)

    y_centered = y - np.mean(y)
    ss_tot = float(y_centered @ y_centered)
    _, p_value = fit.t_test(1)
    return p_value, cohens_f(ss_tot - fit.ss_res, fit.ss_res)


def fit_interaction(y: np.ndarray, x1: np.ndarray, x2: np.ndarray) -> Tuple[float, float]:
    """Fit ``y ~ x1 * x2``; return ``(p_value, partial cohens_f)`` for ``x1:x2``.

    The partial effect size compares the full model against the additive
    model, isolating the sum of squares unique to the interaction.
    """
    n = len(y)
    ones = np.ones(n)
    full = _ols_core(np.column_stack((ones, x1, x2, x1 * x2)), y, "interaction model")
    additive = _ols_core(np.column_stack((ones, x1, x2)), y, "additive model")

    _, p_value = full.t_test(3)
    ss_interaction = additive.ss_res - full.ss_res
    return p_value, cohens_f(ss_interaction, full.ss_res)


def evaluate_trial(
    y: np.ndarray,
    x1: np.ndarray,
    x2: np.ndarray,
    alpha: float = 0.05,
) -> TrialResult:
    """
    Evaluate one simulated dataset.

    Args:
        y: Response vector
        x1: 0/1 code of iv1 (1 = a2)
        x2: 0/1 code of iv2 (1 = b2)
        alpha: Significance level

    Returns:
        TrialResult with p-values, significance flags and Cohen's f

    Raises:
        TrialFitError: If any of the three models cannot be estimated
    """
    y = np.asarray(y, dtype=np.float64)
    x1 = np.asarray(x1, dtype=np.float64)
    x2 = np.asarray(x2, dtype=np.float64)

    p_1, es_1 = fit_main_effect(y, x1, "iv1 model")
    p_2, es_2 = fit_main_effect(y, x2, "iv2 model")
    p_3, es_3 = fit_interaction(y, x1, x2)

    values = np.array([p_1, p_2, p_3, es_1, es_2, es_3])
    if not np.all(np.isfinite(values)):
        raise TrialFitError("non-finite statistic in trial")

    return TrialResult(
        p_1=p_1,
        sig_1=bool(p_1 < alpha),
        p_2=p_2,
        sig_2=bool(p_2 < alpha),
        p_3=p_3,
        sig_3=bool(p_3 < alpha),
        es_1=es_1,
        es_2=es_2,
        es_3=es_3,
    )


def evaluate_dataset(data, alpha: float = 0.05) -> TrialResult:
    """Evaluate a DataFrame produced by ``generate_dataset``."""
    y = data["response"].to_numpy(dtype=np.float64)
    x1 = (data["iv1"] == "a2").to_numpy(dtype=np.float64)
    x2 = (data["iv2"] == "b2").to_numpy(dtype=np.float64)
    return evaluate_trial(y, x1, x2, alpha)
