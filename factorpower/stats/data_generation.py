"""
Data Generator for 2x2 factorial power analysis.

Generates synthetic datasets where each observation belongs to one of four
conditions in a fixed, balanced interleaving:

    row i  ->  condition i % 4  ->  (a1b1, a2b1, a1b2, a2b2)[i % 4]

so ``iv1`` alternates every observation and ``iv2`` alternates every two.
"""

from typing import Sequence, Tuple

import numpy as np
import pandas as pd

N_CONDITIONS = 4
IV1_LEVELS = ("a1", "a2")
IV2_LEVELS = ("b1", "b2")
CONDITION_LABELS = ("a1b1", "a2b1", "a1b2", "a2b2")


def _check_design(n, means, sd):
    """Raise ``ValueError`` if the arguments do not form a balanced design."""
    if isinstance(n, bool) or not isinstance(n, (int, np.integer)):
        raise ValueError(f"n must be an integer, got {type(n).__name__}")
    if n <= 0 or n % N_CONDITIONS != 0:
        raise ValueError(f"n must be a positive multiple of {N_CONDITIONS}, got {n}")
    if len(means) != N_CONDITIONS:
        raise ValueError(f"means must have length {N_CONDITIONS}, got {len(means)}")
    if not sd > 0:
        raise ValueError(f"sd must be positive, got {sd}")


def condition_index(n: int) -> np.ndarray:
    """Condition index (0-3) of every row."""
    return np.arange(n) % N_CONDITIONS


def condition_codes(n: int) -> Tuple[np.ndarray, np.ndarray]:
    """
    Treatment-coded factor columns for ``n`` rows.

    Returns:
        x1: 1.0 where ``iv1 == "a2"``, else 0.0
        x2: 1.0 where ``iv2 == "b2"``, else 0.0
    """
    cond = condition_index(n)
    x1 = (cond % 2).astype(np.float64)
    x2 = (cond // 2).astype(np.float64)
    return x1, x2


def _generate_response(n, means, sd, rng):
    """Draw ``round(Normal(mean_i, sd))`` for every row.

    The means vector is recycled over rows in the same order as the factor
    levels, so row i always uses ``means[i % 4]``.
    """
    mu = np.asarray(means, dtype=np.float64)[condition_index(n)]
    # np.round rounds half to even
    return np.round(rng.normal(loc=mu, scale=sd, size=n))


def generate_dataset(
    n: int,
    means: Sequence[float],
    sd: float,
    rng: np.random.Generator,
) -> pd.DataFrame:
    """
    Generate one synthetic 2x2 dataset.

    Args:
        n: Number of observations (positive multiple of 4)
        means: Condition means ordered (a1b1, a2b1, a1b2, a2b2)
        sd: Standard deviation of the Gaussian noise
        rng: Random generator; the only source of randomness

    Returns:
        DataFrame with columns ``response``, ``iv1``, ``iv2``

    Raises:
        ValueError: If the design is not balanced or ``sd`` is not positive
    """
    _check_design(n, means, sd)

    cond = condition_index(n)
    response = _generate_response(n, means, sd, rng)
    iv1 = pd.Categorical(np.asarray(IV1_LEVELS)[cond % 2], categories=IV1_LEVELS)
    iv2 = pd.Categorical(np.asarray(IV2_LEVELS)[cond // 2], categories=IV2_LEVELS)

    return pd.DataFrame({"response": response, "iv1": iv1, "iv2": iv2})


def generate_response_and_codes(
    n: int,
    means: Sequence[float],
    sd: float,
    rng: np.random.Generator,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Array-only variant of :func:`generate_dataset` used in the simulation loop.

    Draws from ``rng`` exactly like ``generate_dataset``, so for the same
    generator state both return the same responses.
    """
    _check_design(n, means, sd)
    x1, x2 = condition_codes(n)
    return _generate_response(n, means, sd, rng), x1, x2
