"""
Shared pytest fixtures for factorpower tests.
"""

import contextlib
import io
import warnings

import numpy as np
import pytest

from tests.config import REFERENCE_MEANS, SEED


@pytest.fixture
def rng():
    """Fresh seeded generator for each test."""
    return np.random.default_rng(SEED)


@pytest.fixture
def reference_model():
    """Model with the reference means and a small simulation count."""
    from factorpower import FactorialPower

    model = FactorialPower(REFERENCE_MEANS)
    with warnings.catch_warnings():
        warnings.simplefilter("ignore")
        model.set_simulations(50)
    model.set_seed(SEED)
    return model


@pytest.fixture
def small_grid_model(reference_model):
    """Reference model restricted to a 3 x 2 grid."""
    reference_model.set_sample_sizes(40, 120, 40)
    reference_model.set_sds([1.0, 2.0])
    return reference_model


@pytest.fixture
def suppress_output():
    """Suppress stdout during a test."""
    with contextlib.redirect_stdout(io.StringIO()):
        yield
