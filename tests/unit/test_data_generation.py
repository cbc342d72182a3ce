"""
Tests for the 2x2 data generator.
"""

import numpy as np
import pandas as pd
import pytest

from factorpower.stats.data_generation import (
    condition_codes,
    condition_index,
    generate_dataset,
    generate_response_and_codes,
)
from tests.config import REFERENCE_MEANS, SEED


class TestGenerateDataset:
    """Shape, balance and interleaving of generated datasets."""

    @pytest.mark.parametrize("n", [4, 8, 100, 600])
    def test_row_count(self, n, rng):
        data = generate_dataset(n, REFERENCE_MEANS, 1.5, rng)
        assert len(data) == n
        assert list(data.columns) == ["response", "iv1", "iv2"]

    def test_factor_balance(self, rng):
        data = generate_dataset(600, REFERENCE_MEANS, 1.5, rng)
        assert (data["iv1"] == "a1").sum() == 300
        assert (data["iv2"] == "b1").sum() == 300
        cells = data.groupby(["iv1", "iv2"], observed=True).size()
        assert len(cells) == 4
        assert (cells == 150).all()

    def test_interleaving_pattern(self, rng):
        data = generate_dataset(12, REFERENCE_MEANS, 1.0, rng)
        assert list(data["iv1"]) == ["a1", "a2"] * 6
        assert list(data["iv2"]) == ["b1", "b1", "b2", "b2"] * 3

    def test_factor_levels_are_categorical(self, rng):
        data = generate_dataset(8, REFERENCE_MEANS, 1.0, rng)
        assert isinstance(data["iv1"].dtype, pd.CategoricalDtype)
        assert list(data["iv1"].cat.categories) == ["a1", "a2"]
        assert list(data["iv2"].cat.categories) == ["b1", "b2"]

    def test_responses_are_integers(self, rng):
        data = generate_dataset(400, REFERENCE_MEANS, 1.5, rng)
        assert np.all(data["response"] == np.round(data["response"]))

    def test_means_follow_conditions(self):
        """Very small noise reproduces each row's condition mean."""
        means = (1.0, 5.0, 10.0, 20.0)
        data = generate_dataset(40, means, 1e-6, np.random.default_rng(SEED))
        expected = np.tile(means, 10)
        np.testing.assert_array_equal(data["response"].to_numpy(), expected)

    def test_condition_means_recovered(self):
        """Large samples recover the mean of each condition."""
        data = generate_dataset(40000, REFERENCE_MEANS, 1.0, np.random.default_rng(SEED))
        observed = data.groupby(["iv2", "iv1"], observed=True)["response"].mean().to_numpy()
        np.testing.assert_allclose(observed, REFERENCE_MEANS, atol=0.05)

    def test_same_seed_same_data(self):
        a = generate_dataset(100, REFERENCE_MEANS, 1.5, np.random.default_rng(7))
        b = generate_dataset(100, REFERENCE_MEANS, 1.5, np.random.default_rng(7))
        pd.testing.assert_frame_equal(a, b)

    def test_different_seed_different_data(self):
        a = generate_dataset(100, REFERENCE_MEANS, 1.5, np.random.default_rng(7))
        b = generate_dataset(100, REFERENCE_MEANS, 1.5, np.random.default_rng(8))
        assert not a["response"].equals(b["response"])

    def test_global_random_state_untouched(self, rng):
        state = np.random.get_state()[1].copy()
        generate_dataset(100, REFERENCE_MEANS, 1.5, rng)
        np.testing.assert_array_equal(np.random.get_state()[1], state)


class TestGenerateDatasetErrors:
    """Invalid designs are rejected."""

    @pytest.mark.parametrize("n", [0, -4, 6, 101])
    def test_invalid_n(self, n, rng):
        with pytest.raises(ValueError, match="multiple of 4"):
            generate_dataset(n, REFERENCE_MEANS, 1.0, rng)

    def test_non_integer_n(self, rng):
        with pytest.raises(ValueError, match="integer"):
            generate_dataset(8.0, REFERENCE_MEANS, 1.0, rng)

    @pytest.mark.parametrize("sd", [0, -1.0])
    def test_invalid_sd(self, sd, rng):
        with pytest.raises(ValueError, match="sd must be positive"):
            generate_dataset(8, REFERENCE_MEANS, sd, rng)

    def test_wrong_means_length(self, rng):
        with pytest.raises(ValueError, match="length 4"):
            generate_dataset(8, (1.0, 2.0, 3.0), 1.0, rng)


class TestConditionCodes:
    """Treatment coding used by the simulation loop."""

    def test_codes_match_labels(self, rng):
        data = generate_dataset(16, REFERENCE_MEANS, 1.0, rng)
        x1, x2 = condition_codes(16)
        np.testing.assert_array_equal(x1, (data["iv1"] == "a2").to_numpy(dtype=float))
        np.testing.assert_array_equal(x2, (data["iv2"] == "b2").to_numpy(dtype=float))

    def test_condition_index_cycles(self):
        np.testing.assert_array_equal(condition_index(8), [0, 1, 2, 3, 0, 1, 2, 3])

    def test_array_variant_matches_dataframe(self):
        data = generate_dataset(100, REFERENCE_MEANS, 1.5, np.random.default_rng(3))
        y, x1, x2 = generate_response_and_codes(100, REFERENCE_MEANS, 1.5, np.random.default_rng(3))
        np.testing.assert_array_equal(y, data["response"].to_numpy())
        assert x1.sum() == 50
        assert x2.sum() == 50
