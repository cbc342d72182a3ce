"""
factorpower - Monte Carlo power analysis for 2x2 factorial designs.

This module provides the main FactorialPower class for estimating the power
of the iv1 and iv2 main effects and the iv1:iv2 interaction across a grid of
sample sizes and standard deviations.
"""

import warnings
from typing import Any, Callable, Dict, Optional, Sequence

import numpy as np
import pandas as pd

from .core import (
    DEFAULT_MEANS,
    DEFAULT_SAMPLE_SIZES,
    DEFAULT_SDS,
    DesignSpec,
    GridSpec,
    ResultsProcessor,
    SimulationRunner,
    build_grid_result,
    build_power_result,
)
from .progress import ProgressReporter, compute_total_simulations
from .stats.data_generation import generate_dataset
from .stats.ols import TrialResult, evaluate_dataset
from .utils.formatters import _format_grid_result, _format_power_result
from .utils.validators import (
    _validate_alpha,
    _validate_design,
    _validate_failure_policy,
    _validate_max_failed,
    _validate_means,
    _validate_parallel_settings,
    _validate_sample_size_range,
    _validate_sd,
    _validate_simulations,
    _validate_value_list,
)
from .utils.visualization import _create_effect_size_plot, _create_power_plot


class FactorialPower:
    """Monte Carlo power analysis for a 2x2 factorial design.

    Each trial simulates ``n`` observations with condition means
    ``(a1b1, a2b1, a1b2, a2b2)`` and Gaussian noise, rounds responses to
    integers, and fits three linear models: ``response ~ iv1``,
    ``response ~ iv2`` and ``response ~ iv1 * iv2``. Power is the
    percentage of trials where the tested coefficient is significant.

    Configuration methods (``set_*``) validate immediately and return
    ``self`` for method chaining.

    Attributes:
        means: Condition means (default: 2.5, 2.75, 3, 4).
        seed: Random seed for reproducibility (default: 2137).
        alpha: Significance level (default: 0.05).
        n_simulations: Trials per grid cell (default: 1000).
        sample_sizes: Sample sizes of the grid (default: 100..980 by 40).
        sds: Standard deviations of the grid (default: 1, 1.5, 2).
        failure_policy: Per-trial fit-failure policy (default: ``"skip"``).
        max_retries: Redraws per trial under ``"retry"`` (default: 3).
        max_failed_simulations: Failed share that triggers a warning (default: 0.1).
        parallel: Run grid cells in a process pool (default: False).
        n_cores: Number of CPU cores for parallel execution.

    Example:
        >>> model = FactorialPower(means=(2.5, 2.75, 3, 4))
        >>> model.find_power(sample_size=600, sd=1.5)

        >>> model.set_sample_sizes(100, 980, 40).set_sds([1, 1.5, 2])
        >>> results = model.run_grid()
    """

    def __init__(self, means: Sequence[float] = DEFAULT_MEANS):
        """Initialise the analysis with a means vector and default settings.

        Args:
            means: Condition means ordered (a1b1, a2b1, a1b2, a2b2).

        Raises:
            ValueError: If *means* is not four finite numbers.
        """
        result = _validate_means(means)
        result.raise_if_invalid()
        self.means = tuple(float(m) for m in means)

        self.seed: Optional[int] = 2137
        self.alpha = 0.05
        self.n_simulations = 1000
        self.sample_sizes = DEFAULT_SAMPLE_SIZES
        self.sds = DEFAULT_SDS

        self.failure_policy = "skip"
        self.max_retries = 3
        self.max_failed_simulations = 0.1

        self.parallel = False
        self.n_cores = 1

    # =========================================================================
    # Configuration methods
    # =========================================================================

    def set_means(self, means: Sequence[float]):
        """Set the condition means (a1b1, a2b1, a1b2, a2b2).

        Returns:
            self: For method chaining.
        """
        result = _validate_means(means)
        result.raise_if_invalid()
        self.means = tuple(float(m) for m in means)
        return self

    def set_seed(self, seed: Optional[int] = None):
        """Set random seed for reproducibility.

        Args:
            seed: Non-negative integer, or ``None`` for fresh OS entropy on
                every run.

        Returns:
            self: For method chaining.

        Raises:
            TypeError: If *seed* is not an integer or ``None``.
            ValueError: If *seed* is negative.
        """
        if seed is not None:
            if isinstance(seed, bool) or not isinstance(seed, (int, np.integer)):
                raise TypeError("seed must be an integer or None")
            if seed < 0:
                raise ValueError("seed must be non-negative")

        self.seed = None if seed is None else int(seed)
        return self

    def set_alpha(self, alpha: float):
        """Set the significance level (0–0.25, default 0.05).

        Returns:
            self: For method chaining.
        """
        result = _validate_alpha(alpha)
        result.raise_if_invalid()
        self.alpha = float(alpha)
        return self

    def set_simulations(self, n_simulations: int):
        """Set the number of trials per grid cell.

        Counts below 1000 are accepted with a warning.

        Returns:
            self: For method chaining.
        """
        n_sims, result = _validate_simulations(n_simulations)
        result.raise_if_invalid()
        for message in result.warnings:
            warnings.warn(message, UserWarning, stacklevel=2)
        self.n_simulations = n_sims
        return self

    def set_sample_sizes(self, from_size: int = 100, to_size: int = 980, by: int = 40):
        """Set the grid sample sizes as an inclusive range.

        Args:
            from_size: Smallest sample size (positive multiple of 4).
            to_size: Largest sample size (inclusive upper bound).
            by: Step (multiple of 4).

        Returns:
            self: For method chaining.
        """
        result = _validate_sample_size_range(from_size, to_size, by)
        result.raise_if_invalid()
        self.sample_sizes = tuple(range(from_size, to_size + 1, by))
        return self

    def set_sds(self, sds: Sequence[float]):
        """Set the grid standard deviations.

        Returns:
            self: For method chaining.
        """
        result = _validate_value_list(sds, "sds", _validate_sd)
        result.raise_if_invalid()
        self.sds = tuple(float(sd) for sd in sds)
        return self

    def set_failure_policy(self, policy: str = "skip", max_retries: int = 3):
        """Choose how trials whose models cannot be estimated are handled.

        Args:
            policy: ``"skip"`` drops the trial, ``"retry"`` redraws it up to
                *max_retries* times before dropping it, ``"abort"`` raises
                ``TrialFitError``.
            max_retries: Redraws per trial for ``"retry"``.

        Returns:
            self: For method chaining.
        """
        result = _validate_failure_policy(policy, max_retries)
        result.raise_if_invalid()
        self.failure_policy = policy
        self.max_retries = int(max_retries)
        return self

    def set_max_failed_simulations(self, percentage: float):
        """Set the failed-trial share (0–1) above which a warning is issued.

        Returns:
            self: For method chaining.
        """
        result = _validate_max_failed(percentage)
        result.raise_if_invalid()
        self.max_failed_simulations = float(percentage)
        return self

    def set_parallel(self, enable: bool = True, n_cores: Optional[int] = None):
        """Enable or disable parallel processing of grid cells.

        Requires ``joblib``. Falls back to sequential processing with a
        warning if ``joblib`` is unavailable.

        Args:
            enable: ``True`` for a process pool, ``False`` for sequential.
            n_cores: Number of CPU cores to use. Defaults to
                ``cpu_count // 2``.

        Returns:
            self: For method chaining.
        """
        if enable is False:
            self.parallel, self.n_cores = False, 1
            return self

        try:
            import joblib  # noqa: F401
        except ImportError:
            print("Warning: joblib not available. Install with: pip install joblib")
            print("Warning: Continuing with sequential processing.")
            self.parallel = False
            return self

        settings, result = _validate_parallel_settings(enable, n_cores)
        result.raise_if_invalid()
        self.parallel, self.n_cores = settings
        return self

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def grid(self) -> GridSpec:
        """Current settings as a ``GridSpec``."""
        return GridSpec(
            means=self.means,
            sample_sizes=tuple(self.sample_sizes),
            sds=tuple(self.sds),
            n_simulations=self.n_simulations,
            alpha=self.alpha,
        )

    def _make_runner(self) -> SimulationRunner:
        return SimulationRunner(
            n_simulations=self.n_simulations,
            seed=self.seed,
            alpha=self.alpha,
            failure_policy=self.failure_policy,
            max_retries=self.max_retries,
            max_failed_simulations=self.max_failed_simulations,
        )

    def _design(self, sample_size: int, sd: float) -> DesignSpec:
        result = _validate_design(sample_size, self.means, sd)
        result.raise_if_invalid()
        return DesignSpec(n=sample_size, means=self.means, sd=float(sd))

    # =========================================================================
    # Single-trial operations
    # =========================================================================

    def simulate_dataset(self, sample_size: int, sd: float, repetition: int = 0) -> pd.DataFrame:
        """Generate the dataset of trial *repetition* of a single cell.

        With a fixed seed this is the dataset behind trial *repetition* of
        the (sample_size, sd) cell in both ``find_power`` and ``run_grid``.

        Returns:
            DataFrame with ``response``, ``iv1`` and ``iv2`` columns.
        """
        design = self._design(sample_size, sd)
        rng = self._make_runner().trial_rng(design.n, design.sd, repetition)
        return generate_dataset(design.n, design.means, design.sd, rng)

    def evaluate(self, sample_size: int, sd: float, repetition: int = 0) -> TrialResult:
        """Simulate and evaluate one trial.

        Raises:
            TrialFitError: If one of the models cannot be estimated.
        """
        data = self.simulate_dataset(sample_size, sd, repetition)
        return evaluate_dataset(data, self.alpha)

    # =========================================================================
    # Power analysis
    # =========================================================================

    def find_power(
        self,
        sample_size: int,
        sd: float,
        print_results: bool = True,
        return_results: bool = False,
        progress_callback: Optional[Callable[[int, int], None]] = None,
        cancel_check: Optional[Callable[[], bool]] = None,
    ) -> Optional[Dict[str, Any]]:
        """Estimate power for one (sample size, sd) cell.

        Args:
            sample_size: Total sample size (positive multiple of 4).
            sd: Noise standard deviation.
            print_results: Print a summary table.
            return_results: Return the result dict.
            progress_callback: Optional ``callback(current, total)``.
            cancel_check: Optional callable returning ``True`` to abort.

        Returns:
            Result dict with ``"model"`` and ``"results"`` keys when
            *return_results* is ``True``, else ``None``.
        """
        design = self._design(sample_size, sd)
        runner = self._make_runner()

        progress = None
        if progress_callback is not None:
            progress = ProgressReporter(compute_total_simulations(self.n_simulations), progress_callback)
            progress.start()

        output = runner.run_cell(design, progress=progress, cancel_check=cancel_check)
        if progress is not None:
            progress.complete_cell(design.n, design.sd)
            progress.finish()

        processor = ResultsProcessor()
        result = build_power_result(
            design=design,
            alpha=self.alpha,
            n_simulations=self.n_simulations,
            seed=self.seed,
            failure_policy=self.failure_policy,
            power_results=processor.cell_powers(output),
        )

        if print_results:
            print(_format_power_result(result))
        return result if return_results else None

    def run_grid(
        self,
        print_results: bool = True,
        return_results: bool = True,
        plot: bool = False,
        progress_callback: Optional[Callable[[int, int], None]] = None,
        cancel_check: Optional[Callable[[], bool]] = None,
    ) -> Optional[Dict[str, Any]]:
        """Estimate power and effect sizes across the whole grid.

        Every (sample size, sd) cell is run ``n_simulations`` times. The
        returned dict holds the flat ``"trials"`` table and the aggregated
        ``"summary"`` table under ``"results"``.

        Raises:
            ValueError: If the grid is invalid (before any trial runs).
            TrialFitError: Under the ``"abort"`` failure policy.
            RuntimeError: If every trial of a cell failed.
            SimulationCancelled: If *cancel_check* requested a stop.
        """
        grid = self.grid.check()
        runner = self._make_runner()

        progress = None
        if progress_callback is not None:
            progress = ProgressReporter(
                compute_total_simulations(self.n_simulations, grid.n_cells),
                progress_callback,
                n_cells=grid.n_cells,
            )
            progress.start()

        cell_outputs = runner.run_grid(
            grid,
            parallel=self.parallel,
            n_cores=self.n_cores,
            progress=progress,
            cancel_check=cancel_check,
        )
        if progress is not None:
            progress.finish()

        processor = ResultsProcessor()
        trials = processor.trials_frame(cell_outputs)
        summary = processor.aggregate(trials)
        result = build_grid_result(
            grid=grid,
            seed=self.seed,
            failure_policy=self.failure_policy,
            parallel=self.parallel,
            trials=trials,
            summary=summary,
            cell_outputs=cell_outputs,
        )

        if print_results:
            print(_format_grid_result(result))
        if plot:
            self.plot_power(result)
            self.plot_effect_sizes(result)
        return result if return_results else None

    # =========================================================================
    # Plotting
    # =========================================================================

    def plot_power(self, results: Dict[str, Any], target_power: Optional[float] = 80.0):
        """Plot power curves from a ``run_grid`` result."""
        _create_power_plot(results["results"]["summary"], target_power=target_power)

    def plot_effect_sizes(self, results: Dict[str, Any]):
        """Plot mean Cohen's f with 95% intervals from a ``run_grid`` result."""
        _create_effect_size_plot(results["results"]["summary"])

    def __repr__(self):
        means = ", ".join(f"{m:g}" for m in self.means)
        return f"FactorialPower(means=({means}))"
