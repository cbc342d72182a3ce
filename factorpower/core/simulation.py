"""
Simulation execution for the 2x2 factorial power analysis.

Each trial draws one dataset from the data generator and evaluates the three
linear models on it. Trials are independent: every trial owns a random
generator derived from ``(seed, n, sd, repetition, attempt)``, so a cell
produces the same trials whichever grid it belongs to, whether it is run
alone through ``find_power`` and whether the grid runs in a process pool.
"""

import warnings
from typing import Any, Callable, Dict, List, Optional, Tuple

import numpy as np

from ..stats.data_generation import generate_response_and_codes
from ..stats.ols import TrialFitError, TrialResult, evaluate_trial
from ..utils.validators import FAILURE_POLICIES
from .design import DesignSpec, GridSpec

SD_KEY_SCALE = 10**6


def cell_key(n: int, sd: float) -> Tuple[int, int]:
    """Seed key of the (n, sd) cell. Standard deviations are resolved to 1e-6."""
    return int(n), int(round(sd * SD_KEY_SCALE))


class SimulationRunner:
    """Executes Monte Carlo trials for one cell or a whole grid.

    Per-trial model-fit failures (``TrialFitError``) are handled by the
    configured policy:

    - ``"skip"``: drop the trial and continue (default).
    - ``"retry"``: redraw the dataset up to ``max_retries`` times, then skip.
    - ``"abort"``: re-raise immediately.

    A cell in which every trial failed raises ``RuntimeError``.
    """

    def __init__(
        self,
        n_simulations: int,
        seed: Optional[int] = None,
        alpha: float = 0.05,
        failure_policy: str = "skip",
        max_retries: int = 3,
        max_failed_simulations: float = 0.1,
    ):
        """Initialise the simulation runner.

        Args:
            n_simulations: Number of trials per grid cell.
            seed: Root random seed. ``None`` draws a fresh root from OS
                entropy once, shared by every cell of this runner.
            alpha: Significance level for hypothesis tests.
            failure_policy: One of ``"skip"``, ``"retry"``, ``"abort"``.
            max_retries: Redraws per trial under the ``"retry"`` policy.
            max_failed_simulations: Failed-trial share (0–1) above which a
                warning is issued.
        """
        if failure_policy not in FAILURE_POLICIES:
            raise ValueError(f"failure_policy must be one of {list(FAILURE_POLICIES)}, got {failure_policy!r}")

        self.n_simulations = n_simulations
        self.seed = seed
        self.alpha = alpha
        self.failure_policy = failure_policy
        self.max_retries = max_retries
        self.max_failed_simulations = max_failed_simulations
        self._entropy = seed if seed is not None else np.random.SeedSequence().entropy

    def trial_rng(self, n: int, sd: float, repetition: int, attempt: int = 0) -> np.random.Generator:
        """Independent generator for one draw of one trial of the (n, sd) cell."""
        seq = np.random.SeedSequence(self._entropy, spawn_key=(*cell_key(n, sd), repetition, attempt))
        return np.random.default_rng(seq)

    def _single_simulation(
        self,
        design: DesignSpec,
        repetition: int,
    ) -> Tuple[Optional[TrialResult], int, Optional[str]]:
        """
        Execute a single trial, applying the failure policy.

        Returns:
            Tuple of (result or None if the trial failed, retries used,
            failure reason or None)
        """
        n_attempts = 1 + (self.max_retries if self.failure_policy == "retry" else 0)
        reason = None

        for attempt in range(n_attempts):
            rng = self.trial_rng(design.n, design.sd, repetition, attempt)
            y, x1, x2 = generate_response_and_codes(design.n, design.means, design.sd, rng)
            try:
                return evaluate_trial(y, x1, x2, self.alpha), attempt, None
            except TrialFitError as exc:
                if self.failure_policy == "abort":
                    raise
                reason = str(exc)

        return None, n_attempts - 1, reason

    def run_cell(
        self,
        design: DesignSpec,
        progress=None,
        cancel_check: Optional[Callable[[], bool]] = None,
    ) -> Dict[str, Any]:
        """Run all trials of one grid cell.

        Args:
            design: Cell design; validated before any trial runs.
            progress: Optional ``ProgressReporter`` (advanced by 1 per trial).
            cancel_check: Optional callable returning ``True`` to abort.

        Returns:
            Dict with keys ``"n"``, ``"sd"``, ``"trials"`` (list of
            ``(repetition, TrialResult)``), ``"n_simulations_used"``,
            ``"n_simulations_failed"``, ``"n_retries"`` and
            ``"failure_reasons"``.

        Raises:
            ValueError: If the design is invalid.
            TrialFitError: Under the ``"abort"`` policy.
            RuntimeError: If every trial failed.
            SimulationCancelled: If *cancel_check* requested a stop.
        """
        design.check()

        trials: List[Tuple[int, TrialResult]] = []
        failure_reasons: Dict[str, int] = {}
        n_retries = 0

        for repetition in range(self.n_simulations):
            if cancel_check is not None and cancel_check():
                from ..progress import SimulationCancelled

                raise SimulationCancelled("Simulation cancelled by user")

            result, retries, reason = self._single_simulation(design, repetition)
            n_retries += retries
            if result is not None:
                trials.append((repetition, result))
            elif reason is not None:
                failure_reasons[reason] = failure_reasons.get(reason, 0) + 1

            if progress is not None:
                progress.advance(1)

        if not trials:
            raise RuntimeError(f"All simulations failed for n={design.n}, sd={design.sd}: {sorted(failure_reasons)}")

        n_failed = self.n_simulations - len(trials)
        failed_pct = n_failed / self.n_simulations
        if failed_pct > self.max_failed_simulations:
            warnings.warn(
                f"{n_failed} simulations failed ({failed_pct:.1%}) for n={design.n}, sd={design.sd} - check the design specification",
                UserWarning,
                stacklevel=2,
            )

        return {
            "n": design.n,
            "sd": design.sd,
            "trials": trials,
            "n_simulations_used": len(trials),
            "n_simulations_failed": n_failed,
            "n_retries": n_retries,
            "failure_reasons": failure_reasons,
        }

    def run_grid(
        self,
        grid: GridSpec,
        parallel: bool = False,
        n_cores: int = 1,
        progress=None,
        cancel_check: Optional[Callable[[], bool]] = None,
    ) -> List[Dict[str, Any]]:
        """Run every cell of *grid*, returning the cell dicts in grid order.

        The grid is validated before any trial runs. With *parallel*, cells
        are distributed over a joblib ``loky`` pool; if anything in the pool
        fails the grid is recomputed sequentially, which re-raises genuine
        trial errors in the calling process.

        Cancellation is checked before every trial when running
        sequentially. In the pool it is checked as each cell's result
        arrives, and cells already dispatched to workers still run to
        completion before ``SimulationCancelled`` propagates.
        """
        from ..progress import SimulationCancelled

        grid.check()
        cells = list(grid.cells())

        if parallel and n_cores > 1 and len(cells) > 1:
            from joblib import Parallel, delayed

            try:
                outputs = Parallel(
                    n_jobs=n_cores,
                    backend="loky",
                    verbose=0,
                    return_as="generator",
                )(delayed(self.run_cell)(design) for design in cells)
                results = []
                for output in outputs:
                    if cancel_check is not None and cancel_check():
                        raise SimulationCancelled("Simulation cancelled by user")
                    results.append(output)
                    if progress is not None:
                        progress.complete_cell(output["n"], output["sd"])
                return results
            except Exception as e:
                if isinstance(e, SimulationCancelled):
                    raise
                print(f"Warning: Parallel execution failed ({e}). Falling back to sequential.")
                if progress is not None:
                    progress.start()

        results = []
        for design in cells:
            results.append(self.run_cell(design, progress=progress, cancel_check=cancel_check))
            if progress is not None:
                progress.complete_cell(design.n, design.sd)
        return results
