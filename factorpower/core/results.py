"""
Results processing for the 2x2 factorial power analysis.

Turns per-cell simulation output into the flat trial table and aggregates
it into power and effect-size statistics per (n, sd, effect).
"""

from typing import Any, Dict, List, Optional, Sequence

import numpy as np
import pandas as pd

from ..stats.ols import EFFECT_LABELS

TRIAL_COLUMNS = ["p_1", "sig_1", "p_2", "sig_2", "p_3", "sig_3", "es_1", "es_2", "es_3"]
TRIAL_KEYS = ["n", "sd", "repetition"]
SUMMARY_KEYS = ["n", "sd", "effect"]
SUMMARY_COLUMNS = [
    "n_trials",
    "n_significant",
    "power",
    "mean_effect_size",
    "standard_error",
    "lower_bound",
    "upper_bound",
]

Z_95 = 1.96


class ResultsProcessor:
    """Converts raw simulation output into power estimates and statistics.

    Power is reported as the percentage (0–100) of successful trials that
    reached significance; the raw count is kept as ``n_significant``.
    """

    def __init__(self, z: float = Z_95):
        """Initialise the results processor.

        Args:
            z: Normal quantile for the effect-size interval (1.96 = 95%).
        """
        self.z = z

    def trials_frame(self, cell_outputs: Sequence[Dict[str, Any]]) -> pd.DataFrame:
        """
        Build the flat trial table.

        Args:
            cell_outputs: Dicts returned by ``SimulationRunner.run_cell``

        Returns:
            DataFrame keyed by (n, sd, repetition) with the trial columns
        """
        rows = []
        for output in cell_outputs:
            for repetition, trial in output["trials"]:
                row = {"n": output["n"], "sd": output["sd"], "repetition": repetition}
                row.update(trial.as_dict())
                rows.append(row)

        frame = pd.DataFrame(rows, columns=TRIAL_KEYS + TRIAL_COLUMNS)
        return frame.astype({"sig_1": bool, "sig_2": bool, "sig_3": bool})

    def aggregate(self, trials: pd.DataFrame) -> pd.DataFrame:
        """
        Aggregate trials per (n, sd, effect).

        Args:
            trials: Flat trial table from :meth:`trials_frame`

        Returns:
            DataFrame with one row per (n, sd, effect) and the columns
            ``n_trials, n_significant, power, mean_effect_size,
            standard_error, lower_bound, upper_bound``
        """
        pieces = []
        grouped = trials.groupby(["n", "sd"], sort=True)

        for index, label in enumerate(EFFECT_LABELS, start=1):
            sig = grouped[f"sig_{index}"]
            es = grouped[f"es_{index}"]

            piece = pd.DataFrame(
                {
                    "n_trials": es.count(),
                    "n_significant": sig.sum().astype(int),
                    "mean_effect_size": es.mean(),
                    "es_sd": es.std(ddof=1),
                }
            )
            piece["power"] = piece["n_significant"] / piece["n_trials"] * 100
            piece["standard_error"] = piece["es_sd"] / np.sqrt(piece["n_trials"])
            piece["lower_bound"] = piece["mean_effect_size"] - self.z * piece["standard_error"]
            piece["upper_bound"] = piece["mean_effect_size"] + self.z * piece["standard_error"]
            piece["effect"] = label
            pieces.append(piece.reset_index())

        summary = pd.concat(pieces, ignore_index=True)
        summary["effect"] = pd.Categorical(summary["effect"], categories=list(EFFECT_LABELS))
        summary = summary.sort_values(SUMMARY_KEYS, ignore_index=True)
        return summary[SUMMARY_KEYS + SUMMARY_COLUMNS]

    def cell_powers(self, output: Dict[str, Any]) -> Dict[str, Any]:
        """Power and effect-size statistics for one cell, keyed by effect label."""
        summary = self.aggregate(self.trials_frame([output]))
        powers = {}
        for row in summary.itertuples(index=False):
            powers[str(row.effect)] = {column: getattr(row, column) for column in SUMMARY_COLUMNS}
        return {
            "individual_powers": {label: stats["power"] for label, stats in powers.items()},
            "effects": powers,
            "n_simulations_used": output["n_simulations_used"],
            "n_simulations_failed": output["n_simulations_failed"],
        }


def build_power_result(
    design: Any,
    alpha: float,
    n_simulations: int,
    seed: Optional[int],
    failure_policy: str,
    power_results: Dict,
) -> Dict[str, Any]:
    """
    Build complete single-cell power analysis result dictionary.

    Args:
        design: DesignSpec of the cell
        alpha: Significance level
        n_simulations: Requested trials per cell
        seed: Root seed used
        failure_policy: Per-trial failure policy
        power_results: Output of ``ResultsProcessor.cell_powers``

    Returns:
        Complete result dictionary
    """
    return {
        "model": {
            "means": tuple(design.means),
            "sample_size": design.n,
            "sd": design.sd,
            "alpha": alpha,
            "n_simulations": n_simulations,
            "seed": seed,
            "failure_policy": failure_policy,
        },
        "results": power_results,
    }


def build_grid_result(
    grid: Any,
    seed: Optional[int],
    failure_policy: str,
    parallel: bool,
    trials: pd.DataFrame,
    summary: pd.DataFrame,
    cell_outputs: List[Dict[str, Any]],
) -> Dict[str, Any]:
    """
    Build complete grid analysis result dictionary.

    Args:
        grid: GridSpec that was run
        seed: Root seed used
        failure_policy: Per-trial failure policy
        parallel: Whether parallel processing was used
        trials: Flat trial table
        summary: Aggregated table
        cell_outputs: Raw per-cell outputs (for failure bookkeeping)

    Returns:
        Complete result dictionary
    """
    return {
        "model": {
            "means": tuple(grid.means),
            "sample_sizes": list(grid.sample_sizes),
            "sds": list(grid.sds),
            "alpha": grid.alpha,
            "n_simulations": grid.n_simulations,
            "seed": seed,
            "failure_policy": failure_policy,
            "parallel": parallel,
        },
        "results": {
            "trials": trials,
            "summary": summary,
            "n_simulations_failed": int(sum(o["n_simulations_failed"] for o in cell_outputs)),
            "n_retries": int(sum(o["n_retries"] for o in cell_outputs)),
        },
    }
