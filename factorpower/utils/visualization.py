"""
Visualization utilities for factorial power analysis results.

Both plots consume the aggregated summary table (one row per
(n, sd, effect)) and draw one panel per standard deviation.
"""

from typing import Optional

import numpy as np
import pandas as pd

__all__ = []


def _import_pyplot():
    try:
        import matplotlib.pyplot as plt
    except ImportError:
        raise ImportError("matplotlib required for plotting: pip install matplotlib") from None
    return plt


def _create_power_plot(summary: pd.DataFrame, target_power: Optional[float] = 80.0, title: str = "Power Analysis"):
    """Power vs. sample size, one panel per sd and one line per effect.

    Args:
        summary: Aggregated table with ``n, sd, effect, power`` columns.
        target_power: Reference line in percent (``None`` to omit).
        title: Figure title.

    Raises:
        ImportError: If ``matplotlib`` is not installed.
    """
    plt = _import_pyplot()

    sds = sorted(summary["sd"].unique())
    effects = list(pd.unique(summary["effect"].astype(str)))
    fig, axes = plt.subplots(1, len(sds), figsize=(5 * len(sds), 5), sharey=True, squeeze=False)
    colors = plt.get_cmap("Set1")(np.linspace(0, 1, max(len(effects), 2)))

    for ax, sd in zip(axes[0], sds):
        panel = summary[summary["sd"] == sd]
        for i, effect in enumerate(effects):
            rows = panel[panel["effect"].astype(str) == effect].sort_values("n")
            ax.plot(rows["n"], rows["power"], "o-", color=colors[i], label=effect, linewidth=2, markersize=4)

        if target_power is not None:
            ax.axhline(y=target_power, color="red", linestyle="--", linewidth=1)
        ax.set_title(f"sd = {sd:g}")
        ax.set_xlabel("Sample Size")
        ax.set_ylim(0, 105)
        ax.grid(True, alpha=0.3)

    axes[0][0].set_ylabel("Power (%)")
    axes[0][-1].legend(loc="lower right")
    fig.suptitle(title, fontsize=14, fontweight="bold")
    plt.tight_layout()
    plt.show()


def _create_effect_size_plot(summary: pd.DataFrame, title: str = "Effect Sizes (Cohen's f)"):
    """Mean Cohen's f vs. sample size with shaded 95% intervals.

    Raises:
        ImportError: If ``matplotlib`` is not installed.
    """
    plt = _import_pyplot()

    sds = sorted(summary["sd"].unique())
    effects = list(pd.unique(summary["effect"].astype(str)))
    fig, axes = plt.subplots(1, len(sds), figsize=(5 * len(sds), 5), sharey=True, squeeze=False)
    colors = plt.get_cmap("Set1")(np.linspace(0, 1, max(len(effects), 2)))

    for ax, sd in zip(axes[0], sds):
        panel = summary[summary["sd"] == sd]
        for i, effect in enumerate(effects):
            rows = panel[panel["effect"].astype(str) == effect].sort_values("n")
            ax.plot(rows["n"], rows["mean_effect_size"], "-", color=colors[i], label=effect, linewidth=2)
            ax.fill_between(rows["n"], rows["lower_bound"], rows["upper_bound"], color=colors[i], alpha=0.25)

        ax.set_title(f"sd = {sd:g}")
        ax.set_xlabel("Sample Size")
        ax.grid(True, alpha=0.3)

    axes[0][0].set_ylabel("Cohen's f")
    axes[0][-1].legend(loc="upper right")
    fig.suptitle(title, fontsize=14, fontweight="bold")
    plt.tight_layout()
    plt.show()
