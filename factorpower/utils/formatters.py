"""
Console formatting of power analysis results.
"""

from typing import Any, Dict

import pandas as pd

__all__ = []

_EFFECT_NAMES = {
    "iv1": "Main effect iv1",
    "iv2": "Main effect iv2",
    "iv1:iv2": "Interaction iv1:iv2",
}


def _format_power_result(result: Dict[str, Any]) -> str:
    """Format a single-cell result as a fixed-width table."""
    model = result["model"]
    res = result["results"]

    lines = [
        "=" * 72,
        "POWER ANALYSIS: 2x2 FACTORIAL DESIGN",
        "=" * 72,
        f"Means (a1b1, a2b1, a1b2, a2b2): {', '.join(f'{m:g}' for m in model['means'])}",
        f"Sample size: {model['sample_size']}   SD: {model['sd']:g}   Alpha: {model['alpha']:g}",
        f"Simulations: {res['n_simulations_used']} used, {res['n_simulations_failed']} failed",
        "-" * 72,
        f"{'Test':<24}{'Power (%)':>12}{'Cohen f':>12}{'95% CI':>24}",
        "-" * 72,
    ]
    for label, stats in res["effects"].items():
        ci = f"[{stats['lower_bound']:.3f}, {stats['upper_bound']:.3f}]"
        lines.append(
            f"{_EFFECT_NAMES.get(label, label):<24}{stats['power']:>12.1f}{stats['mean_effect_size']:>12.3f}{ci:>24}"
        )
    lines.append("=" * 72)
    return "\n".join(lines)


def _format_grid_result(result: Dict[str, Any]) -> str:
    """Format a grid result as one power pivot table per effect."""
    model = result["model"]
    summary: pd.DataFrame = result["results"]["summary"]

    lines = [
        "=" * 72,
        "POWER GRID: 2x2 FACTORIAL DESIGN",
        "=" * 72,
        f"Means (a1b1, a2b1, a1b2, a2b2): {', '.join(f'{m:g}' for m in model['means'])}",
        f"Simulations per cell: {model['n_simulations']}   Alpha: {model['alpha']:g}",
        f"Failed trials: {result['results']['n_simulations_failed']}",
    ]
    for label in summary["effect"].cat.categories:
        subset = summary[summary["effect"] == label]
        table = subset.pivot(index="n", columns="sd", values="power")
        table.columns = [f"sd={sd:g}" for sd in table.columns]
        lines.append("")
        lines.append(f"{_EFFECT_NAMES.get(label, label)} - power (%)")
        lines.append(table.to_string(float_format=lambda v: f"{v:.1f}"))
    lines.append("=" * 72)
    return "\n".join(lines)
