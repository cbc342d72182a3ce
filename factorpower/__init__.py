"""factorpower - Monte Carlo power analysis for 2x2 factorial designs.

Simulates a balanced two-by-two experiment many times over a grid of sample
sizes and standard deviations and estimates the power of the two main
effects and their interaction, together with Cohen's f effect sizes.

Example:
    >>> from factorpower import FactorialPower
    >>>
    >>> model = FactorialPower(means=(2.5, 2.75, 3, 4))
    >>> model.find_power(sample_size=600, sd=1.5)
    >>>
    >>> model.set_sample_sizes(100, 980, 40).set_sds([1, 1.5, 2])
    >>> results = model.run_grid()
"""

from importlib.metadata import version as _get_version

from .core import DesignSpec, GridSpec
from .model import FactorialPower
from .progress import PrintReporter, ProgressReporter, SimulationCancelled, TqdmReporter
from .stats.ols import TrialFitError, TrialResult

__version__ = _get_version("factorpower")

__all__ = [
    "FactorialPower",
    "DesignSpec",
    "GridSpec",
    "TrialResult",
    "TrialFitError",
    "SimulationCancelled",
    "ProgressReporter",
    "PrintReporter",
    "TqdmReporter",
]
