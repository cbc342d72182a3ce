"""Core components for the factorial power framework.

Re-exports the foundational building blocks:

- ``DesignSpec``, ``GridSpec`` — the simulated design and the parameter grid.
- ``SimulationRunner`` — seeded trial execution with fit-failure policies.
- ``ResultsProcessor``, ``build_power_result``, ``build_grid_result``
  — trial tables, aggregation and result formatting.
"""

from .design import DEFAULT_MEANS, DEFAULT_SAMPLE_SIZES, DEFAULT_SDS, DesignSpec, GridSpec
from .results import ResultsProcessor, build_grid_result, build_power_result
from .simulation import SimulationRunner

__all__ = [
    # Design
    "DesignSpec",
    "GridSpec",
    "DEFAULT_MEANS",
    "DEFAULT_SAMPLE_SIZES",
    "DEFAULT_SDS",
    # Simulation
    "SimulationRunner",
    # Results
    "ResultsProcessor",
    "build_power_result",
    "build_grid_result",
]
