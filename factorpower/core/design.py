"""
Design specifications for the 2x2 factorial simulation.

A ``DesignSpec`` is one grid cell: the parametric assumptions of a single
simulated experiment. A ``GridSpec`` is the cartesian sweep over sample
sizes and standard deviations sharing one means vector.
"""

from dataclasses import dataclass
from typing import Iterator, Tuple

from ..utils.validators import (
    _validate_alpha,
    _validate_design,
    _validate_means,
    _validate_sample_size,
    _validate_sd,
    _validate_simulations,
    _validate_value_list,
    _ValidationResult,
)

DEFAULT_MEANS = (2.5, 2.75, 3.0, 4.0)
DEFAULT_SAMPLE_SIZES = tuple(range(100, 981, 40))
DEFAULT_SDS = (1.0, 1.5, 2.0)


@dataclass(frozen=True)
class DesignSpec:
    """One simulated experiment.

    Attributes:
        n: Total sample size (positive multiple of 4).
        means: Condition means ordered (a1b1, a2b1, a1b2, a2b2).
        sd: Noise standard deviation.
    """

    n: int
    means: Tuple[float, float, float, float]
    sd: float

    def validate(self) -> _ValidationResult:
        return _validate_design(self.n, self.means, self.sd)

    def check(self) -> "DesignSpec":
        """Raise ``ValueError`` if the design is invalid; return self otherwise."""
        self.validate().raise_if_invalid()
        return self


@dataclass(frozen=True)
class GridSpec:
    """Cartesian grid of sample sizes and standard deviations.

    Attributes:
        means: Condition means shared by every cell.
        sample_sizes: Sample sizes to sweep.
        sds: Standard deviations to sweep.
        n_simulations: Repetitions per cell.
        alpha: Significance level.
    """

    means: Tuple[float, float, float, float] = DEFAULT_MEANS
    sample_sizes: Tuple[int, ...] = DEFAULT_SAMPLE_SIZES
    sds: Tuple[float, ...] = DEFAULT_SDS
    n_simulations: int = 1000
    alpha: float = 0.05

    @property
    def n_cells(self) -> int:
        return len(self.sample_sizes) * len(self.sds)

    def cells(self) -> Iterator[DesignSpec]:
        """Yield every cell, sample size major and sd minor."""
        for n in self.sample_sizes:
            for sd in self.sds:
                yield DesignSpec(n=n, means=tuple(self.means), sd=sd)

    def validate(self) -> _ValidationResult:
        result = _validate_means(self.means)
        result = result.merge(_validate_value_list(self.sample_sizes, "sample_sizes", _validate_sample_size))
        result = result.merge(_validate_value_list(self.sds, "sds", _validate_sd))
        _, sims_result = _validate_simulations(self.n_simulations)
        result = result.merge(sims_result)
        return result.merge(_validate_alpha(self.alpha))

    def check(self) -> "GridSpec":
        """Raise ``ValueError`` listing every problem; return self otherwise."""
        self.validate().raise_if_invalid()
        return self
