"""
Validation utilities for 2x2 factorial power analysis.

This module provides validation functions for design specifications and
simulation settings. Validators collect every problem before reporting so
that a misconfigured run is rejected with one complete message.
"""

from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple, Union

import numpy as np

__all__ = []

FAILURE_POLICIES = ("skip", "retry", "abort")


@dataclass
class _ValidationResult:
    """Outcome of a validation check, carrying errors and warnings.

    Attributes:
        is_valid: ``True`` if no errors were found.
        errors: List of error messages (empty when valid).
        warnings: List of non-fatal warning messages.
    """

    is_valid: bool
    errors: List[str]
    warnings: List[str]

    def raise_if_invalid(self):
        """Raise ``ValueError`` if the validation failed."""
        if not self.is_valid:
            error_msg = "Validation failed:\n" + "\n".join(f"• {err}" for err in self.errors)
            raise ValueError(error_msg)

    def merge(self, other: "_ValidationResult") -> "_ValidationResult":
        """Combine two results into one."""
        return _ValidationResult(
            self.is_valid and other.is_valid,
            self.errors + other.errors,
            self.warnings + other.warnings,
        )


class _Validator:
    """Static helpers for type and range checks used by all validators."""

    @staticmethod
    def _check_type(value: Any, expected_types: tuple, name: str) -> Optional[str]:
        """Check if value has expected type (bools are never numbers here)."""
        if isinstance(value, bool) or not isinstance(value, expected_types):
            actual_type = type(value).__name__
            expected = expected_types[0].__name__ if len(expected_types) == 1 else f"one of {[t.__name__ for t in expected_types]}"
            return f"{name} must be {expected}, got {actual_type}"
        return None

    @staticmethod
    def _check_range(
        value: Union[int, float],
        min_val: Optional[float],
        max_val: Optional[float],
        name: str,
    ) -> Optional[str]:
        """Check if value is within range."""
        if min_val is not None and value < min_val:
            return f"{name} must be >= {min_val}, got {value}"
        if max_val is not None and value > max_val:
            return f"{name} must be <= {max_val}, got {value}"
        return None


_validator = _Validator()

_NUMERIC = (int, float, np.integer, np.floating)


def _validate_numeric_parameter(
    value: Any,
    name: str,
    expected_types: tuple = _NUMERIC,
    min_val: Optional[float] = None,
    max_val: Optional[float] = None,
    allow_rounding: bool = False,
) -> _ValidationResult:
    """Generic validation for numeric parameters."""
    errors: List[str] = []
    warnings: List[str] = []

    type_error = _validator._check_type(value, expected_types, name)
    if type_error:
        errors.append(type_error)
        return _ValidationResult(False, errors, warnings)

    if not np.isfinite(value):
        errors.append(f"{name} must be finite, got {value}")
        return _ValidationResult(False, errors, warnings)

    range_error = _validator._check_range(value, min_val, max_val, name)
    if range_error:
        errors.append(range_error)

    if allow_rounding and isinstance(value, (float, np.floating)):
        rounded = int(round(value))
        if value != rounded:
            warnings.append(f"{name} rounded from {value} to {rounded}")

    return _ValidationResult(len(errors) == 0, errors, warnings)


def _validate_alpha(alpha: Any) -> _ValidationResult:
    """Validate alpha level parameter (0-0.25)."""
    result = _validate_numeric_parameter(alpha, "Alpha", min_val=0, max_val=0.25)
    if result.is_valid and alpha == 0:
        result.errors.append("Alpha must be greater than 0")
        result.is_valid = False
    return result


def _validate_simulations(n_simulations: Any) -> Tuple[int, _ValidationResult]:
    """Validate and process number of simulations per grid cell."""
    result = _validate_numeric_parameter(n_simulations, "Number of simulations", min_val=1, allow_rounding=True)

    if result.is_valid:
        rounded = int(round(n_simulations))
        if rounded < 1000:
            result.warnings.append(f"Low simulation count ({rounded}). Consider using at least 1000 for reliable results.")
        return rounded, result

    return 0, result


def _validate_sample_size(sample_size: Any) -> _ValidationResult:
    """Validate one sample size: a positive integer divisible by 4."""
    errors = []

    if isinstance(sample_size, bool) or not isinstance(sample_size, (int, np.integer)):
        errors.append(f"sample_size must be an integer, got {type(sample_size).__name__}")
        return _ValidationResult(False, errors, [])

    if sample_size <= 0:
        errors.append(f"sample_size must be positive, got {sample_size}")
    elif sample_size % 4 != 0:
        errors.append(f"sample_size must be divisible by 4 for a balanced 2x2 design, got {sample_size}")

    return _ValidationResult(len(errors) == 0, errors, [])


def _validate_sd(sd: Any) -> _ValidationResult:
    """Validate one standard deviation (positive, finite)."""
    result = _validate_numeric_parameter(sd, "sd")
    if result.is_valid and sd <= 0:
        result.errors.append(f"sd must be positive, got {sd}")
        result.is_valid = False
    return result


def _validate_means(means: Any) -> _ValidationResult:
    """Validate the condition means vector (a1b1, a2b1, a1b2, a2b2)."""
    errors: List[str] = []

    if isinstance(means, (str, bytes)) or not isinstance(means, (Sequence, np.ndarray)):
        errors.append(f"means must be a sequence of 4 numbers, got {type(means).__name__}")
        return _ValidationResult(False, errors, [])

    if len(means) != 4:
        errors.append(f"means must have length 4 (a1b1, a2b1, a1b2, a2b2), got {len(means)}")

    for i, value in enumerate(means):
        sub = _validate_numeric_parameter(value, f"means[{i}]")
        errors.extend(sub.errors)

    return _ValidationResult(len(errors) == 0, errors, [])


def _validate_design(n: Any, means: Any, sd: Any) -> _ValidationResult:
    """Validate a complete design specification."""
    result = _validate_sample_size(n)
    result = result.merge(_validate_means(means))
    return result.merge(_validate_sd(sd))


def _validate_sample_size_range(from_size: Any, to_size: Any, by: Any) -> _ValidationResult:
    """Validate sample size range parameters for a grid."""
    errors = []

    for value, name in [(from_size, "from_size"), (to_size, "to_size"), (by, "by")]:
        type_error = _validator._check_type(value, (int, np.integer), name)
        if type_error:
            errors.append(type_error)
    if errors:
        return _ValidationResult(False, errors, [])

    if by <= 0:
        errors.append(f"by must be positive, got {by}")
    if from_size > to_size:
        errors.append(f"from_size ({from_size}) must be <= to_size ({to_size})")
    if by % 4 != 0:
        errors.append(f"by must be divisible by 4 so every sample size stays balanced, got {by}")

    size_check = _validate_sample_size(from_size)
    errors.extend(size_check.errors)

    return _ValidationResult(len(errors) == 0, errors, [])


def _validate_value_list(values: Any, name: str, item_validator) -> _ValidationResult:
    """Validate a non-empty list of unique grid values with *item_validator*."""
    errors: List[str] = []

    if isinstance(values, (str, bytes)) or not isinstance(values, (Sequence, np.ndarray)):
        errors.append(f"{name} must be a sequence, got {type(values).__name__}")
        return _ValidationResult(False, errors, [])

    if len(values) == 0:
        errors.append(f"{name} must not be empty")
        return _ValidationResult(False, errors, [])

    for value in values:
        errors.extend(item_validator(value).errors)

    if not errors and len(set(values)) != len(values):
        errors.append(f"{name} must not contain duplicates, got {list(values)}")

    return _ValidationResult(len(errors) == 0, errors, [])


def _validate_failure_policy(policy: Any, max_retries: Any) -> _ValidationResult:
    """Validate per-trial fit-failure policy settings."""
    errors = []

    if policy not in FAILURE_POLICIES:
        errors.append(f"failure policy must be one of {list(FAILURE_POLICIES)}, got {policy!r}")

    if isinstance(max_retries, bool) or not isinstance(max_retries, (int, np.integer)) or max_retries < 0:
        errors.append(f"max_retries must be a non-negative integer, got {max_retries!r}")

    return _ValidationResult(len(errors) == 0, errors, [])


def _validate_max_failed(max_failed: Any) -> _ValidationResult:
    """Validate the tolerated failed-trial share (0-1)."""
    return _validate_numeric_parameter(max_failed, "max_failed_simulations", min_val=0, max_val=1)


def _validate_parallel_settings(enable: Any, n_cores: Optional[int]) -> Tuple[Tuple[bool, int], _ValidationResult]:
    """
    Validate parallel processing settings.

    Args:
        enable: True or False
        n_cores: Number of CPU cores (positive int or None for auto)

    Returns:
        ((enable, n_cores), ValidationResult)
    """
    import multiprocessing as mp

    errors = []

    if enable not in (True, False):
        errors.append(f"enable must be True or False, got {enable!r}")
        return (False, 1), _ValidationResult(False, errors, [])

    max_cores = mp.cpu_count()
    validated_n_cores = max(1, max_cores // 2)

    if n_cores is not None:
        if isinstance(n_cores, bool) or not isinstance(n_cores, int) or n_cores <= 0:
            errors.append(f"n_cores must be a positive integer, got {n_cores}")
        else:
            validated_n_cores = min(n_cores, max_cores)

    return (bool(enable), validated_n_cores), _ValidationResult(len(errors) == 0, errors, [])
