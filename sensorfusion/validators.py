"""
Input Validation Module for Sensor Fusion

This module provides validation for measurement records and filter
configuration, and defines the exception hierarchy used by the filter.
Validation always runs before any filter state is touched, so a rejected
input leaves the filter exactly as it was.
"""

import numbers

import numpy as np
from typing import List, Sequence
from dataclasses import dataclass

from .constants import STATE_DIM


# ============================================================================
# CUSTOM EXCEPTIONS
# ============================================================================

class ValidationError(ValueError):
    """Base exception for validation errors"""
    pass

class MeasurementValidationError(ValidationError):
    """Raised when a measurement record is malformed"""
    pass

class ConfigurationError(ValidationError):
    """Raised when filter configuration is invalid"""
    pass

class NumericalInstabilityError(ArithmeticError):
    """
    Raised when the filter cannot continue numerically.

    Covers a non positive-definite augmented covariance (Cholesky failure) and
    a singular innovation covariance. The filter state is left as it was
    before the failing call.
    """
    def __init__(self, operation: str, detail: str = ""):
        self.operation = operation
        self.detail = detail
        message = f"Numerical failure during {operation}"
        if detail:
            message += f": {detail}"
        super().__init__(message)

class FilterStateError(RuntimeError):
    """Raised when an operation is called in the wrong filter phase"""
    pass


# ============================================================================
# VALIDATION RESULTS
# ============================================================================

@dataclass
class ValidationResult:
    """Container for validation results"""
    is_valid: bool
    errors: List[str]
    warnings: List[str]

    def add_error(self, message: str):
        """Add an error message"""
        self.errors.append(message)
        self.is_valid = False

    def add_warning(self, message: str):
        """Add a warning message"""
        self.warnings.append(message)

    def raise_if_invalid(self, exc_type: type = ValidationError):
        """Raise exception if validation failed"""
        if not self.is_valid:
            raise exc_type("\n".join(self.errors))


# ============================================================================
# MEASUREMENT VALIDATORS
# ============================================================================

class MeasurementValidator:
    """Validates measurement payloads and timestamps"""

    @staticmethod
    def validate_payload(values: np.ndarray, expected_dim: int,
                         sensor_name: str, strict: bool = True) -> ValidationResult:
        """
        Validate a raw measurement vector

        Args:
            values: Raw measurement values
            expected_dim: Number of values the sensor produces
            sensor_name: Sensor name used in messages
            strict: If True, raise exception on failure

        Returns:
            ValidationResult
        """
        result = ValidationResult(is_valid=True, errors=[], warnings=[])

        if values.ndim != 1 or values.shape[0] != expected_dim:
            result.add_error(
                f"{sensor_name} measurement needs {expected_dim} values, "
                f"got shape {values.shape}"
            )
        elif not np.all(np.isfinite(values)):
            result.add_error(f"{sensor_name} measurement contains non-finite values: {values}")

        if strict and not result.is_valid:
            result.raise_if_invalid(MeasurementValidationError)

        return result

    @staticmethod
    def validate_timestamp(timestamp, previous: int = None,
                           strict: bool = True) -> ValidationResult:
        """
        Validate a timestamp in integer microseconds

        Args:
            timestamp: Timestamp to check
            previous: Timestamp of the last processed measurement, if any
            strict: If True, raise exception on failure

        Returns:
            ValidationResult
        """
        result = ValidationResult(is_valid=True, errors=[], warnings=[])

        if isinstance(timestamp, bool) or not isinstance(timestamp, numbers.Integral):
            result.add_error(
                f"Timestamp must be an integer number of microseconds, got {timestamp!r}"
            )
        elif previous is not None and timestamp < previous:
            result.add_error(
                f"Timestamp {timestamp} us precedes last processed timestamp {previous} us"
            )
        elif previous is not None and timestamp == previous:
            result.add_warning(f"Timestamp {timestamp} us repeats the previous measurement time")

        if strict and not result.is_valid:
            result.raise_if_invalid(MeasurementValidationError)

        return result


# ============================================================================
# CONFIGURATION VALIDATORS
# ============================================================================

class ConfigValidator:
    """Validates filter tuning parameters"""

    @staticmethod
    def validate_std(name: str, value: float, strict: bool = True) -> ValidationResult:
        """Validate a noise standard deviation"""
        result = ValidationResult(is_valid=True, errors=[], warnings=[])

        if isinstance(value, bool) or not isinstance(value, numbers.Real):
            result.add_error(f"{name} must be a number, got {value!r}")
        elif not np.isfinite(value):
            result.add_error(f"{name} must be finite, got {value}")
        elif value < 0:
            result.add_error(f"{name} cannot be negative, got {value}")
        elif value == 0:
            result.add_warning(f"{name} is zero; innovation covariance may become singular")

        if strict and not result.is_valid:
            result.raise_if_invalid(ConfigurationError)

        return result

    @staticmethod
    def validate_prior(x0: np.ndarray, P0: np.ndarray,
                       strict: bool = True) -> ValidationResult:
        """Validate initial mean and covariance priors"""
        result = ValidationResult(is_valid=True, errors=[], warnings=[])

        if x0.shape != (STATE_DIM,):
            result.add_error(f"Initial state must have shape ({STATE_DIM},), got {x0.shape}")
        elif not np.all(np.isfinite(x0)):
            result.add_error(f"Initial state contains non-finite values: {x0}")

        if P0.shape != (STATE_DIM, STATE_DIM):
            result.add_error(
                f"Initial covariance must have shape ({STATE_DIM}, {STATE_DIM}), got {P0.shape}"
            )
        elif not np.all(np.isfinite(P0)):
            result.add_error("Initial covariance contains non-finite values")
        elif not np.allclose(P0, P0.T):
            result.add_error("Initial covariance must be symmetric")
        else:
            min_eig = np.min(np.linalg.eigvalsh(P0))
            if min_eig < -1e-12:
                result.add_error(
                    f"Initial covariance must be positive semi-definite, min eigenvalue {min_eig:.3e}"
                )
            elif min_eig < 1e-12:
                result.add_warning("Initial covariance is singular; the first prediction will fail")

        if strict and not result.is_valid:
            result.raise_if_invalid(ConfigurationError)

        return result


def validate_noise_parameters(stds: Sequence[tuple], strict: bool = True) -> ValidationResult:
    """
    Validate a group of (name, value) noise standard deviations

    Args:
        stds: Sequence of (name, value) pairs
        strict: If True, raise on the first invalid group

    Returns:
        Combined ValidationResult
    """
    combined = ValidationResult(is_valid=True, errors=[], warnings=[])
    for name, value in stds:
        single = ConfigValidator.validate_std(name, value, strict=False)
        for error in single.errors:
            combined.add_error(error)
        for warning in single.warnings:
            combined.add_warning(warning)

    if strict and not combined.is_valid:
        combined.raise_if_invalid(ConfigurationError)

    return combined
