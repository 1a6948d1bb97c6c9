"""
Filter and Sensor Constants for Lidar/Radar Fusion

This module contains the fixed dimensions, numerical guards, default noise
parameters and consistency thresholds used throughout the fusion filter.
"""

import numpy as np
from dataclasses import dataclass


# ============================================================================
# STATE DIMENSIONS
# ============================================================================

# CTRV state [px, py, v, yaw, yaw_rate]
STATE_DIM = 5

# State plus longitudinal and yaw acceleration noise
AUGMENTED_DIM = 7

# Sigma point spreading parameter
SIGMA_SPREAD = 3 - AUGMENTED_DIM

# Number of sigma points for the augmented state
N_SIGMA_POINTS = 2 * AUGMENTED_DIM + 1

# Index of the heading component inside the state vector
YAW_INDEX = 3

# Index of the bearing component inside a radar measurement
BEARING_INDEX = 1

# Microseconds per second (measurement timestamps are integer microseconds)
MICROSECONDS_PER_SECOND = 1_000_000.0


# ============================================================================
# NUMERICAL GUARDS
# ============================================================================

@dataclass(frozen=True)
class NumericalLimits:
    """Clamping thresholds for degenerate-but-recoverable cases"""

    # Below this |yaw_rate| the CTRV arc integral uses the straight-line limit
    MIN_YAW_RATE = 1e-3  # rad/s

    # Predicted range is floored at this value before dividing by it
    MIN_RANGE = 1e-3  # m


# ============================================================================
# DEFAULT TUNING
# ============================================================================

@dataclass(frozen=True)
class DefaultNoise:
    """Default process and measurement noise standard deviations"""

    # Process noise
    STD_A = 0.5        # longitudinal acceleration, m/s^2
    STD_YAWDD = 2.0    # yaw acceleration, rad/s^2

    # Laser (manufacturer specified)
    STD_LASPX = 0.15   # m
    STD_LASPY = 0.15   # m

    # Radar (manufacturer specified)
    STD_RADR = 0.3     # m
    STD_RADPHI = 0.03  # rad
    STD_RADRD = 0.3    # m/s


DEFAULT_INITIAL_STATE = np.array([1.0, 1.0, 9.0, 0.0, 0.0])

DEFAULT_INITIAL_COVARIANCE = np.eye(STATE_DIM) * 0.5


# ============================================================================
# CONSISTENCY THRESHOLDS
# ============================================================================

# Chi-squared quantile used as the NIS reference line
NIS_CONFIDENCE = 0.95


def sigma_point_weights(n_aug: int = AUGMENTED_DIM,
                        spread: float = SIGMA_SPREAD) -> np.ndarray:
    """
    Sigma point weights for a given augmented dimension and spread.

    Args:
        n_aug: Augmented state dimension
        spread: Spreading parameter lambda

    Returns:
        Weight vector of length 2 * n_aug + 1
    """
    weights = np.full(2 * n_aug + 1, 0.5 / (spread + n_aug))
    weights[0] = spread / (spread + n_aug)
    return weights
