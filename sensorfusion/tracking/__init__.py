"""
Single-object tracking module

This module provides the Unscented Kalman Filter that fuses asynchronous
laser and radar measurements, together with its motion and measurement
models and filter evaluation tools.

Motion model:
- Constant Turn Rate and Velocity (CTRV) with acceleration noise augmentation

Measurement models:
- Laser: Cartesian position, linear
- Radar: range, bearing, range rate, nonlinear

Evaluation:
- NIS consistency monitoring against chi-squared thresholds
- RMSE against ground truth
"""

from .motion_models import (
    CTRVModel,
    LASER_MEASUREMENT_MATRIX,
    normalize_angle,
    radar_measurement_model,
    state_to_cartesian,
    cartesian_to_polar,
    polar_to_cartesian,
    augment,
)

from .kalman_filters import (
    FilterState,
    UnscentedKalmanFilter,
    compute_nis,
)

from .tracker_base import (
    Measurement,
    GroundTruth,
    SensorType,
)

from .evaluation import (
    ConsistencyMonitor,
    calculate_rmse,
    nis_threshold,
)

__all__ = [
    # Motion and measurement models
    'CTRVModel',
    'LASER_MEASUREMENT_MATRIX',
    'normalize_angle',
    'radar_measurement_model',
    'state_to_cartesian',
    'cartesian_to_polar',
    'polar_to_cartesian',
    'augment',

    # Filter
    'FilterState',
    'UnscentedKalmanFilter',
    'compute_nis',

    # Measurement records
    'Measurement',
    'GroundTruth',
    'SensorType',

    # Evaluation
    'ConsistencyMonitor',
    'calculate_rmse',
    'nis_threshold',
]
