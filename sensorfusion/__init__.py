"""
SensorFusion: lidar/radar fusion with an Unscented Kalman Filter
"""

from .config_loader import ConfigLoader, UKFConfig
from .data_loader import load_measurements, write_estimates
from .tracking.kalman_filters import UnscentedKalmanFilter, FilterState
from .tracking.tracker_base import Measurement, SensorType, GroundTruth
from .validators import (
    ValidationError,
    MeasurementValidationError,
    ConfigurationError,
    NumericalInstabilityError,
    FilterStateError,
)
from .visualization import Visualizer

__version__ = "1.0.0"

__all__ = [
    "UnscentedKalmanFilter",
    "FilterState",
    "UKFConfig",
    "ConfigLoader",
    "Measurement",
    "SensorType",
    "GroundTruth",
    "load_measurements",
    "write_estimates",
    "Visualizer",
    "ValidationError",
    "MeasurementValidationError",
    "ConfigurationError",
    "NumericalInstabilityError",
    "FilterStateError",
]

# Package-level configuration
import logging

# Set up logging for the package
logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)

# Add console handler if none exists
if not logger.handlers:
    handler = logging.StreamHandler()
    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)
