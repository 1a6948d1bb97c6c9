"""
Unscented Kalman Filter for lidar/radar sensor fusion.

This module provides the estimation engine that fuses asynchronous laser
(Cartesian position) and radar (range, bearing, range-rate) measurements of a
single object moving under the CTRV motion model:

- Initialization from the first measurement of either sensor
- Sigma-point prediction with a noise-augmented state
- Linear Kalman update for laser measurements
- Unscented update for radar measurements
- NIS (Normalized Innovation Squared) consistency diagnostics

All filter state lives in one FilterState record owned by the engine.

Author: SensorFusion Project
"""

import copy
import logging
from dataclasses import dataclass, field
from typing import Optional, Tuple

import numpy as np
from scipy.linalg import cho_factor, cho_solve, cholesky, LinAlgError

from ..config_loader import UKFConfig
from ..constants import (
    STATE_DIM, AUGMENTED_DIM, SIGMA_SPREAD, N_SIGMA_POINTS,
    YAW_INDEX, BEARING_INDEX, MICROSECONDS_PER_SECOND, sigma_point_weights
)
from ..validators import (
    MeasurementValidator, MeasurementValidationError,
    NumericalInstabilityError, FilterStateError
)
from .evaluation import ConsistencyMonitor
from .motion_models import (
    CTRVModel, LASER_MEASUREMENT_MATRIX, augment, normalize_angle,
    polar_to_cartesian, radar_measurement_model
)
from .tracker_base import Measurement, SensorType

logger = logging.getLogger(__name__)


@dataclass
class FilterState:
    """
    Mutable filter state carried across measurements.

    Attributes:
        x: State mean [px, py, v, yaw, yaw_rate]
        P: State covariance (5x5)
        sigma_points_pred: Predicted sigma points, one per column (5 x 15),
            valid only between a prediction and the next update
        time_us: Timestamp of the last processed measurement in microseconds
        is_initialized: False until the first measurement is consumed
        has_prediction: True while sigma_points_pred belongs to the current mean
        nis_laser: Most recent laser NIS
        nis_radar: Most recent radar NIS
    """
    x: np.ndarray
    P: np.ndarray
    sigma_points_pred: np.ndarray = field(
        default_factory=lambda: np.zeros((STATE_DIM, N_SIGMA_POINTS))
    )
    time_us: int = 0
    is_initialized: bool = False
    has_prediction: bool = False
    nis_laser: float = 0.0
    nis_radar: float = 0.0

    def copy(self) -> "FilterState":
        """Deep copy of the state record."""
        return copy.deepcopy(self)


def _factor_innovation_covariance(S: np.ndarray, operation: str):
    """Cholesky-factor an innovation covariance, raising on singular input."""
    try:
        return cho_factor(S, lower=True)
    except (LinAlgError, ValueError) as e:
        raise NumericalInstabilityError(
            operation, f"innovation covariance is not invertible ({e})"
        ) from e


def compute_nis(innovation: np.ndarray, innovation_cov: np.ndarray) -> float:
    """
    Compute Normalized Innovation Squared (NIS) for filter evaluation.

    Args:
        innovation: Innovation vector
        innovation_cov: Innovation covariance matrix

    Returns:
        NIS value

    Raises:
        NumericalInstabilityError: If the innovation covariance is singular
    """
    factor = _factor_innovation_covariance(innovation_cov, "NIS computation")
    return float(innovation @ cho_solve(factor, innovation))


class UnscentedKalmanFilter:
    """
    Unscented Kalman Filter fusing laser and radar measurements.

    Uses a CTRV motion model whose process noise (longitudinal and yaw
    acceleration) is carried through the prediction by augmenting the state
    with two zero-mean noise variables. Laser measurements are linear in the
    state and use the standard Kalman update; radar measurements go through
    the unscented transform.

    Example:
        >>> ukf = UnscentedKalmanFilter(UKFConfig())
        >>> ukf.process_measurement(Measurement(SensorType.LASER, [1.2, 0.9], 0))
        >>> ukf.process_measurement(Measurement(SensorType.RADAR, [1.5, 0.6, 8.9], 50000))
        >>> ukf.x, ukf.P
    """

    def __init__(self, config: Optional[UKFConfig] = None,
                 monitor: Optional[ConsistencyMonitor] = None):
        """
        Initialize Unscented Kalman Filter.

        Args:
            config: Noise parameters, priors and sensor switches
            monitor: NIS recorder (a fresh one is created if omitted)
        """
        self.config = config or UKFConfig()
        self.config.validate()

        self.n_x = STATE_DIM
        self.n_aug = AUGMENTED_DIM
        self.lambda_ = SIGMA_SPREAD
        self.n_sigma = N_SIGMA_POINTS
        self.weights = sigma_point_weights(self.n_aug, self.lambda_)

        self.motion_model = CTRVModel()
        self.monitor = monitor or ConsistencyMonitor()

        cfg = self.config
        self.R_laser = np.diag([cfg.std_laspx**2, cfg.std_laspy**2])
        self.R_radar = np.diag([cfg.std_radr**2, cfg.std_radphi**2, cfg.std_radrd**2])

        # Innovation diagnostics of the most recent update
        self.y = None
        self.S = None

        self.reset()

    def reset(self) -> None:
        """Return to the configured priors and wait for a first measurement."""
        self.state = FilterState(
            x=np.array(self.config.x0, dtype=np.float64),
            P=np.array(self.config.P0, dtype=np.float64),
        )
        self.y = None
        self.S = None

    # ------------------------------------------------------------------
    # read accessors
    # ------------------------------------------------------------------

    @property
    def x(self) -> np.ndarray:
        """Current state mean."""
        return self.state.x

    @property
    def P(self) -> np.ndarray:
        """Current state covariance."""
        return self.state.P

    @property
    def nis_laser(self) -> float:
        return self.state.nis_laser

    @property
    def nis_radar(self) -> float:
        return self.state.nis_radar

    @property
    def is_initialized(self) -> bool:
        return self.state.is_initialized

    @property
    def sigma_points_pred(self) -> np.ndarray:
        return self.state.sigma_points_pred

    # ------------------------------------------------------------------
    # measurement cycle
    # ------------------------------------------------------------------

    def process_measurement(self, measurement: Measurement) -> None:
        """
        Consume one measurement: initialize, or predict then update.

        The record is validated before anything is touched. If a numerical
        failure occurs mid-cycle the state is restored to what it was before
        the call and the error is re-raised.

        Args:
            measurement: Laser or radar measurement

        Raises:
            MeasurementValidationError: Malformed or out-of-order measurement
            NumericalInstabilityError: Cholesky or innovation inversion failure
        """
        if not isinstance(measurement, Measurement):
            raise MeasurementValidationError(
                f"Expected a Measurement record, got {type(measurement).__name__}"
            )

        previous = self.state.time_us if self.state.is_initialized else None
        measurement.validate(previous)

        if not self.state.is_initialized:
            self._initialize(measurement)
            return

        if not self._sensor_enabled(measurement.sensor_type):
            logger.debug(f"Skipping {measurement.sensor_type.name} measurement at "
                         f"{measurement.timestamp} us (sensor disabled)")
            return

        dt = (measurement.timestamp - self.state.time_us) / MICROSECONDS_PER_SECOND
        snapshot = self.state.copy()

        try:
            self.predict(dt)
            if measurement.sensor_type == SensorType.RADAR:
                self.update_nonlinear(measurement.raw_values)
            else:
                self.update_linear(measurement.raw_values)
        except NumericalInstabilityError as e:
            self.state = snapshot
            logger.error(f"Filter diverged at {measurement.timestamp} us: {e}")
            raise

        self.state.time_us = measurement.timestamp

    def _sensor_enabled(self, sensor_type: SensorType) -> bool:
        if sensor_type == SensorType.LASER:
            return self.config.use_laser
        return self.config.use_radar

    def _initialize(self, measurement: Measurement) -> None:
        """Seed the position from the first measurement; keep other priors."""
        if measurement.sensor_type == SensorType.RADAR:
            rho, phi = measurement.raw_values[0], measurement.raw_values[1]
            px, py, _, _ = polar_to_cartesian(rho, phi)
        else:
            px, py = measurement.raw_values

        self.state.x[0] = px
        self.state.x[1] = py
        self.state.is_initialized = True
        self.state.time_us = measurement.timestamp

        logger.info(f"Initialized from {measurement.sensor_type.name} at "
                    f"{measurement.timestamp} us: position ({px:.3f}, {py:.3f})")

    # ------------------------------------------------------------------
    # prediction
    # ------------------------------------------------------------------

    def generate_sigma_points(self, x: np.ndarray, P: np.ndarray) -> np.ndarray:
        """
        Generate augmented sigma points.

        Args:
            x: State mean
            P: State covariance

        Returns:
            Augmented sigma points, one per column (7 x 15)

        Raises:
            NumericalInstabilityError: If the augmented covariance is not
                positive-definite
        """
        x_aug, P_aug = augment(x, P, self.config.std_a, self.config.std_yawdd)

        try:
            L = cholesky(P_aug, lower=True)
        except (LinAlgError, ValueError) as e:
            raise NumericalInstabilityError(
                "sigma point generation", f"augmented covariance is not positive-definite ({e})"
            ) from e

        spread = np.sqrt(self.lambda_ + self.n_aug) * L

        sigma_points = np.empty((self.n_aug, self.n_sigma))
        sigma_points[:, 0] = x_aug
        sigma_points[:, 1:self.n_aug + 1] = x_aug[:, np.newaxis] + spread
        sigma_points[:, self.n_aug + 1:] = x_aug[:, np.newaxis] - spread

        return sigma_points

    def predict(self, dt: float) -> None:
        """
        Predict sigma points, state mean and covariance over dt seconds.

        Args:
            dt: Elapsed time in seconds (>= 0; 0 leaves mean and covariance
                unchanged but still regenerates sigma points)
        """
        if not np.isfinite(dt) or dt < 0:
            raise ValueError(f"Prediction interval must be finite and non-negative, got {dt}")

        sigma_points_aug = self.generate_sigma_points(self.state.x, self.state.P)
        sigma_points_pred = self.motion_model.propagate_sigma_points(sigma_points_aug, dt)

        # Predicted mean
        x_pred = sigma_points_pred @ self.weights
        x_pred[YAW_INDEX] = normalize_angle(x_pred[YAW_INDEX])

        # Predicted covariance, heading residual wrapped per sigma point
        x_diff = self._state_residuals(sigma_points_pred, x_pred)
        P_pred = (x_diff * self.weights) @ x_diff.T
        P_pred = 0.5 * (P_pred + P_pred.T)

        self.state.x = x_pred
        self.state.P = P_pred
        self.state.sigma_points_pred = sigma_points_pred
        self.state.has_prediction = True

    def _state_residuals(self, sigma_points: np.ndarray, mean: np.ndarray) -> np.ndarray:
        x_diff = sigma_points - mean[:, np.newaxis]
        x_diff[YAW_INDEX] = normalize_angle(x_diff[YAW_INDEX])
        return x_diff

    # ------------------------------------------------------------------
    # updates
    # ------------------------------------------------------------------

    def update_linear(self, z: np.ndarray) -> None:
        """
        Update with a laser measurement using the linear Kalman equations.

        Args:
            z: Measurement [px, py]
        """
        z = self._checked_measurement(z, SensorType.LASER)

        H = LASER_MEASUREMENT_MATRIX
        x, P = self.state.x, self.state.P

        z_pred = H @ x
        y = z - z_pred
        S = H @ P @ H.T + self.R_laser
        factor = _factor_innovation_covariance(S, "laser update")

        PHt = P @ H.T
        K = cho_solve(factor, PHt.T).T

        x_new = x + K @ y
        x_new[YAW_INDEX] = normalize_angle(x_new[YAW_INDEX])
        P_new = (np.eye(self.n_x) - K @ H) @ P
        P_new = 0.5 * (P_new + P_new.T)

        nis = float(y @ cho_solve(factor, y))

        self.state.x = x_new
        self.state.P = P_new
        self.state.nis_laser = nis
        self.state.has_prediction = False
        self.y, self.S = y, S

        self.monitor.record(SensorType.LASER, nis)

    def update_nonlinear(self, z: np.ndarray) -> None:
        """
        Update with a radar measurement using the unscented transform.

        Requires the sigma points of a preceding prediction.

        Args:
            z: Measurement [rho, phi, rho_dot]
        """
        z = self._checked_measurement(z, SensorType.RADAR)

        if not self.state.has_prediction:
            raise FilterStateError(
                "Radar update needs predicted sigma points; call predict() first"
            )

        sigma_points_pred = self.state.sigma_points_pred
        x, P = self.state.x, self.state.P

        # Sigma points in measurement space
        Z_sigma = radar_measurement_model(sigma_points_pred)
        z_pred, S, z_diff = self._measurement_moments(Z_sigma)

        # Cross correlation
        x_diff = self._state_residuals(sigma_points_pred, x)
        Tc = (x_diff * self.weights) @ z_diff.T

        factor = _factor_innovation_covariance(S, "radar update")
        K = cho_solve(factor, Tc.T).T

        residual = z - z_pred
        residual[BEARING_INDEX] = normalize_angle(residual[BEARING_INDEX])

        x_new = x + K @ residual
        x_new[YAW_INDEX] = normalize_angle(x_new[YAW_INDEX])
        P_new = P - K @ S @ K.T
        P_new = 0.5 * (P_new + P_new.T)

        nis = float(residual @ cho_solve(factor, residual))

        self.state.x = x_new
        self.state.P = P_new
        self.state.nis_radar = nis
        self.state.has_prediction = False
        self.y, self.S = residual, S

        self.monitor.record(SensorType.RADAR, nis)

    def _measurement_moments(self, Z_sigma: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Predicted radar mean, innovation covariance and wrapped residuals."""
        z_pred = Z_sigma @ self.weights

        z_diff = Z_sigma - z_pred[:, np.newaxis]
        z_diff[BEARING_INDEX] = normalize_angle(z_diff[BEARING_INDEX])

        S = (z_diff * self.weights) @ z_diff.T + self.R_radar
        return z_pred, S, z_diff

    @staticmethod
    def _checked_measurement(z: np.ndarray, sensor_type: SensorType) -> np.ndarray:
        try:
            z = np.array(z, dtype=np.float64)
        except (TypeError, ValueError) as e:
            raise MeasurementValidationError(
                f"{sensor_type.name} payload is not numeric: {z!r}"
            ) from e
        MeasurementValidator.validate_payload(z, sensor_type.dim, sensor_type.name)
        return z
