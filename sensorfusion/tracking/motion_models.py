"""
Motion and measurement models for the lidar/radar fusion filter

This module provides the CTRV (constant turn rate and velocity) motion model
used to propagate augmented sigma points, the polar radar measurement model,
the linear laser measurement matrix, and the coordinate and angle helpers the
filter relies on.

State vector: [px, py, v, yaw, yaw_rate]
Augmented sigma point: [px, py, v, yaw, yaw_rate, nu_a, nu_yawdd]
"""

import numpy as np
from typing import Tuple, Union

from ..constants import STATE_DIM, NumericalLimits


# Laser observes position directly
LASER_MEASUREMENT_MATRIX = np.array([
    [1.0, 0.0, 0.0, 0.0, 0.0],
    [0.0, 1.0, 0.0, 0.0, 0.0],
])


def normalize_angle(angle: Union[float, np.ndarray]) -> Union[float, np.ndarray]:
    """
    Wrap an angle (or array of angles) into (-pi, pi]

    Closed form, so corrupted inputs cannot cause unbounded looping.

    Args:
        angle: Angle(s) in radians

    Returns:
        Wrapped angle(s), same shape as the input
    """
    wrapped = np.pi - np.mod(np.pi - np.asarray(angle, dtype=np.float64), 2.0 * np.pi)
    # mod can round up to exactly 2*pi for tiny negative arguments
    wrapped = np.where(wrapped <= -np.pi, np.pi, wrapped)
    if np.ndim(wrapped) == 0:
        return float(wrapped)
    return wrapped


class CTRVModel:
    """
    Constant Turn Rate and Velocity motion model

    Objects move along a circular arc at constant speed and constant yaw rate
    between measurements. Process noise enters as longitudinal acceleration
    (nu_a) and yaw acceleration (nu_yawdd), both held constant over the step.
    """

    def __init__(self, min_yaw_rate: float = NumericalLimits.MIN_YAW_RATE):
        """
        Initialize CTRV model

        Args:
            min_yaw_rate: |yaw_rate| at or below which the straight-line
                limit replaces the arc integral
        """
        self.min_yaw_rate = min_yaw_rate

    def propagate_sigma_points(self, sigma_points_aug: np.ndarray, dt: float) -> np.ndarray:
        """
        Propagate augmented sigma points over dt

        Args:
            sigma_points_aug: Augmented sigma points, one per column (7 x n_sigma)
            dt: Elapsed time in seconds

        Returns:
            Predicted sigma points, one per column (5 x n_sigma), headings not wrapped
        """
        px, py, v, yaw, yawd, nu_a, nu_yawdd = sigma_points_aug

        turning = np.abs(yawd) > self.min_yaw_rate
        safe_yawd = np.where(turning, yawd, 1.0)

        px_p = np.where(
            turning,
            px + v / safe_yawd * (np.sin(yaw + yawd * dt) - np.sin(yaw)),
            px + v * dt * np.cos(yaw),
        )
        py_p = np.where(
            turning,
            py + v / safe_yawd * (np.cos(yaw) - np.cos(yaw + yawd * dt)),
            py + v * dt * np.sin(yaw),
        )
        v_p = v.copy()
        yaw_p = yaw + yawd * dt
        yawd_p = yawd.copy()

        # Noise contribution
        half_dt2 = 0.5 * dt * dt
        px_p = px_p + half_dt2 * nu_a * np.cos(yaw)
        py_p = py_p + half_dt2 * nu_a * np.sin(yaw)
        v_p = v_p + nu_a * dt
        yaw_p = yaw_p + half_dt2 * nu_yawdd
        yawd_p = yawd_p + nu_yawdd * dt

        return np.vstack([px_p, py_p, v_p, yaw_p, yawd_p])

    def predict_state(self, state: np.ndarray, dt: float) -> np.ndarray:
        """
        Noiseless CTRV prediction of a single state

        Args:
            state: State vector [px, py, v, yaw, yaw_rate]
            dt: Elapsed time in seconds

        Returns:
            Predicted state vector with heading wrapped to (-pi, pi]
        """
        state = np.asarray(state, dtype=np.float64)
        augmented = np.concatenate([state, np.zeros(2)]).reshape(-1, 1)
        predicted = self.propagate_sigma_points(augmented, dt)[:, 0]
        predicted[3] = normalize_angle(predicted[3])
        return predicted


def radar_measurement_model(sigma_points: np.ndarray,
                            min_range: float = NumericalLimits.MIN_RANGE) -> np.ndarray:
    """
    Map state sigma points into radar measurement space

    Range is floored at ``min_range`` before it is used as a divisor. Bearing
    follows numpy's arctan2 convention, so a point exactly at the origin maps
    to a bearing of 0.

    Args:
        sigma_points: State sigma points, one per column (5 x n_sigma)
        min_range: Range floor in meters

    Returns:
        Measurement sigma points [rho, phi, rho_dot], one per column (3 x n_sigma)
    """
    px, py, v, yaw = sigma_points[:4]

    vx = np.cos(yaw) * v
    vy = np.sin(yaw) * v

    rho = np.maximum(np.sqrt(px**2 + py**2), min_range)
    phi = np.arctan2(py, px)
    rho_dot = (px * vx + py * vy) / rho

    return np.vstack([rho, phi, rho_dot])


def state_to_cartesian(state: np.ndarray) -> np.ndarray:
    """
    Convert a CTRV state to [px, py, vx, vy]

    Args:
        state: State vector [px, py, v, yaw, yaw_rate]

    Returns:
        Cartesian position and velocity
    """
    px, py, v, yaw = np.asarray(state, dtype=np.float64)[:4]
    return np.array([px, py, v * np.cos(yaw), v * np.sin(yaw)])


# Utility functions for coordinate transformations

def cartesian_to_polar(x: float, y: float, vx: float = 0, vy: float = 0) -> Tuple[float, float, float, float]:
    """
    Convert 2D Cartesian coordinates to polar coordinates

    Args:
        x, y: Cartesian position
        vx, vy: Cartesian velocity (optional)

    Returns:
        (range, azimuth, range_rate, azimuth_rate) in (m, rad, m/s, rad/s)
    """
    range_val = np.sqrt(x**2 + y**2)
    azimuth = np.arctan2(y, x)

    if range_val > 0:
        range_rate = (x * vx + y * vy) / range_val
        azimuth_rate = (x * vy - y * vx) / (range_val**2)
    else:
        range_rate = 0.0
        azimuth_rate = 0.0

    return range_val, azimuth, range_rate, azimuth_rate


def polar_to_cartesian(range_val: float, azimuth: float,
                       range_rate: float = 0, azimuth_rate: float = 0) -> Tuple[float, float, float, float]:
    """
    Convert polar coordinates to 2D Cartesian coordinates

    Args:
        range_val: Range in meters
        azimuth: Azimuth in radians
        range_rate: Range rate in m/s (optional)
        azimuth_rate: Azimuth rate in rad/s (optional)

    Returns:
        (x, y, vx, vy) in (m, m, m/s, m/s)
    """
    x = range_val * np.cos(azimuth)
    y = range_val * np.sin(azimuth)

    vx = range_rate * np.cos(azimuth) - range_val * azimuth_rate * np.sin(azimuth)
    vy = range_rate * np.sin(azimuth) + range_val * azimuth_rate * np.cos(azimuth)

    return x, y, vx, vy


def augment(x: np.ndarray, P: np.ndarray, std_a: float, std_yawdd: float) -> Tuple[np.ndarray, np.ndarray]:
    """
    Build the augmented mean and covariance

    Args:
        x: State mean (5,)
        P: State covariance (5, 5)
        std_a: Longitudinal acceleration noise std (m/s^2)
        std_yawdd: Yaw acceleration noise std (rad/s^2)

    Returns:
        (x_aug, P_aug) of shapes (7,) and (7, 7)
    """
    x_aug = np.zeros(STATE_DIM + 2)
    x_aug[:STATE_DIM] = x

    P_aug = np.zeros((STATE_DIM + 2, STATE_DIM + 2))
    P_aug[:STATE_DIM, :STATE_DIM] = P
    P_aug[STATE_DIM, STATE_DIM] = std_a**2
    P_aug[STATE_DIM + 1, STATE_DIM + 1] = std_yawdd**2

    return x_aug, P_aug
