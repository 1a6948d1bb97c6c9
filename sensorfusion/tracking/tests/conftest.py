"""
Pytest configuration and shared fixtures for tracking tests.

This module provides common fixtures and configuration used across
all tracking tests.
"""

import pytest
import numpy as np
from typing import List, Tuple

from ...config_loader import UKFConfig
from ..tracker_base import Measurement, SensorType


@pytest.fixture
def random_seed():
    """Set random seed for reproducible tests."""
    np.random.seed(42)
    return 42


@pytest.fixture
def default_config():
    """Default filter configuration."""
    return UKFConfig()


@pytest.fixture
def sample_state():
    """Sample CTRV state [px, py, v, yaw, yaw_rate]."""
    return np.array([1.0, 2.0, 5.0, 0.4, 0.2])


@pytest.fixture
def sample_covariance():
    """Sample CTRV covariance matrix."""
    return np.array([[0.2, 0.01, 0.0, 0.0, 0.0],
                     [0.01, 0.2, 0.0, 0.0, 0.0],
                     [0.0, 0.0, 0.5, 0.02, 0.0],
                     [0.0, 0.0, 0.02, 0.1, 0.01],
                     [0.0, 0.0, 0.0, 0.01, 0.1]])


@pytest.fixture
def straight_trajectory():
    """Generate a straight-line laser/radar measurement stream."""
    def _generate_trajectory(num_points: int = 20, dt_us: int = 50_000,
                             velocity: Tuple[float, float] = (3.0, 1.0),
                             start: Tuple[float, float] = (5.0, 2.0),
                             noise_std: float = 0.05) -> Tuple[List[np.ndarray], List[Measurement]]:
        """
        Generate alternating laser/radar measurements of constant-velocity motion.

        Args:
            num_points: Number of measurements
            dt_us: Interval between measurements in microseconds
            velocity: Velocity vector (vx, vy)
            start: Initial position
            noise_std: Standard deviation of measurement noise

        Returns:
            Tuple of (true [px, py, vx, vy] states, measurements)
        """
        truths = []
        measurements = []

        for i in range(num_points):
            t = i * dt_us / 1e6
            px = start[0] + velocity[0] * t
            py = start[1] + velocity[1] * t
            truths.append(np.array([px, py, velocity[0], velocity[1]]))

            if i % 2 == 0:
                values = np.array([px, py]) + np.random.normal(0, noise_std, 2)
                measurements.append(Measurement(SensorType.LASER, values, i * dt_us))
            else:
                rho = np.hypot(px, py)
                phi = np.arctan2(py, px)
                rho_dot = (px * velocity[0] + py * velocity[1]) / rho
                values = np.array([rho, phi, rho_dot]) + np.random.normal(0, noise_std, 3) * [1, 0.1, 1]
                measurements.append(Measurement(SensorType.RADAR, values, i * dt_us))

        return truths, measurements

    return _generate_trajectory


@pytest.fixture
def turning_trajectory():
    """Generate a constant-turn laser measurement stream."""
    def _generate_trajectory(num_points: int = 40, dt_us: int = 50_000,
                             speed: float = 5.0, turn_rate: float = 0.3,
                             noise_std: float = 0.05) -> Tuple[List[np.ndarray], List[Measurement]]:
        """
        Generate laser measurements of an object on a circular arc.

        Returns:
            Tuple of (true [px, py, vx, vy] states, measurements)
        """
        truths = []
        measurements = []

        x, y, heading = 1.0, 1.0, 0.0
        dt = dt_us / 1e6
        for i in range(num_points):
            if i > 0:
                x += speed / turn_rate * (np.sin(heading + turn_rate * dt) - np.sin(heading))
                y += speed / turn_rate * (np.cos(heading) - np.cos(heading + turn_rate * dt))
                heading += turn_rate * dt

            truths.append(np.array([x, y, speed * np.cos(heading), speed * np.sin(heading)]))
            values = np.array([x, y]) + np.random.normal(0, noise_std, 2)
            measurements.append(Measurement(SensorType.LASER, values, i * dt_us))

        return truths, measurements

    return _generate_trajectory


@pytest.fixture
def assert_positive_semidefinite():
    """Utility to assert matrix is positive semi-definite."""
    def _check_positive_semidefinite(matrix: np.ndarray, tolerance: float = 1e-9):
        """Check that the smallest eigenvalue is not meaningfully negative."""
        eigenvals = np.linalg.eigvalsh(0.5 * (matrix + matrix.T))
        assert np.min(eigenvals) >= -tolerance, \
            f"Matrix is not positive semi-definite. Min eigenvalue: {np.min(eigenvals)}"
        return True

    return _check_positive_semidefinite


@pytest.fixture
def assert_symmetric():
    """Utility to assert matrix is symmetric."""
    def _check_symmetric(matrix: np.ndarray, tolerance: float = 1e-12):
        """Check if matrix is symmetric."""
        assert np.allclose(matrix, matrix.T, atol=tolerance), "Matrix is not symmetric"
        return True

    return _check_symmetric


# Pytest configuration
def pytest_configure(config):
    """Configure pytest."""
    # Add custom markers
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )


def pytest_collection_modifyitems(config, items):
    """Modify test collection."""
    for item in items:
        if "integration" in item.nodeid:
            item.add_marker(pytest.mark.integration)
