"""
Visualization utilities for fusion filter runs
"""

import numpy as np
import matplotlib.pyplot as plt
from typing import Optional, Tuple, Sequence

from .tracking.evaluation import nis_threshold
from .tracking.motion_models import polar_to_cartesian
from .tracking.tracker_base import SensorType


class Visualizer:
    """Filter run visualization tools"""

    def __init__(self, figsize: Tuple[int, int] = (12, 8)):
        """
        Initialize visualizer

        Args:
            figsize: Default figure size
        """
        self.figsize = figsize
        self.colors = {SensorType.LASER: 'tab:green', SensorType.RADAR: 'tab:orange'}

    def plot_trajectory(self, estimates: np.ndarray,
                        ground_truth: Optional[np.ndarray] = None,
                        measurements: Optional[Sequence] = None,
                        title: str = "Estimated Trajectory") -> plt.Figure:
        """
        Plot estimated positions against ground truth and measurements

        Args:
            estimates: Estimated states, one per row (px, py first)
            ground_truth: True [px, py, vx, vy] rows
            measurements: Measurement records; laser points and radar
                returns are drawn in Cartesian coordinates
            title: Plot title

        Returns:
            Figure object
        """
        fig, ax = plt.subplots(figsize=self.figsize)
        estimates = np.atleast_2d(np.asarray(estimates))

        if measurements:
            for sensor_type in SensorType:
                points = np.array([
                    self._measurement_position(m) for m in measurements
                    if m.sensor_type == sensor_type
                ])
                if len(points) > 0:
                    ax.scatter(points[:, 0], points[:, 1], s=10, alpha=0.5,
                               color=self.colors[sensor_type],
                               label=f'{sensor_type.name.title()} measurements')

        if ground_truth is not None:
            truth = np.atleast_2d(np.asarray(ground_truth))
            ax.plot(truth[:, 0], truth[:, 1], 'k--', linewidth=1.5, label='Ground truth')

        ax.plot(estimates[:, 0], estimates[:, 1], 'b-', linewidth=2, label='UKF estimate')

        ax.set_xlabel('x (m)')
        ax.set_ylabel('y (m)')
        ax.set_title(title)
        ax.axis('equal')
        ax.grid(True, alpha=0.3)
        ax.legend()

        return fig

    def plot_nis(self, nis_values: Sequence[float], sensor_type: SensorType,
                 confidence: float = 0.95,
                 title: Optional[str] = None) -> plt.Figure:
        """
        Plot a NIS series with its chi-squared threshold

        Args:
            nis_values: NIS per update of one sensor
            sensor_type: Sensor that produced the series
            confidence: Confidence level of the threshold line
            title: Plot title

        Returns:
            Figure object
        """
        fig, ax = plt.subplots(figsize=self.figsize)
        values = np.asarray(nis_values, dtype=np.float64)
        threshold = nis_threshold(sensor_type.dim, confidence)

        ax.plot(values, color=self.colors[sensor_type], linewidth=1, label='NIS')
        ax.axhline(threshold, color='r', linestyle='--',
                   label=f'$\\chi^2_{{{sensor_type.dim}}}$ {confidence:.0%} = {threshold:.3f}')

        if len(values) > 0:
            above = np.mean(values > threshold)
            ax.text(0.02, 0.95, f'{above:.1%} above threshold', transform=ax.transAxes,
                    verticalalignment='top')

        ax.set_xlabel('Update')
        ax.set_ylabel('NIS')
        ax.set_title(title or f'{sensor_type.name.title()} NIS')
        ax.grid(True, alpha=0.3)
        ax.legend()

        return fig

    @staticmethod
    def _measurement_position(measurement) -> Tuple[float, float]:
        values = measurement.raw_values
        if measurement.sensor_type == SensorType.RADAR:
            x, y, _, _ = polar_to_cartesian(values[0], values[1])
            return x, y
        return values[0], values[1]
