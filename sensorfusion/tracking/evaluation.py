"""
Filter evaluation: NIS consistency monitoring and RMSE against ground truth.

The consistency monitor is a side channel. It records the NIS produced by
each update so the noise parameters can be tuned, but never feeds back into
the estimate.

Author: SensorFusion Project
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Sequence

import numpy as np
from scipy.stats import chi2

from ..constants import NIS_CONFIDENCE
from .tracker_base import SensorType

logger = logging.getLogger(__name__)


def nis_threshold(dof: int, confidence: float = NIS_CONFIDENCE) -> float:
    """
    Chi-squared quantile for a NIS series with ``dof`` degrees of freedom.

    For 95% confidence this is 5.991 for laser (2 dof) and 7.815 for
    radar (3 dof).
    """
    return float(chi2.ppf(confidence, dof))


@dataclass
class ConsistencyMonitor:
    """
    Records NIS values per sensor and summarizes filter consistency.

    A consistent filter produces NIS values above the chi-squared threshold
    in roughly (1 - confidence) of the updates.
    """

    confidence: float = NIS_CONFIDENCE
    history: Dict[SensorType, List[float]] = field(
        default_factory=lambda: {sensor: [] for sensor in SensorType}
    )

    def record(self, sensor_type: SensorType, nis: float) -> None:
        """Store one NIS value."""
        self.history[sensor_type].append(nis)

        threshold = self.threshold(sensor_type)
        if nis > threshold:
            logger.debug(f"{sensor_type.name} NIS {nis:.3f} above {threshold:.3f}")

    def threshold(self, sensor_type: SensorType) -> float:
        return nis_threshold(sensor_type.dim, self.confidence)

    def fraction_above_threshold(self, sensor_type: SensorType) -> float:
        """Fraction of recorded NIS values above the chi-squared threshold."""
        values = self.history[sensor_type]
        if not values:
            return 0.0
        return float(np.mean(np.asarray(values) > self.threshold(sensor_type)))

    def summary(self) -> Dict[str, Dict[str, float]]:
        """Per-sensor count, mean NIS and exceedance fraction."""
        report = {}
        for sensor_type, values in self.history.items():
            report[sensor_type.name] = {
                'count': len(values),
                'mean_nis': float(np.mean(values)) if values else 0.0,
                'threshold': self.threshold(sensor_type),
                'fraction_above': self.fraction_above_threshold(sensor_type),
            }
        return report

    def clear(self) -> None:
        for values in self.history.values():
            values.clear()


def calculate_rmse(estimations: Sequence[np.ndarray],
                   ground_truth: Sequence[np.ndarray]) -> np.ndarray:
    """
    Root mean squared error per component.

    Args:
        estimations: Estimated [px, py, vx, vy] vectors
        ground_truth: True [px, py, vx, vy] vectors, same length

    Returns:
        RMSE vector

    Raises:
        ValueError: If inputs are empty or their lengths differ
    """
    if len(estimations) == 0:
        raise ValueError("Cannot compute RMSE of an empty estimation list")
    if len(estimations) != len(ground_truth):
        raise ValueError(
            f"Estimation and ground truth lengths differ: {len(estimations)} vs {len(ground_truth)}"
        )

    est = np.asarray(estimations, dtype=np.float64)
    truth = np.asarray(ground_truth, dtype=np.float64)
    if est.shape != truth.shape:
        raise ValueError(f"Estimation shape {est.shape} does not match ground truth {truth.shape}")

    return np.sqrt(np.mean((est - truth) ** 2, axis=0))
