"""
Measurement records and sensor enums for the fusion filter.

This module provides the typed, timestamped measurement records that flow
from the ingestion layer into the filter, plus the optional ground-truth
record that accompanies logged or simulated measurements.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Any, Optional
import numpy as np
import numpy.typing as npt

from ..validators import MeasurementValidator, MeasurementValidationError


class SensorType(Enum):
    """Enumeration of supported sensor types."""

    LASER = ("L", 2)
    RADAR = ("R", 3)

    def __init__(self, tag: str, dim: int):
        self.tag = tag
        self.dim = dim

    @classmethod
    def from_tag(cls, tag: Any) -> "SensorType":
        """
        Resolve a sensor type from an enum member, a log tag or a name.

        Accepts ``SensorType.LASER``, ``"L"``, ``"laser"`` and ``"lidar"``
        (and the radar equivalents ``"R"``/``"radar"``).
        """
        if isinstance(tag, cls):
            return tag
        if isinstance(tag, str):
            key = tag.strip().upper()
            for member in cls:
                if key in (member.tag, member.name):
                    return member
            if key == "LIDAR":
                return cls.LASER
        raise MeasurementValidationError(f"Unknown sensor type: {tag!r}")


@dataclass
class Measurement:
    """
    A single sensor reading.

    Attributes:
        sensor_type: Which sensor produced the reading
        raw_values: [px, py] for LASER, [rho, phi, rho_dot] for RADAR
        timestamp: Measurement time in integer microseconds
        metadata: Additional measurement information
    """

    sensor_type: SensorType
    raw_values: npt.NDArray[np.float64]
    timestamp: int
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        """Coerce sensor type and payload to their canonical forms."""
        self.sensor_type = SensorType.from_tag(self.sensor_type)
        try:
            self.raw_values = np.asarray(self.raw_values, dtype=np.float64)
        except (TypeError, ValueError) as e:
            raise MeasurementValidationError(
                f"{self.sensor_type.name} payload is not numeric: {self.raw_values!r}"
            ) from e

    def validate(self, previous_timestamp: Optional[int] = None) -> None:
        """
        Check payload size, finiteness and timestamp ordering.

        Raises:
            MeasurementValidationError: If the record cannot be processed
        """
        MeasurementValidator.validate_payload(
            self.raw_values, self.sensor_type.dim, self.sensor_type.name
        )
        MeasurementValidator.validate_timestamp(self.timestamp, previous_timestamp)


@dataclass
class GroundTruth:
    """True object state at a measurement time, as [px, py, vx, vy]."""

    px: float
    py: float
    vx: float
    vy: float

    def as_array(self) -> np.ndarray:
        """Return the ground truth as a 4-vector."""
        return np.array([self.px, self.py, self.vx, self.vy], dtype=np.float64)
