"""
Measurement log reader and estimate writer

Log format, one record per line, whitespace separated:

    L  px   py            timestamp  [gt_px gt_py gt_vx gt_vy]
    R  rho  phi  rho_dot  timestamp  [gt_px gt_py gt_vx gt_vy]

Timestamps are integer microseconds. Blank lines and lines starting with
'#' are ignored.
"""

import logging
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple, Union

import numpy as np

from .tracking.tracker_base import GroundTruth, Measurement, SensorType
from .validators import MeasurementValidationError

logger = logging.getLogger(__name__)

GROUND_TRUTH_FIELDS = 4

MeasurementRecord = Tuple[Measurement, Optional[GroundTruth]]


def parse_line(line: str, line_number: int = 0) -> MeasurementRecord:
    """
    Parse one log line into a measurement and optional ground truth

    Args:
        line: Raw log line
        line_number: Line number used in error messages

    Returns:
        (Measurement, GroundTruth or None)

    Raises:
        MeasurementValidationError: If the line is malformed
    """
    fields = line.split()
    if not fields:
        raise MeasurementValidationError(f"Line {line_number}: empty record")

    try:
        sensor_type = SensorType.from_tag(fields[0])
    except MeasurementValidationError as e:
        raise MeasurementValidationError(f"Line {line_number}: {e}") from e

    n_values = sensor_type.dim
    n_fields = len(fields) - 1
    if n_fields not in (n_values + 1, n_values + 1 + GROUND_TRUTH_FIELDS):
        raise MeasurementValidationError(
            f"Line {line_number}: {sensor_type.name} record needs {n_values + 1} or "
            f"{n_values + 1 + GROUND_TRUTH_FIELDS} fields, got {n_fields}"
        )

    try:
        values = [float(v) for v in fields[1:1 + n_values]]
        timestamp = int(fields[1 + n_values])
        truth_values = [float(v) for v in fields[2 + n_values:]]
    except ValueError as e:
        raise MeasurementValidationError(f"Line {line_number}: {e}") from e

    measurement = Measurement(sensor_type, values, timestamp,
                              metadata={'line': line_number})
    try:
        measurement.validate()
    except MeasurementValidationError as e:
        raise MeasurementValidationError(f"Line {line_number}: {e}") from e

    ground_truth = GroundTruth(*truth_values) if truth_values else None
    return measurement, ground_truth


def read_measurements(lines: Iterable[str]) -> List[MeasurementRecord]:
    """Parse an iterable of log lines"""
    records = []
    for line_number, line in enumerate(lines, start=1):
        stripped = line.strip()
        if not stripped or stripped.startswith('#'):
            continue
        records.append(parse_line(stripped, line_number))
    return records


def load_measurements(path: Union[str, Path]) -> List[MeasurementRecord]:
    """
    Load a measurement log file

    Args:
        path: Path of the log

    Returns:
        List of (Measurement, GroundTruth or None) in file order
    """
    filepath = Path(path)
    if not filepath.exists():
        raise FileNotFoundError(f"Measurement file not found: {filepath}")

    with open(filepath, 'r') as f:
        records = read_measurements(f)

    n_laser = sum(1 for m, _ in records if m.sensor_type == SensorType.LASER)
    logger.info(f"Loaded {len(records)} measurements from {filepath} "
                f"({n_laser} laser, {len(records) - n_laser} radar)")
    return records


def format_measurement(measurement: Measurement,
                       ground_truth: Optional[GroundTruth] = None) -> str:
    """Format a measurement back into a log line"""
    fields = [measurement.sensor_type.tag]
    fields += [f"{v:.6f}" for v in measurement.raw_values]
    fields.append(str(int(measurement.timestamp)))
    if ground_truth is not None:
        fields += [f"{v:.6f}" for v in ground_truth.as_array()]
    return "\t".join(fields)


def save_measurements(path: Union[str, Path], records: Sequence[MeasurementRecord]) -> Path:
    """Write measurements (and ground truth) in the log format"""
    filepath = Path(path)
    with open(filepath, 'w') as f:
        for measurement, ground_truth in records:
            f.write(format_measurement(measurement, ground_truth) + "\n")
    logger.info(f"Saved {len(records)} measurements to {filepath}")
    return filepath


def write_estimates(path: Union[str, Path], rows: Sequence[Sequence[float]]) -> Path:
    """
    Write one estimate row per processed measurement

    Each row is px, py, v, yaw, yaw_rate, nis_laser, nis_radar.
    """
    filepath = Path(path)
    data = np.asarray(rows, dtype=np.float64).reshape(-1, 7)
    np.savetxt(filepath, data, fmt="%.6f", delimiter="\t",
               header="px\tpy\tv\tyaw\tyaw_rate\tnis_laser\tnis_radar")
    logger.info(f"Saved {data.shape[0]} estimates to {filepath}")
    return filepath
