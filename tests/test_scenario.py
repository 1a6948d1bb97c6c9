"""
Tests for synthetic CTRV scenario generation.
"""

import pytest
import numpy as np
import numpy.testing as npt

from sensorfusion.simulation import ScenarioParameters, generate_ctrv_scenario
from sensorfusion.tracking import SensorType, UnscentedKalmanFilter, calculate_rmse, state_to_cartesian


def test_alternating_sensors():
    records = generate_ctrv_scenario(6, seed=1)

    assert [m.sensor_type for m, _ in records] == [SensorType.LASER, SensorType.RADAR] * 3
    timestamps = [m.timestamp for m, _ in records]
    assert np.all(np.diff(timestamps) == 50_000)
    for measurement, _ in records:
        measurement.validate()


def test_reproducible_with_seed():
    first = generate_ctrv_scenario(10, seed=7)
    second = generate_ctrv_scenario(10, seed=7)

    for (m1, t1), (m2, t2) in zip(first, second):
        npt.assert_array_equal(m1.raw_values, m2.raw_values)
        npt.assert_array_equal(t1.as_array(), t2.as_array())


def test_noise_free_truth_follows_ctrv():
    params = ScenarioParameters(std_a=0.0, std_yawdd=0.0, laser_std=(0.0, 0.0),
                                initial_state=np.array([0.0, 0.0, 2.0, 0.0, 0.0]))
    records = generate_ctrv_scenario(5, params=params, sensors=[SensorType.LASER], seed=0)

    final_measurement, final_truth = records[-1]
    npt.assert_allclose(final_truth.as_array(), [0.4, 0.0, 2.0, 0.0], atol=1e-12)
    npt.assert_allclose(final_measurement.raw_values, [0.4, 0.0], atol=1e-12)


def test_radar_only_stream():
    records = generate_ctrv_scenario(4, sensors=[SensorType.RADAR], seed=3)
    assert all(m.sensor_type == SensorType.RADAR for m, _ in records)
    assert all(m.raw_values.shape == (3,) for m, _ in records)


def test_invalid_arguments():
    with pytest.raises(ValueError):
        generate_ctrv_scenario(-1)
    with pytest.raises(ValueError):
        generate_ctrv_scenario(3, sensors=[])


@pytest.mark.integration
def test_filter_tracks_simulated_object():
    records = generate_ctrv_scenario(300, seed=42)
    ukf = UnscentedKalmanFilter()

    estimates, truths = [], []
    for measurement, truth in records:
        ukf.process_measurement(measurement)
        estimates.append(state_to_cartesian(ukf.x))
        truths.append(truth.as_array())

    # Skip the convergence transient
    rmse = calculate_rmse(estimates[50:], truths[50:])
    assert rmse[0] < 0.3
    assert rmse[1] < 0.3
    assert rmse[2] < 1.5
    assert rmse[3] < 1.5
