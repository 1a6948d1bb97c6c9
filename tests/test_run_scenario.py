"""
Tests for the scenario runner command line.
"""

import logging

import numpy as np
import pytest

import run_scenario
from sensorfusion.tracking import SensorType


def test_simulated_run_writes_estimates(tmp_path):
    output = tmp_path / "out"

    exit_code = run_scenario.main(["--simulate", "40", "--seed", "2", "--output", str(output)])

    assert exit_code == 0
    data = np.loadtxt(output / "estimates.txt")
    assert data.shape == (40, 7)
    assert np.all(np.isfinite(data))


def test_log_run_reports_rmse(sample_log, caplog):
    with caplog.at_level(logging.INFO, logger="sensorfusion"):
        exit_code = run_scenario.main(["--input", str(sample_log)])

    assert exit_code == 0
    assert any("RMSE" in r.getMessage() for r in caplog.records)


def test_plots_saved(tmp_path):
    output = tmp_path / "plots"

    exit_code = run_scenario.main(["--simulate", "20", "--seed", "0", "--plot",
                                   "--output", str(output)])

    assert exit_code == 0
    assert (output / "trajectory.png").exists()
    assert (output / "nis_laser.png").exists()
    assert (output / "nis_radar.png").exists()


def test_disable_radar(configs_dir):
    parser = run_scenario.build_parser()
    args = parser.parse_args(["--simulate", "4", "--config", "ukf_default",
                              "--config-dir", str(configs_dir), "--disable-radar"])

    config = run_scenario.load_filter_config(args)

    assert config.use_laser
    assert not config.use_radar
    assert config.std_a == 0.5
    assert config.name == "default"
    assert not config.x0.flags.writeable


def test_runner_skips_disabled_sensor():
    from sensorfusion.config_loader import UKFConfig
    from sensorfusion.simulation import generate_ctrv_scenario

    runner = run_scenario.ScenarioRunner(UKFConfig(use_radar=False))
    runner.run(generate_ctrv_scenario(10, seed=5))

    assert runner.monitor.history[SensorType.RADAR] == []
    assert len(runner.monitor.history[SensorType.LASER]) == 4


def test_missing_input_fails(tmp_path):
    assert run_scenario.main(["--input", str(tmp_path / "missing.txt")]) == 1


def test_malformed_input_fails(tmp_path):
    path = tmp_path / "bad.txt"
    path.write_text("L 1.0 2.0 0\nQ 1 2 3\n")
    assert run_scenario.main(["--input", str(path)]) == 1


def test_source_required():
    with pytest.raises(SystemExit):
        run_scenario.main([])


def test_rmse_requires_ground_truth_for_every_record():
    from sensorfusion.config_loader import UKFConfig
    from sensorfusion.simulation import generate_ctrv_scenario

    records = generate_ctrv_scenario(10, seed=3)
    partial = [(m, None if i == 4 else truth) for i, (m, truth) in enumerate(records)]

    runner = run_scenario.ScenarioRunner(UKFConfig())
    runner.run(partial)
    assert 'rmse' not in runner.results['metrics']
    assert len(runner.results['ground_truth']) == 9

    runner = run_scenario.ScenarioRunner(UKFConfig())
    runner.run(records)
    assert len(runner.results['metrics']['rmse']) == 4
