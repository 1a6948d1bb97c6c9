"""
Tests for YAML filter configuration loading.
"""

import pytest
import numpy as np
import numpy.testing as npt
import yaml

from sensorfusion.config_loader import ConfigLoader, UKFConfig
from sensorfusion.validators import ConfigurationError


def test_default_config_file_matches_defaults(configs_dir):
    """The shipped config reproduces the built-in tuning"""
    config = ConfigLoader(str(configs_dir)).load_config("ukf_default")
    defaults = UKFConfig()

    assert config.name == "default"
    assert config.noise_parameters() == defaults.noise_parameters()
    npt.assert_array_equal(config.x0, defaults.x0)
    npt.assert_array_equal(config.P0, defaults.P0)
    assert config.use_laser and config.use_radar


def test_list_configs(configs_dir):
    assert "ukf_default" in ConfigLoader(str(configs_dir)).list_configs()


def test_missing_config(tmp_path):
    with pytest.raises(FileNotFoundError):
        ConfigLoader(str(tmp_path)).load_config("nope")


def test_load_by_path(tmp_path):
    path = tmp_path / "custom.yaml"
    path.write_text(yaml.dump({
        'filter': {'name': 'custom'},
        'process_noise': {'std_a': 1.5},
        'radar': {'enabled': False, 'std_bearing': 0.05},
        'initial_state': {'covariance_diagonal': [1, 1, 2, 0.1, 0.1]},
    }))

    config = ConfigLoader(str(tmp_path / "elsewhere")).load_config(str(path))

    assert config.name == "custom"
    assert config.std_a == 1.5
    assert config.std_yawdd == 2.0
    assert config.std_radphi == 0.05
    assert not config.use_radar
    assert config.use_laser
    npt.assert_array_equal(np.diag(config.P0), [1, 1, 2, 0.1, 0.1])


def test_full_covariance():
    P0 = (np.eye(5) * 0.4).tolist()
    config = ConfigLoader().parse_config({'initial_state': {'covariance': P0}})
    npt.assert_array_equal(config.P0, np.eye(5) * 0.4)


@pytest.mark.parametrize("config_dict", [
    None,
    [],
    {'process_noise': {'std_a': -1.0}},
    {'laser': {'std_px': 'wide'}},
    {'initial_state': {'mean': [1, 2, 3]}},
    {'initial_state': {'covariance': [[1, 2], [3, 4]]}},
])
def test_invalid_configs(config_dict):
    with pytest.raises(ConfigurationError):
        ConfigLoader().parse_config(config_dict)


def test_save_and_reload(tmp_path):
    loader = ConfigLoader(str(tmp_path / "configs"))
    saved = UKFConfig(std_a=0.8, std_radr=0.25, use_laser=False, name="tuned")

    path = loader.save_config(saved, "tuned")
    assert path.name == "tuned.yaml"

    reloaded = loader.load_config("tuned")
    assert reloaded.noise_parameters() == saved.noise_parameters()
    assert reloaded.use_laser is False
    assert reloaded.name == "tuned"
    npt.assert_array_equal(reloaded.P0, saved.P0)


def test_zero_noise_warns():
    warnings = UKFConfig(std_laspx=0.0).validate()
    assert any("std_laspx" in w for w in warnings)


def test_priors_are_read_only():
    config = UKFConfig()

    with pytest.raises(ValueError):
        config.x0[2] = 100.0
    with pytest.raises(ValueError):
        config.P0[0, 0] = 100.0


def test_priors_copied_from_caller():
    mean = np.array([0.0, 0.0, 3.0, 0.0, 0.0])
    config = UKFConfig(x0=mean)

    mean[2] = 100.0

    assert config.x0[2] == 3.0


def test_non_numeric_std_rejected():
    with pytest.raises(ConfigurationError):
        UKFConfig(std_a="abc").validate()
