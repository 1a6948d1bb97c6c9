#!/usr/bin/env python3
"""
Configuration loader for the fusion filter
Handles YAML parsing, validation, and filter parameter setup
"""

import yaml
import numpy as np
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Any
from pathlib import Path
import logging

from .constants import DefaultNoise, DEFAULT_INITIAL_STATE, DEFAULT_INITIAL_COVARIANCE
from .validators import ConfigValidator, ConfigurationError, validate_noise_parameters

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class UKFConfig:
    """Noise parameters, priors and sensor switches for the filter"""
    # Process noise
    std_a: float = DefaultNoise.STD_A
    std_yawdd: float = DefaultNoise.STD_YAWDD

    # Laser measurement noise
    std_laspx: float = DefaultNoise.STD_LASPX
    std_laspy: float = DefaultNoise.STD_LASPY

    # Radar measurement noise
    std_radr: float = DefaultNoise.STD_RADR
    std_radphi: float = DefaultNoise.STD_RADPHI
    std_radrd: float = DefaultNoise.STD_RADRD

    # Priors
    x0: np.ndarray = field(default_factory=lambda: DEFAULT_INITIAL_STATE.copy())
    P0: np.ndarray = field(default_factory=lambda: DEFAULT_INITIAL_COVARIANCE.copy())

    # Disabled sensors are still used for initialization
    use_laser: bool = True
    use_radar: bool = True

    name: str = "default"
    description: str = ""

    def __post_init__(self):
        for name in ('x0', 'P0'):
            value = np.array(getattr(self, name), dtype=np.float64)
            value.setflags(write=False)
            object.__setattr__(self, name, value)

    def noise_parameters(self) -> List[tuple]:
        """(name, value) pairs of every noise standard deviation"""
        return [
            ('std_a', self.std_a),
            ('std_yawdd', self.std_yawdd),
            ('std_laspx', self.std_laspx),
            ('std_laspy', self.std_laspy),
            ('std_radr', self.std_radr),
            ('std_radphi', self.std_radphi),
            ('std_radrd', self.std_radrd),
        ]

    def validate(self) -> List[str]:
        """
        Validate configuration

        Returns:
            List of warnings

        Raises:
            ConfigurationError: If any parameter is invalid
        """
        noise = validate_noise_parameters(self.noise_parameters())
        prior = ConfigValidator.validate_prior(self.x0, self.P0)
        for warning in noise.warnings + prior.warnings:
            logger.warning(f"Config '{self.name}': {warning}")
        return noise.warnings + prior.warnings


class ConfigLoader:
    """Load and validate filter configurations"""

    def __init__(self, config_dir: str = "configs"):
        """
        Initialize configuration loader

        Args:
            config_dir: Directory containing configuration files
        """
        self.config_dir = Path(config_dir)

    def load_config(self, config_name: str) -> UKFConfig:
        """
        Load a filter configuration from YAML

        Args:
            config_name: Name of config file (with or without .yaml) or a path

        Returns:
            UKFConfig object
        """
        filepath = Path(config_name)
        if not filepath.exists():
            if not config_name.endswith('.yaml'):
                config_name += '.yaml'
            filepath = self.config_dir / config_name

        if not filepath.exists():
            raise FileNotFoundError(f"Config file not found: {filepath}")

        logger.info(f"Loading filter config: {filepath}")

        with open(filepath, 'r') as f:
            config_dict = yaml.safe_load(f)

        return self.parse_config(config_dict)

    def parse_config(self, config_dict: Optional[Dict]) -> UKFConfig:
        """Parse configuration dictionary into a validated UKFConfig"""
        if not isinstance(config_dict, dict):
            raise ConfigurationError("Configuration must be a YAML mapping")

        defaults = UKFConfig()
        filter_cfg = config_dict.get('filter', {}) or {}
        process_cfg = config_dict.get('process_noise', {}) or {}
        laser_cfg = config_dict.get('laser', {}) or {}
        radar_cfg = config_dict.get('radar', {}) or {}
        initial_cfg = config_dict.get('initial_state', {}) or {}

        try:
            config = UKFConfig(
                name=str(filter_cfg.get('name', defaults.name)),
                description=str(filter_cfg.get('description', defaults.description)),
                use_laser=bool(laser_cfg.get('enabled', defaults.use_laser)),
                use_radar=bool(radar_cfg.get('enabled', defaults.use_radar)),
                std_a=float(process_cfg.get('std_a', defaults.std_a)),
                std_yawdd=float(process_cfg.get('std_yawdd', defaults.std_yawdd)),
                std_laspx=float(laser_cfg.get('std_px', defaults.std_laspx)),
                std_laspy=float(laser_cfg.get('std_py', defaults.std_laspy)),
                std_radr=float(radar_cfg.get('std_range', defaults.std_radr)),
                std_radphi=float(radar_cfg.get('std_bearing', defaults.std_radphi)),
                std_radrd=float(radar_cfg.get('std_range_rate', defaults.std_radrd)),
                x0=initial_cfg.get('mean', defaults.x0),
                P0=self._parse_covariance(initial_cfg, defaults.P0),
            )
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Malformed configuration value: {e}") from e

        config.validate()
        return config

    @staticmethod
    def _parse_covariance(initial_cfg: Dict, default: np.ndarray) -> np.ndarray:
        if 'covariance' in initial_cfg:
            return np.array(initial_cfg['covariance'], dtype=np.float64)
        if 'covariance_diagonal' in initial_cfg:
            return np.diag(np.array(initial_cfg['covariance_diagonal'], dtype=np.float64))
        return default

    def list_configs(self) -> List[str]:
        """List available configuration files"""
        return sorted(file.stem for file in self.config_dir.glob("*.yaml"))

    def save_config(self, config: UKFConfig, filename: str) -> Path:
        """
        Save a configuration to YAML

        Args:
            config: Configuration to save
            filename: File name, '.yaml' appended if missing

        Returns:
            Path of the written file
        """
        if not filename.endswith('.yaml'):
            filename += '.yaml'

        self.config_dir.mkdir(parents=True, exist_ok=True)
        filepath = self.config_dir / filename

        with open(filepath, 'w') as f:
            yaml.dump(self.to_dict(config), f, default_flow_style=False, sort_keys=False)

        logger.info(f"Saved filter config to {filepath}")
        return filepath

    @staticmethod
    def to_dict(config: UKFConfig) -> Dict[str, Any]:
        """Convert configuration to the YAML layout"""
        return {
            'filter': {
                'name': config.name,
                'description': config.description,
            },
            'process_noise': {
                'std_a': float(config.std_a),
                'std_yawdd': float(config.std_yawdd),
            },
            'laser': {
                'enabled': bool(config.use_laser),
                'std_px': float(config.std_laspx),
                'std_py': float(config.std_laspy),
            },
            'radar': {
                'enabled': bool(config.use_radar),
                'std_range': float(config.std_radr),
                'std_bearing': float(config.std_radphi),
                'std_range_rate': float(config.std_radrd),
            },
            'initial_state': {
                'mean': config.x0.tolist(),
                'covariance': config.P0.tolist(),
            },
        }
