#!/usr/bin/env python3
"""
Scenario runner for the lidar/radar fusion filter
Feeds a recorded or simulated measurement stream through the UKF and reports
estimation accuracy and NIS consistency
"""

import numpy as np
import matplotlib.pyplot as plt
import argparse
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Dict, Optional, Sequence
import logging

from sensorfusion.config_loader import ConfigLoader, UKFConfig
from sensorfusion.data_loader import load_measurements, write_estimates, MeasurementRecord
from sensorfusion.simulation import generate_ctrv_scenario
from sensorfusion.tracking import (
    UnscentedKalmanFilter, ConsistencyMonitor, SensorType,
    calculate_rmse, state_to_cartesian
)
from sensorfusion.validators import ValidationError, NumericalInstabilityError
from sensorfusion.visualization import Visualizer

logger = logging.getLogger("sensorfusion.run_scenario")


class ScenarioRunner:
    """Run a measurement stream through the filter"""

    def __init__(self, config: UKFConfig):
        """
        Initialize scenario runner

        Args:
            config: Filter configuration object
        """
        self.config = config
        self.monitor = ConsistencyMonitor()
        self.ukf = UnscentedKalmanFilter(config, monitor=self.monitor)

        # Storage for results
        self.results = {
            'estimates': [],
            'ground_truth': [],
            'measurements': [],
            'metrics': {}
        }

    def run(self, records: Sequence[MeasurementRecord]) -> Dict:
        """
        Process every record in order

        Args:
            records: (Measurement, GroundTruth or None) pairs

        Returns:
            Dictionary with estimates, ground truth and metrics
        """
        logger.info(f"Running filter '{self.config.name}' over {len(records)} measurements")

        estimates = []
        estimates_cartesian = []
        truths = []

        for step, (measurement, truth) in enumerate(records):
            self.ukf.process_measurement(measurement)

            x = self.ukf.x
            estimates.append(np.concatenate([x, [self.ukf.nis_laser, self.ukf.nis_radar]]))
            if truth is not None:
                estimates_cartesian.append(state_to_cartesian(x))
                truths.append(truth.as_array())

            if step % 100 == 0:
                logger.debug(f"  Step {step}/{len(records)}: x={np.round(x, 3)}")

        self.results['estimates'] = np.array(estimates).reshape(-1, 7)
        self.results['ground_truth'] = np.array(truths).reshape(-1, 4)
        self.results['measurements'] = [m for m, _ in records]
        self.results['metrics'] = self._calculate_metrics(estimates_cartesian, truths, len(records))

        logger.info(f"Scenario complete: {len(estimates)} estimates")
        return self.results

    def _calculate_metrics(self, estimates: List[np.ndarray],
                           truths: List[np.ndarray], n_records: int) -> Dict:
        """RMSE (when ground truth is present) and NIS consistency"""
        metrics = {'consistency': self.monitor.summary()}

        # Ground truth must accompany every record for the RMSE to be meaningful
        if truths and len(truths) == n_records:
            metrics['rmse'] = calculate_rmse(estimates, truths)

        return metrics

    def log_summary(self):
        """Log RMSE and NIS consistency"""
        metrics = self.results['metrics']
        if 'rmse' in metrics:
            px, py, vx, vy = metrics['rmse']
            logger.info(f"RMSE px={px:.4f} py={py:.4f} vx={vx:.4f} vy={vy:.4f}")

        for sensor, stats in metrics['consistency'].items():
            if stats['count'] == 0:
                continue
            logger.info(
                f"{sensor} NIS: {stats['count']} updates, mean {stats['mean_nis']:.3f}, "
                f"{stats['fraction_above'] * 100:.1f}% above {stats['threshold']:.3f}"
            )

    def visualize_results(self, save_dir: Optional[Path] = None) -> List[plt.Figure]:
        """Create trajectory and NIS plots"""
        viz = Visualizer()
        ground_truth = self.results['ground_truth']

        figures = {
            'trajectory': viz.plot_trajectory(
                self.results['estimates'],
                ground_truth if len(ground_truth) else None,
                self.results['measurements'],
                title=f"Filter: {self.config.name}",
            )
        }
        for sensor_type in SensorType:
            values = self.monitor.history[sensor_type]
            if values:
                figures[f"nis_{sensor_type.name.lower()}"] = viz.plot_nis(
                    values, sensor_type, self.monitor.confidence
                )

        # Save or show
        if save_dir:
            save_dir.mkdir(parents=True, exist_ok=True)
            for name, fig in figures.items():
                path = save_dir / f"{name}.png"
                fig.savefig(path, dpi=150, bbox_inches='tight')
                plt.close(fig)
                logger.info(f"Saved visualization to {path}")
        else:
            plt.show()

        return list(figures.values())


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Run the lidar/radar UKF over a measurement stream')
    parser.add_argument('--config', help='Filter config name or YAML path (defaults if omitted)')
    parser.add_argument('--config-dir', default='configs', help='Directory of filter configs')

    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument('--input', help='Measurement log to process')
    source.add_argument('--simulate', type=int, metavar='N',
                        help='Simulate N measurements of a CTRV object')

    parser.add_argument('--seed', type=int, default=None, help='Seed for --simulate')
    parser.add_argument('--output', help='Directory for estimates and plots')
    parser.add_argument('--plot', action='store_true', help='Plot trajectory and NIS')
    parser.add_argument('--disable-laser', action='store_true', help='Ignore laser updates')
    parser.add_argument('--disable-radar', action='store_true', help='Ignore radar updates')
    parser.add_argument('--verbose', action='store_true', help='Enable debug logging')
    return parser


def load_filter_config(args: argparse.Namespace) -> UKFConfig:
    """Resolve the configuration and apply the sensor switches"""
    if args.config:
        config = ConfigLoader(args.config_dir).load_config(args.config)
    else:
        config = UKFConfig()

    if args.disable_laser or args.disable_radar:
        config = replace(
            config,
            use_laser=config.use_laser and not args.disable_laser,
            use_radar=config.use_radar and not args.disable_radar,
        )
    return config


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for scenario runner"""
    args = build_parser().parse_args(argv)

    if args.verbose:
        logging.getLogger("sensorfusion").setLevel(logging.DEBUG)

    try:
        config = load_filter_config(args)

        if args.input:
            records = load_measurements(args.input)
        else:
            records = generate_ctrv_scenario(args.simulate, seed=args.seed)

        runner = ScenarioRunner(config)
        results = runner.run(records)
        runner.log_summary()

        output_dir = Path(args.output) if args.output else None
        if output_dir:
            output_dir.mkdir(parents=True, exist_ok=True)
            write_estimates(output_dir / "estimates.txt", results['estimates'])

        if args.plot:
            runner.visualize_results(save_dir=output_dir)

    except FileNotFoundError as e:
        logger.error(f"Error: {e}")
        return 1
    except (ValidationError, NumericalInstabilityError) as e:
        logger.error(f"Error running scenario: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
