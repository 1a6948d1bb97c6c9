"""
Simulation module for SensorFusion.

This module generates synthetic laser/radar measurement streams with ground
truth for exercising the filter end to end.
"""

from .scenario import ScenarioParameters, generate_ctrv_scenario

__all__ = ['ScenarioParameters', 'generate_ctrv_scenario']
