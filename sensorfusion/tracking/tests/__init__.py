"""
Test suite for the tracking module.

Test Structure:
- test_kalman_filters.py: UKF initialization, prediction, updates and failure handling
- test_motion_models.py: CTRV propagation, radar model and coordinate helpers
- test_evaluation.py: NIS consistency monitoring and RMSE

To run all tests:
    pytest sensorfusion/tracking/tests/

To run specific test modules:
    pytest sensorfusion/tracking/tests/test_kalman_filters.py -v
"""

__all__ = [
    'test_kalman_filters',
    'test_motion_models',
    'test_evaluation',
]
