"""
Shared fixtures for package-level tests.
"""

import matplotlib
matplotlib.use("Agg")

import pytest
from pathlib import Path


REPO_ROOT = Path(__file__).resolve().parent.parent


@pytest.fixture
def configs_dir():
    """Directory holding the shipped filter configurations."""
    return REPO_ROOT / "configs"


@pytest.fixture
def sample_log(tmp_path):
    """A short measurement log with ground truth on every line."""
    content = "\n".join([
        "# sensor values... timestamp gt_px gt_py gt_vx gt_vy",
        "L\t0.312242\t0.5803398\t1477010443000000\t0.6\t0.6\t5.199937\t0",
        "R\t1.014892\t0.5543292\t4.892807\t1477010443050000\t0.8599968\t0.6000449\t5.199747\t0.0017996",
        "",
        "L\t1.173848\t0.4810097\t1477010443100000\t1.119984\t0.6002681\t5.199429\t0.00359903",
        "R\t1.047505\t0.3892401\t4.511325\t1477010443150000\t1.379955\t0.6006936\t5.198979\t0.00539824",
    ]) + "\n"
    path = tmp_path / "sample.txt"
    path.write_text(content)
    return path
