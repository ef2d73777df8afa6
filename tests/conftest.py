"""
Pytest configuration and shared fixtures.
"""

import sys
from pathlib import Path

import matplotlib

matplotlib.use("Agg")

import numpy as np
import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))


SAMPLE_VALUES = [
    1.2, 1.8, 0.99, 10.4, 2.0, 1.86, 0.899, 1.3, 0.901, 1.345,
    1.25, 1.9, 0.96, 1.48, 1.97, 1.867, 1.9, 1.48, 0.001, 1.45,
]


@pytest.fixture
def sample_values():
    """Small dataset with one high and one low outlier."""
    return list(SAMPLE_VALUES)


@pytest.fixture
def normal_values():
    """Gaussian data with a few far away points appended."""
    rng = np.random.default_rng(42)
    bulk = rng.normal(loc=0.0, scale=1.0, size=250)
    return np.concatenate([bulk, [8.0, -9.0, 12.5]])


@pytest.fixture
def rng():
    return np.random.default_rng(2024)
