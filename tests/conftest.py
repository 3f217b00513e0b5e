"""Pytest configuration and shared fixtures."""

import random
import sys
from pathlib import Path

import numpy as np
import pytest

# Add the source root to the Python path
src_dir = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_dir))


@pytest.fixture(autouse=True)
def set_random_seeds():
    """Seed both random number generators so every test is reproducible."""
    np.random.seed(42)
    random.seed(42)
    yield
    np.random.seed(None)
    random.seed(None)


@pytest.fixture
def gp_context():
    """GP context with two known constants (2.0, 3.0) and a single input.

    Codes: 0-3 operators, 4 => 2.0, 5 => 3.0, 6 => x[0].
    """
    from evorep.gp import GPContext
    return GPContext(n_constants=2, x_dim=1, constants=[2.0, 3.0], init_depth=4)
