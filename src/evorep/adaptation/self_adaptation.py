"""
Self-Adaptive Mutation Module

Each representation instance owns a small vector of mutation rates 'mu'.
Before mutating, the instance first perturbs its own rates; offspring that
inherit good rates are then favoured by selection, so the rates evolve along
with the representation.

Each slot of the vector has its own adaptation method:
 + LOG_NORMAL:  mu *= exp(N(0,1)), clamped to [MU_EPSILON, 1]
 + RATE_SELECT: with probability 0.1, re-draw mu from a fixed table of rates
 + UNIFORM:     with probability 0.1, re-draw mu uniformly from [MU_EPSILON, 1]

Classes:
    SamType: Enumeration of adaptation methods
"""

import math
import random
import numpy as np
from enum   import Enum
from typing import Sequence

MU_EPSILON = 0.0005   # smallest admissible mutation rate
REDRAW_PROB = 0.1     # probability of re-drawing a RATE_SELECT / UNIFORM slot

# Candidate rates for RATE_SELECT slots
RATES = (0.0005, 0.001, 0.002, 0.003, 0.005, 0.01, 0.015, 0.02, 0.05, 0.1)

class SamType(Enum):
    """
    Self-adaptation method applied to one slot of a mutation-rate vector.
    """
    LOG_NORMAL  = 0
    RATE_SELECT = 1
    UNIFORM     = 2

def sam_init(types: Sequence[SamType]) -> np.ndarray:
    """
    Create a mutation-rate vector with one slot per entry of 'types'.

    Parameters:
        types: The adaptation method of each slot

    Returns:
        The initial rates
    """
    mu = np.empty(len(types))
    for i, sam_type in enumerate(types):
        if sam_type == SamType.RATE_SELECT:
            mu[i] = random.choice(RATES)
        elif sam_type in (SamType.LOG_NORMAL, SamType.UNIFORM):
            mu[i] = random.uniform(MU_EPSILON, 1.0)
        else:
            raise ValueError(f"Unknown self-adaptation type: {sam_type}")
    return mu

def sam_adapt(mu: np.ndarray, types: Sequence[SamType]) -> None:
    """
    Perturb a mutation-rate vector in place.

    Parameters:
        mu:    The rates to adapt (modified in place)
        types: The adaptation method of each slot
    """
    if len(mu) != len(types):
        raise ValueError(f"Expected {len(types)} mutation rates, got {len(mu)}")

    for i, sam_type in enumerate(types):
        if sam_type == SamType.LOG_NORMAL:
            rate  = mu[i] * math.exp(random.gauss(0.0, 1.0))
            mu[i] = min(1.0, max(MU_EPSILON, rate))
        elif sam_type == SamType.RATE_SELECT:
            if random.random() < REDRAW_PROB:
                mu[i] = random.choice(RATES)
        elif sam_type == SamType.UNIFORM:
            if random.random() < REDRAW_PROB:
                mu[i] = random.uniform(MU_EPSILON, 1.0)
        else:
            raise ValueError(f"Unknown self-adaptation type: {sam_type}")
