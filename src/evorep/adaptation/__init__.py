"""
Self-Adaptation Package

Mutation rates carried by each representation instance and evolved alongside it.

Exported:
    SamType:    Enumeration of the per-slot adaptation methods
    sam_init:   Create an initial mutation-rate vector
    sam_adapt:  Perturb a mutation-rate vector in place
    MU_EPSILON: Smallest rate a log-normal slot may take
"""

from evorep.adaptation.self_adaptation import MU_EPSILON, SamType, sam_adapt, sam_init

__all__ = ['MU_EPSILON',
           'SamType',
           'sam_adapt',
           'sam_init']
