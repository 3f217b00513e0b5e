"""
Evolvable Representations - function representations for rule-based
evolutionary machine learning.

This package provides the two representations a classifier may carry to
compute its condition or prediction: a neural network whose topology changes
under evolution, and a genetic-programming arithmetic expression tree. Both
are evaluated, mutated (with self-adaptive mutation rates), recombined or
trained, and persisted in a compact binary format.

Main components:
- neural:      Chains of layers with forward/backward passes and structural mutation
- gp:          Prefix-encoded expression trees and their shared constant pool
- adaptation:  Self-adaptive mutation rates
- activations: Activation functions for neural layers
- run:         Configuration and logging setup

Example:
    >>> from evorep import GPContext, GPTree, LayerArgs, build_network
    >>> net = build_network([LayerArgs(n_inputs=2, n_init=1, function='linear')])
    >>> net.propagate([1.0, 2.0]).shape
    (1,)
    >>> ctx  = GPContext(n_constants=10, x_dim=2)
    >>> tree = GPTree.random(ctx)
"""

__version__ = "0.1.0"

from evorep.errors      import CorruptDataError, EvorepError
from evorep.run.config  import Config, setup_logging
from evorep.neural      import Layer, LayerArgs, LayerOpt, LayerType, Network, build_network
from evorep.gp          import GPContext, GPTree
from evorep.adaptation  import SamType

__all__ = [
    "Config",
    "CorruptDataError",
    "EvorepError",
    "GPContext",
    "GPTree",
    "Layer",
    "LayerArgs",
    "LayerOpt",
    "LayerType",
    "Network",
    "SamType",
    "build_network",
    "setup_logging",
]
