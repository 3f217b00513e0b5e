"""
1D Function Regression with evolvable representations.

This module approximates a 1D function twice: once with a neural network
that is both trained by gradient descent and mutated structurally, and once
with a GP expression tree evolved by crossover and mutation. Both searches
are a simple (1+lambda) scheme: the parent survives unless an offspring
is at least as accurate.

Classes:
    Trial_Regression1D: 1D function approximation with either representation
"""

import logging
import math
import numpy as np
import sys
from pathlib import Path
from typing  import Callable
sys.path.append(str(Path(__file__).parent.parent / 'src'))

from evorep import Config, GPContext, GPTree, Network, build_network, setup_logging

logger = logging.getLogger(__name__)

class Trial_Regression1D:
    """
    Approximate 'function' on [x_min, x_max] with a Network or a GPTree.
    """

    NUM_POINTS = 50

    def __init__(self,
                 config  : Config,
                 function: Callable[[float], float],
                 x_min   : float,
                 x_max   : float):
        self._config = config
        self._Xs = np.linspace(x_min, x_max, self.NUM_POINTS).reshape(-1, 1)
        self._Ys = np.array([function(x[0]) for x in self._Xs]).reshape(-1, 1)

    def _network_error(self, net: Network) -> float:
        return float(np.mean([(net.propagate(x)[0] - y[0]) ** 2 for x, y in zip(self._Xs, self._Ys)]))

    def _tree_error(self, tree: GPTree) -> float:
        return float(np.mean([(tree.evaluate(x) - y[0]) ** 2 for x, y in zip(self._Xs, self._Ys)]))

    def run_network(self, num_generations: int = 100, num_offspring: int = 5) -> Network:
        parent = build_network(self._config.layer_args)
        for x, y in zip(self._Xs, self._Ys):
            parent.propagate(x, train=True)
            parent.learn(y, x)
        parent_error = self._network_error(parent)

        for generation in range(num_generations):
            for _ in range(num_offspring):
                child = parent.copy()
                child.mutate()
                for x, y in zip(self._Xs, self._Ys):
                    child.propagate(x, train=True)
                    child.learn(y, x)
                error = self._network_error(child)
                if error <= parent_error:
                    parent, parent_error = child, error
            if generation % 20 == 0:
                logger.info(f"generation {generation}: MSE={parent_error:.5f}, weights={parent.size()}")

        logger.info(f"final network (MSE={parent_error:.5f}):\n{parent.describe()}")
        return parent

    def run_tree(self, num_generations: int = 200, num_offspring: int = 10) -> GPTree:
        ctx          = GPContext.from_config(self._config)
        parent       = GPTree.random(ctx)
        parent_error = self._tree_error(parent)

        for generation in range(num_generations):
            for _ in range(num_offspring):
                child = parent.copy()
                donor = GPTree.random(ctx)
                child.crossover(donor)
                child.mutate()
                error = self._tree_error(child)
                if error <= parent_error:
                    parent, parent_error = child, error
            if generation % 50 == 0:
                logger.info(f"generation {generation}: MSE={parent_error:.5f}, length={parent.len}")

        logger.info(f"final tree (MSE={parent_error:.5f}): {parent}")
        return parent

if __name__ == '__main__':
    config = Config(str(Path(__file__).parent / 'configs' / 'config_regression1D.ini'))
    setup_logging(config.log_level)

    trial = Trial_Regression1D(config, lambda x: math.sin(2.0 * x), -math.pi / 2, math.pi / 2)
    trial.run_network()
    trial.run_tree()
