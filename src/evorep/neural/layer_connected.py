"""
Fully-Connected Layer Module

This module implements the dense layer: every output neuron is connected to
every input through a weight that may be individually switched off. The layer
supports gradient descent (with momentum and weight decay) and self-adaptive
evolution of its weights, neuron count, connectivity, activation function
and learning rate.

Classes:
    ConnectedLayer: Dense layer with evolvable topology
"""

import logging
import math
import random
import numpy as np
from typing import BinaryIO, TYPE_CHECKING

from evorep.activations import activations, activation_gradients, activation_ids, activation_names
from evorep.adaptation  import SamType, sam_adapt, sam_init
from evorep.errors      import CorruptDataError
from evorep.neural.layer import Layer, LayerOpt, LayerType, register_layer
from evorep.utils       import binio

if TYPE_CHECKING:
    from evorep.neural.layer_args import LayerArgs

logger = logging.getLogger(__name__)

WEIGHT_SD  = 0.1     # stdev of newly drawn weights
WEIGHT_MIN = -10.0
WEIGHT_MAX = 10.0

# Mutation-rate slots
MU_ETA, MU_NEURONS, MU_CONNECT, MU_WEIGHTS, MU_FUNCTIONS = range(5)
MU_TYPE = (SamType.LOG_NORMAL,
           SamType.RATE_SELECT,
           SamType.RATE_SELECT,
           SamType.RATE_SELECT,
           SamType.RATE_SELECT)

@register_layer
class ConnectedLayer(Layer):
    """
    A fully-connected layer computing output = activation(W @ input + b).

    Public Attributes (in addition to those of Layer):
        n_max:           Upper bound on the number of neurons
        max_neuron_grow: Largest number of neurons added/removed by a single mutation
        function:        Name of the activation function
        eta:             Current learning rate
        eta_max:         Upper bound on the learning rate
        eta_min:         Lower bound on the learning rate
        momentum:        Momentum applied to the accumulated gradients
        decay:           Weight decay
        weights:         Weight matrix, shape (n_outputs, n_inputs)
        weight_active:   Mask of enabled weights, shape (n_outputs, n_inputs)
        biases:          Bias vector, shape (n_outputs,)
        state:           Pre-activation values of the last forward pass
    """

    layer_type = LayerType.CONNECTED

    def __init__(self,
                 n_inputs       : int,
                 n_init         : int,
                 n_max          : int | None = None,
                 max_neuron_grow: int        = 0,
                 function       : str        = 'logistic',
                 eta            : float      = 0.0,
                 eta_min        : float      = 0.0,
                 momentum       : float      = 0.0,
                 decay          : float      = 0.0,
                 options        : LayerOpt   = LayerOpt.NONE):
        """
        Initialize a dense layer with randomly drawn weights.

        Parameters:
            n_inputs:        Number of inputs
            n_init:          Initial number of neurons (outputs)
            n_max:           Maximum number of neurons (defaults to 'n_init')
            max_neuron_grow: Largest neuron count change per mutation
            function:        Activation function name
            eta:             Learning rate (upper bound when the rate evolves)
            eta_min:         Learning rate lower bound when the rate evolves
            momentum:        Momentum for gradient descent
            decay:           Weight decay for gradient descent
            options:         LayerOpt permissions
        """
        if function not in activations:
            raise ValueError(f"Unknown activation function '{function}'")
        super().__init__(n_inputs, n_init, options)

        self.n_max          : int   = max(n_init, n_max if n_max is not None else n_init)
        self.max_neuron_grow: int   = max_neuron_grow
        self.function       : str   = function
        self.eta_max        : float = eta
        self.eta_min        : float = eta_min
        self.eta            : float = eta
        self.momentum       : float = momentum
        self.decay          : float = decay

        if self.options & LayerOpt.EVOLVE_ETA:
            self.eta = random.uniform(eta_min, eta)

        self.weights        = np.zeros((n_init, n_inputs))
        self.weight_active  = np.ones((n_init, n_inputs), dtype=bool)
        self.biases         = np.zeros(n_init)
        self.weight_updates = np.zeros((n_init, n_inputs))
        self.bias_updates   = np.zeros(n_init)
        self.state          = np.zeros(n_init)
        self.randomize()
        self.mu = sam_init(MU_TYPE)

    @classmethod
    def from_args(cls, args: 'LayerArgs', n_inputs: int) -> 'ConnectedLayer':
        return cls(n_inputs,
                   args.n_init,
                   n_max           = args.n_max,
                   max_neuron_grow = args.max_neuron_grow,
                   function        = args.function,
                   eta             = args.eta,
                   eta_min         = args.eta_min,
                   momentum        = args.momentum,
                   decay           = args.decay,
                   options         = args.options)

    def randomize(self) -> None:
        self.weights = np.random.normal(0.0, WEIGHT_SD, (self.n_outputs, self.n_inputs))
        self.weights = np.where(self.weight_active, self.weights, 0.0)
        self.biases  = np.random.normal(0.0, WEIGHT_SD, self.n_outputs)
        self._count_active()

    def _count_active(self) -> None:
        self.n_active = int(np.count_nonzero(self.weight_active))

    def forward(self, input: np.ndarray, train: bool = False) -> None:
        x = np.asarray(input, dtype=float)[:self.n_inputs]
        self.state  = self.weights @ x + self.biases
        self.output = np.asarray(activations[self.function](self.state), dtype=float)

    def backward(self, input: np.ndarray, delta: np.ndarray | None) -> None:
        self.delta *= activation_gradients[self.function](self.state)
        if self.options & LayerOpt.SGD_WEIGHTS:
            x = np.asarray(input, dtype=float)[:self.n_inputs]
            self.bias_updates   += self.delta
            self.weight_updates += np.outer(self.delta, x) * self.weight_active
        if delta is not None:
            delta[:self.n_inputs] += self.weights.T @ self.delta

    def update(self) -> None:
        if not (self.options & LayerOpt.SGD_WEIGHTS) or self.eta <= 0:
            return
        self.biases         += self.eta * self.bias_updates
        self.bias_updates   *= self.momentum
        if self.decay > 0:
            self.weight_updates -= self.decay * self.weights
        self.weights        += self.eta * self.weight_updates * self.weight_active
        self.weights         = np.clip(self.weights, WEIGHT_MIN, WEIGHT_MAX)
        self.weight_updates *= self.momentum

    def mutate(self) -> bool:
        sam_adapt(self.mu, MU_TYPE)
        mod = False
        if self.options & LayerOpt.EVOLVE_ETA and self._mutate_eta(self.mu[MU_ETA]):
            mod = True
        if self.options & LayerOpt.EVOLVE_NEURONS:
            n = self._neuron_change(self.mu[MU_NEURONS])
            if n != 0:
                self.add_neurons(n)
                mod = True
        if self.options & LayerOpt.EVOLVE_CONNECT and self._mutate_connectivity(self.mu[MU_CONNECT]):
            mod = True
        if self.options & LayerOpt.EVOLVE_WEIGHTS and self._mutate_weights(self.mu[MU_WEIGHTS]):
            mod = True
        if self.options & LayerOpt.EVOLVE_FUNCTIONS and self._mutate_function(self.mu[MU_FUNCTIONS]):
            mod = True
        return mod

    def _mutate_eta(self, mu: float) -> bool:
        orig     = self.eta
        self.eta = self.eta * math.exp(random.gauss(0.0, mu))
        self.eta = min(self.eta_max, max(self.eta_min, self.eta))
        return self.eta != orig

    def _neuron_change(self, mu: float) -> int:
        """
        Draw the number of neurons to add (positive) or remove (negative).
        Neuron mutations are ten times more likely than 'mu' alone suggests.
        """
        n = 0
        if self.max_neuron_grow < 1:
            return n
        if random.uniform(0.0, 0.1) < mu:
            while n == 0:
                m = min(1.0, max(-1.0, random.gauss(0.0, 0.5)))
                n = round(m * self.max_neuron_grow)
            if self.n_outputs + n < 1:
                n = -(self.n_outputs - 1)
            elif self.n_outputs + n > self.n_max:
                n = self.n_max - self.n_outputs
        return n

    def add_neurons(self, n: int) -> None:
        """
        Grow (n > 0) or shrink (n < 0) the layer by 'n' neurons.
        New neurons are fully connected with freshly drawn weights.
        """
        n_outputs = self.n_outputs + n
        if n_outputs < 1:
            raise ValueError(f"Cannot shrink a layer of {self.n_outputs} neurons by {-n}")
        if n > 0:
            self.weights        = np.vstack([self.weights, np.random.normal(0.0, WEIGHT_SD, (n, self.n_inputs))])
            self.weight_active  = np.vstack([self.weight_active, np.ones((n, self.n_inputs), dtype=bool)])
            self.weight_updates = np.vstack([self.weight_updates, np.zeros((n, self.n_inputs))])
            self.biases         = np.concatenate([self.biases, np.random.normal(0.0, WEIGHT_SD, n)])
            self.bias_updates   = np.concatenate([self.bias_updates, np.zeros(n)])
        else:
            self.weights        = self.weights[:n_outputs].copy()
            self.weight_active  = self.weight_active[:n_outputs].copy()
            self.weight_updates = self.weight_updates[:n_outputs].copy()
            self.biases         = self.biases[:n_outputs].copy()
            self.bias_updates   = self.bias_updates[:n_outputs].copy()
        logger.debug(f"connected layer neurons {self.n_outputs} => {n_outputs}")
        self.n_outputs = n_outputs
        self.state     = np.zeros(n_outputs)
        self._resize_buffers()
        self._count_active()

    def _mutate_connectivity(self, mu: float) -> bool:
        toggle = np.random.random(self.weights.shape) < mu
        if not toggle.any():
            return False
        enable  = toggle & ~self.weight_active
        disable = toggle & self.weight_active
        self.weights[disable]       = 0.0
        self.weights[enable]        = np.random.normal(0.0, WEIGHT_SD, int(enable.sum()))
        self.weight_active[disable] = False
        self.weight_active[enable]  = True
        self._count_active()
        return True

    def _mutate_weights(self, mu: float) -> bool:
        orig_w = self.weights.copy()
        orig_b = self.biases.copy()
        self.weights = self.weights + np.random.normal(0.0, mu, self.weights.shape) * self.weight_active
        self.weights = np.clip(self.weights, WEIGHT_MIN, WEIGHT_MAX)
        self.biases  = np.clip(self.biases + np.random.normal(0.0, mu, self.n_outputs), WEIGHT_MIN, WEIGHT_MAX)
        return not (np.array_equal(orig_w, self.weights) and np.array_equal(orig_b, self.biases))

    def _mutate_function(self, mu: float) -> bool:
        if random.random() >= mu:
            return False
        options = [name for name in activations if name != self.function]
        self.function = random.choice(options)
        return True

    def resize(self, prev: Layer) -> None:
        n = prev.n_outputs - self.n_inputs
        if n == 0:
            return
        if n > 0:
            self.weights        = np.hstack([self.weights, np.random.normal(0.0, WEIGHT_SD, (self.n_outputs, n))])
            self.weight_active  = np.hstack([self.weight_active, np.ones((self.n_outputs, n), dtype=bool)])
            self.weight_updates = np.hstack([self.weight_updates, np.zeros((self.n_outputs, n))])
        else:
            self.weights        = self.weights[:, :prev.n_outputs].copy()
            self.weight_active  = self.weight_active[:, :prev.n_outputs].copy()
            self.weight_updates = self.weight_updates[:, :prev.n_outputs].copy()
        self.n_inputs = prev.n_outputs
        self._count_active()

    def save(self, fp: BinaryIO) -> int:
        s  = binio.write_ints(fp, [self.n_inputs, self.n_outputs, self.n_max, self.max_neuron_grow,
                                   int(self.options), activation_ids[self.function]])
        s += binio.write_doubles(fp, [self.eta, self.eta_max, self.eta_min, self.momentum, self.decay])
        s += binio.write_doubles(fp, self.weights)
        s += binio.write_bools(fp, self.weight_active)
        s += binio.write_doubles(fp, self.biases)
        s += binio.write_doubles(fp, self.weight_updates)
        s += binio.write_doubles(fp, self.bias_updates)
        s += binio.write_doubles(fp, self.mu)
        return s

    @classmethod
    def load(cls, fp: BinaryIO) -> 'ConnectedLayer':
        n_inputs, n_outputs, n_max, max_neuron_grow, options, function = binio.read_ints(fp, 6)
        if n_inputs < 1 or n_outputs < 1:
            raise CorruptDataError(f"connected layer with {n_inputs} inputs and {n_outputs} outputs")
        if function not in activation_names:
            raise CorruptDataError(f"Unknown activation function code: {function}")
        eta, eta_max, eta_min, momentum, decay = binio.read_doubles(fp, 5)

        layer = cls(int(n_inputs), int(n_outputs),
                    n_max           = int(n_max),
                    max_neuron_grow = int(max_neuron_grow),
                    function        = activation_names[function],
                    eta             = float(eta_max),
                    eta_min         = float(eta_min),
                    momentum        = float(momentum),
                    decay           = float(decay),
                    options         = LayerOpt(int(options)))
        layer.eta            = float(eta)
        n_weights            = layer.n_outputs * layer.n_inputs
        shape                = (layer.n_outputs, layer.n_inputs)
        layer.weights        = binio.read_doubles(fp, n_weights).reshape(shape)
        layer.weight_active  = binio.read_bools(fp, n_weights).reshape(shape)
        layer.biases         = binio.read_doubles(fp, layer.n_outputs)
        layer.weight_updates = binio.read_doubles(fp, n_weights).reshape(shape)
        layer.bias_updates   = binio.read_doubles(fp, layer.n_outputs)
        layer.mu             = binio.read_doubles(fp, len(MU_TYPE))
        layer._count_active()
        return layer

    def describe(self, print_weights: bool = False) -> str:
        s = f"{self}, eta={self.eta:.5f}"
        if print_weights:
            s += f", weights={np.array2string(self.weights, precision=4)}"
            s += f", biases={np.array2string(self.biases, precision=4)}"
        return s

    def __str__(self):
        return (f"connected {self.function}, in={self.n_inputs}, out={self.n_outputs}, "
                f"active={self.n_active}")
