"""
Neural Network Module

This module implements a neural network as a mutable chain of layers. The
chain can be grown and shrunk at either end or in the middle, trained by
gradient descent, structurally mutated, and persisted to a binary file.

Layers are kept in a list ordered from the input end (index 0) to the output
end (index -1). Positions passed to 'insert' and 'remove' count from the
output end: position 0 is the output-end layer and position 'n_layers - 1'
the input-end layer.

Classes:
    Network: A chain of layers computing one function from input to output
"""

import logging
import numpy as np
from pathlib import Path
from typing  import BinaryIO
import graphviz  # type: ignore

from evorep.errors       import CorruptDataError
from evorep.neural.layer import Layer, layer_class
from evorep.utils        import binio

logger = logging.getLogger(__name__)

class Network:
    """
    A neural network made of an ordered chain of layers.

    Invariants:
        - adjacent layers agree on width: the upstream layer's 'n_outputs'
          equals the downstream layer's 'n_inputs' (restored by 'resize()'
          after any external change, maintained by 'mutate()')
        - 'n_inputs', 'n_outputs' and 'output' always reflect the current
          input-end and output-end layers
        - every layer belongs to exactly one network; copies are deep

    Public Properties:
        n_layers:  Number of layers in the chain
        n_inputs:  Number of inputs consumed by the input-end layer
        n_outputs: Number of outputs produced by the output-end layer
        layers:    The layers, ordered from input end to output end (read-only view)

    Public Methods:
        insert(layer, position): Insert a layer 'position' places from the output end
        remove(position):        Remove the layer 'position' places from the output end
        push(layer):             Insert a new input-end layer
        pop():                   Remove the input-end layer
        copy():                  Deep copy of the network
        randomize():             Re-draw every layer's trainable parameters
        propagate(input, train): Forward pass
        learn(truth, input):     One gradient descent step
        mutate():                Mutate every layer, keeping widths consistent
        resize():                Repair width mismatches between adjacent layers
        output(i), outputs():    Read the network's output
        size():                  Number of active weights
        save(fp), load(fp):      Binary persistence
        describe(print_weights): Textual rendering of the chain
        visualize(view):         Graphviz rendering of the chain
    """

    def __init__(self):
        """
        Initialize an empty network; layers are added with 'insert' or 'push'.
        """
        self._layers: list[Layer] = []

    @property
    def n_layers(self) -> int:
        return len(self._layers)

    @property
    def n_inputs(self) -> int:
        return self._layers[0].n_inputs if self._layers else 0

    @property
    def n_outputs(self) -> int:
        return self._layers[-1].n_outputs if self._layers else 0

    @property
    def layers(self) -> tuple[Layer, ...]:
        return tuple(self._layers)

    def __len__(self):
        return len(self._layers)

    def _index(self, position: int) -> int:
        """List index of the layer 'position' places from the output end."""
        if not 0 <= position < len(self._layers):
            raise IndexError(f"No layer at position {position} (network has {len(self._layers)} layers)")
        return len(self._layers) - 1 - position

    def insert(self, layer: Layer, position: int) -> None:
        """
        Insert a layer into the chain.

        Parameters:
            layer:    The layer to insert (the network takes ownership)
            position: Distance from the output end; 0 makes 'layer' the new
                      output-end layer and 'n_layers' the new input-end layer
        """
        if not 0 <= position <= len(self._layers):
            raise IndexError(f"Cannot insert at position {position} (network has {len(self._layers)} layers)")
        if any(layer is other for other in self._layers):
            raise ValueError("Layer is already part of this network")
        self._layers.insert(len(self._layers) - position, layer)
        logger.debug(f"inserted {layer} at position {position}")

    def remove(self, position: int) -> None:
        """
        Remove and discard a layer. A network always keeps at least one layer.

        Parameters:
            position: Distance from the output end of the layer to remove

        Raises:
            IndexError if there is no layer at 'position'
            ValueError if the layer is the only one in the network
        """
        idx = self._index(position)
        if len(self._layers) == 1:
            raise ValueError("Attempted to remove the only layer of the network")
        layer = self._layers.pop(idx)
        logger.debug(f"removed {layer} from position {position}")

    def push(self, layer: Layer) -> None:
        """Insert 'layer' at the input end."""
        self.insert(layer, len(self._layers))

    def pop(self) -> None:
        """Remove the input-end layer."""
        self.remove(len(self._layers) - 1)

    def copy(self) -> 'Network':
        """
        Deep copy: every layer is cloned, walking from the output end to the input end.
        """
        net = Network()
        for layer in reversed(self._layers):
            net.push(layer.copy())
        return net

    def randomize(self) -> None:
        for layer in self._layers:
            layer.randomize()

    def propagate(self, input, train: bool = False) -> np.ndarray:
        """
        Forward pass from the input end to the output end.

        Parameters:
            input: The external input, length 'n_inputs'
            train: Whether stochastic training-time behaviour (dropout, noise) is enabled

        Returns:
            The network outputs
        """
        x = np.asarray(input, dtype=float)
        for layer in self._layers:
            layer.forward(x, train)
            x = layer.output
        return self.outputs()

    def learn(self, truth, input) -> None:
        """
        Perform one gradient descent step towards 'truth', assuming 'propagate(input)'
        was the most recent forward pass.

        The output error is truth - output (the squared-error gradient). All
        deltas are cleared before the backward phase and no parameter is
        updated before the backward phase has finished.

        Parameters:
            truth: Target outputs, length 'n_outputs'
            input: The external input of the last forward pass

        Raises:
            ValueError if 'truth' does not hold exactly 'n_outputs' values
        """
        truth = np.asarray(truth, dtype=float)
        if truth.shape != (self.n_outputs,):
            raise ValueError(f"Expected {self.n_outputs} target values, got {truth.size}")

        for layer in self._layers:
            layer.delta = np.zeros(layer.n_outputs)

        head       = self._layers[-1]
        head.delta = truth - head.output

        x = np.asarray(input, dtype=float)
        for idx in range(len(self._layers) - 1, -1, -1):
            if idx == 0:
                self._layers[idx].backward(x, None)
            else:
                prev = self._layers[idx - 1]
                self._layers[idx].backward(prev.output, prev.delta)

        for layer in self._layers:
            layer.update()

    def mutate(self) -> bool:
        """
        Mutate every layer from the input end to the output end.

        When a layer's width changes, the next layer downstream is resized to
        match before it is itself mutated.

        Returns:
            Whether any layer was modified
        """
        mod       = False
        do_resize = False
        prev      = None
        for layer in self._layers:
            orig_outputs = layer.n_outputs
            if do_resize:
                layer.resize(prev)
                do_resize = False
            if layer.mutate():
                mod = True
            if layer.n_outputs != orig_outputs:
                do_resize = True
            prev = layer
        return mod

    def resize(self) -> None:
        """
        Repair every adjacent pair of layers whose widths disagree by resizing
        the downstream layer, walking from the input end to the output end.
        """
        for prev, layer in zip(self._layers, self._layers[1:]):
            if layer.n_inputs != prev.n_outputs:
                logger.debug(f"resizing {layer}: {layer.n_inputs} => {prev.n_outputs} inputs")
                layer.resize(prev)

    def output(self, i: int) -> float:
        """
        Get the output of neuron 'i' of the output-end layer.

        Raises:
            IndexError if 'i' is not in [0, n_outputs)
        """
        if not 0 <= i < self.n_outputs:
            raise IndexError(f"Output index ({i}) out of range [0, {self.n_outputs})")
        return float(self._layers[-1].output[i])

    def outputs(self) -> np.ndarray:
        """Get the output buffer of the output-end layer."""
        return self._layers[-1].output

    def size(self) -> int:
        """
        Total number of active weights across all weighted layers.
        """
        return sum(layer.n_active for layer in self._layers if layer.layer_type.has_weights)

    def save(self, fp: BinaryIO) -> int:
        """
        Write the network to a binary file: the (n_layers, n_inputs, n_outputs)
        header, then each layer's variant tag and payload from the output end
        to the input end.

        Returns:
            The number of elements written

        Raises:
            ValueError if the network has no layers (an empty chain cannot be loaded back)
        """
        if not self._layers:
            raise ValueError("Cannot save a network without layers")
        s = binio.write_ints(fp, [self.n_layers, self.n_inputs, self.n_outputs])
        for layer in reversed(self._layers):
            s += binio.write_ints(fp, [int(layer.layer_type)])
            s += layer.save(fp)
        logger.debug(f"saved network of {self.n_layers} layers ({s} elements)")
        return s

    @classmethod
    def load(cls, fp: BinaryIO) -> 'Network':
        """
        Read a network written by 'save'.

        Raises:
            CorruptDataError if the file is truncated or holds an unknown layer type
        """
        n_layers, n_inputs, n_outputs = (int(v) for v in binio.read_ints(fp, 3))
        if n_layers < 1:
            raise CorruptDataError(f"Invalid number of layers: {n_layers}")
        net = cls()
        for _ in range(n_layers):
            tag = binio.read_int(fp)
            net.push(layer_class(tag).load(fp))
        if net.n_inputs != n_inputs or net.n_outputs != n_outputs:
            raise CorruptDataError(f"Header declares {n_inputs} => {n_outputs} but layers give "
                                   f"{net.n_inputs} => {net.n_outputs}")
        return net

    def save_file(self, path: str | Path) -> int:
        with open(path, 'wb') as fp:
            return self.save(fp)

    @classmethod
    def load_file(cls, path: str | Path) -> 'Network':
        with open(path, 'rb') as fp:
            return cls.load(fp)

    def describe(self, print_weights: bool = False) -> str:
        """
        Render the chain one layer per line, from the input end to the output end.
        """
        return "\n".join(f"layer ({i}) {layer.describe(print_weights)}"
                         for i, layer in enumerate(self._layers))

    def visualize(self, view: bool = False) -> graphviz.Digraph:
        """
        Visualize the chain of layers using Graphviz.

        Parameters:
            view: If True, automatically open the visualization after rendering

        Returns:
            graphviz.Digraph object representing the network
        """
        dot = graphviz.Digraph()
        dot.attr(rankdir='LR')  # Left to right layout

        node_attrs = {'style': 'filled', 'shape': 'box', 'penwidth': '0.5', 'fontsize': '8'}

        dot.node('input', label=f"input\\n{self.n_inputs}", fillcolor='lightgrey', **node_attrs)
        prev = 'input'
        for i, layer in enumerate(self._layers):
            label = str(layer).replace(', ', '\\n')
            dot.node(f"layer{i}", label=label, fillcolor='lightblue', **node_attrs)
            dot.edge(prev, f"layer{i}", label=str(layer.n_inputs), fontsize='6')
            prev = f"layer{i}"
        dot.node('output', label=f"output\\n{self.n_outputs}", fillcolor='white', **node_attrs)
        dot.edge(prev, 'output', label=str(self.n_outputs), fontsize='6')

        if view:
            dot.view(cleanup=True)

        return dot

    def __str__(self):
        return self.describe()
