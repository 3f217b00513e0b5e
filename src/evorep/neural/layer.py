"""
Neural Layer Base Module

This module defines the contract every neural layer variant satisfies so that
a Network can chain, train, evolve and persist layers without knowing their
internals.

Classes:
    LayerType: Integer tags identifying layer variants (stored in binary files)
    LayerOpt:  Bit flags granting a layer its evolutionary / learning permissions
    Layer:            Abstract base class for all layer variants
    ElementwiseLayer: Base class for weightless, width-preserving variants

Functions:
    register_layer: Class decorator adding a variant to the tag => class registry
    layer_class:    Look up the class implementing a variant tag
"""

import copy
import numpy as np
from abc    import ABC, abstractmethod
from enum   import IntEnum, IntFlag
from typing import BinaryIO

from evorep.errors import CorruptDataError
from evorep.utils  import binio

class LayerType(IntEnum):
    """
    Layer variant tags. The integer values are part of the binary file format.
    """
    CONNECTED     = 0
    DROPOUT       = 1
    NOISE         = 2
    SOFTMAX       = 3
    RECURRENT     = 4
    LSTM          = 5
    MAXPOOL       = 6
    CONVOLUTIONAL = 7
    AVGPOOL       = 8
    UPSAMPLE      = 9

    @property
    def receives_images(self) -> bool:
        """Whether this variant consumes (channels, height, width) shaped input."""
        return self in (LayerType.CONVOLUTIONAL, LayerType.MAXPOOL,
                        LayerType.AVGPOOL, LayerType.UPSAMPLE)

    @property
    def has_weights(self) -> bool:
        """Whether this variant carries trainable weights."""
        return self in (LayerType.CONNECTED, LayerType.RECURRENT,
                        LayerType.LSTM, LayerType.CONVOLUTIONAL)

class LayerOpt(IntFlag):
    """
    Permissions granted to a layer.
    """
    NONE             = 0
    EVOLVE_WEIGHTS   = 1 << 0
    EVOLVE_NEURONS   = 1 << 1
    EVOLVE_FUNCTIONS = 1 << 2
    SGD_WEIGHTS      = 1 << 3
    EVOLVE_ETA       = 1 << 4
    EVOLVE_CONNECT   = 1 << 5

_registry: dict[LayerType, type['Layer']] = {}

def register_layer(cls: type['Layer']) -> type['Layer']:
    """
    Class decorator registering a concrete layer under its 'layer_type' tag.
    """
    _registry[cls.layer_type] = cls
    return cls

def layer_class(tag: int) -> type['Layer']:
    """
    Get the class implementing a layer variant.

    Parameters:
        tag: The variant tag (as read from a file or taken from LayerArgs)

    Returns:
        The registered Layer subclass

    Raises:
        CorruptDataError if the tag is not a known variant or has no implementation
    """
    try:
        return _registry[LayerType(tag)]
    except (ValueError, KeyError):
        raise CorruptDataError(f"Unknown or unsupported layer type: {tag}") from None

class Layer(ABC):
    """
    Abstract base class for neural network layers.

    A layer owns its 'output' and 'delta' buffers (both of length 'n_outputs')
    and is owned by exactly one position of one Network.

    Public Attributes:
        layer_type: Variant tag (class attribute)
        options:    LayerOpt permissions
        n_inputs:   Number of inputs consumed
        n_outputs:  Number of outputs produced
        n_active:   Number of active (non-zero) weights; 0 for weightless variants
        output:     Output buffer, shape (n_outputs,)
        delta:      Error gradient w.r.t. the output, shape (n_outputs,)
        mu:         Self-adaptive mutation rates (empty for variants that do not mutate)

    Public Methods (must be implemented by subclasses):
        forward(input, train):  Compute 'output' from 'input'
        backward(input, delta): Accumulate this layer's gradients and add the
                                error w.r.t. 'input' into 'delta' (if not None)
        update():               Apply accumulated gradients to the parameters
        mutate():               Stochastically mutate; returns whether anything changed
        resize(prev):           Match 'n_inputs' to the upstream layer's 'n_outputs'
        randomize():            Re-draw the trainable parameters
        copy():                 Return a deep copy
        save(fp):               Write the layer payload; returns number of elements written
        load(fp):               (classmethod) Read a layer payload written by 'save'
    """

    layer_type: LayerType

    def __init__(self, n_inputs: int, n_outputs: int, options: LayerOpt = LayerOpt.NONE):
        self.options  : LayerOpt   = LayerOpt(options)
        self.n_inputs : int        = n_inputs
        self.n_outputs: int        = n_outputs
        self.n_active : int        = 0
        self.output   : np.ndarray = np.zeros(n_outputs)
        self.delta    : np.ndarray = np.zeros(n_outputs)
        self.mu       : np.ndarray = np.zeros(0)

    @abstractmethod
    def forward(self, input: np.ndarray, train: bool = False) -> None:
        pass

    @abstractmethod
    def backward(self, input: np.ndarray, delta: np.ndarray | None) -> None:
        pass

    @abstractmethod
    def update(self) -> None:
        pass

    @abstractmethod
    def mutate(self) -> bool:
        pass

    @abstractmethod
    def resize(self, prev: 'Layer') -> None:
        pass

    @abstractmethod
    def randomize(self) -> None:
        pass

    @abstractmethod
    def save(self, fp: BinaryIO) -> int:
        pass

    @classmethod
    @abstractmethod
    def load(cls, fp: BinaryIO) -> 'Layer':
        pass

    def copy(self) -> 'Layer':
        """Return a deep copy; no buffer is shared with the original."""
        return copy.deepcopy(self)

    def describe(self, print_weights: bool = False) -> str:
        """One-line summary of the layer (weight values are only listed by weighted variants)."""
        return str(self)

    def _resize_buffers(self) -> None:
        """Re-allocate 'output' and 'delta' after 'n_outputs' changed."""
        self.output = np.zeros(self.n_outputs)
        self.delta  = np.zeros(self.n_outputs)

    def __str__(self):
        return f"{self.layer_type.name.lower()}, in={self.n_inputs}, out={self.n_outputs}"

class ElementwiseLayer(Layer):
    """
    Base class for weightless layers whose output width always equals their
    input width (dropout, noise, softmax). Such layers never mutate, have
    nothing to train, and persist only their width and two real parameters.

    Public Attributes (in addition to those of Layer):
        probability: Per-element probability parameter (meaning depends on the variant)
        scale:       Scale parameter (meaning depends on the variant)
    """

    def __init__(self, n_inputs: int, probability: float = 0.0, scale: float = 1.0):
        super().__init__(n_inputs, n_inputs)
        self.probability: float = probability
        self.scale      : float = scale

    @classmethod
    def from_args(cls, args, n_inputs: int) -> 'ElementwiseLayer':
        return cls(n_inputs, probability=args.probability, scale=args.scale)

    def update(self) -> None:
        pass

    def mutate(self) -> bool:
        return False

    def randomize(self) -> None:
        pass

    def resize(self, prev: Layer) -> None:
        self.n_inputs  = prev.n_outputs
        self.n_outputs = prev.n_outputs
        self._resize_buffers()

    def save(self, fp: BinaryIO) -> int:
        s  = binio.write_ints(fp, [self.n_inputs])
        s += binio.write_doubles(fp, [self.probability, self.scale])
        return s

    @classmethod
    def load(cls, fp: BinaryIO) -> 'ElementwiseLayer':
        n_inputs = binio.read_int(fp)
        if n_inputs < 1:
            raise CorruptDataError(f"{cls.layer_type.name.lower()} layer with {n_inputs} inputs")
        probability, scale = binio.read_doubles(fp, 2)
        return cls(n_inputs, probability=float(probability), scale=float(scale))
