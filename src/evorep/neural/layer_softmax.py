"""
Softmax Layer Module

Classes:
    SoftmaxLayer: Temperature-scaled softmax
"""

import numpy as np

from evorep.neural.layer import ElementwiseLayer, LayerType, register_layer

@register_layer
class SoftmaxLayer(ElementwiseLayer):
    """
    Computes softmax(input / scale), where 'scale' is the temperature.

    The backward pass hands the output error straight to the upstream layer,
    which is the exact gradient when this layer is paired with a
    cross-entropy loss.
    """

    layer_type = LayerType.SOFTMAX

    def __init__(self, n_inputs: int, probability: float = 0.0, scale: float = 1.0):
        if scale <= 0:
            raise ValueError(f"Softmax temperature must be positive, got {scale}")
        super().__init__(n_inputs, probability, scale)

    def forward(self, input: np.ndarray, train: bool = False) -> None:
        z           = np.asarray(input, dtype=float)[:self.n_inputs] / self.scale
        e           = np.exp(z - np.max(z))
        self.output = e / np.sum(e)

    def backward(self, input: np.ndarray, delta: np.ndarray | None) -> None:
        if delta is not None:
            delta[:self.n_inputs] += self.delta
