"""
Noise Layer Module

Classes:
    NoiseLayer: Adds Gaussian noise to inputs while training
"""

import numpy as np

from evorep.neural.layer import ElementwiseLayer, LayerType, register_layer

@register_layer
class NoiseLayer(ElementwiseLayer):
    """
    While training, each input is perturbed with probability 'probability' by
    Gaussian noise of standard deviation 'scale'. At inference the layer is
    the identity. Gradients pass through unchanged.
    """

    layer_type = LayerType.NOISE

    def forward(self, input: np.ndarray, train: bool = False) -> None:
        x = np.asarray(input, dtype=float)[:self.n_inputs]
        if not train or self.probability <= 0:
            self.output = x.copy()
            return
        hit         = np.random.random(self.n_inputs) < self.probability
        noise       = np.random.normal(0.0, self.scale, self.n_inputs)
        self.output = np.where(hit, x + noise, x)

    def backward(self, input: np.ndarray, delta: np.ndarray | None) -> None:
        if delta is not None:
            delta[:self.n_inputs] += self.delta
