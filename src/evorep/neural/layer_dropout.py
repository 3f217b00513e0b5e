"""
Dropout Layer Module

Classes:
    DropoutLayer: Randomly zeroes inputs while training
"""

import numpy as np

from evorep.neural.layer import ElementwiseLayer, Layer, LayerType, register_layer

@register_layer
class DropoutLayer(ElementwiseLayer):
    """
    While training, each input is dropped with probability 'probability' and
    the survivors are scaled by 1/(1 - probability). At inference the layer
    is the identity.
    """

    layer_type = LayerType.DROPOUT

    def __init__(self, n_inputs: int, probability: float = 0.0, scale: float = 1.0):
        if not 0.0 <= probability < 1.0:
            raise ValueError(f"Dropout probability must be in [0, 1), got {probability}")
        super().__init__(n_inputs, probability, 1.0 / (1.0 - probability))
        self._reset_mask()

    def _reset_mask(self) -> None:
        self._keep       = np.ones(self.n_inputs, dtype=bool)
        self._mask_scale = 1.0

    def forward(self, input: np.ndarray, train: bool = False) -> None:
        x = np.asarray(input, dtype=float)[:self.n_inputs]
        if train:
            self._keep       = np.random.random(self.n_inputs) >= self.probability
            self._mask_scale = self.scale
        else:
            self._reset_mask()
        self.output = np.where(self._keep, x * self._mask_scale, 0.0)

    def backward(self, input: np.ndarray, delta: np.ndarray | None) -> None:
        if delta is not None:
            delta[:self.n_inputs] += np.where(self._keep, self.delta * self._mask_scale, 0.0)

    def resize(self, prev: Layer) -> None:
        super().resize(prev)
        self._reset_mask()
