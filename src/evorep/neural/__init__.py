"""
Neural Package

This package implements neural networks whose topology can change during
evolution: a Network is a chain of Layer objects that can be trained by
gradient descent, structurally mutated, and persisted.

Modules:
    layer:           Layer contract, variant tags, permission flags, registry
    layer_connected: Dense layer with evolvable weights, neurons, connectivity and activation
    layer_dropout:   Dropout layer
    layer_noise:     Gaussian noise layer
    layer_softmax:   Softmax layer
    network:         The chain of layers
    layer_args:      Construction records and the network builder

Exported Classes:
    Layer, ElementwiseLayer, LayerType, LayerOpt
    ConnectedLayer, DropoutLayer, NoiseLayer, SoftmaxLayer
    Network
    LayerArgs
"""

from evorep.neural.layer           import ElementwiseLayer, Layer, LayerOpt, LayerType, layer_class
from evorep.neural.layer_connected import ConnectedLayer
from evorep.neural.layer_dropout   import DropoutLayer
from evorep.neural.layer_noise     import NoiseLayer
from evorep.neural.layer_softmax   import SoftmaxLayer
from evorep.neural.network         import Network
from evorep.neural.layer_args      import (LayerArgs,
                                           build_network,
                                           describe_layer_args,
                                           layer_args_opt,
                                           load_layer_args,
                                           save_layer_args,
                                           validate_layer_args)

__all__ = ['ConnectedLayer',
           'DropoutLayer',
           'ElementwiseLayer',
           'Layer',
           'LayerArgs',
           'LayerOpt',
           'LayerType',
           'Network',
           'NoiseLayer',
           'SoftmaxLayer',
           'build_network',
           'describe_layer_args',
           'layer_args_opt',
           'layer_class',
           'load_layer_args',
           'save_layer_args',
           'validate_layer_args']
