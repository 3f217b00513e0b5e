"""
Activations Package

This package provides the activation functions available to neural layers.

Exported:
    activations:          Dictionary mapping activation function names to functions
    activation_gradients: Dictionary mapping activation function names to their derivatives
    activation_ids:       Dictionary mapping activation function names to integer codes
    activation_names:     Dictionary mapping integer codes to activation function names
    activation_codes:     Dictionary mapping activation function names to 3-letter codes
"""

from evorep.activations.basic_activations import (
    activations,
    activation_gradients,
    activation_ids,
    activation_names,
    activation_codes,
    logistic_activation,
    relu_activation,
    tanh_activation,
    linear_activation,
    gaussian_activation,
    sin_activation,
    cos_activation,
    softplus_activation,
    leaky_activation,
    selu_activation,
    loggy_activation
)

__all__ = [
    'activations',
    'activation_gradients',
    'activation_ids',
    'activation_names',
    'activation_codes',
    'logistic_activation',
    'relu_activation',
    'tanh_activation',
    'linear_activation',
    'gaussian_activation',
    'sin_activation',
    'cos_activation',
    'softplus_activation',
    'leaky_activation',
    'selu_activation',
    'loggy_activation'
]
