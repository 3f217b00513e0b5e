import autograd.numpy as np  # type: ignore
from autograd import elementwise_grad  # type: ignore

def logistic_activation(z):
    Z = np.clip(z, -100, 100)   # to prevent under/overflow when calculating exp
    return 1.0 / (1.0 + np.exp(-Z))

def relu_activation(z):
    return np.maximum(0.0, z)

def tanh_activation(z):
    return np.tanh(z)

def linear_activation(z):
    return z

def gaussian_activation(z):
    return np.exp(-z * z)

def sin_activation(z):
    return np.sin(z)

def cos_activation(z):
    return np.cos(z)

def softplus_activation(z):
    Z = np.clip(z, -100, 100)
    return np.log1p(np.exp(Z))

def leaky_activation(z):
    return np.where(z > 0, z, 0.1 * z)

def selu_activation(z):
    Z = np.clip(z, -100, 100)
    return np.where(Z >= 0, 1.0507 * Z, 1.0507 * 1.6732 * (np.exp(Z) - 1.0))

def loggy_activation(z):
    Z = np.clip(z, -100, 100)
    return 2.0 / (1.0 + np.exp(-Z)) - 1.0

activations = {
    "logistic": logistic_activation,
    "relu"    : relu_activation,
    "tanh"    : tanh_activation,
    "linear"  : linear_activation,
    "gaussian": gaussian_activation,
    "sin"     : sin_activation,
    "cos"     : cos_activation,
    "softplus": softplus_activation,
    "leaky"   : leaky_activation,
    "selu"    : selu_activation,
    "loggy"   : loggy_activation
    }

# Derivatives used by backward passes
activation_gradients = {name: elementwise_grad(fn) for name, fn in activations.items()}

# Integer identifiers (stable, used in binary files)
activation_ids = {
    "logistic": 0,
    "relu"    : 1,
    "tanh"    : 2,
    "linear"  : 3,
    "gaussian": 4,
    "sin"     : 5,
    "cos"     : 6,
    "softplus": 7,
    "leaky"   : 8,
    "selu"    : 9,
    "loggy"   : 10
    }
activation_names = {code: name for name, code in activation_ids.items()}

# 3-letter identifiers for each activation function
activation_codes = {
    "logistic": "LOG",
    "relu"    : "RLU",
    "tanh"    : "TNH",
    "linear"  : "LIN",
    "gaussian": "GSS",
    "sin"     : "SIN",
    "cos"     : "COS",
    "softplus": "SFP",
    "leaky"   : "LKY",
    "selu"    : "SLU",
    "loggy"   : "LGY"
    }
