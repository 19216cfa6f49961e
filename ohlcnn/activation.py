""" Activation functions and their derivatives.

Each activation is identified by a member of :class:`ActivationType`.
The integer value of a member is the tag written to model files, and the
member name used by :func:`activation_from_name` is the name accepted at
the host boundary (e.g., "ReLU" or "Tanh").

Every function accepts a float or a numpy array. Derivatives are the
standard ones; the training routines evaluate them on layer *outputs*,
i.e., on post-activation values.
"""
import enum

import numpy

from ohlcnn.core.exception import ConfigError


class ActivationType(enum.IntEnum):
    RELU = 0
    SIGMOID = 1
    TANH = 2
    LINEAR = 3
    NONE = 4


def relu(x):
    return numpy.maximum(0.0, x)


def relu_derivative(x):
    # The sub-gradient at zero is taken to be zero
    return numpy.where(numpy.asarray(x) > 0, 1.0, 0.0)


def sigmoid(x):
    return 1.0 / (1.0 + numpy.exp(-numpy.asarray(x, dtype=float)))


def sigmoid_derivative(x):
    sig = sigmoid(x)
    return sig * (1.0 - sig)


def tanh(x):
    return numpy.tanh(x)


def tanh_derivative(x):
    return 1.0 - numpy.tanh(x)**2


def identity(x):
    return numpy.asarray(x, dtype=float)


def identity_derivative(x):
    return numpy.ones_like(numpy.asarray(x, dtype=float))


_FUNCTIONS = {
    ActivationType.RELU: (relu, relu_derivative),
    ActivationType.SIGMOID: (sigmoid, sigmoid_derivative),
    ActivationType.TANH: (tanh, tanh_derivative),
    ActivationType.LINEAR: (identity, identity_derivative),
    ActivationType.NONE: (identity, identity_derivative),
}

_NAMES = {
    'ReLU': ActivationType.RELU,
    'Sigmoid': ActivationType.SIGMOID,
    'Tanh': ActivationType.TANH,
    'Linear': ActivationType.LINEAR,
    'None': ActivationType.NONE,
}


def get_activation(activation):
    """ Returns the pair `(function, derivative)` for `activation`

    Parameters
    ----------
    activation: ActivationType or int
        The activation tag

    Returns
    -------
    function, derivative: callable, callable

    """
    return _FUNCTIONS[to_activation_type(activation)]


def to_activation_type(activation):
    """ Validates `activation` and converts it to an ActivationType member.
    Raises ConfigError for unknown tags.
    """
    if isinstance(activation, ActivationType):
        return activation

    if isinstance(activation, str):
        return activation_from_name(activation)

    try:
        return ActivationType(int(activation))
    except (ValueError, TypeError):
        msg = "Unknown activation type: {!r}"
        raise ConfigError(msg.format(activation))


def activation_from_name(name):
    """ Look up an activation by its display name, e.g., "Sigmoid"
    """
    if name not in _NAMES:
        msg = "Invalid activation type {!r}; expected one of {}"
        raise ConfigError(msg.format(name, ", ".join(sorted(_NAMES))))
    return _NAMES[name]


def activation_name(activation):
    """ The display name of `activation`, the inverse of
    :func:`activation_from_name`
    """
    activation = to_activation_type(activation)
    for name, member in _NAMES.items():
        if member is activation:
            return name
