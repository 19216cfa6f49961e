class ModelError(Exception):
    """ Base class for the errors raised by layers, networks, normalizers
    and the data interface
    """


class ShapeError(ModelError, ValueError):
    """ Raised on a dimension mismatch, e.g., an input vector that does
    not match a layer's width or a layer that does not fit its predecessor
    """


class ShapeMismatchError(ShapeError):
    """ Raised when an assembled input vector does not match the number
    of network inputs
    """


class StateError(ModelError, RuntimeError):
    """ Raised when reading a layer output before any forward pass
    """


class EmptyNetworkError(ModelError, RuntimeError):
    """ Raised when predicting or training with a network without layers
    """


class EmptyDatasetError(ModelError, ValueError):
    """ Raised when training is requested on an empty example set
    """


class MissingDataError(ModelError, ValueError):
    """ Raised when indicator data required for an input vector is missing
    """


class ConfigError(ModelError, ValueError):
    """ Raised for an unknown activation or normalization tag, or for a
    network configuration the requested operation does not support
    """


class ModelFormatError(ModelError, ValueError):
    """ Raised when a serialized model is truncated or malformed
    """
