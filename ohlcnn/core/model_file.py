""" Reading and writing model files.

A model file holds, in order:

1. the model version string (one line),
2. the normalization tag (0 = MinMax, 1 = ZScore),
3. the two normalization parameters (min/max range or mean/std),
4. the network, as written by :meth:`ohlcnn.network.Network.save`.
"""
import io
import logging

from ohlcnn.core.exception import ModelFormatError
from ohlcnn.network import Network
from ohlcnn.normalization import (
    NormalizationType, Normalizer, to_normalization_type)


_logger_name = __name__.rsplit('.', 1)[-1]
logger = logging.getLogger(_logger_name)

DEFAULT_MODEL_VERSION = "1.0"


def write_model(sink, network, normalizer,
                model_version=DEFAULT_MODEL_VERSION):
    """ Write the model version, normalizer and network to `sink` """
    sink.write("{}\n".format(model_version))
    sink.write("{:d}\n".format(int(normalizer.normalization_type)))

    if normalizer.normalization_type == NormalizationType.MIN_MAX:
        params = (normalizer.min_range, normalizer.max_range)
    else:
        params = (normalizer.mean, normalizer.std)

    sink.write("{} {}\n".format(*(repr(float(p)) for p in params)))

    network.save(sink)


def read_model(source, random_state=None):
    """ Read a model written by :func:`write_model`

    Returns
    -------
    network, normalizer, model_version: Network, Normalizer, str

    """
    model_version = source.readline().rstrip("\r\n")

    tag_line = source.readline()
    if not tag_line.strip():
        raise ModelFormatError("Missing normalization type")

    try:
        tag = int(tag_line.strip())
    except ValueError:
        msg = "Malformed normalization type: {!r}"
        raise ModelFormatError(msg.format(tag_line.strip()))

    normalizer = Normalizer(to_normalization_type(tag))

    params_line = source.readline().split()
    try:
        first, second = (float(token) for token in params_line)
    except ValueError:
        msg = "Malformed normalization parameters: {!r}"
        raise ModelFormatError(msg.format(" ".join(params_line)))

    if normalizer.normalization_type == NormalizationType.MIN_MAX:
        normalizer.set_min_max_range(first, second)
    else:
        normalizer.set_mean_std(first, second)

    network = Network(random_state=random_state)
    network.load(source)

    return network, normalizer, model_version


def save_model_file(filename, network, normalizer,
                    model_version=DEFAULT_MODEL_VERSION):
    """ Write a model file at `filename`. The file is written only after
    the whole model has been serialized.
    """
    buffer = io.StringIO()
    write_model(buffer, network, normalizer, model_version)

    with open(filename, 'w') as f:
        f.write(buffer.getvalue())

    msg = "Saved model version {} ({!r}) to {}"
    logger.info(msg.format(model_version, network, filename))


def load_model_file(filename, random_state=None):
    """ Read the model file at `filename`; see :func:`read_model` """
    with open(filename, 'r') as f:
        network, normalizer, model_version = read_model(
            f, random_state=random_state)

    msg = "Loaded model version {} ({!r}) from {}"
    logger.info(msg.format(model_version, network, filename))

    return network, normalizer, model_version
