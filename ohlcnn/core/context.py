import logging

from ohlcnn.activation import activation_from_name
from ohlcnn.core.exception import ConfigError, ModelError
from ohlcnn.core.interface import (
    DEFAULT_EPOCHS, DEFAULT_LEARNING_RATE, DataInterface)
from ohlcnn.core.model_file import (
    DEFAULT_MODEL_VERSION, load_model_file, save_model_file)
from ohlcnn.network import Network
from ohlcnn.normalization import Normalizer, to_normalization_type


_logger_name = __name__.rsplit('.', 1)[-1]
logger = logging.getLogger(_logger_name)


class NetworkContext(object):
    """ Owns the active network and normalizer for a host application.

    Every public method reports failure by its return value (False or an
    empty list) and a logged diagnostic; no exception raised by the
    network, the normalizer or the file system escapes. A context is not
    safe for concurrent use; callers serialize access to it.
    """

    def __init__(self, epochs=DEFAULT_EPOCHS,
                 learning_rate=DEFAULT_LEARNING_RATE, random_state=None):
        """
        Parameters
        ----------
        epochs: int, default=1
            Number of epochs per training call of :meth:`process_data`

        learning_rate: float, default=0.1
            Step size per training call of :meth:`process_data`

        random_state: numpy.random.RandomState, default=None
            Passed to the networks created by this context

        """
        self.epochs = epochs
        self.learning_rate = learning_rate
        self.random_state = random_state

        self.network = None
        self.normalizer = None
        self.model_version = DEFAULT_MODEL_VERSION

    def __repr__(self):
        return "<NetworkContext version={!r}, network={!r}>".format(
            self.model_version, self.network)

    @property
    def is_initialized(self):
        return self.network is not None and self.normalizer is not None

    def _require_initialized(self):
        if not self.is_initialized:
            raise ConfigError("Network not initialized.")

    def set_network_parameters(self, n_inputs, n_outputs, normalization_name,
                               model_version=DEFAULT_MODEL_VERSION):
        """ Replace the network with an empty one of the given shape and
        the normalizer with a fresh one of the named type ("MinMax" or
        "ZScore")

        Returns
        -------
        success: bool

        """
        try:
            normalization_type = to_normalization_type(normalization_name)
            self.network = Network(n_inputs, n_outputs,
                                   random_state=self.random_state)
            self.normalizer = Normalizer(normalization_type)
            self.model_version = model_version
        except (ModelError, TypeError, ValueError) as e:
            logger.error("Error setting parameters: {}".format(e))
            return False

        msg = "Configured {!r} with {} normalization (version {})"
        logger.info(msg.format(
            self.network, normalization_type.name, model_version))
        return True

    def add_layer(self, n_outputs, activation_name):
        """ Append a layer of `n_outputs` units with the named activation
        ("ReLU", "Sigmoid", "Tanh", "Linear" or "None")

        Returns
        -------
        success: bool

        """
        try:
            self._require_initialized()
            activation = activation_from_name(activation_name)
            self.network.add_layer(n_outputs, activation)
        except (ModelError, TypeError, ValueError) as e:
            logger.error("Error adding layer: {}".format(e))
            return False

        logger.debug("Added layer; network is now {!r}".format(self.network))
        return True

    def process_data(self, bars, indicators=None, use_indicators=True,
                     is_training=False):
        """ Train on `bars` (`is_training=True`) or predict for each bar

        Returns
        -------
        predictions: list of float
            One prediction per bar; empty after training or on failure

        """
        try:
            self._require_initialized()
            interface = DataInterface(
                self.network, self.normalizer, training=is_training,
                epochs=self.epochs, learning_rate=self.learning_rate)
            return interface.process_data(
                bars, indicators=indicators, use_indicators=use_indicators)
        except (ModelError, TypeError, ValueError) as e:
            logger.error("Error processing data: {}".format(e))
            return []

    def save_model(self, filename):
        """ Write the model version, normalizer and network to `filename`

        Returns
        -------
        success: bool

        """
        try:
            self._require_initialized()
            save_model_file(filename, self.network, self.normalizer,
                            self.model_version)
        except (ModelError, OSError) as e:
            logger.error("Error saving model: {}".format(e))
            return False
        return True

    def load_model(self, filename):
        """ Replace the model version, normalizer and network with those
        stored in `filename`. The context is unchanged on failure.

        Returns
        -------
        success: bool

        """
        try:
            network, normalizer, model_version = load_model_file(
                filename, random_state=self.random_state)
        except (ModelError, OSError, UnicodeDecodeError) as e:
            logger.error("Error loading model: {}".format(e))
            return False

        self.network = network
        self.normalizer = normalizer
        self.model_version = model_version
        return True
