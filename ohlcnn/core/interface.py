from collections.abc import Mapping
import logging

import numpy

from ohlcnn.core.exception import (
    ConfigError, MissingDataError, ShapeMismatchError)
from ohlcnn.data.storage import BarStorage
from ohlcnn.network import TRAINING_N_INPUTS, examples_from_bars
from ohlcnn.normalization import Normalizer


_logger_name = __name__.rsplit('.', 1)[-1]
logger = logging.getLogger(_logger_name)

DEFAULT_EPOCHS = 1
DEFAULT_LEARNING_RATE = 0.1


class DataInterface(object):
    """ Wires bars and indicators through normalization into a network,
    either to train it or to predict with it
    """

    def __init__(self, network, normalizer=None, training=False,
                 epochs=DEFAULT_EPOCHS, learning_rate=DEFAULT_LEARNING_RATE):
        """
        Parameters
        ----------
        network: Network
            The network to train or predict with

        normalizer: Normalizer, default=None
            The normalization applied to bars before they reach the
            network. The default (None) uses a MinMax normalizer.

        training: bool, default=False
            If True, :meth:`process_data` trains the network; otherwise it
            predicts

        epochs: int, default=1
            Number of epochs per training call

        learning_rate: float, default=0.1
            Gradient descent step size for training

        """
        self.network = network
        self.normalizer = normalizer if normalizer is not None \
            else Normalizer()
        self.training = training
        self.epochs = epochs
        self.learning_rate = learning_rate

    def set_training_mode(self, training):
        self.training = bool(training)

    def process_data(self, bars, indicators=None, use_indicators=True):
        """ Train on, or predict for, a sequence of bars

        Parameters
        ----------
        bars: sequence of Bar
            The (raw) bars

        indicators: dict, default=None
            Indicator series keyed by name. The i'th value of each series
            belongs to the i'th bar.

        use_indicators: bool, default=True
            If False, `indicators` is ignored

        Returns
        -------
        predictions: list of float
            The first network output for each bar in inference mode; an
            empty list in training mode.

        """
        if indicators is not None and not isinstance(indicators, Mapping):
            msg = "`indicators` should map names to series, got {}"
            raise TypeError(msg.format(type(indicators).__name__))

        indicators = indicators if use_indicators and indicators else {}

        if self.training:
            storage = BarStorage(bars=bars)
            for name, values in indicators.items():
                storage.add_indicator(
                    name, _zero_filled(values, len(storage)))

            self.normalizer.normalize_storage(storage)
            self._train_network(storage)
            return []

        predictions = []
        storage = BarStorage(bars=bars)

        for i, bar in enumerate(storage.bars):
            single_bar_storage = BarStorage(bars=[bar])

            for name, values in indicators.items():
                single_bar_storage.add_indicator(name, list(values[i:i+1]))

            self.normalizer.normalize_storage(single_bar_storage)

            input_vector = self.create_input_vector(
                single_bar_storage.get_bar(0),
                single_bar_storage.indicators,
                use_indicators)

            if input_vector.shape[0] != self.network.n_inputs:
                msg = ("Input vector has {} values but the network expects "
                       "{}")
                raise ShapeMismatchError(msg.format(
                    input_vector.shape[0], self.network.n_inputs))

            predictions.append(float(self.network.predict(input_vector)[0]))

        return predictions

    def create_input_vector(self, bar, indicators, use_indicators=True):
        """ `[open, close, high, low]`, followed by the first value of each
        indicator series (in name order) when `use_indicators` is True
        """
        values = [bar.open, bar.close, bar.high, bar.low]

        if use_indicators:
            for name in sorted(indicators):
                series = indicators[name]
                if len(series) == 0:
                    msg = "Indicator data is missing: {}"
                    raise MissingDataError(msg.format(name))
                values.append(series[0])

        return numpy.array(values, dtype=float)

    def _train_network(self, storage):
        if (self.network.n_inputs != TRAINING_N_INPUTS and
                storage.n_indicators > 0):
            msg = ("Network has {} inputs but training uses the {} bar "
                   "fields only")
            raise ConfigError(msg.format(
                self.network.n_inputs, TRAINING_N_INPUTS))

        examples = examples_from_bars(storage.bars)

        msg = "Training on {} bar(s) for {} epoch(s), learning rate {}"
        logger.info(msg.format(len(examples), self.epochs, self.learning_rate))

        return self.network.train(examples, self.epochs, self.learning_rate)


def _zero_filled(values, length):
    """ The first `length` entries of `values`, padded with zeros """
    values = list(values)[:length]
    return values + [0.0] * (length - len(values))
