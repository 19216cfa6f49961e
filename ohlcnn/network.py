"""
A feed-forward neural network for regression on OHLC bars.

Layers are appended one at a time. Training is plain stochastic gradient
descent on the squared error, one example at a time and in order, with
classical momentum on both weights and biases.

The training routine is specialized to bars: four inputs
(open, close, high, low) and a single output (the close).
"""
from collections import namedtuple
import logging

import numpy

from ohlcnn.activation import ActivationType, to_activation_type
from ohlcnn.core.exception import (
    ConfigError, EmptyDatasetError, EmptyNetworkError, ModelFormatError,
    ShapeError)
from ohlcnn.core.logger import format_progress
from ohlcnn.layer import Layer


_logger_name = __name__.rsplit('.', 1)[-1]
logger = logging.getLogger(_logger_name)

DEFAULT_MOMENTUM = 0.9

# The training routine only supports bars as inputs and close as target
TRAINING_N_INPUTS = 4
TRAINING_N_OUTPUTS = 1


TrainingExample = namedtuple('TrainingExample', ['input', 'target'])


def examples_from_bars(bars):
    """ Build the training examples for a sequence of bars: the input is
    `[open, close, high, low]` and the target is `[close]`
    """
    return [
        TrainingExample(
            input=numpy.array(
                [bar.open, bar.close, bar.high, bar.low], dtype=float),
            target=numpy.array([bar.close], dtype=float))
        for bar in bars
    ]


class Network(object):
    """ An ordered sequence of dense layers
    """
    def __init__(self, n_inputs=0, n_outputs=0, momentum=DEFAULT_MOMENTUM,
                 random_state=None):
        """
        Parameters
        ----------
        n_inputs: int, default=0
            The declared number of network inputs. Used as the input width
            of the first layer added with :meth:`add_layer`.

        n_outputs: int, default=0
            The declared number of network outputs. Tracks the output
            width of the last layer once layers exist.

        momentum: float, default=0.9
            The fraction of the previous update carried into the current
            weight and bias updates.

        random_state: numpy.random.RandomState, default=None
            Passed to the layers created by :meth:`add_layer` for
            reproducible weight initialization.
        """
        self._n_inputs = int(n_inputs)
        self._n_outputs = int(n_outputs)
        self.momentum = momentum
        self.rs = numpy.random.RandomState() if random_state is None \
            else random_state

        self._layers = []

        # Momentum accumulators are allocated on the first update step.
        self._previous_weight_updates = None
        self._previous_bias_updates = None

    def __repr__(self):
        widths = [self.n_inputs] + [layer.n_outputs for layer in self._layers]
        return "<Network widths=%s>" % ("->".join(map(str, widths)))

    def __len__(self):
        return len(self._layers)

    @property
    def n_inputs(self):
        return self._n_inputs

    @property
    def n_outputs(self):
        return self._n_outputs

    @property
    def layers(self):
        return tuple(self._layers)

    def get_layers(self):
        return list(self._layers)

    def add_layer(self, n_outputs, activation=ActivationType.RELU):
        """ Create and append a layer whose input width is the output width
        of the last layer (or the declared number of inputs for the first)

        Returns
        -------
        layer: Layer
            The appended layer
        """
        n_inputs = self._layers[-1].n_outputs if self._layers \
            else self.n_inputs
        layer = Layer(n_inputs, n_outputs,
                      activation=activation, random_state=self.rs)
        self.append_layer(layer)
        return layer

    def append_layer(self, layer):
        """ Append an existing layer. Its input width must match the output
        width of the current last layer; the network is unchanged if not.
        """
        if not isinstance(layer, Layer):
            msg = "`layer` should be an instance of Layer, got {}"
            raise TypeError(msg.format(type(layer).__name__))

        if self._layers and self._layers[-1].n_outputs != layer.n_inputs:
            msg = ("Number of inputs in new layer ({}) must match the "
                   "number of outputs in the previous layer ({})")
            raise ShapeError(msg.format(
                layer.n_inputs, self._layers[-1].n_outputs))

        self._layers.append(layer)

        if len(self._layers) == 1:
            self._n_inputs = layer.n_inputs
        self._n_outputs = layer.n_outputs

        # Extend the momentum accumulators if they exist already
        if self._previous_weight_updates is not None:
            self._previous_weight_updates.append(
                numpy.zeros((layer.n_outputs, layer.n_inputs)))
            self._previous_bias_updates.append(numpy.zeros(layer.n_outputs))

    def predict(self, x):
        """
        Parameters
        ----------
        x: array-like, shape=(n_inputs,)
            The input vector.

        Returns
        -------
        output: ndarray, shape=(n_outputs,)
            The output of the last layer.
        """
        if not self._layers:
            raise EmptyNetworkError(
                "Neural network is empty. Add layers before predicting.")

        x = numpy.asarray(x, dtype=float)

        if x.ndim != 1 or x.shape[0] != self.n_inputs:
            msg = "Input size mismatch: got shape {}, network expects ({},)"
            raise ShapeError(msg.format(x.shape, self.n_inputs))

        output = x
        for layer in self._layers:
            output = layer.forward(output)

        return output

    def loss(self, examples):
        """ The mean squared error over `examples` (no mutation of weights)
        """
        diffs = [self.predict(example.input) - example.target
                 for example in examples]
        if not diffs:
            raise EmptyDatasetError("Cannot compute loss without examples.")
        diffs = numpy.concatenate(diffs)
        return float(numpy.dot(diffs, diffs) / diffs.shape[0])

    def train(self, examples, epochs, learning_rate):
        """
        Run `epochs` passes of per-example gradient descent with momentum.

        Parameters
        ----------
        examples: sequence of TrainingExample
            The `(input, target)` pairs visited in order at each epoch.

        epochs: int
            Number of passes over `examples`.

        learning_rate: float
            Gradient descent step size.

        Returns
        -------
        losses: list of float, len=epochs
            Mean squared error of the outputs observed during each epoch
            (i.e., prior to each example's weight update).
        """
        if not self._layers:
            raise EmptyNetworkError(
                "Neural network is empty. Add layers before training.")

        examples = list(examples)

        if not examples:
            raise EmptyDatasetError(
                "Training data is empty. Provide data before training.")

        if self.n_inputs != TRAINING_N_INPUTS:
            msg = "Input size must be {} (OHLC) for training, got {}"
            raise ConfigError(msg.format(TRAINING_N_INPUTS, self.n_inputs))

        if self.n_outputs != TRAINING_N_OUTPUTS:
            msg = "Output size must be {} for training, got {}"
            raise ConfigError(msg.format(TRAINING_N_OUTPUTS, self.n_outputs))

        self._allocate_momentum()

        losses = []

        for epoch in range(epochs):
            sq_error = 0.0

            for example in examples:
                x = numpy.asarray(example.input, dtype=float)
                target = numpy.asarray(example.target, dtype=float)

                output = self.predict(x)
                self.backpropagate(target, output, x)
                self.update_weights(learning_rate, x)

                diff = target - output
                sq_error += float(numpy.dot(diff, diff))

            losses.append(sq_error / (len(examples) * self.n_outputs))

            logger.debug(format_progress(
                "Epoch MSE = {:.7f}".format(losses[-1]), epoch+1, epochs))

        if losses:
            msg = "Trained {} epoch(s) on {} example(s), final MSE = {:.7f}"
            logger.info(msg.format(epochs, len(examples), losses[-1]))

        return losses

    def backpropagate(self, target, output, x):
        """
        Compute and stage the deltas of every layer for one example.

        Parameters
        ----------
        target: array-like, shape=(n_outputs,)
            The desired network output.

        output: array-like, shape=(n_outputs,)
            The network output for `x` (from :meth:`predict`).

        x: array-like, shape=(n_inputs,)
            The training input that produced `output`.
        """
        if not self._layers:
            raise EmptyNetworkError(
                "Cannot backpropagate on an empty network.")

        target = numpy.asarray(target, dtype=float)
        output = numpy.asarray(output, dtype=float)

        last = self._layers[-1]

        if target.shape != (last.n_outputs,):
            msg = "Target was shape {} but the output layer has {} units"
            raise ShapeError(msg.format(target.shape, last.n_outputs))

        deltas = [None] * len(self._layers)
        deltas[-1] = (target - output) * last.activation_derivative(output)

        # Walk the hidden layers from n_layers-2 down to 0 inclusive.
        for index in range(len(self._layers) - 2, -1, -1):
            layer = self._layers[index]
            next_layer = self._layers[index + 1]

            weighted_sum = numpy.dot(next_layer.weights.T, deltas[index + 1])

            # Re-run this layer on the input belonging to the current
            # example, not on a stale cached output.
            layer_input = x if index == 0 \
                else self._layers[index - 1]._last_output()
            effective_output = layer.forward(layer_input)

            deltas[index] = weighted_sum * \
                layer.activation_derivative(effective_output)

        for layer, delta in zip(self._layers, deltas):
            layer.set_deltas(delta)

    def update_weights(self, learning_rate, x):
        """
        Apply the momentum update to each layer from first to last. The
        input of each layer is recomputed by forwarding through the
        previous layer *after* its own update.

        Parameters
        ----------
        learning_rate: float
            Gradient descent step size.

        x: array-like, shape=(n_inputs,)
            The training input of the current example.
        """
        self._allocate_momentum()

        layer_input = numpy.asarray(x, dtype=float)

        for i, layer in enumerate(self._layers):
            deltas = numpy.asarray(layer.get_deltas(), dtype=float)

            weight_update = (
                numpy.outer(learning_rate * deltas, layer_input) +
                self.momentum * self._previous_weight_updates[i])
            bias_update = (
                learning_rate * deltas +
                self.momentum * self._previous_bias_updates[i])

            layer.weights = layer.weights + weight_update
            layer.biases = layer.biases + bias_update

            self._previous_weight_updates[i] = weight_update
            self._previous_bias_updates[i] = bias_update

            layer_input = layer.forward(layer_input)

    def _allocate_momentum(self):
        if self._previous_weight_updates is None:
            self._previous_weight_updates = [
                numpy.zeros((layer.n_outputs, layer.n_inputs))
                for layer in self._layers
            ]

        if self._previous_bias_updates is None:
            self._previous_bias_updates = [
                numpy.zeros(layer.n_outputs) for layer in self._layers
            ]

    def reset_momentum(self):
        """ Discard the momentum accumulators """
        self._previous_weight_updates = None
        self._previous_bias_updates = None

    def save(self, sink):
        """
        Write the network to the text stream `sink`::

            n_inputs n_outputs
            input_width output_width activation_tag   <- once per layer
            w w ... w                                  <- one row per output
            b b ... b

        """
        sink.write("{} {}\n".format(self.n_inputs, self.n_outputs))

        for layer in self._layers:
            sink.write("{} {} {}\n".format(
                layer.n_inputs, layer.n_outputs, int(layer.activation)))

            for row in layer.weights:
                sink.write(" ".join(repr(float(w)) for w in row) + "\n")

            sink.write(
                " ".join(repr(float(b)) for b in layer.biases) + "\n")

    def load(self, source):
        """
        Replace the layers of this network with those read from the text
        stream `source` (the format written by :meth:`save`). The momentum
        accumulators are reset. On failure, the network is left unchanged.
        """
        tokens = source.read().split()
        position = 0

        def take(count, convert, what):
            nonlocal position
            chunk = tokens[position:position+count]
            if len(chunk) != count:
                msg = "Unexpected end of model data while reading {}"
                raise ModelFormatError(msg.format(what))
            try:
                values = [convert(token) for token in chunk]
            except ValueError:
                msg = "Malformed model data while reading {}: {}"
                raise ModelFormatError(msg.format(what, " ".join(chunk)))
            position += count
            return values

        n_inputs, n_outputs = take(2, int, "the network header")

        layers = []
        while position < len(tokens):
            what = "layer {} header".format(len(layers))
            layer_inputs, layer_outputs, tag = take(3, int, what)

            expected = layers[-1].n_outputs if layers else n_inputs
            if layer_inputs != expected:
                msg = ("Layer {} has {} inputs but the preceding width "
                       "is {}")
                raise ShapeError(msg.format(
                    len(layers), layer_inputs, expected))

            activation = to_activation_type(tag)

            # Parameters are read before the layer allocates its own
            what = "layer {} weights".format(len(layers))
            weights = take(layer_inputs*layer_outputs, float, what)

            what = "layer {} biases".format(len(layers))
            biases = take(layer_outputs, float, what)

            layer = Layer(layer_inputs, layer_outputs, activation=activation,
                          random_state=self.rs)
            layer.set_weights(
                numpy.array(weights).reshape(layer_outputs, layer_inputs))
            layer.set_biases(biases)

            layers.append(layer)

        self._layers = []
        self._n_inputs = n_inputs
        self._n_outputs = n_outputs
        self.reset_momentum()

        for layer in layers:
            self.append_layer(layer)

        logger.debug("Loaded {!r}".format(self))
