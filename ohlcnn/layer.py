import numpy

from ohlcnn.activation import (
    ActivationType, get_activation, to_activation_type)
from ohlcnn.core.exception import ShapeError, StateError


class Layer(object):
    """
    A dense layer: an affine transform followed by an activation.

    params: weights, where weights[i, j] = weight from input j to output i.
            biases, where biases[i] = bias into output unit i.

    For a single vector input, the computation is:
    output = activation( dot(weights, input) + biases )

    The layer keeps the output of its most recent forward pass. The
    training routines of :class:`ohlcnn.network.Network` read it back
    along with the per-output error terms ("deltas") they stage on the
    layer.
    """
    def __init__(self, n_inputs, n_outputs, activation=ActivationType.RELU,
                 random_state=None):
        """
        Parameters
        ----------
        n_inputs: int
            Number of input units.

        n_outputs: int
            Number of output units.

        activation: ActivationType, default=ActivationType.RELU
            The activation applied to each output unit.

        random_state: numpy.random.RandomState, default=None
            Provide a RandomState object for reproducible weights.
        """
        if n_inputs <= 0 or n_outputs <= 0:
            msg = ("Number of inputs ({}) and outputs ({}) must be "
                   "greater than zero")
            raise ShapeError(msg.format(n_inputs, n_outputs))

        self._n_inputs = int(n_inputs)
        self._n_outputs = int(n_outputs)
        self.activation = activation

        self.rs = numpy.random.RandomState() if random_state is None \
            else random_state

        self._output = None
        self._deltas = None

        self.randomize_params()

    def __repr__(self):
        return "<Layer n_inputs=%d, n_outputs=%d, activation=%s>" % (
            self.n_inputs, self.n_outputs, self.activation.name)

    @property
    def n_inputs(self):
        return self._n_inputs

    @property
    def n_outputs(self):
        return self._n_outputs

    @property
    def activation(self):
        return self._activation

    @activation.setter
    def activation(self, activation):
        self._activation = to_activation_type(activation)
        self._function, self._derivative = get_activation(self._activation)

    def randomize_params(self):
        """
        Draw the weights from a zero-mean normal distribution with standard
        deviation `1 / sqrt(n_inputs)` and set the biases to zero.
        """
        scale = 1.0 / numpy.sqrt(self.n_inputs)
        self._weights = self.rs.normal(
            loc=0.0, scale=scale, size=(self.n_outputs, self.n_inputs))
        self._biases = numpy.zeros(self.n_outputs)

    def forward(self, x):
        """
        Parameters
        ----------
        x: array-like, shape=(n_inputs,)
            The input vector.

        Returns
        -------
        output: ndarray, shape=(n_outputs,)
            activation(dot(weights, x) + biases)
        """
        x = numpy.asarray(x, dtype=float)

        if x.ndim != 1 or x.shape[0] != self.n_inputs:
            msg = "Input size mismatch: got shape {}, layer expects ({},)"
            raise ShapeError(msg.format(x.shape, self.n_inputs))

        output = self._function(numpy.dot(self._weights, x) + self._biases)

        self._output = output
        return output.copy()

    def activation_derivative(self, output):
        """ Evaluate the activation derivative at the (post-activation)
        values `output`
        """
        return self._derivative(output)

    def _last_output(self):
        """ The output of the most recent forward pass. Read by the
        network while backpropagating.
        """
        if self._output is None:
            raise StateError(
                "Output not calculated yet. Call forward() first.")
        return self._output.copy()

    @property
    def weights(self):
        return self._weights

    @weights.setter
    def weights(self, weights):
        self.set_weights(weights)

    def set_weights(self, weights):
        weights = numpy.array(weights, dtype=float)
        if weights.shape != (self.n_outputs, self.n_inputs):
            msg = "Weight matrix was shape {} but should be {}"
            raise ShapeError(msg.format(
                weights.shape, (self.n_outputs, self.n_inputs)))
        self._weights = weights

    def get_weights(self):
        return self._weights.copy()

    @property
    def biases(self):
        return self._biases

    @biases.setter
    def biases(self, biases):
        self.set_biases(biases)

    def set_biases(self, biases):
        biases = numpy.array(biases, dtype=float)
        if biases.shape != (self.n_outputs,):
            msg = "Bias vector was shape {} but should be {}"
            raise ShapeError(msg.format(biases.shape, (self.n_outputs,)))
        self._biases = biases

    def get_biases(self):
        return self._biases.copy()

    @property
    def deltas(self):
        return self._deltas

    @deltas.setter
    def deltas(self, deltas):
        self._deltas = deltas

    def set_deltas(self, deltas):
        self._deltas = deltas

    def get_deltas(self):
        return self._deltas
