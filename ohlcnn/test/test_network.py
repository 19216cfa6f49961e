import io
import unittest
from unittest import mock

import numpy

from ohlcnn.activation import ActivationType
from ohlcnn.core.exception import (
    ConfigError, EmptyDatasetError, EmptyNetworkError, ModelFormatError,
    ShapeError)
from ohlcnn.data.storage import Bar
from ohlcnn.layer import Layer
from ohlcnn.network import Network, TrainingExample, examples_from_bars
from ohlcnn.normalization import Normalizer


def make_fixed_network():
    """ A [4 -> 3 -> 1] network with linear activations and fixed weights
    """
    network = Network(4, 1)
    hidden = network.add_layer(3, ActivationType.LINEAR)
    hidden.set_weights([[0.1, 0.2, 0.3, 0.4],
                        [0.0, 0.1, 0.0, -0.1],
                        [0.2, 0.0, -0.2, 0.0]])
    hidden.set_biases([0.0, 0.0, 0.0])

    output = network.add_layer(1, ActivationType.LINEAR)
    output.set_weights([[1.0, -1.0, 0.5]])
    output.set_biases([0.0])

    return network


class TestNetwork(unittest.TestCase):

    def setUp(self):
        self.random_state = numpy.random.RandomState(1234)

    def test_add_layer_widths(self):
        network = Network(4, 1, random_state=self.random_state)
        network.add_layer(5, ActivationType.TANH)
        network.add_layer(2)
        network.add_layer(1, ActivationType.LINEAR)

        self.assertEqual(len(network), 3)
        self.assertEqual([layer.n_inputs for layer in network.layers],
                         [4, 5, 2])
        self.assertEqual(network.n_inputs, 4)
        self.assertEqual(network.n_outputs, 1)

    def test_add_first_layer_without_inputs(self):
        network = Network()

        with self.assertRaises(ShapeError):
            network.add_layer(3)

        self.assertEqual(len(network), 0)

    def test_append_layer_sets_widths(self):
        network = Network()
        network.append_layer(Layer(6, 2, random_state=self.random_state))

        self.assertEqual(network.n_inputs, 6)
        self.assertEqual(network.n_outputs, 2)

    def test_append_mismatched_layer(self):
        network = Network(4, 1, random_state=self.random_state)
        network.add_layer(3)
        layers = network.layers

        with self.assertRaises(ShapeError):
            network.append_layer(Layer(2, 1, random_state=self.random_state))

        self.assertEqual(network.layers, layers)
        self.assertEqual(network.n_outputs, 3)

    def test_predict(self):
        network = make_fixed_network()
        output = network.predict([1.0, 2.0, 3.0, 0.0])

        # hidden = [1.4, 0.2, -0.4] and output = 1.4 - 0.2 - 0.2
        self.assertEqual(output.shape, (1,))
        self.assertAlmostEqual(output[0], 1.0)

    def test_predict_empty_network(self):
        with self.assertRaises(EmptyNetworkError):
            Network(4, 1).predict([1.0, 2.0, 3.0, 4.0])

    def test_predict_wrong_size(self):
        network = make_fixed_network()
        weights = [layer.get_weights() for layer in network.layers]

        with self.assertRaises(ShapeError):
            network.predict([1.0, 2.0, 3.0])

        for layer, w in zip(network.layers, weights):
            self.assertTrue((layer.weights == w).all())

    def test_single_training_step(self):
        network = make_fixed_network()
        example = TrainingExample(input=numpy.r_[1.0, 2.0, 3.0, 0.0],
                                  target=numpy.r_[2.0])

        losses = network.train([example], epochs=1, learning_rate=0.1)

        # Output was 1.0 before the update, so the error was 1.0
        self.assertEqual(len(losses), 1)
        self.assertAlmostEqual(losses[0], 1.0)

        hidden, output = network.layers

        # Output delta is 1; hidden deltas are the output weights
        self.assertTrue(numpy.allclose(hidden.get_deltas(), [1.0, -1.0, 0.5]))
        self.assertTrue(numpy.allclose(output.get_deltas(), [1.0]))

        expected_hidden_weights = numpy.array([
            [0.2, 0.4, 0.6, 0.4],
            [-0.1, -0.1, -0.3, -0.1],
            [0.25, 0.1, -0.05, 0.0],
        ])
        self.assertTrue(numpy.allclose(hidden.weights,
                                       expected_hidden_weights))
        self.assertTrue(numpy.allclose(hidden.biases, [0.1, -0.1, 0.05]))

        # The output layer update uses the *updated* hidden layer output,
        # which is [2.9, -1.3, 0.35].
        self.assertTrue(numpy.allclose(output.weights,
                                       [[1.29, -1.13, 0.535]]))
        self.assertTrue(numpy.allclose(output.biases, [0.1]))

    def test_momentum_carries_previous_update(self):
        network = make_fixed_network()
        x = numpy.r_[1.0, 2.0, 3.0, 0.0]
        network.train([TrainingExample(x, numpy.r_[2.0])],
                      epochs=1, learning_rate=0.1)

        hidden, output = network.layers
        hidden_weights = hidden.get_weights()
        output_weights = output.get_weights()
        output_biases = output.get_biases()

        # With zero deltas, the update is the momentum term alone
        for layer in network.layers:
            layer.set_deltas(numpy.zeros(layer.n_outputs))
        network.update_weights(0.1, x)

        expected_hidden_update = 0.9 * numpy.array([
            [0.1, 0.2, 0.3, 0.0],
            [-0.1, -0.2, -0.3, 0.0],
            [0.05, 0.1, 0.15, 0.0],
        ])
        self.assertTrue(numpy.allclose(hidden.weights - hidden_weights,
                                       expected_hidden_update))
        self.assertTrue(numpy.allclose(output.weights - output_weights,
                                       0.9 * numpy.r_[0.29, -0.13, 0.035]))
        self.assertTrue(numpy.allclose(output.biases - output_biases,
                                       [0.09]))

    def test_output_delta_uses_post_activation_value(self):
        network = Network(4, 1)
        layer = network.add_layer(1, ActivationType.SIGMOID)
        layer.set_weights(numpy.zeros((1, 4)))

        x = numpy.r_[0.3, 0.1, 0.4, 0.2]
        output = network.predict(x)
        self.assertAlmostEqual(output[0], 0.5)

        network.backpropagate(numpy.r_[1.0], output, x)

        s = 1.0 / (1.0 + numpy.exp(-0.5))
        self.assertAlmostEqual(layer.get_deltas()[0], 0.5 * s * (1.0 - s))

    def test_deltas_staged_on_every_layer(self):
        network = Network(4, 1, random_state=self.random_state)
        network.add_layer(5, ActivationType.TANH)
        network.add_layer(4, ActivationType.SIGMOID)
        network.add_layer(3, ActivationType.RELU)
        network.add_layer(1, ActivationType.LINEAR)

        x = numpy.r_[0.2, 0.5, 0.9, 0.1]
        output = network.predict(x)
        network.backpropagate(numpy.r_[0.5], output, x)

        for layer in network.layers:
            self.assertEqual(layer.get_deltas().shape, (layer.n_outputs,))

    def test_deep_network_deltas_match_numerical_gradient(self):
        network = Network(4, 1, random_state=self.random_state)
        network.add_layer(5, ActivationType.RELU)
        network.add_layer(4, ActivationType.LINEAR)
        network.add_layer(3, ActivationType.RELU)
        network.add_layer(1, ActivationType.LINEAR)
        for layer in network.layers:
            layer.set_biases(numpy.full(layer.n_outputs, 0.1))

        x = numpy.r_[0.2, 0.5, 0.9, 0.1]
        output = network.predict(x)
        network.backpropagate(numpy.r_[0.5], output, x)

        # For ReLU and linear units, the first layer's deltas are the
        # negated gradient of 0.5 * (target - output)^2 wrt its biases
        first = network.layers[0]
        eps = 1e-6
        for k in range(first.n_outputs):
            biases = first.get_biases()

            first.set_biases(biases + eps * numpy.eye(first.n_outputs)[k])
            loss_plus = 0.5 * (0.5 - network.predict(x)[0])**2
            first.set_biases(biases - eps * numpy.eye(first.n_outputs)[k])
            loss_minus = 0.5 * (0.5 - network.predict(x)[0])**2
            first.set_biases(biases)

            numerical = (loss_plus - loss_minus) / (2 * eps)
            self.assertAlmostEqual(-numerical, first.get_deltas()[k],
                                   places=5)

    def test_training_reduces_loss(self):
        bars = [
            Bar(*(self.random_state.rand(4) + 1.0)) for _ in range(30)
        ]
        examples = examples_from_bars(Normalizer().normalize(bars))

        network = Network(4, 1, random_state=self.random_state)
        network.add_layer(1, ActivationType.LINEAR)

        losses = network.train(examples, epochs=50, learning_rate=0.01)

        self.assertEqual(len(losses), 50)
        self.assertLess(losses[-1], losses[0])
        self.assertAlmostEqual(network.loss(examples), losses[-1], places=1)

    def test_training_logs_epoch_progress(self):
        examples = examples_from_bars([Bar(0.2, 0.4, 0.6, 0.1)])
        network = Network(4, 1, random_state=self.random_state)
        network.add_layer(1, ActivationType.LINEAR)

        with self.assertLogs("network", level="DEBUG") as logs:
            network.train(examples, epochs=2, learning_rate=0.1)

        progress = [record.getMessage() for record in logs.records
                    if record.levelname == "DEBUG"]
        self.assertEqual(len(progress), 2)
        self.assertTrue(progress[0].startswith("(1 / 2) Epoch MSE"))
        self.assertTrue(progress[1].startswith("(2 / 2) Epoch MSE"))

    def test_train_requirements(self):
        example = TrainingExample(numpy.r_[1.0, 2.0, 3.0, 0.0],
                                  numpy.r_[2.0])

        with self.assertRaises(EmptyNetworkError):
            Network(4, 1).train([example], 1, 0.1)

        network = make_fixed_network()
        with self.assertRaises(EmptyDatasetError):
            network.train([], 1, 0.1)

        wide = Network(5, 1, random_state=self.random_state)
        wide.add_layer(1)
        with self.assertRaises(ConfigError):
            wide.train([example], 1, 0.1)

        two_outputs = Network(4, 2, random_state=self.random_state)
        two_outputs.add_layer(2)
        with self.assertRaises(ConfigError):
            two_outputs.train([example], 1, 0.1)

        # The network is still usable after a failed training call
        self.assertEqual(two_outputs.predict(example.input).shape, (2,))

    def test_momentum_resized_on_append(self):
        network = make_fixed_network()
        x = numpy.r_[1.0, 2.0, 3.0, 0.0]
        network.train([TrainingExample(x, numpy.r_[2.0])], 1, 0.1)

        network.add_layer(1, ActivationType.LINEAR)
        for layer in network.layers:
            layer.set_deltas(numpy.zeros(layer.n_outputs))

        weights = network.layers[-1].get_weights()
        network.update_weights(0.1, x)

        # The new layer has no previous update
        self.assertTrue((network.layers[-1].weights == weights).all())

    def test_examples_from_bars(self):
        examples = examples_from_bars([Bar(1.0, 2.0, 3.0, 0.0)])

        self.assertEqual(len(examples), 1)
        self.assertTrue((examples[0].input == [1.0, 2.0, 3.0, 0.0]).all())
        self.assertTrue((examples[0].target == [2.0]).all())


class TestNetworkPersistence(unittest.TestCase):

    def setUp(self):
        self.random_state = numpy.random.RandomState(4321)

    def make_network(self):
        network = Network(4, 1, random_state=self.random_state)
        network.add_layer(6, ActivationType.TANH)
        network.add_layer(3, ActivationType.RELU)
        network.add_layer(1, ActivationType.SIGMOID)
        for layer in network.layers:
            layer.set_biases(self.random_state.randn(layer.n_outputs))
        return network

    def test_save_format(self):
        network = make_fixed_network()
        sink = io.StringIO()
        network.save(sink)

        lines = sink.getvalue().splitlines()

        self.assertEqual(lines[0], "4 1")
        self.assertEqual(lines[1], "4 3 3")
        self.assertEqual([float(v) for v in lines[2].split()],
                         [0.1, 0.2, 0.3, 0.4])
        self.assertEqual(lines[5], "0.0 0.0 0.0")
        self.assertEqual(lines[6], "3 1 3")
        self.assertEqual(lines[7], "1.0 -1.0 0.5")
        self.assertEqual(lines[8], "0.0")
        self.assertEqual(len(lines), 9)

    def test_save_load_round_trip(self):
        network = self.make_network()
        x = numpy.r_[0.3, -0.2, 0.8, 0.1]
        expected = network.predict(x)

        sink = io.StringIO()
        network.save(sink)

        loaded = Network()
        loaded.load(io.StringIO(sink.getvalue()))

        self.assertEqual(loaded.n_inputs, 4)
        self.assertEqual(loaded.n_outputs, 1)
        self.assertEqual([layer.activation for layer in loaded.layers],
                         [ActivationType.TANH, ActivationType.RELU,
                          ActivationType.SIGMOID])
        self.assertTrue((loaded.predict(x) == expected).all())

    def test_load_replaces_layers(self):
        network = self.make_network()
        sink = io.StringIO()
        make_fixed_network().save(sink)

        network.load(io.StringIO(sink.getvalue()))

        self.assertEqual(len(network), 2)
        self.assertAlmostEqual(network.predict([1.0, 2.0, 3.0, 0.0])[0], 1.0)

    def test_load_header_only(self):
        network = Network()
        network.load(io.StringIO("4 1\n"))

        self.assertEqual(len(network), 0)
        self.assertEqual(network.n_inputs, 4)

    def test_load_truncated(self):
        sink = io.StringIO()
        make_fixed_network().save(sink)
        truncated = sink.getvalue().rsplit("\n", 3)[0]

        network = self.make_network()
        with self.assertRaises(ModelFormatError):
            network.load(io.StringIO(truncated))

        # Unchanged on failure
        self.assertEqual(len(network), 3)

    def test_load_truncated_wide_layer(self):
        # A declared width far beyond the data fails before any layer
        # is allocated
        with mock.patch("ohlcnn.network.Layer") as layer_class:
            with self.assertRaises(ModelFormatError):
                Network().load(io.StringIO("4 1\n4 1000000000 3\n"))

        layer_class.assert_not_called()

    def test_load_non_numeric(self):
        with self.assertRaises(ModelFormatError):
            Network().load(io.StringIO("4 1\n4 1 3\n1 2 x 4\n0\n"))

    def test_load_shape_mismatch(self):
        text = ("4 1\n"
                "4 2 3\n1 1 1 1\n1 1 1 1\n0 0\n"
                "3 1 3\n1 1 1\n0\n")

        with self.assertRaises(ShapeError):
            Network().load(io.StringIO(text))

    def test_load_first_layer_mismatch(self):
        with self.assertRaises(ShapeError):
            Network().load(io.StringIO("4 1\n3 1 3\n1 1 1\n0\n"))

    def test_load_unknown_activation(self):
        with self.assertRaises(ConfigError):
            Network().load(io.StringIO("4 1\n4 1 9\n1 1 1 1\n0\n"))
