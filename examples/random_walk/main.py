import numpy as np

from ohlcnn.core.context import NetworkContext
from ohlcnn.core.logger import setup_logging
from ohlcnn.data import random_walk
from ohlcnn.score_functions import directional_accuracy, mean_squared_error
from ohlcnn.visualize import plot_predictions

setup_logging(filename="./log.txt")

# Seed a random number generator.
rs = np.random.RandomState(1234)

# Create a training walk and a separate walk to evaluate on.
train_bars = random_walk.make_dataset(500, volatility=0.02, random_state=rs)
test_bars = random_walk.make_dataset(100, volatility=0.02, random_state=rs)

# Four inputs (open, close, high, low) and one output (the close).
context = NetworkContext(epochs=20, learning_rate=0.01, random_state=rs)
context.set_network_parameters(4, 1, "ZScore", model_version="1.0")
context.add_layer(8, "Tanh")
context.add_layer(1, "Linear")

# Training fits the ZScore statistics on the training walk.
context.process_data(train_bars, is_training=True)
context.save_model("./model.txt")

# Reload into a fresh context and predict.
other = NetworkContext()
other.load_model("./model.txt")
predictions = other.process_data(test_bars)

targets = [other.normalizer.transform(bar).close for bar in test_bars]
print("MSE: {:.6f}".format(mean_squared_error(predictions, targets)))
print("Directional accuracy: {:.3f}".format(
    directional_accuracy(predictions, targets)))

normalized_bars = other.normalizer.normalize(test_bars)
plot_predictions(normalized_bars, predictions, title="Random walk")
