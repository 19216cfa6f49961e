# flake8: noqa

from ._version import version as __version__

from .activation import ActivationType
from .layer import Layer
from .network import Network, TrainingExample, examples_from_bars
from .normalization import (
    MinMaxState,
    NormalizationType,
    Normalizer,
    ZScoreState,
)
from .data.storage import Bar, BarStorage
from .core.context import NetworkContext
from .core.interface import DataInterface
