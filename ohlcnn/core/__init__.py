# flake8: noqa

from .exception import (
    ConfigError,
    EmptyDatasetError,
    EmptyNetworkError,
    MissingDataError,
    ModelError,
    ModelFormatError,
    ShapeError,
    ShapeMismatchError,
    StateError,
)
