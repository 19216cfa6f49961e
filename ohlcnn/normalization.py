""" Normalization strategies for OHLC bars.

Two strategies are available:

* MinMax rescales each bar on its own, using the smallest and largest of
  its four fields, into `[min_range, max_range]`.
* ZScore centers and scales every field of every bar with the mean and
  (population) standard deviation of the close over a whole dataset.
"""
from collections import namedtuple
import enum
import logging

import numpy

from ohlcnn.core.exception import ConfigError
from ohlcnn.data.storage import Bar


_logger_name = __name__.rsplit('.', 1)[-1]
logger = logging.getLogger(_logger_name)

DEFAULT_MIN_RANGE = 0.0
DEFAULT_MAX_RANGE = 1.0


class NormalizationType(enum.IntEnum):
    MIN_MAX = 0
    Z_SCORE = 1


MinMaxState = namedtuple('MinMaxState', ['min_range', 'max_range'])
ZScoreState = namedtuple('ZScoreState', ['mean', 'std'])

_NAMES = {
    'MinMax': NormalizationType.MIN_MAX,
    'ZScore': NormalizationType.Z_SCORE,
}


def to_normalization_type(normalization_type):
    """ Validates `normalization_type` (a member, an integer tag or a
    name such as "ZScore") and converts it to a NormalizationType member
    """
    if isinstance(normalization_type, NormalizationType):
        return normalization_type

    if isinstance(normalization_type, str):
        if normalization_type not in _NAMES:
            msg = "Invalid normalization type {!r}; expected one of {}"
            raise ConfigError(msg.format(
                normalization_type, ", ".join(sorted(_NAMES))))
        return _NAMES[normalization_type]

    try:
        return NormalizationType(int(normalization_type))
    except (ValueError, TypeError):
        msg = "Unknown normalization type: {!r}"
        raise ConfigError(msg.format(normalization_type))


def min_max_transform(bar, min_range, max_range):
    """ Rescale the fields of a single bar into `[min_range, max_range]`
    using the bar's own minimum and maximum
    """
    min_val = min(bar)
    max_val = max(bar)

    if min_val == max_val:
        # Flat bar; every field maps to the bottom of the range
        return Bar(min_range, min_range, min_range, min_range)

    scale = (max_range - min_range) / (max_val - min_val)

    return Bar(*(min_range + (field - min_val) * scale for field in bar))


def z_score_transform(bar, mean, std):
    """ Center and scale every field of `bar` by the given statistics.
    The bar is returned unchanged when `std` is zero.
    """
    if std == 0.0:
        return bar

    return Bar(*((field - mean) / std for field in bar))


class Normalizer(object):
    """ Applies the MinMax or ZScore strategy to bars
    """
    def __init__(self, normalization_type=NormalizationType.MIN_MAX,
                 min_range=DEFAULT_MIN_RANGE, max_range=DEFAULT_MAX_RANGE):
        """
        Parameters
        ----------
        normalization_type: NormalizationType, int or str
            The active strategy. Names "MinMax" and "ZScore" are accepted.

        min_range, max_range: float, defaults 0.0 and 1.0
            The target interval of the MinMax strategy.

        """
        self._normalization_type = to_normalization_type(normalization_type)
        self.set_min_max_range(min_range, max_range)

        self._mean = 0.0
        self._std = 1.0
        self._is_fitted = False

    def __repr__(self):
        return "<Normalizer {}>".format(self.state)

    @property
    def normalization_type(self):
        return self._normalization_type

    @normalization_type.setter
    def normalization_type(self, normalization_type):
        self._normalization_type = to_normalization_type(normalization_type)

    def set_normalization_type(self, normalization_type):
        self.normalization_type = normalization_type

    @property
    def min_range(self):
        return self._min_range

    @property
    def max_range(self):
        return self._max_range

    def set_min_max_range(self, min_range, max_range):
        self._min_range = float(min_range)
        self._max_range = float(max_range)

    @property
    def mean(self):
        return self._mean

    @property
    def std(self):
        return self._std

    @property
    def is_fitted(self):
        """ True when ZScore statistics were fitted or set explicitly """
        return self._is_fitted

    @property
    def state(self):
        """ The parameters of the active strategy, either a MinMaxState or
        a ZScoreState
        """
        if self.normalization_type == NormalizationType.MIN_MAX:
            return MinMaxState(self.min_range, self.max_range)
        return ZScoreState(self.mean, self.std)

    def fit(self, bars):
        """ Compute the mean and population standard deviation of the close
        over `bars`. Nothing changes when `bars` is empty.
        """
        closes = numpy.array([bar.close for bar in bars], dtype=float)

        if closes.size == 0:
            logger.debug("Empty bar sequence; ZScore statistics unchanged")
            return

        self._mean = float(closes.mean())
        self._std = float(numpy.sqrt(((closes - self._mean)**2).mean()))
        self._is_fitted = True

        if self._std == 0.0:
            logger.warning("Constant close over {} bar(s); ZScore "
                           "normalization will leave bars unchanged"
                           .format(closes.size))

    calculate_mean_std = fit

    def set_mean_std(self, mean, std):
        """ Overwrite the ZScore statistics """
        self._mean = float(mean)
        self._std = float(std)
        self._is_fitted = True

    def reset(self):
        """ Discard the ZScore statistics; the next ZScore normalization
        fits on the bars it is given
        """
        self._mean = 0.0
        self._std = 1.0
        self._is_fitted = False

    def transform(self, bar):
        """ Normalize a single bar with the active strategy """
        if self.normalization_type == NormalizationType.MIN_MAX:
            return min_max_transform(bar, self.min_range, self.max_range)
        return z_score_transform(bar, self.mean, self.std)

    def normalize(self, bars):
        """
        Parameters
        ----------
        bars: sequence of Bar

        Returns
        -------
        normalized: list of Bar
            The normalized bars. With ZScore active and no prior fit, the
            statistics are first fitted on `bars`.
        """
        bars = list(bars)

        if (self.normalization_type == NormalizationType.Z_SCORE and
                not self.is_fitted):
            self.fit(bars)

        return [self.transform(bar) for bar in bars]

    def normalize_storage(self, storage):
        """ Normalize the bars of a
        :class:`ohlcnn.data.storage.BarStorage` in place
        """
        storage.replace_bars(self.normalize(storage.bars))
