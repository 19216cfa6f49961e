from collections import namedtuple
import contextlib
import logging
import os

import h5py
import numpy


_logger_name = __name__.rsplit('.', 1)[-1]
logger = logging.getLogger(_logger_name)

BARS_KEY = "bars"
INDICATORS_KEY = "indicators"


# A single OHLC observation. The field order is the order used whenever
# a bar is flattened into a vector.
Bar = namedtuple('Bar', ['open', 'close', 'high', 'low'])


class BarStorage(object):
    """ An ordered collection of bars plus named indicator series
    """

    def __init__(self, bars=None, indicators=None):
        """ Initialize a bar storage

        Parameters
        ----------
        bars: iterable of Bar, default=None
            Initial bars

        indicators: dict, default=None
            Initial indicator series, keyed by indicator name

        """
        self._bars = []
        self._indicators = {}

        for bar in bars or []:
            self.add_bar(bar)

        for name, values in (indicators or {}).items():
            self.add_indicator(name, values)

    def __len__(self):
        return len(self._bars)

    def __iter__(self):
        return iter(list(self._bars))

    def __repr__(self):
        return "<BarStorage n_bars=%d, n_indicators=%d>" % (
            len(self), self.n_indicators)

    def add_bar(self, *args):
        """ Append a bar, given either a Bar (or 4-sequence) or the four
        fields `open, close, high, low`
        """
        if len(args) == 1:
            bar = args[0]
        elif len(args) == 4:
            bar = args
        else:
            msg = "add_bar takes a bar or 4 fields ({} given)"
            raise TypeError(msg.format(len(args)))

        if len(bar) != 4:
            msg = "A bar has 4 fields but {} were given"
            raise ValueError(msg.format(len(bar)))

        self._bars.append(Bar(*(float(field) for field in bar)))

    @property
    def bars(self):
        return list(self._bars)

    def get_bar_data(self):
        return self.bars

    def get_bar(self, index):
        if not 0 <= index < len(self._bars):
            msg = "Bar index {} out of range for {} bar(s)"
            raise IndexError(msg.format(index, len(self._bars)))
        return self._bars[index]

    def replace_bars(self, bars):
        """ Clear the bars and insert `bars` in their place. Indicator
        series are kept.
        """
        self._bars = []
        for bar in bars:
            self.add_bar(bar)

    def clear(self):
        """ Remove all bars and all indicator series """
        self._bars = []
        self._indicators = {}

    def add_indicator(self, name, values):
        """ Store (or overwrite) the indicator series `name` """
        self._indicators[name] = [float(value) for value in values]

    def get_indicator(self, name):
        if name not in self._indicators:
            raise KeyError("Indicator not found: {}".format(name))
        return list(self._indicators[name])

    @property
    def indicators(self):
        """ All indicator series, ordered by name """
        return {
            name: list(self._indicators[name])
            for name in sorted(self._indicators)
        }

    def has_indicator(self, name):
        return name in self._indicators

    def remove_indicator(self, name):
        self._indicators.pop(name, None)

    @property
    def n_indicators(self):
        return len(self._indicators)

    def to_hdf5(self, filename, compress=True):
        """ Write the bars and indicators to an hdf5 file.

        The format assuming `hf` is and h5py `File` is as follows::

            'bars'          <- (n_bars, 4) array of open, close, high, low
            'indicators'
            |_ name         <- one 1d array per indicator

        Parameters
        ----------
        filename: str
            The hdf5 file to create. It must not exist yet.

        compress: bool, default=True
            If True, :code:`gzip` compression is used for the datasets.

        """
        if os.path.exists(filename):
            msg = "Dataset already exists at {}"
            raise FileExistsError(msg.format(filename))

        compress_method = "gzip" if compress else None

        bars = numpy.array(self._bars, dtype=float).reshape(-1, 4)

        with h5py.File(filename, mode='w') as hf:
            hf.create_dataset(
                BARS_KEY, data=bars, compression=compress_method)

            group = hf.create_group(INDICATORS_KEY)
            for name, values in self.indicators.items():
                group.create_dataset(
                    name, data=numpy.array(values, dtype=float),
                    compression=compress_method)

        msg = "Wrote {} bar(s) and {} indicator(s) to {}"
        logger.info(msg.format(len(self), self.n_indicators, filename))

    @classmethod
    def from_hdf5(cls, filename):
        """ Read a storage written by :meth:`to_hdf5` """
        storage = cls()

        with open_h5_file(filename) as hf:
            for row in hf[BARS_KEY][...]:
                storage.add_bar(row)

            if INDICATORS_KEY in hf:
                for name, dataset in hf[INDICATORS_KEY].items():
                    storage.add_indicator(name, dataset[...])

        return storage


@contextlib.contextmanager
def open_h5_file(filename):
    """ Opens an hdf5 file for reading
    """
    h5 = None
    try:
        h5 = h5py.File(filename, mode='r')
        yield h5
    finally:
        if h5:
            h5.close()
