import logging

import numpy
from scipy.stats import beta

from ohlcnn.data.storage import Bar, BarStorage


_logger_name = __name__.rsplit('.', 1)[-1]
logger = logging.getLogger(_logger_name)


def make_bar(previous_close, drift=0.0, volatility=0.01, wick=0.5, rs=None):
    """
    Make a single bar that opens at `previous_close`.

    Parameters
    ----------
    previous_close: float
        The open of the new bar. Must be positive.

    drift: float, default=0.0
        Mean of the log-return between open and close.

    volatility: float, default=0.01
        Standard deviation of the log-return between open and close.

    wick: float, default=0.5
        The high (low) extends above (below) the body by a beta(3, 3)
        distributed fraction of `wick * volatility * open`.

    rs: numpy.random.RandomState
        RandomState object for reproducible results.

    Returns
    -------
    bar: Bar
    """
    if previous_close <= 0:
        raise ValueError("`previous_close` should be positive.")
    if volatility < 0:
        raise ValueError("`volatility` should be non-negative.")
    if wick < 0:
        raise ValueError("`wick` should be non-negative.")

    rs = rs if rs is not None else numpy.random.RandomState()

    open_ = float(previous_close)
    close = open_ * numpy.exp(drift + volatility*rs.randn())

    upper, lower = beta.rvs(3, 3, size=2, random_state=rs)
    extent = wick * volatility * open_

    high = max(open_, close) + upper*extent
    low = min(open_, close) - lower*extent

    return Bar(open=open_, close=float(close), high=float(high),
               low=float(low))


def moving_average(values, window):
    """ Trailing simple moving average. The first `window-1` entries
    average over the values available so far.
    """
    if window < 1:
        raise ValueError("`window` should be at least 1.")

    values = numpy.asarray(values, dtype=float)
    csum = numpy.cumsum(numpy.insert(values, 0, 0.0))

    counts = numpy.minimum(numpy.arange(1, len(values)+1), window)
    lagged = csum[numpy.maximum(numpy.arange(1, len(values)+1) - window, 0)]

    return (csum[1:] - lagged) / counts


def make_dataset(n_bars, start=100.0, drift=0.0, volatility=0.01, wick=0.5,
                 sma_window=None, as_storage=False, verbose=False,
                 random_state=None):
    """
    Make a random walk of `n_bars` consecutive bars.

    Parameters
    ----------
    n_bars: int
        The number of bars.

    start: float, default=100.0
        The open of the first bar.

    drift, volatility, wick: float
        See :func:`make_bar`.

    sma_window: int, default=None
        If given, a simple moving average of the close over this window is
        returned as the indicator series "sma".

    as_storage: bool, default=False
        Return a :class:`BarStorage` instead of a list of bars (and
        indicator dictionary).

    verbose: bool, default=False
        Log progress.

    random_state: numpy.random.RandomState, default=None
        Include a for reproducible results.

    Returns
    -------
    bars[, indicators]: list of Bar[, dict] or BarStorage
        The indicators dictionary is returned only when `sma_window` is
        given and `as_storage` is False.
    """
    if n_bars < 1:
        raise ValueError("`n_bars` should be at least 1.")

    random_state = random_state if random_state is not None \
        else numpy.random.RandomState()

    if verbose:
        q = len(str(n_bars))
        pstr = "Creating bars ... %%0%dd / %d" % (q, n_bars)

    bars = []
    close = start

    for i in range(n_bars):
        bar = make_bar(close, drift=drift, volatility=volatility, wick=wick,
                       rs=random_state)
        bars.append(bar)
        close = bar.close

        if verbose:
            logger.info(pstr % (i+1))

    indicators = {}
    if sma_window is not None:
        indicators['sma'] = list(moving_average(
            [bar.close for bar in bars], sma_window))

    if as_storage:
        return BarStorage(bars=bars, indicators=indicators)

    if sma_window is not None:
        return bars, indicators
    else:
        return bars
