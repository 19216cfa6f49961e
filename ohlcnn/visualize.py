import matplotlib.pyplot as plt
import numpy as np


def plot_predictions(
        bars, predictions, title=None, show=True,
        close_kwargs=dict(c='k', ls='-', lw=1, label='close'),
        prediction_kwargs=dict(c='b', ls='--', lw=1, label='prediction'),
        wick_kwargs=dict(color='0.6', lw=1)):
    """ Plot the close of each bar against the network predictions

    Parameters
    ----------
    bars: sequence of Bar
        The bars, in the same (normalized or raw) scale as `predictions`

    predictions: sequence of float, len=len(bars)
        One prediction per bar

    title: str, default=None
        The axes title.

    show: bool, default=True
        Call `matplotlib.pyplot.show` before returning.

    close_kwargs, prediction_kwargs: args
        Any keyword arguments that can be passed to `matplotlib.pyplot.plot`.

    wick_kwargs: args
        Any keyword arguments that can be passed to
        `matplotlib.pyplot.vlines` for the high-low range of each bar.

    Returns
    -------
    fig, ax: matplotlib Figure and Axes
    """
    if len(bars) != len(predictions):
        raise ValueError("`bars` and `predictions` must have equal length.")

    index = np.arange(len(bars))
    highs = np.array([bar.high for bar in bars], dtype=float)
    lows = np.array([bar.low for bar in bars], dtype=float)
    closes = np.array([bar.close for bar in bars], dtype=float)

    fig, ax = plt.subplots(figsize=(8, 4))
    ax.vlines(index, lows, highs, **wick_kwargs)
    ax.plot(index, closes, **close_kwargs)
    ax.plot(index, np.asarray(predictions, dtype=float), **prediction_kwargs)
    ax.set_xlabel('bar')
    ax.legend(loc='best')

    if title is not None:
        ax.set_title(title)

    if show:
        plt.show()

    return fig, ax
