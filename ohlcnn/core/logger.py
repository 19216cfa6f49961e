import logging
import os


LINE_FORMAT = ("[%(asctime)s] [%(name)s:%(lineno)d] "
               "%(levelname)-8s %(message)s")
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(filename=None, level=logging.INFO, stdout=True):
    """ Sets up logging formatting, handlers, etc. for the package loggers

    Parameters
    ----------
    filename: str, default=None
        The log file to write to. The file is truncated. If None, no file
        handler is attached.

    level: int, default=logging.INFO
        The level of the root logger

    stdout: bool, default=True
        If True, log records are also written to the console

    """
    formatter = logging.Formatter(fmt=LINE_FORMAT, datefmt=DATE_FORMAT)

    root = logging.getLogger()
    root.setLevel(level)

    if filename is not None:
        if os.path.exists(filename):
            os.remove(filename)

        fhandler = logging.FileHandler(filename, mode='w')
        fhandler.setFormatter(formatter)
        root.addHandler(fhandler)

    if stdout:
        shandler = logging.StreamHandler()
        shandler.setFormatter(formatter)
        root.addHandler(shandler)

    return root


def format_progress(msg, i, n):
    """ Formats `msg` with a zero-padded `(i / n)` prefix
    """
    msg = "(%%0%dd / %d) %s" % (len(str(n)), n, msg)
    return msg % i
