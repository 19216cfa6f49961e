import numpy


def _validate(predictions, targets):
    predictions = numpy.asarray(predictions, dtype=float).ravel()
    targets = numpy.asarray(targets, dtype=float).ravel()

    if predictions.shape != targets.shape:
        msg = "Length mismatch: predictions ({}), targets ({})"
        raise ValueError(msg.format(predictions.shape[0], targets.shape[0]))

    if predictions.size == 0:
        raise ValueError("Cannot score empty predictions")

    return predictions, targets


def mean_squared_error(predictions, targets):
    """ The mean of the squared differences """
    predictions, targets = _validate(predictions, targets)
    diff = predictions - targets
    return float(numpy.dot(diff, diff) / diff.size)


def mean_absolute_error(predictions, targets):
    """ The mean of the absolute differences """
    predictions, targets = _validate(predictions, targets)
    return float(numpy.abs(predictions - targets).mean())


def directional_accuracy(predictions, targets):
    """ The fraction of steps where the predictions move in the same
    direction as the targets
    """
    predictions, targets = _validate(predictions, targets)

    if predictions.size < 2:
        # No step to compare
        return 1.0

    same = numpy.sign(numpy.diff(predictions)) == \
        numpy.sign(numpy.diff(targets))
    return float(same.mean())
