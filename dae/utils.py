"""
Utility functions
"""

import numpy as np
from sklearn.preprocessing import MinMaxScaler


def partition(n, num_thread):
    """Splits `n` neurons into contiguous ranges, one per worker.

    Args:
        n: int
            Number of neurons in the layer.
        num_thread: int
            Number of workers.
    Returns:
        ranges: list of (int, int)
            Disjoint `(begin, end)` pairs covering `range(n)`. Every range
            has `n // num_thread` neurons except the last, which also
            takes the remainder. Empty ranges are left out.
    """
    num_thread = max(1, int(num_thread))
    size = n // num_thread
    ranges = []
    for i in range(num_thread):
        begin = i * size
        end = n if i == num_thread - 1 else (i + 1) * size
        if begin < end:
            ranges.append((begin, end))
    return ranges


def mean_squared_error(output, answer):
    """
    Squared error `0.5 * (output - answer)**2` of a single output unit
    (vectorized). Its derivative w.r.t. `output` is `output - answer`.
    """
    return 0.5 * (np.asarray(output) - np.asarray(answer)) ** 2


def load_data(path, delimiter=','):
    """Loads a data matrix from a CSV file.

    Args:
        path: string
            Path to the CSV file, one sample per row.
    Returns:
        X: numpy.ndarray
            Data matrix of size `n` by `p`.
    Raises:
        IOError: An error occurred accessing the file.
    """
    return np.atleast_2d(np.genfromtxt(path, delimiter=delimiter))


def normalize_data(X):
    """Scales training inputs into [0, 1] column by column.

    A wrapper around `sklearn.preprocessing.MinMaxScaler()`.

    Args:
        X: numpy.ndarray
            Training data matrix.

    Returns:
        scaler: sklearn.preprocessing.MinMaxScaler
            Scaler fitted to the training input data `X`.
            Use `scaler.transform(X_new)` on validation/testing data.
    """
    return MinMaxScaler().fit(X)


def corrupt(X, rate, seed=None):
    """Masking noise: sets each entry of `X` to zero with probability `rate`.

    Args:
        X: numpy.ndarray
            Clean data matrix.
        rate: float (between 0 and 1)
            Corruption probability per entry.
        seed: int
            Random seed for the mask.
    Returns:
        X_noisy: numpy.ndarray
            Corrupted copy of `X`.
    """
    if not 0.0 <= rate <= 1.0:
        raise ValueError('corrupt: rate must be in [0, 1]')
    X = np.asarray(X, dtype=float)
    rng = np.random.RandomState(seed)
    mask = rng.binomial(1, 1. - rate, size=X.shape)
    return X * mask


def add_gaussian_noise(X, sigma, seed=None):
    """
    Additive isotropic Gaussian noise with standard deviation `sigma`.
    """
    X = np.asarray(X, dtype=float)
    rng = np.random.RandomState(seed)
    return X + rng.normal(scale=sigma, size=X.shape)
