import math

import numpy as np

from errors import InvalidInput

LOG10_OF_2 = math.log10(2)


def log2(values):
    return np.log10(values) / LOG10_OF_2


def _histogram(window):
    if isinstance(window, np.ndarray):
        data = window
    else:
        data = np.frombuffer(window, dtype=np.uint8)
    if len(data) == 0:
        raise InvalidInput("cannot score an empty window")
    return np.bincount(data, minlength=256), len(data)


def _shannon(counts, length):
    p = counts[counts != 0] / float(length)
    return float(-np.sum(p * log2(p)))


def shannon_entropy(window):
    """
    Shannon entropy of the byte-value distribution of a window, in bits.

    Args:
        window: A bytes-like object or a uint8 numpy array.

    Returns:
        float: Entropy in 0..8.
    """
    counts, length = _histogram(window)
    return _shannon(counts, length)


def score(window):
    """
    Metric entropy of a window: its Shannon entropy divided by the window
    length. The result lies in [0, 1]; since entropy is at most log2(n) bits
    for n bytes, it never exceeds log2(3) / 3, about 0.53.

    Raises:
        InvalidInput: If the window is empty.
    """
    counts, length = _histogram(window)
    return _shannon(counts, length) / length


if __name__ == '__main__':
    import os

    samples = {
        "zeros": bytes(256),
        "all byte values": bytes(range(256)),
        "random": os.urandom(256),
    }
    for name, data in samples.items():
        print(f"{name}: shannon={shannon_entropy(data):.4f} bits, metric={score(data):.6f}")
