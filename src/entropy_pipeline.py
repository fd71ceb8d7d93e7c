import logging
import time

import numpy as np

import config
import entropy_calculator
from byte_source import FileByteSource
from byte_window import ByteWindow, validate_window
from errors import IoFailure


class EntropyPipeline:
    """
    Computes the metric entropy of every sliding window over a byte source.
    """

    def __init__(self, window_size=config.DEFAULT_WINDOW_SIZE, window_stride=config.DEFAULT_WINDOW_STRIDE):
        """
        Args:
            window_size (int): Window capacity in bytes.
            window_stride (int): Bytes the window moves per step.

        Raises:
            InvalidConfiguration: Before any I/O, if the configuration is unusable.
        """
        validate_window(window_size, window_stride)
        self.window_size = window_size
        self.window_stride = window_stride
        logging.info(f"Window size: {window_size} bytes")
        logging.info(f"Window stride: {window_stride} bytes")

    def run(self, source):
        """
        Scores windows until the source is exhausted.

        Args:
            source: A ByteSource. It is consumed entirely.

        Returns:
            numpy.ndarray: Read-only float64 array with one value per window,
            in window order. Empty if the source had no bytes.

        Raises:
            IoFailure: If the source raised OSError. Partial results are dropped.
            Cancelled: If the source observed a cancellation request.
        """
        start = time.perf_counter()
        values = []
        try:
            window = ByteWindow(self.window_size, self.window_stride, source)
            if window.bytes_in_buffer > 0:
                while True:
                    values.append(entropy_calculator.score(window.bytes()))
                    if window.at_eof:
                        break
                    if not window.advance():
                        break
        except OSError as e:
            raise IoFailure(f"reading byte source failed: {e}") from e

        sequence = np.array(values, dtype=np.float64)
        sequence.flags.writeable = False
        elapsed_ms = (time.perf_counter() - start) * 1000
        logging.info(f"Time: {elapsed_ms:.0f} ms ({len(sequence)} elements)")
        return sequence


def analyze_file(path, window_size=config.DEFAULT_WINDOW_SIZE, window_stride=config.DEFAULT_WINDOW_STRIDE,
                 wrap_source=None):
    """
    Opens a file and runs the pipeline over its contents.

    Args:
        path (str): File to analyze.
        window_size (int): Window capacity in bytes.
        window_stride (int): Bytes the window moves per step.
        wrap_source (callable): Optional factory wrapping the file source,
            e.g. to make it cancellable.

    Returns:
        numpy.ndarray: The entropy sequence.
    """
    pipeline = EntropyPipeline(window_size, window_stride)
    logging.info(f"Analyzing {path}")
    try:
        f = open(path, "rb")
    except OSError as e:
        raise IoFailure(f"cannot open {path}: {e}") from e
    with f:
        source = FileByteSource(f)
        if wrap_source is not None:
            source = wrap_source(source)
        return pipeline.run(source)
