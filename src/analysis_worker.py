import logging
import queue
import threading
import time
from dataclasses import dataclass

import numpy as np

import config
from byte_source import CancellableSource
from byte_window import validate_window
from entropy_pipeline import analyze_file
from gradient_mapper import GradientMapper, NormalizationState, validate_canvas


@dataclass(frozen=True)
class AnalysisResult:
    path: str
    sequence: np.ndarray
    canvas: np.ndarray
    state: NormalizationState
    elapsed: float


class AnalysisWorker:
    """
    Analyzes one file on a background thread.

    The finished result, or the exception that stopped the run, is put on a
    queue exactly once. Nothing else is shared with the thread.
    """

    def __init__(self, path, window_size=config.DEFAULT_WINDOW_SIZE, window_stride=config.DEFAULT_WINDOW_STRIDE,
                 width=config.DEFAULT_IMAGE_WIDTH, height=config.DEFAULT_IMAGE_HEIGHT, mapper=None):
        """
        Starts the analysis right away.

        Raises:
            InvalidConfiguration: Before the thread starts, for a bad window or canvas.
        """
        validate_window(window_size, window_stride)
        validate_canvas(width, height)
        self.path = path
        self.window_size = window_size
        self.window_stride = window_stride
        self.width = width
        self.height = height
        self.mapper = mapper or GradientMapper()
        self.results = queue.Queue(maxsize=1)
        self._cancel = threading.Event()
        self._thread = threading.Thread(target=self._worker, daemon=True)
        self._thread.start()

    def _worker(self):
        start = time.time()
        try:
            sequence = analyze_file(
                self.path, self.window_size, self.window_stride,
                wrap_source=lambda source: CancellableSource(source, self._cancel),
            )
            canvas = np.zeros((self.height, self.width), dtype=np.uint8)
            state = self.mapper.render_into(sequence, canvas)
            logging.info(f"Average metric entropy: {state.average}")
            self.results.put(AnalysisResult(self.path, sequence, canvas, state, time.time() - start))
        except Exception as e:
            self.results.put(e)

    def cancel(self):
        """Requests cooperative cancellation; the run ends with Cancelled."""
        self._cancel.set()

    def get_result(self, timeout=None):
        """
        Returns the AnalysisResult, or None if it is not ready within timeout.

        Raises:
            The exception that ended the run (IoFailure, Cancelled, ...).
        """
        try:
            item = self.results.get(timeout=timeout)
        except queue.Empty:
            return None
        if isinstance(item, Exception):
            raise item
        return item

    def join(self, timeout=None):
        self._thread.join(timeout)
