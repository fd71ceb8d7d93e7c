import logging
import time
from dataclasses import dataclass

import numpy as np

import config
from errors import InvalidConfiguration, InvalidInput


@dataclass(frozen=True)
class NormalizationState:
    """
    Min-max normalization derived from one entropy sequence.
    """
    min_value: float
    max_value: float
    average: float
    scale_factor: float

    @classmethod
    def from_sequence(cls, sequence, scale=True):
        """
        Args:
            sequence (numpy.ndarray): Entropy values.
            scale (bool): If False, the scale factor is always 1.

        Returns:
            NormalizationState: min = max = average = 0 for an empty sequence.
        """
        if len(sequence) == 0:
            return cls(0.0, 0.0, 0.0, 1.0)
        lo = float(np.min(sequence))
        hi = float(np.max(sequence))
        factor = 1.0 / (hi - lo) if scale and hi != lo else 1.0
        return cls(lo, hi, float(np.mean(sequence)), factor)


def validate_canvas(width, height):
    """
    Raises:
        InvalidConfiguration: If the canvas would have no cells.
    """
    if width <= 0 or height <= 0:
        raise InvalidConfiguration(f"canvas must not be empty, got {width}x{height}")


def allocate_pixels(num_samples, width, height):
    """
    Splits width * height canvas cells among num_samples samples in raster order.

    Sample i ends at cell floor((i + 1) * cells / num_samples), which is the
    running real-valued budget of cells / num_samples pixels per sample with
    the fractional remainder carried to the next sample. Computed on integers,
    so the counts always add up to exactly width * height.

    Returns:
        numpy.ndarray: int64 cell count per sample. Samples whose budget rounds
        to zero cells are clipped.
    """
    cells = width * height
    if num_samples == 0:
        return np.zeros(0, dtype=np.int64)
    ends = (np.arange(1, num_samples + 1, dtype=np.int64) * cells) // num_samples
    return np.diff(ends, prepend=0)


class GradientMapper:
    """
    Distributes an entropy sequence across a pixel canvas of palette indices.

    Index 0 is the darkest gradient step (lowest entropy), index steps - 1 the
    brightest.
    """

    def __init__(self, steps=config.GRADIENT_STEPS, scale=config.SCALE):
        """
        Args:
            steps (int): Number of discrete gradient steps, 2..256.
            scale (bool): Min-max scale values before the palette lookup.
        """
        if not 2 <= steps <= 256:
            raise InvalidConfiguration(f"gradient steps must be in 2..256, got {steps}")
        self.steps = steps
        self.scale = scale

    def color_indices(self, sequence, state=None):
        """
        Maps every sample to its gradient step.

        Raises:
            InvalidInput: If the sequence contains NaN.
        """
        sequence = np.asarray(sequence, dtype=np.float64)
        if np.isnan(sequence).any():
            raise InvalidInput("entropy sequence contains NaN")
        if state is None:
            state = NormalizationState.from_sequence(sequence, self.scale)
        scaled = np.clip((sequence - state.min_value) * state.scale_factor, 0.0, 1.0)
        return np.floor(scaled * (self.steps - 1)).astype(np.uint8)

    def render(self, sequence, width=config.DEFAULT_IMAGE_WIDTH, height=config.DEFAULT_IMAGE_HEIGHT):
        """
        Allocates a height x width canvas and renders the sequence into it.

        Returns:
            numpy.ndarray: uint8 array of palette indices, shape (height, width).
        """
        validate_canvas(width, height)
        canvas = np.zeros((height, width), dtype=np.uint8)
        self.render_into(sequence, canvas)
        return canvas

    def render_into(self, sequence, canvas):
        """
        Renders the sequence into a caller-supplied 2D uint8 canvas.

        Each sample fills its pixel allowance as horizontal runs, starting at
        the cursor and wrapping to the next row when the current one is full.

        Returns:
            NormalizationState: The normalization used for this render.
        """
        start = time.perf_counter()
        height, width = canvas.shape
        validate_canvas(width, height)
        sequence = np.asarray(sequence, dtype=np.float64)
        state = NormalizationState.from_sequence(sequence, self.scale)

        if len(sequence) == 0:
            canvas.fill(0)
            return state

        indices = self.color_indices(sequence, state)
        counts = allocate_pixels(len(sequence), width, height)
        logging.info(
            f"min={state.min_value} / max={state.max_value} / width={width} / height={height} / "
            f"pixels={width * height / len(sequence)} / factor: {state.scale_factor}"
        )

        # Raster order is row-major, so wrapping rows is a flat fill.
        canvas[...] = np.repeat(indices, counts).reshape(height, width)

        elapsed_ms = (time.perf_counter() - start) * 1000
        logging.info(f"Painted {len(sequence)} elements in {elapsed_ms:.0f} ms")
        return state
