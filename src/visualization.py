import logging

import cv2
import numpy as np

import config
from errors import InvalidConfiguration, IoFailure


def build_palette(steps=config.GRADIENT_STEPS):
    """
    Builds a gradient from black to full-intensity red.

    Returns:
        numpy.ndarray: uint8 array of shape (steps, 3) in OpenCV's BGR order.
    """
    palette = np.zeros((steps, 3), dtype=np.uint8)
    palette[:, 2] = np.round(np.linspace(0, 255, steps)).astype(np.uint8)
    return palette


class EntropyVisualizer:
    """
    Turns a canvas of gradient indices into a displayable BGR image.
    """

    def __init__(self, width=config.DEFAULT_IMAGE_WIDTH, height=config.DEFAULT_IMAGE_HEIGHT,
                 steps=config.GRADIENT_STEPS):
        """
        Args:
            width (int): The width of the visualization image.
            height (int): The height of the visualization image.
            steps (int): Number of gradient steps, must match the mapper's.
        """
        self.width = width
        self.height = height
        self.palette = build_palette(steps)

    def colorize(self, canvas):
        """
        Looks up every canvas index in the palette.

        Args:
            canvas (numpy.ndarray): uint8 palette indices, shape (height, width).

        Returns:
            A numpy array of shape (height, width, 3).

        Raises:
            InvalidConfiguration: If the canvas does not match the visualizer size.
        """
        if canvas.shape != (self.height, self.width):
            raise InvalidConfiguration(
                f"canvas is {canvas.shape[1]}x{canvas.shape[0]}, expected {self.width}x{self.height}"
            )
        return self.palette[canvas]

    def annotate(self, image, lines):
        """
        Draws status lines onto the bottom left corner of the image, last line lowest.
        """
        y = image.shape[0] - 10
        for text in reversed(lines):
            cv2.putText(image, text, (10, y), cv2.FONT_HERSHEY_SIMPLEX, 0.5, (0, 255, 255), 1, cv2.LINE_AA)
            y -= 20
        return image

    def save(self, image, path):
        if not cv2.imwrite(path, image):
            raise IoFailure(f"could not write image to {path}")
        logging.info(f"Image saved to {path}")

    def open_window(self, title=config.WINDOW_TITLE):
        """
        Creates the display window.

        Returns:
            bool: False if this OpenCV build has no GUI support.
        """
        try:
            cv2.namedWindow(title)
        except cv2.error as e:
            logging.warning(f"No display available, continuing without a window: {e}")
            return False
        return True

    def show(self, image, title=config.WINDOW_TITLE):
        try:
            cv2.imshow(title, image)
        except cv2.error as e:
            logging.warning(f"Could not show image: {e}")
            return False
        return True

    def wait_key(self, delay):
        """Returns the low byte of the pressed key, 255 if none was pressed."""
        return cv2.waitKey(delay) & 0xFF

    def close(self):
        try:
            cv2.destroyAllWindows()
        except cv2.error as e:
            logging.warning(f"Could not close windows: {e}")


if __name__ == '__main__':
    # Example usage
    import os
    from byte_source import MemoryByteSource
    from entropy_pipeline import EntropyPipeline
    from gradient_mapper import GradientMapper

    data = bytes(4096) + os.urandom(4096) + bytes(range(256)) * 16
    sequence = EntropyPipeline(256, 64).run(MemoryByteSource(data))

    visualizer = EntropyVisualizer(width=256, height=256)
    canvas = GradientMapper().render(sequence, 256, 256)
    image = visualizer.colorize(canvas)
    visualizer.annotate(image, [f"{len(sequence)} windows"])

    visualizer.show(image)
    cv2.waitKey(0)
    cv2.destroyAllWindows()
