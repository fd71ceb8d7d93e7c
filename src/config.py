# --- Sliding Window ---
DEFAULT_WINDOW_SIZE = 32  # bytes
DEFAULT_WINDOW_STRIDE = 1  # bytes, must be > 0 and <= window size
FILE_READ_CHUNK = 64 * 1024  # bytes buffered per file read

# --- Gradient ---
GRADIENT_STEPS = 256  # black -> red
SCALE = True  # min-max scale entropy values before the palette lookup

# --- Visualization ---
DEFAULT_IMAGE_WIDTH = 800
DEFAULT_IMAGE_HEIGHT = 600
WINDOW_TITLE = "Entropy Visualizer"
